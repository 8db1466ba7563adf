import unittest

from models.board_models import (
    MAX_EDGES,
    MAX_NODES,
    sanitize_board_edge,
    sanitize_board_node,
    sanitize_edges,
    sanitize_nodes,
)


def _note(node_id="n1", **overrides):
    node = {"id": node_id, "type": "note", "position": {"x": 10, "y": 20}, "data": {"text": "hello"}}
    node.update(overrides)
    return node


class BoardNodeTests(unittest.TestCase):
    def test_note_node_defaults(self):
        node = sanitize_board_node(_note())
        self.assertEqual(node, {
            "id": "n1",
            "type": "note",
            "position": {"x": 10, "y": 20},
            "data": {"text": "hello", "color": "yellow"},
        })

    def test_unknown_type_or_missing_id_is_dropped(self):
        self.assertIsNone(sanitize_board_node(_note(type="video")))
        self.assertIsNone(sanitize_board_node(_note(id="  ")))
        self.assertIsNone(sanitize_board_node(_note(id=5)))
        self.assertIsNone(sanitize_board_node("node"))

    def test_position_rules(self):
        self.assertEqual(sanitize_board_node(_note(position={"x": "5", "y": None}))["position"], {"x": 5, "y": 0})
        self.assertEqual(sanitize_board_node(_note(position=None))["position"], {"x": 0, "y": 0})
        self.assertIsNone(sanitize_board_node(_note(position={"x": "left", "y": 0})))
        self.assertIsNone(sanitize_board_node(_note(position=[1, 2])))

    def test_data_must_be_object(self):
        self.assertIsNone(sanitize_board_node(_note(data=None)))
        self.assertIsNone(sanitize_board_node(_note(data="text")))

    def test_dimensions_only_when_numeric(self):
        node = sanitize_board_node(_note(width=300, height="tall"))
        self.assertEqual(node["width"], 300)
        self.assertNotIn("height", node)

    def test_website_payload(self):
        node = sanitize_board_node({
            "id": "w1",
            "type": "website",
            "position": {"x": 0, "y": 0},
            "data": {"url": "https://a.test", "title": "", "excerpt": "<b>e</b>", "articleId": " a1 "},
        })
        self.assertEqual(node["data"], {
            "url": "https://a.test",
            "title": "Untitled",
            "excerpt": "e",
            "articleId": "a1",
        })

    def test_ai_chat_payload(self):
        node = sanitize_board_node({
            "id": "c1",
            "type": "aiChat",
            "position": {"x": 0, "y": 0},
            "data": {
                "messages": [{"role": "user", "content": "q"}, {"role": "tool", "content": "x"}],
                "contextLabel": 7,
            },
        })
        self.assertEqual(node["data"], {"messages": [{"role": "user", "content": "q"}]})

    def test_iframe_optional_title(self):
        node = sanitize_board_node({
            "id": "f1", "type": "iframe", "position": {}, "data": {"url": "https://x.test"},
        })
        self.assertEqual(node["data"], {"url": "https://x.test"})


class BoardEdgeTests(unittest.TestCase):
    def test_edge_requires_endpoints(self):
        self.assertIsNone(sanitize_board_edge({"id": "e1", "source": "a"}))
        edge = sanitize_board_edge({"id": "e1", "source": "a", "target": "b", "style": "wavy", "label": "<i>l</i>"})
        self.assertEqual(edge, {"id": "e1", "source": "a", "target": "b", "label": "l", "style": "solid"})

    def test_dashed_style_kept(self):
        edge = sanitize_board_edge({"id": "e1", "source": "a", "target": "b", "style": "dashed"})
        self.assertEqual(edge["style"], "dashed")


class BoardCollectionTests(unittest.TestCase):
    def test_caps_apply_after_filtering(self):
        nodes = [{"bad": True}] + [_note(f"n{i}") for i in range(MAX_NODES + 20)]
        out = sanitize_nodes(nodes)
        self.assertEqual(len(out), MAX_NODES)
        self.assertEqual(out[0]["id"], "n0")

        edges = [{"id": f"e{i}", "source": "a", "target": "b"} for i in range(MAX_EDGES + 1)]
        self.assertEqual(len(sanitize_edges(edges)), MAX_EDGES)

    def test_non_list_inputs(self):
        self.assertEqual(sanitize_nodes({"id": "n1"}), [])
        self.assertEqual(sanitize_edges(None), [])


if __name__ == "__main__":
    unittest.main()
