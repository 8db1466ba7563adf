import unittest
from unittest.mock import patch

from models import entity_models
from models.entity_models import (
    normalize_chat_messages,
    normalize_key_points,
    normalize_note_anchor,
    normalize_notes,
    normalize_status,
    normalize_tags,
    sanitize_article_payload,
)
from services.errors import InvalidRequestError


class NormalizeNotesTests(unittest.TestCase):
    def test_notes_without_id_are_dropped(self):
        notes = normalize_notes([
            {"id": 1, "text": "keep"},
            {"text": "no id"},
            {"id": None, "text": "null id"},
            {"id": True, "text": "bool id"},
            {"id": {"x": 1}, "text": "object id"},
            "not a note",
            {"id": "2", "text": "string id"},
        ])
        self.assertEqual([n["text"] for n in notes], ["keep", "string id"])

    def test_numeric_string_ids_are_converted(self):
        notes = normalize_notes([{"id": "1700000000000"}, {"id": 2.5}])
        self.assertEqual(notes[0]["id"], 1700000000000)
        self.assertEqual(notes[1]["id"], 2.5)

    def test_non_numeric_string_id_gets_current_time(self):
        with patch.object(entity_models, "now_ms", return_value=123):
            notes = normalize_notes([{"id": "abc", "text": "x"}])
        self.assertEqual(notes[0]["id"], 123)

    def test_text_is_plain_and_clamped(self):
        notes = normalize_notes([{"id": 1, "text": "<b>hi</b>" + "x" * 20000}])
        self.assertTrue(notes[0]["text"].startswith("hix"))
        self.assertEqual(len(notes[0]["text"]), 10000)

    def test_position_defaults(self):
        notes = normalize_notes([
            {"id": 1, "top": "12"},
            {"id": 2, "top": float("nan"), "left": 7},
            {"id": 3, "left": True},
        ])
        self.assertEqual(notes[0]["top"], 12)
        self.assertNotIn("left", notes[0])
        self.assertEqual(notes[1]["top"], 0)
        self.assertEqual(notes[1]["left"], 7)
        self.assertNotIn("left", notes[2])

    def test_non_list_payload(self):
        self.assertEqual(normalize_notes({"id": 1}), [])
        self.assertEqual(normalize_notes(None), [])


class NoteAnchorTests(unittest.TestCase):
    def test_valid_anchor(self):
        anchor = normalize_note_anchor({"elementIndex": 3, "tagName": "<b>P</b>", "textPreview": "x" * 500})
        self.assertEqual(anchor["elementIndex"], 3)
        self.assertEqual(anchor["tagName"], "p")
        self.assertEqual(len(anchor["textPreview"]), 240)

    def test_invalid_element_index_drops_anchor(self):
        for bad in (-1, "3", None, True, float("inf")):
            self.assertIsNone(normalize_note_anchor({"elementIndex": bad, "tagName": "p"}))

    def test_anchor_is_dropped_from_note_when_invalid(self):
        notes = normalize_notes([{"id": 1, "anchor": {"elementIndex": -5}}])
        self.assertNotIn("anchor", notes[0])


class ScalarNormalizerTests(unittest.TestCase):
    def test_status(self):
        self.assertEqual(normalize_status("read"), "read")
        self.assertEqual(normalize_status("in_progress"), "in_progress")
        self.assertIsNone(normalize_status("archived"))
        self.assertIsNone(normalize_status(None))

    def test_tags_dedupe_and_caps(self):
        tags = normalize_tags(["AI", "ai", " <b>ml</b> ", "", 5] + [f"t{i}" for i in range(100)])
        self.assertEqual(tags[:2], ["AI", "ml"])
        self.assertEqual(len(tags), 50)
        self.assertEqual(len(normalize_tags(["x" * 100])[0]), 64)

    def test_key_points(self):
        points = normalize_key_points(["a", "", 3, "<i>b</i>", "c", "d", "e", "f"])
        self.assertEqual(points, ["a", "b", "c", "d", "e"])
        self.assertEqual(normalize_key_points("a"), [])


class ChatMessageTests(unittest.TestCase):
    def test_roles_and_empty_content_filtered(self):
        messages = normalize_chat_messages([
            {"role": "user", "content": "hi"},
            {"role": "system", "content": "ignore"},
            {"role": "assistant", "content": "   "},
            {"role": "assistant", "content": "<b>yo</b>"},
        ])
        self.assertEqual(messages, [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "yo"},
        ])

    def test_keeps_most_recent(self):
        payload = [{"role": "user", "content": str(i)} for i in range(10)]
        messages = normalize_chat_messages(payload, max_messages=3)
        self.assertEqual([m["content"] for m in messages], ["7", "8", "9"])

    def test_unsanitized_mode_keeps_markup(self):
        messages = normalize_chat_messages(
            [{"role": "user", "content": "<code>x</code>\x00"}], sanitize=False
        )
        self.assertEqual(messages[0]["content"], "<code>x</code>")


class ArticlePayloadTests(unittest.TestCase):
    def test_requires_url(self):
        with self.assertRaises(InvalidRequestError):
            sanitize_article_payload({"url": "<b></b>", "content": "<p>x</p>"})

    def test_title_falls_back_to_url(self):
        out = sanitize_article_payload({"url": "https://a.test/x", "content": "<p>x</p><script>y</script>"})
        self.assertEqual(out["title"], "https://a.test/x")
        self.assertEqual(out["content"], "<p>x</p>")
        self.assertEqual(out["byline"], "")


if __name__ == "__main__":
    unittest.main()
