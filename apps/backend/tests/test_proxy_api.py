import unittest
from unittest.mock import AsyncMock, patch

import httpx

from services import proxy_service
from services.proxy_service import inject_base_tag
from tests.api_support import ApiTestCase


def _mock_client(handler):
    def build(timeout):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
    return build


class ProxyApiTests(ApiTestCase):
    def _get(self, url, handler):
        with patch.object(proxy_service, "_build_client", _mock_client(handler)):
            return self.client.get("/api/proxy", params={"url": url}, headers=self.auth())

    def test_url_validation(self):
        resp = self.client.get("/api/proxy", headers=self.auth())
        self.assertEqual((resp.status_code, resp.json()), (400, {"error": "Missing url parameter"}))
        resp = self.client.get("/api/proxy", params={"url": "not a url"}, headers=self.auth())
        self.assertEqual(resp.json(), {"error": "Invalid URL"})
        resp = self.client.get("/api/proxy", params={"url": "ftp://site.test/file.txt"}, headers=self.auth())
        self.assertEqual(resp.json(), {"error": "Only HTTP(S) URLs allowed"})

    def test_html_gets_base_tag_and_frame_headers_are_dropped(self):
        def handler(request):
            return httpx.Response(
                200,
                headers={
                    "content-type": "text/html; charset=utf-8",
                    "x-frame-options": "DENY",
                    "content-security-policy": "frame-ancestors 'none'",
                },
                text="<html><head><title>t</title></head><body>hi</body></html>",
            )

        resp = self._get("https://site.test/a/b", handler)
        self.assertEqual(resp.status_code, 200)
        self.assertIn('<head><base href="https://site.test/">', resp.text)
        self.assertNotIn("x-frame-options", resp.headers)
        self.assertNotIn("content-security-policy", resp.headers)
        self.assertEqual(resp.headers["cache-control"], "public, max-age=300")

    def test_non_html_passes_through(self):
        resp = self._get(
            "https://site.test/data.json",
            lambda request: httpx.Response(200, headers={"content-type": "application/json"}, content=b'{"a":1}'),
        )
        self.assertEqual(resp.content, b'{"a":1}')
        self.assertEqual(resp.headers["content-type"], "application/json")

    def test_upstream_error_status(self):
        resp = self._get("https://site.test/", lambda request: httpx.Response(404))
        self.assertEqual((resp.status_code, resp.json()), (502, {"error": "Upstream returned 404"}))

    def test_response_too_large(self):
        with patch.object(proxy_service.settings, "PROXY_MAX_BYTES", 10):
            resp = self._get("https://site.test/", lambda request: httpx.Response(200, content=b"x" * 50))
        self.assertEqual((resp.status_code, resp.json()), (502, {"error": "Response too large"}))

    def test_network_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        resp = self._get("https://site.test/", handler)
        self.assertEqual(resp.status_code, 502)
        self.assertEqual(resp.json(), {"error": "connection refused"})


class SnapshotApiTests(ApiTestCase):
    def test_requires_url(self):
        resp = self.client.get("/api/snapshot", headers=self.auth())
        self.assertEqual((resp.status_code, resp.json()), (400, {"error": "URL parameter is required"}))

    def test_snapshot_is_sanitized(self):
        extracted = {
            "title": "<b>Story</b>",
            "byline": "Jane",
            "siteName": "Site",
            "content": "<p>Body</p><script>x()</script>",
        }
        with patch("services.snapshot_service.render_page", new=AsyncMock(return_value="<html></html>")), \
                patch("services.snapshot_service.extract_readable", return_value=extracted):
            resp = self.client.get("/api/snapshot", params={"url": "https://site.test/story"}, headers=self.auth())

        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json(), {"snapshot": {
            "title": "Story",
            "content": "<p>Body</p>",
            "byline": "Jane",
            "siteName": "Site",
            "url": "https://site.test/story",
        }})

    def test_render_failure_is_upstream_error(self):
        with patch("services.snapshot_service.render_page", new=AsyncMock(side_effect=TimeoutError("timeout"))):
            resp = self.client.get("/api/snapshot", params={"url": "https://site.test/"}, headers=self.auth())
        self.assertEqual(resp.status_code, 502)

    def test_unreadable_page(self):
        with patch("services.snapshot_service.render_page", new=AsyncMock(return_value="<html></html>")), \
                patch("services.snapshot_service.extract_readable", return_value=None):
            resp = self.client.get("/api/snapshot", params={"url": "https://site.test/"}, headers=self.auth())
        self.assertEqual((resp.status_code, resp.json()), (502, {"error": "Failed to parse article content"}))


class BaseTagTests(unittest.TestCase):
    def test_head_is_created_when_missing(self):
        self.assertEqual(
            inject_base_tag("<html><body>x</body></html>", "https://a.test"),
            '<html><head><base href="https://a.test/"></head><body>x</body></html>',
        )

    def test_head_with_attributes(self):
        out = inject_base_tag('<head lang="en"><title>t</title></head>', "https://a.test")
        self.assertTrue(out.startswith('<head lang="en"><base href="https://a.test/">'))


if __name__ == "__main__":
    unittest.main()
