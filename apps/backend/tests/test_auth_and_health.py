import unittest
from unittest.mock import patch

import app as annotator_app
from tests.api_support import UID, ApiTestCase


class ExpiredIdTokenError(Exception):
    pass


class RevokedSessionCookieError(Exception):
    pass


class HealthTests(ApiTestCase):
    def test_health_reports_environment(self):
        resp = self.client.get("/api/health")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["status"], "healthy")
        self.assertEqual(body["environment"]["environment"], "development")
        self.assertFalse(body["environment"]["firebaseReady"])
        self.assertTrue(body["environment"]["storeReady"])

    def test_metrics_are_exposed(self):
        self.client.get("/api/health")
        resp = self.client.get("/metrics")
        self.assertEqual(resp.status_code, 200)
        self.assertIn("http_requests_total", resp.text)

    def test_unknown_route_uses_error_body(self):
        resp = self.client.get("/api/nothing-here")
        self.assertEqual((resp.status_code, resp.json()), (404, {"error": "Not Found"}))


class SessionCookieTests(ApiTestCase):
    def test_missing_id_token(self):
        for body in ({}, {"idToken": "   "}):
            resp = self.client.post("/api/auth/session", json=body)
            self.assertEqual((resp.status_code, resp.json()), (400, {"error": "Missing idToken"}))

    def test_requires_firebase(self):
        resp = self.client.post("/api/auth/session", json={"idToken": "tok"})
        self.assertEqual((resp.status_code, resp.json()), (500, {"error": "Authentication service unavailable"}))

    def test_sets_http_only_cookie(self):
        annotator_app.settings.FIREBASE_READY = True
        with patch("firebase_admin.auth.create_session_cookie", return_value="cookie-value") as create:
            resp = self.client.post("/api/auth/session", json={"idToken": "tok"})
        self.assertEqual((resp.status_code, resp.json()), (200, {"success": True}))
        self.assertEqual(create.call_args.args[0], "tok")

        header = resp.headers["set-cookie"]
        self.assertIn("__session=cookie-value", header)
        self.assertIn("HttpOnly", header)
        self.assertIn("Max-Age=1209600", header)
        self.assertIn("SameSite=lax", header)
        self.assertNotIn("Secure", header)

    def test_rejected_id_token(self):
        annotator_app.settings.FIREBASE_READY = True
        with patch("firebase_admin.auth.create_session_cookie", side_effect=ValueError("bad token")):
            resp = self.client.post("/api/auth/session", json={"idToken": "tok"})
        self.assertEqual((resp.status_code, resp.json()), (401, {"error": "Failed to create session"}))

    def test_delete_clears_cookie(self):
        resp = self.client.delete("/api/auth/session")
        self.assertEqual(resp.json(), {"success": True})
        self.assertIn("Max-Age=0", resp.headers["set-cookie"])


class TokenVerificationTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        annotator_app.settings.FIREBASE_READY = True

    def test_bearer_token(self):
        with patch("firebase_admin.auth.verify_id_token", return_value={"uid": UID}) as verify:
            resp = self.client.get("/api/tags", headers={"Authorization": "Bearer abc"})
        self.assertEqual((resp.status_code, resp.json()), (200, {"tags": []}))
        verify.assert_called_once_with("abc")

    def test_session_cookie(self):
        self.client.cookies.set("__session", "cookie-value")
        with patch("firebase_admin.auth.verify_session_cookie", return_value={"uid": UID}) as verify:
            resp = self.client.get("/api/tags")
        self.assertEqual(resp.status_code, 200)
        verify.assert_called_once_with("cookie-value", check_revoked=True)

    def test_dev_header_ignored_once_firebase_is_ready(self):
        resp = self.client.get("/api/tags", headers=self.auth())
        self.assertEqual((resp.status_code, resp.json()), (401, {"error": "Authentication required"}))

    def test_malformed_authorization_header(self):
        resp = self.client.get("/api/tags", headers={"Authorization": "Token abc"})
        self.assertEqual((resp.status_code, resp.json()), (401, {"error": "Invalid Authorization header format"}))

    def test_verification_errors(self):
        cases = (
            (ExpiredIdTokenError("old"), 401, "Token expired"),
            (RevokedSessionCookieError("gone"), 401, "Session revoked"),
            (RuntimeError("boom"), 401, "Authentication required"),
        )
        for error, status, message in cases:
            with patch("firebase_admin.auth.verify_id_token", side_effect=error):
                resp = self.client.get("/api/tags", headers={"Authorization": "Bearer abc"})
            self.assertEqual((resp.status_code, resp.json()), (status, {"error": message}))

    def test_token_without_uid(self):
        with patch("firebase_admin.auth.verify_id_token", return_value={}):
            resp = self.client.get("/api/tags", headers={"Authorization": "Bearer abc"})
        self.assertEqual((resp.status_code, resp.json()), (401, {"error": "Invalid token claims"}))


if __name__ == "__main__":
    unittest.main()
