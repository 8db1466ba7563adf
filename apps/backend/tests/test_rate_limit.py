import asyncio
import unittest

from starlette.requests import Request

from middleware.auth_middleware import verify_firebase_token
from middleware.rate_limit import get_rate_limit_key
from tests.api_support import UID, ApiTestCase


def _request(headers=None):
    raw_headers = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "headers": raw_headers, "client": ("203.0.113.7", 5000)})


class RateLimitKeyTests(unittest.TestCase):
    def test_uid_header_alone_does_not_pick_the_bucket(self):
        request = _request({"X-Firebase-UID": "someone-else"})
        self.assertEqual(get_rate_limit_key(request), "203.0.113.7")

    def test_verified_uid_is_the_key(self):
        request = _request()
        request.state.uid = UID
        self.assertEqual(get_rate_limit_key(request), UID)


class VerifiedUidTests(ApiTestCase):
    def test_auth_dependency_records_uid_on_request(self):
        request = _request(self.auth())
        uid = asyncio.run(verify_firebase_token(request))
        self.assertEqual(uid, UID)
        self.assertEqual(get_rate_limit_key(request), UID)


if __name__ == "__main__":
    unittest.main()
