import unittest

from fastapi.testclient import TestClient

import app as annotator_app
from middleware.rate_limit import limiter
from tests.fakes import InMemoryDocumentStore, InMemoryFileStorage

UID = "user-1"
OTHER_UID = "user-2"


class ApiTestCase(unittest.TestCase):
    """
    Route tests run against the in-memory store with the development auth
    bypass: the caller is whoever the ``X-Firebase-UID`` header names.
    """

    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(annotator_app.app)

    def setUp(self):
        settings = annotator_app.settings
        self._orig_env = settings.ENVIRONMENT
        self._orig_dev_bypass = settings.DEV_UNSAFE_AUTH_BYPASS
        self._orig_firebase_ready = settings.FIREBASE_READY
        self._orig_limiter_enabled = limiter.enabled
        settings.ENVIRONMENT = "development"
        settings.DEV_UNSAFE_AUTH_BYPASS = True
        settings.FIREBASE_READY = False
        limiter.enabled = False
        self.client.cookies.clear()

        self.store = InMemoryDocumentStore()
        self.file_storage = InMemoryFileStorage()
        annotator_app.app.state.store = self.store
        annotator_app.app.state.file_storage = self.file_storage

    def tearDown(self):
        settings = annotator_app.settings
        settings.ENVIRONMENT = self._orig_env
        settings.DEV_UNSAFE_AUTH_BYPASS = self._orig_dev_bypass
        settings.FIREBASE_READY = self._orig_firebase_ready
        limiter.enabled = self._orig_limiter_enabled
        annotator_app.app.state.store = None
        annotator_app.app.state.file_storage = None

    @staticmethod
    def auth(uid=UID):
        return {"X-Firebase-UID": uid}
