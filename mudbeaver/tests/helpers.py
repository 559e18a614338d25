import unittest

from fastapi.testclient import TestClient

from mudbeaver.app import create_app
from mudbeaver.auth import create_access_token
from mudbeaver.config import get_settings
from mudbeaver.db import InMemoryDbClient, UserRecord
from mudbeaver.dependencies import get_db_client, get_media_client
from mudbeaver.media import InMemoryMediaClient

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
PDF = b"%PDF-1.4\n" + b"\x00" * 32


class ApiTestCase(unittest.TestCase):
    """App wired to an in-memory store and media host, emptied before each test."""

    @classmethod
    def setUpClass(cls):
        cls.db = InMemoryDbClient()
        cls.media = InMemoryMediaClient()
        app = create_app()
        app.dependency_overrides[get_db_client] = lambda: cls.db
        app.dependency_overrides[get_media_client] = lambda: cls.media
        cls.client = TestClient(app)

    def setUp(self):
        self.db.reset()
        self.media.reset()

        self.admin = self.db.create_user(
            UserRecord(name="Admin", email="admin@example.com", role="admin")
        )
        self.visitor = self.db.create_user(
            UserRecord(name="Visitor", email="visitor@example.com")
        )
        self.admin_headers = self.auth_headers(self.admin)

    def auth_headers(self, user: UserRecord) -> dict:
        token = create_access_token(user.id, get_settings())
        return {"Authorization": f"Bearer {token}"}
