"""
Test Configuration and Fixtures

Key fixtures:
- settings: Settings pointing at a throwaway SQLite file, cheap bcrypt cost
  and a fixed admin credential
- store: in-memory ObjectStore standing in for S3
- ctx / db: AppContext and an AsyncSession for service-level tests
- client: TestClient over the full application
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from docportal.context import build_context
from docportal.core.config import Settings
from docportal.core.errors import ObjectNotFound, ObjectStoreError, UploadError
from docportal.core.security import PasswordHasher
from docportal.main import create_application, create_tables
from docportal.services.object_store import ObjectMeta, ObjectStore

ADMIN_LOGIN = "admin@ceasa.com"
ADMIN_PASSWORD = "admin-pass"

COMPANY = {
    "name": "Hortifruti Silva",
    "registrationNumber": "12345678000199",
    "location": "Box 12",
    "loginId": "silva@example.com",
    "password": "silva-pass",
}
OTHER_COMPANY = {
    "name": "Frutas Souza",
    "registrationNumber": "98765432000111",
    "location": "Box 40",
    "loginId": "souza@example.com",
    "password": "souza-pass",
}


@dataclass
class StoredObject:
    data: bytes
    content_type: str
    last_modified: datetime


class InMemoryObjectStore(ObjectStore):
    """Dict-backed ObjectStore with S3's overwrite and listing semantics."""

    def __init__(self) -> None:
        self.objects: Dict[str, StoredObject] = {}
        self.fail_remove = False

    async def put_object(self, key, data, content_type, upsert=True):
        if not upsert and key in self.objects:
            raise UploadError(f"Object '{key}' already exists")
        self.objects[key] = StoredObject(data, content_type, datetime.now(timezone.utc))

    async def signed_url(self, key, ttl_seconds):
        if key not in self.objects:
            raise ObjectNotFound(f"File '{key}' not found")
        return f"https://storage.test/{key}?expires_in={ttl_seconds}"

    async def list_prefix(self, prefix) -> List[ObjectMeta]:
        folder = prefix.rstrip("/") + "/"
        children = []
        for key, obj in self.objects.items():
            rest = key[len(folder):]
            if key.startswith(folder) and rest and "/" not in rest:
                children.append(
                    ObjectMeta(key=key, name=rest, size=len(obj.data), last_modified=obj.last_modified)
                )
        return children

    async def remove_prefix(self, prefix):
        if self.fail_remove:
            raise ObjectStoreError("storage unreachable")
        folder = prefix.rstrip("/") + "/"
        doomed = [key for key in self.objects if key.startswith(folder)]
        for key in doomed:
            del self.objects[key]
        return len(doomed)

    def keys_under(self, prefix: str) -> List[str]:
        folder = prefix.rstrip("/") + "/"
        return sorted(key for key in self.objects if key.startswith(folder))


@pytest.fixture(scope="session")
def admin_password_hash():
    return PasswordHasher(rounds=4).hash(ADMIN_PASSWORD)


@pytest.fixture
def settings(tmp_path, admin_password_hash):
    return Settings(
        SECRET_KEY="test-secret",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        BCRYPT_ROUNDS=4,
        ADMIN_LOGIN_ID=ADMIN_LOGIN,
        ADMIN_PASSWORD_HASH=admin_password_hash,
        STATIC_DIR=None,
    )


@pytest.fixture
def store():
    return InMemoryObjectStore()


@pytest_asyncio.fixture
async def ctx(settings, store):
    context = build_context(settings, object_store=store)
    await create_tables(context)
    yield context
    await context.close()


@pytest_asyncio.fixture
async def db(ctx):
    async with ctx.sessionmaker() as session:
        yield session


@pytest.fixture
def app(settings, store):
    return create_application(settings, object_store=store)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def register(client, company=COMPANY):
    return client.post("/cadastro", json=company, follow_redirects=False)


def login(client, login_id, password):
    return client.post(
        "/login",
        json={"loginId": login_id, "password": password},
        follow_redirects=False,
    )


def login_admin(client):
    response = login(client, ADMIN_LOGIN, ADMIN_PASSWORD)
    assert response.status_code == 302
    return response


def company_id_of(client, registration_number):
    """Look a company up through the admin listing, then log the admin out."""
    login_admin(client)
    companies = client.get("/empresas").json()
    client.get("/logout", follow_redirects=False)
    return next(c["id"] for c in companies if c["registrationNumber"] == registration_number)
