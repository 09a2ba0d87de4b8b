import base64
import os
import tempfile
import uuid
from typing import Dict, List

import anyio
import pytest

_TMP_DIR = tempfile.mkdtemp(prefix="restaurant-tests-")

# Must be set before the application modules are imported
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/app.db"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["TRACING_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["IMAGE_STORE_URL"] = ""
os.environ["MEDIA_ROOT"] = os.path.join(_TMP_DIR, "media")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from main import app as restaurant_app  # noqa: E402
from services.menu_service.images import DecodedImage, ImageStoreError, get_image_store  # noqa: E402
from shared.config.database import Base, engine  # noqa: E402
from shared.security import create_access_token  # noqa: E402

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24
PNG_DATA_URI = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()

STRONG_PASSWORD = "Sup3r$ecret"


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeImageStore:
    """Records uploads/deletes instead of talking to an image host."""

    def __init__(self):
        self.uploaded: List[str] = []
        self.deleted: List[str] = []
        self.fail_uploads = False

    async def upload(self, image: DecodedImage) -> str:
        if self.fail_uploads:
            raise ImageStoreError("image host unavailable")
        url = f"https://images.test/menu-items/{len(self.uploaded) + 1}.{image.extension}"
        self.uploaded.append(url)
        return url

    async def delete(self, url: str) -> None:
        self.deleted.append(url)


@pytest.fixture
def image_store() -> FakeImageStore:
    return FakeImageStore()


async def _reset_database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture
def client(image_store):
    """
    TestClient over the full application with a fresh database
    and the fake image store injected.
    """
    anyio.run(_reset_database)
    restaurant_app.dependency_overrides[get_image_store] = lambda: image_store
    with TestClient(restaurant_app) as test_client:
        yield test_client
    restaurant_app.dependency_overrides.clear()


def bearer(principal_id: str, role: str) -> Dict[str, str]:
    token = create_access_token({"sub": principal_id, "role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    return bearer(str(uuid.uuid4()), "ADMIN")


class Customer:
    def __init__(self, user: dict, token: str):
        self.id = user["id"]
        self.email = user["email"]
        self.name = user["name"]
        self.token = token

    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


def register_customer(client: TestClient, name: str = "Ana Torres", email: str | None = None) -> Customer:
    email = email or f"{uuid.uuid4().hex[:10]}@example.com"
    resp = client.post(
        "/auth/register", json={"name": name, "email": email, "password": STRONG_PASSWORD}
    )
    assert resp.status_code == 201, resp.text
    login = client.post("/auth/login", json={"email": email, "password": STRONG_PASSWORD})
    assert login.status_code == 200, login.text
    return Customer(resp.json(), login.json()["access_token"])


@pytest.fixture
def customer(client) -> Customer:
    return register_customer(client)


def create_menu_item(
    client: TestClient,
    admin_headers: Dict[str, str],
    name: str = "Empanada",
    price: float = 10.0,
    available: bool = True,
) -> dict:
    resp = client.post(
        "/admin/menu/",
        json={"name": name, "currency": "USD", "price": price, "image": PNG_DATA_URI},
        headers=admin_headers,
    )
    assert resp.status_code == 201, resp.text
    item = resp.json()
    if not available:
        resp = client.patch(
            f"/admin/menu/{item['id']}/availability", json={"available": False}, headers=admin_headers
        )
        assert resp.status_code == 200, resp.text
        item = resp.json()
    return item


# --- Service-level fixtures (async, own database) ---

@pytest.fixture
async def session_factory(tmp_path):
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/service.db", poolclass=NullPool)

    @event.listens_for(test_engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(test_engine, expire_on_commit=False)

    await test_engine.dispose()


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session
