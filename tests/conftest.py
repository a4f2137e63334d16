"""
Pytest fixtures for the StoreBack API

The environment is pointed at a throwaway SQLite database and upload
directory before the application modules are imported.
"""

import io
import os
import struct
import tempfile
import zlib

_TEST_DIR = tempfile.mkdtemp(prefix="storeback-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DIR, 'test.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TEST_DIR, "uploads")
os.environ["JWT_SECRET_KEY"] = "test-signing-key-that-is-long-enough-1234"
os.environ.pop("JWT_ISSUER", None)
os.environ.pop("JWT_AUDIENCE", None)

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from main import app
from storeback.database import Base, SessionLocal, engine
from storeback.services.storage_service import StorageService, get_storage_service


def make_image_bytes(image_format: str = "PNG", color=(200, 30, 30)) -> bytes:
    """Small in-memory image for upload tests"""
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color).save(buffer, format=image_format)
    return buffer.getvalue()


def make_oversized_png(width: int = 200000, height: int = 200000) -> bytes:
    """Tiny PNG whose header claims huge dimensions"""
    def chunk(kind: bytes, data: bytes) -> bytes:
        crc = zlib.crc32(kind + data) & 0xFFFFFFFF
        return struct.pack(">I", len(data)) + kind + data + struct.pack(">I", crc)

    header = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", header) + chunk(b"IDAT", b"") + chunk(b"IEND", b"")


def make_html_polyglot() -> bytes:
    """Valid GIF bytes with an HTML document appended"""
    return make_image_bytes("GIF") + b"<html><script>alert(document.cookie)</script></html>"


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def storage(tmp_path) -> StorageService:
    return StorageService(str(tmp_path / "uploads"))


@pytest.fixture
def client(storage):
    app.dependency_overrides[get_storage_service] = lambda: storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes()


def register(client, username="alice", password="pw123", phone="555", email="a@x.com", photo=None):
    """Register through the API and return the response"""
    files = {"photo": ("me.png", photo or make_image_bytes(), "image/png")}
    data = {"username": username, "password": password, "phone": phone, "email": email}
    return client.post("/api/user/register", data=data, files=files)


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice_token(client) -> str:
    response = register(client)
    assert response.status_code == 200, response.text
    return response.json()["token"]


@pytest.fixture
def bob_token(client) -> str:
    response = register(client, username="bob", password="secret", phone="777", email="b@x.com")
    assert response.status_code == 200, response.text
    return response.json()["token"]
