# tests/conftest.py
import os
import uuid

# must be set before tasktrail.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_tasktrail.db")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from tasktrail.database import Base, SessionLocal, engine
from tasktrail.main import app
from tasktrail.services.storage import ObjectStorage, get_storage, get_storage_provider

from .fakes import FakeS3Client

BUCKET = "task-files"
PUBLIC_ENDPOINT = "http://minio.test:9000"


# Recreate all tables for each test
@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def s3():
    return FakeS3Client()


@pytest.fixture
def storage(s3):
    return ObjectStorage(client=s3, bucket=BUCKET, public_endpoint=PUBLIC_ENDPOINT)


@pytest.fixture
def client(storage):
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_storage_provider] = lambda: (lambda: storage)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(client):
    """Register a user and return (user_json, auth_headers)."""

    def _make(name: str = "Alice", email: str = None, password: str = "password123"):
        email = email or f"{name.lower()}_{uuid.uuid4().hex[:8]}@example.com"
        r = client.post("/auth/register", json={"email": email, "password": password, "name": name})
        assert r.status_code == 201, r.text
        body = r.json()
        return body["user"], {"Authorization": f"Bearer {body['token']}"}

    return _make


@pytest.fixture
def task_payload():
    def _payload(**overrides):
        data = {
            "title": "Write docs",
            "description": "Write docs for the public API",
            "deliveryDate": "2026-02-15T12:00:00Z",
        }
        data.update(overrides)
        return data

    return _payload
