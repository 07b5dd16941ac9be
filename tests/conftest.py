import asyncio

import pytest
from fastapi.testclient import TestClient

from library_api import crud
from library_api.config import Settings
from library_api.database import Database
from library_api.main import create_app
from library_api.models import Role
from library_api.schemas import UserCreate

ADMIN_EMAIL = "admin@example.com"
PASSWORD = "secret123"


@pytest.fixture
def settings(tmp_path):
    # Every test gets its own database file
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'library.db'}",
        secret_key="test-secret",
        store_timeout=5.0,
        lending_max_attempts=5,
    )


async def _create_admin(settings):
    db = Database(settings.database_url)
    try:
        await db.create_all()
        async with db.session() as session:
            await crud.create_user(
                session,
                UserCreate(
                    first_name="Admin",
                    last_name="User",
                    email=ADMIN_EMAIL,
                    password=PASSWORD,
                    role=Role.ADMINISTRATOR,
                ),
            )
    finally:
        await db.dispose()


@pytest.fixture
def client(settings):
    asyncio.run(_create_admin(settings))
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


def login(client, email, password=PASSWORD):
    r = client.post("/api/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    # rely on the explicit header, not on the cookie the login just set
    client.cookies.clear()
    return auth_headers(r.json()["data"]["access_token"])


def register(client, email, first_name="Reader", password=PASSWORD):
    r = client.post(
        "/api/auth/register",
        json={"first_name": first_name, "last_name": "Tester", "email": email, "password": password},
    )
    assert r.status_code == 201, r.text
    client.cookies.clear()
    data = r.json()["data"]
    return data["id"], auth_headers(data["access_token"])


@pytest.fixture
def admin_headers(client):
    return login(client, ADMIN_EMAIL)


@pytest.fixture
def author(client, admin_headers):
    r = client.post("/api/authors", json={"name": "George Orwell", "nationality": "British"}, headers=admin_headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]


@pytest.fixture
def make_book(client, admin_headers, author):
    def _make_book(title="1984", copies=3, category="Dystopian"):
        r = client.post(
            "/api/books",
            json={"title": title, "author": author["id"], "category": category, "copies_available": copies},
            headers=admin_headers,
        )
        assert r.status_code == 201, r.text
        return r.json()["data"]

    return _make_book
