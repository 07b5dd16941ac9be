from conftest import ADMIN_EMAIL, PASSWORD, login, register


def test_admin_lists_users(client, admin_headers):
    register(client, "reader@example.com")
    r = client.get("/api/users", headers=admin_headers)
    assert r.status_code == 200
    emails = {user["email"] for user in r.json()["data"]}
    assert emails == {ADMIN_EMAIL, "reader@example.com"}


def test_ordinary_user_cannot_administer(client):
    user_id, headers = register(client, "reader@example.com")
    assert client.get("/api/users", headers=headers).status_code == 403
    assert client.get(f"/api/users/{user_id}", headers=headers).status_code == 403
    assert client.delete(f"/api/users/{user_id}", headers=headers).status_code == 403


def test_admin_creates_administrator(client, admin_headers, author):
    r = client.post(
        "/api/users",
        json={
            "first_name": "Second",
            "last_name": "Admin",
            "email": "second@example.com",
            "password": PASSWORD,
            "role": "administrator",
        },
        headers=admin_headers,
    )
    assert r.status_code == 201
    assert r.json()["data"]["role"] == "administrator"

    headers = login(client, "second@example.com")
    r = client.post("/api/books", json={"title": "Animal Farm", "author": author["id"]}, headers=headers)
    assert r.status_code == 201


def test_admin_create_rejects_unknown_role(client, admin_headers):
    r = client.post(
        "/api/users",
        json={
            "first_name": "Odd",
            "last_name": "Role",
            "email": "odd@example.com",
            "password": PASSWORD,
            "role": "librarian",
        },
        headers=admin_headers,
    )
    assert r.status_code == 400


def test_admin_updates_user(client, admin_headers, author):
    user_id, headers = register(client, "reader@example.com")
    r = client.put(f"/api/users/{user_id}", json={"role": "administrator"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["role"] == "administrator"

    r = client.post("/api/books", json={"title": "Animal Farm", "author": author["id"]}, headers=headers)
    assert r.status_code == 201


def test_admin_update_duplicate_email(client, admin_headers):
    user_id, _ = register(client, "reader@example.com")
    r = client.put(f"/api/users/{user_id}", json={"email": ADMIN_EMAIL}, headers=admin_headers)
    assert r.status_code == 409
    assert r.json()["error"] == "DuplicateEmail"


def test_admin_reads_unknown_user(client, admin_headers):
    r = client.get(f"/api/users/{'1' * 32}", headers=admin_headers)
    assert r.status_code == 404
    assert r.json()["message"] == "User not found"


def test_deleting_user_returns_their_books(client, admin_headers, make_book):
    book = make_book(copies=2)
    user_id, headers = register(client, "reader@example.com")
    client.post(f"/api/users/me/borrow/{book['id']}", headers=headers)
    assert client.get(f"/api/books/{book['id']}").json()["data"]["copies_available"] == 1

    r = client.delete(f"/api/users/{user_id}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["message"] == "User deleted"

    after = client.get(f"/api/books/{book['id']}").json()["data"]
    assert after["copies_available"] == 2
    assert after["borrowers"] == []
    assert client.get(f"/api/users/{user_id}", headers=admin_headers).status_code == 404


def test_update_own_profile(client):
    _, headers = register(client, "reader@example.com")
    r = client.put(
        "/api/users/me",
        json={"bio": "Reads a lot.", "gender": "female", "birth_date": "1990-05-01", "country": "UK"},
        headers=headers,
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["bio"] == "Reads a lot."
    assert data["gender"] == "female"
    assert data["birth_date"] == "1990-05-01"


def test_update_own_profile_cannot_change_role(client):
    _, headers = register(client, "reader@example.com")
    r = client.put("/api/users/me", json={"role": "administrator"}, headers=headers)
    assert r.status_code == 400

    r = client.put("/api/users/me", json={"gender": "other"}, headers=headers)
    assert r.status_code == 400


def test_change_own_password(client):
    _, headers = register(client, "reader@example.com")
    r = client.put("/api/users/me", json={"password": "new-secret"}, headers=headers)
    assert r.status_code == 200

    r = client.post("/api/auth/login", json={"email": "reader@example.com", "password": PASSWORD})
    assert r.status_code == 401
    login(client, "reader@example.com", password="new-secret")
