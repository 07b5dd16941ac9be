from conftest import register

UNKNOWN_ID = "0" * 32


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "ok"


def test_unknown_endpoint_uses_envelope(client):
    r = client.get("/api/nothing-here")
    assert r.status_code == 404
    assert r.json() == {
        "success": False,
        "status": 404,
        "error": "HTTPError",
        "message": "API endpoint not found",
    }


def test_books_are_public(client, make_book):
    book = make_book()
    r = client.get("/api/books")
    assert r.status_code == 200
    assert [b["id"] for b in r.json()["data"]] == [book["id"]]

    r = client.get(f"/api/books/{book['id']}")
    assert r.status_code == 200
    assert r.json()["data"]["author"]["name"] == "George Orwell"


def test_non_admin_cannot_create_book(client, author):
    _, headers = register(client, "reader@example.com")
    r = client.post("/api/books", json={"title": "Animal Farm", "author": author["id"]}, headers=headers)
    assert r.status_code == 403
    assert r.json()["message"] == "Not authorized as admin"


def test_anonymous_cannot_create_book(client, author):
    r = client.post("/api/books", json={"title": "Animal Farm", "author": author["id"]})
    assert r.status_code == 401


def test_create_book(client, admin_headers, author):
    r = client.post(
        "/api/books",
        json={"title": "Animal Farm", "author": author["id"], "description": "A farm rebellion.", "category": "Satire"},
        headers=admin_headers,
    )
    assert r.status_code == 201
    book = r.json()["data"]
    assert book["copies_available"] == 1
    assert book["total_copies"] == 1
    assert book["borrowers"] == []
    assert book["author"] == {"id": author["id"], "name": "George Orwell"}

    r = client.get(f"/api/authors/{author['id']}")
    assert [b["title"] for b in r.json()["data"]["books"]] == ["Animal Farm"]


def test_create_book_with_unknown_author(client, admin_headers):
    r = client.post("/api/books", json={"title": "Orphan", "author": UNKNOWN_ID}, headers=admin_headers)
    assert r.status_code == 404
    assert r.json()["error"] == "Author"


def test_create_book_validation(client, admin_headers, author):
    r = client.post(
        "/api/books",
        json={"title": "", "author": "not-an-id", "copies_available": -1},
        headers=admin_headers,
    )
    assert r.status_code == 400
    fields = {error["field"] for error in r.json()["errors"]}
    assert {"title", "author", "copies_available"} <= fields


def test_filter_books(client, admin_headers, make_book):
    make_book("1984", category="Dystopian")
    make_book("Animal Farm", category="Satire")
    other = client.post("/api/authors", json={"name": "Jane Austen"}, headers=admin_headers).json()["data"]
    client.post(
        "/api/books",
        json={"title": "Pride and Prejudice", "author": other["id"], "category": "Romance"},
        headers=admin_headers,
    )

    r = client.get("/api/books", params={"category": "Satire"})
    assert [b["title"] for b in r.json()["data"]] == ["Animal Farm"]

    r = client.get("/api/books", params={"author": other["id"]})
    assert [b["title"] for b in r.json()["data"]] == ["Pride and Prejudice"]

    r = client.get("/api/books", params={"search": "farm"})
    assert [b["title"] for b in r.json()["data"]] == ["Animal Farm"]


def test_get_book_bad_and_unknown_id(client):
    r = client.get("/api/books/not-an-id")
    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "book_id"

    r = client.get(f"/api/books/{UNKNOWN_ID}")
    assert r.status_code == 404
    assert r.json()["message"] == "Book not found"


def test_update_book(client, admin_headers, make_book):
    book = make_book(copies=3)
    r = client.put(f"/api/books/{book['id']}", json={"title": "Nineteen Eighty-Four"}, headers=admin_headers)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["title"] == "Nineteen Eighty-Four"
    assert data["category"] == "Dystopian"
    assert data["copies_available"] == 3


def test_update_book_requires_a_field(client, admin_headers, make_book):
    book = make_book()
    r = client.put(f"/api/books/{book['id']}", json={}, headers=admin_headers)
    assert r.status_code == 400

    r = client.put(f"/api/books/{book['id']}", json={"title": None}, headers=admin_headers)
    assert r.status_code == 400


def test_update_copies_keeps_loans_counted(client, admin_headers, make_book):
    book = make_book(copies=2)
    _, headers = register(client, "reader@example.com")
    client.post(f"/api/users/me/borrow/{book['id']}", headers=headers)

    r = client.put(f"/api/books/{book['id']}", json={"copies_available": 4}, headers=admin_headers)
    data = r.json()["data"]
    assert data["copies_available"] == 4
    assert data["total_copies"] == 5


def test_update_book_unknown_author(client, admin_headers, make_book):
    book = make_book()
    r = client.put(f"/api/books/{book['id']}", json={"author": UNKNOWN_ID}, headers=admin_headers)
    assert r.status_code == 404
    assert r.json()["error"] == "Author"


def test_delete_book(client, admin_headers, make_book):
    book = make_book()
    r = client.delete(f"/api/books/{book['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["message"] == "Book deleted"
    assert client.get(f"/api/books/{book['id']}").status_code == 404


def test_author_crud(client, admin_headers):
    r = client.post(
        "/api/authors",
        json={"name": "Jane Austen", "birth_date": "1775-12-16", "nationality": "British"},
        headers=admin_headers,
    )
    assert r.status_code == 201
    author = r.json()["data"]
    assert author["books"] == []

    r = client.put(f"/api/authors/{author['id']}", json={"bio": "English novelist."}, headers=admin_headers)
    assert r.json()["data"]["bio"] == "English novelist."
    assert r.json()["data"]["birth_date"] == "1775-12-16"

    r = client.get("/api/authors", params={"search": "austen"})
    assert [a["id"] for a in r.json()["data"]] == [author["id"]]

    r = client.delete(f"/api/authors/{author['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert client.get(f"/api/authors/{author['id']}").status_code == 404


def test_author_books_can_be_reassigned(client, admin_headers, make_book):
    book = make_book("Animal Farm")
    r = client.post("/api/authors", json={"name": "Eric Blair", "books": [book["id"]]}, headers=admin_headers)
    assert r.status_code == 201
    new_author = r.json()["data"]
    assert [b["id"] for b in new_author["books"]] == [book["id"]]

    r = client.get(f"/api/books/{book['id']}")
    assert r.json()["data"]["author"]["id"] == new_author["id"]


def test_delete_author_with_books(client, admin_headers, author, make_book):
    book = make_book()
    r = client.delete(f"/api/authors/{author['id']}", headers=admin_headers)
    assert r.status_code == 409
    assert r.json()["error"] == "AuthorHasBooks"

    client.delete(f"/api/books/{book['id']}", headers=admin_headers)
    r = client.delete(f"/api/authors/{author['id']}", headers=admin_headers)
    assert r.status_code == 200


def test_update_author_moves_books(client, admin_headers, author, make_book):
    book = make_book("Animal Farm")
    r = client.post("/api/authors", json={"name": "Eric Blair"}, headers=admin_headers)
    new_author = r.json()["data"]

    r = client.put(f"/api/authors/{new_author['id']}", json={"books": [book["id"]]}, headers=admin_headers)
    assert r.status_code == 200
    assert [b["id"] for b in r.json()["data"]["books"]] == [book["id"]]
    assert client.get(f"/api/authors/{author['id']}").json()["data"]["books"] == []


def test_update_book_author(client, admin_headers, make_book):
    book = make_book()
    r = client.post("/api/authors", json={"name": "Eric Blair"}, headers=admin_headers)
    new_author = r.json()["data"]

    r = client.put(f"/api/books/{book['id']}", json={"author": new_author["id"]}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["author"]["id"] == new_author["id"]
    assert r.json()["data"]["author"]["name"] == "Eric Blair"


def test_blank_names_are_rejected(client, admin_headers, author, make_book):
    r = client.post("/api/books", json={"title": "   ", "author": author["id"]}, headers=admin_headers)
    assert r.status_code == 400
    assert [e["field"] for e in r.json()["errors"]] == ["title"]

    r = client.post("/api/authors", json={"name": " \t "}, headers=admin_headers)
    assert r.status_code == 400
    assert [e["field"] for e in r.json()["errors"]] == ["name"]

    book = make_book()
    r = client.put(f"/api/books/{book['id']}", json={"title": "  "}, headers=admin_headers)
    assert r.status_code == 400


def test_titles_and_names_are_trimmed(client, admin_headers, author):
    r = client.post("/api/books", json={"title": "  Emma ", "author": author["id"]}, headers=admin_headers)
    assert r.status_code == 201
    assert r.json()["data"]["title"] == "Emma"

    r = client.post("/api/authors", json={"name": " Jane Austen "}, headers=admin_headers)
    assert r.json()["data"]["name"] == "Jane Austen"
