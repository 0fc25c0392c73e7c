import pytest
from fastapi.testclient import TestClient

from api import create_app
from config import settings
from seed import seed_demo_data


@pytest.fixture
def client(lib):
    seed_demo_data(lib)
    app = create_app(lib)
    return TestClient(app)


def _student_payload(email="eve@example.com", level=1):
    return {
        "kind": "student",
        "name": "Eve Student",
        "email": email,
        "student_number": "E42",
        "level": level,
        "field_of_study": "History",
    }


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["total_books"] == 2


def test_index_lists_books_as_html(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert "<li>Java Facile - Auteur A</li>" in response.text
    assert response.text.index("Java Facile") < response.text.index("Maths pour Tous")


def test_get_books(client):
    response = client.get("/books")
    assert response.status_code == 200
    assert [b["title"] for b in response.json()] == ["Java Facile", "Maths pour Tous"]


def test_search_and_author_filters(client):
    assert [b["book_id"] for b in client.get("/books", params={"q": "maths"}).json()] == ["2"]
    assert [b["book_id"] for b in client.get("/books", params={"author": "auteur a"}).json()] == ["1"]
    assert client.get("/books", params={"q": ""}).json() == []


def test_book_crud(client):
    payload = {"book_id": "3", "title": "Physique", "author": "Auteur C", "publication_date": "2021-09-01"}
    response = client.post("/books", json=payload)
    assert response.status_code == 201
    assert response.json()["publication_date"] == "2021-09-01"

    assert client.post("/books", json=payload).status_code == 409

    response = client.put("/books/3", json={"title": "Physique II"})
    assert response.status_code == 200
    assert response.json()["title"] == "Physique II"
    assert client.put("/books/3", json={}).status_code == 400
    assert client.put("/books/999", json={"title": "X"}).status_code == 404

    assert client.delete("/books/3").status_code == 200
    assert client.get("/books/3").status_code == 404
    assert client.delete("/books/3").status_code == 404


def test_invalid_book_payload(client):
    response = client.post("/books", json={"book_id": "9", "title": "12345", "author": "Someone"})
    assert response.status_code == 422


def test_user_registration(client):
    response = client.post("/users", json=_student_payload())
    assert response.status_code == 201
    body = response.json()
    assert body["max_loans"] == 3
    assert body["user_type"] == "Student L1"

    dup = client.post("/users", json=_student_payload(email="EVE@example.com"))
    assert dup.status_code == 409

    assert client.get(f"/users/{body['user_id']}").json()["email"] == "eve@example.com"
    assert client.get("/users/nobody").status_code == 404
    assert [u["name"] for u in client.get("/users", params={"name": "eve"}).json()] == ["Eve Student"]


def test_user_registration_validation(client):
    assert client.post("/users", json=_student_payload(level=7)).status_code == 422
    assert client.post("/users", json={**_student_payload(), "email": "not-an-email"}).status_code == 422
    response = client.post("/users", json={"kind": "professor", "name": "Prof", "email": "p@x.com"})
    assert response.status_code == 422


def test_borrow_and_return(client):
    user = client.post("/users", json=_student_payload()).json()

    response = client.post("/loans", json={"book_id": "1", "user_id": user["user_id"]})
    assert response.status_code == 201
    assert response.json()["available"] is False
    assert response.json()["borrower_id"] == user["user_id"]

    assert [b["book_id"] for b in client.get("/books/borrowed").json()] == ["1"]
    assert [b["book_id"] for b in client.get("/books/available").json()] == ["2"]
    assert [b["book_id"] for b in client.get(f"/users/{user['user_id']}/loans").json()] == ["1"]
    assert client.post("/loans", json={"book_id": "1", "user_id": user["user_id"]}).status_code == 409
    assert client.delete("/books/1").status_code == 409

    response = client.post("/books/1/return")
    assert response.status_code == 200
    assert response.json()["overdue"] is False
    assert client.post("/books/1/return").status_code == 409
    assert client.get("/books/overdue").json() == []


def test_borrow_unknown_entities(client):
    assert client.post("/loans", json={"book_id": "999", "user_id": "x"}).status_code == 404
    assert client.post("/loans", json={"book_id": "1", "user_id": "x"}).status_code == 404
    assert client.post("/books/999/return").status_code == 404


def test_stats(client):
    response = client.get("/stats")
    assert response.status_code == 200
    stats = response.json()
    assert stats["total_books"] == 2
    assert stats["total_users"] == 2
    assert stats["library_name"] == "Test Library"


@pytest.mark.parametrize("payload", [
    {"book_id": "   ", "title": "Physique", "author": "Auteur C"},
    {"book_id": "7", "title": "<script>", "author": "Auteur C"},
    {"book_id": "7", "title": "Physique", "author": "<b></b>"},
])
def test_book_payload_blank_after_cleaning(client, payload):
    response = client.post("/books", json=payload)
    assert response.status_code == 422
    assert client.get("/books/7").status_code == 404
    assert len(client.get("/books").json()) == 2


def test_book_id_is_stripped(client):
    response = client.post("/books", json={"book_id": " 7 ", "title": "Physique", "author": "Auteur C"})
    assert response.status_code == 201
    assert response.json()["book_id"] == "7"
    assert client.get("/books/7").json()["title"] == "Physique"


def test_update_applies_create_checks(client):
    assert client.put("/books/1", json={"author": "123"}).status_code == 422
    assert client.put("/books/1", json={"title": "<i></i>"}).status_code == 422
    assert client.get("/books/1").json()["author"] == "Auteur A"

    response = client.put("/books/1", json={"author": "<b>Auteur D</b>"})
    assert response.status_code == 200
    assert response.json()["author"] == "Auteur D"
    assert [b["book_id"] for b in client.get("/books", params={"author": "auteur d"}).json()] == ["1"]
    assert client.get("/books", params={"author": "auteur a"}).json() == []


def test_health_reports_environment(client):
    body = client.get("/health").json()
    assert body["status"] == "healthy"
    assert body["environment"] == settings.environment
