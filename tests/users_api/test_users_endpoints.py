"""
End-to-end tests of the /users routes against the in-memory repository
"""

import pytest
from fastapi.testclient import TestClient

from app import app
from api.routes.users import get_user_repository
from database.repository import PersistenceError

TEST_USER = {
    "firstName": "John",
    "lastName": "Doe",
    "age": 20,
}


def create(client, payload=None):
    response = client.post("/users", json=payload or TEST_USER)
    assert response.status_code == 200
    return response.json()


class TestUserLifecycle:
    """Create, read, update and delete in the order a client would"""

    def test_no_users_initially(self, client):
        response = client.get("/users")

        assert response.status_code == 200
        assert response.json() == []

    def test_create_user(self, client):
        response = client.post("/users", json=TEST_USER)

        assert response.status_code == 200
        assert response.json() == {**TEST_USER, "id": 1}

    def test_created_ids_are_unique(self, client):
        first = create(client)
        second = create(client, {"firstName": "Jane"})

        assert first["id"] != second["id"]
        assert second == {"id": second["id"], "firstName": "Jane", "lastName": None, "age": None}

    def test_client_supplied_id_is_ignored(self, client):
        created = create(client, {**TEST_USER, "id": 42})

        assert created["id"] == 1
        assert client.get("/users/42").status_code == 404

    def test_retrieve_created_user(self, client):
        created = create(client)

        response = client.get(f"/users/{created['id']}")

        assert response.status_code == 200
        assert response.json() == {**TEST_USER, "id": created["id"]}

    def test_list_returns_users_in_creation_order(self, client):
        create(client, {"firstName": "Ann"})
        create(client, {"firstName": "Bob"})

        names = [user["firstName"] for user in client.get("/users").json()]

        assert names == ["Ann", "Bob"]

    def test_update_user(self, client):
        created = create(client)
        updated_user = {"firstName": "Jane", "lastName": "Smith", "age": 25}

        response = client.put(f"/users/{created['id']}", json=updated_user)

        assert response.status_code == 200
        assert response.json() == {**updated_user, "id": created["id"]}

    def test_partial_update_keeps_other_fields(self, client):
        created = create(client)

        response = client.put(f"/users/{created['id']}", json={"age": 30})

        assert response.status_code == 200
        assert response.json() == {**TEST_USER, "age": 30, "id": created["id"]}
        assert client.get(f"/users/{created['id']}").json()["age"] == 30

    def test_update_can_clear_last_name(self, client):
        created = create(client)

        response = client.put(f"/users/{created['id']}", json={"lastName": None})

        assert response.json()["lastName"] is None
        assert response.json()["firstName"] == "John"

    def test_delete_user(self, client):
        created = create(client)

        response = client.delete(f"/users/{created['id']}")

        assert response.status_code == 200
        assert response.json()["message"] == "User deleted successfully"
        assert client.get(f"/users/{created['id']}").status_code == 404
        assert client.get("/users").json() == []

    def test_delete_twice_is_not_found(self, client):
        created = create(client)
        client.delete(f"/users/{created['id']}")

        response = client.delete(f"/users/{created['id']}")

        assert response.status_code == 404
        assert response.json()["message"] == "User not found"


class TestUserValidation:

    def test_create_without_first_name(self, client):
        response = client.post("/users", json={"lastName": "Doe", "age": 21})

        assert response.status_code == 400
        assert response.json()["errors"] == [
            {"msg": "Invalid value", "param": "firstName", "location": "body"}
        ]

    def test_create_with_negative_age(self, client):
        response = client.post("/users", json={"firstName": "John", "lastName": "Doe", "age": -1})

        assert response.status_code == 400
        assert response.json()["errors"] == [
            {"msg": "age must be a positive integer", "param": "age", "value": -1, "location": "body"}
        ]

    def test_create_with_zero_age(self, client):
        created = create(client, {"firstName": "Baby", "age": 0})

        assert created["age"] == 0

    def test_violations_accumulate(self, client):
        response = client.post("/users", json={"firstName": 7, "age": "old"})

        assert response.status_code == 400
        errors = response.json()["errors"]
        assert [error["param"] for error in errors] == ["firstName", "age"]
        assert errors[0]["value"] == 7
        assert errors[1]["value"] == "old"

    def test_rejected_create_stores_nothing(self, client, repository):
        client.post("/users", json={"lastName": "Doe"})

        assert repository.rows == {}

    def test_non_object_body(self, client):
        response = client.post("/users", json=["John"])

        assert response.status_code == 400
        assert response.json()["errors"] == [
            {"msg": "Invalid value", "param": "body", "location": "body"}
        ]

    def test_update_with_negative_age(self, client):
        created = create(client)

        response = client.put(f"/users/{created['id']}", json={"age": -5})

        assert response.status_code == 400
        assert response.json()["errors"][0]["param"] == "age"
        assert client.get(f"/users/{created['id']}").json()["age"] == 20

    def test_update_with_empty_first_name(self, client):
        created = create(client)

        response = client.put(f"/users/{created['id']}", json={"firstName": ""})

        assert response.status_code == 400
        assert response.json()["errors"] == [
            {"msg": "Invalid value", "param": "firstName", "value": "", "location": "body"}
        ]


class TestUnknownBodyKeys:
    """Only the camelCase fields are read from a body; everything else is ignored"""

    def test_snake_case_keys_ignored_on_create(self, client):
        response = client.post("/users", json={"firstName": "A", "last_name": 5, "first_name": ""})

        assert response.status_code == 200
        assert response.json() == {"id": 1, "firstName": "A", "lastName": None, "age": None}

    def test_snake_case_keys_ignored_on_update(self, client):
        created = create(client)

        response = client.put(f"/users/{created['id']}", json={"first_name": "", "last_name": 5})

        assert response.status_code == 200
        assert response.json() == {**TEST_USER, "id": created["id"]}
        assert client.get(f"/users/{created['id']}").json()["firstName"] == "John"

    def test_snake_case_only_body_is_not_a_first_name(self, client, repository):
        response = client.post("/users", json={"first_name": "John"})

        assert response.status_code == 400
        assert response.json()["errors"][0]["param"] == "firstName"
        assert repository.rows == {}

    def test_id_and_extra_keys_ignored_on_update(self, client):
        created = create(client)

        response = client.put(f"/users/{created['id']}", json={"id": 99, "nickname": "x"})

        assert response.status_code == 200
        assert response.json() == {**TEST_USER, "id": created["id"]}
        assert client.get("/users/99").status_code == 404

    def test_integral_float_age_is_stored_as_integer(self, client):
        created = create(client, {"firstName": "John", "age": 20.0})

        assert created["age"] == 20
        assert isinstance(created["age"], int)

    def test_age_beyond_integer_column_rejected(self, client, repository):
        response = client.post("/users", json={"firstName": "A", "age": 3000000000})

        assert response.status_code == 400
        assert response.json()["errors"] == [
            {"msg": "age must be a positive integer", "param": "age", "value": 3000000000, "location": "body"}
        ]
        assert repository.rows == {}


class TestUserErrors:

    def test_get_missing_user(self, client):
        response = client.get("/users/99")

        assert response.status_code == 404
        assert response.json()["error"] == "HTTP 404"
        assert response.json()["message"] == "User not found"

    def test_update_missing_user(self, client):
        response = client.put("/users/99", json={"firstName": "Jane"})

        assert response.status_code == 404

    def test_non_integer_id(self, client):
        response = client.get("/users/abc")

        assert response.status_code == 422
        assert response.json()["error"] == "Validation Error"

    def test_malformed_json(self, client):
        response = client.post(
            "/users",
            content=b"{not json",
            headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 422

    def test_trace_id_header(self, client):
        response = client.get("/users")

        assert len(response.headers["X-Trace-ID"]) == 8

    def test_persistence_failure_is_internal_error(self, repository):
        async def broken_find_all():
            raise PersistenceError("Database query failed: connection refused")

        repository.find_all = broken_find_all
        app.dependency_overrides[get_user_repository] = lambda: repository
        try:
            response = TestClient(app, raise_server_exceptions=False).get("/users")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.json()["error"] == "Internal Server Error"
        assert "connection refused" not in response.text
