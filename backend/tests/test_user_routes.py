"""
Users API: /api/users Endpoint Tests
=====================================

What:  End-to-end tests of the five CRUD routes against in-memory SQLite.
How:   HTTPX AsyncClient → ASGI app → UserService → aiosqlite.

What we test:
    ✅ Create returns 201 with a generated id
    ✅ Create without name or email returns 400 and stores nothing
    ✅ List is ordered by ascending id
    ✅ Get / update / delete of unknown ids return 404
    ✅ Update overwrites both fields (absent field becomes null)
    ✅ Delete returns the removed record and the row is gone
    ✅ Storage failures return 500 with a generic message
"""

import pytest
from sqlalchemy import text


async def _create(client, name, email):
    response = await client.post("/api/users", json={"name": name, "email": email})
    assert response.status_code == 201
    return response.json()


class TestCreateUser:

    @pytest.mark.asyncio
    async def test_create_returns_201_with_generated_id(self, test_client):
        response = await test_client.post(
            "/api/users", json={"name": "Ada", "email": "ada@example.com"}
        )

        assert response.status_code == 201
        body = response.json()
        assert isinstance(body["id"], int)
        assert body["name"] == "Ada"
        assert body["email"] == "ada@example.com"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"name": "Ada"},
            {"email": "ada@example.com"},
            {},
            {"name": "", "email": "ada@example.com"},
            {"name": "Ada", "email": None},
        ],
    )
    async def test_create_missing_field_returns_400_and_stores_nothing(
        self, test_client, payload
    ):
        response = await test_client.post("/api/users", json=payload)

        assert response.status_code == 400
        assert "error" in response.json()

        listing = await test_client.get("/api/users")
        assert listing.json() == []

    @pytest.mark.asyncio
    async def test_create_rejects_non_object_body(self, test_client):
        response = await test_client.post("/api/users", json=["Ada", "ada@example.com"])

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request body"

    @pytest.mark.asyncio
    async def test_create_rejects_malformed_json(self, test_client):
        response = await test_client.post(
            "/api/users",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_create_rejects_non_string_fields(self, test_client):
        response = await test_client.post("/api/users", json={"name": 42, "email": "x@x.com"})

        assert response.status_code == 400


class TestListAndGetUsers:

    @pytest.mark.asyncio
    async def test_list_empty(self, test_client):
        response = await test_client.get("/api/users")

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_list_is_ordered_by_ascending_id(self, test_client):
        first = await _create(test_client, "A", "a@x.com")
        second = await _create(test_client, "B", "b@x.com")

        response = await test_client.get("/api/users")

        assert response.status_code == 200
        assert response.json() == [first, second]
        assert first["id"] < second["id"]

    @pytest.mark.asyncio
    async def test_get_existing_user(self, test_client):
        created = await _create(test_client, "Ada", "ada@example.com")

        response = await test_client.get(f"/api/users/{created['id']}")

        assert response.status_code == 200
        assert response.json() == created

    @pytest.mark.asyncio
    async def test_get_unknown_id_returns_404(self, test_client):
        created = await _create(test_client, "Ada", "ada@example.com")

        response = await test_client.get(f"/api/users/{created['id'] + 1}")

        assert response.status_code == 404
        assert response.json()["error"] == "User not found"

    @pytest.mark.asyncio
    async def test_get_id_beyond_column_range_returns_404(self, test_client):
        response = await test_client.get("/api/users/99999999999")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_get_non_integer_id_returns_400(self, test_client):
        response = await test_client.get("/api/users/abc")

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid user id"


class TestUpdateUser:

    @pytest.mark.asyncio
    async def test_update_existing_user(self, test_client):
        created = await _create(test_client, "Ada", "ada@example.com")

        response = await test_client.put(
            f"/api/users/{created['id']}",
            json={"name": "Grace", "email": "grace@example.com"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "id": created["id"],
            "name": "Grace",
            "email": "grace@example.com",
        }

        fetched = await test_client.get(f"/api/users/{created['id']}")
        assert fetched.json()["name"] == "Grace"
        assert fetched.json()["email"] == "grace@example.com"

    @pytest.mark.asyncio
    async def test_update_unknown_id_returns_404_and_creates_nothing(self, test_client):
        response = await test_client.put(
            "/api/users/1", json={"name": "Grace", "email": "grace@example.com"}
        )

        assert response.status_code == 404

        listing = await test_client.get("/api/users")
        assert listing.json() == []

    @pytest.mark.asyncio
    async def test_update_overwrites_absent_field_with_null(self, test_client):
        created = await _create(test_client, "Ada", "ada@example.com")

        response = await test_client.put(f"/api/users/{created['id']}", json={"name": "Ada L."})

        assert response.status_code == 200
        assert response.json()["name"] == "Ada L."
        assert response.json()["email"] is None


class TestDeleteUser:

    @pytest.mark.asyncio
    async def test_delete_returns_deleted_record(self, test_client):
        created = await _create(test_client, "Ada", "ada@example.com")

        response = await test_client.delete(f"/api/users/{created['id']}")

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "User deleted"
        assert body["usuario"] == created

        fetched = await test_client.get(f"/api/users/{created['id']}")
        assert fetched.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_unknown_id_returns_404(self, test_client):
        response = await test_client.delete("/api/users/12345")

        assert response.status_code == 404
        assert response.json()["error"] == "User not found"


class TestCrossCutting:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method, path, payload, message",
        [
            ("GET", "/api/users", None, "Could not retrieve users"),
            ("GET", "/api/users/1", None, "Could not retrieve the user"),
            ("POST", "/api/users", {"name": "Ada", "email": "a@x.com"}, "Could not create the user"),
            ("PUT", "/api/users/1", {"name": "Ada", "email": "a@x.com"}, "Could not update the user"),
            ("DELETE", "/api/users/1", None, "Could not delete the user"),
        ],
    )
    async def test_storage_error_returns_generic_500(
        self, test_client, db_engine, method, path, payload, message
    ):
        async with db_engine.begin() as conn:
            await conn.execute(text("DROP TABLE users"))

        response = await test_client.request(method, path, json=payload)

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == message
        assert set(body) == {"error", "request_id"}
        assert response.headers["X-Request-ID"] == body["request_id"]

    @pytest.mark.asyncio
    async def test_unexpected_error_returns_500_with_request_id(self, test_app, test_client):
        @test_app.get("/api/explode")
        async def explode():
            raise RuntimeError("secret internals")

        response = await test_client.get("/api/explode", headers={"X-Request-ID": "req-500"})

        assert response.status_code == 500
        assert response.json() == {"error": "An unexpected error occurred", "request_id": "req-500"}
        assert response.headers["X-Request-ID"] == "req-500"

    @pytest.mark.asyncio
    async def test_response_carries_request_id(self, test_client):
        response = await test_client.get("/api/users", headers={"X-Request-ID": "abc12345"})

        assert response.headers["X-Request-ID"] == "abc12345"

    @pytest.mark.asyncio
    async def test_cors_allows_any_origin(self, test_client):
        response = await test_client.options(
            "/api/users",
            headers={
                "Origin": "http://frontend.example",
                "Access-Control-Request-Method": "POST",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"

    @pytest.mark.asyncio
    async def test_health_reports_database_connected(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
