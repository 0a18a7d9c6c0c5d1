"""
ProfileHub Backend — Users API Integration Tests
==================================================

What:  End-to-end tests through the FastAPI app with HTTPX AsyncClient.
How:   The in-memory store sits behind app.state.database; images are written
       to the test upload directory and served back through /uploads.

What we test:
    ✅ Register → login → get → list → update image → delete
    ✅ Status codes and {"message": ...} bodies for every failure path
    ✅ Static serving of stored images
    ✅ Health check and request id header
    ✅ Upload parts rejected from their metadata before any read
"""

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError

from app.exceptions import InvalidFileTypeError, PayloadTooLargeError
from app.routes.users import read_upload

USERS = "/api/users/"


async def _register(client, form, **overrides):
    data = dict(form)
    data.update(overrides)
    return await client.post(USERS, data=data)


class TestRegistration:

    @pytest.mark.asyncio
    async def test_register_returns_created_user(self, test_client, registration_form):
        response = await _register(test_client, registration_form)

        assert response.status_code == 200
        body = response.json()
        assert body["username"] == "alice"
        assert body["age"] == 30
        assert body["jobrole"] == "eng"
        assert body["password"] != "pw123"
        assert ObjectId.is_valid(body["id"])
        assert "imageUrl" not in body

    @pytest.mark.asyncio
    async def test_register_with_image(self, test_client, registration_form, sample_image_bytes):
        response = await test_client.post(
            USERS,
            data=registration_form,
            files={"image": ("me.png", sample_image_bytes, "image/png")},
        )

        assert response.status_code == 200
        image_url = response.json()["imageUrl"]
        assert image_url.startswith("/uploads/")

        served = await test_client.get(image_url)
        assert served.status_code == 200
        assert served.content == sample_image_bytes

    @pytest.mark.asyncio
    async def test_register_missing_field(self, test_client, registration_form, users_collection):
        data = dict(registration_form)
        del data["education"]

        response = await test_client.post(USERS, data=data)

        assert response.status_code == 400
        assert response.json() == {"message": "Missing required fields"}
        assert users_collection.documents == []

    @pytest.mark.asyncio
    async def test_register_duplicate_username(self, test_client, registration_form, users_collection):
        await _register(test_client, registration_form)

        response = await _register(test_client, registration_form, age="41")

        assert response.status_code == 400
        assert response.json()["message"].startswith("Error creating user")
        assert len(users_collection.documents) == 1

    @pytest.mark.asyncio
    async def test_register_age_beyond_int64(self, test_client, registration_form, users_collection):
        response = await _register(test_client, registration_form, age="1e20")

        assert response.status_code == 200
        assert response.json()["age"] == 1e20
        assert len(users_collection.documents) == 1

    @pytest.mark.asyncio
    async def test_register_non_image_rejected(self, test_client, registration_form):
        response = await test_client.post(
            USERS,
            data=registration_form,
            files={"image": ("cv.pdf", b"%PDF-1.4", "application/pdf")},
        )

        assert response.status_code == 400
        assert response.json() == {"message": "Only image files are allowed!"}


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_success(self, test_client, registration_form):
        created = (await _register(test_client, registration_form)).json()

        response = await test_client.post(
            "/api/users/login/", json={"username": "alice", "password": "pw123"}
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Login successful", "user": created}

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, test_client, registration_form):
        await _register(test_client, registration_form)

        response = await test_client.post(
            "/api/users/login/", json={"username": "alice", "password": "nope"}
        )

        assert response.status_code == 404
        assert response.json() == {"message": "Invalid password"}

    @pytest.mark.asyncio
    async def test_login_unknown_user(self, test_client):
        response = await test_client.post(
            "/api/users/login/", json={"username": "bob", "password": "pw"}
        )

        assert response.status_code == 404
        assert response.json() == {"message": "User bob not found"}

    @pytest.mark.asyncio
    async def test_login_malformed_body(self, test_client):
        response = await test_client.post(
            "/api/users/login/",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid request body"}

    @pytest.mark.asyncio
    async def test_login_json_array_body(self, test_client):
        response = await test_client.post("/api/users/login/", json=["alice", "pw123"])

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid request body"}

    @pytest.mark.asyncio
    async def test_login_form_encoded(self, test_client, registration_form):
        created = (await _register(test_client, registration_form)).json()

        response = await test_client.post(
            "/api/users/login/", data={"username": "alice", "password": "pw123"}
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Login successful", "user": created}

    @pytest.mark.asyncio
    async def test_login_form_missing_password(self, test_client):
        response = await test_client.post("/api/users/login/", data={"username": "alice"})

        assert response.status_code == 400
        assert response.json() == {"message": "Missing required fields"}


class TestListAndGet:

    @pytest_asyncio.fixture
    async def three_users(self, test_client, registration_form):
        users = []
        for name in ("alice", "bob", "carol"):
            users.append((await _register(test_client, registration_form, username=name)).json())
        return users

    @pytest.mark.asyncio
    async def test_list_all(self, test_client, three_users):
        response = await test_client.get(USERS)

        assert response.status_code == 200
        assert response.json() == three_users

    @pytest.mark.asyncio
    async def test_list_with_limit(self, test_client, three_users):
        response = await test_client.get(USERS, params={"limit": "2"})

        assert response.status_code == 200
        assert [u["username"] for u in response.json()] == ["alice", "bob"]

    @pytest.mark.asyncio
    async def test_limit_equal_to_count(self, test_client, three_users):
        response = await test_client.get(USERS, params={"limit": "3"})
        assert len(response.json()) == 3

    @pytest.mark.asyncio
    async def test_limit_above_count(self, test_client, three_users):
        response = await test_client.get(USERS, params={"limit": "4"})

        assert response.status_code == 404
        assert response.json() == {"message": "Only 3 users found"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", ["0", "-5", "abc"])
    async def test_invalid_limit(self, test_client, limit):
        response = await test_client.get(USERS, params={"limit": limit})

        assert response.status_code == 404
        assert response.json() == {"message": "Limit should be a number > 0"}

    @pytest.mark.asyncio
    async def test_repeated_limit(self, test_client, three_users):
        response = await test_client.get("/api/users/?limit=1&limit=2")

        assert response.status_code == 404
        assert response.json() == {"message": "Limit should be a number > 0"}

    @pytest.mark.asyncio
    async def test_unknown_query_parameter(self, test_client):
        response = await test_client.get(USERS, params={"sort": "asc"})

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid query parameter"}

    @pytest.mark.asyncio
    async def test_list_store_failure(self, test_client, user_store):
        user_store.find_all = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))

        response = await test_client.get(USERS)

        assert response.status_code == 500
        assert response.json() == {"message": "Error fetching users: no servers"}

    @pytest.mark.asyncio
    async def test_get_by_id(self, test_client, three_users):
        bob = three_users[1]

        response = await test_client.get(f"/api/users/{bob['id']}")

        assert response.status_code == 200
        assert response.json() == bob

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id", [str(ObjectId()), "123"])
    async def test_get_unknown_id(self, test_client, user_id):
        response = await test_client.get(f"/api/users/{user_id}")

        assert response.status_code == 404
        assert response.json() == {"message": "User not found"}


class TestImages:

    @pytest.mark.asyncio
    async def test_update_image_changes_only_image_url(
        self, test_client, registration_form, sample_image_bytes
    ):
        created = (await _register(test_client, registration_form)).json()

        response = await test_client.put(
            f"/api/users/{created['id']}/upload",
            files={"image": ("new.png", sample_image_bytes, "image/png")},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Profile image uploaded successfully"
        assert body["user"]["imageUrl"] == body["imageUrl"]

        fetched = (await test_client.get(f"/api/users/{created['id']}")).json()
        assert fetched == dict(created, imageUrl=body["imageUrl"])

    @pytest.mark.asyncio
    async def test_update_image_unknown_user(self, test_client, sample_image_bytes):
        response = await test_client.put(
            f"/api/users/{ObjectId()}/upload",
            files={"image": ("new.png", sample_image_bytes, "image/png")},
        )

        assert response.status_code == 404
        assert response.json() == {"message": "User not found"}

    @pytest.mark.asyncio
    async def test_update_image_without_file(self, test_client, registration_form):
        created = (await _register(test_client, registration_form)).json()

        response = await test_client.put(
            f"/api/users/{created['id']}/upload", data={"note": "no file here"}
        )

        assert response.status_code == 400
        assert response.json() == {"message": "No file uploaded"}

    @pytest.mark.asyncio
    async def test_standalone_upload(self, test_client, sample_image_bytes):
        response = await test_client.post(
            "/api/users/upload",
            files={"image": ("pic.png", sample_image_bytes, "image/png")},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "File uploaded successfully"
        assert (await test_client.get(body["imageUrl"])).content == sample_image_bytes

    @pytest.mark.asyncio
    async def test_standalone_upload_without_file(self, test_client):
        response = await test_client.post("/api/users/upload", data={"note": "no file here"})

        assert response.status_code == 400
        assert response.json() == {"message": "No file uploaded"}

    @pytest.mark.asyncio
    async def test_standalone_upload_too_large(self, test_client):
        big = b"\x00" * (5 * 1024 * 1024 + 1)

        response = await test_client.post(
            "/api/users/upload", files={"image": ("big.png", big, "image/png")}
        )

        assert response.status_code == 413
        assert "too large" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_missing_static_file(self, test_client):
        response = await test_client.get("/uploads/does-not-exist.png")
        assert response.status_code == 404


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_user(self, test_client, registration_form):
        created = (await _register(test_client, registration_form)).json()

        response = await test_client.delete(f"/api/users/{created['id']}")

        assert response.status_code == 200
        assert response.json() == {"message": "User deleted"}
        assert (await test_client.get(f"/api/users/{created['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_unknown_user(self, test_client):
        response = await test_client.delete(f"/api/users/{ObjectId()}")

        assert response.status_code == 404
        assert response.json() == {"message": "User not found"}


class TestHealthAndHeaders:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    @pytest.mark.asyncio
    async def test_health_database_down(self, test_client, mock_database):
        mock_database.ping = AsyncMock(return_value=False)

        body = (await test_client.get("/health")).json()

        assert body["status"] == "unhealthy"
        assert body["database"] == "disconnected"

    @pytest.mark.asyncio
    async def test_request_id_generated(self, test_client):
        response = await test_client.get(USERS)
        assert response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get(USERS, headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"

    @pytest.mark.asyncio
    async def test_access_log_line(self, test_client, caplog):
        caplog.set_level(logging.INFO, logger="profilehub.access")

        await test_client.get(USERS, headers={"X-Request-ID": "req42"})
        await test_client.get("/health")

        lines = [r.getMessage() for r in caplog.records if r.name == "profilehub.access"]
        assert len(lines) == 1
        assert lines[0].startswith("GET /api/users/ 200")
        assert "[req42]" in lines[0]

    @pytest.mark.asyncio
    async def test_access_log_level_follows_status(self, test_client, caplog):
        caplog.set_level(logging.INFO, logger="profilehub.access")

        await test_client.get(f"/api/users/{ObjectId()}")

        records = [r for r in caplog.records if r.name == "profilehub.access"]
        assert records[-1].levelno == logging.WARNING


class TestReadUpload:
    """Uploads are checked from part metadata before any bytes are read."""

    def _part(self, size, content_type="image/png", content=b"\x89PNG"):
        part = MagicMock()
        part.filename = "pic.png"
        part.content_type = content_type
        part.size = size
        part.read = AsyncMock(return_value=content)
        part.close = AsyncMock()
        return part

    @pytest.mark.asyncio
    async def test_oversize_part_is_never_read(self, image_service):
        part = self._part(size=2 * 1024**3)

        with pytest.raises(PayloadTooLargeError):
            await read_upload(part, image_service)

        part.read.assert_not_awaited()
        part.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_non_image_part_is_never_read(self, image_service):
        part = self._part(size=10, content_type="application/zip")

        with pytest.raises(InvalidFileTypeError):
            await read_upload(part, image_service)

        part.read.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_read_is_capped_at_limit(self, image_service):
        part = self._part(size=None)

        upload = await read_upload(part, image_service)

        part.read.assert_awaited_once_with(image_service.max_file_size + 1)
        assert upload.content == b"\x89PNG"

    @pytest.mark.asyncio
    async def test_no_filename_means_no_file(self, image_service):
        part = self._part(size=0)
        part.filename = ""

        assert await read_upload(part, image_service) is None
        part.read.assert_not_awaited()
