import uuid
from contextlib import asynccontextmanager

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from app.core.exceptions import GENERIC_ERROR_MESSAGE
from app.main import create_app
from app.services.follow import FollowService


class FailingDatabase:
    """Store handle whose every unit of work fails with ``error``"""

    def __init__(self, error: Exception):
        self.error = error
        self.attempts = 0

    @asynccontextmanager
    async def session(self):
        self.attempts += 1
        raise self.error
        yield  # pragma: no cover


class TestFollowEndpoints:
    """Follow routes: status codes and response envelopes"""

    def test_follow_list_unfollow_flow(self, client, register):
        alice, alice_headers = register("alice")
        bob, _ = register("bob")

        response = client.post(f"/api/v1/follow/{bob['id']}", headers=alice_headers)
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "User followed successfully"
        assert body["data"]["follower_id"] == alice["id"]
        assert body["data"]["following_id"] == bob["id"]

        response = client.get(f"/api/v1/follow/followers/{bob['id']}")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 1
        assert [u["username"] for u in data["users"]] == ["alice"]

        response = client.get(f"/api/v1/follow/following/{alice['id']}")
        assert [u["username"] for u in response.json()["data"]["users"]] == ["bob"]

        response = client.delete(f"/api/v1/follow/{bob['id']}", headers=alice_headers)
        assert response.status_code == 200
        assert response.json()["data"]["removed"] is True

        response = client.get(f"/api/v1/follow/followers/{bob['id']}")
        assert response.json()["data"] == {"users": [], "total": 0}

    def test_follow_requires_authentication(self, client, register):
        bob, _ = register("bob")

        response = client.post(f"/api/v1/follow/{bob['id']}")
        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error_code"] == "UNAUTHENTICATED"

    def test_invalid_token_is_rejected(self, client, register):
        bob, _ = register("bob")

        response = client.post(
            f"/api/v1/follow/{bob['id']}",
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert response.status_code == 401

    def test_self_follow_is_bad_request(self, client, register):
        alice, headers = register("alice")

        response = client.post(f"/api/v1/follow/{alice['id']}", headers=headers)
        assert response.status_code == 400
        assert response.json()["error_code"] == "SELF_FOLLOW_REJECTED"
        assert response.json()["message"] == "You cannot follow yourself"

    def test_duplicate_follow_is_conflict(self, client, register):
        _, headers = register("alice")
        bob, _ = register("bob")

        assert client.post(f"/api/v1/follow/{bob['id']}", headers=headers).status_code == 201
        response = client.post(f"/api/v1/follow/{bob['id']}", headers=headers)
        assert response.status_code == 409
        assert response.json()["error_code"] == "ALREADY_FOLLOWING"

        followers = client.get(f"/api/v1/follow/followers/{bob['id']}").json()["data"]
        assert followers["total"] == 1

    def test_invalid_user_id_is_bad_request(self, client, register):
        _, headers = register("alice")

        response = client.post("/api/v1/follow/12345", headers=headers)
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_IDENTITY"

        response = client.get("/api/v1/follow/followers/12345")
        assert response.status_code == 400

    def test_unknown_user_is_not_found(self, client, register):
        _, headers = register("alice")
        missing = str(uuid.uuid4())

        assert client.post(f"/api/v1/follow/{missing}", headers=headers).status_code == 404
        assert client.delete(f"/api/v1/follow/{missing}", headers=headers).status_code == 404
        assert client.get(f"/api/v1/follow/following/{missing}").status_code == 404

    def test_unfollow_without_follow_succeeds(self, client, register):
        _, headers = register("alice")
        bob, _ = register("bob")

        response = client.delete(f"/api/v1/follow/{bob['id']}", headers=headers)
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["removed"] is False
        assert body["message"] == "You were not following this user"

    def test_listings_do_not_leak_private_fields(self, client, register):
        _, headers = register("alice")
        bob, _ = register("bob")
        client.post(f"/api/v1/follow/{bob['id']}", headers=headers)

        users = client.get(f"/api/v1/follow/followers/{bob['id']}").json()["data"]["users"]
        assert "hashed_password" not in users[0]
        assert "email" not in users[0]

    def test_stats(self, client, register):
        alice, alice_headers = register("alice")
        bob, bob_headers = register("bob")
        client.post(f"/api/v1/follow/{bob['id']}", headers=alice_headers)

        response = client.get(f"/api/v1/follow/{bob['id']}/stats", headers=alice_headers)
        assert response.status_code == 200
        assert response.json()["data"] == {
            "user_id": bob["id"],
            "followers_count": 1,
            "following_count": 0,
            "is_following": True,
        }

        anonymous = client.get(f"/api/v1/follow/{bob['id']}/stats").json()["data"]
        assert anonymous["is_following"] is False

        mine = client.get(f"/api/v1/follow/{alice['id']}/stats", headers=bob_headers).json()["data"]
        assert mine["following_count"] == 1
        assert mine["is_following"] is False

    def test_follow_request_holds_one_session_at_a_time(self, client, register, monkeypatch):
        _, headers = register("alice")
        bob, _ = register("bob")
        database = client.app.state.database
        real_session = database.session
        open_sessions = []
        peak = []

        @asynccontextmanager
        async def tracked_session():
            async with real_session() as session:
                open_sessions.append(session)
                peak.append(len(open_sessions))
                try:
                    yield session
                finally:
                    open_sessions.remove(session)

        monkeypatch.setattr(database, "session", tracked_session)

        response = client.post(f"/api/v1/follow/{bob['id']}", headers=headers)
        assert response.status_code == 201
        assert len(peak) == 2
        assert max(peak) == 1


class TestApplicationSurface:
    def test_health_check(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["message"] == "API is running successfully"

    def test_unknown_route(self, client):
        response = client.get("/api/v1/nowhere")
        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "message": "Route not found",
            "error_code": "NOT_FOUND_ERROR",
        }


class TestStoreFailureResponses:
    def use_failing_store(self, client, monkeypatch, error, max_retries=2):
        failing = FailingDatabase(error)
        service = FollowService(failing, max_retries=max_retries, retry_delay=0)
        monkeypatch.setattr(client.app.state, "follow_service", service)
        return failing

    def test_unreachable_store_is_service_unavailable(self, client, register, monkeypatch):
        _, headers = register("alice")
        bob, _ = register("bob")
        failing = self.use_failing_store(
            client, monkeypatch,
            OperationalError("INSERT INTO follow", {}, Exception("connection refused on 10.0.0.5:5432")),
        )

        response = client.post(f"/api/v1/follow/{bob['id']}", headers=headers)
        assert response.status_code == 503
        body = response.json()
        assert body["success"] is False
        assert body["error_code"] == "TRANSIENT_STORE_FAILURE"
        assert "connection refused" not in response.text
        assert "10.0.0.5" not in response.text
        assert failing.attempts == 2

    def test_permanent_store_error_is_internal_error(self, client, register, monkeypatch):
        _, headers = register("alice")
        bob, _ = register("bob")
        failing = self.use_failing_store(
            client, monkeypatch,
            OperationalError("INSERT INTO follow", {}, Exception("no such table: follow")),
        )

        response = client.post(f"/api/v1/follow/{bob['id']}", headers=headers)
        assert response.status_code == 500
        body = response.json()
        assert body["error_code"] == "UNKNOWN_FAILURE"
        assert body["message"] == GENERIC_ERROR_MESSAGE
        assert "no such table" not in response.text
        assert "INSERT INTO" not in response.text
        assert failing.attempts == 1

    def test_listing_store_error_is_internal_error(self, client, monkeypatch):
        self.use_failing_store(client, monkeypatch, SQLAlchemyError("catalog corrupted"))

        response = client.get(f"/api/v1/follow/followers/{uuid.uuid4()}")
        assert response.status_code == 500
        assert response.json()["error_code"] == "UNKNOWN_FAILURE"
        assert "catalog corrupted" not in response.text

    def test_unhandled_error_hides_details(self, test_settings):
        app = create_app(test_settings)
        with TestClient(app, raise_server_exceptions=False) as lenient_client:
            app.state.follow_service = FollowService(
                FailingDatabase(RuntimeError("driver exploded: password=hunter2")),
                max_retries=1,
                retry_delay=0,
            )
            response = lenient_client.get(f"/api/v1/follow/followers/{uuid.uuid4()}")

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "message": GENERIC_ERROR_MESSAGE,
            "error_code": "INTERNAL_SERVER_ERROR",
        }
        assert "hunter2" not in response.text
