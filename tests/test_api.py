"""Tests for the HTTP API."""

import uuid

import pytest

from souvella.dependencies import get_store
from souvella.exceptions import StoreUnavailableError
from souvella.settings import settings
from souvella.store.memory import InMemoryDocumentStore

API = settings.api_prefix


def _create_relationship(client, user_id: str = "alice", name: str = "Us") -> dict:
    response = client.post(f"{API}/relationships", json={"user_id": user_id, "name": name})
    assert response.status_code == 201
    return response.json()


def _post_memory(client, relationship_id: str, body: str = "hello", author_id: str = "alice", **extra) -> dict:
    payload = {"relationship_id": relationship_id, "author_id": author_id, "body": body, **extra}
    response = client.post(f"{API}/memories", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class UnavailableStore(InMemoryDocumentStore):
    """Store whose reads always fail."""

    async def get_document(self, collection, document_id):
        raise StoreUnavailableError("connection refused")


class TestHealthAPI:
    """Test health endpoint."""

    def test_health(self, client):
        """Test the service reports healthy."""
        response = client.get(f"{API}/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestRelationshipsAPI:
    """Test relationship endpoints."""

    def test_create_and_get(self, client):
        """Test creating then fetching a relationship."""
        created = _create_relationship(client)
        assert len(created["invite_code"]) == 10

        response = client.get(f"{API}/relationships/{created['id']}")
        assert response.status_code == 200
        assert response.json()["name"] == "Us"

    def test_join_and_list(self, client):
        """Test a partner joins by code and sees the relationship."""
        created = _create_relationship(client)

        response = client.post(
            f"{API}/relationships/join",
            json={"user_id": "bob", "invite_code": created["invite_code"]},
        )
        assert response.status_code == 200

        listed = client.get(f"{API}/relationships/user/bob").json()
        assert [r["id"] for r in listed] == [created["id"]]

    def test_join_unknown_code(self, client):
        """Test an unknown invite code is a 404."""
        response = client.post(f"{API}/relationships/join", json={"user_id": "bob", "invite_code": "XXXXXXXXXX"})
        assert response.status_code == 404

    def test_rename(self, client):
        """Test renaming and rejecting a blank name."""
        created = _create_relationship(client)

        response = client.patch(f"{API}/relationships/{created['id']}/name", json={"name": " Jar "})
        assert response.status_code == 200
        assert response.json()["name"] == "Jar"

        response = client.patch(f"{API}/relationships/{created['id']}/name", json={"name": "  "})
        assert response.status_code == 400
        assert response.json()["correlation_id"]

    def test_unknown_relationship(self, client):
        """Test error bodies carry detail and correlation id."""
        response = client.get(f"{API}/relationships/missing")

        assert response.status_code == 404
        body = response.json()
        assert "missing" in body["detail"]
        assert body["correlation_id"] == response.headers["X-Correlation-ID"]


class TestMemoriesAPI:
    """Test memory endpoints."""

    def test_post_and_timeline(self, client):
        """Test posted memories appear on the timeline."""
        relationship = _create_relationship(client)
        memory = _post_memory(client, relationship["id"])

        assert memory["is_new"] is True
        assert memory["freshness"] == "new"
        assert memory["reaction_count"] == 0

        timeline = client.get(f"{API}/memories/relationship/{relationship['id']}").json()
        assert [m["id"] for m in timeline] == [memory["id"]]

    def test_text_with_media_rejected(self, client):
        """Test a text memory with media is a 400."""
        relationship = _create_relationship(client)
        response = client.post(
            f"{API}/memories",
            json={
                "relationship_id": relationship["id"],
                "author_id": "alice",
                "kind": "text",
                "media_ref": "https://cdn/x.jpg",
            },
        )
        assert response.status_code == 400

    def test_photo_without_upload_becomes_text(self, client):
        """Test a photo whose upload failed is stored as text."""
        relationship = _create_relationship(client)
        memory = _post_memory(client, relationship["id"], body="caption", kind="image")
        assert memory["kind"] == "text"
        assert memory["media_ref"] is None

    def test_missing_fields(self, client):
        """Test request validation errors are a 422."""
        response = client.post(f"{API}/memories", json={"body": "no relationship"})
        assert response.status_code == 422
        assert "correlation_id" in response.json()

    def test_post_to_unknown_relationship(self, client):
        """Test posting to an unknown relationship is a 404."""
        response = client.post(
            f"{API}/memories", json={"relationship_id": "missing", "author_id": "alice", "body": "hi"}
        )
        assert response.status_code == 404

    def test_upload_limit(self, client, monkeypatch):
        """Test the configured daily upload limit is a 409."""
        monkeypatch.setattr(settings, "daily_upload_limit", 1)
        relationship = _create_relationship(client)
        _post_memory(client, relationship["id"])

        response = client.post(
            f"{API}/memories",
            json={"relationship_id": relationship["id"], "author_id": "alice", "body": "again"},
        )
        assert response.status_code == 409

    def test_upload_status(self, client):
        """Test today's upload status."""
        relationship = _create_relationship(client)
        params = {"author_id": "alice", "relationship_id": relationship["id"]}

        assert client.get(f"{API}/memories/upload-status", params=params).json()["has_uploaded"] is False

        memory = _post_memory(client, relationship["id"])
        status = client.get(f"{API}/memories/upload-status", params=params).json()
        assert status["has_uploaded"] is True
        assert status["todays_memory"]["id"] == memory["id"]

    def test_new_and_viewed(self, client, clock):
        """Test marking viewed keeps today's memory new and clears older ones."""
        relationship = _create_relationship(client)
        old = _post_memory(client, relationship["id"], body="yesterday")
        clock.advance(days=1)
        today = _post_memory(client, relationship["id"], body="today")

        response = client.post(f"{API}/memories/relationship/{relationship['id']}/viewed")
        assert response.status_code == 200
        assert response.json()["marked"] == 1

        new = client.get(f"{API}/memories/relationship/{relationship['id']}/new").json()
        assert [m["id"] for m in new] == [today["id"]]

        timeline = client.get(f"{API}/memories/relationship/{relationship['id']}").json()
        freshness = {m["id"]: m["freshness"] for m in timeline}
        assert freshness == {old["id"]: "viewed", today["id"]: "new"}


class TestReactionsAPI:
    """Test thumbs-up endpoints."""

    def test_quota_sequence(self, client):
        """Test three thumbs up with a quota of two."""
        relationship = _create_relationship(client)
        memories = [_post_memory(client, relationship["id"], body=f"m{i}") for i in range(3)]

        accepted = []
        remaining = []
        for memory in memories:
            response = client.post(f"{API}/memories/{memory['id']}/react", json={"user_id": "bob"})
            assert response.status_code == 200
            accepted.append(response.json()["accepted"])
            remaining.append(client.get(f"{API}/reactions/remaining/bob").json()["remaining"])

        assert accepted == [True, True, False]
        assert remaining == [1, 0, 0]

    def test_rejection_message(self, client):
        """Test a spent quota answers with the friendly message."""
        relationship = _create_relationship(client)
        memory = _post_memory(client, relationship["id"])
        for _ in range(2):
            client.post(f"{API}/memories/{memory['id']}/react", json={"user_id": "bob"})

        body = client.post(f"{API}/memories/{memory['id']}/react", json={"user_id": "bob"}).json()

        assert body["accepted"] is False
        assert body["message"] == "You've used all your thumbs up for today!"

    def test_idempotency_key(self, client):
        """Test a retried request is not counted twice."""
        relationship = _create_relationship(client)
        memory = _post_memory(client, relationship["id"])
        headers = {"Idempotency-Key": "retry-1"}

        first = client.post(f"{API}/memories/{memory['id']}/react", json={"user_id": "bob"}, headers=headers)
        second = client.post(f"{API}/memories/{memory['id']}/react", json={"user_id": "bob"}, headers=headers)

        assert first.json()["accepted"] is True
        assert second.json()["accepted"] is True
        assert second.json()["reaction_count"] == 1
        assert client.get(f"{API}/reactions/remaining/bob").json()["remaining"] == 1

    def test_idempotency_key_reused_for_another_memory(self, client):
        """Test a key already used on one memory is a 400 on another."""
        relationship = _create_relationship(client)
        first = _post_memory(client, relationship["id"], body="first")
        second = _post_memory(client, relationship["id"], body="second")
        headers = {"Idempotency-Key": "retry-1"}

        client.post(f"{API}/memories/{first['id']}/react", json={"user_id": "bob"}, headers=headers)
        response = client.post(f"{API}/memories/{second['id']}/react", json={"user_id": "bob"}, headers=headers)

        assert response.status_code == 400
        assert "another memory" in response.json()["detail"]

    def test_react_unknown_memory(self, client):
        """Test reacting to an unknown memory is a 404."""
        response = client.post(f"{API}/memories/missing/react", json={"user_id": "bob"})
        assert response.status_code == 404


class TestDailySelectionAPI:
    """Test memory gems endpoints."""

    def test_selection_is_cached(self, client):
        """Test two reads of today's selection agree."""
        relationship = _create_relationship(client)
        for i in range(6):
            _post_memory(client, relationship["id"], body=f"m{i}")

        first = client.get(f"{API}/daily-selection/{relationship['id']}").json()
        second = client.get(f"{API}/daily-selection/{relationship['id']}").json()

        assert len(first["memories"]) == settings.daily_selection_count
        assert [m["id"] for m in first["memories"]] == [m["id"] for m in second["memories"]]
        assert first["selection_date"] == "2024-06-15"

    def test_empty_relationship(self, client):
        """Test a relationship without memories has an empty selection."""
        relationship = _create_relationship(client)
        response = client.get(f"{API}/daily-selection/{relationship['id']}")
        assert response.status_code == 200
        assert response.json()["memories"] == []

    def test_reroll_more_than_available(self, client):
        """Test rerolling 10 of 4 memories returns all 4 once."""
        relationship = _create_relationship(client)
        created = {_post_memory(client, relationship["id"], body=f"m{i}")["id"] for i in range(4)}

        response = client.post(f"{API}/daily-selection/{relationship['id']}/reroll", json={"count": 10})

        assert response.status_code == 200
        ids = [m["id"] for m in response.json()["memories"]]
        assert len(ids) == 4
        assert set(ids) == created

    def test_reroll_without_body(self, client):
        """Test reroll falls back to the configured count."""
        relationship = _create_relationship(client)
        for i in range(6):
            _post_memory(client, relationship["id"], body=f"m{i}")

        response = client.post(f"{API}/daily-selection/{relationship['id']}/reroll")

        assert response.status_code == 200
        assert len(response.json()["memories"]) == settings.daily_selection_count

    def test_reroll_replaces_cached_selection(self, client):
        """Test the next read returns what the reroll stored."""
        relationship = _create_relationship(client)
        for i in range(6):
            _post_memory(client, relationship["id"], body=f"m{i}")
        client.get(f"{API}/daily-selection/{relationship['id']}")

        rerolled = client.post(f"{API}/daily-selection/{relationship['id']}/reroll", json={"count": 2}).json()
        current = client.get(f"{API}/daily-selection/{relationship['id']}").json()

        assert [m["id"] for m in current["memories"]] == [m["id"] for m in rerolled["memories"]]

    def test_negative_count_rejected(self, client):
        """Test a negative count fails request validation."""
        relationship = _create_relationship(client)
        response = client.get(f"{API}/daily-selection/{relationship['id']}", params={"count": -1})
        assert response.status_code == 422

    def test_unknown_relationship(self, client):
        """Test selection for an unknown relationship is a 404."""
        assert client.get(f"{API}/daily-selection/missing").status_code == 404
        assert client.post(f"{API}/daily-selection/missing/reroll").status_code == 404


class TestStoreUnavailable:
    """Test store failures surface as a retryable condition."""

    def test_store_failure_is_503(self, client):
        """Test an unavailable store answers 503 with a try-again detail."""
        client.app.dependency_overrides[get_store] = lambda: UnavailableStore()

        response = client.get(f"{API}/relationships/{uuid.uuid4()}")

        assert response.status_code == 503
        assert "try again" in response.json()["detail"]
        assert response.json()["correlation_id"]


class TestCorrelationId:
    """Test correlation id propagation."""

    def test_generated_when_absent(self, client):
        """Test a correlation id is generated and echoed."""
        response = client.get(f"{API}/health")
        assert uuid.UUID(response.headers["X-Correlation-ID"])

    def test_caller_id_echoed(self, client):
        """Test a valid caller id is reused."""
        correlation_id = str(uuid.uuid4())
        response = client.get(f"{API}/health", headers={"X-Correlation-ID": correlation_id})
        assert response.headers["X-Correlation-ID"] == correlation_id

    def test_request_id_header_accepted(self, client):
        """Test X-Request-ID is used when X-Correlation-ID is absent."""
        request_id = str(uuid.uuid4())
        response = client.get(f"{API}/health", headers={"X-Request-ID": request_id})
        assert response.headers["X-Correlation-ID"] == request_id

    @pytest.mark.parametrize("bad", ["not-a-uuid", "1234"])
    def test_invalid_id_replaced(self, client, bad):
        """Test malformed ids are replaced by a fresh one."""
        response = client.get(f"{API}/health", headers={"X-Correlation-ID": bad})
        assert response.headers["X-Correlation-ID"] != bad
        assert uuid.UUID(response.headers["X-Correlation-ID"])
