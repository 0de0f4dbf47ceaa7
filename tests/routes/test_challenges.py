"""
Tests for /api/challenges and /api/preferences.

Authentication is overridden with a fixed user. Challenges use a
LocalChallengeStore on tmp_path in place of Supabase; preference routes get
a MagicMock Supabase client.
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from zesty.auth.dependencies import AuthenticatedUser, get_authenticated_user
from zesty.main import create_app
from zesty.routes.challenges import get_challenge_store
from zesty.services.challenge_store import LocalChallengeStore


async def mock_authenticated_user():
    return AuthenticatedUser(user_id="user-123", access_token="test-token")


@pytest.fixture
def app():
    app = create_app(rate_limit="1000/minute")
    app.dependency_overrides[get_authenticated_user] = mock_authenticated_user
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app, tmp_path):
    store = LocalChallengeStore(tmp_path)
    app.dependency_overrides[get_challenge_store] = lambda: store
    return TestClient(app)


def accept(client, card):
    return client.post("/api/challenges", json={"card": card.model_dump(mode="json", by_alias=True)})


# =============================================================================
# CHALLENGES
# =============================================================================

def test_challenges_require_authentication():
    client = TestClient(create_app(rate_limit="1000/minute"))

    response = client.get("/api/challenges")

    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "unauthorized"


def test_accept_card_creates_active_challenge(client, card_factory):
    response = accept(client, card_factory())

    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "Stalker (1979)"
    assert data["difficulty"] == 5
    assert data["isCompleted"] is False
    assert data["sourceCardId"] == "curated-movie-stalker-1979"


def test_challenge_lifecycle_counts(client, card_factory):
    first = accept(client, card_factory()).json()
    accept(client, card_factory(card_id="curated-food-balut", title="Balut", domain="food"))

    completed = client.patch(f"/api/challenges/{first['id']}/complete", json={"userRating": 4})
    assert completed.status_code == 200
    assert completed.json()["isCompleted"] is True
    assert completed.json()["userRating"] == 4

    listing = client.get("/api/challenges").json()
    assert listing["total"] == 2
    assert listing["active"] == 1
    assert listing["completed"] == 1

    reactivated = client.patch(f"/api/challenges/{first['id']}/reactivate")
    assert reactivated.json()["isCompleted"] is False

    deleted = client.delete(f"/api/challenges/{first['id']}")
    assert deleted.status_code == 200
    assert deleted.json()["status"] == "DELETED"
    assert client.get("/api/challenges").json()["total"] == 1


def test_complete_without_body(client, card_factory):
    challenge = accept(client, card_factory()).json()

    response = client.patch(f"/api/challenges/{challenge['id']}/complete")

    assert response.status_code == 200
    assert response.json()["userRating"] is None


def test_unknown_challenge_is_404(client):
    for response in (
        client.patch("/api/challenges/missing/complete"),
        client.patch("/api/challenges/missing/reactivate"),
        client.delete("/api/challenges/missing"),
    ):
        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "not_found"


def test_invalid_rating_is_422(client, card_factory):
    challenge = accept(client, card_factory()).json()

    response = client.patch(f"/api/challenges/{challenge['id']}/complete", json={"userRating": 9})

    assert response.status_code == 422


def test_corrupt_store_is_500(client, tmp_path):
    (tmp_path / "zesty_challenges.json").write_text("[{broken", encoding="utf-8")

    response = client.get("/api/challenges")

    assert response.status_code == 500
    assert response.json()["detail"]["error"] == "persistence_error"


# =============================================================================
# PREFERENCES
# =============================================================================

@pytest.fixture
def preferences_client(app, supabase_client, monkeypatch):
    monkeypatch.setattr("zesty.routes.preferences.get_supabase_client", lambda access_token: supabase_client)
    return TestClient(app)


def test_get_preferences(preferences_client, supabase_client):
    (
        supabase_client.table.return_value
        .select.return_value
        .eq.return_value
        .execute.return_value
    ) = MagicMock(data=[{"domain": "movies", "preferences": ["Inception"]}])

    response = preferences_client.get("/api/preferences")

    assert response.status_code == 200
    assert response.json() == {"preferences": {"movie": ["Inception"]}}


def test_put_preferences_upserts(preferences_client, supabase_client):
    (
        supabase_client.table.return_value
        .select.return_value
        .eq.return_value
        .execute.return_value
    ) = MagicMock(data=[{"domain": "food", "preferences": ["Sushi"]}])

    response = preferences_client.put("/api/preferences", json={"preferences": {"restaurant": ["Sushi"]}})

    assert response.status_code == 200
    assert response.json()["preferences"] == {"food": ["Sushi"]}
    rows = supabase_client.table.return_value.upsert.call_args.args[0]
    assert rows == [{"user_id": "user-123", "domain": "food", "preferences": ["Sushi"]}]


def test_put_preferences_failure_is_500(preferences_client, supabase_client):
    supabase_client.table.return_value.upsert.return_value.execute.side_effect = RuntimeError("down")

    response = preferences_client.put("/api/preferences", json={"preferences": {"book": ["Dune"]}})

    assert response.status_code == 500
    assert response.json()["detail"]["error"] == "persistence_error"
