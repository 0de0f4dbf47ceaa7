"""
Tests for the public proxy endpoints.

- Health check
- Taste graph proxy (/api/qloo/*) with an offline or MockTransport client
- Gemini passthrough (/api/gemini/generate) without a key
- Card generation and reports (/api/zesty/*)
- Rate limiting (429 + Retry-After) and input sanitization
"""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from zesty.auth.dependencies import AuthenticatedUser, get_authenticated_user
from zesty.main import create_app
from zesty.services.taste_graph import TasteGraphClient, get_taste_graph_client
from zesty.services.text_generation import FALLBACK_TEXT, TextGenerationClient, get_text_generation_client


def offline_taste_graph():
    return TasteGraphClient(api_key="", base_url="https://graph.test")


def offline_text_generator():
    return TextGenerationClient(api_key="")


def build_client(rate_limit: str = "1000/minute", taste_graph=None) -> TestClient:
    app = create_app(rate_limit=rate_limit)
    app.dependency_overrides[get_taste_graph_client] = lambda: taste_graph or offline_taste_graph()
    app.dependency_overrides[get_text_generation_client] = offline_text_generator
    return TestClient(app)


@pytest.fixture
def client():
    return build_client()


# =============================================================================
# HEALTH
# =============================================================================

def test_health_reports_service_states(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "OK"
    assert data["timestamp"]
    assert data["services"]["qloo"] == "fallback"
    assert data["services"]["gemini"] == "fallback"


# =============================================================================
# TASTE GRAPH PROXY
# =============================================================================

def test_search_without_parameters_is_400(client):
    response = client.get("/api/qloo/search", params={"query": "Inception"})

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "missing_parameters"


def test_search_without_key_returns_mock_entity(client):
    response = client.get("/api/qloo/search", params={"query": "Inception", "types": "movie"})

    assert response.status_code == 200
    results = response.json()["results"]
    assert len(results) == 1
    assert results[0]["name"] == "Inception"
    assert results[0]["metadata"]["mock"] is True
    assert "error" not in results[0]["metadata"]


def test_search_upstream_failure_returns_flagged_mock_entity():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    graph = TasteGraphClient(api_key="k", base_url="https://graph.test", transport=httpx.MockTransport(handler))
    client = build_client(taste_graph=graph)

    response = client.get("/api/qloo/search", params={"query": "Inception", "type": "movie"})

    assert response.status_code == 200
    assert response.json()["results"][0]["metadata"]["error"] == "Qloo API unavailable"


def test_insights_without_filter_is_400(client):
    response = client.post("/api/qloo/insights", json={"signal": {"interests": {"entities": ["x"]}}})

    assert response.status_code == 400


def test_insights_without_key_is_500(client):
    response = client.post("/api/qloo/insights", json={"signal": {"a": 1}, "filter": {"type": "urn:entity:movie"}})

    assert response.status_code == 500
    assert response.json()["detail"]["error"] == "upstream_error"


def test_recommendations_require_type(client):
    response = client.get("/api/qloo/recommendations", params={"entity_id": "abc"})

    assert response.status_code == 400


def test_antitheses_returns_least_similar_tail():
    def handler(request: httpx.Request) -> httpx.Response:
        entities = [{"entity_id": f"rel-{i}", "name": f"Related {i}"} for i in range(10)]
        return httpx.Response(200, json={"results": {"entities": entities}})

    graph = TasteGraphClient(api_key="k", base_url="https://graph.test", transport=httpx.MockTransport(handler))
    client = build_client(taste_graph=graph)

    response = client.post("/api/qloo/antitheses", json={"entity_id": "seed", "type": "movie"})

    assert response.status_code == 200
    data = response.json()
    assert data["heuristic"] is True
    assert [e["id"] for e in data["antitheses"]] == [f"rel-{i}" for i in range(5, 10)]


def test_affinity_cluster_without_entities_is_400(client):
    response = client.get("/api/qloo/affinity-cluster")

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "missing_parameters"


def test_affinity_cluster_returns_graph_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"clusters": [{"id": "c1"}]})

    graph = TasteGraphClient(api_key="k", base_url="https://graph.test", transport=httpx.MockTransport(handler))
    client = build_client(taste_graph=graph)

    response = client.get("/api/qloo/affinity-cluster", params={"entities": "a,b"})

    assert response.status_code == 200
    assert response.json() == {"clusters": [{"id": "c1"}]}


def test_affinity_cluster_without_key_is_500(client):
    response = client.get("/api/qloo/affinity-cluster", params={"entities": "a,b"})

    assert response.status_code == 500
    assert response.json()["detail"]["error"] == "upstream_error"


@pytest.mark.parametrize("params", [{}, {"source_entities": "a"}, {"target_type": "book"}])
def test_cross_domain_affinity_missing_parameters_is_400(client, params):
    response = client.get("/api/qloo/cross-domain-affinity", params=params)

    assert response.status_code == 400


def test_cross_domain_affinity_upstream_failure_is_500():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    graph = TasteGraphClient(api_key="k", base_url="https://graph.test", transport=httpx.MockTransport(handler))
    client = build_client(taste_graph=graph)

    response = client.get("/api/qloo/cross-domain-affinity", params={"source_entities": "a", "target_type": "book"})

    assert response.status_code == 500
    assert response.json()["detail"]["details"] == "Failed to get cross-domain affinity"


# =============================================================================
# GEMINI PASSTHROUGH
# =============================================================================

def test_generate_without_prompt_is_400(client):
    response = client.post("/api/gemini/generate", json={"prompt": "   "})

    assert response.status_code == 400


def test_generate_without_key_is_500(client):
    response = client.post("/api/gemini/generate", json={"prompt": "Hello"})

    assert response.status_code == 500
    assert response.json()["detail"]["details"] == "Failed to generate content"


# =============================================================================
# CARDS AND REPORTS
# =============================================================================

def test_generate_cards_offline_returns_full_batch(client):
    response = client.post("/api/zesty/generate-cards", json={
        "userPreferences": [
            {"name": "Inception", "type": "movies"},
            {"name": "Taylor Swift", "type": "music"},
            {"name": "Serial", "type": "podcast"},
        ]
    })

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == len(data["cards"]) >= 10
    assert all("culturalContext" in card for card in data["cards"])
    assert len({card["id"] for card in data["cards"]}) == data["total"]


@pytest.mark.parametrize("name", ["", "   ", "<>", "x" * 201])
def test_generate_cards_tolerates_unusable_preference(client, name):
    response = client.post("/api/zesty/generate-cards", json={
        "userPreferences": [
            {"name": "Inception", "type": "movie"},
            {"name": name, "type": "music"},
        ]
    })

    assert response.status_code == 200
    assert response.json()["total"] >= 10


def test_generate_cards_unknown_domain_is_422(client):
    response = client.post("/api/zesty/generate-cards", json={"userPreferences": [], "domains": ["podcasts"]})

    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"


def test_my_cards_requires_authentication(client):
    response = client.post("/api/zesty/my-cards", json={})

    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "unauthorized"


def test_my_cards_survives_unreadable_preferences(client, monkeypatch):
    def broken_client(access_token):
        raise RuntimeError("Supabase down")

    monkeypatch.setattr("zesty.routes.zesty.get_supabase_client", broken_client)
    client.app.dependency_overrides[get_authenticated_user] = lambda: AuthenticatedUser("user-123", "token")

    response = client.post("/api/zesty/my-cards", json={"domains": ["book"]})

    assert response.status_code == 200
    assert response.json()["total"] >= 10


def test_onboarding_report_without_gemini_is_templated(client):
    response = client.post("/api/zesty/onboarding-report", json={
        "preferences": {"movies": ["Inception"]},
        "userName": "Ana",
    })

    assert response.status_code == 200
    data = response.json()
    assert "Inception" in data["cultural_profile"]
    assert data["motivation_message"].startswith("Ana,")


def test_growth_reflection_without_gemini_is_500(client):
    response = client.post("/api/zesty/growth-reflection", json={
        "completedChallenges": ["Watched Stalker (1979)"],
        "userName": "Ana",
    })

    assert response.status_code == 500
    assert response.json()["detail"]["error"] == "upstream_error"


def test_growth_reflection_missing_fields_is_422(client):
    response = client.post("/api/zesty/growth-reflection", json={"userName": "Ana"})

    assert response.status_code == 422


def test_curriculum_without_gemini_returns_fallback_plan(client):
    response = client.post("/api/zesty/curriculum", json={
        "domain": "movies",
        "preferences": ["Inception"],
        "stepTitles": ["Slow cinema", "Soviet sci-fi"],
    })

    assert response.status_code == 200
    assert response.json()["plan"] == FALLBACK_TEXT


def test_curriculum_passes_steps_to_prompt(client):
    generator = MagicMock()
    generator.generate_curriculum_plan = AsyncMock(return_value="1. Listen to Ornette Coleman")
    client.app.dependency_overrides[get_text_generation_client] = lambda: generator

    response = client.post("/api/zesty/curriculum", json={
        "domain": "music",
        "preferences": ["Taylor Swift"],
        "stepTitles": ["Free jazz"],
    })

    assert response.status_code == 200
    assert response.json()["plan"] == "1. Listen to Ornette Coleman"
    generator.generate_curriculum_plan.assert_awaited_once_with(["Taylor Swift"], ["Free jazz"], "music")


@pytest.mark.parametrize("body", [
    {"domain": "podcasts", "stepTitles": ["x"]},
    {"domain": "music", "stepTitles": []},
])
def test_curriculum_invalid_request_is_422(client, body):
    response = client.post("/api/zesty/curriculum", json=body)

    assert response.status_code == 422


def test_progress_insight_without_gemini_returns_fallback(client):
    response = client.post("/api/zesty/progress-insight", json={
        "previousScore": 20,
        "currentScore": 35,
        "completedChallenges": ["Watched Stalker (1979)"],
    })

    assert response.status_code == 200
    assert response.json()["insight"] == FALLBACK_TEXT


def test_progress_insight_missing_scores_is_422(client):
    response = client.post("/api/zesty/progress-insight", json={"completedChallenges": []})

    assert response.status_code == 422


# =============================================================================
# MIDDLEWARE
# =============================================================================

def test_third_request_in_window_is_rate_limited():
    client = build_client(rate_limit="2/minute")

    assert client.get("/api/health").status_code == 200
    assert client.get("/api/health").status_code == 200

    response = client.get("/api/health")

    assert response.status_code == 429
    assert response.json()["error"] == "rate_limit_exceeded"
    retry_after = response.json()["retry_after_seconds"]
    assert 1 <= retry_after <= 60
    assert response.headers["Retry-After"] == str(retry_after)


def test_rate_limit_is_shared_across_routers():
    client = build_client(rate_limit="2/minute")

    assert client.get("/api/health").status_code == 200
    assert client.post("/api/zesty/generate-cards", json={"userPreferences": []}).status_code == 200

    assert client.post("/api/gemini/generate", json={"prompt": "Hello"}).status_code == 429
    assert client.get("/api/qloo/search", params={"query": "x", "type": "movie"}).status_code == 429


def test_angle_brackets_are_stripped_from_json_body(client):
    response = client.post("/api/zesty/onboarding-report", json={
        "preferences": {"movies": ["<i>Inception</i>"]},
        "userName": "<script>Ana</script>",
    })

    assert response.status_code == 200
    data = response.json()
    assert "<" not in data["cultural_profile"]
    assert "iInception/i" in data["cultural_profile"]
    assert data["motivation_message"].startswith("scriptAna/script,")


def test_angle_brackets_are_stripped_from_query(client):
    response = client.get("/api/qloo/search", params={"query": "<b>Inception</b>", "type": "movie"})

    assert response.status_code == 200
    assert response.json()["results"][0]["name"] == "bInception/b"
