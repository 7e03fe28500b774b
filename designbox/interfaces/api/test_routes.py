"""Tests for API Routes."""

import json
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from designbox.config.errors import ErrorCode, ProviderNetworkError
from designbox.domains.orchestration import RAGEngine
from designbox.domains.orchestration.prompts import DEGRADED_APOLOGY
from designbox.domains.search import HybridSearchEngine

from .deps import get_cache, get_engine
from .main import create_app
from .middleware import error_code_to_status


@pytest.fixture
def engine(chat_provider, hybrid_engine: HybridSearchEngine) -> RAGEngine:
    """Create a pipeline over the sample corpus."""
    return RAGEngine(chat_provider, hybrid_engine)


@pytest.fixture
def client(engine: RAGEngine) -> Generator[TestClient, None, None]:
    """Create a test client with the pipeline injected."""
    app = create_app()

    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_cache] = lambda: engine.cache

    yield TestClient(app)

    app.dependency_overrides.clear()


def parse_events(body: str) -> list[dict]:
    """Decode the JSON payload of each server-sent event."""
    return [
        json.loads(line[len("data: "):])
        for line in body.splitlines()
        if line.startswith("data: ")
    ]


# --- Health Tests ---


def test_health_endpoint(client: TestClient) -> None:
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "designbox"


def test_api_info(client: TestClient) -> None:
    """Test API info endpoint."""
    data = client.get("/api").json()
    assert data["name"] == "DesignBox API"
    assert data["docs"] == "/docs"


def test_request_id_and_latency_headers(client: TestClient) -> None:
    """Test tracing headers are attached and a given request ID is echoed."""
    response = client.get("/health", headers={"X-Request-ID": "req-42"})
    assert response.headers["X-Request-ID"] == "req-42"
    assert "X-Response-Time-Ms" in response.headers


# --- Chat Tests ---


def test_chat_specific_query(client: TestClient, chat_provider) -> None:
    """Test a specific query is answered with grounded results."""
    response = client.post("/api/chat", json={"query": "红色 3D 医疗 图标"})

    assert response.status_code == 200
    data = response.json()
    assert data["needs_clarification"] is False
    assert data["state"] == "done"
    assert data["content"] == chat_provider.reply
    assert data["search_results"][0]["resource"]["id"] == "medical-icons"
    assert all(r["match_reason"] for r in data["search_results"])
    assert isinstance(data["processing_time_ms"], int)


def test_chat_vague_query_asks(client: TestClient) -> None:
    """Test a vague query returns clarification questions."""
    data = client.post("/api/chat", json={"query": "图标"}).json()

    assert data["needs_clarification"] is True
    assert data["search_results"] == []
    assert 1 <= len(data["clarification_questions"]) <= 3
    assert data["clarification_questions"][0]["options"]


def test_chat_empty_query_rejected(client: TestClient) -> None:
    """Test request validation rejects an empty query."""
    response = client.post("/api/chat", json={"query": ""})
    assert response.status_code == 422


def test_chat_filters(client: TestClient) -> None:
    """Test category filters are honoured."""
    data = client.post(
        "/api/chat",
        json={"query": "推荐免费的配色工具", "filters": {"categories": ["color"]}},
    ).json()

    assert [r["resource"]["id"] for r in data["search_results"]] == ["coolors", "adobe-color"]


def test_chat_max_results_validation(client: TestClient) -> None:
    """Test the result bound is validated."""
    response = client.post(
        "/api/chat",
        json={"query": "红色 3D 医疗 图标", "filters": {"max_results": 100}},
    )
    assert response.status_code == 422


def test_chat_history_and_options(client: TestClient, chat_provider) -> None:
    """Test history and generation options reach the provider."""
    client.post(
        "/api/chat",
        json={
            "query": "红色 3D 医疗 图标",
            "history": [{"role": "user", "content": "你好"}, {"role": "assistant", "content": "您好"}],
            "max_tokens": 300,
        },
    )

    messages = chat_provider.requests[0]
    assert [m.content for m in messages[1:3]] == ["你好", "您好"]
    assert chat_provider.options[0].max_tokens == 300


def test_chat_provider_failure_degrades(client: TestClient, chat_provider) -> None:
    """Test a provider outage still answers 200 with an apology and results."""
    chat_provider.error = ProviderNetworkError("connection reset", provider="scripted")

    data = client.post("/api/chat", json={"query": "红色 3D 医疗 图标"}).json()

    assert data["state"] == "failed"
    assert data["content"].startswith(DEGRADED_APOLOGY)
    assert data["search_results"]


def test_chat_stream(client: TestClient, chat_provider) -> None:
    """Test the stream sends results first and completes once."""
    response = client.post("/api/chat/stream", json={"query": "红色 3D 医疗 图标"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")

    events = parse_events(response.text)
    assert events[0]["search_results"][0]["resource"]["id"] == "medical-icons"
    assert "".join(e["chunk"] for e in events) == chat_provider.reply
    assert events[-1]["is_complete"] is True
    assert sum(e["is_complete"] for e in events) == 1


def test_chat_stream_clarification(client: TestClient) -> None:
    """Test a vague query streams questions and completes."""
    events = parse_events(client.post("/api/chat/stream", json={"query": "图标"}).text)

    assert events[0]["needs_clarification"] is True
    assert events[0]["clarification_questions"]
    assert events[-1]["is_complete"] is True


def test_clarify(client: TestClient) -> None:
    """Test answering a clarification refines and searches."""
    data = client.post("/api/chat/clarify", json={"query": "图标", "answer": "医疗"}).json()

    assert data["needs_clarification"] is False
    assert data["analysis"]["normalized_query"] == "图标 医疗"
    assert data["search_results"][0]["resource"]["id"] == "medical-icons"


def test_clarify_requires_answer(client: TestClient) -> None:
    """Test the answer field is required."""
    response = client.post("/api/chat/clarify", json={"query": "图标"})
    assert response.status_code == 422


# --- Resource Tests ---


def test_similar_resources(client: TestClient) -> None:
    """Test related resources for an indexed id."""
    response = client.get("/api/resources/tailwind/similar", params={"limit": 3})

    assert response.status_code == 200
    data = response.json()
    assert data["resource_id"] == "tailwind"
    assert data["results"][0]["resource"]["id"] == "bootstrap"
    assert data["total"] == len(data["results"])


def test_similar_resources_unknown_id(client: TestClient) -> None:
    """Test an unknown id maps to 404 with the error taxonomy body."""
    response = client.get("/api/resources/missing/similar")

    assert response.status_code == 404
    error = response.json()["error"]
    assert error["code"] == "SEARCH_RESOURCE_NOT_INDEXED"
    assert error["details"] == {"resource_id": "missing"}


def test_error_response_carries_request_id(client: TestClient) -> None:
    """Test mapped errors keep the caller's request ID in body and headers."""
    response = client.get("/api/resources/missing/similar", headers={"X-Request-ID": "req-404"})

    assert response.status_code == 404
    assert response.json()["request_id"] == "req-404"
    assert response.headers["X-Request-ID"] == "req-404"
    assert "X-Response-Time-Ms" in response.headers


def test_cache_stats(client: TestClient) -> None:
    """Test cache statistics reflect a repeated query."""
    for _ in range(2):
        client.post("/api/chat", json={"query": "红色 3D 医疗 图标"})

    stats = client.get("/api/cache/stats").json()
    assert stats["results"]["misses"] == 1
    assert stats["results"]["hits"] == 1
    assert stats["results"]["hit_rate"] == 0.5
    assert "analysis" in stats


# --- Middleware Tests ---


def test_error_code_mapping() -> None:
    """Test error codes map to HTTP statuses."""
    assert error_code_to_status(ErrorCode.NOT_FOUND) == 404
    assert error_code_to_status(ErrorCode.PROVIDER_AUTH_FAILED) == 401
    assert error_code_to_status(ErrorCode.PROVIDER_RATE_LIMITED) == 429
    assert error_code_to_status(ErrorCode.SEARCH_INDEX_UNAVAILABLE) == 503
    assert error_code_to_status(ErrorCode.INTERNAL_ERROR) == 500
