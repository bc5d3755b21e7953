"""Tests for the HTTP surface: feedaudit/main.py and feedaudit/api/analysis.py.

The app is exercised without running its lifespan, so the bundled
dictionary is never loaded; ``app.state`` is seeded with a matcher over
the small test dictionary instead.
"""

import json

import pytest
from fastapi.testclient import TestClient

from feedaudit.main import app

HEADER = "id\ttitle\tprice\tbrand\tcolor\tmaterial\tgender\tproduct_type\n"


def _feed(rows: int, missing_price_every: int = 0) -> str:
    lines = [HEADER]
    for i in range(rows):
        price = "" if missing_price_every and i % missing_price_every == 0 else "9.99 USD"
        lines.append(f"SKU-{i}\tAcme Blue Cotton Shirt\t{price}\tAcme\tBlue\tCotton\tmale\tClothing > Shirts\n")
    return "".join(lines)


def _events(response) -> list[dict]:
    """Decode ``data: {...}`` SSE frames from a fully read response body."""
    frames = [f for f in response.text.split("\n\n") if f.strip()]
    assert all(f.startswith("data: ") for f in frames)
    return [json.loads(f[len("data: "):]) for f in frames]


@pytest.fixture
def client(monkeypatch, matcher):
    monkeypatch.setattr(app.state, "matcher", matcher, raising=False)
    monkeypatch.setattr(app.state, "keyword_provider", None, raising=False)
    return TestClient(app)


# ═══════════════════════════════════════════════════
# 1. Health & listing
# ═══════════════════════════════════════════════════

class TestHealth:

    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "operational"


class TestListChecks:

    def test_checks_in_registration_order(self, client):
        checks = client.get("/api/analyze/checks").json()["checks"]
        names = [c["name"] for c in checks]
        assert names[0] == "check_id_is_set"
        assert names[-1] == "check_duplicate_id"
        assert "check_title_spelling" in names
        assert all({"name", "family", "label"} <= set(c) for c in checks)


# ═══════════════════════════════════════════════════
# 2. Feed-quality stream
# ═══════════════════════════════════════════════════

class TestFeedStream:

    def test_stream_from_content(self, client):
        resp = client.post("/api/analyze/feed/stream", json={
            "content": _feed(25, missing_price_every=5),
            "enabled_checks": ["check_price_is_set", "check_duplicate_id"],
            "chunk_size": 10,
        })
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/event-stream")
        events = _events(resp)
        assert [e["status"] for e in events] == ["chunk", "chunk", "chunk", "complete"]
        assert events[0]["chunkIndex"] == 0 and events[0]["totalChunks"] == 3
        result = events[-1]["result"]
        assert result["totalProducts"] == 25
        assert result["errorCounts"] == {"Missing Price": 5}
        assert result["errors"][0] == {
            "id": "SKU-0",
            "errorType": "Missing Price",
            "details": "Price is not set",
            "affectedField": "price",
            "value": "",
        }
        assert result["truncated"] is False

    def test_stream_from_path(self, client, tmp_path):
        path = tmp_path / "feed.tsv"
        path.write_text(_feed(3), encoding="utf-8")
        resp = client.post("/api/analyze/feed/stream", json={"path": str(path)})
        events = _events(resp)
        assert events[-1]["status"] == "complete"
        assert events[-1]["result"]["totalProducts"] == 3

    def test_missing_source(self, client):
        resp = client.post("/api/analyze/feed/stream", json={})
        assert resp.status_code == 400

    def test_unreadable_path(self, client, tmp_path):
        resp = client.post("/api/analyze/feed/stream", json={"path": str(tmp_path / "nope.tsv")})
        assert resp.status_code == 400
        assert "not found" in resp.json()["detail"]

    def test_unknown_check(self, client):
        resp = client.post("/api/analyze/feed/stream", json={
            "content": _feed(1), "enabled_checks": ["check_nope"],
        })
        assert resp.status_code == 404
        assert "check_nope" in resp.json()["detail"]

    def test_invalid_chunk_size(self, client):
        resp = client.post("/api/analyze/feed/stream", json={"content": _feed(1), "chunk_size": 0})
        assert resp.status_code == 422


# ═══════════════════════════════════════════════════
# 3. Search-term stream
# ═══════════════════════════════════════════════════

class TestSearchTermStream:

    def test_stream_ends_with_complete(self, client):
        resp = client.post("/api/analyze/search-terms/stream", json={"content": _feed(6)})
        assert resp.status_code == 200
        events = _events(resp)
        statuses = [e["status"] for e in events]
        assert statuses[0] == "analyzing"
        assert "chunking" in statuses
        assert statuses[-1] == "complete"
        terms = [t for e in events if e["status"] == "chunk" for t in e["chunk"]]
        assert "blue acme" in {t["searchTerm"] for t in terms}
        assert all(t["keywordMetrics"] is None for t in terms)

    def test_missing_source(self, client):
        resp = client.post("/api/analyze/search-terms/stream", json={})
        assert resp.status_code == 400
