"""
API Integration Tests — Endpoint Verification

Tests every public API endpoint using FastAPI's TestClient against the
bundled pattern library, with results written to a temporary directory.

These tests catch:
  - Schema mismatches (response model vs actual data)
  - Route registration issues
  - Startup wiring of the library and result store
  - Response format regressions
"""

from __future__ import annotations

import dataclasses
import json
import uuid

import pytest
from fastapi.testclient import TestClient

import api.main as main
from policylens.library import PatternLibraryError


POLICY = (
    "We do not sell your data. We may share data with partners. "
    "This policy may change at any time."
)


# --- Fixtures ---

@pytest.fixture
def results_dir(tmp_path):
    return tmp_path / "results"


@pytest.fixture
def client(monkeypatch, results_dir):
    """Create a test client with results isolated to a temp directory."""
    monkeypatch.setattr(
        main, "settings",
        dataclasses.replace(main.settings, RESULTS_DIR=str(results_dir)),
    )
    with TestClient(main.app) as c:
        yield c


@pytest.fixture
def analyzed(client):
    r = client.post("/analyze", json={"policy": POLICY, "source": "https://example.com/privacy"})
    assert r.status_code == 200
    return r.json()


# ============================================================
# HEALTH & META
# ============================================================

class TestHealth:
    def test_health_fields(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        data = r.json()
        assert data["status"] == "operational"
        assert data["patterns_loaded"] >= 10
        assert data["chunk_size"] == main.settings.CHUNK_SIZE

    def test_root_serves_form(self, client):
        r = client.get("/")
        assert r.status_code == 200
        assert r.headers["content-type"].startswith("text/html")
        assert "<form" in r.text

    def test_security_headers(self, client):
        r = client.get("/health")
        assert r.headers["X-Content-Type-Options"] == "nosniff"
        assert r.headers["X-Frame-Options"] == "DENY"
        assert "X-PolicyLens-Version" in r.headers


# ============================================================
# ANALYZE
# ============================================================

class TestAnalyze:
    def test_structure(self, analyzed):
        assert str(uuid.UUID(analyzed["id"])) == analyzed["id"]
        assert analyzed["source"] == "https://example.com/privacy"
        assert analyzed["policy"] == POLICY
        assert analyzed["date"]

    def test_single_chunk_with_matches(self, analyzed):
        if main.settings.CHUNK_SIZE < 3:
            pytest.skip("chunk size overridden by environment")
        assert len(analyzed["chunks"]) == 1
        chunk = analyzed["chunks"][0]
        assert len(chunk["sentences"]) == 3
        assert chunk["start"] == 0
        refs = {r["pattern_id"]: r for r in chunk["references"]}
        assert refs["data-sharing-third-parties"]["confidence"] == "low"
        assert refs["no-data-sale"]["confidence"] == "high"
        assert analyzed["reference_count"] == len(chunk["references"])

    def test_inputs_are_trimmed(self, client):
        r = client.post("/analyze", json={"policy": "  We share data.  ", "source": "  acme  "})
        assert r.status_code == 200
        assert r.json()["policy"] == "We share data."
        assert r.json()["source"] == "acme"

    def test_persists_result(self, analyzed, results_dir):
        path = results_dir / f"{analyzed['id']}.json"
        assert path.is_file()
        stored = json.loads(path.read_text())
        assert stored["chunks"] == analyzed["chunks"]

    def test_blank_policy(self, client):
        r = client.post("/analyze", json={"policy": "   ", "source": "acme"})
        assert r.status_code == 400
        assert r.json()["detail"] == "Policy invalid"

    def test_blank_source(self, client):
        r = client.post("/analyze", json={"policy": "We share data.", "source": " \n "})
        assert r.status_code == 400
        assert r.json()["detail"] == "Source invalid"

    def test_missing_field(self, client):
        r = client.post("/analyze", json={"policy": "We share data."})
        assert r.status_code == 422

    def test_non_string_policy(self, client):
        r = client.post("/analyze", json={"policy": 42, "source": "acme"})
        assert r.status_code == 422

    def test_policy_too_long(self, client, monkeypatch):
        monkeypatch.setattr(
            main, "settings", dataclasses.replace(main.settings, MAX_POLICY_CHARS=10),
        )
        r = client.post("/analyze", json={"policy": "We share data with everyone.", "source": "acme"})
        assert r.status_code == 413

    def test_body_too_large(self, client):
        r = client.post(
            "/analyze",
            content=b'{"policy": "' + b"a" * 1_100_000 + b'", "source": "x"}',
            headers={"Content-Type": "application/json"},
        )
        assert r.status_code == 413

    def test_body_limit_follows_settings(self, client, monkeypatch):
        monkeypatch.setattr(
            main, "settings", dataclasses.replace(main.settings, MAX_BODY_BYTES=64),
        )
        r = client.post("/analyze", json={"policy": "We share data. " * 10, "source": "acme"})
        assert r.status_code == 413
        assert r.json()["detail"] == "Request body too large."


# ============================================================
# RESULTS, REPORT, DOWNLOAD
# ============================================================

class TestResults:
    def test_get_result(self, client, analyzed):
        r = client.get(f"/results/{analyzed['id']}")
        assert r.status_code == 200
        assert r.json() == analyzed

    def test_unknown_result(self, client):
        assert client.get(f"/results/{uuid.uuid4()}").status_code == 404

    def test_invalid_id(self, client):
        assert client.get("/results/not-a-uuid").status_code == 404

    def test_report(self, client, analyzed):
        r = client.get(f"/results/{analyzed['id']}/report")
        assert r.status_code == 200
        assert r.headers["content-type"].startswith("text/html")
        assert "https://example.com/privacy" in r.text
        assert "data-sharing-third-parties" in r.text

    def test_report_unknown(self, client):
        assert client.get(f"/results/{uuid.uuid4()}/report").status_code == 404

    def test_download(self, client, analyzed):
        r = client.get(f"/download/{analyzed['id']}")
        assert r.status_code == 200
        assert "attachment" in r.headers["content-disposition"]
        assert f"{analyzed['id']}.json" in r.headers["content-disposition"]
        assert r.json()["id"] == analyzed["id"]

    def test_download_unknown(self, client):
        assert client.get(f"/download/{uuid.uuid4()}").status_code == 404


# ============================================================
# PATTERNS
# ============================================================

class TestPatterns:
    def test_lists_library(self, client):
        data = client.get("/patterns").json()
        assert data["total"] == len(data["patterns"])
        assert "data-sharing" in data["categories"]
        ids = [p["id"] for p in data["patterns"]]
        assert "fixed-retention-period" in ids
        assert all(p["triggers"] for p in data["patterns"])


# ============================================================
# STARTUP
# ============================================================

class TestStartup:
    def test_malformed_library_aborts_startup(self, monkeypatch, tmp_path):
        bad = tmp_path / "reference.json"
        bad.write_text(json.dumps({"patterns": [{"id": "p1", "category": "x", "triggers": []}]}))
        monkeypatch.setattr(
            main, "settings",
            dataclasses.replace(
                main.settings,
                REFERENCE_PATH=str(bad),
                RESULTS_DIR=str(tmp_path / "results"),
            ),
        )
        with pytest.raises(PatternLibraryError):
            with TestClient(main.app):
                pass

    @pytest.mark.parametrize("chunk_size", [0, -2])
    def test_non_positive_chunk_size_aborts_startup(self, monkeypatch, tmp_path, chunk_size):
        monkeypatch.setattr(
            main, "settings",
            dataclasses.replace(
                main.settings,
                CHUNK_SIZE=chunk_size,
                RESULTS_DIR=str(tmp_path / "results"),
            ),
        )
        with pytest.raises(ValueError, match="POLICYLENS_CHUNK_SIZE"):
            with TestClient(main.app):
                pass
