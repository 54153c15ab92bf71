"""
Tests for the Analysis Pipeline, the result store and the HTML report.
"""

import json
import uuid
from datetime import datetime

import pytest

from policylens.config import settings
from policylens.library import build_library, load_library
from policylens.matcher import Confidence
from policylens.pipeline import analyze, run_analysis
from policylens.report import render_index_html, render_results_html
from policylens.results import ResultNotFound, ResultStore


POLICY = (
    "We do not sell your data. We may share data with partners. "
    "This policy may change at any time."
)


@pytest.fixture
def p1_library():
    return build_library({"patterns": [
        {"id": "p1", "category": "data-sharing", "triggers": ["share data"], "severity": "high"},
    ]})


@pytest.fixture(scope="module")
def bundled():
    return load_library(settings.REFERENCE_PATH)


class TestEndToEnd:
    def test_reference_scenario(self, p1_library):
        chunks = analyze(POLICY, p1_library, 4)
        assert len(chunks) == 1
        assert len(chunks[0].sentences) == 3
        assert len(chunks[0].references) == 1
        ref = chunks[0].references[0]
        assert ref.pattern_id == "p1"
        assert ref.severity == "high"
        # "not" elsewhere in the chunk makes the match low confidence
        assert ref.confidence == Confidence.LOW

    def test_bundled_library(self, bundled):
        chunks = analyze(POLICY, bundled, 4)
        by_id = {r.pattern_id: r for r in chunks[0].references}
        assert "data-sharing-third-parties" in by_id
        assert "unilateral-changes" in by_id
        assert by_id["no-data-sale"].confidence == Confidence.HIGH
        assert by_id["data-sharing-third-parties"].confidence == Confidence.LOW

    def test_bundled_retention_regex(self, bundled):
        chunks = analyze("We retain your data for 3 years.", bundled, 4)
        assert "fixed-retention-period" in [r.pattern_id for r in chunks[0].references]


class TestRunAnalysis:
    def test_stamps_result(self, p1_library):
        result = run_analysis(POLICY, "https://example.com/privacy", p1_library, 4)
        assert str(uuid.UUID(result.id)) == result.id
        assert datetime.fromisoformat(result.date).tzinfo is not None
        assert result.source == "https://example.com/privacy"
        assert result.policy == POLICY
        assert result.reference_count == 1

    def test_ids_are_unique(self, p1_library):
        a = run_analysis(POLICY, "s", p1_library, 4)
        b = run_analysis(POLICY, "s", p1_library, 4)
        assert a.id != b.id

    def test_to_dict_is_json_serializable(self, p1_library):
        result = run_analysis(POLICY, "s", p1_library, 2)
        data = json.loads(json.dumps(result.to_dict()))
        assert set(data) == {"id", "date", "source", "policy", "chunks"}
        assert [len(c["sentences"]) for c in data["chunks"]] == [2, 1]
        assert data["chunks"][0]["references"][0]["confidence"] == "low"


class TestResultStore:
    def test_save_and_load(self, tmp_path, p1_library):
        store = ResultStore(tmp_path / "results")
        result = run_analysis(POLICY, "s", p1_library, 4)
        path = store.save(result)
        assert path == tmp_path / "results" / f"{result.id}.json"
        assert store.exists(result.id)
        assert store.load(result.id) == result.to_dict()

    def test_file_is_indented(self, tmp_path, p1_library):
        store = ResultStore(tmp_path)
        result = run_analysis(POLICY, "s", p1_library, 4)
        text = store.save(result).read_text()
        assert text.startswith("{\n  ")

    def test_unknown_id(self, tmp_path):
        store = ResultStore(tmp_path)
        with pytest.raises(ResultNotFound):
            store.load(str(uuid.uuid4()))

    @pytest.mark.parametrize("bad", [
        "../../etc/passwd",
        "not-a-uuid",
        "",
    ])
    def test_rejects_non_uuid_ids(self, tmp_path, bad):
        store = ResultStore(tmp_path)
        with pytest.raises(ResultNotFound):
            store.path_for(bad)
        assert store.exists(bad) is False

    def test_rejects_non_canonical_uuid(self, tmp_path, p1_library):
        store = ResultStore(tmp_path)
        result = run_analysis(POLICY, "s", p1_library, 4)
        store.save(result)
        with pytest.raises(ResultNotFound):
            store.path_for(result.id.upper())


class TestReport:
    def test_index_has_form(self):
        html = render_index_html()
        assert "<form" in html
        assert "/analyze" in html

    def test_results_html(self, bundled):
        result = run_analysis(POLICY, "<script>alert(1)</script>", bundled, 4)
        html = render_results_html(result.to_dict(), bundled)
        assert "<script>alert(1)</script>" not in html
        assert "&lt;script&gt;" in html
        assert "data-sharing-third-parties" in html
        assert f"/download/{result.id}" in html
        assert "1 chunk" in html

    def test_results_html_without_library(self, p1_library):
        result = run_analysis(POLICY, "s", p1_library, 1)
        html = render_results_html(result.to_dict())
        assert "3 chunks" in html
        assert "confidence: high" in html
