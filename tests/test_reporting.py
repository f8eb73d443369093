"""
Tests for the result store, DataFrame export and log formatting.
"""

import json
import logging
import os

import pytest

from log_config import JSONFormatter, get_logger
from models import ComplianceReport, Issue, SeoFinding, SeoReport, Severity
from reporting.exporter import (
    issues_summary_df,
    issues_to_df,
    report_issues_df,
    seo_findings_df,
    to_csv_bytes,
)
from reporting.store import ResultStore


def _report(report_id="abc123", score=90, content_type="edm", languages=("en",), issues=None):
    issues = issues or {}
    counts = {s: 0 for s in Severity.ALL}
    for items in issues.values():
        for issue in items:
            counts[issue.severity] += 1
    return ComplianceReport(
        id=report_id,
        source="text",
        content_type=content_type,
        languages=list(languages),
        is_bilingual=len(languages) > 1,
        issues=issues,
        severity_counts=counts,
        score=score,
    )


def _issue(rule_id, severity, category="brand_compliance", **extra):
    return Issue(rule_id=rule_id, type="t", category=category, severity=severity, message=f"{rule_id} message", **extra)


class TestResultStore:

    def test_save_and_get(self, tmp_path):
        store = ResultStore(tmp_path / "results")
        path = store.save(_report(issues={"brand": [_issue("brand_001", Severity.HIGH, position=3)]}))
        assert path.name == "abc123.json"

        record = store.get("abc123")
        assert record["score"] == 90
        assert record["total_issues"] == 1
        assert record["issues"]["brand"][0]["rule_id"] == "brand_001"
        assert "language" not in record["issues"]["brand"][0]

    def test_records_are_write_once(self, tmp_path):
        store = ResultStore(tmp_path)
        store.save(_report())
        with pytest.raises(FileExistsError):
            store.save(_report(score=10))
        assert store.get("abc123")["score"] == 90

    def test_unsafe_ids_rejected(self, tmp_path):
        store = ResultStore(tmp_path)
        with pytest.raises(ValueError):
            store.save(_report(report_id="../escape"))
        assert store.get("../escape") is None
        assert store.get("missing") is None

    def test_recent_newest_first(self, tmp_path):
        store = ResultStore(tmp_path)
        for i, report_id in enumerate(["first", "second", "third"]):
            path = store.save(_report(report_id=report_id))
            os.utime(path, (1_700_000_000 + i, 1_700_000_000 + i))
        assert [r["id"] for r in store.recent()] == ["third", "second", "first"]
        assert [r["id"] for r in store.recent(limit=2)] == ["third", "second"]

    def test_unreadable_records_skipped(self, tmp_path):
        store = ResultStore(tmp_path)
        store.save(_report())
        (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
        assert [r["id"] for r in store.recent()] == ["abc123"]

    def test_missing_directory(self, tmp_path):
        store = ResultStore(tmp_path / "never-created")
        assert store.recent() == []
        assert store.stats()["total_checks"] == 0

    def test_stats(self, tmp_path):
        store = ResultStore(tmp_path)
        store.save(_report("one", score=80, content_type="edm"))
        store.save(_report("two", score=91, content_type="web", languages=("en", "ar")))
        stats = store.stats()
        assert stats["total_checks"] == 2
        assert stats["average_score"] == 86
        assert stats["content_types"] == {"edm": 1, "web": 1}
        assert stats["languages"] == {"en": 2, "ar": 1}
        assert stats["bilingual"] == 1


class TestExporter:

    def test_issue_rows_sorted_by_severity(self):
        issues = [
            _issue("tone_001", Severity.LOW, category="tone"),
            _issue("brand_001", Severity.CRITICAL, position=12, language="primary"),
            _issue("cta_optimization", Severity.MEDIUM, category="cta"),
        ]
        df = issues_to_df(issues)
        assert list(df["Rule"]) == ["brand_001", "cta_optimization", "tone_001"]
        assert df.loc[0, "Severity"] == "CRITICAL"
        assert df.loc[0, "Bucket"] == "brand"
        assert df.loc[0, "Category"] == "Brand Compliance"
        assert df.loc[0, "Position"] == 12
        assert df.loc[0, "Language"] == "primary"
        assert df.loc[1, "Position"] == ""

    def test_original_falls_back_to_found(self):
        df = issues_to_df([_issue("font_family_regular_001", Severity.CRITICAL, found="font-family: Georgia")])
        assert df.loc[0, "Original"] == "font-family: Georgia"

    def test_empty(self):
        assert issues_to_df([]).empty
        assert list(issues_summary_df([]).columns) == ["Bucket", "Severity", "Count"]
        assert seo_findings_df(None).empty

    def test_report_rows(self):
        report = _report(issues={"cta": [_issue("cta_optimization", Severity.MEDIUM, category="cta")], "legal": []})
        assert len(report_issues_df(report)) == 1

    def test_summary(self):
        issues = [
            _issue("a", Severity.LOW, category="cta"),
            _issue("b", Severity.LOW, category="cta"),
            _issue("c", Severity.HIGH, category="grammar"),
        ]
        df = issues_summary_df(issues)
        assert df.to_dict("records") == [
            {"Bucket": "grammar", "Severity": "High", "Count": 1},
            {"Bucket": "cta", "Severity": "Low", "Count": 2},
        ]

    def test_seo_findings(self):
        seo = SeoReport(findings={
            "open_graph": SeoFinding("open_graph", 50, [
                _issue("seo_og_tag_missing", Severity.LOW),
                _issue("seo_og_missing", Severity.MEDIUM),
            ]),
        })
        row = seo_findings_df(seo).to_dict("records")[0]
        assert row == {"Aspect": "Open Graph", "Score": 50, "Issues": 2, "Top Issue": "seo_og_missing message"}

    def test_csv_has_bom_for_arabic(self):
        df = issues_to_df([_issue("brand_001", Severity.HIGH, original="مرحبا")])
        data = to_csv_bytes(df)
        assert data.startswith(b"\xef\xbb\xbf")
        assert "مرحبا" in data.decode("utf-8-sig")


class TestLogging:

    def test_json_formatter_keeps_known_extras(self):
        logger = get_logger("tests")
        record = logger.makeRecord(
            logger.name, logging.INFO, __file__, 1, "Fetched %s", ("page",), None,
            extra={"url": "https://www.example.com", "tier": 1, "unrelated": "x"},
        )
        entry = json.loads(JSONFormatter().format(record))
        assert entry["message"] == "Fetched page"
        assert entry["logger"] == "compliance.tests"
        assert entry["url"] == "https://www.example.com"
        assert entry["tier"] == 1
        assert "unrelated" not in entry
