"""
ComplianceChecker Tests

End-to-end runs of every entry point with a mocked LLM, a fake acquisition
pipeline and a temporary result store.
"""

from __future__ import annotations

import json

import pytest

from analyzers.orchestrator import ComplianceChecker
from crawler.errors import ManualSubmissionRequired
from crawler.parser import parse_document
from generative.base import LLMProvider
from generative.reviewer import ContentReviewer
from generative.seo_advisor import SeoAdvisor
from models import AcquiredContent, LanguageTag, Rule, ScrapeAttempt, Severity
from reporting.store import ResultStore
from rules_engine.engine import RuleEngine

ARABIC = "مرحبا بكم في عروضنا"

REVIEW = {
    "grammarIssues": [
        {"type": "spelling", "message": "Misspelled word", "original": "recieve",
         "suggestion": "receive", "severity": "low"},
    ],
    "brandIssues": [],
    "toneAnalysis": {"professionalism": 8, "clarity": 7, "summary": "Friendly"},
    "suggestions": ["Lead with the benefit"],
}
ADVICE = {
    "titleSuggestion": "Credit Cards with Cashback | Emirates NBD",
    "keywordOpportunities": ["cashback credit card"],
}

PAGE = """<html lang="en"><head><title>Card Offers</title></head>
<body><h1>Card offers for every lifestyle</h1>
<p>Dear [Field:First Name], click here to apply. Pay AED500 today.</p>
<a href="https://www.emiratesnbd.com/cards?utm_source=web">View cards</a>
</body></html>"""


# ============================================================
# FAKES
# ============================================================

class MockLLM(LLMProvider):
    """Returns one canned JSON reply, or raises the canned error."""

    def __init__(self, reply=None, error=None):
        self.reply = reply or {}
        self.error = error
        self.calls = []

    def generate(self, prompt, system_instruction=None, temperature=0.7, json_mode=False, grounding=None):
        self.calls.append(prompt)
        if self.error is not None:
            raise self.error
        return json.dumps(self.reply)


class FakePipeline:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def acquire(self, url, progress_callback=None):
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return self.content


class BrokenEngine:
    def evaluate(self, text, content_type="edm"):
        raise RuntimeError("rule set corrupted")


class FailingStore:
    def save(self, report):
        raise OSError("disk full")


def _engine():
    return RuleEngine([Rule(
        id="terminology_001", category="terminology", severity=Severity.MEDIUM,
        pattern=r"\be-mail\b", message='Use "email"', replacement="email",
    )])


def _checker(tmp_path, review=REVIEW, advice=ADVICE, **kwargs):
    kwargs.setdefault("engine", _engine())
    return ComplianceChecker(
        reviewer=ContentReviewer(MockLLM(review)),
        seo_advisor=SeoAdvisor(MockLLM(advice)),
        store=ResultStore(tmp_path),
        **kwargs,
    )


def _rule_ids(report):
    return sorted(i.rule_id for i in report.all_issues)


# ============================================================
# TEXT
# ============================================================

class TestCheckText:

    def test_full_report(self, tmp_path):
        report = _checker(tmp_path).check_text("Send us an e-mail to recieve AED500. Click here.")

        assert report.source == "text"
        assert report.languages == ["en"]
        assert not report.is_bilingual
        assert _rule_ids(report) == ["ai_grammar", "cta_optimization", "currency_format_001", "terminology_001"]
        assert report.severity_counts == {"critical": 0, "high": 1, "medium": 2, "low": 1}
        assert report.score == 78
        assert report.category_scores["numerical"] == 90
        assert report.language_counts is None
        assert report.suggestions == ["Lead with the benefit"]
        assert report.tone_analysis["summary"] == "Friendly"
        assert report.seo is None

    def test_buckets_sorted_by_severity(self, tmp_path):
        engine = RuleEngine([
            Rule(id="brand_low", category="brand", severity=Severity.LOW, pattern="alpha"),
            Rule(id="brand_critical", category="brand", severity=Severity.CRITICAL, pattern="beta"),
        ])
        report = _checker(tmp_path, review={}, engine=engine).check_text("alpha beta")
        assert [i.rule_id for i in report.issues["brand"]] == ["brand_critical", "brand_low"]

    def test_report_is_persisted(self, tmp_path):
        store = ResultStore(tmp_path)
        checker = _checker(tmp_path)
        checker.store = store
        report = checker.check_text("Hello there")
        saved = store.get(report.id)
        assert saved["id"] == report.id
        assert saved["score"] == report.score

    def test_merge_fields_checked(self, tmp_path):
        report = _checker(tmp_path, review={}).check_text("Dear [Field:First Name],")
        assert _rule_ids(report) == ["variable_format_001"]


class TestDegradation:
    """A failing collaborator never fails the whole check."""

    def test_review_failure_yields_empty_review(self, tmp_path):
        checker = ComplianceChecker(
            engine=_engine(),
            reviewer=ContentReviewer(MockLLM(error=RuntimeError("quota exceeded"))),
            seo_advisor=SeoAdvisor(MockLLM()),
        )
        report = checker.check_text("Send us an e-mail.")
        assert _rule_ids(report) == ["terminology_001"]
        assert report.tone_analysis == {"score": 0, "message": "Error checking content"}

    def test_failing_branch_is_isolated(self, tmp_path):
        report = _checker(tmp_path, review={}, engine=BrokenEngine()).check_text("Pay AED500 now")
        assert _rule_ids(report) == ["currency_format_001"]
        assert report.score == 90

    def test_store_failure_is_logged(self, tmp_path):
        checker = _checker(tmp_path, review={})
        checker.store = FailingStore()
        report = checker.check_text("Hello there")
        assert report.score == 100

    def test_progress_reaches_completion(self, tmp_path):
        events = []
        _checker(tmp_path, review={}).check_markup("", "Hello", source="text", progress_callback=events.append)
        assert events[-1] == {"message": "Check complete.", "pct": 100}


# ============================================================
# TEMPLATES
# ============================================================

class TestCheckTemplate:

    def test_template_only_checks_run(self, tmp_path):
        html = (
            '<html><body><table><tr><td style="font-family: Georgia; color: #FF0000">'
            "Dear [Field:First Name],</td></tr></table>"
            '<a href="#">Offer</a><img src="">'
            '<a href="https://staging.emiratesnbd.com/?utm_source=edm">Visit our site</a>'
            "</body></html>"
        )
        report = _checker(tmp_path, review={}).check_template(html, file_name="offer.html")

        ids = _rule_ids(report)
        for expected in (
            "variable_format_001", "link_validation_001", "image_validation_001",
            "accessibility_002", "font_family_regular_001", "color_validation_001", "staging_url_001",
        ):
            assert expected in ids
        assert report.source == "template"
        assert report.content_type == "edm"
        assert report.file_name == "offer.html"
        assert report.seo is None
        assert "Dear [Field:First Name]," in report.text_preview


# ============================================================
# URLS
# ============================================================

class TestCheckUrl:

    def _content(self):
        return AcquiredContent(
            url="https://www.emiratesnbd.com/cards",
            final_url="https://www.emiratesnbd.com/cards/",
            html=PAGE,
            text="Card offers for every lifestyle Dear [Field:First Name], click here to apply. Pay AED500 today.",
            method="direct",
            title="Card Offers",
            attempts=[ScrapeAttempt(url="https://www.emiratesnbd.com/cards", tier=1, method="direct", outcome="success")],
        )

    def test_url_report(self, tmp_path):
        pipeline = FakePipeline(self._content())
        report = _checker(tmp_path, review={}, pipeline=pipeline).check_url(
            "https://www.emiratesnbd.com/cards", url_category="product",
        )

        assert pipeline.calls == ["https://www.emiratesnbd.com/cards"]
        assert report.source == "url"
        assert report.content_type == "web"
        assert report.url == "https://www.emiratesnbd.com/cards/"
        assert report.method == "direct"
        assert report.title == "Card Offers"
        assert len(report.attempts) == 1

        ids = _rule_ids(report)
        assert "currency_format_001" in ids
        assert not any(i.startswith("variable_format") for i in ids)
        assert "cta_optimization" not in ids

        assert report.seo is not None
        assert report.seo.url_category == "product"
        assert 0 <= report.seo.overall_score <= 100
        assert report.seo.advice.title_suggestion == ADVICE["titleSuggestion"]
        assert report.seo.advice.keyword_opportunities == ["cashback credit card"]

    def test_soft_issues_kept_on_request(self, tmp_path):
        report = _checker(tmp_path, review={}, pipeline=FakePipeline(self._content())).check_url(
            "https://www.emiratesnbd.com/cards", suppress_soft_issues=False,
        )
        assert "cta_optimization" in _rule_ids(report)

    def test_acquisition_errors_propagate(self, tmp_path):
        pipeline = FakePipeline(error=ManualSubmissionRequired("paste it", final_reason="HTTP 403"))
        with pytest.raises(ManualSubmissionRequired):
            _checker(tmp_path, pipeline=pipeline).check_url("https://www.emiratesnbd.com/cards")

    def test_manual_paste(self, tmp_path):
        report = _checker(tmp_path, review={}).check_markup(
            "", "Dear [Field:First Name], pay AED500.",
            source="url", url="https://www.emiratesnbd.com/cards", method="manual",
        )
        assert report.method == "manual"
        assert report.seo is None
        assert _rule_ids(report) == ["currency_format_001"]


# ============================================================
# BILINGUAL
# ============================================================

class TestBilingual:

    def test_issues_tagged_by_section(self, tmp_path):
        text = f"Pay AED500 now.\n{ARABIC} AED500"
        report = _checker(tmp_path, review={}).check_text(text)

        assert report.is_bilingual
        assert report.languages == ["en", "ar"]
        tags = sorted(i.language for i in report.all_issues)
        assert tags == [LanguageTag.PRIMARY, LanguageTag.SECONDARY]
        assert report.language_counts == {"primary": 1, "secondary": 1, "both": 0}

    def test_arabic_first_content(self, tmp_path):
        llm = MockLLM({})
        checker = ComplianceChecker(engine=_engine(), reviewer=ContentReviewer(llm), seo_advisor=SeoAdvisor(MockLLM()))
        report = checker.check_text(f"{ARABIC}\nWelcome")
        assert report.languages == ["ar", "en"]
        assert "تحقق" in llm.calls[0]

    def test_arabic_first_issues_tagged_by_context(self, tmp_path):
        report = _checker(tmp_path, review={}).check_text(f"{ARABIC} AED750\nClick here to pay AED500.")

        assert report.languages == ["ar", "en"]
        tags = {(i.rule_id, i.original): i.language for i in report.all_issues}
        assert tags == {
            ("currency_format_001", "AED750"): LanguageTag.SECONDARY,
            ("currency_format_001", "AED500"): LanguageTag.PRIMARY,
            ("cta_optimization", "Click here"): LanguageTag.PRIMARY,
        }
        assert report.language_counts == {"primary": 2, "secondary": 1, "both": 0}


BILINGUAL_TEMPLATE = (
    "<html><body>"
    '<table><tr><td style="color: #FF0000">Pay AED500 today. Dear [Field:LastName]'
    '<a href="#">Offer</a></td></tr></table>'
    f'<table><tr><td style="color: #00FF00">{ARABIC} AED750 [Field:LastName]'
    '<a href="#">عروضنا</a></td></tr></table>'
    "</body></html>"
)

BILINGUAL_PAGE = f"""<html lang="en"><head><title>Card Offers</title></head>
<body><div><p>Pay AED500 today.</p>
<a href="https://www.emiratesnbd.com/cards?utm_source=web">View cards</a></div>
<div><p>{ARABIC} AED750</p>
<a href="https://www.emiratesnbd.com/cards?utm_source=web">عرض البطاقات</a></div>
</body></html>"""


class TestBilingualEntryPoints:
    """Each entry point attributes issues to the section they were found in."""

    def _tags(self, report):
        return sorted((i.rule_id, i.language) for i in report.all_issues)

    def test_template_single_line_markup(self, tmp_path):
        report = _checker(tmp_path, review={}).check_template(BILINGUAL_TEMPLATE, file_name="offer.html")

        assert report.languages == ["en", "ar"]
        assert report.text_preview.splitlines()[0].startswith("Pay AED500 today.")
        assert self._tags(report) == sorted(
            (rule_id, tag)
            for rule_id in ("color_validation_001", "currency_format_001", "link_validation_001", "variable_format_001")
            for tag in (LanguageTag.PRIMARY, LanguageTag.SECONDARY)
        )
        assert report.language_counts == {"primary": 4, "secondary": 4, "both": 0}

    def test_template_colour_positions(self, tmp_path):
        report = _checker(tmp_path, review={}).check_template(BILINGUAL_TEMPLATE)
        colours = {i.original: i.language for i in report.all_issues if i.rule_id == "color_validation_001"}
        assert colours == {"#FF0000": LanguageTag.PRIMARY, "#00FF00": LanguageTag.SECONDARY}

    def test_url(self, tmp_path):
        metadata, text = parse_document(BILINGUAL_PAGE)
        content = AcquiredContent(
            url="https://www.emiratesnbd.com/cards", final_url="https://www.emiratesnbd.com/cards",
            html=BILINGUAL_PAGE, text=text,
            method="direct", title=metadata.title,
        )
        report = _checker(tmp_path, review={}, pipeline=FakePipeline(content)).check_url(content.url)

        tags = {i.original: i.language for i in report.all_issues if i.rule_id == "currency_format_001"}
        assert tags == {"AED500": LanguageTag.PRIMARY, "AED750": LanguageTag.SECONDARY}
        assert report.language_counts == {"primary": 1, "secondary": 1, "both": 0}

    def test_manual_paste_arabic_first(self, tmp_path):
        report = _checker(tmp_path, review={}).check_markup(
            "", f"{ARABIC} AED750\nPay AED500 today.",
            source="url", url="https://www.emiratesnbd.com/cards", method="manual",
        )
        tags = {i.original: i.language for i in report.all_issues}
        assert tags == {"AED750": LanguageTag.SECONDARY, "AED500": LanguageTag.PRIMARY}
