"""
Runs every check over one piece of content and builds the ComplianceReport.

Independent checks run concurrently on a thread pool over shared read-only
input; this module is the join point. A check that raises is logged and
contributes nothing, so a completed check always yields a score.
"""
from __future__ import annotations

import time
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import Any, Callable, Optional

from analyzers.images import validate_images
from analyzers.links import validate_links
from analyzers.seo import analyze_seo
from bilingual.segmenter import detect_languages, group_by_language, split_sections, tag_issues
from config import DEFAULT_MAX_WORKERS, TEXT_PREVIEW_CHARS
from crawler.parser import html_to_text
from crawler.pipeline import ContentAcquisitionPipeline
from generative.reviewer import ContentReviewer
from generative.seo_advisor import SeoAdvisor
from log_config import get_logger
from models import ComplianceReport, ContentReview, Issue, ScrapeAttempt, SeoReport
from rules_engine.checks import (
    check_cta,
    check_numerical_formats,
    validate_colors,
    validate_font_family,
    validate_merge_fields,
    validate_production_urls,
)
from rules_engine.engine import RuleEngine, get_default_engine
from scoring.scorer import (
    categorize_issues,
    compute_category_scores,
    compute_compliance_score,
    count_severities,
    filter_url_issues,
    sort_by_severity,
)

logger = get_logger("analyzers.orchestrator")

# Checks whose positions are offsets into the visible text rather than the markup
_TEXT_BRANCHES = ("rules", "numerical", "cta", "merge_fields")
_MARKUP_BRANCHES = ("links", "images", "fonts", "colors", "staging")

SOURCE_TEMPLATE = "template"
SOURCE_TEXT = "text"
SOURCE_URL = "url"


class ComplianceChecker:
    def __init__(
        self,
        engine: Optional[RuleEngine] = None,
        reviewer: Optional[ContentReviewer] = None,
        seo_advisor: Optional[SeoAdvisor] = None,
        pipeline: Optional[ContentAcquisitionPipeline] = None,
        store=None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        self.engine = engine or get_default_engine()
        self.reviewer = reviewer or ContentReviewer()
        self.seo_advisor = seo_advisor or SeoAdvisor()
        self._pipeline = pipeline
        self.store = store
        self.max_workers = max_workers

    @property
    def pipeline(self) -> ContentAcquisitionPipeline:
        if self._pipeline is None:
            self._pipeline = ContentAcquisitionPipeline()
        return self._pipeline

    # ── Entry points ──────────────────────────────────────────────────────────

    def check_template(self, html: str, file_name: str = "", content_type: str = "edm") -> ComplianceReport:
        """Uploaded email/web template: every check, including template-only ones."""
        return self.check_markup(
            html, html_to_text(html), source=SOURCE_TEMPLATE,
            content_type=content_type, file_name=file_name,
        )

    def check_text(self, text: str, content_type: str = "edm") -> ComplianceReport:
        return self.check_markup("", text, source=SOURCE_TEXT, content_type=content_type)

    def check_url(
        self,
        url: str,
        url_category: str = "others",
        suppress_soft_issues: bool = True,
        progress_callback: Optional[Callable[[dict], None]] = None,
    ) -> ComplianceReport:
        """
        Acquire a live page and check it. Raises ContentAcquisitionError or
        ManualSubmissionRequired when the page cannot be obtained.
        """
        acquired = self.pipeline.acquire(url, progress_callback=progress_callback)
        return self.check_markup(
            acquired.html,
            acquired.text,
            source=SOURCE_URL,
            content_type="web",
            url=acquired.final_url or url,
            url_category=url_category,
            title=acquired.title,
            method=acquired.method,
            attempts=acquired.attempts,
            suppress_soft_issues=suppress_soft_issues,
            progress_callback=progress_callback,
        )

    def check_markup(
        self,
        html: str,
        text: str,
        source: str = SOURCE_URL,
        content_type: str = "web",
        file_name: Optional[str] = None,
        url: Optional[str] = None,
        url_category: str = "others",
        title: Optional[str] = None,
        method: Optional[str] = None,
        attempts: Optional[list[ScrapeAttempt]] = None,
        suppress_soft_issues: bool = True,
        progress_callback: Optional[Callable[[dict], None]] = None,
    ) -> ComplianceReport:
        """
        Shared core of every entry point. Also used directly for content the
        user pasted after acquisition was blocked (source "url", method "manual").
        """
        started_at = datetime.now()
        t0 = time.perf_counter()
        html = html or ""
        text = text or ""
        is_url = source == SOURCE_URL

        languages = detect_languages(html or text)
        is_bilingual = len(languages) > 1
        primary_language = languages[0]

        _emit(progress_callback, "Running compliance checks…", 30)
        branches = self._branches(html, text, source, content_type, file_name or "", primary_language)
        if is_url and html:
            branches["seo"] = lambda: analyze_seo(html, url or "", url_category)
        results = self._run_branches(branches)

        review: ContentReview = results.pop("review", None) or ContentReview()
        seo: Optional[SeoReport] = results.pop("seo", None)

        text_issues = review.grammar_issues + review.brand_issues
        markup_issues: list[Issue] = []
        for name in branches:
            if name in _TEXT_BRANCHES:
                text_issues.extend(results.get(name) or [])
            elif name in _MARKUP_BRANCHES:
                markup_issues.extend(results.get(name) or [])

        if is_bilingual:
            text_issues = tag_issues(text_issues, split_sections(text), full_content=text)
            if html:
                markup_issues = tag_issues(markup_issues, split_sections(html), full_content=html)

        issues = text_issues + markup_issues
        if is_url:
            issues = filter_url_issues(issues, suppress_soft=suppress_soft_issues)

        if seo is not None:
            _emit(progress_callback, "Generating SEO recommendations…", 85)
            seo.advice = self.seo_advisor.advise(seo, text)

        categorized = {bucket: sort_by_severity(items) for bucket, items in categorize_issues(issues).items()}
        counts = count_severities(issues)
        language_counts = None
        if is_bilingual:
            language_counts = {tag: len(items) for tag, items in group_by_language(issues).items()}

        report = ComplianceReport(
            id=uuid.uuid4().hex,
            source=source,
            content_type=content_type,
            languages=languages,
            is_bilingual=is_bilingual,
            issues=categorized,
            severity_counts=counts,
            score=compute_compliance_score(counts),
            category_scores=compute_category_scores(categorized),
            language_counts=language_counts,
            suggestions=review.suggestions,
            tone_analysis=review.tone_analysis,
            seo=seo,
            url=url,
            file_name=file_name,
            title=title,
            method=method,
            attempts=list(attempts or []),
            text_preview=text[:TEXT_PREVIEW_CHARS],
            started_at=started_at,
            finished_at=datetime.now(),
        )
        logger.info(
            "Compliance check complete",
            extra={
                "report_id": report.id, "url": url, "method": method,
                "duration_ms": round((time.perf_counter() - t0) * 1000, 1),
            },
        )

        if self.store is not None:
            try:
                self.store.save(report)
            except OSError:
                logger.exception("Could not save report", extra={"report_id": report.id})

        _emit(progress_callback, "Check complete.", 100)
        return report

    # ── Branches ──────────────────────────────────────────────────────────────

    def _branches(
        self,
        html: str,
        text: str,
        source: str,
        content_type: str,
        file_name: str,
        language: str,
    ) -> dict[str, Callable[[], Any]]:
        branches: dict[str, Callable[[], Any]] = {
            "review": lambda: self.reviewer.review(text, language),
            "rules": lambda: self.engine.evaluate(text, content_type),
            "numerical": lambda: check_numerical_formats(text),
            "cta": lambda: check_cta(text),
        }
        # Personalization tokens only exist in authored content
        if source != SOURCE_URL:
            branches["merge_fields"] = lambda: validate_merge_fields(text)
        if html:
            branches["links"] = lambda: validate_links(html, language)
            branches["images"] = lambda: validate_images(html)
        if source == SOURCE_TEMPLATE and html:
            branches["fonts"] = lambda: validate_font_family(html, file_name)
            branches["colors"] = lambda: validate_colors(html)
            branches["staging"] = lambda: validate_production_urls(html)
        return branches

    def _run_branches(self, branches: dict[str, Callable[[], Any]]) -> dict[str, Any]:
        results: dict[str, Any] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = {pool.submit(fn): name for name, fn in branches.items()}
            for future in as_completed(futures):
                name = futures[future]
                try:
                    results[name] = future.result()
                except Exception as exc:
                    logger.exception(
                        "Check branch failed", extra={"branch": name, "error": type(exc).__name__},
                    )
        return results


def _emit(callback, message: str, pct: int) -> None:
    if callback:
        try:
            callback({"message": message, "pct": pct})
        except Exception:
            pass
