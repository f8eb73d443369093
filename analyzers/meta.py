"""
Meta tag analyzer: title, meta description, Open Graph and Twitter Card.
Each aspect yields an independent 0–100 sub-score.
"""
from __future__ import annotations

import re

from bs4 import BeautifulSoup

from analyzers.base import BaseAnalyzer
from config import (
    DESCRIPTION_CTA_WORDS,
    DESCRIPTION_MAX_CHARS,
    DESCRIPTION_MIN_CHARS,
    REQUIRED_OG_TAGS,
    REQUIRED_TWITTER_TAGS,
    TITLE_MAX_CHARS,
    TITLE_MIN_CHARS,
)
from crawler.parser import extract_metadata, make_soup
from models import Issue, PageMetadata, SeoFinding

_CTA_WORD_RE = re.compile(rf"\b(?:{'|'.join(DESCRIPTION_CTA_WORDS)})\b", re.IGNORECASE)


class MetaAnalyzer(BaseAnalyzer):
    category = "seo_meta"
    issue_type = "seo"

    def analyze(self, html: str, **kwargs) -> list[Issue]:
        if not html:
            return []
        return [i for f in self.findings(make_soup(html)).values() for i in f.issues]

    def findings(self, soup: BeautifulSoup) -> dict[str, SeoFinding]:
        meta = extract_metadata(soup)
        return {
            "title":       self.title(meta),
            "description": self.description(meta),
            "open_graph":  self.open_graph(meta),
            "twitter":     self.twitter(meta),
        }

    # ── Title ─────────────────────────────────────────────────────────────────

    def title(self, meta: PageMetadata) -> SeoFinding:
        title = (meta.title or "").strip()
        if not title:
            return SeoFinding("title", 0, [self.high(
                "seo_title_missing", "Page is missing a <title> tag",
                suggestion=f"Add a descriptive title of {TITLE_MIN_CHARS}–{TITLE_MAX_CHARS} characters",
            )])

        length = len(title)
        score, issues = 100, []
        if length < TITLE_MIN_CHARS:
            score -= 30
            issues.append(self.medium(
                "seo_title_short", f"Title is too short ({length} chars, minimum {TITLE_MIN_CHARS})",
                original=title, suggestion="Expand the title with the key offer or product",
            ))
        elif length > TITLE_MAX_CHARS:
            score -= 20
            issues.append(self.low(
                "seo_title_long", f"Title is too long ({length} chars); search results truncate after ~{TITLE_MAX_CHARS}",
                original=title, suggestion=f"Shorten the title to under {TITLE_MAX_CHARS} characters",
            ))
        return SeoFinding("title", score, issues, {"text": title, "length": length})

    # ── Description ───────────────────────────────────────────────────────────

    def description(self, meta: PageMetadata) -> SeoFinding:
        desc = (meta.description or "").strip()
        if not desc:
            return SeoFinding("description", 0, [self.high(
                "seo_description_missing", "Page is missing a meta description",
                suggestion=f"Add a meta description of {DESCRIPTION_MIN_CHARS}–{DESCRIPTION_MAX_CHARS} characters",
            )])

        length = len(desc)
        score, issues = 100, []
        if length < DESCRIPTION_MIN_CHARS:
            score -= 30
            issues.append(self.medium(
                "seo_description_short",
                f"Meta description is too short ({length} chars, minimum {DESCRIPTION_MIN_CHARS})",
                original=desc, suggestion="Summarize the page benefit in one or two sentences",
            ))
        elif length > DESCRIPTION_MAX_CHARS:
            score -= 20
            issues.append(self.low(
                "seo_description_long",
                f"Meta description is too long ({length} chars); it will be truncated",
                original=desc, suggestion=f"Shorten to under {DESCRIPTION_MAX_CHARS} characters",
            ))

        has_cta = bool(_CTA_WORD_RE.search(desc))
        if not has_cta:
            score -= 10
            issues.append(self.low(
                "seo_description_cta", "Meta description has no call to action",
                original=desc, suggestion="Add an action verb such as Discover, Apply or Explore",
            ))
        return SeoFinding("description", max(0, score), issues, {"text": desc, "length": length, "has_cta": has_cta})

    # ── Social ────────────────────────────────────────────────────────────────

    def open_graph(self, meta: PageMetadata) -> SeoFinding:
        return self._social("open_graph", "Open Graph", meta.og_tags, REQUIRED_OG_TAGS, "seo_og")

    def twitter(self, meta: PageMetadata) -> SeoFinding:
        return self._social("twitter", "Twitter Card", meta.twitter_tags, REQUIRED_TWITTER_TAGS, "seo_twitter")

    def _social(self, aspect: str, label: str, tags: dict[str, str], required: list[str], prefix: str) -> SeoFinding:
        present = [t for t in required if tags.get(t)]
        missing = [t for t in required if not tags.get(t)]
        data = {"present": present, "missing": missing}

        if not present:
            return SeoFinding(aspect, 0, [self.medium(
                f"{prefix}_missing", f"No {label} tags found",
                suggestion=f"Add {', '.join(required)}",
            )], data)

        issues = [
            self.low(f"{prefix}_tag_missing", f"Missing {label} tag: {tag}", suggestion=f'Add <meta property="{tag}" content="…">')
            for tag in missing
        ]
        return SeoFinding(aspect, round(len(present) / len(required) * 100), issues, data)
