"""
Technical SEO analyzer: canonical, robots directives, viewport, language,
favicon, and structured data (JSON-LD).
"""
from __future__ import annotations

import json
from typing import Any

from bs4 import BeautifulSoup

from analyzers.base import BaseAnalyzer
from config import SCHEMA_RECOMMENDATIONS
from crawler.parser import extract_metadata, make_soup
from models import Issue, SeoFinding


class TechnicalSEOAnalyzer(BaseAnalyzer):
    category = "technical_seo"
    issue_type = "seo"

    def analyze(self, html: str, url_category: str = "others", **kwargs) -> list[Issue]:
        if not html:
            return []
        soup = make_soup(html)
        return self.technical(soup).issues + self.schema(soup, url_category).issues

    # ── Technical ─────────────────────────────────────────────────────────────

    def technical(self, soup: BeautifulSoup) -> SeoFinding:
        meta = extract_metadata(soup)
        issues: list[Issue] = []

        if not meta.canonical:
            issues.append(self.medium(
                "seo_canonical_missing", "Page has no canonical URL",
                suggestion="Add <link rel=\"canonical\" href=\"…\"> to consolidate duplicate URLs",
            ))

        robots = (meta.robots or "").lower()
        if "noindex" in robots or "none" in [d.strip() for d in robots.split(",")]:
            issues.append(self.critical(
                "seo_robots_noindex", "Robots directive prevents indexing",
                original=meta.robots or "",
                suggestion="Remove noindex unless the page must stay out of search results",
            ))
        elif "nofollow" in robots:
            issues.append(self.medium(
                "seo_robots_nofollow", "Robots directive stops search engines following links",
                original=meta.robots or "",
                suggestion="Remove nofollow unless intentional",
            ))

        if not meta.viewport:
            issues.append(self.high(
                "seo_viewport_missing", "Page is missing a viewport meta tag",
                suggestion='Add <meta name="viewport" content="width=device-width, initial-scale=1">',
            ))

        if not meta.lang:
            issues.append(self.low(
                "seo_lang_missing", "The <html> element has no lang attribute",
                suggestion='Declare the page language, e.g. <html lang="en">',
            ))

        favicon = soup.find("link", rel=lambda r: r and any("icon" in v.lower() for v in (r if isinstance(r, list) else [r])))
        if favicon is None:
            issues.append(self.low(
                "seo_favicon_missing", "Page declares no favicon",
                suggestion='Add <link rel="icon" href="/favicon.ico">',
            ))

        return SeoFinding(
            aspect="technical",
            score=max(0, 100 - 20 * len(issues)),
            issues=issues,
            data={
                "canonical": meta.canonical,
                "robots": meta.robots,
                "viewport": meta.viewport,
                "lang": meta.lang,
                "favicon": favicon is not None,
            },
        )

    # ── Structured data ───────────────────────────────────────────────────────

    def schema(self, soup: BeautifulSoup, url_category: str = "others") -> SeoFinding:
        blocks, errors = parse_json_ld(soup)
        types = sorted({t for block in blocks for t in _schema_types(block)})
        recommended = SCHEMA_RECOMMENDATIONS.get(url_category, [])
        issues: list[Issue] = []

        for error in errors:
            issues.append(self.high(
                "seo_schema_invalid", f"JSON-LD could not be parsed: {error}",
                suggestion="Fix the JSON-LD syntax so search engines can read it",
            ))

        if not blocks:
            hint = f" ({', '.join(recommended)} recommended for {url_category} pages)" if recommended else ""
            issues.append(self.medium(
                "seo_schema_missing", f"Page has no structured data{hint}",
                suggestion=f"Add JSON-LD of type {', '.join(recommended) or 'WebPage'}",
            ))
        elif recommended and not any(r in types for r in recommended):
            issues.append(self.medium(
                "seo_schema_type", f"Structured data lacks a {' or '.join(recommended)} entity",
                original=", ".join(types),
                suggestion=f"Add a {recommended[0]} entity for this {url_category} page",
            ))

        if blocks and not issues:
            score = 100
        elif blocks:
            score = 50
        else:
            score = 0
        return SeoFinding("schema", score, issues, {"types": types, "blocks": len(blocks)})


def parse_json_ld(soup: BeautifulSoup) -> tuple[list[dict], list[str]]:
    blocks: list[dict] = []
    errors: list[str] = []
    for script in soup.find_all("script", type="application/ld+json"):
        try:
            data = json.loads(script.string or "")
        except json.JSONDecodeError as exc:
            errors.append(str(exc))
            continue
        items = data if isinstance(data, list) else [data]
        blocks.extend(item for item in items if isinstance(item, dict))
    return blocks, errors


def _schema_types(block: dict[str, Any]) -> list[str]:
    found: list[str] = []
    declared = block.get("@type")
    if isinstance(declared, str):
        found.append(declared)
    elif isinstance(declared, list):
        found.extend(t for t in declared if isinstance(t, str))
    for item in block.get("@graph", []) or []:
        if isinstance(item, dict):
            found.extend(_schema_types(item))
    return found
