"""
Content analyzer: heading structure and link counts.
"""
from __future__ import annotations

from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from analyzers.base import BaseAnalyzer
from config import H1_MAX_LENGTH, H1_MIN_LENGTH
from crawler.parser import make_soup
from models import Issue, SeoFinding


class ContentAnalyzer(BaseAnalyzer):
    category = "content_seo"
    issue_type = "seo"

    def analyze(self, html: str, **kwargs) -> list[Issue]:
        if not html:
            return []
        return self.headings(make_soup(html)).issues

    # ── Headings ──────────────────────────────────────────────────────────────

    def headings(self, soup: BeautifulSoup) -> SeoFinding:
        h1s = [h.get_text(" ", strip=True) for h in soup.find_all("h1")]
        h2s = [h.get_text(" ", strip=True) for h in soup.find_all("h2")]
        h1s = [h for h in h1s if h]
        h2s = [h for h in h2s if h]
        issues: list[Issue] = []

        if not h1s:
            issues.append(self.critical(
                "seo_h1_missing", "Page has no H1 heading",
                suggestion="Add a single H1 describing the page's main offer",
            ))
        else:
            if len(h1s) > 1:
                issues.append(self.high(
                    "seo_h1_multiple", f"Page has {len(h1s)} H1 headings; use exactly one",
                    original=" | ".join(h1s[:3]),
                    suggestion="Demote secondary H1s to H2",
                ))
            h1 = h1s[0]
            if len(h1) < H1_MIN_LENGTH:
                issues.append(self.medium(
                    "seo_h1_short", f"H1 is too short ({len(h1)} chars, minimum {H1_MIN_LENGTH})",
                    original=h1, suggestion="Make the H1 more descriptive",
                ))
            elif len(h1) > H1_MAX_LENGTH:
                issues.append(self.low(
                    "seo_h1_long", f"H1 is too long ({len(h1)} chars, maximum {H1_MAX_LENGTH})",
                    original=h1[:100], suggestion="Shorten the H1",
                ))
            if not h2s:
                issues.append(self.medium(
                    "seo_h2_missing", "Page has no H2 subheadings",
                    suggestion="Structure the content with H2 sections",
                ))

        score = max(0, 100 - 20 * len(issues))
        return SeoFinding("headings", score, issues, {"h1": h1s, "h2_count": len(h2s)})


# ── Links ─────────────────────────────────────────────────────────────────────

def analyze_link_counts(soup: BeautifulSoup, url: str = "") -> SeoFinding:
    """Internal/external/nofollow counts. Informational; not weighted."""
    host = urlparse(url).netloc.lower() if url else ""
    internal = external = nofollow = 0

    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href or href.startswith(("#", "mailto:", "tel:", "javascript:")):
            continue
        target = urlparse(urljoin(url, href) if url else href)
        if target.netloc and target.netloc.lower() != host:
            external += 1
        else:
            internal += 1
        rel = anchor.get("rel") or []
        if "nofollow" in (rel if isinstance(rel, list) else [rel]):
            nofollow += 1

    return SeoFinding(
        aspect="links",
        score=100,
        data={"internal": internal, "external": external, "nofollow": nofollow},
    )
