"""
Link validator: missing/placeholder hrefs, malformed and invalid URLs, UTM
tracking, locale mismatches against the surrounding content, and link text
accessibility. Pure markup inspection; nothing is fetched.
"""
from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlparse

import tldextract
from bs4 import Tag

from analyzers.base import BaseAnalyzer
from bilingual.scripts import is_non_latin_context
from config import (
    LATIN_LANGUAGE,
    LATIN_LOCALE_SEGMENTS,
    LOCALE_WINDOW_CHARS,
    NON_DESCRIPTIVE_LINK_TEXT,
    NON_LATIN_LANGUAGE,
    NON_LATIN_LOCALE_SEGMENTS,
    PLACEHOLDER_HREFS,
    SOCIAL_MEDIA_DOMAINS,
    UTM_SUGGESTION,
)
from models import Issue

# Offline suffix list: validation never touches the network
_extract = tldextract.TLDExtract(suffix_list_urls=())

_MERGE_TOKEN_RE = re.compile(r"\[Field:\s*[^\]]+\]")
_MALFORMED_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"^-+\s*https?://", re.IGNORECASE),    "stray dashes before the scheme"),
    (re.compile(r"https?::+/", re.IGNORECASE),         "doubled colon after the scheme"),
    (re.compile(r"https?:/(?!/)", re.IGNORECASE),      "single slash after the scheme"),
    (re.compile(r"https?:///", re.IGNORECASE),         "triple slash after the scheme"),
    (re.compile(r"[<>]"),                              "angle brackets in the URL"),
]


class LinkValidator(BaseAnalyzer):
    category = "broken_links"
    issue_type = "link_validation"

    def analyze(self, html: str, dominant_language: str = LATIN_LANGUAGE, **kwargs) -> list[Issue]:
        if not html:
            return []

        soup = self.soup(html)
        line_starts = _line_starts(html)
        issues: list[Issue] = []

        for anchor in soup.find_all("a"):
            link_text = _link_text(anchor)
            found = str(anchor)[:200]

            # ── Presence ──────────────────────────────────────────────────────
            if not anchor.has_attr("href"):
                if anchor.get("name") or anchor.get("id"):
                    continue  # named anchors are section markers, not links
                issues.append(self.critical(
                    "link_missing_href_001", "Link has no href attribute",
                    found=found, link_text=link_text,
                    suggestion="Add a destination URL",
                ))
                continue

            href = (anchor.get("href") or "").strip()
            if not href:
                issues.append(self.critical(
                    "link_empty_href_001", "Link has an empty href",
                    found=found, link_text=link_text,
                    suggestion="Add a destination URL",
                ))
                continue

            # ── Malformed ─────────────────────────────────────────────────────
            problem = _malformation(href)
            if problem:
                issues.append(self.critical(
                    "url_malformed_001", f"Malformed URL: {problem}",
                    original=href, found=found, link_text=link_text,
                    suggestion=_repair(href),
                ))
                continue

            # ── Placeholder ───────────────────────────────────────────────────
            if href.lower() in PLACEHOLDER_HREFS:
                issues.append(self.critical(
                    "link_validation_001", f"Placeholder link: {href}",
                    original=href, found=found, link_text=link_text,
                    suggestion="Replace the placeholder with the real destination",
                ))
                continue

            lowered = href.lower()
            is_web = lowered.startswith(("http://", "https://"))

            if is_web:
                if not _has_valid_host(href):
                    issues.append(self.high(
                        "url_invalid_001", "URL has no valid host",
                        original=href, found=found, link_text=link_text,
                        category="broken_links",
                        suggestion="Use a complete absolute URL, e.g. https://www.example.com/page",
                    ))
                    continue

                # ── UTM tracking ──────────────────────────────────────────────
                if "utm_" not in lowered:
                    issues.append(self.medium(
                        "utm_tracking_001", "External link is missing UTM tracking parameters",
                        original=href, link_text=link_text,
                        category="utm_tracking", issue_type="tracking",
                        suggestion=UTM_SUGGESTION,
                    ))

                # ── Locale ────────────────────────────────────────────────────
                mismatch = self._locale_mismatch(anchor, href, html, line_starts, dominant_language)
                if mismatch:
                    issues.append(mismatch)

            # ── Accessibility ─────────────────────────────────────────────────
            if lowered.startswith(("mailto:", "tel:")):
                continue
            if not link_text:
                issues.append(self.high(
                    "link_no_text_001", "Link has no text",
                    original=href, found=found,
                    category="link_accessibility", issue_type="accessibility",
                    suggestion="Add descriptive link text or an image alt",
                ))
            elif link_text.lower().strip(" .!") in NON_DESCRIPTIVE_LINK_TEXT:
                issues.append(self.medium(
                    "accessibility_001", f"Non-descriptive link text: '{link_text}'",
                    original=link_text, link_text=link_text,
                    category="link_accessibility", issue_type="accessibility",
                    suggestion="Describe the destination, e.g. 'View account offers'",
                ))

        return issues

    def _locale_mismatch(
        self,
        anchor: Tag,
        href: str,
        html: str,
        line_starts: list[int],
        dominant_language: str,
    ) -> Optional[Issue]:
        path = urlparse(href).path.lower().rstrip("/") + "/"
        links_non_latin = any(seg in path for seg in NON_LATIN_LOCALE_SEGMENTS)
        links_latin = any(seg in path for seg in LATIN_LOCALE_SEGMENTS)
        if not (links_non_latin or links_latin):
            return None
        if _extract(href).registered_domain.lower() in SOCIAL_MEDIA_DOMAINS:
            return None

        offset = _offset_of(anchor, line_starts)
        window = html[max(0, offset - LOCALE_WINDOW_CHARS): offset + LOCALE_WINDOW_CHARS]
        non_latin = is_non_latin_context(window)
        if non_latin is None:
            non_latin = dominant_language == NON_LATIN_LANGUAGE

        if links_non_latin and not non_latin:
            return self.critical(
                "language_mismatch_001", "English content links to an Arabic page",
                original=href, link_text=_link_text(anchor),
                category="link_language_mismatch", issue_type="language_validation",
                suggestion=_swap_locale(href, NON_LATIN_LOCALE_SEGMENTS, LATIN_LOCALE_SEGMENTS[0]),
                context=_squash(window),
            )
        if links_latin and non_latin:
            return self.critical(
                "language_mismatch_002", "Arabic content links to an English page",
                original=href, link_text=_link_text(anchor),
                category="link_language_mismatch", issue_type="language_validation",
                suggestion=_swap_locale(href, LATIN_LOCALE_SEGMENTS, NON_LATIN_LOCALE_SEGMENTS[0]),
                context=_squash(window),
            )
        return None


def validate_links(html: str, dominant_language: str = LATIN_LANGUAGE) -> list[Issue]:
    return LinkValidator().analyze(html, dominant_language=dominant_language)


# ── Helpers ────────────────────────────────────────────────────────────────────

def _malformation(href: str) -> Optional[str]:
    for pattern, problem in _MALFORMED_PATTERNS:
        if pattern.search(href):
            return problem
    if re.search(r"\s", _MERGE_TOKEN_RE.sub("", href)):
        return "unexpected whitespace"
    return None


def _repair(href: str) -> str:
    fixed = re.sub(r"^-+\s*", "", href)
    fixed = re.sub(r"(https?)::+/", r"\1:/", fixed, flags=re.IGNORECASE)
    fixed = re.sub(r"(https?):/+", r"\1://", fixed, flags=re.IGNORECASE)
    fixed = re.sub(r"[<>]", "", fixed)
    parts = _MERGE_TOKEN_RE.split(fixed)
    tokens = _MERGE_TOKEN_RE.findall(fixed)
    out = re.sub(r"\s+", "", parts[0])
    for token, part in zip(tokens, parts[1:]):
        out += token + re.sub(r"\s+", "", part)
    return out


def _swap_locale(href: str, current: tuple[str, ...], target: str) -> str:
    for segment in current:
        idx = href.lower().find(segment)
        if idx >= 0:
            return href[:idx] + target + href[idx + len(segment):]
    return href


def _link_text(anchor: Tag) -> str:
    text = anchor.get_text(" ", strip=True)
    if text:
        return text
    img = anchor.find("img", alt=True)
    return (img.get("alt") or "").strip() if img else ""


def _line_starts(html: str) -> list[int]:
    starts = [0]
    for idx, ch in enumerate(html):
        if ch == "\n":
            starts.append(idx + 1)
    return starts


def _offset_of(tag: Tag, line_starts: list[int]) -> int:
    line = getattr(tag, "sourceline", None)
    col = getattr(tag, "sourcepos", None)
    if not line or col is None or line > len(line_starts):
        return 0
    return line_starts[line - 1] + col


def _squash(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()[:200]


def _has_valid_host(href: str) -> bool:
    try:
        host = urlparse(href).hostname or ""
    except ValueError:
        return False
    return "." in host.strip(".")
