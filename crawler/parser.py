"""
HTML parsing for acquired pages and uploaded templates.

Metadata is always read before any element is stripped: the stripping pass
removes <script>, <nav>, cookie banners and the like, and some of those
carry structured data the SEO analysis needs.
"""
from __future__ import annotations

import re
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from config import BLOCK_TAGS, NON_CONTENT_SELECTORS
from models import PageMetadata


def make_soup(html: str) -> BeautifulSoup:
    try:
        return BeautifulSoup(html, "lxml")
    except Exception:
        return BeautifulSoup(html, "html.parser")


def parse_document(html: str, url: str = "") -> tuple[PageMetadata, str]:
    """Return (metadata, main text) for a fetched page."""
    if not html:
        return PageMetadata(), ""
    soup = make_soup(html)
    metadata = extract_metadata(soup, url)
    return metadata, extract_main_text(soup)


# ── Metadata ──────────────────────────────────────────────────────────────────

def extract_metadata(soup: BeautifulSoup, base_url: str = "") -> PageMetadata:
    meta = PageMetadata()

    title_tag = soup.find("title")
    if title_tag:
        meta.title = title_tag.get_text(strip=True)

    for tag in soup.find_all("meta"):
        name = (tag.get("name") or "").lower().strip()
        prop = (tag.get("property") or "").lower().strip()
        content = (tag.get("content") or "").strip()

        if name == "description":
            meta.description = content
        elif name == "robots":
            meta.robots = content
        elif name == "viewport":
            meta.viewport = content

        # Twitter cards are often published with property= instead of name=
        key = prop or name
        if key.startswith("og:"):
            meta.og_tags[key] = content
        elif key.startswith("twitter:"):
            meta.twitter_tags[key] = content

    canonical = soup.find("link", rel=lambda r: r and "canonical" in (r if isinstance(r, list) else [r]))
    if canonical and canonical.get("href"):
        meta.canonical = urljoin(base_url, canonical["href"].strip()) if base_url else canonical["href"].strip()

    html_tag = soup.find("html")
    if html_tag and html_tag.get("lang"):
        meta.lang = html_tag["lang"].strip()

    return meta


# ── Text ──────────────────────────────────────────────────────────────────────
# One line per block element; whitespace inside a block collapses to a space.

_BLOCK_BREAK = "\u2029"  # PARAGRAPH SEPARATOR


def extract_main_text(soup: BeautifulSoup) -> str:
    """Strip non-content elements (mutates soup), then read main/article/body."""
    for selector in NON_CONTENT_SELECTORS:
        for tag in soup.select(selector):
            if not tag.decomposed:
                tag.decompose()

    root = soup.find("main") or soup.find("article") or soup.find("body") or soup
    return _block_text(root)


def html_to_text(html: str) -> str:
    """Visible text of an uploaded template (preheader, scripts and styles removed)."""
    if not html:
        return ""
    soup = make_soup(html)
    for tag in soup.find_all(["script", "style", "noscript", "head"]):
        if not tag.decomposed:
            tag.decompose()
    for tag in soup.select(".preheader, [class*='preheader']"):
        if not tag.decomposed:
            tag.decompose()
    return _block_text(soup)


def _block_text(root) -> str:
    for tag in root.find_all(list(BLOCK_TAGS)):
        tag.insert_before(_BLOCK_BREAK)
        tag.insert_after(_BLOCK_BREAK)
    lines = (_normalize(line) for line in root.get_text(separator=" ").split(_BLOCK_BREAK))
    return "\n".join(line for line in lines if line)


def _normalize(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()
