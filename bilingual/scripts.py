"""
Script detection helpers shared by the segmenter and the markup validators.
"""
from __future__ import annotations

import html
import re
from typing import Optional

from config import LATIN_LANGUAGE, NON_LATIN_LANGUAGE, NON_LATIN_RATIO_THRESHOLD

# Arabic, Arabic Supplement, Arabic Extended-A and presentation forms
NON_LATIN_CHAR_RE = re.compile(r"[\u0600-\u06FF\u0750-\u077F\u08A0-\u08FF\uFB50-\uFDFF\uFE70-\uFEFF]")
LATIN_CHAR_RE = re.compile(r"[A-Za-z\u00C0-\u024F]")
RTL_MARKER_RE = re.compile(r"""dir\s*=\s*["']?rtl\b|direction\s*:\s*rtl\b""", re.IGNORECASE)

_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_TAG_RE = re.compile(r"<[^>]*>")
_LEADING_FRAGMENT_RE = re.compile(r"^[^<>]*>")
_TRAILING_FRAGMENT_RE = re.compile(r"<[^>]*$")


def strip_markup(content: str, fragment: bool = False) -> str:
    """
    Visible text of a markup string. With fragment=True the input is treated
    as a slice of a larger document and half-cut tags at either edge are
    dropped as well.
    """
    if not content:
        return ""
    text = _SCRIPT_STYLE_RE.sub(" ", content)
    text = _COMMENT_RE.sub(" ", text)
    if fragment:
        text = _LEADING_FRAGMENT_RE.sub(" ", text)
        text = _TRAILING_FRAGMENT_RE.sub(" ", text)
    text = _TAG_RE.sub(" ", text)
    return html.unescape(text)


def first_offset(text: str, pattern: re.Pattern) -> int:
    match = pattern.search(text)
    return match.start() if match else -1


def non_latin_ratio(text: str) -> float:
    """Share of non-Latin letters among all Latin and non-Latin letters."""
    non_latin = len(NON_LATIN_CHAR_RE.findall(text))
    latin = len(LATIN_CHAR_RE.findall(text))
    total = non_latin + latin
    return non_latin / total if total else 0.0


def is_non_latin_context(
    snippet: str,
    threshold: float = NON_LATIN_RATIO_THRESHOLD,
) -> Optional[bool]:
    """
    Locale of a slice of markup: True for RTL / non-Latin, False for Latin,
    None when the slice carries no letters at all.
    """
    if RTL_MARKER_RE.search(snippet):
        return True
    visible = strip_markup(snippet, fragment=True)
    if not NON_LATIN_CHAR_RE.search(visible) and not LATIN_CHAR_RE.search(visible):
        return None
    return non_latin_ratio(visible) > threshold


def script_language(text: Optional[str]) -> Optional[str]:
    """Language code implied by a snippet's script; any non-Latin letter wins."""
    if not text:
        return None
    if NON_LATIN_CHAR_RE.search(text):
        return NON_LATIN_LANGUAGE
    if LATIN_CHAR_RE.search(text):
        return LATIN_LANGUAGE
    return None
