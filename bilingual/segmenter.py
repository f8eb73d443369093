"""
Bilingual segmentation: which languages a piece of content carries, where the
secondary-language block starts, and which side of it each issue belongs to.

The secondary partition is always the non-Latin block; "primary" issues are
those attributed to the content before it.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Callable, Optional

from bilingual.scripts import (
    LATIN_CHAR_RE,
    NON_LATIN_CHAR_RE,
    first_offset,
    script_language,
    strip_markup,
)
from config import BLOCK_TAGS, LATIN_LANGUAGE, NON_LATIN_LANGUAGE, SECTION_ANCHOR_NAMES
from models import Issue, LanguageTag

_HTML_LANG_RE = re.compile(r"""<html\b[^>]*?\slang\s*=\s*["']?([A-Za-z-]+)""", re.IGNORECASE)
_ANCHOR_RE = re.compile(
    rf"""<a\b[^>]*\bname\s*=\s*["']?(?:{'|'.join(re.escape(n) for n in SECTION_ANCHOR_NAMES)})["'\s>]""",
    re.IGNORECASE,
)
_RTL_ATTR_RE = re.compile(r"""\bdir\s*=\s*["']?rtl\b""", re.IGNORECASE)
_BLOCK_OPEN_RE = re.compile(rf"<(?:{'|'.join(BLOCK_TAGS)})\b", re.IGNORECASE)


@dataclass(frozen=True)
class LanguageSections:
    primary: str = ""
    secondary: str = ""

    @property
    def boundary(self) -> int:
        return len(self.primary)

    @property
    def has_secondary(self) -> bool:
        return bool(self.secondary)


# ── Detection ─────────────────────────────────────────────────────────────────

def detect_languages(content: str) -> list[str]:
    """Languages present, primary first. Defaults to the Latin language."""
    if not content:
        return [LATIN_LANGUAGE]

    visible = strip_markup(content)
    latin_at = first_offset(visible, LATIN_CHAR_RE)
    non_latin_at = first_offset(visible, NON_LATIN_CHAR_RE)

    declared = _HTML_LANG_RE.search(content)
    if declared:
        code = declared.group(1).split("-")[0].lower()
        if code == LATIN_LANGUAGE:
            return [LATIN_LANGUAGE] + ([NON_LATIN_LANGUAGE] if non_latin_at >= 0 else [])
        if code == NON_LATIN_LANGUAGE:
            return [NON_LATIN_LANGUAGE] + ([LATIN_LANGUAGE] if latin_at >= 0 else [])

    found = [(at, lang) for at, lang in ((latin_at, LATIN_LANGUAGE), (non_latin_at, NON_LATIN_LANGUAGE)) if at >= 0]
    if not found:
        return [LATIN_LANGUAGE]
    return [lang for _, lang in sorted(found)]


# ── Splitting ─────────────────────────────────────────────────────────────────

def split_sections(content: str) -> LanguageSections:
    """Split at the start of the non-Latin block; primary + secondary == content."""
    if not content:
        return LanguageSections()

    start = _section_start(content)
    if start is None:
        return LanguageSections(primary=content, secondary="")
    return LanguageSections(primary=content[:start], secondary=content[start:])


def _section_start(content: str) -> Optional[int]:
    anchor = _ANCHOR_RE.search(content)
    if anchor:
        return anchor.start()

    rtl = _RTL_ATTR_RE.search(content)
    if rtl:
        container = max(content.rfind("<table", 0, rtl.start()), content.rfind("<div", 0, rtl.start()))
        if container < 0:
            container = content.rfind("<", 0, rtl.start())
        return container if container >= 0 else rtl.start()

    offset = 0
    for line in content.splitlines(keepends=True):
        if NON_LATIN_CHAR_RE.search(strip_markup(line)):
            return offset + _block_start(line)
        offset += len(line)
    return None


def _block_start(line: str) -> int:
    """Within a markup line, the opening tag of the block holding the first non-Latin text."""
    for match in NON_LATIN_CHAR_RE.finditer(line):
        at = match.start()
        if line.rfind("<", 0, at) > line.rfind(">", 0, at):
            continue  # inside a tag
        openers = list(_BLOCK_OPEN_RE.finditer(line, 0, at))
        return openers[-1].start() if openers else 0
    return 0


# ── Tagging strategies ────────────────────────────────────────────────────────
# Each returns a LanguageTag or None to defer to the next strategy.

TagStrategy = Callable[[Issue, LanguageSections, str], Optional[str]]


def tag_by_offset(issue: Issue, sections: LanguageSections, full_content: str) -> Optional[str]:
    if issue.position is None or not isinstance(issue.position, int):
        return None
    # Offsets only mean something when the sections were cut from this content
    # and the Latin block comes first
    if not sections.primary or not full_content.startswith(sections.primary):
        return None
    return LanguageTag.PRIMARY if issue.position < sections.boundary else LanguageTag.SECONDARY


def tag_by_context(issue: Issue, sections: LanguageSections, full_content: str) -> Optional[str]:
    return _tag_for_script(issue.context)


def tag_by_matched_text(issue: Issue, sections: LanguageSections, full_content: str) -> Optional[str]:
    return _tag_for_script(issue.found) or _tag_for_script(issue.original)


def _tag_for_script(text: Optional[str]) -> Optional[str]:
    language = script_language(text if isinstance(text, str) else None)
    if language == NON_LATIN_LANGUAGE:
        return LanguageTag.SECONDARY
    if language == LATIN_LANGUAGE:
        return LanguageTag.PRIMARY
    return None


TAGGING_STRATEGIES: tuple[TagStrategy, ...] = (
    tag_by_offset,
    tag_by_context,
    tag_by_matched_text,
)


def tag_issue(issue: Issue, sections: LanguageSections, full_content: str = "") -> Issue:
    """Copy of the issue with its language resolved; falls back to "both"."""
    for strategy in TAGGING_STRATEGIES:
        tag = strategy(issue, sections, full_content or "")
        if tag is not None:
            return replace(issue, language=tag)
    return replace(issue, language=LanguageTag.BOTH)


def tag_issues(issues: list[Issue], sections: LanguageSections, full_content: str = "") -> list[Issue]:
    return [tag_issue(issue, sections, full_content) for issue in issues]


def group_by_language(issues: list[Issue]) -> dict[str, list[Issue]]:
    groups: dict[str, list[Issue]] = {tag: [] for tag in LanguageTag.ALL}
    for issue in issues:
        groups.get(issue.language or LanguageTag.BOTH, groups[LanguageTag.BOTH]).append(issue)
    return groups
