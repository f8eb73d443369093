"""
Specialized checks that do not fit the declarative pattern catalogue:
numerical formats, weak calls-to-action, merge-field tokens, and the
template-only brand checks (fonts, colours, non-production hosts).
"""
from __future__ import annotations

import re

from bilingual.scripts import is_non_latin_context
from config import (
    BRAND_COLORS,
    BRAND_FONT_FILE_PREFIX,
    BRAND_FONT_FILE_PREFIX_FONT,
    BRAND_FONT_NON_LATIN,
    BRAND_FONT_PRIMARY,
    CURRENCY_CODES,
    GENERIC_FALLBACK_FONTS,
    LOCALE_WINDOW_CHARS,
    MERGE_FIELD_CONTEXT_MAX_CHARS,
    MERGE_FIELD_NAME_CONTEXT_CHARS,
    MERGE_FIELD_WHITELIST,
    NON_PRODUCTION_SUBDOMAINS,
    PRODUCTION_DOMAIN,
    STRONG_CTA_SUGGESTION,
    UNSEPARATED_NUMBER_MIN_DIGITS,
    WEAK_CTA_PHRASES,
)
from models import Issue, Severity

_CURRENCY_RE = re.compile(rf"\b({'|'.join(CURRENCY_CODES)})(\d+(?:[.,]\d+)*)")
_LONG_NUMBER_RE = re.compile(rf"\b\d{{{UNSEPARATED_NUMBER_MIN_DIGITS},}}\b")
_MERGE_FIELD_RE = re.compile(r"\[Field:(\s*)([^\]]*)\]")
_CONTEXT_BOUNDARIES = ".!?\n<>"

_FONT_FAMILY_RE = re.compile(r"font-family:\s*([^;}\n\"]+|\"[^\"]*\"[^;}\n]*)", re.IGNORECASE)
_COLOR_RE = re.compile(r"(?<![-\w])(?:color|background-color|background|border-color):\s*(#[0-9a-fA-F]{6})\b", re.IGNORECASE)
_STAGING_RE = re.compile(
    rf"(?:https?://)?(?:{'|'.join(NON_PRODUCTION_SUBDOMAINS)})\.{re.escape(PRODUCTION_DOMAIN)}",
    re.IGNORECASE,
)


# ── Numerical formats ─────────────────────────────────────────────────────────

def check_numerical_formats(text: str) -> list[Issue]:
    if not text:
        return []
    issues: list[Issue] = []

    for match in _CURRENCY_RE.finditer(text):
        code, amount = match.group(1), match.group(2)
        issues.append(Issue(
            rule_id="currency_format_001",
            type="numerical_format",
            category="numerical_format",
            severity=Severity.HIGH,
            message=f"Currency code must be separated from the amount: {code} {amount}",
            original=match.group(0),
            suggestion=f"{code} {amount}",
            position=match.start(),
            length=len(match.group(0)),
            context=_token_context(text, match.start(), match.end()),
        ))

    for match in _LONG_NUMBER_RE.finditer(text):
        digits = match.group(0)
        if digits.startswith("0"):
            continue  # zero-padded codes are identifiers, not amounts
        issues.append(Issue(
            rule_id="number_format_001",
            type="numerical_format",
            category="numerical_format",
            severity=Severity.MEDIUM,
            message="Large numbers should use thousands separators",
            original=digits,
            suggestion=f"{int(digits):,}",
            position=match.start(),
            length=len(digits),
            context=_token_context(text, match.start(), match.end()),
        ))

    return issues


# ── Calls to action ───────────────────────────────────────────────────────────

def check_cta(text: str) -> list[Issue]:
    """At most one issue: the first catalogue phrase present in the text."""
    if not text:
        return []
    for phrase, message in WEAK_CTA_PHRASES:
        match = re.search(rf"\b{re.escape(phrase)}\b", text, re.IGNORECASE)
        if match:
            return [Issue(
                rule_id="cta_optimization",
                type="cta",
                category="cta",
                severity=Severity.MEDIUM,
                message=message,
                original=match.group(0),
                suggestion=STRONG_CTA_SUGGESTION,
                position=match.start(),
                length=len(match.group(0)),
                context=_token_context(text, match.start(), match.end()),
            )]
    return []


# ── Merge fields ──────────────────────────────────────────────────────────────

def validate_merge_fields(
    text: str,
    whitelist: list[str] = MERGE_FIELD_WHITELIST,
) -> list[Issue]:
    """
    Validate `[Field: Name]` personalization tokens.

    Exactly one space must follow the colon. Names are matched against the
    whitelist exactly; a name that only differs in case or spacing is a
    critical mismatch, anything else is flagged for review.
    """
    if not text:
        return []

    canonical = {_field_key(name): name for name in whitelist}
    allowed = set(whitelist)
    issues: list[Issue] = []

    for match in _MERGE_FIELD_RE.finditer(text):
        spacing, raw_name = match.group(1), match.group(2)
        name = raw_name.strip()
        if not name:
            continue
        token = match.group(0)
        start, end = match.start(), match.end()

        if spacing != " ":
            problem = "Missing space" if not spacing else "Unexpected whitespace"
            issues.append(Issue(
                rule_id="variable_format_001",
                type="variable_format",
                category="variable_format",
                severity=Severity.CRITICAL,
                message=f"{problem} after 'Field:' in {token}",
                original=token,
                suggestion=f"[Field: {name}]",
                position=start,
                length=end - start,
                found=token,
                context=_token_context(text, start, end),
            ))
            continue

        if name in allowed:
            continue

        if _field_key(name) in canonical:
            expected = canonical[_field_key(name)]
            issues.append(Issue(
                rule_id="variable_format_002",
                type="variable_format",
                category="variable_format",
                severity=Severity.CRITICAL,
                message=f"Field name '{name}' must match '{expected}' exactly (case-sensitive)",
                original=token,
                suggestion=f"[Field: {expected}]",
                position=start,
                length=end - start,
                found=token,
                context=_token_context(text, start, end),
            ))
        else:
            lo = max(0, start - MERGE_FIELD_NAME_CONTEXT_CHARS)
            hi = min(len(text), end + MERGE_FIELD_NAME_CONTEXT_CHARS)
            issues.append(Issue(
                rule_id="variable_format_003",
                type="variable_format",
                category="variable_format",
                severity=Severity.MEDIUM,
                message=f"Unrecognized field name '{name}'; verify it exists in the sending platform",
                original=token,
                suggestion=f"Approved fields: {', '.join(whitelist)}",
                position=start,
                length=end - start,
                found=token,
                context=re.sub(r"\s+", " ", text[lo:hi]).strip(),
            ))

    return issues


def _field_key(name: str) -> str:
    return re.sub(r"\s+", "", name).lower()


def _token_context(text: str, start: int, end: int) -> str:
    """The sentence or tag text enclosing a token, capped in length."""
    left = text[max(0, start - 100):start]
    right = text[end:end + 100]

    cut = max(left.rfind(c) for c in _CONTEXT_BOUNDARIES)
    if cut >= 0:
        left = left[cut + 1:]
    cuts = [p for p in (right.find(c) for c in _CONTEXT_BOUNDARIES) if p >= 0]
    if cuts:
        right = right[:min(cuts)]

    token = text[start:end]
    budget = max(0, MERGE_FIELD_CONTEXT_MAX_CHARS - len(token))
    if len(left) + len(right) > budget:
        left = left[-(budget // 2):] if budget // 2 else ""
        right = right[:budget - len(left)]
    return re.sub(r"\s+", " ", left + token + right).strip()


# ── Template-only brand checks ────────────────────────────────────────────────

def validate_font_family(html: str, file_name: str = "") -> list[Issue]:
    """Fonts follow the content's script; pb_font files use their own family."""
    if not html:
        return []
    is_prefixed_file = file_name.lower().startswith(BRAND_FONT_FILE_PREFIX)
    issues: list[Issue] = []

    for match in _FONT_FAMILY_RE.finditer(html):
        family = match.group(1).replace('"', "").replace("'", "").strip()
        if not family:
            continue
        lowered = family.lower()
        window = html[max(0, match.start() - LOCALE_WINDOW_CHARS): match.start() + LOCALE_WINDOW_CHARS]
        non_latin = bool(is_non_latin_context(window))

        if non_latin:
            if lowered in GENERIC_FALLBACK_FONTS:
                continue
            if BRAND_FONT_NON_LATIN.lower() not in lowered:
                issues.append(_font_issue(
                    "font_family_arabic_001",
                    f'Arabic content must use "{BRAND_FONT_NON_LATIN}, sans-serif"',
                    family, f"{BRAND_FONT_NON_LATIN}, sans-serif", match.start(),
                ))
            continue

        if is_prefixed_file:
            if BRAND_FONT_FILE_PREFIX_FONT.lower() not in lowered and "sans-serif" not in lowered:
                issues.append(_font_issue(
                    "font_family_pb_001",
                    f'{BRAND_FONT_FILE_PREFIX} files must use "{BRAND_FONT_FILE_PREFIX_FONT}, sans-serif"',
                    family, f"{BRAND_FONT_FILE_PREFIX_FONT}, sans-serif", match.start(),
                ))
        elif BRAND_FONT_PRIMARY.lower() not in lowered and BRAND_FONT_NON_LATIN.lower() not in lowered:
            issues.append(_font_issue(
                "font_family_regular_001",
                f'Templates must use "{BRAND_FONT_PRIMARY}"',
                family, f"{BRAND_FONT_PRIMARY}, sans-serif", match.start(),
            ))

    return issues


def _font_issue(rule_id: str, message: str, family: str, suggestion: str, position: int) -> Issue:
    return Issue(
        rule_id=rule_id,
        type="brand_compliance",
        category="brand_compliance",
        severity=Severity.CRITICAL,
        message=message,
        original=family,
        suggestion=suggestion,
        position=position,
        found=f"font-family: {family}",
    )


def validate_colors(html: str, palette: list[str] = BRAND_COLORS) -> list[Issue]:
    if not html:
        return []
    allowed = {c.lower() for c in palette}
    issues: list[Issue] = []
    for match in _COLOR_RE.finditer(html):
        color = match.group(1)
        if color.lower() in allowed:
            continue
        issues.append(Issue(
            rule_id="color_validation_001",
            type="brand_compliance",
            category="brand_compliance",
            severity=Severity.HIGH,
            message=f"Colour {color} is not in the brand palette",
            original=color,
            suggestion=f"Use a brand colour: {', '.join(palette)}",
            position=match.start(1),
            found=color,
        ))
    return issues


def validate_production_urls(html: str) -> list[Issue]:
    if not html:
        return []
    return [
        Issue(
            rule_id="staging_url_001",
            type="deployment",
            category="broken_links",
            severity=Severity.CRITICAL,
            message="Non-production URL detected; templates must link to production",
            original=match.group(0),
            suggestion=f"Replace with www.{PRODUCTION_DOMAIN}",
            position=match.start(),
            found=match.group(0),
        )
        for match in _STAGING_RE.finditer(html)
    ]
