"""
Grammar and tone review through the LLM provider.

Review is advisory: any provider failure (missing key, open circuit, bad JSON,
network error) yields an empty ContentReview and is only logged.
"""
from __future__ import annotations

from typing import Any, Optional

from config import NON_LATIN_LANGUAGE
from generative.base import LLMProvider
from log_config import get_logger
from models import ContentReview, Issue, Severity

logger = get_logger("generative.reviewer")

MAX_REVIEW_CHARS = 12_000

SYSTEM_INSTRUCTION = "You are an expert content checker for marketing materials."

_RETURN_FORMAT = """{
  "grammarIssues": [{"type": "grammar", "message": "...", "original": "...", "suggestion": "...", "severity": "high|medium|low"}],
  "brandIssues": [{"type": "brand", "message": "...", "original": "...", "suggestion": "...", "severity": "high|medium|low"}],
  "toneAnalysis": {"professionalism": 1-10, "clarity": 1-10, "summary": "..."},
  "suggestions": ["suggestion 1", "suggestion 2"]
}"""

ENGLISH_PROMPT = """Check this marketing content for issues. Return JSON only.

Text: {text}

Analyze for:
1. Grammar and spelling errors
2. Tone and professionalism
3. Content quality

Return format:
{fmt}"""

ARABIC_PROMPT = """تحقق من هذا المحتوى التسويقي. أرجع بصيغة JSON فقط.

النص: {text}

قم بالتحليل:
1. الأخطاء النحوية والإملائية
2. النبرة والاحترافية
3. جودة المحتوى

صيغة الإرجاع:
{fmt}"""


class ContentReviewer:
    """(text, language) → ContentReview; never raises."""

    def __init__(self, provider: Optional[LLMProvider] = None):
        self._provider = provider

    @property
    def provider(self) -> Optional[LLMProvider]:
        if self._provider is None:
            from generative.factory import get_provider
            try:
                self._provider = get_provider()
            except ValueError as exc:
                logger.warning("No LLM provider available: %s", exc)
        return self._provider

    def review(self, text: str, language: str = "en") -> ContentReview:
        if not text or not text.strip():
            return ContentReview()
        provider = self.provider
        if provider is None:
            return _unavailable("Generative review not configured")

        template = ARABIC_PROMPT if language == NON_LATIN_LANGUAGE else ENGLISH_PROMPT
        prompt = template.format(text=text[:MAX_REVIEW_CHARS], fmt=_RETURN_FORMAT)
        try:
            data = provider.generate_json(prompt, system_instruction=SYSTEM_INSTRUCTION, temperature=0.3)
        except Exception as exc:
            logger.warning("Content review degraded: %s", exc, extra={"error": type(exc).__name__})
            return _unavailable("Error checking content")

        return ContentReview(
            grammar_issues=_to_issues(data.get("grammarIssues"), "ai_grammar", "grammar"),
            brand_issues=_to_issues(data.get("brandIssues"), "ai_brand", "brand_voice"),
            tone_analysis=data.get("toneAnalysis") if isinstance(data.get("toneAnalysis"), dict) else {},
            suggestions=[str(s) for s in data.get("suggestions") or [] if s],
        )


def _unavailable(message: str) -> ContentReview:
    return ContentReview(tone_analysis={"score": 0, "message": message})


def _to_issues(items: Any, rule_id: str, default_category: str) -> list[Issue]:
    if not isinstance(items, list):
        return []
    issues: list[Issue] = []
    for item in items:
        if not isinstance(item, dict) or not item.get("message"):
            continue
        issue_type = str(item.get("type") or default_category)
        issues.append(Issue(
            rule_id=rule_id,
            type=issue_type,
            category=str(item.get("category") or default_category),
            severity=Severity.normalize(item.get("severity")),
            message=str(item["message"]),
            original=str(item.get("original") or ""),
            suggestion=item.get("suggestion") or None,
        ))
    return issues
