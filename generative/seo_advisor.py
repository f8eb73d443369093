"""
SEO recommendations from the LLM provider. Degrades to an empty SeoAdvice.
"""
from __future__ import annotations

from typing import Any, Optional

from generative.base import LLMProvider
from log_config import get_logger
from models import SeoAdvice, SeoReport

logger = get_logger("generative.seo_advisor")

SYSTEM_INSTRUCTION = (
    "You are an expert SEO consultant for retail banking content. "
    "Provide actionable, specific recommendations."
)

_CATEGORY_FOCUS = {
    "product":  "Product-specific SEO (pricing, features, benefits)",
    "offer":    "Promotional SEO (value proposition, validity, terms)",
    "campaign": "Campaign SEO (brand awareness, engagement)",
}

PROMPT = """Analyze this webpage's SEO and provide specific, actionable recommendations.

URL type: {category}

Current SEO data:
- Title: "{title}" ({title_len} chars)
- Meta description: "{description}" ({description_len} chars)
- H1: {h1}
- Open Graph: {og}
- Twitter Card: {twitter}
- Schema markup: {schema}
- Overall score: {score}/100

Page content preview: {preview}

Return JSON only:
{{
  "titleSuggestion": "improved title, 50-60 chars",
  "descriptionSuggestion": "improved meta description, 150-160 chars, with a call to action",
  "keywordOpportunities": ["keyword 1", "keyword 2"],
  "contentSuggestions": ["suggestion about structure", "suggestion about headings"],
  "schemaSuggestions": ["schema to add for {category} pages"]
}}

Focus on:
1. Banking and financial services keywords
2. Arabic and English bilingual optimization
3. {focus}
4. Mobile-first considerations
5. Local SEO for the UAE market"""


class SeoAdvisor:
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

    def advise(self, report: SeoReport, page_text: str = "") -> SeoAdvice:
        provider = self.provider
        if provider is None or not report.findings:
            return SeoAdvice()
        try:
            data = provider.generate_json(
                _build_prompt(report, page_text),
                system_instruction=SYSTEM_INSTRUCTION,
                temperature=0.4,
            )
        except Exception as exc:
            logger.warning("SEO advice degraded: %s", exc, extra={"error": type(exc).__name__})
            return SeoAdvice()

        return SeoAdvice(
            title_suggestion=str(data.get("titleSuggestion") or ""),
            description_suggestion=str(data.get("descriptionSuggestion") or ""),
            keyword_opportunities=_str_list(data.get("keywordOpportunities")),
            content_suggestions=_str_list(data.get("contentSuggestions")),
            schema_suggestions=_str_list(data.get("schemaSuggestions")),
        )


def _build_prompt(report: SeoReport, page_text: str) -> str:
    f = report.findings
    title = f["title"].data if "title" in f else {}
    desc = f["description"].data if "description" in f else {}
    h1s = f["headings"].data.get("h1", []) if "headings" in f else []
    types = f["schema"].data.get("types", []) if "schema" in f else []
    return PROMPT.format(
        category=report.url_category,
        title=title.get("text", ""),
        title_len=title.get("length", 0),
        description=desc.get("text", ""),
        description_len=desc.get("length", 0),
        h1=f'"{h1s[0]}"' if h1s else "Missing",
        og="Present" if f.get("open_graph") and f["open_graph"].score else "Missing",
        twitter="Present" if f.get("twitter") and f["twitter"].score else "Missing",
        schema=", ".join(types) or "None",
        score=report.overall_score,
        preview=(page_text or "N/A")[:500],
        focus=_CATEGORY_FOCUS.get(report.url_category, "General page SEO"),
    )


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v]
