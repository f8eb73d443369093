"""
Tier-2 acquisition: ask the generative provider to read the page for us.

Two grounding strategies are tried in order. The first asks the model to
open the URL itself; the second falls back to search grounding, which still
works for pages that refuse the model's own fetcher.
"""
from __future__ import annotations

import html
from typing import Any, Optional

from config import ASSISTED_TEMPERATURE
from generative.base import Grounding, LLMProvider
from log_config import get_logger
from models import AssistedExtraction

logger = get_logger("crawler.assisted")

MAX_HEADINGS = 10
MAX_LINKS = 20

URL_CONTEXT_PROMPT = """Extract the content from this webpage: {url}

Return a JSON object with:
- title: The page title
- metaDescription: The meta description, if available
- h1: Array of H1 headings
- h2: Array of H2 headings (max {max_headings})
- h3: Array of H3 headings (max {max_headings})
- links: Array of important link URLs (max {max_links})
- text: The main text content of the page, in full

Return ONLY valid JSON, no markdown formatting."""

SEARCH_PROMPT = """Find and extract the content of this webpage: {url}

Return a JSON object with title, metaDescription, h1 (array), h2 (array),
h3 (array), links (array of URLs) and text (the main page content).

Return ONLY valid JSON, no markdown formatting."""

STRATEGIES = (
    (Grounding.URL_CONTEXT, URL_CONTEXT_PROMPT),
    (Grounding.GOOGLE_SEARCH, SEARCH_PROMPT),
)


class AssistedExtractionError(Exception):
    """Every assisted strategy failed for a URL."""


class AssistedExtractor:
    def __init__(self, provider: Optional[LLMProvider] = None):
        self._provider = provider

    @property
    def provider(self) -> LLMProvider:
        if self._provider is None:
            from generative.factory import get_provider
            self._provider = get_provider()
        return self._provider

    def extract(self, url: str) -> AssistedExtraction:
        """Return the page content, or raise AssistedExtractionError."""
        try:
            provider = self.provider
        except ValueError as exc:
            raise AssistedExtractionError(f"No generative provider configured: {exc}") from exc
        if not getattr(provider, "available", True):
            raise AssistedExtractionError("Generative provider has no API key")

        failures: list[str] = []
        for grounding, template in STRATEGIES:
            prompt = template.format(url=url, max_headings=MAX_HEADINGS, max_links=MAX_LINKS)
            try:
                data = provider.generate_json(
                    prompt, temperature=ASSISTED_TEMPERATURE, grounding=grounding,
                )
            except Exception as exc:
                logger.warning(
                    "Assisted strategy %s failed: %s", grounding, exc,
                    extra={"url": url, "method": grounding, "error": type(exc).__name__},
                )
                failures.append(f"{grounding}: {exc}")
                continue

            extraction = _from_payload(data, grounding)
            if not (extraction.text or extraction.title):
                failures.append(f"{grounding}: empty extraction")
                continue
            logger.info("Assisted extraction succeeded", extra={"url": url, "method": grounding})
            return extraction

        raise AssistedExtractionError("; ".join(failures) or "no strategy produced content")


def _from_payload(data: dict[str, Any], strategy: str) -> AssistedExtraction:
    return AssistedExtraction(
        title=str(data.get("title") or "").strip(),
        meta_description=str(data.get("metaDescription") or "").strip(),
        h1=_str_list(data.get("h1")),
        h2=_str_list(data.get("h2"))[:MAX_HEADINGS],
        h3=_str_list(data.get("h3"))[:MAX_HEADINGS],
        links=_str_list(data.get("links"))[:MAX_LINKS],
        text=str(data.get("text") or "").strip(),
        strategy=strategy,
    )


def _str_list(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if v and str(v).strip()]


def to_html(extraction: AssistedExtraction) -> str:
    """Render an extraction as a minimal document the analyzers can parse."""
    esc = html.escape
    head = [f"<title>{esc(extraction.title)}</title>"]
    if extraction.meta_description:
        head.append(f'<meta name="description" content="{esc(extraction.meta_description)}">')

    body: list[str] = []
    for level in ("h1", "h2", "h3"):
        for heading in getattr(extraction, level):
            body.append(f"<{level}>{esc(heading)}</{level}>")
    for link in extraction.links:
        body.append(f'<a href="{esc(link)}">{esc(link)}</a>')
    for paragraph in extraction.text.split("\n\n"):
        if paragraph.strip():
            body.append(f"<p>{esc(paragraph.strip())}</p>")

    return (
        "<!DOCTYPE html><html><head>" + "".join(head) + "</head><body>"
        + "\n".join(body) + "</body></html>"
    )
