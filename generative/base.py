"""
LLM Provider — Abstract Interface

All generative calls go through this interface. Swap providers
by changing COMPLIANCE_LLM_PROVIDER in env.
"""
from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from typing import Optional


class Grounding:
    """Optional tool a provider attaches to a request."""
    URL_CONTEXT   = "url_context"
    GOOGLE_SEARCH = "google_search"


_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


class LLMProvider(ABC):
    """Abstract base for LLM providers."""

    @abstractmethod
    def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: float = 0.7,
        json_mode: bool = False,
        grounding: Optional[str] = None,
    ) -> str:
        """Generate a text response from the LLM."""
        ...

    def generate_json(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: float = 0.3,
        grounding: Optional[str] = None,
    ) -> dict:
        """Generate and parse a JSON object response."""
        text = self.generate(
            prompt=prompt,
            system_instruction=system_instruction,
            temperature=temperature,
            # Grounded requests cannot force a JSON mime type
            json_mode=grounding is None,
            grounding=grounding,
        )
        return parse_json_object(text)


def parse_json_object(text: str) -> dict:
    """Parse an LLM reply, tolerating markdown fences and surrounding prose."""
    cleaned = (text or "").strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.split("\n", 1)[-1].rsplit("```", 1)[0].strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        match = _JSON_OBJECT_RE.search(cleaned)
        if not match:
            raise ValueError(f"LLM returned no JSON object. Raw response: {cleaned[:300]}")
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise ValueError(
                f"LLM returned invalid JSON: {e}. Raw response: {cleaned[:300]}"
            ) from e
    if not isinstance(data, dict):
        raise ValueError(f"LLM returned {type(data).__name__}, expected an object")
    return data
