"""
Base class for markup validators.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from bs4 import BeautifulSoup

from models import Issue, Severity


class BaseAnalyzer(ABC):
    """All validators inherit from this class."""

    category: str = "uncategorized"
    issue_type: str = "validation"

    @abstractmethod
    def analyze(self, html: str, **kwargs) -> list[Issue]:
        """Validate a markup document and return a list of issues."""
        ...

    @staticmethod
    def soup(html: str) -> BeautifulSoup:
        # html.parser records sourceline/sourcepos, which the locale checks need
        return BeautifulSoup(html, "html.parser")

    # ── Convenience factory ───────────────────────────────────────────────────

    def _issue(
        self,
        rule_id: str,
        severity: str,
        message: str,
        original: str = "",
        suggestion: Optional[str] = None,
        category: Optional[str] = None,
        issue_type: Optional[str] = None,
        **extra,
    ) -> Issue:
        return Issue(
            rule_id=rule_id,
            type=issue_type or self.issue_type,
            category=category or self.category,
            severity=severity,
            message=message,
            original=original,
            suggestion=suggestion,
            **extra,
        )

    def critical(self, rule_id, message, original="", suggestion=None, **extra) -> Issue:
        return self._issue(rule_id, Severity.CRITICAL, message, original, suggestion, **extra)

    def high(self, rule_id, message, original="", suggestion=None, **extra) -> Issue:
        return self._issue(rule_id, Severity.HIGH, message, original, suggestion, **extra)

    def medium(self, rule_id, message, original="", suggestion=None, **extra) -> Issue:
        return self._issue(rule_id, Severity.MEDIUM, message, original, suggestion, **extra)

    def low(self, rule_id, message, original="", suggestion=None, **extra) -> Issue:
        return self._issue(rule_id, Severity.LOW, message, original, suggestion, **extra)
