"""
Acquisition error types.
"""
from __future__ import annotations

from typing import Optional

from models import FailureClass, ScrapeAttempt


class AcquisitionError(Exception):
    """Base for every terminal acquisition outcome other than success."""

    code = "ACQUISITION_FAILED"

    def __init__(
        self,
        message: str,
        classification: str = FailureClass.UNKNOWN,
        attempts: Optional[list[ScrapeAttempt]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.classification = classification
        self.attempts = list(attempts or [])

    @property
    def tiers_attempted(self) -> list[int]:
        return sorted({a.tier for a in self.attempts})


class ContentAcquisitionError(AcquisitionError):
    """Genuine or unclassified failure; surfaced as-is with no escalation."""

    code = "FETCH_FAILED"


class ManualSubmissionRequired(AcquisitionError):
    """Every automated tier failed; the user must paste the content."""

    code = "MANUAL_PASTE_REQUIRED"

    def __init__(self, message: str, final_reason: str, attempts: Optional[list[ScrapeAttempt]] = None):
        super().__init__(message, FailureClass.DEFENSE, attempts)
        self.final_reason = final_reason
