"""
Tiered content acquisition.

    tier 1  direct fetch ──ok──────────────────────────────▶ AcquiredContent
              │ genuine / unknown ─▶ ContentAcquisitionError
              │ defense
    tier 2  assisted extraction ──ok───────────────────────▶ AcquiredContent
              │ failed
              ▼
            ManualSubmissionRequired

Tiers run strictly in sequence and each runs at most once per request.
"""
from __future__ import annotations

import time
from typing import Callable, Optional
from urllib.parse import urlparse

import requests

from config import settings
from crawler.assisted import AssistedExtractionError, AssistedExtractor, to_html
from crawler.errors import ContentAcquisitionError, ManualSubmissionRequired
from crawler.fetcher import fetch_direct, make_session
from crawler.parser import parse_document
from log_config import get_logger
from models import AcquiredContent, FailureClass, ScrapeAttempt

logger = get_logger("crawler.pipeline")

DIRECT_TIER = 1
ASSISTED_TIER = 2

MANUAL_PASTE_MESSAGE = (
    "This page blocks automated access. Copy the page content and paste it "
    "into the manual check instead."
)


class ContentAcquisitionPipeline:
    def __init__(
        self,
        session: Optional[requests.Session] = None,
        extractor: Optional[AssistedExtractor] = None,
        timeout: float = settings.REQUEST_TIMEOUT,
    ):
        self._session = session
        self.extractor = extractor or AssistedExtractor()
        self.timeout = timeout

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = make_session()
        return self._session

    def acquire(
        self,
        url: str,
        progress_callback: Optional[Callable[[dict], None]] = None,
    ) -> AcquiredContent:
        url = (url or "").strip()
        if not _is_fetchable(url):
            raise ContentAcquisitionError(f"Invalid URL: {url!r}", FailureClass.GENUINE)

        attempts: list[ScrapeAttempt] = []

        # ── Tier 1: direct ────────────────────────────────────────────────────
        _emit(progress_callback, f"Fetching {url}…", 5)
        fetch = fetch_direct(url, self.session, self.timeout)
        attempts.append(ScrapeAttempt(
            url=url, tier=DIRECT_TIER, method="direct",
            outcome="success" if fetch.ok else fetch.failure,
            elapsed_ms=fetch.elapsed_ms, detail=fetch.error or "",
        ))
        logger.info(
            "Direct fetch finished",
            extra={
                "url": url, "tier": DIRECT_TIER, "status_code": fetch.status_code,
                "classification": fetch.failure or "success",
                "duration_ms": round(fetch.elapsed_ms, 1),
            },
        )

        if fetch.ok:
            _emit(progress_callback, "Parsing page…", 20)
            metadata, text = parse_document(fetch.html, fetch.final_url)
            return AcquiredContent(
                url=url,
                final_url=fetch.final_url,
                html=fetch.html,
                text=text,
                method="direct",
                title=metadata.title,
                metadata=metadata,
                status_code=fetch.status_code,
                content_type=fetch.content_type,
                redirect_chain=fetch.redirect_chain,
                attempts=attempts,
            )

        if fetch.failure != FailureClass.DEFENSE:
            raise ContentAcquisitionError(fetch.error or "Fetch failed", fetch.failure, attempts)

        # ── Tier 2: assisted ──────────────────────────────────────────────────
        logger.warning(
            "Direct fetch blocked, escalating to assisted extraction",
            extra={"url": url, "tier": ASSISTED_TIER, "status_code": fetch.status_code},
        )
        _emit(progress_callback, "Page blocks direct access, trying assisted extraction…", 10)
        t0 = time.perf_counter()
        try:
            extraction = self.extractor.extract(url)
        except AssistedExtractionError as exc:
            attempts.append(ScrapeAttempt(
                url=url, tier=ASSISTED_TIER, method="assisted",
                outcome=FailureClass.DEFENSE,
                elapsed_ms=(time.perf_counter() - t0) * 1000, detail=str(exc),
            ))
            logger.error(
                "All acquisition tiers exhausted",
                extra={"url": url, "tier": ASSISTED_TIER, "error": str(exc)},
            )
            raise ManualSubmissionRequired(
                MANUAL_PASTE_MESSAGE,
                final_reason=f"{fetch.error}; assisted extraction failed: {exc}",
                attempts=attempts,
            ) from exc

        attempts.append(ScrapeAttempt(
            url=url, tier=ASSISTED_TIER, method=f"assisted:{extraction.strategy}",
            outcome="success", elapsed_ms=(time.perf_counter() - t0) * 1000,
        ))
        _emit(progress_callback, "Parsing extracted content…", 20)
        html = to_html(extraction)
        metadata, _ = parse_document(html, url)
        return AcquiredContent(
            url=url,
            final_url=url,
            html=html,
            text=extraction.text,
            method="assisted",
            title=extraction.title or None,
            metadata=metadata,
            status_code=fetch.status_code,
            content_type="text/html",
            attempts=attempts,
        )


def _is_fetchable(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _emit(callback, message: str, pct: int) -> None:
    if callback:
        try:
            callback({"message": message, "pct": pct})
        except Exception:
            pass
