"""
Tier-1 direct HTTP fetcher and failure classification.

A fetch is a single GET with browser-like headers; redirects are followed by
requests and recorded from the response history. Nothing here retries: the
pipeline decides whether a failure justifies the next tier, and it decides
from classify_failure() alone.
"""
from __future__ import annotations

import time
from typing import Optional

import requests

from config import (
    BLOCK_TEXT_MARKERS,
    BROWSER_HEADERS,
    CHALLENGE_SIGNATURES,
    DEFAULT_REQUEST_TIMEOUT,
    DEFENSE_STATUS_CODES,
    MARKUP_CONTENT_TYPES,
)
from models import DirectFetch, FailureClass

# Exceptions that mean the site is unreachable or the URL is unusable
_GENUINE_EXCEPTIONS = (
    requests.exceptions.ConnectionError,      # DNS, refused, reset, SSL, proxy
    requests.exceptions.Timeout,
    requests.exceptions.TooManyRedirects,     # redirect loops end here
    requests.exceptions.InvalidURL,
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidSchema,
)


def make_session() -> requests.Session:
    session = requests.Session()
    adapter = requests.adapters.HTTPAdapter(
        max_retries=requests.adapters.Retry(total=0, raise_on_status=False)
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update(BROWSER_HEADERS)
    return session


# ── Classification ────────────────────────────────────────────────────────────

def is_markup(content_type: str) -> bool:
    """True for HTML-ish content types. A missing header is given the benefit of the doubt."""
    if not content_type:
        return True
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type in MARKUP_CONTENT_TYPES


def is_challenge_page(body: str) -> bool:
    lowered = (body or "").lower()
    return any(sig in lowered for sig in CHALLENGE_SIGNATURES)


def classify_failure(
    exception: Optional[BaseException] = None,
    status_code: int = 0,
    body: str = "",
    content_type: str = "",
) -> str:
    """
    Map a failed retrieval onto FailureClass.

    Only active blocking (403/429, a bot-challenge page, or a block marker in
    an error response) is DEFENSE. Unreachable hosts, unusable URLs and
    non-markup responses are GENUINE. Everything else is UNKNOWN.
    """
    if exception is not None:
        if isinstance(exception, _GENUINE_EXCEPTIONS):
            return FailureClass.GENUINE
        return FailureClass.UNKNOWN

    if status_code in DEFENSE_STATUS_CODES:
        return FailureClass.DEFENSE
    if is_challenge_page(body):
        return FailureClass.DEFENSE
    if status_code >= 400:
        lowered = (body or "").lower()
        if any(marker in lowered for marker in BLOCK_TEXT_MARKERS):
            return FailureClass.DEFENSE
        return FailureClass.UNKNOWN
    if not is_markup(content_type):
        return FailureClass.GENUINE
    return FailureClass.UNKNOWN


# ── Fetch ─────────────────────────────────────────────────────────────────────

def fetch_direct(
    url: str,
    session: requests.Session,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
) -> DirectFetch:
    """
    GET a URL once. Never raises for network problems: the outcome, including
    its failure class, is carried on the returned DirectFetch.
    """
    fetch = DirectFetch(url=url, final_url=url)
    t0 = time.perf_counter()
    try:
        resp = session.get(url, timeout=timeout, allow_redirects=True)
    except requests.exceptions.SSLError as exc:
        return _failed(fetch, t0, f"SSL Error: {exc}", exc)
    except requests.exceptions.ConnectionError as exc:
        return _failed(fetch, t0, f"Connection Error: {exc}", exc)
    except requests.exceptions.Timeout as exc:
        return _failed(fetch, t0, f"Request timed out after {timeout}s", exc)
    except requests.exceptions.TooManyRedirects as exc:
        return _failed(fetch, t0, "Too many redirects (possible redirect loop)", exc)
    except requests.exceptions.RequestException as exc:
        return _failed(fetch, t0, f"Request failed: {exc}", exc)

    fetch.elapsed_ms = (time.perf_counter() - t0) * 1000
    fetch.status_code = resp.status_code
    fetch.final_url = resp.url or url
    fetch.redirect_chain = [r.url for r in resp.history]
    fetch.content_type = resp.headers.get("content-type", "").lower()
    body = resp.text if is_markup(fetch.content_type) or resp.status_code >= 400 else ""

    if 200 <= resp.status_code < 300 and is_markup(fetch.content_type) and not is_challenge_page(body):
        fetch.html = body
        return fetch

    fetch.failure = classify_failure(
        status_code=resp.status_code, body=body, content_type=fetch.content_type,
    )
    if resp.status_code >= 400:
        fetch.error = f"HTTP {resp.status_code}"
    elif not is_markup(fetch.content_type):
        fetch.error = f"Not an HTML page ({fetch.content_type})"
    else:
        fetch.error = "Bot challenge page returned"
    return fetch


def _failed(fetch: DirectFetch, t0: float, message: str, exc: BaseException) -> DirectFetch:
    fetch.elapsed_ms = (time.perf_counter() - t0) * 1000
    fetch.error = message
    fetch.failure = classify_failure(exception=exc)
    return fetch
