"""
Global configuration constants for the Content Compliance Checker.
All tunable thresholds live here; runtime settings come from the environment.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

# ── Scoring ───────────────────────────────────────────────────────────────────
# Penalty per issue instance; score = max(0, 100 - sum(weight * count))
SEVERITY_WEIGHTS: dict[str, int] = {
    "critical": 20,
    "high":     10,
    "medium":    5,
    "low":       2,
}

# Ordered substring → bucket mapping used to categorize issues
ISSUE_CATEGORY_BUCKETS: list[tuple[tuple[str, ...], str]] = [
    (("grammar", "spelling"),   "grammar"),
    (("link", "url", "utm"),    "links"),
    (("image",),                "images"),
    (("cta",),                  "cta"),
    (("tone",),                 "tone"),
    (("legal",),                "legal"),
    (("accessibility",),        "accessibility"),
    (("numerical", "number"),   "numerical"),
]
DEFAULT_ISSUE_BUCKET = "brand"

ISSUE_BUCKETS = [
    "grammar", "brand", "numerical", "links", "images",
    "cta", "tone", "legal", "accessibility",
]

# ── Rule engine ───────────────────────────────────────────────────────────────
EXCEPTION_WINDOW_CHARS = 100            # ± chars searched for context exceptions
CONTENT_TYPES = ("edm", "web", "social", "document")

DEFAULT_RULES_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "rules_engine", "brand_rules.yaml")

# ── Numerical formats ─────────────────────────────────────────────────────────
CURRENCY_CODES = ("AED", "USD", "EUR", "GBP")
UNSEPARATED_NUMBER_MIN_DIGITS = 5

# ── Call-to-action ────────────────────────────────────────────────────────────
WEAK_CTA_PHRASES: list[tuple[str, str]] = [
    ("click here", "Weak CTA detected: 'Click here'"),
    ("learn more", "Weak CTA detected: 'Learn more'"),
    ("read more",  "Weak CTA detected: 'Read more'"),
    ("submit",     "Weak CTA detected: 'Submit'"),
]
STRONG_CTA_SUGGESTION = 'Use action-oriented CTAs: "Apply Now", "Start Earning", "Get Your Quote"'

# ── Merge fields ──────────────────────────────────────────────────────────────
MERGE_FIELD_WHITELIST = [
    "First Name",
    "Last Name",
    "Pseudo ID",
    "Email",
    "Phone",
    "Customer CIF - Masked",
    "Personalization Field1",
    "Personalization Field2",
    "Personalization Field3",
    "Personalization Field4",
    "Customer CIF",
    "Customer Name",
    "Account Number",
    "Card Number",
    "Mobile Number",
    "Branch Name",
    "Offer Date",
    "Expiry Date",
]
MERGE_FIELD_CONTEXT_MAX_CHARS = 150
MERGE_FIELD_NAME_CONTEXT_CHARS = 30

# ── Template brand guidelines ─────────────────────────────────────────────────
BRAND_FONT_PRIMARY = "Plus Jakarta Sans"
BRAND_FONT_NON_LATIN = "Tajawal"
BRAND_FONT_FILE_PREFIX = "pb_font"
BRAND_FONT_FILE_PREFIX_FONT = "IBM Plex Sans"
GENERIC_FALLBACK_FONTS = ("sans-serif", "arial", "helvetica")
BRAND_COLORS = [
    "#072447", "#FFFFFF", "#E8E7EC", "#E7E8EA",
    "#ECEAEA", "#666666", "#FFF", "#000",
]
PRODUCTION_DOMAIN = "emiratesnbd.com"
NON_PRODUCTION_SUBDOMAINS = ("staging", "test", "dev", "qa")

# Rule-id prefixes that only make sense for uploaded templates
TEMPLATE_ONLY_RULE_PREFIXES = (
    "variable_format",
    "font_family",
    "color_validation",
    "staging_url",
    "template_",
    "edm_",
)
# Categories whose low/medium findings are suppressed on public pages
URL_SOFT_CATEGORIES = ("cta", "tone")

# ── Links ─────────────────────────────────────────────────────────────────────
LOCALE_WINDOW_CHARS = 500               # ± chars of markup inspected for locale
NON_LATIN_RATIO_THRESHOLD = 0.3
NON_LATIN_LOCALE_SEGMENTS = ("/ar/", "/arabic/")
LATIN_LOCALE_SEGMENTS = ("/en/", "/english/")
PLACEHOLDER_HREFS = ("#", "javascript:void(0)", "javascript:;")
TRACKING_PIXEL_PREFIX = "data:image/gif;base64,R0lGOD"
UTM_SUGGESTION = "Add UTM parameters: ?utm_source=edm&utm_medium=email&utm_campaign=campaign_name"
NON_DESCRIPTIVE_LINK_TEXT = ("click here", "here")

# Registered domains exempt from locale matching
SOCIAL_MEDIA_DOMAINS = {
    "twitter.com",
    "x.com",
    "instagram.com",
    "linkedin.com",
    "youtube.com",
    "youtu.be",
    "facebook.com",
    "fb.com",
    "snapchat.com",
    "tiktok.com",
}

# ── Bilingual ─────────────────────────────────────────────────────────────────
LATIN_LANGUAGE = "en"
NON_LATIN_LANGUAGE = "ar"
SECTION_ANCHOR_NAMES = ("m_arabic", "arabic")
# Elements that start a new line of visible text
BLOCK_TAGS = (
    "table", "tr", "td", "th", "div", "p", "br", "hr", "li", "ul", "ol",
    "h1", "h2", "h3", "h4", "h5", "h6", "section", "article", "header",
    "footer", "main", "aside", "blockquote", "center", "form",
)

# ── Acquisition ───────────────────────────────────────────────────────────────
DEFAULT_REQUEST_TIMEOUT = 15            # seconds
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9,ar;q=0.8",
}
MARKUP_CONTENT_TYPES = ("text/html", "application/xhtml+xml")

# HTTP statuses that indicate active blocking
DEFENSE_STATUS_CODES = (403, 429)

# Bot-mitigation pages, matched case-insensitively against the response body
CHALLENGE_SIGNATURES = [
    "cf-browser-verification",
    "cf-challenge",
    "challenges.cloudflare.com",
    "just a moment...",
    "attention required! | cloudflare",
    "_incapsula_resource",
    "px-captcha",
    "ddos protection by",
    "checking your browser before accessing",
    "akamai bot manager",
]
# Matched only in error responses
BLOCK_TEXT_MARKERS = ["blocked", "forbidden", "captcha", "access denied"]

# Elements stripped before text extraction (metadata is read first)
NON_CONTENT_SELECTORS = [
    "script", "style", "noscript", "template", "iframe",
    "nav", "footer",
    "div[class*='cookie']", "div[id*='cookie']", "section[class*='cookie']",
    "div[class*='consent']", "div[id*='consent']",
    "div[class*='advert']", "div[id*='advert']", "aside[class*='advert']",
    "div.ad", "div.ads", "div[class*='gdpr']",
]
ASSISTED_TEMPERATURE = 0.1

# ── SEO thresholds ────────────────────────────────────────────────────────────
TITLE_MIN_CHARS = 30
TITLE_MAX_CHARS = 60
DESCRIPTION_MIN_CHARS = 100
DESCRIPTION_MAX_CHARS = 160
H1_MIN_LENGTH = 20
H1_MAX_LENGTH = 70
DESCRIPTION_CTA_WORDS = [
    "discover", "learn", "find", "get", "explore",
    "see", "try", "shop", "buy", "download", "apply",
]
REQUIRED_OG_TAGS = ["og:title", "og:description", "og:image", "og:url"]
REQUIRED_TWITTER_TAGS = ["twitter:card", "twitter:title", "twitter:description"]

# Schema types recommended per URL category
SCHEMA_RECOMMENDATIONS: dict[str, list[str]] = {
    "product":  ["Product"],
    "offer":    ["Offer"],
    "campaign": ["Organization", "WebPage"],
}
URL_CATEGORIES = ["product", "offer", "campaign", "others"]

# ── SEO composite weights (sum to 100) ────────────────────────────────────────
SEO_WEIGHTS: dict[str, float] = {
    "title":       15,
    "description": 15,
    "open_graph":  10,
    "twitter":      5,
    "technical":   20,
    "headings":    15,
    "schema":      10,
    "images":      10,
}

# ── Aggregator ────────────────────────────────────────────────────────────────
DEFAULT_MAX_WORKERS = 6
TEXT_PREVIEW_CHARS = 500


# ── Runtime settings ──────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Settings:
    """Immutable runtime settings read from the environment."""

    LLM_PROVIDER: str = os.getenv("COMPLIANCE_LLM_PROVIDER", "gemini")
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

    RULES_PATH: str = os.getenv("COMPLIANCE_RULES_PATH", DEFAULT_RULES_PATH)
    RESULTS_DIR: str = os.getenv("COMPLIANCE_RESULTS_DIR", "results")
    REQUEST_TIMEOUT: int = int(os.getenv("COMPLIANCE_REQUEST_TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT)))

    LOG_LEVEL: str = os.getenv("COMPLIANCE_LOG_LEVEL", "INFO").upper()
    LOG_FORMAT: str = os.getenv("COMPLIANCE_LOG_FORMAT", "json")  # "json" or "text"


settings = Settings()
