"""
Core data models for the Content Compliance Checker.
All modules import from here; nothing else is cross-imported at this level.

NOTE: `from __future__ import annotations` is intentionally omitted here.
Python 3.13.0 has a regression (bpo-121814) where that import causes a crash
in the dataclasses decorator when the module is not yet fully registered in
sys.modules. Python 3.9+ supports generic aliases (list[str], dict[str, Any])
natively, so the future import is unnecessary.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Optional


# ── Severity ──────────────────────────────────────────────────────────────────
class Severity:
    CRITICAL = "critical"
    HIGH     = "high"
    MEDIUM   = "medium"
    LOW      = "low"

    ALL = [CRITICAL, HIGH, MEDIUM, LOW]

    ORDER = {CRITICAL: 0, HIGH: 1, MEDIUM: 2, LOW: 3}

    COLORS = {
        CRITICAL: "#FF4B4B",
        HIGH:     "#FF8800",
        MEDIUM:   "#FFA500",
        LOW:      "#4B9EFF",
    }

    ICONS = {
        CRITICAL: "🔴",
        HIGH:     "🟠",
        MEDIUM:   "🟡",
        LOW:      "🔵",
    }

    @classmethod
    def normalize(cls, value: Any, default: str = LOW) -> str:
        """Map arbitrary input onto the closed severity set."""
        text = str(value or "").strip().lower()
        return text if text in cls.ORDER else default


# ── Language tags ─────────────────────────────────────────────────────────────
class LanguageTag:
    PRIMARY   = "primary"
    SECONDARY = "secondary"
    BOTH      = "both"

    ALL = [PRIMARY, SECONDARY, BOTH]


# ── Acquisition failure classes ───────────────────────────────────────────────
class FailureClass:
    GENUINE = "genuine_network_error"
    DEFENSE = "defense_triggered"
    UNKNOWN = "unknown"

    ALL = [GENUINE, DEFENSE, UNKNOWN]


# ── Rules ──────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Rule:
    id: str
    category: str
    severity: str
    pattern: str
    message: str = ""
    replacement: Optional[str] = None
    suggestion: Optional[str] = None
    context_exceptions: frozenset = frozenset()
    applies_to: frozenset = frozenset()    # empty ⇒ every content type

    def applies(self, content_type: str) -> bool:
        return not self.applies_to or content_type in self.applies_to


# ── Issue model ────────────────────────────────────────────────────────────────
@dataclass
class Issue:
    rule_id: str
    type: str
    category: str
    severity: str          # Severity.CRITICAL / HIGH / MEDIUM / LOW
    message: str
    original: str = ""
    suggestion: Optional[str] = None
    position: Optional[int] = None
    length: Optional[int] = None
    context: Optional[str] = None
    found: Optional[str] = None
    link_text: Optional[str] = None
    language: Optional[str] = None     # LanguageTag, set by the segmenter

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Issue":
        known = {f: data.get(f) for f in cls.__dataclass_fields__ if f in data}
        return cls(**known)


# ── Page acquisition ───────────────────────────────────────────────────────────
@dataclass
class PageMetadata:
    title: Optional[str] = None
    description: Optional[str] = None
    canonical: Optional[str] = None
    robots: Optional[str] = None
    viewport: Optional[str] = None
    lang: Optional[str] = None
    og_tags: dict[str, str] = field(default_factory=dict)
    twitter_tags: dict[str, str] = field(default_factory=dict)


@dataclass
class ScrapeAttempt:
    url: str
    tier: int
    method: str
    outcome: str            # "success" or a FailureClass value
    elapsed_ms: float = 0.0
    detail: str = ""


@dataclass
class DirectFetch:
    """Raw outcome of a single direct HTTP retrieval."""
    url: str
    final_url: str = ""
    status_code: int = 0
    content_type: str = ""
    html: str = ""
    redirect_chain: list[str] = field(default_factory=list)
    elapsed_ms: float = 0.0
    error: Optional[str] = None
    failure: Optional[str] = None       # FailureClass, None on success

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass
class AssistedExtraction:
    title: str = ""
    meta_description: str = ""
    h1: list[str] = field(default_factory=list)
    h2: list[str] = field(default_factory=list)
    h3: list[str] = field(default_factory=list)
    links: list[str] = field(default_factory=list)
    text: str = ""
    strategy: str = ""


@dataclass
class AcquiredContent:
    url: str
    final_url: str
    html: str
    text: str
    method: str                         # "direct" or "assisted"
    title: Optional[str] = None
    metadata: PageMetadata = field(default_factory=PageMetadata)
    status_code: int = 0
    content_type: str = ""
    redirect_chain: list[str] = field(default_factory=list)
    attempts: list[ScrapeAttempt] = field(default_factory=list)


# ── Collaborator contracts ─────────────────────────────────────────────────────
@dataclass
class ContentReview:
    grammar_issues: list[Issue] = field(default_factory=list)
    brand_issues: list[Issue] = field(default_factory=list)
    tone_analysis: dict[str, Any] = field(default_factory=dict)
    suggestions: list[str] = field(default_factory=list)


@dataclass
class SeoAdvice:
    title_suggestion: str = ""
    description_suggestion: str = ""
    keyword_opportunities: list[str] = field(default_factory=list)
    content_suggestions: list[str] = field(default_factory=list)
    schema_suggestions: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not any(asdict(self).values())


# ── SEO ────────────────────────────────────────────────────────────────────────
@dataclass
class SeoFinding:
    aspect: str
    score: int
    issues: list[Issue] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class SeoReport:
    url: str = ""
    url_category: str = "others"
    findings: dict[str, SeoFinding] = field(default_factory=dict)
    overall_score: int = 0
    advice: Optional[SeoAdvice] = None

    @property
    def issues(self) -> list[Issue]:
        return [i for f in self.findings.values() for i in f.issues]


# ── Top-level report ───────────────────────────────────────────────────────────
@dataclass(frozen=True)
class ComplianceReport:
    id: str
    source: str                         # "template" | "text" | "url"
    content_type: str
    languages: list[str]
    is_bilingual: bool
    issues: dict[str, list[Issue]]      # bucket → issues
    severity_counts: dict[str, int]
    score: int
    category_scores: Optional[dict[str, int]] = None
    language_counts: Optional[dict[str, int]] = None
    suggestions: list[str] = field(default_factory=list)
    tone_analysis: dict[str, Any] = field(default_factory=dict)
    seo: Optional[SeoReport] = None
    url: Optional[str] = None
    file_name: Optional[str] = None
    title: Optional[str] = None
    method: Optional[str] = None        # acquisition method for URL checks
    attempts: list[ScrapeAttempt] = field(default_factory=list)
    text_preview: str = ""
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def all_issues(self) -> list[Issue]:
        flat = [i for bucket in self.issues.values() for i in bucket]
        return sorted(flat, key=lambda i: Severity.ORDER.get(i.severity, len(Severity.ORDER)))

    @property
    def total_issues(self) -> int:
        return sum(self.severity_counts.values())

    @property
    def duration_seconds(self) -> float:
        if self.started_at and self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return 0.0

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["issues"] = {k: [i.to_dict() for i in v] for k, v in self.issues.items()}
        if self.seo is not None:
            data["seo"]["findings"] = {
                aspect: {**asdict(f), "issues": [i.to_dict() for i in f.issues]}
                for aspect, f in self.seo.findings.items()
            }
        for key in ("started_at", "finished_at"):
            if data[key] is not None:
                data[key] = data[key].isoformat()
        data["total_issues"] = self.total_issues
        return data
