"""
Compliance and SEO score calculators.

Compliance scoring model:
- Every issue instance costs a fixed penalty by severity
  (critical 20, high 10, medium 5, low 2).
- score = max(0, 100 - total penalty), always an integer.

SEO scoring model:
- Each aspect carries an independent 0–100 sub-score.
- The composite is the weighted sum over SEO_WEIGHTS (weights sum to 100).
"""
from __future__ import annotations

from config import (
    DEFAULT_ISSUE_BUCKET,
    ISSUE_BUCKETS,
    ISSUE_CATEGORY_BUCKETS,
    SEO_WEIGHTS,
    SEVERITY_WEIGHTS,
    TEMPLATE_ONLY_RULE_PREFIXES,
    URL_SOFT_CATEGORIES,
)
from models import Issue, SeoFinding, Severity


# ── Severity ──────────────────────────────────────────────────────────────────

def count_severities(issues: list[Issue]) -> dict[str, int]:
    counts = {s: 0 for s in Severity.ALL}
    for issue in issues:
        if issue.severity in counts:
            counts[issue.severity] += 1
    return counts


def compute_compliance_score(counts: dict[str, int]) -> int:
    penalty = sum(SEVERITY_WEIGHTS.get(sev, 0) * n for sev, n in counts.items())
    return max(0, 100 - penalty)


def sort_by_severity(issues: list[Issue]) -> list[Issue]:
    """Stable sort: critical first, unknown severities last."""
    return sorted(issues, key=lambda i: Severity.ORDER.get(i.severity, len(Severity.ORDER)))


# ── Categorization ────────────────────────────────────────────────────────────

def categorize_issue(issue: Issue) -> str:
    label = (issue.category or issue.type or "").lower()
    for needles, bucket in ISSUE_CATEGORY_BUCKETS:
        if any(n in label for n in needles):
            return bucket
    return DEFAULT_ISSUE_BUCKET


def categorize_issues(issues: list[Issue]) -> dict[str, list[Issue]]:
    buckets: dict[str, list[Issue]] = {b: [] for b in ISSUE_BUCKETS}
    for issue in issues:
        buckets.setdefault(categorize_issue(issue), []).append(issue)
    return buckets


def compute_category_scores(categorized: dict[str, list[Issue]]) -> dict[str, int]:
    """Per-bucket score using the same penalty model as the overall score."""
    return {
        bucket: compute_compliance_score(count_severities(items))
        for bucket, items in categorized.items()
    }


# ── URL-mode filtering ────────────────────────────────────────────────────────

def is_template_only(issue: Issue) -> bool:
    return (issue.rule_id or "").startswith(TEMPLATE_ONLY_RULE_PREFIXES)


def filter_url_issues(issues: list[Issue], suppress_soft: bool = True) -> list[Issue]:
    """
    Drop findings that only make sense for uploaded templates and, when
    suppress_soft is set, low/medium CTA and tone findings.
    """
    kept: list[Issue] = []
    for issue in issues:
        if is_template_only(issue):
            continue
        if (
            suppress_soft
            and categorize_issue(issue) in URL_SOFT_CATEGORIES
            and issue.severity in (Severity.LOW, Severity.MEDIUM)
        ):
            continue
        kept.append(issue)
    return kept


# ── SEO ───────────────────────────────────────────────────────────────────────

def compute_seo_score(findings: dict[str, SeoFinding]) -> int:
    total_weight = sum(SEO_WEIGHTS.values()) or 1
    weighted = sum(
        weight * findings[aspect].score
        for aspect, weight in SEO_WEIGHTS.items()
        if aspect in findings
    )
    return round(weighted / total_weight)


# ── Display helpers ───────────────────────────────────────────────────────────

def score_label(score: float) -> str:
    if score >= 90:
        return "Excellent"
    elif score >= 75:
        return "Good"
    elif score >= 50:
        return "Needs Work"
    else:
        return "Poor"


def score_color(score: float) -> str:
    if score >= 90:
        return "#00C851"
    elif score >= 75:
        return "#FFD700"
    elif score >= 50:
        return "#FF8800"
    else:
        return "#FF4444"
