"""
Converts ComplianceReport data to Pandas DataFrames and CSV bytes for export.
"""
from __future__ import annotations

import io

import pandas as pd

from models import ComplianceReport, Issue, SeoReport, Severity
from scoring.scorer import categorize_issue

_ISSUE_COLUMNS = [
    "Severity", "Bucket", "Category", "Rule", "Message",
    "Original", "Suggestion", "Language", "Position",
]


# ── Issues DataFrame ───────────────────────────────────────────────────────────

def issues_to_df(issues: list[Issue]) -> pd.DataFrame:
    if not issues:
        return pd.DataFrame(columns=_ISSUE_COLUMNS)

    rows = []
    for issue in issues:
        rows.append({
            "Severity":   issue.severity.upper(),
            "Bucket":     categorize_issue(issue),
            "Category":   _humanize(issue.category),
            "Rule":       issue.rule_id,
            "Message":    issue.message,
            "Original":   issue.original or issue.found or "",
            "Suggestion": issue.suggestion or "",
            "Language":   issue.language or "",
            "Position":   issue.position if issue.position is not None else "",
        })

    df = pd.DataFrame(rows, columns=_ISSUE_COLUMNS)

    # Severity sort order
    df["_sev_order"] = df["Severity"].str.lower().map(Severity.ORDER)
    df = df.sort_values(["_sev_order", "Bucket", "Rule"], kind="stable").drop(columns=["_sev_order"])
    df = df.reset_index(drop=True)
    return df


def report_issues_df(report: ComplianceReport) -> pd.DataFrame:
    return issues_to_df(report.all_issues)


# ── Summary table ──────────────────────────────────────────────────────────────

def issues_summary_df(issues: list[Issue]) -> pd.DataFrame:
    """Grouped count of issues by bucket and severity."""
    if not issues:
        return pd.DataFrame(columns=["Bucket", "Severity", "Count"])

    rows: dict[tuple, int] = {}
    for issue in issues:
        key = (categorize_issue(issue), issue.severity.capitalize())
        rows[key] = rows.get(key, 0) + 1

    data = [{"Bucket": k[0], "Severity": k[1], "Count": v} for k, v in rows.items()]
    df = pd.DataFrame(data)
    df["_order"] = df["Severity"].str.lower().map(Severity.ORDER)
    df = df.sort_values(["_order", "Bucket"]).drop(columns=["_order"]).reset_index(drop=True)
    return df


# ── SEO findings ───────────────────────────────────────────────────────────────

def seo_findings_df(seo: SeoReport) -> pd.DataFrame:
    """One row per SEO aspect with its sub-score and issue count."""
    if seo is None or not seo.findings:
        return pd.DataFrame(columns=["Aspect", "Score", "Issues", "Top Issue"])

    rows = []
    for aspect, finding in seo.findings.items():
        ordered = sorted(finding.issues, key=lambda i: Severity.ORDER.get(i.severity, len(Severity.ORDER)))
        rows.append({
            "Aspect":    _humanize(aspect),
            "Score":     finding.score,
            "Issues":    len(finding.issues),
            "Top Issue": ordered[0].message if ordered else "",
        })
    return pd.DataFrame(rows)


# ── CSV export ─────────────────────────────────────────────────────────────────

def to_csv_bytes(df: pd.DataFrame) -> bytes:
    buf = io.StringIO()
    df.to_csv(buf, index=False)
    # BOM so spreadsheet apps open Arabic text correctly
    return buf.getvalue().encode("utf-8-sig")


# ── Helpers ────────────────────────────────────────────────────────────────────

def _humanize(snake: str) -> str:
    """Convert snake_case to Title Case for display."""
    return (snake or "").replace("_", " ").title()
