"""
Plotly chart builders for the Compliance Checker dashboard.
All functions return plotly Figure objects.
"""
from __future__ import annotations

from typing import Optional

import plotly.graph_objects as go

from models import Issue, LanguageTag, SeoReport, Severity
from scoring.scorer import categorize_issue, score_color

_BG = "#1A1D27"
_PAPER = "#0E1117"
_GRID = "#2A2D3A"
_TEXT = "#FAFAFA"

_LANGUAGE_LABELS = {
    LanguageTag.PRIMARY:   "Primary",
    LanguageTag.SECONDARY: "Secondary",
    LanguageTag.BOTH:      "Both / unresolved",
}
_LANGUAGE_COLORS = {
    LanguageTag.PRIMARY:   "#6C63FF",
    LanguageTag.SECONDARY: "#00C9A7",
    LanguageTag.BOTH:      "#888888",
}


def _base_layout(**kwargs) -> dict:
    return {
        "paper_bgcolor": _PAPER,
        "plot_bgcolor":  _BG,
        "font": {"color": _TEXT, "family": "sans-serif"},
        "margin": {"l": 20, "r": 20, "t": 40, "b": 20},
        **kwargs,
    }


def _title(text: str) -> dict:
    return {"text": text, "x": 0.5, "xanchor": "center", "font": {"size": 14, "color": _TEXT}}


# ── Score gauge ────────────────────────────────────────────────────────────────

def compliance_score_gauge(score: float, title: str = "Compliance Score") -> go.Figure:
    color = score_color(score)
    fig = go.Figure(go.Indicator(
        mode="gauge+number",
        value=score,
        domain={"x": [0, 1], "y": [0, 1]},
        number={"font": {"size": 48, "color": color}},
        gauge={
            "axis": {"range": [0, 100], "tickcolor": _TEXT, "tickfont": {"color": _TEXT}},
            "bar": {"color": color, "thickness": 0.25},
            "bgcolor": _BG,
            "borderwidth": 2,
            "bordercolor": _GRID,
            "steps": [
                {"range": [0, 50],  "color": "#3A1A1A"},
                {"range": [50, 75], "color": "#3A2E1A"},
                {"range": [75, 90], "color": "#2A3A1A"},
                {"range": [90, 100],"color": "#1A3A1A"},
            ],
            "threshold": {
                "line": {"color": color, "width": 4},
                "thickness": 0.8,
                "value": score,
            },
        },
    ))
    fig.update_layout(**_base_layout(height=260), title=_title(title))
    return fig


# ── Issues by bucket (horizontal bar, stacked by severity) ─────────────────────

def issues_by_category_bar(issues: list[Issue]) -> go.Figure:
    counts: dict[str, dict[str, int]] = {}
    for issue in issues:
        bucket = counts.setdefault(categorize_issue(issue), {s: 0 for s in Severity.ALL})
        if issue.severity in bucket:
            bucket[issue.severity] += 1

    if not counts:
        return _empty_chart("No issues found")

    cats = sorted(counts.keys(), key=lambda c: -sum(
        counts[c][s] * 10 ** (len(Severity.ALL) - Severity.ORDER[s]) for s in Severity.ALL
    ))

    fig = go.Figure()
    for sev in Severity.ALL:
        fig.add_trace(go.Bar(
            y=cats,
            x=[counts[c][sev] for c in cats],
            name=sev.capitalize(),
            orientation="h",
            marker_color=Severity.COLORS[sev],
            hovertemplate=f"<b>%{{y}}</b><br>{sev.capitalize()}: %{{x}}<extra></extra>",
        ))

    fig.update_layout(
        **_base_layout(height=max(300, len(cats) * 38 + 80)),
        title=_title("Issues by Category"),
        barmode="stack",
        legend={"orientation": "h", "y": -0.15, "font": {"color": _TEXT}},
        xaxis={"title": "Issue Count", "gridcolor": _GRID, "color": _TEXT},
        yaxis={"gridcolor": _GRID, "color": _TEXT, "automargin": True},
    )
    return fig


# ── Issues by severity donut ───────────────────────────────────────────────────

def issues_by_severity_donut(severity_counts: dict[str, int]) -> go.Figure:
    labels = [s.capitalize() for s in Severity.ALL]
    values = [severity_counts.get(s, 0) for s in Severity.ALL]
    colors = [Severity.COLORS[s] for s in Severity.ALL]

    fig = go.Figure(go.Pie(
        labels=labels,
        values=values,
        hole=0.6,
        marker={"colors": colors, "line": {"color": _BG, "width": 2}},
        hovertemplate="<b>%{label}</b>: %{value} issues<extra></extra>",
    ))
    total = sum(values)
    fig.update_layout(
        **_base_layout(height=260),
        title=_title("Issues by Severity"),
        annotations=[{
            "text": f"<b>{total}</b><br>Total",
            "x": 0.5, "y": 0.5,
            "font_size": 18,
            "font_color": _TEXT,
            "showarrow": False,
        }],
        legend={"font": {"color": _TEXT}},
        showlegend=True,
    )
    return fig


# ── Language split ─────────────────────────────────────────────────────────────

def issues_by_language_bar(language_counts: Optional[dict[str, int]]) -> go.Figure:
    if not language_counts:
        return _empty_chart("Single-language content")

    tags = [t for t in LanguageTag.ALL if t in language_counts]
    fig = go.Figure(go.Bar(
        x=[_LANGUAGE_LABELS[t] for t in tags],
        y=[language_counts[t] for t in tags],
        marker_color=[_LANGUAGE_COLORS[t] for t in tags],
        hovertemplate="<b>%{x}</b><br>Issues: %{y}<extra></extra>",
    ))
    fig.update_layout(
        **_base_layout(height=260),
        title=_title("Issues by Language Section"),
        xaxis={"gridcolor": _GRID, "color": _TEXT},
        yaxis={"title": "Issues", "gridcolor": _GRID, "color": _TEXT},
        showlegend=False,
    )
    return fig


# ── SEO aspects ────────────────────────────────────────────────────────────────

def seo_aspect_bar(seo: SeoReport) -> go.Figure:
    if seo is None or not seo.findings:
        return _empty_chart("No SEO data")

    aspects = list(seo.findings.keys())
    scores = [seo.findings[a].score for a in aspects]
    fig = go.Figure(go.Bar(
        x=scores,
        y=[a.replace("_", " ").title() for a in aspects],
        orientation="h",
        marker_color=[score_color(s) for s in scores],
        hovertemplate="<b>%{y}</b><br>Score: %{x}<extra></extra>",
    ))
    fig.update_layout(
        **_base_layout(height=max(260, len(aspects) * 34 + 80)),
        title=_title("SEO Score by Aspect"),
        xaxis={"title": "Score", "range": [0, 100], "gridcolor": _GRID, "color": _TEXT},
        yaxis={"gridcolor": _GRID, "color": _TEXT, "automargin": True},
        showlegend=False,
    )
    return fig


# ── Helper ─────────────────────────────────────────────────────────────────────

def _empty_chart(message: str) -> go.Figure:
    fig = go.Figure()
    fig.add_annotation(text=message, x=0.5, y=0.5, showarrow=False, font={"color": _TEXT, "size": 14})
    fig.update_layout(**_base_layout(height=260))
    return fig
