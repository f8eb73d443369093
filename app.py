"""
Content Compliance Checker — Streamlit Application
Brand, legal and SEO review for email templates, copy and live pages.
"""
from __future__ import annotations

from datetime import datetime

import pandas as pd
import streamlit as st

from analyzers.orchestrator import SOURCE_URL, ComplianceChecker
from config import CONTENT_TYPES, ISSUE_BUCKETS, URL_CATEGORIES
from crawler.errors import ContentAcquisitionError, ManualSubmissionRequired
from log_config import setup_logging
from models import ComplianceReport, Issue, Severity
from reporting.exporter import issues_summary_df, issues_to_df, report_issues_df, seo_findings_df, to_csv_bytes
from reporting.store import ResultStore
from rules_engine.engine import get_default_engine
from scoring.scorer import score_color, score_label
from ui.charts import (
    compliance_score_gauge,
    issues_by_category_bar,
    issues_by_language_bar,
    issues_by_severity_donut,
    seo_aspect_bar,
)

# ── Page config ────────────────────────────────────────────────────────────────
st.set_page_config(
    page_title="Content Compliance Checker",
    page_icon="✅",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ── Custom CSS ─────────────────────────────────────────────────────────────────
st.markdown("""
<style>
.block-container { padding-top: 1rem; }

/* Metric cards */
.metric-card {
    background: #1A1D27;
    border-radius: 10px;
    padding: 1rem 1.2rem;
    margin-bottom: 0.5rem;
    border-left: 4px solid;
}
.metric-card.critical { border-color: #FF4B4B; }
.metric-card.high     { border-color: #FF8800; }
.metric-card.medium   { border-color: #FFA500; }
.metric-card.low      { border-color: #4B9EFF; }
.metric-card.success  { border-color: #00C851; }
.metric-card.neutral  { border-color: #6C63FF; }

.metric-val  { font-size: 2rem; font-weight: 700; margin: 0; }
.metric-lbl  { font-size: 0.8rem; color: #888; text-transform: uppercase; letter-spacing: 0.05em; }

/* Severity pills */
.pill {
    display: inline-block;
    padding: 2px 10px;
    border-radius: 12px;
    font-size: 0.75rem;
    font-weight: 600;
    letter-spacing: 0.05em;
    text-transform: uppercase;
}
.pill.critical { background: #FF4B4B22; color: #FF4B4B; border: 1px solid #FF4B4B55; }
.pill.high     { background: #FF880022; color: #FF8800; border: 1px solid #FF880055; }
.pill.medium   { background: #FFA50022; color: #FFA500; border: 1px solid #FFA50055; }
.pill.low      { background: #4B9EFF22; color: #4B9EFF; border: 1px solid #4B9EFF55; }

.modebar { display: none !important; }

.sidebar-logo { font-size: 1.5rem; font-weight: 800; color: #6C63FF; margin-bottom: 0.5rem; }
</style>
""", unsafe_allow_html=True)

_MODE_URL = "Website URL"
_MODE_UPLOAD = "Upload template"
_MODE_TEXT = "Paste text"


# ── Shared resources ───────────────────────────────────────────────────────────

@st.cache_resource
def _store() -> ResultStore:
    return ResultStore()


@st.cache_resource
def _checker() -> ComplianceChecker:
    setup_logging()
    return ComplianceChecker(engine=get_default_engine(), store=_store())


# ── State helpers ──────────────────────────────────────────────────────────────

def _clear_results():
    for key in ["report", "manual_request"]:
        st.session_state.pop(key, None)


def _has_result() -> bool:
    return st.session_state.get("report") is not None


# ── Sidebar ────────────────────────────────────────────────────────────────────

def render_sidebar() -> dict | None:
    """Returns a check request when the user presses Run Check."""
    with st.sidebar:
        st.markdown('<div class="sidebar-logo">✅ Compliance</div>', unsafe_allow_html=True)
        st.caption("Brand, legal and SEO content review")
        st.divider()

        mode = st.radio("Check", [_MODE_URL, _MODE_UPLOAD, _MODE_TEXT])
        request: dict = {"mode": mode}

        if mode == _MODE_URL:
            request["url"] = st.text_input("Page URL", placeholder="https://www.example.com/offers")
            request["url_category"] = st.selectbox("Page type", URL_CATEGORIES, index=len(URL_CATEGORIES) - 1)
            request["suppress_soft"] = st.toggle(
                "Hide low-priority CTA/tone findings", value=True,
                help="Medium and low CTA and tone issues are noisy on live pages",
            )
        elif mode == _MODE_UPLOAD:
            upload = st.file_uploader("HTML template", type=["html", "htm"])
            request["file_name"] = upload.name if upload else ""
            request["html"] = upload.getvalue().decode("utf-8", errors="replace") if upload else ""
            request["content_type"] = st.selectbox("Content type", CONTENT_TYPES)
        else:
            request["text"] = st.text_area("Content", height=220)
            request["content_type"] = st.selectbox("Content type", CONTENT_TYPES)

        st.divider()
        if _has_result():
            if st.button("🔄 New Check", use_container_width=True):
                _clear_results()
                st.rerun()

        start = st.button("Run Check", type="primary", use_container_width=True)

        st.divider()
        render_rules_panel()

    if not start:
        return None
    if mode == _MODE_URL and not request.get("url"):
        st.sidebar.warning("Enter a URL first.")
        return None
    if mode == _MODE_UPLOAD and not request.get("html"):
        st.sidebar.warning("Upload an HTML file first.")
        return None
    if mode == _MODE_TEXT and not (request.get("text") or "").strip():
        st.sidebar.warning("Paste some content first.")
        return None
    return request


def render_rules_panel() -> None:
    engine = get_default_engine()
    st.subheader("Rule catalogue")
    st.caption(f"{len(engine.rules)} active rules")
    if st.button("Reload rules", use_container_width=True):
        ruleset = engine.reload()
        st.success(f"Loaded {len(ruleset)} rules")
    with st.expander("View rules"):
        st.dataframe(
            pd.DataFrame([
                {"ID": r.id, "Category": r.category, "Severity": r.severity, "Message": r.message}
                for r in engine.rules
            ]),
            use_container_width=True,
            hide_index=True,
        )


# ── Run check ──────────────────────────────────────────────────────────────────

def run_check(request: dict) -> None:
    checker = _checker()
    progress_bar = st.progress(0)
    status_text = st.empty()

    def on_progress(update: dict):
        progress_bar.progress(min(update.get("pct", 0), 100))
        status_text.markdown(f"**{update.get('message', '')}**")

    with st.status("Running check…", expanded=True) as status_widget:
        try:
            if request["mode"] == _MODE_URL:
                url = request["url"].strip()
                if not url.startswith("http"):
                    url = "https://" + url
                st.write(f"Fetching **{url}**…")
                report = checker.check_url(
                    url,
                    url_category=request["url_category"],
                    suppress_soft_issues=request["suppress_soft"],
                    progress_callback=on_progress,
                )
            elif request["mode"] == _MODE_UPLOAD:
                st.write(f"Checking **{request['file_name']}**…")
                report = checker.check_template(
                    request["html"], file_name=request["file_name"], content_type=request["content_type"],
                )
            else:
                report = checker.check_text(request["text"], content_type=request["content_type"])

        except ManualSubmissionRequired as exc:
            status_widget.update(label="Page blocked automated access", state="error")
            st.session_state.manual_request = {
                "url": url,
                "url_category": request["url_category"],
                "suppress_soft": request["suppress_soft"],
                "reason": exc.final_reason,
                "attempts": exc.attempts,
            }
            st.rerun()
        except ContentAcquisitionError as exc:
            status_widget.update(label="Could not fetch page", state="error")
            st.error(f"{exc.message} ({exc.classification})")
            return

        status_widget.update(label="Check complete!", state="complete")

    progress_bar.empty()
    status_text.empty()
    st.session_state.report = report
    st.rerun()


def render_manual_paste(pending: dict) -> None:
    st.title("Manual content needed")
    st.warning(
        f"**{pending['url']}** blocks automated access and every automated "
        "method has failed. Open the page in a browser, copy its content and paste it below."
    )
    with st.expander("What was tried"):
        st.dataframe(
            pd.DataFrame([
                {"Tier": a.tier, "Method": a.method, "Outcome": a.outcome,
                 "Time (ms)": round(a.elapsed_ms), "Detail": a.detail}
                for a in pending["attempts"]
            ]),
            use_container_width=True,
            hide_index=True,
        )
        st.caption(pending["reason"])

    pasted = st.text_area("Page content", height=300)
    if st.button("Check pasted content", type="primary", disabled=not pasted.strip()):
        report = _checker().check_markup(
            "",
            pasted,
            source=SOURCE_URL,
            content_type="web",
            url=pending["url"],
            url_category=pending["url_category"],
            method="manual",
            attempts=pending["attempts"],
            suppress_soft_issues=pending["suppress_soft"],
        )
        st.session_state.pop("manual_request", None)
        st.session_state.report = report
        st.rerun()


# ── Dashboard: Overview ────────────────────────────────────────────────────────

def render_overview(report: ComplianceReport) -> None:
    counts = report.severity_counts

    col_gauge, col_stats = st.columns([1, 2])
    with col_gauge:
        st.plotly_chart(compliance_score_gauge(report.score), use_container_width=True)
        st.markdown(
            f'<div style="text-align:center;font-size:1.1rem;font-weight:700;color:{score_color(report.score)}">'
            f'{score_label(report.score)}</div>',
            unsafe_allow_html=True,
        )

    with col_stats:
        c1, c2, c3, c4 = st.columns(4)
        _metric_card(c1, "Critical", counts.get(Severity.CRITICAL, 0), "critical")
        _metric_card(c2, "High",     counts.get(Severity.HIGH, 0),     "high")
        _metric_card(c3, "Medium",   counts.get(Severity.MEDIUM, 0),   "medium")
        _metric_card(c4, "Low",      counts.get(Severity.LOW, 0),      "low")

        c5, c6, c7, c8 = st.columns(4)
        _metric_card(c5, "Languages", " / ".join(report.languages).upper(), "neutral")
        _metric_card(c6, "Total Issues", report.total_issues, "success" if not report.total_issues else "neutral")
        _metric_card(c7, "SEO Score", report.seo.overall_score if report.seo else "—", "neutral")
        _metric_card(c8, "Check Time", f"{report.duration_seconds:.1f}s", "neutral")

    st.divider()
    c_left, c_right = st.columns(2)
    with c_left:
        st.plotly_chart(issues_by_category_bar(report.all_issues), use_container_width=True)
    with c_right:
        st.plotly_chart(issues_by_severity_donut(counts), use_container_width=True)

    if report.is_bilingual:
        st.plotly_chart(issues_by_language_bar(report.language_counts), use_container_width=True)

    if report.tone_analysis:
        st.divider()
        st.subheader("Tone")
        tone = report.tone_analysis
        if tone.get("message"):
            st.info(tone["message"])
        else:
            t1, t2 = st.columns(2)
            t1.metric("Professionalism", f"{tone.get('professionalism', '—')}/10")
            t2.metric("Clarity", f"{tone.get('clarity', '—')}/10")
            if tone.get("summary"):
                st.caption(tone["summary"])

    if report.suggestions:
        st.subheader("Suggestions")
        for suggestion in report.suggestions:
            st.markdown(f"- {suggestion}")

    st.divider()
    st.subheader("Critical Issues")
    critical = [i for i in report.all_issues if i.severity == Severity.CRITICAL][:20]
    if critical:
        _render_issue_table(critical)
    else:
        st.success("No critical issues found!")


# ── Dashboard: Issues by Category ─────────────────────────────────────────────

def render_by_category(report: ComplianceReport) -> None:
    buckets = [b for b in ISSUE_BUCKETS if report.issues.get(b)]
    buckets += [b for b in report.issues if b not in ISSUE_BUCKETS and report.issues[b]]
    if not buckets:
        st.success("No issues found!")
        return

    bucket_filter = st.multiselect("Filter by category", options=buckets, default=buckets)
    sev_filter = st.multiselect(
        "Filter by severity",
        options=Severity.ALL,
        default=Severity.ALL,
        format_func=lambda s: s.capitalize(),
    )

    for bucket in bucket_filter:
        bucket_issues = [i for i in report.issues.get(bucket, []) if i.severity in sev_filter]
        if not bucket_issues:
            continue

        sev_counts = {s: sum(1 for i in bucket_issues if i.severity == s) for s in Severity.ALL}
        badge_html = " ".join(
            f'<span class="pill {sev}">{n} {sev}</span>'
            for sev, n in sev_counts.items() if n
        )
        score = (report.category_scores or {}).get(bucket)
        label = f"**{bucket.title()}** — {len(bucket_issues)} issues"
        if score is not None:
            label += f" · score {score}"

        with st.expander(label, expanded=(bucket == buckets[0])):
            st.markdown(badge_html, unsafe_allow_html=True)
            _render_issue_table(bucket_issues)


# ── Dashboard: SEO ────────────────────────────────────────────────────────────

def render_seo(report: ComplianceReport) -> None:
    seo = report.seo
    if seo is None:
        st.info("SEO analysis runs for fetched web pages only.")
        return

    col1, col2 = st.columns([1, 2])
    with col1:
        st.plotly_chart(compliance_score_gauge(seo.overall_score, title="SEO Score"), use_container_width=True)
    with col2:
        st.plotly_chart(seo_aspect_bar(seo), use_container_width=True)

    for aspect, finding in seo.findings.items():
        if not finding.issues:
            continue
        with st.expander(f"{_humanize(aspect)} — score {finding.score}, {len(finding.issues)} issue(s)"):
            _render_issue_table(finding.issues)

    advice = seo.advice
    if advice and not advice.is_empty:
        st.divider()
        st.subheader("Recommendations")
        if advice.title_suggestion:
            st.markdown(f"**Suggested title:** {advice.title_suggestion}")
        if advice.description_suggestion:
            st.markdown(f"**Suggested description:** {advice.description_suggestion}")
        for heading, items in (
            ("Keyword opportunities", advice.keyword_opportunities),
            ("Content", advice.content_suggestions),
            ("Structured data", advice.schema_suggestions),
        ):
            if items:
                st.markdown(f"**{heading}**")
                for item in items:
                    st.markdown(f"- {item}")


# ── Dashboard: Source ─────────────────────────────────────────────────────────

def render_source(report: ComplianceReport) -> None:
    if report.url:
        st.markdown(f"**URL:** `{report.url}`")
    if report.title:
        st.markdown(f"**Title:** {report.title}")
    if report.method:
        st.markdown(f"**Retrieved via:** {report.method}")
    if report.attempts:
        st.dataframe(
            pd.DataFrame([
                {"Tier": a.tier, "Method": a.method, "Outcome": a.outcome, "Time (ms)": round(a.elapsed_ms)}
                for a in report.attempts
            ]),
            use_container_width=True,
            hide_index=True,
        )
    if report.file_name:
        st.markdown(f"**File:** `{report.file_name}`")
    st.markdown("**Extracted text (preview):**")
    st.code(report.text_preview or "(empty)", language="text")


# ── Dashboard: Export ─────────────────────────────────────────────────────────

def render_export(report: ComplianceReport) -> None:
    st.subheader("Export Data")
    stamp = datetime.now().strftime("%Y%m%d_%H%M")
    df_issues = report_issues_df(report)

    col1, col2, col3 = st.columns(3)
    with col1:
        st.download_button(
            "Download All Issues (CSV)",
            data=to_csv_bytes(df_issues),
            file_name=f"issues_{report.id[:8]}_{stamp}.csv",
            mime="text/csv",
            use_container_width=True,
        )
        st.caption(f"{len(df_issues)} issues")
    with col2:
        st.download_button(
            "Download Issue Summary (CSV)",
            data=to_csv_bytes(issues_summary_df(report.all_issues)),
            file_name=f"summary_{report.id[:8]}_{stamp}.csv",
            mime="text/csv",
            use_container_width=True,
        )
    with col3:
        if report.seo is not None:
            st.download_button(
                "Download SEO Findings (CSV)",
                data=to_csv_bytes(seo_findings_df(report.seo)),
                file_name=f"seo_{report.id[:8]}_{stamp}.csv",
                mime="text/csv",
                use_container_width=True,
            )

    st.divider()
    st.subheader("All Issues Table")
    if not df_issues.empty:
        st.dataframe(df_issues, use_container_width=True, height=600)


# ── History ───────────────────────────────────────────────────────────────────

def render_history() -> None:
    store = _store()
    stats = store.stats()
    c1, c2, c3 = st.columns(3)
    _metric_card(c1, "Checks Run", stats["total_checks"], "neutral")
    _metric_card(c2, "Average Score", stats["average_score"], "neutral")
    _metric_card(c3, "Bilingual", stats["bilingual"], "neutral")

    records = store.recent(limit=25)
    if not records:
        st.caption("No saved checks yet.")
        return
    st.dataframe(
        pd.DataFrame([
            {
                "When": (r.get("finished_at") or "")[:16].replace("T", " "),
                "Source": r.get("source"),
                "Target": r.get("url") or r.get("file_name") or (r.get("text_preview") or "")[:40],
                "Score": r.get("score"),
                "Issues": r.get("total_issues"),
                "Languages": ", ".join(r.get("languages") or []),
            }
            for r in records
        ]),
        use_container_width=True,
        hide_index=True,
    )


# ── Helpers ────────────────────────────────────────────────────────────────────

def _metric_card(col, label: str, value, card_class: str = "neutral") -> None:
    with col:
        st.markdown(
            f'<div class="metric-card {card_class}">'
            f'<div class="metric-lbl">{label}</div>'
            f'<div class="metric-val">{value}</div>'
            f'</div>',
            unsafe_allow_html=True,
        )


def _render_issue_table(issues: list[Issue]) -> None:
    if not issues:
        return
    df = issues_to_df(issues)[["Severity", "Rule", "Message", "Original", "Suggestion", "Language"]]
    st.dataframe(
        df,
        use_container_width=True,
        height=min(600, len(df) * 36 + 60),
        hide_index=True,
        column_config={
            "Severity":   st.column_config.TextColumn("Severity", width="small"),
            "Rule":       st.column_config.TextColumn("Rule",     width="small"),
            "Message":    st.column_config.TextColumn("Message",  width="large"),
            "Original":   st.column_config.TextColumn("Found",    width="medium"),
            "Suggestion": st.column_config.TextColumn("Suggestion", width="medium"),
        },
    )


def _humanize(snake: str) -> str:
    return snake.replace("_", " ").title()


# ── Landing / empty state ──────────────────────────────────────────────────────

def render_landing() -> None:
    st.markdown("""
    <div style="text-align:center; padding: 4rem 2rem;">
        <div style="font-size:4rem">✅</div>
        <h1 style="font-size:2.5rem; font-weight:800; color:#6C63FF; margin:0.5rem 0">Content Compliance Checker</h1>
        <p style="font-size:1.1rem; color:#888; max-width:600px; margin:0 auto 2rem">
            Review email templates, marketing copy and live pages against the brand rule catalogue.
            English and Arabic content is checked section by section.
        </p>
    </div>
    """, unsafe_allow_html=True)

    col1, col2, col3, col4 = st.columns(4)
    _feature_card(col1, "📏", "Brand Rules", "Terminology, legal claims, tone and brand naming")
    _feature_card(col2, "🔗", "Links & Images", "Placeholders, UTM tags, locale mismatches, alt text")
    _feature_card(col3, "🌐", "Bilingual", "Issues attributed to the English or Arabic section")
    _feature_card(col4, "🔍", "SEO", "Meta tags, headings, schema and social cards for live pages")

    st.divider()
    st.subheader("Recent checks")
    render_history()


def _feature_card(col, icon: str, title: str, desc: str) -> None:
    with col:
        st.markdown(
            f'<div class="metric-card neutral" style="text-align:center">'
            f'<div style="font-size:2rem">{icon}</div>'
            f'<div style="font-weight:700;margin:0.5rem 0">{title}</div>'
            f'<div style="font-size:0.85rem;color:#888">{desc}</div>'
            f'</div>',
            unsafe_allow_html=True,
        )


# ── Main ───────────────────────────────────────────────────────────────────────

def main():
    request = render_sidebar()

    if request is not None:
        _clear_results()
        run_check(request)
        return

    pending = st.session_state.get("manual_request")
    if pending:
        render_manual_paste(pending)
        return

    if not _has_result():
        render_landing()
        return

    report: ComplianceReport = st.session_state.report
    target = report.url or report.file_name or "Pasted text"
    st.title(f"Check: {target}")
    st.caption(
        f"Score: **{report.score}/100** · "
        f"{report.severity_counts.get(Severity.CRITICAL, 0)} critical issue(s) · "
        f"{'Bilingual' if report.is_bilingual else report.languages[0].upper()} · "
        f"checked in {report.duration_seconds:.1f}s"
    )

    tabs = st.tabs(["Overview", "Issues by Category", "SEO", "Source", "Export", "History"])
    with tabs[0]:
        render_overview(report)
    with tabs[1]:
        render_by_category(report)
    with tabs[2]:
        render_seo(report)
    with tabs[3]:
        render_source(report)
    with tabs[4]:
        render_export(report)
    with tabs[5]:
        render_history()


if __name__ == "__main__":
    main()
