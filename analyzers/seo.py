"""
SEO report: runs every aspect analyzer over one parsed document and
combines the sub-scores into the weighted composite.
"""
from __future__ import annotations

from analyzers.content import ContentAnalyzer, analyze_link_counts
from analyzers.images import analyze_image_alt
from analyzers.meta import MetaAnalyzer
from analyzers.technical import TechnicalSEOAnalyzer
from config import URL_CATEGORIES
from crawler.parser import make_soup
from models import SeoReport
from scoring.scorer import compute_seo_score


def analyze_seo(html: str, url: str = "", url_category: str = "others") -> SeoReport:
    if url_category not in URL_CATEGORIES:
        url_category = "others"
    if not html:
        return SeoReport(url=url, url_category=url_category)

    soup = make_soup(html)
    technical = TechnicalSEOAnalyzer()

    findings = MetaAnalyzer().findings(soup)
    findings["technical"] = technical.technical(soup)
    findings["headings"] = ContentAnalyzer().headings(soup)
    findings["schema"] = technical.schema(soup, url_category)
    findings["images"] = analyze_image_alt(soup)
    findings["links"] = analyze_link_counts(soup, url)

    return SeoReport(
        url=url,
        url_category=url_category,
        findings=findings,
        overall_score=compute_seo_score(findings),
    )
