"""
Tests for the SEO aspect analyzers and the composite report.
"""

import pytest

from analyzers.content import ContentAnalyzer, analyze_link_counts
from analyzers.meta import MetaAnalyzer
from analyzers.seo import analyze_seo
from analyzers.technical import TechnicalSEOAnalyzer
from crawler.parser import make_soup
from models import PageMetadata, Severity

GOOD_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
  <title>Emirates NBD Credit Cards and Rewards</title>
  <meta name="description" content="Discover credit cards with cashback, travel rewards and airport lounge access. Apply online in minutes and get a decision today.">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <link rel="canonical" href="https://www.example.com/cards">
  <link rel="icon" href="/favicon.ico">
  <meta property="og:title" content="Credit Cards">
  <meta property="og:description" content="Cards that reward you">
  <meta property="og:image" content="https://www.example.com/card.png">
  <meta property="og:url" content="https://www.example.com/cards">
  <meta name="twitter:card" content="summary">
  <meta name="twitter:title" content="Credit Cards">
  <meta name="twitter:description" content="Cards that reward you">
  <script type="application/ld+json">{"@context": "https://schema.org", "@type": "Product", "name": "Card"}</script>
</head>
<body>
  <h1>Credit cards that reward you</h1>
  <h2>Cashback</h2>
  <img src="/card.png" alt="Platinum card">
  <a href="/apply">Apply</a>
  <a href="https://partner.example.org/" rel="nofollow">Partner</a>
</body>
</html>"""


def _ids(finding):
    return [i.rule_id for i in finding.issues]


class TestComposite:

    def test_good_page_scores_full_marks(self):
        report = analyze_seo(GOOD_PAGE, "https://www.example.com/cards", "product")
        assert report.overall_score == 100
        assert report.issues == []
        assert set(report.findings) >= {"title", "description", "open_graph", "twitter",
                                        "technical", "headings", "schema", "images", "links"}

    def test_missing_title_costs_its_weight(self):
        html = GOOD_PAGE.replace("<title>Emirates NBD Credit Cards and Rewards</title>", "")
        report = analyze_seo(html, "https://www.example.com/cards", "product")
        assert report.findings["title"].score == 0
        assert report.overall_score == 85

    def test_unknown_category_becomes_others(self):
        assert analyze_seo(GOOD_PAGE, url_category="blog").url_category == "others"

    def test_empty_html(self):
        report = analyze_seo("", "https://www.example.com")
        assert report.findings == {}
        assert report.overall_score == 0


class TestMeta:
    analyzer = MetaAnalyzer()

    def test_short_title(self):
        finding = self.analyzer.title(PageMetadata(title="Cards"))
        assert finding.score == 70
        assert _ids(finding) == ["seo_title_short"]

    def test_long_title(self):
        finding = self.analyzer.title(PageMetadata(title="x" * 75))
        assert finding.score == 80
        assert finding.issues[0].severity == Severity.LOW

    def test_description_without_cta(self):
        desc = "Credit cards with cashback, travel rewards and airport lounge access for every kind of customer we serve."
        finding = self.analyzer.description(PageMetadata(description=desc))
        assert _ids(finding) == ["seo_description_cta"]
        assert finding.score == 90
        assert finding.data["has_cta"] is False

    def test_missing_description(self):
        assert self.analyzer.description(PageMetadata()).score == 0

    def test_partial_open_graph_is_proportional(self):
        meta = PageMetadata(og_tags={"og:title": "A", "og:image": "B"})
        finding = self.analyzer.open_graph(meta)
        assert finding.score == 50
        assert _ids(finding) == ["seo_og_tag_missing", "seo_og_tag_missing"]

    def test_no_twitter_tags(self):
        finding = self.analyzer.twitter(PageMetadata())
        assert finding.score == 0
        assert _ids(finding) == ["seo_twitter_missing"]

    def test_twitter_tags_via_property(self):
        soup = make_soup('<head><meta property="twitter:card" content="summary"></head>')
        finding = self.analyzer.findings(soup)["twitter"]
        assert finding.data["present"] == ["twitter:card"]


class TestTechnical:
    analyzer = TechnicalSEOAnalyzer()

    def test_noindex_is_critical(self):
        html = GOOD_PAGE.replace("<head>", '<head><meta name="robots" content="noindex, nofollow">', 1)
        finding = self.analyzer.technical(make_soup(html))
        assert _ids(finding) == ["seo_robots_noindex"]
        assert finding.issues[0].severity == Severity.CRITICAL
        assert finding.score == 80

    def test_bare_document(self):
        finding = self.analyzer.technical(make_soup("<p>hello</p>"))
        assert set(_ids(finding)) == {
            "seo_canonical_missing", "seo_viewport_missing", "seo_lang_missing", "seo_favicon_missing",
        }
        assert finding.score == 20

    def test_schema_type_mismatch(self):
        soup = make_soup('<script type="application/ld+json">{"@type": "Organization"}</script>')
        finding = self.analyzer.schema(soup, "product")
        assert _ids(finding) == ["seo_schema_type"]
        assert finding.score == 50

    def test_schema_graph_types(self):
        soup = make_soup(
            '<script type="application/ld+json">'
            '{"@graph": [{"@type": "WebPage"}, {"@type": ["Offer", "Thing"]}]}'
            "</script>"
        )
        finding = self.analyzer.schema(soup, "offer")
        assert finding.issues == []
        assert finding.data["types"] == ["Offer", "Thing", "WebPage"]

    def test_invalid_json_ld(self):
        soup = make_soup('<script type="application/ld+json">{not json</script>')
        finding = self.analyzer.schema(soup)
        assert _ids(finding) == ["seo_schema_invalid", "seo_schema_missing"]
        assert finding.score == 0

    @pytest.mark.parametrize("category", ["others", "campaign"])
    def test_missing_schema(self, category):
        finding = self.analyzer.schema(make_soup("<p>x</p>"), category)
        assert _ids(finding) == ["seo_schema_missing"]


class TestHeadings:
    analyzer = ContentAnalyzer()

    def test_missing_h1(self):
        finding = self.analyzer.headings(make_soup("<h2>Section</h2>"))
        assert _ids(finding) == ["seo_h1_missing"]
        assert finding.score == 80

    def test_multiple_short_h1_without_h2(self):
        finding = self.analyzer.headings(make_soup("<h1>Cards</h1><h1>Loans</h1>"))
        assert _ids(finding) == ["seo_h1_multiple", "seo_h1_short", "seo_h2_missing"]
        assert finding.score == 40


class TestLinkCounts:

    def test_counts(self):
        finding = analyze_link_counts(make_soup(GOOD_PAGE), "https://www.example.com/cards")
        assert finding.data == {"internal": 1, "external": 1, "nofollow": 1}
        assert finding.score == 100
