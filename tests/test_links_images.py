"""
Tests for the link and image validators.
"""

from bs4 import BeautifulSoup

from analyzers.images import analyze_image_alt, validate_images
from analyzers.links import validate_links
from models import Severity

TRACKED = "?utm_source=edm&utm_medium=email"
ARABIC = "مرحبا بكم في عروضنا الجديدة"


def _ids(issues):
    return [i.rule_id for i in issues]


class TestLinkPresence:

    def test_missing_href(self):
        issues = validate_links("<a>Open account</a>")
        assert _ids(issues) == ["link_missing_href_001"]
        assert issues[0].severity == Severity.CRITICAL

    def test_named_anchor_is_not_a_link(self):
        assert validate_links('<a name="m_arabic"></a>') == []

    def test_empty_href(self):
        assert _ids(validate_links('<a href=" ">Open account</a>')) == ["link_empty_href_001"]

    def test_placeholder_href(self):
        issues = validate_links('<a href="#">Offer details</a>')
        assert _ids(issues) == ["link_validation_001"]

    def test_javascript_placeholder(self):
        assert _ids(validate_links('<a href="javascript:void(0)">Offer details</a>')) == ["link_validation_001"]


class TestUrlShape:

    def test_single_slash_after_scheme(self):
        issues = validate_links(f'<a href="https:/www.emiratesnbd.com/cards{TRACKED}">Cards</a>')
        assert _ids(issues) == ["url_malformed_001"]
        assert issues[0].suggestion == f"https://www.emiratesnbd.com/cards{TRACKED}"

    def test_whitespace_in_url(self):
        issues = validate_links(f'<a href="https://www.emiratesnbd.com/my cards{TRACKED}">Cards</a>')
        assert _ids(issues) == ["url_malformed_001"]
        assert " " not in issues[0].suggestion

    def test_merge_token_whitespace_is_allowed(self):
        html = f'<a href="https://www.emiratesnbd.com/[Field: Pseudo ID]/cards{TRACKED}">Cards</a>'
        assert validate_links(html) == []

    def test_host_without_dot(self):
        issues = validate_links(f'<a href="https://localhost/cards{TRACKED}">Cards</a>')
        assert _ids(issues) == ["url_invalid_001"]
        assert issues[0].severity == Severity.HIGH


class TestTracking:

    def test_missing_utm(self):
        issues = validate_links('<a href="https://www.emiratesnbd.com/cards">View cards</a>')
        assert _ids(issues) == ["utm_tracking_001"]
        assert issues[0].category == "utm_tracking"

    def test_tracked_link_passes(self):
        assert validate_links(f'<a href="https://www.emiratesnbd.com/cards{TRACKED}">View cards</a>') == []

    def test_mailto_not_tracked(self):
        assert validate_links('<a href="mailto:help@emiratesnbd.com"></a>') == []


class TestLocale:

    def test_english_content_linking_arabic_page(self):
        html = (
            "<p>Discover our latest credit card offers for you</p>\n"
            f'<a href="https://www.emiratesnbd.com/ar/cards{TRACKED}">View cards</a>'
        )
        issues = validate_links(html)
        assert _ids(issues) == ["language_mismatch_001"]
        assert "/en/" in issues[0].suggestion

    def test_arabic_content_linking_english_page(self):
        html = (
            f'<p dir="rtl">{ARABIC}</p>\n'
            f'<a href="https://www.emiratesnbd.com/en/cards{TRACKED}">{ARABIC}</a>'
        )
        issues = validate_links(html)
        assert _ids(issues) == ["language_mismatch_002"]
        assert "/ar/" in issues[0].suggestion

    def test_matching_locale_passes(self):
        html = (
            "<p>Discover our latest credit card offers for you</p>\n"
            f'<a href="https://www.emiratesnbd.com/en/cards{TRACKED}">View cards</a>'
        )
        assert validate_links(html) == []

    def test_social_links_exempt(self):
        html = (
            "<p>Follow us for the latest news</p>\n"
            f'<a href="https://www.instagram.com/ar/{TRACKED}">Instagram</a>'
        )
        assert validate_links(html) == []


class TestLinkAccessibility:

    def test_non_descriptive_text(self):
        issues = validate_links(f'<a href="https://www.emiratesnbd.com/{TRACKED}">Click here</a>')
        assert _ids(issues) == ["accessibility_001"]
        assert issues[0].category == "link_accessibility"

    def test_image_alt_counts_as_text(self):
        html = f'<a href="https://www.emiratesnbd.com/{TRACKED}"><img src="logo.png" alt="Emirates NBD home"></a>'
        assert validate_links(html) == []

    def test_no_text(self):
        html = f'<a href="https://www.emiratesnbd.com/{TRACKED}"><img src="logo.png"></a>'
        assert _ids(validate_links(html)) == ["link_no_text_001"]


class TestImages:

    def test_empty_src(self):
        issues = validate_images('<img src="" alt="Banner">')
        assert _ids(issues) == ["image_validation_001"]
        assert issues[0].message == "Image has no usable source"

    def test_tracking_pixel_without_alt(self):
        issues = validate_images('<img src="data:image/gif;base64,R0lGODlhAQABAAAAACw=">')
        assert _ids(issues) == ["image_validation_001", "accessibility_002"]
        assert issues[0].message == "Image source is a placeholder pixel"

    def test_good_image(self):
        assert validate_images('<img src="https://cdn.example.com/banner.png" alt="Banner">') == []

    def test_empty_document(self):
        assert validate_images("") == []


class TestImageAltCoverage:

    def test_partial_coverage(self):
        soup = BeautifulSoup('<img src="a.png" alt="A"><img src="b.png" alt="B"><img src="c.png">', "html.parser")
        finding = analyze_image_alt(soup)
        assert finding.score == 67
        assert finding.data == {"total": 3, "with_alt": 2, "missing_alt": 1}
        assert _ids(finding.issues) == ["seo_image_alt", "seo_image_alt_summary"]

    def test_no_images(self):
        finding = analyze_image_alt(BeautifulSoup("<p>text</p>", "html.parser"))
        assert finding.score == 100
        assert finding.issues == []
