"""
Image checks: broken sources and missing alt text in templates, plus the
alt-coverage aspect of the SEO report.
"""
from __future__ import annotations

from bs4 import BeautifulSoup

from analyzers.base import BaseAnalyzer
from config import TRACKING_PIXEL_PREFIX
from models import Issue, SeoFinding, Severity


class ImageValidator(BaseAnalyzer):
    category = "broken_images"
    issue_type = "image_validation"

    def analyze(self, html: str, **kwargs) -> list[Issue]:
        if not html:
            return []

        issues: list[Issue] = []
        for img in self.soup(html).find_all("img"):
            src = (img.get("src") or "").strip()
            found = str(img)[:200]

            # ── Broken source ─────────────────────────────────────────────────
            if not src or src == "#" or src.startswith(TRACKING_PIXEL_PREFIX):
                issues.append(self.critical(
                    "image_validation_001",
                    "Image has no usable source" if src in ("", "#") else "Image source is a placeholder pixel",
                    original=src, found=found,
                    suggestion="Point src to the hosted image asset",
                ))

            # ── Alt text ──────────────────────────────────────────────────────
            if not (img.get("alt") or "").strip():
                issues.append(self.high(
                    "accessibility_002", "Image is missing alt text",
                    original=src, found=found,
                    category="image_accessibility", issue_type="accessibility",
                    suggestion="Add alt text describing the image",
                ))

        return issues


def validate_images(html: str) -> list[Issue]:
    return ImageValidator().analyze(html)


# ── SEO aspect ─────────────────────────────────────────────────────────────────

def analyze_image_alt(soup: BeautifulSoup) -> SeoFinding:
    """Score = share of images carrying alt text (100 when there are none)."""
    images = soup.find_all("img")
    missing = [img for img in images if not (img.get("alt") or "").strip()]
    issues: list[Issue] = []

    for img in missing:
        issues.append(Issue(
            rule_id="seo_image_alt",
            type="seo",
            category="image_seo",
            severity=Severity.MEDIUM,
            message="Image is missing alt text",
            original=(img.get("src") or "")[:200],
            suggestion="Describe the image in its alt attribute",
        ))
    if missing:
        issues.append(Issue(
            rule_id="seo_image_alt_summary",
            type="seo",
            category="image_seo",
            severity=Severity.HIGH,
            message=f"{len(missing)} of {len(images)} images are missing alt text",
            suggestion="Add alt text to every content image",
        ))

    total = len(images)
    with_alt = total - len(missing)
    score = 100 if total == 0 else round(with_alt / total * 100)
    return SeoFinding(
        aspect="images",
        score=score,
        issues=issues,
        data={"total": total, "with_alt": with_alt, "missing_alt": len(missing)},
    )
