"""
Write-once JSON store for completed compliance reports.

Each report lands in <results_dir>/<report id>.json. Records are never
rewritten; history is read back as plain dicts.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from config import settings
from log_config import get_logger
from models import ComplianceReport

logger = get_logger("reporting.store")


class ResultStore:
    def __init__(self, results_dir: str | Path | None = None):
        self.results_dir = Path(results_dir or settings.RESULTS_DIR)

    def _path(self, report_id: str) -> Path:
        # ids are uuid hex; refuse anything that could escape the directory
        if not report_id or not report_id.isalnum():
            raise ValueError(f"Invalid report id: {report_id!r}")
        return self.results_dir / f"{report_id}.json"

    def save(self, report: ComplianceReport) -> Path:
        """Persist a report. Raises FileExistsError if the id was already stored."""
        self.results_dir.mkdir(parents=True, exist_ok=True)
        path = self._path(report.id)
        with path.open("x", encoding="utf-8") as fh:
            json.dump(report.to_dict(), fh, ensure_ascii=False, indent=2)
        logger.info("Report saved", extra={"report_id": report.id})
        return path

    def get(self, report_id: str) -> Optional[dict[str, Any]]:
        try:
            path = self._path(report_id)
        except ValueError:
            return None
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def recent(self, limit: Optional[int] = 10) -> list[dict[str, Any]]:
        """Most recently saved reports first. Unreadable records are skipped."""
        if not self.results_dir.is_dir():
            return []
        paths = sorted(self.results_dir.glob("*.json"), key=lambda p: p.stat().st_mtime, reverse=True)
        records: list[dict[str, Any]] = []
        for path in paths:
            if limit is not None and len(records) >= limit:
                break
            try:
                records.append(json.loads(path.read_text(encoding="utf-8")))
            except (OSError, json.JSONDecodeError) as exc:
                logger.warning("Skipping unreadable report %s: %s", path.name, exc)
        return records

    def stats(self) -> dict[str, Any]:
        """Aggregate figures over every stored report."""
        records = self.recent(limit=None)
        if not records:
            return {"total_checks": 0, "average_score": 0, "content_types": {}, "languages": {}, "bilingual": 0}

        content_types: dict[str, int] = {}
        languages: dict[str, int] = {}
        for rec in records:
            ct = rec.get("content_type") or "unknown"
            content_types[ct] = content_types.get(ct, 0) + 1
            for lang in rec.get("languages") or []:
                languages[lang] = languages.get(lang, 0) + 1

        scores = [rec.get("score", 0) for rec in records]
        return {
            "total_checks": len(records),
            "average_score": round(sum(scores) / len(scores)),
            "content_types": content_types,
            "languages": languages,
            "bilingual": sum(1 for rec in records if rec.get("is_bilingual")),
        }
