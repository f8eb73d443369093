"""
Rule catalogue loader. Reads YAML documents of the form:

    rules:
      - id: terminology_001
        category: terminology
        severity: medium
        pattern: "\\be-mail\\b"
        replacement: email
        context_exceptions: [...]
        applies_to: [edm, web]

Malformed records are logged and skipped; a broken record never prevents
the rest of the catalogue from loading.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Optional

import yaml

from config import CONTENT_TYPES
from log_config import get_logger
from models import Rule, Severity

logger = get_logger("rules.loader")

_REQUIRED_FIELDS = ("id", "category", "severity", "pattern")


def load_rules_file(path: str | Path) -> list[Rule]:
    """Return the rules declared in a YAML catalogue. Missing file ⇒ []."""
    path = Path(path)
    if not path.exists():
        logger.warning("Rule catalogue not found: %s", path)
        return []

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        logger.error("Rule catalogue %s is not valid YAML: %s", path, exc)
        return []

    records = data.get("rules", []) if isinstance(data, dict) else data
    if not isinstance(records, list):
        logger.error("Rule catalogue %s has no 'rules' list", path)
        return []

    return rules_from_records(records)


def rules_from_records(records: Iterable[Any]) -> list[Rule]:
    rules: list[Rule] = []
    for idx, record in enumerate(records):
        rule = rule_from_dict(record)
        if rule is None:
            logger.warning("Skipping malformed rule record #%d", idx, extra={"rule_id": _record_id(record)})
            continue
        rules.append(rule)
    return rules


def rule_from_dict(record: Any) -> Optional[Rule]:
    """Build a Rule from a plain mapping, or None when the record is unusable."""
    if not isinstance(record, dict):
        return None
    if any(not record.get(f) for f in _REQUIRED_FIELDS):
        return None

    severity = str(record["severity"]).strip().lower()
    if severity not in Severity.ORDER:
        logger.warning("Rule %s has unknown severity %r", record["id"], record["severity"])
        return None

    applies_to = frozenset(
        str(t).strip().lower() for t in _as_list(record.get("applies_to"))
    )
    unknown = applies_to - set(CONTENT_TYPES)
    if unknown:
        logger.warning("Rule %s targets unknown content types %s", record["id"], sorted(unknown))

    return Rule(
        id=str(record["id"]),
        category=str(record["category"]),
        severity=severity,
        pattern=str(record["pattern"]),
        message=str(record.get("message") or ""),
        replacement=_opt_str(record.get("replacement")),
        suggestion=_opt_str(record.get("suggestion")),
        context_exceptions=frozenset(str(e) for e in _as_list(record.get("context_exceptions")) if str(e).strip()),
        applies_to=applies_to,
    )


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def _opt_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _record_id(record: Any) -> Optional[str]:
    return str(record.get("id")) if isinstance(record, dict) and record.get("id") else None
