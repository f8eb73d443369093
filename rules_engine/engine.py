"""
Pattern rule engine.

A RuleEngine owns the currently active RuleSet. Loading compiles a fresh,
immutable RuleSet and swaps the reference in one assignment, so evaluations
already in flight keep the set they started with and never observe a
partially-loaded catalogue.
"""
from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from config import EXCEPTION_WINDOW_CHARS, settings
from log_config import get_logger
from models import Issue, Rule
from rules_engine.loader import load_rules_file

logger = get_logger("rules.engine")


@dataclass(frozen=True)
class CompiledRule:
    rule: Rule
    regex: re.Pattern


@dataclass(frozen=True)
class RuleSet:
    rules: tuple[CompiledRule, ...] = ()
    source: str = ""
    loaded_at: datetime = field(default_factory=datetime.now)

    def __len__(self) -> int:
        return len(self.rules)

    @classmethod
    def compile(cls, rules: Iterable[Rule], source: str = "") -> "RuleSet":
        compiled: list[CompiledRule] = []
        seen: set[str] = set()
        for rule in rules:
            if rule.id in seen:
                logger.warning("Duplicate rule id %s; keeping the first", rule.id, extra={"rule_id": rule.id})
                continue
            try:
                regex = re.compile(rule.pattern, re.IGNORECASE)
            except re.error as exc:
                logger.warning("Skipping rule %s: invalid pattern (%s)", rule.id, exc, extra={"rule_id": rule.id})
                continue
            seen.add(rule.id)
            compiled.append(CompiledRule(rule=rule, regex=regex))
        return cls(rules=tuple(compiled), source=source)


class RuleEngine:
    """Evaluates text against the active rule set; safe for concurrent readers."""

    def __init__(
        self,
        rules: Optional[Iterable[Rule]] = None,
        exception_window: int = EXCEPTION_WINDOW_CHARS,
    ):
        self.exception_window = exception_window
        self._write_lock = threading.Lock()
        self._ruleset = RuleSet()
        if rules is not None:
            self.load(rules)

    # ── Loading ───────────────────────────────────────────────────────────────

    @property
    def ruleset(self) -> RuleSet:
        return self._ruleset

    @property
    def rules(self) -> list[Rule]:
        return [c.rule for c in self._ruleset.rules]

    def load(self, rules: Iterable[Rule], source: str = "") -> RuleSet:
        """Compile rules and atomically replace the active set."""
        ruleset = RuleSet.compile(rules, source=source)
        with self._write_lock:
            self._ruleset = ruleset
        logger.info("Rule set loaded", extra={"rule_count": len(ruleset)})
        return ruleset

    def reload(self, path: str | Path | None = None) -> RuleSet:
        """Re-read the YAML catalogue and swap it in."""
        path = Path(path or settings.RULES_PATH)
        return self.load(load_rules_file(path), source=str(path))

    # ── Evaluation ────────────────────────────────────────────────────────────

    def evaluate(self, text: str, content_type: str = "edm") -> list[Issue]:
        """Return one issue per rule match not vetoed by a nearby context exception."""
        if not text:
            return []

        ruleset = self._ruleset   # single snapshot for the whole evaluation
        lowered = text.lower()
        issues: list[Issue] = []

        for compiled in ruleset.rules:
            rule = compiled.rule
            if not rule.applies(content_type):
                continue

            for match in compiled.regex.finditer(text):
                if match.end() == match.start():
                    continue
                if self._has_context_exception(rule, lowered, match.start(), match.end()):
                    continue
                issues.append(Issue(
                    rule_id=rule.id,
                    type="brand_compliance",
                    category=rule.category,
                    severity=rule.severity,
                    message=rule.message,
                    original=match.group(0),
                    suggestion=rule.replacement or rule.suggestion,
                    position=match.start(),
                    length=match.end() - match.start(),
                ))

        return issues

    def _has_context_exception(self, rule: Rule, lowered: str, start: int, end: int) -> bool:
        if not rule.context_exceptions:
            return False
        window = lowered[max(0, start - self.exception_window): end + self.exception_window]
        return any(exc.lower() in window for exc in rule.context_exceptions)


# ── Module-level default handle ───────────────────────────────────────────────

_default_engine: Optional[RuleEngine] = None
_default_lock = threading.Lock()


def get_default_engine() -> RuleEngine:
    """Engine loaded from the configured catalogue on first use."""
    global _default_engine
    if _default_engine is None:
        with _default_lock:
            if _default_engine is None:
                engine = RuleEngine()
                engine.reload()
                _default_engine = engine
    return _default_engine
