"""
Tests for the pattern rule engine and the YAML catalogue loader.
"""

import threading

import pytest

from config import DEFAULT_RULES_PATH
from models import Rule, Severity
from rules_engine.engine import RuleEngine, RuleSet
from rules_engine.loader import load_rules_file, rule_from_dict, rules_from_records


def _rule(**overrides) -> Rule:
    base = dict(
        id="terminology_001",
        category="terminology",
        severity=Severity.MEDIUM,
        pattern=r"\be-mail\b",
        message='Use "email"',
        replacement="email",
    )
    base.update(overrides)
    return Rule(**base)


class TestEvaluate:
    """Rule matching over plain text."""

    def test_match_produces_issue(self):
        engine = RuleEngine([_rule()])
        issues = engine.evaluate("Send us an e-mail today.")
        assert len(issues) == 1
        issue = issues[0]
        assert issue.rule_id == "terminology_001"
        assert issue.original == "e-mail"
        assert issue.suggestion == "email"
        assert issue.position == 11
        assert issue.length == 6
        assert issue.type == "brand_compliance"

    def test_case_insensitive(self):
        engine = RuleEngine([_rule()])
        assert len(engine.evaluate("E-MAIL and E-Mail")) == 2

    def test_every_occurrence_reported(self):
        engine = RuleEngine([_rule()])
        issues = engine.evaluate("e-mail, e-mail, e-mail")
        assert [i.position for i in issues] == [0, 8, 16]

    def test_empty_text_short_circuits(self):
        engine = RuleEngine([_rule()])
        assert engine.evaluate("") == []

    def test_suggestion_falls_back_to_rule_suggestion(self):
        engine = RuleEngine([_rule(replacement=None, suggestion="Rephrase")])
        assert engine.evaluate("e-mail")[0].suggestion == "Rephrase"

    def test_zero_width_matches_ignored(self):
        engine = RuleEngine([_rule(id="empty_001", pattern=r"x*")])
        assert engine.evaluate("abc") == []


class TestContextExceptions:
    """A nearby exception phrase vetoes the match."""

    def test_exception_inside_window_suppresses(self):
        rule = _rule(pattern=r"\binterest rate\b", context_exceptions=frozenset({"conventional"}))
        engine = RuleEngine([rule])
        assert engine.evaluate("Our conventional loan has a low interest rate.") == []

    def test_exception_outside_window_does_not_suppress(self):
        rule = _rule(pattern=r"\binterest rate\b", context_exceptions=frozenset({"conventional"}))
        engine = RuleEngine([rule], exception_window=20)
        text = "conventional" + " " * 60 + "interest rate"
        assert len(engine.evaluate(text)) == 1

    def test_exception_match_is_case_insensitive(self):
        rule = _rule(pattern=r"\binterest rate\b", context_exceptions=frozenset({"Conventional"}))
        engine = RuleEngine([rule])
        assert engine.evaluate("CONVENTIONAL INTEREST RATE") == []


class TestAppliesTo:
    """Content-type scoping."""

    def test_rule_scoped_out(self):
        engine = RuleEngine([_rule(applies_to=frozenset({"web"}))])
        assert engine.evaluate("e-mail", content_type="edm") == []

    def test_rule_scoped_in(self):
        engine = RuleEngine([_rule(applies_to=frozenset({"web"}))])
        assert len(engine.evaluate("e-mail", content_type="web")) == 1

    def test_empty_scope_applies_everywhere(self):
        engine = RuleEngine([_rule()])
        for content_type in ("edm", "web", "social", "document"):
            assert len(engine.evaluate("e-mail", content_type=content_type)) == 1


class TestRuleSetCompile:
    """Configuration errors are skipped, never fatal."""

    def test_invalid_pattern_skipped(self):
        ruleset = RuleSet.compile([_rule(id="bad_001", pattern="(unclosed"), _rule()])
        assert [c.rule.id for c in ruleset.rules] == ["terminology_001"]

    def test_duplicate_ids_keep_first(self):
        ruleset = RuleSet.compile([_rule(message="first"), _rule(message="second")])
        assert len(ruleset) == 1
        assert ruleset.rules[0].rule.message == "first"


class TestReload:
    """Hot reload swaps the whole rule set by reference."""

    def test_load_replaces_rules(self):
        engine = RuleEngine([_rule()])
        engine.load([_rule(id="terminology_002", pattern=r"\bon-line\b")])
        assert [r.id for r in engine.rules] == ["terminology_002"]
        assert engine.evaluate("e-mail") == []

    def test_previous_snapshot_untouched(self):
        engine = RuleEngine([_rule()])
        before = engine.ruleset
        engine.load([])
        assert len(before) == 1
        assert len(engine.ruleset) == 0

    def test_reload_from_yaml(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(
            "rules:\n"
            "  - id: tone_002\n"
            "    category: tone\n"
            "    severity: medium\n"
            "    pattern: '!{2,}'\n",
            encoding="utf-8",
        )
        engine = RuleEngine()
        ruleset = engine.reload(path)
        assert len(ruleset) == 1
        assert ruleset.source == str(path)
        assert engine.evaluate("Great!!")[0].rule_id == "tone_002"

    def test_concurrent_reads_during_reload(self):
        engine = RuleEngine([_rule()])
        errors = []

        def reader():
            for _ in range(200):
                count = len(engine.evaluate("e-mail"))
                if count not in (0, 1):
                    errors.append(count)

        def writer():
            for i in range(200):
                engine.load([_rule()] if i % 2 else [])

        threads = [threading.Thread(target=reader) for _ in range(4)] + [threading.Thread(target=writer)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert errors == []


class TestLoader:
    """YAML catalogue parsing."""

    def test_missing_file_returns_empty(self, tmp_path):
        assert load_rules_file(tmp_path / "nope.yaml") == []

    def test_invalid_yaml_returns_empty(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("rules: [unclosed", encoding="utf-8")
        assert load_rules_file(path) == []

    def test_missing_required_field_skipped(self):
        rules = rules_from_records([
            {"id": "a", "category": "tone", "severity": "low"},
            {"id": "b", "category": "tone", "severity": "low", "pattern": "x"},
        ])
        assert [r.id for r in rules] == ["b"]

    def test_unknown_severity_rejected(self):
        assert rule_from_dict({"id": "a", "category": "c", "severity": "urgent", "pattern": "x"}) is None

    def test_lists_normalized(self):
        rule = rule_from_dict({
            "id": "a", "category": "c", "severity": "HIGH", "pattern": "x",
            "context_exceptions": "only one", "applies_to": ["EDM", "web"],
        })
        assert rule.severity == Severity.HIGH
        assert rule.context_exceptions == frozenset({"only one"})
        assert rule.applies_to == frozenset({"edm", "web"})

    def test_bundled_catalogue_loads(self):
        rules = load_rules_file(DEFAULT_RULES_PATH)
        ids = {r.id for r in rules}
        assert "terminology_001" in ids
        assert "brand_name_001" in ids
        assert len(RuleSet.compile(rules)) == len(rules)


class TestBundledRules:
    """Spot checks against the shipped catalogue."""

    @pytest.fixture(scope="class")
    def engine(self):
        return RuleEngine(load_rules_file(DEFAULT_RULES_PATH))

    def test_brand_name_misspelling(self, engine):
        issues = engine.evaluate("Welcome to EmiratesNBD banking.", content_type="web")
        assert any(i.rule_id == "brand_name_001" for i in issues)

    def test_brand_domain_not_flagged(self, engine):
        issues = engine.evaluate("Visit emiratesnbd.com for details.", content_type="web")
        assert not any(i.rule_id == "brand_name_001" for i in issues)

    def test_interest_rate_exception(self, engine):
        issues = engine.evaluate("Conventional loans carry an interest rate.", content_type="edm")
        assert not any(i.rule_id == "terminology_004" for i in issues)

    def test_lorem_ipsum_only_for_edm(self, engine):
        assert any(i.rule_id == "template_placeholder_001" for i in engine.evaluate("Lorem ipsum dolor", "edm"))
        assert not any(i.rule_id == "template_placeholder_001" for i in engine.evaluate("Lorem ipsum dolor", "web"))
