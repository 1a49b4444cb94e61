"""Tests for the rule registry."""

from __future__ import annotations

from typing import ClassVar

import pytest

from sniffkit.errors import UnknownRuleError
from sniffkit.rules.base import Rule
from sniffkit.rules.registry import RuleRegistry, get_global_registry

BUILT_IN_RULES = [
    "array_push_misused",
    "before_and_after_concatenate",
    "declare_strict_types",
    "deprecated_old_constructor_style",
    "duplicate_array_keys",
    "duplicate_switch_case",
    "elvis_operator_can_be_used",
    "foreach_array_is_used_as_key_or_value",
    "is_null_could_be_replaced_by_null_operator",
    "mktime_not_compatible",
    "nested_not_operator_usage",
    "nested_positive_ifs",
    "no_case_check_for_strstr_strpos_strrpos",
    "prefixed_increment_or_decrement",
    "random_are_not_mersenne_twister",
    "silly_assignment",
    "ternary_operator_could_be_simplified",
    "too_many_parameters",
    "traditional_array_syntax",
    "wrong_catch_order",
]


class DummyRule:
    rule_id: ClassVar[str] = "dummy"
    category: ClassVar[str] = "test"
    description: ClassVar[str] = "Does nothing."

    def interest_set(self):
        return frozenset()

    def process(self, stream, index, context):
        return None


class NamelessRule(DummyRule):
    rule_id: ClassVar[str] = ""


class TestRuleRegistry:
    """Tests for RuleRegistry."""

    def test_register_and_lookup(self) -> None:
        registry = RuleRegistry()
        assert registry.register(DummyRule) is DummyRule
        assert registry.has_rule("dummy")
        assert registry.get_rule_class("dummy") is DummyRule
        assert registry.get_rule_class("missing") is None

    def test_register_duplicate_raises(self) -> None:
        registry = RuleRegistry()
        registry.register(DummyRule)
        with pytest.raises(ValueError, match="already registered"):
            registry.register(DummyRule)

    def test_register_without_id_raises(self) -> None:
        with pytest.raises(ValueError, match="has no rule_id"):
            RuleRegistry().register(NamelessRule)


class TestResolve:
    """Tests for turning rule ids into rule instances."""

    def test_all_rules_by_default(self) -> None:
        rules = get_global_registry().resolve()
        assert [rule.rule_id for rule in rules] == BUILT_IN_RULES

    def test_selection_is_sorted(self) -> None:
        rules = get_global_registry().resolve(["silly_assignment", "duplicate_array_keys"])
        assert [rule.rule_id for rule in rules] == ["duplicate_array_keys", "silly_assignment"]

    def test_exclude(self) -> None:
        rules = get_global_registry().resolve(exclude=["silly_assignment"])
        ids = [rule.rule_id for rule in rules]
        assert "silly_assignment" not in ids
        assert len(ids) == len(BUILT_IN_RULES) - 1

    def test_unknown_rule(self) -> None:
        with pytest.raises(UnknownRuleError, match="Unknown rule\\(s\\): nope, zzz") as exc_info:
            get_global_registry().resolve(["zzz", "silly_assignment"], exclude=["nope"])
        assert exc_info.value.rule_ids == ["nope", "zzz"]

    def test_instances_satisfy_protocol(self) -> None:
        for rule in get_global_registry().resolve():
            assert isinstance(rule, Rule)
            assert rule.category
            assert rule.description
            assert rule.interest_set()
