"""Rule registry mapping rule ids to rule classes.

The registry is the single lookup point used by the runner and the CLI to turn
configured rule ids into rule instances. Built-in rules are registered by
``_create_default_registry``.
"""

from __future__ import annotations

from collections.abc import Iterable

from sniffkit.errors import UnknownRuleError
from sniffkit.rules.base import Rule


class RuleRegistry:
    """Registry that maps rule ids to rule classes.

    Example:
        >>> registry = RuleRegistry()
        >>> registry.register(SillyAssignment)
        >>> rules = registry.resolve(["silly_assignment"])
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._rules: dict[str, type[Rule]] = {}

    def register(self, rule_class: type[Rule]) -> type[Rule]:
        """Register a rule class by its rule_id.

        Returns the class so it can be used as a decorator.

        Args:
            rule_class: A class implementing the Rule protocol.

        Raises:
            ValueError: If the rule has no rule_id or if a rule with the
                same rule_id is already registered.
        """
        rule_id = getattr(rule_class, "rule_id", "")
        if not rule_id:
            raise ValueError(f"Rule class {rule_class.__name__} has no rule_id defined")
        if rule_id in self._rules:
            raise ValueError(
                f"Rule '{rule_id}' already registered: {self._rules[rule_id].__name__}"
            )
        self._rules[rule_id] = rule_class
        return rule_class

    def has_rule(self, rule_id: str) -> bool:
        """Check if a rule is registered for the given rule_id."""
        return rule_id in self._rules

    def get_rule_class(self, rule_id: str) -> type[Rule] | None:
        return self._rules.get(rule_id)

    def list_rule_ids(self) -> list[str]:
        """List all registered rule ids.

        Returns:
            Sorted list of registered rule ids.
        """
        return sorted(self._rules)

    def rule_classes(self) -> list[type[Rule]]:
        """Registered rule classes, sorted by rule_id."""
        return [self._rules[rule_id] for rule_id in self.list_rule_ids()]

    def resolve(
        self, rule_ids: Iterable[str] | None = None, exclude: Iterable[str] = ()
    ) -> list[Rule]:
        """Instantiate the active rule set.

        Args:
            rule_ids: Rule ids to enable. None or empty enables every
                registered rule.
            exclude: Rule ids to drop from the active set.

        Returns:
            Rule instances sorted by rule_id.

        Raises:
            UnknownRuleError: If any requested or excluded id is not
                registered.
        """
        requested = list(rule_ids or [])
        excluded = list(exclude)
        unknown = sorted({r for r in requested + excluded if r not in self._rules})
        if unknown:
            raise UnknownRuleError(unknown)
        active = set(requested) if requested else set(self._rules)
        active.difference_update(excluded)
        return [self._rules[rule_id]() for rule_id in sorted(active)]


# Global registry instance, populated on first use
_global_registry: RuleRegistry | None = None


def get_global_registry() -> RuleRegistry:
    """Get the global rule registry.

    Returns a singleton registry instance that is populated with all
    built-in rules.

    Returns:
        The global RuleRegistry instance.
    """
    global _global_registry
    if _global_registry is None:
        _global_registry = _create_default_registry()
    return _global_registry


def _create_default_registry() -> RuleRegistry:
    """Create and populate the default registry with built-in rules.

    Returns:
        A RuleRegistry populated with all built-in rules.
    """
    # Import here to avoid circular imports
    from sniffkit.rules import (
        code_smell,
        code_style,
        compatibility,
        control_flow,
        general,
        performance,
        probable_bugs,
    )

    registry = RuleRegistry()
    for module in (
        code_smell,
        code_style,
        compatibility,
        control_flow,
        general,
        performance,
        probable_bugs,
    ):
        for rule_class in module.RULES:
            registry.register(rule_class)
    return registry
