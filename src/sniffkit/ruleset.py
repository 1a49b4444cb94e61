"""YAML rulesets.

A ruleset names the rules to run and their options::

    rules:
      - duplicate_array_keys
      - too_many_parameters:
          max_args_methods: 4
    exclude:
      - traditional_array_syntax

Entries of ``rules`` are either a bare rule id or a one-key mapping from the
rule id to its options.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from sniffkit.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class Ruleset:
    """Rule selection loaded from a ruleset file.

    Attributes:
        rules: Rule ids to enable, in file order.
        exclude: Rule ids to disable.
        options: Per-rule option mappings.
    """

    rules: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    options: dict[str, dict[str, Any]] = field(default_factory=dict)


def load_ruleset(path: Path) -> Ruleset:
    """Load a YAML ruleset.

    Args:
        path: Path to the ruleset file.

    Returns:
        The parsed Ruleset.

    Raises:
        ConfigurationError: If the file cannot be read, is not valid YAML, or
            does not have the expected structure.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read ruleset {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse ruleset {path}: {e}") from e

    ruleset = parse_ruleset(data if data is not None else {}, source=str(path))
    logger.debug("Loaded ruleset %s: %d rule(s)", path, len(ruleset.rules))
    return ruleset


def parse_ruleset(data: Any, source: str = "<ruleset>") -> Ruleset:
    """Build a Ruleset from already-parsed YAML data."""
    if not isinstance(data, dict):
        raise ConfigurationError(f"{source}: ruleset must be a mapping")

    ruleset = Ruleset()
    for entry in data.get("rules") or []:
        if isinstance(entry, str):
            ruleset.rules.append(entry)
        elif isinstance(entry, dict) and len(entry) == 1:
            rule_id, options = next(iter(entry.items()))
            if options is not None and not isinstance(options, dict):
                raise ConfigurationError(f"{source}: options of {rule_id!r} must be a mapping")
            ruleset.rules.append(str(rule_id))
            if options:
                ruleset.options[str(rule_id)] = dict(options)
        else:
            raise ConfigurationError(f"{source}: invalid rule entry {entry!r}")

    exclude = data.get("exclude") or []
    if not isinstance(exclude, list) or not all(isinstance(e, str) for e in exclude):
        raise ConfigurationError(f"{source}: exclude must be a list of rule ids")
    ruleset.exclude = list(exclude)
    return ruleset
