"""Configuration management for the sniffkit CLI.

Handles configuration loading from multiple sources with precedence:
CLI args > environment variables > .sniffkitrc > pyproject.toml > defaults

A YAML ruleset named by the ``ruleset`` setting seeds the rule selection and
per-rule options; explicit settings from any source win over it.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from sniffkit.errors import ConfigurationError
from sniffkit.ruleset import load_ruleset
from sniffkit.runloop import DEFAULT_MAX_ITERATIONS

# tomllib is only available in Python 3.11+
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import-not-found]

CONFIG_FILENAME = ".sniffkitrc"
ENV_PREFIX = "SNIFFKIT_"


@dataclass
class SniffkitConfig:
    """Configuration for a sniffkit run.

    Attributes:
        rules: Rule ids to enable; empty enables every registered rule.
        exclude: Rule ids to disable.
        fix: Whether to run the fix loop.
        max_iterations: Maximum number of fix passes per file (default: 50).
        workers: Number of files processed concurrently (default: 4).
        extensions: File extensions collected from directories (default: php).
        ruleset: Optional path to a YAML ruleset.
        rule_options: Per-rule option mappings, keyed by rule id.
    """

    rules: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    fix: bool = False
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    workers: int = 4
    extensions: list[str] = field(default_factory=lambda: ["php"])
    ruleset: str | None = None
    rule_options: dict[str, dict[str, Any]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self) -> None:
        """Validate configuration values.

        Raises:
            ConfigurationError: If any configuration value is invalid.
        """
        for name in ("rules", "exclude", "extensions"):
            value = getattr(self, name)
            if not isinstance(value, list) or not all(isinstance(v, str) and v for v in value):
                raise ConfigurationError(f"{name} must be a list of non-empty strings")

        if not isinstance(self.fix, bool):
            raise ConfigurationError("fix must be a boolean")

        # bool is an int subclass; reject it explicitly
        for name in ("max_iterations", "workers"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigurationError(f"{name} must be an integer >= 1")

        if not self.extensions:
            raise ConfigurationError("extensions must not be empty")

        if self.ruleset is not None and (not isinstance(self.ruleset, str) or not self.ruleset):
            raise ConfigurationError("ruleset must be a non-empty string")

        if not isinstance(self.rule_options, dict) or not all(
            isinstance(v, dict) for v in self.rule_options.values()
        ):
            raise ConfigurationError("rule_options must map rule ids to tables")

    def normalized_extensions(self) -> list[str]:
        """Extensions without their leading dot, lowercased."""
        return [ext.lower().lstrip(".") for ext in self.extensions]


def _get_config_field_names() -> set[str]:
    """Get the set of valid configuration field names."""
    return {f.name for f in fields(SniffkitConfig)}


def find_config_file(filename: str = CONFIG_FILENAME, start_dir: Path | None = None) -> Path | None:
    """Find a configuration file by traversing up the directory tree.

    Args:
        filename: Name of the config file to find.
        start_dir: Directory to start searching from. Defaults to current directory.

    Returns:
        Path to the config file if found, None otherwise.
    """
    current = (start_dir or Path.cwd()).resolve()

    while True:
        config_path = current / filename
        if config_path.is_file():
            return config_path

        parent = current.parent
        if parent == current:
            return None
        current = parent


def _load_toml_file(path: Path) -> dict[str, Any]:
    """Load a TOML file and return its contents.

    Raises:
        ConfigurationError: If the file cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as f:
            result: dict[str, Any] = tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e
    return result


def _known_fields(data: dict[str, Any]) -> dict[str, Any]:
    valid_fields = _get_config_field_names()
    return {k: v for k, v in data.items() if k in valid_fields}


def _load_from_rcfile(start_dir: Path | None = None) -> dict[str, Any]:
    """Load configuration from the .sniffkitrc file, or {} if there is none."""
    config_path = find_config_file(CONFIG_FILENAME, start_dir)
    if config_path is None:
        return {}
    return _known_fields(_load_toml_file(config_path))


def _load_from_pyproject(start_dir: Path | None = None) -> dict[str, Any]:
    """Load configuration from the pyproject.toml [tool.sniffkit] section."""
    config_path = find_config_file("pyproject.toml", start_dir)
    if config_path is None:
        return {}
    data = _load_toml_file(config_path)
    section = data.get("tool", {}).get("sniffkit", {})
    return _known_fields(section)


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off", ""):
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}")


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from e


def _load_from_env() -> dict[str, Any]:
    """Load configuration from environment variables.

    Variables are prefixed with SNIFFKIT_ and use uppercase names, for example
    SNIFFKIT_RULES=silly_assignment,duplicate_array_keys or SNIFFKIT_WORKERS=8.
    List values are comma-separated.
    """
    result: dict[str, Any] = {}
    for key in ("rules", "exclude", "extensions"):
        value = os.environ.get(ENV_PREFIX + key.upper())
        if value is not None:
            result[key] = _split_list(value)
    for key in ("max_iterations", "workers"):
        env_var = ENV_PREFIX + key.upper()
        value = os.environ.get(env_var)
        if value is not None:
            result[key] = _parse_int(env_var, value)
    fix = os.environ.get(ENV_PREFIX + "FIX")
    if fix is not None:
        result["fix"] = _parse_bool(ENV_PREFIX + "FIX", fix)
    ruleset = os.environ.get(ENV_PREFIX + "RULESET")
    if ruleset:
        result["ruleset"] = ruleset
    return result


def _merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """Merge configuration dictionaries; later ones take precedence.

    ``rule_options`` tables are merged per rule instead of replaced.
    """
    result: dict[str, Any] = {}
    for config in configs:
        for key, value in config.items():
            if value is None:
                continue
            if key == "rule_options" and isinstance(value, dict):
                merged = dict(result.get("rule_options", {}))
                for rule_id, options in value.items():
                    current = merged.get(rule_id, {})
                    if isinstance(current, dict) and isinstance(options, dict):
                        merged[rule_id] = {**current, **options}
                    else:
                        merged[rule_id] = options
                result[key] = merged
            else:
                result[key] = value
    return result


def _apply_ruleset(merged: dict[str, Any], start_dir: Path | None) -> dict[str, Any]:
    """Seed rules, exclusions and options from the configured YAML ruleset."""
    path = Path(merged["ruleset"])
    if not path.is_absolute():
        path = (start_dir or Path.cwd()) / path
    ruleset = load_ruleset(path)

    seeded: dict[str, Any] = {
        "rules": ruleset.rules,
        "exclude": ruleset.exclude,
        "rule_options": ruleset.options,
    }
    result = _merge_configs(seeded, merged)
    result["exclude"] = sorted(set(ruleset.exclude) | set(merged.get("exclude", [])))
    return result


def load_config(
    cli_overrides: dict[str, Any] | None = None,
    start_dir: Path | None = None,
) -> SniffkitConfig:
    """Load configuration with full precedence chain.

    Precedence (highest to lowest):
    1. CLI arguments (cli_overrides)
    2. Environment variables (SNIFFKIT_*)
    3. .sniffkitrc file
    4. pyproject.toml [tool.sniffkit] section
    5. Ruleset named by ``ruleset``, then default values

    Args:
        cli_overrides: Configuration overrides from CLI arguments.
        start_dir: Directory to start searching for config files.

    Returns:
        Fully resolved SniffkitConfig instance.

    Raises:
        ConfigurationError: If any source is unreadable or the resulting
            configuration is invalid.
    """
    pyproject_config = _load_from_pyproject(start_dir)
    rcfile_config = _load_from_rcfile(start_dir)
    env_config = _load_from_env()
    cli_config = _known_fields(cli_overrides or {})

    merged = _merge_configs(pyproject_config, rcfile_config, env_config, cli_config)
    if merged.get("ruleset"):
        merged = _apply_ruleset(merged, start_dir)

    try:
        return SniffkitConfig(**merged)
    except TypeError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
