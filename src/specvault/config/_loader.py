# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""TOML configuration file loading and merging."""

import os
import re
import tomllib
from pathlib import Path
from typing import Any

import orjson

from specvault.exceptions import ConfigLoadError

ENV_PREFIX = "SPECVAULT_"

# Variables read directly by other components, not config keys.
_RESERVED_ENV_VARS = frozenset({"SPECVAULT_DEBUG"})

_LOCATION_PATTERN = re.compile(r"at line (?P<line>\d+), column (?P<column>\d+)")


def read_toml_file(path: Path) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Read and parse a TOML file.

    Args:
        path: Path to the TOML file.

    Returns:
        Parsed TOML content as dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file cannot be parsed.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Failed to parse TOML file: {e}"
        line, column = _error_location(e)
        raise ConfigLoadError(
            msg,
            path=str(path),
            line=line,
            column=column,
        ) from e


def _error_location(error: tomllib.TOMLDecodeError) -> tuple[int | None, int | None]:
    # lineno/colno only exist on 3.14+; older releases embed them in the message.
    line: int | None = getattr(error, "lineno", None)
    column: int | None = getattr(error, "colno", None)
    if line is None:
        match = _LOCATION_PATTERN.search(str(error))
        if match:
            line, column = int(match["line"]), int(match["column"])
    return line, column


def deep_merge(
    base: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    override: dict[str, Any],  # pyright: ignore[reportExplicitAny]
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Deep merge two configuration dictionaries.

    Merges `override` into `base`, returning a new dictionary. Neither input
    is modified.

    Merge rules:
        - Dictionaries are recursively merged
        - Lists and scalars are replaced by the override value
        - Missing keys in override preserve base values
    """
    result: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]

    for key in base.keys() | override.keys():
        if key not in override:
            result[key] = copy_value(base[key])
        elif key not in base:
            result[key] = copy_value(override[key])
        elif isinstance(base[key], dict) and isinstance(override[key], dict):
            result[key] = deep_merge(base[key], override[key])
        else:
            result[key] = copy_value(override[key])

    return result


def copy_value(value: Any) -> Any:  # pyright: ignore[reportExplicitAny]
    """Recursively copy dicts and lists so the result shares no structure."""
    if isinstance(value, dict):
        return {k: copy_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [copy_value(item) for item in value]
    return value


def set_nested_key(
    d: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    key_path: str,
    value: Any,  # pyright: ignore[reportExplicitAny]
) -> None:
    """Set a value at a dotted key path in a nested dictionary.

    Creates intermediate dictionaries as needed, replacing any non-dict
    value found along the way.

    Example:
        >>> d = {}
        >>> set_nested_key(d, "lock.retries", 3)
        >>> d
        {'lock': {'retries': 3}}
    """
    parts = key_path.split(".")
    current = d

    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            current[part] = {}
        current = current[part]

    current[parts[-1]] = value


def parse_env_vars(
    prefix: str = ENV_PREFIX,
    environ: dict[str, str] | None = None,
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Parse environment variables into a config dictionary.

    Args:
        prefix: Environment variable prefix.
        environ: Mapping to read instead of ``os.environ``.

    Returns:
        Dictionary of parsed config values with nested structure.

    Environment variable naming:
        - Add prefix (SPECVAULT_)
        - Convert to uppercase
        - Replace dots with double underscores
        - Example: lock.retries -> SPECVAULT_LOCK__RETRIES
    """
    source = os.environ if environ is None else environ
    result: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]

    for key, value in source.items():
        if not key.startswith(prefix) or key in _RESERVED_ENV_VARS:
            continue

        config_key = key[len(prefix) :]
        if not config_key:
            continue

        # SPECVAULT_LOCK__RETRIES -> lock.retries
        config_path = config_key.replace("__", ".").lower()
        set_nested_key(result, config_path, parse_string_value(value))

    return result


def parse_string_value(value: str) -> Any:  # pyright: ignore[reportExplicitAny]
    """Parse a string value with automatic type inference.

    Precedence:
    1. Boolean: true/false (case-insensitive)
    2. Integer: parseable as int (no decimal)
    3. Float: parseable as float (with decimal)
    4. JSON array/object: starts with [ or {
    5. String: fallback

    Examples:
        >>> parse_string_value("true")
        True
        >>> parse_string_value("42")
        42
        >>> parse_string_value("0.5")
        0.5
    """
    lower_value = value.lower()
    if lower_value in ("true", "false"):
        return lower_value == "true"

    if "." not in value:
        try:
            return int(value)
        except ValueError:
            pass
    else:
        try:
            return float(value)
        except ValueError:
            pass

    if (value.startswith("[") and value.endswith("]")) or (
        value.startswith("{") and value.endswith("}")
    ):
        try:
            return orjson.loads(value)
        except orjson.JSONDecodeError:
            pass

    return value
