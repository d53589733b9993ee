"""Default configuration values.

DEFAULT_CONFIG is a plain dict so it can be passed straight to deep_merge,
which always copies its inputs.
"""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
    "storage": {
        "root": "./data",
        "default_format": "yaml",
    },
    "lock": {
        "retries": 5,
        "retry_interval": 0.1,
        "max_interval": 2.0,
        "multiplier": 2.0,
        "jitter": 0.1,
        "stale_after": 10.0,
    },
    "logging": {
        "level": "info",
        "format": "json",
        "file": "",
    },
    "breaking": {
        "required_parameter_added": True,
        "response_removed": True,
        "enum_value_removed": True,
        "format_narrowed": False,
    },
    "audit": {
        "lock_appends": True,
    },
}
