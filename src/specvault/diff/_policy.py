"""Breaking-change policy.

A change is breaking when a previously valid client payload could now be
rejected, or a previously guaranteed response field could now be absent.
Some rules always apply; the rest are toggled by :class:`BreakingPolicy`.
"""

from dataclasses import dataclass
from typing import Self

from specvault.config import BreakingPolicyConfiguration

# new type -> old types it widens; anything else is a narrowing change.
_WIDENINGS: dict[str, frozenset[str]] = {
    "number": frozenset({"integer"}),
}


@dataclass(frozen=True, slots=True)
class BreakingPolicy:
    """Configurable breaking-change rules.

    Attributes:
        required_parameter_added: A newly required parameter is breaking.
        response_removed: A removed response status code is breaking.
        enum_value_removed: Removing an allowed enum value is breaking.
        format_narrowed: Adding or changing a declared format is breaking.
    """

    required_parameter_added: bool = True
    response_removed: bool = True
    enum_value_removed: bool = True
    format_narrowed: bool = False

    @classmethod
    def from_config(cls, config: BreakingPolicyConfiguration) -> Self:
        """Build a policy from the ``[breaking]`` configuration section."""
        return cls(
            required_parameter_added=config.required_parameter_added,
            response_removed=config.response_removed,
            enum_value_removed=config.enum_value_removed,
            format_narrowed=config.format_narrowed,
        )


def _as_types(value: str | frozenset[str] | None) -> frozenset[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        return frozenset({value})
    return value


def is_type_narrowed(
    old: str | frozenset[str] | None, new: str | frozenset[str] | None
) -> bool:
    """Return whether changing a declared type from ``old`` to ``new`` narrows it.

    Types may be a single name or a set of names (the 3.1 list form).
    Dropping the type entirely and ``integer`` to ``number`` widen. Adding a
    type to an untyped schema narrows, as does any change that leaves an old
    type uncovered by the new ones.

    Examples:
        >>> is_type_narrowed("number", "integer")
        True
        >>> is_type_narrowed("integer", "number")
        False
        >>> is_type_narrowed(None, "string")
        True
        >>> is_type_narrowed(frozenset({"string", "null"}), "string")
        True
    """
    old_types, new_types = _as_types(old), _as_types(new)
    if not new_types or old_types == new_types:
        return False
    if not old_types:
        return True
    covered = new_types.union(
        *(_WIDENINGS.get(name, frozenset()) for name in new_types)
    )
    return not old_types <= covered


def is_format_narrowed(old: str | None, new: str | None) -> bool:
    """Return whether a format change restricts the accepted values."""
    return new is not None and old != new
