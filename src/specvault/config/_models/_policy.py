"""Breaking-change policy and audit configuration models."""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict


class BreakingPolicyConfiguration(BaseModel):
    """Toggles for the configurable breaking-change rules.

    Removed endpoints, removed schemas, removed request bodies, required-set
    growth, type narrowing and removal of required properties are always
    breaking and cannot be switched off.

    Attributes:
        required_parameter_added: A new required parameter is breaking.
        response_removed: A removed response status code is breaking.
        enum_value_removed: Removing an allowed enum value is breaking.
        format_narrowed: Adding or changing a property format is breaking.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    required_parameter_added: bool = True
    response_removed: bool = True
    enum_value_removed: bool = True
    format_narrowed: bool = False


class AuditConfiguration(BaseModel):
    """Audit log configuration.

    Attributes:
        lock_appends: Serialize read-append-write cycles through the lock
            manager.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    lock_appends: bool = True
