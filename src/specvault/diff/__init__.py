"""Structural diff engine for document trees."""

from specvault.diff._engine import OPERATION_FIELDS, compare
from specvault.diff._models import (
    DiffResult,
    EndpointChange,
    EndpointGroup,
    SchemaChange,
    SchemaEntry,
)
from specvault.diff._policy import BreakingPolicy, is_format_narrowed, is_type_narrowed

__all__ = [
    "OPERATION_FIELDS",
    "BreakingPolicy",
    "DiffResult",
    "EndpointChange",
    "EndpointGroup",
    "SchemaChange",
    "SchemaEntry",
    "compare",
    "is_format_narrowed",
    "is_type_narrowed",
]
