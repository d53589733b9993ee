"""Structural comparison of two document trees.

``compare`` is pure: it never mutates its inputs, performs no I/O and
returns identical output for identical input. Everything it emits is
sorted lexicographically.
"""

from collections import defaultdict
from collections.abc import Iterable

from specvault.diff._models import (
    DiffResult,
    EndpointChange,
    EndpointGroup,
    SchemaChange,
    SchemaEntry,
)
from specvault.diff._policy import BreakingPolicy, is_format_narrowed, is_type_narrowed
from specvault.spec import ApiDocument, JsonObject, JsonValue, Operation, SchemaView

OPERATION_FIELDS: tuple[str, ...] = (
    "summary",
    "description",
    "parameters",
    "requestBody",
    "responses",
)


def _same(old: JsonValue, new: JsonValue) -> bool:
    # Identity first so a shared NaN compares equal to itself.
    return old is new or old == new


def _group_by_path(operations: Iterable[Operation]) -> tuple[EndpointGroup, ...]:
    grouped: defaultdict[str, list[str]] = defaultdict(list)
    for op in operations:
        grouped[op.path].append(op.method)
    return tuple(
        EndpointGroup(path=path, methods=tuple(sorted(methods)))
        for path, methods in sorted(grouped.items())
    )


# =============================================================================
# Endpoints
# =============================================================================


def _operation_changes(old: Operation, new: Operation) -> list[str]:
    return [
        name
        for name in OPERATION_FIELDS
        if not _same(old.field(name), new.field(name))
    ]


def _operation_breaking(
    old: Operation, new: Operation, policy: BreakingPolicy
) -> list[str]:
    breaking: list[str] = []
    if old.has_request_body and not new.has_request_body:
        breaking.append(f"Removed request body: {new.key}")

    if policy.required_parameter_added:
        for location, name in sorted(new.required_parameters - old.required_parameters):
            breaking.append(
                f"New required {location} parameter '{name}': {new.key}"
            )

    if policy.response_removed:
        for code in sorted(old.response_codes - new.response_codes):
            breaking.append(f"Removed response {code}: {new.key}")

    return breaking


# =============================================================================
# Schemas
# =============================================================================


def _schema_changes(
    old: SchemaView,
    new: SchemaView,
    policy: BreakingPolicy,
    prefix: str = "",
) -> tuple[list[str], list[str]]:
    """Describe how ``old`` became ``new``.

    Recurses into properties; nested locations are reported with dotted
    names relative to the schema (``address.city``).

    Returns:
        ``(changes, breaking)`` where ``breaking`` is the subset of
        ``changes`` the policy classifies as breaking.
    """
    changes: list[str] = []
    breaking: list[str] = []
    where = prefix or "schema"

    if old.types != new.types:
        change = (
            f"{where} type changed from {_type_label(old.types) or 'any'} "
            f"to {_type_label(new.types) or 'any'}"
        )
        changes.append(change)
        if is_type_narrowed(old.types, new.types):
            breaking.append(change)

    if old.format != new.format:
        change = (
            f"{where} format changed from {old.format or 'none'} "
            f"to {new.format or 'none'}"
        )
        changes.append(change)
        if policy.format_narrowed and is_format_narrowed(old.format, new.format):
            breaking.append(change)

    if old.enum != new.enum:
        removed = _removed_enum_values(old.enum, new.enum)
        change = f"{where} enum changed"
        if removed:
            change += f" (removed {', '.join(removed)})"
        changes.append(change)
        if policy.enum_value_removed and removed:
            breaking.append(change)

    newly_required = sorted(new.required - old.required)
    if newly_required:
        change = f"{where} required fields added: {', '.join(newly_required)}"
        changes.append(change)
        breaking.append(change)

    old_props = old.properties
    new_props = new.properties
    for name in sorted(old_props.keys() - new_props.keys()):
        change = f"{_join(prefix, name)} removed"
        changes.append(change)
        if name in old.required:
            breaking.append(f"required property {change}")

    for name in sorted(new_props.keys() - old_props.keys()):
        changes.append(f"{_join(prefix, name)} added")

    for name in sorted(old_props.keys() & new_props.keys()):
        old_prop, new_prop = old_props[name], new_props[name]
        if _same(old_prop.node, new_prop.node):
            continue
        sub_changes, sub_breaking = _schema_changes(
            old_prop, new_prop, policy, _join(prefix, name)
        )
        changes.extend(sub_changes or [f"{_join(prefix, name)} changed"])
        breaking.extend(sub_breaking)

    return changes, breaking


def _join(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


def _type_label(types: frozenset[str]) -> str:
    return "|".join(sorted(types))


def _removed_enum_values(
    old: tuple[JsonValue, ...] | None, new: tuple[JsonValue, ...] | None
) -> list[str]:
    if old is None:
        return []
    if new is None:
        # Dropping the enum removes the restriction entirely.
        return []
    return sorted({repr(v) for v in old if v not in new})


# =============================================================================
# Entry point
# =============================================================================


def compare(
    old_tree: JsonObject,
    new_tree: JsonObject,
    policy: BreakingPolicy | None = None,
) -> DiffResult:
    """Compare two document trees.

    Args:
        old_tree: The baseline tree.
        new_tree: The tree being compared against the baseline.
        policy: Breaking-change rules; defaults to :class:`BreakingPolicy`.

    Returns:
        The structural delta. ``compare(t, t)`` is always empty.
    """
    rules = policy or BreakingPolicy()
    old_doc = ApiDocument(old_tree)
    new_doc = ApiDocument(new_tree)
    breaking: list[str] = []

    old_ops = old_doc.endpoints()
    new_ops = new_doc.endpoints()
    added_ops = [new_ops[k] for k in sorted(new_ops.keys() - old_ops.keys())]
    deleted_ops = [old_ops[k] for k in sorted(old_ops.keys() - new_ops.keys())]
    breaking.extend(f"Removed endpoint: {op.key}" for op in deleted_ops)

    modified_ops: list[EndpointChange] = []
    for key in sorted(old_ops.keys() & new_ops.keys()):
        old_op, new_op = old_ops[key], new_ops[key]
        fields = _operation_changes(old_op, new_op)
        if not fields:
            continue
        modified_ops.append(
            EndpointChange(path=new_op.path, method=new_op.method, changes=tuple(fields))
        )
        breaking.extend(_operation_breaking(old_op, new_op, rules))

    old_schemas = old_doc.schemas()
    new_schemas = new_doc.schemas()
    added_schemas = sorted(new_schemas.keys() - old_schemas.keys())
    deleted_schemas = sorted(old_schemas.keys() - new_schemas.keys())
    breaking.extend(f"Removed schema: {name}" for name in deleted_schemas)

    modified_schemas: list[SchemaChange] = []
    for name in sorted(old_schemas.keys() & new_schemas.keys()):
        old_schema, new_schema = old_schemas[name], new_schemas[name]
        if _same(old_schema.node, new_schema.node):
            continue
        changes, schema_breaking = _schema_changes(old_schema, new_schema, rules)
        modified_schemas.append(
            SchemaChange(name=name, changes=tuple(changes or ["definition changed"]))
        )
        breaking.extend(f"Schema {name}: {change}" for change in schema_breaking)

    return DiffResult(
        endpoints_added=tuple(op.key for op in added_ops),
        endpoints_modified=tuple(sorted(change.key for change in modified_ops)),
        endpoints_deleted=tuple(op.key for op in deleted_ops),
        schemas_added=tuple(added_schemas),
        schemas_modified=tuple(change.name for change in modified_schemas),
        schemas_deleted=tuple(deleted_schemas),
        endpoints_added_detail=_group_by_path(added_ops),
        endpoints_deleted_detail=_group_by_path(deleted_ops),
        endpoints_modified_detail=tuple(modified_ops),
        schemas_added_detail=tuple(
            SchemaEntry(
                name=name, type=_type_label(new_schemas[name].types) or "object"
            )
            for name in added_schemas
        ),
        schemas_deleted_detail=tuple(
            SchemaEntry(
                name=name, type=_type_label(old_schemas[name].types) or "object"
            )
            for name in deleted_schemas
        ),
        schemas_modified_detail=tuple(modified_schemas),
        breaking_changes=tuple(sorted(breaking)),
    )
