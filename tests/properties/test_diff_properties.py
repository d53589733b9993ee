"""Property-based tests for the structural diff engine."""

import copy
from typing import Any

from hypothesis import given, strategies as st

from specvault.diff import compare
from specvault.spec import HTTP_METHODS, JsonObject

# =============================================================================
# Strategies
# =============================================================================

path_segment = st.text(alphabet="abcdefghij", min_size=1, max_size=6)
api_path = st.lists(path_segment, min_size=1, max_size=3).map(
    lambda parts: "/" + "/".join(parts)
)

response_codes = st.lists(
    st.sampled_from(["200", "201", "204", "400", "404"]), min_size=1, unique=True
)

parameter = st.fixed_dictionaries(
    {
        "in": st.sampled_from(["query", "header", "path"]),
        "name": path_segment,
        "required": st.booleans(),
    }
)

operation = st.fixed_dictionaries(
    {
        "summary": st.text(max_size=10),
        "responses": response_codes.map(
            lambda codes: {code: {"description": code} for code in codes}
        ),
    },
    optional={"parameters": st.lists(parameter, max_size=3)},
)

path_item = st.dictionaries(
    st.sampled_from(HTTP_METHODS), operation, min_size=1, max_size=3
)

property_schema = st.fixed_dictionaries(
    {"type": st.sampled_from(["string", "integer", "number", "boolean"])},
    optional={
        "format": st.sampled_from(["date", "uuid", "email"]),
        "enum": st.lists(st.integers(0, 5), min_size=1, max_size=3, unique=True),
    },
)

schema_name = st.text(alphabet="ABCDEFGH", min_size=1, max_size=5)


@st.composite
def object_schema(draw: st.DrawFn) -> dict[str, Any]:
    properties = draw(st.dictionaries(path_segment, property_schema, max_size=4))
    required: list[str] = []
    if properties:
        required = draw(st.lists(st.sampled_from(sorted(properties)), unique=True))
    return {"type": "object", "properties": properties, "required": required}


@st.composite
def document(draw: st.DrawFn) -> JsonObject:
    return {
        "openapi": "3.0.3",
        "info": {"title": "Generated", "version": "1.0.0"},
        "paths": draw(st.dictionaries(api_path, path_item, max_size=4)),
        "components": {
            "schemas": draw(st.dictionaries(schema_name, object_schema(), max_size=3))
        },
    }


# =============================================================================
# Properties
# =============================================================================


@given(tree=document())
def test_comparing_a_tree_with_itself_is_empty(tree: JsonObject) -> None:
    """Property: compare(t, t) reports no change of any kind."""
    assert compare(tree, copy.deepcopy(tree)).is_empty


@given(old=document(), new=document())
def test_compare_is_deterministic(old: JsonObject, new: JsonObject) -> None:
    """Property: repeated comparisons of the same inputs are equal."""
    assert compare(old, new) == compare(copy.deepcopy(old), copy.deepcopy(new))


@given(old=document(), new=document())
def test_added_and_deleted_are_mirror_images(old: JsonObject, new: JsonObject) -> None:
    """Property: what is added going forward is deleted going backward."""
    forward = compare(old, new)
    backward = compare(new, old)

    assert forward.endpoints_added == backward.endpoints_deleted
    assert forward.endpoints_deleted == backward.endpoints_added
    assert forward.endpoints_modified == backward.endpoints_modified
    assert forward.schemas_added == backward.schemas_deleted
    assert forward.schemas_modified == backward.schemas_modified


@given(old=document(), new=document())
def test_output_is_sorted(old: JsonObject, new: JsonObject) -> None:
    """Property: every emitted sequence is lexicographically sorted."""
    result = compare(old, new)

    for values in (
        result.endpoints_added,
        result.endpoints_modified,
        result.endpoints_deleted,
        result.schemas_added,
        result.schemas_modified,
        result.schemas_deleted,
        result.breaking_changes,
    ):
        assert list(values) == sorted(values)


@given(old=document(), new=document())
def test_every_removal_is_breaking(old: JsonObject, new: JsonObject) -> None:
    """Property: each deleted endpoint and schema has a breaking entry."""
    result = compare(old, new)

    for key in result.endpoints_deleted:
        assert f"Removed endpoint: {key}" in result.breaking_changes
    for name in result.schemas_deleted:
        assert f"Removed schema: {name}" in result.breaking_changes


@given(old=document(), new=document())
def test_inputs_are_not_mutated(old: JsonObject, new: JsonObject) -> None:
    """Property: compare never modifies either tree."""
    old_snapshot, new_snapshot = copy.deepcopy(old), copy.deepcopy(new)

    _ = compare(old, new)

    assert old == old_snapshot
    assert new == new_snapshot
