"""Data models for document content.

Document content is kept as a plain JSON-compatible tree (``JsonValue``).
The frozen dataclasses below are narrow, read-only views over such a tree,
built on demand by the diff engine and the statistics helpers. They never
copy the underlying tree.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, cast

from specvault.config import SerializationFormat

type JsonValue = (
    dict[str, JsonValue] | list[JsonValue] | str | int | float | bool | None
)
type JsonObject = dict[str, JsonValue]

HTTP_METHODS: tuple[str, ...] = (
    "get",
    "put",
    "post",
    "delete",
    "options",
    "head",
    "patch",
    "trace",
)

# =============================================================================
# Enums
# =============================================================================


class Dialect(StrEnum):
    """Document dialects recognized by the default parser."""

    SWAGGER_2_0 = "2.0"
    OPENAPI_3_0 = "3.0"
    OPENAPI_3_1 = "3.1"


# =============================================================================
# Loaded documents
# =============================================================================


@dataclass(frozen=True, slots=True)
class ParsedDocument:
    """Result of a dialect parser.

    Attributes:
        tree: The validated tree.
        dialect: The detected dialect.
    """

    tree: JsonObject
    dialect: Dialect


@dataclass(frozen=True, slots=True)
class LoadedSpec:
    """One document version as loaded from storage.

    Attributes:
        tree: The decoded and validated tree.
        dialect: The detected dialect.
        format: The encoding the content was stored in.
        size_bytes: Size of the stored content in bytes.
    """

    tree: JsonObject
    dialect: Dialect
    format: SerializationFormat
    size_bytes: int


# =============================================================================
# Tree views
# =============================================================================


def _mapping(value: object) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    if isinstance(value, dict):
        return cast("dict[str, Any]", value)  # pyright: ignore[reportExplicitAny]
    return {}


@dataclass(frozen=True, slots=True)
class Operation:
    """A single operation (path + method) of a document."""

    path: str
    method: str
    node: JsonObject

    @property
    def key(self) -> str:
        """Return the canonical ``"{method} {path}"`` key."""
        return f"{self.method} {self.path}"

    def field(self, name: str) -> JsonValue:
        """Return the raw value of an operation field, or None."""
        return self.node.get(name)

    @property
    def parameters(self) -> list[JsonObject]:
        """Return the operation's parameter objects, skipping malformed ones."""
        raw = self.node.get("parameters")
        if not isinstance(raw, list):
            return []
        return [cast("JsonObject", p) for p in raw if isinstance(p, dict)]

    @property
    def required_parameters(self) -> frozenset[tuple[str, str]]:
        """Return ``(in, name)`` pairs of required parameters."""
        return frozenset(
            (str(p.get("in", "")), str(p.get("name", "")))
            for p in self.parameters
            if p.get("required") is True
        )

    @property
    def response_codes(self) -> frozenset[str]:
        """Return the declared response status codes."""
        return frozenset(str(code) for code in _mapping(self.node.get("responses")))

    @property
    def has_request_body(self) -> bool:
        """Return whether the operation declares a request body."""
        if "requestBody" in self.node:
            return True
        # Swagger 2.0 carries the body as an ``in: body`` parameter.
        return any(p.get("in") == "body" for p in self.parameters)


@dataclass(frozen=True, slots=True)
class SchemaView:
    """A named schema of a document."""

    name: str
    node: JsonObject

    @property
    def types(self) -> frozenset[str]:
        """Return the declared type names; empty when untyped.

        Accepts the single-name form and the 3.1 list form
        (``["string", "null"]``). A 3.0 ``nullable: true`` adds ``"null"``.
        """
        value = self.node.get("type")
        if isinstance(value, str):
            names = frozenset({value})
        elif isinstance(value, list):
            names = frozenset(name for name in value if isinstance(name, str))
        else:
            return frozenset()
        if self.node.get("nullable") is True:
            names |= {"null"}
        return names

    @property
    def format(self) -> str | None:
        """Return the declared format, or None."""
        value = self.node.get("format")
        return value if isinstance(value, str) else None

    @property
    def required(self) -> frozenset[str]:
        """Return the names of required properties."""
        raw = self.node.get("required")
        if not isinstance(raw, list):
            return frozenset()
        return frozenset(str(name) for name in raw)

    @property
    def enum(self) -> tuple[JsonValue, ...] | None:
        """Return the allowed values, or None when unrestricted."""
        raw = self.node.get("enum")
        return tuple(raw) if isinstance(raw, list) else None

    @property
    def properties(self) -> "dict[str, SchemaView]":
        """Return property schemas keyed by property name."""
        return {
            str(name): SchemaView(str(name), cast("JsonObject", node))
            for name, node in _mapping(self.node.get("properties")).items()
            if isinstance(node, dict)
        }


@dataclass(frozen=True, slots=True)
class ApiDocument:
    """Read-only view over a whole document tree."""

    tree: JsonObject

    @property
    def dialect(self) -> Dialect | None:
        """Return the dialect declared by the version marker, if recognized."""
        if str(self.tree.get("swagger", "")) == "2.0":
            return Dialect.SWAGGER_2_0
        marker = str(self.tree.get("openapi", ""))
        if marker.startswith("3.1"):
            return Dialect.OPENAPI_3_1
        if marker.startswith("3.0"):
            return Dialect.OPENAPI_3_0
        return None

    @property
    def title(self) -> str:
        """Return ``info.title`` or an empty string."""
        return str(_mapping(self.tree.get("info")).get("title", ""))

    def operations(self) -> Iterator[Operation]:
        """Yield every operation, ordered by path then method."""
        paths = _mapping(self.tree.get("paths"))
        for path in sorted(paths):
            item = _mapping(paths[path])
            for method in HTTP_METHODS:
                node = item.get(method)
                if isinstance(node, dict):
                    yield Operation(path, method, cast("JsonObject", node))

    def endpoints(self) -> dict[str, Operation]:
        """Return operations keyed by ``"{method} {path}"``."""
        return {op.key: op for op in self.operations()}

    def schemas(self) -> dict[str, SchemaView]:
        """Return named schemas.

        Uses ``definitions`` for Swagger 2.0 and ``components.schemas``
        otherwise.
        """
        if self.dialect is Dialect.SWAGGER_2_0:
            raw = _mapping(self.tree.get("definitions"))
        else:
            raw = _mapping(_mapping(self.tree.get("components")).get("schemas"))
        return {
            str(name): SchemaView(str(name), cast("JsonObject", node))
            for name, node in raw.items()
            if isinstance(node, dict)
        }

    def security_schemes(self) -> Mapping[str, JsonValue]:
        """Return declared security schemes."""
        if self.dialect is Dialect.SWAGGER_2_0:
            return _mapping(self.tree.get("securityDefinitions"))
        return _mapping(_mapping(self.tree.get("components")).get("securitySchemes"))

    @property
    def tags(self) -> list[JsonValue]:
        """Return the top-level tag declarations."""
        raw = self.tree.get("tags")
        return list(raw) if isinstance(raw, list) else []
