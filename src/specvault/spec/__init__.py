"""Document content: tree model, codecs, dialect parsing and persistence."""

from specvault.spec._codec import decode, detect_format, encode
from specvault.spec._dialect import DialectParser, OpenApiDialectParser
from specvault.spec._lint import LintIssue, LintRange, LintSeverity, Linter
from specvault.spec._models import (
    HTTP_METHODS,
    ApiDocument,
    Dialect,
    JsonObject,
    JsonValue,
    LoadedSpec,
    Operation,
    ParsedDocument,
    SchemaView,
)
from specvault.spec._store import SpecStore, spec_key

__all__ = [
    "HTTP_METHODS",
    "ApiDocument",
    "Dialect",
    "DialectParser",
    "JsonObject",
    "JsonValue",
    "LintIssue",
    "LintRange",
    "LintSeverity",
    "Linter",
    "LoadedSpec",
    "OpenApiDialectParser",
    "Operation",
    "ParsedDocument",
    "SchemaView",
    "SpecStore",
    "decode",
    "detect_format",
    "encode",
    "spec_key",
]
