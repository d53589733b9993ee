"""Unit tests for content encoding and decoding."""

import pytest

from specvault.config import SerializationFormat
from specvault.exceptions import DialectError
from specvault.spec import decode, detect_format, encode


class TestDetectFormat:
    @pytest.mark.parametrize(
        ("key", "expected"),
        [
            ("api/v1.0.0/spec.json", SerializationFormat.JSON),
            ("api/v1.0.0/spec.yaml", SerializationFormat.YAML),
            ("api/v1.0.0/spec.YML", SerializationFormat.YAML),
        ],
    )
    def test_extension_wins(self, key: str, expected: SerializationFormat) -> None:
        assert detect_format(key, b'{"openapi": "3.0.0"}') is expected

    def test_probes_content_without_extension(self) -> None:
        assert detect_format("spec", b'  \n{"a": 1}') is SerializationFormat.JSON
        assert detect_format("spec", b"[1, 2]") is SerializationFormat.JSON
        assert detect_format("spec", b"openapi: 3.0.0\n") is SerializationFormat.YAML


class TestDecode:
    def test_yaml_integer_keys_become_strings(self) -> None:
        tree = decode(
            b"responses:\n  200:\n    description: OK\n  404:\n    description: Missing\n",
            SerializationFormat.YAML,
        )

        assert tree == {
            "responses": {
                "200": {"description": "OK"},
                "404": {"description": "Missing"},
            }
        }

    def test_yaml_dates_become_iso_strings(self) -> None:
        tree = decode(b"released: 2024-01-15\n", SerializationFormat.YAML)

        assert tree == {"released": "2024-01-15"}

    def test_yaml_boolean_keys_become_strings(self) -> None:
        tree = decode(b"true: yes\n", SerializationFormat.YAML)

        assert tree == {"true": True}

    def test_json_decodes(self) -> None:
        assert decode(b'{"a": [1, 2.5, null]}', SerializationFormat.JSON) == {
            "a": [1, 2.5, None]
        }

    def test_invalid_json_raises_dialect_error(self) -> None:
        with pytest.raises(DialectError, match="Invalid JSON"):
            _ = decode(b"{not json", SerializationFormat.JSON)

    def test_invalid_yaml_raises_dialect_error(self) -> None:
        with pytest.raises(DialectError, match="Invalid YAML"):
            _ = decode(b"key: [unclosed\n", SerializationFormat.YAML)

    def test_empty_yaml_decodes_to_none(self) -> None:
        assert decode(b"", SerializationFormat.YAML) is None


class TestEncode:
    def test_json_is_indented_and_keeps_key_order(self) -> None:
        content = encode({"b": 1, "a": {"c": 2}}, SerializationFormat.JSON)

        assert content == b'{\n  "b": 1,\n  "a": {\n    "c": 2\n  }\n}\n'

    def test_yaml_keeps_key_order(self) -> None:
        tree = {"openapi": "3.0.0", "info": {"title": "T"}}

        content = encode(tree, SerializationFormat.YAML)

        assert content.index(b"openapi:") < content.index(b"info:")
        assert decode(content, SerializationFormat.YAML) == tree

    def test_yaml_quotes_numeric_string_keys(self) -> None:
        tree = {"responses": {"200": {"description": "OK"}}}

        content = encode(tree, SerializationFormat.YAML)

        assert decode(content, SerializationFormat.YAML) == tree
