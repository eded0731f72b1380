"""
Unit tests for schema node parsing and serialization.
"""

import copy

from agent_tools.schema.nodes import (
    MISSING,
    ArrayNode,
    ObjectNode,
    RawNode,
    RefNode,
    UnionNode,
    ValueNode,
    parse_definitions,
    parse_node,
    to_dict,
)


class TestParseNode:
    """Tests for parse_node shapes."""

    def test_object_node(self):
        """Test object schemas parse into ObjectNode with ordered properties."""
        node = parse_node(
            {"type": "object", "properties": {"b": {"type": "string"}, "a": {}}, "required": ["b"]}
        )

        assert isinstance(node, ObjectNode)
        assert list(node.properties) == ["b", "a"]
        assert node.required == ["b"]

    def test_array_node(self):
        """Test array schemas parse into ArrayNode."""
        node = parse_node({"type": "array", "items": {"type": "integer"}})

        assert isinstance(node, ArrayNode)
        assert isinstance(node.items, ValueNode)

    def test_union_node_keeps_siblings_in_base(self):
        """Test union siblings land in the base node."""
        node = parse_node({"anyOf": [{"type": "string"}], "description": "d"})

        assert isinstance(node, UnionNode)
        assert node.keyword == "anyOf"
        assert node.base.keywords == {"description": "d"}

    def test_ref_node(self):
        """Test $ref parses into RefNode."""
        node = parse_node({"$ref": "#/$defs/X", "description": "d"})

        assert isinstance(node, RefNode)
        assert node.ref == "#/$defs/X"

    def test_value_node_const(self):
        """Test const and absent const are distinguished."""
        assert parse_node({"const": None}).const is None
        assert parse_node({"type": "string"}).const is MISSING

    def test_non_mapping_is_raw(self):
        """Test boolean schemas are kept as RawNode."""
        assert parse_node(True) == RawNode(value=True)


class TestDefinitions:
    """Tests for the definitions registry."""

    def test_pointer_keys(self):
        """Test definitions are keyed by JSON pointer."""
        registry = parse_definitions(
            {"$defs": {"A": {"type": "string"}}, "definitions": {"B": {"type": "integer"}}}
        )

        assert set(registry) == {"#/$defs/A", "#/definitions/B"}


class TestToDict:
    """Tests for serialization."""

    def test_round_trip_of_plain_schema(self):
        """Test a schema without unions or refs serializes back unchanged."""
        schema = {
            "type": "object",
            "properties": {"x": {"type": "string", "description": "X", "enum": ["a"]}},
            "required": ["x"],
            "additionalProperties": False,
        }

        assert to_dict(parse_node(schema)) == schema

    def test_absent_const_not_serialized(self):
        """Test nodes without const never emit a const key."""
        assert to_dict(parse_node({"type": "string"})) == {"type": "string"}
        assert to_dict(parse_node({})) == {}

    def test_copies_keep_missing_sentinel(self):
        """Test copying a node keeps const identical to MISSING."""
        node = parse_node({"type": "integer"})

        assert copy.deepcopy(node).const is MISSING
        assert copy.copy(MISSING) is MISSING
