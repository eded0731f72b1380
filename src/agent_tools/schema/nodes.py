"""
Schema node variants.

Tool parameter schemas arrive as JSON-Schema-like dictionaries (usually from
``BaseModel.model_json_schema()``). They are parsed into a small closed set
of node shapes so that cleaning passes are structural folds instead of
ad hoc key deletion on nested dicts:

    ObjectNode  - type "object", ordered properties, required
    ArrayNode   - type "array", items
    ValueNode   - scalars and unconstrained nodes (type, enum, const)
    UnionNode   - anyOf / oneOf / allOf, with the sibling keywords as ``base``
    RefNode     - "$ref" plus sibling keywords
    RawNode     - anything that is not a mapping (boolean schemas, junk)

Every shape except UnionNode and RawNode carries the remaining keywords
(description, title, default, pattern, ...) in insertion order.
"""

import copy
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

UNION_KEYWORDS = ("anyOf", "oneOf", "allOf")
DEFINITION_KEYWORDS = ("$defs", "definitions")
SUBSCHEMA_KEYWORDS = ("not", "contains", "propertyNames", "if", "then", "else")


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __copy__(self) -> "_Missing":
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> "_Missing":
        return self


MISSING: Any = _Missing()


class SchemaNode:
    """Marker base class for parsed schema nodes."""


@dataclass(frozen=True)
class ValueNode(SchemaNode):
    """Scalar, literal or unconstrained node."""

    type: str | list[str] | None = None
    enum: list[Any] | None = None
    const: Any = MISSING
    keywords: dict[str, Any] = field(default_factory=dict)

    @property
    def is_literal(self) -> bool:
        return self.const is not MISSING or bool(self.enum)


@dataclass(frozen=True)
class ObjectNode(SchemaNode):
    """Object node with ordered properties."""

    type: str | list[str] = "object"
    properties: dict[str, SchemaNode] = field(default_factory=dict)
    required: list[str] | None = None
    additional_properties: Any = None
    keywords: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ArrayNode(SchemaNode):
    """Array node."""

    type: str | list[str] = "array"
    items: SchemaNode | None = None
    keywords: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class UnionNode(SchemaNode):
    """anyOf/oneOf/allOf node; ``base`` holds everything next to the union."""

    keyword: str
    variants: list[SchemaNode]
    base: SchemaNode


@dataclass(frozen=True)
class RefNode(SchemaNode):
    """Unresolved ``$ref``."""

    ref: str
    keywords: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RawNode(SchemaNode):
    """Non-mapping schema value, passed through untouched."""

    value: Any


def primary_type(schema_type: Any) -> Any:
    """
    Return the single non-null member of a type declaration.

    Args:
        schema_type: Value of a ``type`` keyword (string, list or None).

    Returns:
        The type itself for plain strings, the lone non-null member for
        lists, otherwise None.
    """
    if isinstance(schema_type, list):
        members = [t for t in schema_type if t != "null"]
        return members[0] if len(members) == 1 else None
    return schema_type


def parse_definitions(raw: Any) -> dict[str, Any]:
    """
    Collect the local definitions registry of a root schema.

    Args:
        raw: Root schema mapping.

    Returns:
        Mapping of JSON pointer (``#/$defs/Name``) to the raw definition.
    """
    registry: dict[str, Any] = {}
    if not isinstance(raw, Mapping):
        return registry
    for keyword in DEFINITION_KEYWORDS:
        definitions = raw.get(keyword)
        if isinstance(definitions, Mapping):
            for name, definition in definitions.items():
                escaped = str(name).replace("~", "~0").replace("/", "~1")
                registry[f"#/{keyword}/{escaped}"] = definition
    return registry


def parse_node(raw: Any) -> SchemaNode:
    """
    Parse a raw schema value into a node.

    Definition registries are dropped here; collect them first with
    :func:`parse_definitions`. The input is never mutated.

    Args:
        raw: Schema mapping (or any JSON value).

    Returns:
        Parsed node tree.
    """
    if not isinstance(raw, Mapping):
        return RawNode(value=copy.deepcopy(raw))

    body = {k: v for k, v in raw.items() if k not in DEFINITION_KEYWORDS}

    ref = body.get("$ref")
    if isinstance(ref, str):
        body.pop("$ref")
        return RefNode(ref=ref, keywords=_parse_keywords(body))

    for keyword in UNION_KEYWORDS:
        variants = body.get(keyword)
        if isinstance(variants, list):
            body.pop(keyword)
            return UnionNode(
                keyword=keyword,
                variants=[parse_node(v) for v in variants],
                base=parse_node(body),
            )

    schema_type = body.get("type")
    shape = primary_type(schema_type)

    if shape == "object" or (schema_type is None and "properties" in body):
        body.pop("type", None)
        properties: dict[str, SchemaNode] = {}
        if isinstance(body.get("properties"), Mapping):
            properties = {
                name: parse_node(prop) for name, prop in body.pop("properties").items()
            }
        required = None
        if isinstance(body.get("required"), list):
            required = list(body.pop("required"))
        additional = body.pop("additionalProperties", None)
        if isinstance(additional, Mapping):
            additional = parse_node(additional)
        return ObjectNode(
            type=copy.deepcopy(schema_type) if schema_type is not None else "object",
            properties=properties,
            required=required,
            additional_properties=additional,
            keywords=_parse_keywords(body),
        )

    if shape == "array" or (schema_type is None and isinstance(body.get("items"), Mapping)):
        body.pop("type", None)
        items = None
        if isinstance(body.get("items"), Mapping):
            items = parse_node(body.pop("items"))
        return ArrayNode(
            type=copy.deepcopy(schema_type) if schema_type is not None else "array",
            items=items,
            keywords=_parse_keywords(body),
        )

    enum = body.pop("enum") if isinstance(body.get("enum"), list) else None
    const = body.pop("const", MISSING)
    return ValueNode(
        type=copy.deepcopy(body.pop("type", None)),
        enum=copy.deepcopy(enum),
        const=const if const is MISSING else copy.deepcopy(const),
        keywords=_parse_keywords(body),
    )


def _parse_keywords(body: Mapping[str, Any]) -> dict[str, Any]:
    return {
        key: parse_node(value)
        if key in SUBSCHEMA_KEYWORDS and isinstance(value, Mapping)
        else copy.deepcopy(value)
        for key, value in body.items()
    }


def to_dict(node: SchemaNode) -> Any:
    """
    Serialize a node tree back to a JSON-Schema dictionary.

    Args:
        node: Parsed node.

    Returns:
        Fresh dictionary (or raw value for RawNode).
    """
    if isinstance(node, RawNode):
        return copy.deepcopy(node.value)

    if isinstance(node, UnionNode):
        out = to_dict(node.base)
        if not isinstance(out, dict):
            out = {}
        out[node.keyword] = [to_dict(v) for v in node.variants]
        return out

    out: dict[str, Any] = {}
    if isinstance(node, RefNode):
        out["$ref"] = node.ref
    elif isinstance(node, ObjectNode):
        out["type"] = copy.deepcopy(node.type)
        if node.properties:
            out["properties"] = {
                name: to_dict(prop) for name, prop in node.properties.items()
            }
        if node.required is not None:
            out["required"] = list(node.required)
        if isinstance(node.additional_properties, SchemaNode):
            out["additionalProperties"] = to_dict(node.additional_properties)
        elif node.additional_properties is not None:
            out["additionalProperties"] = node.additional_properties
    elif isinstance(node, ArrayNode):
        out["type"] = copy.deepcopy(node.type)
        if node.items is not None:
            out["items"] = to_dict(node.items)
    elif isinstance(node, ValueNode):
        if node.type is not None:
            out["type"] = copy.deepcopy(node.type)
        if node.enum is not None:
            out["enum"] = copy.deepcopy(node.enum)
        if node.const is not MISSING:
            out["const"] = copy.deepcopy(node.const)

    for key, value in node.keywords.items():
        out[key] = to_dict(value) if isinstance(value, SchemaNode) else copy.deepcopy(value)
    return out


def map_children(
    node: SchemaNode, fn: Callable[[SchemaNode], SchemaNode]
) -> SchemaNode:
    """
    Rebuild ``node`` with ``fn`` applied to each direct child node.

    Args:
        node: Node whose children are transformed.
        fn: Transform applied to every child.

    Returns:
        New node of the same shape.
    """
    if isinstance(node, RawNode):
        return node
    if isinstance(node, UnionNode):
        return replace(
            node,
            variants=[fn(v) for v in node.variants],
            base=fn(node.base),
        )

    keywords = {
        key: fn(value) if isinstance(value, SchemaNode) else value
        for key, value in node.keywords.items()
    }
    if isinstance(node, ObjectNode):
        additional = node.additional_properties
        if isinstance(additional, SchemaNode):
            additional = fn(additional)
        return replace(
            node,
            properties={name: fn(prop) for name, prop in node.properties.items()},
            additional_properties=additional,
            keywords=keywords,
        )
    if isinstance(node, ArrayNode):
        items = fn(node.items) if node.items is not None else None
        return replace(node, items=items, keywords=keywords)
    return replace(node, keywords=keywords)


def with_keywords(node: SchemaNode, extra: Mapping[str, Any]) -> SchemaNode:
    """
    Overlay keywords on a node (``extra`` wins on conflicts).

    Args:
        node: Target node.
        extra: Keywords to add.

    Returns:
        New node carrying the merged keywords.
    """
    if not extra:
        return node
    if isinstance(node, UnionNode):
        return replace(node, base=with_keywords(node.base, extra))
    if isinstance(node, RawNode):
        if node.value is True:
            return ValueNode(keywords=dict(extra))
        return node
    return replace(node, keywords={**node.keywords, **extra})
