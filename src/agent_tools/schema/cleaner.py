"""
Schema compatibility cleaner.

Rewrites a tool parameter schema so it survives the function-calling
dialect of restrictive providers. Passes run in a fixed order over the
parsed node tree:

    1. inline local ``$ref`` targets and drop the definitions registry
    2. collapse unions of same-typed literals into a single ``enum``
    3. fold nullable/single-variant unions into the remaining variant
    4. strip keywords the compatibility profile rejects

Cleaning is not validation: it never raises for structurally valid input
and never mutates its argument.
"""

import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from .compat import STRICT, CompatibilityProfile
from .nodes import (
    MISSING,
    ArrayNode,
    ObjectNode,
    RefNode,
    SchemaNode,
    UnionNode,
    ValueNode,
    map_children,
    parse_definitions,
    parse_node,
    primary_type,
    to_dict,
    with_keywords,
)

logger = logging.getLogger(__name__)


def clean_schema(
    schema: Mapping[str, Any],
    profile: CompatibilityProfile = STRICT,
) -> dict[str, Any]:
    """
    Normalize a parameter schema for a compatibility profile.

    Args:
        schema: JSON-Schema-like mapping.
        profile: Target compatibility profile.

    Returns:
        A new, cleaned schema dictionary.
    """
    definitions = parse_definitions(schema)
    node = parse_node(schema)
    node = inline_refs(node, definitions)
    node = simplify_unions(node)
    if profile.strip_keywords:
        node = strip_keywords(node, profile.strip_keywords)
    return to_dict(node)


# ---------------------------------------------------------------------------
# Pass 1: $ref inlining
# ---------------------------------------------------------------------------


def inline_refs(
    node: SchemaNode,
    definitions: Mapping[str, Any],
    trail: tuple[str, ...] = (),
) -> SchemaNode:
    """
    Replace local references with copies of their definitions.

    Args:
        node: Node tree to rewrite.
        definitions: Pointer -> raw definition registry of the root schema.
        trail: References being expanded above this node (cycle guard).

    Returns:
        Node tree without RefNode instances.
    """
    if not isinstance(node, RefNode):
        return map_children(node, lambda child: inline_refs(child, definitions, trail))

    siblings = map_children(node, lambda child: inline_refs(child, definitions, trail))
    target = definitions.get(node.ref)
    if target is None or node.ref in trail:
        reason = "cyclic" if target is not None else "unresolvable"
        logger.debug(f"  📋 Dropping {reason} $ref '{node.ref}'")
        return ValueNode(keywords=dict(siblings.keywords))

    resolved = inline_refs(parse_node(target), definitions, trail + (node.ref,))
    return with_keywords(resolved, siblings.keywords)


# ---------------------------------------------------------------------------
# Passes 2-3: union flattening and null pruning
# ---------------------------------------------------------------------------


def simplify_unions(node: SchemaNode) -> SchemaNode:
    """
    Flatten literal unions and prune null variants, bottom-up.

    Args:
        node: Node tree without references.

    Returns:
        Simplified node tree.
    """
    node = map_children(node, simplify_unions)

    if isinstance(node, (ValueNode, ObjectNode, ArrayNode)) and isinstance(node.type, list):
        collapsed = primary_type(node.type)
        if collapsed is not None:
            return replace(node, type=collapsed)
        return node

    if not isinstance(node, UnionNode):
        return node

    if node.keyword in ("anyOf", "oneOf"):
        flattened = _flatten_literals(node)
        if not isinstance(flattened, UnionNode):
            return flattened
        node = flattened

    if not _is_keyword_only(node.base):
        return node

    if node.keyword == "allOf":
        remaining = node.variants
    else:
        remaining = [v for v in node.variants if not _is_null(v)]
    if len(remaining) == 1:
        return with_keywords(remaining[0], node.base.keywords)
    return node


def _flatten_literals(node: UnionNode) -> SchemaNode:
    """
    Merge same-typed literal variants into one enum.

    A union made only of literals becomes a plain enum node. Null variants
    next to the literals are kept as a single null variant so that the
    null-pruning pass decides what happens to them.
    """
    base = node.base
    nulls = [v for v in node.variants if _is_null(v)]
    literal_variants = [v for v in node.variants if not _is_null(v)]
    if not isinstance(base, ValueNode) or base.is_literal or not literal_variants:
        return node

    values: list[Any] = []
    kinds: set[str] = set()
    for variant in literal_variants:
        if not isinstance(variant, ValueNode) or isinstance(variant.type, list):
            return node
        if variant.const is not MISSING:
            literals = [variant.const]
        elif variant.enum:
            literals = list(variant.enum)
        else:
            return node
        for literal in literals:
            kind = variant.type or _literal_type(literal)
            if kind is None:
                return node
            kinds.add(kind)
            if literal not in values:
                values.append(literal)

    kind = _unify(kinds)
    if kind is None or base.type not in (None, kind):
        return node
    if not nulls:
        return ValueNode(type=kind, enum=values, keywords=dict(base.keywords))
    if len(literal_variants) == 1:
        return node
    return replace(node, variants=[ValueNode(type=kind, enum=values), nulls[0]])


def _literal_type(value: Any) -> str | None:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if value is None:
        return "null"
    return None


def _unify(kinds: set[str]) -> str | None:
    if len(kinds) == 1:
        return next(iter(kinds))
    if kinds == {"integer", "number"}:
        return "number"
    return None


def _is_null(node: SchemaNode) -> bool:
    return (
        isinstance(node, ValueNode)
        and node.type == "null"
        and node.enum is None
        and node.const is MISSING
    )


def _is_keyword_only(node: SchemaNode) -> bool:
    # Sibling keywords can be folded into a variant; sibling shape cannot.
    return (
        isinstance(node, ValueNode)
        and node.type is None
        and node.enum is None
        and node.const is MISSING
    )


# ---------------------------------------------------------------------------
# Pass 4: keyword stripping
# ---------------------------------------------------------------------------


def strip_keywords(node: SchemaNode, blocked: frozenset[str]) -> SchemaNode:
    """
    Remove blocked keywords from every node.

    Property names are never touched, only node-level keywords.

    Args:
        node: Node tree.
        blocked: Keywords to remove.

    Returns:
        Node tree without blocked keywords.
    """
    node = map_children(node, lambda child: strip_keywords(child, blocked))
    if isinstance(node, UnionNode) or not hasattr(node, "keywords"):
        return node

    keywords = {k: v for k, v in node.keywords.items() if k not in blocked}
    if isinstance(node, ObjectNode) and "additionalProperties" in blocked:
        return replace(node, keywords=keywords, additional_properties=None)
    return replace(node, keywords=keywords)
