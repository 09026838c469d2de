"""Factory table extraction."""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from webpack_unpack.core.nodes import Node, node_type

logger = logging.getLogger(__name__)

ModuleId = Union[str, int, float, None]

# Marks a property whose key cannot name a module; None is a valid literal key
_UNSUPPORTED_KEY = object()


@dataclass(frozen=True)
class FactoryEntry:
    """One slot of a bundle's factory table."""
    index: ModuleId
    factory: Optional[Node]


def extract_factories(node: Optional[Node]) -> list[FactoryEntry]:
    """Turn a factory table node into an ordered list of entries.

    An array yields one entry per element at positional indices, with holes
    as absent factories. An object yields one entry per property keyed by a
    literal or identifier name, in property order; properties with other key
    forms are left out. Any other node yields an empty table.
    """
    kind = node_type(node)
    if kind == "ArrayExpression":
        return [
            FactoryEntry(index=index, factory=factory)
            for index, factory in enumerate(node.elements)
        ]

    if kind == "ObjectExpression":
        entries = []
        for prop in node.properties:
            index = _property_index(prop)
            if index is _UNSUPPORTED_KEY:
                logger.debug("Skipping factory table property with unsupported key at %s", prop.start)
                continue
            entries.append(FactoryEntry(index=index, factory=prop.value))
        return entries

    return []


def _property_index(prop: Node) -> Any:
    if prop.type != "Property" or prop.get("computed"):
        return _UNSUPPORTED_KEY
    key = prop.key
    if key.type == "Literal":
        return key.value
    if key.type == "Identifier":
        return key.name
    return _UNSUPPORTED_KEY


def is_function_or_empty(entry: FactoryEntry) -> bool:
    """Whether an entry is absent or a plain (non-generator, non-async) function expression."""
    factory = entry.factory
    if factory is None:
        return True
    return (
        factory.type == "FunctionExpression"
        and not factory.get("generator")
        and not factory.get("async")
    )
