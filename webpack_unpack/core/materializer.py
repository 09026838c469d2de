"""Turning factory functions into standalone module sources."""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional

from webpack_unpack.core.factories import FactoryEntry, ModuleId
from webpack_unpack.core.generator import generate_code
from webpack_unpack.core.nodes import Node, node_type
from webpack_unpack.core.scope import Binding, Reference
from webpack_unpack.core.text import SourceText, Splice

logger = logging.getLogger(__name__)

# Canonical names of a factory's positional parameters
MAGIC_NAMES = ("module", "exports", "require")

Generator = Callable[[list[Node], Optional[dict[int, str]]], str]


@dataclass(frozen=True)
class ModuleDescriptor:
    """A recovered module."""
    id: ModuleId
    source: str
    deps: dict[Any, Any] = field(default_factory=dict)
    entry: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "deps": dict(self.deps),
            "entry": self.entry,
        }


def module_range(body: Node) -> tuple[int, int]:
    """Offsets of a factory body's statements, excluding the braces.

    An empty body yields the span strictly inside its braces.
    """
    if not body.body:
        return body.start + 1, body.end - 1
    return body.body[0].start, body.body[-1].end


def _magic_references(
    factory: Node,
    bindings: dict[int, Binding],
) -> Iterator[tuple[Reference, str]]:
    """Yield each use of a magic parameter with its canonical name, skipping declarations."""
    for param, name in zip(factory.params, MAGIC_NAMES):
        binding = bindings.get(id(param))
        if binding is None:
            continue
        for reference in binding.references:
            if reference.node is binding.definition:
                continue
            yield reference, name


def _shorthand_property(reference: Reference) -> Optional[Node]:
    """The shorthand property whose value is this reference, if any.

    The value may be wrapped in a default, as in `({c = 1} = x)`.
    """
    ancestors = reference.ancestors
    child = reference.node
    position = len(ancestors) - 1
    if position > 0 and node_type(ancestors[position]) == "AssignmentPattern" and ancestors[position].left is child:
        child = ancestors[position]
        position -= 1
    if position < 0:
        return None
    parent = ancestors[position]
    if node_type(parent) == "Property" and parent.get("shorthand") and parent.value is child:
        return parent
    return None


def _replacement(reference: Reference, name: str) -> str:
    if _shorthand_property(reference) is not None:
        # Keep the property key when expanding `{c}` to `{c: require}`
        return f"{reference.node.name}: {name}"
    return name


def rewrite_magic_identifiers(
    factory: Node,
    bindings: dict[int, Binding],
    text: SourceText,
    start: int,
    end: int,
) -> str:
    """Slice ``[start, end)`` out of the raw text with magic parameters renamed."""
    splice = Splice(text.slice(start, end), text.index(start))
    for reference, name in _magic_references(factory, bindings):
        node = reference.node
        splice.replace(text.index(node.start), text.index(node.end), _replacement(reference, name))
    return splice.apply()


def magic_renames(factory: Node, bindings: dict[int, Binding]) -> dict[int, str]:
    """Side-table of identifier renames for regenerating a factory body."""
    return {
        id(reference.node): name
        for reference, name in _magic_references(factory, bindings)
    }


def get_dependencies(factory: Node, bindings: dict[int, Binding]) -> dict[Any, Any]:
    """Collect the literal arguments of calls to the factory's require parameter."""
    deps: dict[Any, Any] = {}
    if len(factory.params) < 3:
        return deps

    binding = bindings.get(id(factory.params[2]))
    if binding is None:
        return deps

    for reference in binding.references:
        call = reference.parent
        if node_type(call) != "CallExpression" or call.callee is not reference.node:
            continue
        if not call.arguments or node_type(call.arguments[0]) != "Literal":
            continue
        value = call.arguments[0].value
        deps[value] = value
    return deps


def materialize(
    entry: FactoryEntry,
    entry_id: Optional[ModuleId],
    bindings: dict[int, Binding],
    text: Optional[SourceText] = None,
    generate: Generator = generate_code,
) -> ModuleDescriptor:
    """Build the module descriptor for one present factory.

    With raw text the module source is the byte-exact body slice with magic
    parameters renamed in place; otherwise it is regenerated from the tree.
    """
    factory = entry.factory

    if text is not None:
        start, end = module_range(factory.body)
        source = rewrite_magic_identifiers(factory, bindings, text, start, end)
    else:
        source = generate(factory.body.body, magic_renames(factory, bindings))

    deps = get_dependencies(factory, bindings)
    logger.debug("Materialized module %r (%d chars, %d deps)", entry.index, len(source), len(deps))
    return ModuleDescriptor(
        id=entry.index,
        source=source,
        deps=deps,
        entry=entry_id is not None and entry.index == entry_id,
    )
