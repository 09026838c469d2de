"""Recognition of the module-loader prelude that wraps a bundle's factory table.

Two conventions are understood:

* runtime prelude, an immediately invoked loader applied to the table::

      !(function (modules) { ...; require(require.s = 3) })([ ... ])

* jsonp prelude, a chunk pushed onto a shared queue::

      (webpackJsonp = webpackJsonp || []).push([[0], [ ... ]])

Each recognizer returns a ``BundleMeta`` or None when the tree does not have
its shape.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from webpack_unpack.core.factories import FactoryEntry, ModuleId, extract_factories
from webpack_unpack.core.nodes import Node, element, node_type

logger = logging.getLogger(__name__)

_TABLE_TYPES = ("ArrayExpression", "ObjectExpression")


class BundleKind(str, Enum):
    """Bundle conventions."""
    RUNTIME = "runtime"
    JSONP = "jsonp"


@dataclass(frozen=True)
class BundleMeta:
    """What a recognizer found: the factory table and the entry module, if any."""
    kind: BundleKind
    factories: tuple[FactoryEntry, ...]
    entry_id: Optional[ModuleId] = None


def _first_expression(program: Node) -> Optional[Node]:
    statement = element(program.get("body"), 0)
    if node_type(statement) != "ExpressionStatement":
        return None
    return statement.expression


def _bootstrap_call(statement: Node) -> Optional[Node]:
    """Return the ``require(require.s = id)`` call a statement ends with, if any."""
    if node_type(statement) != "ExpressionStatement":
        return None
    expression = statement.expression
    if node_type(expression) == "SequenceExpression":
        expression = element(expression.expressions, -1)
    if node_type(expression) != "CallExpression" or len(expression.arguments) != 1:
        return None
    if node_type(expression.arguments[0]) != "AssignmentExpression":
        return None
    return expression


def _find_entry_id(prelude: Node) -> Optional[ModuleId]:
    for statement in reversed(prelude.body):
        call = _bootstrap_call(statement)
        if call is None:
            continue
        right = call.arguments[0].right
        if node_type(right) == "Literal":
            return right.value
        return None
    return None


def detect_runtime_prelude(program: Node) -> Optional[BundleMeta]:
    """Recognize ``!(function(require){...})(factories)``."""
    expression = _first_expression(program)
    if node_type(expression) != "UnaryExpression" or node_type(expression.argument) != "CallExpression":
        return None

    outer = expression.argument
    loader = outer.callee
    if node_type(loader) != "FunctionExpression" or len(loader.params) != 1:
        logger.debug("Runtime prelude: callee is not a one-parameter function")
        return None

    entry_id = _find_entry_id(loader.body)

    if len(outer.arguments) != 1 or node_type(outer.arguments[0]) not in _TABLE_TYPES:
        logger.debug("Runtime prelude: loader is not applied to a factory table")
        return None

    return BundleMeta(
        kind=BundleKind.RUNTIME,
        factories=tuple(extract_factories(outer.arguments[0])),
        entry_id=entry_id,
    )


def detect_jsonp_prelude(program: Node) -> Optional[BundleMeta]:
    """Recognize ``(queue = queue || []).push([[chunkIds], factories])``."""
    call = _first_expression(program)
    if node_type(call) != "CallExpression" or node_type(call.callee) != "MemberExpression":
        return None

    callee = call.callee
    if callee.get("computed") or node_type(callee.property) != "Identifier" or callee.property.name != "push":
        return None
    if node_type(callee.object) != "AssignmentExpression":
        return None

    if len(call.arguments) != 1 or node_type(call.arguments[0]) != "ArrayExpression":
        logger.debug("Jsonp prelude: push argument is not a chunk array")
        return None
    chunk = call.arguments[0].elements
    if node_type(element(chunk, 0)) != "ArrayExpression":
        return None
    table = element(chunk, 1)
    if node_type(table) not in _TABLE_TYPES:
        logger.debug("Jsonp prelude: chunk has no factory table")
        return None

    return BundleMeta(kind=BundleKind.JSONP, factories=tuple(extract_factories(table)))


DETECTORS: tuple[Callable[[Node], Optional[BundleMeta]], ...] = (
    detect_runtime_prelude,
    detect_jsonp_prelude,
)


def detect_bundle(program: Node) -> Optional[BundleMeta]:
    """Try each known prelude convention in order."""
    for detector in DETECTORS:
        meta = detector(program)
        if meta is not None:
            logger.debug(
                "Detected %s prelude with %d factories (entry: %r)",
                meta.kind.value, len(meta.factories), meta.entry_id,
            )
            return meta
    logger.debug("No known prelude convention matched")
    return None
