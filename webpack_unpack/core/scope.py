"""Parameter binding resolution using eslint-scope via Node.js."""

import json
import logging
import subprocess
from dataclasses import dataclass, field
from typing import Optional, Union

from webpack_unpack.core.nodejs import run_node_script
from webpack_unpack.core.nodes import Node, node_type
from webpack_unpack.errors import ScopeAnalysisError

logger = logging.getLogger(__name__)

NodePath = list[Union[str, int]]


@dataclass
class Reference:
    """An identifier occurrence with the nodes enclosing it, outermost first."""
    node: Node
    ancestors: tuple[Node, ...] = ()

    @property
    def parent(self) -> Optional[Node]:
        """The node directly containing the identifier."""
        return self.ancestors[-1] if self.ancestors else None


@dataclass
class Binding:
    """A parameter and every identifier bound to it.

    The parameter identifier itself is one of the ``references``.
    """
    name: str
    definition: Node
    references: list[Reference] = field(default_factory=list)


def follow_path(root: Node, path: NodePath) -> Reference:
    """Walk ``path`` (field names and list indices) down from ``root`` to an identifier.

    Raises:
        ScopeAnalysisError: If the path does not lead to an identifier.
    """
    ancestors = []
    current = root
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or not 0 <= step < len(current):
                raise ScopeAnalysisError(f"Invalid reference path {path!r}")
            current = current[step]
        else:
            if not isinstance(current, Node):
                raise ScopeAnalysisError(f"Invalid reference path {path!r}")
            ancestors.append(current)
            current = current.get(step)

    if node_type(current) != "Identifier":
        raise ScopeAnalysisError(f"Reference path {path!r} does not lead to an identifier")
    return Reference(node=current, ancestors=tuple(ancestors))


def _function_bindings(function: Node, params: list) -> dict[int, Binding]:
    if not isinstance(params, list) or len(params) != len(function.params):
        raise ScopeAnalysisError("Scope analysis returned a different parameter count")

    bindings: dict[int, Binding] = {}
    for param, paths in zip(function.params, params):
        if paths is None or node_type(param) != "Identifier":
            continue
        bindings[id(param)] = Binding(
            name=param.name,
            definition=param,
            references=[follow_path(function, path) for path in paths],
        )
    return bindings


def resolve_bindings(
    functions: list[Node],
    ecma_version: int = 2019,
    node_binary: str = "node",
    timeout: int = 60,
    install: bool = True,
) -> list[dict[int, Binding]]:
    """Resolve the plain identifier parameters of several functions in one Node.js run.

    Args:
        functions: Function nodes to analyze
        ecma_version: ECMAScript version eslint-scope analyzes with
        node_binary: Node.js executable
        timeout: Seconds before the analysis is abandoned
        install: Run ``npm install`` if the helper dependencies are missing

    Returns:
        One mapping per function from ``id(parameter_node)`` to its binding.
        Destructured parameters are not included.

    Raises:
        ScopeAnalysisError: If eslint-scope fails or its output does not match
            the functions sent.
    """
    if not functions:
        return []

    request = {
        "ecmaVersion": ecma_version,
        "functions": [function.to_dict() for function in functions],
    }
    try:
        result = run_node_script(
            "scope.mjs",
            json.dumps(request, ensure_ascii=False),
            node_binary=node_binary,
            timeout=timeout,
            install=install,
        )
    except subprocess.TimeoutExpired as e:
        raise ScopeAnalysisError(f"eslint-scope analysis timed out after {timeout}s") from e

    if result.returncode != 0:
        raise ScopeAnalysisError(result.stderr.strip() or "eslint-scope exited with an error")

    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise ScopeAnalysisError(f"Failed to read eslint-scope output: {e}") from e

    if not isinstance(data, list) or len(data) != len(functions):
        raise ScopeAnalysisError("Scope analysis returned a different function count")

    logger.debug("Resolved parameter bindings of %d functions", len(functions))
    return [_function_bindings(function, params) for function, params in zip(functions, data)]


def resolve_parameter_bindings(function: Node, **options) -> dict[int, Binding]:
    """Resolve the bindings of one function's plain identifier parameters."""
    return resolve_bindings([function], **options)[0]
