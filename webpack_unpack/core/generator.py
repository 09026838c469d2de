"""Code generation from syntax trees using astring via Node.js."""

import json
import subprocess
from typing import Optional

from webpack_unpack.core.nodejs import run_node_script
from webpack_unpack.core.nodes import Node
from webpack_unpack.errors import GenerationError


def generate_code(
    statements: list[Node],
    renames: Optional[dict[int, str]] = None,
    node_binary: str = "node",
    timeout: int = 60,
    install: bool = True,
) -> str:
    """Generate source for a list of statements.

    Output uses astring's default formatting, one statement per line.

    Args:
        statements: Statement nodes to print as a program
        renames: Side-table from ``id(identifier_node)`` to the name to print
        node_binary: Node.js executable
        timeout: Seconds before generation is abandoned
        install: Run ``npm install`` if the helper dependencies are missing

    Returns:
        Generated source code

    Raises:
        GenerationError: If astring fails.
    """
    program = {
        "type": "Program",
        "sourceType": "script",
        "body": [statement.to_dict(renames) for statement in statements],
    }

    try:
        result = run_node_script(
            "generate.mjs",
            json.dumps(program, ensure_ascii=False),
            node_binary=node_binary,
            timeout=timeout,
            install=install,
        )
    except subprocess.TimeoutExpired as e:
        raise GenerationError(f"astring generation timed out after {timeout}s") from e

    if result.returncode != 0:
        raise GenerationError(result.stderr.strip() or "astring exited with an error")
    return result.stdout
