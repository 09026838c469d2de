"""JavaScript parsing using acorn via Node.js."""

import json
import subprocess

from webpack_unpack.core.nodejs import run_node_script
from webpack_unpack.core.nodes import Node
from webpack_unpack.errors import ParseError

DEFAULT_ECMA_VERSION = 2019


def parse_javascript(
    source_code: str,
    ecma_version: int = DEFAULT_ECMA_VERSION,
    node_binary: str = "node",
    timeout: int = 60,
    install: bool = True,
) -> Node:
    """Parse JavaScript source into an ESTree ``Program`` node.

    Node offsets are those reported by acorn (UTF-16 code units).

    Args:
        source_code: The JavaScript source code to parse
        ecma_version: ECMAScript version passed to acorn
        node_binary: Node.js executable
        timeout: Seconds before the parse is abandoned
        install: Run ``npm install`` if the helper dependencies are missing

    Returns:
        The root ``Program`` node

    Raises:
        ParseError: If the source is not valid JavaScript or acorn output
            cannot be read.
    """
    try:
        result = run_node_script(
            "parse.mjs",
            source_code,
            args=(str(ecma_version),),
            node_binary=node_binary,
            timeout=timeout,
            install=install,
        )
    except subprocess.TimeoutExpired as e:
        raise ParseError(f"acorn parsing timed out after {timeout}s") from e

    if result.returncode != 0:
        raise ParseError(result.stderr.strip() or "acorn exited with an error")

    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise ParseError(f"Failed to read acorn output: {e}") from e

    return Node.from_dict(data)
