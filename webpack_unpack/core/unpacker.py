"""Unpacking a bundle into its modules."""

import logging
from functools import partial
from typing import Any, Optional, Union

from webpack_unpack.config import Config
from webpack_unpack.core.factories import is_function_or_empty
from webpack_unpack.core.generator import generate_code
from webpack_unpack.core.materializer import ModuleDescriptor, materialize
from webpack_unpack.core.nodes import Node, is_estree_dict
from webpack_unpack.core.parser import parse_javascript
from webpack_unpack.core.prelude import detect_bundle
from webpack_unpack.core.scope import resolve_bindings
from webpack_unpack.core.text import SourceText

logger = logging.getLogger(__name__)

Source = Union[Node, dict, str, bytes, bytearray]


def _decode(text: Union[str, bytes, bytearray]) -> str:
    if isinstance(text, (bytes, bytearray)):
        return bytes(text).decode("utf-8")
    return text


def _normalize(
    source: Any,
    text: Optional[Union[str, bytes, bytearray]],
    config: Config,
) -> tuple[Node, Optional[str]]:
    """Turn the caller's input into a tree plus the raw text it was parsed from, if known."""
    if text is not None and not isinstance(text, (str, bytes, bytearray)):
        raise TypeError(f"text must be str or bytes, not {type(text).__name__}")

    if isinstance(source, Node):
        tree = source
    elif is_estree_dict(source):
        tree = Node.from_dict(source)
    elif isinstance(source, (str, bytes, bytearray)):
        raw = _decode(source)
        tree = parse_javascript(
            raw,
            ecma_version=config.ecma_version,
            node_binary=config.node_binary,
            timeout=config.parse_timeout_seconds,
            install=config.install_node_dependencies,
        )
        if text is None:
            text = raw
    else:
        raise TypeError(
            f"source must be a syntax tree, str or bytes, not {type(source).__name__}"
        )

    if tree.type != "Program":
        raise TypeError(f"syntax tree root must be a Program, not {tree.type}")

    return tree, _decode(text) if text is not None else None


def unpack(
    source: Source,
    *,
    text: Optional[Union[str, bytes, bytearray]] = None,
    config: Optional[Config] = None,
) -> Optional[list[ModuleDescriptor]]:
    """Recover the modules of a webpack bundle.

    Args:
        source: The bundle as raw text (``str`` or UTF-8 ``bytes``), or an
            already parsed ESTree ``Program`` (a ``Node`` or acorn JSON dict).
        text: Raw text the tree was parsed from. When given, module sources
            are sliced from it byte-exactly; when a tree is passed without
            it, module sources are regenerated. Overrides the raw text of a
            ``str``/``bytes`` source.
        config: Settings for the Node.js parser, scope analysis and generator.

    Returns:
        One descriptor per present factory, in table order, or None when the
        input is not a recognized bundle or any factory is not a plain
        function.

    Raises:
        TypeError: If ``source`` or ``text`` has an unsupported type.
        ValueError: If ``text`` cannot be the text the tree was parsed from.
        ParseError: If raw text could not be parsed.
        ScopeAnalysisError: If the factory parameters could not be resolved.
        GenerationError: If module sources had to be regenerated and that failed.
    """
    config = config or Config()
    tree, raw = _normalize(source, text, config)

    source_text = SourceText(raw) if raw is not None else None
    if source_text is not None and source_text.index(tree.end) > len(source_text):
        raise ValueError("text is shorter than the syntax tree it was parsed from")

    meta = detect_bundle(tree)
    if meta is None:
        return None

    if not all(is_function_or_empty(entry) for entry in meta.factories):
        logger.debug("Factory table holds a non-function entry, not a bundle")
        return None

    generate = partial(
        generate_code,
        node_binary=config.node_binary,
        timeout=config.generate_timeout_seconds,
        install=config.install_node_dependencies,
    )

    present = [entry for entry in meta.factories if entry.factory is not None]
    all_bindings = resolve_bindings(
        [entry.factory for entry in present],
        ecma_version=config.ecma_version,
        node_binary=config.node_binary,
        timeout=config.analysis_timeout_seconds,
        install=config.install_node_dependencies,
    )

    modules = [
        materialize(entry, meta.entry_id, bindings, source_text, generate=generate)
        for entry, bindings in zip(present, all_bindings)
    ]
    logger.debug("Unpacked %d modules from %s bundle", len(modules), meta.kind.value)
    return modules
