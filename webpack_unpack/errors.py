"""Exceptions raised by webpack-unpack.

An unrecognized bundle is not an error: ``unpack`` returns None for it.
These exceptions cover failures of the collaborators around the core.
"""


class UnpackError(RuntimeError):
    """Base class for webpack-unpack failures."""


class NodeUnavailableError(UnpackError):
    """Node.js or the helper scripts' npm dependencies are missing."""


class ParseError(UnpackError):
    """Source text could not be parsed into a syntax tree."""


class ScopeAnalysisError(UnpackError):
    """Parameter bindings could not be resolved."""


class GenerationError(UnpackError):
    """Source could not be regenerated from a syntax tree."""


class OutputError(UnpackError):
    """Recovered modules could not be written out."""
