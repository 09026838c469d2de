"""Bundle detection and module extraction."""

from webpack_unpack.core.factories import FactoryEntry, extract_factories
from webpack_unpack.core.materializer import ModuleDescriptor
from webpack_unpack.core.nodes import Node
from webpack_unpack.core.prelude import BundleKind, BundleMeta, detect_bundle
from webpack_unpack.core.unpacker import unpack

__all__ = [
    "unpack",
    "detect_bundle",
    "extract_factories",
    "BundleKind",
    "BundleMeta",
    "FactoryEntry",
    "ModuleDescriptor",
    "Node",
]
