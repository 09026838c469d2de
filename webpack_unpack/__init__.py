"""webpack-unpack - recover the original modules from a webpack bundle."""

__version__ = "0.1.0"
__author__ = "webpack-unpack"

from webpack_unpack.config import Config
from webpack_unpack.core.materializer import ModuleDescriptor
from webpack_unpack.core.unpacker import unpack

__all__ = [
    "__version__",
    "Config",
    "ModuleDescriptor",
    "unpack",
]
