"""Writing and printing recovered modules."""

import json
import logging
from pathlib import Path
from typing import Iterable, Optional

from tqdm import tqdm

from webpack_unpack.core.materializer import ModuleDescriptor
from webpack_unpack.errors import OutputError

logger = logging.getLogger(__name__)


def module_path(out_dir: Path, module: ModuleDescriptor, extension: str = ".js") -> Path:
    """Path a module is written to: ``<out_dir>/<id><extension>``.

    Raises:
        OutputError: If the module id would place the file outside ``out_dir``.
    """
    # null and boolean literal keys are written the way JavaScript prints them
    name = json.dumps(module.id) if module.id is None or isinstance(module.id, bool) else str(module.id)
    path = out_dir / f"{name}{extension}"
    root = out_dir.resolve()
    resolved = path.resolve()
    if resolved != root and root not in resolved.parents:
        raise OutputError(f"Module id {module.id!r} points outside {out_dir}")
    return path


def write_modules(
    modules: list[ModuleDescriptor],
    out_dir: Path,
    extension: str = ".js",
    show_progress: bool = True,
) -> list[Path]:
    """Write each module's source to its own file.

    Modules sharing an id overwrite each other in table order.

    Args:
        modules: Recovered modules
        out_dir: Directory to write to (created if missing)
        extension: File extension appended to each module id
        show_progress: Whether to display a progress bar

    Returns:
        Paths written, one per module
    """
    out_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for module in tqdm(modules, desc="Writing modules", unit="module", disable=not show_progress):
        path = module_path(out_dir, module, extension)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(module.source, encoding="utf-8")
        logger.debug("Wrote module %r to %s", module.id, path)
        written.append(path)
    return written


def format_modules_json(modules: Iterable[ModuleDescriptor], indent: Optional[int] = None) -> str:
    """Format modules as a JSON array with one module object per entry line."""
    lines = ["["]
    for index, module in enumerate(modules):
        if index > 0:
            lines.append(",")
        lines.append(json.dumps(module.to_dict(), ensure_ascii=False, indent=indent))
    lines.append("]")
    return "\n".join(lines)
