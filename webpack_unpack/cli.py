"""CLI interface for webpack-unpack."""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Optional

import click
from rich.console import Console
from rich.table import Table

from webpack_unpack import __version__
from webpack_unpack.config import Config
from webpack_unpack.core import unpack
from webpack_unpack.errors import UnpackError
from webpack_unpack.output import format_modules_json, write_modules

console = Console(stderr=True)
logger = logging.getLogger(__name__)


def setup_debug_logger(log_path: Optional[Path] = None) -> logging.FileHandler:
    """Send the package's log records, down to DEBUG, to a file.

    Returns the attached handler so the caller can detach it when done.
    """
    if log_path is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = Path(f"webpack_unpack_debug_{timestamp}.log")

    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    package_logger = logging.getLogger("webpack_unpack")
    package_logger.setLevel(logging.DEBUG)
    package_logger.addHandler(handler)
    return handler


def _as_json(data) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2, default=str)


def _summary_table(modules) -> Table:
    table = Table(title="Extracted Modules")
    table.add_column("Id")
    table.add_column("Dependencies")
    table.add_column("Size", justify="right")
    table.add_column("Entry")

    for module in modules:
        table.add_row(
            str(module.id),
            ", ".join(str(dep) for dep in module.deps) or "-",
            str(len(module.source)),
            "✓" if module.entry else "",
        )
    return table


@click.command()
@click.version_option(version=__version__)
@click.argument("input_file", type=click.File("rb"), default="-")
@click.option("-o", "--out", "out_dir", type=click.Path(file_okay=False, path_type=Path), help="Write each module to OUT/<id>.js")
@click.option("--ext", "extension", help="File extension for written modules (default: .js)")
@click.option("--indent", type=int, help="Indent printed JSON")
@click.option("--summary", is_flag=True, help="Print a table of extracted modules to stderr")
@click.option("--node", "node_binary", help="Node.js executable used for parsing")
@click.option("--debug", is_flag=True, help="Enable debug logging to file")
@click.option("--debug-file", type=click.Path(path_type=Path), help="Debug log file path (default: webpack_unpack_debug_TIMESTAMP.log)")
def main(
    input_file: BinaryIO,
    out_dir: Optional[Path],
    extension: Optional[str],
    indent: Optional[int],
    summary: bool,
    node_binary: Optional[str],
    debug: bool,
    debug_file: Optional[Path],
):
    """Extract the modules of a webpack bundle.

    INPUT_FILE is the bundle to read (default: stdin). Without --out, the
    modules are printed as a JSON array.
    """
    handler = None
    if debug:
        handler = setup_debug_logger(debug_file)
        console.print(f"[yellow]Debug logging enabled: {handler.baseFilename}[/yellow]")

    # Only override .env values if CLI args are explicitly provided
    config_kwargs = {}
    if out_dir is not None:
        config_kwargs["output_dir"] = out_dir
    if extension:
        config_kwargs["module_extension"] = extension
    if indent is not None:
        config_kwargs["json_indent"] = indent
    if node_binary:
        config_kwargs["node_binary"] = node_binary

    try:
        _run(input_file, Config(**config_kwargs), summary)
    finally:
        if handler is not None:
            logging.getLogger("webpack_unpack").removeHandler(handler)
            handler.close()
            console.print(f"\n[yellow]Debug log saved to: {handler.baseFilename}[/yellow]")


def _run(input_file: BinaryIO, config: Config, summary: bool):
    logger.info("Configuration loaded\n%s", _as_json(config.model_dump(mode="json")))

    contents = input_file.read()
    logger.info("Read %d bytes from %s", len(contents), getattr(input_file, "name", "<stdin>"))

    try:
        modules = unpack(contents, config=config)
    except UnpackError as e:
        console.print(f"[red]Error: {e}[/red]")
        logger.info("Unpacking failed: %s", e)
        sys.exit(1)
    except UnicodeDecodeError as e:
        console.print(f"[red]Error: input is not UTF-8 text ({e})[/red]")
        sys.exit(1)

    if modules is None:
        console.print("[red]could not parse bundle[/red]")
        logger.info("Input did not match a known bundle shape")
        sys.exit(1)

    logger.info("Unpacked modules\n%s", _as_json({
        "count": len(modules),
        "modules": [
            {"id": module.id, "deps": list(module.deps), "entry": module.entry}
            for module in modules
        ],
    }))

    if summary:
        console.print(_summary_table(modules))

    if config.output_dir is not None:
        try:
            write_modules(modules, config.output_dir, config.module_extension)
        except (UnpackError, OSError) as e:
            console.print(f"[red]Error writing modules: {e}[/red]")
            sys.exit(1)
        click.echo(f"extracted {len(modules)} modules")
    else:
        click.echo(format_modules_json(modules, indent=config.json_indent))


if __name__ == "__main__":
    main()
