"""Running the bundled Node.js helper scripts (acorn parser, eslint-scope analysis, astring generator)."""

import logging
import shutil
import subprocess
from pathlib import Path

from rich.console import Console

from webpack_unpack.errors import NodeUnavailableError

console = Console(stderr=True)
logger = logging.getLogger(__name__)

# Path to the Node.js helpers (in scripts directory, package.json at project root)
_PROJECT_ROOT = Path(__file__).parent.parent.parent
SCRIPTS_DIR = _PROJECT_ROOT / "scripts"


def check_node_available(node_binary: str = "node") -> bool:
    """Check if Node.js is available on the system."""
    return shutil.which(node_binary) is not None


def ensure_node_dependencies_installed(install: bool = True) -> bool:
    """Ensure acorn, eslint-scope and astring are installed in the project root."""
    node_modules = _PROJECT_ROOT / "node_modules"
    if node_modules.exists():
        return True
    if not install:
        return False

    console.print("[yellow]Installing Node.js dependencies...[/yellow]")
    try:
        result = subprocess.run(
            ["npm", "install"],
            cwd=_PROJECT_ROOT,
            capture_output=True,
            text=True,
        )
    except OSError as e:
        console.print(f"[red]Failed to install dependencies: {e}[/red]")
        return False

    if result.returncode != 0:
        console.print(f"[red]npm install failed: {result.stderr}[/red]")
        return False
    console.print("[green]Node.js dependencies installed[/green]")
    return True


def run_node_script(
    script: str,
    payload: str,
    args: tuple[str, ...] = (),
    node_binary: str = "node",
    timeout: int = 60,
    install: bool = True,
) -> subprocess.CompletedProcess:
    """Run a helper script with ``payload`` on stdin.

    Raises:
        NodeUnavailableError: If Node.js or the npm dependencies are missing.
        subprocess.TimeoutExpired: If the script runs past ``timeout``.
    """
    if not check_node_available(node_binary):
        raise NodeUnavailableError(f"Node.js is required but '{node_binary}' was not found")
    if not ensure_node_dependencies_installed(install):
        raise NodeUnavailableError("Node.js dependencies (acorn, eslint-scope, astring) are not installed")

    command = [node_binary, str(SCRIPTS_DIR / script), *args]
    logger.debug("Running %s (%d chars on stdin)", " ".join(command), len(payload))
    return subprocess.run(
        command,
        input=payload,
        capture_output=True,
        text=True,
        encoding="utf-8",
        timeout=timeout,
    )
