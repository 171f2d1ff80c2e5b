"""Main CLI interface for bun-deps."""

import asyncio
from pathlib import Path
from typing import NoReturn, Optional, Tuple

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.text import Text

from ..audit.client import (
    DEFAULT_REGISTRY,
    AuditConfig,
    AuditEndpointUnavailableError,
    AuditError,
    run_audit,
)
from ..core.attributor import DependencyAttributor
from ..core.audit_tree import AuditTreeBuilder
from ..core.listing import select_workspaces
from ..core.lockfile import Lockfile
from ..core.parser import BunLockfileParser
from ..output.formatters import ConsoleFormatter, JSONFormatter
from ..utils.logging import get_logger, setup_logging
from ..utils.path_utils import (
    ProjectRootNotFoundError,
    find_root_dir,
    get_current_package_name,
    lockfile_path,
)

app = typer.Typer(
    name="bun-deps",
    help="Inspect bun.lock: list dependencies, explain why a package is installed, audit for vulnerabilities",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
logger = get_logger("CLI")


def _load_project(cwd: Optional[Path]) -> Tuple[Path, Lockfile]:
    """Locate the project root and parse its bun.lock.

    Args:
        cwd: Directory to start from (defaults to the working directory)

    Returns:
        Project root and parsed lockfile
    """
    try:
        root = find_root_dir(cwd)
        lockfile = BunLockfileParser().parse(lockfile_path(root))
    except ProjectRootNotFoundError as e:
        _fail(str(e))
    except (OSError, ValueError) as e:
        _fail(f"Error reading bun.lock: {e}")

    logger.debug(
        f"Loaded {len(lockfile)} packages and {len(lockfile.workspaces)} workspaces from {root}"
    )
    if lockfile.skipped_packages:
        logger.debug(f"Ignored malformed entries: {', '.join(lockfile.skipped_packages)}")
    return root, lockfile


def _fail(message: str) -> NoReturn:
    logger.error(message)
    console.print(Text(message, style="red"))
    raise typer.Exit(1)


@app.command("list")
def list_dependencies(
    recursive: bool = typer.Option(
        False,
        "--recursive",
        "-r",
        help="List dependencies of every workspace"
    ),
    cwd: Optional[Path] = typer.Option(
        None,
        "--cwd",
        help="Directory to run from (defaults to the current directory)"
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print results as JSON"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
) -> None:
    """List dependencies in the current package (use -r for all workspaces)."""
    setup_logging(verbose=verbose)

    _, lockfile = _load_project(cwd)
    current_package = get_current_package_name(cwd)
    workspaces = select_workspaces(lockfile, current_package, recursive=recursive)

    if json_output:
        formatter = JSONFormatter(console=console)
        formatter.emit(formatter.format_workspaces(workspaces))
    else:
        ConsoleFormatter(console).format_workspaces(workspaces)


@app.command()
def why(
    package: str = typer.Argument(
        ...,
        help="Name of the package to explain"
    ),
    cwd: Optional[Path] = typer.Option(
        None,
        "--cwd",
        help="Directory to run from (defaults to the current directory)"
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print results as JSON"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
) -> None:
    """Show why a package is installed."""
    setup_logging(verbose=verbose)

    _, lockfile = _load_project(cwd)
    explanation = DependencyAttributor(lockfile).explain(package)

    if json_output:
        formatter = JSONFormatter(console=console)
        formatter.emit(formatter.format_explanation(explanation))
    else:
        ConsoleFormatter(console).format_explanation(explanation)


@app.command()
def audit(
    registry: str = typer.Option(
        DEFAULT_REGISTRY,
        "--registry",
        envvar="BUN_DEPS_REGISTRY",
        help="npm registry to send the audit request to"
    ),
    timeout: float = typer.Option(
        30.0,
        "--timeout",
        envvar="BUN_DEPS_AUDIT_TIMEOUT",
        help="Audit request timeout in seconds"
    ),
    cwd: Optional[Path] = typer.Option(
        None,
        "--cwd",
        help="Directory to run from (defaults to the current directory)"
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print results as JSON"
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file for JSON results"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
) -> None:
    """Check for known vulnerabilities."""
    setup_logging(verbose=verbose)

    try:
        config = AuditConfig(registry=registry, timeout=timeout)
    except ValueError as e:
        _fail(str(e))

    _, lockfile = _load_project(cwd)
    tree = AuditTreeBuilder().build(lockfile)
    for name, versions in tree.collisions.items():
        logger.debug(f"{name}: auditing {tree.dependencies[name].version}, skipping {', '.join(versions)}")

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True
        ) as progress:
            progress.add_task("Querying npm audit endpoint...", total=None)
            report = asyncio.run(run_audit(tree, config))
    except AuditEndpointUnavailableError:
        _fail("The npm audit endpoint is not available")
    except AuditError as e:
        _fail(f"Error running audit: {e}")

    if json_output or output:
        formatter = JSONFormatter(output_file=output, console=console)
        formatter.emit(formatter.format_audit_report(report))
        if output is None:
            return

    ConsoleFormatter(console).format_audit_report(report)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
