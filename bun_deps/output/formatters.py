"""Output formatters for bun-deps results."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..audit.report import AuditReport
from ..core.attributor import DependencyExplanation
from ..core.lockfile import Workspace
from ..utils.logging import get_logger

ROOT_LABEL = "root"

SEVERITY_STYLES = {
    "critical": "red bold",
    "high": "red",
    "moderate": "yellow",
    "low": "blue",
    "info": "cyan",
}

SEVERITY_ICONS = {
    "critical": "❗",
    "high": "⚠️",
    "moderate": "⚠️",
    "low": "ℹ️",
    "info": "ℹ️",
}


class ConsoleFormatter:
    """Rich console formatter for bun-deps output."""

    def __init__(self, console: Optional[Console] = None) -> None:
        """Initialize the console formatter.

        Args:
            console: Rich console instance
        """
        self.console = console or Console()
        self.logger = get_logger("ConsoleFormatter")

    def format_workspaces(self, workspaces: List[Workspace]) -> None:
        """Display the declared dependencies of each workspace.

        Args:
            workspaces: Workspaces to display
        """
        if not workspaces:
            self.console.print("[yellow]No matching workspace found in bun.lock[/yellow]")
            return

        for workspace in workspaces:
            self.console.print(f"\n📦 [bold]{escape(workspace.label or ROOT_LABEL)}[/bold]:")
            self._print_dependency_section("Production Dependencies", workspace.dependencies)
            self._print_dependency_section("Development Dependencies", workspace.dev_dependencies)

    def _print_dependency_section(self, title: str, dependencies: Dict[str, str]) -> None:
        if not dependencies:
            return
        self.console.print(f"\n[bold cyan]{title}:[/bold cyan]")
        for name, spec in dependencies.items():
            self.console.print(f"  {name}@{spec}", markup=False)

    def format_explanation(self, explanation: DependencyExplanation) -> None:
        """Display why a package is installed.

        Args:
            explanation: Direct and transitive sources of the package
        """
        target = escape(explanation.target)
        if not explanation.found:
            self.console.print(f'[red]❌ Package "{target}" not found in any workspace[/red]')
            return

        self.console.print(f'📦 Package "[bold]{target}[/bold]" is required by:')

        if explanation.direct:
            self.console.print("\n[bold cyan]Direct Dependencies:[/bold cyan]")
            for source in explanation.direct:
                self.console.print(f"  • {source.label or ROOT_LABEL} ({source.kind})", markup=False)

        if explanation.transitive:
            self.console.print("\n[bold cyan]Transitive Dependencies:[/bold cyan]")
            for edge in explanation.transitive:
                path = f" (via {' → '.join(edge.through)})" if edge.through else ""
                self.console.print(f"  • {edge.name}@{edge.version}{path}", markup=False)

    def format_audit_report(self, report: AuditReport) -> None:
        """Display an audit report.

        Args:
            report: Parsed audit report
        """
        if not report.has_vulnerabilities:
            self.console.print(Panel("✅ No known vulnerabilities found", style="green"))
            return

        counts = report.vulnerabilities
        lines = []
        for severity in ("critical", "high", "moderate", "low", "info"):
            count = getattr(counts, severity)
            if count > 0:
                label = Text(f"{SEVERITY_ICONS[severity]} {severity.capitalize()}: {count}")
                label.stylize(SEVERITY_STYLES[severity])
                lines.append(label)

        self.console.print(
            Panel(
                Text("\n").join(lines),
                title=f"Found {counts.total} vulnerabilities",
                style="red",
            )
        )

        if report.advisories:
            self.console.print(self._create_advisories_table(report))

    def _create_advisories_table(self, report: AuditReport) -> Table:
        """Create advisories table.

        Args:
            report: Parsed audit report

        Returns:
            Rich table with one row per advisory
        """
        table = Table(title="Advisories")

        table.add_column("Severity", no_wrap=True)
        table.add_column("Package", style="cyan", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Vulnerable", style="red")
        table.add_column("Patched", style="green")
        table.add_column("More info", style="blue")

        for advisory in report.advisories:
            table.add_row(
                Text(advisory.severity, style=SEVERITY_STYLES.get(advisory.severity, "white")),
                advisory.module_name or "-",
                advisory.title,
                advisory.vulnerable_versions,
                advisory.patched_versions,
                advisory.url,
            )

        return table


class JSONFormatter:
    """JSON formatter for machine-readable output."""

    def __init__(self, output_file: Optional[Path] = None, console: Optional[Console] = None) -> None:
        """Initialize the JSON formatter.

        Args:
            output_file: File to write to; the console is used when omitted
            console: Rich console instance
        """
        self.output_file = output_file
        self.console = console or Console()
        self.logger = get_logger("JSONFormatter")

    def format_workspaces(self, workspaces: List[Workspace]) -> Dict[str, Any]:
        return {
            "workspaces": [
                {
                    "path": workspace.path,
                    "name": workspace.name,
                    "dependencies": dict(workspace.dependencies),
                    "devDependencies": dict(workspace.dev_dependencies),
                }
                for workspace in workspaces
            ]
        }

    def format_explanation(self, explanation: DependencyExplanation) -> Dict[str, Any]:
        return {
            "package": explanation.target,
            "found": explanation.found,
            "direct": [
                {
                    "workspace": source.label,
                    "path": source.workspace_path,
                    "type": source.kind,
                }
                for source in explanation.direct
            ],
            "transitive": [
                {
                    "name": edge.name,
                    "version": edge.version,
                    "through": list(edge.through),
                }
                for edge in explanation.transitive
            ],
        }

    def format_audit_report(self, report: AuditReport) -> Dict[str, Any]:
        return report.to_dict()

    def emit(self, results: Dict[str, Any]) -> None:
        """Write results to the output file, or print them.

        Args:
            results: Formatted results
        """
        text = json.dumps(results, indent=2, ensure_ascii=False)
        if self.output_file is None:
            self.console.print_json(text)
            return

        with open(self.output_file, "w", encoding="utf-8") as f:
            f.write(text + "\n")
        self.logger.info(f"Results saved to {self.output_file}")
