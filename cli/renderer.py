"""
Response Renderer - terminal output for search results and account info
"""

from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

SEVERITY_STYLES = {
    "CRITICAL": "bold red",
    "HIGH": "red",
    "MEDIUM": "yellow",
    "LOW": "green",
}


def _format_range(level: Dict[str, Any]) -> str:
    low = level.get("occurrenceMin")
    high = level.get("occurrenceMax")
    return f"{low}+" if high is None else f"{low}-{high}"


class ResponseRenderer:
    """Renders API responses in the terminal with rich formatting"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def render_search_results(self, response: Dict[str, Any], occurrence_count: Optional[int] = None):
        """Ranked matches, then the recommended action for each"""
        matches = response.get("matches", [])
        if response.get("noMatches") or not matches:
            self.render_warning("No matching tech messages")
            return

        table = Table(title=f"Matches ({len(matches)})", show_header=True, header_style="bold cyan")
        table.add_column("#", style="dim", width=4)
        table.add_column("ID", justify="right")
        table.add_column("Category", style="white")
        table.add_column("Severity", justify="center")
        table.add_column("Type", justify="center")
        table.add_column("Score", justify="right")
        table.add_column("Recommended Action")

        for i, match in enumerate(matches, 1):
            tech_message = match.get("techMessage", {})
            severity = tech_message.get("severity", "")
            action = match.get("recommendedAction")
            match_type = match.get("matchType", "")

            table.add_row(
                str(i),
                str(tech_message.get("id", "")),
                tech_message.get("category", ""),
                f"[{SEVERITY_STYLES.get(severity, 'white')}]{severity}[/]",
                "[green]EXACT[/green]" if match_type == "EXACT" else "[blue]FUZZY[/blue]",
                f"{match.get('matchScore', 0):.2f}",
                action.get("actionText", "") if action else "[dim]-[/dim]",
            )

        self.console.print(table)

        for match in matches:
            variables = match.get("extractedVariables")
            if variables:
                rendered = ", ".join(f"{k}={v}" for k, v in variables.items())
                self.console.print(
                    f"  [dim]#{match['techMessage'].get('id')} captured:[/dim] {rendered}"
                )

        top = matches[0]
        if top.get("allActionLevels"):
            recommended = top.get("recommendedAction") or {}
            self.console.print(f"\n[bold]Action levels for #{top['techMessage'].get('id')}[/bold]")
            self.render_action_levels(top["allActionLevels"], selected_id=recommended.get("id"))

        if occurrence_count is None:
            self.render_info("Pass --count to get a recommended action for an occurrence count")

    def render_action_levels(self, levels: List[Dict[str, Any]], selected_id: Optional[int] = None):
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Occurrences")
        table.add_column("Priority", justify="right")
        table.add_column("Action")

        for level in levels:
            marker = "[green]>[/green] " if level.get("id") == selected_id else ""
            table.add_row(
                marker + _format_range(level),
                str(level.get("priority", 1)),
                level.get("actionText", ""),
            )

        self.console.print(table)

    def render_categories(self, categories: List[str]):
        if not categories:
            self.render_warning("No categories defined")
            return
        for category in categories:
            self.console.print(f"  [cyan]•[/cyan] {category}")

    def render_user(self, user: Dict[str, Any], api_base_url: str):
        self.console.print(Panel(
            f"[green]Authenticated[/green]\n\n"
            f"[bold]User:[/bold] {user.get('username', '')}\n"
            f"[bold]Name:[/bold] {user.get('fullName') or 'Not set'}\n"
            f"[bold]Role:[/bold] {user.get('role', '')}\n"
            f"[bold]Server:[/bold] {api_base_url}",
            title="Authentication Status",
            border_style="green"
        ))

    def render_error(self, message: str, details: Optional[str] = None):
        """Render an error message"""
        self.console.print(Panel(
            f"[bold red]{message}[/bold red]" +
            (f"\n\n[dim]{details}[/dim]" if details else ""),
            title="[red]Error[/red]",
            border_style="red"
        ))

    def render_warning(self, message: str):
        self.console.print(f"[yellow]{message}[/yellow]")

    def render_success(self, message: str):
        self.console.print(f"[green]✓ {message}[/green]")

    def render_info(self, message: str):
        self.console.print(f"[dim]{message}[/dim]")
