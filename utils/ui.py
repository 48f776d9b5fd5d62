"""
Lightweight TUI wrapper using rich: a live stage board while a query resolves,
then a panel with the answer and a table of pinned locations.
"""

from __future__ import annotations

from collections import deque
from contextlib import nullcontext
from typing import Any, Dict, Optional

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

STAGES = (
    "blank_query",
    "route",
    "knowledge_base",
    "location_ask",
    "classify",
    "app_intent",
    "support_fallback",
    "entity_or_navigator",
    "app_help",
    "terminal_fallback",
)


class BaseUI:
    enabled = False

    def live(self):
        return nullcontext()

    def reset(self) -> None:
        pass

    def stage(self, stage: str, status: str) -> None:
        pass

    def log(self, source: str, content: str) -> None:
        pass

    def response(self, payload: Dict[str, Any]) -> None:
        pass


class RichUI(BaseUI):
    enabled = True

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()
        self.messages = deque(maxlen=50)
        self.stages: Dict[str, str] = {}
        self.live_obj: Optional[Live] = None
        self.reset()

    def live(self):
        self.live_obj = Live(self._render_board(), console=self.console, refresh_per_second=8, transient=True)
        return self.live_obj

    def reset(self) -> None:
        self.messages.clear()
        self.stages = {stage: "pending" for stage in STAGES}

    def stage(self, stage: str, status: str) -> None:
        if stage in self.stages:
            self.stages[stage] = status
            self._refresh()

    def log(self, source: str, content: str) -> None:
        self.messages.append((source, content))
        self._refresh()

    def response(self, payload: Dict[str, Any]) -> None:
        verified = payload.get("verified")
        badge = "[green]verified[/green]" if verified else "[yellow]unverified[/yellow]"
        header = Text.from_markup(
            f"[bold]{payload.get('intent')}[/bold]  [dim]{payload.get('action')}[/dim]  {badge}"
        )
        parts = [header, Text(""), Text(payload.get("message", ""))]

        locations = payload.get("locations") or []
        if locations:
            table = Table(show_header=True, header_style="bold", expand=True)
            table.add_column("Role", width=11)
            table.add_column("Building")
            table.add_column("Service")
            table.add_column("Lat, Lng", justify="right")
            for loc in locations:
                coords = loc.get("coordinates") or {}
                service = loc.get("service_name") or ""
                if loc.get("service_location"):
                    service = f"{service} ({loc['service_location']})"
                table.add_row(
                    loc.get("role", ""),
                    f"{loc.get('building_name')} [dim]{loc.get('building_id')}[/dim]",
                    service,
                    f"{coords.get('lat', 0):.5f}, {coords.get('lng', 0):.5f}",
                )
            parts.extend([Text(""), table])

        follow_up = payload.get("follow_up") or []
        if follow_up:
            parts.append(Text(""))
            parts.extend(Text(f"- {line}", style="dim") for line in follow_up)
        sources = payload.get("sources") or []
        if sources:
            parts.append(Text("sources: " + ", ".join(sources), style="dim italic"))

        border = "green" if verified else "yellow"
        self.console.print(Panel(Group(*parts), title="Concierge", border_style=border))

    # Internal helpers
    def _render_board(self) -> Panel:
        table = Table.grid(padding=(0, 1))
        table.add_column("Stage", style="bold white")
        table.add_column("Status", justify="right")
        for stage, status in self.stages.items():
            status_text = {
                "pending": "[dim]pending[/dim]",
                "in_progress": "[yellow]running[/yellow]",
                "completed": "[green]done[/green]",
                "error": "[red]error[/red]",
            }.get(status, status)
            table.add_row(stage, status_text)
        for source, content in list(self.messages)[-3:]:
            truncated = content.replace("\n", " ")
            if len(truncated) > 80:
                truncated = truncated[:77] + "..."
            table.add_row(f"[magenta]{source}[/magenta]", truncated)
        return Panel(table, title="Pipeline", border_style="blue")

    def _refresh(self) -> None:
        if not self.live_obj:
            return
        self.live_obj.update(self._render_board())


def get_ui(enabled: bool) -> BaseUI:
    if enabled:
        try:
            return RichUI()
        except Exception as exc:
            print(f"TUI unavailable, using plain output: {exc}")
            return BaseUI()
    return BaseUI()
