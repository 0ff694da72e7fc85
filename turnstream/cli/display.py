"""
CLI display components for streamed message snapshots.

- CompactDisplay: text as it grows, one line per tool call, final status
- JsonDisplay: one JSON snapshot per line for scripting and debugging
"""

from abc import ABC, abstractmethod
from dataclasses import asdict
import json

from rich.console import Console

from .._types import RunStatusType, Snapshot, TextPart, ToolCallPart
from ..signals import BrowserSessionOpened, FileCreated, ToolSignal


class SnapshotDisplay(ABC):
    """Base class for snapshot renderers."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self.last: Snapshot | None = None

    @abstractmethod
    def on_snapshot(self, snapshot: Snapshot) -> None:
        """Render one snapshot."""

    def on_signal(self, signal: ToolSignal) -> None:
        """Render a tool side-effect notification."""

    @abstractmethod
    def finish(self) -> None:
        """Called once after the stream ends."""

    def get_final_text(self) -> str:
        return self.last.text if self.last else ""


class CompactDisplay(SnapshotDisplay):
    """Prints text deltas in place and a short line for each tool call."""

    def __init__(self, console: Console | None = None) -> None:
        super().__init__(console=console)
        self._part_index = 0
        self._text_offset = 0
        self._announced: set[str] = set()
        self._completed: set[str] = set()

    def on_snapshot(self, snapshot: Snapshot) -> None:
        self.last = snapshot
        parts = snapshot.parts
        # Parts only ever grow, so resume from the last part seen.
        for index in range(self._part_index, len(parts)):
            part = parts[index]
            if isinstance(part, TextPart):
                offset = self._text_offset if index == self._part_index else 0
                print(part.text[offset:], end="", flush=True)
                self._text_offset = len(part.text)
            else:
                self._show_tool_call(part)
                self._text_offset = 0
            self._part_index = index
        for part in snapshot.tool_calls:
            self._show_tool_call(part)

    def _show_tool_call(self, part: ToolCallPart) -> None:
        if part.tool_call_id not in self._announced:
            self._announced.add(part.tool_call_id)
            self.console.print(f"\n[dim]🔧 {part.tool_name or 'tool'}[/dim]")
        if part.completed and part.tool_call_id not in self._completed:
            self._completed.add(part.tool_call_id)
            self.console.print(f"[dim]✓ {part.tool_name or 'tool'} done[/dim]")

    def on_signal(self, signal: ToolSignal) -> None:
        if isinstance(signal, BrowserSessionOpened):
            self.console.print(f"\n[cyan]🌐 {signal.title}: {signal.viewer_url}[/cyan]")
        elif isinstance(signal, FileCreated):
            self.console.print("\n[cyan]📄 File created[/cyan]")

    def finish(self) -> None:
        if self.last is None:
            return
        print()
        status = self.last.status
        if status.type == RunStatusType.COMPLETE:
            self.console.print("[green]✅ Complete[/green]")
        else:
            self.console.print(f"[red]❌ {status.type.value} ({status.reason})[/red]")


class JsonDisplay(SnapshotDisplay):
    """Outputs each snapshot as a JSON line."""

    def on_snapshot(self, snapshot: Snapshot) -> None:
        self.last = snapshot
        print(json.dumps(snapshot.to_dict(), default=str), flush=True)

    def on_signal(self, signal: ToolSignal) -> None:
        payload = {"signal": type(signal).__name__, **asdict(signal)}
        print(json.dumps(payload, default=str), flush=True)

    def finish(self) -> None:
        pass


def create_display(format: str = "compact") -> SnapshotDisplay:
    """
    Factory function to create appropriate display.

    Args:
        format: Display format ("compact" or "json")

    Returns:
        SnapshotDisplay instance
    """
    if format == "json":
        return JsonDisplay()
    return CompactDisplay()
