import io
import json

from rich.console import Console

from turnstream._types import RunStatus, Snapshot, TextPart, ToolCallPart, ToolCallStatus
from turnstream.cli.display import CompactDisplay, JsonDisplay, create_display
from turnstream.signals import BrowserSessionOpened, FileCreated


def _quiet_console() -> Console:
    return Console(file=io.StringIO(), force_terminal=False, color_system=None)


def _snap(*parts, status=None) -> Snapshot:
    return Snapshot(parts=tuple(parts), status=status or RunStatus.running())


def test_compact_display_prints_only_new_text(capsys):
    display = CompactDisplay(console=_quiet_console())
    display.on_snapshot(_snap())
    display.on_snapshot(_snap(TextPart(text="Hel")))
    display.on_snapshot(_snap(TextPart(text="Hello")))
    display.on_snapshot(_snap(TextPart(text="Hello world")))
    assert capsys.readouterr().out == "Hello world"
    assert display.get_final_text() == "Hello world"


def test_compact_display_announces_each_tool_call_once():
    console = _quiet_console()
    display = CompactDisplay(console=console)
    pending = ToolCallPart(tool_call_id="1", tool_name="search")
    done = ToolCallPart(
        tool_call_id="1", tool_name="search", status=ToolCallStatus.COMPLETED, result="42"
    )
    display.on_snapshot(_snap(pending))
    display.on_snapshot(_snap(pending, TextPart(text="Hi")))
    display.on_snapshot(_snap(done, TextPart(text="Hi")))
    output = console.file.getvalue()
    assert output.count("🔧 search") == 1
    assert output.count("✓ search done") == 1


def test_compact_display_finish_reports_status():
    console = _quiet_console()
    display = CompactDisplay(console=console)
    display.on_snapshot(_snap(status=RunStatus.incomplete("stream_ended")))
    display.finish()
    assert "incomplete (stream_ended)" in console.file.getvalue()


def test_compact_display_signals():
    console = _quiet_console()
    display = CompactDisplay(console=console)
    display.on_signal(BrowserSessionOpened(viewer_url="https://view"))
    display.on_signal(FileCreated(result={"fileId": 1}))
    output = console.file.getvalue()
    assert "Browser Session: https://view" in output
    assert "File created" in output


def test_json_display_emits_one_line_per_snapshot(capsys):
    display = JsonDisplay(console=_quiet_console())
    display.on_snapshot(_snap())
    display.on_snapshot(_snap(TextPart(text="Hi"), status=RunStatus.complete()))
    display.on_signal(BrowserSessionOpened(viewer_url="https://view"))
    lines = capsys.readouterr().out.splitlines()
    assert json.loads(lines[0]) == {"content": [], "status": {"type": "running"}}
    assert json.loads(lines[1])["content"] == [{"type": "text", "text": "Hi"}]
    assert json.loads(lines[2])["signal"] == "BrowserSessionOpened"


def test_create_display():
    assert isinstance(create_display("json"), JsonDisplay)
    assert isinstance(create_display("compact"), CompactDisplay)
