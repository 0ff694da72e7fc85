"""
Main CLI entry point for turnstream.

Replays captured assistant streams or streams a live turn, rendering each
message snapshot as it arrives.
"""

from __future__ import annotations

import argparse
from collections.abc import Iterator
import logging
from pathlib import Path
import sys
from typing import BinaryIO

from turnstream import __version__

from .._client import Turnstream
from .._streaming import CancelToken, RunStream
from .._types import RunStatusType
from .display import SnapshotDisplay, create_display
from .util import graceful_main


class FileResponse:
    """Response stand-in that reads a captured stream from disk."""

    def __init__(self, path: Path):
        self.raw: BinaryIO = path.open("rb")

    def iter_content(self, chunk_size: int | None = None) -> Iterator[bytes]:
        while True:
            chunk = self.raw.read(chunk_size or 1024)
            if not chunk:
                return
            yield chunk

    def close(self) -> None:
        self.raw.close()


def _render(stream: RunStream, display: SnapshotDisplay) -> int:
    for snapshot in stream:
        display.on_snapshot(snapshot)
    display.finish()
    return 0 if stream.status.type == RunStatusType.COMPLETE else 1


def _cmd_replay(args: argparse.Namespace, cancel: CancelToken) -> int:
    path = Path(args.file)
    if not path.is_file():
        print(f"❌ No such file: {path}")
        return 1
    display = create_display(args.format)
    stream = RunStream(
        FileResponse(path),
        cancel=cancel,
        signals=display.on_signal,
        chunk_size=args.chunk_size,
    )
    return _render(stream, display)


def _cmd_ask(args: argparse.Namespace, cancel: CancelToken) -> int:
    display = create_display(args.format)
    with Turnstream(api_key=args.api_key, base_url=args.base_url) as client:
        stream = client.turns.create(
            messages=[{"role": "user", "content": [{"type": "text", "text": args.prompt}]}],
            recursion_limit=args.recursion_limit,
            cancel=cancel,
            signals=display.on_signal,
        )
        return _render(stream, display)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="turnstream",
        description="Inspect assistant event streams",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--format", choices=["compact", "json"], default="compact", help="Output format"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    replay = subparsers.add_parser("replay", help="Replay a captured SSE stream from a file")
    replay.add_argument("file", help="File holding the raw stream bytes")
    replay.add_argument(
        "--chunk-size", type=int, default=64, help="Bytes per simulated network chunk"
    )
    replay.set_defaults(handler=_cmd_replay)

    ask = subparsers.add_parser("ask", help="Send one message and stream the reply")
    ask.add_argument("prompt", help="User message")
    ask.add_argument(
        "--api-key", help="Bearer token (or set TURNSTREAM_API_KEY environment variable)"
    )
    ask.add_argument("--base-url", help="Assistant base URL (or set TURNSTREAM_BASE_URL)")
    ask.add_argument("--recursion-limit", type=int, help="Agent recursion limit")
    ask.set_defaults(handler=_cmd_ask)

    return parser


def _real_main(argv: list[str], cancel: CancelToken) -> int:
    """Real main CLI logic that handles command parsing and execution."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    return args.handler(args, cancel)


def main() -> None:
    """Main CLI entry point with graceful interrupt handling."""
    code = graceful_main(_real_main, sys.argv[1:])
    raise SystemExit(code)


if __name__ == "__main__":
    main()
