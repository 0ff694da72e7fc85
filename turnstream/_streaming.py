"""RunStream: drives one assistant stream session and yields message snapshots."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
import logging
import socket
import threading
from typing import TYPE_CHECKING, Any

from urllib3.response import HTTPResponse

from ._exceptions import TurnstreamError
from ._types import RunStatus, Snapshot
from .dispatcher import EventDispatcher
from .message import MessageAccumulator
from .signals import SignalSink
from .streaming import ByteDecoder, FrameSplitter

if TYPE_CHECKING:
    import requests

logger = logging.getLogger(__name__)

NO_BODY_MESSAGE = "Unable to read response stream"
READ_SIZE = 8192


def _response_socket(response: Any) -> socket.socket | None:
    """The socket under a streamed urllib3 response, while it is still attached."""
    raw = getattr(response, "raw", None)
    sock = getattr(getattr(raw, "connection", None), "sock", None)
    if sock is None:
        fp = getattr(getattr(raw, "_fp", None), "fp", None)
        sock = getattr(getattr(fp, "raw", None), "_sock", None)
    return sock if isinstance(sock, socket.socket) else None


def _iter_chunks(response: Any, chunk_size: int | None) -> Iterator[bytes]:
    """Yield body bytes as soon as they arrive.

    ``iter_content`` on a body without chunked framing blocks until the
    requested amount (or the whole body) is in, so urllib3 bodies are read
    with ``read1``, which returns whatever the socket has.
    """
    raw = response.raw
    if not isinstance(raw, HTTPResponse):
        yield from response.iter_content(chunk_size=chunk_size)
        return
    while True:
        chunk = raw.read1(chunk_size or READ_SIZE, decode_content=True)
        if not chunk:
            return
        yield chunk


class CancelToken:
    """Cancellation signal shared between a caller and a running stream.

    ``cancel()`` may be called from any thread. Registered callbacks run once,
    on the cancelling thread.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def on_cancel(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def remove_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()


class RunStream:
    """Lazy, single-use stream of message snapshots for one assistant turn.

    The first snapshot (empty, running) is yielded before anything is read.
    After that every content change or status notice yields one snapshot,
    and the stream ends after a terminal status or cancellation. Failures
    arrive as data: an error text part plus an ``incomplete`` status.

    Usage:
        with client.turns.create(messages=[...]) as stream:
            for snapshot in stream:
                render(snapshot)
        print(stream.text)  # full accumulated text
    """

    def __init__(
        self,
        response: requests.Response | None = None,
        *,
        opener: Callable[[], requests.Response] | None = None,
        cancel: CancelToken | None = None,
        signals: SignalSink | None = None,
        message: MessageAccumulator | None = None,
        chunk_size: int | None = None,
    ):
        if (response is None) == (opener is None):
            raise ValueError("Pass exactly one of response= or opener=")
        self._response = response
        self._opener = opener
        self._cancel = cancel or CancelToken()
        self._message = message if message is not None else MessageAccumulator()
        self._dispatcher = EventDispatcher(self._message, signals=signals)
        self._chunk_size = chunk_size
        self._lock = threading.Lock()
        self._closed = False
        self._iterated = False
        self.last: Snapshot | None = None

    def _close(self) -> None:
        """Close the underlying response (idempotent, thread-safe)."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            response = self._response
        if response is not None:
            response.close()

    def _abort(self) -> None:
        """Cancel callback: wake a read blocked on the socket, then close."""
        with self._lock:
            response = None if self._closed else self._response
        sock = _response_socket(response) if response is not None else None
        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError as e:
                logger.debug("Socket shutdown on cancel failed: %s", e)
        self._close()

    def _attach(self, response: requests.Response) -> bool:
        with self._lock:
            if not self._closed:
                self._response = response
                return True
        # Cancelled while the request was in flight.
        response.close()
        return False

    def __iter__(self) -> Iterator[Snapshot]:
        if self._iterated:
            raise RuntimeError("RunStream can only be iterated once")
        self._iterated = True
        self._cancel.on_cancel(self._abort)
        try:
            yield self._emit(self._message.snapshot())
            for snapshot in self._run():
                yield self._emit(snapshot)
        except Exception as e:
            if self._cancel.cancelled:
                logger.debug("Stream stopped after cancellation: %s", e)
                return
            logger.warning("Stream failed: %s", e, exc_info=True)
            snapshot = self._dispatcher.fault(e)
            if snapshot is not None:
                yield self._emit(snapshot)
        finally:
            self._cancel.remove_callback(self._abort)
            self._close()

    def _emit(self, snapshot: Snapshot) -> Snapshot:
        self.last = snapshot
        return snapshot

    def _run(self) -> Iterator[Snapshot]:
        if self._cancel.cancelled:
            return
        if self._opener is not None:
            try:
                response = self._opener()
            except TurnstreamError as e:
                logger.warning("Failed to open stream: %s", e.message)
                self._message.fail(e.message)
                yield self._message.snapshot()
                return
            if not self._attach(response):
                return

        if getattr(self._response, "raw", None) is None:
            self._message.fail(NO_BODY_MESSAGE)
            yield self._message.snapshot()
            return

        decoder = ByteDecoder()
        splitter = FrameSplitter()
        for chunk in _iter_chunks(self._response, self._chunk_size):
            if self._cancel.cancelled:
                return
            if not chunk:
                continue
            yield from self._dispatch(splitter.feed(decoder.decode(chunk)))
            if self._dispatcher.done or self._cancel.cancelled:
                return

        if self._cancel.cancelled:
            return
        yield from self._dispatch(splitter.feed(decoder.flush()) + splitter.flush())
        if self._dispatcher.done or self._cancel.cancelled:
            return
        snapshot = self._dispatcher.end_of_stream()
        if snapshot is not None:
            yield snapshot

    def _dispatch(self, frames: Iterable[str]) -> Iterator[Snapshot]:
        for frame in frames:
            if self._cancel.cancelled:
                return
            snapshot = self._dispatcher.dispatch_frame(frame)
            if snapshot is not None:
                yield snapshot
            if self._dispatcher.done:
                return

    def __enter__(self) -> RunStream:
        return self

    def __exit__(self, *_: object) -> None:
        self._close()

    def cancel(self) -> None:
        """Stop the stream; a blocked read is aborted by closing the response."""
        self._cancel.cancel()

    @property
    def status(self) -> RunStatus:
        return self._message.status

    @property
    def text(self) -> str:
        """Full accumulated assistant text."""
        return self._message.get_text()

    @property
    def output(self) -> str:
        """Alias for text."""
        return self.text
