"""
Integration tests for RunStream over a real local socket.

A scripted server holds the connection open between frames, so these tests
see the real requests/urllib3 read path rather than a fake response.
"""

import threading
import time

import pytest

from tests.utils.server import ScriptedSSEServer
from tests.utils.streams import sse
from turnstream._http import HTTPClient
from turnstream._streaming import CancelToken, RunStream
from turnstream._types import RunStatusType

HI = sse({"type": "text-delta", "text": "Hi"})
END = sse({"type": "message-end", "status": {"type": "complete"}})


def _open(server: ScriptedSSEServer):
    http = HTTPClient(server.base_url, timeout=30)
    return lambda: http.stream("GET", "/stream")


@pytest.mark.parametrize("chunked", [True, False], ids=["chunked", "until-close"])
class TestLiveSocket:
    def test_frames_arrive_before_body_ends(self, chunked):
        with ScriptedSSEServer([HI, 1.5, END], chunked=chunked) as server:
            started = time.monotonic()
            timeline = [
                (time.monotonic() - started, snapshot)
                for snapshot in RunStream(opener=_open(server))
            ]

        hi_at = next(at for at, snapshot in timeline if snapshot.text == "Hi")
        assert hi_at < 1.0
        assert timeline[-1][1].status.type == RunStatusType.COMPLETE
        assert timeline[-1][0] >= 1.0

    def test_cancel_from_another_thread_aborts_blocked_read(self, chunked):
        token = CancelToken()
        with ScriptedSSEServer([HI, 10.0, END], chunked=chunked) as server:
            stream = RunStream(opener=_open(server), cancel=token)
            started = time.monotonic()
            texts = []
            for snapshot in stream:
                texts.append(snapshot.text)
                if snapshot.text == "Hi":
                    threading.Timer(0.2, token.cancel).start()
            elapsed = time.monotonic() - started

        assert texts == ["", "Hi"]
        assert elapsed < 3.0
        assert stream.status.type == RunStatusType.RUNNING

