"""Turnstream client for the assistant streaming endpoint."""

from __future__ import annotations

import os

from ._http import HTTPClient
from ._resources import Turns

DEFAULT_BASE_URL = "http://localhost:3000"


class Turnstream:
    """Client for the assistant streaming API.

    Usage:
        client = Turnstream(base_url="https://app.example.com")
        stream = client.turns.create(messages=[{"role": "user", "content": "Hi"}])
        for snapshot in stream:
            print(snapshot.status.type, snapshot.text)
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: int = 300,
    ):
        api_key = api_key or os.environ.get("TURNSTREAM_API_KEY")
        base_url = base_url or os.environ.get("TURNSTREAM_BASE_URL") or DEFAULT_BASE_URL

        self._http = HTTPClient(base_url=base_url, api_key=api_key, timeout=timeout)
        self.turns = Turns(self._http)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> Turnstream:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
