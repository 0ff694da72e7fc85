"""Thin HTTP client wrapping requests.Session with optional auth and error mapping."""

import logging
from typing import Any

import requests

from ._exceptions import STATUS_MAP, APIError

logger = logging.getLogger(__name__)


def _error_message(resp: requests.Response) -> tuple[str, str | None]:
    """Pull a human-readable message and request id out of an error response."""
    message = f"HTTP {resp.status_code}"
    if resp.reason:
        message = f"{message}: {resp.reason}"
    request_id = None
    try:
        body = resp.json()
    except ValueError:
        logger.debug("Failed to parse error body: %s", resp.text[:200] if resp.text else "empty")
        return message, request_id

    if not isinstance(body, dict):
        return message, request_id

    # Assistant routes return {"error": "..."}; gateways return {"error": {"message": ...}}
    error_obj = body.get("error")
    if isinstance(error_obj, str) and error_obj:
        message = error_obj
    elif isinstance(error_obj, dict):
        message = error_obj.get("message", message)
        request_id = error_obj.get("request_id")
    elif isinstance(body.get("detail"), str):
        message = body["detail"]
    return message, request_id or body.get("request_id")


def _raise_for_status(resp: requests.Response, *, method: str = "", path: str = "") -> None:
    """Map HTTP error responses to typed exceptions."""
    message, request_id = _error_message(resp)
    resp.close()
    exc_cls = STATUS_MAP.get(resp.status_code, APIError)
    raise exc_cls(
        message, status_code=resp.status_code, request_id=request_id, method=method, path=path
    )


class HTTPClient:
    """Minimal HTTP client with optional Bearer auth and error mapping.

    Failed requests are surfaced once; nothing is retried.
    """

    def __init__(self, base_url: str, api_key: str | None = None, timeout: int = 300):
        self._session = requests.Session()
        if api_key:
            self._session.headers["Authorization"] = f"Bearer {api_key}"
        self._session.headers["Content-Type"] = "application/json"
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def _send(
        self, method: str, url: str, *, is_stream: bool = False, **kwargs: Any
    ) -> requests.Response:
        try:
            resp = self._session.request(
                method, url, timeout=self._timeout, stream=is_stream, **kwargs
            )
        except (requests.Timeout, requests.ConnectionError) as e:
            logger.warning("Request %s %s failed: %s", method, url, e)
            raise APIError(str(e), status_code=None, method=method, path=url) from e

        if not resp.ok:
            _raise_for_status(resp, method=method, path=url)
        return resp

    def request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        """Send request and raise typed exception on error."""
        return self._send(method, f"{self._base_url}{path}", **kwargs)

    def stream(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        """Send request with stream=True so the body can be read chunk by chunk."""
        return self._send(method, f"{self._base_url}{path}", is_stream=True, **kwargs)

    def close(self) -> None:
        self._session.close()
