"""HTTP transport for the Firestore and Realtime Database REST surfaces."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

import aiohttp

from fleetrecon._constants import USER_AGENT
from fleetrecon.exceptions import PermissionDeniedError, ReconTransportError

_logger = logging.getLogger(__name__)

_PERMISSION_STATUSES = frozenset({401, 403})


@dataclass(frozen=True)
class StreamEvent:
    """One Server-Sent Event with its JSON-decoded ``data`` field."""

    event: str
    data: Any


class Transport(Protocol):
    """Structural transport interface used by the store modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`RestTransport`) concrete.
    """

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        ...

    async def put_json(
        self,
        url: str,
        body: Any,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        ...

    def stream_events(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
    ) -> AsyncIterator[StreamEvent]:
        ...


def _decode_json(text: str, endpoint: str) -> Any:
    try:
        return json.loads(text) if text.strip() else None
    except json.JSONDecodeError as exc:
        raise ReconTransportError(
            f"Invalid JSON from {endpoint}: {text[:200]}",
            endpoint=endpoint,
        ) from exc


def _raise_for_status(status: int, text: str, endpoint: str) -> None:
    if 200 <= status < 300:
        return
    error_cls = PermissionDeniedError if status in _PERMISSION_STATUSES else ReconTransportError
    raise error_cls(
        f"HTTP {status} from {endpoint}: {text[:200]}",
        status_code=status,
        endpoint=endpoint,
    )


class RestTransport:
    """JSON-over-HTTP transport with an SSE reader for live listeners."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        request_timeout: float = 15.0,
    ) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=request_timeout)
        self._stream_timeout = aiohttp.ClientTimeout(total=None, sock_connect=request_timeout)

    def _headers(self, extra: Mapping[str, str] | None = None) -> dict[str, str]:
        headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }
        if extra:
            headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, str] | None,
        headers: Mapping[str, str] | None,
        body: Any = None,
    ) -> Any:
        _logger.debug("%s %s", method, url)
        data: str | None = None
        request_headers = self._headers(headers)
        if body is not None or method == "PUT":
            data = json.dumps(body, separators=(",", ":"))
            request_headers["content-type"] = "application/json; charset=UTF-8"

        try:
            async with self._http.request(
                method,
                url,
                params=dict(params) if params else None,
                data=data,
                headers=request_headers,
                timeout=self._timeout,
            ) as resp:
                text = await resp.text()
                _raise_for_status(resp.status, text, url)
        except ReconTransportError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise ReconTransportError(f"Request to {url} failed: {exc!r}", endpoint=url) from exc

        return _decode_json(text, url)

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        return await self._request("GET", url, params=params, headers=headers)

    async def put_json(
        self,
        url: str,
        body: Any,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        return await self._request("PUT", url, params=params, headers=headers, body=body)

    async def stream_events(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Open a Server-Sent Events stream and yield parsed events.

        The stream runs until the server closes it or the consuming task
        is cancelled.  Connection and HTTP failures raise
        :class:`ReconTransportError` (or :class:`PermissionDeniedError`).
        """
        headers = self._headers({"accept": "text/event-stream"})
        _logger.debug("STREAM %s", url)
        try:
            async with self._http.get(
                url,
                params=dict(params) if params else None,
                headers=headers,
                timeout=self._stream_timeout,
            ) as resp:
                if resp.status >= 300:
                    _raise_for_status(resp.status, await resp.text(), url)

                event_name = ""
                data_lines: list[str] = []
                async for raw_line in resp.content:
                    line = raw_line.decode("utf-8").rstrip("\r\n")
                    if not line:
                        if event_name or data_lines:
                            yield StreamEvent(event=event_name or "message", data=_decode_json("\n".join(data_lines), url))
                        event_name = ""
                        data_lines = []
                        continue
                    if line.startswith(":"):
                        continue
                    field, _, value = line.partition(":")
                    value = value.removeprefix(" ")
                    if field == "event":
                        event_name = value
                    elif field == "data":
                        data_lines.append(value)
        except ReconTransportError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise ReconTransportError(f"Stream from {url} failed: {exc!r}", endpoint=url) from exc
        except ValueError as exc:
            # Undecodable bytes or a line over the reader limit.
            raise ReconTransportError(f"Malformed stream from {url}: {exc!r}", endpoint=url) from exc
