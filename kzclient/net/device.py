from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol

import httpx

from kzclient.net.errors import DeviceError

logger = logging.getLogger(__name__)


class OpenMode(StrEnum):
    get = "GET"
    post = "POST"


class Device(Protocol):
    """Low-level network device addressed by a full URL.

    Every call raises DeviceError on a non-OK status. `read_nonblocking`
    returns whatever is available (possibly nothing) up to `size` bytes.
    Devices may also provide `init()` and `shutdown()`; Transport calls them
    when present.
    """

    def open(self, address: str, mode: OpenMode) -> None: ...

    def start_headers(self, address: str) -> None: ...

    def add_header(self, address: str, header: str) -> None: ...

    def end_headers(self, address: str) -> None: ...

    def submit(self, address: str, body: str) -> None: ...

    def read_nonblocking(self, address: str, size: int) -> bytes: ...

    def close(self, address: str) -> None: ...


@dataclass(slots=True)
class _Channel:
    mode: OpenMode
    headers: dict[str, str] = field(default_factory=dict)
    collecting_headers: bool = False
    response: httpx.Response | None = None
    chunks: Iterator[bytes] | None = None
    pending: bytes = b""


class HttpxDevice:
    """Device backed by an `httpx.Client`.

    GET requests are sent on `open`, POST requests on `submit`. The response is
    streamed; `read_nonblocking` hands out buffered chunks and returns b"" once
    the body is exhausted. Non-2xx responses are not errors: the zone server
    reports failures in the JSON body.
    """

    def __init__(self, *, client: httpx.Client | None = None, timeout_s: float = 5.0):
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout_s)
        self._channels: dict[str, _Channel] = {}

    def _channel(self, address: str) -> _Channel:
        ch = self._channels.get(address)
        if ch is None:
            raise DeviceError(f"Device not open: {address}")
        return ch

    def _send(self, address: str, ch: _Channel, body: str | None = None) -> None:
        try:
            request = self._client.build_request(
                ch.mode.value,
                address,
                headers=ch.headers,
                content=body.encode("utf-8") if body is not None else None,
            )
            ch.response = self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise DeviceError(f"{ch.mode.value} {address} failed: {e}") from e
        ch.chunks = ch.response.iter_bytes()
        logger.debug("%s %s -> HTTP %d", ch.mode.value, address, ch.response.status_code)

    def open(self, address: str, mode: OpenMode) -> None:
        if address in self._channels:
            raise DeviceError(f"Device already open: {address}")
        ch = _Channel(mode=mode)
        if mode == OpenMode.get:
            self._send(address, ch)
        self._channels[address] = ch

    def start_headers(self, address: str) -> None:
        self._channel(address).collecting_headers = True

    def add_header(self, address: str, header: str) -> None:
        ch = self._channel(address)
        if not ch.collecting_headers:
            raise DeviceError("add_header called outside start_headers/end_headers")
        name, sep, value = header.partition(":")
        if not sep or not name.strip():
            raise DeviceError(f"Malformed header: {header!r}")
        ch.headers[name.strip()] = value.strip()

    def end_headers(self, address: str) -> None:
        self._channel(address).collecting_headers = False

    def submit(self, address: str, body: str) -> None:
        ch = self._channel(address)
        if ch.mode != OpenMode.post:
            raise DeviceError("submit requires a device opened for POST")
        if ch.response is not None:
            raise DeviceError("Request already submitted")
        self._send(address, ch, body)

    def read_nonblocking(self, address: str, size: int) -> bytes:
        ch = self._channel(address)
        if ch.chunks is None:
            raise DeviceError("Nothing to read: request not sent")
        try:
            while not ch.pending:
                chunk = next(ch.chunks, None)
                if chunk is None:
                    return b""
                ch.pending = chunk
        except httpx.HTTPError as e:
            raise DeviceError(f"Read from {address} failed: {e}") from e
        data, ch.pending = ch.pending[:size], ch.pending[size:]
        return data

    def close(self, address: str) -> None:
        ch = self._channels.pop(address, None)
        if ch is not None and ch.response is not None:
            ch.response.close()

    def init(self) -> None:
        if self._client.is_closed:
            raise DeviceError("HTTP client is closed")

    def shutdown(self) -> None:
        for address in list(self._channels):
            self.close(address)
        if self._owns_client:
            self._client.close()
