from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from kzclient.net.device import Device, OpenMode
from kzclient.net.errors import ConnectError, DeviceError, NoDataError, ProtocolError
from kzclient.net.retry import Empty, Failed, attempt

logger = logging.getLogger(__name__)

# Capacity of the device spec string (`scheme://host:port/path`).
DEVICE_SPEC_SIZE = 256
RESPONSE_BUFFER_SIZE = 2048
MAX_READ_ATTEMPTS = 10

CONTENT_TYPE_JSON = "Content-Type: application/json"


class NetworkStatus(StrEnum):
    disconnected = "disconnected"
    connecting = "connecting"
    connected = "connected"
    error = "error"


@dataclass(frozen=True, slots=True)
class ConnectionTarget:
    host: str
    port: int
    path: str
    scheme: str = "http"

    def __post_init__(self) -> None:
        if not self.path.startswith("/"):
            raise ValueError(f"Path must start with '/': {self.path!r}")
        if len(self.address) >= DEVICE_SPEC_SIZE:
            raise ValueError(f"Address exceeds {DEVICE_SPEC_SIZE - 1} characters: {self.address[:40]}...")

    @property
    def address(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}{self.path}"


class ResponseBuffer:
    """Fixed-capacity holder for one raw response.

    A fill keeps at most `capacity - 1` bytes; the rest is dropped.
    """

    def __init__(self, capacity: int = RESPONSE_BUFFER_SIZE):
        if capacity < 2:
            raise ValueError("capacity must be >= 2")
        self.capacity = capacity
        self._data = b""

    @property
    def writable(self) -> int:
        return self.capacity - 1

    def clear(self) -> None:
        self._data = b""

    def fill(self, data: bytes) -> int:
        self._data = data[: self.writable]
        return len(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def text(self) -> str:
        return self._data.decode("utf-8", errors="replace")


class Transport:
    """Runs one request/response exchange at a time against a Device.

    The device is always closed before an exchange returns, whatever the
    outcome.
    """

    def __init__(
        self,
        device: Device,
        *,
        max_read_attempts: int = MAX_READ_ATTEMPTS,
        buffer_capacity: int = RESPONSE_BUFFER_SIZE,
    ):
        self.device = device
        self.max_read_attempts = max_read_attempts
        self.buffer = ResponseBuffer(buffer_capacity)
        self.status = NetworkStatus.disconnected

    def init(self) -> None:
        self.status = NetworkStatus.connecting
        init = getattr(self.device, "init", None)
        if callable(init):
            try:
                init()
            except DeviceError as e:
                self.status = NetworkStatus.error
                raise ConnectError(f"Network init error: {e}") from e
        self.status = NetworkStatus.connected
        logger.info("Network ready")

    def shutdown(self) -> None:
        self.status = NetworkStatus.disconnected
        shutdown = getattr(self.device, "shutdown", None)
        if callable(shutdown):
            shutdown()

    def _require_connected(self) -> None:
        if self.status != NetworkStatus.connected:
            raise ConnectError("Not connected")

    def open(self, target: ConnectionTarget, mode: OpenMode) -> None:
        try:
            self.device.open(target.address, mode)
        except DeviceError as e:
            raise ConnectError(f"Open error: {e}") from e

    def close(self, target: ConnectionTarget) -> None:
        self.device.close(target.address)

    def get(self, target: ConnectionTarget) -> str:
        self._require_connected()
        logger.debug("GET %s", target.path)
        try:
            self.open(target, OpenMode.get)
            return self._read(target)
        finally:
            self.close(target)

    def post(self, target: ConnectionTarget, body: str, headers: Sequence[str] = ()) -> str:
        self._require_connected()
        logger.debug("POST %s body=%s", target.path, body)
        try:
            self.open(target, OpenMode.post)
            address = target.address
            try:
                self.device.start_headers(address)
                for header in (CONTENT_TYPE_JSON, *headers):
                    self.device.add_header(address, header)
                self.device.end_headers(address)
            except DeviceError as e:
                raise ProtocolError(f"Header error: {e}") from e
            try:
                self.device.submit(address, body)
            except DeviceError as e:
                raise ProtocolError(f"Post error: {e}") from e
            return self._read(target)
        finally:
            self.close(target)

    def _read(self, target: ConnectionTarget) -> str:
        buf = self.buffer
        buf.clear()

        def read_once() -> int:
            return buf.fill(self.device.read_nonblocking(target.address, buf.writable))

        result = attempt(read_once, self.max_read_attempts)
        if isinstance(result, Failed):
            raise ConnectError(f"Read error: {result.error}") from result.error
        if isinstance(result, Empty):
            logger.debug("No data received from %s after %d attempts", target.path, result.attempts)
            raise NoDataError(f"No data received from {target.path}", attempts=result.attempts)
        logger.debug("Read %d bytes from %s after %d attempt(s)", result.nbytes, target.path, result.attempts)
        return buf.text()
