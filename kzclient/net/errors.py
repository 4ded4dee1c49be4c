from __future__ import annotations


class DeviceError(Exception):
    """A device call reported a non-OK status."""

    def __init__(self, message: str, *, status: int | None = None):
        super().__init__(message)
        self.status = status


class TransportError(Exception):
    """Base class for a failed exchange."""


class ConnectError(TransportError):
    """The connection could not be opened or read, or the transport is down."""


class ProtocolError(TransportError):
    """Adding headers or submitting the request body failed."""


class NoDataError(TransportError):
    """The read retry bound was exhausted without receiving any bytes."""

    def __init__(self, message: str, *, attempts: int):
        super().__init__(message)
        self.attempts = attempts
