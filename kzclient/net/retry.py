from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from kzclient.net.errors import DeviceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Data:
    nbytes: int
    attempts: int


@dataclass(frozen=True, slots=True)
class Empty:
    attempts: int


@dataclass(frozen=True, slots=True)
class Failed:
    error: DeviceError
    attempts: int


ReadResult = Data | Empty | Failed


def attempt(read_once: Callable[[], int], max_attempts: int) -> ReadResult:
    """Call `read_once` until it returns a positive byte count.

    Performs at most `max_attempts` calls with no delay between them; callers
    that want pacing or a timeout wrap `read_once` themselves. A DeviceError
    stops the loop and is returned as `Failed`.
    """

    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    for n in range(1, max_attempts + 1):
        try:
            nbytes = read_once()
        except DeviceError as e:
            return Failed(error=e, attempts=n)
        if nbytes > 0:
            return Data(nbytes=nbytes, attempts=n)
        if n < max_attempts:
            logger.debug("No data yet, retrying (%d/%d)", n, max_attempts)
    return Empty(attempts=max_attempts)
