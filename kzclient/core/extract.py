from __future__ import annotations

import re

# Flat-object only: values are looked up by literal key search, so nested
# objects, arrays of arrays and escaped quotes are not understood. The zone
# server only sends small flat objects, which is all this needs to handle.

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

_WHITESPACE = " \t\n\r\f\v"
_INT_PREFIX = re.compile(r"[+-]?\d+")


def _value_start(buf: str, key: str) -> int | None:
    """Index just past `"<key>":` and any whitespace, or None if the key is missing."""

    needle = f'"{key}":'
    pos = buf.find(needle)
    if pos < 0:
        return None
    pos += len(needle)
    while pos < len(buf) and buf[pos] in _WHITESPACE:
        pos += 1
    return pos


def get_string(buf: str, key: str, max_len: int | None = None) -> str | None:
    """Return the quoted string value for `key`.

    The first occurrence wins. Returns None if the key is missing, if the
    value does not start with a quote, or if no closing quote follows.
    """

    pos = _value_start(buf, key)
    if pos is None or not buf.startswith('"', pos):
        return None
    end = buf.find('"', pos + 1)
    if end < 0:
        return None
    value = buf[pos + 1 : end]
    if max_len is not None:
        value = value[:max_len]
    return value


def get_int(buf: str, key: str) -> int | None:
    """Return the integer value for `key`, or None if the key is missing.

    Conversion follows `strtol`: optional sign then base-10 digits, clamped
    to the signed 32-bit range. A non-numeric token (including a quoted
    number such as `"5"`) parses as zero.
    """

    pos = _value_start(buf, key)
    if pos is None:
        return None
    m = _INT_PREFIX.match(buf, pos)
    if m is None:
        return 0
    return max(INT32_MIN, min(INT32_MAX, int(m.group(0))))


def get_uint(buf: str, key: str) -> int | None:
    value = get_int(buf, key)
    if value is None or value < 0:
        return None
    return value


def get_bool(buf: str, key: str) -> bool | None:
    """True only for a literal `true`; anything else that follows the key is False."""

    pos = _value_start(buf, key)
    if pos is None:
        return None
    return buf.startswith("true", pos)


def is_success(buf: str) -> bool:
    # A quoted "true" does not count.
    return get_bool(buf, "success") is True


def iter_objects(buf: str, key: str, limit: int | None = None) -> list[str]:
    """Return the raw text of each flat `{...}` entry in the array under `key`.

    Scanning stops at the closing `]` or after `limit` entries, whichever comes
    first. An entry that contains a nested object is cut at its first `}`.
    """

    pos = _value_start(buf, key)
    if pos is None or not buf.startswith("[", pos):
        return []

    entries: list[str] = []
    pos += 1
    while limit is None or len(entries) < limit:
        start = buf.find("{", pos)
        close = buf.find("]", pos)
        if start < 0 or (0 <= close < start):
            break
        end = buf.find("}", start)
        if end < 0:
            break
        entries.append(buf[start : end + 1])
        pos = end + 1
    return entries
