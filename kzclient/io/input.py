from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum
from typing import Protocol

DEBOUNCE_POLLS = 3


class Intent(StrEnum):
    none = "none"
    up = "up"
    down = "down"
    left = "left"
    right = "right"
    quit = "quit"

    @property
    def is_direction(self) -> bool:
        return self in (Intent.up, Intent.down, Intent.left, Intent.right)


class InputSource(Protocol):
    def poll(self) -> Intent: ...


class Debouncer:
    """Accept a reading only once it has repeated for `polls` further polls."""

    def __init__(self, polls: int = DEBOUNCE_POLLS):
        self.polls = polls
        self.last = Intent.none
        self.counter = 0

    def update(self, raw: Intent) -> None:
        if raw == self.last:
            self.counter += 1
        else:
            self.counter = 0
            self.last = raw

    def current(self) -> Intent:
        if self.counter >= self.polls:
            return self.last
        return Intent.none


class DebouncedInput:
    def __init__(self, source: InputSource, *, polls: int = DEBOUNCE_POLLS):
        self.source = source
        self.debouncer = Debouncer(polls)

    def poll(self) -> Intent:
        self.debouncer.update(self.source.poll())
        return self.debouncer.current()


KEYMAP: dict[str, Intent] = {
    "w": Intent.up,
    "s": Intent.down,
    "a": Intent.left,
    "d": Intent.right,
    "q": Intent.quit,
}


class KeyboardInput:
    """Raw source fed by a key reader that returns None when no key is waiting.

    A key press is held for `hold_polls` polls, like a joystick held in one
    position, so it survives debouncing.
    """

    def __init__(self, read_key: Callable[[], str | None], *, hold_polls: int = DEBOUNCE_POLLS + 1):
        self.read_key = read_key
        self.hold_polls = hold_polls
        self._held = Intent.none
        self._remaining = 0

    def poll(self) -> Intent:
        key = self.read_key()
        if key:
            intent = KEYMAP.get(key[0].lower())
            if intent is not None:
                self._held = intent
                self._remaining = self.hold_polls
        if self._remaining <= 0:
            return Intent.none
        self._remaining -= 1
        return self._held
