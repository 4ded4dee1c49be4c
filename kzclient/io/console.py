from __future__ import annotations

import select
import sys
from collections.abc import Callable
from typing import Protocol, TextIO


class Prompter(Protocol):
    def ask_name(self) -> str: ...

    def ask_rejoin(self) -> bool: ...


class ConsolePrompter:
    def __init__(self, *, max_name_len: int, ask: Callable[[str], str] = input):
        self.max_name_len = max_name_len
        self.ask = ask

    def ask_name(self) -> str:
        try:
            return self.ask(f"Enter player name (max {self.max_name_len} chars): ")
        except EOFError:
            return ""

    def ask_rejoin(self) -> bool:
        try:
            answer = self.ask("You have been eliminated! Rejoin? (y/n): ")
        except EOFError:
            return False
        return answer.strip().lower().startswith("y")


def stdin_key_reader(stream: TextIO | None = None) -> Callable[[], str | None]:
    """Key reader for KeyboardInput that never blocks.

    Works on line-buffered POSIX terminals: a key counts once Enter is pressed.
    """

    src = stream or sys.stdin

    def read_key() -> str | None:
        ready, _, _ = select.select([src], [], [], 0)
        if not ready:
            return None
        line = src.readline()
        return line.strip() or None

    return read_key
