from __future__ import annotations

import sys
from typing import Protocol, TextIO

from kzclient.models import StatusLine, WorldSnapshot

DISPLAY_WIDTH = 40
DISPLAY_HEIGHT = 20

CHAR_EMPTY = "."
CHAR_PLAYER = "@"
CHAR_ENEMY = "*"

COMMAND_HELP = "WASD=Move | Q=Quit"

_CLEAR = "\033[2J\033[H"


class Renderer(Protocol):
    def draw(self, snapshot: WorldSnapshot, status: StatusLine) -> None: ...

    def message(self, text: str) -> None: ...


def render_grid(snapshot: WorldSnapshot, *, width: int = DISPLAY_WIDTH, height: int = DISPLAY_HEIGHT) -> list[str]:
    """Rows of the world view. Off-screen players are skipped; the local player is drawn last."""

    rows = [[CHAR_EMPTY] * width for _ in range(height)]
    for p in snapshot.others:
        if p.x < width and p.y < height:
            rows[p.y][p.x] = CHAR_ENEMY
    me = snapshot.local_player
    if me.x < width and me.y < height:
        rows[me.y][me.x] = CHAR_PLAYER
    return ["".join(r) for r in rows]


def render_status(status: StatusLine) -> list[str]:
    return [
        f"{status.player_name:<15} | Players: {status.player_count:2d} | Conn: {status.connection}",
        f"World Ticks: {status.ticks:5d}",
        "-" * DISPLAY_WIDTH,
        COMMAND_HELP,
    ]


class TextDisplay:
    def __init__(self, out: TextIO | None = None, *, clear: bool = True):
        self.out = out or sys.stdout
        self.clear = clear

    def draw(self, snapshot: WorldSnapshot, status: StatusLine) -> None:
        me = snapshot.local_player
        lines = render_grid(snapshot)
        lines.append(f"Player: {me.id} | Pos: ({me.x},{me.y}) | Health: {me.health} | Status: {me.status}")
        lines.extend(render_status(status))
        if self.clear:
            self.out.write(_CLEAR)
        self.out.write("\n".join(lines) + "\n")
        self.out.flush()

    def message(self, text: str) -> None:
        self.out.write(f"{text}\n")
        self.out.flush()
