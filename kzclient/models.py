from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

# Size of the static other-player table; extra world entries are dropped.
MAX_OTHER_PLAYERS = 8

PLAYER_ID_MAX = 31
PLAYER_NAME_MAX = 31
PLAYER_STATUS_MAX = 15


class SessionState(StrEnum):
    init = "init"
    connecting = "connecting"
    joining = "joining"
    playing = "playing"
    dead = "dead"
    error = "error"
    left = "left"


class Player(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = ""
    name: str = ""

    # Screen coordinates and health are single bytes on the wire format.
    x: int = Field(0, ge=0, le=255)
    y: int = Field(0, ge=0, le=255)
    health: int = Field(100, ge=0, le=255)

    status: str = "alive"

    @property
    def is_eliminated(self) -> bool:
        return self.status == "dead" or self.health == 0


class Session(BaseModel):
    """Client-side state of one player's connection to the zone server."""

    model_config = ConfigDict(validate_assignment=True)

    state: SessionState = SessionState.init
    last_error: str | None = None

    player_name: str | None = None
    local_player: Player | None = None

    # Full-replace on every world update; no identity tracking.
    other_players: list[Player] = Field(default_factory=list, max_length=MAX_OTHER_PLAYERS)

    world_ticks: int = 0
    frame: int = 0


class WorldSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    local_player: Player
    others: tuple[Player, ...] = ()


class StatusLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    player_name: str
    player_count: int
    connection: str
    ticks: int
