from __future__ import annotations

from dataclasses import dataclass, field

from kzclient.core.extract import get_string, get_uint, is_success, iter_objects
from kzclient.models import MAX_OTHER_PLAYERS, PLAYER_ID_MAX, PLAYER_NAME_MAX, PLAYER_STATUS_MAX, Player


@dataclass(frozen=True, slots=True)
class WorldUpdate:
    local: Player | None
    others: list[Player] = field(default_factory=list)
    ticks: int | None = None


def _byte(buf: str, key: str) -> int | None:
    value = get_uint(buf, key)
    if value is None or value > 255:
        return None
    return value


def player_fields(buf: str) -> dict[str, str | int]:
    """Collect whichever player fields are present in a flat object."""

    found: dict[str, str | int | None] = {
        "id": get_string(buf, "id", PLAYER_ID_MAX),
        "name": get_string(buf, "name", PLAYER_NAME_MAX),
        "x": _byte(buf, "x"),
        "y": _byte(buf, "y"),
        "health": _byte(buf, "health"),
        "status": get_string(buf, "status", PLAYER_STATUS_MAX),
    }
    return {k: v for k, v in found.items() if v is not None}


def parse_join(buf: str) -> Player | None:
    """Build the local player from a join response; None without an id."""

    fields = player_fields(buf)
    if not fields.get("id"):
        return None
    return Player(**fields)


def parse_move(buf: str) -> tuple[int, int] | None:
    """New (x, y) from a successful move response.

    The server nests the position under `newPos`; the key search finds the
    first `x`/`y`, which is that one: `newPos` precedes the `worldState`
    player list in the reply.
    """

    if not is_success(buf):
        return None
    x, y = _byte(buf, "x"), _byte(buf, "y")
    if x is None or y is None:
        return None
    return x, y


def parse_status(buf: str, *, player_id: str) -> Player | None:
    if not is_success(buf):
        return None
    fields = player_fields(buf)
    if fields.get("id", player_id) != player_id:
        return None
    fields["id"] = player_id
    return Player(**fields)


def parse_world(
    buf: str,
    *,
    local_id: str,
    key: str = "players",
    limit: int = MAX_OTHER_PLAYERS,
) -> WorldUpdate:
    """Split a world-state response into the local entry and up to `limit` others."""

    local: Player | None = None
    others: list[Player] = []
    for entry in iter_objects(buf, key):
        fields = player_fields(entry)
        if local_id and fields.get("id") == local_id:
            local = Player(**fields)
            continue
        if len(others) < limit:
            others.append(Player(**fields))
    return WorldUpdate(local=local, others=others, ticks=get_uint(buf, "ticks"))
