from __future__ import annotations

import json
from dataclasses import dataclass

from kzclient.net.transport import ConnectionTarget, Transport

PATH_HEALTH = "/api/health"
PATH_JOIN = "/api/player/join"
PATH_LEAVE = "/api/player/leave"
PATH_MOVE = "/api/player/{player_id}/move"
PATH_STATUS = "/api/player/{player_id}/status"
PATH_WORLD_STATE = "/api/world/state"


@dataclass(frozen=True, slots=True)
class ServerAddress:
    host: str
    port: int

    def target(self, path_template: str, **params: str) -> ConnectionTarget:
        return ConnectionTarget(host=self.host, port=self.port, path=path_template.format(**params))


def _body(**fields: str) -> str:
    return json.dumps(fields, separators=(",", ":"))


class ServerApi:
    """Zone server endpoints. Each call is one exchange and returns the raw body."""

    def __init__(self, *, transport: Transport, address: ServerAddress):
        self.transport = transport
        self.address = address

    def health_check(self) -> str:
        return self.transport.get(self.address.target(PATH_HEALTH))

    def join_player(self, name: str) -> str:
        return self.transport.post(self.address.target(PATH_JOIN), _body(name=name))

    def move_player(self, player_id: str, direction: str) -> str:
        target = self.address.target(PATH_MOVE, player_id=player_id)
        return self.transport.post(target, _body(direction=direction))

    def leave_player(self, player_id: str) -> str:
        return self.transport.post(self.address.target(PATH_LEAVE), _body(id=player_id))

    def get_world_state(self) -> str:
        return self.transport.get(self.address.target(PATH_WORLD_STATE))

    def get_player_status(self, player_id: str) -> str:
        return self.transport.get(self.address.target(PATH_STATUS, player_id=player_id))
