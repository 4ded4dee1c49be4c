from __future__ import annotations

from collections.abc import Callable, Generator
from dataclasses import dataclass, field
from typing import Any

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient

from kzclient.config import ClientSettings
from kzclient.game_loop import GameClient
from kzclient.io.input import Intent
from kzclient.models import Session, StatusLine, WorldSnapshot
from kzclient.net.api import ServerAddress, ServerApi
from kzclient.net.device import HttpxDevice, OpenMode
from kzclient.net.errors import DeviceError
from kzclient.net.transport import Transport

SERVER = ServerAddress(host="localhost", port=3000)


# ---- device double ----


class FakeDevice:
    """Scripted Device: records every call, fails the named operations, and
    serves `reads` in order (b"" once they run out)."""

    def __init__(self, reads: list[bytes | DeviceError] | None = None, fail_on: set[str] | None = None):
        self.reads = list(reads or [])
        self.fail_on = fail_on or set()
        self.calls: list[tuple[str, ...]] = []
        self.open_addresses: set[str] = set()
        self.read_calls = 0

    def _record(self, op: str, *args: str) -> None:
        self.calls.append((op, *args))
        if op in self.fail_on:
            raise DeviceError(f"{op} failed", status=144)

    def init(self) -> None:
        if "init" in self.fail_on:
            raise DeviceError("init failed", status=144)

    def ops(self) -> list[str]:
        return [c[0] for c in self.calls]

    def open(self, address: str, mode: OpenMode) -> None:
        self._record("open", address, mode.value)
        self.open_addresses.add(address)

    def start_headers(self, address: str) -> None:
        self._record("start_headers", address)

    def add_header(self, address: str, header: str) -> None:
        self._record("add_header", address, header)

    def end_headers(self, address: str) -> None:
        self._record("end_headers", address)

    def submit(self, address: str, body: str) -> None:
        self._record("submit", address, body)

    def read_nonblocking(self, address: str, size: int) -> bytes:
        self._record("read", address, str(size))
        self.read_calls += 1
        if not self.reads:
            return b""
        nxt = self.reads.pop(0)
        if isinstance(nxt, DeviceError):
            raise nxt
        return nxt[:size]

    def close(self, address: str) -> None:
        self.calls.append(("close", address))
        self.open_addresses.discard(address)


@pytest.fixture()
def fake_device() -> FakeDevice:
    return FakeDevice()


# ---- in-memory zone server ----


@dataclass(slots=True)
class ZoneWorld:
    width: int = 40
    height: int = 20
    players: dict[str, dict[str, Any]] = field(default_factory=dict)
    spawns: list[tuple[int, int]] = field(default_factory=lambda: [(5, 3), (1, 1), (7, 9), (12, 4)])
    ticks: int = 0
    next_id: int = 1
    healthy: bool = True
    reject_moves: bool = False
    # Players left out of world-state responses.
    hidden: set[str] = field(default_factory=set)
    moves: list[tuple[str, str]] = field(default_factory=list)
    left: list[str] = field(default_factory=list)

    def add(self, name: str, x: int, y: int, **extra: Any) -> dict[str, Any]:
        pid = f"p{self.next_id}"
        self.next_id += 1
        player = {"id": pid, "name": name, "x": x, "y": y, "health": 100, "status": "alive", **extra}
        self.players[pid] = player
        return player

    def kill(self, player_id: str) -> None:
        self.players[player_id].update(health=0, status="dead")

    def state(self) -> dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "players": [p for pid, p in self.players.items() if pid not in self.hidden],
            "ticks": self.ticks,
        }


_DELTAS = {"up": (0, -1), "down": (0, 1), "left": (-1, 0), "right": (1, 0)}


def make_zone_app(world: ZoneWorld) -> FastAPI:
    app = FastAPI(title="zone-test-server")

    def _error(status: int, message: str) -> JSONResponse:
        return JSONResponse(status_code=status, content={"success": False, "error": message})

    @app.get("/api/health")
    async def health() -> JSONResponse:
        if not world.healthy:
            return JSONResponse(status_code=503, content={"status": "down"})
        return JSONResponse(content={"status": "healthy", "playerCount": len(world.players)})

    @app.post("/api/player/join")
    async def join(request: Request) -> JSONResponse:
        body = await request.json()
        name = body.get("name")
        if not isinstance(name, str) or not name:
            return _error(400, "Name is required")
        x, y = world.spawns[(world.next_id - 1) % len(world.spawns)]
        player = world.add(name, x, y)
        return JSONResponse(status_code=201, content={"success": True, **player, "world": world.state()})

    @app.post("/api/player/leave")
    async def leave(request: Request) -> JSONResponse:
        body = await request.json()
        pid = body.get("id")
        if world.players.pop(pid, None) is None:
            return _error(404, "Player not found")
        world.left.append(pid)
        return JSONResponse(content={"success": True})

    @app.post("/api/player/{player_id}/move")
    async def move(player_id: str, request: Request) -> JSONResponse:
        body = await request.json()
        direction = body.get("direction")
        world.moves.append((player_id, str(direction)))
        player = world.players.get(player_id)
        if player is None:
            return _error(404, "Player not found")
        if world.reject_moves or direction not in _DELTAS:
            return _error(400, "Invalid move")
        dx, dy = _DELTAS[direction]
        player["x"] = max(0, min(world.width - 1, player["x"] + dx))
        player["y"] = max(0, min(world.height - 1, player["y"] + dy))
        return JSONResponse(
            content={
                "success": True,
                "newPos": {"x": player["x"], "y": player["y"]},
                "collision": None,
                "worldState": world.state(),
            }
        )

    @app.get("/api/player/{player_id}/status")
    async def status(player_id: str) -> JSONResponse:
        player = world.players.get(player_id)
        if player is None:
            return _error(404, "Player not found")
        return JSONResponse(content={"success": True, "player": player})

    @app.get("/api/world/state")
    async def world_state() -> JSONResponse:
        world.ticks += 1
        return JSONResponse(content=world.state())

    return app


@pytest.fixture()
def zone() -> ZoneWorld:
    return ZoneWorld()


@pytest.fixture()
def zone_transport(zone: ZoneWorld) -> Generator[Transport, None, None]:
    """Transport wired to the in-memory zone server through a FastAPI TestClient."""

    client = TestClient(make_zone_app(zone), base_url="http://localhost:3000")
    transport = Transport(HttpxDevice(client=client))
    transport.init()
    yield transport
    transport.shutdown()
    client.close()


@pytest.fixture()
def zone_api(zone_transport: Transport) -> ServerApi:
    return ServerApi(transport=zone_transport, address=SERVER)


# ---- collaborator doubles ----


class ScriptedInput:
    def __init__(self, intents: list[Intent]):
        self.intents = list(intents)

    def poll(self) -> Intent:
        return self.intents.pop(0) if self.intents else Intent.none


class ScriptedPrompter:
    def __init__(self, names: list[str] | None = None, rejoin: list[bool] | None = None):
        self.names = list(names or [])
        self.rejoin = list(rejoin or [])
        self.name_prompts = 0

    def ask_name(self) -> str:
        self.name_prompts += 1
        return self.names.pop(0) if self.names else ""

    def ask_rejoin(self) -> bool:
        return self.rejoin.pop(0) if self.rejoin else False


class RecordingRenderer:
    def __init__(self) -> None:
        self.frames: list[tuple[WorldSnapshot, StatusLine]] = []
        self.messages: list[str] = []

    def draw(self, snapshot: WorldSnapshot, status: StatusLine) -> None:
        self.frames.append((snapshot, status))

    def message(self, text: str) -> None:
        self.messages.append(text)


@pytest.fixture()
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture()
def make_client(renderer: RecordingRenderer) -> Callable[..., GameClient]:
    """Factory for a GameClient with scripted collaborators and no frame delay."""

    def _make(
        api: ServerApi,
        *,
        intents: list[Intent] | None = None,
        names: list[str] | None = None,
        rejoin: list[bool] | None = None,
        session: Session | None = None,
        world_refresh_every: int = 5,
    ) -> GameClient:
        return GameClient(
            session=session or Session(),
            api=api,
            input_source=ScriptedInput(intents or []),
            renderer=renderer,
            prompter=ScriptedPrompter(names=names, rejoin=rejoin),
            settings=ClientSettings(frame_delay_ms=0, world_refresh_every=world_refresh_every),
        )

    return _make
