from __future__ import annotations

import logging
import time
from collections.abc import Callable

from kzclient.config import ClientSettings
from kzclient.core.extract import get_string
from kzclient.fsm import SessionFSM
from kzclient.io.console import Prompter
from kzclient.io.display import Renderer
from kzclient.io.input import InputSource, Intent
from kzclient.models import PLAYER_NAME_MAX, Player, Session, SessionState, StatusLine, WorldSnapshot
from kzclient.net.api import ServerApi
from kzclient.net.errors import TransportError
from kzclient.world import parse_join, parse_move, parse_status, parse_world

logger = logging.getLogger(__name__)


def normalize_name(raw: str, *, default: str) -> str:
    name = raw.strip()[:PLAYER_NAME_MAX]
    return name or default


class GameClient:
    """Runs one session: one handler per state, one network exchange at a time.

    Connection and join failures end the session in the error state. Failures
    while playing are logged and the update for that frame is skipped.
    """

    def __init__(
        self,
        *,
        session: Session,
        api: ServerApi,
        input_source: InputSource,
        renderer: Renderer,
        prompter: Prompter,
        settings: ClientSettings | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.session = session
        self.api = api
        self.input = input_source
        self.renderer = renderer
        self.prompter = prompter
        self.settings = settings or ClientSettings()
        self.sleep = sleep
        self.fsm = SessionFSM(session)
        self._handlers: dict[SessionState, Callable[[], None]] = {
            SessionState.init: self._handle_init,
            SessionState.connecting: self._handle_connecting,
            SessionState.joining: self._handle_joining,
            SessionState.playing: self._handle_playing,
            SessionState.dead: self._handle_dead,
        }

    # ---- loop ----

    def step(self) -> bool:
        """Handle the current state once. Returns False when the session is over."""

        state = self.session.state
        if state == SessionState.error:
            self.renderer.message(f"ERROR: {self.session.last_error}")
            return False
        if state == SessionState.left:
            self.renderer.message("Left the game.")
            return False
        self._handlers[state]()
        return True

    def run(self, *, max_steps: int | None = None) -> Session:
        steps = 0
        while self.step():
            steps += 1
            if max_steps is not None and steps >= max_steps:
                break
        return self.session

    def _send(self, event: str) -> None:
        self.fsm.send(event)
        self.fsm.sync_state_to_model()

    def _fail(self, reason: str) -> None:
        self.session.last_error = reason
        self._send("fail")

    # ---- state handlers ----

    def _handle_init(self) -> None:
        self._send("connect")

    def _handle_connecting(self) -> None:
        logger.info("Checking server health at %s:%d", self.api.address.host, self.api.address.port)
        try:
            self.api.health_check()
        except TransportError as e:
            logger.error("Cannot reach server at %s:%d: %s", self.api.address.host, self.api.address.port, e)
            self._fail(f"Server connection failed: {e}")
            return
        logger.info("Server is healthy. Ready to join.")
        self._send("connected")

    def _handle_joining(self) -> None:
        name = normalize_name(self.prompter.ask_name(), default=self.settings.default_player_name)
        logger.info("Joining as %r", name)
        try:
            reply = self.api.join_player(name)
        except TransportError as e:
            self._fail(f"Join request failed: {e}")
            return

        player = parse_join(reply)
        if player is None:
            reason = get_string(reply, "error") or "no player id in response"
            self._fail(f"Join request failed: {reason}")
            return

        s = self.session
        s.player_name = name
        s.local_player = player
        s.other_players = []
        s.frame = 0
        logger.info("Joined as %s at (%d,%d)", player.id, player.x, player.y)
        self._send("joined")

    def _handle_playing(self) -> None:
        s = self.session
        intent = self.input.poll()
        if intent == Intent.quit:
            self._leave()
            return

        changed = False
        if intent.is_direction:
            changed = self._move(intent)

        if s.frame % self.settings.world_refresh_every == 0:
            changed = self._refresh_world() or changed
        s.frame += 1

        if s.local_player is not None and s.local_player.is_eliminated:
            logger.info("Local player %s eliminated", s.local_player.id)
            self._send("died")
            return

        if changed:
            self._render()
        if self.settings.frame_delay_ms > 0:
            self.sleep(self.settings.frame_delay_ms / 1000)

    def _handle_dead(self) -> None:
        if self.prompter.ask_rejoin():
            self._send("rejoin")
        else:
            self._fail("Player declined to rejoin")

    # ---- playing helpers ----

    def _move(self, intent: Intent) -> bool:
        """Returns True if the local player moved. Failures leave the session untouched."""

        me = self.session.local_player
        if me is None:
            return False
        try:
            reply = self.api.move_player(me.id, intent.value)
        except TransportError as e:
            logger.warning("Move %s failed: %s", intent.value, e)
            return False
        pos = parse_move(reply)
        if pos is None:
            logger.warning("Move %s rejected: %s", intent.value, get_string(reply, "error") or reply)
            return False
        x, y = pos
        self.session.local_player = me.model_copy(update={"x": x, "y": y})
        return True

    def _refresh_world(self) -> bool:
        s = self.session
        me = s.local_player
        if me is None:
            return False
        try:
            reply = self.api.get_world_state()
        except TransportError as e:
            logger.warning("World update failed: %s", e)
            return False

        update = parse_world(reply, local_id=me.id)
        s.other_players = update.others
        if update.ticks is not None:
            s.world_ticks = update.ticks

        local = update.local
        if local is None:
            local = self._fetch_status(me.id)
        if local is not None:
            s.local_player = me.model_copy(
                update={"x": local.x, "y": local.y, "health": local.health, "status": local.status}
            )
        return True

    def _fetch_status(self, player_id: str) -> Player | None:
        try:
            reply = self.api.get_player_status(player_id)
        except TransportError as e:
            logger.warning("Status query failed: %s", e)
            return None
        return parse_status(reply, player_id=player_id)

    def _leave(self) -> None:
        me = self.session.local_player
        if me is not None:
            try:
                self.api.leave_player(me.id)
            except TransportError as e:
                logger.warning("Leave request failed: %s", e)
        self._send("leave")

    def _render(self) -> None:
        s = self.session
        if s.local_player is None:
            return
        snapshot = WorldSnapshot(local_player=s.local_player, others=tuple(s.other_players))
        status = StatusLine(
            player_name=s.player_name or s.local_player.id,
            player_count=len(s.other_players),
            connection=self.api.transport.status.value,
            ticks=s.world_ticks,
        )
        self.renderer.draw(snapshot, status)
