from __future__ import annotations

import logging

from statemachine import State, StateMachine

from kzclient.models import Session, SessionState

logger = logging.getLogger(__name__)


class SessionFSM(StateMachine):
    """FSM wrapper around Session.

    - states: booting (init) -> connecting -> joining -> playing <-> dead, with failed (error)/left as final states
    - the game loop performs the network exchanges; the FSM only guards transitions.
    """

    booting = State(SessionState.init.value, value=SessionState.init.value, initial=True)
    connecting = State(SessionState.connecting.value, value=SessionState.connecting.value)
    joining = State(SessionState.joining.value, value=SessionState.joining.value)
    playing = State(SessionState.playing.value, value=SessionState.playing.value)
    dead = State(SessionState.dead.value, value=SessionState.dead.value)
    failed = State(SessionState.error.value, value=SessionState.error.value, final=True)
    left = State(SessionState.left.value, value=SessionState.left.value, final=True)

    connect = booting.to(connecting)
    connected = connecting.to(joining)
    joined = joining.to(playing, cond="has_local_player")
    died = playing.to(dead)
    rejoin = dead.to(joining)
    leave = playing.to(left)
    fail = (
        connecting.to(failed, cond="has_error")
        | joining.to(failed, cond="has_error")
        | dead.to(failed, cond="has_error")
    )

    def __init__(self, session: Session):
        self.session = session
        super().__init__(start_value=session.state.value)

    def has_local_player(self) -> bool:
        return self.session.local_player is not None

    def has_error(self) -> bool:
        return bool(self.session.last_error)

    def after_transition(self, event: str, source: State, target: State) -> None:
        logger.info("Session %s: %s -> %s", event, source.value, target.value)

    def sync_state_to_model(self) -> None:
        self.session.state = SessionState(str(self.current_state.value))
