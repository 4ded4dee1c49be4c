from __future__ import annotations

import logging

from dotenv import load_dotenv

from kzclient.config import settings_from_env
from kzclient.game_loop import GameClient
from kzclient.io.console import ConsolePrompter, stdin_key_reader
from kzclient.io.display import TextDisplay
from kzclient.io.input import DebouncedInput, KeyboardInput
from kzclient.models import PLAYER_NAME_MAX, Session
from kzclient.net.api import ServerAddress, ServerApi
from kzclient.net.device import HttpxDevice
from kzclient.net.errors import ConnectError
from kzclient.net.transport import Transport

logger = logging.getLogger(__name__)

GAME_TITLE = "KillZone"


def main() -> int:
    # Optional local overrides (KZ_SERVER_HOST etc.); real env vars win.
    load_dotenv(override=False)
    settings = settings_from_env()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(f"\n{GAME_TITLE} - Multiplayer Client\nInitializing...")

    transport = Transport(
        HttpxDevice(timeout_s=settings.request_timeout_ms / 1000),
        max_read_attempts=settings.max_read_attempts,
        buffer_capacity=settings.response_buffer_size,
    )
    try:
        transport.init()
    except ConnectError as e:
        logger.error("%s", e)
    api = ServerApi(
        transport=transport,
        address=ServerAddress(host=settings.server_host, port=settings.server_port),
    )

    client = GameClient(
        session=Session(),
        api=api,
        input_source=DebouncedInput(KeyboardInput(stdin_key_reader())),
        renderer=TextDisplay(),
        prompter=ConsolePrompter(max_name_len=PLAYER_NAME_MAX),
        settings=settings,
    )
    try:
        session = client.run()
    finally:
        transport.shutdown()

    logger.debug("Session ended in state %s", session.state.value)
    print("Goodbye!\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
