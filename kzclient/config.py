from __future__ import annotations

import os
from dataclasses import dataclass


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


@dataclass(frozen=True, slots=True)
class ClientSettings:
    server_host: str = "localhost"
    server_port: int = 3000

    request_timeout_ms: int = 5_000
    # Read attempts per exchange; no delay between attempts.
    max_read_attempts: int = 10
    response_buffer_size: int = 2048

    # Refresh the world every N frames of the playing loop.
    world_refresh_every: int = 5
    frame_delay_ms: int = 100

    default_player_name: str = "Player"
    log_level: str = "INFO"


def settings_from_env() -> ClientSettings:
    d = ClientSettings()
    s = ClientSettings(
        server_host=os.environ.get("KZ_SERVER_HOST", d.server_host),
        server_port=_int_env("KZ_SERVER_PORT", d.server_port),
        request_timeout_ms=_int_env("KZ_REQUEST_TIMEOUT_MS", d.request_timeout_ms),
        max_read_attempts=_int_env("KZ_MAX_READ_ATTEMPTS", d.max_read_attempts),
        response_buffer_size=_int_env("KZ_RESPONSE_BUFFER_SIZE", d.response_buffer_size),
        world_refresh_every=_int_env("KZ_WORLD_REFRESH_EVERY", d.world_refresh_every),
        frame_delay_ms=_int_env("KZ_FRAME_DELAY_MS", d.frame_delay_ms),
        default_player_name=os.environ.get("KZ_DEFAULT_PLAYER_NAME", d.default_player_name),
        log_level=os.environ.get("KZ_LOG_LEVEL", d.log_level).upper(),
    )
    if s.max_read_attempts < 1:
        raise ValueError("KZ_MAX_READ_ATTEMPTS must be >= 1")
    if s.world_refresh_every < 1:
        raise ValueError("KZ_WORLD_REFRESH_EVERY must be >= 1")
    return s
