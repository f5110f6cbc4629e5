"""Runtime configuration resolved from the environment and command line."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from .errors import MazeConfigurationError

ENV_PREFIX = "REINDEER_MAZE"


@dataclass(frozen=True)
class MazeConfig:
    """Resolved configuration describing how the maze server should run."""

    # //1.- Maze dimensions are fixed for the lifetime of the process.
    width: int = 50
    height: int = 50
    # //2.- Line protocol endpoint players connect to.
    tcp_host: str = "localhost"
    tcp_port: int = 3000
    # //3.- HTTP endpoint serving the viewer page and JSON snapshots.
    http_host: str = "localhost"
    http_port: int = 3001
    # //4.- Minimum spacing between two commands from the same connection.
    move_delay_seconds: float = 0.1
    # //5.- Optional seed; unset means fresh operating system entropy once per process.
    seed: Optional[int] = None
    console: bool = True
    log_interval_seconds: float = 30.0
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.width < 1 or self.height < 1:
            raise MazeConfigurationError(f"maze dimensions must be positive, got {self.width}x{self.height}")
        for label, port in (("tcp_port", self.tcp_port), ("http_port", self.http_port)):
            if not 0 <= port <= 65535:
                raise MazeConfigurationError(f"{label} must be between 0 and 65535, got {port}")
        if self.move_delay_seconds < 0:
            raise MazeConfigurationError("move delay must not be negative")
        if self.log_interval_seconds <= 0:
            raise MazeConfigurationError("log interval must be positive")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise MazeConfigurationError(f"unknown log level {self.log_level!r}")

    def with_overrides(self, **overrides: object) -> "MazeConfig":
        """Return a copy with every non-``None`` override applied."""

        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes) if changes else self


def _as_int(source: Mapping[str, str], key: str, default: int) -> int:
    raw = source.get(f"{ENV_PREFIX}_{key}")
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise MazeConfigurationError(f"{ENV_PREFIX}_{key} must be an integer, got {raw!r}") from None


def _as_float(source: Mapping[str, str], key: str, default: float) -> float:
    raw = source.get(f"{ENV_PREFIX}_{key}")
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise MazeConfigurationError(f"{ENV_PREFIX}_{key} must be a number, got {raw!r}") from None


def _as_bool(source: Mapping[str, str], key: str, default: bool) -> bool:
    raw = source.get(f"{ENV_PREFIX}_{key}")
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


def load_config_from_env(env: Optional[Mapping[str, str]] = None) -> MazeConfig:
    """Construct a :class:`MazeConfig` instance from environment variables."""

    # //1.- Allow dependency injection during testing by accepting a custom mapping.
    source = env if env is not None else os.environ
    defaults = MazeConfig()
    seed_raw = source.get(f"{ENV_PREFIX}_SEED")
    seed = _as_int(source, "SEED", 0) if seed_raw is not None and seed_raw.strip() else None
    # //2.- Fall back to the defaults so the server works without extra configuration.
    return MazeConfig(
        width=_as_int(source, "WIDTH", defaults.width),
        height=_as_int(source, "HEIGHT", defaults.height),
        tcp_host=source.get(f"{ENV_PREFIX}_TCP_HOST", defaults.tcp_host),
        tcp_port=_as_int(source, "TCP_PORT", defaults.tcp_port),
        http_host=source.get(f"{ENV_PREFIX}_HTTP_HOST", defaults.http_host),
        http_port=_as_int(source, "HTTP_PORT", defaults.http_port),
        move_delay_seconds=_as_float(source, "MOVE_DELAY_MS", defaults.move_delay_seconds * 1000.0) / 1000.0,
        seed=seed,
        console=_as_bool(source, "CONSOLE", defaults.console),
        log_interval_seconds=_as_float(source, "LOG_INTERVAL_SEC", defaults.log_interval_seconds),
        log_level=source.get(f"{ENV_PREFIX}_LOG_LEVEL", defaults.log_level).upper(),
    )


__all__ = ["ENV_PREFIX", "MazeConfig", "load_config_from_env"]
