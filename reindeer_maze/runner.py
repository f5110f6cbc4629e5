"""Runtime harness wiring the world, TCP sessions, web viewer and console together."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
import time
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .config import MazeConfig, load_config_from_env
from .console import MazeConsole
from .core.generation import make_rng
from .core.world import WorldState
from .errors import WorldClosedError
from .session.server import MazeSessionServer
from .web_bridge.server import MazeWebServer

LOGGER = logging.getLogger(__name__)


class MazeApplication:
    """Lifecycle manager owning the world and every server attached to it."""

    def __init__(
        self,
        config: MazeConfig,
        *,
        rng: Optional[np.random.Generator] = None,
        console_input: Optional[Iterable[str]] = None,
    ) -> None:
        # //1.- Persist the configuration and injectable collaborators for later use.
        self._config = config
        self._rng = rng
        self._console_input = console_input
        self._world: Optional[WorldState] = None
        self._sessions: Optional[MazeSessionServer] = None
        self._web: Optional[MazeWebServer] = None
        self._console_thread: Optional[threading.Thread] = None
        # //2.- Coordinate shutdown between the signal handler and the wait loop.
        self._shutdown_event = threading.Event()
        self._heartbeat_lock = threading.Lock()
        self._last_log = 0.0

    def start(self) -> None:
        """Generate the maze and begin serving players and viewers."""

        if self._world is not None:
            raise RuntimeError("MazeApplication already running")
        config = self._config
        # //1.- Seed the process-wide generator exactly once; it drives both generation and spawns.
        rng = self._rng if self._rng is not None else make_rng(config.seed)
        LOGGER.info("Generating %dx%d maze", config.width, config.height)
        world = WorldState.generate(config.width, config.height, rng=rng)
        self._world = world

        sessions = MazeSessionServer(
            world,
            host=config.tcp_host,
            port=config.tcp_port,
            move_delay_seconds=config.move_delay_seconds,
        )
        web = MazeWebServer(world, host=config.http_host, port=config.http_port)
        try:
            sessions.start()
            web.start()
        except OSError:
            sessions.stop()
            world.close()
            self._world = None
            raise
        self._sessions = sessions
        self._web = web
        LOGGER.info("Listening for players on %s:%s", *sessions.address)
        LOGGER.info("Maze viewer available on http://%s:%s", *web.address)

        # //2.- The console is optional so headless deployments can run without stdin.
        if config.console:
            stream = self._console_input if self._console_input is not None else sys.stdin
            console = MazeConsole(world)
            self._console_thread = threading.Thread(
                target=console.run, args=(stream,), name="maze-console", daemon=True
            )
            self._console_thread.start()
        self._shutdown_event.clear()

    def stop(self) -> None:
        """Stop the servers, then the world, and release any waiting threads."""

        # //1.- Stop accepting traffic before the world goes away.
        if self._sessions is not None:
            self._sessions.stop()
            self._sessions = None
        if self._web is not None:
            self._web.stop()
            self._web = None
        if self._world is not None:
            self._world.close()
            self._world = None
            LOGGER.info("Maze stopped")
        self._shutdown_event.set()

    def wait_forever(self) -> None:
        """Block until shutdown is requested while emitting periodic heartbeats."""

        while not self._shutdown_event.wait(timeout=1.0):
            self._maybe_log_heartbeat()

    def _maybe_log_heartbeat(self) -> None:
        with self._heartbeat_lock:
            now = time.monotonic()
            if now - self._last_log < self._config.log_interval_seconds:
                return
            self._last_log = now
        world = self._world
        if world is None or world.closed:
            return
        try:
            players = world.list_players()
        except WorldClosedError:
            # //1.- The world closed between the check and the listing.
            return
        LOGGER.info("Heartbeat: %d player(s) in the maze", len(players))

    @property
    def world(self) -> WorldState:
        if self._world is None:
            raise RuntimeError("MazeApplication is not running")
        return self._world

    @property
    def session_address(self) -> Tuple[str, int]:
        if self._sessions is None:
            raise RuntimeError("MazeApplication is not running")
        return self._sessions.address

    @property
    def web_address(self) -> Tuple[str, int]:
        if self._web is None:
            raise RuntimeError("MazeApplication is not running")
        return self._web.address


def _install_signal_handlers(app: MazeApplication) -> None:
    """Register POSIX signal handlers that trigger a graceful shutdown."""

    def _handler(signum: int, _frame) -> None:  # type: ignore[override]
        LOGGER.info("Received signal %s, shutting down maze", signum)
        app.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, _handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the shared reindeer maze server.")
    parser.add_argument("--width", type=int, help="Maze width in cells")
    parser.add_argument("--height", type=int, help="Maze height in cells")
    parser.add_argument("--tcp-host", help="Interface for player connections")
    parser.add_argument("--tcp-port", type=int, help="Port for player connections")
    parser.add_argument("--http-host", help="Interface for the web viewer")
    parser.add_argument("--http-port", type=int, help="Port for the web viewer")
    parser.add_argument("--move-delay-ms", type=float, help="Minimum milliseconds between commands per player")
    parser.add_argument("--seed", type=int, help="Seed for a reproducible maze")
    parser.add_argument("--no-console", action="store_true", help="Do not read debug commands from stdin")
    parser.add_argument("--log-level", help="Logging level, for example DEBUG or INFO")
    return parser


def resolve_config(argv: Optional[Sequence[str]] = None, env: Optional[dict[str, str]] = None) -> MazeConfig:
    """Merge environment defaults with command line overrides."""

    args = build_parser().parse_args(argv)
    base = load_config_from_env(env)
    return base.with_overrides(
        width=args.width,
        height=args.height,
        tcp_host=args.tcp_host,
        tcp_port=args.tcp_port,
        http_host=args.http_host,
        http_port=args.http_port,
        move_delay_seconds=None if args.move_delay_ms is None else args.move_delay_ms / 1000.0,
        seed=args.seed,
        console=False if args.no_console else None,
        log_level=None if args.log_level is None else args.log_level.upper(),
    )


def run(config: MazeConfig) -> None:
    """Start the application and block until a signal stops it."""

    app = MazeApplication(config)
    app.start()
    _install_signal_handlers(app)
    try:
        app.wait_forever()
    finally:
        app.stop()


def main(argv: Optional[List[str]] = None) -> int:
    """Console script entry point invoked via ``python -m reindeer_maze``."""

    config = resolve_config(argv)
    logging.basicConfig(level=config.log_level.upper(), format="[%(asctime)s] %(levelname)s %(message)s")
    LOGGER.info("Starting up...")
    run(config)
    return 0


if __name__ == "__main__":  # pragma: no cover - exercised via ``python -m`` execution
    raise SystemExit(main())
