"""Line-based TCP sessions that let teams walk the maze one command at a time."""

from __future__ import annotations

import logging
import socketserver
import threading
import time
from typing import Callable, Optional, Tuple

from ..core.directions import parse_direction
from ..core.world import PlayerHandle, WorldState
from ..errors import DirectionParseError, WorldClosedError

LOGGER = logging.getLogger(__name__)

WELCOME_MESSAGE = "Welcome to the reindeer maze! What is your team name?"
BAD_COMMAND_MESSAGE = "Bad command, please try again"

# Longest accepted line, newline excluded; longer lines end the session.
MAX_LINE_BYTES = 65536


class _MazeTCPServer(socketserver.ThreadingTCPServer):
    # //1.- One daemon thread per client.
    daemon_threads = True
    allow_reuse_address = True


class MazeSessionServer:
    """Threaded TCP server running one session per connected team."""

    def __init__(
        self,
        world: WorldState,
        host: str = "127.0.0.1",
        port: int = 0,
        *,
        move_delay_seconds: float = 0.1,
        time_source: Callable[[], float] | None = None,
        sleeper: Callable[[float], None] | None = None,
    ) -> None:
        # //1.- Persist collaborators so every request handler shares the same world and clock.
        self._world = world
        self._host = host
        self._port = port
        self._move_delay = max(0.0, float(move_delay_seconds))
        self._time = time_source or time.monotonic
        self._sleep = sleeper or time.sleep
        self._server: Optional[_MazeTCPServer] = None
        self._serve_thread: Optional[threading.Thread] = None

    @property
    def address(self) -> Tuple[str, int]:
        """Return the socket binding once the server is running."""

        if not self._server:
            raise RuntimeError("Server is not running")
        return self._server.server_address  # type: ignore[return-value]

    def start(self) -> None:
        """Bind the listening socket and accept clients on a background thread."""

        if self._server is not None:
            raise RuntimeError("Server already running")

        server_ref = self

        class SessionHandler(socketserver.StreamRequestHandler):
            def handle(self) -> None:  # type: ignore[override]
                server_ref._run_session(self)

        self._server = _MazeTCPServer((self._host, self._port), SessionHandler)
        self._port = self._server.server_address[1]
        self._serve_thread = threading.Thread(target=self._server.serve_forever, name="maze-sessions", daemon=True)
        self._serve_thread.start()

    def stop(self) -> None:
        """Stop accepting clients and close the listening socket."""

        if self._server is None:
            return
        self._server.shutdown()
        self._server.server_close()
        if self._serve_thread:
            self._serve_thread.join(timeout=2.0)
        self._server = None
        self._serve_thread = None

    # ------------------------------------------------------------------ #
    # Session protocol
    # ------------------------------------------------------------------ #

    def _run_session(self, handler: socketserver.StreamRequestHandler) -> None:
        peer = handler.client_address
        try:
            _send(handler, WELCOME_MESSAGE)
            raw_name = _read_line(handler)
        except (ConnectionError, OSError) as exc:
            LOGGER.info("Connection from %s dropped before joining: %s", peer, exc)
            return
        if raw_name is None:
            LOGGER.info("Connection from %s dropped: team name longer than %d bytes", peer, MAX_LINE_BYTES)
            return
        if not raw_name:
            # //1.- The client hung up before naming a team, so nobody joins.
            return

        name = _decode_line(raw_name)
        try:
            handle = self._world.add_player(name)
        except WorldClosedError:
            LOGGER.info("Refusing %s: the maze is shutting down", name)
            return
        LOGGER.info("%s joined", name)
        try:
            self._play(handler, name, handle)
        except (ConnectionError, OSError) as exc:
            LOGGER.info("%s connection error: %s", name, exc)
        except WorldClosedError:
            LOGGER.info("%s dropped: the maze is shutting down", name)
        finally:
            # //2.- Always free the player, whatever ended the session.
            try:
                self._world.remove_player(handle)
            except WorldClosedError:
                LOGGER.debug("World already closed while removing %s", name)
            LOGGER.info("%s disconnected", name)

    def _play(self, handler: socketserver.StreamRequestHandler, name: str, handle: PlayerHandle) -> None:
        compass = self._world.compass(handle)
        if compass is None:
            return
        _send(handler, compass.encode())
        move_start = self._time()
        for raw in iter(lambda: _read_line(handler), b""):
            if raw is None:
                LOGGER.info("%s sent a line longer than %d bytes", name, MAX_LINE_BYTES)
                return
            # //1.- Enforce the minimum spacing between two commands on this connection.
            remaining = self._move_delay - (self._time() - move_start)
            if remaining > 0:
                self._sleep(remaining)
            move_start = self._time()

            try:
                direction = parse_direction(_decode_line(raw))
            except DirectionParseError:
                _send(handler, BAD_COMMAND_MESSAGE)
                continue

            self._world.move_player(handle, direction)
            compass = self._world.compass(handle)
            if compass is None:
                return
            if compass.on_goal:
                LOGGER.info("%s found the present", name)
            _send(handler, compass.encode())


def _read_line(handler: socketserver.StreamRequestHandler) -> Optional[bytes]:
    """Read one line, returning ``None`` when it exceeds :data:`MAX_LINE_BYTES`."""

    raw = handler.rfile.readline(MAX_LINE_BYTES + 1)
    if len(raw) > MAX_LINE_BYTES and not raw.endswith(b"\n"):
        return None
    return raw


def _decode_line(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace").rstrip("\r\n")


def _send(handler: socketserver.StreamRequestHandler, line: str) -> None:
    handler.wfile.write((line + "\n").encode("utf-8"))
    handler.wfile.flush()


__all__ = ["BAD_COMMAND_MESSAGE", "MAX_LINE_BYTES", "MazeSessionServer", "WELCOME_MESSAGE"]
