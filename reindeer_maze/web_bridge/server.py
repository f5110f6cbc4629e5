"""HTTP bridge exposing the maze layout and live player positions to viewers."""

from __future__ import annotations

import json
import logging
import threading
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import urlparse

from ..core.world import WorldState, maze_payload, players_payload

LOGGER = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


class MazeWebServer:
    """Threaded HTTP server serving the viewer page plus maze and player JSON."""

    def __init__(
        self,
        world: WorldState,
        host: str = "127.0.0.1",
        port: int = 0,
        *,
        static_dir: Path = STATIC_DIR,
    ) -> None:
        # //1.- Persist constructor arguments so the HTTP handler can query the world.
        self._world = world
        self._host = host
        self._port = port
        self._static_dir = Path(static_dir)
        # //2.- The grid never changes, so its JSON body is encoded exactly once.
        self._maze_body = json.dumps(maze_payload(world)).encode("utf-8")
        self._httpd: Optional[ThreadingHTTPServer] = None
        self._serve_thread: Optional[threading.Thread] = None

    @property
    def address(self) -> Tuple[str, int]:
        """Return the socket binding once the server is running."""

        # //1.- Ensure the server has been started before exposing the bind address.
        if not self._httpd:
            raise RuntimeError("Server is not running")
        return self._httpd.server_address  # type: ignore[return-value]

    def start(self) -> None:
        """Launch the HTTP server on a background thread."""

        # //1.- Guard against accidental double starts that would leak sockets and threads.
        if self._httpd is not None:
            raise RuntimeError("Server already running")

        server_ref = self

        class RequestHandler(BaseHTTPRequestHandler):
            def log_message(self, format: str, *args: object) -> None:  # type: ignore[override]
                LOGGER.debug("web_bridge: %s", format % args)

            def _set_headers(self, status: HTTPStatus, content_type: str = "application/json") -> None:
                self.send_response(status)
                self.send_header("Content-Type", content_type)
                self.send_header("Access-Control-Allow-Origin", "*")
                self.send_header("Access-Control-Allow-Methods", "GET, OPTIONS")
                self.send_header("Access-Control-Allow-Headers", "Content-Type")

            def _write_body(self, body: bytes, status: HTTPStatus = HTTPStatus.OK, content_type: str = "application/json") -> None:
                self._set_headers(status, content_type)
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            def _write_json(self, payload: object, status: HTTPStatus = HTTPStatus.OK) -> None:
                self._write_body(json.dumps(payload).encode("utf-8"), status)

            def do_OPTIONS(self) -> None:  # type: ignore[override]
                # //1.- Respond to CORS preflight checks without touching the world.
                self._set_headers(HTTPStatus.NO_CONTENT)
                self.end_headers()

            def do_GET(self) -> None:  # type: ignore[override]
                # //1.- Normalise the request path to strip query strings before routing.
                path = urlparse(self.path).path
                try:
                    if path in ("/", "/index.html"):
                        body = (server_ref._static_dir / "index.html").read_bytes()
                        self._write_body(body, content_type="text/html; charset=utf-8")
                        return
                    if path == "/handshake":
                        self._write_json({"status": "ok", "message": "Maze viewer online"})
                        return
                    if path == "/maze":
                        self._write_body(server_ref._maze_body)
                        return
                    if path == "/players":
                        # //2.- Every poll takes a fresh, consistent copy of the player table.
                        self._write_json(players_payload(server_ref._world.list_players()))
                        return
                except Exception as exc:  # noqa: BLE001
                    LOGGER.exception("Failed to serve %s", path)
                    self._write_json(
                        {"status": "error", "message": str(exc)}, status=HTTPStatus.INTERNAL_SERVER_ERROR
                    )
                    return
                # //3.- Return a not found response for any unrecognised path.
                self._write_json({"status": "error", "message": "Not found"}, status=HTTPStatus.NOT_FOUND)

        self._httpd = ThreadingHTTPServer((self._host, self._port), RequestHandler)
        self._port = self._httpd.server_address[1]
        self._serve_thread = threading.Thread(target=self._httpd.serve_forever, name="maze-web", daemon=True)
        self._serve_thread.start()

    def stop(self) -> None:
        """Terminate the HTTP server and wait for the thread to exit."""

        if self._httpd is None:
            return
        self._httpd.shutdown()
        self._httpd.server_close()
        if self._serve_thread:
            self._serve_thread.join(timeout=2.0)
        self._httpd = None
        self._serve_thread = None


__all__ = ["MazeWebServer", "STATIC_DIR"]
