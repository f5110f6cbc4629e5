"""Tests for the TCP line protocol sessions."""
from __future__ import annotations

import socket
import threading
import time
from typing import Iterator, List, Tuple

import pytest

from reindeer_maze.core.directions import Direction
from reindeer_maze.core.generation import Grid, make_rng
from reindeer_maze.core.sensors import read_compass
from reindeer_maze.core.world import WorldState
from reindeer_maze.session.server import BAD_COMMAND_MESSAGE, MAX_LINE_BYTES, WELCOME_MESSAGE, MazeSessionServer


class FakeClock:
    """Clock that only advances when the server sleeps."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []
        self._lock = threading.Lock()

    def monotonic(self) -> float:
        with self._lock:
            return self.now

    def sleep(self, duration: float) -> None:
        with self._lock:
            self.sleeps.append(duration)
            self.now += duration


class LineClient:
    """Minimal blocking client speaking the newline framed protocol."""

    def __init__(self, address: Tuple[str, int]) -> None:
        self._sock = socket.create_connection(address, timeout=5.0)
        self._reader = self._sock.makefile("r", encoding="utf-8", newline="\n")

    def send(self, line: str) -> None:
        self._sock.sendall((line + "\n").encode("utf-8"))

    def send_raw(self, data: bytes) -> None:
        try:
            self._sock.sendall(data)
        except (BrokenPipeError, ConnectionResetError):
            # //1.- The server may hang up before the whole payload is written.
            pass

    def receive(self) -> str:
        return self._reader.readline().rstrip("\n")

    def wait_closed(self) -> None:
        """Read until the server closes its end of the connection."""

        try:
            while self._reader.readline():
                pass
        except ConnectionResetError:
            pass

    def close(self) -> None:
        self._reader.close()
        self._sock.close()


def _wait_until(predicate, timeout: float = 5.0) -> None:
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return
        time.sleep(0.02)
    raise TimeoutError("condition not met within the allotted time")


@pytest.fixture()
def world() -> Iterator[WorldState]:
    world = WorldState(Grid.open_field(5, 5), (2, 2), rng=make_rng(21))
    yield world
    world.close()


@pytest.fixture()
def server(world: WorldState) -> Iterator[MazeSessionServer]:
    """Spin up the session server on an ephemeral port without move throttling."""

    server = MazeSessionServer(world, move_delay_seconds=0.0)
    server.start()
    yield server
    server.stop()


def _join(server: MazeSessionServer, name: str) -> Tuple[LineClient, str]:
    client = LineClient(server.address)
    assert client.receive() == WELCOME_MESSAGE
    client.send(name)
    return client, client.receive()


def test_join_sends_initial_compass(server: MazeSessionServer, world: WorldState) -> None:
    """Joining answers with the compass at the spawn cell."""

    client, first = _join(server, "Comet")
    try:
        players = world.list_players()
        assert [player.name for player in players] == ["Comet"]
        # //1.- The first reading matches the sensor output at the spawn cell.
        expected = read_compass(world.snapshot_for_sensing(), players[0].position)
        assert first == expected.encode()
    finally:
        client.close()


def test_moves_return_updated_compass(server: MazeSessionServer, world: WorldState) -> None:
    """Each move answers with the compass at the new cell."""

    client, _ = _join(server, "Cupid")
    try:
        start = world.list_players()[0].position
        direction = Direction.S if start[1] > 0 else Direction.N
        client.send(direction.value.lower())
        reply = client.receive()

        moved_to = direction.step(*start)
        assert world.list_players()[0].position == moved_to
        assert reply == read_compass(world.snapshot_for_sensing(), moved_to).encode()
    finally:
        client.close()


def test_blocked_move_repeats_unchanged_compass(server: MazeSessionServer, world: WorldState) -> None:
    """A blocked move repeats the same compass."""

    client, _ = _join(server, "Donner")
    try:
        start = world.list_players()[0].position
        # //1.- Walk into the western edge; the final step must be rejected.
        for _ in range(start[0]):
            client.send("W")
            client.receive()
        client.send("W")
        edge_reading = client.receive()
        client.send("W")
        assert client.receive() == edge_reading
        assert world.list_players()[0].position == (0, start[1])
    finally:
        client.close()


def test_bad_command_keeps_session_open(server: MazeSessionServer, world: WorldState) -> None:
    """Bad commands are answered without ending the session."""

    client, _ = _join(server, "Blitzen")
    try:
        start = world.list_players()[0].position
        client.send("jump")
        assert client.receive() == BAD_COMMAND_MESSAGE
        client.send("")
        assert client.receive() == BAD_COMMAND_MESSAGE
        # //1.- Rejected input never reaches the world, so the player has not moved.
        assert world.list_players()[0].position == start
        client.send("N" if start[1] < 4 else "S")
        assert client.receive() != BAD_COMMAND_MESSAGE
    finally:
        client.close()


def test_reaching_goal_reports_x(server: MazeSessionServer, world: WorldState) -> None:
    """Walking onto the goal reports ``PX``."""

    client, _ = _join(server, "Prancer")
    try:
        x, y = world.list_players()[0].position
        reply = ""
        while x != 2:
            client.send("E" if x < 2 else "W")
            reply = client.receive()
            x += 1 if x < 2 else -1
        while y != 2:
            client.send("N" if y < 2 else "S")
            reply = client.receive()
            y += 1 if y < 2 else -1
        if not reply:
            client.send("N")
            client.receive()
            client.send("S")
            reply = client.receive()
        assert reply.endswith("PX")
    finally:
        client.close()


def test_disconnect_removes_player(server: MazeSessionServer, world: WorldState) -> None:
    """Closing the connection removes only that team."""

    first, _ = _join(server, "Dancer")
    second, _ = _join(server, "Vixen")
    assert len(world.list_players()) == 2

    first.close()
    _wait_until(lambda: [p.name for p in world.list_players()] == ["Vixen"])
    second.close()
    _wait_until(lambda: world.list_players() == ())


def test_hanging_up_before_naming_creates_no_player(server: MazeSessionServer, world: WorldState) -> None:
    """Hanging up before sending a name registers nobody."""

    client = LineClient(server.address)
    assert client.receive() == WELCOME_MESSAGE
    client.close()

    # //1.- A later full join still works and is the only registered player.
    other, _ = _join(server, "Rudolph")
    try:
        assert [player.name for player in world.list_players()] == ["Rudolph"]
    finally:
        other.close()


def test_commands_are_spaced_by_move_delay(world: WorldState) -> None:
    """Commands are spaced by the configured move delay."""

    clock = FakeClock()
    server = MazeSessionServer(
        world,
        move_delay_seconds=0.1,
        time_source=clock.monotonic,
        sleeper=clock.sleep,
    )
    server.start()
    try:
        client, _ = _join(server, "Olive")
        try:
            for _ in range(3):
                client.send("?")
                assert client.receive() == BAD_COMMAND_MESSAGE
        finally:
            client.close()
    finally:
        server.stop()

    # //1.- The fake clock never advances on its own, so each command waits the full delay.
    assert clock.sleeps == pytest.approx([0.1, 0.1, 0.1])


def test_stop_before_start_is_harmless(world: WorldState) -> None:
    """Stopping an unstarted server does nothing."""

    server = MazeSessionServer(world)
    server.stop()
    with pytest.raises(RuntimeError):
        server.address


def test_oversized_team_name_ends_session(server: MazeSessionServer, world: WorldState) -> None:
    """A name line longer than the limit closes the connection without joining."""

    client = LineClient(server.address)
    try:
        assert client.receive() == WELCOME_MESSAGE
        client.send_raw(b"A" * (MAX_LINE_BYTES + 100))
        client.wait_closed()
        assert world.list_players() == ()
    finally:
        client.close()


def test_oversized_command_ends_session_and_removes_player(server: MazeSessionServer, world: WorldState) -> None:
    """A command line longer than the limit drops the player from the maze."""

    client, _ = _join(server, "Twinkle")
    try:
        assert [player.name for player in world.list_players()] == ["Twinkle"]
        client.send_raw(b"N" * (MAX_LINE_BYTES + 100))
        _wait_until(lambda: world.list_players() == ())
    finally:
        client.close()


def test_line_at_the_limit_is_still_a_command(server: MazeSessionServer, world: WorldState) -> None:
    """A line exactly at the limit is parsed and answered rather than dropped."""

    client, _ = _join(server, "Jingle")
    try:
        client.send("x" * MAX_LINE_BYTES)
        assert client.receive() == BAD_COMMAND_MESSAGE
        assert [player.name for player in world.list_players()] == ["Jingle"]
    finally:
        client.close()
