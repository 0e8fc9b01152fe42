"""Tests for RelayEngine frame handling."""

import json

import pytest

from conftest import FixedRandom
from relay.engine import RelayEngine
from relay.registry import RoomRegistry


def send(engine, conn, **frame) -> None:
    engine.handle_text(conn, json.dumps(frame))


@pytest.fixture
def room(registry):
    return registry.create_room()


class TestJoin:
    def test_scenario_alice_then_bob(self, clock, make_connection) -> None:
        engine = RelayEngine(registry=RoomRegistry(clock=clock, rng=FixedRandom(42918)))
        room = engine.registry.create_room()
        alice, bob = make_connection("alice"), make_connection("bob")
        engine.open_connection(alice)
        engine.open_connection(bob)

        send(engine, alice, type="join", code="042918", name="Alice")
        assert alice.sent == [{
            "type": "joined",
            "playerId": 1,
            "code": "042918",
            "roomId": room.id,
            "players": [{"id": 1, "name": "Alice"}],
            "maxPlayers": 8,
            "targetPoints": 1000,
        }]

        send(engine, bob, type="join", code="042918", name="Bob")
        assert alice.sent[-1] == {"type": "player_joined", "player": {"id": 2, "name": "Bob"}}
        joined = bob.events("joined")[0]
        assert joined["playerId"] == 2
        assert joined["players"] == [{"id": 1, "name": "Alice"}, {"id": 2, "name": "Bob"}]

    def test_numeric_code_is_padded(self, clock, make_connection) -> None:
        engine = RelayEngine(registry=RoomRegistry(clock=clock, rng=FixedRandom(42918)))
        engine.registry.create_room()
        conn = make_connection()
        send(engine, conn, type="join", code=42918, name="Alice")
        assert conn.types() == ["joined"]

    def test_unknown_room(self, engine, make_connection) -> None:
        conn = make_connection()
        send(engine, conn, type="join", code="999999", name="Alice")
        assert conn.sent == [{"type": "error", "message": "room_not_found"}]

    def test_full_room(self, engine, make_connection) -> None:
        room = engine.registry.create_room(max_players=3)
        for i in range(3):
            send(engine, make_connection(), type="join", code=room.code, name=f"p{i}")

        late = make_connection()
        send(engine, late, type="join", code=room.code, name="late")

        assert late.sent == [{"type": "room_full"}]
        assert len(room.members) == 3


class TestRelay:
    def test_chat_goes_to_everyone_including_sender(self, engine, room, make_connection) -> None:
        alice, bob = make_connection("alice"), make_connection("bob")
        send(engine, alice, type="join", code=room.code, name="Alice")
        send(engine, bob, type="join", code=room.code, name="Bob")

        send(engine, bob, type="chat", text="hello")

        expected = {"type": "chat", "from": {"id": bob.member_id, "name": "Bob"}, "text": "hello"}
        assert alice.sent[-1] == expected
        assert bob.sent[-1] == expected

    def test_any_member_may_start_the_game(self, engine, room, make_connection) -> None:
        host, guest = make_connection("host"), make_connection("guest")
        send(engine, host, type="join", code=room.code, name="Host")
        send(engine, guest, type="join", code=room.code, name="Guest")

        send(engine, guest, type="start_game")

        assert host.sent[-1] == {"type": "start_game", "initiatedBy": guest.member_id}

    def test_gameplay_requires_membership(self, engine, make_connection) -> None:
        conn = make_connection()
        send(engine, conn, type="chat", text="hello")
        assert conn.sent == [{"type": "error", "message": "not_in_room"}]

    def test_unknown_type_outside_a_room_is_not_in_room(self, engine, make_connection) -> None:
        conn = make_connection()
        send(engine, conn, type="dance")
        assert conn.sent == [{"type": "error", "message": "not_in_room"}]

    def test_unknown_type_in_a_room(self, engine, room, make_connection) -> None:
        alice, bob = make_connection("alice"), make_connection("bob")
        send(engine, alice, type="join", code=room.code, name="Alice")
        send(engine, bob, type="join", code=room.code, name="Bob")
        alice.sent.clear()

        send(engine, bob, type="dance")

        assert bob.sent[-1] == {"type": "error", "message": "unknown_message_type"}
        assert alice.sent == []

    def test_invalid_json(self, engine, make_connection) -> None:
        conn = make_connection()
        engine.handle_text(conn, "{not json")
        assert conn.sent == [{"type": "error", "message": "invalid_json"}]


class TestLeaveAndLiveness:
    def test_leave_closes_connection_and_deletes_empty_room(self, engine, room, make_connection) -> None:
        conn = make_connection()
        send(engine, conn, type="join", code=room.code, name="Alice")

        send(engine, conn, type="leave")

        assert conn.types() == ["joined", "left"]
        assert conn.closed
        assert room.code not in engine.registry

    def test_leave_without_room_just_closes(self, engine, make_connection) -> None:
        conn = make_connection()
        send(engine, conn, type="leave")
        assert conn.closed
        assert conn.sent == []

    def test_pong_marks_alive(self, engine, make_connection) -> None:
        conn = make_connection()
        engine.open_connection(conn)
        engine.liveness.tick()
        assert conn.is_alive is False

        send(engine, conn, type="pong")

        assert conn.is_alive is True
        assert engine.liveness.tick() == []

    def test_any_frame_counts_as_alive(self, engine, room, make_connection) -> None:
        alice, bob = make_connection("alice"), make_connection("bob")
        for conn, name in ((alice, "Alice"), (bob, "Bob")):
            engine.open_connection(conn)
            send(engine, conn, type="join", code=room.code, name=name)

        for _ in range(3):
            engine.liveness.tick()
            send(engine, alice, type="chat", text="still here")
            send(engine, bob, type="submit_answer", choiceIndex=1)

        assert engine.liveness.tick() == []
        assert not alice.terminated and not bob.terminated
        assert len(room.members) == 2

    def test_malformed_frame_still_counts_as_alive(self, engine, make_connection) -> None:
        conn = make_connection()
        engine.open_connection(conn)
        engine.liveness.tick()

        engine.handle_text(conn, "{not json")

        assert conn.is_alive is True
        assert engine.liveness.tick() == []

    def test_close_connection_leaves_room(self, engine, room, make_connection) -> None:
        alice, bob = make_connection("alice"), make_connection("bob")
        for conn, name in ((alice, "Alice"), (bob, "Bob")):
            engine.open_connection(conn)
            send(engine, conn, type="join", code=room.code, name=name)

        bob.close()
        engine.close_connection(bob)

        assert bob not in engine.liveness
        assert alice.sent[-1] == {"type": "player_left", "playerId": 2}
        assert [m.name for m in room.members] == ["Alice"]


class TestLifecycle:
    async def test_start_and_stop(self, engine, room, make_connection) -> None:
        conn = make_connection()
        engine.open_connection(conn)
        send(engine, conn, type="join", code=room.code, name="Alice")

        engine.start()
        assert engine.liveness.running and engine.sweeper.running
        await engine.stop()

        assert not engine.liveness.running and not engine.sweeper.running
        assert conn.terminated
        assert len(engine.liveness) == 0
        assert room.code not in engine.registry


class TestConstruction:
    def test_keeps_an_empty_injected_registry(self, clock) -> None:
        registry = RoomRegistry(clock=clock, rng=FixedRandom(42918))
        assert len(registry) == 0

        engine = RelayEngine(registry=registry)

        assert engine.registry is registry
        assert engine.membership.registry is registry
        assert engine.sweeper.registry is registry
        assert engine.registry.create_room().code == "042918"

    def test_builds_its_own_registry_by_default(self) -> None:
        assert isinstance(RelayEngine().registry, RoomRegistry)
