from dataclasses import dataclass
from typing import Optional

from logging_config import get_logger
from relay.broadcaster import Broadcaster
from relay.connections import Connection
from relay.errors import RoomFull
from relay.models import Member, Room
from relay.registry import RoomRegistry
from schemas.events import (
    JoinedEvent,
    LeftEvent,
    PlayerInfo,
    PlayerJoinedEvent,
    PlayerLeftEvent,
    RoomExpiredEvent,
)

logger = get_logger(__name__)


@dataclass
class JoinResult:
    member: Member
    room: Room
    players: list[PlayerInfo]


class MembershipManager:
    def __init__(self, registry: RoomRegistry, broadcaster: Broadcaster):
        self.registry = registry
        self.broadcaster = broadcaster

    def join(self, code: str, name: Optional[str], connection: Connection) -> JoinResult:
        """Add ``connection`` to room ``code`` as a new member.

        Raises ``RoomNotFound`` or ``RoomFull``; in both cases the room is left
        untouched. A connection already in another room leaves it first.
        The newcomer is sent ``joined`` with the roster before existing
        members are told about it with ``player_joined``.
        """
        with self.registry.lock:
            room = self.registry.require_room(code)

            if connection.room_code == room.code:
                current = room.find_member(connection.member_id)
                if current is not None:
                    players = room.roster()
                    self._send_joined(connection, current, room, players)
                    return JoinResult(member=current, room=room, players=players)

            if room.is_full:
                logger.info(f"Join rejected: room {code} is full ({len(room.members)}/{room.max_players})")
                raise RoomFull(f"Room {code} is full")

            if connection.room_code is not None:
                self._leave_locked(connection.room_code, connection.member_id)

            member_id = self.registry.next_member_id()
            member = Member(
                id=member_id,
                name=name or f"Player{member_id}",
                connection=connection,
                joined_at=self.registry.now(),
            )
            room.members.append(member)
            connection.bind(room.code, member.id, member.name)
            players = room.roster()
            self._send_joined(connection, member, room, players)
            self.broadcaster.broadcast(room.code, PlayerJoinedEvent(player=member.info()), exclude=connection)

        logger.info(f"Player {member.name} (id={member.id}) joined room {code}")
        return JoinResult(member=member, room=room, players=players)

    def leave(self, code: str, member_id: int) -> Optional[Member]:
        with self.registry.lock:
            return self._leave_locked(code, member_id)

    def disconnect(self, connection: Connection) -> Optional[Member]:
        """Remove whatever membership ``connection`` holds. No-op if none."""
        with self.registry.lock:
            code = connection.room_code
            if code is None:
                return None
            member = self._leave_locked(code, connection.member_id)
            connection.unbind()
        if member is not None:
            logger.info(f"Player {member.id} disconnected from room {code}")
        return member

    def expire(self, code: str) -> bool:
        """Tell every member the room expired, close their connections, delete it."""
        with self.registry.lock:
            room = self.registry.get_room(code)
            if room is None:
                return False
            members = list(room.members)
            room.members.clear()
            for member in members:
                connection = member.connection
                connection.unbind()
                self.broadcaster.send_to(connection, RoomExpiredEvent())
                try:
                    connection.close()
                except Exception as e:
                    logger.warning(f"Error closing connection {connection.id} of expired room {code}: {e}")
            self.registry.delete_room(code)

        logger.info(f"Cleaned up expired room {code} ({len(members)} members)")
        return True

    def _send_joined(self, connection: Connection, member: Member, room: Room, players: list[PlayerInfo]) -> None:
        self.broadcaster.send_to(connection, JoinedEvent(
            player_id=member.id,
            code=room.code,
            room_id=room.id,
            players=players,
            max_players=room.max_players,
            target_points=room.target_points,
        ))

    def _leave_locked(self, code: str, member_id: Optional[int]) -> Optional[Member]:
        room = self.registry.get_room(code)
        if room is None:
            return None
        member = room.remove_member(member_id)
        if member is None:
            return None

        connection = member.connection
        if connection.room_code == code and connection.member_id == member.id:
            connection.unbind()
        self.broadcaster.send_to(connection, LeftEvent())
        self.broadcaster.broadcast(code, PlayerLeftEvent(player_id=member.id))
        logger.info(f"Player {member.name} (id={member.id}) left room {code}")

        if not room.members:
            logger.info(f"Room {code} is empty, deleting it")
            self.registry.delete_room(code)
        return member
