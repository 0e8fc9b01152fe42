from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from constants import DEFAULT_MAX_PLAYERS, DEFAULT_TARGET_POINTS
from schemas.events import PlayerInfo

if TYPE_CHECKING:
    from relay.connections import Connection


@dataclass(eq=False)
class Member:
    id: int
    name: str
    connection: "Connection"
    joined_at: datetime

    def info(self) -> PlayerInfo:
        return PlayerInfo(id=self.id, name=self.name)


class Room:
    """A code-addressed room and its members in join order.

    ``code``, ``id``, ``created_at`` and ``expires_at`` are fixed when the room
    is created. Only the registry mutates ``members``.
    """

    def __init__(
        self,
        code: str,
        room_id: str,
        host_name: str,
        created_at: datetime,
        expires_at: datetime,
        max_players: int = DEFAULT_MAX_PLAYERS,
        target_points: int = DEFAULT_TARGET_POINTS,
    ):
        self._code = code
        self._id = room_id
        self._created_at = created_at
        self._expires_at = expires_at
        self.host_name = host_name
        self.max_players = max_players
        self.target_points = target_points
        self.is_public = False
        self.members: list[Member] = []

    @property
    def code(self) -> str:
        return self._code

    @property
    def id(self) -> str:
        return self._id

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def expires_at(self) -> datetime:
        return self._expires_at

    @property
    def is_full(self) -> bool:
        return len(self.members) >= self.max_players

    def is_expired(self, now: datetime) -> bool:
        return self._expires_at <= now

    def find_member(self, member_id: Optional[int]) -> Optional[Member]:
        for member in self.members:
            if member.id == member_id:
                return member
        return None

    def remove_member(self, member_id: Optional[int]) -> Optional[Member]:
        member = self.find_member(member_id)
        if member is not None:
            self.members.remove(member)
        return member

    def roster(self) -> list[PlayerInfo]:
        return [member.info() for member in self.members]

    def __repr__(self) -> str:
        return f"Room(code={self._code!r}, members={len(self.members)}/{self.max_players})"
