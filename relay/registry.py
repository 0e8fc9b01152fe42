import itertools
import random
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from constants import (
    DEFAULT_HOST_NAME,
    DEFAULT_MAX_PLAYERS,
    DEFAULT_TARGET_POINTS,
    MAX_CODE_ATTEMPTS,
    ROOM_TTL_SECONDS,
)
from logging_config import get_logger
from relay.codes import generate_room_code
from relay.errors import RoomNotFound
from relay.models import Room

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RoomRegistry:
    """Owns every live room, keyed by code.

    One re-entrant lock guards the whole registry. The membership manager and
    the broadcaster take it too, so joins, leaves and deletes on a room are
    serialized. Nothing done under the lock awaits or blocks on the network.
    """

    def __init__(
        self,
        ttl: timedelta = timedelta(seconds=ROOM_TTL_SECONDS),
        clock: Callable[[], datetime] = utcnow,
        rng: Optional[random.Random] = None,
        code_attempts: int = MAX_CODE_ATTEMPTS,
    ):
        self.ttl = ttl
        self.clock = clock
        self.lock = threading.RLock()
        self._rng = rng
        self._code_attempts = code_attempts
        self._rooms: dict[str, Room] = {}
        self._member_ids = itertools.count(1)

    def now(self) -> datetime:
        return self.clock()

    def create_room(
        self,
        host_name: str = DEFAULT_HOST_NAME,
        max_players: int = DEFAULT_MAX_PLAYERS,
        target_points: int = DEFAULT_TARGET_POINTS,
    ) -> Room:
        with self.lock:
            code = generate_room_code(self._rooms, rng=self._rng, attempts=self._code_attempts)
            created_at = self.now()
            room = Room(
                code=code,
                room_id=uuid.uuid4().hex,
                host_name=host_name,
                created_at=created_at,
                expires_at=created_at + self.ttl,
                max_players=max_players,
                target_points=target_points,
            )
            self._rooms[code] = room
        logger.info(f"Created private room {code} (max_players={max_players}, target_points={target_points})")
        return room

    def get_room(self, code: str) -> Optional[Room]:
        with self.lock:
            return self._rooms.get(code)

    def require_room(self, code: str) -> Room:
        room = self.get_room(code)
        if room is None:
            raise RoomNotFound(f"Room {code} not found")
        return room

    def delete_room(self, code: str) -> bool:
        with self.lock:
            room = self._rooms.pop(code, None)
        if room is not None:
            logger.info(f"Deleted room {code}")
        return room is not None

    def all_rooms(self) -> list[Room]:
        with self.lock:
            return list(self._rooms.values())

    def next_member_id(self) -> int:
        with self.lock:
            return next(self._member_ids)

    def __contains__(self, code: str) -> bool:
        with self.lock:
            return code in self._rooms

    def __len__(self) -> int:
        with self.lock:
            return len(self._rooms)
