from typing import Optional

from logging_config import get_logger
from relay.connections import Connection
from relay.errors import NotInRoom
from relay.registry import RoomRegistry
from schemas.events import OutboundEvent, PassThroughMessage

logger = get_logger(__name__)


class Broadcaster:
    """Delivers events to the members of a room.

    Delivery is best effort: a member whose connection is closed is skipped and
    a failed send is logged, never raised, so one dead peer cannot hold up the
    rest of the room.
    """

    def __init__(self, registry: RoomRegistry):
        self.registry = registry

    def broadcast(self, code: str, event: OutboundEvent, exclude: Optional[Connection] = None) -> int:
        with self.registry.lock:
            room = self.registry.get_room(code)
            if room is None:
                return 0
            connections = [member.connection for member in room.members]

        raw = event.to_json()
        delivered = 0
        for connection in connections:
            if connection is exclude or not connection.is_open:
                continue
            try:
                connection.send_text(raw)
                delivered += 1
            except Exception as e:
                logger.debug(f"Dropped {event.type} for connection {connection.id} in room {code}: {e}")
        logger.debug(f"Broadcasted {event.type} to {delivered}/{len(connections)} members of room {code}")
        return delivered

    def send_to(self, connection: Connection, event: OutboundEvent) -> bool:
        if not connection.is_open:
            return False
        try:
            connection.send_event(event)
            return True
        except Exception as e:
            logger.debug(f"Dropped {event.type} for connection {connection.id}: {e}")
            return False

    def relay(self, code: str, message: PassThroughMessage, from_member_id: int) -> int:
        """Tag a pass-through message with its sender and send it to the whole room."""
        with self.registry.lock:
            room = self.registry.require_room(code)
            member = room.find_member(from_member_id)
            if member is None:
                raise NotInRoom(f"Member {from_member_id} is not in room {code}")
            event = message.to_relay(member.info())
        return self.broadcast(code, event)
