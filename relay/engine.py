from typing import Optional, Union

from constants import PING_INTERVAL_SECONDS, SWEEP_INTERVAL_SECONDS
from logging_config import get_logger
from relay.broadcaster import Broadcaster
from relay.codec import error_event, parse_message
from relay.connections import Connection
from relay.errors import NotInRoom, RelayError, UnknownMessageType
from relay.liveness import LivenessMonitor
from relay.membership import MembershipManager
from relay.registry import RoomRegistry
from relay.sweeper import ExpirationSweeper
from schemas.events import (
    AnyInboundMessage,
    JoinMessage,
    LeaveMessage,
    PassThroughMessage,
    PongMessage,
)

logger = get_logger(__name__)


class RelayEngine:
    """Wires the relay components together for one process.

    The transport hands every accepted connection to ``open_connection``,
    every received text frame to ``handle_text`` and every closed connection
    to ``close_connection``.
    """

    def __init__(
        self,
        registry: Optional[RoomRegistry] = None,
        ping_interval: float = PING_INTERVAL_SECONDS,
        sweep_interval: float = SWEEP_INTERVAL_SECONDS,
    ):
        self.registry = registry if registry is not None else RoomRegistry()
        self.broadcaster = Broadcaster(self.registry)
        self.membership = MembershipManager(self.registry, self.broadcaster)
        self.liveness = LivenessMonitor(self.membership, interval=ping_interval)
        self.sweeper = ExpirationSweeper(self.registry, self.membership, interval=sweep_interval)

    def start(self) -> None:
        self.liveness.start()
        self.sweeper.start()

    async def stop(self) -> None:
        await self.liveness.stop()
        await self.sweeper.stop()
        for connection in self.liveness.connections:
            self.close_connection(connection)
            connection.terminate()
        logger.info("Relay engine stopped")

    def open_connection(self, connection: Connection) -> None:
        self.liveness.track(connection)

    def close_connection(self, connection: Connection) -> None:
        self.liveness.untrack(connection)
        self.membership.disconnect(connection)

    def handle_text(self, connection: Connection, raw: Union[str, bytes]) -> None:
        """Handle one inbound frame. Failures become an event back to the sender."""
        # any frame from the peer proves it is still there
        connection.mark_alive()
        try:
            message = parse_message(raw)
            logger.debug(f"Received {message.type} from connection {connection.id}")
            self._dispatch(connection, message)
        except RelayError as e:
            logger.debug(f"Rejected frame from connection {connection.id}: {e}")
            self.broadcaster.send_to(connection, error_event(e))

    def _dispatch(self, connection: Connection, message: AnyInboundMessage) -> None:
        if isinstance(message, PongMessage):
            return

        if isinstance(message, JoinMessage):
            self.membership.join(message.code, message.name, connection)
            return

        if isinstance(message, LeaveMessage):
            self.membership.disconnect(connection)
            connection.close()
            return

        code = connection.room_code
        if code is None:
            raise NotInRoom()

        if isinstance(message, PassThroughMessage):
            # any member may start the game; there is no host check
            self.broadcaster.relay(code, message, connection.member_id)
            return

        raise UnknownMessageType(f"Unknown message type {message.type!r}")
