from constants import PING_INTERVAL_SECONDS
from logging_config import get_logger
from relay.connections import Connection
from relay.membership import MembershipManager
from relay.periodic import PeriodicTask

logger = get_logger(__name__)


class LivenessMonitor(PeriodicTask):
    """Pings every known connection and drops the ones that stop answering.

    Each tick marks a connection unresponsive and sends a ``ping``; a ``pong``
    arriving on the connection's own receive loop clears the mark. A
    connection still marked on the following tick is terminated, so a dead
    peer is reclaimed within two intervals.
    """

    name = "liveness-monitor"

    def __init__(self, membership: MembershipManager, interval: float = PING_INTERVAL_SECONDS):
        super().__init__(interval)
        self.membership = membership
        self._connections: dict[str, Connection] = {}

    def track(self, connection: Connection) -> None:
        connection.is_alive = True
        self._connections[connection.id] = connection

    def untrack(self, connection: Connection) -> None:
        self._connections.pop(connection.id, None)

    @property
    def connections(self) -> list[Connection]:
        return list(self._connections.values())

    def __contains__(self, connection: Connection) -> bool:
        return connection.id in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    def tick(self) -> list[Connection]:
        terminated = []
        for connection in self.connections:
            if not connection.is_alive:
                logger.info(f"Connection {connection.id} missed a ping, terminating")
                self.untrack(connection)
                self.membership.disconnect(connection)
                connection.terminate()
                terminated.append(connection)
                continue

            connection.is_alive = False
            try:
                connection.ping()
            except Exception as e:
                logger.debug(f"Could not ping connection {connection.id}: {e}")
        return terminated
