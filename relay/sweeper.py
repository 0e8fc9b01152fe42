from datetime import datetime
from typing import Optional

from constants import SWEEP_INTERVAL_SECONDS
from logging_config import get_logger
from relay.membership import MembershipManager
from relay.periodic import PeriodicTask
from relay.registry import RoomRegistry

logger = get_logger(__name__)


class ExpirationSweeper(PeriodicTask):
    """Tears down rooms whose time-to-live has passed, members or not."""

    name = "expiration-sweeper"

    def __init__(
        self,
        registry: RoomRegistry,
        membership: MembershipManager,
        interval: float = SWEEP_INTERVAL_SECONDS,
    ):
        super().__init__(interval)
        self.registry = registry
        self.membership = membership

    def tick(self, now: Optional[datetime] = None) -> list[str]:
        now = now or self.registry.now()
        expired = []
        for room in self.registry.all_rooms():
            if not room.is_expired(now):
                continue
            try:
                if self.membership.expire(room.code):
                    expired.append(room.code)
            except Exception as e:
                logger.error(f"Error expiring room {room.code}: {e}", exc_info=True)
        if expired:
            logger.info(f"Expired {len(expired)} room(s): {', '.join(expired)}")
        return expired
