import random
from typing import Any, Container, Optional

from constants import MAX_CODE_ATTEMPTS, ROOM_CODE_LENGTH, ROOM_CODE_SPACE
from relay.errors import CodeSpaceExhausted
from logging_config import get_logger

logger = get_logger(__name__)


def format_code(n: int) -> str:
    return str(n).zfill(ROOM_CODE_LENGTH)


def normalize_code(value: Any) -> str:
    """Stringify a room code and left-pad it with zeros, e.g. 42918 -> "042918"."""
    if value is None or isinstance(value, bool):
        value = ""
    return str(value).strip().rjust(ROOM_CODE_LENGTH, "0")


def generate_room_code(
    taken: Container[str],
    rng: Optional[random.Random] = None,
    attempts: int = MAX_CODE_ATTEMPTS,
) -> str:
    """Return a six-digit code that is not in ``taken``.

    A few random draws almost always succeed; if they all collide the whole
    code space is scanned in ascending order. Only a completely full code
    space raises ``CodeSpaceExhausted``.
    """
    rng = rng or random
    for _ in range(attempts):
        code = format_code(rng.randrange(ROOM_CODE_SPACE))
        if code not in taken:
            return code

    logger.warning(f"{attempts} random room codes collided, falling back to a linear scan")
    for n in range(ROOM_CODE_SPACE):
        code = format_code(n)
        if code not in taken:
            return code

    raise CodeSpaceExhausted("All room codes are in use")
