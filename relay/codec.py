import json
from typing import Union

from pydantic import ValidationError

from relay.errors import MalformedInput, RelayError, RoomFull
from schemas.events import (
    MESSAGE_TYPES,
    AnyInboundMessage,
    ErrorEvent,
    OutboundEvent,
    RoomFullEvent,
    UnknownMessage,
)


def parse_message(raw: Union[str, bytes]) -> AnyInboundMessage:
    """Decode one inbound frame.

    Raises ``MalformedInput`` for anything that is not a JSON object or that
    does not fit the shape of its declared type. Unrecognized types decode to
    ``UnknownMessage`` so the caller decides how to answer them.
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
        raise MalformedInput(f"Undecodable frame: {e}") from e
    if not isinstance(data, dict):
        raise MalformedInput("Frame is not a JSON object")

    message_type = data.get("type")
    model = MESSAGE_TYPES.get(message_type) if isinstance(message_type, str) else None
    if model is None:
        return UnknownMessage.model_validate({**data, "type": str(message_type)})
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise MalformedInput(f"Invalid {message_type} frame: {e.error_count()} error(s)") from e


def error_event(error: RelayError) -> OutboundEvent:
    """The event sent back to the connection whose request failed."""
    if isinstance(error, RoomFull):
        return RoomFullEvent()
    return ErrorEvent(message=error.reason)
