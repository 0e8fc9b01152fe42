"""Error taxonomy for the relay.

Every error carries the short ``reason`` string that clients see, either as
``{"type": "error", "message": reason}`` on the socket or as the ``detail``
of an HTTP error response.
"""


class RelayError(Exception):
    reason = "server_error"

    def __init__(self, message: str = None):
        super().__init__(message or self.reason)


class RoomNotFound(RelayError):
    reason = "room_not_found"


class RoomFull(RelayError):
    reason = "room_full"


class NotInRoom(RelayError):
    reason = "not_in_room"


class MalformedInput(RelayError):
    reason = "invalid_json"


class UnknownMessageType(RelayError):
    reason = "unknown_message_type"


class CodeSpaceExhausted(RelayError):
    """Every room code is currently in use."""

    reason = "code_space_exhausted"


class ConnectionClosed(Exception):
    """Raised when writing to a connection that is no longer open."""
