"""Connection handles the relay core talks to.

The core never awaits a socket. ``send_text`` only queues a frame; a writer
task per connection drains the queue, so room mutations never suspend
halfway through.
"""

import asyncio
import uuid
from abc import ABC, abstractmethod
from typing import Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from logging_config import get_logger
from relay.errors import ConnectionClosed
from schemas.events import OutboundEvent, PingEvent

logger = get_logger(__name__)

FLUSH_TIMEOUT_SECONDS = 2.0

_CLOSE = object()


class Connection(ABC):
    """Transport-agnostic handle for one client connection.

    Carries the room binding set by the membership manager and the liveness
    mark used by the liveness monitor.
    """

    def __init__(self, connection_id: Optional[str] = None):
        self.id = connection_id or uuid.uuid4().hex
        self.room_code: Optional[str] = None
        self.member_id: Optional[int] = None
        self.member_name: Optional[str] = None
        self.is_alive = True

    @property
    @abstractmethod
    def is_open(self) -> bool:
        ...

    @abstractmethod
    def send_text(self, raw: str) -> None:
        ...

    @abstractmethod
    def close(self) -> None:
        """Close after frames already queued have been written."""

    @abstractmethod
    def terminate(self) -> None:
        """Close immediately, dropping anything still queued."""

    def send_event(self, event: OutboundEvent) -> None:
        self.send_text(event.to_json())

    def ping(self) -> None:
        self.send_event(PingEvent())

    def mark_alive(self) -> None:
        self.is_alive = True

    def bind(self, room_code: str, member_id: int, member_name: str) -> None:
        self.room_code = room_code
        self.member_id = member_id
        self.member_name = member_name

    def unbind(self) -> None:
        self.room_code = None
        self.member_id = None
        self.member_name = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, room={self.room_code!r}, member={self.member_id!r})"


class WebSocketConnection(Connection):
    def __init__(self, websocket: WebSocket, close_code: int = 1000):
        super().__init__()
        self.websocket = websocket
        self.close_code = close_code
        self._outbox: asyncio.Queue = asyncio.Queue()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._writer: Optional[asyncio.Task] = None
        self._closer: Optional[asyncio.Task] = None
        self._open = False

    def start(self) -> None:
        """Start the writer task. Call after the websocket has been accepted."""
        self._loop = asyncio.get_running_loop()
        self._open = True
        self._writer = asyncio.create_task(self._drain(), name=f"ws-writer-{self.id}")

    @property
    def is_open(self) -> bool:
        return self._open

    def send_text(self, raw: str) -> None:
        if not self._open:
            raise ConnectionClosed(f"Connection {self.id} is closed")
        self._loop.call_soon_threadsafe(self._outbox.put_nowait, raw)

    def close(self) -> None:
        if not self._open:
            return
        self._open = False
        self._loop.call_soon_threadsafe(self._outbox.put_nowait, _CLOSE)
        logger.debug(f"Connection {self.id} closing after queued frames")

    def terminate(self) -> None:
        was_open = self._open
        self._open = False
        if self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._terminate_now)
        if was_open:
            logger.info(f"Terminating connection {self.id}")

    def _terminate_now(self) -> None:
        if self._writer is not None and not self._writer.done():
            self._writer.cancel()
        if self._closer is None:
            self._closer = asyncio.create_task(self._close_socket(), name=f"ws-close-{self.id}")

    async def aclose(self) -> None:
        """Flush, close the socket and wait for the writer to finish."""
        self.close()
        if self._writer is not None:
            done, _ = await asyncio.wait({self._writer}, timeout=FLUSH_TIMEOUT_SECONDS)
            if not done:
                logger.debug(f"Writer for connection {self.id} did not flush in time, cancelling")
                self._writer.cancel()
        if self._closer is not None:
            await asyncio.wait({self._closer}, timeout=FLUSH_TIMEOUT_SECONDS)

    async def _drain(self) -> None:
        try:
            while True:
                item = await self._outbox.get()
                if item is _CLOSE:
                    await self._close_socket()
                    return
                await self.websocket.send_text(item)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._open = False
            logger.debug(f"Writer for connection {self.id} stopped: {e}")

    async def _close_socket(self) -> None:
        if self.websocket.application_state == WebSocketState.DISCONNECTED:
            return
        try:
            await self.websocket.close(code=self.close_code)
        except Exception as e:
            logger.debug(f"Error closing WebSocket {self.id}: {e}")
