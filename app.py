from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from constants import CORS_ORIGINS, LOG_FILE, LOG_LEVEL
from logging_config import get_logger, setup_logging
from relay.connections import WebSocketConnection
from relay.engine import RelayEngine
from routers.rooms import rooms_router

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


async def websocket_endpoint(websocket: WebSocket):
    """Realtime channel. Clients send {"type": "join", "code": "123456", "name": "Alice"} first."""
    engine: RelayEngine = websocket.app.state.engine

    await websocket.accept()
    connection = WebSocketConnection(websocket)
    connection.start()
    engine.open_connection(connection)
    logger.info(f"WebSocket connection {connection.id} accepted")

    try:
        message_count = 0
        while connection.is_open:
            try:
                message = await websocket.receive()
            except WebSocketDisconnect:
                logger.info(f"WebSocket disconnected normally for connection {connection.id}")
                break
            except Exception as e:
                logger.error(f"Error receiving message from connection {connection.id}: {e}", exc_info=True)
                break
            if message["type"] == "websocket.disconnect":
                logger.info(f"WebSocket disconnected normally for connection {connection.id}")
                break

            # binary frames carry the same JSON as text frames
            data = message.get("text")
            if data is None:
                data = message.get("bytes")
            message_count += 1
            engine.handle_text(connection, data)
        logger.debug(f"Connection {connection.id} handled {message_count} messages")
    except Exception as e:
        logger.error(f"WebSocket error for connection {connection.id}: {e}", exc_info=True)
    finally:
        engine.close_connection(connection)
        await connection.aclose()
        logger.info(f"WebSocket connection {connection.id} closed")


def create_app(engine: Optional[RelayEngine] = None) -> FastAPI:
    engine = engine if engine is not None else RelayEngine()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine.start()
        logger.info("Relay engine started")
        try:
            yield
        finally:
            await engine.stop()

    app = FastAPI(title="Room Relay", lifespan=lifespan)
    app.state.engine = engine

    # Configure CORS (all origins unless CORS_ORIGINS is set)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(rooms_router)
    app.add_api_websocket_route("/ws", websocket_endpoint)

    logger.info("FastAPI application initialized")
    return app


app = create_app()
