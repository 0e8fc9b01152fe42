from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from constants import DEFAULT_HOST_NAME, DEFAULT_MAX_PLAYERS, DEFAULT_TARGET_POINTS
from logging_config import get_logger
from relay.codes import normalize_code
from relay.engine import RelayEngine
from relay.errors import CodeSpaceExhausted, RoomFull, RoomNotFound
from schemas.rooms import (
    CreateRoomRequest,
    CreateRoomResponse,
    JoinRoomRequest,
    JoinRoomResponse,
    RoomDetailsResponse,
)

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/api", tags=["rooms"])


def get_engine(request: Request) -> RelayEngine:
    return request.app.state.engine


def _client_host(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@rooms_router.post("/create-room", response_model=CreateRoomResponse)
async def create_room(
    request: Request,
    room: Optional[CreateRoomRequest] = None,
    engine: RelayEngine = Depends(get_engine),
):
    # Body (all optional): { "maxPlayers": 8, "hostName": "Alice", "targetPoints": 1000 }
    room = room or CreateRoomRequest()
    max_players = room.max_players or DEFAULT_MAX_PLAYERS
    target_points = room.target_points or DEFAULT_TARGET_POINTS
    host_name = room.host_name or DEFAULT_HOST_NAME
    logger.info(f"Room creation request from {_client_host(request)}, host: {host_name}, max_players: {max_players}")

    try:
        created = engine.registry.create_room(
            host_name=host_name,
            max_players=max_players,
            target_points=target_points,
        )
    except CodeSpaceExhausted as e:
        logger.error(f"Error creating room: {e}")
        raise HTTPException(status_code=503, detail=e.reason)

    return CreateRoomResponse(
        code=created.code,
        room_id=created.id,
        expires_at=created.expires_at,
        max_players=created.max_players,
        target_points=created.target_points,
    )


@rooms_router.post("/join-room", response_model=JoinRoomResponse)
async def join_room(join_request: JoinRoomRequest, request: Request, engine: RelayEngine = Depends(get_engine)):
    # Validates access only. The player is added when the WebSocket sends {"type": "join"}.
    code = join_request.code
    logger.info(f"Join room request for {code} from {_client_host(request)}, player: {join_request.player_name}")

    room = engine.registry.get_room(code)
    if room is None:
        logger.warning(f"Join room failed: Room {code} not found")
        raise HTTPException(status_code=404, detail=RoomNotFound.reason)

    if room.is_full:
        logger.warning(f"Join room failed: Room {code} is full ({len(room.members)}/{room.max_players})")
        raise HTTPException(status_code=400, detail=RoomFull.reason)

    return JoinRoomResponse(
        code=room.code,
        room_id=room.id,
        max_players=room.max_players,
        current_players=len(room.members),
    )


@rooms_router.get("/room/{code}", response_model=RoomDetailsResponse)
async def get_room_details(code: str, engine: RelayEngine = Depends(get_engine)):
    """
    Get room details including the current roster.

    Returns:
    - code: Six-digit room code
    - roomId: Unique room identifier, distinct from the code
    - createdAt / expiresAt: ISO-8601 UTC timestamps
    - maxPlayers: Capacity of the room
    - currentPlayers: Members in join order, as {id, name}
    - isPublic: Always false for rooms created here
    - targetPoints: Gameplay parameter passed through untouched
    """
    code = normalize_code(code)
    with engine.registry.lock:
        room = engine.registry.get_room(code)
        if room is None:
            logger.warning(f"Room details failed: Room {code} not found")
            raise HTTPException(status_code=404, detail=RoomNotFound.reason)
        players = room.roster()

    return RoomDetailsResponse(
        code=room.code,
        room_id=room.id,
        created_at=room.created_at,
        expires_at=room.expires_at,
        max_players=room.max_players,
        current_players=players,
        is_public=room.is_public,
        target_points=room.target_points,
    )
