from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from relay.codes import normalize_code
from schemas.events import PlayerInfo


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateRoomRequest(ApiModel):
    max_players: Optional[int] = Field(None, ge=0)
    host_name: Optional[str] = None
    target_points: Optional[int] = Field(None, ge=0)

class CreateRoomResponse(ApiModel):
    ok: bool = True
    code: str
    room_id: str
    expires_at: datetime
    max_players: int
    target_points: int

class JoinRoomRequest(ApiModel):
    code: str = ""
    player_name: Optional[str] = None

    @field_validator("code", mode="before")
    @classmethod
    def _normalize_code(cls, value: Any) -> str:
        return normalize_code(value)

class JoinRoomResponse(ApiModel):
    ok: bool = True
    code: str
    room_id: str
    max_players: int
    current_players: int

class RoomDetailsResponse(ApiModel):
    ok: bool = True
    code: str
    room_id: str
    created_at: datetime
    expires_at: datetime
    max_players: int
    current_players: list[PlayerInfo]
    is_public: bool
    target_points: int
