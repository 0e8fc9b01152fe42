"""Wire events exchanged over the ``/ws`` socket.

Inbound frames are decoded into one model per known ``type``. Pass-through
gameplay messages keep any extra fields they carry and forward them verbatim
when relayed, so clients can add fields without a server change.
"""

from abc import abstractmethod
from typing import Any, ClassVar, Literal, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from relay.codes import normalize_code


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


# ---- outbound ----

class PlayerInfo(WireModel):
    id: int
    name: str


class OutboundEvent(WireModel):
    type: str


class JoinedEvent(OutboundEvent):
    type: Literal["joined"] = "joined"
    player_id: int
    code: str
    room_id: str
    players: list[PlayerInfo]
    max_players: int
    target_points: int


class PlayerJoinedEvent(OutboundEvent):
    type: Literal["player_joined"] = "player_joined"
    player: PlayerInfo


class PlayerLeftEvent(OutboundEvent):
    type: Literal["player_left"] = "player_left"
    player_id: int


class LeftEvent(OutboundEvent):
    type: Literal["left"] = "left"


class ErrorEvent(OutboundEvent):
    type: Literal["error"] = "error"
    message: str


class RoomFullEvent(OutboundEvent):
    type: Literal["room_full"] = "room_full"


class RoomExpiredEvent(OutboundEvent):
    type: Literal["room_expired"] = "room_expired"
    reason: str = "Room expired"


class PingEvent(OutboundEvent):
    type: Literal["ping"] = "ping"


class RelayedEvent(OutboundEvent):
    """A pass-through message tagged with its sender."""

    model_config = ConfigDict(extra="allow")


class ChatRelay(RelayedEvent):
    type: Literal["chat"] = "chat"
    sender: PlayerInfo = Field(alias="from")
    text: str


class StartGameRelay(RelayedEvent):
    type: Literal["start_game"] = "start_game"
    initiated_by: int


class NewQuestionRelay(RelayedEvent):
    type: Literal["new_question"] = "new_question"
    question: Any = None


class SubmitAnswerRelay(RelayedEvent):
    type: Literal["submit_answer"] = "submit_answer"
    sender: int = Field(alias="from")
    choice_index: Any = None


class PickCategoryRelay(RelayedEvent):
    type: Literal["pick_category"] = "pick_category"
    by: int
    category: Any = None


# ---- inbound ----

class InboundMessage(WireModel):
    type: str


class JoinMessage(InboundMessage):
    type: Literal["join"] = "join"
    code: str = ""
    name: Optional[str] = None

    @field_validator("code", mode="before")
    @classmethod
    def _normalize_code(cls, value: Any) -> str:
        return normalize_code(value)

    @field_validator("name", mode="before")
    @classmethod
    def _stringify_name(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        return str(value)


class LeaveMessage(InboundMessage):
    type: Literal["leave"] = "leave"


class PongMessage(InboundMessage):
    type: Literal["pong"] = "pong"


class UnknownMessage(InboundMessage):
    model_config = ConfigDict(extra="allow")


class PassThroughMessage(InboundMessage):
    """Gameplay message with no server-side logic beyond relaying it."""

    model_config = ConfigDict(extra="allow")

    relay_model: ClassVar[Type[RelayedEvent]]

    @abstractmethod
    def relay_fields(self, sender: PlayerInfo) -> dict:
        ...

    def to_relay(self, sender: PlayerInfo) -> RelayedEvent:
        reserved = set()
        for name, field in self.relay_model.model_fields.items():
            reserved.add(name)
            if field.alias:
                reserved.add(field.alias)
        # opaque extras never override the sender tagging
        payload = {k: v for k, v in (self.model_extra or {}).items() if k not in reserved}
        return self.relay_model(**payload, **self.relay_fields(sender))


class ChatMessage(PassThroughMessage):
    type: Literal["chat"] = "chat"
    text: Any = ""

    relay_model: ClassVar[Type[RelayedEvent]] = ChatRelay

    def relay_fields(self, sender: PlayerInfo) -> dict:
        return {"sender": sender, "text": str(self.text) if self.text else ""}


class StartGameMessage(PassThroughMessage):
    type: Literal["start_game"] = "start_game"

    relay_model: ClassVar[Type[RelayedEvent]] = StartGameRelay

    def relay_fields(self, sender: PlayerInfo) -> dict:
        return {"initiated_by": sender.id}


class NewQuestionMessage(PassThroughMessage):
    type: Literal["new_question"] = "new_question"
    question: Any = None

    relay_model: ClassVar[Type[RelayedEvent]] = NewQuestionRelay

    def relay_fields(self, sender: PlayerInfo) -> dict:
        return {"question": self.question}


class SubmitAnswerMessage(PassThroughMessage):
    type: Literal["submit_answer"] = "submit_answer"
    choice_index: Any = None

    relay_model: ClassVar[Type[RelayedEvent]] = SubmitAnswerRelay

    def relay_fields(self, sender: PlayerInfo) -> dict:
        return {"sender": sender.id, "choice_index": self.choice_index}


class PickCategoryMessage(PassThroughMessage):
    type: Literal["pick_category"] = "pick_category"
    category: Any = None

    relay_model: ClassVar[Type[RelayedEvent]] = PickCategoryRelay

    def relay_fields(self, sender: PlayerInfo) -> dict:
        return {"by": sender.id, "category": self.category}


MESSAGE_TYPES: dict[str, type[InboundMessage]] = {
    "join": JoinMessage,
    "leave": LeaveMessage,
    "pong": PongMessage,
    "chat": ChatMessage,
    "start_game": StartGameMessage,
    "new_question": NewQuestionMessage,
    "submit_answer": SubmitAnswerMessage,
    "pick_category": PickCategoryMessage,
}

AnyInboundMessage = Union[
    JoinMessage,
    LeaveMessage,
    PongMessage,
    ChatMessage,
    StartGameMessage,
    NewQuestionMessage,
    SubmitAnswerMessage,
    PickCategoryMessage,
    UnknownMessage,
]
