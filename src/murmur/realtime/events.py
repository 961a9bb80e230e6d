"""Wire format of realtime events.

Frames travel as ``{"event": <name>, "data": {...}}`` in both directions.
Inbound frames are decoded exactly once here into one pydantic model per
event; the server dispatches on the model type.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from murmur.services.errors import ValidationFailure

Identity = Annotated[str, Field(min_length=1, max_length=64)]


class ClientEvent(BaseModel):
    """Base class for client-to-server events."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", str_strip_whitespace=True)


class JoinChat(ClientEvent):
    event: Literal["join_chat"]
    receiver_id: Identity = Field(alias="receiverId")


class SendMessage(ClientEvent):
    event: Literal["send_message"]
    receiver_id: Identity = Field(alias="receiverId")
    content: str | None = None
    message_type: Literal["text", "image", "video", "gift"] = Field(
        default="text", alias="messageType"
    )
    image: str | None = None
    video: str | None = None


class TypingStart(ClientEvent):
    event: Literal["typing_start"]
    receiver_id: Identity = Field(alias="receiverId")


class TypingStop(ClientEvent):
    event: Literal["typing_stop"]
    receiver_id: Identity = Field(alias="receiverId")


class JoinLiveRoom(ClientEvent):
    event: Literal["join_live_room"]
    room_id: Identity = Field(alias="roomId")


class LeaveLiveRoom(ClientEvent):
    event: Literal["leave_live_room"]
    room_id: Identity = Field(alias="roomId")


class LiveComment(ClientEvent):
    event: Literal["live_comment"]
    room_id: Identity = Field(alias="roomId")
    comment: str = Field(min_length=1, max_length=1000)


class SendLiveGift(ClientEvent):
    event: Literal["send_live_gift"]
    room_id: Identity = Field(alias="roomId")
    receiver_id: Identity = Field(alias="receiverId")
    gift_type: str = Field(alias="giftType", min_length=1, max_length=32)
    gift_name: str = Field(alias="giftName", min_length=1, max_length=64)
    price: int = Field(gt=0)


class CallUser(ClientEvent):
    event: Literal["call_user"]
    receiver_id: Identity = Field(alias="receiverId")
    type: Literal["voice", "video"] = "video"
    agora_token: str | None = Field(default=None, alias="agoraToken")
    channel_name: str = Field(alias="channelName", min_length=1)


class CallResponse(ClientEvent):
    event: Literal["call_response"]
    caller_id: Identity = Field(alias="callerId")
    accepted: bool
    agora_token: str | None = Field(default=None, alias="agoraToken")
    channel_name: str | None = Field(default=None, alias="channelName")


class CallEnded(ClientEvent):
    event: Literal["call_ended"]
    other_user_id: Identity = Field(alias="otherUserId")


AnyClientEvent = Annotated[
    Union[
        JoinChat,
        SendMessage,
        TypingStart,
        TypingStop,
        JoinLiveRoom,
        LeaveLiveRoom,
        LiveComment,
        SendLiveGift,
        CallUser,
        CallResponse,
        CallEnded,
    ],
    Field(discriminator="event"),
]

CLIENT_EVENT_TYPES: tuple[type[ClientEvent], ...] = get_args(get_args(AnyClientEvent)[0])
CLIENT_EVENT_NAMES: frozenset[str] = frozenset(
    get_args(model.model_fields["event"].annotation)[0] for model in CLIENT_EVENT_TYPES
)

_adapter: TypeAdapter[Any] = TypeAdapter(AnyClientEvent)


def _describe(name: str, exc: ValidationError) -> str:
    first = exc.errors()[0]
    loc = first["loc"]
    # Union errors are prefixed with the discriminator tag.
    if loc and loc[0] == name:
        loc = loc[1:]
    location = ".".join(str(part) for part in loc)
    return f"{location}: {first['msg']}" if location else first["msg"]


def decode_frame(raw: str | bytes | dict[str, Any]) -> ClientEvent:
    """Decode one inbound frame into its event model.

    Raises:
        ValidationFailure: If the frame is not JSON, names an unknown event,
            or its data does not match the event's schema.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as err:
            raise ValidationFailure("Malformed frame") from err

    if not isinstance(raw, dict):
        raise ValidationFailure("Malformed frame")

    name = raw.get("event")
    if name not in CLIENT_EVENT_NAMES:
        raise ValidationFailure(f"Unknown event: {name}")

    data = raw.get("data") or {}
    if not isinstance(data, dict):
        raise ValidationFailure(f"Invalid {name}: data must be an object")

    try:
        return _adapter.validate_python({**data, "event": name})
    except ValidationError as err:
        raise ValidationFailure(f"Invalid {name}: {_describe(name, err)}") from err


def frame(event: str, data: dict[str, Any]) -> dict[str, Any]:
    """Build an outbound frame."""
    return {"event": event, "data": data}
