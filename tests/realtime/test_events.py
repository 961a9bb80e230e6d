"""Tests for inbound frame decoding."""

import json

import pytest

from murmur.realtime import events
from murmur.realtime.server import RealtimeServer
from murmur.services.errors import ValidationFailure


def test_decode_send_message_from_text() -> None:
    raw = json.dumps(
        {"event": "send_message", "data": {"receiverId": "bob", "content": " hi "}}
    )

    event = events.decode_frame(raw)

    assert isinstance(event, events.SendMessage)
    assert event.receiver_id == "bob"
    assert event.content == "hi"
    assert event.message_type == "text"


def test_decode_accepts_bytes_and_dicts() -> None:
    as_bytes = events.decode_frame(b'{"event": "typing_start", "data": {"receiverId": "bob"}}')
    as_dict = events.decode_frame({"event": "call_ended", "data": {"otherUserId": "bob"}})

    assert isinstance(as_bytes, events.TypingStart)
    assert isinstance(as_dict, events.CallEnded)
    assert as_dict.other_user_id == "bob"


def test_call_user_defaults_to_video() -> None:
    event = events.decode_frame(
        {"event": "call_user", "data": {"receiverId": "bob", "channelName": "ch-1"}}
    )

    assert isinstance(event, events.CallUser)
    assert event.type == "video"
    assert event.agora_token is None


@pytest.mark.parametrize(
    ("raw", "message"),
    [
        ("not json", "Malformed frame"),
        ("[1, 2]", "Malformed frame"),
        ('{"event": "dance", "data": {}}', "Unknown event: dance"),
        ('{"event": "join_chat", "data": "bob"}', "Invalid join_chat: data must be an object"),
    ],
)
def test_decode_rejects_bad_frames(raw: str, message: str) -> None:
    with pytest.raises(ValidationFailure) as exc_info:
        events.decode_frame(raw)
    assert exc_info.value.message == message


def test_decode_reports_missing_field() -> None:
    with pytest.raises(ValidationFailure) as exc_info:
        events.decode_frame({"event": "join_chat", "data": {}})
    assert exc_info.value.message.startswith("Invalid join_chat: receiverId")


def test_live_gift_requires_positive_price() -> None:
    with pytest.raises(ValidationFailure) as exc_info:
        events.decode_frame(
            {
                "event": "send_live_gift",
                "data": {
                    "roomId": "1",
                    "receiverId": "bob",
                    "giftType": "rose",
                    "giftName": "Rose",
                    "price": 0,
                },
            }
        )
    assert "price" in exc_info.value.message


def test_frame_builds_envelope() -> None:
    assert events.frame("error", {"message": "x"}) == {"event": "error", "data": {"message": "x"}}


def test_every_event_has_a_handler() -> None:
    server = RealtimeServer(session_factory=lambda: None)

    assert set(server._handlers) == set(events.CLIENT_EVENT_TYPES)
    assert events.CLIENT_EVENT_NAMES == {
        "join_chat",
        "send_message",
        "typing_start",
        "typing_stop",
        "join_live_room",
        "leave_live_room",
        "live_comment",
        "send_live_gift",
        "call_user",
        "call_response",
        "call_ended",
    }
