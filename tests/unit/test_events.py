"""Tests for webhook envelope and event parsing."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from src.line.events import (
    MediaMessageEvent,
    UnsupportedEvent,
    parse_envelope,
    parse_event,
)
from tests.conftest import make_envelope, make_line_event


class TestParseEvent:
    @pytest.mark.parametrize("message_type", ["audio", "video"])
    def test_media_message_parsed(self, message_type: str) -> None:
        event = parse_event(make_line_event(message_type=message_type, message_id="42"))
        assert isinstance(event, MediaMessageEvent)
        assert event.kind == message_type
        assert event.message_id == "42"
        assert event.reply_token == "reply-token-1"
        assert event.user_id == "U4af4980629"
        assert event.is_redelivery is False
        assert event.webhook_event_id == "01FZ74A0TDDPYRVKNK77XKC3ZR"

    def test_text_message_unsupported(self) -> None:
        event = parse_event(make_line_event(message_type="text"))
        assert isinstance(event, UnsupportedEvent)
        assert event.event_type == "message"
        assert event.reply_token == "reply-token-1"

    def test_missing_message_unsupported(self) -> None:
        raw = make_line_event(message_type=None, type="follow")
        event = parse_event(raw)
        assert isinstance(event, UnsupportedEvent)
        assert event.event_type == "follow"
        assert event.reply_token == "reply-token-1"

    def test_media_without_id_unsupported(self) -> None:
        raw = make_line_event()
        del raw["message"]["id"]
        assert isinstance(parse_event(raw), UnsupportedEvent)

    def test_redelivery_flag(self) -> None:
        raw = make_line_event(deliveryContext={"isRedelivery": True})
        assert parse_event(raw).is_redelivery is True

    def test_group_source_has_no_user(self) -> None:
        raw = make_line_event(source={"type": "group", "groupId": "C1"})
        event = parse_event(raw)
        assert isinstance(event, MediaMessageEvent)
        assert event.user_id is None

    @pytest.mark.parametrize("raw", [None, "event", 12, [], {"message": "audio"}])
    def test_malformed_input_fails_closed(self, raw: object) -> None:
        event = parse_event(raw)
        assert isinstance(event, UnsupportedEvent)

    def test_wrongly_typed_fields_ignored(self) -> None:
        raw = make_line_event(replyToken=123, source="user", deliveryContext=None)
        event = parse_event(raw)
        assert isinstance(event, MediaMessageEvent)
        assert event.reply_token is None
        assert event.user_id is None
        assert event.is_redelivery is False

    def test_events_are_immutable(self) -> None:
        event = parse_event(make_line_event())
        with pytest.raises(ValidationError):
            event.reply_token = "other"  # type: ignore[misc]


class TestParseEnvelope:
    def test_events_in_order(self) -> None:
        body = json.dumps(make_envelope(
            make_line_event(message_type="audio", message_id="1"),
            make_line_event(message_type="text"),
            make_line_event(message_type="video", message_id="3"),
        )).encode()
        envelope = parse_envelope(body)
        assert envelope.destination == "Uxxxxxxxxxxxxxx"
        assert [e.kind for e in envelope.events] == ["audio", "unsupported", "video"]

    def test_missing_events_is_empty(self) -> None:
        assert parse_envelope(b'{"destination": "U1"}').events == ()

    def test_null_events_is_empty(self) -> None:
        assert parse_envelope(b'{"events": null}').events == ()

    def test_events_not_a_list_is_empty(self) -> None:
        assert parse_envelope(b'{"events": {"type": "message"}}').events == ()

    def test_invalid_json_is_empty(self) -> None:
        assert parse_envelope(b"not json").events == ()

    def test_non_object_body_is_empty(self) -> None:
        assert parse_envelope(b"[1, 2, 3]").events == ()

    def test_non_utf8_body_is_empty(self) -> None:
        assert parse_envelope(b"\x80\x81\x82").events == ()
