"""Tests for message document normalisation and the participant filters."""

from datetime import datetime, timedelta, timezone

import pytest

from messagerie.core.errors import MalformedRecord
from messagerie.core.models import Message, to_bio_value, to_iso_timestamp
from messagerie.infra.stores.converters import (
    between_filter,
    document_to_message,
    involving_filter,
    message_to_document,
    unread_filter,
)


class TestDocumentToMessage:
    def test_current_shape(self):
        message = document_to_message(
            {
                "_id": "abc",
                "sender": "alice",
                "recipient": "bob",
                "content": "hi",
                "message_type": "image",
                "timestamp": "2024-01-01T10:00:00Z",
                "read": True,
                "read_at": "2024-01-01T11:00:00Z",
            }
        )
        assert message == Message(
            id="abc",
            sender="alice",
            recipient="bob",
            content="hi",
            message_type="image",
            timestamp="2024-01-01T10:00:00Z",
            read=True,
            read_at="2024-01-01T11:00:00Z",
        )

    def test_legacy_shape(self):
        message = document_to_message(
            {
                "from": "bob",
                "to": "alice",
                "message": "old school",
                "type": "text",
                "timestamp": "2023-05-01T08:00:00Z",
            }
        )
        assert message.sender == "bob"
        assert message.recipient == "alice"
        assert message.content == "old school"
        assert message.read is False
        assert message.id is None

    def test_object_id_is_stringified(self):
        class FakeObjectId:
            def __str__(self):
                return "65a0c0ffee"

        message = document_to_message(
            {
                "_id": FakeObjectId(),
                "sender": "a",
                "recipient": "b",
                "content": "x",
                "timestamp": "2024-01-01T00:00:00Z",
            }
        )
        assert message.id == "65a0c0ffee"

    def test_datetime_timestamp_is_normalised(self):
        message = document_to_message(
            {
                "sender": "a",
                "recipient": "b",
                "content": "x",
                "timestamp": datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc),
            }
        )
        assert message.timestamp == "2024-01-02T03:04:05.678Z"

    def test_missing_content_becomes_empty(self):
        message = document_to_message(
            {"sender": "a", "recipient": "b", "timestamp": "2024-01-01T00:00:00Z"}
        )
        assert message.content == ""
        assert message.message_type == "text"

    @pytest.mark.parametrize(
        "doc",
        [
            {"recipient": "b", "content": "x", "timestamp": "2024-01-01T00:00:00Z"},
            {"sender": "a", "content": "x", "timestamp": "2024-01-01T00:00:00Z"},
            {"sender": "a", "recipient": "b", "content": "x"},
            {"from": "a", "message": "x", "timestamp": "2024-01-01T00:00:00Z"},
            {"sender": "", "recipient": "b", "timestamp": "2024-01-01T00:00:00Z"},
        ],
    )
    def test_malformed_documents(self, doc):
        with pytest.raises(MalformedRecord) as exc_info:
            document_to_message(doc)
        assert exc_info.value.kind == "message"


class TestTimestamps:
    def test_naive_datetime_is_taken_as_utc(self):
        assert to_iso_timestamp(datetime(2024, 1, 1, 12, 0)) == "2024-01-01T12:00:00.000Z"

    def test_offset_datetime_is_converted_to_utc(self):
        paris = timezone(timedelta(hours=1))
        value = datetime(2024, 1, 1, 13, 0, tzinfo=paris)
        assert to_iso_timestamp(value) == "2024-01-01T12:00:00.000Z"

    def test_string_passes_through(self):
        assert to_iso_timestamp("2024-01-01T12:00:00+02:00") == "2024-01-01T12:00:00+02:00"

    def test_bio_values(self):
        assert to_bio_value(None) is None
        assert to_bio_value(31) == 31
        assert to_bio_value(datetime(1990, 5, 17).date()) == "1990-05-17"


class TestMessageToDocument:
    def test_current_shape_without_id(self):
        doc = message_to_document(
            Message(
                id="ignored",
                sender="a",
                recipient="b",
                content="x",
                timestamp="2024-01-01T00:00:00Z",
            )
        )
        assert doc == {
            "sender": "a",
            "recipient": "b",
            "content": "x",
            "message_type": "text",
            "timestamp": "2024-01-01T00:00:00Z",
            "read": False,
        }


class TestFilters:
    def test_involving_covers_both_shapes(self):
        clauses = involving_filter("alice")["$or"]
        assert {"sender": "alice"} in clauses
        assert {"recipient": "alice"} in clauses
        assert {"from": "alice"} in clauses
        assert {"to": "alice"} in clauses

    def test_between_covers_both_directions(self):
        clauses = between_filter("a", "b")["$or"]
        assert {"sender": "a", "recipient": "b"} in clauses
        assert {"sender": "b", "recipient": "a"} in clauses
        assert {"from": "a", "to": "b"} in clauses
        assert {"from": "b", "to": "a"} in clauses

    def test_unread_is_directed(self):
        query = unread_filter("bob", "alice")
        assert query["read"] == {"$ne": True}
        assert {"sender": "bob", "recipient": "alice"} in query["$or"]
        assert {"sender": "alice", "recipient": "bob"} not in query["$or"]
