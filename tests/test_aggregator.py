"""Tests for the conversation aggregator: fold, enrichment and ordering."""

import pytest

from fakes import FakeFallbackStore, FakeMessageStore, FakeProfileStore, make_message
from messagerie.core.aggregator import (
    ConversationAggregator,
    apply_fallback,
    apply_primary,
    fold_conversations,
    sort_summaries,
)
from messagerie.core.errors import StoreUnavailable
from messagerie.core.models import ConversationSummary, ProfileFragment
from messagerie.core.ports import FallbackUnavailable

NO_FALLBACK = FallbackUnavailable("not configured")


def _summary(counterpart: str, timestamp: str, **fields) -> ConversationSummary:
    return ConversationSummary(
        counterpart_username=counterpart,
        last_message="hi",
        last_message_timestamp=timestamp,
        **fields,
    )


# =========================================================================
# Fold
# =========================================================================


class TestFold:
    def test_one_summary_per_distinct_counterpart(self):
        messages = [
            make_message("alice", "bob", "1", "2024-01-01T10:00:00Z"),
            make_message("carol", "alice", "2", "2024-01-01T11:00:00Z"),
            make_message("bob", "alice", "3", "2024-01-01T12:00:00Z"),
            make_message("alice", "dave", "4", "2024-01-01T13:00:00Z"),
            make_message("alice", "carol", "5", "2024-01-01T14:00:00Z"),
        ]
        summaries = fold_conversations("alice", messages)
        assert sorted(summaries) == ["bob", "carol", "dave"]

    def test_last_scanned_message_wins(self):
        # Scan order decides, not the timestamp value
        messages = [
            make_message("alice", "bob", "first", "2024-01-01T10:00:00Z"),
            make_message("bob", "alice", "second", "2024-01-01T12:00:00Z"),
            make_message("alice", "bob", "third", "2024-01-01T11:00:00Z"),
        ]
        summary = fold_conversations("alice", messages)["bob"]
        assert summary.last_message == "third"
        assert summary.last_message_timestamp == "2024-01-01T11:00:00Z"

    def test_profile_fields_start_empty(self):
        summary = fold_conversations(
            "alice", [make_message("alice", "bob", "hey", "2024-01-01T10:00:00Z")]
        )["bob"]
        assert (summary.first_name, summary.bio, summary.photo) == ("", "", "")
        assert summary.missing_fields() == ["first_name", "bio", "photo"]

    def test_counterpart_of_self_message_is_the_user(self):
        summaries = fold_conversations(
            "alice", [make_message("alice", "alice", "note", "2024-01-01T10:00:00Z")]
        )
        assert list(summaries) == ["alice"]

    def test_empty_stream(self):
        assert fold_conversations("alice", []) == {}


# =========================================================================
# Enrichment helpers
# =========================================================================


class TestApplyPrimary:
    def test_overwrites_matching_summaries(self):
        summaries = {"bob": _summary("bob", "t", first_name="Old")}
        fragments = [
            ProfileFragment(username="bob", first_name="Robert", bio=30, photo="p.jpg"),
            ProfileFragment(username="zoe", first_name="Zoe", bio=22, photo="z.jpg"),
        ]
        assert apply_primary(summaries, fragments) == 1
        bob = summaries["bob"]
        assert (bob.first_name, bob.bio, bob.photo) == ("Robert", 30, "p.jpg")
        assert "zoe" not in summaries


class TestApplyFallback:
    def test_fills_only_empty_fields(self):
        summary = _summary("bob", "t", first_name="Robert")
        apply_fallback(
            summary,
            ProfileFragment(username="bob", first_name="Bobby", bio=31, photo="b.jpg"),
        )
        assert summary.first_name == "Robert"
        assert summary.bio == 31
        assert summary.photo == "b.jpg"

    def test_null_values_leave_fields_empty(self):
        summary = _summary("bob", "t")
        apply_fallback(summary, ProfileFragment(username="bob", bio=31))
        assert summary.first_name == ""
        assert summary.bio == 31
        assert summary.photo == ""


# =========================================================================
# Sort
# =========================================================================


class TestSort:
    def test_newest_first_by_string_comparison(self):
        summaries = [
            _summary("a", "2024-01-01T00:00:00Z"),
            _summary("b", "2024-03-01T00:00:00Z"),
            _summary("c", "2023-12-31T23:59:59Z"),
        ]
        ordered = sort_summaries(summaries)
        assert [s.counterpart_username for s in ordered] == ["b", "a", "c"]

    def test_equal_timestamps_keep_input_order(self):
        summaries = [
            _summary("first", "2024-01-01T00:00:00Z"),
            _summary("second", "2024-01-01T00:00:00Z"),
            _summary("newer", "2024-02-01T00:00:00Z"),
        ]
        ordered = sort_summaries(summaries)
        assert [s.counterpart_username for s in ordered] == [
            "newer",
            "first",
            "second",
        ]


# =========================================================================
# End to end
# =========================================================================


class TestConversationAggregator:
    @pytest.mark.asyncio
    async def test_primary_value_is_never_overridden_by_fallback(self):
        messages = FakeMessageStore(
            [make_message("alice", "bob", "hey", "2024-01-01T10:00:00Z")]
        )
        profiles = FakeProfileStore(
            [ProfileFragment(username="bob", first_name="Robert", bio=30, photo="p.jpg")]
        )
        fallback = FakeFallbackStore(
            {"bob": ProfileFragment(username="bob", first_name="Bobby", bio=99, photo="x")}
        )

        result = await ConversationAggregator(
            messages, profiles, fallback
        ).list_conversations("alice")

        assert len(result) == 1
        bob = result[0]
        assert (bob.first_name, bob.bio, bob.photo) == ("Robert", 30, "p.jpg")
        assert fallback.calls == []

    @pytest.mark.asyncio
    async def test_fallback_fills_only_non_null_columns(self):
        messages = FakeMessageStore(
            [make_message("bob", "alice", "yo", "2024-01-01T10:00:00Z")]
        )
        fallback = FakeFallbackStore({"bob": ProfileFragment(username="bob", bio=31)})

        result = await ConversationAggregator(
            messages, FakeProfileStore(), fallback
        ).list_conversations("alice")

        bob = result[0]
        assert bob.bio == 31
        assert bob.first_name == ""
        assert bob.photo == ""
        assert fallback.calls == ["bob"]

    @pytest.mark.asyncio
    async def test_fallback_only_queried_for_incomplete_summaries(self):
        messages = FakeMessageStore(
            [
                make_message("alice", "bob", "1", "2024-01-01T10:00:00Z"),
                make_message("alice", "carol", "2", "2024-01-01T11:00:00Z"),
            ]
        )
        profiles = FakeProfileStore(
            [ProfileFragment(username="bob", first_name="Robert", bio=30, photo="p.jpg")]
        )
        fallback = FakeFallbackStore()

        await ConversationAggregator(messages, profiles, fallback).list_conversations(
            "alice"
        )
        assert fallback.calls == ["carol"]

    @pytest.mark.asyncio
    async def test_absent_fallback_degrades_silently(self):
        messages = FakeMessageStore(
            [
                make_message("alice", "bob", "1", "2024-01-01T10:00:00Z"),
                make_message("carol", "alice", "2", "2024-01-02T10:00:00Z"),
            ]
        )
        profiles = FakeProfileStore(
            [ProfileFragment(username="bob", first_name="Robert", bio=30, photo="p.jpg")]
        )

        result = await ConversationAggregator(
            messages, profiles, NO_FALLBACK
        ).list_conversations("alice")

        assert [s.counterpart_username for s in result] == ["carol", "bob"]
        assert result[1].first_name == "Robert"
        assert result[0].first_name == ""

    @pytest.mark.asyncio
    async def test_failed_fallback_lookup_leaves_fields_empty(self):
        messages = FakeMessageStore(
            [
                make_message("alice", "bob", "1", "2024-01-01T10:00:00Z"),
                make_message("alice", "carol", "2", "2024-01-01T11:00:00Z"),
            ]
        )
        fallback = FakeFallbackStore(
            {"carol": ProfileFragment(username="carol", first_name="Carol")},
            failing={"bob"},
        )

        result = await ConversationAggregator(
            messages, FakeProfileStore(), fallback
        ).list_conversations("alice")

        by_name = {s.counterpart_username: s for s in result}
        assert by_name["bob"].first_name == ""
        assert by_name["carol"].first_name == "Carol"

    @pytest.mark.asyncio
    async def test_failed_primary_lookup_is_absorbed(self):
        messages = FakeMessageStore(
            [make_message("alice", "bob", "1", "2024-01-01T10:00:00Z")]
        )
        fallback = FakeFallbackStore(
            {"bob": ProfileFragment(username="bob", first_name="Bob", bio=40, photo="b")}
        )

        result = await ConversationAggregator(
            messages, FakeProfileStore(fail=True), fallback
        ).list_conversations("alice")

        assert result[0].first_name == "Bob"

    @pytest.mark.asyncio
    async def test_message_store_failure_aborts(self):
        aggregator = ConversationAggregator(
            FakeMessageStore(fail=True), FakeProfileStore(), NO_FALLBACK
        )
        with pytest.raises(StoreUnavailable):
            await aggregator.list_conversations("alice")

    @pytest.mark.asyncio
    async def test_no_messages_means_no_lookups(self):
        fallback = FakeFallbackStore()
        result = await ConversationAggregator(
            FakeMessageStore(), FakeProfileStore(fail=True), fallback
        ).list_conversations("alice")
        assert result == []
        assert fallback.calls == []

    @pytest.mark.asyncio
    async def test_result_is_sorted_newest_first(self):
        messages = FakeMessageStore(
            [
                make_message("alice", "a", "x", "2024-01-01T00:00:00Z"),
                make_message("alice", "b", "y", "2024-03-01T00:00:00Z"),
                make_message("alice", "c", "z", "2023-12-31T23:59:59Z"),
            ]
        )
        result = await ConversationAggregator(
            messages, FakeProfileStore(), NO_FALLBACK
        ).list_conversations("alice")
        assert [s.counterpart_username for s in result] == ["b", "a", "c"]
