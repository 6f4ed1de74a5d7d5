"""
Tests for merge_reviews and timestamp helpers.
"""
import pytest

from app.services.review_store import latest_timestamp, merge_reviews, parse_timestamp
from tests.helpers import make_review


def _ids(records):
    return [r["reviewId"] for r in records]


class TestMergeReviews:
    def test_incoming_overwrites_cached_record(self):
        cached = [make_review("r1", "2024-05-01T10:00:00Z", "FOUR", comment="ok")]
        incoming = [make_review("r1", "2024-05-01T10:00:00Z", "FIVE", comment="great")]

        merged = merge_reviews(cached, incoming)

        assert len(merged) == 1
        assert merged[0]["starRating"] == "FIVE"
        assert merged[0]["comment"] == "great"

    def test_replacement_is_wholesale(self):
        cached = [make_review("r1", reviewReply={"comment": "thanks"})]
        incoming = [make_review("r1")]

        merged = merge_reviews(cached, incoming)

        assert "reviewReply" not in merged[0]

    def test_removed_upstream_reviews_are_kept(self):
        cached = [make_review("a"), make_review("b")]
        incoming = [make_review("b")]

        merged = merge_reviews(cached, incoming)

        assert sorted(_ids(merged)) == ["a", "b"]

    def test_merge_is_idempotent(self):
        cached = [make_review("a", "2024-01-01"), make_review("b", "2024-02-01")]
        incoming = [make_review("b", "2024-02-01", "ONE"), make_review("c", "2024-03-01")]

        once = merge_reviews(cached, incoming)
        twice = merge_reviews(once, incoming)

        assert twice == once

    def test_id_set_never_shrinks(self):
        current = []
        seen = set()
        batches = [
            [make_review("a"), make_review("b")],
            [make_review("b")],
            [],
            [make_review("c")],
            [make_review("a", rating="TWO")],
        ]
        for batch in batches:
            current = merge_reviews(current, batch)
            ids = set(_ids(current))
            assert seen <= ids
            seen = ids

        assert seen == {"a", "b", "c"}

    def test_records_without_id_are_dropped(self):
        merged = merge_reviews(
            [make_review(None), make_review("")],
            [make_review("x"), make_review(None, comment="orphan"), "not a record"],
        )

        assert _ids(merged) == ["x"]

    def test_records_with_non_string_id_are_dropped(self):
        merged = merge_reviews(
            [{"reviewId": ["x"]}, make_review("a")],
            [{"reviewId": {"bad": 1}}, {"reviewId": 7}],
        )

        assert _ids(merged) == ["a"]

    def test_sorted_newest_first(self):
        incoming = [
            make_review("mid", "2024-01-01"),
            make_review("new", "2025-06-01"),
            make_review("old", "2023-03-03"),
        ]

        merged = merge_reviews([], incoming)

        assert _ids(merged) == ["new", "mid", "old"]

    def test_mixed_timestamp_formats_sort_chronologically(self):
        incoming = [
            make_review("a", "2024-01-01T00:00:00.123456789Z"),
            make_review("b", "2024-01-01T00:00:01Z"),
            make_review("c", "2023-12-31T23:59:59+00:00"),
        ]

        merged = merge_reviews([], incoming)

        assert _ids(merged) == ["b", "a", "c"]

    def test_missing_or_bad_create_time_sorts_last(self):
        incoming = [
            make_review("none", None),
            make_review("garbage", "yesterday"),
            make_review("dated", "2020-01-01T00:00:00Z"),
        ]

        merged = merge_reviews([], incoming)

        assert merged[0]["reviewId"] == "dated"
        assert set(_ids(merged[1:])) == {"none", "garbage"}

    def test_equal_timestamps_keep_insertion_order(self):
        cached = [make_review("first", "2024-01-01"), make_review("second", "2024-01-01")]

        merged = merge_reviews(cached, [make_review("third", "2024-01-01")])

        assert _ids(merged) == ["first", "second", "third"]

    def test_inputs_are_not_mutated(self):
        cached = [make_review("a")]
        incoming = [make_review("a", rating="ONE")]

        merge_reviews(cached, incoming)

        assert cached[0]["starRating"] == "FIVE"
        assert len(incoming) == 1


class TestTimestamps:
    @pytest.mark.parametrize(
        "value",
        ["2024-01-01", "2024-01-01T10:00:00Z", "2024-01-01T10:00:00.5+02:00"],
    )
    def test_parse_returns_aware_datetime(self, value):
        parsed = parse_timestamp(value)
        assert parsed is not None
        assert parsed.tzinfo is not None

    @pytest.mark.parametrize("value", [None, "", "not a date", 12345])
    def test_parse_rejects_garbage(self, value):
        assert parse_timestamp(value) is None

    def test_latest_timestamp_picks_most_recent(self):
        assert latest_timestamp("2024-01-01T00:00:00Z", "2025-01-01T00:00:00Z") == "2025-01-01T00:00:00Z"
        assert latest_timestamp(None, "2024-01-01T00:00:00Z") == "2024-01-01T00:00:00Z"
        assert latest_timestamp(None, None) is None
