"""Tests for client/stats — tracker aggregates and filters."""

from datetime import datetime, timezone

import pytest

from problem_tracker.client.stats import filter_trackers, summarize
from problem_tracker.core.errors import ValidationError
from problem_tracker.models.enums import Difficulty, TrackerStatus
from problem_tracker.models.pydantic_models.tracker import Tracker

STAMP = datetime(2024, 1, 1, tzinfo=timezone.utc)


def tracker(tracker_id, **overrides):
    fields = {
        "tracker_id": tracker_id,
        "problem": "Two Sum",
        "difficulty": "Easy",
        "status": "Attempted",
        "created_at": STAMP,
        "updated_at": STAMP,
    }
    fields.update(overrides)
    return Tracker(**fields)


class TestSummarize:
    def test_empty(self):
        stats = summarize([])

        assert stats.total == 0
        assert stats.total_time == 0
        assert stats.average_time == 0
        assert stats.solve_rate == 0

    def test_rounds_half_up(self):
        stats = summarize(
            [
                tracker("a", status="Solved", time_spent=1),
                tracker("b", time_spent=2),
            ]
        )

        # 1.5 minutes and 50 percent
        assert stats.average_time == 2
        assert stats.solve_rate == 50

    def test_two_thirds_solved(self):
        stats = summarize(
            [
                tracker("a", status="Solved"),
                tracker("b", status="Solved", difficulty="Hard"),
                tracker("c", status="To Review", difficulty="Hard"),
            ]
        )

        assert stats.solve_rate == 67
        assert stats.to_review == 1
        assert stats.by_difficulty.hard == 2
        assert stats.by_difficulty.medium == 0

    def test_camel_case_dump(self):
        dumped = summarize([tracker("a")]).model_dump(by_alias=True)

        assert {"toReview", "byDifficulty", "totalTime", "averageTime", "solveRate"} <= set(dumped)


class TestFilter:
    @pytest.fixture()
    def trackers(self):
        return [
            tracker("a", problem="Two Sum", status="Solved"),
            tracker("b", problem="Longest Substring", difficulty="Medium"),
            tracker("c", problem="two pointers", difficulty="Medium", status="Solved"),
        ]

    def test_empty_query_matches_all(self, trackers):
        assert filter_trackers(trackers) == trackers

    def test_query_is_case_insensitive(self, trackers):
        assert [t.tracker_id for t in filter_trackers(trackers, "TWO")] == ["a", "c"]

    def test_filters_combine(self, trackers):
        matched = filter_trackers(
            trackers, "two", status=TrackerStatus.SOLVED, difficulty=Difficulty.MEDIUM
        )
        assert [t.tracker_id for t in matched] == ["c"]

    def test_accepts_wire_values(self, trackers):
        assert [t.tracker_id for t in filter_trackers(trackers, status="Solved")] == ["a", "c"]

    def test_unknown_filter_value(self, trackers):
        with pytest.raises(ValidationError) as exc_info:
            filter_trackers(trackers, difficulty="Impossible")

        assert exc_info.value.errors[0].path == "difficulty"
