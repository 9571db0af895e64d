"""
Aggregates and filters over a list of trackers.

Pure functions: the Trackers facade feeds them its cached list.
"""

from enum import Enum
from typing import Iterable, List, Optional, Type, TypeVar, Union

from problem_tracker.core.errors import FieldError, ValidationError
from problem_tracker.models.enums import Difficulty, TrackerStatus
from problem_tracker.models.pydantic_models.tracker import (
    DifficultyCounts,
    Tracker,
    TrackerStats,
)

EnumT = TypeVar("EnumT", bound=Enum)


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def _as_enum(enum_cls: Type[EnumT], value, path: str) -> Optional[EnumT]:
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError([FieldError(path=path, message=f"Unknown {path}: {value!r}")])


def summarize(trackers: Iterable[Tracker]) -> TrackerStats:
    trackers = list(trackers)
    total = len(trackers)
    if not total:
        return TrackerStats()

    def with_status(status: TrackerStatus) -> int:
        return sum(1 for t in trackers if t.status == status)

    def with_difficulty(difficulty: Difficulty) -> int:
        return sum(1 for t in trackers if t.difficulty == difficulty)

    solved = with_status(TrackerStatus.SOLVED)
    total_time = sum(t.time_spent for t in trackers)
    return TrackerStats(
        total=total,
        solved=solved,
        attempted=with_status(TrackerStatus.ATTEMPTED),
        to_review=with_status(TrackerStatus.TO_REVIEW),
        by_difficulty=DifficultyCounts(
            easy=with_difficulty(Difficulty.EASY),
            medium=with_difficulty(Difficulty.MEDIUM),
            hard=with_difficulty(Difficulty.HARD),
        ),
        total_time=total_time,
        average_time=_round_half_up(total_time / total),
        solve_rate=_round_half_up(solved / total * 100),
    )


def filter_trackers(
    trackers: Iterable[Tracker],
    query: str = "",
    status: Optional[Union[TrackerStatus, str]] = None,
    difficulty: Optional[Union[Difficulty, str]] = None,
) -> List[Tracker]:
    """
    Keep trackers whose problem contains ``query`` (case-insensitive) and that
    match ``status``/``difficulty`` when given. An empty query matches all.
    """
    needle = query.casefold()
    wanted_status = _as_enum(TrackerStatus, status, "status")
    wanted_difficulty = _as_enum(Difficulty, difficulty, "difficulty")
    return [
        t
        for t in trackers
        if needle in t.problem.casefold()
        and (wanted_status is None or t.status == wanted_status)
        and (wanted_difficulty is None or t.difficulty == wanted_difficulty)
    ]
