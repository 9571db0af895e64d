"""
Pydantic models for tracker records.

Wire and storage use camelCase names (``trackerId``, ``timeSpent``); Python code
uses the snake_case attribute names. Every model accepts both.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from problem_tracker.models.enums import Difficulty, TrackerStatus

PROBLEM_MAX_LENGTH = 200
NOTES_MAX_LENGTH = 1000

# Storage names of fields that only the store itself may write
IMMUTABLE_FIELDS = frozenset({"ownerId", "trackerId", "createdAt"})
# Storage names of fields that accept an explicit null
NULLABLE_FIELDS = frozenset({"dateCompleted"})


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class CreateTrackerRequest(_CamelModel):
    problem: str = Field(..., min_length=1, max_length=PROBLEM_MAX_LENGTH)
    difficulty: Difficulty
    status: TrackerStatus
    notes: str = Field("", max_length=NOTES_MAX_LENGTH)
    date_completed: Optional[str] = None
    attempts: int = Field(0, ge=0)
    time_spent: float = Field(0, ge=0)


class UpdateTrackerRequest(_CamelModel):
    """Sparse update: only fields present in the payload are applied."""

    problem: Optional[str] = Field(None, min_length=1, max_length=PROBLEM_MAX_LENGTH)
    difficulty: Optional[Difficulty] = None
    status: Optional[TrackerStatus] = None
    notes: Optional[str] = Field(None, max_length=NOTES_MAX_LENGTH)
    date_completed: Optional[str] = None
    attempts: Optional[int] = Field(None, ge=0)
    time_spent: Optional[float] = Field(None, ge=0)

    def provided_fields(self) -> dict:
        """Explicitly provided fields keyed by storage name, in declaration order."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class Tracker(CreateTrackerRequest):
    owner_id: Optional[str] = None
    tracker_id: str
    created_at: datetime
    updated_at: datetime

    def to_item(self) -> dict:
        """JSON-ready dict keyed by storage/wire names."""
        return self.model_dump(mode="json", by_alias=True)


class TrackerSuggestions(BaseModel):
    hints: List[str] = Field(..., min_length=3)
    approaches: List[str] = Field(..., min_length=2)
    resources: List[str] = Field(..., min_length=2)

    @field_validator("hints")
    @classmethod
    def _three_hints(cls, value: List[str]) -> List[str]:
        return value[:3]

    @field_validator("approaches", "resources")
    @classmethod
    def _two_items(cls, value: List[str]) -> List[str]:
        return value[:2]


class TrackerResponse(_CamelModel):
    message: str
    tracker: Tracker


class TrackersListResponse(_CamelModel):
    message: str
    trackers: List[Tracker]
    count: int


class DeleteTrackerResponse(_CamelModel):
    message: str
    tracker_id: str
    existed: bool


class SuggestionTimings(_CamelModel):
    store_get_time_ms: float
    generation_time_ms: float
    total_execution_time_ms: float


class SuggestionResponse(_CamelModel):
    message: str
    tracker_id: str
    problem: str
    suggestions: TrackerSuggestions
    timings: SuggestionTimings = Field(..., alias="_metadata")


class DifficultyCounts(_CamelModel):
    easy: int = 0
    medium: int = 0
    hard: int = 0


class TrackerStats(_CamelModel):
    """Progress summary over one owner's trackers."""

    total: int = 0
    solved: int = 0
    attempted: int = 0
    to_review: int = 0
    by_difficulty: DifficultyCounts = Field(default_factory=DifficultyCounts)
    total_time: float = 0
    # whole minutes, rounded half up
    average_time: int = 0
    # percent of trackers solved, rounded half up
    solve_rate: int = 0
