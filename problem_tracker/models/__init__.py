from .enums import Difficulty as Difficulty, TrackerStatus as TrackerStatus
from .pydantic_models.tracker import (
    CreateTrackerRequest as CreateTrackerRequest,
    UpdateTrackerRequest as UpdateTrackerRequest,
    Tracker as Tracker,
    TrackerStats as TrackerStats,
    TrackerSuggestions as TrackerSuggestions,
)
