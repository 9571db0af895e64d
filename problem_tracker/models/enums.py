"""
Enumerations for tracker records.
"""

from enum import Enum


class Difficulty(str, Enum):
    """Difficulty of the tracked problem"""

    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class TrackerStatus(str, Enum):
    """Where the owner stands on the problem"""

    SOLVED = "Solved"
    ATTEMPTED = "Attempted"
    TO_REVIEW = "To Review"
