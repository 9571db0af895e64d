"""
AI hints for a tracked problem.

``generate_suggestions`` never raises: any failure of the model call or an
unusable answer is logged and replaced with FALLBACK_SUGGESTIONS.
"""

import asyncio
import logging

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from problem_tracker.core import llms
from problem_tracker.core.errors import AIGenerationError
from problem_tracker.models.pydantic_models.tracker import TrackerSuggestions

logger = logging.getLogger(__name__)

FALLBACK_SUGGESTIONS = TrackerSuggestions(
    hints=[
        "Try breaking down the problem into smaller subproblems",
        "Consider the time and space complexity constraints",
        "Look for patterns in the examples provided",
    ],
    approaches=[
        "Consider using a hashmap for O(1) lookups",
        "Think about whether dynamic programming could help",
    ],
    resources=[
        "https://leetcode.com/explore/",
        "https://www.geeksforgeeks.org/",
    ],
)

SUGGESTION_PROMPT = """You are a helpful coding mentor. For the LeetCode problem "{problem}" (Difficulty: {difficulty}), provide exactly 3 specific hints, 2 solution approaches, and 2 learning resources with REAL WORKING URLs (not placeholders).

The learner's status is "{status}" after {attempts} attempt(s) and {time_spent} minute(s).
Learner notes: {notes}

Requirements:
- hints: 3 progressive hints that don't give away the solution
- approaches: 2 different algorithmic approaches with time complexity
- resources: 2 REAL URLs to articles, videos, or documentation (use actual leetcode.com, youtube.com, geeksforgeeks.org links)

Response must be ONLY valid JSON, no markdown, no extra text:
{{"hints":["hint 1","hint 2","hint 3"],"approaches":["approach 1","approach 2"],"resources":["https://real-url-1.com","https://real-url-2.com"]}}"""


class SuggestionContext(BaseModel):
    problem: str
    difficulty: str
    status: str
    attempts: int = 0
    time_spent: float = 0
    notes: str = ""


def build_prompt(context: SuggestionContext) -> str:
    return SUGGESTION_PROMPT.format(
        problem=context.problem,
        difficulty=context.difficulty,
        status=context.status,
        attempts=context.attempts,
        time_spent=context.time_spent,
        notes=context.notes or "(none)",
    )


def parse_suggestions(raw: str) -> TrackerSuggestions:
    try:
        data = llms.try_json_parsing(llms.strip_markdown_json(raw))
        return TrackerSuggestions.model_validate(data)
    except (ValueError, TypeError, PydanticValidationError) as e:
        raise AIGenerationError(f"Invalid suggestion format: {e}") from e


async def request_suggestions(context: SuggestionContext) -> TrackerSuggestions:
    """Ask the model for hints. Raises AIGenerationError on any failure."""
    try:
        raw = await asyncio.to_thread(llms.call_llm, build_prompt(context))
    except Exception as e:
        raise AIGenerationError(str(e)) from e
    logger.debug(f"Raw suggestion output: {raw}")
    return parse_suggestions(raw)


async def generate_suggestions(context: SuggestionContext) -> TrackerSuggestions:
    logger.info(f"Generating suggestions for: {context.problem} ({context.difficulty})")
    try:
        suggestions = await request_suggestions(context)
    except AIGenerationError as e:
        logger.warning(f"Falling back to static suggestions for {context.problem}: {e}")
        return FALLBACK_SUGGESTIONS.model_copy(deep=True)
    logger.info("Successfully parsed suggestions")
    return suggestions
