import re
from typing import Any

import json_repair
from litellm import completion

from problem_tracker.config import settings

# Models sometimes wrap JSON in a ```json ... ``` block
_MARKDOWN_JSON_RE = re.compile(r"```(?:json)?\s*(\{[\s\S]*\})\s*```")


def call_llm(
    input_text: str,
    system_prompt: str | None = None,
    model: str | None = None,
    request_kwargs: dict | None = None,
) -> str:
    """
    Call an LLM through litellm and return the stripped text content.

    Provider selection is driven by the model string (``bedrock/...``,
    ``openai/...``). Any failure is re-raised as a plain Exception carrying the
    provider error message.
    """
    messages: list[dict[str, Any]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": input_text})

    completion_kwargs: dict = {
        "model": model or settings.suggestion_model,
        "messages": messages,
        "max_tokens": settings.suggestion_max_tokens,
        "temperature": settings.suggestion_temperature,
        "top_p": settings.suggestion_top_p,
    }
    if completion_kwargs["model"].startswith("bedrock/"):
        completion_kwargs["aws_region_name"] = settings.aws_region

    try:
        response = completion(**completion_kwargs, **(request_kwargs or {}))
        content = response.choices[0].message.content
        if not content:
            raise Exception("No content received from LLM")
        return content.strip()
    except Exception as e:
        raise Exception(f"Error calling LLM: {str(e)}")


def strip_markdown_json(text: str) -> str:
    match = _MARKDOWN_JSON_RE.search(text.strip())
    return match.group(1) if match else text.strip()


def try_json_parsing(json_data: str):
    res = json_repair.loads(json_data)
    if not res:
        raise ValueError(f"Failed to parse JSON: {json_data}")
    return res
