# eventix/posters.py
"""Poster design suggestions and taglines from an LLM."""
from __future__ import annotations

import logging
from typing import Any, Optional

from . import config
from .errors import LLMError

logger = logging.getLogger(__name__)

SUGGESTIONS_PROMPT = """Generate creative poster design suggestions for an event with the following details:
Title: {title}
Description: {description}
Type: {event_type}
Theme: {theme}

Provide:
1. Color scheme suggestions (3-4 colors with hex codes)
2. Typography recommendations
3. Layout suggestions
4. Key visual elements to include
5. Text hierarchy and placement

Format the response as JSON."""

TAGLINES_PROMPT = """Generate 5 creative and catchy taglines for an event:
Title: {title}
Description: {description}

Provide short, memorable taglines that capture the essence of the event."""

_llm: Optional[Any] = None


def get_llm() -> Any:
    """Return the shared chat model, built on first use."""
    global _llm
    if _llm is None:
        from langchain_openai import ChatOpenAI

        if not config.LLM_API_KEY:
            raise LLMError("LLM_API_KEY must be set to use the poster assistant")
        _llm = ChatOpenAI(
            model=config.LLM_MODEL,
            api_key=config.LLM_API_KEY,
            base_url=config.LLM_BASE_URL,
            temperature=config.LLM_TEMPERATURE,
        )
    return _llm


async def _complete(llm: Any, prompt: str, failure: str) -> str:
    try:
        message = await llm.ainvoke(prompt)
    except Exception as e:
        logger.error("LLM call failed: %s", e)
        raise LLMError(failure) from e
    return message.content if hasattr(message, "content") else str(message)


async def suggest_design(
    llm: Any,
    title: str,
    description: str,
    event_type: Optional[str] = None,
    theme: Optional[str] = None,
) -> str:
    prompt = SUGGESTIONS_PROMPT.format(
        title=title,
        description=description,
        event_type=event_type or "General",
        theme=theme or "Professional",
    )
    return await _complete(llm, prompt, "Failed to generate poster suggestions")


async def suggest_taglines(llm: Any, title: str, description: str) -> str:
    prompt = TAGLINES_PROMPT.format(title=title, description=description)
    return await _complete(llm, prompt, "Failed to generate taglines")
