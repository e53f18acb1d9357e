# src/roadmap/generator.py - v1
"""Roadmap generators: the expensive step the cache exists to avoid.

BaseRoadmapGenerator is the seam the generation service depends on.
LLMRoadmapGenerator asks an LLM for a JSON roadmap and parses the reply;
everything beyond title/description is kept opaque in ``content``.
"""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from datetime import date
from typing import Any

from roadmapcache.core.models import ProfileSnapshot
from roadmapcache.llm.base_client import BaseLLMClient
from roadmapcache.llm.models import Message
from roadmapcache.llm.retry import RetryConfig, with_retry
from roadmapcache.roadmap.models import RoadmapDraft

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a career advisor. Reply with a single JSON object describing a "
    "personalized career roadmap. Always include string fields 'title' and "
    "'description'."
)

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class RoadmapParseError(ValueError):
    """The generator reply could not be turned into a RoadmapDraft."""


class BaseRoadmapGenerator(ABC):
    """Produces a fresh roadmap for a profile."""

    @abstractmethod
    async def generate(self, profile: ProfileSnapshot) -> RoadmapDraft:
        """Generate a roadmap draft. May be slow and costly."""


def build_prompt(profile: ProfileSnapshot, today: date | None = None) -> str:
    """User prompt describing the profile to the model."""
    year = (today or date.today()).year
    lines = [
        "Generate a comprehensive, personalized career roadmap for this profile:",
        f"- Current level: {profile.current_level}",
        f"- Career stage: {profile.career_stage}",
        f"- Interests: {', '.join(sorted(profile.interests)) or 'none given'}",
        f"- Goals: {', '.join(sorted(profile.goals)) or 'none given'}",
        f"- Learning style: {profile.preferred_learning_style}",
        f"- Time commitment: {profile.time_commitment} per week",
    ]
    if profile.current_skills:
        lines.append(f"- Current skills: {', '.join(profile.current_skills)}")
    if profile.experience:
        lines.append(f"- Experience: {profile.experience}")
    lines.append(f"Consider the {year} job market.")
    return "\n".join(lines)


def parse_roadmap_response(text: str, model: str = "unknown", prompt: str = "") -> RoadmapDraft:
    """Parse a model reply into a RoadmapDraft.

    Tolerates markdown code fences and prose around the JSON object.

    Raises:
        RoadmapParseError: No JSON object, invalid JSON, or missing
            title/description.
    """
    cleaned = _FENCE.sub("", text.strip())
    start, end = cleaned.find("{"), cleaned.rfind("}")
    if start == -1 or end <= start:
        raise RoadmapParseError("No JSON object found in roadmap response")

    try:
        data: Any = json.loads(cleaned[start : end + 1])
    except json.JSONDecodeError as e:
        raise RoadmapParseError(f"Invalid JSON in roadmap response: {e}") from e
    if not isinstance(data, dict):
        raise RoadmapParseError("Roadmap response is not a JSON object")

    title = data.pop("title", None)
    description = data.pop("description", None)
    if not isinstance(title, str) or not title.strip():
        raise RoadmapParseError("Roadmap response has no title")
    if not isinstance(description, str):
        raise RoadmapParseError("Roadmap response has no description")

    return RoadmapDraft(
        title=title.strip(),
        description=description,
        content=data,
        model=model,
        prompt=prompt,
    )


class LLMRoadmapGenerator(BaseRoadmapGenerator):
    """Generator backed by any BaseLLMClient."""

    def __init__(
        self,
        client: BaseLLMClient,
        max_tokens: int = 8192,
        temperature: float = 0.7,
        retry_configs: dict[str, RetryConfig] | None = None,
    ) -> None:
        self._client = client
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._retry_configs = retry_configs

    async def generate(self, profile: ProfileSnapshot) -> RoadmapDraft:
        prompt = build_prompt(profile)

        async def _attempt() -> RoadmapDraft:
            response = await self._client.complete(
                [Message(role="user", content=prompt)],
                system=SYSTEM_PROMPT,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
                json_output=True,
            )
            logger.info(
                "Roadmap generated by %s/%s in %d ms (%d tokens)",
                response.provider, response.model, response.latency_ms,
                response.total_tokens,
            )
            return parse_roadmap_response(response.content, model=response.model, prompt=prompt)

        return await with_retry(
            _attempt,
            operation="roadmap generation",
            retry_configs=self._retry_configs,
        )
