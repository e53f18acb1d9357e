# src/llm/base_client.py - v2
"""Abstract LLM client interface used by the roadmap generator."""

from __future__ import annotations

from abc import ABC, abstractmethod

from roadmapcache.llm.models import LLMResponse, Message


class BaseLLMClient(ABC):
    """Unified interface for text-generation providers."""

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 8192,
        temperature: float = 0.7,
        json_output: bool = False,
    ) -> LLMResponse:
        """Text completion. ``json_output`` asks the provider for JSON only."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (google, ...)."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Model the client sends requests to."""
