"""Base LLM adapter interface."""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Dict, List, Literal, Optional, TypeVar

from config import settings
from errors import RequestTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class LLMMessage:
    """A single chat message."""
    role: Literal["system", "user", "assistant"]
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class LLMRequestOptions:
    """Per-call request options. ``timeout`` is in milliseconds."""
    temperature: float = field(default_factory=lambda: settings.default_temperature)
    max_tokens: int = field(default_factory=lambda: settings.default_max_tokens)
    timeout: int = field(default_factory=lambda: settings.default_timeout_ms)
    top_p: Optional[float] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None


@dataclass
class LLMUsage:
    """Token accounting normalized across backends."""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_counts(
        cls,
        prompt_tokens: Optional[int],
        completion_tokens: Optional[int],
        total_tokens: Optional[int] = None,
    ) -> "LLMUsage":
        """Build usage, synthesizing the total when the backend omits it."""
        prompt = prompt_tokens or 0
        completion = completion_tokens or 0
        total = total_tokens if total_tokens else prompt + completion
        return cls(prompt_tokens=prompt, completion_tokens=completion, total_tokens=total)


@dataclass
class LLMResponse:
    """Standardized response from any adapter."""
    content: str
    model: str
    usage: Optional[LLMUsage] = None
    finish_reason: Optional[str] = None


@dataclass
class LLMModelInfo:
    """Static capabilities of the model behind an adapter."""
    id: str
    name: str
    provider: str
    context_length: int
    supports_json_mode: bool = False
    supports_function_calling: bool = False
    cost_per_1k_tokens: Optional[Dict[str, float]] = None


class LLMAdapter(ABC):
    """Abstract base class for completion backends.

    Each adapter is constructible from its configuration alone and shapes
    requests for its own wire format. Adapters never retry.
    """

    def __init__(self, config: Any):
        self.config = config

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider tag (openai, anthropic, lmstudio, ollama)."""
        pass

    @abstractmethod
    def get_model_info(self) -> LLMModelInfo:
        pass

    @abstractmethod
    async def generate_completion(
        self,
        messages: List[LLMMessage],
        options: Optional[LLMRequestOptions] = None,
    ) -> LLMResponse:
        """Generate a completion.

        Args:
            messages: Ordered chat messages
            options: Sampling, token budget and timeout; defaults from settings

        Returns:
            LLMResponse with content, model and normalized usage

        Raises:
            RequestTimeout: If the call does not finish within ``options.timeout``
            ProviderError: If the backend answers with an error status
        """
        pass

    async def close(self) -> None:
        """Release any network client the adapter holds. Safe to call twice."""
        pass

    async def _bounded(self, call: Awaitable[T], timeout_ms: int) -> T:
        """Await a backend call, cancelling it after ``timeout_ms``."""
        try:
            return await asyncio.wait_for(call, timeout=timeout_ms / 1000)
        except asyncio.TimeoutError as e:
            logger.warning("%s request timed out after %d ms", self.name, timeout_ms)
            raise RequestTimeout(timeout_ms, provider=self.name) from e

    async def test_connection(self) -> bool:
        """Send a trivial prompt; True iff the backend returns any content."""
        try:
            response = await self.generate_completion(
                [LLMMessage(role="user", content="Hello")],
                LLMRequestOptions(max_tokens=10, temperature=0),
            )
            return bool(response.content)
        except Exception as e:
            logger.info("Connection test for %s failed: %s", self.name, e)
            return False
