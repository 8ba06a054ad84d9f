"""OpenAI and OpenAI-compatible adapters."""

import logging
from abc import abstractmethod
from typing import Any, Dict, List, Optional

from contracts import OpenAIConfig, LMStudioConfig
from errors import ProviderError, RequestTimeout

from .base import LLMAdapter, LLMMessage, LLMModelInfo, LLMRequestOptions, LLMResponse, LLMUsage

logger = logging.getLogger(__name__)

DEFAULT_OPENAI_BASE_URL = "https://api.openai.com"
LOCAL_MODEL = "local-model"


def _api_base(base_url: str) -> str:
    """Normalize a server root (``http://host:1234``) to the SDK's ``/v1`` base."""
    base = base_url.rstrip("/")
    return base if base.endswith("/v1") else f"{base}/v1"


def _usage_from(response: Any) -> Optional[LLMUsage]:
    usage = getattr(response, "usage", None)
    if usage is None:
        return None
    return LLMUsage.from_counts(
        getattr(usage, "prompt_tokens", 0),
        getattr(usage, "completion_tokens", 0),
        getattr(usage, "total_tokens", None),
    )


class _ChatCompletionsAdapter(LLMAdapter):
    """Shared /v1/chat/completions call through the async ``openai`` SDK."""

    def __init__(self, config: Any):
        super().__init__(config)
        self._client = None

    @abstractmethod
    def _get_client(self):
        """Build (once) the ``AsyncOpenAI`` client for this backend."""
        pass

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    def _resolve_model(self) -> str:
        return self.config.model

    def _build_request(self, messages: List[LLMMessage], options: LLMRequestOptions) -> Dict[str, Any]:
        return {
            "model": self._resolve_model(),
            "messages": [m.to_dict() for m in messages],
            "temperature": options.temperature,
            "max_tokens": options.max_tokens,
        }

    async def generate_completion(
        self,
        messages: List[LLMMessage],
        options: Optional[LLMRequestOptions] = None,
    ) -> LLMResponse:
        import openai

        options = options or LLMRequestOptions()
        client = self._get_client()
        request = self._build_request(messages, options)
        logger.debug("%s request: model=%s messages=%d", self.name, request["model"], len(messages))

        try:
            response = await self._bounded(
                client.chat.completions.create(**request, timeout=options.timeout / 1000),
                options.timeout,
            )
        except openai.APITimeoutError as e:
            raise RequestTimeout(options.timeout, provider=self.name) from e
        except openai.APIStatusError as e:
            raise ProviderError(e.status_code, e.response.text, provider=self.name) from e
        except openai.APIConnectionError as e:
            raise ProviderError(None, str(e), provider=self.name) from e

        choice = response.choices[0] if response.choices else None
        content = (choice.message.content if choice else None) or ""
        return LLMResponse(
            content=content,
            model=getattr(response, "model", None) or request["model"],
            usage=_usage_from(response),
            finish_reason=choice.finish_reason if choice else None,
        )


class OpenAIAdapter(_ChatCompletionsAdapter):
    """Adapter for OpenAI models (and OpenAI-compatible cloud endpoints)."""

    MODEL_SPECS: Dict[str, Dict[str, Any]] = {
        "gpt-4": {
            "name": "GPT-4",
            "context_length": 8192,
            "supports_json_mode": True,
            "supports_function_calling": True,
            "cost_per_1k_tokens": {"input": 0.03, "output": 0.06},
        },
        "gpt-4-turbo": {
            "name": "GPT-4 Turbo",
            "context_length": 128000,
            "supports_json_mode": True,
            "supports_function_calling": True,
            "cost_per_1k_tokens": {"input": 0.01, "output": 0.03},
        },
        "gpt-4o": {
            "name": "GPT-4o",
            "context_length": 128000,
            "supports_json_mode": True,
            "supports_function_calling": True,
            "cost_per_1k_tokens": {"input": 0.0025, "output": 0.01},
        },
        "gpt-4o-mini": {
            "name": "GPT-4o mini",
            "context_length": 128000,
            "supports_json_mode": True,
            "supports_function_calling": True,
            "cost_per_1k_tokens": {"input": 0.00015, "output": 0.0006},
        },
        "gpt-3.5-turbo": {
            "name": "GPT-3.5 Turbo",
            "context_length": 16385,
            "supports_json_mode": True,
            "supports_function_calling": True,
            "cost_per_1k_tokens": {"input": 0.0015, "output": 0.002},
        },
    }

    config: OpenAIConfig

    @property
    def name(self) -> str:
        return "openai"

    def _get_client(self):
        if self._client is None:
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(
                api_key=self.config.api_key,
                organization=self.config.organization_id,
                base_url=_api_base(self.config.base_url or DEFAULT_OPENAI_BASE_URL),
                max_retries=0,
            )
        return self._client

    def get_model_info(self) -> LLMModelInfo:
        spec = self.MODEL_SPECS.get(self.config.model, {})
        return LLMModelInfo(
            id=self.config.model,
            name=spec.get("name", self.config.model),
            provider=self.name,
            context_length=spec.get("context_length", 4096),
            supports_json_mode=spec.get("supports_json_mode", False),
            supports_function_calling=spec.get("supports_function_calling", False),
            cost_per_1k_tokens=spec.get("cost_per_1k_tokens"),
        )

    def _build_request(self, messages: List[LLMMessage], options: LLMRequestOptions) -> Dict[str, Any]:
        request = super()._build_request(messages, options)
        if options.top_p is not None:
            request["top_p"] = options.top_p
        if options.frequency_penalty is not None:
            request["frequency_penalty"] = options.frequency_penalty
        if options.presence_penalty is not None:
            request["presence_penalty"] = options.presence_penalty
        if self.get_model_info().supports_json_mode:
            request["response_format"] = {"type": "json_object"}
        return request


class LMStudioAdapter(_ChatCompletionsAdapter):
    """Adapter for a local OpenAI-compatible server such as LM Studio."""

    config: LMStudioConfig

    @property
    def name(self) -> str:
        return "lmstudio"

    def _get_client(self):
        if self._client is None:
            from openai import AsyncOpenAI
            # Local servers ignore the key, but the SDK requires one
            self._client = AsyncOpenAI(
                api_key="lm-studio",
                base_url=_api_base(self.config.base_url),
                max_retries=0,
            )
        return self._client

    def _resolve_model(self) -> str:
        return self.config.model or LOCAL_MODEL

    def get_model_info(self) -> LLMModelInfo:
        return LLMModelInfo(
            id=self._resolve_model(),
            name="LM Studio Local Model",
            provider=self.name,
            context_length=32768,
        )
