"""Anthropic (Claude) adapter."""

import logging
from typing import Any, Dict, List, Optional

from contracts import AnthropicConfig
from errors import ProviderError, RequestTimeout

from .base import LLMAdapter, LLMMessage, LLMModelInfo, LLMRequestOptions, LLMResponse, LLMUsage

logger = logging.getLogger(__name__)


class AnthropicAdapter(LLMAdapter):
    """Adapter for the Anthropic Messages API.

    The Messages API rejects system-role entries in ``messages``; the first
    system message is hoisted into the dedicated ``system`` field.
    """

    MODEL_SPECS: Dict[str, Dict[str, Any]] = {
        "claude-sonnet-4-20250514": {
            "name": "Claude Sonnet 4",
            "context_length": 200000,
            "cost_per_1k_tokens": {"input": 0.003, "output": 0.015},
        },
        "claude-opus-4-20250514": {
            "name": "Claude Opus 4",
            "context_length": 200000,
            "cost_per_1k_tokens": {"input": 0.015, "output": 0.075},
        },
        "claude-3-5-haiku-20241022": {
            "name": "Claude 3.5 Haiku",
            "context_length": 200000,
            "cost_per_1k_tokens": {"input": 0.0008, "output": 0.004},
        },
    }

    config: AnthropicConfig

    def __init__(self, config: AnthropicConfig):
        super().__init__(config)
        self._client = None

    @property
    def name(self) -> str:
        return "anthropic"

    def _get_client(self):
        if self._client is None:
            from anthropic import AsyncAnthropic
            self._client = AsyncAnthropic(
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                max_retries=0,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    def get_model_info(self) -> LLMModelInfo:
        spec = self.MODEL_SPECS.get(self.config.model, {})
        return LLMModelInfo(
            id=self.config.model,
            name=spec.get("name", self.config.model),
            provider=self.name,
            context_length=spec.get("context_length", 100000),
            supports_json_mode=True,
            supports_function_calling=False,
            cost_per_1k_tokens=spec.get("cost_per_1k_tokens"),
        )

    def _build_request(self, messages: List[LLMMessage], options: LLMRequestOptions) -> Dict[str, Any]:
        system_message = next((m for m in messages if m.role == "system"), None)
        request: Dict[str, Any] = {
            "model": self.config.model,
            "messages": [m.to_dict() for m in messages if m.role != "system"],
            "max_tokens": options.max_tokens,
            "temperature": options.temperature,
        }
        if system_message is not None:
            request["system"] = system_message.content
        if options.top_p is not None:
            request["top_p"] = options.top_p
        return request

    async def generate_completion(
        self,
        messages: List[LLMMessage],
        options: Optional[LLMRequestOptions] = None,
    ) -> LLMResponse:
        import anthropic

        options = options or LLMRequestOptions()
        client = self._get_client()
        request = self._build_request(messages, options)
        logger.debug("anthropic request: model=%s messages=%d", request["model"], len(request["messages"]))

        try:
            response = await self._bounded(
                client.messages.create(**request, timeout=options.timeout / 1000),
                options.timeout,
            )
        except anthropic.APITimeoutError as e:
            raise RequestTimeout(options.timeout, provider=self.name) from e
        except anthropic.APIStatusError as e:
            raise ProviderError(e.status_code, e.response.text, provider=self.name) from e
        except anthropic.APIConnectionError as e:
            raise ProviderError(None, str(e), provider=self.name) from e

        text = ""
        for block in response.content or []:
            if getattr(block, "type", None) == "text":
                text = block.text or ""
                break

        usage = None
        if getattr(response, "usage", None) is not None:
            usage = LLMUsage.from_counts(response.usage.input_tokens, response.usage.output_tokens)

        return LLMResponse(
            content=text,
            model=getattr(response, "model", None) or self.config.model,
            usage=usage,
            finish_reason=getattr(response, "stop_reason", None),
        )
