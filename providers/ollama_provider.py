"""Ollama adapter (single-prompt /api/generate endpoint)."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from contracts import OllamaConfig
from errors import ProviderError, RequestTimeout

from .base import LLMAdapter, LLMMessage, LLMModelInfo, LLMRequestOptions, LLMResponse, LLMUsage

logger = logging.getLogger(__name__)


class OllamaAdapter(LLMAdapter):
    """Adapter for Ollama's generate endpoint.

    The endpoint takes one prompt string, so the message list is flattened
    into ``role: content`` blocks separated by blank lines.
    """

    config: OllamaConfig

    def __init__(self, config: OllamaConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(config)
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    @property
    def name(self) -> str:
        return "ollama"

    def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.config.base_url.rstrip("/"),
                transport=self._transport,
            )
        return self._http_client

    async def close(self) -> None:
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    def get_model_info(self) -> LLMModelInfo:
        return LLMModelInfo(
            id=self.config.model,
            name=f"Ollama {self.config.model}",
            provider=self.name,
            context_length=32768,
        )

    @staticmethod
    def flatten_messages(messages: List[LLMMessage]) -> str:
        return "\n\n".join(f"{m.role}: {m.content}" for m in messages)

    def _build_request(self, messages: List[LLMMessage], options: LLMRequestOptions) -> Dict[str, Any]:
        return {
            "model": self.config.model,
            "prompt": self.flatten_messages(messages),
            "options": {"temperature": options.temperature},
            "stream": False,
        }

    async def generate_completion(
        self,
        messages: List[LLMMessage],
        options: Optional[LLMRequestOptions] = None,
    ) -> LLMResponse:
        options = options or LLMRequestOptions()
        client = self._get_client()
        body = self._build_request(messages, options)
        logger.debug("ollama request: model=%s prompt_chars=%d", body["model"], len(body["prompt"]))

        try:
            response = await self._bounded(
                client.post("/api/generate", json=body, timeout=options.timeout / 1000),
                options.timeout,
            )
        except httpx.TimeoutException as e:
            raise RequestTimeout(options.timeout, provider=self.name) from e
        except httpx.TransportError as e:
            raise ProviderError(None, str(e), provider=self.name) from e

        if not response.is_success:
            raise ProviderError(response.status_code, response.text, provider=self.name)

        data = response.json()
        return LLMResponse(
            content=data.get("response") or "",
            model=self.config.model,
            usage=LLMUsage.from_counts(data.get("prompt_eval_count"), data.get("eval_count")),
            finish_reason="stop" if data.get("done") else "length",
        )
