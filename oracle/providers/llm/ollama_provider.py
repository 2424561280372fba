"""
Ollama Provider Implementation.

Connects to a local Ollama server. The default backend for development.
"""
import logging
import time
from typing import List, Optional

import httpx

from oracle.providers.llm.base import (
    BaseLLMProvider,
    GenerationConfig,
    LLMResponse,
    Message,
)

logger = logging.getLogger(__name__)


class OllamaProvider(BaseLLMProvider):
    """
    Ollama provider using the /api/chat endpoint.
    """

    def __init__(
        self,
        model: str,
        api_url: str = "http://localhost:11434",
        timeout: float = 120.0,
        **kwargs
    ):
        """
        Args:
            model: Model name (e.g., "qwen2.5:3b", "llama3.1:8b")
            api_url: Ollama server URL
            timeout: Request timeout in seconds
        """
        super().__init__(model, **kwargs)
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    def _build_payload(self, messages: List[Message], config: GenerationConfig) -> dict:
        payload = {
            "model": self.model,
            "messages": [msg.to_dict() for msg in messages],
            "stream": False,
            "options": {
                "num_predict": config.max_tokens,
                "temperature": config.temperature,
                "top_p": config.top_p,
            },
        }
        if config.stop_sequences:
            payload["options"]["stop"] = config.stop_sequences
        return payload

    async def generate(
        self,
        messages: List[Message],
        config: Optional[GenerationConfig] = None,
    ) -> LLMResponse:
        config = config or GenerationConfig()
        start_time = time.time()

        try:
            response = await self._client.post(
                f"{self.api_url}/api/chat",
                json=self._build_payload(messages, config),
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Ollama API error: {e.response.status_code} - {e.response.text}")
            raise
        except httpx.RequestError as e:
            logger.error(f"Ollama connection error: {e}")
            raise

        prompt_tokens = data.get("prompt_eval_count", 0)
        completion_tokens = data.get("eval_count", 0)
        return LLMResponse(
            content=data["message"]["content"],
            model=data.get("model", self.model),
            finish_reason="stop" if data.get("done") else None,
            usage={
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": prompt_tokens + completion_tokens,
            },
            latency_ms=(time.time() - start_time) * 1000,
        )

    async def health_check(self) -> bool:
        """Check if Ollama server is running."""
        try:
            response = await self._client.get(f"{self.api_url}/api/tags")
            return response.status_code == 200
        except Exception:
            return False

    async def close(self) -> None:
        await self._client.aclose()
