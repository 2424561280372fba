"""
vLLM Provider Implementation.

Talks to vLLM, or any server exposing the OpenAI chat completions API.
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


class VLLMProvider(BaseLLMProvider):
    """
    OpenAI-compatible chat completions provider.
    """

    def __init__(
        self,
        model: str,
        api_url: str = "http://localhost:8001/v1",
        api_key: Optional[str] = None,
        timeout: float = 60.0,
        **kwargs
    ):
        super().__init__(model, **kwargs)
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(timeout=httpx.Timeout(timeout), headers=headers)

    async def generate(
        self,
        messages: List[Message],
        config: Optional[GenerationConfig] = None,
    ) -> LLMResponse:
        config = config or GenerationConfig()
        start_time = time.time()

        payload = {
            "model": self.model,
            "messages": [msg.to_dict() for msg in messages],
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
            "top_p": config.top_p,
            "stream": False,
        }
        if config.stop_sequences:
            payload["stop"] = config.stop_sequences

        try:
            response = await self._client.post(f"{self.api_url}/chat/completions", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"vLLM API error: {e.response.status_code} - {e.response.text}")
            raise
        except httpx.RequestError as e:
            logger.error(f"vLLM connection error: {e}")
            raise

        choice = data["choices"][0]
        return LLMResponse(
            content=choice["message"]["content"],
            model=data.get("model", self.model),
            finish_reason=choice.get("finish_reason"),
            usage=data.get("usage"),
            latency_ms=(time.time() - start_time) * 1000,
        )

    async def health_check(self) -> bool:
        """Check if the server lists models."""
        try:
            response = await self._client.get(f"{self.api_url}/models")
            return response.status_code == 200
        except Exception:
            return False

    async def close(self) -> None:
        await self._client.aclose()
