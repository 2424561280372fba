"""
Text completion over an LLM provider.

TextCompletion turns a prompt plus an optional system-prompt suffix into a
single string, raising CompletionError for any transport or payload
failure. Callers decide whether to fall back or propagate.
"""
import json
import logging
from typing import Any, Dict, Optional

import httpx

from oracle.core.exceptions import CompletionError
from oracle.providers.llm.base import (
    BaseLLMProvider,
    GenerationConfig,
    system_message,
    user_message,
)
from oracle.providers.llm.factory import get_llm_provider_sync

logger = logging.getLogger(__name__)


class TextCompletion:
    """
    complete(prompt, system_prompt_suffix, max_tokens, temperature) -> str
    """

    def __init__(self, provider: Optional[BaseLLMProvider] = None, system_prompt: str = ""):
        self._provider = provider
        self.system_prompt = system_prompt

    @property
    def provider(self) -> BaseLLMProvider:
        if self._provider is None:
            self._provider = get_llm_provider_sync()
        return self._provider

    def build_system_prompt(self, suffix: Optional[str] = None) -> str:
        if not suffix:
            return self.system_prompt
        if not self.system_prompt:
            return suffix
        return f"{self.system_prompt}\n\n{suffix}"

    async def complete(
        self,
        prompt: str,
        system_prompt_suffix: Optional[str] = None,
        max_tokens: int = 1024,
        temperature: float = 0.7,
    ) -> str:
        """
        Raises:
            CompletionError: on transport failure, malformed payload or empty output
        """
        messages = []
        system_prompt = self.build_system_prompt(system_prompt_suffix)
        if system_prompt:
            messages.append(system_message(system_prompt))
        messages.append(user_message(prompt))

        try:
            response = await self.provider.generate(
                messages,
                GenerationConfig(max_tokens=max_tokens, temperature=temperature),
            )
        except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as e:
            raise CompletionError(f"Text completion failed: {e}", details={"error": str(e)}) from e

        content = (response.content or "").strip()
        if not content:
            raise CompletionError("Text completion returned no content")

        logger.debug(f"Completion: {len(content)} chars in {response.latency_ms or 0:.0f}ms")
        return content


def parse_json_object(text: str) -> Dict[str, Any]:
    """
    Extract a JSON object from model output.

    Handles markdown code fences and leading or trailing prose.

    Raises:
        CompletionError: if no JSON object can be parsed
    """
    text = text.strip()

    if "```json" in text:
        start = text.find("```json") + 7
        end = text.find("```", start)
        text = text[start:end if end != -1 else None].strip()
    elif "```" in text:
        start = text.find("```") + 3
        end = text.find("```", start)
        text = text[start:end if end != -1 else None].strip()

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise CompletionError("No JSON object in completion output")
    text = text[start:end + 1]

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        logger.debug(f"Unparseable completion output: {text[:500]}")
        raise CompletionError(f"Failed to parse completion JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise CompletionError("Completion JSON is not an object")
    return parsed
