"""
LLM Providers Package.

Plug-and-play chat-completion backends (Ollama, vLLM) and the TextCompletion
adapter used by interview activities.
"""
from oracle.providers.llm.base import (
    BaseLLMProvider,
    LLMProvider,
    Message,
    GenerationConfig,
    LLMResponse,
    system_message,
    user_message,
)
from oracle.providers.llm.vllm_provider import VLLMProvider
from oracle.providers.llm.ollama_provider import OllamaProvider
from oracle.providers.llm.factory import (
    LLMProviderFactory,
    get_llm_provider,
    get_llm_provider_sync,
    set_llm_provider,
)
from oracle.providers.llm.completion import TextCompletion, parse_json_object

__all__ = [
    # Base classes
    "BaseLLMProvider",
    "LLMProvider",
    "Message",
    "GenerationConfig",
    "LLMResponse",
    # Message helpers
    "system_message",
    "user_message",
    # Providers
    "VLLMProvider",
    "OllamaProvider",
    # Factory
    "LLMProviderFactory",
    "get_llm_provider",
    "get_llm_provider_sync",
    "set_llm_provider",
    # Completion
    "TextCompletion",
    "parse_json_object",
]
