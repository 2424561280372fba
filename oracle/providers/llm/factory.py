"""
LLM Provider Factory.

Creates the configured LLM provider, with optional failover to a second
backend when the primary does not pass its health check.
"""
import logging
from typing import Optional

from oracle.core.config import get_settings, load_model_config
from oracle.providers.llm.base import BaseLLMProvider, LLMProvider
from oracle.providers.llm.ollama_provider import OllamaProvider
from oracle.providers.llm.vllm_provider import VLLMProvider

logger = logging.getLogger(__name__)


class LLMProviderFactory:
    """
    Factory for creating LLM provider instances from configuration.
    """

    @staticmethod
    def create(
        provider_type: Optional[str] = None,
        model: Optional[str] = None,
        **kwargs
    ) -> BaseLLMProvider:
        """
        Create an LLM provider instance.

        Args:
            provider_type: vllm, ollama or openai-compatible. If None, reads from config.
            model: Model name. If None, reads from config.
            **kwargs: Provider-specific arguments (api_url, api_key, timeout).

        Raises:
            ValueError: for an unsupported provider type
        """
        settings = get_settings()
        llm_config = load_model_config().get("providers", {}).get("llm", {})

        provider_type = provider_type or llm_config.get("provider", LLMProvider.OLLAMA.value)
        model = model or llm_config.get("model", "qwen2.5:3b")

        logger.info(f"Creating LLM provider: {provider_type} with model: {model}")

        if provider_type in (LLMProvider.VLLM.value, LLMProvider.OPENAI_COMPATIBLE.value):
            return VLLMProvider(
                model=model,
                api_url=kwargs.pop("api_url", settings.vllm_api_url),
                api_key=kwargs.pop("api_key", settings.vllm_api_key),
                **kwargs
            )

        if provider_type == LLMProvider.OLLAMA.value:
            return OllamaProvider(
                model=model,
                api_url=kwargs.pop("api_url", settings.ollama_api_url),
                **kwargs
            )

        raise ValueError(f"Unsupported LLM provider: {provider_type}")

    @staticmethod
    async def create_with_fallback(
        primary_provider: Optional[str] = None,
        fallback_provider: Optional[str] = None,
    ) -> BaseLLMProvider:
        """
        Create the primary provider, falling back to a secondary one if the
        primary fails its health check.

        Raises:
            RuntimeError: if neither provider is available
        """
        try:
            provider = LLMProviderFactory.create(primary_provider)
            if await provider.health_check():
                return provider
            logger.warning(f"Primary provider {primary_provider or 'default'} health check failed")
            await provider.close()
        except ValueError as e:
            logger.warning(f"Failed to create primary provider: {e}")

        llm_config = load_model_config().get("providers", {}).get("llm", {})
        fallback_provider = fallback_provider or llm_config.get("fallback_provider", LLMProvider.OLLAMA.value)
        logger.info(f"Falling back to {fallback_provider}")

        provider = LLMProviderFactory.create(fallback_provider)
        if await provider.health_check():
            return provider
        await provider.close()
        raise RuntimeError(f"No LLM provider available (fallback {fallback_provider} is down)")


# Global provider instance (lazy loaded)
_llm_provider: Optional[BaseLLMProvider] = None


async def get_llm_provider() -> BaseLLMProvider:
    """Get or create the global provider, health-checked with fallback."""
    global _llm_provider
    if _llm_provider is None:
        _llm_provider = await LLMProviderFactory.create_with_fallback()
    return _llm_provider


def get_llm_provider_sync() -> BaseLLMProvider:
    """
    Get the global provider without a health check.

    Use this when you need a provider but can't await.
    """
    global _llm_provider
    if _llm_provider is None:
        _llm_provider = LLMProviderFactory.create()
    return _llm_provider


def set_llm_provider(provider: Optional[BaseLLMProvider]) -> None:
    """Replace the global provider (used by tests)."""
    global _llm_provider
    _llm_provider = provider
