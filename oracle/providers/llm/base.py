"""
LLM Provider Interface and Base Classes.

Defines the abstract interface for chat-completion backends so Ollama, vLLM
and other OpenAI-compatible servers can be swapped behind TextCompletion.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class LLMProvider(str, Enum):
    """Supported LLM provider backends."""
    VLLM = "vllm"
    OLLAMA = "ollama"
    OPENAI_COMPATIBLE = "openai-compatible"


@dataclass
class Message:
    """Chat message structure."""
    role: str  # "system", "user", "assistant"
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class GenerationConfig:
    """Configuration for text generation."""
    max_tokens: int = 1024
    temperature: float = 0.7
    top_p: float = 0.9
    stop_sequences: List[str] = field(default_factory=list)


@dataclass
class LLMResponse:
    """Response from LLM generation."""
    content: str
    model: str
    finish_reason: Optional[str] = None
    usage: Optional[Dict[str, int]] = None  # prompt_tokens, completion_tokens, total_tokens
    latency_ms: Optional[float] = None


class BaseLLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    All LLM backends must implement this interface to be swappable.
    """

    def __init__(self, model: str, **kwargs):
        self.model = model
        self.config = kwargs

    @abstractmethod
    async def generate(
        self,
        messages: List[Message],
        config: Optional[GenerationConfig] = None,
    ) -> LLMResponse:
        """
        Generate a response from the LLM.

        Args:
            messages: Chat messages, system prompt first
            config: Generation configuration (temperature, max_tokens, etc.)

        Returns:
            LLMResponse with generated content and metadata
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the LLM provider is healthy and responding."""
        pass

    async def close(self) -> None:
        """Release any held connections."""
        return None


def system_message(content: str) -> Message:
    """Create a system message."""
    return Message(role="system", content=content)


def user_message(content: str) -> Message:
    """Create a user message."""
    return Message(role="user", content=content)
