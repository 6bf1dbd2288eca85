"""
Providers - Porta de IA, transformações e clientes LLM.

Todos os clientes falam o protocolo OpenAI-compatible (vLLM, Groq, Ollama /v1).
"""

from .base import (
    AIProviderPort,
    LLMProvider,
    ProviderCapabilities,
    ProviderError,
    ProviderSelector,
    Transformation,
    TransformationName,
    TransformationOutcome,
)
from .ollama import OllamaProvider
from .openai_compat import OpenAICompatConfig, OpenAICompatibleProvider
from .registry import TransformationPort, TransformationRegistry
from .selector import PriorityProviderSelector, build_default_selector

__all__ = [
    "AIProviderPort",
    "LLMProvider",
    "OllamaProvider",
    "OpenAICompatConfig",
    "OpenAICompatibleProvider",
    "PriorityProviderSelector",
    "ProviderCapabilities",
    "ProviderError",
    "ProviderSelector",
    "Transformation",
    "TransformationName",
    "TransformationOutcome",
    "TransformationPort",
    "TransformationRegistry",
    "build_default_selector",
]
