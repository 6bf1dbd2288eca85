"""
Seleção de provider por prioridade.

Percorre os providers na ordem configurada e retorna o primeiro que está
disponível e cujas capacidades atendem à necessidade declarada.
"""

import logging
from typing import Iterable, Optional

from ..config import Config, config as default_config
from .base import LLMProvider, ProviderSelector
from .ollama import OllamaProvider
from .openai_compat import OpenAICompatConfig, OpenAICompatibleProvider

logger = logging.getLogger(__name__)


class PriorityProviderSelector(ProviderSelector):
    """Primeiro provider disponível e compatível, na ordem dada."""

    def __init__(self, providers: Iterable[LLMProvider]):
        self.providers = list(providers)

    def select(self, requires_vision: bool, estimated_tokens: int) -> Optional[LLMProvider]:
        logger.debug(f"Selecionando provider (vision={requires_vision}, tokens={estimated_tokens})")
        for provider in self.providers:
            if not provider.supports(requires_vision, estimated_tokens):
                continue
            if provider.is_available():
                logger.info(f"Provider selecionado: {provider.name}")
                return provider
        logger.warning(
            f"Nenhum provider disponível (vision={requires_vision}, tokens={estimated_tokens})"
        )
        return None

    def close(self) -> None:
        for provider in self.providers:
            provider.close()


def build_default_selector(cfg: Optional[Config] = None) -> PriorityProviderSelector:
    """Ollama (local) -> vLLM (local) -> Groq (cloud, se houver API key)."""
    cfg = cfg or default_config
    providers: list[LLMProvider] = [
        OllamaProvider.from_config(cfg),
        OpenAICompatibleProvider(OpenAICompatConfig.for_vllm(cfg)),
    ]
    if cfg.groq_api_key:
        providers.append(OpenAICompatibleProvider(OpenAICompatConfig.for_groq(cfg)))
    return PriorityProviderSelector(providers)
