"""
Provider Ollama (local).

Ollama expõe o mesmo protocolo OpenAI-compatible em /v1; a disponibilidade
é verificada em /api/tags, exigindo que o modelo configurado esteja baixado.
"""

import logging
from typing import Optional

import httpx

from ..config import Config, config as default_config
from .openai_compat import OpenAICompatConfig, OpenAICompatibleProvider

logger = logging.getLogger(__name__)


class OllamaProvider(OpenAICompatibleProvider):
    """
    Uso:
        provider = OllamaProvider.from_config()
        text = provider.complete("Corrija: ...")
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "qwen2.5vl:7b",
        supports_vision: bool = True,
        timeout: float = 300.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.root_url = base_url.rstrip("/")
        compat = OpenAICompatConfig(
            name="ollama",
            base_url=f"{self.root_url}/v1",
            model=model,
            supports_vision=supports_vision,
            max_context_tokens=8192,
            max_images_per_request=5,
            timeout=timeout,
            max_retries=1,
        )
        super().__init__(config=compat, transport=transport)

    @classmethod
    def from_config(cls, cfg: Optional[Config] = None) -> "OllamaProvider":
        cfg = cfg or default_config
        return cls(
            base_url=cfg.ollama_base_url,
            model=cfg.ollama_model,
            timeout=cfg.ai_timeout_seconds,
        )

    def list_models(self) -> list[str]:
        response = self.client.get(f"{self.root_url}/api/tags")
        response.raise_for_status()
        return [m["name"] for m in response.json().get("models", [])]

    def is_available(self) -> bool:
        try:
            models = self.list_models()
        except Exception as e:
            logger.debug(f"Ollama indisponível: {e}")
            return False
        if self.config.model not in models:
            logger.debug(f"Ollama sem o modelo {self.config.model} (disponíveis: {models})")
            return False
        return True
