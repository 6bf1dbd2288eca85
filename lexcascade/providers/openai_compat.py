"""
Provider com API OpenAI-compatible (vLLM local, Groq).

O mesmo protocolo /chat/completions atende texto e visão: imagens de
páginas vão como content multimodal
[{"type": "image_url", ...}, {"type": "text", ...}].
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional, Sequence

import httpx

from ..config import Config, config as default_config
from ..utils.json_utils import strip_thinking_block
from .base import LLMProvider, ProviderCapabilities, ProviderError

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURACAO
# =============================================================================

@dataclass
class OpenAICompatConfig:
    """Configuração de um endpoint OpenAI-compatible."""

    name: str = "vllm"
    base_url: str = "http://localhost:8002/v1"
    api_key: str = "not-needed"  # vLLM não precisa de API key
    model: str = "Qwen/Qwen3-VL-8B-Instruct"
    vision_model: Optional[str] = None  # None = mesmo modelo para imagens
    supports_vision: bool = True
    max_context_tokens: int = 32768
    max_images_per_request: int = 5
    timeout: float = 300.0
    max_retries: int = 2
    retry_delay: float = 2.0
    top_p: float = 1.0

    @classmethod
    def for_vllm(cls, cfg: Optional[Config] = None) -> "OpenAICompatConfig":
        cfg = cfg or default_config
        return cls(
            name="vllm",
            base_url=cfg.vllm_base_url,
            model=cfg.vllm_model,
            supports_vision=cfg.vllm_vision,
            max_images_per_request=cfg.ai_max_images_per_request,
            timeout=cfg.ai_timeout_seconds,
        )

    @classmethod
    def for_groq(cls, cfg: Optional[Config] = None) -> "OpenAICompatConfig":
        cfg = cfg or default_config
        return cls(
            name="groq",
            base_url=cfg.groq_base_url,
            api_key=cfg.groq_api_key,
            model=cfg.groq_model,
            vision_model=cfg.groq_vision_model or None,
            supports_vision=bool(cfg.groq_vision_model),
            max_context_tokens=131072,
            max_images_per_request=min(cfg.ai_max_images_per_request, 5),
            timeout=cfg.ai_timeout_seconds,
        )


# =============================================================================
# PROVIDER
# =============================================================================

class OpenAICompatibleProvider(LLMProvider):
    """Cliente síncrono para /chat/completions (texto e visão)."""

    def __init__(
        self,
        config: Optional[OpenAICompatConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Args:
            config: Configuração do endpoint (default: vLLM local)
            transport: Transport httpx alternativo (testes)
        """
        self.config = config or OpenAICompatConfig()
        self.name = self.config.name
        self._transport = transport
        self._client: Optional[httpx.Client] = None
        logger.info(f"{type(self).__name__} inicializado: {self.config.base_url} (model={self.config.model})")

    @property
    def client(self) -> httpx.Client:
        """Cliente HTTP com lazy initialization."""
        if self._client is None:
            headers = {"Content-Type": "application/json"}
            if self.config.api_key:
                headers["Authorization"] = f"Bearer {self.config.api_key}"
            self._client = httpx.Client(
                base_url=self.config.base_url,
                timeout=httpx.Timeout(self.config.timeout, connect=30.0),
                headers=headers,
                transport=self._transport,
            )
        return self._client

    @property
    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(
            supports_vision=self.config.supports_vision,
            max_context_tokens=self.config.max_context_tokens,
            max_images_per_request=self.config.max_images_per_request,
        )

    def list_models(self) -> list[str]:
        """Lista modelos disponíveis no servidor."""
        response = self.client.get("/models")
        response.raise_for_status()
        data = response.json()
        return [m["id"] for m in data.get("data", [])]

    def is_available(self) -> bool:
        """Verifica se o servidor está respondendo."""
        try:
            return len(self.list_models()) > 0
        except Exception as e:
            logger.debug(f"{self.name} indisponível: {e}")
            return False

    def _build_messages(self, prompt: str, images: Sequence[str], system: Optional[str]) -> list[dict]:
        messages: list[dict] = []
        if system:
            messages.append({"role": "system", "content": system})

        if images:
            content: list[dict] = [
                {"type": "image_url", "image_url": {"url": f"data:image/png;base64,{image}"}}
                for image in images
            ]
            content.append({"type": "text", "text": prompt})
            messages.append({"role": "user", "content": content})
        else:
            messages.append({"role": "user", "content": prompt})
        return messages

    def complete(
        self,
        prompt: str,
        images: Sequence[str] = (),
        system: Optional[str] = None,
        temperature: float = 0.1,
        max_tokens: int = 4000,
    ) -> str:
        if images and not self.config.supports_vision:
            raise ProviderError(f"{self.name} não suporta imagens")
        if len(images) > self.config.max_images_per_request:
            raise ProviderError(
                f"{self.name}: {len(images)} imagens excede o limite de "
                f"{self.config.max_images_per_request} por requisição"
            )

        model = self.config.vision_model if images and self.config.vision_model else self.config.model
        payload = {
            "model": model,
            "messages": self._build_messages(prompt, images, system),
            "temperature": temperature,
            "max_tokens": max_tokens,
            "top_p": self.config.top_p,
        }

        last_error: Optional[Exception] = None
        for attempt in range(self.config.max_retries):
            try:
                start_time = time.time()

                response = self.client.post("/chat/completions", json=payload)
                response.raise_for_status()

                elapsed = time.time() - start_time
                data = response.json()
                content = data["choices"][0]["message"]["content"] or ""

                usage = data.get("usage", {})
                logger.debug(
                    f"{self.name} response: {elapsed:.2f}s, "
                    f"prompt_tokens={usage.get('prompt_tokens', '?')}, "
                    f"completion_tokens={usage.get('completion_tokens', '?')}"
                )
                return strip_thinking_block(content)

            except httpx.HTTPStatusError as e:
                last_error = e
                logger.warning(
                    f"{self.name} HTTP error (tentativa {attempt + 1}/{self.config.max_retries}): "
                    f"{e.response.status_code} - {e.response.text[:200]}"
                )
                # Erros 4xx (exceto 429) não melhoram com retry
                if e.response.status_code < 500 and e.response.status_code != 429:
                    break

            except httpx.TimeoutException as e:
                last_error = e
                logger.warning(f"{self.name} timeout (tentativa {attempt + 1}/{self.config.max_retries}): {e}")

            except httpx.HTTPError as e:
                last_error = e
                logger.warning(f"{self.name} erro de transporte (tentativa {attempt + 1}): {e}")

            except (KeyError, IndexError, TypeError, ValueError) as e:
                raise ProviderError(f"{self.name}: resposta malformada: {e}") from e

            if attempt < self.config.max_retries - 1:
                time.sleep(self.config.retry_delay * (attempt + 1))

        raise ProviderError(
            f"{self.name} falhou após {self.config.max_retries} tentativas: {last_error}"
        ) from last_error

    def close(self) -> None:
        """Fecha o cliente HTTP."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(url={self.config.base_url!r}, model={self.config.model!r})"
