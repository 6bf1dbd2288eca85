"""
Contratos dos providers de IA.

- LLMProvider: adaptador concreto (vLLM, Groq, Ollama) com capacidades
- Transformation: transformação nomeada (OCR_CORRECTION, OCR_TO_JSON, ...)
- AIProviderPort: porta usada pela cascata (can_run / run por nome)
- ProviderSelector: escolhe um provider a partir da necessidade declarada
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence

from ..models import TransformationContext


class ProviderError(Exception):
    """Falha de um provider (rede, auth, timeout, saída malformada, indisponível)."""
    pass


class TransformationName(str, Enum):
    """Transformações usadas pela cascata."""
    OCR_CORRECTION = "OCR_CORRECTION"  # texto -> texto
    OCR_TO_JSON = "OCR_TO_JSON"  # texto -> payload
    JSON_CORRECTION = "JSON_CORRECTION"  # payload -> payload
    PDF_TO_JSON = "PDF_TO_JSON"  # imagens de páginas -> payload


@dataclass(frozen=True)
class ProviderCapabilities:
    """Capacidades declaradas por um provider."""
    supports_vision: bool = False
    max_context_tokens: int = 8192
    max_images_per_request: int = 5

    def satisfies(self, requires_vision: bool, estimated_tokens: int) -> bool:
        if requires_vision and not self.supports_vision:
            return False
        return estimated_tokens <= self.max_context_tokens


@dataclass(frozen=True)
class TransformationOutcome:
    """Resultado de uma chamada à porta: (output, success, error_message)."""
    output: Any = None
    success: bool = False
    error_message: Optional[str] = None

    @classmethod
    def ok(cls, output: Any) -> "TransformationOutcome":
        return cls(output=output, success=True)

    @classmethod
    def failed(cls, message: str) -> "TransformationOutcome":
        return cls(output=None, success=False, error_message=message)


class LLMProvider(ABC):
    """Provider de modelo de texto/visão."""

    name: str = "abstract"

    @property
    @abstractmethod
    def capabilities(self) -> ProviderCapabilities:
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """Health check barato; nunca levanta exceção."""
        ...

    @abstractmethod
    def complete(
        self,
        prompt: str,
        images: Sequence[str] = (),
        system: Optional[str] = None,
        temperature: float = 0.1,
        max_tokens: int = 4000,
    ) -> str:
        """
        Gera texto a partir de prompt (+ imagens PNG em base64).

        Raises:
            ProviderError: qualquer falha de transporte ou resposta
        """
        ...

    def supports(self, requires_vision: bool, estimated_tokens: int) -> bool:
        return self.capabilities.satisfies(requires_vision, estimated_tokens)

    def close(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class Transformation(ABC):
    """Transformação nomeada executada com o provider do contexto."""

    name: TransformationName
    requires_vision: bool = False

    @abstractmethod
    def run(self, data: Any, context: TransformationContext) -> Any:
        """Raises ProviderError em qualquer falha."""
        ...

    @abstractmethod
    def estimate_tokens(self, data: Any, context: TransformationContext) -> int:
        ...

    def can_run(self, context: TransformationContext) -> bool:
        provider = context.provider
        if provider is None:
            return False
        return provider.capabilities.supports_vision or not self.requires_vision


class AIProviderPort(ABC):
    """Porta de acesso às transformações IA, usada pela cascata."""

    @abstractmethod
    def can_run(self, name: TransformationName, context: TransformationContext) -> bool:
        ...

    @abstractmethod
    def run(self, name: TransformationName, data: Any, context: TransformationContext) -> TransformationOutcome:
        """Nunca levanta exceção: falhas voltam como outcome.success=False."""
        ...

    def estimate_tokens(self, name: TransformationName, data: Any, context: TransformationContext) -> int:
        return 0

    def requires_vision(self, name: TransformationName) -> bool:
        return False

    def close(self) -> None:
        """Libera recursos da porta (threads, conexões)."""


class ProviderSelector(ABC):
    """Seleciona um provider para uma necessidade (visão + tamanho estimado)."""

    @abstractmethod
    def select(self, requires_vision: bool, estimated_tokens: int) -> Optional[LLMProvider]:
        ...
