"""
Modelos da cascata de extração.

Todos os objetos de valor são imutáveis: uma correção sempre produz uma
nova instância, nunca altera a anterior. Isso mantém a saída de cada
estágio inspecionável de forma independente.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DocumentType(str, Enum):
    """Tipo de texto normativo."""
    LOI = "loi"
    DECRET = "decret"


class Provenance(str, Enum):
    """Estágio da cascata que produziu um candidato."""
    BASELINE_OCR = "baseline-ocr"
    AI_CORRECTED_OCR = "ai-corrected-ocr"
    AI_JSON_CORRECTED = "ai-json-corrected"
    AI_FULL = "ai-full"


class Document(BaseModel):
    """Identidade externa de um documento (entrada imutável da cascata)."""

    model_config = ConfigDict(frozen=True)

    document_id: str = Field(..., description="ID do documento (ex: loi-2021-15)")
    type: DocumentType = Field(..., description="loi ou decret")
    year: int = Field(..., ge=1900, le=2100)
    number: int = Field(..., ge=1, description="Número sequencial no ano")

    @classmethod
    def from_id(cls, document_id: str) -> "Document":
        """Constrói a partir de um ID no formato <tipo>-<ano>-<numero>."""
        parts = document_id.split("-")
        if len(parts) != 3:
            raise ValueError(f"ID de documento inválido: {document_id}")
        return cls(
            document_id=document_id,
            type=DocumentType(parts[0].lower()),
            year=int(parts[1]),
            number=int(parts[2]),
        )


class Article(BaseModel):
    """Artigo numerado extraído do corpo do texto."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=1)
    content: str


class Signatory(BaseModel):
    """Signatário, na ordem de aparição no texto (1-based)."""

    model_config = ConfigDict(frozen=True)

    name: str
    role: str
    order: int = Field(1, ge=1)


class DocumentMetadata(BaseModel):
    """Metadados de promulgação. Campos ausentes são um estado válido."""

    model_config = ConfigDict(frozen=True)

    title: Optional[str] = None
    promulgation_date: Optional[str] = None
    promulgation_city: Optional[str] = None
    signatories: tuple[Signatory, ...] = ()


class StructuredResult(BaseModel):
    """
    Candidato produzido por um estágio da cascata.

    - payload: documento estruturado serializável (ver extraction.payload)
    - confidence: score do estágio que o produziu (OCR confidence no baseline)
    - quality: score de completude do payload ("JSON quality")
    - source: tag de proveniência
    """

    model_config = ConfigDict(frozen=True)

    payload: dict[str, Any]
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    quality: float = Field(0.0, ge=0.0, le=1.0)
    source: str

    def with_quality(self, quality: float) -> "StructuredResult":
        return self.model_copy(update={"quality": quality})


class TransformationConfig(BaseModel):
    """Parâmetros de geração e chunking para os estágios IA."""

    model_config = ConfigDict(frozen=True)

    temperature: float = 0.1
    max_tokens: int = 4000
    chunk_size: int = Field(2000, gt=0)
    chunk_overlap: int = Field(200, ge=0)
    timeout_seconds: float = Field(300.0, gt=0)
    max_images_per_request: int = Field(5, gt=0)

    @model_validator(mode="after")
    def _check_overlap(self) -> "TransformationConfig":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap deve ser menor que chunk_size")
        return self


@dataclass(frozen=True)
class TransformationContext:
    """Contexto de uma invocação da cascata (construído uma vez, adaptado por estágio)."""
    document: Document
    config: TransformationConfig
    provider: Any = None  # LLMProvider selecionado para o estágio corrente
    stage: str = ""

    def for_stage(self, stage: str, provider: Any = None) -> "TransformationContext":
        return replace(self, stage=stage, provider=provider)
