"""
Transformações IA nomeadas.

Cada transformação usa o provider já selecionado no contexto, divide a
entrada em chunks quando ela excede o tamanho configurado e recombina as
saídas. Qualquer falha é levantada como ProviderError.
"""

import json
import logging
from typing import Any, Sequence

from ..chunking.chunker import Chunker, estimate_tokens
from ..models import TransformationContext
from ..utils.json_utils import extract_json
from .base import ProviderError, Transformation, TransformationName
from .prompts import (
    JSON_CORRECTION_PROMPT,
    OCR_CORRECTION_PROMPT,
    OCR_TO_JSON_PROMPT,
    PDF_TO_JSON_PROMPT,
    SYSTEM_PROMPT,
)

logger = logging.getLogger(__name__)


def _complete(context: TransformationContext, prompt: str, images: Sequence[str] = ()) -> str:
    provider = context.provider
    if provider is None:
        raise ProviderError("Nenhum provider no contexto")
    output = provider.complete(
        prompt,
        images=images,
        system=SYSTEM_PROMPT,
        temperature=context.config.temperature,
        max_tokens=context.config.max_tokens,
    )
    if not output or not output.strip():
        raise ProviderError(f"{provider.name}: resposta vazia")
    return output


def _complete_json(context: TransformationContext, prompt: str, images: Sequence[str] = ()) -> dict:
    output = _complete(context, prompt, images)
    try:
        return extract_json(output)
    except ValueError as e:
        raise ProviderError(str(e)) from e


class OcrCorrectionTransformation(Transformation):
    """Texto OCR bruto -> texto OCR corrigido."""

    name = TransformationName.OCR_CORRECTION

    def run(self, data: str, context: TransformationContext) -> str:
        doc_id = context.document.document_id
        chunks = Chunker.chunk_text(data, context.config.chunk_size, context.config.chunk_overlap)
        logger.info(f"[{doc_id}] Correção OCR via IA: {len(data)} caracteres, {len(chunks)} chunks")

        corrected = [
            _complete(context, OCR_CORRECTION_PROMPT.format(index=c.index + 1, total=c.total, text=c.text))
            for c in chunks
        ]
        result = Chunker.combine_text(corrected, context.config.chunk_overlap)
        logger.info(f"[{doc_id}] Correção OCR concluída: {len(data)} -> {len(result)} caracteres")
        return result

    def estimate_tokens(self, data: str, context: TransformationContext) -> int:
        return estimate_tokens(OCR_CORRECTION_PROMPT) + estimate_tokens(data[: context.config.chunk_size])


class OcrToJsonTransformation(Transformation):
    """Texto OCR -> payload estruturado."""

    name = TransformationName.OCR_TO_JSON

    def run(self, data: str, context: TransformationContext) -> dict:
        chunks = Chunker.chunk_text(data, context.config.chunk_size, context.config.chunk_overlap)
        logger.info(f"[{context.document.document_id}] OCR -> JSON via IA ({len(chunks)} chunks)")
        parts = [_complete_json(context, OCR_TO_JSON_PROMPT.format(text=c.text)) for c in chunks]
        return _dedupe_articles(Chunker.combine_articles(parts))

    def estimate_tokens(self, data: str, context: TransformationContext) -> int:
        return estimate_tokens(OCR_TO_JSON_PROMPT) + estimate_tokens(data[: context.config.chunk_size])


class JsonCorrectionTransformation(Transformation):
    """Payload -> payload corrigido (sem reprocessar o texto bruto)."""

    name = TransformationName.JSON_CORRECTION

    def run(self, data: dict, context: TransformationContext) -> dict:
        batches = Chunker.chunk_articles(data, context.config.chunk_size)
        logger.info(f"[{context.document.document_id}] Correção JSON via IA ({len(batches)} lotes)")
        total = len(batches)
        parts = [
            _complete_json(
                context,
                JSON_CORRECTION_PROMPT.format(
                    index=i + 1, total=total, payload=json.dumps(batch, ensure_ascii=False, indent=2)
                ),
            )
            for i, batch in enumerate(batches)
        ]
        return Chunker.combine_articles(parts)

    def estimate_tokens(self, data: dict, context: TransformationContext) -> int:
        size = min(len(json.dumps(data, ensure_ascii=False)), context.config.chunk_size)
        return estimate_tokens(JSON_CORRECTION_PROMPT) + size // 4


class PdfToJsonTransformation(Transformation):
    """Imagens das páginas (PNG base64) -> payload estruturado."""

    name = TransformationName.PDF_TO_JSON
    requires_vision = True

    def run(self, data: Sequence[str], context: TransformationContext) -> dict:
        if not data:
            raise ProviderError("Nenhuma imagem de página disponível")
        per_batch = min(
            context.config.max_images_per_request,
            context.provider.capabilities.max_images_per_request,
        )
        batches = Chunker.chunk_images(data, per_batch)
        logger.info(
            f"[{context.document.document_id}] PDF -> JSON via IA: "
            f"{len(data)} páginas em {len(batches)} lotes"
        )
        parts = [
            _complete_json(
                context,
                PDF_TO_JSON_PROMPT.format(
                    first_page=b.first_page, last_page=b.last_page, page_count=len(data)
                ),
                images=b.images,
            )
            for b in batches
        ]
        return _dedupe_articles(Chunker.combine_articles(parts))

    def estimate_tokens(self, data: Sequence[str], context: TransformationContext) -> int:
        # Estimativa grosseira de tokens por imagem de página
        pages = min(len(data), context.config.max_images_per_request)
        return estimate_tokens(PDF_TO_JSON_PROMPT) + pages * 1500


def _dedupe_articles(payload: dict[str, Any]) -> dict[str, Any]:
    """
    Remove artigos repetidos vindos da sobreposição entre chunks/lotes,
    mantendo a versão mais longa de cada índice na posição da primeira.
    """
    articles = payload.get("articles")
    if not isinstance(articles, list):
        return payload
    best: dict[Any, dict] = {}
    order: list[Any] = []
    for article in articles:
        if not isinstance(article, dict):
            continue
        key = article.get("index")
        if key not in best:
            order.append(key)
            best[key] = article
        elif len(str(article.get("content", ""))) > len(str(best[key].get("content", ""))):
            best[key] = article
    return dict(payload, articles=[best[k] for k in order])


def default_transformations() -> list[Transformation]:
    return [
        OcrCorrectionTransformation(),
        OcrToJsonTransformation(),
        JsonCorrectionTransformation(),
        PdfToJsonTransformation(),
    ]
