"""
Chunking para os estágios IA.

Divide textos grandes em janelas sobrepostas e listas de páginas em lotes
contíguos, respeitando o limite de entrada de um provider. Nunca é usado
no caminho baseline (sem IA).
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Sequence

logger = logging.getLogger(__name__)

# Estimativa simples: 1 token ~ 4 caracteres
CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    return len(text) // CHARS_PER_TOKEN


@dataclass(frozen=True)
class TextChunk:
    """Janela [start, end) do texto original."""
    text: str
    start: int
    end: int
    index: int
    total: int


@dataclass(frozen=True)
class ImageBatch:
    """Lote contíguo de páginas (first_page/last_page 1-indexed, inclusivos)."""
    images: tuple[str, ...]
    index: int
    total: int
    first_page: int
    last_page: int


class Chunker:
    """Janelas deslizantes de texto e lotes de imagens."""

    @staticmethod
    def needs_chunking(text: str, size: int) -> bool:
        return len(text) > size

    @staticmethod
    def chunk_text(text: str, size: int, overlap: int = 0) -> list[TextChunk]:
        """
        Janela de tamanho `size` avançando `size - overlap` por passo.

        O último chunk sempre termina em len(text); a união dos intervalos
        cobre [0, len(text)) sem lacunas.

        Raises:
            ValueError: size <= 0 ou overlap fora de [0, size)
        """
        if size <= 0:
            raise ValueError(f"size deve ser positivo: {size}")
        if overlap < 0 or overlap >= size:
            raise ValueError(f"overlap deve estar em [0, {size}): {overlap}")

        length = len(text)
        if length <= size:
            return [TextChunk(text=text, start=0, end=length, index=0, total=1)]

        step = size - overlap
        bounds: list[tuple[int, int]] = []
        start = 0
        while True:
            end = min(start + size, length)
            bounds.append((start, end))
            if end == length:
                break
            start += step

        total = len(bounds)
        logger.debug(f"Texto de {length} caracteres dividido em {total} chunks (size={size}, overlap={overlap})")
        return [
            TextChunk(text=text[s:e], start=s, end=e, index=i, total=total)
            for i, (s, e) in enumerate(bounds)
        ]

    @staticmethod
    def combine_text(parts: Sequence[str], overlap: int = 0) -> str:
        """
        Recombina chunks processados, removendo a região sobreposta.

        Procura o maior sufixo do texto acumulado (ao menos overlap//2
        caracteres) que seja prefixo do próximo chunk; sem correspondência
        (o modelo reescreveu a sobreposição), descarta ~overlap caracteres
        do início do próximo, alinhando no primeiro espaço em branco.
        """
        if not parts:
            return ""
        combined = parts[0]
        for part in parts[1:]:
            if overlap <= 0:
                combined = combined + part
                continue
            combined = combined + Chunker._drop_overlap(combined, part, overlap)
        return combined

    @staticmethod
    def _drop_overlap(previous: str, part: str, overlap: int) -> str:
        max_k = min(len(previous), len(part), overlap * 2)
        # coincidências curtas não provam que a sobreposição foi preservada
        min_k = max(1, overlap // 2)
        for k in range(max_k, min_k - 1, -1):
            if previous.endswith(part[:k]):
                return part[k:]
        if len(part) <= overlap:
            return ""
        cut = overlap
        while cut < len(part) and not part[cut].isspace():
            cut += 1
        return part[cut:]

    @staticmethod
    def chunk_images(images: Sequence[str], max_per_batch: int) -> list[ImageBatch]:
        """Partição ordenada em lotes de no máximo max_per_batch páginas."""
        if max_per_batch <= 0:
            raise ValueError(f"max_per_batch deve ser positivo: {max_per_batch}")
        if not images:
            return []

        starts = list(range(0, len(images), max_per_batch))
        total = len(starts)
        return [
            ImageBatch(
                images=tuple(images[s:s + max_per_batch]),
                index=i,
                total=total,
                first_page=s + 1,
                last_page=min(s + max_per_batch, len(images)),
            )
            for i, s in enumerate(starts)
        ]

    @staticmethod
    def chunk_articles(payload: dict[str, Any], max_chars: int) -> list[dict[str, Any]]:
        """
        Divide o array de artigos de um payload em lotes.

        Cada lote carrega os mesmos campos de metadados e um subconjunto
        contíguo de artigos cujo JSON serializado cabe em max_chars (um
        artigo maior que o limite forma um lote sozinho).
        """
        articles = payload.get("articles") or []
        base = {k: v for k, v in payload.items() if k != "articles"}
        if len(json.dumps(payload, ensure_ascii=False)) <= max_chars or len(articles) <= 1:
            return [dict(base, articles=list(articles))]

        base_size = len(json.dumps(dict(base, articles=[]), ensure_ascii=False))
        batches: list[list[Any]] = []
        current: list[Any] = []
        current_size = base_size
        for article in articles:
            size = len(json.dumps(article, ensure_ascii=False)) + 2
            if current and current_size + size > max_chars:
                batches.append(current)
                current, current_size = [], base_size
            current.append(article)
            current_size += size
        if current:
            batches.append(current)

        logger.debug(f"{len(articles)} artigos divididos em {len(batches)} lotes")
        return [dict(base, articles=batch) for batch in batches]

    @staticmethod
    def combine_articles(batches: Sequence[dict[str, Any]]) -> dict[str, Any]:
        """Metadados do primeiro lote + artigos concatenados na ordem."""
        if not batches:
            return {}
        merged = {k: v for k, v in batches[0].items() if k != "articles"}
        for batch in batches[1:]:
            for key, value in batch.items():
                if key != "articles" and not merged.get(key) and value:
                    merged[key] = value
        merged["articles"] = [a for batch in batches for a in (batch.get("articles") or [])]
        return merged
