"""
Extração de artigos numerados e score da sequência de índices.

Valida:
1. Lacunas (índices ausentes no intervalo [min, max])
2. Duplicatas (índice repetido)
3. Inversões (índice menor que o anterior, na ordem do documento)
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from ..models import Article

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """Nenhuma âncora de artigo encontrada no texto."""
    pass


@dataclass
class SequenceReport:
    """Resultado da análise da sequência de índices."""
    indices: list[int] = field(default_factory=list)
    missing: list[int] = field(default_factory=list)
    duplicates: list[int] = field(default_factory=list)
    inversions: int = 0
    score: float = 0.0

    @property
    def gaps(self) -> int:
        return len(self.missing)

    @property
    def is_sequential(self) -> bool:
        """True se index[i] == i+1 para todo i."""
        return self.indices == list(range(1, len(self.indices) + 1))

    def to_dict(self) -> dict:
        return {
            "indices": self.indices,
            "missing": self.missing,
            "duplicates": self.duplicates,
            "gaps": self.gaps,
            "inversions": self.inversions,
            "score": self.score,
        }


class ArticleSequencer:
    """Extrai artigos de um texto e pontua a sequência de índices."""

    # "Article 1er", "Article premier", "ARTICLE 12", "Art. 3", "Art 4"
    ARTICLE_START = re.compile(
        r"^\s*(?:ARTICLE|Art\.?)\s*(?:(1\s*er\b|1ᵉʳ)|(premier)\b|(\d+))",
        re.IGNORECASE,
    )

    GAP_PENALTY = 0.15
    DUPLICATE_PENALTY = 0.25
    INVERSION_PENALTY = 0.30
    MIN_CONTENT_LENGTH = 10

    def __init__(self, max_forward_jump: int = 5):
        """
        Args:
            max_forward_jump: Salto máximo aceito entre dois artigos consecutivos.
                Marcadores fora da janela (para trás ou longe demais) são tratados
                como citações e anexados ao artigo corrente.
        """
        self.max_forward_jump = max_forward_jump

    def article_number(self, line: str) -> Optional[int]:
        """Número do artigo se a linha começa com um marcador, senão None."""
        match = self.ARTICLE_START.match(line)
        if not match:
            return None
        if match.group(1) or match.group(2):
            return 1
        return int(match.group(3))

    def extract(self, text: Optional[str]) -> list[Article]:
        """
        Extrai os artigos na ordem do documento.

        O primeiro marcador aceita qualquer número; os seguintes precisam
        avançar (last < n <= last + max_forward_jump). O índice do artigo é
        o número detectado, para que lacunas fiquem visíveis ao score.

        Raises:
            ExtractionError: texto vazio ou sem nenhum marcador de artigo
        """
        if not text or not text.strip():
            raise ExtractionError("Texto vazio: nenhum artigo a extrair")

        articles: list[Article] = []
        current_lines: list[str] = []
        current_index: Optional[int] = None
        markers_found = 0

        for line in text.split("\n"):
            number = self.article_number(line)
            if number is not None:
                markers_found += 1

            if number is not None and self._accepts(current_index, number):
                if current_index is not None:
                    self._save(articles, current_index, current_lines)
                current_index = number
                current_lines = [line]
            elif current_index is not None:
                if number is not None:
                    logger.debug(f"Artigo {number} citado (incluído no artigo {current_index})")
                current_lines.append(line)

        if current_index is not None:
            self._save(articles, current_index, current_lines)

        if markers_found == 0:
            raise ExtractionError(
                f"Nenhum marcador de artigo encontrado (texto com {len(text)} caracteres)"
            )
        if not articles:
            raise ExtractionError(
                f"{markers_found} marcadores encontrados, mas nenhum artigo com conteúdo"
            )

        logger.info(f"{len(articles)} artigos extraídos via regex")
        return articles

    def _accepts(self, current_index: Optional[int], number: int) -> bool:
        if number < 1:
            return False
        if current_index is None:
            return True
        return current_index < number <= current_index + self.max_forward_jump

    def _save(self, articles: list[Article], index: int, lines: list[str]) -> None:
        content = "\n".join(lines).strip()
        if len(content) > self.MIN_CONTENT_LENGTH:
            articles.append(Article(index=index, content=content))

    def analyze(self, articles: Iterable[Union[Article, int]]) -> SequenceReport:
        """Lacunas, duplicatas, inversões e score da sequência."""
        indices = [a.index if isinstance(a, Article) else int(a) for a in articles]
        report = SequenceReport(indices=indices)

        if not indices:
            return report

        if len(indices) == 1:
            report.score = 1.0 if indices[0] == 1 else 0.8
            return report

        seen: set[int] = set()
        for idx in indices:
            if idx in seen:
                report.duplicates.append(idx)
            seen.add(idx)

        report.missing = [i for i in range(min(indices), max(indices) + 1) if i not in seen]
        report.inversions = sum(1 for prev, cur in zip(indices, indices[1:]) if cur < prev)

        penalty = (
            report.gaps * self.GAP_PENALTY
            + len(report.duplicates) * self.DUPLICATE_PENALTY
            + report.inversions * self.INVERSION_PENALTY
        )
        report.score = max(0.0, 1.0 - penalty)

        if penalty > 0:
            logger.debug(
                f"Sequência: {len(indices)} artigos, {report.gaps} lacunas, "
                f"{len(report.duplicates)} duplicatas, {report.inversions} inversões "
                f"-> score={report.score:.2f}"
            )
        return report

    def score_sequence(self, articles: Iterable[Union[Article, int]]) -> float:
        """Score de 0.0 (sequência ruim) a 1.0 (sequência perfeita)."""
        return self.analyze(articles).score
