"""
Heurística de qualidade de texto extraído.

Decide se a camada de texto nativa de um PDF é confiável ou se é preciso
recorrer ao OCR por imagem. Funções puras, sem efeitos colaterais.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NativeTextDecision:
    """Resultado da decisão texto nativo vs OCR."""
    use_native: bool
    score: float
    first_page_chars: int
    reason: str


class TextQualityHeuristic:
    """Score de "legibilidade" do texto: caracteres válidos e espaçamento."""

    VALID_WEIGHT = 0.7
    SPACE_WEIGHT = 1.5
    SPACE_RATIO_CAP = 0.2

    def __init__(self, threshold: float = 0.5, first_page_min_chars: int = 50):
        """
        Args:
            threshold: Score mínimo para aceitar o texto nativo
            first_page_min_chars: Mínimo de caracteres (após strip) na primeira página
        """
        self.threshold = threshold
        self.first_page_min_chars = first_page_min_chars

    def score(self, text: Optional[str]) -> float:
        """validRatio*0.7 + min(spaceRatio, 0.2)*1.5; texto vazio = 0."""
        if not text or not text.strip():
            return 0.0

        total = len(text)
        valid = sum(1 for c in text if c.isalnum())
        spaces = sum(1 for c in text if c.isspace())

        valid_ratio = valid / total
        space_ratio = spaces / total
        score = valid_ratio * self.VALID_WEIGHT + min(space_ratio, self.SPACE_RATIO_CAP) * self.SPACE_WEIGHT
        return min(max(score, 0.0), 1.0)

    def decide(self, pages: Sequence[str]) -> NativeTextDecision:
        """
        Decide se o texto nativo (por página) pode ser usado.

        Ambas as condições são necessárias:
        - primeira página com mais de first_page_min_chars caracteres
        - score do texto completo >= threshold
        """
        first_page_chars = len(pages[0].strip()) if pages else 0
        full_text = "\n".join(pages)
        score = self.score(full_text)

        if first_page_chars <= self.first_page_min_chars:
            reason = f"primeira página com {first_page_chars} caracteres"
            use_native = False
        elif score < self.threshold:
            reason = f"score {score:.2f} < {self.threshold:.2f}"
            use_native = False
        else:
            reason = "texto nativo aceito"
            use_native = True

        logger.debug(f"Texto nativo: use_native={use_native} ({reason})")
        return NativeTextDecision(
            use_native=use_native,
            score=score,
            first_page_chars=first_page_chars,
            reason=reason,
        )
