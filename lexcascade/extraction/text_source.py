"""
Escolha do texto de entrada da cascata: camada nativa do PDF ou OCR.

1. Tenta o texto nativo (rápido)
2. Valida com a TextQualityHeuristic + gate da primeira página
3. Se reprovado, chama o motor de OCR externo
4. Se o OCR também ficar abaixo do limiar, usa o melhor dos dois
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..quality.text_quality import NativeTextDecision, TextQualityHeuristic
from .pdf_source import PdfPageSource

logger = logging.getLogger(__name__)

# Motor de OCR externo: recebe a fonte de páginas e devolve o texto por página
OcrEngine = Callable[[PdfPageSource], list[str]]


class ExtractionMethod(str, Enum):
    """Método usado para obter o texto do PDF."""
    NATIVE_TEXT = "native_text"
    OCR = "ocr"


@dataclass(frozen=True)
class ResolvedText:
    """Texto escolhido para a cascata e como foi obtido."""
    text: str
    method: ExtractionMethod
    score: float
    native_decision: NativeTextDecision


class TextSourceResolver:
    """Decide entre texto nativo e OCR para um PDF."""

    def __init__(
        self,
        heuristic: Optional[TextQualityHeuristic] = None,
        ocr_engine: Optional[OcrEngine] = None,
    ):
        self.heuristic = heuristic or TextQualityHeuristic()
        self.ocr_engine = ocr_engine

    def resolve(self, source: PdfPageSource, document_id: str = "") -> ResolvedText:
        pages = source.page_texts()
        decision = self.heuristic.decide(pages)
        native_text = "\n".join(pages)

        if decision.use_native:
            logger.info(f"[{document_id}] Texto nativo aceito (score={decision.score:.2f})")
            return ResolvedText(native_text, ExtractionMethod.NATIVE_TEXT, decision.score, decision)

        if self.ocr_engine is None:
            logger.warning(
                f"[{document_id}] Texto nativo reprovado ({decision.reason}) e nenhum motor OCR "
                f"configurado; seguindo com o texto nativo"
            )
            return ResolvedText(native_text, ExtractionMethod.NATIVE_TEXT, decision.score, decision)

        logger.info(f"[{document_id}] Texto nativo reprovado ({decision.reason}). Executando OCR...")
        ocr_text = "\n".join(self.ocr_engine(source))
        ocr_score = self.heuristic.score(ocr_text)
        logger.info(f"[{document_id}] Qualidade após OCR: score={ocr_score:.2f}")

        if ocr_score < self.heuristic.threshold and decision.score > ocr_score:
            logger.warning(
                f"[{document_id}] OCR abaixo do limiar e pior que o nativo "
                f"({ocr_score:.2f} < {decision.score:.2f}); usando texto nativo"
            )
            return ResolvedText(native_text, ExtractionMethod.NATIVE_TEXT, decision.score, decision)

        return ResolvedText(ocr_text, ExtractionMethod.OCR, ocr_score, decision)
