"""
Extração programática (sem IA): texto -> candidato estruturado.

Etapas:
1. Aplica a tabela de correções OCR
2. Extrai artigos (ArticleSequencer) e metadados
3. Calcula a OCR confidence e a qualidade do payload
4. Registra as palavras não reconhecidas (efeito colateral, após o score)
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..models import Document, Provenance, StructuredResult
from ..quality.confidence import ConfidenceScorer, OcrConfidenceReport
from ..quality.dictionary import UnrecognizedWordsRegistry
from .article_sequencer import ArticleSequencer, ExtractionError
from .corrections import CorrectionTable
from .metadata_extractor import MetadataExtractor
from .payload import build_payload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractionOutcome:
    """Resultado de uma extração programática."""
    text: str
    candidate: Optional[StructuredResult] = None
    confidence: float = 0.0
    report: Optional[OcrConfidenceReport] = None
    error: Optional[str] = None


class BaselineExtractor:
    """Extração regex + score, reutilizada sobre o texto corrigido por IA."""

    def __init__(
        self,
        scorer: Optional[ConfidenceScorer] = None,
        corrections: Optional[CorrectionTable] = None,
        metadata_extractor: Optional[MetadataExtractor] = None,
        registry: Optional[UnrecognizedWordsRegistry] = None,
    ):
        self.scorer = scorer or ConfidenceScorer()
        self.corrections = corrections if corrections is not None else CorrectionTable()
        self.metadata_extractor = metadata_extractor or MetadataExtractor()
        self.registry = registry

    @property
    def sequencer(self) -> ArticleSequencer:
        return self.scorer.sequencer

    def extract(
        self,
        document: Document,
        text: str,
        source: Provenance = Provenance.BASELINE_OCR,
    ) -> ExtractionOutcome:
        """
        Nunca levanta ExtractionError: ausência de artigos vira um
        outcome sem candidato (confidence 0) com a mensagem de erro.
        """
        doc_id = document.document_id
        corrected = self.corrections.apply(text or "")

        try:
            articles = self.sequencer.extract(corrected)
        except ExtractionError as e:
            logger.warning(f"[{doc_id}] Extração {source.value} sem artigos: {e}")
            return ExtractionOutcome(text=corrected, error=str(e))

        metadata = self.metadata_extractor.extract(corrected)
        report = self.scorer.analyze_ocr(corrected, articles)

        payload = build_payload(document, articles, metadata, report.confidence, source.value)
        candidate = StructuredResult(
            payload=payload,
            confidence=report.confidence,
            quality=self.scorer.json_quality(payload),
            source=source.value,
        )

        self._record_unrecognized(doc_id, report)
        logger.info(
            f"[{doc_id}] Extração {source.value}: {len(articles)} artigos, "
            f"confidence={candidate.confidence:.3f}, quality={candidate.quality:.3f}"
        )
        return ExtractionOutcome(
            text=corrected,
            candidate=candidate,
            confidence=report.confidence,
            report=report,
        )

    def _record_unrecognized(self, doc_id: str, report: OcrConfidenceReport) -> None:
        stats = report.word_stats
        if not stats.unrecognized:
            return
        top = ", ".join(f"{word}({count})" for word, count in stats.top(10))
        logger.debug(
            f"[{doc_id}] {len(stats.unique_unrecognized)} palavras não reconhecidas "
            f"(taxa {stats.rate:.1%}). Top 10: {top}"
        )
        if self.registry is not None:
            self.registry.record(stats.unique_unrecognized, doc_id)
