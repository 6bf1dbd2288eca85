"""
Scores de confiança da cascata.

1. OCR confidence: quão confiável é a extração feita a partir do texto
   (artigos, sequência, tamanho, dicionário, termos jurídicos).
2. JSON quality: completude de um payload candidato, independente do
   estágio que o produziu, para que estágios sejam comparáveis.

Ambos são determinísticos e não alteram suas entradas.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Union

from ..extraction.article_sequencer import ArticleSequencer
from ..extraction.payload import ARTICLES_KEY, METADATA_KEY, SIGNATORIES_KEY, parse_articles
from ..models import Article
from .dictionary import WordDictionary, WordStats, unrecognized_penalty
from .structural_matcher import StructuralMatcher

logger = logging.getLogger(__name__)


# =============================================================================
# RELATÓRIOS
# =============================================================================

@dataclass
class OcrConfidenceReport:
    """Componentes do score de OCR confidence."""
    article_count_score: float = 0.0
    sequence_score: float = 0.0
    text_length_score: float = 0.0
    dictionary_score: float = 0.0
    legal_term_score: float = 0.0
    structure_score: float = 0.0
    word_stats: WordStats = field(default_factory=WordStats)
    confidence: float = 0.0

    def to_dict(self) -> dict:
        return {
            "article_count_score": round(self.article_count_score, 4),
            "sequence_score": round(self.sequence_score, 4),
            "text_length_score": round(self.text_length_score, 4),
            "dictionary_score": round(self.dictionary_score, 4),
            "legal_term_score": round(self.legal_term_score, 4),
            "structure_score": round(self.structure_score, 4),
            "unrecognized_rate": round(self.word_stats.rate, 4),
            "confidence": round(self.confidence, 4),
        }


@dataclass
class JsonQualityReport:
    """Componentes do score de qualidade do payload."""
    structure_score: float = 0.0
    metadata_score: float = 0.0
    articles_score: float = 0.0
    signatories_score: float = 0.0
    missing_fields: list[str] = field(default_factory=list)
    quality: float = 0.0


# =============================================================================
# SCORER
# =============================================================================

class ConfidenceScorer:
    """Combina sequenciador, matcher estrutural e dicionário em scores ponderados."""

    # OCR confidence
    ARTICLE_WEIGHT = 0.20
    SEQUENCE_WEIGHT = 0.20
    LENGTH_WEIGHT = 0.15
    DICTIONARY_WEIGHT = 0.25
    LEGAL_TERMS_WEIGHT = 0.20

    ARTICLE_COUNT_CAP = 10
    TEXT_LENGTH_CAP = 5000
    LEGAL_TERMS_CAP = 8

    # JSON quality
    JSON_STRUCTURE_WEIGHT = 0.30
    JSON_METADATA_WEIGHT = 0.30
    JSON_ARTICLES_WEIGHT = 0.30
    JSON_SIGNATORIES_WEIGHT = 0.10

    METADATA_CHECKLIST = (
        "confidence",
        "source",
        "timestamp",
        "documentId",
        "type",
        "year",
        "number",
        "promulgationDate",
        "promulgationCity",
        "articles",
    )

    def __init__(
        self,
        sequencer: Optional[ArticleSequencer] = None,
        matcher: Optional[StructuralMatcher] = None,
        dictionary: Optional[WordDictionary] = None,
    ):
        self.sequencer = sequencer or ArticleSequencer()
        self.matcher = matcher or StructuralMatcher()
        self.dictionary = dictionary if dictionary is not None else WordDictionary()

    # -------------------------------------------------------------------------
    # OCR confidence
    # -------------------------------------------------------------------------

    def analyze_ocr(self, text: Optional[str], articles: Sequence[Article]) -> OcrConfidenceReport:
        if not text or not articles:
            return OcrConfidenceReport()

        word_stats = self.dictionary.analyze(text)
        penalty = unrecognized_penalty(word_stats.rate, len(word_stats.unique_unrecognized))

        report = OcrConfidenceReport(
            article_count_score=min(len(articles) / self.ARTICLE_COUNT_CAP, 1.0),
            sequence_score=self.sequencer.score_sequence(articles),
            text_length_score=min(len(text) / self.TEXT_LENGTH_CAP, 1.0),
            dictionary_score=1.0 - penalty,
            legal_term_score=min(self.matcher.count_legal_terms(text) / self.LEGAL_TERMS_CAP, 1.0),
            structure_score=self.matcher.validate_structure(text),
            word_stats=word_stats,
        )
        report.confidence = (
            report.article_count_score * self.ARTICLE_WEIGHT
            + report.sequence_score * self.SEQUENCE_WEIGHT
            + report.text_length_score * self.LENGTH_WEIGHT
            + report.dictionary_score * self.DICTIONARY_WEIGHT
            + report.legal_term_score * self.LEGAL_TERMS_WEIGHT
        )

        logger.debug(
            f"OCR confidence: articles={report.article_count_score:.2f}, "
            f"sequence={report.sequence_score:.2f}, length={report.text_length_score:.2f}, "
            f"dict={report.dictionary_score:.2f} (rate={word_stats.rate:.1%}), "
            f"legal={report.legal_term_score:.2f} -> {report.confidence:.3f}"
        )
        return report

    def ocr_confidence(self, text: Optional[str], articles: Sequence[Article]) -> float:
        """Score 0-1; texto vazio ou nenhum artigo = 0."""
        return self.analyze_ocr(text, articles).confidence

    # -------------------------------------------------------------------------
    # JSON quality
    # -------------------------------------------------------------------------

    def analyze_json(self, payload: Union[dict[str, Any], str, None]) -> JsonQualityReport:
        data = self._as_dict(payload)
        if data is None:
            return JsonQualityReport(missing_fields=list(self.METADATA_CHECKLIST))

        report = JsonQualityReport()

        has_metadata = isinstance(data.get(METADATA_KEY), dict)
        articles_raw = data.get(ARTICLES_KEY)
        report.structure_score = 1.0 if has_metadata and isinstance(articles_raw, list) and articles_raw else 0.0

        meta = data.get(METADATA_KEY) if has_metadata else {}
        present = []
        for name in self.METADATA_CHECKLIST:
            value = meta.get(name, data.get(name))
            if value is None or value == "" or value == []:
                report.missing_fields.append(name)
            else:
                present.append(name)
        report.metadata_score = len(present) / len(self.METADATA_CHECKLIST)

        if ARTICLES_KEY in data:
            indices = [a.index for a in parse_articles(data)]
            consecutive = bool(indices) and all(b == a + 1 for a, b in zip(indices, indices[1:]))
            report.articles_score = 1.0 if consecutive else 0.5

        signatories = data.get(SIGNATORIES_KEY)
        report.signatories_score = 1.0 if isinstance(signatories, list) and signatories else 0.0

        report.quality = (
            report.structure_score * self.JSON_STRUCTURE_WEIGHT
            + report.metadata_score * self.JSON_METADATA_WEIGHT
            + report.articles_score * self.JSON_ARTICLES_WEIGHT
            + report.signatories_score * self.JSON_SIGNATORIES_WEIGHT
        )
        return report

    def json_quality(self, payload: Union[dict[str, Any], str, None]) -> float:
        """Score 0-1 do payload; payload não parseável = 0."""
        return self.analyze_json(payload).quality

    @staticmethod
    def _as_dict(payload: Union[dict[str, Any], str, None]) -> Optional[dict[str, Any]]:
        if isinstance(payload, dict):
            return payload
        if isinstance(payload, str):
            try:
                data = json.loads(payload)
            except json.JSONDecodeError:
                logger.debug("Payload não parseável como JSON")
                return None
            return data if isinstance(data, dict) else None
        return None
