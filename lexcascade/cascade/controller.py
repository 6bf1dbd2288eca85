"""
Cascata de extração com gates de qualidade.

Estados (lineares, com saída antecipada):

    Baseline -> OcrCorrection -> JsonCorrection -> FullReextraction -> Terminal

- Baseline: extração programática; sempre executada, é o candidato inicial
- OcrCorrection: se OCR confidence < limiar OCR; IA corrige o texto e a
  extração é refeita
- JsonCorrection: se JSON quality < limiar JSON; IA corrige o payload atual
- FullReextraction: se a qualidade continua abaixo do limiar; modelo de
  visão extrai o documento direto das imagens das páginas
- Terminal: quality >= limiar JSON -> aceito; senão CascadeExhaustedError

Um candidato novo só substitui o atual se for estritamente melhor. Falhas
de provider em qualquer estágio são absorvidas (o estágio não melhora
nada); a única exceção que sai da cascata é CascadeExhaustedError.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Sequence, Union

from ..config import Config, config as default_config
from ..extraction.baseline import BaselineExtractor
from ..extraction.corrections import CorrectionTable
from ..extraction.metadata_extractor import MetadataExtractor, load_signatory_patterns
from ..extraction.payload import METADATA_KEY, normalize_payload, parse_articles
from ..extraction.pdf_source import PdfPageSource
from ..extraction.text_source import OcrEngine, TextSourceResolver
from ..models import Document, Provenance, StructuredResult, TransformationConfig, TransformationContext
from ..providers.base import AIProviderPort, ProviderSelector, TransformationName
from ..providers.registry import TransformationPort
from ..providers.selector import build_default_selector
from ..quality.confidence import ConfidenceScorer
from ..quality.dictionary import DEFAULT_DICTIONARY_PATH, UnrecognizedWordsRegistry, WordDictionary
from ..quality.structural_matcher import StructuralMatcher
from ..quality.text_quality import TextQualityHeuristic
from ..utils.caches import CorrectionCache, PatternCache

logger = logging.getLogger(__name__)

SEPARATOR = "=" * 60

PageImages = Union[Sequence[str], Callable[[], Sequence[str]], None]


class Stage(str, Enum):
    """Estágios da cascata."""
    BASELINE = "baseline"
    OCR_CORRECTION = "ocr_correction"
    JSON_CORRECTION = "json_correction"
    FULL_REEXTRACTION = "full_reextraction"


class StageOutcome(str, Enum):
    """Resultado de um estágio de escalonamento."""
    IMPROVED = "improved"
    NO_IMPROVEMENT = "no_improvement"
    PROVIDER_FAILED = "provider_failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class StageResult:
    """Transição de um estágio: candidato resultante + desfecho."""
    stage: Stage
    outcome: StageOutcome
    candidate: Optional[StructuredResult]
    score_before: float
    score_after: float
    message: str = ""
    duration_seconds: float = 0.0

    def to_dict(self) -> dict:
        return {
            "stage": self.stage.value,
            "outcome": self.outcome.value,
            "source": self.candidate.source if self.candidate else None,
            "score_before": round(self.score_before, 4),
            "score_after": round(self.score_after, 4),
            "message": self.message,
            "duration_seconds": round(self.duration_seconds, 2),
        }


@dataclass
class CascadeResult:
    """Candidato aceito e histórico dos estágios."""
    document_id: str
    candidate: StructuredResult
    stages: list[StageResult] = field(default_factory=list)

    @property
    def source(self) -> str:
        return self.candidate.source

    @property
    def quality(self) -> float:
        return self.candidate.quality

    @property
    def provider_calls(self) -> int:
        return sum(1 for s in self.stages if s.stage != Stage.BASELINE and s.outcome != StageOutcome.SKIPPED)


class CascadeExhaustedError(Exception):
    """O melhor candidato de todos os estágios ficou abaixo do limiar JSON."""

    def __init__(
        self,
        document_id: str,
        quality: float,
        threshold: float,
        source: Optional[str],
        stalled_stage: Stage,
        stages: Optional[list[StageResult]] = None,
    ):
        self.document_id = document_id
        self.quality = quality
        self.threshold = threshold
        self.source = source
        self.stalled_stage = stalled_stage
        self.stages = stages or []
        super().__init__(
            f"[{document_id}] Qualité JSON finale insuffisante: {quality:.2f} < {threshold:.2f} "
            f"(meilleur candidat: {source or 'aucun'}, étape: {stalled_stage.value})"
        )


class CascadeController:
    """Orquestra a cascata para um documento por vez (síncrona por documento)."""

    def __init__(
        self,
        baseline: BaselineExtractor,
        port: AIProviderPort,
        selector: ProviderSelector,
        ocr_threshold: float = 0.3,
        json_threshold: float = 0.5,
        transformation_config: Optional[TransformationConfig] = None,
        page_dpi: int = 200,
    ):
        self.baseline = baseline
        self.scorer = baseline.scorer
        self.port = port
        self.selector = selector
        self.ocr_threshold = ocr_threshold
        self.json_threshold = json_threshold
        self.transformation_config = transformation_config or TransformationConfig()
        self.page_dpi = page_dpi

    # -------------------------------------------------------------------------
    # Entrada principal
    # -------------------------------------------------------------------------

    def run(self, document: Document, text: str, page_images: PageImages = None) -> CascadeResult:
        """
        Executa a cascata sobre o texto (nativo ou OCR) de um documento.

        Args:
            document: Identidade do documento
            text: Texto bruto (camada nativa ou transcrição OCR)
            page_images: Imagens PNG base64 das páginas, ou callable que as
                produz sob demanda (só chamado no estágio de visão)

        Raises:
            CascadeExhaustedError: melhor qualidade final < limiar JSON
        """
        doc_id = document.document_id
        context = TransformationContext(document=document, config=self.transformation_config)
        stages: list[StageResult] = []

        logger.info(SEPARATOR)
        logger.info(f"[{doc_id}] Cascata iniciada ({len(text or '')} caracteres)")

        # === ETAPA 1: Baseline ===
        start = time.perf_counter()
        logger.info(f"[{doc_id}] ETAPA 1: extração programática")
        extraction = self.baseline.extract(document, text, Provenance.BASELINE_OCR)
        best = extraction.candidate
        working_text = extraction.text
        stages.append(StageResult(
            stage=Stage.BASELINE,
            outcome=StageOutcome.IMPROVED if best else StageOutcome.NO_IMPROVEMENT,
            candidate=best,
            score_before=0.0,
            score_after=extraction.confidence,
            message=extraction.error or "",
            duration_seconds=time.perf_counter() - start,
        ))
        logger.info(
            f"[{doc_id}] OCR confidence={extraction.confidence:.3f} "
            f"(limiar {self.ocr_threshold:.2f}), JSON quality={self._quality(best):.3f}"
        )

        # === ETAPA 2: Correção OCR ===
        if extraction.confidence < self.ocr_threshold:
            logger.info(f"[{doc_id}] ETAPA 2: correção OCR via IA")
            result = self._ocr_correction_stage(context, working_text, best)
        else:
            result = self._skipped(Stage.OCR_CORRECTION, best, "OCR confidence atinge o limiar")
        stages.append(result)
        best = result.candidate

        # === ETAPA 3: Correção JSON ===
        if best is None:
            result = self._skipped(Stage.JSON_CORRECTION, best, "nenhum candidato a corrigir")
        elif best.quality < self.json_threshold:
            logger.info(f"[{doc_id}] ETAPA 3: correção JSON via IA")
            result = self._json_correction_stage(context, best)
        else:
            result = self._skipped(Stage.JSON_CORRECTION, best, "JSON quality atinge o limiar")
        stages.append(result)
        best = result.candidate

        # === ETAPA 4: Reextração completa (visão) ===
        if self._quality(best) < self.json_threshold:
            logger.info(f"[{doc_id}] ETAPA 4: reextração completa a partir das páginas")
            result = self._full_reextraction_stage(context, best, page_images)
        else:
            result = self._skipped(Stage.FULL_REEXTRACTION, best, "JSON quality atinge o limiar")
        stages.append(result)
        best = result.candidate

        # === Terminal ===
        self._log_summary(doc_id, stages)
        quality = self._quality(best)
        if best is None or quality < self.json_threshold:
            stalled = next(
                (s.stage for s in reversed(stages) if s.outcome != StageOutcome.SKIPPED),
                Stage.BASELINE,
            )
            logger.error(
                f"[{doc_id}] Qualidade JSON final insuficiente: {quality:.2f} < {self.json_threshold:.2f}"
            )
            logger.info(SEPARATOR)
            raise CascadeExhaustedError(
                document_id=doc_id,
                quality=quality,
                threshold=self.json_threshold,
                source=best.source if best else None,
                stalled_stage=stalled,
                stages=stages,
            )

        logger.info(f"[{doc_id}] Aceito: source={best.source}, quality={quality:.3f}")
        logger.info(SEPARATOR)
        return CascadeResult(document_id=doc_id, candidate=best, stages=stages)

    def process_pdf(
        self,
        document: Document,
        pdf_bytes: bytes,
        resolver: Optional[TextSourceResolver] = None,
        dpi: Optional[int] = None,
    ) -> CascadeResult:
        """PDF -> texto nativo ou OCR -> cascata (imagens renderizadas sob demanda)."""
        source = PdfPageSource(pdf_bytes, dpi=dpi or self.page_dpi)
        resolver = resolver or TextSourceResolver()
        resolved = resolver.resolve(source, document.document_id)
        return self.run(document, resolved.text, page_images=source.render_images)

    def close(self) -> None:
        """Encerra a porta de IA (executor e conexões)."""
        logger.info("Encerrando porta de IA da cascata...")
        self.port.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    # -------------------------------------------------------------------------
    # Estágios
    # -------------------------------------------------------------------------

    def _ocr_correction_stage(
        self,
        context: TransformationContext,
        text: str,
        best: Optional[StructuredResult],
    ) -> StageResult:
        start = time.perf_counter()
        document = context.document
        before = best.confidence if best else 0.0

        stage_context, failure = self._prepare(context, Stage.OCR_CORRECTION, TransformationName.OCR_CORRECTION, text)
        if failure:
            return self._failed(Stage.OCR_CORRECTION, best, before, failure, start)

        outcome = self.port.run(TransformationName.OCR_CORRECTION, text, stage_context)
        if not outcome.success:
            return self._failed(Stage.OCR_CORRECTION, best, before, outcome.error_message, start)

        corrected_text = outcome.output
        extraction = self.baseline.extract(document, corrected_text, Provenance.AI_CORRECTED_OCR)
        candidate = extraction.candidate

        if candidate is None and self.port.can_run(TransformationName.OCR_TO_JSON, stage_context):
            # Sem âncoras de artigo no texto corrigido: a IA estrutura diretamente
            structured = self.port.run(TransformationName.OCR_TO_JSON, extraction.text, stage_context)
            if structured.success:
                candidate = self._scored_text_candidate(document, extraction.text, structured.output)

        if candidate is None:
            return self._result(
                Stage.OCR_CORRECTION, StageOutcome.NO_IMPROVEMENT, best, before, 0.0,
                extraction.error or "nenhum candidato após correção", start,
            )

        improved = candidate.confidence > before and candidate.quality >= self._quality(best)
        return self._result(
            Stage.OCR_CORRECTION,
            StageOutcome.IMPROVED if improved else StageOutcome.NO_IMPROVEMENT,
            candidate if improved else best,
            before,
            candidate.confidence,
            "" if improved else "confidence não melhorou",
            start,
        )

    def _json_correction_stage(self, context: TransformationContext, best: StructuredResult) -> StageResult:
        start = time.perf_counter()
        before = best.quality

        stage_context, failure = self._prepare(context, Stage.JSON_CORRECTION, TransformationName.JSON_CORRECTION, best.payload)
        if failure:
            return self._failed(Stage.JSON_CORRECTION, best, before, failure, start)

        outcome = self.port.run(TransformationName.JSON_CORRECTION, best.payload, stage_context)
        if not outcome.success:
            return self._failed(Stage.JSON_CORRECTION, best, before, outcome.error_message, start)

        candidate = self._scored_ai_candidate(context.document, outcome.output, Provenance.AI_JSON_CORRECTED)
        return self._keep_if_better(Stage.JSON_CORRECTION, best, candidate, start)

    def _full_reextraction_stage(
        self,
        context: TransformationContext,
        best: Optional[StructuredResult],
        page_images: PageImages,
    ) -> StageResult:
        start = time.perf_counter()
        before = self._quality(best)

        try:
            images = list(page_images() if callable(page_images) else (page_images or []))
        except Exception as e:
            logger.warning(f"[{context.document.document_id}] Falha ao obter imagens das páginas: {e}", exc_info=True)
            return self._failed(Stage.FULL_REEXTRACTION, best, before, f"imagens indisponíveis: {e}", start)
        if not images:
            return self._failed(Stage.FULL_REEXTRACTION, best, before, "nenhuma imagem de página", start)

        stage_context, failure = self._prepare(context, Stage.FULL_REEXTRACTION, TransformationName.PDF_TO_JSON, images)
        if failure:
            return self._failed(Stage.FULL_REEXTRACTION, best, before, failure, start)

        outcome = self.port.run(TransformationName.PDF_TO_JSON, images, stage_context)
        if not outcome.success:
            return self._failed(Stage.FULL_REEXTRACTION, best, before, outcome.error_message, start)

        candidate = self._scored_ai_candidate(context.document, outcome.output, Provenance.AI_FULL)
        return self._keep_if_better(Stage.FULL_REEXTRACTION, best, candidate, start)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _prepare(
        self,
        context: TransformationContext,
        stage: Stage,
        name: TransformationName,
        data: Any,
    ) -> tuple[Optional[TransformationContext], Optional[str]]:
        """Declara a necessidade ao seletor e monta o contexto do estágio."""
        requires_vision = self.port.requires_vision(name)
        estimated = self.port.estimate_tokens(name, data, context)
        provider = self.selector.select(requires_vision, estimated)
        if provider is None:
            return None, f"nenhum provider disponível (vision={requires_vision}, tokens={estimated})"

        stage_context = context.for_stage(stage.value, provider)
        if not self.port.can_run(name, stage_context):
            return None, f"{name.value} não pode rodar com {provider.name}"
        return stage_context, None

    def _scored_text_candidate(self, document: Document, text: str, raw: Any) -> Optional[StructuredResult]:
        if not isinstance(raw, dict):
            return None
        articles = parse_articles(raw)
        if not articles:
            return None
        confidence = self.scorer.ocr_confidence(text, articles)
        payload = normalize_payload(raw, document, confidence, Provenance.AI_CORRECTED_OCR.value)
        return StructuredResult(
            payload=payload,
            confidence=confidence,
            quality=self.scorer.json_quality(payload),
            source=Provenance.AI_CORRECTED_OCR.value,
        )

    def _scored_ai_candidate(self, document: Document, raw: Any, source: Provenance) -> Optional[StructuredResult]:
        """Payload do modelo normalizado; confidence = JSON quality."""
        if not isinstance(raw, dict):
            return None
        payload = normalize_payload(raw, document, 0.0, source.value)
        quality = self.scorer.json_quality(payload)
        payload[METADATA_KEY]["confidence"] = round(quality, 4)
        return StructuredResult(payload=payload, confidence=quality, quality=quality, source=source.value)

    def _keep_if_better(
        self,
        stage: Stage,
        best: Optional[StructuredResult],
        candidate: Optional[StructuredResult],
        start: float,
    ) -> StageResult:
        before = self._quality(best)
        if candidate is None:
            return self._result(stage, StageOutcome.NO_IMPROVEMENT, best, before, 0.0, "saída inválida", start)
        if best is None or candidate.quality > before:
            return self._result(stage, StageOutcome.IMPROVED, candidate, before, candidate.quality, "", start)
        return self._result(
            stage, StageOutcome.NO_IMPROVEMENT, best, before, candidate.quality, "qualidade não melhorou", start
        )

    @staticmethod
    def _quality(candidate: Optional[StructuredResult]) -> float:
        return candidate.quality if candidate else 0.0

    def _result(
        self,
        stage: Stage,
        outcome: StageOutcome,
        candidate: Optional[StructuredResult],
        before: float,
        after: float,
        message: str,
        start: float,
    ) -> StageResult:
        result = StageResult(
            stage=stage,
            outcome=outcome,
            candidate=candidate,
            score_before=before,
            score_after=after,
            message=message,
            duration_seconds=time.perf_counter() - start,
        )
        logger.info(f"{stage.value}: {outcome.value} ({before:.3f} -> {after:.3f}) {message}".rstrip())
        return result

    def _failed(
        self,
        stage: Stage,
        best: Optional[StructuredResult],
        before: float,
        message: Optional[str],
        start: float,
    ) -> StageResult:
        logger.warning(f"{stage.value}: provider falhou: {message}")
        return self._result(stage, StageOutcome.PROVIDER_FAILED, best, before, before, message or "", start)

    @staticmethod
    def _skipped(stage: Stage, best: Optional[StructuredResult], reason: str) -> StageResult:
        score = best.quality if best else 0.0
        return StageResult(
            stage=stage,
            outcome=StageOutcome.SKIPPED,
            candidate=best,
            score_before=score,
            score_after=score,
            message=reason,
        )

    @staticmethod
    def _log_summary(doc_id: str, stages: list[StageResult]) -> None:
        summary = ", ".join(f"{s.stage.value}={s.outcome.value}" for s in stages)
        logger.info(f"[{doc_id}] Estágios: {summary}")


# =============================================================================
# FACTORY
# =============================================================================

def build_controller(
    cfg: Optional[Config] = None,
    selector: Optional[ProviderSelector] = None,
    port: Optional[AIProviderPort] = None,
) -> CascadeController:
    """Monta a cascata com os recursos e providers da configuração."""
    cfg = cfg or default_config
    pattern_cache = PatternCache()

    if cfg.dictionary_path:
        dictionary = WordDictionary.from_file(cfg.dictionary_path)
    else:
        logger.warning(
            f"DICTIONARY_PATH não definido: usando a lista reduzida embutida ({DEFAULT_DICTIONARY_PATH.name}); "
            f"a taxa de palavras não reconhecidas será superestimada"
        )
        dictionary = WordDictionary.from_file(DEFAULT_DICTIONARY_PATH)
    scorer = ConfidenceScorer(
        matcher=StructuralMatcher(legal_terms=cfg.legal_terms, pattern_cache=pattern_cache),
        dictionary=dictionary,
    )
    baseline = BaselineExtractor(
        scorer=scorer,
        corrections=CorrectionTable.from_csv(
            cfg.corrections_path or None,
            pattern_cache=pattern_cache,
            correction_cache=CorrectionCache(),
        ),
        metadata_extractor=MetadataExtractor(load_signatory_patterns(cfg.signatories_path or None)),
        registry=UnrecognizedWordsRegistry(cfg.unrecognized_words_path or None),
    )
    return CascadeController(
        baseline=baseline,
        port=port or TransformationPort(),
        selector=selector or build_default_selector(cfg),
        ocr_threshold=cfg.ocr_quality_threshold,
        json_threshold=cfg.json_quality_threshold,
        transformation_config=cfg.transformation_config(),
        page_dpi=cfg.pdf_page_dpi,
    )


def build_resolver(cfg: Optional[Config] = None, ocr_engine: Optional[OcrEngine] = None) -> TextSourceResolver:
    cfg = cfg or default_config
    heuristic = TextQualityHeuristic(
        threshold=cfg.native_text_threshold,
        first_page_min_chars=cfg.native_first_page_min_chars,
    )
    return TextSourceResolver(heuristic=heuristic, ocr_engine=ocr_engine)
