"""
Extraction - Extração programática de artigos, metadados e payload.

BaselineExtractor e TextSourceResolver ficam nos seus módulos
(extraction.baseline, extraction.text_source) por dependerem de quality.
"""

from .article_sequencer import ArticleSequencer, ExtractionError, SequenceReport
from .corrections import CorrectionTable
from .metadata_extractor import MetadataExtractor, SignatoryPattern, load_signatory_patterns
from .pdf_source import PdfPageSource, PdfSourceError

__all__ = [
    "ArticleSequencer",
    "CorrectionTable",
    "ExtractionError",
    "MetadataExtractor",
    "PdfPageSource",
    "PdfSourceError",
    "SequenceReport",
    "SignatoryPattern",
    "load_signatory_patterns",
]
