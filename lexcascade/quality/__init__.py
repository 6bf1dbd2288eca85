"""
Quality - Heurísticas e scores que controlam a cascata.
"""

from .confidence import ConfidenceScorer, JsonQualityReport, OcrConfidenceReport
from .dictionary import UnrecognizedWordsRegistry, WordDictionary, WordStats, unrecognized_penalty
from .structural_matcher import StructuralMatcher, StructureReport
from .text_quality import NativeTextDecision, TextQualityHeuristic

__all__ = [
    "ConfidenceScorer",
    "JsonQualityReport",
    "NativeTextDecision",
    "OcrConfidenceReport",
    "StructuralMatcher",
    "StructureReport",
    "TextQualityHeuristic",
    "UnrecognizedWordsRegistry",
    "WordDictionary",
    "WordStats",
    "unrecognized_penalty",
]
