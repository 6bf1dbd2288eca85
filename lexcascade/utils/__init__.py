"""
Utils - Funcoes utilitarias compartilhadas.
"""

from .caches import BoundedCache, CorrectionCache, PatternCache
from .json_utils import extract_json, strip_code_fences, strip_thinking_block

__all__ = [
    "BoundedCache",
    "CorrectionCache",
    "PatternCache",
    "extract_json",
    "strip_code_fences",
    "strip_thinking_block",
]
