"""
Cascade - Controlador da cascata de extração.
"""

from .controller import (
    CascadeController,
    CascadeExhaustedError,
    CascadeResult,
    Stage,
    StageOutcome,
    StageResult,
    build_controller,
    build_resolver,
)

__all__ = [
    "CascadeController",
    "CascadeExhaustedError",
    "CascadeResult",
    "Stage",
    "StageOutcome",
    "StageResult",
    "build_controller",
    "build_resolver",
]
