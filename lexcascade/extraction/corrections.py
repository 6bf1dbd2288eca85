"""
Tabela de correções OCR (palavra errada -> palavra correta).

Formato CSV: "wrong,correct" por linha; linhas vazias e comentários (#)
são ignorados. As correções são aplicadas na ordem do arquivo, cada uma
como substituição de palavra inteira, case-insensitive.
"""

import csv
import logging
from pathlib import Path
from typing import Iterable, Optional, Union

from ..utils.caches import CorrectionCache, PatternCache

logger = logging.getLogger(__name__)

DEFAULT_CORRECTIONS_PATH = Path(__file__).resolve().parent.parent / "resources" / "corrections.csv"


class CorrectionTable:
    """Pares de correção aplicados antes da análise estrutural."""

    def __init__(
        self,
        pairs: Iterable[tuple[str, str]] = (),
        pattern_cache: Optional[PatternCache] = None,
        correction_cache: Optional[CorrectionCache] = None,
    ):
        self._patterns = pattern_cache if pattern_cache is not None else PatternCache()
        self._cache = correction_cache if correction_cache is not None else CorrectionCache()
        self._pairs: list[tuple[str, str]] = []
        self._index: dict[str, str] = {}
        for wrong, correct in pairs:
            self.add(wrong, correct)

    def add(self, wrong: str, correct: str) -> bool:
        """Adiciona um par; retorna False se a palavra já tinha correção."""
        wrong, correct = wrong.strip(), correct.strip()
        if not wrong or not correct:
            return False
        key = wrong.lower()
        if key in self._index:
            return False
        # o cache compartilhado pode já conter pares de outras tabelas
        self._index[key] = correct
        self._cache.register(wrong, correct)
        self._pairs.append((wrong, correct))
        return True

    @classmethod
    def from_csv(
        cls,
        path: Union[str, Path, None] = None,
        pattern_cache: Optional[PatternCache] = None,
        correction_cache: Optional[CorrectionCache] = None,
    ) -> "CorrectionTable":
        """Carrega o CSV de correções (default: resources/corrections.csv)."""
        path = Path(path) if path else DEFAULT_CORRECTIONS_PATH
        table = cls(pattern_cache=pattern_cache, correction_cache=correction_cache)

        if not path.is_file():
            logger.warning(f"Arquivo de correções não encontrado: {path}")
            return table

        with path.open(encoding="utf-8", newline="") as f:
            for line_number, row in enumerate(csv.reader(f), start=1):
                if not row or not "".join(row).strip():
                    continue
                if row[0].lstrip().startswith("#"):
                    continue
                if len(row) != 2:
                    logger.warning(f"Formato de correção inválido na linha {line_number}: {row}")
                    continue
                table.add(row[0], row[1])

        logger.info(f"{len(table)} correções carregadas de {path}")
        return table

    def __len__(self) -> int:
        return len(self._pairs)

    @property
    def pairs(self) -> list[tuple[str, str]]:
        return list(self._pairs)

    def lookup(self, word: str) -> Optional[str]:
        return self._index.get(word.lower())

    def apply(self, text: str) -> str:
        """Aplica todas as correções, em ordem, retornando um novo texto."""
        if not text:
            return text
        corrected = text
        for wrong, correct in self._pairs:
            pattern = self._patterns.word_pattern(wrong)
            corrected = pattern.sub(lambda _m, repl=correct: repl, corrected)
        return corrected
