"""
Reconhecimento de palavras contra um dicionário de referência.

- WordDictionary: conjunto de palavras em minúsculas + taxa de não reconhecidas
- unrecognized_penalty: penalidade progressiva usada pelo ConfidenceScorer
- UnrecognizedWordsRegistry: registro append-only das palavras não reconhecidas
"""

import logging
import re
import threading
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Union

logger = logging.getLogger(__name__)

# Sequências de letras (qualquer script), sem dígitos nem underscore
WORD_PATTERN = re.compile(r"[^\W\d_]+", re.UNICODE)
MIN_WORD_LENGTH = 3

# Lista reduzida (vocabulário jurídico e palavras funcionais do francês)
DEFAULT_DICTIONARY_PATH = Path(__file__).resolve().parent.parent / "resources" / "french_words.txt"


def tokenize(text: Optional[str]) -> list[str]:
    """Palavras com pelo menos 3 letras, em minúsculas."""
    if not text:
        return []
    return [w.lower() for w in WORD_PATTERN.findall(text) if len(w) >= MIN_WORD_LENGTH]


@dataclass
class WordStats:
    """Estatísticas de reconhecimento de um texto."""
    total_words: int = 0
    unrecognized_count: int = 0
    unrecognized: Counter = field(default_factory=Counter)

    @property
    def rate(self) -> float:
        if self.total_words == 0:
            return 0.0
        return self.unrecognized_count / self.total_words

    @property
    def unique_unrecognized(self) -> set[str]:
        return set(self.unrecognized)

    def top(self, n: int = 10) -> list[tuple[str, int]]:
        return self.unrecognized.most_common(n)


class WordDictionary:
    """Dicionário de referência (conjunto de palavras em minúsculas)."""

    def __init__(self, words: Iterable[str] = ()):
        self._words = frozenset(w.strip().lower() for w in words if w and w.strip())

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "WordDictionary":
        """Carrega um arquivo com uma palavra por linha.

        Arquivo ausente gera dicionário vazio (taxa de não reconhecidas = 0).
        """
        path = Path(path)
        if not path.is_file():
            logger.warning(f"Dicionário não encontrado: {path}")
            return cls()
        with path.open(encoding="utf-8") as f:
            dictionary = cls(f)
        logger.info(f"Dicionário carregado: {len(dictionary)} palavras ({path})")
        return dictionary

    def __len__(self) -> int:
        return len(self._words)

    def __contains__(self, word: object) -> bool:
        return isinstance(word, str) and word.lower() in self._words

    def is_empty(self) -> bool:
        return not self._words

    def analyze(self, text: Optional[str]) -> WordStats:
        """Conta palavras e palavras não reconhecidas do texto."""
        if self.is_empty():
            return WordStats()
        words = tokenize(text)
        unrecognized = Counter(w for w in words if w not in self._words)
        return WordStats(
            total_words=len(words),
            unrecognized_count=sum(unrecognized.values()),
            unrecognized=unrecognized,
        )

    def unrecognized_rate(self, text: Optional[str]) -> float:
        return self.analyze(text).rate

    def unrecognized_words(self, text: Optional[str]) -> set[str]:
        return self.analyze(text).unique_unrecognized


def unrecognized_penalty(rate: float, unrecognized_count: int) -> float:
    """
    Penalidade progressiva (0-1) pela taxa de palavras não reconhecidas.

    - rate <= 10%: rate*2
    - 10-30%:      0.2 + (rate-0.10)*1.5
    - 30-50%:      0.5 + (rate-0.30)*1.5
    - > 50%:       0.8 + (rate-0.50)*0.4, limitado a 1.0
    + 0.05 se mais de 100 palavras distintas, +0.05 se mais de 200
    """
    if rate <= 0.10:
        penalty = rate * 2.0
    elif rate <= 0.30:
        penalty = 0.2 + (rate - 0.10) * 1.5
    elif rate <= 0.50:
        penalty = 0.5 + (rate - 0.30) * 1.5
    else:
        penalty = min(1.0, 0.8 + (rate - 0.50) * 0.4)

    if unrecognized_count > 100:
        penalty += 0.05
    if unrecognized_count > 200:
        penalty += 0.05

    return min(penalty, 1.0)


class UnrecognizedWordsRegistry:
    """
    Registro append-only de palavras não reconhecidas.

    O arquivo é carregado na construção; cada documento grava, de uma só
    vez e sob lock, apenas as palavras ainda desconhecidas (ordenadas,
    uma por linha). Falhas de IO são logadas e não propagadas.
    """

    def __init__(self, path: Union[str, Path, None] = None):
        self.path = Path(path) if path else None
        self._known: set[str] = set()
        self._lock = threading.Lock()
        self._load()

    def _load(self) -> None:
        if self.path is None or not self.path.is_file():
            return
        try:
            with self.path.open(encoding="utf-8") as f:
                self._known.update(line.strip().lower() for line in f if line.strip())
            logger.info(f"Registro de palavras não reconhecidas: {len(self._known)} palavras")
        except OSError as e:
            logger.error(f"Erro ao carregar {self.path}: {e}")

    def __len__(self) -> int:
        with self._lock:
            return len(self._known)

    def __contains__(self, word: object) -> bool:
        with self._lock:
            return isinstance(word, str) and word.lower() in self._known

    def record(self, words: Iterable[str], document_id: str = "") -> list[str]:
        """
        Registra as palavras novas de um documento.

        Returns:
            Palavras efetivamente adicionadas (ordenadas)
        """
        candidates = {w.strip().lower() for w in words if w and w.strip()}
        with self._lock:
            new_words = sorted(candidates - self._known)
            if not new_words:
                return []
            if self.path is not None and not self._append(new_words, document_id):
                # Não marcadas como conhecidas: o próximo documento tenta de novo
                return []
            self._known.update(new_words)
        return new_words

    def _append(self, new_words: list[str], document_id: str) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as f:
                f.write("".join(f"{w}\n" for w in new_words))
            logger.debug(f"[{document_id}] {len(new_words)} novas palavras registradas")
            return True
        except OSError as e:
            logger.error(f"[{document_id}] Erro ao gravar palavras não reconhecidas: {e}")
            return False
