"""
Caches compartilhados entre workers (padrões compilados e correções).

Ambos são objetos construídos explicitamente e injetados nos componentes,
com leitura concorrente e semântica insert-if-absent sob lock. O tamanho é
limitado: acima de max_size a entrada mais antiga é descartada.
"""

import re
import threading
from collections import OrderedDict
from typing import Callable, Generic, Hashable, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class BoundedCache(Generic[K, V]):
    """Mapa thread-safe com limite de tamanho e get_or_create atômico."""

    def __init__(self, max_size: int = 4096):
        if max_size <= 0:
            raise ValueError("max_size deve ser positivo")
        self.max_size = max_size
        self._data: "OrderedDict[K, V]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: K) -> Optional[V]:
        with self._lock:
            return self._data.get(key)

    def get_or_create(self, key: K, factory: Callable[[K], V]) -> V:
        """Retorna o valor existente ou cria, armazena e retorna um novo."""
        with self._lock:
            if key in self._data:
                return self._data[key]
        value = factory(key)
        with self._lock:
            # Outro worker pode ter inserido enquanto a factory rodava
            existing = self._data.get(key)
            if existing is not None:
                return existing
            self._data[key] = value
            if len(self._data) > self.max_size:
                self._data.popitem(last=False)
            return value

    def put_if_absent(self, key: K, value: V) -> V:
        return self.get_or_create(key, lambda _: value)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


class PatternCache(BoundedCache[tuple[str, int], "re.Pattern[str]"]):
    """Cache de regex compiladas, indexado por (padrão, flags)."""

    def compile(self, pattern: str, flags: int = 0) -> "re.Pattern[str]":
        return self.get_or_create((pattern, flags), lambda key: re.compile(key[0], key[1]))

    def word_pattern(self, word: str) -> "re.Pattern[str]":
        """Padrão de palavra inteira, case-insensitive."""
        escaped = re.escape(word)
        return self.compile(rf"(?<!\w){escaped}(?!\w)", re.IGNORECASE | re.UNICODE)


class CorrectionCache(BoundedCache[str, str]):
    """Cache palavra errada -> substituição (chave em minúsculas)."""

    def lookup(self, word: str) -> Optional[str]:
        return self.get(word.lower())

    def register(self, wrong: str, correct: str) -> str:
        return self.put_if_absent(wrong.lower(), correct)
