"""
Reconhecedor estrutural tolerante a ruído de OCR.

Detecta as cinco seções canônicas de um texto normativo beninense:

1. Cabeçalho: RÉPUBLIQUE DU BÉNIN + divisa (Fraternité) + PRÉSIDENCE
2. Título: "LOI N°" / "DÉCRET N°"
3. Visa: fórmula de adoção legislativa (ou "Vu la Constitution")
4. Fecho do corpo: fórmula de execução/ab-rogação
5. Rodapé: "Fait à <cidade>" E marcador de distribuição (AMPLIATIONS)

Cada palavra canônica é convertida em um padrão onde cada letra aceita
as confusões visuais mais comuns do OCR (e/é/è/o, l/I/1, o/0...), perda
de acento e letras duplicadas.
"""

import logging
import re
import unicodedata
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..utils.caches import PatternCache

logger = logging.getLogger(__name__)


# Confusões visuais por letra canônica (sem acento, minúscula).
# A busca é case-insensitive, então só é preciso listar um caso.
OCR_CONFUSIONS = {
    "a": "aàâo0",
    "b": "bI",
    "c": "cçG",
    "d": "do0",
    "e": "eéèêëo",
    "f": "fE",
    "i": "iîïl1",
    "l": "lI1",
    "m": "mIl",
    "n": "nIl",
    "o": "oô0",
    "p": "pI",
    "q": "qo0",
    "r": "rI",
    "s": "sI",
    "t": "tI",
    "u": "uùûV",
    "x": "xI",
}

SECTION_NAMES = ("header", "title", "visa", "body_closing", "footer")


def _strip_accent(char: str) -> str:
    decomposed = unicodedata.normalize("NFD", char)
    return decomposed[0]


def ocr_tolerant(phrase: str) -> str:
    """
    Converte uma frase canônica em regex tolerante a OCR.

    Espaços viram \\s+, letras viram classes de confusão (com repetição
    para absorver letras duplicadas) e o resto é escapado.
    """
    parts = []
    for char in phrase:
        if char.isspace():
            if not parts or parts[-1] != r"\s+":
                parts.append(r"\s+")
            continue
        base = _strip_accent(char).lower()
        if base.isalpha():
            variants = {base, char.lower()}
            variants.update(OCR_CONFUSIONS.get(base, ""))
            klass = "".join(re.escape(v) for v in sorted(variants))
            parts.append(f"[{klass}]+")
        else:
            parts.append(re.escape(char))
    return "".join(parts)


@dataclass
class StructureReport:
    """Seções encontradas e score estrutural."""
    sections: dict[str, bool] = field(default_factory=dict)
    legal_terms_found: list[str] = field(default_factory=list)

    @property
    def sections_found(self) -> int:
        return sum(1 for found in self.sections.values() if found)

    @property
    def score(self) -> float:
        return self.sections_found / len(SECTION_NAMES)

    @property
    def missing_sections(self) -> list[str]:
        return [name for name in SECTION_NAMES if not self.sections.get(name)]


class StructuralMatcher:
    """Valida a estrutura de um texto normativo e conta termos jurídicos."""

    FLAGS = re.IGNORECASE | re.UNICODE

    # Grupos por seção: todos os padrões de cada grupo interno devem casar,
    # e basta um grupo casar para a seção contar como presente.
    HEADER_GROUPS = [
        [ocr_tolerant("république du bénin"), r"FRATERNIT[EÉ]", ocr_tolerant("présidence")],
    ]
    TITLE_GROUPS = [
        [r"\b(?:LOI|D[ÉE]CRET)\s*N\s*[°ºo\"O0]"],
    ]
    VISA_GROUPS = [
        [ocr_tolerant("assemblée nationale")],
        [ocr_tolerant("délibéré"), ocr_tolerant("adopté")],
        [r"\bVu\s+la\s+Constitution"],
    ]
    BODY_CLOSING_GROUPS = [
        [ocr_tolerant("sera exécutée comme loi")],
        [ocr_tolerant("sera exécuté comme décret")],
        [r"\babrog"],
        [r"\bLa\s+pr[ée]sente\s+loi\b"],
        [r"\bLe\s+pr[ée]sent\s+d[ée]cret\b"],
    ]
    FOOTER_GROUPS = [
        [ocr_tolerant("fait") + r"\s+[aàâo0]\s+", r"AMPLIATIONS?"],
    ]

    def __init__(
        self,
        legal_terms: Iterable[str] = (),
        pattern_cache: Optional[PatternCache] = None,
    ):
        """
        Args:
            legal_terms: Vocabulário jurídico (comparação case-insensitive por substring)
            pattern_cache: Cache de regex compartilhado (um novo se omitido)
        """
        self.legal_terms = tuple(t.lower() for t in legal_terms if t.strip())
        self._patterns = pattern_cache if pattern_cache is not None else PatternCache()
        self._sections = {
            "header": self.HEADER_GROUPS,
            "title": self.TITLE_GROUPS,
            "visa": self.VISA_GROUPS,
            "body_closing": self.BODY_CLOSING_GROUPS,
            "footer": self.FOOTER_GROUPS,
        }

    def _group_matches(self, group: list[str], text: str) -> bool:
        return all(self._patterns.compile(p, self.FLAGS).search(text) for p in group)

    def has_section(self, section: str, text: str) -> bool:
        """Retorna True se algum grupo da seção casar no texto."""
        groups = self._sections[section]
        return any(self._group_matches(group, text) for group in groups)

    def analyze(self, text: Optional[str]) -> StructureReport:
        """Relatório completo de seções + termos jurídicos."""
        if not text or not text.strip():
            return StructureReport(sections={name: False for name in SECTION_NAMES})

        report = StructureReport(
            sections={name: self.has_section(name, text) for name in SECTION_NAMES},
            legal_terms_found=self.find_legal_terms(text),
        )
        if report.missing_sections:
            logger.debug(f"Seções ausentes: {report.missing_sections}")
        return report

    def validate_structure(self, text: Optional[str]) -> float:
        """sectionsFound / 5."""
        return self.analyze(text).score

    def find_legal_terms(self, text: Optional[str]) -> list[str]:
        if not text:
            return []
        lowered = text.lower()
        return [term for term in self.legal_terms if term in lowered]

    def count_legal_terms(self, text: Optional[str]) -> int:
        """Número de termos do vocabulário presentes no texto."""
        return len(self.find_legal_terms(text))
