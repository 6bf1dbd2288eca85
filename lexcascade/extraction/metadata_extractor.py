"""
Extração de metadados de promulgação (título, data, cidade, signatários).
"""

import csv
import logging
import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Iterable, Optional, Union

from ..models import DocumentMetadata, Signatory

logger = logging.getLogger(__name__)

DEFAULT_SIGNATORIES_PATH = Path(__file__).resolve().parent.parent / "resources" / "signatories.csv"

FRENCH_MONTHS = {
    "janvier": 1,
    "février": 2,
    "fevrier": 2,
    "mars": 3,
    "avril": 4,
    "mai": 5,
    "juin": 6,
    "juillet": 7,
    "août": 8,
    "aout": 8,
    "septembre": 9,
    "octobre": 10,
    "novembre": 11,
    "décembre": 12,
    "decembre": 12,
}


def format_french_date(day: str, month: str, year: str) -> Optional[str]:
    """Converte (dia, mês em francês, ano) para ISO YYYY-MM-DD; None se inválida."""
    month_number = FRENCH_MONTHS.get(month.strip().lower())
    if month_number is None:
        logger.debug(f"Mês desconhecido: {month}")
        return None
    try:
        return date(int(year), month_number, int(day)).isoformat()
    except ValueError as e:
        logger.debug(f"Data inválida: {day} {month} {year}: {e}")
        return None


def _parse_iso(value: str) -> Optional[date]:
    value = value.strip()
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        logger.debug(f"Data ISO inválida: {value}")
        return None


@dataclass(frozen=True)
class SignatoryPattern:
    """Padrão de reconhecimento de um signatário, com mandato opcional."""
    pattern: "re.Pattern[str]"
    role: str
    name: str
    mandate_start: Optional[date] = None
    mandate_end: Optional[date] = None

    def in_mandate(self, when: Optional[date]) -> bool:
        if when is None:
            return True
        if self.mandate_start and when < self.mandate_start:
            return False
        if self.mandate_end and when > self.mandate_end:
            return False
        return True


def load_signatory_patterns(path: Union[str, Path, None] = None) -> list[SignatoryPattern]:
    """Carrega o CSV pattern,role,name,mandate_start,mandate_end (com cabeçalho)."""
    path = Path(path) if path else DEFAULT_SIGNATORIES_PATH
    if not path.is_file():
        logger.warning(f"Arquivo de signatários não encontrado: {path}")
        return []

    patterns: list[SignatoryPattern] = []
    with path.open(encoding="utf-8", newline="") as f:
        reader = csv.reader(f)
        next(reader, None)  # cabeçalho
        for row in reader:
            if len(row) < 3 or not row[0].strip():
                continue
            try:
                compiled = re.compile(row[0].strip())
            except re.error:
                logger.warning(f"Padrão de signatário inválido: {row[0]}")
                continue
            patterns.append(SignatoryPattern(
                pattern=compiled,
                role=row[1].strip(),
                name=row[2].strip(),
                mandate_start=_parse_iso(row[3]) if len(row) > 3 else None,
                mandate_end=_parse_iso(row[4]) if len(row) > 4 else None,
            ))

    logger.info(f"{len(patterns)} padrões de signatários carregados de {path}")
    return patterns


class MetadataExtractor:
    """Extrai DocumentMetadata do texto de uma lei ou decreto."""

    TITLE_START = re.compile(r"^[ \t]*(?:LOI|D[ÉE]CRET)\s*N\s*[°ºo\"O0]", re.IGNORECASE | re.MULTILINE)
    # O título termina numa linha vazia ou no início da visa/corpo
    TITLE_END = re.compile(
        r"\n[ \t]*\n|\n[ \t]*(?:L['’]Assembl[ée]e|Le\s+Pr[ée]sident|Vu\b|Article\b)",
        re.IGNORECASE,
    )
    FAIT_A = re.compile(r"\bFait\s+[àa]\s+([A-ZÀ-Ýa-zà-ÿ][\w\-’']*)", re.IGNORECASE)
    DATE = re.compile(
        r"\b(\d{1,2})\s*(?:er)?\s+(janvier|f[ée]vrier|mars|avril|mai|juin|juillet|ao[ûu]t|"
        r"septembre|octobre|novembre|d[ée]cembre)\s+(\d{4})\b",
        re.IGNORECASE,
    )
    MAX_TITLE_LENGTH = 600

    def __init__(self, signatory_patterns: Optional[Iterable[SignatoryPattern]] = None):
        self.signatory_patterns = (
            list(signatory_patterns) if signatory_patterns is not None else load_signatory_patterns()
        )

    def extract(self, text: Optional[str]) -> DocumentMetadata:
        if not text:
            return DocumentMetadata()

        title = self.extract_title(text)
        city = self.extract_city(text)
        promulgation_date = self.extract_date(text)
        signatories = self.extract_signatories(text, promulgation_date)

        logger.debug(
            f"Metadados: title={bool(title)}, date={promulgation_date}, "
            f"city={city}, signatories={len(signatories)}"
        )
        return DocumentMetadata(
            title=title,
            promulgation_date=promulgation_date,
            promulgation_city=city,
            signatories=tuple(signatories),
        )

    def extract_title(self, text: str) -> Optional[str]:
        start_match = self.TITLE_START.search(text)
        if not start_match:
            return None
        start = start_match.start()
        end_match = self.TITLE_END.search(text, start_match.end())
        end = end_match.start() if end_match else len(text)
        title = " ".join(text[start:end].split())
        return title[: self.MAX_TITLE_LENGTH] or None

    def extract_city(self, text: str) -> Optional[str]:
        match = self.FAIT_A.search(text)
        if not match:
            return None
        return match.group(1).strip(" ,.-'’") or None

    def extract_date(self, text: str) -> Optional[str]:
        """Data após "Fait à"; se ausente, a primeira data do texto (título)."""
        fait = self.FAIT_A.search(text)
        search_from = fait.start() if fait else 0
        match = self.DATE.search(text, search_from) or self.DATE.search(text)
        if not match:
            return None
        return format_french_date(match.group(1), match.group(2), match.group(3))

    def extract_signatories(self, text: str, promulgation_date: Optional[str] = None) -> list[Signatory]:
        """Signatários na ordem de aparição; descarta padrões fora do mandato."""
        when = _parse_iso(promulgation_date) if promulgation_date else None
        found: list[tuple[int, SignatoryPattern]] = []
        for sp in self.signatory_patterns:
            match = sp.pattern.search(text)
            if match and sp.in_mandate(when):
                found.append((match.start(), sp))

        found.sort(key=lambda item: item[0])
        return [
            Signatory(name=sp.name, role=sp.role, order=order)
            for order, (_, sp) in enumerate(found, start=1)
        ]
