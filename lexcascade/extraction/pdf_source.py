"""
Fonte de páginas de um PDF via PyMuPDF (fitz).

Fornece:
1. Texto nativo por página (get_text, reading order)
2. Páginas renderizadas como PNG base64, no DPI configurado (para visão)

A renderização é preguiçosa: só acontece se um estágio de visão pedir as
imagens. Ambos os resultados são memorizados por instância.
"""

import base64
import logging
import unicodedata
from typing import Optional

logger = logging.getLogger(__name__)


class PdfSourceError(RuntimeError):
    """PyMuPDF não conseguiu abrir ou ler o PDF."""
    pass


class PdfPageSource:
    """Texto nativo e imagens das páginas de um PDF."""

    def __init__(self, pdf_bytes: bytes, dpi: int = 200):
        """
        Args:
            pdf_bytes: Conteúdo binário do PDF
            dpi: Resolução para renderização de imagens
        """
        self.pdf_bytes = pdf_bytes
        self.dpi = dpi
        self._texts: Optional[list[str]] = None
        self._images: Optional[list[str]] = None

    def _open(self):
        import fitz

        try:
            return fitz.open(stream=self.pdf_bytes, filetype="pdf")
        except Exception as e:
            raise PdfSourceError(f"PyMuPDF não conseguiu abrir o PDF: {e}") from e

    @property
    def page_count(self) -> int:
        if self._texts is not None:
            return len(self._texts)
        with self._open() as doc:
            return len(doc)

    def page_texts(self) -> list[str]:
        """Texto nativo de cada página (NFC, linhas com rstrip)."""
        if self._texts is None:
            texts = []
            with self._open() as doc:
                for page in doc:
                    raw = page.get_text("text", sort=True)
                    lines = [unicodedata.normalize("NFC", line).rstrip() for line in raw.split("\n")]
                    texts.append("\n".join(lines).strip("\n"))
            logger.info(f"PyMuPDF: texto nativo de {len(texts)} páginas")
            self._texts = texts
        return list(self._texts)

    def render_images(self) -> list[str]:
        """Cada página renderizada como PNG em base64."""
        if self._images is None:
            import fitz

            images = []
            zoom = self.dpi / 72.0  # 72 DPI é o padrão do PDF
            matrix = fitz.Matrix(zoom, zoom)
            with self._open() as doc:
                for page in doc:
                    pixmap = page.get_pixmap(matrix=matrix)
                    images.append(base64.b64encode(pixmap.tobytes("png")).decode("ascii"))
            logger.info(f"PyMuPDF: {len(images)} páginas renderizadas (DPI={self.dpi})")
            self._images = images
        return list(self._images)
