"""Testes da fonte de páginas PyMuPDF e da escolha texto nativo vs OCR."""

import base64

import fitz
import pytest

from lexcascade.cascade.controller import CascadeController
from lexcascade.extraction.baseline import BaselineExtractor
from lexcascade.extraction.corrections import CorrectionTable
from lexcascade.extraction.pdf_source import PdfPageSource, PdfSourceError
from lexcascade.extraction.text_source import ExtractionMethod, TextSourceResolver
from lexcascade.models import Provenance
from lexcascade.quality.confidence import ConfidenceScorer
from lexcascade.quality.dictionary import WordDictionary, tokenize
from lexcascade.quality.text_quality import TextQualityHeuristic

from tests.conftest import FakePort

ASCII_LAW_PAGES = [
    (
        "REPUBLIQUE DU BENIN\n"
        "Fraternite - Justice - Travail\n"
        "PRESIDENCE DE LA REPUBLIQUE\n"
        "LOI No 2021-15 DU 20 DECEMBRE 2021\n"
        "portant code de protection de l'enfant\n"
        "L'Assemblee nationale a delibere et adopte ;\n"
        "Article 1er\n"
        "La presente loi fixe les regles de protection.\n"
        "Article 2\n"
        "Le ministre charge de la famille veille a son application."
    ),
    (
        "Article 3\n"
        "Sont abrogees toutes dispositions contraires.\n"
        "Fait a Porto-Novo, le 20 decembre 2021\n"
        "Patrice TALON\n"
        "AMPLIATIONS : PR 6 AN 4 CC 2 JO 1"
    ),
]


def _make_pdf(pages) -> bytes:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        page.insert_text((50, 72), text, fontsize=10)
    data = doc.tobytes()
    doc.close()
    return data


class StubPages:
    """Fonte de páginas em memória para o resolvedor."""

    def __init__(self, pages):
        self.pages = pages

    def page_texts(self):
        return list(self.pages)


class TestPdfPageSource:

    def test_page_texts(self):
        source = PdfPageSource(_make_pdf(ASCII_LAW_PAGES))
        texts = source.page_texts()

        assert source.page_count == 2
        assert "REPUBLIQUE DU BENIN" in texts[0]
        assert "Article 3" in texts[1]

    def test_page_texts_are_memoized_copies(self):
        source = PdfPageSource(_make_pdf(ASCII_LAW_PAGES))
        first = source.page_texts()
        first.append("modifié")
        assert len(source.page_texts()) == 2

    def test_render_images(self):
        source = PdfPageSource(_make_pdf(["Page unique"]), dpi=72)
        images = source.render_images()

        assert len(images) == 1
        assert base64.b64decode(images[0]).startswith(b"\x89PNG")

    def test_invalid_pdf(self):
        with pytest.raises(PdfSourceError):
            PdfPageSource(b"ceci n'est pas un pdf").page_texts()


class TestTextSourceResolver:

    def test_native_text_accepted(self):
        resolved = TextSourceResolver().resolve(StubPages(ASCII_LAW_PAGES), "loi-2021-15")
        assert resolved.method == ExtractionMethod.NATIVE_TEXT
        assert resolved.text == "\n".join(ASCII_LAW_PAGES)

    def test_short_first_page_runs_ocr(self):
        calls = []

        def ocr_engine(source):
            calls.append(source)
            return ASCII_LAW_PAGES

        pages = StubPages(["LOI", "texte"])
        resolved = TextSourceResolver(ocr_engine=ocr_engine).resolve(pages)

        assert calls == [pages]
        assert resolved.method == ExtractionMethod.OCR
        assert resolved.text == "\n".join(ASCII_LAW_PAGES)

    def test_worse_ocr_keeps_native(self):
        native = ["LOI N° 1 " * 3, "texte lisible du document"]
        resolved = TextSourceResolver(ocr_engine=lambda source: ["#### %%%% &&&&"]).resolve(StubPages(native))

        assert resolved.method == ExtractionMethod.NATIVE_TEXT
        assert resolved.text == "\n".join(native)

    def test_without_ocr_engine(self):
        resolved = TextSourceResolver().resolve(StubPages(["court"]))
        assert resolved.method == ExtractionMethod.NATIVE_TEXT
        assert resolved.native_decision.use_native is False


class TestProcessPdf:

    def test_pdf_accepted_at_baseline(self, document, fake_selector):
        pdf_bytes = _make_pdf(ASCII_LAW_PAGES)
        text = "\n".join(PdfPageSource(pdf_bytes).page_texts())
        scorer = ConfidenceScorer(dictionary=WordDictionary(tokenize(text)))
        baseline = BaselineExtractor(scorer=scorer, corrections=CorrectionTable())
        port = FakePort()
        controller = CascadeController(baseline=baseline, port=port, selector=fake_selector)

        result = controller.process_pdf(
            document,
            pdf_bytes,
            resolver=TextSourceResolver(TextQualityHeuristic()),
            dpi=72,
        )

        assert result.source == Provenance.BASELINE_OCR.value
        assert [a["index"] for a in result.candidate.payload["articles"]] == [1, 2, 3]
        assert result.candidate.payload["promulgationDate"] == "2021-12-20"
        assert port.calls == []
