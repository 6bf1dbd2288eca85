"""Testes do chunking de texto, imagens e artigos."""

import pytest

from lexcascade.chunking.chunker import Chunker, estimate_tokens


def _text(n_words: int = 400) -> str:
    return " ".join(f"mot{i}" for i in range(n_words))


class TestChunkText:
    """Janelas deslizantes."""

    def test_short_text_single_chunk(self):
        chunks = Chunker.chunk_text("abc", size=10, overlap=2)

        assert len(chunks) == 1
        assert (chunks[0].start, chunks[0].end, chunks[0].index, chunks[0].total) == (0, 3, 0, 1)

    def test_text_equal_to_size_single_chunk(self):
        assert len(Chunker.chunk_text("a" * 10, size=10)) == 1

    def test_coverage_law(self):
        text = _text()
        for size, overlap in [(100, 0), (100, 20), (333, 50), (len(text) - 1, 10)]:
            chunks = Chunker.chunk_text(text, size, overlap)

            assert chunks[0].start == 0
            assert chunks[-1].end == len(text)
            for previous, current in zip(chunks, chunks[1:]):
                assert current.start <= previous.end
            assert all(c.total == len(chunks) for c in chunks)
            assert [c.index for c in chunks] == list(range(len(chunks)))
            assert all(c.text == text[c.start:c.end] for c in chunks)

    def test_step_is_size_minus_overlap(self):
        chunks = Chunker.chunk_text("x" * 250, size=100, overlap=25)
        assert [c.start for c in chunks] == [0, 75, 150]
        assert [c.end for c in chunks] == [100, 175, 250]

    @pytest.mark.parametrize("size,overlap", [(0, 0), (-1, 0), (10, 10), (10, -1)])
    def test_invalid_parameters(self, size, overlap):
        with pytest.raises(ValueError):
            Chunker.chunk_text("abc", size, overlap)

    def test_needs_chunking(self):
        assert Chunker.needs_chunking("a" * 11, 10)
        assert not Chunker.needs_chunking("a" * 10, 10)


class TestCombineText:

    def test_exact_overlap_is_removed(self):
        text = _text()
        chunks = Chunker.chunk_text(text, size=300, overlap=50)
        assert Chunker.combine_text([c.text for c in chunks], overlap=50) == text

    def test_without_overlap_concatenates(self):
        assert Chunker.combine_text(["abc", "def"]) == "abcdef"

    def test_rewritten_overlap_cut_at_whitespace(self):
        combined = Chunker.combine_text(["premier bloc", "XXXX suite du texte"], overlap=3)
        assert combined == "premier bloc suite du texte"

    def test_short_coincidence_does_not_keep_rewritten_overlap(self):
        parts = ["Article 1er\nLe texte de la loi", "i texte de la loi corrigé. Article 2\nSuite."]
        combined = Chunker.combine_text(parts, overlap=18)

        assert combined.count("texte de la loi") == 1
        assert combined.endswith("Article 2\nSuite.")

    def test_empty(self):
        assert Chunker.combine_text([]) == ""


class TestChunkImages:
    """Lotes contíguos de páginas."""

    def test_batches(self):
        images = [f"img{i}" for i in range(7)]
        batches = Chunker.chunk_images(images, max_per_batch=3)

        assert [len(b.images) for b in batches] == [3, 3, 1]
        assert [(b.first_page, b.last_page) for b in batches] == [(1, 3), (4, 6), (7, 7)]
        assert [img for b in batches for img in b.images] == images
        assert all(b.total == 3 for b in batches)

    def test_empty(self):
        assert Chunker.chunk_images([], 3) == []

    def test_invalid_batch_size(self):
        with pytest.raises(ValueError):
            Chunker.chunk_images(["img"], 0)


class TestChunkArticles:

    def test_split_and_combine(self):
        payload = {
            "_metadata": {"documentId": "loi-2021-15"},
            "title": "LOI N° 2021-15",
            "articles": [{"index": i, "content": "c" * 100} for i in range(1, 11)],
        }
        batches = Chunker.chunk_articles(payload, max_chars=500)

        assert len(batches) > 1
        assert all(b["_metadata"] == payload["_metadata"] for b in batches)
        assert Chunker.combine_articles(batches) == payload

    def test_small_payload_single_batch(self):
        payload = {"articles": [{"index": 1, "content": "court"}]}
        assert Chunker.chunk_articles(payload, max_chars=1000) == [payload]

    def test_combine_fills_missing_fields(self):
        merged = Chunker.combine_articles([
            {"title": "", "articles": [{"index": 1}]},
            {"title": "LOI N° 1", "articles": [{"index": 2}]},
        ])
        assert merged["title"] == "LOI N° 1"
        assert [a["index"] for a in merged["articles"]] == [1, 2]


def test_estimate_tokens():
    assert estimate_tokens("a" * 400) == 100
