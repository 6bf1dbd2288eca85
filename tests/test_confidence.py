"""Testes dos scores de OCR confidence e JSON quality."""

import json

import pytest

from lexcascade.config import DEFAULT_LEGAL_TERMS
from lexcascade.extraction.article_sequencer import ArticleSequencer
from lexcascade.models import Article
from lexcascade.quality.confidence import ConfidenceScorer
from lexcascade.quality.dictionary import WordDictionary
from lexcascade.quality.structural_matcher import StructuralMatcher


def _complete_payload(indices=(1, 2, 3)):
    return {
        "_metadata": {
            "confidence": 0.8,
            "source": "baseline-ocr",
            "timestamp": "2024-01-01T00:00:00Z",
            "documentId": "loi-2021-15",
            "type": "loi",
            "year": 2021,
            "number": 15,
        },
        "promulgationDate": "2021-12-20",
        "promulgationCity": "Porto-Novo",
        "articles": [{"index": i, "content": f"Contenu {i}"} for i in indices],
        "signatories": [{"name": "Patrice TALON", "role": "Président de la République", "order": 1}],
    }


class TestOcrConfidence:
    """Score de confiança da extração a partir do texto."""

    def test_well_formed_document_scores_high(self, scorer, law_text):
        articles = ArticleSequencer().extract(law_text)
        report = scorer.analyze_ocr(law_text, articles)

        assert report.confidence > 0.7
        assert report.sequence_score == 1.0
        assert report.structure_score == 1.0
        assert report.legal_term_score == 1.0
        assert report.word_stats.rate < 0.05

    def test_deterministic(self, scorer, law_text):
        articles = ArticleSequencer().extract(law_text)
        first = scorer.ocr_confidence(law_text, articles)
        second = scorer.ocr_confidence(law_text, articles)
        assert first == second

    def test_noisy_text_scores_low(self, scorer, noisy_text):
        articles = ArticleSequencer().extract(noisy_text)
        assert scorer.ocr_confidence(noisy_text, articles) < 0.3

    def test_empty_inputs_score_zero(self, scorer, law_text):
        articles = [Article(index=1, content="Contenu de l'article")]
        assert scorer.ocr_confidence("", articles) == 0.0
        assert scorer.ocr_confidence(law_text, []) == 0.0

    def test_empty_dictionary_applies_no_penalty(self, noisy_text):
        scorer = ConfidenceScorer(dictionary=WordDictionary())
        articles = ArticleSequencer().extract(noisy_text)
        assert scorer.analyze_ocr(noisy_text, articles).dictionary_score == 1.0

    def test_does_not_mutate_articles(self, scorer, law_text):
        articles = ArticleSequencer().extract(law_text)
        snapshot = [a.model_dump() for a in articles]
        scorer.ocr_confidence(law_text, articles)
        assert [a.model_dump() for a in articles] == snapshot

    def test_gaps_lower_confidence(self, dictionary, law_text):
        scorer = ConfidenceScorer(
            matcher=StructuralMatcher(legal_terms=DEFAULT_LEGAL_TERMS),
            dictionary=dictionary,
        )
        sequential = [Article(index=i, content="x" * 20) for i in (1, 2, 3)]
        gapped = [Article(index=i, content="x" * 20) for i in (1, 3, 5)]
        assert scorer.ocr_confidence(law_text, gapped) < scorer.ocr_confidence(law_text, sequential)


class TestJsonQuality:
    """Score de completude do payload."""

    def test_complete_payload(self):
        assert ConfidenceScorer().json_quality(_complete_payload()) == pytest.approx(1.0)

    def test_accepts_json_string(self):
        payload = _complete_payload()
        scorer = ConfidenceScorer()
        assert scorer.json_quality(json.dumps(payload)) == scorer.json_quality(payload)

    @pytest.mark.parametrize("payload", ["not json", "[1, 2]", None, ""])
    def test_unparseable_scores_zero(self, payload):
        assert ConfidenceScorer().json_quality(payload) == 0.0

    def test_non_consecutive_articles_half_credit(self):
        report = ConfidenceScorer().analyze_json(_complete_payload(indices=(1, 3)))
        assert report.articles_score == 0.5
        assert report.quality == pytest.approx(0.85)

    def test_missing_articles(self):
        payload = _complete_payload()
        del payload["articles"]
        report = ConfidenceScorer().analyze_json(payload)

        assert report.articles_score == 0.0
        assert report.structure_score == 0.0
        assert "articles" in report.missing_fields
        assert report.quality == pytest.approx(0.27 + 0.1)

    def test_missing_signatories(self):
        payload = _complete_payload()
        payload["signatories"] = []
        assert ConfidenceScorer().json_quality(payload) == pytest.approx(0.9)

    def test_metadata_fields_found_at_root(self):
        payload = {
            "_metadata": {"documentId": "loi-2021-15"},
            "type": "loi",
            "articles": [{"index": 1, "content": "Contenu"}],
        }
        report = ConfidenceScorer().analyze_json(payload)

        assert "documentId" not in report.missing_fields
        assert "type" not in report.missing_fields
        assert report.metadata_score == pytest.approx(3 / 10)

    def test_baseline_candidate_is_accepted(self, baseline, document, law_text):
        outcome = baseline.extract(document, law_text)
        assert outcome.candidate.quality == pytest.approx(1.0)
