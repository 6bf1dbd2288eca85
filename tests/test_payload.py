"""Testes da serialização do payload."""

from lexcascade.extraction.payload import (
    METADATA_KEY,
    build_payload,
    normalize_payload,
    parse_articles,
    parse_signatories,
)
from lexcascade.models import Article, DocumentMetadata, Signatory


class TestBuildPayload:

    def test_fields(self, document):
        metadata = DocumentMetadata(
            title="LOI N° 2021-15",
            promulgation_date="2021-12-20",
            signatories=(Signatory(name="Patrice TALON", role="Président", order=1),),
        )
        payload = build_payload(
            document, [Article(index=1, content="Contenu")], metadata, 0.81234, "baseline-ocr"
        )

        assert payload[METADATA_KEY]["documentId"] == "loi-2021-15"
        assert payload[METADATA_KEY]["type"] == "loi"
        assert payload[METADATA_KEY]["year"] == 2021
        assert payload[METADATA_KEY]["number"] == 15
        assert payload[METADATA_KEY]["confidence"] == 0.8123
        assert payload[METADATA_KEY]["timestamp"].endswith("Z")
        assert payload["articles"] == [{"index": 1, "content": "Contenu"}]
        assert payload["signatories"][0]["order"] == 1

    def test_absent_fields_are_omitted(self, document):
        payload = build_payload(document, [], DocumentMetadata(), 0.0, "baseline-ocr", timestamp="t")

        assert "title" not in payload
        assert "promulgationCity" not in payload
        assert "signatories" not in payload
        assert payload[METADATA_KEY]["timestamp"] == "t"


class TestParsing:

    def test_parse_articles_is_lenient(self):
        payload = {"articles": [
            {"index": "2", "content": " Deuxième "},
            {"index": 0, "content": "invalide"},
            {"index": True, "content": "invalide"},
            {"content": "sans index"},
            "texte",
            {"index": 3, "text": "Troisième"},
        ]}
        articles = parse_articles(payload)
        assert [(a.index, a.content) for a in articles] == [(2, "Deuxième"), (3, "Troisième")]

    def test_parse_articles_without_list(self):
        assert parse_articles({"articles": "nope"}) == []

    def test_signatory_order_defaults_to_position(self):
        signatories = parse_signatories({"signatories": [
            {"name": "A", "role": "r"},
            {"role": "sans nom"},
            {"name": "B", "order": 5},
        ]})
        assert [(s.name, s.order) for s in signatories] == [("A", 1), ("B", 5)]


class TestNormalizePayload:

    def test_identity_and_provenance_are_rewritten(self, document):
        raw = {
            "_metadata": {"documentId": "autre", "source": "inventé"},
            "title": "  LOI N° 2021-15 ",
            "promulgationCity": "Cotonou",
            "articles": [{"index": 1, "content": "Contenu"}, {"index": "x"}],
            "extra": "ignoré",
        }
        payload = normalize_payload(raw, document, 0.6, "ai-json-corrected")

        assert payload[METADATA_KEY]["documentId"] == "loi-2021-15"
        assert payload[METADATA_KEY]["source"] == "ai-json-corrected"
        assert payload["title"] == "LOI N° 2021-15"
        assert payload["articles"] == [{"index": 1, "content": "Contenu"}]
        assert "extra" not in payload

    def test_input_is_not_mutated(self, document):
        raw = {"articles": [{"index": "1", "content": "x"}]}
        normalize_payload(raw, document, 0.5, "ai-full")
        assert raw == {"articles": [{"index": "1", "content": "x"}]}
