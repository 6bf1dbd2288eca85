"""
Serialização do documento estruturado (payload JSON).

Formato (nomes de campos são contrato com os consumidores downstream):

    {
      "_metadata": {"confidence", "source", "timestamp",
                    "documentId", "type", "year", "number"},
      "title": ..., "promulgationDate": ..., "promulgationCity": ...,
      "articles": [{"index": 1, "content": "..."}],
      "signatories": [{"name": ..., "role": ..., "order": 1}]
    }

Campos opcionais ausentes não são serializados.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from ..models import Article, Document, DocumentMetadata, Signatory

logger = logging.getLogger(__name__)

METADATA_KEY = "_metadata"
ARTICLES_KEY = "articles"
SIGNATORIES_KEY = "signatories"


def utc_timestamp() -> str:
    """Timestamp ISO-8601 UTC com sufixo Z."""
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat(timespec="seconds") + "Z"


def metadata_block(
    document: Document,
    confidence: float,
    source: str,
    timestamp: Optional[str] = None,
) -> dict[str, Any]:
    return {
        "confidence": round(confidence, 4),
        "source": source,
        "timestamp": timestamp or utc_timestamp(),
        "documentId": document.document_id,
        "type": document.type.value,
        "year": document.year,
        "number": document.number,
    }


def build_payload(
    document: Document,
    articles: Iterable[Article],
    metadata: DocumentMetadata,
    confidence: float,
    source: str,
    timestamp: Optional[str] = None,
) -> dict[str, Any]:
    """Monta o payload a partir de objetos tipados."""
    payload: dict[str, Any] = {METADATA_KEY: metadata_block(document, confidence, source, timestamp)}

    if metadata.title:
        payload["title"] = metadata.title
    if metadata.promulgation_date:
        payload["promulgationDate"] = metadata.promulgation_date
    if metadata.promulgation_city:
        payload["promulgationCity"] = metadata.promulgation_city

    payload[ARTICLES_KEY] = [{"index": a.index, "content": a.content} for a in articles]

    if metadata.signatories:
        payload[SIGNATORIES_KEY] = [
            {"name": s.name, "role": s.role, "order": s.order} for s in metadata.signatories
        ]
    return payload


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def parse_articles(payload: dict[str, Any]) -> list[Article]:
    """Artigos válidos do payload, na ordem original (itens malformados são ignorados)."""
    raw = payload.get(ARTICLES_KEY)
    if not isinstance(raw, list):
        return []
    articles = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        index = _as_int(item.get("index"))
        content = item.get("content", item.get("text"))
        if index is None or index < 1 or not isinstance(content, str):
            continue
        articles.append(Article(index=index, content=content.strip()))
    return articles


def parse_signatories(payload: dict[str, Any]) -> list[Signatory]:
    raw = payload.get(SIGNATORIES_KEY)
    if not isinstance(raw, list):
        return []
    signatories = []
    for position, item in enumerate(raw, start=1):
        if not isinstance(item, dict) or not item.get("name"):
            continue
        order = _as_int(item.get("order"))
        signatories.append(Signatory(
            name=str(item["name"]).strip(),
            role=str(item.get("role") or "").strip(),
            order=order if order and order > 0 else position,
        ))
    return signatories


def parse_metadata(payload: dict[str, Any]) -> DocumentMetadata:
    def _text(key: str) -> Optional[str]:
        value = payload.get(key)
        return value.strip() if isinstance(value, str) and value.strip() else None

    return DocumentMetadata(
        title=_text("title"),
        promulgation_date=_text("promulgationDate"),
        promulgation_city=_text("promulgationCity"),
        signatories=tuple(parse_signatories(payload)),
    )


def normalize_payload(
    raw: dict[str, Any],
    document: Document,
    confidence: float,
    source: str,
) -> dict[str, Any]:
    """
    Normaliza um payload produzido por um modelo.

    Os campos de identificação e proveniência são sempre reescritos a
    partir do documento; artigos e signatários são re-serializados apenas
    com os itens válidos.
    """
    articles = parse_articles(raw)
    metadata = parse_metadata(raw)
    payload = build_payload(document, articles, metadata, confidence, source)
    if not articles:
        logger.debug(f"[{document.document_id}] Payload do modelo sem artigos válidos")
    return payload

