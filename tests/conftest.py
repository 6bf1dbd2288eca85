"""
Configuração global do pytest para os testes do lexcascade.

Adiciona a raiz do projeto ao PYTHONPATH e define fixtures compartilhadas:
um texto de lei sintético bem formado, um texto OCR ruidoso e dublês de
provider, porta e seletor que registram as chamadas.
"""

import sys
from pathlib import Path
from typing import Any, Optional, Sequence

import pytest

root_path = Path(__file__).parent.parent
if str(root_path) not in sys.path:
    sys.path.insert(0, str(root_path))

from lexcascade.config import DEFAULT_LEGAL_TERMS  # noqa: E402
from lexcascade.extraction.baseline import BaselineExtractor  # noqa: E402
from lexcascade.extraction.corrections import CorrectionTable  # noqa: E402
from lexcascade.extraction.metadata_extractor import MetadataExtractor, load_signatory_patterns  # noqa: E402
from lexcascade.models import Document, TransformationContext  # noqa: E402
from lexcascade.providers.base import (  # noqa: E402
    AIProviderPort,
    LLMProvider,
    ProviderCapabilities,
    ProviderError,
    ProviderSelector,
    TransformationName,
    TransformationOutcome,
)
from lexcascade.quality.confidence import ConfidenceScorer  # noqa: E402
from lexcascade.quality.dictionary import WordDictionary, tokenize  # noqa: E402
from lexcascade.quality.structural_matcher import StructuralMatcher  # noqa: E402


# =============================================================================
# TEXTOS
# =============================================================================

LAW_TEXT = """RÉPUBLIQUE DU BÉNIN
Fraternité - Justice - Travail
PRÉSIDENCE DE LA RÉPUBLIQUE

LOI N° 2021-15 DU 20 DÉCEMBRE 2021
portant code de protection de l'enfant en République du Bénin

L'Assemblée nationale a délibéré et adopté en sa séance du 30 novembre 2021 ;
Le Président de la République promulgue la loi dont la teneur suit :

Article 1er
La présente loi fixe les règles applicables à la protection de l'enfant, notamment en matière civile.

Article 2
Conformément à la Constitution, le ministre chargé de la famille veille à son application.

Article 3
Sont abrogées toutes dispositions antérieures contraires. La présente loi sera publiée au Journal officiel et exécutée comme loi de l'État.

Fait à Porto-Novo, le 20 décembre 2021

Par le Président de la République,
Chef de l'État, Chef du Gouvernement,
Patrice TALON

AMPLIATIONS : PR 6 AN 4 CC 2 CS 2 JO 1
"""

NOISY_TEXT = """Article 1er
xqzv wrtp lmnq bvcx trwq pzxk qwzr vbnm zxcv plmk jhgf dsaq
wxcv bnqz kjhy tgrf vcxz mlkp oiuy rtzq wqsd fghj klmw xcvb
"""

NO_ARTICLES_TEXT = """RÉPUBLIQUE DU BÉNIN
Ce document ne contient aucun marqueur exploitable.
"""


@pytest.fixture
def law_text() -> str:
    return LAW_TEXT


@pytest.fixture
def noisy_text() -> str:
    return NOISY_TEXT


@pytest.fixture
def document() -> Document:
    return Document.from_id("loi-2021-15")


@pytest.fixture
def dictionary() -> WordDictionary:
    """Dicionário que reconhece todas as palavras do texto sintético."""
    return WordDictionary(tokenize(LAW_TEXT))


@pytest.fixture
def scorer(dictionary) -> ConfidenceScorer:
    return ConfidenceScorer(
        matcher=StructuralMatcher(legal_terms=DEFAULT_LEGAL_TERMS),
        dictionary=dictionary,
    )


@pytest.fixture
def baseline(scorer) -> BaselineExtractor:
    return BaselineExtractor(
        scorer=scorer,
        corrections=CorrectionTable(),
        metadata_extractor=MetadataExtractor(load_signatory_patterns()),
    )


# =============================================================================
# DUBLÊS DE PROVIDER / PORTA / SELETOR
# =============================================================================

class FakeProvider(LLMProvider):
    """Provider roteirizado: devolve as respostas em ordem e registra os prompts."""

    def __init__(
        self,
        responses: Sequence[Any] = (),
        name: str = "fake",
        supports_vision: bool = True,
        max_context_tokens: int = 100000,
        max_images_per_request: int = 5,
        available: bool = True,
    ):
        self.name = name
        self.responses = list(responses)
        self.prompts: list[str] = []
        self.images: list[tuple] = []
        self.available = available
        self._capabilities = ProviderCapabilities(
            supports_vision=supports_vision,
            max_context_tokens=max_context_tokens,
            max_images_per_request=max_images_per_request,
        )

    @property
    def capabilities(self) -> ProviderCapabilities:
        return self._capabilities

    def is_available(self) -> bool:
        return self.available

    def complete(self, prompt, images=(), system=None, temperature=0.1, max_tokens=4000) -> str:
        self.prompts.append(prompt)
        self.images.append(tuple(images))
        if not self.responses:
            raise ProviderError(f"{self.name}: sem resposta roteirizada")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(prompt)
        return response


class FakePort(AIProviderPort):
    """
    Porta roteirizada por nome de transformação.

    Valor em `outputs` = saída de sucesso; ausência ou Exception = falha.
    """

    def __init__(self, outputs: Optional[dict] = None, vision: Sequence[TransformationName] = ()):
        self.outputs = dict(outputs or {})
        self.vision = set(vision) or {TransformationName.PDF_TO_JSON}
        self.calls: list[tuple[TransformationName, Any, TransformationContext]] = []
        self.closed = False

    def can_run(self, name, context) -> bool:
        return context.provider is not None

    def requires_vision(self, name) -> bool:
        return name in self.vision

    def estimate_tokens(self, name, data, context) -> int:
        return 100

    def run(self, name, data, context) -> TransformationOutcome:
        self.calls.append((name, data, context))
        output = self.outputs.get(name)
        if output is None:
            return TransformationOutcome.failed(f"{name.value} indisponível")
        if isinstance(output, Exception):
            return TransformationOutcome.failed(str(output))
        return TransformationOutcome.ok(output)

    def called(self) -> list[TransformationName]:
        return [name for name, _, _ in self.calls]

    def close(self) -> None:
        self.closed = True


class FakeSelector(ProviderSelector):
    """Sempre o mesmo provider (ou nenhum); registra as necessidades declaradas."""

    def __init__(self, provider: Optional[LLMProvider] = None):
        self.provider = provider
        self.requests: list[tuple[bool, int]] = []

    def select(self, requires_vision: bool, estimated_tokens: int) -> Optional[LLMProvider]:
        self.requests.append((requires_vision, estimated_tokens))
        if self.provider is None or not self.provider.supports(requires_vision, estimated_tokens):
            return None
        return self.provider


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def fake_selector(fake_provider) -> FakeSelector:
    return FakeSelector(fake_provider)
