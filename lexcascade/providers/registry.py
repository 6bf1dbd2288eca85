"""
Registro de transformações e porta de execução com timeout.

Novas transformações entram por register(), nunca por ramificação em
nomes dentro da cascata. A porta executa cada chamada numa thread
separada, limitada por timeout_seconds do contexto; timeout, cancelamento
e erro do provider viram TransformationOutcome.failed().
"""

import logging
import threading
from concurrent.futures import CancelledError, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Iterable, Optional

from ..models import TransformationContext
from .base import (
    AIProviderPort,
    ProviderError,
    Transformation,
    TransformationName,
    TransformationOutcome,
)
from .transformations import default_transformations

logger = logging.getLogger(__name__)


class TransformationRegistry:
    """Mapa nome da transformação -> implementação."""

    def __init__(self, transformations: Iterable[Transformation] = ()):
        self._transformations: dict[TransformationName, Transformation] = {}
        for transformation in transformations:
            self.register(transformation)

    @classmethod
    def default(cls) -> "TransformationRegistry":
        return cls(default_transformations())

    def register(self, transformation: Transformation) -> None:
        name = TransformationName(transformation.name)
        if name in self._transformations:
            logger.warning(f"Transformação {name.value} substituída por {type(transformation).__name__}")
        self._transformations[name] = transformation

    def get(self, name: TransformationName) -> Optional[Transformation]:
        return self._transformations.get(TransformationName(name))

    def names(self) -> list[TransformationName]:
        return list(self._transformations)

    def __contains__(self, name: object) -> bool:
        try:
            return TransformationName(name) in self._transformations
        except ValueError:
            return False


class TransformationPort(AIProviderPort):
    """
    AIProviderPort sobre um TransformationRegistry.

    Dona do próprio ThreadPoolExecutor: quem cria a porta (ou o
    CascadeController que a recebe) deve chamar close(). Um timeout libera a
    cascata, mas a thread do worker só volta ao pool quando o provider retorna.
    """

    def __init__(
        self,
        registry: Optional[TransformationRegistry] = None,
        max_workers: int = 4,
        cancel_event: Optional[threading.Event] = None,
    ):
        """
        Args:
            registry: Transformações disponíveis (default: as quatro da cascata)
            max_workers: Threads para chamadas concorrentes (entre documentos)
            cancel_event: Quando sinalizado, chamadas pendentes e futuras falham
        """
        self.registry = registry or TransformationRegistry.default()
        self.cancel_event = cancel_event or threading.Event()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="ai-port")

    def can_run(self, name: TransformationName, context: TransformationContext) -> bool:
        transformation = self.registry.get(name)
        return transformation is not None and transformation.can_run(context)

    def estimate_tokens(self, name: TransformationName, data: Any, context: TransformationContext) -> int:
        transformation = self.registry.get(name)
        if transformation is None:
            return 0
        return transformation.estimate_tokens(data, context)

    def requires_vision(self, name: TransformationName) -> bool:
        transformation = self.registry.get(name)
        return bool(transformation and transformation.requires_vision)

    def run(self, name: TransformationName, data: Any, context: TransformationContext) -> TransformationOutcome:
        doc_id = context.document.document_id
        transformation = self.registry.get(name)
        if transformation is None:
            return TransformationOutcome.failed(f"Transformação não registrada: {name}")
        if not transformation.can_run(context):
            return TransformationOutcome.failed(f"Transformação {name} indisponível para o provider do contexto")
        if self.cancel_event.is_set():
            return TransformationOutcome.failed("Cancelado")

        timeout = context.config.timeout_seconds
        future = self._executor.submit(transformation.run, data, context)
        try:
            output = self._wait(future, timeout)
        except FutureTimeoutError:
            future.cancel()
            logger.warning(f"[{doc_id}] {name} excedeu o timeout de {timeout:.0f}s")
            return TransformationOutcome.failed(f"Timeout após {timeout:.0f}s")
        except CancelledError:
            logger.warning(f"[{doc_id}] {name} cancelado")
            return TransformationOutcome.failed("Cancelado")
        except ProviderError as e:
            logger.warning(f"[{doc_id}] {name} falhou: {e}", exc_info=True)
            return TransformationOutcome.failed(str(e))
        except Exception as e:
            logger.error(f"[{doc_id}] {name} erro inesperado: {e}", exc_info=True)
            return TransformationOutcome.failed(f"{type(e).__name__}: {e}")

        return TransformationOutcome.ok(output)

    def _wait(self, future, timeout: float) -> Any:
        """Espera o resultado em fatias, para reagir ao cancel_event."""
        waited = 0.0
        step = min(0.5, timeout)
        while True:
            if self.cancel_event.is_set():
                future.cancel()
                raise CancelledError()
            try:
                return future.result(timeout=step)
            except FutureTimeoutError:
                waited += step
                if waited >= timeout:
                    raise

    def cancel(self) -> None:
        self.cancel_event.set()

    def close(self) -> None:
        # Chamadas já em execução não são interrompidas; terminam no timeout HTTP do provider
        self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
