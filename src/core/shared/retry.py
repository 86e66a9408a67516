"""
Política de nova tentativa para falhas transitórias de armazenamento.

Somente RepositoryError com transient=True é repetido. Erros de
validação e de regra de negócio são respostas finais e sobem
imediatamente para o chamador.
"""

from dataclasses import dataclass
from typing import Callable, TypeVar
import logging
import time

from .exceptions import InternalError, RepositoryError

logger = logging.getLogger(__name__)

R = TypeVar("R")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Número máximo de tentativas com backoff exponencial.

    Attributes:
        max_tentativas: Total de execuções (1 = sem repetição)
        backoff_inicial: Espera antes da segunda tentativa (segundos)
        fator: Multiplicador da espera a cada nova tentativa
        backoff_maximo: Teto da espera entre tentativas

    Example:
        politica = RetryPolicy(max_tentativas=3, backoff_inicial=0.05)
        ticket = politica.executar(lambda: self._executar(dto), "transicionar")
    """

    max_tentativas: int = 3
    backoff_inicial: float = 0.05
    fator: float = 2.0
    backoff_maximo: float = 2.0

    def espera(self, tentativa: int) -> float:
        """Espera após a tentativa `tentativa` (1-indexed) falhar."""
        return min(self.backoff_inicial * (self.fator ** (tentativa - 1)), self.backoff_maximo)

    def executar(
        self,
        operacao: Callable[[], R],
        descricao: str = "operacao",
        dormir: Callable[[float], None] = time.sleep,
    ) -> R:
        """
        Executa `operacao`, repetindo em caso de falha transitória.

        Raises:
            InternalError: Se todas as tentativas falharem
            DomainException: Qualquer outro erro, sem repetição
        """
        tentativa = 1
        while True:
            try:
                return operacao()
            except RepositoryError as e:
                if not e.transient:
                    raise
                if tentativa >= self.max_tentativas:
                    logger.error(
                        f"{descricao}: falha transitória persistiu após "
                        f"{tentativa} tentativas: {e.message}"
                    )
                    raise InternalError(
                        f"{descricao} falhou após {tentativa} tentativas"
                    ) from e
                atraso = self.espera(tentativa)
                logger.warning(
                    f"{descricao}: falha transitória ({e.message}), "
                    f"nova tentativa em {atraso:.2f}s "
                    f"[{tentativa}/{self.max_tentativas}]"
                )
                dormir(atraso)
                tentativa += 1


SEM_RETRY = RetryPolicy(max_tentativas=1)
