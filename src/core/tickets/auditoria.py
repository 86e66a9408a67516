"""
Audit Recorder - Histórico imutável de transições.

Cada transição aceita (inclusive a criação, com estado anterior None)
gera exatamente um RegistroTransicao, gravado dentro do mesmo Unit of
Work da mudança de estado. Uma transição aceita sem registro seria uma
violação de consistência irrecuperável; por isso uma falha aqui
propaga e desfaz a transação inteira.
"""

from typing import Iterable, Optional
import logging

from src.core.shared.exceptions import InternalError

from .entities import RegistroTransicao
from .ports import HistoricoRepository

logger = logging.getLogger(__name__)


class RegistradorAuditoria:
    """
    Example:
        with uow:
            ticket_repo.atualizar(ticket, versao)
            auditoria.registrar(ticket.id, "received", "in_progress", funcionario_id)
    """

    def __init__(self, historico_repo: HistoricoRepository):
        self.historico_repo = historico_repo

    def registrar(
        self,
        ticket_id: str,
        estado_anterior: Optional[str],
        estado_novo: Optional[str],
        funcionario_id: Optional[str] = None,
        notas: str = "",
        item_id: Optional[str] = None,
    ) -> RegistroTransicao:
        registro = self.historico_repo.append(
            RegistroTransicao(
                ticket_id=ticket_id,
                item_id=item_id,
                estado_anterior=estado_anterior,
                estado_novo=estado_novo,
                funcionario_id=funcionario_id,
                notas=notas or "",
            )
        )
        logger.debug(
            f"Transição registrada: ticket={ticket_id} item={item_id or '-'} "
            f"{estado_anterior} -> {estado_novo} seq={registro.sequencia}"
        )
        return registro


def reconstruir_estado(registros: Iterable[RegistroTransicao]) -> Optional[str]:
    """
    Reaplica o histórico em ordem e devolve o estado final.

    Cada registro deve partir do estado em que o anterior terminou;
    o primeiro deve ser o registro inicial (estado anterior None).

    Raises:
        InternalError: Histórico com lacuna ou sem registro inicial
    """
    estado: Optional[str] = None
    inicio = True
    for registro in registros:
        if inicio:
            if not registro.e_inicial:
                raise InternalError(
                    f"Histórico do ticket {registro.ticket_id} não começa no registro inicial"
                )
            inicio = False
        elif registro.estado_anterior != estado:
            raise InternalError(
                f"Histórico do ticket {registro.ticket_id} inconsistente na sequência "
                f"{registro.sequencia}: esperado '{estado}', encontrado '{registro.estado_anterior}'"
            )
        estado = registro.estado_novo
    return estado
