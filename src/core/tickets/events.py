"""
Domain Events do Domínio de Tickets.

Eventos:
- TicketCriadoEvent: Novo ticket entrou na fila
- TicketTransicionadoEvent: Ticket mudou de estado
- TicketAtribuidoEvent: Funcionário responsável definido
- TicketEncaminhadoEvent: Ticket mudou de fila
- TicketReordenadoEvent: Posição alterada manualmente
- TicketCanceladoEvent: Ticket cancelado
- TicketEscaladoEvent: Ticket expirou sem ser encerrado
- ItemAdicionadoEvent / ItemTransicionadoEvent

Uso:
    Eventos são criados nos use cases e enfileirados no UnitOfWork;
    são gravados no Event Store na mesma transação e publicados após
    o commit. Encaminhamentos e reordenações não geram registros de
    transição: a auditoria dessas movimentações é o próprio evento.

    with uow:
        ticket_repo.atualizar(ticket, versao)
        uow.publish_event(TicketEncaminhadoEvent(...))
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from src.core.shared.events import DomainEvent


@dataclass
class TicketCriadoEvent(DomainEvent):
    """
    Evento: Ticket foi criado.

    Handlers típicos:
    - Atualizar monitores da fila
    - Notificar a pessoa atendida (fora deste serviço)
    """

    fila_id: str = ""
    definicao_id: str = ""
    estado: str = ""
    posicao: int = 0
    pessoa_id: Optional[str] = None

    @property
    def aggregate_type(self) -> str:
        return "Ticket"

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "fila_id": self.fila_id,
            "definicao_id": self.definicao_id,
            "estado": self.estado,
            "posicao": self.posicao,
            "pessoa_id": self.pessoa_id,
        }


@dataclass
class TicketTransicionadoEvent(DomainEvent):
    """
    Evento: Ticket mudou de estado.

    Attributes:
        transicao: Nome da transição aplicada
        estado_anterior: Estado de origem
        estado_novo: Estado de destino
        funcionario_id: Ator (opcional)
    """

    transicao: str = ""
    estado_anterior: str = ""
    estado_novo: str = ""
    funcionario_id: Optional[str] = None

    @property
    def aggregate_type(self) -> str:
        return "Ticket"

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "transicao": self.transicao,
            "estado_anterior": self.estado_anterior,
            "estado_novo": self.estado_novo,
            "funcionario_id": self.funcionario_id,
        }


@dataclass
class TicketAtribuidoEvent(DomainEvent):
    funcionario_id: str = ""
    funcionario_anterior_id: Optional[str] = None

    @property
    def aggregate_type(self) -> str:
        return "Ticket"

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "funcionario_id": self.funcionario_id,
            "funcionario_anterior_id": self.funcionario_anterior_id,
        }


@dataclass
class TicketEncaminhadoEvent(DomainEvent):
    """
    Evento: Ticket foi encaminhado para outra fila.

    Registro de auditoria do encaminhamento (persistido no Event Store).
    """

    fila_origem_id: str = ""
    fila_destino_id: str = ""
    posicao: int = 0
    motivo: str = ""

    @property
    def aggregate_type(self) -> str:
        return "Ticket"

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "fila_origem_id": self.fila_origem_id,
            "fila_destino_id": self.fila_destino_id,
            "posicao": self.posicao,
            "motivo": self.motivo,
        }


@dataclass
class TicketReordenadoEvent(DomainEvent):
    fila_id: str = ""
    posicao_anterior: Optional[int] = None
    posicao_nova: int = 0
    motivo: str = ""

    @property
    def aggregate_type(self) -> str:
        return "Ticket"

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "fila_id": self.fila_id,
            "posicao_anterior": self.posicao_anterior,
            "posicao_nova": self.posicao_nova,
            "motivo": self.motivo,
        }


@dataclass
class TicketCanceladoEvent(DomainEvent):
    estado_anterior: str = ""
    estado_novo: str = ""
    motivo: str = ""
    funcionario_id: Optional[str] = None

    @property
    def aggregate_type(self) -> str:
        return "Ticket"

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "estado_anterior": self.estado_anterior,
            "estado_novo": self.estado_novo,
            "motivo": self.motivo,
            "funcionario_id": self.funcionario_id,
        }


@dataclass
class TicketEscaladoEvent(DomainEvent):
    """
    Evento: Ticket passou da expiração (TTL) sem ser encerrado.

    Disparado pela tarefa periódica de escalonamento.
    """

    fila_id: str = ""
    estado: str = ""
    expira_em: str = ""

    @property
    def aggregate_type(self) -> str:
        return "Ticket"

    def _get_event_data(self) -> Dict[str, Any]:
        return {"fila_id": self.fila_id, "estado": self.estado, "expira_em": self.expira_em}


@dataclass
class ItemAdicionadoEvent(DomainEvent):
    item_id: str = ""
    definicao_id: str = ""
    estado: Optional[str] = None
    quantidade: int = 1

    @property
    def aggregate_type(self) -> str:
        return "Ticket"

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "item_id": self.item_id,
            "definicao_id": self.definicao_id,
            "estado": self.estado,
            "quantidade": self.quantidade,
        }


@dataclass
class ItemTransicionadoEvent(DomainEvent):
    item_id: str = ""
    transicao: str = ""
    estado_anterior: Optional[str] = None
    estado_novo: str = ""
    funcionario_id: Optional[str] = None

    @property
    def aggregate_type(self) -> str:
        return "Ticket"

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "item_id": self.item_id,
            "transicao": self.transicao,
            "estado_anterior": self.estado_anterior,
            "estado_novo": self.estado_novo,
            "funcionario_id": self.funcionario_id,
        }
