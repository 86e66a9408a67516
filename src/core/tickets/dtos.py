"""
Data Transfer Objects (DTOs) do Domínio de Tickets.

DTOs transportam dados entre camadas sem expor as entidades.

Tipos de DTOs:
- Input DTOs: Dados de entrada de cada operação (sempre com tenant_id)
- Output DTOs: Formato externo (camelCase) devolvido pela API
- Query DTOs: Filtros e paginação das consultas de fila
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from .entities import ItemTicketEntity, RegistroTransicao, TicketEntity


def _iso(valor: Optional[datetime]) -> Optional[str]:
    return valor.isoformat() if valor else None


# =============================================================================
# INPUT DTOs (Entrada)
# =============================================================================

@dataclass(frozen=True)
class CriarTicketInputDTO:
    """
    DTO de entrada para criar ticket.

    Imutável (frozen=True) para que dados de entrada não sejam
    alterados durante o processamento.

    Attributes:
        tenant_id: Tenant chamador
        fila_id: Fila de destino
        definicao_id: Definição de Tipo do ticket
        payload: Dados livres validados pelo schema do tipo
        pessoa_id: Pessoa atendida (opcional)
        ttl_minutos: Tempo de vida (opcional)
        ticket_referenciado_id: Ticket anterior do fluxo (opcional)
    """

    tenant_id: str
    fila_id: str
    definicao_id: str
    payload: Dict[str, Any] = field(default_factory=dict)
    pessoa_id: Optional[str] = None
    ttl_minutos: Optional[int] = None
    ticket_referenciado_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "tenant_id": self.tenant_id,
            "fila_id": self.fila_id,
            "definicao_id": self.definicao_id,
            "payload": self.payload,
            "pessoa_id": self.pessoa_id,
            "ttl_minutos": self.ttl_minutos,
            "ticket_referenciado_id": self.ticket_referenciado_id,
        }


@dataclass(frozen=True)
class TransicionarTicketInputDTO:
    """
    DTO de entrada para transicionar ticket.

    Attributes:
        tenant_id: Tenant chamador
        ticket_id: Ticket alvo
        transicao: Nome da transição (ex: "start")
        funcionario_id: Ator (opcional)
        notas: Observação gravada no histórico
    """

    tenant_id: str
    ticket_id: str
    transicao: str
    funcionario_id: Optional[str] = None
    notas: str = ""

    def to_dict(self) -> dict:
        return {
            "tenant_id": self.tenant_id,
            "ticket_id": self.ticket_id,
            "transicao": self.transicao,
            "funcionario_id": self.funcionario_id,
            "notas": self.notas,
        }


@dataclass(frozen=True)
class AtribuirFuncionarioInputDTO:
    tenant_id: str
    ticket_id: str
    funcionario_id: str

    def to_dict(self) -> dict:
        return {
            "tenant_id": self.tenant_id,
            "ticket_id": self.ticket_id,
            "funcionario_id": self.funcionario_id,
        }


@dataclass(frozen=True)
class EncaminharTicketInputDTO:
    tenant_id: str
    ticket_id: str
    fila_destino_id: str
    motivo: str = ""

    def to_dict(self) -> dict:
        return {
            "tenant_id": self.tenant_id,
            "ticket_id": self.ticket_id,
            "fila_destino_id": self.fila_destino_id,
            "motivo": self.motivo,
        }


@dataclass(frozen=True)
class ReordenarTicketInputDTO:
    """
    Attributes:
        nova_posicao: Posição 0-based desejada (limitada ao tamanho da fila)
    """

    tenant_id: str
    ticket_id: str
    nova_posicao: int
    motivo: str = ""

    def to_dict(self) -> dict:
        return {
            "tenant_id": self.tenant_id,
            "ticket_id": self.ticket_id,
            "nova_posicao": self.nova_posicao,
            "motivo": self.motivo,
        }


@dataclass(frozen=True)
class CancelarTicketInputDTO:
    tenant_id: str
    ticket_id: str
    motivo: str = ""
    funcionario_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "tenant_id": self.tenant_id,
            "ticket_id": self.ticket_id,
            "motivo": self.motivo,
            "funcionario_id": self.funcionario_id,
        }


@dataclass(frozen=True)
class AdicionarItemInputDTO:
    """
    DTO de entrada para adicionar item a um ticket.

    Attributes:
        definicao_id: Tipo do item (deve constar em nestedItemTypeIds
            do tipo do ticket)
        quantidade: Quantidade (>= 1)
        preco_unitario: Preço unitário (texto ou número)
        item_externo_id / item_externo_nome: Referência ao catálogo externo
    """

    tenant_id: str
    ticket_id: str
    definicao_id: str
    payload: Dict[str, Any] = field(default_factory=dict)
    quantidade: int = 1
    preco_unitario: Optional[Any] = None
    item_externo_id: Optional[str] = None
    item_externo_nome: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "tenant_id": self.tenant_id,
            "ticket_id": self.ticket_id,
            "definicao_id": self.definicao_id,
            "payload": self.payload,
            "quantidade": self.quantidade,
            "preco_unitario": None if self.preco_unitario is None else str(self.preco_unitario),
            "item_externo_id": self.item_externo_id,
            "item_externo_nome": self.item_externo_nome,
        }


@dataclass(frozen=True)
class TransicionarItemInputDTO:
    tenant_id: str
    ticket_id: str
    item_id: str
    transicao: str
    funcionario_id: Optional[str] = None
    notas: str = ""

    def to_dict(self) -> dict:
        return {
            "tenant_id": self.tenant_id,
            "ticket_id": self.ticket_id,
            "item_id": self.item_id,
            "transicao": self.transicao,
            "funcionario_id": self.funcionario_id,
            "notas": self.notas,
        }


# =============================================================================
# OUTPUT DTOs (Saída)
# =============================================================================

@dataclass
class TicketOutputDTO:
    """
    DTO de saída completo com dados do ticket.

    estado_anterior só é preenchido na resposta de uma transição;
    posicao, quando a operação conhece a posição na fila.
    """

    id: str
    definicao_id: str
    fila_id: str
    estado: str
    pessoa_id: Optional[str]
    ticket_referenciado_id: Optional[str]
    funcionario_id: Optional[str]
    payload: Dict[str, Any]
    ttl_minutos: Optional[int]
    expira_em: Optional[datetime]
    escalado_em: Optional[datetime]
    iniciado_em: Optional[datetime]
    pronto_em: Optional[datetime]
    retirado_em: Optional[datetime]
    concluido_em: Optional[datetime]
    cancelado_em: Optional[datetime]
    espera_real_minutos: Optional[int]
    fila_anterior_id: Optional[str]
    versao: int
    criado_em: datetime
    atualizado_em: datetime
    estado_anterior: Optional[str] = None
    posicao: Optional[int] = None

    @classmethod
    def from_entity(
        cls,
        entity: TicketEntity,
        estado_anterior: Optional[str] = None,
        posicao: Optional[int] = None,
    ) -> "TicketOutputDTO":
        return cls(
            id=entity.id,
            definicao_id=entity.definicao_id,
            fila_id=entity.fila_id,
            estado=entity.estado,
            pessoa_id=entity.pessoa_id,
            ticket_referenciado_id=entity.ticket_referenciado_id,
            funcionario_id=entity.funcionario_id,
            payload=dict(entity.payload),
            ttl_minutos=entity.ttl_minutos,
            expira_em=entity.expira_em,
            escalado_em=entity.escalado_em,
            iniciado_em=entity.iniciado_em,
            pronto_em=entity.pronto_em,
            retirado_em=entity.retirado_em,
            concluido_em=entity.concluido_em,
            cancelado_em=entity.cancelado_em,
            espera_real_minutos=entity.espera_real_minutos,
            fila_anterior_id=entity.fila_anterior_id,
            versao=entity.versao,
            criado_em=entity.criado_em,
            atualizado_em=entity.atualizado_em,
            estado_anterior=estado_anterior,
            posicao=posicao,
        )

    def to_dict(self) -> dict:
        """Converte para o formato externo (serialização JSON)."""
        return {
            "id": self.id,
            "typeDefinitionId": self.definicao_id,
            "queueId": self.fila_id,
            "currentState": self.estado,
            "previousState": self.estado_anterior,
            "personId": self.pessoa_id,
            "referencedTicketId": self.ticket_referenciado_id,
            "employeeId": self.funcionario_id,
            "payload": self.payload,
            "ttlMinutes": self.ttl_minutos,
            "expiresAt": _iso(self.expira_em),
            "escalatedAt": _iso(self.escalado_em),
            "startedAt": _iso(self.iniciado_em),
            "readyAt": _iso(self.pronto_em),
            "pickedUpAt": _iso(self.retirado_em),
            "completedAt": _iso(self.concluido_em),
            "cancelledAt": _iso(self.cancelado_em),
            "actualWaitMinutes": self.espera_real_minutos,
            "previousQueueId": self.fila_anterior_id,
            "queuePosition": self.posicao,
            "version": self.versao,
            "createdAt": self.criado_em.isoformat(),
            "updatedAt": self.atualizado_em.isoformat(),
        }


@dataclass
class ItemOutputDTO:
    id: str
    ticket_id: str
    definicao_id: str
    estado: Optional[str]
    item_externo_id: Optional[str]
    item_externo_nome: Optional[str]
    quantidade: int
    preco_unitario: Optional[Decimal]
    payload: Dict[str, Any]
    iniciado_em: Optional[datetime]
    concluido_em: Optional[datetime]
    criado_em: datetime
    estado_anterior: Optional[str] = None

    @classmethod
    def from_entity(
        cls, entity: ItemTicketEntity, estado_anterior: Optional[str] = None
    ) -> "ItemOutputDTO":
        return cls(
            id=entity.id,
            ticket_id=entity.ticket_id,
            definicao_id=entity.definicao_id,
            estado=entity.estado,
            item_externo_id=entity.item_externo_id,
            item_externo_nome=entity.item_externo_nome,
            quantidade=entity.quantidade,
            preco_unitario=entity.preco_unitario,
            payload=dict(entity.payload),
            iniciado_em=entity.iniciado_em,
            concluido_em=entity.concluido_em,
            criado_em=entity.criado_em,
            estado_anterior=estado_anterior,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ticketId": self.ticket_id,
            "typeDefinitionId": self.definicao_id,
            "currentState": self.estado,
            "previousState": self.estado_anterior,
            "externalItemId": self.item_externo_id,
            "externalItemName": self.item_externo_nome,
            "quantity": self.quantidade,
            "unitPrice": None if self.preco_unitario is None else str(self.preco_unitario),
            "payload": self.payload,
            "startedAt": _iso(self.iniciado_em),
            "completedAt": _iso(self.concluido_em),
            "createdAt": self.criado_em.isoformat(),
        }


@dataclass
class RegistroTransicaoOutputDTO:
    """Entrada do histórico (formato da consulta de histórico)."""

    id: str
    ticket_id: str
    item_id: Optional[str]
    estado_anterior: Optional[str]
    estado_novo: Optional[str]
    funcionario_id: Optional[str]
    notas: str
    criado_em: datetime
    sequencia: int

    @classmethod
    def from_entity(cls, registro: RegistroTransicao) -> "RegistroTransicaoOutputDTO":
        return cls(
            id=registro.id,
            ticket_id=registro.ticket_id,
            item_id=registro.item_id,
            estado_anterior=registro.estado_anterior,
            estado_novo=registro.estado_novo,
            funcionario_id=registro.funcionario_id,
            notas=registro.notas,
            criado_em=registro.criado_em,
            sequencia=registro.sequencia,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ticketId": self.ticket_id,
            "itemId": self.item_id,
            "previousState": self.estado_anterior,
            "newState": self.estado_novo,
            "actorId": self.funcionario_id,
            "notes": self.notas,
            "timestamp": self.criado_em.isoformat(),
            "sequence": self.sequencia,
        }


# =============================================================================
# QUERY DTOs (Filtros de Busca)
# =============================================================================

@dataclass(frozen=True)
class ListarTicketsFilaQueryDTO:
    """
    Parâmetros da consulta de fila.

    Attributes:
        estados: Estados aceitos (vazio = todos)
        criado_apos: Criação a partir de (inclusivo)
        criado_antes: Criação antes de (exclusivo)
        limit: Itens por página (1..LIMITE_MAXIMO)
        offset: Itens a pular
    """

    LIMITE_MAXIMO = 200

    tenant_id: str
    fila_id: str
    estados: Tuple[str, ...] = ()
    criado_apos: Optional[datetime] = None
    criado_antes: Optional[datetime] = None
    limit: int = 50
    offset: int = 0

    def to_dict(self) -> dict:
        return {
            "tenant_id": self.tenant_id,
            "fila_id": self.fila_id,
            "estados": list(self.estados),
            "criado_apos": _iso(self.criado_apos),
            "criado_antes": _iso(self.criado_antes),
            "limit": self.limit,
            "offset": self.offset,
        }


@dataclass
class PaginaTicketsDTO:
    """Resultado paginado de uma consulta de fila, na ordem da fila."""

    items: List[TicketOutputDTO]
    total: int
    limit: int
    offset: int

    @property
    def tem_proxima(self) -> bool:
        return self.offset + len(self.items) < self.total

    def to_dict(self) -> dict:
        return {
            "items": [item.to_dict() for item in self.items],
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
            "hasNext": self.tem_proxima,
        }
