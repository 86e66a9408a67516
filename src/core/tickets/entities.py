"""
Entidades do Domínio de Tickets.

Este módulo define as entidades que percorrem as máquinas de estados
declaradas pelas Definições de Tipo de cada tenant.

Entidades:
- TicketEntity: Agregado principal (pedido, requerimento, atendimento)
- ItemTicketEntity: Sub-unidade tipada com estado próprio
- RegistroTransicao: Fato imutável de auditoria

Regras de Negócio Encapsuladas:
- Estado corrente sempre pertence à máquina de estados do tipo
- Mudança de estado só via transição validada pelo Transition Engine
- Datas de ciclo de vida carimbadas na entrada dos estados marcados
- Versão incrementada a cada mutação (check-and-set otimista)
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from src.core.definicoes.entities import DefinicaoTipoEntity
from src.core.definicoes.maquina_estados import MaquinaEstados, aplicar_transicao
from src.core.shared.exceptions import InvalidDefinitionError, ValidationError
from src.core.shared.identificadores import agora, novo_id


@dataclass
class TicketEntity:
    """
    Entidade de Domínio: Ticket.

    Invariantes:
    - estado pertence a maquina.estados do tipo em todo o ciclo de vida
    - pertence a exatamente uma fila por vez (o tenant vem da fila)
    - nunca é removido; estados de conclusão/cancelamento encerram
    - versao cresce a cada mutação persistida

    Attributes:
        id: Identificador externo (UUIDv7, ordenado pela criação)
        definicao_id: Definição de Tipo do ticket
        fila_id: Fila atual
        estado: Estado corrente
        pessoa_id: Pessoa atendida (opcional)
        ticket_referenciado_id: Ticket anterior num fluxo encadeado
        funcionario_id: Funcionário responsável
        payload: Dados livres, validados pelo schema do tipo
        ttl_minutos: Tempo de vida opcional
        expira_em: Instante de expiração (criado_em + ttl)
        escalado_em: Instante em que a expiração foi escalada
        fila_anterior_id: Fila de origem no último encaminhamento
        versao: Versão para check-and-set

    Example:
        ticket = TicketEntity.criar(fila.id, definicao, {"vin": "..."})
        anterior = ticket.aplicar_transicao(definicao, "start")
    """

    id: str = field(default_factory=novo_id)
    definicao_id: str = ""
    fila_id: str = ""
    estado: str = ""
    pessoa_id: Optional[str] = None
    ticket_referenciado_id: Optional[str] = None
    funcionario_id: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)

    # Expiração
    ttl_minutos: Optional[int] = None
    expira_em: Optional[datetime] = None
    escalado_em: Optional[datetime] = None

    # Ciclo de vida
    iniciado_em: Optional[datetime] = None
    pronto_em: Optional[datetime] = None
    retirado_em: Optional[datetime] = None
    concluido_em: Optional[datetime] = None
    cancelado_em: Optional[datetime] = None
    espera_real_minutos: Optional[int] = None

    fila_anterior_id: Optional[str] = None
    versao: int = 1

    criado_em: datetime = field(default_factory=agora)
    atualizado_em: datetime = field(default_factory=agora)

    @classmethod
    def criar(
        cls,
        fila_id: str,
        definicao: DefinicaoTipoEntity,
        payload: Optional[Dict[str, Any]] = None,
        pessoa_id: Optional[str] = None,
        ttl_minutos: Optional[int] = None,
        ticket_referenciado_id: Optional[str] = None,
    ) -> "TicketEntity":
        """
        Factory method: ticket nasce no estado inicial do tipo.

        A validação estrutural do payload é feita pelo use case, que
        conhece o ValidadorEstrutural; aqui só regras da entidade.

        Raises:
            ValidationError: ttl não positivo
            InvalidDefinitionError: Tipo sem máquina de estados
        """
        if definicao.maquina is None:
            raise InvalidDefinitionError(
                f"Tipo {definicao.codigo} não possui máquina de estados",
                field="stateMachine",
            )
        if ttl_minutos is not None and (
            isinstance(ttl_minutos, bool) or not isinstance(ttl_minutos, int) or ttl_minutos <= 0
        ):
            raise ValidationError(
                "ttlMinutes deve ser um inteiro positivo", field="ttl_minutos"
            )

        ticket = cls(
            definicao_id=definicao.id,
            fila_id=fila_id,
            estado=definicao.maquina.estado_inicial,
            pessoa_id=pessoa_id,
            ticket_referenciado_id=ticket_referenciado_id,
            payload=dict(payload or {}),
            ttl_minutos=ttl_minutos,
        )
        ticket.atualizado_em = ticket.criado_em
        if ttl_minutos:
            ticket.expira_em = ticket.criado_em + timedelta(minutes=ttl_minutos)
        ticket._carimbar_ciclo_vida(definicao.maquina, ticket.criado_em)
        return ticket

    # =========================================================================
    # Mutações
    # =========================================================================

    def aplicar_transicao(self, definicao: DefinicaoTipoEntity, nome_transicao: str) -> str:
        """
        Move o ticket pela transição nomeada.

        Returns:
            Estado anterior

        Raises:
            UnknownTransitionError: Nome não declarado na máquina
            InvalidTransitionError: Transição não parte do estado atual
        """
        destino = aplicar_transicao(
            definicao.maquina, self.estado, nome_transicao, definicao.codigo
        )
        anterior = self.estado
        self.estado = destino
        momento = agora()
        self._carimbar_ciclo_vida(definicao.maquina, momento)
        self._tocar(momento)
        return anterior

    def atribuir(self, funcionario_id: str) -> None:
        if not funcionario_id:
            raise ValidationError("Funcionário é obrigatório", field="funcionario_id")
        self.funcionario_id = funcionario_id
        self._tocar()

    def encaminhar(self, fila_destino_id: str) -> None:
        """Troca de fila sem mudar de estado."""
        if fila_destino_id == self.fila_id:
            raise ValidationError(
                "Fila de destino deve ser diferente da fila atual",
                field="fila_destino_id",
            )
        self.fila_anterior_id = self.fila_id
        self.fila_id = fila_destino_id
        self._tocar()

    def escalar(self, momento: Optional[datetime] = None) -> None:
        momento = momento or agora()
        self.escalado_em = momento
        self._tocar(momento)

    # =========================================================================
    # Consultas
    # =========================================================================

    def esta_expirado(self, maquina: MaquinaEstados, momento: Optional[datetime] = None) -> bool:
        """
        Ticket passou da expiração sem ser encerrado nem escalado.
        """
        if self.expira_em is None or self.escalado_em is not None:
            return False
        if maquina.e_encerrado(self.estado):
            return False
        return (momento or agora()) >= self.expira_em

    def _carimbar_ciclo_vida(self, maquina: MaquinaEstados, momento: datetime) -> None:
        ciclo = maquina.ciclo_vida
        if self.estado in ciclo.iniciado:
            self.iniciado_em = momento
        if self.estado in ciclo.pronto:
            self.pronto_em = momento
        if self.estado in ciclo.retirado:
            self.retirado_em = momento
        if self.estado in ciclo.cancelado:
            self.cancelado_em = momento
        if self.estado in ciclo.concluido:
            self.concluido_em = momento
            self.espera_real_minutos = int((momento - self.criado_em).total_seconds() // 60)

    def _tocar(self, momento: Optional[datetime] = None) -> None:
        self.atualizado_em = momento or agora()
        self.versao += 1

    def __repr__(self) -> str:
        return (
            f"TicketEntity("
            f"id={self.id[:8]}..., "
            f"estado={self.estado}, "
            f"fila_id={self.fila_id[:8]}..., "
            f"versao={self.versao}"
            f")"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TicketEntity):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass
class ItemTicketEntity:
    """
    Entidade de Domínio: Item de Ticket.

    Tipado por sua própria Definição de Tipo e com estado independente
    do ticket pai. Itens cujo tipo não declara máquina de estados têm
    estado permanentemente None e nenhuma transição é válida.

    Attributes:
        ticket_id: Ticket dono
        definicao_id: Tipo do item
        estado: Estado corrente (None = tipo sem máquina)
        item_externo_id: ID no catálogo externo (ex: cardápio)
        item_externo_nome: Nome do item no momento do pedido
        quantidade: Quantidade (>= 1)
        preco_unitario: Preço unitário opcional
    """

    id: str = field(default_factory=novo_id)
    ticket_id: str = ""
    definicao_id: str = ""
    estado: Optional[str] = None
    item_externo_id: Optional[str] = None
    item_externo_nome: Optional[str] = None
    quantidade: int = 1
    preco_unitario: Optional[Decimal] = None
    payload: Dict[str, Any] = field(default_factory=dict)
    iniciado_em: Optional[datetime] = None
    concluido_em: Optional[datetime] = None
    versao: int = 1
    criado_em: datetime = field(default_factory=agora)
    atualizado_em: datetime = field(default_factory=agora)

    @classmethod
    def criar(
        cls,
        ticket_id: str,
        definicao: DefinicaoTipoEntity,
        payload: Optional[Dict[str, Any]] = None,
        quantidade: int = 1,
        preco_unitario: Any = None,
        item_externo_id: Optional[str] = None,
        item_externo_nome: Optional[str] = None,
    ) -> "ItemTicketEntity":
        """
        Raises:
            ValidationError: Quantidade ou preço inválidos
        """
        if isinstance(quantidade, bool) or not isinstance(quantidade, int) or quantidade < 1:
            raise ValidationError("quantity deve ser um inteiro >= 1", field="quantidade")

        preco = None
        if preco_unitario is not None:
            try:
                preco = Decimal(str(preco_unitario))
            except InvalidOperation:
                raise ValidationError(
                    f"unitPrice inválido: {preco_unitario}", field="preco_unitario"
                )
            if not preco.is_finite() or preco < 0:
                raise ValidationError(
                    "unitPrice não pode ser negativo", field="preco_unitario"
                )

        item = cls(
            ticket_id=ticket_id,
            definicao_id=definicao.id,
            estado=definicao.maquina.estado_inicial if definicao.maquina else None,
            item_externo_id=item_externo_id,
            item_externo_nome=item_externo_nome,
            quantidade=quantidade,
            preco_unitario=preco,
            payload=dict(payload or {}),
        )
        item.atualizado_em = item.criado_em
        if definicao.maquina is not None:
            item._carimbar_ciclo_vida(definicao.maquina, item.criado_em)
        return item

    def aplicar_transicao(self, definicao: DefinicaoTipoEntity, nome_transicao: str) -> Optional[str]:
        """
        Returns:
            Estado anterior

        Raises:
            UnknownTransitionError: Nome não declarado (ou tipo sem máquina)
            InvalidTransitionError: Transição não parte do estado atual
        """
        destino = aplicar_transicao(
            definicao.maquina, self.estado, nome_transicao, definicao.codigo
        )
        anterior = self.estado
        self.estado = destino
        momento = agora()
        self._carimbar_ciclo_vida(definicao.maquina, momento)
        self.atualizado_em = momento
        self.versao += 1
        return anterior

    @property
    def preco_total(self) -> Optional[Decimal]:
        if self.preco_unitario is None:
            return None
        return self.preco_unitario * self.quantidade

    def _carimbar_ciclo_vida(self, maquina: MaquinaEstados, momento: datetime) -> None:
        if self.estado in maquina.ciclo_vida.iniciado:
            self.iniciado_em = momento
        if self.estado in maquina.ciclo_vida.concluido:
            self.concluido_em = momento

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ItemTicketEntity):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass(frozen=True)
class RegistroTransicao:
    """
    Fato imutável de auditoria: uma transição aceita.

    Registros com item_id None pertencem ao ticket; os demais ao item.
    A sequência é atribuída pelo repositório e ordena o histórico de
    cada ticket.

    Attributes:
        ticket_id: Ticket afetado
        item_id: Item afetado (None = o próprio ticket)
        estado_anterior: None no registro inicial
        estado_novo: Estado após a transição
        funcionario_id: Ator (None = sistema/cliente)
        notas: Motivo ou observação
        criado_em: Instante do registro
        sequencia: Ordem do registro no ticket
    """

    ticket_id: str
    estado_novo: Optional[str]
    estado_anterior: Optional[str] = None
    item_id: Optional[str] = None
    funcionario_id: Optional[str] = None
    notas: str = ""
    id: str = field(default_factory=novo_id)
    criado_em: datetime = field(default_factory=agora)
    sequencia: int = 0

    @property
    def e_inicial(self) -> bool:
        return self.estado_anterior is None
