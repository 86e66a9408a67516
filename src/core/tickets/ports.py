"""
Ports (Interfaces) do Domínio de Tickets.

Define os contratos que os Adapters de infraestrutura devem implementar
para persistência de tickets, itens e do histórico de transições.

Tipos de Ports:
- TicketRepository: Tickets, com atualização por check-and-set
- ItemTicketRepository: Itens de ticket
- HistoricoRepository: Registros de transição (append-only)

Princípio:
    Core define interfaces → Adapters implementam
    Dependências sempre apontam para o Core

Concorrência:
    `atualizar(entidade, versao_esperada)` só grava se a versão
    persistida ainda for `versao_esperada`; retorna False quando
    outro processo chegou antes. É a serialização por ticket: nenhum
    lock entre tickets diferentes.
"""

from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Protocol, Set, Tuple, runtime_checkable
import copy
import threading

from .entities import ItemTicketEntity, RegistroTransicao, TicketEntity


@runtime_checkable
class TicketRepository(Protocol):
    """
    Interface para persistência de Tickets.

    Implementações:
    - DjangoTicketRepository (PostgreSQL via ORM)
    - InMemoryTicketRepository (para testes)
    """

    def save(self, ticket: TicketEntity) -> None:
        """
        Insere ticket novo.

        Raises:
            RepositoryError: Se falha na persistência
        """
        ...

    def get_by_id(self, ticket_id: str) -> Optional[TicketEntity]:
        ...

    def get_by_ids(self, ticket_ids: List[str]) -> List[TicketEntity]:
        """Tickets na mesma ordem de `ticket_ids` (ausentes omitidos)."""
        ...

    def atualizar(self, ticket: TicketEntity, versao_esperada: int) -> bool:
        """
        Grava o ticket se a versão persistida for `versao_esperada`.

        Returns:
            True se gravou; False em conflito de versão
        """
        ...

    def listar_expirados(
        self,
        momento: datetime,
        limite: int = 100,
        apos: Optional[Tuple[datetime, str]] = None,
    ) -> List[TicketEntity]:
        """
        Tickets com expira_em <= momento, não escalados, não concluídos
        e não cancelados, ordenados por (expira_em, id).

        Args:
            apos: Cursor (expira_em, id); retorna apenas candidatos depois dele
        """
        ...

    def estados_em_uso(self, definicao_id: str) -> Set[str]:
        ...


@runtime_checkable
class ItemTicketRepository(Protocol):
    def save(self, item: ItemTicketEntity) -> None:
        ...

    def get_by_id(self, item_id: str) -> Optional[ItemTicketEntity]:
        ...

    def atualizar(self, item: ItemTicketEntity, versao_esperada: int) -> bool:
        ...

    def list_by_ticket(self, ticket_id: str) -> List[ItemTicketEntity]:
        """Itens do ticket em ordem de criação."""
        ...

    def estados_em_uso(self, definicao_id: str) -> Set[str]:
        ...


@runtime_checkable
class HistoricoRepository(Protocol):
    """
    Histórico de transições (Audit Recorder).

    Append-only: não há update nem delete. Deve gravar na mesma
    transação da mudança de estado; se a gravação falhar, a transição
    inteira é desfeita.
    """

    def append(self, registro: RegistroTransicao) -> RegistroTransicao:
        """
        Grava registro e atribui a sequência dentro do ticket.

        Returns:
            Registro com `sequencia` preenchida
        """
        ...

    def listar(self, ticket_id: str, item_id: Optional[str] = None) -> List[RegistroTransicao]:
        """
        Registros do ticket (item_id None) ou de um item, mais antigos primeiro.
        """
        ...


# =============================================================================
# Implementações em memória
# =============================================================================

class InMemoryTicketRepository:
    """
    Implementação em memória do TicketRepository.

    Útil para testes unitários e prototipagem. Guarda cópias, de modo
    que duas threads nunca compartilham a mesma instância de ticket.

    Example:
        repo = InMemoryTicketRepository()
        repo.save(ticket)
        repo.atualizar(ticket, versao_esperada=1)
    """

    def __init__(self):
        self._tickets: Dict[str, TicketEntity] = {}
        self._lock = threading.Lock()

    def save(self, ticket: TicketEntity) -> None:
        with self._lock:
            self._tickets[ticket.id] = copy.deepcopy(ticket)

    def get_by_id(self, ticket_id: str) -> Optional[TicketEntity]:
        with self._lock:
            ticket = self._tickets.get(ticket_id)
            return copy.deepcopy(ticket) if ticket else None

    def get_by_ids(self, ticket_ids: List[str]) -> List[TicketEntity]:
        with self._lock:
            return [
                copy.deepcopy(self._tickets[ticket_id])
                for ticket_id in ticket_ids
                if ticket_id in self._tickets
            ]

    def atualizar(self, ticket: TicketEntity, versao_esperada: int) -> bool:
        with self._lock:
            atual = self._tickets.get(ticket.id)
            if atual is None or atual.versao != versao_esperada:
                return False
            self._tickets[ticket.id] = copy.deepcopy(ticket)
            return True

    def listar_expirados(
        self,
        momento: datetime,
        limite: int = 100,
        apos: Optional[Tuple[datetime, str]] = None,
    ) -> List[TicketEntity]:
        with self._lock:
            expirados = [
                t for t in self._tickets.values()
                if t.expira_em is not None
                and t.expira_em <= momento
                and t.escalado_em is None
                and t.concluido_em is None
                and t.cancelado_em is None
                and (apos is None or (t.expira_em, t.id) > apos)
            ]
            expirados.sort(key=lambda t: (t.expira_em, t.id))
            return [copy.deepcopy(t) for t in expirados[:limite]]

    def estados_em_uso(self, definicao_id: str) -> Set[str]:
        with self._lock:
            return {t.estado for t in self._tickets.values() if t.definicao_id == definicao_id}

    def list_all(self) -> List[TicketEntity]:
        with self._lock:
            return [copy.deepcopy(t) for t in self._tickets.values()]

    def count(self) -> int:
        with self._lock:
            return len(self._tickets)

    def clear(self) -> None:
        """Limpa todos os dados (útil para testes)."""
        with self._lock:
            self._tickets.clear()


class InMemoryItemTicketRepository:
    def __init__(self):
        self._itens: Dict[str, ItemTicketEntity] = {}
        self._lock = threading.Lock()

    def save(self, item: ItemTicketEntity) -> None:
        with self._lock:
            self._itens[item.id] = copy.deepcopy(item)

    def get_by_id(self, item_id: str) -> Optional[ItemTicketEntity]:
        with self._lock:
            item = self._itens.get(item_id)
            return copy.deepcopy(item) if item else None

    def atualizar(self, item: ItemTicketEntity, versao_esperada: int) -> bool:
        with self._lock:
            atual = self._itens.get(item.id)
            if atual is None or atual.versao != versao_esperada:
                return False
            self._itens[item.id] = copy.deepcopy(item)
            return True

    def list_by_ticket(self, ticket_id: str) -> List[ItemTicketEntity]:
        with self._lock:
            itens = [i for i in self._itens.values() if i.ticket_id == ticket_id]
            itens.sort(key=lambda i: i.id)
            return [copy.deepcopy(i) for i in itens]

    def estados_em_uso(self, definicao_id: str) -> Set[str]:
        with self._lock:
            return {
                i.estado for i in self._itens.values()
                if i.definicao_id == definicao_id and i.estado is not None
            }


class InMemoryHistoricoRepository:
    """Histórico append-only em memória, com sequência por ticket."""

    def __init__(self):
        self._registros: List[RegistroTransicao] = []
        self._lock = threading.Lock()

    def append(self, registro: RegistroTransicao) -> RegistroTransicao:
        with self._lock:
            sequencia = 1 + sum(1 for r in self._registros if r.ticket_id == registro.ticket_id)
            gravado = replace(registro, sequencia=sequencia)
            self._registros.append(gravado)
            return gravado

    def listar(self, ticket_id: str, item_id: Optional[str] = None) -> List[RegistroTransicao]:
        with self._lock:
            return [
                r for r in self._registros
                if r.ticket_id == ticket_id and r.item_id == item_id
            ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._registros)
