"""
Ports (Interfaces) do Domínio de Filas.

Define os contratos de persistência de tenants, filas e funcionários
e o Índice de Membros da Fila (Queue Membership Index), que mantém a
ordem dos tickets dentro de cada fila.

Ordem da fila:
    Tickets entram no fim da fila (ordem de inserção) e só mudam de
    lugar por reposicionamento explícito. Posições são 0-based sobre
    a ordenação completa da fila, independente do estado dos tickets.
    Mutações são serializadas por fila; filas distintas não competem.
"""

from datetime import datetime
from typing import (
    Any,
    Dict,
    Iterable,
    List,
    Optional,
    Protocol,
    runtime_checkable,
)
import copy
import threading

from src.core.shared.exceptions import EntityNotFoundError

from .entities import FilaEntity, FuncionarioEntity, TenantEntity


@runtime_checkable
class TenantRepository(Protocol):
    def save(self, tenant: TenantEntity) -> None:
        ...

    def get_by_id(self, tenant_id: str) -> Optional[TenantEntity]:
        ...

    def list_all(self) -> List[TenantEntity]:
        ...


@runtime_checkable
class FilaRepository(Protocol):
    """
    Interface para persistência de Filas.

    Implementações:
    - DjangoFilaRepository (ORM)
    - InMemoryFilaRepository (testes)
    """

    def save(self, fila: FilaEntity) -> None:
        """Persiste fila (create ou update)."""
        ...

    def get_by_id(self, fila_id: str) -> Optional[FilaEntity]:
        ...

    def list_by_tenant(self, tenant_id: str, apenas_ativas: bool = False) -> List[FilaEntity]:
        """Filas do tenant ordenadas por ordem_exibicao."""
        ...


@runtime_checkable
class FuncionarioRepository(Protocol):
    def save(self, funcionario: FuncionarioEntity) -> None:
        ...

    def get_by_id(self, funcionario_id: str) -> Optional[FuncionarioEntity]:
        ...

    def list_by_tenant(self, tenant_id: str) -> List[FuncionarioEntity]:
        ...


@runtime_checkable
class IndiceFila(Protocol):
    """
    Queue Membership Index.

    Mantém a ordem dos tickets de cada fila. Todas as mutações sobre
    uma fila são serializadas (lock de linha da fila no banco, lock
    por fila em memória); filas diferentes nunca se bloqueiam.

    Tickets permanecem membros da fila em qualquer estado; a filtragem
    por estado é responsabilidade das consultas.

    Implementações:
    - DjangoIndiceFila (coluna posicao + select_for_update na fila)
    - InMemoryIndiceFila (testes)
    """

    def inserir(self, fila_id: str, ticket_id: str) -> int:
        """
        Adiciona ticket ao fim da fila.

        Returns:
            Posição (0-based) do ticket na fila
        """
        ...

    def remover(self, fila_id: str, ticket_id: str) -> None:
        ...

    def reposicionar(self, fila_id: str, ticket_id: str, nova_posicao: int) -> int:
        """
        Move ticket para `nova_posicao`, limitada ao intervalo válido.

        Apenas os tickets entre a posição antiga e a nova mudam de lugar.

        Returns:
            Posição efetiva após o ajuste ao intervalo
        """
        ...

    def mover(self, fila_origem_id: str, fila_destino_id: str, ticket_id: str) -> int:
        """Remove da origem e insere no fim do destino, atomicamente."""
        ...

    def posicao(self, fila_id: str, ticket_id: str) -> Optional[int]:
        ...

    def listar_por_estado(
        self,
        fila_id: str,
        estados: Optional[Iterable[str]] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        criado_apos: Optional[datetime] = None,
        criado_antes: Optional[datetime] = None,
    ) -> List[str]:
        """
        IDs dos tickets da fila na ordem da fila.

        Args:
            fila_id: Fila consultada
            estados: Estados aceitos (None = todos)
            limit: Máximo de resultados (None = sem limite)
            offset: Resultados a pular
            criado_apos: Limite inferior (inclusivo) de criação
            criado_antes: Limite superior (exclusivo) de criação
        """
        ...

    def contar(
        self,
        fila_id: str,
        estados: Optional[Iterable[str]] = None,
        criado_apos: Optional[datetime] = None,
        criado_antes: Optional[datetime] = None,
    ) -> int:
        ...


# =============================================================================
# Implementações em memória
# =============================================================================

class _InMemoryRepo:
    """Base dos repositórios em memória: guarda cópias por ID."""

    def __init__(self):
        self._dados: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def save(self, entidade) -> None:
        with self._lock:
            self._dados[entidade.id] = copy.deepcopy(entidade)

    def get_by_id(self, entidade_id: str):
        with self._lock:
            entidade = self._dados.get(entidade_id)
            return copy.deepcopy(entidade) if entidade else None

    def _todos(self) -> List[Any]:
        with self._lock:
            return [copy.deepcopy(e) for e in self._dados.values()]

    def clear(self) -> None:
        with self._lock:
            self._dados.clear()


class InMemoryTenantRepository(_InMemoryRepo):
    def list_all(self) -> List[TenantEntity]:
        return sorted(self._todos(), key=lambda t: t.id)


class InMemoryFilaRepository(_InMemoryRepo):
    def list_by_tenant(self, tenant_id: str, apenas_ativas: bool = False) -> List[FilaEntity]:
        filas = [
            f for f in self._todos()
            if f.tenant_id == tenant_id and (f.ativo or not apenas_ativas)
        ]
        return sorted(filas, key=lambda f: (f.ordem_exibicao, f.id))


class InMemoryFuncionarioRepository(_InMemoryRepo):
    def list_by_tenant(self, tenant_id: str) -> List[FuncionarioEntity]:
        return sorted(
            (f for f in self._todos() if f.tenant_id == tenant_id),
            key=lambda f: (f.sobrenome, f.nome),
        )


class InMemoryIndiceFila:
    """
    Implementação em memória do IndiceFila.

    Uma lista ordenada de IDs por fila, protegida por um lock da
    própria fila. Estado e data de criação, usados nos filtros, vêm
    do repositório de tickets.

    Example:
        indice = InMemoryIndiceFila(ticket_repo)
        indice.inserir(fila.id, ticket.id)
        indice.listar_por_estado(fila.id, estados=["received"])
    """

    def __init__(self, ticket_repo):
        self.ticket_repo = ticket_repo
        self._ordens: Dict[str, List[str]] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guarda = threading.Lock()

    def _lock(self, fila_id: str) -> threading.Lock:
        with self._guarda:
            return self._locks.setdefault(fila_id, threading.Lock())

    def _ordem(self, fila_id: str) -> List[str]:
        return self._ordens.setdefault(fila_id, [])

    def inserir(self, fila_id: str, ticket_id: str) -> int:
        with self._lock(fila_id):
            return self._inserir(fila_id, ticket_id)

    def _inserir(self, fila_id: str, ticket_id: str) -> int:
        ordem = self._ordem(fila_id)
        if ticket_id in ordem:
            return ordem.index(ticket_id)
        ordem.append(ticket_id)
        return len(ordem) - 1

    def remover(self, fila_id: str, ticket_id: str) -> None:
        with self._lock(fila_id):
            self._remover(fila_id, ticket_id)

    def _remover(self, fila_id: str, ticket_id: str) -> None:
        ordem = self._ordem(fila_id)
        if ticket_id in ordem:
            ordem.remove(ticket_id)

    def reposicionar(self, fila_id: str, ticket_id: str, nova_posicao: int) -> int:
        with self._lock(fila_id):
            ordem = self._ordem(fila_id)
            if ticket_id not in ordem:
                raise EntityNotFoundError(
                    f"Ticket {ticket_id} não pertence à fila {fila_id}",
                    entity_type="Ticket",
                    entity_id=ticket_id,
                )
            ordem.remove(ticket_id)
            alvo = max(0, min(nova_posicao, len(ordem)))
            ordem.insert(alvo, ticket_id)
            return alvo

    def mover(self, fila_origem_id: str, fila_destino_id: str, ticket_id: str) -> int:
        if fila_origem_id == fila_destino_id:
            with self._lock(fila_destino_id):
                return self._inserir(fila_destino_id, ticket_id)

        # Ordem fixa de aquisição evita deadlock entre movimentos opostos
        primeira, segunda = sorted((fila_origem_id, fila_destino_id))
        with self._lock(primeira), self._lock(segunda):
            self._remover(fila_origem_id, ticket_id)
            return self._inserir(fila_destino_id, ticket_id)

    def posicao(self, fila_id: str, ticket_id: str) -> Optional[int]:
        with self._lock(fila_id):
            ordem = self._ordem(fila_id)
            return ordem.index(ticket_id) if ticket_id in ordem else None

    def listar_por_estado(
        self,
        fila_id: str,
        estados: Optional[Iterable[str]] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        criado_apos: Optional[datetime] = None,
        criado_antes: Optional[datetime] = None,
    ) -> List[str]:
        selecionados = self._filtrar(fila_id, estados, criado_apos, criado_antes)
        fim = None if limit is None else offset + limit
        return selecionados[offset:fim]

    def contar(
        self,
        fila_id: str,
        estados: Optional[Iterable[str]] = None,
        criado_apos: Optional[datetime] = None,
        criado_antes: Optional[datetime] = None,
    ) -> int:
        return len(self._filtrar(fila_id, estados, criado_apos, criado_antes))

    def _filtrar(self, fila_id, estados, criado_apos, criado_antes) -> List[str]:
        with self._lock(fila_id):
            ordem = list(self._ordem(fila_id))

        aceitos = set(estados) if estados is not None else None
        selecionados = []
        for ticket_id in ordem:
            ticket = self.ticket_repo.get_by_id(ticket_id)
            if ticket is None:
                continue
            if aceitos is not None and ticket.estado not in aceitos:
                continue
            if criado_apos is not None and ticket.criado_em < criado_apos:
                continue
            if criado_antes is not None and ticket.criado_em >= criado_antes:
                continue
            selecionados.append(ticket_id)
        return selecionados

    def clear(self) -> None:
        with self._guarda:
            self._ordens.clear()
            self._locks.clear()
