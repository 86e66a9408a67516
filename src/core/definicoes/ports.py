"""
Ports (Interfaces) do Domínio de Definições de Tipo.

Contratos para persistência das definições e para o cache usado
pelo Schema Registry, com implementações em memória para testes.
"""

from typing import Any, Dict, List, Optional, Protocol, Set, runtime_checkable
import copy
import threading

from .entities import DefinicaoTipoEntity


@runtime_checkable
class DefinicaoTipoRepository(Protocol):
    """
    Interface para persistência de Definições de Tipo.

    Implementações:
    - DjangoDefinicaoTipoRepository (ORM)
    - InMemoryDefinicaoTipoRepository (testes)
    """

    def save(self, definicao: DefinicaoTipoEntity) -> None:
        """Persiste definição (create ou update)."""
        ...

    def get_by_id(self, definicao_id: str) -> Optional[DefinicaoTipoEntity]:
        """Busca por ID, inclusive definições desativadas."""
        ...

    def get_by_codigo(
        self, codigo: str, tenant_id: Optional[str]
    ) -> Optional[DefinicaoTipoEntity]:
        """Busca pelo código dentro do escopo (tenant ou sistema)."""
        ...

    def list_visiveis(self, tenant_id: str, apenas_ativas: bool = True) -> List[DefinicaoTipoEntity]:
        """Definições do tenant mais as de sistema."""
        ...


class CacheDefinicoes(Protocol):
    """
    Cache de definições já interpretadas.

    Definições mudam raramente; o registry invalida a entrada
    sempre que uma definição é salva.
    """

    def get(self, definicao_id: str) -> Optional[DefinicaoTipoEntity]:
        ...

    def set(self, definicao: DefinicaoTipoEntity) -> None:
        ...

    def delete(self, definicao_id: str) -> None:
        ...


class EstadosEmUsoPort(Protocol):
    """
    Consulta dos estados ocupados por tickets/itens de um tipo.

    Implementada pelos repositórios de tickets e de itens; usada ao
    atualizar uma definição para não remover estados ainda ocupados.
    """

    def estados_em_uso(self, definicao_id: str) -> Set[str]:
        ...


class InMemoryDefinicaoTipoRepository:
    """
    Implementação em memória do DefinicaoTipoRepository.

    Guarda cópias para que alterações em entidades carregadas não
    vazem para o "banco" sem passar por save().
    """

    def __init__(self):
        self._definicoes: Dict[str, DefinicaoTipoEntity] = {}
        self.leituras = 0

    def save(self, definicao: DefinicaoTipoEntity) -> None:
        self._definicoes[definicao.id] = copy.deepcopy(definicao)

    def get_by_id(self, definicao_id: str) -> Optional[DefinicaoTipoEntity]:
        self.leituras += 1
        definicao = self._definicoes.get(definicao_id)
        return copy.deepcopy(definicao) if definicao else None

    def get_by_codigo(
        self, codigo: str, tenant_id: Optional[str]
    ) -> Optional[DefinicaoTipoEntity]:
        for definicao in self._definicoes.values():
            if definicao.codigo == codigo and definicao.tenant_id == tenant_id:
                return copy.deepcopy(definicao)
        return None

    def list_visiveis(self, tenant_id: str, apenas_ativas: bool = True) -> List[DefinicaoTipoEntity]:
        return [
            copy.deepcopy(d)
            for d in sorted(self._definicoes.values(), key=lambda d: d.id)
            if d.visivel_para(tenant_id) and (d.ativo or not apenas_ativas)
        ]

    def clear(self) -> None:
        self._definicoes.clear()


class InMemoryCacheDefinicoes:
    """Cache em processo, protegido por lock."""

    def __init__(self):
        self._itens: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, definicao_id: str) -> Optional[DefinicaoTipoEntity]:
        with self._lock:
            return self._itens.get(definicao_id)

    def set(self, definicao: DefinicaoTipoEntity) -> None:
        with self._lock:
            self._itens[definicao.id] = definicao

    def delete(self, definicao_id: str) -> None:
        with self._lock:
            self._itens.pop(definicao_id, None)

    def __contains__(self, definicao_id: str) -> bool:
        with self._lock:
            return definicao_id in self._itens
