"""
Schema Registry - Carrega e mantém em cache as Definições de Tipo.

Fundação de todos os demais componentes: o Lifecycle Manager consulta
o registry para obter a máquina de estados e o schema estrutural do
tipo de cada ticket/item.

Regras:
- Definições de outro tenant respondem NotFound (sistema é visível a todos)
- Definições interpretadas ficam em cache
- Toda gravação invalida a entrada do cache, pois um schema velho
  aceitaria silenciosamente transições que deixaram de ser válidas
"""

from typing import Optional
import logging

from src.core.shared.exceptions import EntityNotFoundError

from .entities import DefinicaoTipoEntity
from .ports import CacheDefinicoes, DefinicaoTipoRepository, InMemoryCacheDefinicoes

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """
    Registry de Definições de Tipo com cache.

    Example:
        registry = SchemaRegistry(definicao_repo, cache)
        definicao = registry.obter(tipo_id, tenant_id)
        definicao.maquina.transicoes_de("received")
    """

    def __init__(
        self,
        definicao_repo: DefinicaoTipoRepository,
        cache: Optional[CacheDefinicoes] = None,
    ):
        self.definicao_repo = definicao_repo
        self.cache = cache if cache is not None else InMemoryCacheDefinicoes()

    def obter(self, definicao_id: str, tenant_id: str) -> DefinicaoTipoEntity:
        """
        Obtém definição visível ao tenant.

        Args:
            definicao_id: ID da definição
            tenant_id: Tenant chamador

        Returns:
            Definição interpretada (não deve ser mutada pelo chamador)

        Raises:
            EntityNotFoundError: Se não existe ou pertence a outro tenant
        """
        definicao = self.cache.get(definicao_id)

        if definicao is None:
            definicao = self.definicao_repo.get_by_id(definicao_id)
            if definicao is not None:
                self.cache.set(definicao)
                logger.debug(f"Definição carregada no cache: {definicao_id}")

        if definicao is None or not definicao.visivel_para(tenant_id):
            if definicao is not None:
                logger.debug(
                    f"Definição {definicao_id} não visível para tenant {tenant_id}"
                )
            raise EntityNotFoundError(
                f"Definição de tipo {definicao_id} não encontrada",
                entity_type="DefinicaoTipo",
                entity_id=definicao_id,
            )

        return definicao

    def salvar(self, definicao: DefinicaoTipoEntity) -> None:
        """Persiste a definição e invalida o cache."""
        self.definicao_repo.save(definicao)
        self.invalidar(definicao.id)

    def invalidar(self, definicao_id: str) -> None:
        self.cache.delete(definicao_id)
        logger.debug(f"Cache de definição invalidado: {definicao_id}")
