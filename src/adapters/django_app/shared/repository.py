"""
Repository Base - Implementação base de repositórios com Django ORM.

Fornece funcionalidades comuns para todos os repositórios:
- CRUD básico (insert/upsert, busca por ID)
- Atualização por check-and-set de versão
- Tradução de erros do banco para exceções de domínio

Princípios:
- Repositórios são stateless
- Não contêm lógica de negócio
- Apenas persistência e queries

Erros:
    OperationalError (conexão perdida, deadlock, lock timeout) vira
    RepositoryError(transient=True) e é repetido pela RetryPolicy dos
    use cases. Demais DatabaseError viram RepositoryError definitivo.
"""

from abc import ABC, abstractmethod
from functools import wraps
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar
import logging

from django.db import DatabaseError, IntegrityError, OperationalError, models
from django.db.models import QuerySet

from src.core.shared.exceptions import RepositoryError

logger = logging.getLogger(__name__)

# Type variables
T = TypeVar("T")  # Entity type
M = TypeVar("M", bound=models.Model)  # Model type


def traduzir_erros_db(metodo=None, *, integridade_transitoria: bool = False):
    """
    Decorator: converte erros do Django em RepositoryError.

    Args:
        integridade_transitoria: Trata IntegrityError como transitório
            (ex: sequência disputada por duas transações; repetir
            recalcula o valor)

    Example:
        @traduzir_erros_db
        def get_by_id(self, entity_id): ...
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except OperationalError as e:
                logger.warning(f"Falha transitória em {func.__qualname__}: {e}")
                raise RepositoryError(f"{func.__qualname__}: {e}", transient=True) from e
            except IntegrityError as e:
                if integridade_transitoria:
                    logger.warning(f"Conflito de integridade em {func.__qualname__}: {e}")
                    raise RepositoryError(f"{func.__qualname__}: {e}", transient=True) from e
                logger.error(f"Violação de integridade em {func.__qualname__}: {e}")
                raise RepositoryError(f"{func.__qualname__}: {e}") from e
            except DatabaseError as e:
                logger.error(f"Erro de banco em {func.__qualname__}: {e}", exc_info=True)
                raise RepositoryError(f"{func.__qualname__}: {e}") from e

        return wrapper

    if metodo is not None:
        return decorator(metodo)
    return decorator


class BaseRepository(ABC, Generic[T, M]):
    """
    Classe base abstrata para repositórios Django.

    Type Parameters:
        T: Tipo da entidade de domínio
        M: Tipo do Model Django

    Example:
        class DjangoFilaRepository(BaseRepository[FilaEntity, FilaModel]):
            model_class = FilaModel

            def to_entity(self, model):
                return FilaMapper.to_entity(model)

            def to_model(self, entity):
                return FilaMapper.to_model(entity)
    """

    # Classe do model Django (definir na subclasse)
    model_class: Type[M]

    # Campos para select_related (otimização N+1)
    select_related_fields: List[str] = []

    # Campo padrão de ordenação
    default_order_field: str = "criado_em"

    @abstractmethod
    def to_entity(self, model: M) -> T:
        raise NotImplementedError

    @abstractmethod
    def to_model(self, entity: T) -> M:
        raise NotImplementedError

    def _get_base_queryset(self) -> QuerySet:
        qs = self.model_class.objects.all()
        if self.select_related_fields:
            qs = qs.select_related(*self.select_related_fields)
        return qs

    @traduzir_erros_db
    def save(self, entity: T) -> None:
        """
        Persiste entidade (create ou update).

        Usa update_or_create para atomicidade.
        """
        model = self.to_model(entity)

        model_dict: Dict[str, Any] = {}
        for field in model._meta.concrete_fields:
            if not field.primary_key:
                model_dict[field.attname] = getattr(model, field.attname)

        self.model_class.objects.update_or_create(
            pk=getattr(entity, "id"),
            defaults=model_dict,
        )

        logger.debug(f"{self.model_class.__name__} saved: {entity.id}")

    @traduzir_erros_db
    def get_by_id(self, entity_id: str) -> Optional[T]:
        try:
            model = self._get_base_queryset().get(pk=entity_id)
            return self.to_entity(model)
        except self.model_class.DoesNotExist:
            return None

    def _listar(self, **filtros) -> List[T]:
        models_ = self._get_base_queryset().filter(**filtros).order_by(self.default_order_field)
        return [self.to_entity(m) for m in models_]

    def _atualizar_com_versao(self, entity_id: str, versao_esperada: int, campos: Dict[str, Any]) -> bool:
        """
        UPDATE ... WHERE id = %s AND versao = %s.

        Returns:
            True se exatamente uma linha foi gravada
        """
        gravados = self.model_class.objects.filter(
            pk=entity_id, versao=versao_esperada
        ).update(**campos)
        if not gravados:
            logger.debug(
                f"{self.model_class.__name__} {entity_id}: versão {versao_esperada} "
                f"desatualizada; nada gravado"
            )
        return gravados == 1
