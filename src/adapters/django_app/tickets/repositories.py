"""
Repositórios Django do VirtualQ.

Implementam as interfaces (Ports) definidas no Core.
São DRIVEN ADAPTERS - acionados pelo Core em resposta a operações.

Responsabilidades:
- Implementar os protocols de src/core/*/ports.py
- Mapear entities para models e vice-versa
- Executar queries no banco via ORM
- Check-and-set por versão (tickets e itens)
- Ordem das filas (DjangoIndiceFila) com lock de linha da fila

Princípios:
- Repository não contém lógica de negócio
- Usa Mapper para conversões
- Trata apenas persistência
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple
import logging

from django.conf import settings
from django.core.cache import cache
from django.db.models import Max, Q

from src.core.definicoes.entities import DefinicaoTipoEntity
from src.core.filas.entities import FilaEntity, FuncionarioEntity, TenantEntity
from src.core.shared.events import DomainEvent
from src.core.shared.exceptions import EntityNotFoundError
from src.core.shared.interfaces import EventStore
from src.core.tickets.entities import ItemTicketEntity, RegistroTransicao, TicketEntity

from ..shared.repository import BaseRepository, traduzir_erros_db
from .mappers import (
    DefinicaoTipoMapper,
    DomainEventMapper,
    FilaMapper,
    FuncionarioMapper,
    ItemTicketMapper,
    RegistroTransicaoMapper,
    TenantMapper,
    TicketMapper,
)
from .models import (
    DefinicaoTipoModel,
    DomainEventModel,
    FilaModel,
    FuncionarioModel,
    ItemTicketModel,
    RegistroTransicaoModel,
    TenantModel,
    TicketModel,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Tenants, Definições, Filas, Funcionários
# =============================================================================

class DjangoTenantRepository(BaseRepository[TenantEntity, TenantModel]):
    model_class = TenantModel

    def to_entity(self, model):
        return TenantMapper.to_entity(model)

    def to_model(self, entity):
        return TenantMapper.to_model(entity)


class DjangoDefinicaoTipoRepository(BaseRepository[DefinicaoTipoEntity, DefinicaoTipoModel]):
    """
    Definições de tipo persistidas.

    Example:
        repo = DjangoDefinicaoTipoRepository()
        repo.list_visiveis(tenant_id)  # do tenant + de sistema
    """

    model_class = DefinicaoTipoModel
    default_order_field = "id"

    def to_entity(self, model):
        return DefinicaoTipoMapper.to_entity(model)

    def to_model(self, entity):
        return DefinicaoTipoMapper.to_model(entity)

    @traduzir_erros_db
    def get_by_codigo(self, codigo: str, tenant_id: Optional[str]) -> Optional[DefinicaoTipoEntity]:
        filtro = Q(tenant__isnull=True) if tenant_id is None else Q(tenant_id=tenant_id)
        model = DefinicaoTipoModel.objects.filter(filtro, codigo=codigo).first()
        return self.to_entity(model) if model else None

    @traduzir_erros_db
    def list_visiveis(self, tenant_id: str, apenas_ativas: bool = True) -> List[DefinicaoTipoEntity]:
        qs = DefinicaoTipoModel.objects.filter(Q(tenant_id=tenant_id) | Q(tenant__isnull=True))
        if apenas_ativas:
            qs = qs.filter(ativo=True)
        return [self.to_entity(m) for m in qs.order_by("id")]


class DjangoFilaRepository(BaseRepository[FilaEntity, FilaModel]):
    model_class = FilaModel

    def to_entity(self, model):
        return FilaMapper.to_entity(model)

    def to_model(self, entity):
        return FilaMapper.to_model(entity)

    @traduzir_erros_db
    def list_by_tenant(self, tenant_id: str, apenas_ativas: bool = False) -> List[FilaEntity]:
        qs = FilaModel.objects.filter(tenant_id=tenant_id)
        if apenas_ativas:
            qs = qs.filter(ativo=True)
        return [self.to_entity(m) for m in qs.order_by("ordem_exibicao", "nome", "id")]


class DjangoFuncionarioRepository(BaseRepository[FuncionarioEntity, FuncionarioModel]):
    model_class = FuncionarioModel

    def to_entity(self, model):
        return FuncionarioMapper.to_entity(model)

    def to_model(self, entity):
        return FuncionarioMapper.to_model(entity)

    @traduzir_erros_db
    def list_by_tenant(self, tenant_id: str) -> List[FuncionarioEntity]:
        qs = FuncionarioModel.objects.filter(tenant_id=tenant_id).order_by("sobrenome", "nome")
        return [self.to_entity(m) for m in qs]


# =============================================================================
# Tickets e Itens
# =============================================================================

class DjangoTicketRepository(BaseRepository[TicketEntity, TicketModel]):
    """
    Implementação Django do TicketRepository.

    Gravações de tickets existentes passam sempre por `atualizar`,
    um UPDATE condicionado à versão lida; é a serialização por ticket.

    Example:
        versao = ticket.versao
        ticket.aplicar_transicao(definicao, "start")
        if not repo.atualizar(ticket, versao):
            ...  # outro processo chegou antes
    """

    model_class = TicketModel

    def to_entity(self, model):
        return TicketMapper.to_entity(model)

    def to_model(self, entity):
        return TicketMapper.to_model(entity)

    @traduzir_erros_db
    def save(self, ticket: TicketEntity) -> None:
        """Insere ticket novo (posição é atribuída pelo índice da fila)."""
        self.to_model(ticket).save(force_insert=True)
        logger.debug(f"Ticket inserido: {ticket.id}")

    @traduzir_erros_db
    def get_by_ids(self, ticket_ids: List[str]) -> List[TicketEntity]:
        por_id = TicketModel.objects.in_bulk(list(ticket_ids))
        return [self.to_entity(por_id[i]) for i in ticket_ids if i in por_id]

    @traduzir_erros_db
    def atualizar(self, ticket: TicketEntity, versao_esperada: int) -> bool:
        return self._atualizar_com_versao(ticket.id, versao_esperada, TicketMapper.to_fields(ticket))

    @traduzir_erros_db
    def listar_expirados(
        self,
        momento: datetime,
        limite: int = 100,
        apos: Optional[Tuple[datetime, str]] = None,
    ) -> List[TicketEntity]:
        qs = TicketModel.objects.filter(
            expira_em__isnull=False,
            expira_em__lte=momento,
            escalado_em__isnull=True,
            concluido_em__isnull=True,
            cancelado_em__isnull=True,
        )
        if apos is not None:
            expira_em, ticket_id = apos
            qs = qs.filter(Q(expira_em__gt=expira_em) | Q(expira_em=expira_em, id__gt=ticket_id))
        return TicketMapper.to_entity_list(qs.order_by("expira_em", "id")[:limite])

    @traduzir_erros_db
    def estados_em_uso(self, definicao_id: str) -> Set[str]:
        return set(
            TicketModel.objects.filter(definicao_id=definicao_id)
            .values_list("estado", flat=True)
            .distinct()
        )


class DjangoItemTicketRepository(BaseRepository[ItemTicketEntity, ItemTicketModel]):
    model_class = ItemTicketModel

    def to_entity(self, model):
        return ItemTicketMapper.to_entity(model)

    def to_model(self, entity):
        return ItemTicketMapper.to_model(entity)

    @traduzir_erros_db
    def save(self, item: ItemTicketEntity) -> None:
        self.to_model(item).save(force_insert=True)

    @traduzir_erros_db
    def atualizar(self, item: ItemTicketEntity, versao_esperada: int) -> bool:
        return self._atualizar_com_versao(item.id, versao_esperada, ItemTicketMapper.to_fields(item))

    @traduzir_erros_db
    def list_by_ticket(self, ticket_id: str) -> List[ItemTicketEntity]:
        return self._listar(ticket_id=ticket_id)

    @traduzir_erros_db
    def estados_em_uso(self, definicao_id: str) -> Set[str]:
        return set(
            ItemTicketModel.objects.filter(definicao_id=definicao_id, estado__isnull=False)
            .values_list("estado", flat=True)
            .distinct()
        )


class DjangoHistoricoRepository:
    """
    Histórico de transições (Audit Recorder) no banco.

    A sequência é max+1 dentro do ticket; duas transações disputando
    o mesmo número esbarram na constraint única e a perdedora é
    repetida pela RetryPolicy.
    """

    @traduzir_erros_db(integridade_transitoria=True)
    def append(self, registro: RegistroTransicao) -> RegistroTransicao:
        ultima = (
            RegistroTransicaoModel.objects
            .filter(ticket_id=registro.ticket_id)
            .aggregate(ultima=Max("sequencia"))["ultima"]
        )
        model = RegistroTransicaoMapper.to_model(registro)
        model.sequencia = (ultima or 0) + 1
        model.save(force_insert=True)
        return RegistroTransicaoMapper.to_entity(model)

    @traduzir_erros_db
    def listar(self, ticket_id: str, item_id: Optional[str] = None) -> List[RegistroTransicao]:
        filtro = Q(item__isnull=True) if item_id is None else Q(item_id=item_id)
        qs = RegistroTransicaoModel.objects.filter(filtro, ticket_id=ticket_id).order_by("sequencia")
        return [RegistroTransicaoMapper.to_entity(m) for m in qs]


# =============================================================================
# Queue Membership Index
# =============================================================================

class DjangoIndiceFila:
    """
    Índice da Fila sobre a coluna `tickets.posicao`.

    `posicao` é uma chave de ordenação crescente por fila; a posição
    exposta (0-based) é o rank do ticket dentro da fila. Mutações
    travam a linha da fila (SELECT ... FOR UPDATE), de modo que
    filas diferentes nunca se bloqueiam. Devem rodar dentro de uma
    transação (Unit of Work).
    """

    def _travar(self, *fila_ids: str) -> None:
        # Ordem fixa de aquisição evita deadlock entre movimentos opostos
        ids = sorted(set(fila_ids))
        travadas = list(
            FilaModel.objects.select_for_update().filter(pk__in=ids).order_by("pk").values_list("pk", flat=True)
        )
        faltando = set(ids) - set(travadas)
        if faltando:
            fila_id = sorted(faltando)[0]
            raise EntityNotFoundError(
                f"Fila {fila_id} não encontrada", entity_type="Fila", entity_id=fila_id
            )

    def _membros(self, fila_id: str):
        return TicketModel.objects.filter(fila_id=fila_id, posicao__isnull=False)

    def _proxima_chave(self, fila_id: str) -> int:
        maior = self._membros(fila_id).aggregate(maior=Max("posicao"))["maior"]
        return 1 if maior is None else maior + 1

    def _anexar(self, fila_id: str, ticket_id: str) -> int:
        chave = self._proxima_chave(fila_id)
        gravados = TicketModel.objects.filter(pk=ticket_id, fila_id=fila_id).update(posicao=chave)
        if not gravados:
            raise EntityNotFoundError(
                f"Ticket {ticket_id} não pertence à fila {fila_id}",
                entity_type="Ticket",
                entity_id=ticket_id,
            )
        return self._membros(fila_id).exclude(pk=ticket_id).count()

    @traduzir_erros_db
    def inserir(self, fila_id: str, ticket_id: str) -> int:
        self._travar(fila_id)
        atual = self._posicao(fila_id, ticket_id)
        if atual is not None:
            return atual
        return self._anexar(fila_id, ticket_id)

    @traduzir_erros_db
    def remover(self, fila_id: str, ticket_id: str) -> None:
        self._travar(fila_id)
        TicketModel.objects.filter(pk=ticket_id, fila_id=fila_id).update(posicao=None)

    @traduzir_erros_db
    def reposicionar(self, fila_id: str, ticket_id: str, nova_posicao: int) -> int:
        self._travar(fila_id)
        membros = list(self._membros(fila_id).order_by("posicao", "id").values_list("id", "posicao"))
        ids = [m[0] for m in membros]
        if ticket_id not in ids:
            raise EntityNotFoundError(
                f"Ticket {ticket_id} não pertence à fila {fila_id}",
                entity_type="Ticket",
                entity_id=ticket_id,
            )

        atual = ids.index(ticket_id)
        alvo = max(0, min(nova_posicao, len(ids) - 1))
        if alvo == atual:
            return alvo

        # Só a fatia entre a posição antiga e a nova troca de chaves
        inicio, fim = min(atual, alvo), max(atual, alvo)
        chaves = [m[1] for m in membros[inicio:fim + 1]]
        fatia = ids[inicio:fim + 1]
        fatia.remove(ticket_id)
        fatia.insert(alvo - inicio, ticket_id)
        for tid, chave in zip(fatia, chaves):
            TicketModel.objects.filter(pk=tid).update(posicao=chave)
        return alvo

    @traduzir_erros_db
    def mover(self, fila_origem_id: str, fila_destino_id: str, ticket_id: str) -> int:
        """
        Note:
            O ticket já foi gravado com fila_id = destino pelo use case;
            aqui só a chave de ordenação muda.
        """
        self._travar(fila_origem_id, fila_destino_id)
        return self._anexar(fila_destino_id, ticket_id)

    @traduzir_erros_db
    def posicao(self, fila_id: str, ticket_id: str) -> Optional[int]:
        return self._posicao(fila_id, ticket_id)

    def _posicao(self, fila_id: str, ticket_id: str) -> Optional[int]:
        chave = (
            TicketModel.objects.filter(pk=ticket_id, fila_id=fila_id)
            .values_list("posicao", flat=True)
            .first()
        )
        if chave is None:
            return None
        return self._membros(fila_id).filter(
            Q(posicao__lt=chave) | Q(posicao=chave, id__lt=ticket_id)
        ).count()

    def _filtrar(self, fila_id, estados, criado_apos, criado_antes):
        qs = self._membros(fila_id)
        if estados is not None:
            qs = qs.filter(estado__in=list(estados))
        if criado_apos is not None:
            qs = qs.filter(criado_em__gte=criado_apos)
        if criado_antes is not None:
            qs = qs.filter(criado_em__lt=criado_antes)
        return qs

    @traduzir_erros_db
    def listar_por_estado(
        self,
        fila_id: str,
        estados: Optional[Iterable[str]] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        criado_apos: Optional[datetime] = None,
        criado_antes: Optional[datetime] = None,
    ) -> List[str]:
        qs = (
            self._filtrar(fila_id, estados, criado_apos, criado_antes)
            .order_by("posicao", "id")
            .values_list("id", flat=True)
        )
        fim = None if limit is None else offset + limit
        return list(qs[offset:fim])

    @traduzir_erros_db
    def contar(
        self,
        fila_id: str,
        estados: Optional[Iterable[str]] = None,
        criado_apos: Optional[datetime] = None,
        criado_antes: Optional[datetime] = None,
    ) -> int:
        return self._filtrar(fila_id, estados, criado_apos, criado_antes).count()


# =============================================================================
# Event Store e Cache
# =============================================================================

class DjangoEventStore(EventStore):
    """
    Event Store usando Django ORM.

    Persiste Domain Events para auditoria de movimentações de fila e
    replay. Sequência única por agregado.
    """

    @traduzir_erros_db(integridade_transitoria=True)
    def append(self, event: DomainEvent, sequence: int) -> None:
        DomainEventMapper.to_model(event, sequence).save(force_insert=True)
        logger.debug(f"Event stored: {event.event_type} for {event.aggregate_id} seq={sequence}")

    @traduzir_erros_db
    def next_sequence(self, aggregate_id: str) -> int:
        ultima = (
            DomainEventModel.objects
            .filter(aggregate_id=aggregate_id)
            .aggregate(ultima=Max("sequence"))["ultima"]
        )
        return (ultima or 0) + 1

    @traduzir_erros_db
    def get_events_for_aggregate(
        self,
        aggregate_id: str,
        since_sequence: int = 0,
    ) -> List[Dict[str, Any]]:
        events = (
            DomainEventModel.objects
            .filter(aggregate_id=aggregate_id, sequence__gte=since_sequence)
            .order_by("sequence")
        )
        return [DomainEventMapper.to_dict(e) for e in events]


class DjangoCacheDefinicoes:
    """
    Cache de definições no Django cache framework.

    Local memory em desenvolvimento, Redis em produção (ver
    settings.CACHES). O timeout é só um teto: toda gravação de
    definição invalida a entrada pelo Schema Registry.
    """

    prefixo = "virtualq:definicao"

    def __init__(self, timeout: Optional[int] = None):
        self.timeout = timeout if timeout is not None else getattr(settings, "SCHEMA_CACHE_TIMEOUT", 300)

    def _chave(self, definicao_id: str) -> str:
        return f"{self.prefixo}:{definicao_id}"

    def get(self, definicao_id: str) -> Optional[DefinicaoTipoEntity]:
        encontrada = cache.get(self._chave(definicao_id))
        if encontrada is not None:
            logger.debug(f"Cache hit: {definicao_id}")
        return encontrada

    def set(self, definicao: DefinicaoTipoEntity) -> None:
        cache.set(self._chave(definicao.id), definicao, self.timeout)

    def delete(self, definicao_id: str) -> None:
        cache.delete(self._chave(definicao_id))
