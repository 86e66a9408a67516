"""
Dependency Injection Container.

Configura e gerencia todas as dependências da aplicação.
Usa dependency-injector para lazy-loading e injeção automática.

Padrões:
- Singleton: Uma instância para toda app (repositories, registry)
- Factory: Nova instância por chamada (services, UoW)
- Configuration: Valores vindos das settings Django

Adapters Django são importados sob demanda (`_lazy`): o container
pode ser criado antes de o registro de apps terminar.
"""

from typing import Optional

from dependency_injector import containers, providers

from src.core.definicoes.registry import SchemaRegistry
from src.core.definicoes.use_cases import (
    AtualizarDefinicaoService,
    DesativarDefinicaoService,
    ListarDefinicoesService,
    ObterDefinicaoService,
    RegistrarDefinicaoService,
)
from src.core.definicoes.validador import ValidadorEstrutural
from src.core.filas.use_cases import (
    AlterarStatusFilaService,
    AtualizarTiposFilaService,
    CriarFilaService,
    CriarTenantService,
    DesativarFuncionarioService,
    ListarFilasService,
    ListarFuncionariosService,
    RegistrarFuncionarioService,
)
from src.core.shared.retry import RetryPolicy
from src.core.tickets.auditoria import RegistradorAuditoria
from src.core.tickets.use_cases import (
    AdicionarItemService,
    AtribuirFuncionarioService,
    CancelarTicketService,
    ContarTicketsFilaService,
    CriarTicketService,
    EncaminharTicketService,
    EscalarTicketsExpiradosService,
    ListarItensTicketService,
    ListarTicketsFilaService,
    ObterHistoricoItemService,
    ObterHistoricoService,
    ObterTicketService,
    ReordenarTicketService,
    TransicionarItemService,
    TransicionarTicketService,
)

_REPOS = 'src.adapters.django_app.tickets.repositories'


def _lazy(caminho: str):
    """Factory que só importa a classe/função na primeira construção."""

    def criar(*args, **kwargs):
        from django.utils.module_loading import import_string

        return import_string(caminho)(*args, **kwargs)

    criar.__name__ = caminho.rsplit('.', 1)[-1]
    return criar


class Container(containers.DeclarativeContainer):
    """
    Container principal de Dependency Injection.

    Organização:
    - Configuration: settings Django (get_container carrega)
    - Infrastructure: publisher, event store, cache
    - Repositories: Persistência
    - Unit of Work: Transações
    - Services: Use Cases

    Example:
        container = get_container()
        service = container.criar_ticket_service()
        ticket = service.execute(input_dto)
    """

    # =========================================================================
    # Configuration
    # =========================================================================

    config = providers.Configuration()

    # =========================================================================
    # Infrastructure
    # =========================================================================

    event_publisher = providers.Singleton(
        _lazy('src.adapters.django_app.events.publishers.get_event_publisher'),
        mode=config.event_publisher_mode,
    )

    event_store = providers.Singleton(_lazy(f'{_REPOS}.DjangoEventStore'))

    cache_definicoes = providers.Singleton(
        _lazy(f'{_REPOS}.DjangoCacheDefinicoes'),
        timeout=config.schema_cache_timeout,
    )

    retry_policy = providers.Singleton(
        RetryPolicy,
        max_tentativas=config.lifecycle.max_retries,
        backoff_inicial=config.lifecycle.retry_backoff_seconds,
    )

    # =========================================================================
    # Repositories (Singleton - uma instância por app)
    # =========================================================================

    tenant_repository = providers.Singleton(_lazy(f'{_REPOS}.DjangoTenantRepository'))
    definicao_repository = providers.Singleton(_lazy(f'{_REPOS}.DjangoDefinicaoTipoRepository'))
    fila_repository = providers.Singleton(_lazy(f'{_REPOS}.DjangoFilaRepository'))
    funcionario_repository = providers.Singleton(_lazy(f'{_REPOS}.DjangoFuncionarioRepository'))
    ticket_repository = providers.Singleton(_lazy(f'{_REPOS}.DjangoTicketRepository'))
    item_repository = providers.Singleton(_lazy(f'{_REPOS}.DjangoItemTicketRepository'))
    historico_repository = providers.Singleton(_lazy(f'{_REPOS}.DjangoHistoricoRepository'))
    indice_fila = providers.Singleton(_lazy(f'{_REPOS}.DjangoIndiceFila'))

    # =========================================================================
    # Componentes de domínio
    # =========================================================================

    schema_registry = providers.Singleton(
        SchemaRegistry,
        definicao_repo=definicao_repository,
        cache=cache_definicoes,
    )

    validador = providers.Singleton(ValidadorEstrutural)

    auditoria = providers.Singleton(RegistradorAuditoria, historico_repo=historico_repository)

    # =========================================================================
    # Unit of Work (Factory - nova instância por operação)
    # =========================================================================

    unit_of_work = providers.Factory(
        _lazy('src.adapters.django_app.shared.unit_of_work.DjangoUnitOfWork'),
        event_publisher=event_publisher,
        event_store=event_store,
    )

    # =========================================================================
    # Services - Definições de Tipo
    # =========================================================================

    registrar_definicao_service = providers.Factory(
        RegistrarDefinicaoService,
        definicao_repo=definicao_repository,
        registry=schema_registry,
        uow=unit_of_work,
    )

    atualizar_definicao_service = providers.Factory(
        AtualizarDefinicaoService,
        definicao_repo=definicao_repository,
        registry=schema_registry,
        uow=unit_of_work,
        estados_em_uso=providers.List(ticket_repository, item_repository),
    )

    desativar_definicao_service = providers.Factory(
        DesativarDefinicaoService,
        definicao_repo=definicao_repository,
        registry=schema_registry,
        uow=unit_of_work,
    )

    obter_definicao_service = providers.Factory(ObterDefinicaoService, registry=schema_registry)

    listar_definicoes_service = providers.Factory(
        ListarDefinicoesService, definicao_repo=definicao_repository
    )

    # =========================================================================
    # Services - Tenants, Filas, Funcionários
    # =========================================================================

    criar_tenant_service = providers.Factory(
        CriarTenantService, tenant_repo=tenant_repository, uow=unit_of_work
    )

    criar_fila_service = providers.Factory(
        CriarFilaService,
        fila_repo=fila_repository,
        tenant_repo=tenant_repository,
        registry=schema_registry,
        uow=unit_of_work,
    )

    alterar_status_fila_service = providers.Factory(
        AlterarStatusFilaService, fila_repo=fila_repository, uow=unit_of_work
    )

    atualizar_tipos_fila_service = providers.Factory(
        AtualizarTiposFilaService,
        fila_repo=fila_repository,
        registry=schema_registry,
        uow=unit_of_work,
    )

    listar_filas_service = providers.Factory(ListarFilasService, fila_repo=fila_repository)

    registrar_funcionario_service = providers.Factory(
        RegistrarFuncionarioService,
        funcionario_repo=funcionario_repository,
        tenant_repo=tenant_repository,
        uow=unit_of_work,
    )

    desativar_funcionario_service = providers.Factory(
        DesativarFuncionarioService, funcionario_repo=funcionario_repository, uow=unit_of_work
    )

    listar_funcionarios_service = providers.Factory(
        ListarFuncionariosService, funcionario_repo=funcionario_repository
    )

    # =========================================================================
    # Services - Tickets (Lifecycle Manager)
    # =========================================================================

    criar_ticket_service = providers.Factory(
        CriarTicketService,
        ticket_repo=ticket_repository,
        fila_repo=fila_repository,
        registry=schema_registry,
        indice=indice_fila,
        auditoria=auditoria,
        uow=unit_of_work,
        validador=validador,
        retry_policy=retry_policy,
    )

    transicionar_ticket_service = providers.Factory(
        TransicionarTicketService,
        ticket_repo=ticket_repository,
        fila_repo=fila_repository,
        registry=schema_registry,
        auditoria=auditoria,
        uow=unit_of_work,
        funcionario_repo=funcionario_repository,
        retry_policy=retry_policy,
    )

    cancelar_ticket_service = providers.Factory(
        CancelarTicketService,
        ticket_repo=ticket_repository,
        fila_repo=fila_repository,
        registry=schema_registry,
        auditoria=auditoria,
        uow=unit_of_work,
        funcionario_repo=funcionario_repository,
        retry_policy=retry_policy,
    )

    atribuir_funcionario_service = providers.Factory(
        AtribuirFuncionarioService,
        ticket_repo=ticket_repository,
        fila_repo=fila_repository,
        funcionario_repo=funcionario_repository,
        uow=unit_of_work,
        retry_policy=retry_policy,
    )

    encaminhar_ticket_service = providers.Factory(
        EncaminharTicketService,
        ticket_repo=ticket_repository,
        fila_repo=fila_repository,
        indice=indice_fila,
        uow=unit_of_work,
        retry_policy=retry_policy,
    )

    reordenar_ticket_service = providers.Factory(
        ReordenarTicketService,
        ticket_repo=ticket_repository,
        fila_repo=fila_repository,
        indice=indice_fila,
        uow=unit_of_work,
        retry_policy=retry_policy,
    )

    adicionar_item_service = providers.Factory(
        AdicionarItemService,
        ticket_repo=ticket_repository,
        item_repo=item_repository,
        fila_repo=fila_repository,
        registry=schema_registry,
        auditoria=auditoria,
        uow=unit_of_work,
        validador=validador,
        retry_policy=retry_policy,
    )

    transicionar_item_service = providers.Factory(
        TransicionarItemService,
        ticket_repo=ticket_repository,
        item_repo=item_repository,
        fila_repo=fila_repository,
        registry=schema_registry,
        auditoria=auditoria,
        uow=unit_of_work,
        funcionario_repo=funcionario_repository,
        retry_policy=retry_policy,
    )

    escalar_tickets_expirados_service = providers.Factory(
        EscalarTicketsExpiradosService,
        ticket_repo=ticket_repository,
        fila_repo=fila_repository,
        registry=schema_registry,
        uow=unit_of_work,
        retry_policy=retry_policy,
    )

    # Consultas (sem UoW - leitura)

    obter_ticket_service = providers.Factory(
        ObterTicketService,
        ticket_repo=ticket_repository,
        fila_repo=fila_repository,
        indice=indice_fila,
    )

    listar_itens_ticket_service = providers.Factory(
        ListarItensTicketService,
        ticket_repo=ticket_repository,
        item_repo=item_repository,
        fila_repo=fila_repository,
    )

    obter_historico_service = providers.Factory(
        ObterHistoricoService,
        ticket_repo=ticket_repository,
        fila_repo=fila_repository,
        historico_repo=historico_repository,
    )

    obter_historico_item_service = providers.Factory(
        ObterHistoricoItemService,
        ticket_repo=ticket_repository,
        item_repo=item_repository,
        fila_repo=fila_repository,
        historico_repo=historico_repository,
    )

    listar_tickets_fila_service = providers.Factory(
        ListarTicketsFilaService,
        ticket_repo=ticket_repository,
        fila_repo=fila_repository,
        indice=indice_fila,
    )

    contar_tickets_fila_service = providers.Factory(
        ContarTicketsFilaService, fila_repo=fila_repository, indice=indice_fila
    )


# =============================================================================
# Container Global (Singleton)
# =============================================================================

_container: Optional[Container] = None


def _configuracao_das_settings() -> dict:
    from django.conf import settings

    return {
        'event_publisher_mode': getattr(settings, 'EVENT_PUBLISHER_MODE', 'logging'),
        'schema_cache_timeout': getattr(settings, 'SCHEMA_CACHE_TIMEOUT', 300),
        'lifecycle': {
            'max_retries': getattr(settings, 'LIFECYCLE_MAX_RETRIES', 3),
            'retry_backoff_seconds': getattr(settings, 'LIFECYCLE_RETRY_BACKOFF_SECONDS', 0.05),
        },
    }


def get_container() -> Container:
    """
    Retorna instância global do container.

    Cria se não existir (lazy initialization), carregando a
    configuração das settings Django.
    """
    global _container

    if _container is None:
        container = Container()
        container.config.from_dict(_configuracao_das_settings())
        _container = container

    return _container


def reset_container() -> None:
    """Reset do container (para testes)."""
    global _container
    _container = None
