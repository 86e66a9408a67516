"""
Fixtures dos adapters Django.

Tudo passa pelo container real (repositórios Django, Unit of Work
com Event Store, publisher em memória) sobre SQLite em memória.
"""

import pytest

from src.config.container import get_container
from src.core.definicoes.dtos import RegistrarDefinicaoInputDTO
from src.core.filas.dtos import CriarFilaInputDTO, CriarTenantInputDTO, RegistrarFuncionarioInputDTO
from src.core.tickets.dtos import CriarTicketInputDTO

from tests.core.fakes import documento_abc, documento_item, documento_pedido


@pytest.fixture
def container(db):
    return get_container()


@pytest.fixture
def publisher(container):
    """InMemoryEventPublisher (EVENT_PUBLISHER_MODE=memory)."""
    return container.event_publisher()


@pytest.fixture
def tenant(container):
    return container.criar_tenant_service().execute(
        CriarTenantInputDTO("Downtown Seattle Coffee", local="Pike Street")
    )


@pytest.fixture
def outro_tenant(container):
    return container.criar_tenant_service().execute(CriarTenantInputDTO("Seattle DMV"))


@pytest.fixture
def registrar(container):
    def _registrar(documento, tenant_id):
        return container.registrar_definicao_service().execute(
            RegistrarDefinicaoInputDTO(tenant_id=tenant_id, documento=documento)
        )

    return _registrar


@pytest.fixture
def tipo_item(registrar, tenant):
    return registrar(documento_item(), tenant.id)


@pytest.fixture
def tipo_pedido(registrar, tenant, tipo_item):
    return registrar(documento_pedido(nestedItemTypeIds=[tipo_item.id]), tenant.id)


@pytest.fixture
def tipo_abc(registrar, tenant):
    return registrar(documento_abc(), tenant.id)


@pytest.fixture
def fila(container, tenant, tipo_pedido, tipo_abc):
    return container.criar_fila_service().execute(
        CriarFilaInputDTO(
            tenant_id=tenant.id,
            nome="Main Queue",
            tipos_aceitos=(tipo_pedido.id, tipo_abc.id),
        )
    )


@pytest.fixture
def fila_balcao(container, tenant, tipo_pedido):
    return container.criar_fila_service().execute(
        CriarFilaInputDTO(
            tenant_id=tenant.id,
            nome="Pickup Counter",
            tipos_aceitos=(tipo_pedido.id,),
            ordem_exibicao=1,
        )
    )


@pytest.fixture
def funcionario(container, tenant):
    return container.registrar_funcionario_service().execute(
        RegistrarFuncionarioInputDTO(tenant.id, "Sarah", "Johnson", "sarah.j@coffee.com", "barista")
    )


@pytest.fixture
def criar_ticket(container, tenant, fila, tipo_abc):
    """Cria ticket ABC (ou outro tipo) na fila principal."""

    def _criar(definicao_id=None, fila_id=None, **extra):
        return container.criar_ticket_service().execute(
            CriarTicketInputDTO(
                tenant_id=tenant.id,
                fila_id=fila_id or fila.id,
                definicao_id=definicao_id or tipo_abc.id,
                **extra,
            )
        )

    return _criar
