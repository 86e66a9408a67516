"""
Fixtures do core: repositórios em memória e Unit of Work fake.

Os testes do core não tocam o banco; cada fixture monta a peça
correspondente do motor com as implementações em memória dos ports.
"""

import pytest

from src.core.definicoes.entities import DefinicaoTipoEntity
from src.core.definicoes.ports import InMemoryDefinicaoTipoRepository
from src.core.definicoes.registry import SchemaRegistry
from src.core.filas.entities import FilaEntity, FuncionarioEntity, TenantEntity
from src.core.filas.ports import (
    InMemoryFilaRepository,
    InMemoryFuncionarioRepository,
    InMemoryIndiceFila,
    InMemoryTenantRepository,
)
from src.core.tickets.auditoria import RegistradorAuditoria
from src.core.tickets.ports import (
    InMemoryHistoricoRepository,
    InMemoryItemTicketRepository,
    InMemoryTicketRepository,
)
from src.core.tickets.use_cases import (
    AdicionarItemService,
    AtribuirFuncionarioService,
    CancelarTicketService,
    CriarTicketService,
    EncaminharTicketService,
    ReordenarTicketService,
    TransicionarItemService,
    TransicionarTicketService,
)

from tests.core.fakes import (
    SEM_ESPERA,
    FakeUnitOfWork,
    documento_abc,
    documento_item,
    documento_pedido,
)


# =============================================================================
# Repositórios e componentes
# =============================================================================

@pytest.fixture
def uow():
    return FakeUnitOfWork()


@pytest.fixture
def definicao_repo():
    return InMemoryDefinicaoTipoRepository()


@pytest.fixture
def registry(definicao_repo):
    return SchemaRegistry(definicao_repo)


@pytest.fixture
def tenant_repo():
    return InMemoryTenantRepository()


@pytest.fixture
def fila_repo():
    return InMemoryFilaRepository()


@pytest.fixture
def funcionario_repo():
    return InMemoryFuncionarioRepository()


@pytest.fixture
def ticket_repo():
    return InMemoryTicketRepository()


@pytest.fixture
def item_repo():
    return InMemoryItemTicketRepository()


@pytest.fixture
def historico_repo():
    return InMemoryHistoricoRepository()


@pytest.fixture
def indice(ticket_repo):
    return InMemoryIndiceFila(ticket_repo)


@pytest.fixture
def auditoria(historico_repo):
    return RegistradorAuditoria(historico_repo)


# =============================================================================
# Dados de exemplo
# =============================================================================

@pytest.fixture
def registrar(registry):
    """Registra um documento de definição direto no registry."""

    def _registrar(documento, tenant_id=None):
        definicao = DefinicaoTipoEntity.from_documento(documento, tenant_id=tenant_id)
        registry.salvar(definicao)
        return definicao

    return _registrar


@pytest.fixture
def tenant(tenant_repo):
    tenant = TenantEntity.criar("Downtown Seattle Coffee", local="Downtown Seattle Store")
    tenant_repo.save(tenant)
    return tenant


@pytest.fixture
def outro_tenant(tenant_repo):
    tenant = TenantEntity.criar("Seattle DMV")
    tenant_repo.save(tenant)
    return tenant


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
def fila(fila_repo, tenant, tipo_pedido, tipo_abc):
    fila = FilaEntity.criar(tenant.id, "Main Queue", tipos_aceitos=[tipo_pedido.id, tipo_abc.id])
    fila_repo.save(fila)
    return fila


@pytest.fixture
def fila_balcao(fila_repo, tenant, tipo_pedido):
    fila = FilaEntity.criar(tenant.id, "Pickup Counter", tipos_aceitos=[tipo_pedido.id], ordem_exibicao=1)
    fila_repo.save(fila)
    return fila


@pytest.fixture
def funcionario(funcionario_repo, tenant):
    funcionario = FuncionarioEntity.criar(tenant.id, "Sarah", "Johnson", "sarah.j@coffee-seattle.com", "barista")
    funcionario_repo.save(funcionario)
    return funcionario


# =============================================================================
# Services (Lifecycle Manager)
# =============================================================================

@pytest.fixture
def criar_service(ticket_repo, fila_repo, registry, indice, auditoria, uow):
    return CriarTicketService(
        ticket_repo, fila_repo, registry, indice, auditoria, uow, retry_policy=SEM_ESPERA
    )


@pytest.fixture
def transicionar_service(ticket_repo, fila_repo, registry, auditoria, uow, funcionario_repo):
    return TransicionarTicketService(
        ticket_repo, fila_repo, registry, auditoria, uow,
        funcionario_repo=funcionario_repo, retry_policy=SEM_ESPERA,
    )


@pytest.fixture
def cancelar_service(ticket_repo, fila_repo, registry, auditoria, uow, funcionario_repo):
    return CancelarTicketService(
        ticket_repo, fila_repo, registry, auditoria, uow,
        funcionario_repo=funcionario_repo, retry_policy=SEM_ESPERA,
    )


@pytest.fixture
def atribuir_service(ticket_repo, fila_repo, funcionario_repo, uow):
    return AtribuirFuncionarioService(
        ticket_repo, fila_repo, funcionario_repo, uow, retry_policy=SEM_ESPERA
    )


@pytest.fixture
def encaminhar_service(ticket_repo, fila_repo, indice, uow):
    return EncaminharTicketService(ticket_repo, fila_repo, indice, uow, retry_policy=SEM_ESPERA)


@pytest.fixture
def reordenar_service(ticket_repo, fila_repo, indice, uow):
    return ReordenarTicketService(ticket_repo, fila_repo, indice, uow, retry_policy=SEM_ESPERA)


@pytest.fixture
def adicionar_item_service(ticket_repo, item_repo, fila_repo, registry, auditoria, uow):
    return AdicionarItemService(
        ticket_repo, item_repo, fila_repo, registry, auditoria, uow, retry_policy=SEM_ESPERA
    )


@pytest.fixture
def transicionar_item_service(ticket_repo, item_repo, fila_repo, registry, auditoria, uow, funcionario_repo):
    return TransicionarItemService(
        ticket_repo, item_repo, fila_repo, registry, auditoria, uow,
        funcionario_repo=funcionario_repo, retry_policy=SEM_ESPERA,
    )
