"""
Use Cases (Application Services) do Domínio de Filas.

Configuração de cada tenant: tenants, filas e funcionários.

Use Cases implementados:
- CriarTenantService
- CriarFilaService
- AlterarStatusFilaService: Ativa/desativa fila
- AtualizarTiposFilaService: Redefine os tipos aceitos
- ListarFilasService
- RegistrarFuncionarioService
- DesativarFuncionarioService
- ListarFuncionariosService
"""

from typing import Iterable, List, Tuple
import logging

from src.core.definicoes.registry import SchemaRegistry
from src.core.shared.exceptions import EntityNotFoundError, TypeNotAllowedError
from src.core.shared.interfaces import UnitOfWork
from src.core.shared.isolamento import exigir_tenant, garantir_mesmo_tenant

from .dtos import (
    AlterarStatusFilaInputDTO,
    AtualizarTiposFilaInputDTO,
    CriarFilaInputDTO,
    CriarTenantInputDTO,
    DesativarFuncionarioInputDTO,
    FilaOutputDTO,
    FuncionarioOutputDTO,
    RegistrarFuncionarioInputDTO,
    TenantOutputDTO,
)
from .entities import FilaEntity, FuncionarioEntity, TenantEntity
from .events import (
    FilaCriadaEvent,
    FilaStatusAlteradoEvent,
    FilaTiposAtualizadosEvent,
    FuncionarioDesativadoEvent,
    FuncionarioRegistradoEvent,
    TenantCriadoEvent,
)
from .ports import FilaRepository, FuncionarioRepository, TenantRepository

logger = logging.getLogger(__name__)


# =============================================================================
# Helpers
# =============================================================================

def carregar_fila(
    fila_repo: FilaRepository, fila_id: str, tenant_id: str, operacao: str = ""
) -> FilaEntity:
    """
    Busca fila e confere o tenant dono.

    Raises:
        EntityNotFoundError: Fila inexistente
        TenantMismatchError: Fila de outro tenant
    """
    fila = fila_repo.get_by_id(fila_id)
    if not fila:
        raise EntityNotFoundError(
            f"Fila {fila_id} não encontrada",
            entity_type="Fila",
            entity_id=fila_id,
        )
    garantir_mesmo_tenant(tenant_id, fila.tenant_id, "Fila", fila_id, operacao)
    return fila


def carregar_funcionario(
    funcionario_repo: FuncionarioRepository,
    funcionario_id: str,
    tenant_id: str,
    operacao: str = "",
) -> FuncionarioEntity:
    funcionario = funcionario_repo.get_by_id(funcionario_id)
    if not funcionario:
        raise EntityNotFoundError(
            f"Funcionário {funcionario_id} não encontrado",
            entity_type="Funcionario",
            entity_id=funcionario_id,
        )
    garantir_mesmo_tenant(
        tenant_id, funcionario.tenant_id, "Funcionario", funcionario_id, operacao
    )
    return funcionario


def validar_tipos_aceitos(
    registry: SchemaRegistry, tenant_id: str, tipos: Iterable[str]
) -> Tuple[str, ...]:
    """
    Tipos aceitos por uma fila precisam ser visíveis ao tenant,
    estar ativos e declarar máquina de estados.

    Raises:
        EntityNotFoundError: Tipo inexistente ou de outro tenant
        TypeNotAllowedError: Tipo inativo ou sem máquina de estados
    """
    validados = []
    for tipo_id in dict.fromkeys(tipos):
        definicao = registry.obter(tipo_id, tenant_id)
        if not definicao.ativo:
            raise TypeNotAllowedError(
                f"Tipo {definicao.codigo} está desativado",
                type_definition_id=tipo_id,
            )
        if not definicao.possui_maquina:
            raise TypeNotAllowedError(
                f"Tipo {definicao.codigo} não possui máquina de estados e "
                f"só pode ser usado como item",
                type_definition_id=tipo_id,
            )
        validados.append(tipo_id)
    return tuple(validados)


# =============================================================================
# Tenants
# =============================================================================

class CriarTenantService:
    def __init__(self, tenant_repo: TenantRepository, uow: UnitOfWork):
        self.tenant_repo = tenant_repo
        self.uow = uow

    def execute(self, input_dto: CriarTenantInputDTO) -> TenantOutputDTO:
        with self.uow:
            tenant = TenantEntity.criar(
                nome=input_dto.nome,
                descricao=input_dto.descricao,
                local=input_dto.local,
            )
            self.tenant_repo.save(tenant)

            self.uow.publish_event(
                TenantCriadoEvent(aggregate_id=tenant.id, tenant_id=tenant.id, nome=tenant.nome)
            )

        logger.info(f"Tenant criado: {tenant.nome} ({tenant.id})")
        return TenantOutputDTO.from_entity(tenant)


# =============================================================================
# Filas
# =============================================================================

class CriarFilaService:
    """
    Use Case: Criar fila para um tenant.

    Fluxo:
    1. Conferir que o tenant existe
    2. Validar tipos aceitos (visíveis, ativos, com máquina de estados)
    3. Persistir fila
    4. Disparar evento FilaCriada
    """

    def __init__(
        self,
        fila_repo: FilaRepository,
        tenant_repo: TenantRepository,
        registry: SchemaRegistry,
        uow: UnitOfWork,
    ):
        self.fila_repo = fila_repo
        self.tenant_repo = tenant_repo
        self.registry = registry
        self.uow = uow

    def execute(self, input_dto: CriarFilaInputDTO) -> FilaOutputDTO:
        tenant_id = exigir_tenant(input_dto.tenant_id)

        with self.uow:
            if not self.tenant_repo.get_by_id(tenant_id):
                raise EntityNotFoundError(
                    f"Tenant {tenant_id} não encontrado",
                    entity_type="Tenant",
                    entity_id=tenant_id,
                )

            tipos = validar_tipos_aceitos(self.registry, tenant_id, input_dto.tipos_aceitos)
            fila = FilaEntity.criar(
                tenant_id=tenant_id,
                nome=input_dto.nome,
                descricao=input_dto.descricao,
                tipos_aceitos=tipos,
                ordem_exibicao=input_dto.ordem_exibicao,
                max_espera_minutos=input_dto.max_espera_minutos,
            )
            self.fila_repo.save(fila)

            self.uow.publish_event(
                FilaCriadaEvent(
                    aggregate_id=fila.id,
                    tenant_id=tenant_id,
                    nome=fila.nome,
                    tipos_aceitos=list(fila.tipos_aceitos),
                )
            )

        logger.info(f"Fila criada: {fila.nome} ({fila.id}) tenant={tenant_id}")
        return FilaOutputDTO.from_entity(fila)


class AlterarStatusFilaService:
    """
    Use Case: Ativar ou desativar fila.

    Fila desativada rejeita novos tickets com QueueInactive; os
    tickets já presentes seguem seu ciclo normalmente.
    """

    def __init__(self, fila_repo: FilaRepository, uow: UnitOfWork):
        self.fila_repo = fila_repo
        self.uow = uow

    def execute(self, input_dto: AlterarStatusFilaInputDTO) -> FilaOutputDTO:
        tenant_id = exigir_tenant(input_dto.tenant_id)

        with self.uow:
            fila = carregar_fila(self.fila_repo, input_dto.fila_id, tenant_id, "alterar_status_fila")

            if input_dto.ativo:
                fila.ativar()
            else:
                fila.desativar()
            self.fila_repo.save(fila)

            self.uow.publish_event(
                FilaStatusAlteradoEvent(
                    aggregate_id=fila.id, tenant_id=tenant_id, ativo=fila.ativo
                )
            )

        logger.info(f"Fila {fila.id} {'ativada' if fila.ativo else 'desativada'}")
        return FilaOutputDTO.from_entity(fila)


class AtualizarTiposFilaService:
    def __init__(self, fila_repo: FilaRepository, registry: SchemaRegistry, uow: UnitOfWork):
        self.fila_repo = fila_repo
        self.registry = registry
        self.uow = uow

    def execute(self, input_dto: AtualizarTiposFilaInputDTO) -> FilaOutputDTO:
        tenant_id = exigir_tenant(input_dto.tenant_id)

        with self.uow:
            fila = carregar_fila(self.fila_repo, input_dto.fila_id, tenant_id, "atualizar_tipos_fila")
            anteriores = list(fila.tipos_aceitos)

            fila.definir_tipos_aceitos(
                validar_tipos_aceitos(self.registry, tenant_id, input_dto.tipos_aceitos)
            )
            self.fila_repo.save(fila)

            self.uow.publish_event(
                FilaTiposAtualizadosEvent(
                    aggregate_id=fila.id,
                    tenant_id=tenant_id,
                    tipos_anteriores=anteriores,
                    tipos_novos=list(fila.tipos_aceitos),
                )
            )

        return FilaOutputDTO.from_entity(fila)


class ListarFilasService:
    """Lista filas do tenant. Operação de leitura, sem UoW."""

    def __init__(self, fila_repo: FilaRepository):
        self.fila_repo = fila_repo

    def execute(self, tenant_id: str, apenas_ativas: bool = False) -> List[FilaOutputDTO]:
        tenant_id = exigir_tenant(tenant_id)
        return [
            FilaOutputDTO.from_entity(f)
            for f in self.fila_repo.list_by_tenant(tenant_id, apenas_ativas=apenas_ativas)
        ]


# =============================================================================
# Funcionários
# =============================================================================

class RegistrarFuncionarioService:
    def __init__(
        self,
        funcionario_repo: FuncionarioRepository,
        tenant_repo: TenantRepository,
        uow: UnitOfWork,
    ):
        self.funcionario_repo = funcionario_repo
        self.tenant_repo = tenant_repo
        self.uow = uow

    def execute(self, input_dto: RegistrarFuncionarioInputDTO) -> FuncionarioOutputDTO:
        tenant_id = exigir_tenant(input_dto.tenant_id)

        with self.uow:
            if not self.tenant_repo.get_by_id(tenant_id):
                raise EntityNotFoundError(
                    f"Tenant {tenant_id} não encontrado",
                    entity_type="Tenant",
                    entity_id=tenant_id,
                )

            funcionario = FuncionarioEntity.criar(
                tenant_id=tenant_id,
                nome=input_dto.nome,
                sobrenome=input_dto.sobrenome,
                email=input_dto.email,
                cargo=input_dto.cargo,
            )
            self.funcionario_repo.save(funcionario)

            self.uow.publish_event(
                FuncionarioRegistradoEvent(
                    aggregate_id=funcionario.id,
                    tenant_id=tenant_id,
                    email=funcionario.email,
                    cargo=funcionario.cargo or None,
                )
            )

        return FuncionarioOutputDTO.from_entity(funcionario)


class DesativarFuncionarioService:
    def __init__(self, funcionario_repo: FuncionarioRepository, uow: UnitOfWork):
        self.funcionario_repo = funcionario_repo
        self.uow = uow

    def execute(self, input_dto: DesativarFuncionarioInputDTO) -> FuncionarioOutputDTO:
        tenant_id = exigir_tenant(input_dto.tenant_id)

        with self.uow:
            funcionario = carregar_funcionario(
                self.funcionario_repo,
                input_dto.funcionario_id,
                tenant_id,
                "desativar_funcionario",
            )
            funcionario.desativar()
            self.funcionario_repo.save(funcionario)

            self.uow.publish_event(
                FuncionarioDesativadoEvent(aggregate_id=funcionario.id, tenant_id=tenant_id)
            )

        return FuncionarioOutputDTO.from_entity(funcionario)


class ListarFuncionariosService:
    def __init__(self, funcionario_repo: FuncionarioRepository):
        self.funcionario_repo = funcionario_repo

    def execute(self, tenant_id: str) -> List[FuncionarioOutputDTO]:
        tenant_id = exigir_tenant(tenant_id)
        return [
            FuncionarioOutputDTO.from_entity(f)
            for f in self.funcionario_repo.list_by_tenant(tenant_id)
        ]
