"""
Use Cases (Application Services) do Domínio de Definições de Tipo.

Use Cases implementados:
- RegistrarDefinicaoService: Interpreta e registra nova definição
- AtualizarDefinicaoService: Substitui o documento de uma definição
- DesativarDefinicaoService: Desativa definição (nunca remove)
- ObterDefinicaoService: Obtém definição visível ao tenant
- ListarDefinicoesService: Lista definições visíveis ao tenant

Tipos de sistema (tenant_id None) só podem ser alterados por chamadas
sem tenant, ou seja, pela configuração da plataforma.
"""

from typing import Iterable, List, Optional
import logging

from src.core.shared.interfaces import UnitOfWork
from src.core.shared.exceptions import (
    BusinessRuleViolationError,
    EntityNotFoundError,
    ForbiddenError,
    InvalidDefinitionError,
)

from .dtos import (
    AtualizarDefinicaoInputDTO,
    DefinicaoOutputDTO,
    DesativarDefinicaoInputDTO,
    RegistrarDefinicaoInputDTO,
)
from .entities import DefinicaoTipoEntity
from .events import (
    DefinicaoTipoAtualizadaEvent,
    DefinicaoTipoDesativadaEvent,
    DefinicaoTipoRegistradaEvent,
)
from .maquina_estados import validar_cobertura_estados
from .ports import DefinicaoTipoRepository, EstadosEmUsoPort
from .registry import SchemaRegistry

logger = logging.getLogger(__name__)


def _garantir_itens_visiveis(
    registry: SchemaRegistry, definicao: DefinicaoTipoEntity
) -> None:
    """Todo tipo aninhado deve existir e ser visível ao dono da definição."""
    for tipo_item_id in definicao.tipos_item_ids:
        try:
            registry.obter(tipo_item_id, definicao.tenant_id)
        except EntityNotFoundError:
            raise InvalidDefinitionError(
                f"Tipo de item {tipo_item_id} não encontrado",
                field="nestedItemTypeIds",
            )


def _carregar_editavel(
    definicao_repo: DefinicaoTipoRepository,
    definicao_id: str,
    tenant_id: Optional[str],
) -> DefinicaoTipoEntity:
    definicao = definicao_repo.get_by_id(definicao_id)

    if definicao is None or (tenant_id is not None and not definicao.visivel_para(tenant_id)):
        raise EntityNotFoundError(
            f"Definição de tipo {definicao_id} não encontrada",
            entity_type="DefinicaoTipo",
            entity_id=definicao_id,
        )

    if definicao.tenant_id != tenant_id:
        raise ForbiddenError(
            f"Definição de sistema {definicao.codigo} não pode ser alterada por tenants"
        )

    return definicao


class RegistrarDefinicaoService:
    """
    Use Case: Registrar nova Definição de Tipo.

    Fluxo:
    1. Interpretar documento (máquina de estados, schema, itens)
    2. Rejeitar código duplicado no mesmo escopo
    3. Conferir tipos de item aninhados
    4. Persistir via registry (invalida cache)
    5. Disparar evento DefinicaoTipoRegistrada

    Example:
        service = RegistrarDefinicaoService(definicao_repo, registry, uow)
        output = service.execute(RegistrarDefinicaoInputDTO(
            tenant_id=tenant.id,
            documento={"typeCode": "food_order", "typeName": "Food Order", ...},
        ))
    """

    def __init__(
        self,
        definicao_repo: DefinicaoTipoRepository,
        registry: SchemaRegistry,
        uow: UnitOfWork,
    ):
        self.definicao_repo = definicao_repo
        self.registry = registry
        self.uow = uow

    def execute(self, input_dto: RegistrarDefinicaoInputDTO) -> DefinicaoOutputDTO:
        """
        Raises:
            InvalidDefinitionError: Documento malformado ou item inexistente
            BusinessRuleViolationError: Código já usado no escopo
        """
        definicao = DefinicaoTipoEntity.from_documento(
            input_dto.documento, tenant_id=input_dto.tenant_id
        )

        with self.uow:
            existente = self.definicao_repo.get_by_codigo(definicao.codigo, definicao.tenant_id)
            if existente is not None:
                raise BusinessRuleViolationError(
                    f"Já existe definição com código '{definicao.codigo}'",
                    rule="codigo_duplicado",
                )

            _garantir_itens_visiveis(self.registry, definicao)

            self.registry.salvar(definicao)

            self.uow.publish_event(
                DefinicaoTipoRegistradaEvent(
                    aggregate_id=definicao.id,
                    tenant_id=definicao.tenant_id,
                    codigo=definicao.codigo,
                    possui_maquina=definicao.possui_maquina,
                )
            )

        self.registry.invalidar(definicao.id)
        logger.info(
            f"Definição registrada: {definicao.codigo} ({definicao.id}) "
            f"tenant={definicao.tenant_id or 'sistema'}"
        )
        return DefinicaoOutputDTO.from_entity(definicao)


class AtualizarDefinicaoService:
    """
    Use Case: Substituir o documento de uma Definição de Tipo.

    Regras:
    - typeCode é imutável
    - Estados ocupados por tickets/itens existentes não podem sumir
    - Itens já existentes de um tipo removido de nestedItemTypeIds
      continuam válidos; apenas novos itens desse tipo são rejeitados
    """

    def __init__(
        self,
        definicao_repo: DefinicaoTipoRepository,
        registry: SchemaRegistry,
        uow: UnitOfWork,
        estados_em_uso: Iterable[EstadosEmUsoPort] = (),
    ):
        self.definicao_repo = definicao_repo
        self.registry = registry
        self.uow = uow
        self.estados_em_uso = list(estados_em_uso)

    def execute(self, input_dto: AtualizarDefinicaoInputDTO) -> DefinicaoOutputDTO:
        with self.uow:
            definicao = _carregar_editavel(
                self.definicao_repo, input_dto.definicao_id, input_dto.tenant_id
            )
            nova = DefinicaoTipoEntity.from_documento(
                input_dto.documento,
                tenant_id=definicao.tenant_id,
                definicao_id=definicao.id,
            )

            ocupados = set()
            for porta in self.estados_em_uso:
                ocupados |= porta.estados_em_uso(definicao.id)
            ocupados.discard(None)

            if ocupados:
                if nova.maquina is None:
                    raise InvalidDefinitionError(
                        "stateMachine não pode ser removida enquanto houver registros usando o tipo",
                        field="stateMachine",
                    )
                validar_cobertura_estados(nova.maquina, ocupados)

            _garantir_itens_visiveis(self.registry, nova)

            definicao.substituir_por(nova)
            self.registry.salvar(definicao)

            self.uow.publish_event(
                DefinicaoTipoAtualizadaEvent(
                    aggregate_id=definicao.id,
                    tenant_id=definicao.tenant_id,
                    codigo=definicao.codigo,
                )
            )

        self.registry.invalidar(definicao.id)
        logger.info(f"Definição atualizada: {definicao.codigo} ({definicao.id})")
        return DefinicaoOutputDTO.from_entity(definicao)


class DesativarDefinicaoService:
    """Use Case: Desativar uma Definição de Tipo."""

    def __init__(
        self,
        definicao_repo: DefinicaoTipoRepository,
        registry: SchemaRegistry,
        uow: UnitOfWork,
    ):
        self.definicao_repo = definicao_repo
        self.registry = registry
        self.uow = uow

    def execute(self, input_dto: DesativarDefinicaoInputDTO) -> DefinicaoOutputDTO:
        with self.uow:
            definicao = _carregar_editavel(
                self.definicao_repo, input_dto.definicao_id, input_dto.tenant_id
            )
            definicao.desativar()
            self.registry.salvar(definicao)

            self.uow.publish_event(
                DefinicaoTipoDesativadaEvent(
                    aggregate_id=definicao.id,
                    tenant_id=definicao.tenant_id,
                    codigo=definicao.codigo,
                )
            )

        self.registry.invalidar(definicao.id)
        logger.info(f"Definição desativada: {definicao.codigo} ({definicao.id})")
        return DefinicaoOutputDTO.from_entity(definicao)


class ObterDefinicaoService:
    """
    Use Case: Obter definição visível ao tenant.

    Não usa UoW pois é operação de leitura.
    """

    def __init__(self, registry: SchemaRegistry):
        self.registry = registry

    def execute(self, definicao_id: str, tenant_id: str) -> DefinicaoOutputDTO:
        return DefinicaoOutputDTO.from_entity(self.registry.obter(definicao_id, tenant_id))


class ListarDefinicoesService:
    def __init__(self, definicao_repo: DefinicaoTipoRepository):
        self.definicao_repo = definicao_repo

    def execute(self, tenant_id: str, apenas_ativas: bool = True) -> List[DefinicaoOutputDTO]:
        return [
            DefinicaoOutputDTO.from_entity(d)
            for d in self.definicao_repo.list_visiveis(tenant_id, apenas_ativas=apenas_ativas)
        ]
