"""
Use Cases (Application Services) do Domínio de Tickets.

Ticket Lifecycle Manager: orquestra criação, transição, atribuição,
encaminhamento, reordenação e cancelamento de tickets e itens,
coordenando Schema Registry, Validador Estrutural, Transition Engine,
Audit Recorder e Índice da Fila.

Use Cases implementados:
- CriarTicketService
- TransicionarTicketService
- AtribuirFuncionarioService
- EncaminharTicketService
- ReordenarTicketService
- CancelarTicketService
- AdicionarItemService / TransicionarItemService
- ObterTicketService, ListarItensTicketService
- ObterHistoricoService, ObterHistoricoItemService
- ListarTicketsFilaService, ContarTicketsFilaService
- EscalarTicketsExpiradosService

Princípios:
- Tenant chamador é parâmetro explícito e conferido antes de qualquer mutação
- Leitura, validação, gravação e auditoria numa única transação (UoW)
- Conflito de versão vira InvalidTransition calculada sobre o estado novo
- Falhas transitórias de armazenamento são repetidas (RetryPolicy);
  erros de regra de negócio nunca
"""

from typing import Iterable, List, Optional, Tuple
import logging

from src.core.definicoes.entities import DefinicaoTipoEntity
from src.core.definicoes.registry import SchemaRegistry
from src.core.definicoes.validador import ValidadorEstrutural
from src.core.filas.entities import FilaEntity
from src.core.filas.ports import FilaRepository, FuncionarioRepository, IndiceFila
from src.core.filas.use_cases import carregar_fila, carregar_funcionario
from src.core.shared.exceptions import (
    BusinessRuleViolationError,
    ConcurrencyError,
    EntityNotFoundError,
    InvalidTransitionError,
    NoCancellationAvailableError,
    TypeNotAllowedError,
    ValidationError,
)
from src.core.shared.identificadores import agora
from src.core.shared.interfaces import UnitOfWork
from src.core.shared.isolamento import exigir_tenant, garantir_mesmo_tenant
from src.core.shared.retry import RetryPolicy

from .auditoria import RegistradorAuditoria
from .dtos import (
    AdicionarItemInputDTO,
    AtribuirFuncionarioInputDTO,
    CancelarTicketInputDTO,
    CriarTicketInputDTO,
    EncaminharTicketInputDTO,
    ItemOutputDTO,
    ListarTicketsFilaQueryDTO,
    PaginaTicketsDTO,
    RegistroTransicaoOutputDTO,
    ReordenarTicketInputDTO,
    TicketOutputDTO,
    TransicionarItemInputDTO,
    TransicionarTicketInputDTO,
)
from .entities import ItemTicketEntity, TicketEntity
from .events import (
    ItemAdicionadoEvent,
    ItemTransicionadoEvent,
    TicketAtribuidoEvent,
    TicketCanceladoEvent,
    TicketCriadoEvent,
    TicketEncaminhadoEvent,
    TicketEscaladoEvent,
    TicketReordenadoEvent,
    TicketTransicionadoEvent,
)
from .ports import HistoricoRepository, ItemTicketRepository, TicketRepository

logger = logging.getLogger(__name__)


# =============================================================================
# Helpers
# =============================================================================

def carregar_ticket(
    ticket_repo: TicketRepository,
    fila_repo: FilaRepository,
    ticket_id: str,
    tenant_id: str,
    operacao: str = "",
) -> Tuple[TicketEntity, FilaEntity]:
    """
    Busca ticket e confere o tenant através da fila dona.

    Raises:
        EntityNotFoundError: Ticket inexistente
        TenantMismatchError: Ticket de outro tenant
    """
    ticket = ticket_repo.get_by_id(ticket_id)
    if not ticket:
        raise EntityNotFoundError(
            f"Ticket {ticket_id} não encontrado",
            entity_type="Ticket",
            entity_id=ticket_id,
        )

    fila = fila_repo.get_by_id(ticket.fila_id)
    garantir_mesmo_tenant(
        tenant_id, fila.tenant_id if fila else None, "Ticket", ticket_id, operacao
    )
    return ticket, fila


def _carregar_item(
    item_repo: ItemTicketRepository, ticket_id: str, item_id: str
) -> ItemTicketEntity:
    item = item_repo.get_by_id(item_id)
    if not item or item.ticket_id != ticket_id:
        raise EntityNotFoundError(
            f"Item {item_id} não encontrado no ticket {ticket_id}",
            entity_type="ItemTicket",
            entity_id=item_id,
        )
    return item


def _conflito_transicao(
    estado_atual: Optional[str],
    entidade_id: str,
    definicao: DefinicaoTipoEntity,
    nome_transicao: str,
) -> InvalidTransitionError:
    """
    Erro para uma corrida perdida: calculado sobre o estado que venceu.
    """
    logger.info(
        f"Conflito de versão em {entidade_id}: transição '{nome_transicao}' "
        f"perdeu a corrida; estado atual '{estado_atual}'"
    )
    validas = definicao.maquina.transicoes_de(estado_atual) if definicao.maquina else []
    return InvalidTransitionError(
        nome_transicao,
        estado_atual,
        validas,
        message=(
            f"Transição '{nome_transicao}' não é mais permitida: {entidade_id} "
            f"foi alterado concorrentemente e está em '{estado_atual}'"
        ),
    )


def _garantir_funcionario(
    funcionario_repo: Optional[FuncionarioRepository],
    funcionario_id: Optional[str],
    tenant_id: str,
    operacao: str,
) -> None:
    """Ator informado deve existir, estar ativo e ser do mesmo tenant."""
    if not funcionario_id or funcionario_repo is None:
        return
    funcionario = carregar_funcionario(funcionario_repo, funcionario_id, tenant_id, operacao)
    if not funcionario.ativo:
        raise BusinessRuleViolationError(
            f"Funcionário {funcionario_id} está desativado",
            rule="funcionario_inativo",
        )


class _ServicoTicket:
    """Base dos use cases de escrita: política de retry na fronteira."""

    descricao = "operacao_ticket"

    def __init__(self, uow: UnitOfWork, retry_policy: Optional[RetryPolicy] = None):
        self.uow = uow
        self.retry_policy = retry_policy or RetryPolicy()

    def _com_retry(self, operacao):
        return self.retry_policy.executar(operacao, self.descricao)


# =============================================================================
# Tickets
# =============================================================================

class CriarTicketService(_ServicoTicket):
    """
    Use Case: Criar um novo ticket.

    Fluxo:
    1. Conferir fila (tenant, ativa, aceita o tipo)
    2. Obter definição via Schema Registry
    3. Validar payload contra o schema estrutural
    4. Criar ticket no estado inicial e persistir
    5. Gravar registro inicial (estado anterior None)
    6. Inserir no fim da fila
    7. Disparar evento TicketCriado

    Example:
        service = CriarTicketService(ticket_repo, fila_repo, registry, indice, auditoria, uow)
        output = service.execute(CriarTicketInputDTO(
            tenant_id=tenant.id,
            fila_id=fila.id,
            definicao_id=tipo.id,
            payload={"vin": "1HGCM82633A004352", ...},
        ))
        print(output.estado)  # estado inicial do tipo
    """

    descricao = "criar_ticket"

    def __init__(
        self,
        ticket_repo: TicketRepository,
        fila_repo: FilaRepository,
        registry: SchemaRegistry,
        indice: IndiceFila,
        auditoria: RegistradorAuditoria,
        uow: UnitOfWork,
        validador: Optional[ValidadorEstrutural] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        super().__init__(uow, retry_policy)
        self.ticket_repo = ticket_repo
        self.fila_repo = fila_repo
        self.registry = registry
        self.indice = indice
        self.auditoria = auditoria
        self.validador = validador or ValidadorEstrutural()

    def execute(self, input_dto: CriarTicketInputDTO) -> TicketOutputDTO:
        """
        Raises:
            QueueInactiveError: Fila desativada
            TypeNotAllowedError: Tipo não aceito pela fila
            ValidationError: Payload fora do schema
            EntityNotFoundError: Fila, tipo ou ticket referenciado inexistente
            ForbiddenError: Fila de outro tenant
        """
        exigir_tenant(input_dto.tenant_id)
        return self._com_retry(lambda: self._executar(input_dto))

    def _executar(self, input_dto: CriarTicketInputDTO) -> TicketOutputDTO:
        tenant_id = input_dto.tenant_id

        with self.uow:
            fila = carregar_fila(self.fila_repo, input_dto.fila_id, tenant_id, "criar_ticket")
            definicao = self.registry.obter(input_dto.definicao_id, tenant_id)

            if not definicao.possui_maquina:
                raise TypeNotAllowedError(
                    f"Tipo {definicao.codigo} não possui máquina de estados e não pode ser usado em tickets",
                    type_definition_id=definicao.id,
                )
            fila.garantir_aceita_novos(definicao.id)
            if not definicao.ativo:
                raise TypeNotAllowedError(
                    f"Tipo {definicao.codigo} está desativado",
                    type_definition_id=definicao.id,
                )

            self.validador.garantir_valido(input_dto.payload, definicao.schema)

            if input_dto.ticket_referenciado_id:
                carregar_ticket(
                    self.ticket_repo,
                    self.fila_repo,
                    input_dto.ticket_referenciado_id,
                    tenant_id,
                    "criar_ticket_referencia",
                )

            ticket = TicketEntity.criar(
                fila_id=fila.id,
                definicao=definicao,
                payload=input_dto.payload,
                pessoa_id=input_dto.pessoa_id,
                ttl_minutos=input_dto.ttl_minutos,
                ticket_referenciado_id=input_dto.ticket_referenciado_id,
            )
            self.ticket_repo.save(ticket)
            self.auditoria.registrar(ticket.id, None, ticket.estado, notas="Ticket criado")
            posicao = self.indice.inserir(fila.id, ticket.id)

            self.uow.publish_event(
                TicketCriadoEvent(
                    aggregate_id=ticket.id,
                    tenant_id=tenant_id,
                    fila_id=fila.id,
                    definicao_id=definicao.id,
                    estado=ticket.estado,
                    posicao=posicao,
                    pessoa_id=ticket.pessoa_id,
                )
            )

        logger.info(
            f"Ticket criado: {ticket.id} tipo={definicao.codigo} fila={fila.id} "
            f"posicao={posicao} tenant={tenant_id}"
        )
        return TicketOutputDTO.from_entity(ticket, posicao=posicao)


class TransicionarTicketService(_ServicoTicket):
    """
    Use Case: Aplicar transição nomeada a um ticket.

    Fluxo:
    1. Buscar ticket e conferir tenant (via fila)
    2. Calcular próximo estado (Transition Engine)
    3. Gravar com check-and-set na versão lida
    4. Registrar transição no histórico (mesma transação)
    5. Disparar evento TicketTransicionado

    Duas chamadas concorrentes a partir do mesmo estado: só uma
    grava; a outra recebe InvalidTransition com as transições
    válidas a partir do estado vencedor.
    """

    descricao = "transicionar_ticket"

    def __init__(
        self,
        ticket_repo: TicketRepository,
        fila_repo: FilaRepository,
        registry: SchemaRegistry,
        auditoria: RegistradorAuditoria,
        uow: UnitOfWork,
        funcionario_repo: Optional[FuncionarioRepository] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        super().__init__(uow, retry_policy)
        self.ticket_repo = ticket_repo
        self.fila_repo = fila_repo
        self.registry = registry
        self.auditoria = auditoria
        self.funcionario_repo = funcionario_repo

    def execute(self, input_dto: TransicionarTicketInputDTO) -> TicketOutputDTO:
        """
        Returns:
            Ticket com estado atual e estado anterior

        Raises:
            EntityNotFoundError: Ticket inexistente
            ForbiddenError: Ticket de outro tenant
            UnknownTransitionError: Transição não declarada
            InvalidTransitionError: Transição não parte do estado atual
        """
        exigir_tenant(input_dto.tenant_id)
        if not input_dto.transicao:
            raise ValidationError("Nome da transição é obrigatório", field="transicao")
        return self._com_retry(
            lambda: self._transicionar(
                tenant_id=input_dto.tenant_id,
                ticket_id=input_dto.ticket_id,
                funcionario_id=input_dto.funcionario_id,
                notas=input_dto.notas,
                nome_transicao=input_dto.transicao,
            )
        )

    def _resolver_transicao(self, ticket: TicketEntity, definicao: DefinicaoTipoEntity,
                            nome_transicao: Optional[str]) -> str:
        return nome_transicao

    def _publicar(self, ticket, tenant_id, nome, anterior, funcionario_id, notas) -> None:
        self.uow.publish_event(
            TicketTransicionadoEvent(
                aggregate_id=ticket.id,
                tenant_id=tenant_id,
                transicao=nome,
                estado_anterior=anterior,
                estado_novo=ticket.estado,
                funcionario_id=funcionario_id,
            )
        )

    def _transicionar(
        self,
        tenant_id: str,
        ticket_id: str,
        funcionario_id: Optional[str],
        notas: str,
        nome_transicao: Optional[str],
    ) -> TicketOutputDTO:
        with self.uow:
            ticket, fila = carregar_ticket(
                self.ticket_repo, self.fila_repo, ticket_id, tenant_id, self.descricao
            )
            _garantir_funcionario(self.funcionario_repo, funcionario_id, tenant_id, self.descricao)
            definicao = self.registry.obter(ticket.definicao_id, tenant_id)

            nome = self._resolver_transicao(ticket, definicao, nome_transicao)
            versao = ticket.versao
            anterior = ticket.aplicar_transicao(definicao, nome)

            if not self.ticket_repo.atualizar(ticket, versao):
                atual = self.ticket_repo.get_by_id(ticket.id)
                raise _conflito_transicao(
                    atual.estado if atual else None, ticket.id, definicao, nome
                )

            self.auditoria.registrar(
                ticket.id, anterior, ticket.estado, funcionario_id=funcionario_id, notas=notas
            )
            self._publicar(ticket, tenant_id, nome, anterior, funcionario_id, notas)

        logger.info(
            f"Ticket {ticket.id}: {anterior} -> {ticket.estado} via '{nome}' "
            f"tenant={tenant_id}"
        )
        return TicketOutputDTO.from_entity(ticket, estado_anterior=anterior)


class CancelarTicketService(TransicionarTicketService):
    """
    Use Case: Cancelar ticket.

    Atalho sobre a transição: usa a transição de cancelamento que a
    máquina oferece a partir do estado atual. Sem ela, o ticket
    precisa seguir até a conclusão (NoCancellationAvailable).
    """

    descricao = "cancelar_ticket"

    def execute(self, input_dto: CancelarTicketInputDTO) -> TicketOutputDTO:
        exigir_tenant(input_dto.tenant_id)
        return self._com_retry(
            lambda: self._transicionar(
                tenant_id=input_dto.tenant_id,
                ticket_id=input_dto.ticket_id,
                funcionario_id=input_dto.funcionario_id,
                notas=input_dto.motivo,
                nome_transicao=None,
            )
        )

    def _resolver_transicao(self, ticket, definicao, nome_transicao) -> str:
        transicao = definicao.maquina.transicao_cancelamento(ticket.estado)
        if transicao is None:
            raise NoCancellationAvailableError(ticket.id, ticket.estado)
        return transicao.nome

    def _publicar(self, ticket, tenant_id, nome, anterior, funcionario_id, notas) -> None:
        super()._publicar(ticket, tenant_id, nome, anterior, funcionario_id, notas)
        self.uow.publish_event(
            TicketCanceladoEvent(
                aggregate_id=ticket.id,
                tenant_id=tenant_id,
                estado_anterior=anterior,
                estado_novo=ticket.estado,
                motivo=notas or "",
                funcionario_id=funcionario_id,
            )
        )


class AtribuirFuncionarioService(_ServicoTicket):
    """
    Use Case: Definir o funcionário responsável pelo ticket.

    Não envolve a máquina de estados.
    """

    descricao = "atribuir_funcionario"

    def __init__(
        self,
        ticket_repo: TicketRepository,
        fila_repo: FilaRepository,
        funcionario_repo: FuncionarioRepository,
        uow: UnitOfWork,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        super().__init__(uow, retry_policy)
        self.ticket_repo = ticket_repo
        self.fila_repo = fila_repo
        self.funcionario_repo = funcionario_repo

    def execute(self, input_dto: AtribuirFuncionarioInputDTO) -> TicketOutputDTO:
        exigir_tenant(input_dto.tenant_id)
        if not input_dto.funcionario_id:
            raise ValidationError("Funcionário é obrigatório", field="funcionario_id")
        return self._com_retry(lambda: self._executar(input_dto))

    def _executar(self, input_dto: AtribuirFuncionarioInputDTO) -> TicketOutputDTO:
        tenant_id = input_dto.tenant_id

        with self.uow:
            ticket, _ = carregar_ticket(
                self.ticket_repo, self.fila_repo, input_dto.ticket_id, tenant_id, self.descricao
            )
            _garantir_funcionario(
                self.funcionario_repo, input_dto.funcionario_id, tenant_id, self.descricao
            )

            anterior = ticket.funcionario_id
            versao = ticket.versao
            ticket.atribuir(input_dto.funcionario_id)

            if not self.ticket_repo.atualizar(ticket, versao):
                raise ConcurrencyError(
                    f"Ticket {ticket.id} foi modificado por outro processo"
                )

            self.uow.publish_event(
                TicketAtribuidoEvent(
                    aggregate_id=ticket.id,
                    tenant_id=tenant_id,
                    funcionario_id=input_dto.funcionario_id,
                    funcionario_anterior_id=anterior,
                )
            )

        return TicketOutputDTO.from_entity(ticket)


class EncaminharTicketService(_ServicoTicket):
    """
    Use Case: Encaminhar ticket para outra fila.

    Ortogonal à máquina de estados: o estado não muda. O ticket sai
    da fila de origem e entra no fim da fila de destino na mesma
    transação; o evento TicketEncaminhado é o registro de auditoria.
    """

    descricao = "encaminhar_ticket"

    def __init__(
        self,
        ticket_repo: TicketRepository,
        fila_repo: FilaRepository,
        indice: IndiceFila,
        uow: UnitOfWork,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        super().__init__(uow, retry_policy)
        self.ticket_repo = ticket_repo
        self.fila_repo = fila_repo
        self.indice = indice

    def execute(self, input_dto: EncaminharTicketInputDTO) -> TicketOutputDTO:
        """
        Raises:
            QueueInactiveError: Fila de destino desativada
            TypeNotAllowedError: Destino não aceita o tipo do ticket
            ForbiddenError: Ticket ou destino de outro tenant
        """
        exigir_tenant(input_dto.tenant_id)
        return self._com_retry(lambda: self._executar(input_dto))

    def _executar(self, input_dto: EncaminharTicketInputDTO) -> TicketOutputDTO:
        tenant_id = input_dto.tenant_id

        with self.uow:
            ticket, origem = carregar_ticket(
                self.ticket_repo, self.fila_repo, input_dto.ticket_id, tenant_id, self.descricao
            )
            destino = carregar_fila(
                self.fila_repo, input_dto.fila_destino_id, tenant_id, self.descricao
            )
            destino.garantir_aceita_novos(ticket.definicao_id)

            versao = ticket.versao
            ticket.encaminhar(destino.id)
            if not self.ticket_repo.atualizar(ticket, versao):
                raise ConcurrencyError(
                    f"Ticket {ticket.id} foi modificado por outro processo"
                )

            posicao = self.indice.mover(origem.id, destino.id, ticket.id)

            self.uow.publish_event(
                TicketEncaminhadoEvent(
                    aggregate_id=ticket.id,
                    tenant_id=tenant_id,
                    fila_origem_id=origem.id,
                    fila_destino_id=destino.id,
                    posicao=posicao,
                    motivo=input_dto.motivo or "",
                )
            )

        logger.info(
            f"Ticket {ticket.id} encaminhado: {origem.id} -> {destino.id} "
            f"posicao={posicao} tenant={tenant_id}"
        )
        return TicketOutputDTO.from_entity(ticket, posicao=posicao)


class ReordenarTicketService(_ServicoTicket):
    """
    Use Case: Reposicionar ticket dentro da sua fila.

    Intervenção manual (prioridade); apenas os tickets entre a posição
    antiga e a nova se deslocam. O estado não muda.
    """

    descricao = "reordenar_ticket"

    def __init__(
        self,
        ticket_repo: TicketRepository,
        fila_repo: FilaRepository,
        indice: IndiceFila,
        uow: UnitOfWork,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        super().__init__(uow, retry_policy)
        self.ticket_repo = ticket_repo
        self.fila_repo = fila_repo
        self.indice = indice

    def execute(self, input_dto: ReordenarTicketInputDTO) -> TicketOutputDTO:
        exigir_tenant(input_dto.tenant_id)
        if isinstance(input_dto.nova_posicao, bool) or not isinstance(input_dto.nova_posicao, int):
            raise ValidationError("Nova posição deve ser um inteiro", field="nova_posicao")
        return self._com_retry(lambda: self._executar(input_dto))

    def _executar(self, input_dto: ReordenarTicketInputDTO) -> TicketOutputDTO:
        tenant_id = input_dto.tenant_id

        with self.uow:
            ticket, fila = carregar_ticket(
                self.ticket_repo, self.fila_repo, input_dto.ticket_id, tenant_id, self.descricao
            )
            anterior = self.indice.posicao(fila.id, ticket.id)
            posicao = self.indice.reposicionar(fila.id, ticket.id, input_dto.nova_posicao)

            self.uow.publish_event(
                TicketReordenadoEvent(
                    aggregate_id=ticket.id,
                    tenant_id=tenant_id,
                    fila_id=fila.id,
                    posicao_anterior=anterior,
                    posicao_nova=posicao,
                    motivo=input_dto.motivo or "",
                )
            )

        logger.info(
            f"Ticket {ticket.id} reposicionado na fila {fila.id}: {anterior} -> {posicao}"
        )
        return TicketOutputDTO.from_entity(ticket, posicao=posicao)


# =============================================================================
# Itens
# =============================================================================

class AdicionarItemService(_ServicoTicket):
    """
    Use Case: Adicionar item a um ticket.

    O tipo do item precisa constar em nestedItemTypeIds do tipo do
    ticket no momento da adição; itens já existentes de um tipo que
    deixou de ser listado continuam válidos.
    """

    descricao = "adicionar_item"

    def __init__(
        self,
        ticket_repo: TicketRepository,
        item_repo: ItemTicketRepository,
        fila_repo: FilaRepository,
        registry: SchemaRegistry,
        auditoria: RegistradorAuditoria,
        uow: UnitOfWork,
        validador: Optional[ValidadorEstrutural] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        super().__init__(uow, retry_policy)
        self.ticket_repo = ticket_repo
        self.item_repo = item_repo
        self.fila_repo = fila_repo
        self.registry = registry
        self.auditoria = auditoria
        self.validador = validador or ValidadorEstrutural()

    def execute(self, input_dto: AdicionarItemInputDTO) -> ItemOutputDTO:
        exigir_tenant(input_dto.tenant_id)
        return self._com_retry(lambda: self._executar(input_dto))

    def _executar(self, input_dto: AdicionarItemInputDTO) -> ItemOutputDTO:
        tenant_id = input_dto.tenant_id

        with self.uow:
            ticket, _ = carregar_ticket(
                self.ticket_repo, self.fila_repo, input_dto.ticket_id, tenant_id, self.descricao
            )
            tipo_ticket = self.registry.obter(ticket.definicao_id, tenant_id)
            if not tipo_ticket.aceita_item(input_dto.definicao_id):
                raise TypeNotAllowedError(
                    f"Tipo {tipo_ticket.codigo} não aceita itens do tipo {input_dto.definicao_id}",
                    type_definition_id=input_dto.definicao_id,
                )

            tipo_item = self.registry.obter(input_dto.definicao_id, tenant_id)
            if not tipo_item.ativo:
                raise TypeNotAllowedError(
                    f"Tipo {tipo_item.codigo} está desativado",
                    type_definition_id=tipo_item.id,
                )
            self.validador.garantir_valido(input_dto.payload, tipo_item.schema)

            item = ItemTicketEntity.criar(
                ticket_id=ticket.id,
                definicao=tipo_item,
                payload=input_dto.payload,
                quantidade=input_dto.quantidade,
                preco_unitario=input_dto.preco_unitario,
                item_externo_id=input_dto.item_externo_id,
                item_externo_nome=input_dto.item_externo_nome,
            )
            self.item_repo.save(item)
            self.auditoria.registrar(
                ticket.id, None, item.estado, notas="Item adicionado", item_id=item.id
            )

            self.uow.publish_event(
                ItemAdicionadoEvent(
                    aggregate_id=ticket.id,
                    tenant_id=tenant_id,
                    item_id=item.id,
                    definicao_id=tipo_item.id,
                    estado=item.estado,
                    quantidade=item.quantidade,
                )
            )

        return ItemOutputDTO.from_entity(item)


class TransicionarItemService(_ServicoTicket):
    """Use Case: Aplicar transição à máquina de estados do próprio item."""

    descricao = "transicionar_item"

    def __init__(
        self,
        ticket_repo: TicketRepository,
        item_repo: ItemTicketRepository,
        fila_repo: FilaRepository,
        registry: SchemaRegistry,
        auditoria: RegistradorAuditoria,
        uow: UnitOfWork,
        funcionario_repo: Optional[FuncionarioRepository] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        super().__init__(uow, retry_policy)
        self.ticket_repo = ticket_repo
        self.item_repo = item_repo
        self.fila_repo = fila_repo
        self.registry = registry
        self.auditoria = auditoria
        self.funcionario_repo = funcionario_repo

    def execute(self, input_dto: TransicionarItemInputDTO) -> ItemOutputDTO:
        exigir_tenant(input_dto.tenant_id)
        if not input_dto.transicao:
            raise ValidationError("Nome da transição é obrigatório", field="transicao")
        return self._com_retry(lambda: self._executar(input_dto))

    def _executar(self, input_dto: TransicionarItemInputDTO) -> ItemOutputDTO:
        tenant_id = input_dto.tenant_id

        with self.uow:
            ticket, _ = carregar_ticket(
                self.ticket_repo, self.fila_repo, input_dto.ticket_id, tenant_id, self.descricao
            )
            _garantir_funcionario(
                self.funcionario_repo, input_dto.funcionario_id, tenant_id, self.descricao
            )
            item = _carregar_item(self.item_repo, ticket.id, input_dto.item_id)
            tipo_item = self.registry.obter(item.definicao_id, tenant_id)

            versao = item.versao
            anterior = item.aplicar_transicao(tipo_item, input_dto.transicao)
            if not self.item_repo.atualizar(item, versao):
                atual = self.item_repo.get_by_id(item.id)
                raise _conflito_transicao(
                    atual.estado if atual else None, item.id, tipo_item, input_dto.transicao
                )

            self.auditoria.registrar(
                ticket.id,
                anterior,
                item.estado,
                funcionario_id=input_dto.funcionario_id,
                notas=input_dto.notas,
                item_id=item.id,
            )
            self.uow.publish_event(
                ItemTransicionadoEvent(
                    aggregate_id=ticket.id,
                    tenant_id=tenant_id,
                    item_id=item.id,
                    transicao=input_dto.transicao,
                    estado_anterior=anterior,
                    estado_novo=item.estado,
                    funcionario_id=input_dto.funcionario_id,
                )
            )

        return ItemOutputDTO.from_entity(item, estado_anterior=anterior)


# =============================================================================
# Consultas (sem UoW)
# =============================================================================

class ObterTicketService:
    """
    Use Case: Obter ticket com sua posição atual na fila.
    """

    def __init__(self, ticket_repo: TicketRepository, fila_repo: FilaRepository, indice: IndiceFila):
        self.ticket_repo = ticket_repo
        self.fila_repo = fila_repo
        self.indice = indice

    def execute(self, ticket_id: str, tenant_id: str) -> TicketOutputDTO:
        exigir_tenant(tenant_id)
        ticket, fila = carregar_ticket(
            self.ticket_repo, self.fila_repo, ticket_id, tenant_id, "obter_ticket"
        )
        return TicketOutputDTO.from_entity(ticket, posicao=self.indice.posicao(fila.id, ticket.id))


class ListarItensTicketService:
    def __init__(
        self,
        ticket_repo: TicketRepository,
        item_repo: ItemTicketRepository,
        fila_repo: FilaRepository,
    ):
        self.ticket_repo = ticket_repo
        self.item_repo = item_repo
        self.fila_repo = fila_repo

    def execute(self, ticket_id: str, tenant_id: str) -> List[ItemOutputDTO]:
        exigir_tenant(tenant_id)
        ticket, _ = carregar_ticket(
            self.ticket_repo, self.fila_repo, ticket_id, tenant_id, "listar_itens"
        )
        return [ItemOutputDTO.from_entity(i) for i in self.item_repo.list_by_ticket(ticket.id)]


class ObterHistoricoService:
    """
    Use Case: Histórico de transições do ticket, mais antigo primeiro.

    Um ticket recém-criado tem exatamente um registro: estado
    anterior None e estado novo igual ao estado inicial do tipo.
    """

    def __init__(
        self,
        ticket_repo: TicketRepository,
        fila_repo: FilaRepository,
        historico_repo: HistoricoRepository,
    ):
        self.ticket_repo = ticket_repo
        self.fila_repo = fila_repo
        self.historico_repo = historico_repo

    def execute(self, ticket_id: str, tenant_id: str) -> List[RegistroTransicaoOutputDTO]:
        exigir_tenant(tenant_id)
        ticket, _ = carregar_ticket(
            self.ticket_repo, self.fila_repo, ticket_id, tenant_id, "obter_historico"
        )
        return [
            RegistroTransicaoOutputDTO.from_entity(r)
            for r in self.historico_repo.listar(ticket.id)
        ]


class ObterHistoricoItemService:
    def __init__(
        self,
        ticket_repo: TicketRepository,
        item_repo: ItemTicketRepository,
        fila_repo: FilaRepository,
        historico_repo: HistoricoRepository,
    ):
        self.ticket_repo = ticket_repo
        self.item_repo = item_repo
        self.fila_repo = fila_repo
        self.historico_repo = historico_repo

    def execute(self, ticket_id: str, item_id: str, tenant_id: str) -> List[RegistroTransicaoOutputDTO]:
        exigir_tenant(tenant_id)
        ticket, _ = carregar_ticket(
            self.ticket_repo, self.fila_repo, ticket_id, tenant_id, "obter_historico_item"
        )
        item = _carregar_item(self.item_repo, ticket.id, item_id)
        return [
            RegistroTransicaoOutputDTO.from_entity(r)
            for r in self.historico_repo.listar(ticket.id, item_id=item.id)
        ]


class ListarTicketsFilaService:
    """
    Use Case: Consulta de fila.

    Filtros por estado e janela de criação, paginados, na ordem da fila.
    """

    def __init__(self, ticket_repo: TicketRepository, fila_repo: FilaRepository, indice: IndiceFila):
        self.ticket_repo = ticket_repo
        self.fila_repo = fila_repo
        self.indice = indice

    def execute(self, query: ListarTicketsFilaQueryDTO) -> PaginaTicketsDTO:
        """
        Raises:
            ValidationError: limit/offset fora do intervalo
            ForbiddenError: Fila de outro tenant
        """
        exigir_tenant(query.tenant_id)
        if not 1 <= query.limit <= ListarTicketsFilaQueryDTO.LIMITE_MAXIMO:
            raise ValidationError(
                f"limit deve estar entre 1 e {ListarTicketsFilaQueryDTO.LIMITE_MAXIMO}",
                field="limit",
            )
        if query.offset < 0:
            raise ValidationError("offset não pode ser negativo", field="offset")

        fila = carregar_fila(self.fila_repo, query.fila_id, query.tenant_id, "listar_fila")
        estados = query.estados or None

        ids = self.indice.listar_por_estado(
            fila.id,
            estados=estados,
            limit=query.limit,
            offset=query.offset,
            criado_apos=query.criado_apos,
            criado_antes=query.criado_antes,
        )
        total = self.indice.contar(
            fila.id,
            estados=estados,
            criado_apos=query.criado_apos,
            criado_antes=query.criado_antes,
        )
        tickets = self.ticket_repo.get_by_ids(ids)

        return PaginaTicketsDTO(
            # posição na ordem completa da fila, não no resultado filtrado
            items=[
                TicketOutputDTO.from_entity(t, posicao=self.indice.posicao(fila.id, t.id))
                for t in tickets
            ],
            total=total,
            limit=query.limit,
            offset=query.offset,
        )


class ContarTicketsFilaService:
    def __init__(self, fila_repo: FilaRepository, indice: IndiceFila):
        self.fila_repo = fila_repo
        self.indice = indice

    def execute(self, fila_id: str, tenant_id: str, estados: Iterable[str] = ()) -> dict:
        exigir_tenant(tenant_id)
        fila = carregar_fila(self.fila_repo, fila_id, tenant_id, "contar_fila")
        estados = tuple(estados)
        return {
            "queueId": fila.id,
            "states": list(estados),
            "count": self.indice.contar(fila.id, estados=estados or None),
        }


# =============================================================================
# Tarefas periódicas
# =============================================================================

class EscalarTicketsExpiradosService(_ServicoTicket):
    """
    Use Case: Escalar tickets cujo TTL expirou.

    Executado pela tarefa periódica do Celery. Cada ticket é escalado
    em sua própria transação; um ticket alterado concorrentemente
    durante a varredura é deixado para a próxima execução.

    `limite` é o tamanho de cada página de candidatos; a varredura
    percorre todas as páginas por cursor (expira_em, id).
    """

    descricao = "escalar_tickets_expirados"

    def __init__(
        self,
        ticket_repo: TicketRepository,
        fila_repo: FilaRepository,
        registry: SchemaRegistry,
        uow: UnitOfWork,
        retry_policy: Optional[RetryPolicy] = None,
        limite: int = 100,
    ):
        super().__init__(uow, retry_policy)
        self.ticket_repo = ticket_repo
        self.fila_repo = fila_repo
        self.registry = registry
        self.limite = limite

    def execute(self) -> int:
        """
        Returns:
            Quantidade de tickets escalados
        """
        momento = agora()
        escalados = 0
        cursor = None

        while True:
            candidatos = self._com_retry(
                lambda: self.ticket_repo.listar_expirados(momento, self.limite, apos=cursor)
            )
            for candidato in candidatos:
                if self._com_retry(lambda: self._escalar(candidato.id, momento)):
                    escalados += 1
            if len(candidatos) < self.limite:
                break
            # candidatos pulados (estado final sem carimbo) não travam a varredura
            cursor = (candidatos[-1].expira_em, candidatos[-1].id)

        if escalados:
            logger.info(f"{escalados} ticket(s) escalado(s) por expiração")
        return escalados

    def _escalar(self, ticket_id: str, momento) -> bool:
        with self.uow:
            ticket = self.ticket_repo.get_by_id(ticket_id)
            if ticket is None:
                return False
            fila = self.fila_repo.get_by_id(ticket.fila_id)
            definicao = self.registry.obter(ticket.definicao_id, fila.tenant_id)
            if not ticket.esta_expirado(definicao.maquina, momento):
                return False

            versao = ticket.versao
            ticket.escalar(momento)
            if not self.ticket_repo.atualizar(ticket, versao):
                logger.info(f"Ticket {ticket.id} alterado durante o escalonamento; adiado")
                return False

            self.uow.publish_event(
                TicketEscaladoEvent(
                    aggregate_id=ticket.id,
                    tenant_id=fila.tenant_id,
                    fila_id=fila.id,
                    estado=ticket.estado,
                    expira_em=ticket.expira_em.isoformat(),
                )
            )
        return True
