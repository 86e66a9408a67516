"""
Testes Unitários para Use Cases do Domínio de Tickets.

Estratégia de Teste:
- Repositórios em memória (fakes) para isolamento
- FakeUnitOfWork para verificar commits, rollbacks e eventos
- Cenários de sucesso e erro de cada operação do Lifecycle Manager

Coverage:
- CriarTicketService
- TransicionarTicketService / CancelarTicketService
- AtribuirFuncionarioService
- EncaminharTicketService / ReordenarTicketService
- AdicionarItemService / TransicionarItemService
- Consultas (ticket, itens, histórico, fila, contagem)
- EscalarTicketsExpiradosService
"""

from datetime import timedelta
import logging

import pytest

from src.core.definicoes.dtos import AtualizarDefinicaoInputDTO
from src.core.definicoes.use_cases import AtualizarDefinicaoService
from src.core.filas.entities import FilaEntity, FuncionarioEntity
from src.core.shared.exceptions import (
    BusinessRuleViolationError,
    EntityNotFoundError,
    ForbiddenError,
    InvalidTransitionError,
    NoCancellationAvailableError,
    QueueInactiveError,
    TenantMismatchError,
    TypeNotAllowedError,
    UnknownTransitionError,
    ValidationError,
)
from src.core.tickets.auditoria import reconstruir_estado
from src.core.tickets.dtos import (
    AdicionarItemInputDTO,
    AtribuirFuncionarioInputDTO,
    CancelarTicketInputDTO,
    CriarTicketInputDTO,
    EncaminharTicketInputDTO,
    ListarTicketsFilaQueryDTO,
    ReordenarTicketInputDTO,
    TransicionarItemInputDTO,
    TransicionarTicketInputDTO,
)
from src.core.tickets.use_cases import (
    ContarTicketsFilaService,
    EscalarTicketsExpiradosService,
    ListarItensTicketService,
    ListarTicketsFilaService,
    ObterHistoricoItemService,
    ObterHistoricoService,
    ObterTicketService,
)

from tests.core.fakes import SEM_ESPERA, documento_item, documento_pedido


@pytest.fixture
def criar_pedido(criar_service, tenant, fila, tipo_pedido):
    """Cria um pedido válido na fila principal."""

    def _criar(payload=None, **extra):
        return criar_service.execute(
            CriarTicketInputDTO(
                tenant_id=tenant.id,
                fila_id=fila.id,
                definicao_id=tipo_pedido.id,
                payload=payload if payload is not None else {"order_type": "mobile"},
                **extra,
            )
        )

    return _criar


@pytest.fixture
def transicionar(transicionar_service, tenant):
    def _transicionar(ticket_id, nome, **extra):
        return transicionar_service.execute(
            TransicionarTicketInputDTO(tenant.id, ticket_id, nome, **extra)
        )

    return _transicionar


@pytest.fixture
def historico(ticket_repo, fila_repo, historico_repo, tenant):
    service = ObterHistoricoService(ticket_repo, fila_repo, historico_repo)
    return lambda ticket_id: service.execute(ticket_id, tenant.id)


# =============================================================================
# Criação
# =============================================================================

class TestCriarTicketService:
    def test_cria_no_estado_inicial_no_fim_da_fila(self, criar_pedido, uow, historico):
        primeiro = criar_pedido()
        segundo = criar_pedido()

        assert primeiro.estado == "received"
        assert (primeiro.posicao, segundo.posicao) == (0, 1)

        registros = historico(segundo.id)
        assert len(registros) == 1
        assert registros[0].estado_anterior is None
        assert registros[0].estado_novo == "received"

        eventos = uow.eventos("TicketCriadoEvent")
        assert [e.aggregate_id for e in eventos] == [primeiro.id, segundo.id]

    def test_ids_ordenados_pela_criacao(self, criar_pedido):
        ids = [criar_pedido().id for _ in range(5)]
        assert ids == sorted(ids)

    def test_payload_sem_campo_obrigatorio(self, criar_pedido, ticket_repo, historico_repo, uow):
        with pytest.raises(ValidationError) as exc:
            criar_pedido(payload={"table_number": 4})

        assert exc.value.field == "order_type"
        assert ticket_repo.count() == 0
        assert len(historico_repo) == 0
        assert uow.rollbacks == 1
        assert uow.publicados == []

    def test_payload_com_tipo_errado(self, criar_pedido):
        with pytest.raises(ValidationError) as exc:
            criar_pedido(payload={"order_type": "mobile", "table_number": "quatro"})
        assert exc.value.field == "table_number"

    def test_fila_inativa(self, criar_pedido, fila_repo, fila, ticket_repo, historico_repo):
        fila.desativar()
        fila_repo.save(fila)

        with pytest.raises(QueueInactiveError):
            criar_pedido()

        assert ticket_repo.count() == 0
        assert len(historico_repo) == 0

    def test_tipo_nao_aceito_pela_fila(self, criar_service, tenant, fila_balcao, tipo_abc):
        with pytest.raises(TypeNotAllowedError):
            criar_service.execute(CriarTicketInputDTO(tenant.id, fila_balcao.id, tipo_abc.id))

    def test_fila_de_outro_tenant(self, criar_service, outro_tenant, fila, tipo_pedido, caplog):
        with caplog.at_level(logging.WARNING, logger="src.core.security"):
            with pytest.raises(TenantMismatchError):
                criar_service.execute(
                    CriarTicketInputDTO(outro_tenant.id, fila.id, tipo_pedido.id, {"order_type": "mobile"})
                )
        assert outro_tenant.id in caplog.text

    def test_tenant_obrigatorio(self, criar_service, fila, tipo_pedido):
        with pytest.raises(ValidationError) as exc:
            criar_service.execute(CriarTicketInputDTO("", fila.id, tipo_pedido.id))
        assert exc.value.field == "tenant_id"

    def test_ttl_e_referencia(self, criar_pedido):
        anterior = criar_pedido()
        ticket = criar_pedido(ttl_minutos=15, ticket_referenciado_id=anterior.id, pessoa_id="p-1")

        assert ticket.expira_em == ticket.criado_em + timedelta(minutes=15)
        assert ticket.to_dict()["referencedTicketId"] == anterior.id
        assert ticket.to_dict()["personId"] == "p-1"

    def test_referencia_inexistente(self, criar_pedido):
        with pytest.raises(EntityNotFoundError):
            criar_pedido(ticket_referenciado_id="nao-existe")


# =============================================================================
# Transições
# =============================================================================

class TestTransicionarTicketService:
    def test_transicao_valida(self, criar_pedido, transicionar, funcionario, uow, historico):
        ticket = criar_pedido()

        output = transicionar(ticket.id, "start", funcionario_id=funcionario.id, notas="Começando")

        assert output.estado == "in_progress"
        assert output.estado_anterior == "received"
        assert output.to_dict()["previousState"] == "received"

        ultimo = historico(ticket.id)[-1]
        assert (ultimo.estado_anterior, ultimo.estado_novo) == ("received", "in_progress")
        assert ultimo.funcionario_id == funcionario.id
        assert ultimo.notas == "Começando"

        evento = uow.eventos("TicketTransicionadoEvent")[0]
        assert evento.transicao == "start"

    def test_transicao_invalida_nao_grava(self, criar_pedido, transicionar, ticket_repo, historico):
        ticket = criar_pedido()

        with pytest.raises(InvalidTransitionError) as exc:
            transicionar(ticket.id, "pick_up")

        assert exc.value.valid_transitions == ["cancel", "start"]
        assert ticket_repo.get_by_id(ticket.id).estado == "received"
        assert len(historico(ticket.id)) == 1

    def test_transicao_desconhecida(self, criar_pedido, transicionar):
        ticket = criar_pedido()
        with pytest.raises(UnknownTransitionError):
            transicionar(ticket.id, "teleport")

    def test_sequencia_abc(self, criar_service, transicionar, tenant, fila, tipo_abc, historico):
        ticket = criar_service.execute(CriarTicketInputDTO(tenant.id, fila.id, tipo_abc.id))

        assert transicionar(ticket.id, "t1").estado == "B"
        with pytest.raises(InvalidTransitionError):
            transicionar(ticket.id, "t1")
        assert transicionar(ticket.id, "t2").estado == "C"

        registros = historico(ticket.id)
        assert [(r.estado_anterior, r.estado_novo) for r in registros] == [
            (None, "A"), ("A", "B"), ("B", "C"),
        ]

    def test_historico_reproduz_estado_atual(self, criar_pedido, transicionar, ticket_repo, historico_repo):
        ticket = criar_pedido()
        for nome in ("start", "finish", "pick_up"):
            transicionar(ticket.id, nome)

        registros = historico_repo.listar(ticket.id)

        assert [r.sequencia for r in registros] == [1, 2, 3, 4]
        assert reconstruir_estado(registros) == ticket_repo.get_by_id(ticket.id).estado

    def test_ticket_de_outro_tenant(self, criar_pedido, transicionar_service, outro_tenant):
        ticket = criar_pedido()
        with pytest.raises(ForbiddenError):
            transicionar_service.execute(
                TransicionarTicketInputDTO(outro_tenant.id, ticket.id, "start")
            )

    def test_funcionario_de_outro_tenant(self, criar_pedido, transicionar, funcionario_repo, outro_tenant):
        estranho = FuncionarioEntity.criar(outro_tenant.id, "Ana", "Souza", "ana@dmv.gov")
        funcionario_repo.save(estranho)
        ticket = criar_pedido()

        with pytest.raises(ForbiddenError):
            transicionar(ticket.id, "start", funcionario_id=estranho.id)

    def test_ticket_inexistente(self, transicionar):
        with pytest.raises(EntityNotFoundError):
            transicionar("nao-existe", "start")

    def test_nome_obrigatorio(self, criar_pedido, transicionar):
        ticket = criar_pedido()
        with pytest.raises(ValidationError):
            transicionar(ticket.id, "")

    def test_definicao_atualizada_vale_na_proxima_transicao(
        self, criar_pedido, transicionar, definicao_repo, registry, uow, ticket_repo, tipo_pedido, tipo_item, tenant
    ):
        ticket = criar_pedido()
        documento = documento_pedido(nestedItemTypeIds=[tipo_item.id])
        documento["stateMachine"]["transitions"].append(
            {"name": "skip", "from": "received", "to": "ready"}
        )
        AtualizarDefinicaoService(definicao_repo, registry, uow, [ticket_repo]).execute(
            AtualizarDefinicaoInputDTO(tipo_pedido.id, tenant.id, documento)
        )

        assert transicionar(ticket.id, "skip").estado == "ready"


class TestCancelarTicketService:
    def test_cancelar(self, criar_pedido, cancelar_service, tenant, uow, historico):
        ticket = criar_pedido()

        output = cancelar_service.execute(
            CancelarTicketInputDTO(tenant.id, ticket.id, motivo="Cliente desistiu")
        )

        assert output.estado == "cancelled"
        assert output.cancelado_em is not None
        assert historico(ticket.id)[-1].notas == "Cliente desistiu"
        assert len(uow.eventos("TicketTransicionadoEvent")) == 1
        cancelado = uow.eventos("TicketCanceladoEvent")[0]
        assert cancelado.motivo == "Cliente desistiu"

    def test_sem_cancelamento_disponivel(self, criar_pedido, transicionar, cancelar_service, tenant):
        ticket = criar_pedido()
        transicionar(ticket.id, "start")
        transicionar(ticket.id, "finish")

        with pytest.raises(NoCancellationAvailableError) as exc:
            cancelar_service.execute(CancelarTicketInputDTO(tenant.id, ticket.id))
        assert exc.value.current_state == "ready"


# =============================================================================
# Atribuição, encaminhamento e reordenação
# =============================================================================

class TestAtribuirFuncionarioService:
    def test_atribuir(self, criar_pedido, atribuir_service, funcionario, tenant, uow):
        ticket = criar_pedido()

        output = atribuir_service.execute(
            AtribuirFuncionarioInputDTO(tenant.id, ticket.id, funcionario.id)
        )

        assert output.funcionario_id == funcionario.id
        assert output.estado == "received"
        assert uow.eventos("TicketAtribuidoEvent")[0].funcionario_anterior_id is None

    def test_funcionario_de_outro_tenant_e_proibido(
        self, criar_service, atribuir_service, fila_repo, funcionario, registrar, outro_tenant, ticket_repo
    ):
        tipo = registrar(documento_pedido(), outro_tenant.id)
        fila_externa = FilaEntity.criar(outro_tenant.id, "Registration", tipos_aceitos=[tipo.id])
        fila_repo.save(fila_externa)
        ticket = criar_service.execute(
            CriarTicketInputDTO(outro_tenant.id, fila_externa.id, tipo.id, {"order_type": "in_store"})
        )

        with pytest.raises(ForbiddenError):
            atribuir_service.execute(
                AtribuirFuncionarioInputDTO(outro_tenant.id, ticket.id, funcionario.id)
            )
        assert ticket_repo.get_by_id(ticket.id).funcionario_id is None

    def test_funcionario_inativo(self, criar_pedido, atribuir_service, funcionario_repo, funcionario, tenant):
        funcionario.desativar()
        funcionario_repo.save(funcionario)
        ticket = criar_pedido()

        with pytest.raises(BusinessRuleViolationError):
            atribuir_service.execute(AtribuirFuncionarioInputDTO(tenant.id, ticket.id, funcionario.id))


class TestEncaminharTicketService:
    def test_encaminhar_mantem_estado(self, criar_pedido, transicionar, encaminhar_service,
                                      indice, fila, fila_balcao, tenant, uow):
        ticket = criar_pedido()
        outro = criar_pedido()
        transicionar(ticket.id, "start")

        output = encaminhar_service.execute(
            EncaminharTicketInputDTO(tenant.id, ticket.id, fila_balcao.id, motivo="Pronto para retirada")
        )

        assert output.estado == "in_progress"
        assert output.fila_id == fila_balcao.id
        assert output.fila_anterior_id == fila.id
        assert output.posicao == 0
        assert indice.posicao(fila.id, ticket.id) is None
        assert indice.posicao(fila.id, outro.id) == 0
        evento = uow.eventos("TicketEncaminhadoEvent")[0]
        assert (evento.fila_origem_id, evento.fila_destino_id) == (fila.id, fila_balcao.id)

    def test_destino_nao_aceita_tipo(self, criar_service, encaminhar_service, tenant, fila, fila_balcao, tipo_abc, indice):
        ticket = criar_service.execute(CriarTicketInputDTO(tenant.id, fila.id, tipo_abc.id))

        with pytest.raises(TypeNotAllowedError):
            encaminhar_service.execute(EncaminharTicketInputDTO(tenant.id, ticket.id, fila_balcao.id))
        assert indice.posicao(fila.id, ticket.id) == 0

    def test_destino_inativo(self, criar_pedido, encaminhar_service, fila_repo, fila_balcao, tenant):
        fila_balcao.desativar()
        fila_repo.save(fila_balcao)
        ticket = criar_pedido()

        with pytest.raises(QueueInactiveError):
            encaminhar_service.execute(EncaminharTicketInputDTO(tenant.id, ticket.id, fila_balcao.id))

    def test_destino_igual_a_origem(self, criar_pedido, encaminhar_service, fila, tenant):
        ticket = criar_pedido()
        with pytest.raises(ValidationError):
            encaminhar_service.execute(EncaminharTicketInputDTO(tenant.id, ticket.id, fila.id))


class TestReordenarTicketService:
    def test_reordenar(self, criar_pedido, reordenar_service, indice, fila, tenant, uow):
        ids = [criar_pedido().id for _ in range(4)]

        output = reordenar_service.execute(
            ReordenarTicketInputDTO(tenant.id, ids[3], 0, motivo="Prioridade")
        )

        assert output.posicao == 0
        assert indice.listar_por_estado(fila.id) == [ids[3], ids[0], ids[1], ids[2]]
        evento = uow.eventos("TicketReordenadoEvent")[0]
        assert (evento.posicao_anterior, evento.posicao_nova) == (3, 0)

    def test_posicao_alem_do_fim(self, criar_pedido, reordenar_service, tenant):
        ids = [criar_pedido().id for _ in range(3)]
        output = reordenar_service.execute(ReordenarTicketInputDTO(tenant.id, ids[0], 50))
        assert output.posicao == 2

    def test_posicao_nao_inteira(self, criar_pedido, reordenar_service, tenant):
        ticket = criar_pedido()
        with pytest.raises(ValidationError):
            reordenar_service.execute(ReordenarTicketInputDTO(tenant.id, ticket.id, "1"))


# =============================================================================
# Itens
# =============================================================================

class TestItens:
    def test_adicionar_e_transicionar_item(self, criar_pedido, adicionar_item_service,
                                           transicionar_item_service, tipo_item, tenant,
                                           ticket_repo, item_repo, fila_repo, historico_repo):
        ticket = criar_pedido()

        item = adicionar_item_service.execute(AdicionarItemInputDTO(
            tenant.id, ticket.id, tipo_item.id, {"size": "L"},
            quantidade=2, preco_unitario="5.25", item_externo_nome="Caffe Latte",
        ))
        assert item.estado == "pending"
        assert item.to_dict()["unitPrice"] == "5.25"

        movido = transicionar_item_service.execute(
            TransicionarItemInputDTO(tenant.id, ticket.id, item.id, "prepare")
        )
        assert (movido.estado_anterior, movido.estado) == ("pending", "preparing")

        # estado do ticket não muda com o item
        assert ticket_repo.get_by_id(ticket.id).estado == "received"

        itens = ListarItensTicketService(ticket_repo, item_repo, fila_repo).execute(ticket.id, tenant.id)
        assert [i.id for i in itens] == [item.id]

        registros = ObterHistoricoItemService(ticket_repo, item_repo, fila_repo, historico_repo).execute(
            ticket.id, item.id, tenant.id
        )
        assert [(r.estado_anterior, r.estado_novo) for r in registros] == [
            (None, "pending"), ("pending", "preparing"),
        ]

    def test_tipo_nao_listado_como_item(self, criar_pedido, adicionar_item_service, tipo_abc, tenant):
        ticket = criar_pedido()
        with pytest.raises(TypeNotAllowedError):
            adicionar_item_service.execute(AdicionarItemInputDTO(tenant.id, ticket.id, tipo_abc.id))

    def test_payload_do_item_validado(self, criar_pedido, adicionar_item_service, tipo_item, tenant, item_repo):
        ticket = criar_pedido()
        with pytest.raises(ValidationError) as exc:
            adicionar_item_service.execute(
                AdicionarItemInputDTO(tenant.id, ticket.id, tipo_item.id, {"size": "XL"})
            )
        assert exc.value.field == "size"
        assert item_repo.list_by_ticket(ticket.id) == []

    def test_item_sem_maquina(self, registrar, criar_service, adicionar_item_service,
                              transicionar_item_service, fila_repo, tenant, tipo_item):
        documento = documento_item(typeCode="note")
        del documento["stateMachine"]
        nota = registrar(documento, tenant.id)
        tipo = registrar(
            documento_pedido(typeCode="order_with_notes", nestedItemTypeIds=[tipo_item.id, nota.id]),
            tenant.id,
        )
        fila = FilaEntity.criar(tenant.id, "Notes", tipos_aceitos=[tipo.id])
        fila_repo.save(fila)
        ticket = criar_service.execute(
            CriarTicketInputDTO(tenant.id, fila.id, tipo.id, {"order_type": "mobile"})
        )

        item = adicionar_item_service.execute(AdicionarItemInputDTO(tenant.id, ticket.id, nota.id))

        assert item.estado is None
        with pytest.raises(UnknownTransitionError):
            transicionar_item_service.execute(
                TransicionarItemInputDTO(tenant.id, ticket.id, item.id, "prepare")
            )

    def test_tipo_sem_maquina_nao_cria_ticket(self, registrar, criar_service, fila_repo, tenant):
        documento = documento_item(typeCode="note")
        del documento["stateMachine"]
        nota = registrar(documento, tenant.id)
        fila = FilaEntity.criar(tenant.id, "Notes", tipos_aceitos=[nota.id])
        fila_repo.save(fila)

        with pytest.raises(TypeNotAllowedError):
            criar_service.execute(CriarTicketInputDTO(tenant.id, fila.id, nota.id))

    def test_item_de_outro_ticket(self, criar_pedido, adicionar_item_service,
                                  transicionar_item_service, tipo_item, tenant):
        primeiro = criar_pedido()
        segundo = criar_pedido()
        item = adicionar_item_service.execute(AdicionarItemInputDTO(tenant.id, primeiro.id, tipo_item.id))

        with pytest.raises(EntityNotFoundError):
            transicionar_item_service.execute(
                TransicionarItemInputDTO(tenant.id, segundo.id, item.id, "prepare")
            )


# =============================================================================
# Consultas
# =============================================================================

class TestConsultas:
    @pytest.fixture
    def listar(self, ticket_repo, fila_repo, indice):
        return ListarTicketsFilaService(ticket_repo, fila_repo, indice)

    def test_obter_ticket_com_posicao(self, criar_pedido, ticket_repo, fila_repo, indice, tenant):
        criar_pedido()
        segundo = criar_pedido()

        output = ObterTicketService(ticket_repo, fila_repo, indice).execute(segundo.id, tenant.id)

        assert output.posicao == 1
        assert output.to_dict()["queuePosition"] == 1

    def test_listar_por_estado_na_ordem_da_fila(self, criar_pedido, transicionar, listar, fila, tenant):
        ids = [criar_pedido().id for _ in range(4)]
        transicionar(ids[2], "start")
        transicionar(ids[0], "start")

        pagina = listar.execute(ListarTicketsFilaQueryDTO(tenant.id, fila.id, estados=("in_progress",)))

        assert [t.id for t in pagina.items] == [ids[0], ids[2]]
        assert [t.posicao for t in pagina.items] == [0, 2]
        assert pagina.total == 2

    def test_posicao_filtrada_igual_a_consulta_individual(
        self, criar_pedido, transicionar, listar, ticket_repo, fila_repo, indice, fila, tenant
    ):
        ids = [criar_pedido().id for _ in range(4)]
        transicionar(ids[2], "start")

        pagina = listar.execute(ListarTicketsFilaQueryDTO(tenant.id, fila.id, estados=("in_progress",)))
        individual = ObterTicketService(ticket_repo, fila_repo, indice).execute(ids[2], tenant.id)

        assert pagina.items[0].posicao == individual.posicao == 2
        assert pagina.to_dict()["items"][0]["queuePosition"] == 2

    def test_paginacao(self, criar_pedido, listar, fila, tenant):
        ids = [criar_pedido().id for _ in range(5)]

        pagina = listar.execute(ListarTicketsFilaQueryDTO(tenant.id, fila.id, limit=2, offset=2))

        assert [t.id for t in pagina.items] == ids[2:4]
        assert [t.posicao for t in pagina.items] == [2, 3]
        assert pagina.tem_proxima
        assert pagina.to_dict()["hasNext"] is True

    def test_janela_de_criacao(self, criar_pedido, listar, fila, tenant):
        primeiro = criar_pedido()
        segundo = criar_pedido()

        pagina = listar.execute(ListarTicketsFilaQueryDTO(
            tenant.id, fila.id, criado_apos=segundo.criado_em,
        ))
        ids = [t.id for t in pagina.items]

        assert segundo.id in ids
        if primeiro.criado_em < segundo.criado_em:
            assert primeiro.id not in ids

    @pytest.mark.parametrize("limit,offset", [(0, 0), (201, 0), (10, -1)])
    def test_paginacao_invalida(self, listar, fila, tenant, limit, offset):
        with pytest.raises(ValidationError):
            listar.execute(ListarTicketsFilaQueryDTO(tenant.id, fila.id, limit=limit, offset=offset))

    def test_contar(self, criar_pedido, transicionar, fila_repo, indice, fila, tenant):
        ids = [criar_pedido().id for _ in range(3)]
        transicionar(ids[1], "cancel")

        service = ContarTicketsFilaService(fila_repo, indice)

        assert service.execute(fila.id, tenant.id, ["received"])["count"] == 2
        assert service.execute(fila.id, tenant.id)["count"] == 3

    def test_fila_de_outro_tenant(self, listar, fila, outro_tenant):
        with pytest.raises(ForbiddenError):
            listar.execute(ListarTicketsFilaQueryDTO(outro_tenant.id, fila.id))


# =============================================================================
# Escalonamento
# =============================================================================

class TestEscalarTicketsExpiradosService:
    @pytest.fixture
    def service(self, ticket_repo, fila_repo, registry, uow):
        return EscalarTicketsExpiradosService(ticket_repo, fila_repo, registry, uow, SEM_ESPERA)

    def _expirar(self, ticket_repo, ticket_id):
        ticket = ticket_repo.get_by_id(ticket_id)
        versao = ticket.versao
        ticket.expira_em = ticket.criado_em - timedelta(minutes=1)
        ticket.versao += 1
        ticket_repo.atualizar(ticket, versao)

    def test_escala_apenas_expirados_abertos(self, criar_pedido, transicionar, service, ticket_repo, uow):
        expirado = criar_pedido(ttl_minutos=5)
        encerrado = criar_pedido(ttl_minutos=5)
        no_prazo = criar_pedido(ttl_minutos=5)
        transicionar(encerrado.id, "cancel")
        self._expirar(ticket_repo, expirado.id)
        self._expirar(ticket_repo, encerrado.id)

        assert service.execute() == 1

        assert ticket_repo.get_by_id(expirado.id).escalado_em is not None
        assert ticket_repo.get_by_id(encerrado.id).escalado_em is None
        assert ticket_repo.get_by_id(no_prazo.id).escalado_em is None
        evento = uow.eventos("TicketEscaladoEvent")[0]
        assert evento.aggregate_id == expirado.id

    def test_encerrados_nao_bloqueiam_a_varredura(
        self, criar_pedido, transicionar, ticket_repo, fila_repo, registry, uow
    ):
        service = EscalarTicketsExpiradosService(
            ticket_repo, fila_repo, registry, uow, SEM_ESPERA, limite=1
        )
        cancelado = criar_pedido(ttl_minutos=5)
        aberto = criar_pedido(ttl_minutos=5)
        transicionar(cancelado.id, "cancel")
        for ticket_id, minutos in ((cancelado.id, 10), (aberto.id, 1)):
            ticket = ticket_repo.get_by_id(ticket_id)
            versao = ticket.versao
            ticket.expira_em = ticket.criado_em - timedelta(minutes=minutos)
            ticket.versao += 1
            ticket_repo.atualizar(ticket, versao)

        assert service.execute() == 1

        assert ticket_repo.get_by_id(aberto.id).escalado_em is not None
        assert ticket_repo.get_by_id(cancelado.id).escalado_em is None
        assert ticket_repo.listar_expirados(ticket_repo.get_by_id(aberto.id).expira_em) == []

    def test_nao_escala_duas_vezes(self, criar_pedido, service, ticket_repo):
        ticket = criar_pedido(ttl_minutos=5)
        self._expirar(ticket_repo, ticket.id)

        assert service.execute() == 1
        assert service.execute() == 0
