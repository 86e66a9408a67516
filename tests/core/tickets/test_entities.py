"""
Testes Unitários para Entidades do Domínio de Tickets.

Testa:
- Criação no estado inicial do tipo
- Transições e carimbos de ciclo de vida
- Expiração (TTL)
- Itens com e sem máquina de estados
- Reconstrução do estado a partir do histórico
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from src.core.definicoes.entities import DefinicaoTipoEntity
from src.core.shared.exceptions import (
    InternalError,
    InvalidDefinitionError,
    InvalidTransitionError,
    UnknownTransitionError,
    ValidationError,
)
from src.core.tickets.auditoria import reconstruir_estado
from src.core.tickets.entities import ItemTicketEntity, RegistroTransicao, TicketEntity

from tests.core.fakes import documento_abc, documento_item, documento_pedido


@pytest.fixture
def pedido():
    return DefinicaoTipoEntity.from_documento(documento_pedido(), tenant_id="t1")


@pytest.fixture
def abc():
    return DefinicaoTipoEntity.from_documento(documento_abc(), tenant_id="t1")


@pytest.fixture
def item_sem_maquina():
    documento = documento_item(typeCode="note")
    del documento["stateMachine"]
    return DefinicaoTipoEntity.from_documento(documento, tenant_id="t1")


class TestTicketEntity:
    def test_nasce_no_estado_inicial(self, pedido):
        ticket = TicketEntity.criar("fila-1", pedido, {"order_type": "mobile"})

        assert ticket.estado == "received"
        assert ticket.versao == 1
        assert ticket.expira_em is None
        assert ticket.criado_em == ticket.atualizado_em

    def test_tipo_sem_maquina_nao_cria_ticket(self, item_sem_maquina):
        with pytest.raises(InvalidDefinitionError):
            TicketEntity.criar("fila-1", item_sem_maquina)

    @pytest.mark.parametrize("ttl", [0, -5, True, 1.5])
    def test_ttl_invalido(self, pedido, ttl):
        with pytest.raises(ValidationError):
            TicketEntity.criar("fila-1", pedido, ttl_minutos=ttl)

    def test_ttl_define_expiracao(self, pedido):
        ticket = TicketEntity.criar("fila-1", pedido, ttl_minutos=30)
        assert ticket.expira_em == ticket.criado_em + timedelta(minutes=30)

    def test_transicao_retorna_estado_anterior(self, pedido):
        ticket = TicketEntity.criar("fila-1", pedido)

        anterior = ticket.aplicar_transicao(pedido, "start")

        assert anterior == "received"
        assert ticket.estado == "in_progress"
        assert ticket.versao == 2
        assert ticket.iniciado_em is not None

    def test_conclusao_carimba_espera_real(self, pedido):
        ticket = TicketEntity.criar("fila-1", pedido)
        for nome in ("start", "finish", "pick_up"):
            ticket.aplicar_transicao(pedido, nome)

        assert ticket.pronto_em is not None
        assert ticket.retirado_em is not None
        assert ticket.concluido_em is not None
        assert ticket.espera_real_minutos == 0

    def test_transicao_invalida_nao_altera_ticket(self, abc):
        ticket = TicketEntity.criar("fila-1", abc)

        with pytest.raises(InvalidTransitionError) as exc:
            ticket.aplicar_transicao(abc, "t2")

        assert exc.value.valid_transitions == ["t1"]
        assert ticket.estado == "A"
        assert ticket.versao == 1

    def test_transicao_desconhecida(self, abc):
        ticket = TicketEntity.criar("fila-1", abc)
        with pytest.raises(UnknownTransitionError):
            ticket.aplicar_transicao(abc, "voar")

    def test_encaminhar_para_mesma_fila(self, abc):
        ticket = TicketEntity.criar("fila-1", abc)
        with pytest.raises(ValidationError):
            ticket.encaminhar("fila-1")

    def test_encaminhar_guarda_fila_anterior(self, abc):
        ticket = TicketEntity.criar("fila-1", abc)
        ticket.encaminhar("fila-2")
        assert ticket.fila_id == "fila-2"
        assert ticket.fila_anterior_id == "fila-1"
        assert ticket.estado == "A"


class TestExpiracao:
    def test_expirado_apos_ttl(self, pedido):
        ticket = TicketEntity.criar("fila-1", pedido, ttl_minutos=10)
        depois = ticket.criado_em + timedelta(minutes=11)

        assert ticket.esta_expirado(pedido.maquina, depois)
        assert not ticket.esta_expirado(pedido.maquina, ticket.criado_em)

    def test_ticket_encerrado_nao_expira(self, pedido):
        ticket = TicketEntity.criar("fila-1", pedido, ttl_minutos=10)
        ticket.aplicar_transicao(pedido, "cancel")

        assert not ticket.esta_expirado(pedido.maquina, ticket.criado_em + timedelta(hours=1))

    def test_escalado_nao_expira_de_novo(self, pedido):
        ticket = TicketEntity.criar("fila-1", pedido, ttl_minutos=10)
        ticket.escalar()

        assert not ticket.esta_expirado(pedido.maquina, ticket.criado_em + timedelta(hours=1))


class TestItemTicketEntity:
    def test_item_com_maquina(self):
        tipo = DefinicaoTipoEntity.from_documento(documento_item(), tenant_id="t1")
        item = ItemTicketEntity.criar("ticket-1", tipo, {"size": "M"}, quantidade=2, preco_unitario="5.25")

        assert item.estado == "pending"
        assert item.preco_total == Decimal("10.50")

        item.aplicar_transicao(tipo, "prepare")
        assert item.iniciado_em is not None

    def test_item_sem_maquina_tem_estado_nulo(self, item_sem_maquina):
        item = ItemTicketEntity.criar("ticket-1", item_sem_maquina)

        assert item.estado is None
        with pytest.raises(UnknownTransitionError):
            item.aplicar_transicao(item_sem_maquina, "prepare")

    @pytest.mark.parametrize("quantidade", [0, -1, "2", True])
    def test_quantidade_invalida(self, item_sem_maquina, quantidade):
        with pytest.raises(ValidationError):
            ItemTicketEntity.criar("ticket-1", item_sem_maquina, quantidade=quantidade)

    @pytest.mark.parametrize("preco", ["abc", "-1", "NaN"])
    def test_preco_invalido(self, item_sem_maquina, preco):
        with pytest.raises(ValidationError):
            ItemTicketEntity.criar("ticket-1", item_sem_maquina, preco_unitario=preco)


class TestReconstruirEstado:
    def test_reaplica_historico(self):
        registros = [
            RegistroTransicao("tk", "A", None, sequencia=1),
            RegistroTransicao("tk", "B", "A", sequencia=2),
            RegistroTransicao("tk", "C", "B", sequencia=3),
        ]
        assert reconstruir_estado(registros) == "C"

    def test_lacuna_no_historico(self):
        registros = [
            RegistroTransicao("tk", "A", None, sequencia=1),
            RegistroTransicao("tk", "C", "B", sequencia=2),
        ]
        with pytest.raises(InternalError):
            reconstruir_estado(registros)

    def test_sem_registro_inicial(self):
        with pytest.raises(InternalError):
            reconstruir_estado([RegistroTransicao("tk", "B", "A")])

    def test_historico_vazio(self):
        assert reconstruir_estado([]) is None
