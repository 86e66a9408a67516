"""
Testes dos publishers de eventos e das tasks Celery.

As tasks são chamadas de forma síncrona; `.delay` é substituído
por mock para não depender de broker.
"""

import logging
from datetime import timedelta
from unittest import mock

import pytest

from src.adapters.django_app.events import handlers
from src.adapters.django_app.events.publishers import (
    CeleryEventPublisher,
    CompositeEventPublisher,
    InMemoryEventPublisher,
    LoggingEventPublisher,
    get_event_publisher,
)
from src.adapters.django_app.tickets.models import TicketModel
from src.core.shared.identificadores import agora
from src.core.tickets.dtos import TransicionarTicketInputDTO
from src.core.tickets.events import TicketCriadoEvent, TicketEscaladoEvent


def _ticket_criado(**extra):
    return TicketCriadoEvent(aggregate_id="tk-1", tenant_id="tenant-1", **extra)


class TestPublishers:
    @pytest.mark.parametrize("modo, classe", [
        ("logging", LoggingEventPublisher),
        ("celery", CeleryEventPublisher),
        ("memory", InMemoryEventPublisher),
        ("MEMORY", InMemoryEventPublisher),
        (None, LoggingEventPublisher),
    ])
    def test_factory(self, modo, classe):
        assert isinstance(get_event_publisher(modo), classe)

    def test_factory_modo_invalido(self):
        with pytest.raises(ValueError):
            get_event_publisher("kafka")

    def test_in_memory_filtra_por_tipo(self):
        publisher = InMemoryEventPublisher()
        publisher.publish_batch([
            _ticket_criado(),
            TicketEscaladoEvent(aggregate_id="tk-2", tenant_id="tenant-1"),
        ])

        assert len(publisher.published_events) == 2
        assert [e.aggregate_id for e in publisher.get_events_by_type("TicketEscaladoEvent")] == ["tk-2"]

        publisher.clear()
        assert publisher.published_events == []

    def test_handler_local_com_erro_nao_interrompe(self, caplog):
        publisher = InMemoryEventPublisher()
        recebidos = []

        def quebrado(evento):
            raise KeyError("campo")

        publisher.register_handler("TicketCriadoEvent", quebrado)
        publisher.register_handler("TicketCriadoEvent", recebidos.append)

        publisher.publish(_ticket_criado())

        assert len(recebidos) == 1
        assert "Erro em handler para TicketCriadoEvent" in caplog.text

    def test_logging_publisher(self, caplog):
        with caplog.at_level(logging.INFO, logger="src.adapters.django_app.events.publishers"):
            LoggingEventPublisher().publish(_ticket_criado(fila_id="fila-1"))

        assert "[EVENT] TicketCriadoEvent" in caplog.text
        assert "fila-1" in caplog.text

    def test_celery_publisher_envia_evento_serializado(self):
        evento = _ticket_criado()

        with mock.patch.object(handlers.dispatch_domain_event, "delay") as delay:
            CeleryEventPublisher(also_log=False).publish(evento)

        delay.assert_called_once_with("TicketCriadoEvent", evento.to_dict())

    def test_composite_continua_apos_falha(self):
        class Quebrado(InMemoryEventPublisher):
            def publish(self, event):
                raise ConnectionError("fora do ar")

        destino = InMemoryEventPublisher()
        composite = CompositeEventPublisher([Quebrado()])
        composite.add_publisher(destino)

        composite.publish(_ticket_criado())

        assert len(destino.published_events) == 1


class TestHandlers:
    def test_dispatcher_roteia_para_handler(self):
        dados = _ticket_criado().to_dict()

        with mock.patch.object(handlers.handle_ticket_criado, "delay") as delay:
            handlers.dispatch_domain_event("TicketCriadoEvent", dados)

        delay.assert_called_once_with(dados)

    def test_dispatcher_ignora_evento_sem_handler(self):
        with mock.patch.object(handlers.handle_ticket_criado, "delay") as delay:
            handlers.dispatch_domain_event("FilaCriadaEvent", {})
        delay.assert_not_called()

    def test_ticket_criado_registra_metrica(self):
        with mock.patch.object(handlers.record_metric, "delay") as delay:
            handlers.handle_ticket_criado(_ticket_criado(fila_id="fila-1", posicao=0).to_dict())

        delay.assert_called_once_with(
            metric_name="tickets_criados", value=1, tags={"tenant": "tenant-1"}
        )

    def test_escalado_loga_warning(self, caplog):
        evento = TicketEscaladoEvent(aggregate_id="tk-9", tenant_id="tenant-1", estado="received")

        with mock.patch.object(handlers.record_metric, "delay"):
            with caplog.at_level(logging.WARNING, logger=handlers.__name__):
                handlers.handle_ticket_escalado(evento.to_dict())

        assert "TicketEscalado: tk-9" in caplog.text


@pytest.mark.django_db
@pytest.mark.integration
class TestEscalonamentoAgendado:
    def test_escala_tickets_expirados(self, criar_ticket, publisher):
        expirado = criar_ticket(ttl_minutos=10)
        criar_ticket(ttl_minutos=10)
        TicketModel.objects.filter(pk=expirado.id).update(expira_em=agora() - timedelta(seconds=1))

        resultado = handlers.escalar_tickets_expirados.apply()

        assert resultado.get() == 1
        assert TicketModel.objects.get(pk=expirado.id).escalado_em is not None
        assert [e.aggregate_id for e in publisher.get_events_by_type("TicketEscaladoEvent")] == [expirado.id]

        # segunda varredura não escala de novo
        assert handlers.escalar_tickets_expirados.apply().get() == 0

    def test_estado_final_nao_bloqueia_a_varredura(self, criar_ticket, container, tenant):
        finalizado = criar_ticket(ttl_minutos=10)
        for nome in ("t1", "t2"):
            container.transicionar_ticket_service().execute(
                TransicionarTicketInputDTO(tenant.id, finalizado.id, nome)
            )
        aberto = criar_ticket(ttl_minutos=10)
        TicketModel.objects.filter(pk=finalizado.id).update(expira_em=agora() - timedelta(minutes=10))
        TicketModel.objects.filter(pk=aberto.id).update(expira_em=agora() - timedelta(minutes=1))

        service = container.escalar_tickets_expirados_service(limite=1)

        assert service.execute() == 1
        assert TicketModel.objects.get(pk=aberto.id).escalado_em is not None
        assert TicketModel.objects.get(pk=finalizado.id).escalado_em is None
