"""
Event Handlers - Processadores de Eventos de Domínio.

Handlers são executados de forma assíncrona via Celery quando
Domain Events são publicados (EVENT_PUBLISHER_MODE=celery).

Tipos de Handlers:
- Monitoramento: Logar movimentações de fila para painéis
- Métricas: Contadores por tipo de evento
- Agendados: Escalonamento de tickets expirados (Celery Beat)

Padrão:
    @shared_task(bind=True, ...)
    def handle_<evento>(self, event_data: dict) -> None:
        # Processar evento
"""

from typing import Any, Dict, Optional
import logging

from celery import shared_task

logger = logging.getLogger(__name__)


# =============================================================================
# Event Handlers - Tickets
# =============================================================================

@shared_task(bind=True, max_retries=3, default_retry_delay=60, acks_late=True)
def handle_ticket_criado(self, event_data: Dict[str, Any]) -> None:
    """
    Handler para TicketCriadoEvent.

    Ações:
    - Logar entrada na fila (posição inicial)
    - Registrar métrica por tenant
    """
    data = event_data.get('data', {})
    logger.info(
        f"[HANDLER] TicketCriado: {event_data.get('aggregate_id')} | "
        f"fila={data.get('fila_id')} | posição={data.get('posicao')}"
    )
    record_metric.delay(
        metric_name='tickets_criados',
        value=1,
        tags={'tenant': event_data.get('tenant_id')},
    )


@shared_task(bind=True, max_retries=3, default_retry_delay=60, acks_late=True)
def handle_ticket_transicionado(self, event_data: Dict[str, Any]) -> None:
    data = event_data.get('data', {})
    logger.info(
        f"[HANDLER] TicketTransicionado: {event_data.get('aggregate_id')} | "
        f"{data.get('estado_anterior')} -> {data.get('estado_novo')} "
        f"({data.get('transicao')})"
    )


@shared_task(bind=True, max_retries=3, default_retry_delay=60, acks_late=True)
def handle_ticket_encaminhado(self, event_data: Dict[str, Any]) -> None:
    data = event_data.get('data', {})
    logger.info(
        f"[HANDLER] TicketEncaminhado: {event_data.get('aggregate_id')} | "
        f"{data.get('fila_origem_id')} -> {data.get('fila_destino_id')}"
    )


@shared_task(bind=True, max_retries=3, default_retry_delay=60, acks_late=True)
def handle_ticket_cancelado(self, event_data: Dict[str, Any]) -> None:
    logger.info(f"[HANDLER] TicketCancelado: {event_data.get('aggregate_id')}")
    record_metric.delay(
        metric_name='tickets_cancelados',
        value=1,
        tags={'tenant': event_data.get('tenant_id')},
    )


@shared_task(bind=True, max_retries=3, default_retry_delay=60, acks_late=True)
def handle_ticket_escalado(self, event_data: Dict[str, Any]) -> None:
    """
    Handler para TicketEscaladoEvent.

    Um ticket escalado passou do TTL do estado; o aviso sai em
    WARNING para que alertas de log o capturem.
    """
    data = event_data.get('data', {})
    logger.warning(
        f"[HANDLER] TicketEscalado: {event_data.get('aggregate_id')} | "
        f"fila={data.get('fila_id')} | estado={data.get('estado')} | "
        f"expirou em {data.get('expira_em')}"
    )
    record_metric.delay(
        metric_name='tickets_escalados',
        value=1,
        tags={'tenant': event_data.get('tenant_id')},
    )


# =============================================================================
# Event Dispatcher (Router)
# =============================================================================

HANDLERS = {
    'TicketCriadoEvent': handle_ticket_criado,
    'TicketTransicionadoEvent': handle_ticket_transicionado,
    'TicketEncaminhadoEvent': handle_ticket_encaminhado,
    'TicketCanceladoEvent': handle_ticket_cancelado,
    'TicketEscaladoEvent': handle_ticket_escalado,
}


@shared_task(bind=True, max_retries=5, default_retry_delay=30)
def dispatch_domain_event(self, event_type: str, event_data: Dict[str, Any]) -> None:
    """
    Dispatcher central para Domain Events.

    Args:
        event_type: Tipo do evento (ex: 'TicketCriadoEvent')
        event_data: Evento serializado (DomainEvent.to_dict)
    """
    handler = HANDLERS.get(event_type)

    if handler:
        logger.info(f"[DISPATCHER] Roteando {event_type} para handler")
        handler.delay(event_data)
    else:
        logger.debug(f"[DISPATCHER] Sem handler para {event_type}")


# =============================================================================
# Metric Tasks
# =============================================================================

@shared_task(bind=True, ignore_result=True)
def record_metric(
    self,
    metric_name: str,
    value: float,
    tags: Optional[Dict[str, Any]] = None,
) -> None:
    logger.info(f"[METRIC] {metric_name}={value} | tags={tags or {}}")


# =============================================================================
# Scheduled Tasks (Beat)
# =============================================================================

@shared_task(bind=True)
def escalar_tickets_expirados(self) -> int:
    """
    Escala tickets cujo TTL expirou.

    Executada periodicamente pelo Celery Beat
    (TTL_ESCALATION_INTERVAL_SECONDS).

    Returns:
        Número de tickets escalados
    """
    # Importação tardia para evitar circular import
    from src.config.container import get_container

    service = get_container().escalar_tickets_expirados_service()
    escalados = service.execute()
    logger.info(f"[SCHEDULED] {escalados} ticket(s) escalado(s)")
    return escalados
