"""
Configuração do Celery para processamento assíncrono.

O Celery é usado para:
- Processar Domain Events publicados após commit
- Escalonar tickets cujo TTL expirou (Celery Beat)

Uso:
    # Iniciar worker
    celery -A src.config.celery worker -l INFO

    # Iniciar beat (tarefas agendadas)
    celery -A src.config.celery beat -l INFO
"""

import os
from celery import Celery
from kombu import Exchange, Queue

# Definir módulo de settings do Django
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'src.config.settings')

app = Celery('virtualq')

# Broker, backend, serialização e retry vêm das settings (prefixo CELERY_)
app.config_from_object('django.conf:settings', namespace='CELERY')

app.conf.update(
    worker_send_task_events=True,
    task_send_sent_event=True,
)

app.conf.task_queues = (
    Queue('default', Exchange('default'), routing_key='default'),
    Queue('events', Exchange('events'), routing_key='events.#'),
    Queue('scheduled', Exchange('scheduled'), routing_key='scheduled.#'),
)
app.conf.task_default_queue = 'default'

app.conf.task_routes = {
    'src.adapters.django_app.events.handlers.escalar_tickets_expirados': {'queue': 'scheduled'},
    'src.adapters.django_app.events.handlers.*': {'queue': 'events'},
}

app.autodiscover_tasks(['src.adapters.django_app.events'], related_name='handlers')

app.conf.beat_schedule = {
    'escalar-tickets-expirados': {
        'task': 'src.adapters.django_app.events.handlers.escalar_tickets_expirados',
        'schedule': float(os.environ.get('TTL_ESCALATION_INTERVAL_SECONDS', 60)),
    },
}
