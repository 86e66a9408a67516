"""
Configuração do Django App do VirtualQ.

Um único app (label 'tickets') reúne tenants, definições de tipo,
filas, tickets, histórico e event store.
"""

from django.apps import AppConfig


class TicketsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'src.adapters.django_app.tickets'
    label = 'tickets'
    verbose_name = 'VirtualQ - Filas e Tickets'

    def ready(self):
        # Registra as tasks Celery do app (shared_task)
        from src.adapters.django_app.events import handlers  # noqa: F401
