"""
Fakes e documentos de definição compartilhados pelos testes do core.
"""

from typing import List

from src.core.shared.events import DomainEvent
from src.core.shared.interfaces import UnitOfWork
from src.core.shared.retry import RetryPolicy


class FakeUnitOfWork(UnitOfWork):
    """
    Fake Unit of Work para testes.

    Permite verificar:
    - Quantos commits/rollbacks aconteceram
    - Eventos publicados (apenas após commit)
    """

    def __init__(self):
        super().__init__()
        self.publicados: List[DomainEvent] = []
        self.commits = 0
        self.rollbacks = 0

    def _begin_transaction(self):
        self.clear_events()

    def commit(self):
        self.commits += 1
        self.publicados.extend(self.collect_events())
        self.clear_events()

    def rollback(self):
        self.rollbacks += 1
        self.clear_events()

    def eventos(self, tipo: str) -> List[DomainEvent]:
        return [e for e in self.publicados if e.event_type == tipo]


SEM_ESPERA = RetryPolicy(max_tentativas=3, backoff_inicial=0)


def documento_pedido(**extra) -> dict:
    """Pedido de cafeteria: received → in_progress → ready → picked_up."""
    documento = {
        "typeCode": "food_order",
        "typeName": "Food Order",
        "structuralSchema": {
            "type": "object",
            "properties": {
                "order_type": {"type": "string", "enum": ["mobile", "in_store"]},
                "table_number": {"type": "integer"},
            },
            "required": ["order_type"],
        },
        "stateMachine": {
            "initialState": "received",
            "states": ["received", "in_progress", "ready", "picked_up", "cancelled"],
            "transitions": [
                {"name": "start", "from": "received", "to": "in_progress"},
                {"name": "finish", "from": "in_progress", "to": "ready"},
                {"name": "pick_up", "from": "ready", "to": "picked_up"},
                {"name": "cancel", "from": "received", "to": "cancelled"},
                {"name": "cancel", "from": "in_progress", "to": "cancelled"},
            ],
        },
    }
    documento.update(extra)
    return documento


def documento_abc() -> dict:
    """Tipo mínimo {A, B, C} com t1: A→B e t2: B→C."""
    return {
        "typeCode": "abc",
        "typeName": "ABC",
        "stateMachine": {
            "initialState": "A",
            "states": ["A", "B", "C"],
            "transitions": [
                {"name": "t1", "from": "A", "to": "B"},
                {"name": "t2", "from": "B", "to": "C"},
            ],
        },
    }


def documento_item(**extra) -> dict:
    documento = {
        "typeCode": "menu_item",
        "typeName": "Menu Item",
        "structuralSchema": {
            "type": "object",
            "properties": {"size": {"type": "string", "enum": ["S", "M", "L"]}},
        },
        "stateMachine": {
            "initialState": "pending",
            "states": ["pending", "preparing", "done"],
            "transitions": [
                {"name": "prepare", "from": "pending", "to": "preparing"},
                {"name": "finish", "from": "preparing", "to": "done"},
            ],
            "lifecycleStates": {"started": ["preparing"], "completed": ["done"]},
        },
    }
    documento.update(extra)
    return documento
