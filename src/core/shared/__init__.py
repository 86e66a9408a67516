"""
Shared Domain Components.

Contém componentes compartilhados entre todos os domínios:
- Exceções de domínio
- Interfaces (Ports)
- Base classes para Domain Events
- Identificadores ordenados por tempo e relógio UTC
- Política de retry para falhas transitórias
- Verificação de isolamento entre tenants
"""

from .exceptions import (
    DomainException,
    ValidationError,
    EntityNotFoundError,
    ForbiddenError,
    TenantMismatchError,
    BusinessRuleViolationError,
    InvalidTransitionError,
    UnknownTransitionError,
    QueueInactiveError,
    TypeNotAllowedError,
    NoCancellationAvailableError,
    InvalidDefinitionError,
    ConcurrencyError,
    InternalError,
    RepositoryError,
)
from .events import DomainEvent
from .interfaces import UnitOfWork, EventPublisher, EventStore
from .identificadores import novo_id, agora
from .retry import RetryPolicy

__all__ = [
    "DomainException",
    "ValidationError",
    "EntityNotFoundError",
    "ForbiddenError",
    "TenantMismatchError",
    "BusinessRuleViolationError",
    "InvalidTransitionError",
    "UnknownTransitionError",
    "QueueInactiveError",
    "TypeNotAllowedError",
    "NoCancellationAvailableError",
    "InvalidDefinitionError",
    "ConcurrencyError",
    "InternalError",
    "RepositoryError",
    "DomainEvent",
    "UnitOfWork",
    "EventPublisher",
    "EventStore",
    "novo_id",
    "agora",
    "RetryPolicy",
]
