"""
Unit of Work - Implementação Django.

Gerencia transações atômicas entre múltiplos repositórios,
garantindo consistência de dados.

Responsabilidades:
- Iniciar/finalizar transações (transaction.atomic)
- Commit/Rollback coordenado
- Persistir eventos no Event Store na mesma transação
- Publicar eventos após commit bem-sucedido
"""

from typing import Optional
import logging

from django.db import DEFAULT_DB_ALIAS, OperationalError, transaction

from src.core.shared.exceptions import RepositoryError
from src.core.shared.interfaces import EventPublisher, EventStore, UnitOfWork

logger = logging.getLogger(__name__)


class DjangoUnitOfWork(UnitOfWork):
    """
    Implementação Django do Unit of Work.

    Cada bloco `with` abre um `transaction.atomic` próprio. Eventos
    enfileirados são gravados no Event Store antes do commit e só
    chegam ao publisher depois que o banco confirmou.

    Example:
        with DjangoUnitOfWork(event_store=DjangoEventStore()) as uow:
            repo.atualizar(ticket, versao)
            uow.publish_event(TicketTransicionadoEvent(...))
        # Commit automático + eventos publicados

    Example com rollback:
        with uow:
            repo.atualizar(ticket, versao)
            raise BusinessRuleViolationError("...")
        # Rollback automático, eventos descartados
    """

    def __init__(
        self,
        event_publisher: Optional[EventPublisher] = None,
        event_store: Optional[EventStore] = None,
        using: str = DEFAULT_DB_ALIAS,
    ):
        super().__init__()
        self._event_publisher = event_publisher
        self._event_store = event_store
        self._using = using
        self._atomic = None
        self._committed = False
        self._rolled_back = False

    def _begin_transaction(self) -> None:
        if self._atomic is not None:
            raise RuntimeError("Unit of Work já está em uso (blocos aninhados não são suportados)")
        self._committed = False
        self._rolled_back = False
        self.clear_events()
        self._atomic = transaction.atomic(using=self._using)
        self._atomic.__enter__()
        logger.debug("Transaction started")

    def commit(self) -> None:
        """
        Ordem de execução:
        1. Persistir eventos no Event Store (mesma transação)
        2. Commit da transação no banco
        3. Publicar eventos para handlers

        Raises:
            RepositoryError: Falha ao gravar eventos ou ao confirmar
        """
        atomic, self._atomic = self._atomic, None
        if atomic is None:
            logger.warning("Transaction already finalized")
            return

        try:
            if self._event_store and self._events:
                self._persist_events()
        except Exception:
            transaction.set_rollback(True, using=self._using)
            atomic.__exit__(None, None, None)
            self._rolled_back = True
            self.clear_events()
            raise

        try:
            atomic.__exit__(None, None, None)
        except OperationalError as e:
            self._rolled_back = True
            self.clear_events()
            logger.warning(f"Commit failed: {e}")
            raise RepositoryError(f"commit: {e}", transient=True) from e

        self._committed = True
        logger.debug("Transaction committed")
        self._publish_events()

    def rollback(self) -> None:
        atomic, self._atomic = self._atomic, None
        if atomic is None:
            return
        transaction.set_rollback(True, using=self._using)
        atomic.__exit__(None, None, None)
        self._rolled_back = True
        self.clear_events()
        logger.debug("Transaction rolled back")

    def _persist_events(self) -> None:
        for event in self._events:
            sequence = self._event_store.next_sequence(event.aggregate_id)
            self._event_store.append(event, sequence=sequence)

    def _publish_events(self) -> None:
        """
        Publica eventos para handlers.

        O estado já está confirmado: falha de publicação é logada
        e não desfaz a operação (o evento continua no Event Store).
        """
        events, self._events = list(self._events), []
        for event in events:
            logger.info(
                f"Publishing event: {event.event_type} "
                f"for aggregate {event.aggregate_id}"
            )
            if self._event_publisher:
                try:
                    self._event_publisher.publish(event)
                except Exception as e:
                    logger.error(f"Failed to publish event {event.event_id}: {e}", exc_info=True)

    @property
    def is_committed(self) -> bool:
        return self._committed

    @property
    def is_rolled_back(self) -> bool:
        return self._rolled_back
