"""
Exceções de Domínio do VirtualQ.

Este módulo define exceções específicas do domínio que permitem
comunicar erros de forma clara e tipada entre as camadas.

Hierarquia:
    DomainException (base)
    ├── ValidationError (payload não atende ao schema estrutural)
    ├── EntityNotFoundError (ticket/fila/tipo/funcionário inexistente)
    ├── ForbiddenError (ator sem permissão)
    │   └── TenantMismatchError (recurso pertence a outro tenant)
    ├── BusinessRuleViolationError (regra de negócio violada)
    │   ├── InvalidTransitionError (transição não parte do estado atual)
    │   ├── QueueInactiveError
    │   ├── TypeNotAllowedError
    │   ├── NoCancellationAvailableError
    │   └── InvalidDefinitionError (definição de tipo malformada)
    ├── UnknownTransitionError (transição não declarada)
    ├── ConcurrencyError (conflito de versão)
    └── InternalError (falha de infraestrutura)
        └── RepositoryError (falha de persistência)
"""

from typing import Iterable, List, Optional


class DomainException(Exception):
    """
    Exceção base para todos os erros de domínio.

    Todas as exceções específicas do domínio devem herdar desta classe.
    Isso permite capturar qualquer erro de domínio de forma genérica.

    Example:
        try:
            service.execute(input_dto)
        except DomainException as e:
            logger.error(f"Erro de domínio: {e}")
    """

    def __init__(self, message: str, code: str = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict:
        """Serializa exceção para dicionário (útil para APIs)."""
        return {
            "error": self.code,
            "message": self.message,
        }


class ValidationError(DomainException):
    """
    Erro de validação de dados de entrada.

    Lançada quando o payload não atende ao schema estrutural do tipo,
    ou quando um parâmetro obrigatório está ausente. Carrega o caminho
    do campo e o motivo, além de todos os erros encontrados.

    Example:
        raise ValidationError(
            "'vin' is a required property",
            field="vin",
            reason="'vin' is a required property",
        )
    """

    def __init__(
        self,
        message: str,
        field: str = None,
        reason: str = None,
        details: Optional[List[dict]] = None,
    ):
        self.field = field
        self.reason = reason or message
        self.details = list(details or [])
        code = f"VALIDATION_ERROR_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(message, code)

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
            result["reason"] = self.reason
        if self.details:
            result["details"] = self.details
        return result


class EntityNotFoundError(DomainException):
    """
    Entidade não encontrada no repositório.

    Também é a resposta para definições de tipo de outro tenant:
    o chamador não deve conseguir distinguir "não existe" de
    "existe mas não é seu" no Schema Registry.
    """

    def __init__(self, message: str, entity_type: str = None, entity_id: str = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(message, "ENTITY_NOT_FOUND")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.entity_type:
            result["entity_type"] = self.entity_type
        if self.entity_id:
            result["entity_id"] = self.entity_id
        return result


class ForbiddenError(DomainException):
    """Ator não autorizado a operar sobre o recurso."""

    def __init__(self, message: str, code: str = "FORBIDDEN"):
        super().__init__(message, code)


class TenantMismatchError(ForbiddenError):
    """
    Recurso pertence a um tenant diferente do chamador.

    Para o chamador é apenas um Forbidden; internamente é registrado
    no logger de segurança (ver src.core.shared.isolamento).
    """

    def __init__(
        self,
        message: str,
        tenant_id: str = None,
        resource_type: str = None,
        resource_id: str = None,
    ):
        self.tenant_id = tenant_id
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message, "FORBIDDEN")


class BusinessRuleViolationError(DomainException):
    """
    Violação de regra de negócio.

    Lançada quando uma operação viola uma regra de negócio
    estabelecida no domínio.
    """

    def __init__(self, message: str, rule: str = None, code: str = "BUSINESS_RULE_VIOLATION"):
        self.rule = rule
        super().__init__(message, code)

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.rule:
            result["rule"] = self.rule
        return result


class InvalidTransitionError(BusinessRuleViolationError):
    """
    Transição existe na máquina de estados mas não parte do estado atual.

    Inclui as transições válidas a partir do estado atual para que
    o chamador possa apresentar os próximos passos possíveis.
    """

    def __init__(
        self,
        transition_name: str,
        current_state: Optional[str],
        valid_transitions: Iterable[str] = (),
        message: str = None,
    ):
        self.transition_name = transition_name
        self.current_state = current_state
        self.valid_transitions = sorted(valid_transitions)
        super().__init__(
            message or (
                f"Transição '{transition_name}' não é permitida a partir "
                f"do estado '{current_state}'"
            ),
            rule="transicao_invalida",
            code="INVALID_TRANSITION",
        )

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["transitionName"] = self.transition_name
        result["currentState"] = self.current_state
        result["validTransitions"] = self.valid_transitions
        return result


class UnknownTransitionError(DomainException):
    """Nenhuma transição com o nome pedido existe na máquina de estados."""

    def __init__(self, transition_name: str, type_code: str = None):
        self.transition_name = transition_name
        self.type_code = type_code
        alvo = f" do tipo '{type_code}'" if type_code else ""
        super().__init__(
            f"Transição '{transition_name}' não declarada na máquina de estados{alvo}",
            "UNKNOWN_TRANSITION",
        )

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["transitionName"] = self.transition_name
        return result


class QueueInactiveError(BusinessRuleViolationError):
    """Fila desativada não aceita novos tickets."""

    def __init__(self, queue_id: str):
        self.queue_id = queue_id
        super().__init__(
            f"Fila {queue_id} está desativada",
            rule="fila_inativa",
            code="QUEUE_INACTIVE",
        )


class TypeNotAllowedError(BusinessRuleViolationError):
    """Tipo não consta na lista de tipos aceitos (fila ou itens do ticket)."""

    def __init__(self, message: str, type_definition_id: str = None):
        self.type_definition_id = type_definition_id
        super().__init__(message, rule="tipo_nao_permitido", code="TYPE_NOT_ALLOWED")


class NoCancellationAvailableError(BusinessRuleViolationError):
    """Não existe transição de cancelamento a partir do estado atual."""

    def __init__(self, ticket_id: str, current_state: str):
        self.ticket_id = ticket_id
        self.current_state = current_state
        super().__init__(
            f"Ticket {ticket_id} não pode ser cancelado no estado '{current_state}'",
            rule="sem_cancelamento_disponivel",
            code="NO_CANCELLATION_AVAILABLE",
        )


class InvalidDefinitionError(BusinessRuleViolationError):
    """Definição de tipo malformada, rejeitada no momento da configuração."""

    def __init__(self, message: str, field: str = None):
        self.field = field
        super().__init__(message, rule="definicao_invalida", code="INVALID_DEFINITION")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        return result


class ConcurrencyError(DomainException):
    """
    Erro de concorrência/conflito de versão.

    Lançada quando uma operação falha devido a modificação
    concorrente da entidade.

    Example:
        if not repo.atualizar(ticket, versao_esperada):
            raise ConcurrencyError("Entidade foi modificada por outro processo")
    """

    def __init__(self, message: str):
        super().__init__(message, "CONCURRENCY_ERROR")


class InternalError(DomainException):
    """
    Falha de infraestrutura.

    A mensagem exposta ao chamador é sempre genérica; o detalhe
    fica apenas nos logs.
    """

    PUBLIC_MESSAGE = "Erro interno do servidor"

    def __init__(self, message: str, code: str = "INTERNAL_ERROR"):
        super().__init__(message, code)

    def to_dict(self) -> dict:
        return {
            "error": "INTERNAL_ERROR",
            "message": self.PUBLIC_MESSAGE,
        }


class RepositoryError(InternalError):
    """
    Falha de persistência.

    Attributes:
        transient: Se a falha é transitória (ex: conexão perdida,
            deadlock) e a operação pode ser repetida.
    """

    def __init__(self, message: str, transient: bool = False):
        self.transient = transient
        super().__init__(message, "REPOSITORY_ERROR")
