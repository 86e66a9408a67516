"""
Isolamento entre tenants.

A identidade do tenant chamador é sempre um parâmetro explícito das
operações do core e é conferida contra o tenant dono do recurso antes
de qualquer mutação. Divergências são registradas no logger
`src.core.security`, separado do ruído de "não encontrado", para
revisão de segurança.
"""

from typing import Optional
import logging

from .exceptions import TenantMismatchError, ValidationError

security_logger = logging.getLogger("src.core.security")


def exigir_tenant(tenant_id: Optional[str]) -> str:
    """Garante que a operação recebeu a identidade do tenant."""
    if not tenant_id:
        raise ValidationError("Tenant é obrigatório", field="tenant_id")
    return tenant_id


def garantir_mesmo_tenant(
    tenant_chamador: str,
    tenant_recurso: Optional[str],
    tipo_recurso: str,
    recurso_id: str,
    operacao: str = "",
) -> None:
    """
    Verifica que o recurso pertence ao tenant chamador.

    Args:
        tenant_chamador: Tenant informado na requisição
        tenant_recurso: Tenant dono do recurso
        tipo_recurso: Ex: "Ticket", "Fila", "Funcionario"
        recurso_id: ID do recurso acessado
        operacao: Nome da operação (contexto para o log)

    Raises:
        TenantMismatchError: Se os tenants divergirem
    """
    if tenant_recurso == tenant_chamador:
        return

    security_logger.warning(
        f"Tenant mismatch: tenant={tenant_chamador} tentou acessar "
        f"{tipo_recurso} {recurso_id} do tenant={tenant_recurso} "
        f"operacao={operacao or '-'}"
    )
    raise TenantMismatchError(
        f"Acesso negado ao recurso {tipo_recurso} {recurso_id}",
        tenant_id=tenant_chamador,
        resource_type=tipo_recurso,
        resource_id=recurso_id,
    )
