"""
Data Transfer Objects (DTOs) do Domínio de Definições de Tipo.

A saída segue o formato externo do documento da definição
(typeCode, typeName, structuralSchema, stateMachine, nestedItemTypeIds).
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from .entities import DefinicaoTipoEntity


# =============================================================================
# INPUT DTOs (Entrada)
# =============================================================================

@dataclass(frozen=True)
class RegistrarDefinicaoInputDTO:
    """
    DTO de entrada para registrar definição.

    Attributes:
        tenant_id: Tenant dono (None registra um tipo de sistema)
        documento: Documento da definição
    """

    tenant_id: Optional[str]
    documento: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"tenant_id": self.tenant_id, "documento": self.documento}


@dataclass(frozen=True)
class AtualizarDefinicaoInputDTO:
    definicao_id: str
    tenant_id: Optional[str]
    documento: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "definicao_id": self.definicao_id,
            "tenant_id": self.tenant_id,
            "documento": self.documento,
        }


@dataclass(frozen=True)
class DesativarDefinicaoInputDTO:
    definicao_id: str
    tenant_id: Optional[str]

    def to_dict(self) -> dict:
        return {"definicao_id": self.definicao_id, "tenant_id": self.tenant_id}


# =============================================================================
# OUTPUT DTOs (Saída)
# =============================================================================

@dataclass
class DefinicaoOutputDTO:
    """DTO de saída com o documento e os metadados da definição."""

    id: str
    tenant_id: Optional[str]
    documento: Dict[str, Any]
    sistema: bool
    ativo: bool
    criado_em: datetime
    atualizado_em: datetime

    @classmethod
    def from_entity(cls, entity: DefinicaoTipoEntity) -> "DefinicaoOutputDTO":
        return cls(
            id=entity.id,
            tenant_id=entity.tenant_id,
            documento=entity.to_documento(),
            sistema=entity.sistema,
            ativo=entity.ativo,
            criado_em=entity.criado_em,
            atualizado_em=entity.atualizado_em,
        )

    def to_dict(self) -> dict:
        resultado = {
            "id": self.id,
            "tenantId": self.tenant_id,
            "systemDefined": self.sistema,
            "active": self.ativo,
            "createdAt": self.criado_em.isoformat(),
            "updatedAt": self.atualizado_em.isoformat(),
        }
        resultado.update(self.documento)
        return resultado
