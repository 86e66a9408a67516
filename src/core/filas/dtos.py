"""
Data Transfer Objects (DTOs) do Domínio de Filas.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from .entities import FilaEntity, FuncionarioEntity, TenantEntity


# =============================================================================
# INPUT DTOs (Entrada)
# =============================================================================

@dataclass(frozen=True)
class CriarTenantInputDTO:
    nome: str
    descricao: str = ""
    local: str = ""

    def to_dict(self) -> dict:
        return {"nome": self.nome, "descricao": self.descricao, "local": self.local}


@dataclass(frozen=True)
class CriarFilaInputDTO:
    """
    DTO de entrada para criar fila.

    Attributes:
        tenant_id: Tenant chamador (dono da nova fila)
        nome: Nome da fila
        tipos_aceitos: IDs das definições aceitas
        ordem_exibicao: Ordem de apresentação
        max_espera_minutos: Espera máxima anunciada
    """

    tenant_id: str
    nome: str
    descricao: str = ""
    tipos_aceitos: Tuple[str, ...] = ()
    ordem_exibicao: int = 0
    max_espera_minutos: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "tenant_id": self.tenant_id,
            "nome": self.nome,
            "descricao": self.descricao,
            "tipos_aceitos": list(self.tipos_aceitos),
            "ordem_exibicao": self.ordem_exibicao,
            "max_espera_minutos": self.max_espera_minutos,
        }


@dataclass(frozen=True)
class AlterarStatusFilaInputDTO:
    tenant_id: str
    fila_id: str
    ativo: bool

    def to_dict(self) -> dict:
        return {"tenant_id": self.tenant_id, "fila_id": self.fila_id, "ativo": self.ativo}


@dataclass(frozen=True)
class AtualizarTiposFilaInputDTO:
    tenant_id: str
    fila_id: str
    tipos_aceitos: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "tenant_id": self.tenant_id,
            "fila_id": self.fila_id,
            "tipos_aceitos": list(self.tipos_aceitos),
        }


@dataclass(frozen=True)
class RegistrarFuncionarioInputDTO:
    tenant_id: str
    nome: str
    sobrenome: str
    email: str
    cargo: str = ""

    def to_dict(self) -> dict:
        return {
            "tenant_id": self.tenant_id,
            "nome": self.nome,
            "sobrenome": self.sobrenome,
            "email": self.email,
            "cargo": self.cargo,
        }


@dataclass(frozen=True)
class DesativarFuncionarioInputDTO:
    tenant_id: str
    funcionario_id: str

    def to_dict(self) -> dict:
        return {"tenant_id": self.tenant_id, "funcionario_id": self.funcionario_id}


# =============================================================================
# OUTPUT DTOs (Saída)
# =============================================================================

@dataclass
class TenantOutputDTO:
    id: str
    nome: str
    descricao: str
    local: str
    ativo: bool
    criado_em: datetime

    @classmethod
    def from_entity(cls, entity: TenantEntity) -> "TenantOutputDTO":
        return cls(
            id=entity.id,
            nome=entity.nome,
            descricao=entity.descricao,
            local=entity.local,
            ativo=entity.ativo,
            criado_em=entity.criado_em,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.nome,
            "description": self.descricao,
            "locationName": self.local,
            "active": self.ativo,
            "createdAt": self.criado_em.isoformat(),
        }


@dataclass
class FilaOutputDTO:
    """DTO de saída da fila."""

    id: str
    tenant_id: str
    nome: str
    descricao: str
    tipos_aceitos: Tuple[str, ...]
    ativo: bool
    ordem_exibicao: int
    max_espera_minutos: Optional[int]
    criado_em: datetime
    atualizado_em: datetime

    @classmethod
    def from_entity(cls, entity: FilaEntity) -> "FilaOutputDTO":
        return cls(
            id=entity.id,
            tenant_id=entity.tenant_id,
            nome=entity.nome,
            descricao=entity.descricao,
            tipos_aceitos=entity.tipos_aceitos,
            ativo=entity.ativo,
            ordem_exibicao=entity.ordem_exibicao,
            max_espera_minutos=entity.max_espera_minutos,
            criado_em=entity.criado_em,
            atualizado_em=entity.atualizado_em,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenantId": self.tenant_id,
            "name": self.nome,
            "description": self.descricao,
            "acceptedTypeIds": list(self.tipos_aceitos),
            "active": self.ativo,
            "displayOrder": self.ordem_exibicao,
            "maxWaitMinutes": self.max_espera_minutos,
            "createdAt": self.criado_em.isoformat(),
            "updatedAt": self.atualizado_em.isoformat(),
        }


@dataclass
class FuncionarioOutputDTO:
    id: str
    tenant_id: str
    nome: str
    sobrenome: str
    email: str
    cargo: str
    ativo: bool

    @classmethod
    def from_entity(cls, entity: FuncionarioEntity) -> "FuncionarioOutputDTO":
        return cls(
            id=entity.id,
            tenant_id=entity.tenant_id,
            nome=entity.nome,
            sobrenome=entity.sobrenome,
            email=entity.email,
            cargo=entity.cargo,
            ativo=entity.ativo,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenantId": self.tenant_id,
            "firstName": self.nome,
            "lastName": self.sobrenome,
            "email": self.email,
            "role": self.cargo,
            "active": self.ativo,
        }
