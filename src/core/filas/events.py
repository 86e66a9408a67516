"""
Domain Events do Domínio de Filas.

Eventos:
- TenantCriadoEvent
- FilaCriadaEvent
- FilaStatusAlteradoEvent: Fila ativada ou desativada
- FilaTiposAtualizadosEvent
- FuncionarioRegistradoEvent
- FuncionarioDesativadoEvent
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from src.core.shared.events import DomainEvent


@dataclass
class TenantCriadoEvent(DomainEvent):
    nome: str = ""

    @property
    def aggregate_type(self) -> str:
        return "Tenant"

    def _get_event_data(self) -> Dict[str, Any]:
        return {"nome": self.nome}


@dataclass
class FilaCriadaEvent(DomainEvent):
    nome: str = ""
    tipos_aceitos: List[str] = field(default_factory=list)

    @property
    def aggregate_type(self) -> str:
        return "Fila"

    def _get_event_data(self) -> Dict[str, Any]:
        return {"nome": self.nome, "tipos_aceitos": self.tipos_aceitos}


@dataclass
class FilaStatusAlteradoEvent(DomainEvent):
    """
    Evento: Fila foi ativada ou desativada.

    Tickets existentes não são afetados; apenas novas entradas.
    """

    ativo: bool = True

    @property
    def aggregate_type(self) -> str:
        return "Fila"

    def _get_event_data(self) -> Dict[str, Any]:
        return {"ativo": self.ativo}


@dataclass
class FilaTiposAtualizadosEvent(DomainEvent):
    tipos_anteriores: List[str] = field(default_factory=list)
    tipos_novos: List[str] = field(default_factory=list)

    @property
    def aggregate_type(self) -> str:
        return "Fila"

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "tipos_anteriores": self.tipos_anteriores,
            "tipos_novos": self.tipos_novos,
        }


@dataclass
class FuncionarioRegistradoEvent(DomainEvent):
    email: str = ""
    cargo: Optional[str] = None

    @property
    def aggregate_type(self) -> str:
        return "Funcionario"

    def _get_event_data(self) -> Dict[str, Any]:
        return {"email": self.email, "cargo": self.cargo}


@dataclass
class FuncionarioDesativadoEvent(DomainEvent):
    @property
    def aggregate_type(self) -> str:
        return "Funcionario"
