"""
Domain Events do Domínio de Definições de Tipo.

Eventos:
- DefinicaoTipoRegistradaEvent: Nova definição registrada
- DefinicaoTipoAtualizadaEvent: Documento da definição substituído
- DefinicaoTipoDesativadaEvent: Definição desativada
"""

from dataclasses import dataclass
from typing import Any, Dict

from src.core.shared.events import DomainEvent


@dataclass
class DefinicaoTipoRegistradaEvent(DomainEvent):
    codigo: str = ""
    possui_maquina: bool = True

    @property
    def aggregate_type(self) -> str:
        return "DefinicaoTipo"

    def _get_event_data(self) -> Dict[str, Any]:
        return {"codigo": self.codigo, "possui_maquina": self.possui_maquina}


@dataclass
class DefinicaoTipoAtualizadaEvent(DomainEvent):
    """
    Evento: Documento da definição foi substituído.

    Handlers típicos:
    - Invalidar caches de outros processos (workers Celery)
    """

    codigo: str = ""

    @property
    def aggregate_type(self) -> str:
        return "DefinicaoTipo"

    def _get_event_data(self) -> Dict[str, Any]:
        return {"codigo": self.codigo}


@dataclass
class DefinicaoTipoDesativadaEvent(DomainEvent):
    codigo: str = ""

    @property
    def aggregate_type(self) -> str:
        return "DefinicaoTipo"

    def _get_event_data(self) -> Dict[str, Any]:
        return {"codigo": self.codigo}
