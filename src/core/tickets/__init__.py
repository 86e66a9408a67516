"""
Domínio de Tickets - Ciclo de vida de atendimentos.

Este módulo contém a lógica de negócio dos tickets e seus itens:
- Entidades (TicketEntity, ItemTicketEntity, RegistroTransicao)
- Use Cases (CriarTicket, TransicionarTicket, EncaminharTicket, ...)
- Audit Recorder (RegistradorAuditoria)
- Domain Events (TicketCriado, TicketTransicionado, TicketEncaminhado, ...)
- DTOs (Input/Output Data Transfer Objects)
- Ports (Interfaces para repositórios)

Características do Domínio:
- Estados e transições vêm da definição de tipo, não do código
- Toda transição aceita gera exatamente um registro de histórico
- Check-and-set por versão serializa transições do mesmo ticket
- Eventos disparados para side-effects assíncronos
"""

from .entities import ItemTicketEntity, RegistroTransicao, TicketEntity
from .auditoria import RegistradorAuditoria, reconstruir_estado
from .events import (
    ItemAdicionadoEvent,
    ItemTransicionadoEvent,
    TicketAtribuidoEvent,
    TicketCanceladoEvent,
    TicketCriadoEvent,
    TicketEncaminhadoEvent,
    TicketEscaladoEvent,
    TicketReordenadoEvent,
    TicketTransicionadoEvent,
)
from .dtos import (
    AdicionarItemInputDTO,
    AtribuirFuncionarioInputDTO,
    CancelarTicketInputDTO,
    CriarTicketInputDTO,
    EncaminharTicketInputDTO,
    ItemOutputDTO,
    ListarTicketsFilaQueryDTO,
    PaginaTicketsDTO,
    RegistroTransicaoOutputDTO,
    ReordenarTicketInputDTO,
    TicketOutputDTO,
    TransicionarItemInputDTO,
    TransicionarTicketInputDTO,
)
from .ports import (
    HistoricoRepository,
    InMemoryHistoricoRepository,
    InMemoryItemTicketRepository,
    InMemoryTicketRepository,
    ItemTicketRepository,
    TicketRepository,
)
from .use_cases import (
    AdicionarItemService,
    AtribuirFuncionarioService,
    CancelarTicketService,
    ContarTicketsFilaService,
    CriarTicketService,
    EncaminharTicketService,
    EscalarTicketsExpiradosService,
    ListarItensTicketService,
    ListarTicketsFilaService,
    ObterHistoricoItemService,
    ObterHistoricoService,
    ObterTicketService,
    ReordenarTicketService,
    TransicionarItemService,
    TransicionarTicketService,
)

__all__ = [
    # Entities
    "TicketEntity",
    "ItemTicketEntity",
    "RegistroTransicao",
    # Auditoria
    "RegistradorAuditoria",
    "reconstruir_estado",
    # Events
    "TicketCriadoEvent",
    "TicketTransicionadoEvent",
    "TicketAtribuidoEvent",
    "TicketEncaminhadoEvent",
    "TicketReordenadoEvent",
    "TicketCanceladoEvent",
    "TicketEscaladoEvent",
    "ItemAdicionadoEvent",
    "ItemTransicionadoEvent",
    # DTOs
    "CriarTicketInputDTO",
    "TransicionarTicketInputDTO",
    "AtribuirFuncionarioInputDTO",
    "EncaminharTicketInputDTO",
    "ReordenarTicketInputDTO",
    "CancelarTicketInputDTO",
    "AdicionarItemInputDTO",
    "TransicionarItemInputDTO",
    "TicketOutputDTO",
    "ItemOutputDTO",
    "RegistroTransicaoOutputDTO",
    "ListarTicketsFilaQueryDTO",
    "PaginaTicketsDTO",
    # Ports
    "TicketRepository",
    "ItemTicketRepository",
    "HistoricoRepository",
    "InMemoryTicketRepository",
    "InMemoryItemTicketRepository",
    "InMemoryHistoricoRepository",
    # Use Cases
    "CriarTicketService",
    "TransicionarTicketService",
    "AtribuirFuncionarioService",
    "EncaminharTicketService",
    "ReordenarTicketService",
    "CancelarTicketService",
    "AdicionarItemService",
    "TransicionarItemService",
    "ObterTicketService",
    "ListarItensTicketService",
    "ObterHistoricoService",
    "ObterHistoricoItemService",
    "ListarTicketsFilaService",
    "ContarTicketsFilaService",
    "EscalarTicketsExpiradosService",
]
