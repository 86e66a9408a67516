"""
Domínio de Filas.

Tenants, filas, funcionários e o Índice de Membros da Fila.
"""

from .entities import FilaEntity, FuncionarioEntity, TenantEntity
from .ports import (
    FilaRepository,
    FuncionarioRepository,
    IndiceFila,
    InMemoryFilaRepository,
    InMemoryFuncionarioRepository,
    InMemoryIndiceFila,
    InMemoryTenantRepository,
    TenantRepository,
)
from .dtos import (
    AlterarStatusFilaInputDTO,
    AtualizarTiposFilaInputDTO,
    CriarFilaInputDTO,
    CriarTenantInputDTO,
    DesativarFuncionarioInputDTO,
    FilaOutputDTO,
    FuncionarioOutputDTO,
    RegistrarFuncionarioInputDTO,
    TenantOutputDTO,
)
from .use_cases import (
    AlterarStatusFilaService,
    AtualizarTiposFilaService,
    CriarFilaService,
    CriarTenantService,
    DesativarFuncionarioService,
    ListarFilasService,
    ListarFuncionariosService,
    RegistrarFuncionarioService,
)

__all__ = [
    "FilaEntity",
    "FuncionarioEntity",
    "TenantEntity",
    "FilaRepository",
    "FuncionarioRepository",
    "IndiceFila",
    "InMemoryFilaRepository",
    "InMemoryFuncionarioRepository",
    "InMemoryIndiceFila",
    "InMemoryTenantRepository",
    "TenantRepository",
    "AlterarStatusFilaInputDTO",
    "AtualizarTiposFilaInputDTO",
    "CriarFilaInputDTO",
    "CriarTenantInputDTO",
    "DesativarFuncionarioInputDTO",
    "FilaOutputDTO",
    "FuncionarioOutputDTO",
    "RegistrarFuncionarioInputDTO",
    "TenantOutputDTO",
    "AlterarStatusFilaService",
    "AtualizarTiposFilaService",
    "CriarFilaService",
    "CriarTenantService",
    "DesativarFuncionarioService",
    "ListarFilasService",
    "ListarFuncionariosService",
    "RegistrarFuncionarioService",
]
