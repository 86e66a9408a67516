"""
Domínio de Definições de Tipo.

Schema Registry, máquina de estados (Transition Engine) e validador
estrutural: a parte do core que interpreta os tipos declarados por
cada tenant.
"""

from .entities import DefinicaoTipoEntity
from .maquina_estados import (
    EstadosCicloVida,
    MaquinaEstados,
    Transicao,
    aplicar_transicao,
    validar_cobertura_estados,
)
from .validador import ErroCampo, ResultadoValidacao, ValidadorEstrutural
from .registry import SchemaRegistry
from .ports import (
    CacheDefinicoes,
    DefinicaoTipoRepository,
    EstadosEmUsoPort,
    InMemoryCacheDefinicoes,
    InMemoryDefinicaoTipoRepository,
)
from .dtos import (
    AtualizarDefinicaoInputDTO,
    DefinicaoOutputDTO,
    DesativarDefinicaoInputDTO,
    RegistrarDefinicaoInputDTO,
)
from .use_cases import (
    AtualizarDefinicaoService,
    DesativarDefinicaoService,
    ListarDefinicoesService,
    ObterDefinicaoService,
    RegistrarDefinicaoService,
)

__all__ = [
    "DefinicaoTipoEntity",
    "EstadosCicloVida",
    "MaquinaEstados",
    "Transicao",
    "aplicar_transicao",
    "validar_cobertura_estados",
    "ErroCampo",
    "ResultadoValidacao",
    "ValidadorEstrutural",
    "SchemaRegistry",
    "CacheDefinicoes",
    "DefinicaoTipoRepository",
    "EstadosEmUsoPort",
    "InMemoryCacheDefinicoes",
    "InMemoryDefinicaoTipoRepository",
    "AtualizarDefinicaoInputDTO",
    "DefinicaoOutputDTO",
    "DesativarDefinicaoInputDTO",
    "RegistrarDefinicaoInputDTO",
    "AtualizarDefinicaoService",
    "DesativarDefinicaoService",
    "ListarDefinicoesService",
    "ObterDefinicaoService",
    "RegistrarDefinicaoService",
]
