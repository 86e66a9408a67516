"""
Entidades do Domínio de Filas.

Entidades:
- TenantEntity: Fronteira de isolamento (empresa/local)
- FilaEntity: Fila de atendimento de um tenant
- FuncionarioEntity: Funcionário de um tenant

Regras de Negócio Encapsuladas:
- Fila desativada não aceita novos tickets
- Fila só aceita os tipos listados em tipos_aceitos
- Nada é removido fisicamente: apenas desativado
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional, Tuple
import re

from src.core.shared.exceptions import (
    BusinessRuleViolationError,
    QueueInactiveError,
    TypeNotAllowedError,
    ValidationError,
)
from src.core.shared.identificadores import agora, novo_id


EMAIL_REGEX = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _texto_obrigatorio(valor: Optional[str], campo: str, maximo: int = 200) -> str:
    if not valor or not valor.strip():
        raise ValidationError(f"{campo} é obrigatório", field=campo)
    limpo = valor.strip()
    if len(limpo) > maximo:
        raise ValidationError(
            f"{campo} deve ter no máximo {maximo} caracteres", field=campo
        )
    return limpo


@dataclass
class TenantEntity:
    """
    Entidade de Domínio: Tenant.

    Attributes:
        id: Identificador externo (UUIDv7)
        nome: Nome do estabelecimento (ex: "Downtown Seattle Coffee")
        descricao: Descrição opcional
        local: Nome do local físico
        ativo: Flag de desativação lógica
    """

    id: str = field(default_factory=novo_id)
    nome: str = ""
    descricao: str = ""
    local: str = ""
    ativo: bool = True
    criado_em: datetime = field(default_factory=agora)
    atualizado_em: datetime = field(default_factory=agora)

    @classmethod
    def criar(cls, nome: str, descricao: str = "", local: str = "") -> "TenantEntity":
        return cls(
            nome=_texto_obrigatorio(nome, "nome"),
            descricao=(descricao or "").strip(),
            local=(local or "").strip(),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TenantEntity):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass
class FilaEntity:
    """
    Entidade de Domínio: Fila.

    Invariantes:
    - Pertence a exatamente um tenant
    - tipos_aceitos referencia apenas definições com máquina de estados
      (conferido pelos use cases, que têm acesso ao Schema Registry)
    - Tickets já existentes continuam na fila quando ela é desativada

    Attributes:
        id: Identificador externo (UUIDv7)
        tenant_id: Tenant dono
        nome: Nome da fila (ex: "Registration")
        descricao: Descrição opcional
        tipos_aceitos: IDs das definições de tipo aceitas
        ativo: Fila aceitando novos tickets
        ordem_exibicao: Ordem de apresentação entre as filas do tenant
        max_espera_minutos: Espera máxima anunciada (opcional)

    Example:
        fila = FilaEntity.criar(tenant.id, "Dining Queue", tipos_aceitos=[tipo.id])
        fila.garantir_aceita_novos(tipo.id)
    """

    id: str = field(default_factory=novo_id)
    tenant_id: str = ""
    nome: str = ""
    descricao: str = ""
    tipos_aceitos: Tuple[str, ...] = ()
    ativo: bool = True
    ordem_exibicao: int = 0
    max_espera_minutos: Optional[int] = None
    criado_em: datetime = field(default_factory=agora)
    atualizado_em: datetime = field(default_factory=agora)

    @classmethod
    def criar(
        cls,
        tenant_id: str,
        nome: str,
        descricao: str = "",
        tipos_aceitos: Iterable[str] = (),
        ordem_exibicao: int = 0,
        max_espera_minutos: Optional[int] = None,
    ) -> "FilaEntity":
        """
        Factory method com validações.

        Raises:
            ValidationError: Dados de entrada inválidos
        """
        if not tenant_id:
            raise ValidationError("Tenant é obrigatório", field="tenant_id")
        if max_espera_minutos is not None and max_espera_minutos <= 0:
            raise ValidationError(
                "Espera máxima deve ser positiva", field="max_espera_minutos"
            )

        return cls(
            tenant_id=tenant_id,
            nome=_texto_obrigatorio(nome, "nome"),
            descricao=(descricao or "").strip(),
            tipos_aceitos=tuple(dict.fromkeys(tipos_aceitos)),
            ordem_exibicao=ordem_exibicao,
            max_espera_minutos=max_espera_minutos,
        )

    def aceita(self, definicao_id: str) -> bool:
        return definicao_id in self.tipos_aceitos

    def garantir_aceita_novos(self, definicao_id: str) -> None:
        """
        Verifica se a fila pode receber um novo ticket do tipo.

        Raises:
            QueueInactiveError: Fila desativada
            TypeNotAllowedError: Tipo fora de tipos_aceitos
        """
        if not self.ativo:
            raise QueueInactiveError(self.id)
        if not self.aceita(definicao_id):
            raise TypeNotAllowedError(
                f"Fila {self.nome} não aceita o tipo {definicao_id}",
                type_definition_id=definicao_id,
            )

    def ativar(self) -> None:
        if self.ativo:
            raise BusinessRuleViolationError(
                f"Fila {self.id} já está ativa", rule="fila_ja_ativa"
            )
        self.ativo = True
        self._atualizar_timestamp()

    def desativar(self) -> None:
        if not self.ativo:
            raise BusinessRuleViolationError(
                f"Fila {self.id} já está desativada", rule="fila_ja_inativa"
            )
        self.ativo = False
        self._atualizar_timestamp()

    def definir_tipos_aceitos(self, tipos: Iterable[str]) -> None:
        self.tipos_aceitos = tuple(dict.fromkeys(tipos))
        self._atualizar_timestamp()

    def _atualizar_timestamp(self) -> None:
        self.atualizado_em = agora()

    def __repr__(self) -> str:
        return f"FilaEntity(id={self.id[:8]}..., nome='{self.nome}', ativo={self.ativo})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FilaEntity):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass
class FuncionarioEntity:
    """Entidade de Domínio: Funcionário que opera tickets de um tenant."""

    id: str = field(default_factory=novo_id)
    tenant_id: str = ""
    nome: str = ""
    sobrenome: str = ""
    email: str = ""
    cargo: str = ""
    ativo: bool = True
    criado_em: datetime = field(default_factory=agora)
    atualizado_em: datetime = field(default_factory=agora)

    @classmethod
    def criar(
        cls,
        tenant_id: str,
        nome: str,
        sobrenome: str,
        email: str,
        cargo: str = "",
    ) -> "FuncionarioEntity":
        if not tenant_id:
            raise ValidationError("Tenant é obrigatório", field="tenant_id")
        email = (email or "").strip().lower()
        if not EMAIL_REGEX.match(email):
            raise ValidationError(f"Email inválido: {email}", field="email")

        return cls(
            tenant_id=tenant_id,
            nome=_texto_obrigatorio(nome, "nome", maximo=100),
            sobrenome=_texto_obrigatorio(sobrenome, "sobrenome", maximo=100),
            email=email,
            cargo=(cargo or "").strip(),
        )

    @property
    def nome_completo(self) -> str:
        return f"{self.nome} {self.sobrenome}"

    def desativar(self) -> None:
        if not self.ativo:
            raise BusinessRuleViolationError(
                f"Funcionário {self.id} já está desativado",
                rule="funcionario_ja_inativo",
            )
        self.ativo = False
        self.atualizado_em = agora()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FuncionarioEntity):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)
