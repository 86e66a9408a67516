"""
Entidades do Domínio de Definições de Tipo.

Uma Definição de Tipo declara um "tipo" de ticket ou item: código,
schema estrutural do payload, máquina de estados e os tipos que podem
ser aninhados como itens. O documento bruto é interpretado uma única
vez (`DefinicaoTipoEntity.from_documento`) e a entidade resultante
carrega apenas representações tipadas.

Regras de Negócio Encapsuladas:
- Código obrigatório, único por tenant (ou global para tipos de sistema)
- Máquina de estados validada na configuração
- Schema estrutural verificado como JSON Schema válido
- Nunca removida: apenas desativada
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Tuple
import copy
import re

from src.core.shared.exceptions import (
    BusinessRuleViolationError,
    InvalidDefinitionError,
)
from src.core.shared.identificadores import agora, novo_id

from .maquina_estados import MaquinaEstados
from .validador import ValidadorEstrutural


CODIGO_REGEX = re.compile(r"^[a-z][a-z0-9_]{0,63}$")


@dataclass
class DefinicaoTipoEntity:
    """
    Entidade de Domínio: Definição de Tipo.

    Invariantes:
    - codigo segue o padrão snake_case (até 64 caracteres)
    - maquina, quando presente, já foi validada (estado inicial no
      conjunto, transições entre estados conhecidos, (nome, origem) único)
    - schema, quando presente, é um JSON Schema válido
    - tenant_id None significa tipo de sistema, visível a todos os tenants

    Attributes:
        id: Identificador externo (UUIDv7)
        tenant_id: Tenant dono (None = sistema)
        codigo: Código do tipo (ex: "food_order")
        nome: Nome legível
        descricao: Descrição opcional
        schema: JSON Schema do payload (None aceita qualquer payload)
        maquina: Máquina de estados (None = tipo usado apenas como item)
        tipos_item_ids: IDs dos tipos aceitos como itens aninhados
        sistema: Definido pelo sistema (não editável por tenants)
        ativo: Flag de desativação lógica
    """

    id: str = field(default_factory=novo_id)
    tenant_id: Optional[str] = None
    codigo: str = ""
    nome: str = ""
    descricao: str = ""
    schema: Optional[Dict[str, Any]] = None
    maquina: Optional[MaquinaEstados] = None
    tipos_item_ids: Tuple[str, ...] = ()
    sistema: bool = False
    ativo: bool = True
    criado_em: datetime = field(default_factory=agora)
    atualizado_em: datetime = field(default_factory=agora)

    @classmethod
    def from_documento(
        cls,
        documento: Mapping[str, Any],
        tenant_id: Optional[str],
        definicao_id: Optional[str] = None,
    ) -> "DefinicaoTipoEntity":
        """
        Interpreta e valida o documento da definição.

        Documento:
            {
                "typeCode": "dmv_registration",
                "typeName": "Vehicle Registration",
                "description": "...",                    # opcional
                "structuralSchema": {...},               # opcional
                "stateMachine": {...},                   # opcional (só itens)
                "nestedItemTypeIds": ["..."]             # opcional
            }

        Raises:
            InvalidDefinitionError: Documento malformado
        """
        if not isinstance(documento, Mapping):
            raise InvalidDefinitionError("Documento da definição deve ser um objeto")

        codigo = documento.get("typeCode")
        if not isinstance(codigo, str) or not CODIGO_REGEX.match(codigo):
            raise InvalidDefinitionError(
                "typeCode deve ser snake_case com até 64 caracteres", field="typeCode"
            )

        nome = documento.get("typeName")
        if not isinstance(nome, str) or not nome.strip():
            raise InvalidDefinitionError("typeName é obrigatório", field="typeName")

        descricao = documento.get("description") or ""
        if not isinstance(descricao, str):
            raise InvalidDefinitionError("description deve ser texto", field="description")

        schema = documento.get("structuralSchema")
        ValidadorEstrutural.verificar_schema(schema)

        bruto_maquina = documento.get("stateMachine")
        maquina = MaquinaEstados.from_dict(bruto_maquina) if bruto_maquina is not None else None

        tipos_item = documento.get("nestedItemTypeIds") or []
        if not isinstance(tipos_item, (list, tuple)) or not all(
            isinstance(t, str) and t for t in tipos_item
        ):
            raise InvalidDefinitionError(
                "nestedItemTypeIds deve ser uma lista de IDs", field="nestedItemTypeIds"
            )

        entidade = cls(
            tenant_id=tenant_id,
            codigo=codigo,
            nome=nome.strip(),
            descricao=descricao.strip(),
            schema=copy.deepcopy(dict(schema)) if schema is not None else None,
            maquina=maquina,
            tipos_item_ids=tuple(dict.fromkeys(tipos_item)),
            sistema=tenant_id is None,
        )
        if definicao_id:
            entidade.id = definicao_id
        return entidade

    def to_documento(self) -> Dict[str, Any]:
        """Documento da definição (inverso de from_documento)."""
        documento: Dict[str, Any] = {
            "typeCode": self.codigo,
            "typeName": self.nome,
        }
        if self.descricao:
            documento["description"] = self.descricao
        if self.schema is not None:
            documento["structuralSchema"] = copy.deepcopy(self.schema)
        if self.maquina is not None:
            documento["stateMachine"] = self.maquina.to_dict()
        if self.tipos_item_ids:
            documento["nestedItemTypeIds"] = list(self.tipos_item_ids)
        return documento

    # =========================================================================
    # Regras
    # =========================================================================

    @property
    def possui_maquina(self) -> bool:
        return self.maquina is not None

    def visivel_para(self, tenant_id: str) -> bool:
        """Tipos de sistema são visíveis a todos; os demais, só ao dono."""
        return self.tenant_id is None or self.tenant_id == tenant_id

    def aceita_item(self, tipo_item_id: str) -> bool:
        return tipo_item_id in self.tipos_item_ids

    def substituir_por(self, nova: "DefinicaoTipoEntity") -> None:
        """
        Aplica uma nova versão do documento mantendo identidade.

        O código não pode mudar: tickets e integrações externas
        referenciam o tipo por ele.
        """
        if not self.ativo:
            raise BusinessRuleViolationError(
                f"Definição {self.id} está desativada",
                rule="definicao_inativa",
            )
        if nova.codigo != self.codigo:
            raise InvalidDefinitionError(
                "typeCode não pode ser alterado", field="typeCode"
            )
        self.nome = nova.nome
        self.descricao = nova.descricao
        self.schema = nova.schema
        self.maquina = nova.maquina
        self.tipos_item_ids = nova.tipos_item_ids
        self.atualizado_em = agora()

    def desativar(self) -> None:
        if not self.ativo:
            raise BusinessRuleViolationError(
                f"Definição {self.id} já está desativada",
                rule="definicao_ja_inativa",
            )
        self.ativo = False
        self.atualizado_em = agora()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DefinicaoTipoEntity):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)
