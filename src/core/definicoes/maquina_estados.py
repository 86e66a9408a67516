"""
Transition Engine - Máquina de Estados declarativa.

A máquina de estados de um tipo é dado, não código: é lida do
documento da definição uma única vez e convertida em tabelas
explícitas (estados, transições por nome e por origem). Definições
malformadas são rejeitadas aqui, no momento da configuração, nunca
descobertas durante uma transição.

Formato do documento:
    {
        "initialState": "received",
        "states": ["received", "in_progress", "ready", "picked_up", "cancelled"],
        "transitions": [
            {"name": "start", "from": "received", "to": "in_progress"},
            {"name": "cancel", "from": "received", "to": "cancelled"},
            {"name": "cancel", "from": "in_progress", "to": "cancelled"}
        ],
        "lifecycleStates": {"ready": ["ready"]},      # opcional
        "cancelTransitions": ["cancel"]               # opcional
    }

Regra de desempate: o par (nome, origem) é único. O mesmo nome pode
partir de estados diferentes ("cancel" acima), mas duas transições
com o mesmo nome e a mesma origem tornam a definição ambígua.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from src.core.shared.exceptions import (
    InvalidDefinitionError,
    InvalidTransitionError,
    UnknownTransitionError,
)


# Chaves aceitas em "lifecycleStates" e o conjunto padrão de cada uma
CICLO_VIDA_PADRAO: Dict[str, FrozenSet[str]] = {
    "started": frozenset({"in_progress"}),
    "ready": frozenset({"ready"}),
    "pickedUp": frozenset({"picked_up"}),
    "completed": frozenset({"completed", "picked_up", "cancelled", "canceled"}),
    "cancelled": frozenset({"cancelled", "canceled"}),
}

NOME_CANCELAMENTO_PADRAO = "cancel"


@dataclass(frozen=True)
class Transicao:
    """Uma transição nomeada de um estado para outro."""

    nome: str
    origem: str
    destino: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.nome, "from": self.origem, "to": self.destino}


@dataclass(frozen=True)
class EstadosCicloVida:
    """
    Estados que disparam carimbos de data no ticket/item.

    Attributes:
        iniciado: Entrada carimba started_at
        pronto: Entrada carimba ready_at
        retirado: Entrada carimba picked_up_at
        concluido: Entrada carimba completed_at e a espera real
        cancelado: Entrada carimba cancelled_at
    """

    iniciado: FrozenSet[str] = CICLO_VIDA_PADRAO["started"]
    pronto: FrozenSet[str] = CICLO_VIDA_PADRAO["ready"]
    retirado: FrozenSet[str] = CICLO_VIDA_PADRAO["pickedUp"]
    concluido: FrozenSet[str] = CICLO_VIDA_PADRAO["completed"]
    cancelado: FrozenSet[str] = CICLO_VIDA_PADRAO["cancelled"]

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "started": sorted(self.iniciado),
            "ready": sorted(self.pronto),
            "pickedUp": sorted(self.retirado),
            "completed": sorted(self.concluido),
            "cancelled": sorted(self.cancelado),
        }


@dataclass(frozen=True)
class MaquinaEstados:
    """
    Representação tipada e imutável da máquina de estados de um tipo.

    Construída apenas por `MaquinaEstados.from_dict`, que valida o
    documento. Todas as consultas são O(1) ou O(transições do estado).

    Attributes:
        estado_inicial: Estado em que tickets/itens nascem
        estados: Conjunto finito de estados declarados (ordem do documento)
        transicoes: Transições declaradas
        ciclo_vida: Estados que carimbam datas de ciclo de vida
        transicoes_cancelamento: Nomes explicitamente marcados como
            cancelamento (vazio = convenção)
    """

    estado_inicial: str
    estados: Tuple[str, ...]
    transicoes: Tuple[Transicao, ...]
    ciclo_vida: EstadosCicloVida = field(default_factory=EstadosCicloVida)
    transicoes_cancelamento: FrozenSet[str] = frozenset()
    ciclo_vida_explicito: Tuple[str, ...] = ()

    def __post_init__(self):
        por_chave = {(t.nome, t.origem): t for t in self.transicoes}
        por_origem: Dict[str, List[Transicao]] = {}
        for t in self.transicoes:
            por_origem.setdefault(t.origem, []).append(t)
        object.__setattr__(self, "_por_chave", por_chave)
        object.__setattr__(self, "_por_origem", por_origem)
        object.__setattr__(self, "_nomes", frozenset(t.nome for t in self.transicoes))

    # =========================================================================
    # Consultas
    # =========================================================================

    def possui_estado(self, estado: Optional[str]) -> bool:
        return estado in self.estados

    def possui_transicao(self, nome: str) -> bool:
        return nome in self._nomes

    def buscar(self, nome: str, origem: str) -> Optional[Transicao]:
        return self._por_chave.get((nome, origem))

    def transicoes_de(self, estado: str) -> List[str]:
        """Nomes das transições que partem de `estado`, ordenados."""
        return sorted({t.nome for t in self._por_origem.get(estado, [])})

    def e_final(self, estado: str) -> bool:
        """Estado sem transições de saída."""
        return not self._por_origem.get(estado)

    def e_encerrado(self, estado: str) -> bool:
        """Estado de conclusão, cancelamento ou sem saída."""
        return (
            estado in self.ciclo_vida.concluido
            or estado in self.ciclo_vida.cancelado
            or self.e_final(estado)
        )

    def transicao_cancelamento(self, estado: str) -> Optional[Transicao]:
        """
        Transição de cancelamento disponível a partir de `estado`.

        Se o documento declarar "cancelTransitions", apenas esses nomes
        contam; senão vale a convenção: nome "cancel" ou destino em um
        estado de cancelamento.
        """
        candidatas = sorted(self._por_origem.get(estado, []), key=lambda t: t.nome)
        for t in candidatas:
            if self.transicoes_cancelamento:
                if t.nome in self.transicoes_cancelamento:
                    return t
            elif t.nome == NOME_CANCELAMENTO_PADRAO or t.destino in self.ciclo_vida.cancelado:
                return t
        return None

    # =========================================================================
    # Serialização
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        documento: Dict[str, Any] = {
            "initialState": self.estado_inicial,
            "states": list(self.estados),
            "transitions": [t.to_dict() for t in self.transicoes],
        }
        if self.ciclo_vida_explicito:
            completo = self.ciclo_vida.to_dict()
            documento["lifecycleStates"] = {
                chave: completo[chave] for chave in self.ciclo_vida_explicito
            }
        if self.transicoes_cancelamento:
            documento["cancelTransitions"] = sorted(self.transicoes_cancelamento)
        return documento

    @classmethod
    def from_dict(cls, documento: Mapping[str, Any]) -> "MaquinaEstados":
        """
        Valida e converte o documento da máquina de estados.

        Raises:
            InvalidDefinitionError: Estado inicial fora do conjunto,
                transição referenciando estado desconhecido, par
                (nome, origem) duplicado, campos ausentes ou com tipo errado
        """
        if not isinstance(documento, Mapping):
            raise InvalidDefinitionError(
                "stateMachine deve ser um objeto", field="stateMachine"
            )

        estados = _lista_de_strings(documento.get("states"), "stateMachine.states")
        if not estados:
            raise InvalidDefinitionError(
                "stateMachine.states deve declarar ao menos um estado",
                field="stateMachine.states",
            )
        if len(set(estados)) != len(estados):
            raise InvalidDefinitionError(
                "stateMachine.states contém estados duplicados",
                field="stateMachine.states",
            )

        inicial = documento.get("initialState")
        if not isinstance(inicial, str) or not inicial:
            raise InvalidDefinitionError(
                "stateMachine.initialState é obrigatório",
                field="stateMachine.initialState",
            )
        if inicial not in estados:
            raise InvalidDefinitionError(
                f"Estado inicial '{inicial}' não pertence a states",
                field="stateMachine.initialState",
            )

        transicoes = _parse_transicoes(documento.get("transitions", []), set(estados))
        ciclo_vida, explicitos = _parse_ciclo_vida(documento.get("lifecycleStates"), set(estados))

        nomes_cancelamento = frozenset(
            _lista_de_strings(documento.get("cancelTransitions", []), "stateMachine.cancelTransitions")
        )
        nomes_declarados = {t.nome for t in transicoes}
        desconhecidos = nomes_cancelamento - nomes_declarados
        if desconhecidos:
            raise InvalidDefinitionError(
                f"cancelTransitions referencia transições inexistentes: {sorted(desconhecidos)}",
                field="stateMachine.cancelTransitions",
            )

        return cls(
            estado_inicial=inicial,
            estados=tuple(estados),
            transicoes=tuple(transicoes),
            ciclo_vida=ciclo_vida,
            transicoes_cancelamento=nomes_cancelamento,
            ciclo_vida_explicito=explicitos,
        )


# =============================================================================
# Transition Engine (função pura)
# =============================================================================

def aplicar_transicao(
    maquina: Optional[MaquinaEstados],
    estado_atual: Optional[str],
    nome_transicao: str,
    codigo_tipo: Optional[str] = None,
) -> str:
    """
    Calcula o próximo estado ou rejeita a transição.

    Sem I/O e sem efeitos colaterais.

    Args:
        maquina: Máquina de estados do tipo (None = tipo sem máquina)
        estado_atual: Estado corrente do ticket/item
        nome_transicao: Nome da transição pedida
        codigo_tipo: Código do tipo (apenas para mensagens)

    Returns:
        Estado de destino

    Raises:
        UnknownTransitionError: Nenhuma transição com esse nome existe
        InvalidTransitionError: Existe, mas não parte de `estado_atual`;
            o erro lista as transições válidas a partir dele
    """
    if maquina is None or not maquina.possui_transicao(nome_transicao):
        raise UnknownTransitionError(nome_transicao, codigo_tipo)

    transicao = maquina.buscar(nome_transicao, estado_atual)
    if transicao is None:
        raise InvalidTransitionError(
            nome_transicao,
            estado_atual,
            maquina.transicoes_de(estado_atual),
        )
    return transicao.destino


# =============================================================================
# Helpers de parsing
# =============================================================================

def _lista_de_strings(valor: Any, campo: str) -> List[str]:
    if valor is None:
        return []
    if not isinstance(valor, (list, tuple)):
        raise InvalidDefinitionError(f"{campo} deve ser uma lista", field=campo)
    for item in valor:
        if not isinstance(item, str) or not item:
            raise InvalidDefinitionError(
                f"{campo} deve conter apenas textos não vazios", field=campo
            )
    return list(valor)


def _parse_transicoes(valor: Any, estados: set) -> List[Transicao]:
    campo = "stateMachine.transitions"
    if not isinstance(valor, (list, tuple)):
        raise InvalidDefinitionError(f"{campo} deve ser uma lista", field=campo)

    transicoes: List[Transicao] = []
    vistos: Dict[Tuple[str, str], Transicao] = {}

    for indice, bruto in enumerate(valor):
        local = f"{campo}[{indice}]"
        if not isinstance(bruto, Mapping):
            raise InvalidDefinitionError(f"{local} deve ser um objeto", field=local)

        partes = {}
        for chave in ("name", "from", "to"):
            texto = bruto.get(chave)
            if not isinstance(texto, str) or not texto:
                raise InvalidDefinitionError(
                    f"{local}.{chave} é obrigatório", field=f"{local}.{chave}"
                )
            partes[chave] = texto

        for chave in ("from", "to"):
            if partes[chave] not in estados:
                raise InvalidDefinitionError(
                    f"{local}.{chave} referencia estado desconhecido '{partes[chave]}'",
                    field=f"{local}.{chave}",
                )

        transicao = Transicao(nome=partes["name"], origem=partes["from"], destino=partes["to"])
        chave_unica = (transicao.nome, transicao.origem)
        if chave_unica in vistos:
            anterior = vistos[chave_unica]
            tipo = "duplicada" if anterior.destino == transicao.destino else "ambígua"
            raise InvalidDefinitionError(
                f"Transição '{transicao.nome}' a partir de '{transicao.origem}' está {tipo}",
                field=local,
            )
        vistos[chave_unica] = transicao
        transicoes.append(transicao)

    return transicoes


def _parse_ciclo_vida(
    valor: Any, estados: set
) -> Tuple[EstadosCicloVida, Tuple[str, ...]]:
    if valor is None:
        return EstadosCicloVida(), ()

    campo = "stateMachine.lifecycleStates"
    if not isinstance(valor, Mapping):
        raise InvalidDefinitionError(f"{campo} deve ser um objeto", field=campo)

    desconhecidas = set(valor) - set(CICLO_VIDA_PADRAO)
    if desconhecidas:
        raise InvalidDefinitionError(
            f"{campo} possui chaves desconhecidas: {sorted(desconhecidas)}", field=campo
        )

    conjuntos = dict(CICLO_VIDA_PADRAO)
    for chave, lista in valor.items():
        nomes = _lista_de_strings(lista, f"{campo}.{chave}")
        fora = set(nomes) - estados
        if fora:
            raise InvalidDefinitionError(
                f"{campo}.{chave} referencia estados desconhecidos: {sorted(fora)}",
                field=f"{campo}.{chave}",
            )
        conjuntos[chave] = frozenset(nomes)

    ciclo = EstadosCicloVida(
        iniciado=conjuntos["started"],
        pronto=conjuntos["ready"],
        retirado=conjuntos["pickedUp"],
        concluido=conjuntos["completed"],
        cancelado=conjuntos["cancelled"],
    )
    return ciclo, tuple(k for k in CICLO_VIDA_PADRAO if k in valor)


def validar_cobertura_estados(maquina: MaquinaEstados, estados_em_uso: Iterable[str]) -> None:
    """
    Garante que uma nova versão da máquina ainda contém os estados
    em que tickets/itens existentes se encontram.

    Raises:
        InvalidDefinitionError: Se algum estado em uso foi removido
    """
    faltando = sorted(set(e for e in estados_em_uso if e is not None) - set(maquina.estados))
    if faltando:
        raise InvalidDefinitionError(
            f"Estados em uso por tickets existentes não podem ser removidos: {faltando}",
            field="stateMachine.states",
        )
