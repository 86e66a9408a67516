"""
Structural Validator - Validação do payload livre contra o schema do tipo.

O schema estrutural de uma definição é um documento JSON Schema
(Draft 7). A validação é total e sem efeitos colaterais: nunca altera
o payload e sempre devolve um resultado, reportando todos os erros
com o caminho do campo para que o chamador corrija a requisição sem
adivinhar.

Caminhos de campo:
    "vin"                 propriedade na raiz
    "address.zip"         propriedade aninhada
    "restrictions[1]"     item de lista
    "$"                   o próprio payload
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional

from jsonschema import Draft7Validator, FormatChecker
from jsonschema.exceptions import SchemaError

from src.core.shared.exceptions import InvalidDefinitionError, ValidationError


CAMINHO_RAIZ = "$"


@dataclass(frozen=True)
class ErroCampo:
    """Um erro estrutural: caminho do campo e motivo."""

    caminho: str
    motivo: str
    regra: str = ""

    def to_dict(self) -> dict:
        return {"field": self.caminho, "reason": self.motivo, "rule": self.regra}


@dataclass(frozen=True)
class ResultadoValidacao:
    """Resultado da validação (Ok quando não há erros)."""

    erros: List[ErroCampo] = field(default_factory=list)

    @property
    def valido(self) -> bool:
        return not self.erros

    def como_excecao(self) -> ValidationError:
        """Converte em ValidationError apontando o primeiro erro."""
        primeiro = self.erros[0]
        return ValidationError(
            f"Campo '{primeiro.caminho}' inválido: {primeiro.motivo}",
            field=primeiro.caminho,
            reason=primeiro.motivo,
            details=[erro.to_dict() for erro in self.erros],
        )


def formatar_caminho(partes: Iterable[Any]) -> str:
    """Converte o caminho do jsonschema em notação "a.b[0].c"."""
    texto = ""
    for parte in partes:
        if isinstance(parte, int):
            texto += f"[{parte}]"
        else:
            texto += f".{parte}" if texto else str(parte)
    return texto or CAMINHO_RAIZ


class ValidadorEstrutural:
    """
    Valida payloads contra schemas estruturais.

    Stateless e thread-safe; a instância apenas compartilha o
    FormatChecker (datas, e-mails etc).

    Example:
        validador = ValidadorEstrutural()
        resultado = validador.validar({"make": "Honda"}, schema_registro)
        resultado.valido      # False
        resultado.erros[0]    # ErroCampo(caminho="model", ...)

        validador.garantir_valido(payload, schema)  # levanta ValidationError
    """

    def __init__(self):
        self._format_checker = FormatChecker()

    @staticmethod
    def verificar_schema(schema: Optional[Mapping[str, Any]]) -> None:
        """
        Verifica se o próprio schema é válido (usado no registro do tipo).

        Raises:
            InvalidDefinitionError: Se o schema não é um JSON Schema válido
        """
        if schema is None:
            return
        if not isinstance(schema, Mapping):
            raise InvalidDefinitionError(
                "structuralSchema deve ser um objeto", field="structuralSchema"
            )
        try:
            Draft7Validator.check_schema(schema)
        except SchemaError as e:
            raise InvalidDefinitionError(
                f"structuralSchema inválido: {e.message}", field="structuralSchema"
            ) from e

    def validar(
        self, payload: Any, schema: Optional[Mapping[str, Any]]
    ) -> ResultadoValidacao:
        """
        Valida `payload` contra `schema`.

        Schema ausente aceita qualquer payload. Os erros são
        devolvidos em ordem determinística (caminho, regra).
        """
        if schema is None:
            return ResultadoValidacao()

        validator = Draft7Validator(schema, format_checker=self._format_checker)
        erros = {}
        for erro in validator.iter_errors(payload):
            for erro_campo in self._converter(erro):
                erros.setdefault((erro_campo.caminho, erro_campo.regra), erro_campo)

        ordenados = sorted(erros.values(), key=lambda e: (e.caminho, e.regra))
        return ResultadoValidacao(erros=ordenados)

    def garantir_valido(self, payload: Any, schema: Optional[Mapping[str, Any]]) -> None:
        """
        Valida e levanta exceção no primeiro problema.

        Raises:
            ValidationError: Com caminho do campo, motivo e todos os erros
        """
        resultado = self.validar(payload, schema)
        if not resultado.valido:
            raise resultado.como_excecao()

    @staticmethod
    def _converter(erro) -> List[ErroCampo]:
        partes = list(erro.absolute_path)

        if erro.validator == "required" and isinstance(erro.instance, Mapping):
            # um erro por propriedade ausente, apontando para o próprio campo
            return [
                ErroCampo(
                    caminho=formatar_caminho(partes + [nome]),
                    motivo=f"'{nome}' is a required property",
                    regra="required",
                )
                for nome in erro.validator_value
                if nome not in erro.instance
            ]

        return [
            ErroCampo(
                caminho=formatar_caminho(partes),
                motivo=erro.message,
                regra=str(erro.validator),
            )
        ]
