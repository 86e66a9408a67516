"""
Testes do Structural Validator.
"""

import copy

import pytest

from src.core.definicoes.validador import ValidadorEstrutural, formatar_caminho
from src.core.shared.exceptions import InvalidDefinitionError, ValidationError


SCHEMA_REGISTRO = {
    "type": "object",
    "properties": {
        "vin": {"type": "string", "minLength": 17, "maxLength": 17},
        "make": {"type": "string"},
        "model": {"type": "string"},
        "year": {"type": "integer", "minimum": 1900},
        "owner": {
            "type": "object",
            "properties": {"zip": {"type": "string", "pattern": "^[0-9]{5}$"}},
            "required": ["zip"],
        },
        "restrictions": {"type": "array", "items": {"type": "string", "enum": ["A", "B"]}},
    },
    "required": ["vin", "make", "model"],
}


@pytest.fixture
def validador():
    return ValidadorEstrutural()


class TestValidar:
    def test_payload_valido(self, validador):
        resultado = validador.validar(
            {"vin": "1HGCM82633A004352", "make": "Honda", "model": "Accord", "year": 2003},
            SCHEMA_REGISTRO,
        )
        assert resultado.valido
        assert resultado.erros == []

    def test_campo_obrigatorio_ausente_aponta_o_campo(self, validador):
        resultado = validador.validar(
            {"vin": "1HGCM82633A004352", "make": "Honda"}, SCHEMA_REGISTRO
        )
        assert not resultado.valido
        assert [e.caminho for e in resultado.erros] == ["model"]
        assert resultado.erros[0].regra == "required"

    def test_todos_os_erros_sao_reportados(self, validador):
        resultado = validador.validar({"year": "dois mil"}, SCHEMA_REGISTRO)
        caminhos = {e.caminho for e in resultado.erros}
        assert caminhos == {"vin", "make", "model", "year"}

    def test_caminho_aninhado_e_de_lista(self, validador):
        payload = {
            "vin": "1HGCM82633A004352",
            "make": "Honda",
            "model": "Accord",
            "owner": {"zip": "98O01"},
            "restrictions": ["A", "Z"],
        }
        resultado = validador.validar(payload, SCHEMA_REGISTRO)
        assert [e.caminho for e in resultado.erros] == ["owner.zip", "restrictions[1]"]

    def test_payload_nao_objeto_aponta_raiz(self, validador):
        resultado = validador.validar(["lista"], SCHEMA_REGISTRO)
        assert resultado.erros[0].caminho == "$"

    def test_schema_ausente_aceita_qualquer_payload(self, validador):
        assert validador.validar({"qualquer": [1, 2, 3]}, None).valido

    def test_validacao_nao_altera_payload(self, validador):
        payload = {"vin": "curto", "make": "Honda", "owner": {}}
        original = copy.deepcopy(payload)

        validador.validar(payload, SCHEMA_REGISTRO)

        assert payload == original

    def test_erros_em_ordem_deterministica(self, validador):
        primeiro = validador.validar({}, SCHEMA_REGISTRO)
        segundo = validador.validar({}, SCHEMA_REGISTRO)
        assert primeiro.erros == segundo.erros
        assert [e.caminho for e in primeiro.erros] == ["make", "model", "vin"]


class TestGarantirValido:
    def test_levanta_validation_error_com_campo(self, validador):
        with pytest.raises(ValidationError) as exc:
            validador.garantir_valido({"vin": "1HGCM82633A004352", "make": "Honda"}, SCHEMA_REGISTRO)

        assert exc.value.field == "model"
        assert exc.value.details[0]["field"] == "model"
        assert exc.value.to_dict()["field"] == "model"

    def test_payload_valido_nao_levanta(self, validador):
        validador.garantir_valido(
            {"vin": "1HGCM82633A004352", "make": "Honda", "model": "Accord"}, SCHEMA_REGISTRO
        )


class TestVerificarSchema:
    def test_schema_invalido(self):
        with pytest.raises(InvalidDefinitionError) as exc:
            ValidadorEstrutural.verificar_schema({"type": "objeto"})
        assert exc.value.field == "structuralSchema"

    def test_schema_nao_objeto(self):
        with pytest.raises(InvalidDefinitionError):
            ValidadorEstrutural.verificar_schema(["type", "object"])

    def test_schema_ausente(self):
        ValidadorEstrutural.verificar_schema(None)


class TestFormatarCaminho:
    @pytest.mark.parametrize("partes,esperado", [
        ([], "$"),
        (["vin"], "vin"),
        (["owner", "zip"], "owner.zip"),
        (["restrictions", 1], "restrictions[1]"),
        ([0, "nome"], "[0].nome"),
    ])
    def test_formatos(self, partes, esperado):
        assert formatar_caminho(partes) == esperado
