"""
Testes do núcleo compartilhado: retry, identificadores, isolamento e exceções.
"""

import logging
import uuid

import pytest

from src.core.shared.exceptions import (
    InternalError,
    InvalidTransitionError,
    RepositoryError,
    TenantMismatchError,
    ValidationError,
)
from src.core.shared.identificadores import agora, novo_id, timestamp_do_id
from src.core.shared.isolamento import exigir_tenant, garantir_mesmo_tenant
from src.core.shared.retry import SEM_RETRY, RetryPolicy


class TestRetryPolicy:
    def test_repete_falha_transitoria(self):
        tentativas = []
        esperas = []

        def operacao():
            tentativas.append(1)
            if len(tentativas) < 3:
                raise RepositoryError("conexão perdida", transient=True)
            return "ok"

        politica = RetryPolicy(max_tentativas=3, backoff_inicial=0.1)

        assert politica.executar(operacao, "teste", dormir=esperas.append) == "ok"
        assert len(tentativas) == 3
        assert esperas == [0.1, 0.2]

    def test_esgota_tentativas_vira_internal_error(self, caplog):
        def operacao():
            raise RepositoryError("deadlock", transient=True)

        with caplog.at_level(logging.ERROR, logger="src.core.shared.retry"):
            with pytest.raises(InternalError) as exc:
                RetryPolicy(max_tentativas=2).executar(operacao, "gravar", dormir=lambda s: None)

        assert not isinstance(exc.value, RepositoryError)
        assert "2 tentativas" in caplog.text

    def test_falha_permanente_nao_e_repetida(self):
        tentativas = []

        def operacao():
            tentativas.append(1)
            raise RepositoryError("constraint", transient=False)

        with pytest.raises(RepositoryError):
            RetryPolicy().executar(operacao, dormir=lambda s: None)
        assert len(tentativas) == 1

    def test_erro_de_negocio_nunca_e_repetido(self):
        tentativas = []

        def operacao():
            tentativas.append(1)
            raise InvalidTransitionError("t1", "B", ["t2"])

        with pytest.raises(InvalidTransitionError):
            RetryPolicy().executar(operacao, dormir=lambda s: None)
        assert len(tentativas) == 1

    def test_backoff_limitado(self):
        politica = RetryPolicy(backoff_inicial=1.0, fator=10.0, backoff_maximo=3.0)
        assert politica.espera(1) == 1.0
        assert politica.espera(3) == 3.0

    def test_sem_retry(self):
        def operacao():
            raise RepositoryError("timeout", transient=True)

        with pytest.raises(InternalError):
            SEM_RETRY.executar(operacao, dormir=lambda s: pytest.fail("não deveria esperar"))


class TestIdentificadores:
    def test_formato_uuid7(self):
        identificador = novo_id()
        valor = uuid.UUID(identificador)
        assert valor.version == 7
        assert len(identificador) == 36

    def test_monotonico_no_mesmo_processo(self):
        ids = [novo_id() for _ in range(2000)]
        assert ids == sorted(ids)
        assert len(set(ids)) == len(ids)

    def test_timestamp_embutido(self):
        antes = agora()
        momento = timestamp_do_id(novo_id())
        assert abs((momento - antes).total_seconds()) < 5

    def test_agora_com_fuso(self):
        assert agora().tzinfo is not None


class TestIsolamento:
    def test_exigir_tenant(self):
        assert exigir_tenant("t1") == "t1"
        with pytest.raises(ValidationError):
            exigir_tenant(None)

    def test_mesmo_tenant(self):
        garantir_mesmo_tenant("t1", "t1", "Fila", "f1")

    def test_tenant_divergente_registrado(self, caplog):
        with caplog.at_level(logging.WARNING, logger="src.core.security"):
            with pytest.raises(TenantMismatchError) as exc:
                garantir_mesmo_tenant("t1", "t2", "Ticket", "tk-1", "transicionar")

        assert exc.value.code == "FORBIDDEN"
        assert exc.value.resource_id == "tk-1"
        registro = caplog.records[0]
        assert registro.name == "src.core.security"
        assert "operacao=transicionar" in registro.getMessage()


class TestExcecoes:
    def test_internal_error_nao_expoe_detalhe(self):
        erro = RepositoryError("senha do banco expirada", transient=True)
        assert "senha" not in str(erro.to_dict())

    def test_validation_error_serializa_campo(self):
        erro = ValidationError("inválido", field="vin", reason="curto")
        assert erro.to_dict() == {
            "error": "VALIDATION_ERROR_VIN",
            "message": "inválido",
            "field": "vin",
            "reason": "curto",
        }

    def test_invalid_transition_lista_validas_ordenadas(self):
        erro = InvalidTransitionError("start", "ready", ["pick_up", "cancel"])
        assert erro.to_dict()["validTransitions"] == ["cancel", "pick_up"]
