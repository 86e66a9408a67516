"""
Testes da API JSON (/tickets/api/).

Coverage:
- Envelope {success, data/error, meta}
- Mapeamento de exceções para status HTTP
- Fluxo completo: definição, fila, ticket, transições, histórico
- Isolamento por tenant (header X-Tenant-ID)
"""

import json

import pytest
from django.test import Client

from tests.core.fakes import documento_abc, documento_item, documento_pedido

pytestmark = [pytest.mark.django_db, pytest.mark.integration]

API = "/tickets/api/"


class ClienteTenant:
    """Client Django que envia JSON e o header do tenant."""

    def __init__(self, tenant_id=None):
        self.client = Client()
        self.tenant_id = tenant_id

    def _headers(self):
        return {"HTTP_X_TENANT_ID": self.tenant_id} if self.tenant_id else {}

    def get(self, url, params=None):
        return self.client.get(API + url, params or {}, **self._headers())

    def post(self, url, body=None):
        return self.client.post(
            API + url, json.dumps(body or {}), content_type="application/json", **self._headers()
        )

    def put(self, url, body=None):
        return self.client.put(
            API + url, json.dumps(body or {}), content_type="application/json", **self._headers()
        )

    def delete(self, url):
        return self.client.delete(API + url, **self._headers())


def _criado(response):
    assert response.status_code == 201, response.content
    corpo = response.json()
    assert corpo["success"] is True
    return corpo["data"]


@pytest.fixture
def anonimo():
    return ClienteTenant()


@pytest.fixture
def tenant_id(anonimo):
    return _criado(anonimo.post("tenants/", {"name": "Downtown Seattle Coffee"}))["id"]


@pytest.fixture
def api(tenant_id):
    return ClienteTenant(tenant_id)


@pytest.fixture
def outro_api(anonimo):
    return ClienteTenant(_criado(anonimo.post("tenants/", {"name": "Seattle DMV"}))["id"])


@pytest.fixture
def tipo_abc(api):
    return _criado(api.post("definicoes/", documento_abc()))


@pytest.fixture
def tipo_item(api):
    return _criado(api.post("definicoes/", documento_item()))


@pytest.fixture
def tipo_pedido(api, tipo_item):
    return _criado(api.post("definicoes/", documento_pedido(nestedItemTypeIds=[tipo_item["id"]])))


@pytest.fixture
def fila(api, tipo_abc, tipo_pedido):
    return _criado(api.post("filas/", {
        "name": "Main Queue",
        "acceptedTypeIds": [tipo_abc["id"], tipo_pedido["id"]],
    }))


@pytest.fixture
def ticket(api, fila, tipo_abc):
    return _criado(api.post("", {"queueId": fila["id"], "typeDefinitionId": tipo_abc["id"]}))


class TestEnvelope:
    def test_health_check(self):
        response = Client().get("/health/")
        assert response.json() == {"status": "ok"}

    def test_tenant_obrigatorio(self, anonimo):
        response = anonimo.get("filas/")

        assert response.status_code == 400
        corpo = response.json()
        assert corpo["success"] is False
        assert corpo["error"]["error"] == "VALIDATION_ERROR_TENANT_ID"
        assert corpo["meta"] == {"field": "tenant_id"}

    def test_json_invalido(self, api):
        response = api.client.post(
            API + "filas/", "{nao e json", content_type="application/json",
            HTTP_X_TENANT_ID=api.tenant_id,
        )
        assert response.status_code == 400
        assert response.json()["error"]["field"] == "body"


class TestDefinicoesAPI:
    def test_registrar_e_obter(self, api, tipo_abc):
        response = api.get(f"definicoes/{tipo_abc['id']}/")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["typeCode"] == "abc"
        assert data["systemDefined"] is False
        assert data["stateMachine"]["initialState"] == "A"

    def test_definicao_invalida_e_422(self, api):
        documento = documento_abc()
        documento["stateMachine"]["initialState"] = "Z"

        response = api.post("definicoes/", documento)

        assert response.status_code == 422
        assert response.json()["error"]["error"] == "INVALID_DEFINITION"

    def test_codigo_duplicado(self, api, tipo_abc):
        response = api.post("definicoes/", documento_abc())

        assert response.status_code == 422
        assert response.json()["meta"]["rule"] == "codigo_duplicado"

    def test_definicao_de_outro_tenant_e_404(self, outro_api, tipo_abc):
        assert outro_api.get(f"definicoes/{tipo_abc['id']}/").status_code == 404

    def test_listar_e_desativar(self, api, tipo_abc, tipo_item):
        assert api.get("definicoes/").json()["meta"]["total"] == 2

        response = api.delete(f"definicoes/{tipo_item['id']}/")

        assert response.json()["data"]["active"] is False
        assert [d["id"] for d in api.get("definicoes/").json()["data"]] == [tipo_abc["id"]]
        assert api.get("definicoes/", {"includeInactive": "true"}).json()["meta"]["total"] == 2


class TestTicketsAPI:
    def test_criar_ticket(self, ticket, fila, tipo_abc):
        assert ticket["currentState"] == "A"
        assert ticket["queueId"] == fila["id"]
        assert ticket["typeDefinitionId"] == tipo_abc["id"]
        assert ticket["queuePosition"] == 0
        assert ticket["version"] == 1

    def test_payload_invalido_e_400_com_caminho(self, api, fila, tipo_pedido):
        response = api.post("", {
            "queueId": fila["id"],
            "typeDefinitionId": tipo_pedido["id"],
            "payload": {"table_number": "doze"},
        })

        assert response.status_code == 400
        erro = response.json()["error"]
        assert erro["field"] == "order_type"
        assert {d["field"] for d in erro["details"]} == {"order_type", "table_number"}

    def test_campo_obrigatorio(self, api, fila):
        response = api.post("", {"queueId": fila["id"]})

        assert response.status_code == 400
        assert response.json()["meta"]["field"] == "typeDefinitionId"

    def test_sequencia_de_transicoes(self, api, ticket):
        url = f"{ticket['id']}/transicionar/"

        primeira = api.post(url, {"transitionName": "t1"})
        assert primeira.status_code == 200
        assert primeira.json()["data"] == {"currentState": "B", "previousState": "A"}

        repetida = api.post(url, {"transitionName": "t1"})
        assert repetida.status_code == 409
        erro = repetida.json()["error"]
        assert erro["error"] == "INVALID_TRANSITION"
        assert erro["currentState"] == "B"
        assert erro["validTransitions"] == ["t2"]

        assert api.post(url, {"transitionName": "t2"}).json()["data"]["currentState"] == "C"

        historico = api.get(f"{ticket['id']}/historico/").json()["data"]
        assert [(r["previousState"], r["newState"]) for r in historico] == [
            (None, "A"), ("A", "B"), ("B", "C"),
        ]

    def test_transicao_desconhecida(self, api, ticket):
        response = api.post(f"{ticket['id']}/transicionar/", {"transitionName": "voar"})

        assert response.status_code == 409
        assert response.json()["error"]["error"] == "UNKNOWN_TRANSITION"

    def test_ticket_de_outro_tenant_e_403(self, outro_api, ticket):
        response = outro_api.get(f"{ticket['id']}/")

        assert response.status_code == 403
        assert response.json()["error"]["error"] == "FORBIDDEN"

    def test_ticket_inexistente(self, api):
        assert api.get("nao-existe/").status_code == 404

    def test_cancelar_sem_transicao_de_cancelamento(self, api, ticket):
        response = api.post(f"{ticket['id']}/cancelar/", {"reason": "desistiu"})

        assert response.status_code == 422
        assert response.json()["error"]["error"] == "NO_CANCELLATION_AVAILABLE"

    def test_cancelar_pedido(self, api, fila, tipo_pedido):
        pedido = _criado(api.post("", {
            "queueId": fila["id"],
            "typeDefinitionId": tipo_pedido["id"],
            "payload": {"order_type": "mobile"},
        }))

        response = api.post(f"{pedido['id']}/cancelar/", {"reason": "desistiu"})

        assert response.status_code == 200
        assert response.json()["data"]["currentState"] == "cancelled"
        assert response.json()["data"]["cancelledAt"] is not None


class TestFilaAPI:
    def test_consulta_paginada_na_ordem_da_fila(self, api, fila, tipo_abc):
        ids = [
            _criado(api.post("", {"queueId": fila["id"], "typeDefinitionId": tipo_abc["id"]}))["id"]
            for _ in range(3)
        ]
        api.post(f"{ids[2]}/reordenar/", {"newPosition": 0})

        response = api.get(f"filas/{fila['id']}/tickets/", {"limit": 2})

        corpo = response.json()
        assert [t["id"] for t in corpo["data"]] == [ids[2], ids[0]]
        assert corpo["meta"] == {"total": 3, "limit": 2, "offset": 0, "hasNext": True}

    def test_filtro_por_estado_e_contagem(self, api, fila, ticket, tipo_abc):
        outro = _criado(api.post("", {"queueId": fila["id"], "typeDefinitionId": tipo_abc["id"]}))
        api.post(f"{outro['id']}/transicionar/", {"transitionName": "t1"})

        response = api.get(f"filas/{fila['id']}/tickets/", {"state": "B"})
        assert [t["id"] for t in response.json()["data"]] == [outro["id"]]

        assert api.get(f"filas/{fila['id']}/contagem/", {"state": "A,B"}).json()["data"]["count"] == 2

    def test_atualizar_tipos_aceitos(self, api, fila, tipo_abc):
        response = api.put(f"filas/{fila['id']}/tipos/", {"acceptedTypeIds": [tipo_abc["id"]]})

        assert response.status_code == 200
        assert response.json()["data"]["acceptedTypeIds"] == [tipo_abc["id"]]

    def test_limite_invalido(self, api, fila):
        response = api.get(f"filas/{fila['id']}/tickets/", {"limit": 500})
        assert response.status_code == 400

    def test_fila_inativa_rejeita_ticket(self, api, fila, tipo_abc):
        api.post(f"filas/{fila['id']}/status/", {"active": False})

        response = api.post("", {"queueId": fila["id"], "typeDefinitionId": tipo_abc["id"]})

        assert response.status_code == 422
        assert response.json()["error"]["error"] == "QUEUE_INACTIVE"

    def test_encaminhar(self, api, fila, ticket, tipo_abc):
        destino = _criado(api.post("filas/", {
            "name": "Pickup Counter", "acceptedTypeIds": [tipo_abc["id"]],
        }))

        response = api.post(f"{ticket['id']}/encaminhar/", {"targetQueueId": destino["id"]})

        data = response.json()["data"]
        assert data["queueId"] == destino["id"]
        assert data["previousQueueId"] == fila["id"]
        assert data["currentState"] == "A"


class TestItensAPI:
    def test_adicionar_e_transicionar_item(self, api, fila, tipo_pedido, tipo_item):
        pedido = _criado(api.post("", {
            "queueId": fila["id"],
            "typeDefinitionId": tipo_pedido["id"],
            "payload": {"order_type": "in_store", "table_number": 4},
        }))
        item = _criado(api.post(f"{pedido['id']}/itens/", {
            "itemTypeId": tipo_item["id"],
            "payload": {"size": "L"},
            "quantity": 2,
            "unitPrice": "4.50",
        }))
        assert item["currentState"] == "pending"
        assert item["unitPrice"] == "4.50"

        response = api.post(
            f"{pedido['id']}/itens/{item['id']}/transicionar/", {"transitionName": "prepare"}
        )
        assert response.json()["data"]["currentState"] == "preparing"

        historico = api.get(f"{pedido['id']}/itens/{item['id']}/historico/").json()["data"]
        assert [r["newState"] for r in historico] == ["pending", "preparing"]
        assert [i["id"] for i in api.get(f"{pedido['id']}/itens/").json()["data"]] == [item["id"]]
