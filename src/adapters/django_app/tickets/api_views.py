"""
API Views JSON do VirtualQ.

RESTful API para integração com frontends e sistemas externos.
O tenant chamador vem sempre no header `X-Tenant-ID`.

Endpoints (prefixo /tickets/api/):
- POST   tenants/                              - Criar tenant
- GET    definicoes/                           - Listar definições visíveis
- POST   definicoes/                           - Registrar definição
- GET    definicoes/<id>/                      - Obter definição
- PUT    definicoes/<id>/                      - Atualizar definição
- DELETE definicoes/<id>/                      - Desativar definição
- GET    filas/                                - Listar filas
- POST   filas/                                - Criar fila
- POST   filas/<id>/status/                    - Habilitar/desabilitar fila
- PUT    filas/<id>/tipos/                     - Atualizar tipos aceitos
- GET    filas/<id>/tickets/                   - Consulta da fila
- GET    filas/<id>/contagem/                  - Contagem da fila
- GET    funcionarios/                         - Listar funcionários
- POST   funcionarios/                         - Registrar funcionário
- POST   funcionarios/<id>/desativar/          - Desativar funcionário
- POST   /                                     - Criar ticket
- GET    <id>/                                 - Obter ticket
- POST   <id>/transicionar/                    - Transicionar ticket
- POST   <id>/atribuir/                        - Atribuir funcionário
- POST   <id>/encaminhar/                      - Encaminhar para outra fila
- POST   <id>/reordenar/                       - Reposicionar na fila
- POST   <id>/cancelar/                        - Cancelar ticket
- GET    <id>/historico/                       - Histórico (mais antigo primeiro)
- GET    <id>/itens/                           - Listar itens
- POST   <id>/itens/                           - Adicionar item
- POST   <id>/itens/<item_id>/transicionar/    - Transicionar item
- GET    <id>/itens/<item_id>/historico/       - Histórico do item

Formato:
- Entrada: JSON (camelCase)
- Saída: JSON com estrutura {success, data/error, meta}
"""

from datetime import datetime, timezone as dt_timezone
from typing import Any, Dict, Optional
import json
import logging

from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from src.config.container import get_container
from src.core.definicoes.dtos import (
    AtualizarDefinicaoInputDTO,
    DesativarDefinicaoInputDTO,
    RegistrarDefinicaoInputDTO,
)
from src.core.filas.dtos import (
    AlterarStatusFilaInputDTO,
    AtualizarTiposFilaInputDTO,
    CriarFilaInputDTO,
    CriarTenantInputDTO,
    DesativarFuncionarioInputDTO,
    RegistrarFuncionarioInputDTO,
)
from src.core.shared.exceptions import (
    BusinessRuleViolationError,
    ConcurrencyError,
    DomainException,
    EntityNotFoundError,
    ForbiddenError,
    InternalError,
    InvalidTransitionError,
    UnknownTransitionError,
    ValidationError,
)
from src.core.tickets.dtos import (
    AdicionarItemInputDTO,
    AtribuirFuncionarioInputDTO,
    CancelarTicketInputDTO,
    CriarTicketInputDTO,
    EncaminharTicketInputDTO,
    ListarTicketsFilaQueryDTO,
    ReordenarTicketInputDTO,
    TransicionarItemInputDTO,
    TransicionarTicketInputDTO,
)

logger = logging.getLogger(__name__)

TENANT_HEADER = "HTTP_X_TENANT_ID"


# =============================================================================
# Decorators e Helpers
# =============================================================================

def json_response(success: bool, data: Any = None, error: Any = None,
                  status: int = 200, meta: Dict = None) -> JsonResponse:
    """
    Cria resposta JSON padronizada.

    Args:
        success: Se operação foi bem sucedida
        data: Dados da resposta
        error: Corpo do erro (DomainException.to_dict)
        status: HTTP status code
        meta: Metadados adicionais
    """
    response = {'success': success}

    if data is not None:
        response['data'] = data

    if error is not None:
        response['error'] = error

    if meta is not None:
        response['meta'] = meta

    return JsonResponse(response, status=status, safe=False)


def parse_json_body(request: HttpRequest) -> Dict:
    """
    Parseia body JSON do request.

    Raises:
        ValidationError: JSON inválido ou corpo que não é objeto
    """
    if not request.body:
        return {}

    try:
        data = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError(f"JSON inválido: {e}", field="body", reason="invalid_json")

    if not isinstance(data, dict):
        raise ValidationError("Corpo da requisição deve ser um objeto JSON", field="body")
    return data


def get_tenant_id(request: HttpRequest) -> str:
    """Tenant chamador (header X-Tenant-ID)."""
    tenant_id = (request.META.get(TENANT_HEADER) or "").strip()
    if not tenant_id:
        raise ValidationError(
            "Header X-Tenant-ID é obrigatório",
            field="tenant_id",
            reason="required",
        )
    return tenant_id


def _obrigatorio(data: Dict, campo: str) -> Any:
    valor = data.get(campo)
    if valor in (None, ""):
        raise ValidationError(f"{campo} é obrigatório", field=campo, reason="required")
    return valor


def _inteiro(valor: Any, campo: str, padrao: Optional[int] = None) -> Optional[int]:
    if valor in (None, ""):
        return padrao
    try:
        return int(valor)
    except (TypeError, ValueError):
        raise ValidationError(f"{campo} deve ser inteiro", field=campo, reason="type")


def _data_hora(valor: Optional[str], campo: str) -> Optional[datetime]:
    if not valor:
        return None
    try:
        resultado = parse_datetime(valor)
    except ValueError:
        resultado = None
    if resultado is None:
        raise ValidationError(
            f"{campo} deve ser uma data ISO 8601",
            field=campo,
            reason="format",
        )
    if timezone.is_naive(resultado):
        resultado = timezone.make_aware(resultado, dt_timezone.utc)
    return resultado


def _estados(request: HttpRequest) -> tuple:
    """Estados do filtro: `?state=a&state=b` ou `?state=a,b`."""
    estados = []
    for valor in request.GET.getlist('state'):
        estados.extend(e.strip() for e in valor.split(',') if e.strip())
    return tuple(estados)


# =============================================================================
# Base API View
# =============================================================================

@method_decorator(csrf_exempt, name='dispatch')
class BaseAPIView(View):
    """
    View base para APIs JSON.

    Fornece:
    - Parsing de JSON
    - Acesso ao container DI
    - Tratamento de erros padronizado
    """

    def get_container(self):
        return get_container()

    def get_service(self, service_name: str):
        return getattr(self.get_container(), service_name)()

    def parse_body(self, request: HttpRequest) -> Dict:
        return parse_json_body(request)

    def handle_exception(self, e: Exception) -> JsonResponse:
        """
        Trata exceções e retorna resposta apropriada.

        Mapeamento:
            400 ValidationError
            403 ForbiddenError
            404 EntityNotFoundError
            409 transição inválida/desconhecida, conflito de concorrência
            422 demais regras de negócio
            500 falhas internas (mensagem genérica)
        """
        if isinstance(e, ValidationError):
            return json_response(
                success=False,
                error=e.to_dict(),
                status=400,
                meta={'field': e.field},
            )

        if isinstance(e, ForbiddenError):
            return json_response(success=False, error=e.to_dict(), status=403)

        if isinstance(e, EntityNotFoundError):
            return json_response(success=False, error=e.to_dict(), status=404)

        if isinstance(e, (InvalidTransitionError, UnknownTransitionError, ConcurrencyError)):
            return json_response(success=False, error=e.to_dict(), status=409)

        if isinstance(e, BusinessRuleViolationError):
            return json_response(
                success=False,
                error=e.to_dict(),
                status=422,
                meta={'rule': e.rule},
            )

        if isinstance(e, InternalError):
            logger.error(f"Falha interna na API: {e.message}", exc_info=e)
            return json_response(success=False, error=e.to_dict(), status=500)

        if isinstance(e, DomainException):
            return json_response(success=False, error=e.to_dict(), status=400)

        # Erro inesperado
        logger.exception(f"Erro inesperado na API: {e}")
        return json_response(
            success=False,
            error={'error': 'INTERNAL_ERROR', 'message': InternalError.PUBLIC_MESSAGE},
            status=500,
        )


# =============================================================================
# Tenants e Definições de Tipo
# =============================================================================

class TenantAPIListView(BaseAPIView):
    """POST /tickets/api/tenants/ - Cria tenant."""

    def post(self, request: HttpRequest) -> JsonResponse:
        try:
            data = self.parse_body(request)
            output = self.get_service('criar_tenant_service').execute(CriarTenantInputDTO(
                nome=data.get('name', ''),
                descricao=data.get('description', ''),
                local=data.get('locationName', ''),
            ))
            logger.info(f"API: Tenant criado: {output.id}")
            return json_response(success=True, data=output.to_dict(), status=201)

        except Exception as e:
            return self.handle_exception(e)


class DefinicaoAPIListView(BaseAPIView):
    """
    GET /tickets/api/definicoes/ - Lista definições visíveis ao tenant
    POST /tickets/api/definicoes/ - Registra definição (documento no body)
    """

    def get(self, request: HttpRequest) -> JsonResponse:
        try:
            tenant_id = get_tenant_id(request)
            apenas_ativas = request.GET.get('includeInactive') not in ('1', 'true')
            definicoes = self.get_service('listar_definicoes_service').execute(
                tenant_id, apenas_ativas=apenas_ativas
            )
            return json_response(
                success=True,
                data=[d.to_dict() for d in definicoes],
                meta={'total': len(definicoes)},
            )

        except Exception as e:
            return self.handle_exception(e)

    def post(self, request: HttpRequest) -> JsonResponse:
        try:
            tenant_id = get_tenant_id(request)
            documento = self.parse_body(request)
            output = self.get_service('registrar_definicao_service').execute(
                RegistrarDefinicaoInputDTO(tenant_id=tenant_id, documento=documento)
            )
            logger.info(f"API: Definição registrada: {output.id}")
            return json_response(success=True, data=output.to_dict(), status=201)

        except Exception as e:
            return self.handle_exception(e)


class DefinicaoAPIDetailView(BaseAPIView):
    def get(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            output = self.get_service('obter_definicao_service').execute(pk, get_tenant_id(request))
            return json_response(success=True, data=output.to_dict())

        except Exception as e:
            return self.handle_exception(e)

    def put(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            tenant_id = get_tenant_id(request)
            documento = self.parse_body(request)
            output = self.get_service('atualizar_definicao_service').execute(
                AtualizarDefinicaoInputDTO(definicao_id=pk, tenant_id=tenant_id, documento=documento)
            )
            return json_response(success=True, data=output.to_dict())

        except Exception as e:
            return self.handle_exception(e)

    def delete(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            output = self.get_service('desativar_definicao_service').execute(
                DesativarDefinicaoInputDTO(definicao_id=pk, tenant_id=get_tenant_id(request))
            )
            return json_response(success=True, data=output.to_dict())

        except Exception as e:
            return self.handle_exception(e)


# =============================================================================
# Filas e Funcionários
# =============================================================================

class FilaAPIListView(BaseAPIView):
    def get(self, request: HttpRequest) -> JsonResponse:
        try:
            apenas_ativas = request.GET.get('active') in ('1', 'true')
            filas = self.get_service('listar_filas_service').execute(
                get_tenant_id(request), apenas_ativas=apenas_ativas
            )
            return json_response(success=True, data=[f.to_dict() for f in filas])

        except Exception as e:
            return self.handle_exception(e)

    def post(self, request: HttpRequest) -> JsonResponse:
        """
        Body JSON:
        {
            "name": "string (obrigatório)",
            "acceptedTypeIds": ["id"],
            "displayOrder": 0,
            "maxWaitMinutes": null
        }
        """
        try:
            tenant_id = get_tenant_id(request)
            data = self.parse_body(request)
            output = self.get_service('criar_fila_service').execute(CriarFilaInputDTO(
                tenant_id=tenant_id,
                nome=data.get('name', ''),
                descricao=data.get('description', ''),
                tipos_aceitos=tuple(data.get('acceptedTypeIds') or ()),
                ordem_exibicao=_inteiro(data.get('displayOrder'), 'displayOrder', 0),
                max_espera_minutos=_inteiro(data.get('maxWaitMinutes'), 'maxWaitMinutes'),
            ))
            logger.info(f"API: Fila criada: {output.id}")
            return json_response(success=True, data=output.to_dict(), status=201)

        except Exception as e:
            return self.handle_exception(e)


class FilaAPIStatusView(BaseAPIView):
    """POST /tickets/api/filas/<id>/status/ - {"active": bool}"""

    def post(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            tenant_id = get_tenant_id(request)
            data = self.parse_body(request)
            ativo = _obrigatorio(data, 'active')
            if not isinstance(ativo, bool):
                raise ValidationError("active deve ser booleano", field="active", reason="type")
            output = self.get_service('alterar_status_fila_service').execute(
                AlterarStatusFilaInputDTO(tenant_id=tenant_id, fila_id=pk, ativo=ativo)
            )
            return json_response(success=True, data=output.to_dict())

        except Exception as e:
            return self.handle_exception(e)


class FilaAPITiposView(BaseAPIView):
    def put(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            tenant_id = get_tenant_id(request)
            data = self.parse_body(request)
            output = self.get_service('atualizar_tipos_fila_service').execute(
                AtualizarTiposFilaInputDTO(
                    tenant_id=tenant_id,
                    fila_id=pk,
                    tipos_aceitos=tuple(data.get('acceptedTypeIds') or ()),
                )
            )
            return json_response(success=True, data=output.to_dict())

        except Exception as e:
            return self.handle_exception(e)


class FilaAPITicketsView(BaseAPIView):
    """
    GET /tickets/api/filas/<id>/tickets/

    Query params:
    - state: Estado aceito (repetível ou separado por vírgula)
    - createdAfter: Criação a partir de (inclusivo, ISO 8601)
    - createdBefore: Criação antes de (exclusivo, ISO 8601)
    - limit: Itens por página (default: 50)
    - offset: Itens a pular (default: 0)
    """

    def get(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            query = ListarTicketsFilaQueryDTO(
                tenant_id=get_tenant_id(request),
                fila_id=pk,
                estados=_estados(request),
                criado_apos=_data_hora(request.GET.get('createdAfter'), 'createdAfter'),
                criado_antes=_data_hora(request.GET.get('createdBefore'), 'createdBefore'),
                limit=_inteiro(request.GET.get('limit'), 'limit', 50),
                offset=_inteiro(request.GET.get('offset'), 'offset', 0),
            )
            pagina = self.get_service('listar_tickets_fila_service').execute(query)
            resultado = pagina.to_dict()
            return json_response(
                success=True,
                data=resultado.pop('items'),
                meta=resultado,
            )

        except Exception as e:
            return self.handle_exception(e)


class FilaAPIContagemView(BaseAPIView):
    def get(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            contagem = self.get_service('contar_tickets_fila_service').execute(
                pk, get_tenant_id(request), estados=_estados(request)
            )
            return json_response(success=True, data=contagem)

        except Exception as e:
            return self.handle_exception(e)


class FuncionarioAPIListView(BaseAPIView):
    def get(self, request: HttpRequest) -> JsonResponse:
        try:
            funcionarios = self.get_service('listar_funcionarios_service').execute(get_tenant_id(request))
            return json_response(success=True, data=[f.to_dict() for f in funcionarios])

        except Exception as e:
            return self.handle_exception(e)

    def post(self, request: HttpRequest) -> JsonResponse:
        try:
            tenant_id = get_tenant_id(request)
            data = self.parse_body(request)
            output = self.get_service('registrar_funcionario_service').execute(
                RegistrarFuncionarioInputDTO(
                    tenant_id=tenant_id,
                    nome=data.get('firstName', ''),
                    sobrenome=data.get('lastName', ''),
                    email=data.get('email', ''),
                    cargo=data.get('role', ''),
                )
            )
            return json_response(success=True, data=output.to_dict(), status=201)

        except Exception as e:
            return self.handle_exception(e)


class FuncionarioAPIDesativarView(BaseAPIView):
    def post(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            output = self.get_service('desativar_funcionario_service').execute(
                DesativarFuncionarioInputDTO(tenant_id=get_tenant_id(request), funcionario_id=pk)
            )
            return json_response(success=True, data=output.to_dict())

        except Exception as e:
            return self.handle_exception(e)


# =============================================================================
# Ticket API Views
# =============================================================================

class TicketAPIListView(BaseAPIView):
    """
    POST /tickets/api/ - Cria ticket

    Consultas de tickets são por fila (filas/<id>/tickets/).
    """

    def post(self, request: HttpRequest) -> JsonResponse:
        """
        Body JSON:
        {
            "queueId": "string (obrigatório)",
            "typeDefinitionId": "string (obrigatório)",
            "payload": {},
            "personId": "string (opcional)",
            "ttlMinutes": 30 (opcional),
            "referencedTicketId": "string (opcional)"
        }
        """
        try:
            tenant_id = get_tenant_id(request)
            data = self.parse_body(request)
            payload = data.get('payload') or {}
            if not isinstance(payload, dict):
                raise ValidationError("payload deve ser um objeto", field="payload", reason="type")

            output = self.get_service('criar_ticket_service').execute(CriarTicketInputDTO(
                tenant_id=tenant_id,
                fila_id=_obrigatorio(data, 'queueId'),
                definicao_id=_obrigatorio(data, 'typeDefinitionId'),
                payload=payload,
                pessoa_id=data.get('personId'),
                ttl_minutos=_inteiro(data.get('ttlMinutes'), 'ttlMinutes'),
                ticket_referenciado_id=data.get('referencedTicketId'),
            ))

            logger.info(f"API: Ticket criado: {output.id}")
            return json_response(success=True, data=output.to_dict(), status=201)

        except Exception as e:
            return self.handle_exception(e)


class TicketAPIDetailView(BaseAPIView):
    def get(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            ticket = self.get_service('obter_ticket_service').execute(pk, get_tenant_id(request))
            return json_response(success=True, data=ticket.to_dict())

        except Exception as e:
            return self.handle_exception(e)


class TicketAPITransicionarView(BaseAPIView):
    """
    POST /tickets/api/<id>/transicionar/

    Body JSON: {"transitionName": "start", "employeeId": "...", "notes": "..."}
    Resposta: {"currentState": ..., "previousState": ...}
    """

    def post(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            tenant_id = get_tenant_id(request)
            data = self.parse_body(request)
            output = self.get_service('transicionar_ticket_service').execute(
                TransicionarTicketInputDTO(
                    tenant_id=tenant_id,
                    ticket_id=pk,
                    transicao=_obrigatorio(data, 'transitionName'),
                    funcionario_id=data.get('employeeId'),
                    notas=data.get('notes', ''),
                )
            )
            return json_response(
                success=True,
                data={'currentState': output.estado, 'previousState': output.estado_anterior},
                meta={'ticket': output.to_dict()},
            )

        except Exception as e:
            return self.handle_exception(e)


class TicketAPIAtribuirView(BaseAPIView):
    """POST /tickets/api/<id>/atribuir/ - {"employeeId": "..."}"""

    def post(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            tenant_id = get_tenant_id(request)
            data = self.parse_body(request)
            output = self.get_service('atribuir_funcionario_service').execute(
                AtribuirFuncionarioInputDTO(
                    tenant_id=tenant_id,
                    ticket_id=pk,
                    funcionario_id=_obrigatorio(data, 'employeeId'),
                )
            )
            logger.info(f"API: Ticket {pk} atribuído a {output.funcionario_id}")
            return json_response(success=True, data=output.to_dict())

        except Exception as e:
            return self.handle_exception(e)


class TicketAPIEncaminharView(BaseAPIView):
    """POST /tickets/api/<id>/encaminhar/ - {"targetQueueId": "...", "reason": "..."}"""

    def post(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            tenant_id = get_tenant_id(request)
            data = self.parse_body(request)
            output = self.get_service('encaminhar_ticket_service').execute(
                EncaminharTicketInputDTO(
                    tenant_id=tenant_id,
                    ticket_id=pk,
                    fila_destino_id=_obrigatorio(data, 'targetQueueId'),
                    motivo=data.get('reason', ''),
                )
            )
            return json_response(success=True, data=output.to_dict())

        except Exception as e:
            return self.handle_exception(e)


class TicketAPIReordenarView(BaseAPIView):
    """POST /tickets/api/<id>/reordenar/ - {"newPosition": 0, "reason": "..."}"""

    def post(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            tenant_id = get_tenant_id(request)
            data = self.parse_body(request)
            nova_posicao = _obrigatorio(data, 'newPosition')
            if isinstance(nova_posicao, bool) or not isinstance(nova_posicao, int):
                raise ValidationError("newPosition deve ser inteiro", field="newPosition", reason="type")
            output = self.get_service('reordenar_ticket_service').execute(
                ReordenarTicketInputDTO(
                    tenant_id=tenant_id,
                    ticket_id=pk,
                    nova_posicao=nova_posicao,
                    motivo=data.get('reason', ''),
                )
            )
            return json_response(success=True, data=output.to_dict())

        except Exception as e:
            return self.handle_exception(e)


class TicketAPICancelarView(BaseAPIView):
    """POST /tickets/api/<id>/cancelar/ - {"reason": "...", "employeeId": "..."}"""

    def post(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            tenant_id = get_tenant_id(request)
            data = self.parse_body(request)
            output = self.get_service('cancelar_ticket_service').execute(
                CancelarTicketInputDTO(
                    tenant_id=tenant_id,
                    ticket_id=pk,
                    motivo=data.get('reason', ''),
                    funcionario_id=data.get('employeeId'),
                )
            )
            logger.info(f"API: Ticket {pk} cancelado")
            return json_response(success=True, data=output.to_dict())

        except Exception as e:
            return self.handle_exception(e)


class TicketAPIHistoricoView(BaseAPIView):
    """GET /tickets/api/<id>/historico/ - Registros de transição, mais antigo primeiro."""

    def get(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            registros = self.get_service('obter_historico_service').execute(pk, get_tenant_id(request))
            return json_response(
                success=True,
                data=[r.to_dict() for r in registros],
                meta={'total': len(registros)},
            )

        except Exception as e:
            return self.handle_exception(e)


class TicketAPIItensView(BaseAPIView):
    def get(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            itens = self.get_service('listar_itens_ticket_service').execute(pk, get_tenant_id(request))
            return json_response(success=True, data=[i.to_dict() for i in itens])

        except Exception as e:
            return self.handle_exception(e)

    def post(self, request: HttpRequest, pk: str) -> JsonResponse:
        """
        Body JSON:
        {
            "itemTypeId": "string (obrigatório)",
            "payload": {},
            "quantity": 1,
            "unitPrice": "4.50" (opcional),
            "externalItemId": "string (opcional)",
            "externalItemName": "string (opcional)"
        }
        """
        try:
            tenant_id = get_tenant_id(request)
            data = self.parse_body(request)
            output = self.get_service('adicionar_item_service').execute(AdicionarItemInputDTO(
                tenant_id=tenant_id,
                ticket_id=pk,
                definicao_id=_obrigatorio(data, 'itemTypeId'),
                payload=data.get('payload') or {},
                quantidade=_inteiro(data.get('quantity'), 'quantity', 1),
                preco_unitario=data.get('unitPrice'),
                item_externo_id=data.get('externalItemId'),
                item_externo_nome=data.get('externalItemName'),
            ))
            return json_response(success=True, data=output.to_dict(), status=201)

        except Exception as e:
            return self.handle_exception(e)


class ItemAPITransicionarView(BaseAPIView):
    def post(self, request: HttpRequest, pk: str, item_id: str) -> JsonResponse:
        try:
            tenant_id = get_tenant_id(request)
            data = self.parse_body(request)
            output = self.get_service('transicionar_item_service').execute(
                TransicionarItemInputDTO(
                    tenant_id=tenant_id,
                    ticket_id=pk,
                    item_id=item_id,
                    transicao=_obrigatorio(data, 'transitionName'),
                    funcionario_id=data.get('employeeId'),
                    notas=data.get('notes', ''),
                )
            )
            return json_response(
                success=True,
                data={'currentState': output.estado, 'previousState': output.estado_anterior},
                meta={'item': output.to_dict()},
            )

        except Exception as e:
            return self.handle_exception(e)


class ItemAPIHistoricoView(BaseAPIView):
    def get(self, request: HttpRequest, pk: str, item_id: str) -> JsonResponse:
        try:
            registros = self.get_service('obter_historico_item_service').execute(
                pk, item_id, get_tenant_id(request)
            )
            return json_response(success=True, data=[r.to_dict() for r in registros])

        except Exception as e:
            return self.handle_exception(e)
