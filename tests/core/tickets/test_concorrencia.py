"""
Testes de concorrência do Lifecycle Manager.

Duas transições simultâneas a partir do mesmo estado: exatamente uma
grava; a outra recebe InvalidTransition calculada sobre o estado que
venceu, e o histórico fica com um único registro da transição.
"""

import threading

import pytest

from src.core.filas.ports import InMemoryIndiceFila
from src.core.shared.exceptions import InvalidTransitionError
from src.core.tickets.auditoria import reconstruir_estado
from src.core.tickets.dtos import CriarTicketInputDTO, TransicionarTicketInputDTO
from src.core.tickets.ports import InMemoryTicketRepository
from src.core.tickets.use_cases import CriarTicketService, TransicionarTicketService

from tests.core.fakes import SEM_ESPERA, FakeUnitOfWork


class TicketRepositoryComBarreira(InMemoryTicketRepository):
    """
    Segura cada gravação até que `partes` threads tenham lido o ticket,
    forçando as duas transições a competir pela mesma versão.
    """

    def __init__(self, partes: int):
        super().__init__()
        self.barreira = threading.Barrier(partes, timeout=5)

    def atualizar(self, ticket, versao_esperada):
        self.barreira.wait()
        return super().atualizar(ticket, versao_esperada)


@pytest.mark.slow
class TestTransicoesConcorrentes:
    def test_apenas_uma_transicao_vence(self, fila_repo, registry, auditoria, historico_repo,
                                        fila, tipo_abc, tenant):
        ticket_repo = TicketRepositoryComBarreira(partes=2)
        criar = CriarTicketService(
            ticket_repo, fila_repo, registry, InMemoryIndiceFila(ticket_repo),
            auditoria, FakeUnitOfWork(), retry_policy=SEM_ESPERA,
        )
        ticket = criar.execute(CriarTicketInputDTO(tenant.id, fila.id, tipo_abc.id))

        resultados, erros = [], []

        def transicionar():
            # cada thread com seu próprio Unit of Work
            service = TransicionarTicketService(
                ticket_repo, fila_repo, registry, auditoria, FakeUnitOfWork(),
                retry_policy=SEM_ESPERA,
            )
            try:
                resultados.append(
                    service.execute(TransicionarTicketInputDTO(tenant.id, ticket.id, "t1"))
                )
            except InvalidTransitionError as e:
                erros.append(e)

        threads = [threading.Thread(target=transicionar) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert len(resultados) == 1
        assert len(erros) == 1
        assert resultados[0].estado == "B"
        assert erros[0].current_state == "B"
        assert erros[0].valid_transitions == ["t2"]

        registros = historico_repo.listar(ticket.id)
        assert [(r.estado_anterior, r.estado_novo) for r in registros] == [(None, "A"), ("A", "B")]
        assert reconstruir_estado(registros) == ticket_repo.get_by_id(ticket.id).estado
