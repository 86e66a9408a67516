"""
URL patterns da API JSON do VirtualQ (montadas em /tickets/api/).

Rotas de definições, filas, tenants e funcionários vêm antes de
`<str:pk>/` para não serem capturadas como id de ticket.
"""

from django.urls import path

from . import api_views

app_name = 'tickets'

urlpatterns = [
    # =========================================================================
    # Configuração do tenant
    # =========================================================================
    path('api/tenants/', api_views.TenantAPIListView.as_view(), name='api_tenants'),

    path('api/definicoes/', api_views.DefinicaoAPIListView.as_view(), name='api_definicoes'),
    path('api/definicoes/<str:pk>/', api_views.DefinicaoAPIDetailView.as_view(), name='api_definicao'),

    path('api/filas/', api_views.FilaAPIListView.as_view(), name='api_filas'),
    path('api/filas/<str:pk>/status/', api_views.FilaAPIStatusView.as_view(), name='api_fila_status'),
    path('api/filas/<str:pk>/tipos/', api_views.FilaAPITiposView.as_view(), name='api_fila_tipos'),
    path('api/filas/<str:pk>/tickets/', api_views.FilaAPITicketsView.as_view(), name='api_fila_tickets'),
    path('api/filas/<str:pk>/contagem/', api_views.FilaAPIContagemView.as_view(), name='api_fila_contagem'),

    path('api/funcionarios/', api_views.FuncionarioAPIListView.as_view(), name='api_funcionarios'),
    path(
        'api/funcionarios/<str:pk>/desativar/',
        api_views.FuncionarioAPIDesativarView.as_view(),
        name='api_funcionario_desativar',
    ),

    # =========================================================================
    # Tickets
    # =========================================================================
    path('api/', api_views.TicketAPIListView.as_view(), name='api_list'),
    path('api/<str:pk>/', api_views.TicketAPIDetailView.as_view(), name='api_detail'),

    path('api/<str:pk>/transicionar/', api_views.TicketAPITransicionarView.as_view(), name='api_transicionar'),
    path('api/<str:pk>/atribuir/', api_views.TicketAPIAtribuirView.as_view(), name='api_atribuir'),
    path('api/<str:pk>/encaminhar/', api_views.TicketAPIEncaminharView.as_view(), name='api_encaminhar'),
    path('api/<str:pk>/reordenar/', api_views.TicketAPIReordenarView.as_view(), name='api_reordenar'),
    path('api/<str:pk>/cancelar/', api_views.TicketAPICancelarView.as_view(), name='api_cancelar'),
    path('api/<str:pk>/historico/', api_views.TicketAPIHistoricoView.as_view(), name='api_historico'),

    path('api/<str:pk>/itens/', api_views.TicketAPIItensView.as_view(), name='api_itens'),
    path(
        'api/<str:pk>/itens/<str:item_id>/transicionar/',
        api_views.ItemAPITransicionarView.as_view(),
        name='api_item_transicionar',
    ),
    path(
        'api/<str:pk>/itens/<str:item_id>/historico/',
        api_views.ItemAPIHistoricoView.as_view(),
        name='api_item_historico',
    ),
]
