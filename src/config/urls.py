"""
URL Configuration do VirtualQ.

Estrutura:
- /tickets/api/ - API JSON (tenants, definições, filas, tickets)
- /health/ - Health check
"""

from django.http import JsonResponse
from django.urls import include, path


def health(request):
    return JsonResponse({'status': 'ok'})


urlpatterns = [
    path('tickets/', include('src.adapters.django_app.tickets.urls')),
    path('health/', health, name='health'),
]
