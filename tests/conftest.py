"""
Configurações globais do Pytest para o VirtualQ.

Este arquivo é carregado automaticamente pelo pytest e:
- Configura Django (SQLite em memória, cache local, publisher em memória)
- Registra markers
- Reseta o container DI e o cache entre testes
"""

from pathlib import Path

import pytest


def pytest_configure(config):
    """Configura Django antes dos testes."""
    import django
    from django.conf import settings

    if not settings.configured:
        settings.configure(
            DEBUG=True,
            SECRET_KEY='test-secret-key',
            DATABASES={
                'default': {
                    'ENGINE': 'django.db.backends.sqlite3',
                    'NAME': ':memory:',
                }
            },
            INSTALLED_APPS=[
                'django.contrib.contenttypes',
                'src.adapters.django_app.tickets',
            ],
            ROOT_URLCONF='src.config.urls',
            MIDDLEWARE=['django.middleware.common.CommonMiddleware'],
            CACHES={
                'default': {
                    'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
                    'LOCATION': 'virtualq-testes',
                }
            },
            DEFAULT_AUTO_FIELD='django.db.models.BigAutoField',
            USE_TZ=True,
            TIME_ZONE='UTC',
            EVENT_PUBLISHER_MODE='memory',
            SCHEMA_CACHE_TIMEOUT=300,
            LIFECYCLE_MAX_RETRIES=3,
            LIFECYCLE_RETRY_BACKOFF_SECONDS=0,
            CELERY_TASK_ALWAYS_EAGER=True,
        )
        django.setup()

    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


@pytest.fixture(scope="session")
def project_root():
    """Retorna o caminho raiz do projeto."""
    return Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def reset_singletons():
    """
    Reset de singletons entre testes.

    Garante que cada teste inicia com container e cache limpos.
    """
    from django.core.cache import cache
    from src.config.container import reset_container

    reset_container()
    cache.clear()
    yield
    reset_container()
