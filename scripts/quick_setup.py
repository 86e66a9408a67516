#!/usr/bin/env python
"""
Setup rápido para desenvolvimento local.

Este script:
1. Configura Django settings
2. Cria banco de dados SQLite
3. Executa migrations
4. Cria dados de exemplo (opcional): tenants de cafeteria, DMV e
   restaurante de navio, tipos de sistema, filas, funcionários e tickets

Uso:
    python scripts/quick_setup.py
    python scripts/quick_setup.py --with-sample-data
"""

import argparse
import os
import sys

# Adicionar raiz do projeto ao path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


# Máquina padrão dos pedidos: received → in_progress → ready → picked_up
MAQUINA_PEDIDO = {
    "initialState": "received",
    "states": ["received", "in_progress", "ready", "picked_up", "cancelled"],
    "transitions": [
        {"name": "start", "from": "received", "to": "in_progress"},
        {"name": "finish", "from": "in_progress", "to": "ready"},
        {"name": "pick_up", "from": "ready", "to": "picked_up"},
        {"name": "cancel", "from": "received", "to": "cancelled"},
        {"name": "cancel", "from": "in_progress", "to": "cancelled"},
    ],
}

MAQUINA_ATENDIMENTO = {
    "initialState": "waiting",
    "states": ["waiting", "called", "serving", "completed", "cancelled"],
    "transitions": [
        {"name": "call", "from": "waiting", "to": "called"},
        {"name": "serve", "from": "called", "to": "serving"},
        {"name": "complete", "from": "serving", "to": "completed"},
        {"name": "requeue", "from": "called", "to": "waiting"},
        {"name": "cancel", "from": "waiting", "to": "cancelled"},
        {"name": "cancel", "from": "called", "to": "cancelled"},
    ],
    "lifecycleStates": {"started": ["serving"], "ready": ["called"]},
}

MAQUINA_ITEM = {
    "initialState": "pending",
    "states": ["pending", "preparing", "done"],
    "transitions": [
        {"name": "prepare", "from": "pending", "to": "preparing"},
        {"name": "finish", "from": "preparing", "to": "done"},
    ],
    "lifecycleStates": {"started": ["preparing"], "completed": ["done"]},
}


def setup_django():
    """Configura Django para uso standalone."""
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'src.config.settings')

    # Forçar SQLite para desenvolvimento rápido
    os.environ['DATABASE_URL'] = 'sqlite:///db.sqlite3'

    import django
    django.setup()


def run_migrations():
    from django.core.management import call_command

    print("📦 Executando migrations...")
    call_command('migrate', verbosity=1)
    print("✅ Migrations concluídas!")


def _registrar(container, tenant_id, documento):
    from src.core.definicoes.dtos import RegistrarDefinicaoInputDTO

    definicao = container.registrar_definicao_service().execute(
        RegistrarDefinicaoInputDTO(tenant_id=tenant_id, documento=documento)
    )
    print(f"   ✓ Tipo {documento['typeCode']} ({'sistema' if tenant_id is None else tenant_id[:8]})")
    return definicao.id


def create_sample_data():
    """Cria dados de exemplo pelos próprios use cases."""
    from src.config.container import get_container
    from src.core.filas.dtos import (
        CriarFilaInputDTO,
        CriarTenantInputDTO,
        RegistrarFuncionarioInputDTO,
    )
    from src.core.tickets.dtos import (
        AdicionarItemInputDTO,
        CriarTicketInputDTO,
        TransicionarTicketInputDTO,
    )

    container = get_container()

    print("🏢 Criando tenants...")
    tenants = {}
    for nome, local in [
        ('Downtown Seattle Coffee', 'Downtown Seattle Store'),
        ('Bellevue Coffee', 'Bellevue Square Store'),
        ('Seattle DMV', 'Seattle DMV Office'),
        ('Ship Deck 3 Restaurant', 'Deck 3 Main Dining'),
    ]:
        tenant = container.criar_tenant_service().execute(CriarTenantInputDTO(nome=nome, local=local))
        tenants[nome] = tenant.id
        print(f"   ✓ {nome}")

    print("🧩 Registrando definições de tipo...")
    _registrar(container, None, {
        "typeCode": "generic",
        "typeName": "Generic Queue Ticket",
        "description": "General purpose queue ticket",
        "structuralSchema": {"type": "object", "properties": {}},
        "stateMachine": MAQUINA_ATENDIMENTO,
    })
    _registrar(container, None, {
        "typeCode": "service_desk",
        "typeName": "Service Desk Request",
        "description": "Customer service request ticket",
        "structuralSchema": {
            "type": "object",
            "properties": {
                "issue_type": {"type": "string"},
                "priority": {"type": "string", "enum": ["low", "medium", "high"]},
            },
        },
        "stateMachine": MAQUINA_ATENDIMENTO,
    })

    tipos = {}
    for nome in ('Downtown Seattle Coffee', 'Bellevue Coffee'):
        item_id = _registrar(container, tenants[nome], {
            "typeCode": "menu_item",
            "typeName": "Menu Item",
            "stateMachine": MAQUINA_ITEM,
        })
        tipos[nome] = _registrar(container, tenants[nome], {
            "typeCode": "food_order",
            "typeName": "Food Order",
            "description": "Customer food and beverage order",
            "structuralSchema": {
                "type": "object",
                "properties": {
                    "special_instructions": {"type": "string"},
                    "table_number": {"type": "integer"},
                    "order_type": {"type": "string", "enum": ["mobile", "in_store"]},
                },
            },
            "stateMachine": MAQUINA_PEDIDO,
            "nestedItemTypeIds": [item_id],
        })
        tipos[f'{nome}:item'] = item_id

    dmv = tenants['Seattle DMV']
    tipos['dmv_registration'] = _registrar(container, dmv, {
        "typeCode": "dmv_registration",
        "typeName": "Vehicle Registration",
        "structuralSchema": {
            "type": "object",
            "properties": {
                "vin": {"type": "string", "maxLength": 17},
                "make": {"type": "string"},
                "model": {"type": "string"},
                "year": {"type": "integer"},
                "plate_number": {"type": "string"},
            },
            "required": ["vin", "make", "model", "year"],
        },
        "stateMachine": MAQUINA_ATENDIMENTO,
    })
    tipos['dmv_license'] = _registrar(container, dmv, {
        "typeCode": "dmv_license",
        "typeName": "Driver License",
        "structuralSchema": {
            "type": "object",
            "properties": {
                "license_number": {"type": "string"},
                "dob": {"type": "string", "format": "date"},
                "restrictions": {"type": "array", "items": {"type": "string"}},
            },
            "required": ["dob"],
        },
        "stateMachine": MAQUINA_ATENDIMENTO,
    })
    tipos['dmv_test'] = _registrar(container, dmv, {
        "typeCode": "dmv_test",
        "typeName": "Driver Testing",
        "structuralSchema": {
            "type": "object",
            "properties": {
                "test_type": {"type": "string", "enum": ["written", "road"]},
                "attempt_number": {"type": "integer"},
            },
        },
        "stateMachine": MAQUINA_ATENDIMENTO,
    })

    navio = tenants['Ship Deck 3 Restaurant']
    tipos['navio_pedido'] = _registrar(container, navio, {
        "typeCode": "food_order",
        "typeName": "Food Order",
        "structuralSchema": {
            "type": "object",
            "properties": {
                "table_number": {"type": "integer"},
                "cabin_number": {"type": "string"},
                "dietary_restrictions": {"type": "array", "items": {"type": "string"}},
            },
        },
        "stateMachine": MAQUINA_PEDIDO,
    })
    tipos['table_reservation'] = _registrar(container, navio, {
        "typeCode": "table_reservation",
        "typeName": "Table Reservation",
        "structuralSchema": {
            "type": "object",
            "properties": {
                "party_size": {"type": "integer", "minimum": 1},
                "seating_preference": {"type": "string"},
                "special_occasion": {"type": "string"},
            },
            "required": ["party_size"],
        },
        "stateMachine": MAQUINA_ATENDIMENTO,
    })

    print("📋 Criando filas...")
    filas = {}
    for chave, tenant_nome, nome, aceitos, ordem in [
        ('seattle', 'Downtown Seattle Coffee', 'Main Queue', [tipos['Downtown Seattle Coffee']], 1),
        ('bellevue', 'Bellevue Coffee', 'Main Queue', [tipos['Bellevue Coffee']], 1),
        ('registro', 'Seattle DMV', 'Registration', [tipos['dmv_registration']], 1),
        ('licencas', 'Seattle DMV', 'Licenses', [tipos['dmv_license']], 2),
        ('testes', 'Seattle DMV', 'Testing', [tipos['dmv_test']], 3),
        ('navio', 'Ship Deck 3 Restaurant', 'Dining Queue',
         [tipos['navio_pedido'], tipos['table_reservation']], 1),
    ]:
        fila = container.criar_fila_service().execute(CriarFilaInputDTO(
            tenant_id=tenants[tenant_nome],
            nome=nome,
            tipos_aceitos=tuple(aceitos),
            ordem_exibicao=ordem,
        ))
        filas[chave] = fila.id
        print(f"   ✓ {tenant_nome} / {nome}")

    print("👥 Registrando funcionários...")
    funcionarios = {}
    for tenant_nome, nome, sobrenome, email, cargo in [
        ('Downtown Seattle Coffee', 'Sarah', 'Johnson', 'sarah.j@coffee-seattle.com', 'barista'),
        ('Downtown Seattle Coffee', 'Mike', 'Chen', 'mike.c@coffee-seattle.com', 'barista'),
        ('Downtown Seattle Coffee', 'Emma', 'Davis', 'emma.d@coffee-seattle.com', 'manager'),
        ('Bellevue Coffee', 'Alex', 'Rodriguez', 'alex.r@coffee-bellevue.com', 'barista'),
        ('Seattle DMV', 'Tom', 'Anderson', 'tom.a@dmv.state.gov', 'clerk'),
        ('Seattle DMV', 'Lisa', 'Martinez', 'lisa.m@dmv.state.gov', 'examiner'),
        ('Ship Deck 3 Restaurant', 'Carlos', 'Garcia', 'carlos.g@cruiseline.com', 'chef'),
    ]:
        funcionario = container.registrar_funcionario_service().execute(RegistrarFuncionarioInputDTO(
            tenant_id=tenants[tenant_nome],
            nome=nome,
            sobrenome=sobrenome,
            email=email,
            cargo=cargo,
        ))
        funcionarios[email] = funcionario.id

    print("🎫 Criando tickets...")
    seattle = tenants['Downtown Seattle Coffee']
    pedidos = []
    for order_type in ('mobile', 'in_store', 'mobile'):
        ticket = container.criar_ticket_service().execute(CriarTicketInputDTO(
            tenant_id=seattle,
            fila_id=filas['seattle'],
            definicao_id=tipos['Downtown Seattle Coffee'],
            payload={'order_type': order_type},
            ttl_minutos=30,
        ))
        pedidos.append(ticket.id)

    for ticket_id, nome_item, quantidade, preco in [
        (pedidos[0], 'Caffe Latte', 2, '5.25'),
        (pedidos[0], 'Blueberry Muffin', 1, '2.00'),
        (pedidos[1], 'Cappuccino', 1, '4.75'),
        (pedidos[1], 'Croissant', 1, '4.00'),
    ]:
        container.adicionar_item_service().execute(AdicionarItemInputDTO(
            tenant_id=seattle,
            ticket_id=ticket_id,
            definicao_id=tipos['Downtown Seattle Coffee:item'],
            quantidade=quantidade,
            preco_unitario=preco,
            item_externo_nome=nome_item,
        ))

    barista = funcionarios['sarah.j@coffee-seattle.com']
    for ticket_id, transicoes in [(pedidos[1], ['start']), (pedidos[2], ['start', 'finish'])]:
        for transicao in transicoes:
            container.transicionar_ticket_service().execute(TransicionarTicketInputDTO(
                tenant_id=seattle,
                ticket_id=ticket_id,
                transicao=transicao,
                funcionario_id=barista,
            ))

    container.criar_ticket_service().execute(CriarTicketInputDTO(
        tenant_id=tenants['Bellevue Coffee'],
        fila_id=filas['bellevue'],
        definicao_id=tipos['Bellevue Coffee'],
        payload={'order_type': 'mobile'},
    ))
    container.criar_ticket_service().execute(CriarTicketInputDTO(
        tenant_id=dmv,
        fila_id=filas['registro'],
        definicao_id=tipos['dmv_registration'],
        payload={'vin': '1HGBH41JXMN109186', 'make': 'Honda', 'model': 'Accord', 'year': 2021},
    ))

    print("✅ Dados de exemplo criados!")
    print("\n   Tenants (use no header X-Tenant-ID):")
    for nome, tenant_id in tenants.items():
        print(f"   - {nome}: {tenant_id}")


def check_connection():
    """Verifica conexão com o banco."""
    from django.db import DatabaseError, connection

    print("🔍 Verificando conexão com o banco...")

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        print("✅ Conexão OK!")
        return True
    except DatabaseError as e:
        print(f"❌ Erro de conexão: {e}")
        return False


def show_info():
    from django.conf import settings

    print("\n" + "=" * 60)
    print("📊 Informações do Setup")
    print("=" * 60)
    print(f"  Database Engine: {settings.DATABASES['default']['ENGINE']}")
    print(f"  Database Name: {settings.DATABASES['default']['NAME']}")
    print(f"  Event Publisher: {settings.EVENT_PUBLISHER_MODE}")
    print("=" * 60)
    print("\n🚀 Próximos passos:")
    print("   1. django-admin runserver --settings=src.config.settings")
    print("   2. Acesse: http://localhost:8000/tickets/api/filas/ (header X-Tenant-ID)")
    print("\n")


def main():
    parser = argparse.ArgumentParser(description='Setup rápido para desenvolvimento')
    parser.add_argument(
        '--with-sample-data',
        action='store_true',
        help='Criar dados de exemplo'
    )
    parser.add_argument(
        '--check-only',
        action='store_true',
        help='Apenas verificar conexão'
    )

    args = parser.parse_args()

    print("\n" + "=" * 60)
    print("🔧 VirtualQ - Quick Setup")
    print("=" * 60 + "\n")

    setup_django()

    if args.check_only:
        check_connection()
        return

    if not check_connection():
        print("\n⚠️  Certifique-se de que o banco de dados está rodando.")
        return

    run_migrations()

    if args.with_sample_data:
        create_sample_data()

    show_info()


if __name__ == '__main__':
    main()
