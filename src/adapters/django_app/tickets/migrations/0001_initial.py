"""
Migration inicial do VirtualQ.

Cria as tabelas:
- tenants, definicoes_tipo, filas, funcionarios
- tickets, itens_ticket
- historico_transicoes: Histórico de transições
- domain_events: Event Store
"""

from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):
    """Migration inicial."""

    initial = True

    dependencies = [
    ]

    operations = [
        # =================================================================
        # Tabela: tenants
        # =================================================================
        migrations.CreateModel(
            name='TenantModel',
            fields=[
                ('id', models.CharField(editable=False, max_length=36, primary_key=True, serialize=False)),
                ('nome', models.CharField(help_text='Nome do estabelecimento', max_length=200)),
                ('descricao', models.TextField(blank=True, default='')),
                ('local', models.CharField(blank=True, default='', max_length=200)),
                ('ativo', models.BooleanField(db_index=True, default=True)),
                ('criado_em', models.DateTimeField(default=django.utils.timezone.now)),
                ('atualizado_em', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'verbose_name': 'Tenant',
                'verbose_name_plural': 'Tenants',
                'db_table': 'tenants',
                'ordering': ['nome'],
            },
        ),

        # =================================================================
        # Tabela: definicoes_tipo
        # =================================================================
        migrations.CreateModel(
            name='DefinicaoTipoModel',
            fields=[
                ('id', models.CharField(editable=False, max_length=36, primary_key=True, serialize=False)),
                ('codigo', models.CharField(db_index=True, help_text='typeCode (snake_case)', max_length=64)),
                ('nome', models.CharField(max_length=200)),
                ('descricao', models.TextField(blank=True, default='')),
                ('schema', models.JSONField(blank=True, help_text='Schema estrutural', null=True)),
                ('maquina', models.JSONField(blank=True, help_text='Máquina de estados', null=True)),
                ('tipos_item_ids', models.JSONField(blank=True, default=list)),
                ('sistema', models.BooleanField(default=False)),
                ('ativo', models.BooleanField(db_index=True, default=True)),
                ('criado_em', models.DateTimeField(default=django.utils.timezone.now)),
                ('atualizado_em', models.DateTimeField(default=django.utils.timezone.now)),
                ('tenant', models.ForeignKey(
                    blank=True,
                    help_text='Nulo para definições de sistema',
                    null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='definicoes',
                    to='tickets.tenantmodel',
                )),
            ],
            options={
                'verbose_name': 'Definição de Tipo',
                'verbose_name_plural': 'Definições de Tipo',
                'db_table': 'definicoes_tipo',
                'ordering': ['codigo'],
            },
        ),
        migrations.AddConstraint(
            model_name='definicaotipomodel',
            constraint=models.UniqueConstraint(
                fields=('tenant', 'codigo'), name='definicao_codigo_unico_por_tenant'
            ),
        ),
        migrations.AddConstraint(
            model_name='definicaotipomodel',
            constraint=models.UniqueConstraint(
                condition=models.Q(('tenant__isnull', True)),
                fields=('codigo',),
                name='definicao_codigo_unico_sistema',
            ),
        ),

        # =================================================================
        # Tabela: filas
        # =================================================================
        migrations.CreateModel(
            name='FilaModel',
            fields=[
                ('id', models.CharField(editable=False, max_length=36, primary_key=True, serialize=False)),
                ('nome', models.CharField(max_length=200)),
                ('descricao', models.TextField(blank=True, default='')),
                ('tipos_aceitos', models.JSONField(blank=True, default=list, help_text='IDs de definições aceitas')),
                ('ativo', models.BooleanField(db_index=True, default=True)),
                ('ordem_exibicao', models.IntegerField(default=0)),
                ('max_espera_minutos', models.PositiveIntegerField(blank=True, null=True)),
                ('criado_em', models.DateTimeField(default=django.utils.timezone.now)),
                ('atualizado_em', models.DateTimeField(default=django.utils.timezone.now)),
                ('tenant', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='filas',
                    to='tickets.tenantmodel',
                )),
            ],
            options={
                'verbose_name': 'Fila',
                'verbose_name_plural': 'Filas',
                'db_table': 'filas',
                'ordering': ['ordem_exibicao', 'nome'],
                'indexes': [models.Index(fields=['tenant', 'ativo'], name='filas_tenant__b1c9e2_idx')],
            },
        ),

        # =================================================================
        # Tabela: funcionarios
        # =================================================================
        migrations.CreateModel(
            name='FuncionarioModel',
            fields=[
                ('id', models.CharField(editable=False, max_length=36, primary_key=True, serialize=False)),
                ('nome', models.CharField(max_length=100)),
                ('sobrenome', models.CharField(max_length=100)),
                ('email', models.CharField(max_length=254)),
                ('cargo', models.CharField(blank=True, default='', max_length=100)),
                ('ativo', models.BooleanField(default=True)),
                ('criado_em', models.DateTimeField(default=django.utils.timezone.now)),
                ('atualizado_em', models.DateTimeField(default=django.utils.timezone.now)),
                ('tenant', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='funcionarios',
                    to='tickets.tenantmodel',
                )),
            ],
            options={
                'verbose_name': 'Funcionário',
                'verbose_name_plural': 'Funcionários',
                'db_table': 'funcionarios',
                'ordering': ['nome', 'sobrenome'],
            },
        ),
        migrations.AddConstraint(
            model_name='funcionariomodel',
            constraint=models.UniqueConstraint(
                fields=('tenant', 'email'), name='funcionario_email_unico_por_tenant'
            ),
        ),

        # =================================================================
        # Tabela: tickets
        # =================================================================
        migrations.CreateModel(
            name='TicketModel',
            fields=[
                ('id', models.CharField(editable=False, max_length=36, primary_key=True, serialize=False)),
                ('estado', models.CharField(db_index=True, max_length=64)),
                ('pessoa_id', models.CharField(blank=True, db_index=True, max_length=100, null=True)),
                ('payload', models.JSONField(blank=True, default=dict)),
                ('ttl_minutos', models.PositiveIntegerField(blank=True, null=True)),
                ('expira_em', models.DateTimeField(blank=True, null=True)),
                ('escalado_em', models.DateTimeField(blank=True, null=True)),
                ('iniciado_em', models.DateTimeField(blank=True, null=True)),
                ('pronto_em', models.DateTimeField(blank=True, null=True)),
                ('retirado_em', models.DateTimeField(blank=True, null=True)),
                ('concluido_em', models.DateTimeField(blank=True, null=True)),
                ('cancelado_em', models.DateTimeField(blank=True, null=True)),
                ('espera_real_minutos', models.IntegerField(blank=True, null=True)),
                ('versao', models.PositiveIntegerField(default=1)),
                ('posicao', models.BigIntegerField(blank=True, null=True)),
                ('criado_em', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('atualizado_em', models.DateTimeField(default=django.utils.timezone.now)),
                ('definicao', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='tickets',
                    to='tickets.definicaotipomodel',
                )),
                ('fila', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='tickets',
                    to='tickets.filamodel',
                )),
                ('fila_anterior', models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='+',
                    to='tickets.filamodel',
                )),
                ('funcionario', models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='tickets',
                    to='tickets.funcionariomodel',
                )),
                ('ticket_referenciado', models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='referenciado_por',
                    to='tickets.ticketmodel',
                )),
            ],
            options={
                'verbose_name': 'Ticket',
                'verbose_name_plural': 'Tickets',
                'db_table': 'tickets',
                'ordering': ['fila', 'posicao'],
                'indexes': [
                    models.Index(fields=['fila', 'posicao'], name='tickets_fila_id_5a0c1e_idx'),
                    models.Index(fields=['fila', 'estado', 'posicao'], name='tickets_fila_id_8d2b7f_idx'),
                    models.Index(fields=['expira_em', 'escalado_em'], name='tickets_expira__3e9a41_idx'),
                    models.Index(fields=['definicao', 'estado'], name='tickets_definic_6f1d20_idx'),
                ],
            },
        ),

        # =================================================================
        # Tabela: itens_ticket
        # =================================================================
        migrations.CreateModel(
            name='ItemTicketModel',
            fields=[
                ('id', models.CharField(editable=False, max_length=36, primary_key=True, serialize=False)),
                ('estado', models.CharField(blank=True, max_length=64, null=True)),
                ('item_externo_id', models.CharField(blank=True, max_length=100, null=True)),
                ('item_externo_nome', models.CharField(blank=True, max_length=200, null=True)),
                ('quantidade', models.PositiveIntegerField(default=1)),
                ('preco_unitario', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('payload', models.JSONField(blank=True, default=dict)),
                ('iniciado_em', models.DateTimeField(blank=True, null=True)),
                ('concluido_em', models.DateTimeField(blank=True, null=True)),
                ('versao', models.PositiveIntegerField(default=1)),
                ('criado_em', models.DateTimeField(default=django.utils.timezone.now)),
                ('atualizado_em', models.DateTimeField(default=django.utils.timezone.now)),
                ('definicao', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='itens',
                    to='tickets.definicaotipomodel',
                )),
                ('ticket', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='itens',
                    to='tickets.ticketmodel',
                )),
            ],
            options={
                'verbose_name': 'Item de Ticket',
                'verbose_name_plural': 'Itens de Ticket',
                'db_table': 'itens_ticket',
                'ordering': ['criado_em', 'id'],
                'indexes': [
                    models.Index(fields=['definicao', 'estado'], name='itens_ticke_definic_2c7e94_idx'),
                ],
            },
        ),

        # =================================================================
        # Tabela: historico_transicoes
        # =================================================================
        migrations.CreateModel(
            name='RegistroTransicaoModel',
            fields=[
                ('id', models.CharField(editable=False, max_length=36, primary_key=True, serialize=False)),
                ('estado_anterior', models.CharField(blank=True, max_length=64, null=True)),
                ('estado_novo', models.CharField(blank=True, max_length=64, null=True)),
                ('funcionario_id', models.CharField(blank=True, max_length=36, null=True)),
                ('notas', models.TextField(blank=True, default='')),
                ('sequencia', models.PositiveIntegerField()),
                ('criado_em', models.DateTimeField(default=django.utils.timezone.now)),
                ('item', models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='historico',
                    to='tickets.itemticketmodel',
                )),
                ('ticket', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='historico',
                    to='tickets.ticketmodel',
                )),
            ],
            options={
                'verbose_name': 'Registro de Transição',
                'verbose_name_plural': 'Histórico de Transições',
                'db_table': 'historico_transicoes',
                'ordering': ['ticket', 'sequencia'],
            },
        ),
        migrations.AddConstraint(
            model_name='registrotransicaomodel',
            constraint=models.UniqueConstraint(
                fields=('ticket', 'sequencia'), name='historico_sequencia_unica'
            ),
        ),

        # =================================================================
        # Tabela: domain_events
        # =================================================================
        migrations.CreateModel(
            name='DomainEventModel',
            fields=[
                ('event_id', models.CharField(max_length=36, primary_key=True, serialize=False)),
                ('event_type', models.CharField(db_index=True, max_length=100)),
                ('aggregate_type', models.CharField(db_index=True, max_length=100)),
                ('aggregate_id', models.CharField(db_index=True, max_length=36)),
                ('tenant_id', models.CharField(blank=True, db_index=True, max_length=36, null=True)),
                ('event_data', models.JSONField(default=dict)),
                ('version', models.IntegerField(default=1, help_text='Versão do schema do evento')),
                ('sequence', models.BigIntegerField(default=0, help_text='Sequência do evento no agregado')),
                ('occurred_at', models.DateTimeField()),
                ('recorded_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Evento de Domínio',
                'verbose_name_plural': 'Eventos de Domínio',
                'db_table': 'domain_events',
                'ordering': ['recorded_at'],
                'indexes': [
                    models.Index(fields=['aggregate_type', 'recorded_at'], name='domain_even_aggrega_7b1f03_idx'),
                    models.Index(fields=['event_type', 'recorded_at'], name='domain_even_event_t_4c8d52_idx'),
                ],
            },
        ),
        migrations.AddConstraint(
            model_name='domaineventmodel',
            constraint=models.UniqueConstraint(
                fields=('aggregate_id', 'sequence'), name='evento_sequencia_unica'
            ),
        ),
    ]
