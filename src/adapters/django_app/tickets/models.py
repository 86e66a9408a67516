"""
Django Models para o VirtualQ.

Estes models são ADAPTERS - implementam a persistência para as
entidades de domínio definidas em src/core/*/entities.py.

IMPORTANTE:
- Models NÃO contêm lógica de negócio
- Lógica de negócio fica nas Entities do Core
- Models são mapeados para/de Entities via Mappers
- Nada é removido fisicamente: relacionamentos usam PROTECT

Relacionamentos:
- TenantModel: Fronteira de isolamento
- DefinicaoTipoModel: Tipos declarados (tenant nulo = sistema)
- FilaModel / FuncionarioModel: Pertencem a um tenant
- TicketModel: Tabela principal; `posicao` é do Índice da Fila
- ItemTicketModel: Itens aninhados em um ticket
- RegistroTransicaoModel: Histórico append-only (Audit Recorder)
- DomainEventModel: Event Store
"""

from django.db import models
from django.db.models import Q
from django.utils import timezone


class TenantModel(models.Model):
    id = models.CharField(max_length=36, primary_key=True, editable=False)

    nome = models.CharField(max_length=200, help_text="Nome do estabelecimento")
    descricao = models.TextField(blank=True, default="")
    local = models.CharField(max_length=200, blank=True, default="")
    ativo = models.BooleanField(default=True, db_index=True)

    criado_em = models.DateTimeField(default=timezone.now)
    atualizado_em = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'tenants'
        verbose_name = 'Tenant'
        verbose_name_plural = 'Tenants'
        ordering = ['nome']

    def __str__(self):
        return self.nome


class DefinicaoTipoModel(models.Model):
    """
    Definição de Tipo persistida.

    Schema estrutural e máquina de estados são guardados como
    documentos JSON e interpretados pelo Schema Registry.
    """

    id = models.CharField(max_length=36, primary_key=True, editable=False)

    tenant = models.ForeignKey(
        TenantModel,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='definicoes',
        help_text="Nulo para definições de sistema",
    )

    codigo = models.CharField(max_length=64, db_index=True, help_text="typeCode (snake_case)")
    nome = models.CharField(max_length=200)
    descricao = models.TextField(blank=True, default="")

    schema = models.JSONField(null=True, blank=True, help_text="Schema estrutural")
    maquina = models.JSONField(null=True, blank=True, help_text="Máquina de estados")
    tipos_item_ids = models.JSONField(default=list, blank=True)

    sistema = models.BooleanField(default=False)
    ativo = models.BooleanField(default=True, db_index=True)

    criado_em = models.DateTimeField(default=timezone.now)
    atualizado_em = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'definicoes_tipo'
        verbose_name = 'Definição de Tipo'
        verbose_name_plural = 'Definições de Tipo'
        ordering = ['codigo']
        constraints = [
            models.UniqueConstraint(
                fields=['tenant', 'codigo'],
                name='definicao_codigo_unico_por_tenant',
            ),
            models.UniqueConstraint(
                fields=['codigo'],
                condition=Q(tenant__isnull=True),
                name='definicao_codigo_unico_sistema',
            ),
        ]

    def __str__(self):
        return f"{self.codigo} ({'sistema' if self.sistema else self.tenant_id})"


class FilaModel(models.Model):
    id = models.CharField(max_length=36, primary_key=True, editable=False)

    tenant = models.ForeignKey(TenantModel, on_delete=models.PROTECT, related_name='filas')

    nome = models.CharField(max_length=200)
    descricao = models.TextField(blank=True, default="")
    tipos_aceitos = models.JSONField(default=list, blank=True, help_text="IDs de definições aceitas")
    ativo = models.BooleanField(default=True, db_index=True)
    ordem_exibicao = models.IntegerField(default=0)
    max_espera_minutos = models.PositiveIntegerField(null=True, blank=True)

    criado_em = models.DateTimeField(default=timezone.now)
    atualizado_em = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'filas'
        verbose_name = 'Fila'
        verbose_name_plural = 'Filas'
        ordering = ['ordem_exibicao', 'nome']
        indexes = [
            models.Index(fields=['tenant', 'ativo'], name='filas_tenant__b1c9e2_idx'),
        ]

    def __str__(self):
        return self.nome


class FuncionarioModel(models.Model):
    id = models.CharField(max_length=36, primary_key=True, editable=False)

    tenant = models.ForeignKey(TenantModel, on_delete=models.PROTECT, related_name='funcionarios')

    nome = models.CharField(max_length=100)
    sobrenome = models.CharField(max_length=100)
    email = models.CharField(max_length=254)
    cargo = models.CharField(max_length=100, blank=True, default="")
    ativo = models.BooleanField(default=True)

    criado_em = models.DateTimeField(default=timezone.now)
    atualizado_em = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'funcionarios'
        verbose_name = 'Funcionário'
        verbose_name_plural = 'Funcionários'
        ordering = ['nome', 'sobrenome']
        constraints = [
            models.UniqueConstraint(fields=['tenant', 'email'], name='funcionario_email_unico_por_tenant'),
        ]

    def __str__(self):
        return f"{self.nome} {self.sobrenome}"


class TicketModel(models.Model):
    """
    Model Django para persistência de Tickets.

    Fields relevantes:
        estado: Estado atual (valor vem da máquina de estados do tipo)
        versao: Contador para check-and-set; toda gravação incrementa
        posicao: Chave de ordenação dentro da fila; gerida apenas pelo
            Índice da Fila, nunca pelo repositório de tickets
    """

    id = models.CharField(max_length=36, primary_key=True, editable=False)

    definicao = models.ForeignKey(DefinicaoTipoModel, on_delete=models.PROTECT, related_name='tickets')
    fila = models.ForeignKey(FilaModel, on_delete=models.PROTECT, related_name='tickets')
    estado = models.CharField(max_length=64, db_index=True)

    pessoa_id = models.CharField(max_length=100, null=True, blank=True, db_index=True)
    ticket_referenciado = models.ForeignKey(
        'self', on_delete=models.PROTECT, null=True, blank=True, related_name='referenciado_por'
    )
    funcionario = models.ForeignKey(
        FuncionarioModel, on_delete=models.PROTECT, null=True, blank=True, related_name='tickets'
    )
    payload = models.JSONField(default=dict, blank=True)

    # Expiração
    ttl_minutos = models.PositiveIntegerField(null=True, blank=True)
    expira_em = models.DateTimeField(null=True, blank=True)
    escalado_em = models.DateTimeField(null=True, blank=True)

    # Carimbos de ciclo de vida
    iniciado_em = models.DateTimeField(null=True, blank=True)
    pronto_em = models.DateTimeField(null=True, blank=True)
    retirado_em = models.DateTimeField(null=True, blank=True)
    concluido_em = models.DateTimeField(null=True, blank=True)
    cancelado_em = models.DateTimeField(null=True, blank=True)
    espera_real_minutos = models.IntegerField(null=True, blank=True)

    fila_anterior = models.ForeignKey(
        FilaModel, on_delete=models.PROTECT, null=True, blank=True, related_name='+'
    )

    versao = models.PositiveIntegerField(default=1)
    posicao = models.BigIntegerField(null=True, blank=True)

    criado_em = models.DateTimeField(default=timezone.now, db_index=True)
    atualizado_em = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'tickets'
        verbose_name = 'Ticket'
        verbose_name_plural = 'Tickets'
        ordering = ['fila', 'posicao']
        indexes = [
            models.Index(fields=['fila', 'posicao'], name='tickets_fila_id_5a0c1e_idx'),
            models.Index(fields=['fila', 'estado', 'posicao'], name='tickets_fila_id_8d2b7f_idx'),
            models.Index(fields=['expira_em', 'escalado_em'], name='tickets_expira__3e9a41_idx'),
            models.Index(fields=['definicao', 'estado'], name='tickets_definic_6f1d20_idx'),
        ]

    def __str__(self):
        return f"[{self.id[:8]}] {self.estado}"

    def __repr__(self):
        return f"<TicketModel id={self.id[:8]} estado={self.estado} versao={self.versao}>"


class ItemTicketModel(models.Model):
    id = models.CharField(max_length=36, primary_key=True, editable=False)

    ticket = models.ForeignKey(TicketModel, on_delete=models.PROTECT, related_name='itens')
    definicao = models.ForeignKey(DefinicaoTipoModel, on_delete=models.PROTECT, related_name='itens')
    estado = models.CharField(max_length=64, null=True, blank=True)

    item_externo_id = models.CharField(max_length=100, null=True, blank=True)
    item_externo_nome = models.CharField(max_length=200, null=True, blank=True)
    quantidade = models.PositiveIntegerField(default=1)
    preco_unitario = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    payload = models.JSONField(default=dict, blank=True)

    iniciado_em = models.DateTimeField(null=True, blank=True)
    concluido_em = models.DateTimeField(null=True, blank=True)

    versao = models.PositiveIntegerField(default=1)
    criado_em = models.DateTimeField(default=timezone.now)
    atualizado_em = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'itens_ticket'
        verbose_name = 'Item de Ticket'
        verbose_name_plural = 'Itens de Ticket'
        ordering = ['criado_em', 'id']
        indexes = [
            models.Index(fields=['definicao', 'estado'], name='itens_ticke_definic_2c7e94_idx'),
        ]

    def __str__(self):
        return f"[{self.id[:8]}] {self.item_externo_nome or self.definicao_id}"


class RegistroTransicaoModel(models.Model):
    """
    Histórico de transições (Audit Recorder).

    Append-only: um registro por transição aceita, inclusive a
    criação (estado_anterior nulo). item nulo = registro do ticket.
    """

    id = models.CharField(max_length=36, primary_key=True, editable=False)

    ticket = models.ForeignKey(TicketModel, on_delete=models.PROTECT, related_name='historico')
    item = models.ForeignKey(
        ItemTicketModel, on_delete=models.PROTECT, null=True, blank=True, related_name='historico'
    )

    estado_anterior = models.CharField(max_length=64, null=True, blank=True)
    estado_novo = models.CharField(max_length=64, null=True, blank=True)
    funcionario_id = models.CharField(max_length=36, null=True, blank=True)
    notas = models.TextField(blank=True, default="")

    sequencia = models.PositiveIntegerField()
    criado_em = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'historico_transicoes'
        verbose_name = 'Registro de Transição'
        verbose_name_plural = 'Histórico de Transições'
        ordering = ['ticket', 'sequencia']
        constraints = [
            models.UniqueConstraint(fields=['ticket', 'sequencia'], name='historico_sequencia_unica'),
        ]

    def __str__(self):
        return f"{self.ticket_id[:8]} #{self.sequencia}: {self.estado_anterior} -> {self.estado_novo}"


class DomainEventModel(models.Model):
    """
    Event Store genérico para Domain Events.

    Encaminhamentos e reordenações de fila são auditados apenas aqui.
    """

    event_id = models.CharField(max_length=36, primary_key=True)

    event_type = models.CharField(max_length=100, db_index=True)
    aggregate_type = models.CharField(max_length=100, db_index=True)
    aggregate_id = models.CharField(max_length=36, db_index=True)
    tenant_id = models.CharField(max_length=36, null=True, blank=True, db_index=True)

    event_data = models.JSONField(default=dict)

    version = models.IntegerField(default=1, help_text="Versão do schema do evento")
    sequence = models.BigIntegerField(default=0, help_text="Sequência do evento no agregado")

    occurred_at = models.DateTimeField()
    recorded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'domain_events'
        verbose_name = 'Evento de Domínio'
        verbose_name_plural = 'Eventos de Domínio'
        ordering = ['recorded_at']
        constraints = [
            models.UniqueConstraint(fields=['aggregate_id', 'sequence'], name='evento_sequencia_unica'),
        ]
        indexes = [
            models.Index(fields=['aggregate_type', 'recorded_at'], name='domain_even_aggrega_7b1f03_idx'),
            models.Index(fields=['event_type', 'recorded_at'], name='domain_even_event_t_4c8d52_idx'),
        ]

    def __str__(self):
        return f"{self.event_type} - {self.aggregate_id[:8]} @ {self.occurred_at}"
