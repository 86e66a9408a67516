"""
Mappers para conversão entre Entities (Core) e Models (Django).

Responsabilidades:
- Converter Entity → Model (para persistência)
- Converter Model → Entity (para uso no Core)
- Converter DomainEvent → DomainEventModel (para Event Store)

Princípios:
- Mappers são stateless
- Não contêm lógica de negócio
- Tratam apenas conversão de dados

Por que Mappers separados?
- Evita vazamento de detalhes do ORM para o Core
- Permite evolução independente de Entity e Model
"""

from typing import Any, Dict, List

from src.core.definicoes.entities import DefinicaoTipoEntity
from src.core.definicoes.maquina_estados import MaquinaEstados
from src.core.filas.entities import FilaEntity, FuncionarioEntity, TenantEntity
from src.core.shared.events import DomainEvent
from src.core.tickets.entities import ItemTicketEntity, RegistroTransicao, TicketEntity

from .models import (
    DefinicaoTipoModel,
    DomainEventModel,
    FilaModel,
    FuncionarioModel,
    ItemTicketModel,
    RegistroTransicaoModel,
    TenantModel,
    TicketModel,
)


class TenantMapper:
    @staticmethod
    def to_model(entity: TenantEntity) -> TenantModel:
        return TenantModel(
            id=entity.id,
            nome=entity.nome,
            descricao=entity.descricao,
            local=entity.local,
            ativo=entity.ativo,
            criado_em=entity.criado_em,
            atualizado_em=entity.atualizado_em,
        )

    @staticmethod
    def to_entity(model: TenantModel) -> TenantEntity:
        return TenantEntity(
            id=model.id,
            nome=model.nome,
            descricao=model.descricao,
            local=model.local,
            ativo=model.ativo,
            criado_em=model.criado_em,
            atualizado_em=model.atualizado_em,
        )


class DefinicaoTipoMapper:
    """
    Mapper para DefinicaoTipoEntity.

    A máquina de estados é persistida no formato de documento
    (MaquinaEstados.to_dict) e reinterpretada na leitura.
    """

    @staticmethod
    def to_model(entity: DefinicaoTipoEntity) -> DefinicaoTipoModel:
        return DefinicaoTipoModel(
            id=entity.id,
            tenant_id=entity.tenant_id,
            codigo=entity.codigo,
            nome=entity.nome,
            descricao=entity.descricao,
            schema=entity.schema,
            maquina=entity.maquina.to_dict() if entity.maquina is not None else None,
            tipos_item_ids=list(entity.tipos_item_ids),
            sistema=entity.sistema,
            ativo=entity.ativo,
            criado_em=entity.criado_em,
            atualizado_em=entity.atualizado_em,
        )

    @staticmethod
    def to_entity(model: DefinicaoTipoModel) -> DefinicaoTipoEntity:
        return DefinicaoTipoEntity(
            id=model.id,
            tenant_id=model.tenant_id,
            codigo=model.codigo,
            nome=model.nome,
            descricao=model.descricao,
            schema=model.schema,
            maquina=MaquinaEstados.from_dict(model.maquina) if model.maquina is not None else None,
            tipos_item_ids=tuple(model.tipos_item_ids or ()),
            sistema=model.sistema,
            ativo=model.ativo,
            criado_em=model.criado_em,
            atualizado_em=model.atualizado_em,
        )


class FilaMapper:
    @staticmethod
    def to_model(entity: FilaEntity) -> FilaModel:
        return FilaModel(
            id=entity.id,
            tenant_id=entity.tenant_id,
            nome=entity.nome,
            descricao=entity.descricao,
            tipos_aceitos=list(entity.tipos_aceitos),
            ativo=entity.ativo,
            ordem_exibicao=entity.ordem_exibicao,
            max_espera_minutos=entity.max_espera_minutos,
            criado_em=entity.criado_em,
            atualizado_em=entity.atualizado_em,
        )

    @staticmethod
    def to_entity(model: FilaModel) -> FilaEntity:
        return FilaEntity(
            id=model.id,
            tenant_id=model.tenant_id,
            nome=model.nome,
            descricao=model.descricao,
            tipos_aceitos=tuple(model.tipos_aceitos or ()),
            ativo=model.ativo,
            ordem_exibicao=model.ordem_exibicao,
            max_espera_minutos=model.max_espera_minutos,
            criado_em=model.criado_em,
            atualizado_em=model.atualizado_em,
        )


class FuncionarioMapper:
    @staticmethod
    def to_model(entity: FuncionarioEntity) -> FuncionarioModel:
        return FuncionarioModel(
            id=entity.id,
            tenant_id=entity.tenant_id,
            nome=entity.nome,
            sobrenome=entity.sobrenome,
            email=entity.email,
            cargo=entity.cargo,
            ativo=entity.ativo,
            criado_em=entity.criado_em,
            atualizado_em=entity.atualizado_em,
        )

    @staticmethod
    def to_entity(model: FuncionarioModel) -> FuncionarioEntity:
        return FuncionarioEntity(
            id=model.id,
            tenant_id=model.tenant_id,
            nome=model.nome,
            sobrenome=model.sobrenome,
            email=model.email,
            cargo=model.cargo,
            ativo=model.ativo,
            criado_em=model.criado_em,
            atualizado_em=model.atualizado_em,
        )


class TicketMapper:
    """
    Mapper para conversão entre TicketEntity e TicketModel.

    `posicao` não faz parte da entidade: pertence ao Índice da Fila
    e nunca é escrita por aqui.
    """

    @staticmethod
    def to_fields(entity: TicketEntity) -> Dict[str, Any]:
        """Colunas gravadas pelo repositório (tudo menos id e posicao)."""
        return {
            'definicao_id': entity.definicao_id,
            'fila_id': entity.fila_id,
            'estado': entity.estado,
            'pessoa_id': entity.pessoa_id,
            'ticket_referenciado_id': entity.ticket_referenciado_id,
            'funcionario_id': entity.funcionario_id,
            'payload': entity.payload,
            'ttl_minutos': entity.ttl_minutos,
            'expira_em': entity.expira_em,
            'escalado_em': entity.escalado_em,
            'iniciado_em': entity.iniciado_em,
            'pronto_em': entity.pronto_em,
            'retirado_em': entity.retirado_em,
            'concluido_em': entity.concluido_em,
            'cancelado_em': entity.cancelado_em,
            'espera_real_minutos': entity.espera_real_minutos,
            'fila_anterior_id': entity.fila_anterior_id,
            'versao': entity.versao,
            'criado_em': entity.criado_em,
            'atualizado_em': entity.atualizado_em,
        }

    @staticmethod
    def to_model(entity: TicketEntity) -> TicketModel:
        return TicketModel(id=entity.id, **TicketMapper.to_fields(entity))

    @staticmethod
    def to_entity(model: TicketModel) -> TicketEntity:
        """
        Note:
            Bypassa validações do factory method .criar()
            pois dados já foram validados na criação original
        """
        return TicketEntity(
            id=model.id,
            definicao_id=model.definicao_id,
            fila_id=model.fila_id,
            estado=model.estado,
            pessoa_id=model.pessoa_id,
            ticket_referenciado_id=model.ticket_referenciado_id,
            funcionario_id=model.funcionario_id,
            payload=dict(model.payload or {}),
            ttl_minutos=model.ttl_minutos,
            expira_em=model.expira_em,
            escalado_em=model.escalado_em,
            iniciado_em=model.iniciado_em,
            pronto_em=model.pronto_em,
            retirado_em=model.retirado_em,
            concluido_em=model.concluido_em,
            cancelado_em=model.cancelado_em,
            espera_real_minutos=model.espera_real_minutos,
            fila_anterior_id=model.fila_anterior_id,
            versao=model.versao,
            criado_em=model.criado_em,
            atualizado_em=model.atualizado_em,
        )

    @staticmethod
    def to_entity_list(models: List[TicketModel]) -> List[TicketEntity]:
        return [TicketMapper.to_entity(model) for model in models]


class ItemTicketMapper:
    @staticmethod
    def to_fields(entity: ItemTicketEntity) -> Dict[str, Any]:
        return {
            'ticket_id': entity.ticket_id,
            'definicao_id': entity.definicao_id,
            'estado': entity.estado,
            'item_externo_id': entity.item_externo_id,
            'item_externo_nome': entity.item_externo_nome,
            'quantidade': entity.quantidade,
            'preco_unitario': entity.preco_unitario,
            'payload': entity.payload,
            'iniciado_em': entity.iniciado_em,
            'concluido_em': entity.concluido_em,
            'versao': entity.versao,
            'criado_em': entity.criado_em,
            'atualizado_em': entity.atualizado_em,
        }

    @staticmethod
    def to_model(entity: ItemTicketEntity) -> ItemTicketModel:
        return ItemTicketModel(id=entity.id, **ItemTicketMapper.to_fields(entity))

    @staticmethod
    def to_entity(model: ItemTicketModel) -> ItemTicketEntity:
        return ItemTicketEntity(
            id=model.id,
            ticket_id=model.ticket_id,
            definicao_id=model.definicao_id,
            estado=model.estado,
            item_externo_id=model.item_externo_id,
            item_externo_nome=model.item_externo_nome,
            quantidade=model.quantidade,
            preco_unitario=model.preco_unitario,
            payload=dict(model.payload or {}),
            iniciado_em=model.iniciado_em,
            concluido_em=model.concluido_em,
            versao=model.versao,
            criado_em=model.criado_em,
            atualizado_em=model.atualizado_em,
        )


class RegistroTransicaoMapper:
    @staticmethod
    def to_model(registro: RegistroTransicao) -> RegistroTransicaoModel:
        return RegistroTransicaoModel(
            id=registro.id,
            ticket_id=registro.ticket_id,
            item_id=registro.item_id,
            estado_anterior=registro.estado_anterior,
            estado_novo=registro.estado_novo,
            funcionario_id=registro.funcionario_id,
            notas=registro.notas,
            sequencia=registro.sequencia,
            criado_em=registro.criado_em,
        )

    @staticmethod
    def to_entity(model: RegistroTransicaoModel) -> RegistroTransicao:
        return RegistroTransicao(
            id=model.id,
            ticket_id=model.ticket_id,
            item_id=model.item_id,
            estado_anterior=model.estado_anterior,
            estado_novo=model.estado_novo,
            funcionario_id=model.funcionario_id,
            notas=model.notas,
            sequencia=model.sequencia,
            criado_em=model.criado_em,
        )


class DomainEventMapper:
    """
    Mapper para conversão entre DomainEvent e DomainEventModel.

    Usado para persistir eventos no Event Store.
    """

    @staticmethod
    def to_model(event: DomainEvent, sequence: int = 0) -> DomainEventModel:
        return DomainEventModel(
            event_id=event.event_id,
            event_type=event.event_type,
            aggregate_type=event.aggregate_type,
            aggregate_id=event.aggregate_id,
            tenant_id=event.tenant_id,
            event_data=event._get_event_data(),
            version=event.version,
            sequence=sequence,
            occurred_at=event.occurred_at,
        )

    @staticmethod
    def to_dict(model: DomainEventModel) -> Dict[str, Any]:
        return {
            'event_id': model.event_id,
            'event_type': model.event_type,
            'aggregate_type': model.aggregate_type,
            'aggregate_id': model.aggregate_id,
            'tenant_id': model.tenant_id,
            'occurred_at': model.occurred_at.isoformat(),
            'version': model.version,
            'sequence': model.sequence,
            'data': model.event_data,
        }
