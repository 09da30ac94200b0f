"""
Models do serviço de numeração - Multi-tenant

IMPORTANTE: Todos os models herdam de TenantMixin, que adiciona tenant_id
Isso garante isolamento de dados entre empresas
"""

from numeracao.models.base import Base, TenantMixin, TimestampMixin
from numeracao.models.configuracao import NumberingConfig, PeriodFormat
from numeracao.models.sequencia import SequenceCounter, build_scope_key
from numeracao.models.historico import DocumentNumberHistory

__all__ = [
    "Base",
    "TenantMixin",
    "TimestampMixin",
    "NumberingConfig",
    "PeriodFormat",
    "SequenceCounter",
    "build_scope_key",
    "DocumentNumberHistory",
]
