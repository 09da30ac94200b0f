from sqlalchemy import Column, Integer, DateTime
from sqlalchemy.orm import declared_attr
from datetime import datetime, timezone
from numeracao.database import Base


def utcnow() -> datetime:
    """Agora em UTC (timezone-aware)"""
    return datetime.now(timezone.utc)


class TenantMixin:
    """
    Mixin para adicionar tenant_id em TODAS as tabelas
    CRÍTICO para isolamento multi-tenant

    O cadastro de tenants é externo a este serviço: tenant_id é apenas
    a partição, nunca há consulta sem filtrar por ele.
    """

    @declared_attr
    def tenant_id(cls):
        return Column(Integer, nullable=False, index=True)


class TimestampMixin:
    """
    Mixin para campos de auditoria temporal
    Todas as tabelas terão created_at e updated_at
    """
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


# Base já foi definida em database.py
# Aqui apenas importamos e exportamos para facilitar
__all__ = ['Base', 'TenantMixin', 'TimestampMixin', 'utcnow']
