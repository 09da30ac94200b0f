"""
Histórico de números gerados - trilha de auditoria
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from numeracao.models.base import Base, TenantMixin, TimestampMixin, utcnow


class DocumentNumberHistory(Base, TenantMixin, TimestampMixin):
    """
    Um registro por número gerado com sucesso.

    Imutável após a criação, exceto:
    - campos de cancelamento (void)
    - referência ao documento de negócio (vinculada depois que o documento existe)

    Fluxo: ATIVO -> CANCELADO (terminal). Cancelar NÃO libera o número.
    """
    __tablename__ = "document_number_history"

    id = Column(Integer, primary_key=True, index=True)
    config_id = Column(Integer, ForeignKey("document_number_configs.id"), nullable=False)
    counter_id = Column(Integer, ForeignKey("document_sequence_counters.id"), nullable=False, index=True)

    # Número completo e seus componentes
    document_type = Column(String(50), nullable=False)
    generated_number = Column(String(255), nullable=False)
    period = Column(String(20), nullable=False)
    prefix1 = Column(String(50), nullable=True)
    prefix2 = Column(String(50), nullable=True)
    sequence_number = Column(Integer, nullable=False)

    # Referência ao documento de negócio (se houver)
    document_id = Column(String(64), nullable=True)
    document_kind = Column(String(100), nullable=True)  # purchase_order, invoice

    # Geração
    generated_by = Column(Integer, nullable=True)
    generated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Cancelamento
    is_voided = Column(Boolean, default=False, nullable=False)
    voided_at = Column(DateTime(timezone=True), nullable=True)
    voided_by = Column(Integer, nullable=True)
    void_reason = Column(String(500), nullable=True)

    # Relacionamentos
    counter = relationship("SequenceCounter", back_populates="history")
    config = relationship("NumberingConfig")

    __table_args__ = (
        UniqueConstraint('tenant_id', 'generated_number', name='uq_doc_num_history_number'),
        Index('ix_doc_num_history_reference', 'tenant_id', 'document_kind', 'document_id'),
    )

    @property
    def status(self) -> str:
        return "CANCELADO" if self.is_voided else "ATIVO"

    def __repr__(self):
        return f"<DocumentNumberHistory {self.generated_number} ({self.status})>"
