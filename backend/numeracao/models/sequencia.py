"""
Modelo para controle de sequências numéricas
Garante que números nunca reiniciem nem se repitam
"""
import json
from typing import Optional
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from numeracao.models.base import Base, TenantMixin, TimestampMixin


def build_scope_key(period: str, prefix1: Optional[str], prefix2: Optional[str]) -> str:
    """
    Codifica (período, prefixo1, prefixo2) numa chave canônica.

    NULL não participa de UNIQUE no banco, então a chave dos contadores
    não pode depender das colunas de prefixo anuláveis. Ausente vira null
    no JSON e nunca colide com string vazia.
    """
    return json.dumps([period, prefix1, prefix2], separators=(",", ":"), ensure_ascii=False)


class SequenceCounter(Base, TenantMixin, TimestampMixin):
    """
    Armazena o último número usado para cada (tenant, tipo, período, prefixos).
    Esta tabela NUNCA deve ser limpa: o contador só cresce e um novo período
    gera uma nova linha, nunca um reset.
    """
    __tablename__ = "document_sequence_counters"

    id = Column(Integer, primary_key=True, index=True)
    config_id = Column(Integer, ForeignKey("document_number_configs.id"), nullable=False, index=True)

    # Tipo do documento (denormalizado para busca rápida)
    document_type = Column(String(50), nullable=False)

    # Componentes da chave
    period = Column(String(20), nullable=False)  # 0125, 012025
    prefix1 = Column(String(50), nullable=True)
    prefix2 = Column(String(50), nullable=True)
    scope_key = Column(String(255), nullable=False)

    # Controle da sequência
    current_sequence = Column(Integer, nullable=False, default=0)
    last_generated_number = Column(String(255), nullable=True)
    last_generated_at = Column(DateTime(timezone=True), nullable=True)

    # Relacionamentos
    config = relationship("NumberingConfig", back_populates="counters")
    history = relationship("DocumentNumberHistory", back_populates="counter")

    __table_args__ = (
        UniqueConstraint('tenant_id', 'document_type', 'scope_key', name='uq_doc_seq_counter_scope'),
    )

    def __repr__(self):
        return f"<SequenceCounter {self.document_type} {self.scope_key} = {self.current_sequence}>"
