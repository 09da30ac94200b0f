"""
Modelo de configuração de numeração de documentos
Define o formato e as regras de cada tipo de documento por tenant
"""
from sqlalchemy import Column, Integer, String, Boolean, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from numeracao.models.base import Base, TenantMixin, TimestampMixin
import enum


class PeriodFormat(str, enum.Enum):
    """
    Formato do período que particiona os contadores.

    YYMM   -> mês 2 dígitos + ano 2 dígitos   (0125)
    YYYYMM -> mês 2 dígitos + ano 4 dígitos   (012025)
    YYWW   -> semana ISO + ano ISO 2 dígitos  (0325)
    YYYYWW -> semana ISO + ano ISO 4 dígitos  (032025)
    """
    YYMM = "YYMM"
    YYYYMM = "YYYYMM"
    YYWW = "YYWW"
    YYYYWW = "YYYYWW"


class NumberingConfig(Base, TenantMixin, TimestampMixin):
    """
    Regra de numeração - uma por (tenant, tipo de documento).

    Criada pelo administrador. O gerador apenas lê, nunca altera.

    Formato final:
        {tipo}{sep}{periodo}[{sep}{prefixo1}][{sep}{prefixo2}]{sep}{sequencia}
        Ex: PO-0125-WH1-LOCAL-0001
    """
    __tablename__ = "document_number_configs"

    id = Column(Integer, primary_key=True, index=True)

    # Identificação do documento
    document_type = Column(String(50), nullable=False)  # PO, SO, INV
    document_name = Column(String(255), nullable=False)  # Purchase Order
    description = Column(String(500), nullable=True)

    # Período
    period_format = Column(SQLEnum(PeriodFormat), default=PeriodFormat.YYMM, nullable=False)

    # Prefixos (ambos opcionais)
    prefix1_label = Column(String(100), nullable=True)  # Warehouse, Department
    prefix1_default_value = Column(String(50), nullable=True)  # WH1 (apenas sugestão)
    prefix1_required = Column(Boolean, default=False, nullable=False)

    prefix2_label = Column(String(100), nullable=True)  # Category, Location
    prefix2_default_value = Column(String(50), nullable=True)  # LOCAL, IMPORT
    prefix2_required = Column(Boolean, default=False, nullable=False)

    # Sequência
    sequence_length = Column(Integer, default=4, nullable=False)  # 4 -> 0001
    sequence_padding = Column(String(1), default="0", nullable=False)

    # Separador entre os segmentos
    separator = Column(String(5), default="-", nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)

    # Relacionamentos
    counters = relationship("SequenceCounter", back_populates="config")

    __table_args__ = (
        UniqueConstraint('tenant_id', 'document_type', name='uq_doc_num_config_tenant_type'),
    )

    def prefix_configured(self, slot: int) -> bool:
        """Prefixo tem rótulo ou é obrigatório"""
        if slot == 1:
            return bool(self.prefix1_label) or bool(self.prefix1_required)
        return bool(self.prefix2_label) or bool(self.prefix2_required)

    def __repr__(self):
        return f"<NumberingConfig {self.document_type} tenant={self.tenant_id} ({self.period_format})>"
