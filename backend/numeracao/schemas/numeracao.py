from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime
from numeracao.models.configuracao import PeriodFormat
from numeracao.services.formatacao import format_rule_violation


def check_format_rules(model):
    """Validação compartilhada entre criação e atualização da regra"""
    reason = format_rule_violation(
        getattr(model, "document_type", None),
        model.sequence_padding,
        model.separator,
    )
    if reason:
        raise ValueError(reason)
    return model


# ============ CONFIGURACAO ============

class NumberingConfigBase(BaseModel):
    document_type: str = Field(..., min_length=1, max_length=50)
    document_name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=500)
    period_format: PeriodFormat = PeriodFormat.YYMM
    prefix1_label: Optional[str] = Field(None, max_length=100)
    prefix1_default_value: Optional[str] = Field(None, max_length=50)
    prefix1_required: bool = False
    prefix2_label: Optional[str] = Field(None, max_length=100)
    prefix2_default_value: Optional[str] = Field(None, max_length=50)
    prefix2_required: bool = False
    sequence_length: int = Field(default=4, ge=1, le=20)
    sequence_padding: str = Field(default="0", min_length=1, max_length=1)
    separator: str = Field(default="-", min_length=1, max_length=5)
    is_active: bool = True

    @field_validator("document_type")
    @classmethod
    def normalize_document_type(cls, v: str) -> str:
        v = v.strip()
        if not v or any(c.isspace() for c in v):
            raise ValueError("Tipo de documento não pode conter espaços")
        return v


class NumberingConfigCreate(NumberingConfigBase):
    @model_validator(mode="after")
    def check_format(self):
        return check_format_rules(self)


class NumberingConfigUpdate(BaseModel):
    document_name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=500)
    period_format: Optional[PeriodFormat] = None
    prefix1_label: Optional[str] = Field(None, max_length=100)
    prefix1_default_value: Optional[str] = Field(None, max_length=50)
    prefix1_required: Optional[bool] = None
    prefix2_label: Optional[str] = Field(None, max_length=100)
    prefix2_default_value: Optional[str] = Field(None, max_length=50)
    prefix2_required: Optional[bool] = None
    sequence_length: Optional[int] = Field(None, ge=1, le=20)
    sequence_padding: Optional[str] = Field(None, min_length=1, max_length=1)
    separator: Optional[str] = Field(None, min_length=1, max_length=5)
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def check_format(self):
        return check_format_rules(self)


class NumberingConfigResponse(NumberingConfigBase):
    id: int
    tenant_id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class NumberingConfigListResponse(BaseModel):
    items: List[NumberingConfigResponse]
    total: int
    page: int
    page_size: int


# ============ GERACAO ============

class PrefixValues(BaseModel):
    """None = prefixo ausente. String vazia é rejeitada pelo gerador."""
    prefix1: Optional[str] = Field(None, max_length=50)
    prefix2: Optional[str] = Field(None, max_length=50)


class GenerateNumberRequest(PrefixValues):
    document_type: str = Field(..., min_length=1, max_length=50)
    document_id: Optional[str] = Field(None, max_length=64)
    document_kind: Optional[str] = Field(None, max_length=100)

    @model_validator(mode="after")
    def check_reference(self):
        if (self.document_id is None) != (self.document_kind is None):
            raise ValueError("document_id e document_kind devem ser informados juntos")
        return self


class GenerateNumberResponse(BaseModel):
    document_number: str
    history_id: int
    sequence_number: int
    period: str
    prefix1: Optional[str] = None
    prefix2: Optional[str] = None


class PreviewNumberRequest(PrefixValues):
    document_type: str = Field(..., min_length=1, max_length=50)


class PreviewNumberResponse(BaseModel):
    document_number: str
    sequence_number: int
    period: str


class ParseNumberRequest(BaseModel):
    document_type: str = Field(..., min_length=1, max_length=50)
    document_number: str = Field(..., min_length=1, max_length=255)


class ParseNumberResponse(BaseModel):
    period: str
    prefix1: Optional[str] = None
    prefix2: Optional[str] = None
    sequence_number: int


# ============ HISTORICO ============

class VoidNumberRequest(BaseModel):
    """Cancelar número gerado"""
    reason: str = Field(..., min_length=3, max_length=500)


class VoidNumberResponse(BaseModel):
    history_id: int
    generated_number: str
    voided_at: datetime
    voided_by: Optional[int] = None
    void_reason: Optional[str] = None


class LinkDocumentRequest(BaseModel):
    """Vincular número ao documento de negócio"""
    document_id: str = Field(..., min_length=1, max_length=64)
    document_kind: str = Field(..., min_length=1, max_length=100)


class DocumentNumberHistoryResponse(BaseModel):
    id: int
    tenant_id: int
    config_id: int
    counter_id: int
    document_type: str
    generated_number: str
    period: str
    prefix1: Optional[str] = None
    prefix2: Optional[str] = None
    sequence_number: int
    document_id: Optional[str] = None
    document_kind: Optional[str] = None
    generated_by: Optional[int] = None
    generated_at: datetime
    is_voided: bool
    voided_at: Optional[datetime] = None
    voided_by: Optional[int] = None
    void_reason: Optional[str] = None
    status: str

    class Config:
        from_attributes = True


class DocumentNumberHistoryListResponse(BaseModel):
    items: List[DocumentNumberHistoryResponse]
    total: int
    page: int
    page_size: int


# ============ CONTADORES ============

class SequenceCounterResponse(BaseModel):
    id: int
    tenant_id: int
    config_id: int
    document_type: str
    period: str
    prefix1: Optional[str] = None
    prefix2: Optional[str] = None
    current_sequence: int
    last_generated_number: Optional[str] = None
    last_generated_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class SequenceCounterListResponse(BaseModel):
    items: List[SequenceCounterResponse]
    total: int
    page: int
    page_size: int


class CounterGapResponse(BaseModel):
    counter_id: int
    document_type: str
    period: str
    prefix1: Optional[str] = None
    prefix2: Optional[str] = None
    current_sequence: int
    missing_sequences: List[int]
    missing_numbers: List[str]

    class Config:
        from_attributes = True
