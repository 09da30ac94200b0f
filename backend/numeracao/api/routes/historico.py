"""
Rotas do Histórico de Numeração - auditoria, cancelamento e vínculo com documentos
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from numeracao.api.deps import get_db, get_current_tenant_id, get_current_user_id, get_numbering_service
from numeracao.api.utils import paginate_response, apply_search_filter, apply_equal_filters
from numeracao.models.historico import DocumentNumberHistory
from numeracao.schemas.numeracao import (
    DocumentNumberHistoryResponse,
    DocumentNumberHistoryListResponse,
    VoidNumberRequest,
    VoidNumberResponse,
    LinkDocumentRequest
)
from numeracao.services.numbering_service import DocumentNumberingService

router = APIRouter()


@router.get("/", response_model=DocumentNumberHistoryListResponse)
def listar_historico(
    page: int = Query(1, ge=1, description="Página"),
    page_size: int = Query(20, ge=1, le=100, description="Itens por página"),
    document_type: Optional[str] = Query(None, description="Filtrar por tipo de documento"),
    period: Optional[str] = Query(None, description="Filtrar por período"),
    busca: Optional[str] = Query(None, description="Buscar pelo número"),
    is_voided: Optional[bool] = Query(None, description="Filtrar cancelados"),
    db: Session = Depends(get_db),
    tenant_id: int = Depends(get_current_tenant_id)
):
    """Listar números gerados (mais recentes primeiro)"""
    query = db.query(DocumentNumberHistory).filter(DocumentNumberHistory.tenant_id == tenant_id)
    query = apply_equal_filters(query, {
        DocumentNumberHistory.document_type: document_type,
        DocumentNumberHistory.period: period,
        DocumentNumberHistory.is_voided: is_voided,
    })
    query = apply_search_filter(query, busca, DocumentNumberHistory.generated_number)

    return paginate_response(
        query, page, page_size,
        order_by=(DocumentNumberHistory.generated_at.desc(), DocumentNumberHistory.id.desc())
    )


@router.get("/by-reference", response_model=List[DocumentNumberHistoryResponse])
def listar_por_documento(
    document_kind: str = Query(..., description="Tipo do documento de negócio"),
    document_id: str = Query(..., description="ID do documento de negócio"),
    tenant_id: int = Depends(get_current_tenant_id),
    service: DocumentNumberingService = Depends(get_numbering_service)
):
    """Todos os números emitidos para um documento de negócio"""
    return service.find_by_reference(tenant_id, document_kind, document_id)


@router.get("/{history_id}", response_model=DocumentNumberHistoryResponse)
def obter_registro(
    history_id: int,
    tenant_id: int = Depends(get_current_tenant_id),
    service: DocumentNumberingService = Depends(get_numbering_service)
):
    """Obter registro do histórico"""
    return service.get_history(history_id, tenant_id)


@router.post("/{history_id}/void", response_model=VoidNumberResponse)
def cancelar_numero(
    history_id: int,
    dados: VoidNumberRequest,
    tenant_id: int = Depends(get_current_tenant_id),
    user_id: int = Depends(get_current_user_id),
    service: DocumentNumberingService = Depends(get_numbering_service)
):
    """
    Cancelar número gerado.
    O número NÃO volta para uso; cancelar duas vezes retorna 409.
    """
    record = service.void(history_id, tenant_id, dados.reason, voided_by=user_id)
    return {
        "history_id": record.id,
        "generated_number": record.generated_number,
        "voided_at": record.voided_at,
        "voided_by": record.voided_by,
        "void_reason": record.void_reason,
    }


@router.post("/{history_id}/link", response_model=DocumentNumberHistoryResponse)
def vincular_documento(
    history_id: int,
    dados: LinkDocumentRequest,
    tenant_id: int = Depends(get_current_tenant_id),
    service: DocumentNumberingService = Depends(get_numbering_service)
):
    """Vincular número ao documento de negócio criado depois da geração"""
    return service.link_to_document(history_id, tenant_id, dados.document_id, dados.document_kind)
