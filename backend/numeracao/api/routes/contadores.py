"""
Rotas dos Contadores de Sequência - somente leitura
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from numeracao.api.deps import get_db, get_current_tenant_id
from numeracao.api.utils import get_by_id, paginate_response, apply_equal_filters
from numeracao.models.sequencia import SequenceCounter
from numeracao.schemas.numeracao import SequenceCounterResponse, SequenceCounterListResponse

router = APIRouter()


@router.get("/", response_model=SequenceCounterListResponse)
def listar_contadores(
    page: int = Query(1, ge=1, description="Página"),
    page_size: int = Query(20, ge=1, le=100, description="Itens por página"),
    document_type: Optional[str] = Query(None, description="Filtrar por tipo de documento"),
    period: Optional[str] = Query(None, description="Filtrar por período"),
    db: Session = Depends(get_db),
    tenant_id: int = Depends(get_current_tenant_id)
):
    """Listar contadores do tenant (período mais recente primeiro)"""
    query = db.query(SequenceCounter).filter(SequenceCounter.tenant_id == tenant_id)
    query = apply_equal_filters(query, {
        SequenceCounter.document_type: document_type,
        SequenceCounter.period: period,
    })

    return paginate_response(
        query, page, page_size,
        order_by=(SequenceCounter.period.desc(), SequenceCounter.last_generated_at.desc())
    )


@router.get("/{counter_id}", response_model=SequenceCounterResponse)
def obter_contador(
    counter_id: int,
    db: Session = Depends(get_db),
    tenant_id: int = Depends(get_current_tenant_id)
):
    """Obter contador"""
    return get_by_id(db, SequenceCounter, counter_id, tenant_id, error_message="Contador não encontrado")
