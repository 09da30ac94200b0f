"""
Rotas de Numeração - geração, preview e leitura de números
"""
from dataclasses import asdict
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from numeracao.api.deps import get_db, get_current_tenant_id, get_current_user_id, get_numbering_service
from numeracao.jobs.reconciliation_job import find_counter_gaps
from numeracao.schemas.numeracao import (
    GenerateNumberRequest,
    GenerateNumberResponse,
    PreviewNumberRequest,
    PreviewNumberResponse,
    ParseNumberRequest,
    ParseNumberResponse,
    CounterGapResponse
)
from numeracao.services.numbering_service import DocumentNumberingService, DocumentReference

router = APIRouter()


@router.post("/generate", response_model=GenerateNumberResponse, status_code=201)
def gerar_numero(
    dados: GenerateNumberRequest,
    tenant_id: int = Depends(get_current_tenant_id),
    user_id: int = Depends(get_current_user_id),
    service: DocumentNumberingService = Depends(get_numbering_service)
):
    """
    Gerar o próximo número do tipo de documento.

    NÃO repetir a chamada depois de uma resposta de sucesso: cada sucesso consome um número.
    Repetir após 409 (conflito) é seguro.
    """
    reference = None
    if dados.document_id is not None:
        reference = DocumentReference(document_id=dados.document_id, document_kind=dados.document_kind)

    result = service.generate(
        tenant_id,
        dados.document_type,
        prefix1=dados.prefix1,
        prefix2=dados.prefix2,
        generated_by=user_id,
        reference=reference
    )
    return asdict(result)


@router.post("/preview", response_model=PreviewNumberResponse)
def visualizar_proximo_numero(
    dados: PreviewNumberRequest,
    tenant_id: int = Depends(get_current_tenant_id),
    service: DocumentNumberingService = Depends(get_numbering_service)
):
    """
    Mostrar o número que a próxima geração usaria.
    Não reserva nada: pode ficar desatualizado a qualquer momento.
    """
    result = service.preview(tenant_id, dados.document_type, prefix1=dados.prefix1, prefix2=dados.prefix2)
    return asdict(result)


@router.post("/parse", response_model=ParseNumberResponse)
def decompor_numero(
    dados: ParseNumberRequest,
    tenant_id: int = Depends(get_current_tenant_id),
    service: DocumentNumberingService = Depends(get_numbering_service)
):
    """Decompor um número em período, prefixos e sequência"""
    return asdict(service.parse(tenant_id, dados.document_type, dados.document_number))


@router.get("/reconciliation", response_model=List[CounterGapResponse])
def verificar_lacunas(
    db: Session = Depends(get_db),
    tenant_id: int = Depends(get_current_tenant_id)
):
    """Contadores do tenant que avançaram sem registro no histórico"""
    return find_counter_gaps(db, tenant_id=tenant_id)
