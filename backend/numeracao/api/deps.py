from fastapi import Depends, Request, HTTPException
from sqlalchemy.orm import Session
from numeracao.database import get_db, get_read_db
from numeracao.services.numbering_service import DocumentNumberingService
from numeracao.services.periodos import Clock, system_clock


def get_current_tenant_id(request: Request) -> int:
    """
    Extrai tenant_id do contexto da request (configurado pelo middleware)
    """
    if not hasattr(request.state, 'tenant_id'):
        raise HTTPException(status_code=400, detail="Tenant não identificado")
    return request.state.tenant_id


def get_current_user_id(request: Request) -> int:
    """
    Extrai user_id do contexto da request
    """
    if not hasattr(request.state, 'user_id'):
        raise HTTPException(status_code=400, detail="Usuário não identificado")
    return request.state.user_id


def get_clock() -> Clock:
    """
    Relógio usado no cálculo do período
    Substituído nos testes via app.dependency_overrides
    """
    return system_clock


def get_numbering_service(
    db: Session = Depends(get_db),
    read_db: Session = Depends(get_read_db),
    clock: Clock = Depends(get_clock)
) -> DocumentNumberingService:
    """
    Serviço de numeração ligado às sessões da request
    """
    return DocumentNumberingService(db, read_db=read_db, clock=clock)


__all__ = [
    "get_db",
    "get_read_db",
    "get_current_tenant_id",
    "get_current_user_id",
    "get_clock",
    "get_numbering_service",
]
