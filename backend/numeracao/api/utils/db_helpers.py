"""
Database Helpers - buscas das rotas de administração
Toda busca por id é feita dentro do tenant
"""
from typing import Type, TypeVar, Any
from sqlalchemy.orm import Session
from fastapi import HTTPException

T = TypeVar('T')


def get_by_id(
    db: Session,
    model: Type[T],
    entity_id: int,
    tenant_id: int,
    error_message: str = None
) -> T:
    """
    Busca configuração ou contador pelo id, sempre filtrando o tenant.
    Registro de outro tenant responde 404, igual a um inexistente.

    Usage:
        contador = get_by_id(db, SequenceCounter, counter_id, tenant_id)
        config = get_by_id(db, NumberingConfig, config_id, tenant_id, error_message="Configuração não encontrada")
    """
    entity = db.query(model).filter(
        model.id == entity_id,
        model.tenant_id == tenant_id
    ).first()

    if not entity:
        raise HTTPException(status_code=404, detail=error_message or f"{model.__name__} não encontrado")

    return entity


def validate_unique(
    db: Session,
    model: Type[T],
    field_name: str,
    field_value: Any,
    tenant_id: int,
    display_name: str = None
) -> None:
    """
    Valida unicidade de campo dentro do tenant.

    Raises:
        HTTPException 409 se valor já existir

    Usage:
        validate_unique(db, NumberingConfig, "document_type", "PO", tenant_id)
    """
    exists = db.query(model.id).filter(
        getattr(model, field_name) == field_value,
        model.tenant_id == tenant_id
    ).first()

    if exists:
        raise HTTPException(status_code=409, detail=f"{display_name or field_name} já cadastrado")
