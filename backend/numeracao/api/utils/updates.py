"""
Update Helpers - Funções para atualização de entidades
"""
from typing import TypeVar, List
from sqlalchemy.orm import Session
from pydantic import BaseModel

T = TypeVar('T')


def update_entity(
    db: Session,
    entity: T,
    update_data: BaseModel,
    exclude_fields: List[str] = None,
    commit: bool = True
) -> T:
    """
    Atualiza entidade com os campos enviados no schema Pydantic.
    Campos não enviados (unset) ficam como estão.

    Usage:
        config = update_entity(db, config, config_update)
        config = update_entity(db, config, config_update, exclude_fields=["document_type"])
    """
    data = update_data.model_dump(exclude_unset=True)

    for field, value in data.items():
        if exclude_fields and field in exclude_fields:
            continue
        if hasattr(entity, field):
            setattr(entity, field, value)

    if commit:
        db.commit()
        db.refresh(entity)

    return entity
