"""
Configuration Store - leitura das regras de numeração

O gerador só lê daqui. Escrita é feita pelas rotas de administração.
"""
from typing import Optional
from sqlalchemy.orm import Session

from numeracao.core.exceptions import ConfigNotFound
from numeracao.models.configuracao import NumberingConfig


def find_config(db: Session, tenant_id: int, document_type: str) -> Optional[NumberingConfig]:
    """Busca a regra do tipo de documento, ativa ou não"""
    return db.query(NumberingConfig).filter(
        NumberingConfig.tenant_id == tenant_id,
        NumberingConfig.document_type == document_type
    ).first()


def get_active_config(db: Session, tenant_id: int, document_type: str) -> NumberingConfig:
    """
    Retorna a regra ativa do tenant para o tipo de documento.

    Raises:
        ConfigNotFound: não existe regra ou ela está inativa
    """
    config = db.query(NumberingConfig).filter(
        NumberingConfig.tenant_id == tenant_id,
        NumberingConfig.document_type == document_type,
        NumberingConfig.is_active == True  # noqa: E712
    ).first()

    if not config:
        raise ConfigNotFound(tenant_id, document_type)

    return config
