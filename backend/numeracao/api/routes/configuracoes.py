"""
Rotas de Configurações de Numeração - administração das regras por tenant
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional
from numeracao.api.deps import get_db, get_current_tenant_id
from numeracao.api.utils import get_by_id, validate_unique, paginate_response, apply_search_filter, update_entity
from numeracao.models.configuracao import NumberingConfig
from numeracao.models.sequencia import SequenceCounter
from numeracao.services.formatacao import format_rule_violation
from numeracao.schemas.numeracao import (
    NumberingConfigCreate,
    NumberingConfigUpdate,
    NumberingConfigResponse,
    NumberingConfigListResponse
)

router = APIRouter()


@router.post("/", response_model=NumberingConfigResponse, status_code=201)
def criar_configuracao(
    config: NumberingConfigCreate,
    db: Session = Depends(get_db),
    tenant_id: int = Depends(get_current_tenant_id)
):
    """Criar regra de numeração (uma por tipo de documento)"""
    validate_unique(
        db, NumberingConfig, "document_type", config.document_type, tenant_id,
        display_name=f"Tipo de documento '{config.document_type}'"
    )

    db_config = NumberingConfig(**config.model_dump(), tenant_id=tenant_id)
    db.add(db_config)
    db.commit()
    db.refresh(db_config)
    return db_config


@router.get("/", response_model=NumberingConfigListResponse)
def listar_configuracoes(
    page: int = Query(1, ge=1, description="Página"),
    page_size: int = Query(20, ge=1, le=100, description="Itens por página"),
    busca: Optional[str] = Query(None, description="Buscar por tipo ou nome"),
    is_active: Optional[bool] = Query(None, description="Filtrar por status"),
    db: Session = Depends(get_db),
    tenant_id: int = Depends(get_current_tenant_id)
):
    """Listar regras de numeração do tenant"""
    query = db.query(NumberingConfig).filter(NumberingConfig.tenant_id == tenant_id)

    if busca:
        query = apply_search_filter(query, busca, NumberingConfig.document_type, NumberingConfig.document_name)
    if is_active is not None:
        query = query.filter(NumberingConfig.is_active == is_active)

    return paginate_response(query, page, page_size, NumberingConfig.document_type)


@router.get("/{config_id}", response_model=NumberingConfigResponse)
def obter_configuracao(
    config_id: int,
    db: Session = Depends(get_db),
    tenant_id: int = Depends(get_current_tenant_id)
):
    """Obter regra de numeração"""
    return get_by_id(db, NumberingConfig, config_id, tenant_id, error_message="Configuração não encontrada")


@router.put("/{config_id}", response_model=NumberingConfigResponse)
def atualizar_configuracao(
    config_id: int,
    config_update: NumberingConfigUpdate,
    db: Session = Depends(get_db),
    tenant_id: int = Depends(get_current_tenant_id)
):
    """
    Atualizar regra de numeração.
    Contadores existentes continuam valendo: a regra só muda o formato dos próximos números.
    """
    config = get_by_id(db, NumberingConfig, config_id, tenant_id, error_message="Configuração não encontrada")

    # Campos enviados combinados com os já gravados
    reason = format_rule_violation(
        config.document_type,
        config_update.sequence_padding or config.sequence_padding,
        config_update.separator or config.separator,
    )
    if reason:
        raise HTTPException(status_code=422, detail=reason)

    return update_entity(db, config, config_update)


@router.delete("/{config_id}", status_code=204)
def excluir_configuracao(
    config_id: int,
    db: Session = Depends(get_db),
    tenant_id: int = Depends(get_current_tenant_id)
):
    """
    Excluir regra de numeração.
    Só é permitido enquanto nenhum número foi gerado; depois disso, desative (is_active=false).
    """
    config = get_by_id(db, NumberingConfig, config_id, tenant_id, error_message="Configuração não encontrada")

    em_uso = db.query(SequenceCounter.id).filter(
        SequenceCounter.tenant_id == tenant_id,
        SequenceCounter.config_id == config.id
    ).first()
    if em_uso:
        raise HTTPException(
            status_code=409,
            detail="Configuração já utilizada para gerar números. Desative em vez de excluir."
        )

    db.delete(config)
    db.commit()
    return None
