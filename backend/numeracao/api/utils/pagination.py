"""
Pagination Helpers - paginação e filtros das listagens
"""
from typing import Any, Optional, Tuple, List
from sqlalchemy.orm import Query
from sqlalchemy import or_


def paginate_query(
    query: Query,
    page: int = 1,
    page_size: int = 20,
    order_by: Any = None
) -> Tuple[List[Any], int]:
    """
    Aplica paginação em uma query e retorna itens + total.

    Args:
        query: Query SQLAlchemy
        page: Número da página (1-indexed)
        page_size: Tamanho da página
        order_by: Coluna ou tupla de colunas para ordenação

    Usage:
        items, total = paginate_query(query, page, page_size,
                                      (SequenceCounter.period.desc(), SequenceCounter.last_generated_at.desc()))
    """
    total = query.order_by(None).count()

    if order_by is not None:
        if isinstance(order_by, tuple):
            query = query.order_by(*order_by)
        else:
            query = query.order_by(order_by)

    items = query.offset((page - 1) * page_size).limit(page_size).all()

    return items, total


def paginate_response(
    query: Query,
    page: int = 1,
    page_size: int = 20,
    order_by: Any = None
) -> dict:
    """
    Paginação já no formato de resposta {items, total, page, page_size}
    """
    items, total = paginate_query(query, page, page_size, order_by)
    return {
        "items": items,
        "total": total,
        "page": page,
        "page_size": page_size
    }


def apply_search_filter(
    query: Query,
    search_term: Optional[str],
    *fields
) -> Query:
    """
    Busca ILIKE em um ou mais campos.

    Usage:
        query = apply_search_filter(query, busca, DocumentNumberHistory.generated_number)
    """
    if not search_term or not fields:
        return query

    conditions = [field.ilike(f"%{search_term}%") for field in fields]
    return query.filter(or_(*conditions))


def apply_equal_filters(query: Query, filters: dict) -> Query:
    """
    Filtros de igualdade; valores None são ignorados.

    Usage:
        query = apply_equal_filters(query, {
            DocumentNumberHistory.document_type: document_type,
            DocumentNumberHistory.is_voided: is_voided,
        })
    """
    for field, value in filters.items():
        if value is None:
            continue
        query = query.filter(field == value)

    return query
