# API Utilities - DRY Helpers
from numeracao.api.utils.db_helpers import get_by_id, validate_unique
from numeracao.api.utils.pagination import paginate_query, paginate_response, apply_search_filter, apply_equal_filters
from numeracao.api.utils.updates import update_entity

__all__ = [
    # db_helpers
    "get_by_id",
    "validate_unique",
    # pagination
    "paginate_query",
    "paginate_response",
    "apply_search_filter",
    "apply_equal_filters",
    # updates
    "update_entity",
]
