import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

# tenant_id da requisição atual, lido pelos logs sem passar como parâmetro
_tenant_id_ctx_var: ContextVar[Optional[int]] = ContextVar('tenant_id', default=None)

LOG_FORMAT = "%(asctime)s %(levelname)s [tenant=%(tenant_id)s] %(name)s: %(message)s"


def get_current_tenant_id() -> Optional[int]:
    """
    Obtém o tenant_id do contexto da requisição atual
    """
    return _tenant_id_ctx_var.get()


def set_current_tenant_id(tenant_id: int) -> None:
    """
    Define o tenant_id no contexto da requisição atual
    """
    _tenant_id_ctx_var.set(tenant_id)


def clear_current_tenant_id() -> None:
    """
    Limpa o tenant_id do contexto
    """
    _tenant_id_ctx_var.set(None)


@contextmanager
def tenant_scope(tenant_id: Optional[int]) -> Iterator[None]:
    """Define o tenant durante o bloco e restaura o anterior ao sair"""
    token = _tenant_id_ctx_var.set(tenant_id)
    try:
        yield
    finally:
        _tenant_id_ctx_var.reset(token)


class TenantLogFilter(logging.Filter):
    """Adiciona tenant_id em todo registro de log (ou '-' fora de requisição)"""

    def filter(self, record: logging.LogRecord) -> bool:
        tenant_id = get_current_tenant_id()
        record.tenant_id = tenant_id if tenant_id is not None else "-"
        return True


def configure_logging(level: str = "INFO") -> None:
    """Configura o logging raiz uma única vez com o filtro de tenant"""
    root = logging.getLogger()
    if any(isinstance(f, TenantLogFilter) for h in root.handlers for f in h.filters):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(TenantLogFilter())
    root.addHandler(handler)
    root.setLevel(level.upper())
