import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from numeracao.config import settings
from numeracao.core.exceptions import NumberingError
from numeracao.core.tenant_context import configure_logging
from numeracao.middleware.tenant_middleware import TenantMiddleware
from numeracao.api.routes import configuracoes, numeros, historico, contadores

__version__ = "1.0.0"

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=__version__,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configurar CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Middleware de Tenant
app.add_middleware(TenantMiddleware)


@app.exception_handler(NumberingError)
async def numbering_error_handler(request: Request, exc: NumberingError):
    """Erros tipados do gerador viram JSON com status e código"""
    if exc.status_code >= 500:
        logger.error("[NUMERACAO] %s em %s: %s", exc.code, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code, "retryable": exc.retryable},
    )


# Rota de health check
@app.get("/health")
def health_check():
    """Health check para monitoramento"""
    return {"status": "healthy"}


@app.get(f"{settings.API_V1_STR}/version")
def get_api_version():
    """Retorna versão do backend para verificar deploy"""
    return {"version": __version__, "status": "ok"}


NUMBERING_PREFIX = f"{settings.API_V1_STR}/numbering"

app.include_router(numeros.router, prefix=NUMBERING_PREFIX, tags=["numeracao"])
app.include_router(configuracoes.router, prefix=f"{NUMBERING_PREFIX}/configs", tags=["configuracoes"])
app.include_router(historico.router, prefix=f"{NUMBERING_PREFIX}/history", tags=["historico"])
app.include_router(contadores.router, prefix=f"{NUMBERING_PREFIX}/trackers", tags=["contadores"])


# Evento de startup (tabelas e jobs agendados)
@app.on_event("startup")
def startup_event():
    logger.info("[STARTUP] %s iniciado!", settings.PROJECT_NAME)
    logger.info("[STARTUP] Ambiente: %s", settings.ENVIRONMENT)

    # Criar tabelas do banco de dados automaticamente
    from numeracao.database import engine
    from numeracao.models import Base
    Base.metadata.create_all(bind=engine)
    logger.info("[STARTUP] Tabelas do banco de dados criadas/verificadas!")

    # Job de reconciliação contador x histórico
    # Pode ser desabilitado com ENABLE_SCHEDULED_JOBS=false
    if settings.ENABLE_SCHEDULED_JOBS:
        from numeracao.jobs.reconciliation_job import iniciar_scheduler
        iniciar_scheduler(intervalo_minutos=settings.RECONCILIATION_INTERVAL_MINUTES)


@app.on_event("shutdown")
def shutdown_event():
    from numeracao.jobs.reconciliation_job import parar_scheduler
    parar_scheduler()
    logger.info("[SHUTDOWN] Sistema encerrado!")
