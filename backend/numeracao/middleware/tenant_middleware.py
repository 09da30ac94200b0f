from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from numeracao.config import settings
from numeracao.core.security import decode_access_token
from numeracao.core.tenant_context import set_current_tenant_id, clear_current_tenant_id
from jose import JWTError


class TenantMiddleware(BaseHTTPMiddleware):
    """
    Middleware que identifica o tenant em TODAS as requisições autenticadas
    e configura o contexto para isolamento de dados

    Fluxo:
    1. Extrai o token JWT do header Authorization
    2. Decodifica o token e obtém tenant_id e user_id
    3. Adiciona ao contexto da request (request.state)
    4. Configura tenant_id no ContextVar (usado nos logs)

    IMPORTANTE: Nenhuma rota da API roda sem tenant_id, impedindo
    vazamento de numeração entre empresas
    """

    # Rotas públicas que NÃO precisam de autenticação/tenant
    PUBLIC_PATHS = [
        "/health",
        "/docs",
        "/redoc",
        "/openapi.json",
        f"{settings.API_V1_STR}/openapi.json",
        f"{settings.API_V1_STR}/version",
    ]

    @staticmethod
    def _unauthorized(detail: str) -> JSONResponse:
        # Exceção levantada em middleware não passa pelos handlers do FastAPI
        return JSONResponse(status_code=401, content={"detail": detail})

    async def dispatch(self, request: Request, call_next):
        """
        Processa cada requisição antes de chegar nas rotas
        """
        path = request.url.path

        # Permitir requisições OPTIONS (CORS preflight)
        if request.method == "OPTIONS":
            return await call_next(request)

        # Rotas públicas e qualquer coisa fora da API passam direto
        if path in self.PUBLIC_PATHS or not path.startswith(settings.API_V1_STR):
            clear_current_tenant_id()
            return await call_next(request)

        # Rotas protegidas: verificar token
        auth_header = request.headers.get("Authorization", "")

        if not auth_header.startswith("Bearer "):
            return self._unauthorized("Token de autenticação não fornecido")

        token = auth_header.replace("Bearer ", "", 1)

        try:
            payload = decode_access_token(token)
        except JWTError as e:
            clear_current_tenant_id()
            return self._unauthorized(str(e))

        tenant_id = payload.get("tenant_id")
        user_id = payload.get("user_id")

        if not tenant_id:
            return self._unauthorized("Token inválido: tenant não identificado")

        if not user_id:
            return self._unauthorized("Token inválido: usuário não identificado")

        # Adicionar ao contexto da request
        request.state.tenant_id = tenant_id
        request.state.user_id = user_id

        set_current_tenant_id(tenant_id)
        try:
            return await call_next(request)
        finally:
            # Limpar contexto após requisição
            clear_current_tenant_id()
