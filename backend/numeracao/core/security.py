from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from numeracao.config import settings


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Cria um JWT token com os dados fornecidos

    IMPORTANTE: O token SEMPRE deve conter:
    - user_id: ID do usuário (principal que gera/cancela números)
    - tenant_id: ID do tenant (para isolamento)

    A emissão real é do serviço de autenticação; aqui serve para
    ferramentas internas e testes.
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decodifica e valida um JWT token

    Raises:
        JWTError: Se o token for inválido ou expirado
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        raise JWTError(f"Token inválido: {str(e)}")
