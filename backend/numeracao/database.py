from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from numeracao.config import settings


def build_engine(url: str, **kwargs):
    """
    Cria engine com os ajustes por dialeto.
    SQLite precisa de timeout alto e acesso entre threads (usado nos testes).
    """
    if url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        connect_args.setdefault("timeout", 30)
        return create_engine(url, connect_args=connect_args, **kwargs)

    return create_engine(
        url,
        pool_pre_ping=True,  # Verifica conexões antes de usar
        **kwargs
    )


# Engine do SQLAlchemy
engine = build_engine(
    settings.DATABASE_URL,
    echo=settings.ENVIRONMENT == "development" and settings.LOG_LEVEL == "DEBUG"
)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Sessões de leitura (preview). Sem réplica configurada, usa o banco principal.
if settings.READ_REPLICA_DATABASE_URL:
    read_engine = build_engine(settings.READ_REPLICA_DATABASE_URL)
    ReadSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=read_engine)
else:
    read_engine = engine
    ReadSessionLocal = SessionLocal

# Base para os models
Base = declarative_base()


def get_db():
    """
    Dependency para obter sessão do banco de dados
    Usado no FastAPI Depends
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_read_db():
    """
    Dependency para sessão somente leitura (pode estar defasada em relação ao principal)
    """
    db = ReadSessionLocal()
    try:
        yield db
    finally:
        db.close()
