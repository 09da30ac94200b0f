import os

# Banco e jobs de teste antes de importar o pacote (settings é carregado no import)
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENABLE_SCHEDULED_JOBS", "false")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlalchemy.orm import sessionmaker

from numeracao.api.deps import get_clock, get_db, get_read_db
from numeracao.core.security import create_access_token
from numeracao.database import build_engine
from numeracao.main import app
from numeracao.models import Base, NumberingConfig, PeriodFormat
from numeracao.services.numbering_service import DocumentNumberingService


class FrozenClock:
    """Relógio fixo, ajustável durante o teste"""

    def __init__(self, moment: datetime):
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment

    def set(self, moment: datetime) -> None:
        self.moment = moment


JAN_2025 = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)
FEB_2025 = datetime(2025, 2, 10, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'numeracao.db'}", pool_size=20, max_overflow=0)

    @event.listens_for(eng, "connect")
    def _sqlite_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FrozenClock(JAN_2025)


@pytest.fixture
def make_config(db):
    """Cria regra PO: prefixo 1 obrigatório, prefixo 2 opcional, 4 dígitos, '-'"""

    def _make(tenant_id: int = 1, document_type: str = "PO", **overrides) -> NumberingConfig:
        data = dict(
            document_name="Purchase Order",
            period_format=PeriodFormat.YYMM,
            prefix1_label="Warehouse",
            prefix1_default_value="WH1",
            prefix1_required=True,
            prefix2_label="Category",
            prefix2_default_value="LOCAL",
            prefix2_required=False,
            sequence_length=4,
            sequence_padding="0",
            separator="-",
            is_active=True,
        )
        data.update(overrides)
        config = NumberingConfig(tenant_id=tenant_id, document_type=document_type, **data)
        db.add(config)
        db.commit()
        db.refresh(config)
        return config

    return _make


@pytest.fixture
def make_service(clock):
    def _make(session, **kwargs) -> DocumentNumberingService:
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("timezone", "UTC")
        kwargs.setdefault("retry_backoff_ms", 0)
        return DocumentNumberingService(session, **kwargs)

    return _make


@pytest.fixture
def service(db, make_service):
    return make_service(db)


@pytest.fixture
def client(session_factory, clock):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_read_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(tenant_id: int = 1, user_id: int = 10) -> dict:
        token = create_access_token({"tenant_id": tenant_id, "user_id": user_id})
        return {"Authorization": f"Bearer {token}"}

    return _headers
