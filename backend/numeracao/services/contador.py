"""
Incremento atômico do contador de sequência

IMPORTANTE: buscar-ou-criar + incrementar é UM passo só no banco.
Nunca fazer SELECT do valor atual e depois UPDATE em outra instrução:
sob concorrência isso gera números duplicados.

Estratégias:
- upsert: INSERT ... ON CONFLICT DO UPDATE SET current_sequence = current_sequence + 1
          RETURNING (PostgreSQL e SQLite)
- row_lock: SELECT ... FOR UPDATE dentro da transação, cria se faltar, incrementa
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session

from numeracao.core.exceptions import PersistenceConflict, PersistenceUnavailable
from numeracao.models.configuracao import NumberingConfig
from numeracao.models.sequencia import SequenceCounter, build_scope_key

UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

# SQLSTATE de falhas transitórias no PostgreSQL
# 40001 serialization_failure, 40P01 deadlock_detected, 55P03 lock_not_available
CONFLICT_SQLSTATES = {"40001", "40P01", "55P03"}

SQLITE_CONFLICT_MESSAGES = ("database is locked", "database table is locked", "busy")


@dataclass(frozen=True)
class CounterKey:
    tenant_id: int
    document_type: str
    period: str
    prefix1: Optional[str]
    prefix2: Optional[str]

    @property
    def scope_key(self) -> str:
        return build_scope_key(self.period, self.prefix1, self.prefix2)


@dataclass(frozen=True)
class CounterAdvance:
    """Resultado do incremento: o valor retornado é a fonte da verdade"""
    counter_id: int
    sequence_number: int


def resolve_strategy(db: Session, strategy: str) -> str:
    """auto -> upsert onde o dialeto suporta, row_lock nos demais"""
    if strategy != "auto":
        return strategy
    dialect = db.get_bind().dialect.name
    return "upsert" if dialect in UPSERT_DIALECTS else "row_lock"


def classify_db_error(exc: Exception) -> Exception:
    """
    Converte erro do SQLAlchemy em PersistenceConflict (repetível)
    ou PersistenceUnavailable (infraestrutura).
    """
    if isinstance(exc, IntegrityError):
        # Violação determinística: repetir falha igual
        return PersistenceUnavailable(f"Violação de integridade no banco: {exc.orig}")

    if isinstance(exc, DBAPIError):
        if exc.connection_invalidated:
            return PersistenceUnavailable(f"Conexão com o banco perdida: {exc.orig}")

        orig = exc.orig
        sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
        if sqlstate in CONFLICT_SQLSTATES:
            return PersistenceConflict(f"Conflito transitório no banco ({sqlstate})")

        if isinstance(exc, OperationalError):
            message = str(orig).lower()
            if any(m in message for m in SQLITE_CONFLICT_MESSAGES):
                return PersistenceConflict(f"Banco ocupado: {orig}")

    return PersistenceUnavailable(f"Banco de dados indisponível: {exc}")


def _advance_upsert(db: Session, config: NumberingConfig, key: CounterKey, now: datetime) -> CounterAdvance:
    insert = UPSERT_DIALECTS[db.get_bind().dialect.name]
    table = SequenceCounter.__table__

    stmt = insert(table).values(
        tenant_id=key.tenant_id,
        config_id=config.id,
        document_type=key.document_type,
        period=key.period,
        prefix1=key.prefix1,
        prefix2=key.prefix2,
        scope_key=key.scope_key,
        current_sequence=1,
        last_generated_at=now,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["tenant_id", "document_type", "scope_key"],
        set_={
            "current_sequence": table.c.current_sequence + 1,
            "last_generated_at": now,
            "updated_at": now,
        },
    ).returning(table.c.id, table.c.current_sequence)

    row = db.execute(stmt).one()
    return CounterAdvance(counter_id=row.id, sequence_number=row.current_sequence)


def _advance_row_lock(db: Session, config: NumberingConfig, key: CounterKey, now: datetime) -> CounterAdvance:
    counter = db.query(SequenceCounter).filter(
        SequenceCounter.tenant_id == key.tenant_id,
        SequenceCounter.document_type == key.document_type,
        SequenceCounter.scope_key == key.scope_key
    ).with_for_update().one_or_none()

    if counter is None:
        counter = SequenceCounter(
            tenant_id=key.tenant_id,
            config_id=config.id,
            document_type=key.document_type,
            period=key.period,
            prefix1=key.prefix1,
            prefix2=key.prefix2,
            scope_key=key.scope_key,
            current_sequence=0,
        )
        db.add(counter)
        try:
            db.flush()
        except IntegrityError as e:
            # Outra transação criou a mesma chave
            raise PersistenceConflict(f"Conflito ao criar contador: {e.orig}") from e

    # Linha travada até o fim da transação
    counter.current_sequence = counter.current_sequence + 1
    counter.last_generated_at = now
    db.flush()
    return CounterAdvance(counter_id=counter.id, sequence_number=counter.current_sequence)


def advance_counter(
    db: Session,
    config: NumberingConfig,
    key: CounterKey,
    now: datetime,
    strategy: str = "auto"
) -> CounterAdvance:
    """
    Incrementa (ou cria com 1) o contador da chave e retorna o novo valor.

    Raises:
        PersistenceConflict: falha transitória, nada foi incrementado
        PersistenceUnavailable: falha de infraestrutura
    """
    resolved = resolve_strategy(db, strategy)
    try:
        if resolved == "upsert":
            return _advance_upsert(db, config, key, now)
        return _advance_row_lock(db, config, key, now)
    except DBAPIError as e:
        raise classify_db_error(e) from e


def record_last_generated(db: Session, advance: CounterAdvance, number: str) -> None:
    """
    Guarda o último número no contador, só se ele ainda estiver neste valor
    (nunca sobrescreve um número posterior).
    """
    db.execute(
        update(SequenceCounter)
        .where(
            SequenceCounter.id == advance.counter_id,
            SequenceCounter.current_sequence == advance.sequence_number
        )
        .values(last_generated_number=number)
        .execution_options(synchronize_session=False)
    )


def peek_counter(db: Session, key: CounterKey) -> Optional[SequenceCounter]:
    """Leitura sem lock e sem efeito colateral (preview)"""
    return db.query(SequenceCounter).filter(
        SequenceCounter.tenant_id == key.tenant_id,
        SequenceCounter.document_type == key.document_type,
        SequenceCounter.scope_key == key.scope_key
    ).first()
