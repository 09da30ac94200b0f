"""
Serviço de numeração de documentos

Gera números sequenciais por tenant / tipo / período / prefixos:
    PO-0125-WH1-LOCAL-0001

IMPORTANTE:
- O incremento do contador é atômico no banco (ver services/contador.py)
- O valor devolvido pelo incremento é o número desta chamada, nunca relido
- Número cancelado continua consumido, jamais é reemitido
"""
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from numeracao.config import settings
from numeracao.core.exceptions import (
    AlreadyVoided,
    DuplicateDocumentNumber,
    HistoryNotFound,
    PersistenceConflict,
    PersistenceUnavailable,
)
from numeracao.models.configuracao import NumberingConfig
from numeracao.models.historico import DocumentNumberHistory
from numeracao.services.config_store import get_active_config
from numeracao.services.contador import (
    CounterAdvance,
    CounterKey,
    advance_counter,
    classify_db_error,
    peek_counter,
    record_last_generated,
)
from numeracao.services.formatacao import (
    NumberComponents,
    format_document_number,
    parse_document_number,
    validate_prefixes,
)
from numeracao.services.periodos import Clock, compute_period_label, system_clock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentReference:
    """Documento de negócio dono do número (ex: purchase_order #123)"""
    document_id: str
    document_kind: str


@dataclass(frozen=True)
class GeneratedNumber:
    document_number: str
    history_id: int
    sequence_number: int
    period: str
    prefix1: Optional[str]
    prefix2: Optional[str]


@dataclass(frozen=True)
class PreviewNumber:
    document_number: str
    sequence_number: int
    period: str


class DocumentNumberingService:
    """
    Gerador de números de documento.

    Uma instância por sessão (request). Relógio, timezone e estratégia do
    contador são injetáveis para testes.

    Usage:
        service = DocumentNumberingService(db)
        result = service.generate(tenant_id, "PO", prefix1="WH1", generated_by=user_id)
        # result.document_number == "PO-0125-WH1-0001"
    """

    def __init__(
        self,
        db: Session,
        read_db: Optional[Session] = None,
        clock: Optional[Clock] = None,
        timezone: Optional[str] = None,
        strategy: Optional[str] = None,
        max_retries: Optional[int] = None,
        retry_backoff_ms: Optional[int] = None,
    ):
        self.db = db
        self.read_db = read_db or db
        self.clock = clock or system_clock
        self.timezone = timezone or settings.NUMBERING_TIMEZONE
        self.strategy = strategy or settings.NUMBERING_COUNTER_STRATEGY
        self.max_retries = max(1, max_retries if max_retries is not None else settings.NUMBERING_MAX_RETRIES)
        self.retry_backoff_ms = (
            retry_backoff_ms if retry_backoff_ms is not None else settings.NUMBERING_RETRY_BACKOFF_MS
        )

    # ============ GERAÇÃO ============

    def generate(
        self,
        tenant_id: int,
        document_type: str,
        prefix1: Optional[str] = None,
        prefix2: Optional[str] = None,
        generated_by: Optional[int] = None,
        reference: Optional[DocumentReference] = None,
        commit: bool = True,
    ) -> GeneratedNumber:
        """
        Gera o próximo número para a chave (tenant, tipo, período, prefixos).

        Args:
            tenant_id: Tenant do chamador
            document_type: Código do tipo (PO, SO, INV)
            prefix1/prefix2: Valores opcionais; None = ausente
            generated_by: Usuário que pediu o número
            reference: Documento de negócio já conhecido (opcional)
            commit: False = só flush, a transação é do chamador (sem retry interno)

        Raises:
            ConfigNotFound, MissingRequiredPrefix, InvalidPrefixValue,
            DuplicateDocumentNumber, PersistenceConflict, PersistenceUnavailable
        """
        config = get_active_config(self.db, tenant_id, document_type)
        validate_prefixes(config, prefix1, prefix2)

        now = self.clock()
        period = compute_period_label(now, config.period_format, self.timezone)
        key = CounterKey(
            tenant_id=tenant_id,
            document_type=config.document_type,
            period=period,
            prefix1=prefix1,
            prefix2=prefix2,
        )

        advance = self._advance(config, key, now, retry=commit)
        number = format_document_number(config, period, prefix1, prefix2, advance.sequence_number)

        try:
            record_last_generated(self.db, advance, number)
            history = DocumentNumberHistory(
                tenant_id=tenant_id,
                config_id=config.id,
                counter_id=advance.counter_id,
                document_type=config.document_type,
                generated_number=number,
                period=period,
                prefix1=prefix1,
                prefix2=prefix2,
                sequence_number=advance.sequence_number,
                document_id=reference.document_id if reference else None,
                document_kind=reference.document_kind if reference else None,
                generated_by=generated_by,
                generated_at=now,
            )
            self.db.add(history)
            self.db.flush()
            history_id = history.id
            if commit:
                self.db.commit()
        except IntegrityError as e:
            # Número já existe no histórico (regra com formato ambíguo ou dado legado)
            logger.error(
                "[NUMERACAO] Número duplicado no histórico: tenant=%s tipo=%s numero=%s erro=%s",
                tenant_id, key.document_type, number, e.orig
            )
            if commit:
                self.db.rollback()
            raise DuplicateDocumentNumber(number) from e
        except DBAPIError as e:
            # Contador pode ter avançado sem histórico: registrar para recuperação manual
            logger.error(
                "[NUMERACAO] Histórico não confirmado: tenant=%s tipo=%s periodo=%s "
                "sequencia=%s numero=%s erro=%s",
                tenant_id, key.document_type, period, advance.sequence_number, number, e
            )
            if commit:
                self.db.rollback()
            raise classify_db_error(e) from e

        logger.info(
            "[NUMERACAO] Número gerado: %s (tenant=%s, historico=%s)",
            number, tenant_id, history_id
        )
        return GeneratedNumber(
            document_number=number,
            history_id=history_id,
            sequence_number=advance.sequence_number,
            period=period,
            prefix1=prefix1,
            prefix2=prefix2,
        )

    def _advance(self, config: NumberingConfig, key: CounterKey, now, retry: bool) -> CounterAdvance:
        """
        Incremento atômico com retry limitado em PersistenceConflict.
        Repetir uma tentativa que FALHOU não duplica números.
        """
        attempts = self.max_retries if retry else 1
        config_id = config.id
        attempt = 1

        while True:
            try:
                return advance_counter(self.db, config, key, now, strategy=self.strategy)
            except PersistenceUnavailable:
                if retry:
                    self.db.rollback()
                raise
            except PersistenceConflict as e:
                if attempt >= attempts:
                    logger.warning(
                        "[NUMERACAO] Conflito ao incrementar %s após %s tentativa(s): %s",
                        key.scope_key, attempt, e
                    )
                    if retry:
                        self.db.rollback()
                    raise
                logger.info(
                    "[NUMERACAO] Conflito ao incrementar %s (tentativa %s/%s), repetindo",
                    key.scope_key, attempt, attempts
                )
                self.db.rollback()
                time.sleep(self.retry_backoff_ms * attempt / 1000.0)
                # Rollback expira o objeto; recarrega a mesma regra
                config = self.db.get(NumberingConfig, config_id)
                attempt += 1

    # ============ PREVIEW ============

    def preview(
        self,
        tenant_id: int,
        document_type: str,
        prefix1: Optional[str] = None,
        prefix2: Optional[str] = None,
    ) -> PreviewNumber:
        """
        Mostra o número que o próximo generate usaria (atual + 1).

        Somente leitura, sem lock. Pode ficar defasado no instante seguinte:
        é uma dica para a interface, não uma reserva.
        """
        config = get_active_config(self.read_db, tenant_id, document_type)
        validate_prefixes(config, prefix1, prefix2)

        period = compute_period_label(self.clock(), config.period_format, self.timezone)
        key = CounterKey(
            tenant_id=tenant_id,
            document_type=config.document_type,
            period=period,
            prefix1=prefix1,
            prefix2=prefix2,
        )

        with self._db_errors(self.read_db):
            counter = peek_counter(self.read_db, key)
        next_sequence = (counter.current_sequence if counter else 0) + 1

        return PreviewNumber(
            document_number=format_document_number(config, period, prefix1, prefix2, next_sequence),
            sequence_number=next_sequence,
            period=period,
        )

    # ============ HISTÓRICO ============

    def get_history(self, history_id: int, tenant_id: int) -> DocumentNumberHistory:
        """
        Raises:
            HistoryNotFound: inexistente ou de outro tenant
        """
        record = self.db.query(DocumentNumberHistory).filter(
            DocumentNumberHistory.id == history_id,
            DocumentNumberHistory.tenant_id == tenant_id
        ).first()

        if not record:
            raise HistoryNotFound(history_id)

        return record

    def void(
        self,
        history_id: int,
        tenant_id: int,
        reason: Optional[str],
        voided_by: Optional[int] = None,
    ) -> DocumentNumberHistory:
        """
        Cancela um número. ATIVO -> CANCELADO, sem volta.

        O número continua consumido: nenhum generate futuro o devolve.

        Raises:
            HistoryNotFound: inexistente ou de outro tenant
            AlreadyVoided: já cancelado (inclusive por cancelamento concorrente)
        """
        record = self.get_history(history_id, tenant_id)
        if record.is_voided:
            raise AlreadyVoided(history_id, record.generated_number)

        now = self.clock()
        with self._db_errors():
            # Condicional: dois cancelamentos simultâneos não passam ambos
            result = self.db.execute(
                update(DocumentNumberHistory)
                .where(
                    DocumentNumberHistory.id == history_id,
                    DocumentNumberHistory.tenant_id == tenant_id,
                    DocumentNumberHistory.is_voided == False  # noqa: E712
                )
                .values(
                    is_voided=True,
                    voided_at=now,
                    voided_by=voided_by,
                    void_reason=reason,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                self.db.rollback()
                raise AlreadyVoided(history_id, record.generated_number)
            self.db.commit()

        self.db.refresh(record)
        logger.info(
            "[NUMERACAO] Número cancelado: %s (tenant=%s, por=%s, motivo=%s)",
            record.generated_number, tenant_id, voided_by, reason
        )
        return record

    def link_to_document(
        self,
        history_id: int,
        tenant_id: int,
        document_id: str,
        document_kind: str,
    ) -> DocumentNumberHistory:
        """
        Associa o número ao documento de negócio depois que o id dele existe.
        Uma nova associação substitui a anterior.
        """
        record = self.get_history(history_id, tenant_id)

        with self._db_errors():
            record.document_id = str(document_id)
            record.document_kind = document_kind
            self.db.commit()

        self.db.refresh(record)
        return record

    def find_by_reference(
        self,
        tenant_id: int,
        document_kind: str,
        document_id: str,
    ) -> List[DocumentNumberHistory]:
        """Todos os números emitidos para um documento de negócio (mais recente primeiro)"""
        return self.db.query(DocumentNumberHistory).filter(
            DocumentNumberHistory.tenant_id == tenant_id,
            DocumentNumberHistory.document_kind == document_kind,
            DocumentNumberHistory.document_id == str(document_id)
        ).order_by(
            DocumentNumberHistory.generated_at.desc(),
            DocumentNumberHistory.id.desc()
        ).all()

    def parse(self, tenant_id: int, document_type: str, number: str) -> NumberComponents:
        """Lê os componentes de um número usando a regra ativa do tenant"""
        config = get_active_config(self.db, tenant_id, document_type)
        return parse_document_number(config, number)

    @contextmanager
    def _db_errors(self, db: Optional[Session] = None):
        db = db or self.db
        try:
            yield
        except DBAPIError as e:
            db.rollback()
            raise classify_db_error(e) from e
