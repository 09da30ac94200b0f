"""
Job de reconciliação contador x histórico
Executa periodicamente para achar contadores que avançaram sem histórico

Isso só acontece se o commit do generate terminou com resultado desconhecido
(queda de conexão no commit). O job NÃO corrige nada: apenas registra os
números faltantes, já reconstruídos, para recuperação manual.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload
from numeracao.database import SessionLocal
from numeracao.models.historico import DocumentNumberHistory
from numeracao.models.sequencia import SequenceCounter
from numeracao.services.formatacao import format_document_number

logger = logging.getLogger(__name__)

# Scheduler global
scheduler: Optional[BackgroundScheduler] = None


@dataclass
class CounterGap:
    counter_id: int
    tenant_id: int
    document_type: str
    period: str
    prefix1: Optional[str]
    prefix2: Optional[str]
    current_sequence: int
    missing_sequences: List[int] = field(default_factory=list)
    missing_numbers: List[str] = field(default_factory=list)


def find_counter_gaps(db: Session, tenant_id: Optional[int] = None) -> List[CounterGap]:
    """
    Lista contadores cujo valor está à frente do histórico gravado.

    Args:
        db: Sessão do banco
        tenant_id: Restringe a um tenant (None = todos)

    Returns:
        Lista de lacunas com as sequências e números faltantes
    """
    totals = db.query(
        DocumentNumberHistory.counter_id.label("counter_id"),
        func.count(DocumentNumberHistory.id).label("total")
    ).group_by(DocumentNumberHistory.counter_id).subquery()

    query = db.query(SequenceCounter).outerjoin(
        totals, totals.c.counter_id == SequenceCounter.id
    ).filter(
        SequenceCounter.current_sequence > func.coalesce(totals.c.total, 0)
    ).options(joinedload(SequenceCounter.config))

    if tenant_id is not None:
        query = query.filter(SequenceCounter.tenant_id == tenant_id)

    gaps = []
    for counter in query.order_by(SequenceCounter.id).all():
        recorded = {
            seq for (seq,) in db.query(DocumentNumberHistory.sequence_number).filter(
                DocumentNumberHistory.counter_id == counter.id
            )
        }
        missing = [n for n in range(1, counter.current_sequence + 1) if n not in recorded]
        gaps.append(CounterGap(
            counter_id=counter.id,
            tenant_id=counter.tenant_id,
            document_type=counter.document_type,
            period=counter.period,
            prefix1=counter.prefix1,
            prefix2=counter.prefix2,
            current_sequence=counter.current_sequence,
            missing_sequences=missing,
            missing_numbers=[
                format_document_number(counter.config, counter.period, counter.prefix1, counter.prefix2, n)
                for n in missing
            ],
        ))

    return gaps


def reconciliar_todos_tenants() -> List[CounterGap]:
    """
    Verifica todos os contadores e registra as lacunas encontradas.
    Esta funcao e executada pelo scheduler a cada X minutos.
    """
    logger.info("[RECONCILIACAO] Iniciando verificacao de contadores")

    db: Session = SessionLocal()
    try:
        gaps = find_counter_gaps(db)
        for gap in gaps:
            logger.warning(
                "[RECONCILIACAO] Contador %s (tenant=%s tipo=%s periodo=%s) em %s "
                "sem historico para: %s",
                gap.counter_id, gap.tenant_id, gap.document_type, gap.period,
                gap.current_sequence, ", ".join(gap.missing_numbers)
            )
        logger.info("[RECONCILIACAO] Verificacao concluida - %s contador(es) com lacuna", len(gaps))
        return gaps
    finally:
        db.close()


def _executar_job():
    # Falha do job nao pode derrubar o scheduler
    try:
        reconciliar_todos_tenants()
    except Exception:
        logger.exception("[RECONCILIACAO] Erro geral na verificacao")


def iniciar_scheduler(intervalo_minutos: int = 60):
    """
    Inicia o scheduler da reconciliacao.

    Args:
        intervalo_minutos: Intervalo entre execucoes (padrao: 60 minutos)
    """
    global scheduler

    if scheduler is not None:
        logger.info("[RECONCILIACAO] Scheduler ja iniciado")
        return

    scheduler = BackgroundScheduler()

    scheduler.add_job(
        func=_executar_job,
        trigger=IntervalTrigger(minutes=intervalo_minutos),
        id='numbering_reconciliation',
        name='Reconciliacao de contadores de numeracao',
        replace_existing=True
    )

    scheduler.start()
    logger.info("[RECONCILIACAO] Scheduler iniciado - verificando a cada %s minutos", intervalo_minutos)


def parar_scheduler():
    """Para o scheduler"""
    global scheduler

    if scheduler is not None:
        scheduler.shutdown()
        scheduler = None
        logger.info("[RECONCILIACAO] Scheduler parado")


def status_scheduler() -> dict:
    """Retorna status do scheduler"""
    if scheduler is None:
        return {
            "ativo": False,
            "mensagem": "Scheduler nao iniciado"
        }

    return {
        "ativo": True,
        "jobs": [
            {
                "id": job.id,
                "nome": job.name,
                "proxima_execucao": str(job.next_run_time) if job.next_run_time else None
            }
            for job in scheduler.get_jobs()
        ]
    }
