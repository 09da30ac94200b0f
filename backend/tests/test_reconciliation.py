import logging

from sqlalchemy import update

from numeracao.jobs import reconciliation_job
from numeracao.jobs.reconciliation_job import find_counter_gaps
from numeracao.models import SequenceCounter


def _avancar_sem_historico(db, quantidade: int):
    db.execute(
        update(SequenceCounter).values(current_sequence=SequenceCounter.current_sequence + quantidade)
    )
    db.commit()


def test_sem_lacunas(db, service, make_config):
    make_config()
    service.generate(1, "PO", prefix1="WH1")
    service.generate(1, "PO", prefix1="WH1")

    assert find_counter_gaps(db) == []


def test_contador_a_frente_do_historico(db, service, make_config):
    make_config()
    service.generate(1, "PO", prefix1="WH1")
    _avancar_sem_historico(db, 2)

    gaps = find_counter_gaps(db)
    assert len(gaps) == 1
    gap = gaps[0]
    assert gap.tenant_id == 1
    assert gap.document_type == "PO"
    assert gap.period == "0125"
    assert gap.current_sequence == 3
    assert gap.missing_sequences == [2, 3]
    assert gap.missing_numbers == ["PO-0125-WH1-0002", "PO-0125-WH1-0003"]


def test_cancelado_nao_e_lacuna(db, service, make_config):
    make_config()
    result = service.generate(1, "PO", prefix1="WH1")
    service.void(result.history_id, 1, "cancelado")

    assert find_counter_gaps(db) == []


def test_filtro_por_tenant(db, service, make_config):
    make_config(tenant_id=1)
    make_config(tenant_id=2)
    service.generate(1, "PO", prefix1="WH1")
    service.generate(2, "PO", prefix1="WH1")
    db.execute(
        update(SequenceCounter)
        .where(SequenceCounter.tenant_id == 1)
        .values(current_sequence=5)
    )
    db.commit()

    assert [g.tenant_id for g in find_counter_gaps(db)] == [1]
    assert find_counter_gaps(db, tenant_id=2) == []


def test_job_registra_lacunas(monkeypatch, caplog, db, session_factory, service, make_config):
    make_config()
    service.generate(1, "PO", prefix1="WH1")
    _avancar_sem_historico(db, 1)
    monkeypatch.setattr(reconciliation_job, "SessionLocal", session_factory)

    with caplog.at_level(logging.WARNING, logger="numeracao.jobs.reconciliation_job"):
        gaps = reconciliation_job.reconciliar_todos_tenants()

    assert len(gaps) == 1
    assert "PO-0125-WH1-0002" in caplog.text


def test_falha_do_job_nao_propaga(monkeypatch, caplog):
    def explode():
        raise RuntimeError("banco fora")

    monkeypatch.setattr(reconciliation_job, "reconciliar_todos_tenants", explode)

    with caplog.at_level(logging.ERROR, logger="numeracao.jobs.reconciliation_job"):
        reconciliation_job._executar_job()

    assert "banco fora" in caplog.text


def test_scheduler_iniciar_e_parar():
    assert reconciliation_job.status_scheduler()["ativo"] is False

    reconciliation_job.iniciar_scheduler(intervalo_minutos=60)
    try:
        status = reconciliation_job.status_scheduler()
        assert status["ativo"] is True
        assert [job["id"] for job in status["jobs"]] == ["numbering_reconciliation"]
    finally:
        reconciliation_job.parar_scheduler()

    assert reconciliation_job.status_scheduler()["ativo"] is False
