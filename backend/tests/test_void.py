from datetime import datetime, timezone

import pytest

from numeracao.core.exceptions import AlreadyVoided, HistoryNotFound
from numeracao.services.numbering_service import DocumentReference


def test_cancelar_numero(service, make_config, clock):
    make_config()
    result = service.generate(1, "PO", prefix1="WH1")

    record = service.void(result.history_id, 1, "Pedido duplicado", voided_by=5)

    assert record.is_voided is True
    assert record.status == "CANCELADO"
    assert record.void_reason == "Pedido duplicado"
    assert record.voided_by == 5
    assert record.voided_at.replace(tzinfo=None) == clock().replace(tzinfo=None)
    assert record.generated_number == "PO-0125-WH1-0001"


def test_cancelar_duas_vezes(service, make_config):
    make_config()
    result = service.generate(1, "PO", prefix1="WH1")
    service.void(result.history_id, 1, "erro de digitação")

    with pytest.raises(AlreadyVoided) as exc:
        service.void(result.history_id, 1, "de novo")
    assert "PO-0125-WH1-0001" in exc.value.message

    # Motivo original preservado
    assert service.get_history(result.history_id, 1).void_reason == "erro de digitação"


def test_cancelar_de_outro_tenant(service, make_config):
    make_config()
    result = service.generate(1, "PO", prefix1="WH1")

    with pytest.raises(HistoryNotFound):
        service.void(result.history_id, 2, "tentativa")

    assert service.get_history(result.history_id, 1).is_voided is False


def test_cancelar_inexistente(service, make_config):
    make_config()
    with pytest.raises(HistoryNotFound):
        service.void(999, 1, "nada")


def test_numero_cancelado_nunca_volta(service, make_config):
    make_config()
    primeiro = service.generate(1, "PO", prefix1="WH1")
    service.generate(1, "PO", prefix1="WH1")
    service.void(primeiro.history_id, 1, "cancelado")

    terceiro = service.generate(1, "PO", prefix1="WH1")
    assert terceiro.document_number == "PO-0125-WH1-0003"
    assert service.preview(1, "PO", prefix1="WH1").sequence_number == 4


def test_vincular_documento(service, make_config):
    make_config()
    result = service.generate(1, "PO", prefix1="WH1")

    record = service.link_to_document(result.history_id, 1, "123", "purchase_order")
    assert record.document_id == "123"
    assert record.document_kind == "purchase_order"

    found = service.find_by_reference(1, "purchase_order", "123")
    assert [r.generated_number for r in found] == ["PO-0125-WH1-0001"]


def test_novo_vinculo_substitui_o_anterior(service, make_config):
    make_config()
    result = service.generate(1, "PO", prefix1="WH1")
    service.link_to_document(result.history_id, 1, "123", "purchase_order")
    service.link_to_document(result.history_id, 1, "456", "purchase_order")

    assert service.find_by_reference(1, "purchase_order", "123") == []
    assert len(service.find_by_reference(1, "purchase_order", "456")) == 1


def test_vincular_de_outro_tenant(service, make_config):
    make_config()
    result = service.generate(1, "PO", prefix1="WH1")

    with pytest.raises(HistoryNotFound):
        service.link_to_document(result.history_id, 2, "123", "purchase_order")


def test_busca_por_referencia_mais_recente_primeiro(service, make_config, clock):
    make_config()
    ref = DocumentReference(document_id="77", document_kind="purchase_order")
    primeiro = service.generate(1, "PO", prefix1="WH1", reference=ref)
    service.void(primeiro.history_id, 1, "reemitido")

    clock.set(datetime(2025, 1, 20, tzinfo=timezone.utc))
    segundo = service.generate(1, "PO", prefix1="WH1", reference=ref)

    found = service.find_by_reference(1, "purchase_order", "77")
    assert [r.id for r in found] == [segundo.history_id, primeiro.history_id]
    assert [r.status for r in found] == ["ATIVO", "CANCELADO"]

    # Isolado por tenant
    assert service.find_by_reference(2, "purchase_order", "77") == []
