from numeracao.core.security import create_access_token

API = "/api/v1/numbering"

CONFIG_PO = {
    "document_type": "PO",
    "document_name": "Purchase Order",
    "period_format": "YYMM",
    "prefix1_label": "Warehouse",
    "prefix1_default_value": "WH1",
    "prefix1_required": True,
    "prefix2_label": "Category",
    "prefix2_required": False,
    "sequence_length": 4,
}


def _criar_config(client, headers, **overrides):
    payload = {**CONFIG_PO, **overrides}
    response = client.post(f"{API}/configs/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def _gerar(client, headers, **payload):
    body = {"document_type": "PO", "prefix1": "WH1", **payload}
    return client.post(f"{API}/generate", json=body, headers=headers)


# ============ AUTENTICAÇÃO ============

def test_rotas_publicas(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/api/v1/version").json()["version"] == "1.0.0"


def test_sem_token(client):
    response = client.post(f"{API}/generate", json={"document_type": "PO"})
    assert response.status_code == 401


def test_token_invalido(client):
    response = client.get(f"{API}/configs/", headers={"Authorization": "Bearer abc.def.ghi"})
    assert response.status_code == 401


def test_token_sem_tenant(client):
    token = create_access_token({"user_id": 10})
    response = client.get(f"{API}/configs/", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


# ============ CONFIGURAÇÕES ============

def test_crud_de_configuracao(client, auth_headers):
    headers = auth_headers()
    config = _criar_config(client, headers)
    assert config["tenant_id"] == 1
    assert config["separator"] == "-"
    assert config["sequence_padding"] == "0"
    assert config["is_active"] is True

    duplicada = client.post(f"{API}/configs/", json=CONFIG_PO, headers=headers)
    assert duplicada.status_code == 409

    lista = client.get(f"{API}/configs/", headers=headers).json()
    assert lista["total"] == 1
    assert lista["items"][0]["document_type"] == "PO"

    atualizada = client.put(
        f"{API}/configs/{config['id']}", json={"document_name": "Pedido de Compra"}, headers=headers
    )
    assert atualizada.status_code == 200
    assert atualizada.json()["document_name"] == "Pedido de Compra"
    assert atualizada.json()["prefix1_label"] == "Warehouse"

    assert client.get(f"{API}/configs/{config['id']}", headers=headers).status_code == 200
    assert client.delete(f"{API}/configs/{config['id']}", headers=headers).status_code == 204
    assert client.get(f"{API}/configs/{config['id']}", headers=headers).status_code == 404


def test_configuracao_de_outro_tenant(client, auth_headers):
    config = _criar_config(client, auth_headers(tenant_id=1))

    response = client.get(f"{API}/configs/{config['id']}", headers=auth_headers(tenant_id=2))
    assert response.status_code == 404
    assert client.get(f"{API}/configs/", headers=auth_headers(tenant_id=2)).json()["total"] == 0


def test_configuracao_invalida(client, auth_headers):
    headers = auth_headers()
    response = client.post(f"{API}/configs/", json={**CONFIG_PO, "document_type": "P-O"}, headers=headers)
    assert response.status_code == 422

    response = client.post(f"{API}/configs/", json={**CONFIG_PO, "document_type": "P O"}, headers=headers)
    assert response.status_code == 422

    response = client.post(f"{API}/configs/", json={**CONFIG_PO, "period_format": "DDMM"}, headers=headers)
    assert response.status_code == 422


def test_formato_ambiguo_recusado_na_criacao(client, auth_headers):
    headers = auth_headers()
    for override in (
        {"sequence_padding": "1"},
        {"separator": "1"},
        {"separator": "-0-"},
        {"sequence_padding": "-", "separator": "-"},
    ):
        response = client.post(f"{API}/configs/", json={**CONFIG_PO, **override}, headers=headers)
        assert response.status_code == 422, override

    assert client.get(f"{API}/configs/", headers=headers).json()["total"] == 0

    config = _criar_config(client, headers, sequence_padding="#", separator="/")
    assert config["separator"] == "/"


def test_formato_ambiguo_recusado_na_atualizacao(client, auth_headers):
    headers = auth_headers()
    config = _criar_config(client, headers)
    url = f"{API}/configs/{config['id']}"

    for payload in (
        {"separator": "1"},
        {"sequence_padding": "7"},
        {"separator": "O"},           # faz parte do tipo PO
        {"sequence_padding": "-"},    # igual ao separador gravado
    ):
        response = client.put(url, json=payload, headers=headers)
        assert response.status_code == 422, payload

    atual = client.get(url, headers=headers).json()
    assert (atual["sequence_padding"], atual["separator"]) == ("0", "-")

    response = client.put(url, json={"separator": "/"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["separator"] == "/"


def test_configuracao_usada_nao_pode_ser_excluida(client, auth_headers):
    headers = auth_headers()
    config = _criar_config(client, headers)
    assert _gerar(client, headers).status_code == 201

    response = client.delete(f"{API}/configs/{config['id']}", headers=headers)
    assert response.status_code == 409


# ============ GERAÇÃO ============

def test_gerar_numero(client, auth_headers):
    headers = auth_headers()
    _criar_config(client, headers)

    response = _gerar(client, headers, prefix2="LOCAL")
    assert response.status_code == 201
    body = response.json()
    assert body["document_number"] == "PO-0125-WH1-LOCAL-0001"
    assert body["sequence_number"] == 1
    assert body["period"] == "0125"

    historico = client.get(f"{API}/history/{body['history_id']}", headers=headers).json()
    assert historico["generated_by"] == 10
    assert historico["status"] == "ATIVO"


def test_erros_tipados_na_geracao(client, auth_headers):
    headers = auth_headers()
    _criar_config(client, headers)

    response = _gerar(client, headers, prefix1=None)
    assert response.status_code == 422
    assert response.json()["code"] == "MissingRequiredPrefix"
    assert response.json()["retryable"] is False

    response = _gerar(client, headers, prefix1="WH-1")
    assert response.status_code == 422
    assert response.json()["code"] == "InvalidPrefixValue"

    response = _gerar(client, headers, document_type="INV")
    assert response.status_code == 404
    assert response.json()["code"] == "ConfigNotFound"


def test_prefixo2_sozinho_com_prefixo1_opcional(client, auth_headers):
    headers = auth_headers()
    _criar_config(client, headers, prefix1_required=False)

    response = _gerar(client, headers, prefix1=None, prefix2="LOCAL")
    assert response.status_code == 422
    assert response.json()["code"] == "InvalidPrefixValue"


def test_referencia_incompleta(client, auth_headers):
    headers = auth_headers()
    _criar_config(client, headers)

    response = _gerar(client, headers, document_id="123")
    assert response.status_code == 422


def test_preview_e_parse(client, auth_headers):
    headers = auth_headers()
    _criar_config(client, headers)
    _gerar(client, headers)

    preview = client.post(f"{API}/preview", json={"document_type": "PO", "prefix1": "WH1"}, headers=headers)
    assert preview.status_code == 200
    assert preview.json() == {"document_number": "PO-0125-WH1-0002", "sequence_number": 2, "period": "0125"}

    parse = client.post(
        f"{API}/parse", json={"document_type": "PO", "document_number": "PO-0125-WH1-LOCAL-0042"}, headers=headers
    )
    assert parse.status_code == 200
    assert parse.json() == {"period": "0125", "prefix1": "WH1", "prefix2": "LOCAL", "sequence_number": 42}

    invalido = client.post(
        f"{API}/parse", json={"document_type": "PO", "document_number": "SO-0125-0001"}, headers=headers
    )
    assert invalido.status_code == 422
    assert invalido.json()["code"] == "InvalidDocumentNumber"


# ============ HISTÓRICO ============

def test_cancelar_pela_api(client, auth_headers):
    headers = auth_headers()
    _criar_config(client, headers)
    history_id = _gerar(client, headers).json()["history_id"]

    response = client.post(f"{API}/history/{history_id}/void", json={"reason": "duplicado"}, headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert body["generated_number"] == "PO-0125-WH1-0001"
    assert body["voided_by"] == 10
    assert body["void_reason"] == "duplicado"

    repetido = client.post(f"{API}/history/{history_id}/void", json={"reason": "duplicado"}, headers=headers)
    assert repetido.status_code == 409
    assert repetido.json()["code"] == "AlreadyVoided"

    assert _gerar(client, headers).json()["document_number"] == "PO-0125-WH1-0002"


def test_cancelar_de_outro_tenant_pela_api(client, auth_headers):
    _criar_config(client, auth_headers(tenant_id=1))
    history_id = _gerar(client, auth_headers(tenant_id=1)).json()["history_id"]

    outro = auth_headers(tenant_id=2)
    assert client.get(f"{API}/history/{history_id}", headers=outro).status_code == 404
    response = client.post(f"{API}/history/{history_id}/void", json={"reason": "invasão"}, headers=outro)
    assert response.status_code == 404
    assert response.json()["code"] == "HistoryNotFound"


def test_motivo_obrigatorio(client, auth_headers):
    headers = auth_headers()
    _criar_config(client, headers)
    history_id = _gerar(client, headers).json()["history_id"]

    response = client.post(f"{API}/history/{history_id}/void", json={"reason": "x"}, headers=headers)
    assert response.status_code == 422


def test_vincular_e_buscar_por_referencia(client, auth_headers):
    headers = auth_headers()
    _criar_config(client, headers)
    history_id = _gerar(client, headers).json()["history_id"]

    response = client.post(
        f"{API}/history/{history_id}/link",
        json={"document_id": "123", "document_kind": "purchase_order"},
        headers=headers
    )
    assert response.status_code == 200
    assert response.json()["document_id"] == "123"

    found = client.get(
        f"{API}/history/by-reference",
        params={"document_kind": "purchase_order", "document_id": "123"},
        headers=headers
    )
    assert found.status_code == 200
    assert [r["id"] for r in found.json()] == [history_id]


def test_listar_historico_com_filtros(client, auth_headers):
    headers = auth_headers()
    _criar_config(client, headers)
    ids = [_gerar(client, headers).json()["history_id"] for _ in range(3)]
    client.post(f"{API}/history/{ids[0]}/void", json={"reason": "cancelado"}, headers=headers)

    todos = client.get(f"{API}/history/", headers=headers).json()
    assert todos["total"] == 3
    assert [r["id"] for r in todos["items"]] == list(reversed(ids))

    cancelados = client.get(f"{API}/history/", params={"is_voided": True}, headers=headers).json()
    assert [r["generated_number"] for r in cancelados["items"]] == ["PO-0125-WH1-0001"]

    busca = client.get(f"{API}/history/", params={"busca": "0002"}, headers=headers).json()
    assert busca["total"] == 1


# ============ CONTADORES ============

def test_listar_contadores(client, auth_headers):
    headers = auth_headers()
    _criar_config(client, headers)
    _gerar(client, headers)
    _gerar(client, headers)
    _gerar(client, headers, prefix1="WH2")

    lista = client.get(f"{API}/trackers/", params={"period": "0125"}, headers=headers).json()
    assert lista["total"] == 2
    por_prefixo = {c["prefix1"]: c for c in lista["items"]}
    assert por_prefixo["WH1"]["current_sequence"] == 2
    assert por_prefixo["WH1"]["last_generated_number"] == "PO-0125-WH1-0002"

    counter_id = por_prefixo["WH2"]["id"]
    assert client.get(f"{API}/trackers/{counter_id}", headers=headers).status_code == 200
    assert client.get(f"{API}/trackers/{counter_id}", headers=auth_headers(tenant_id=2)).status_code == 404


def test_reconciliacao_sem_lacunas(client, auth_headers):
    headers = auth_headers()
    _criar_config(client, headers)
    _gerar(client, headers)

    response = client.get(f"{API}/reconciliation", headers=headers)
    assert response.status_code == 200
    assert response.json() == []
