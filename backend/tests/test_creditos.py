import pytest

from motorep.core.utils import local_today


@pytest.fixture()
def credito(client, admin_headers, nuevo_cliente, nuevo_producto):
    cliente = nuevo_cliente()
    producto = nuevo_producto(stock=5, costo=30.0, precio=50.0)
    response = client.post(
        "/creditos",
        json={
            "cliente_id": cliente["id"],
            "items": [{"producto_id": producto["id"], "cantidad": 2, "precio_venta_unitario": 50}],
        },
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    return response.json()


def test_credito_descuenta_stock_y_marca_cliente(client, admin_headers, credito):
    assert credito["estado"] == "activo"
    assert credito["total"] == pytest.approx(100.0)

    producto_id = credito["items"][0]["producto_id"]
    assert client.get(f"/productos/{producto_id}", headers=admin_headers).json()["stock_actual"] == 3

    cliente = client.get(f"/clientes/{credito['cliente_id']}", headers=admin_headers).json()
    assert cliente["tiene_credito"] is True
    assert cliente["monto_credito_actual"] == pytest.approx(100.0)


def test_abono_parcial_entra_a_caja_con_su_parte_de_ganancia(client, admin_headers, credito):
    cliente_id = credito["cliente_id"]
    response = client.post(
        f"/creditos/clientes/{cliente_id}/abonos",
        json={"monto": 40, "metodo_pago": "yape"},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    abono = response.json()
    assert abono["saldo_anterior"] == pytest.approx(100.0)
    assert abono["venta_id"] is not None

    estado = client.get(f"/creditos/clientes/{cliente_id}", headers=admin_headers).json()
    assert estado["saldo"] == pytest.approx(60.0)
    assert estado["total_abonos"] == pytest.approx(40.0)

    cuadre = client.get(f"/caja/{local_today().isoformat()}", headers=admin_headers).json()
    assert cuadre["por_metodo"]["yape"] == pytest.approx(40.0)
    # credito de S/. 100 con S/. 40 de ganancia: el abono de 40 cobra 16
    assert cuadre["ganancia_bruta"] == pytest.approx(16.0)


def test_abono_que_excede_el_saldo(client, admin_headers, credito):
    response = client.post(
        f"/creditos/clientes/{credito['cliente_id']}/abonos",
        json={"monto": 150},
        headers=admin_headers,
    )
    assert response.status_code == 400


def test_abono_total_liquida_la_deuda(client, admin_headers, credito):
    cliente_id = credito["cliente_id"]
    client.post(f"/creditos/clientes/{cliente_id}/abonos", json={"monto": 30}, headers=admin_headers)
    response = client.post(f"/creditos/clientes/{cliente_id}/abonos", json={"monto": 70}, headers=admin_headers)
    assert response.status_code == 200, response.text

    assert client.get(f"/creditos/{credito['id']}", headers=admin_headers).json()["estado"] == "pagado"
    assert client.get("/creditos", params={"cliente_id": cliente_id}, headers=admin_headers).json() == []

    abonos = client.get(f"/creditos/clientes/{cliente_id}/abonos", headers=admin_headers).json()
    assert {a["estado"] for a in abonos} == {"procesado"}

    cuadre = client.get(f"/caja/{local_today().isoformat()}", headers=admin_headers).json()
    assert cuadre["ganancia_bruta"] == pytest.approx(40.0)

    cliente = client.get(f"/clientes/{cliente_id}", headers=admin_headers).json()
    assert cliente["tiene_credito"] is False
    assert cliente["monto_credito_actual"] == pytest.approx(0.0)

    response = client.post(f"/creditos/clientes/{cliente_id}/abonos", json={"monto": 1}, headers=admin_headers)
    assert response.status_code == 400


def test_cliente_con_credito_no_se_elimina(client, admin_headers, credito):
    response = client.delete(f"/clientes/{credito['cliente_id']}", headers=admin_headers)
    assert response.status_code == 409
