import pytest


@pytest.fixture()
def cotizacion(client, admin_headers, nuevo_cliente, nuevo_producto):
    cliente = nuevo_cliente()
    producto = nuevo_producto(stock=5, costo=6.0, precio=15.0)
    response = client.post(
        "/cotizaciones",
        json={
            "cliente_id": cliente["id"],
            "placa_moto": "1234-AB",
            "items": [{"producto_id": producto["id"], "cantidad": 2}],
        },
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    return response.json()


def test_cotizacion_usa_precio_por_defecto(cotizacion):
    assert cotizacion["estado"] == "pendiente"
    assert cotizacion["items"][0]["precio_venta_unitario"] == pytest.approx(15.0)
    assert cotizacion["total"] == pytest.approx(30.0)


def test_cotizacion_no_toca_stock(client, admin_headers, cotizacion):
    producto_id = cotizacion["items"][0]["producto_id"]
    assert client.get(f"/productos/{producto_id}", headers=admin_headers).json()["stock_actual"] == 5


def test_editar_items(client, admin_headers, cotizacion):
    producto_id = cotizacion["items"][0]["producto_id"]
    response = client.put(
        f"/cotizaciones/{cotizacion['id']}",
        json={"items": [{"producto_id": producto_id, "cantidad": 3, "precio_venta_unitario": 14}]},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    assert response.json()["total"] == pytest.approx(42.0)
    assert len(response.json()["items"]) == 1


def test_confirmar_genera_venta(client, admin_headers, cotizacion):
    response = client.post(f"/cotizaciones/{cotizacion['id']}/confirmar", json={}, headers=admin_headers)
    assert response.status_code == 200, response.text
    confirmada = response.json()
    assert confirmada["estado"] == "confirmada"
    assert confirmada["venta_id"] is not None

    venta = client.get(f"/ventas/{confirmada['venta_id']}", headers=admin_headers).json()
    assert venta["tipo_venta"] == "cotizacion"
    assert venta["total_venta"] == pytest.approx(30.0)
    assert venta["ganancia_total_venta"] == pytest.approx(18.0)

    producto_id = cotizacion["items"][0]["producto_id"]
    assert client.get(f"/productos/{producto_id}", headers=admin_headers).json()["stock_actual"] == 3

    assert client.post(f"/cotizaciones/{cotizacion['id']}/confirmar", json={}, headers=admin_headers).status_code == 409
    assert client.delete(f"/cotizaciones/{cotizacion['id']}", headers=admin_headers).status_code == 409


def test_confirmar_sin_stock_deja_pendiente(client, admin_headers, cotizacion):
    producto_id = cotizacion["items"][0]["producto_id"]
    client.put(
        f"/cotizaciones/{cotizacion['id']}",
        json={"items": [{"producto_id": producto_id, "cantidad": 9}]},
        headers=admin_headers,
    )
    response = client.post(f"/cotizaciones/{cotizacion['id']}/confirmar", json={}, headers=admin_headers)
    assert response.status_code == 400
    assert client.get(f"/cotizaciones/{cotizacion['id']}", headers=admin_headers).json()["estado"] == "pendiente"


def test_cancelar(client, admin_headers, cotizacion):
    response = client.post(f"/cotizaciones/{cotizacion['id']}/cancelar", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["estado"] == "cancelada"
    assert client.post(f"/cotizaciones/{cotizacion['id']}/confirmar", json={}, headers=admin_headers).status_code == 409


def test_borrador_sin_items(client, admin_headers):
    response = client.post("/cotizaciones", json={}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["estado"] == "borrador"
