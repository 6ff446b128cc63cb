import pytest


@pytest.fixture()
def proveedor(client, admin_headers):
    response = client.post("/proveedores", json={"nombre_empresa": "Repuestos Lima SAC"}, headers=admin_headers)
    assert response.status_code == 200, response.text
    return response.json()


def _ingresar_lote(client, headers, proveedor_id, producto_id, numero_lote, cantidad, costo):
    response = client.post(
        "/inventario/ingresos",
        json={
            "proveedor_id": proveedor_id,
            "items": [
                {
                    "producto_id": producto_id,
                    "numero_lote": numero_lote,
                    "cantidad": cantidad,
                    "precio_compra_unitario": costo,
                }
            ],
        },
        headers=headers,
    )
    assert response.status_code == 200, response.text
    ingreso = response.json()
    response = client.post(f"/inventario/ingresos/{ingreso['id']}/confirmar", headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


def test_venta_consume_lotes_en_orden_fifo(client, admin_headers, proveedor, nuevo_cliente, nuevo_producto, nueva_venta):
    cliente = nuevo_cliente()
    producto = nuevo_producto(stock=3, costo=5.0, precio=12.0)
    _ingresar_lote(client, admin_headers, proveedor["id"], producto["id"], "L-002", 4, 7.0)

    venta = nueva_venta(cliente["id"], producto["id"], cantidad=5, precio=12.0)

    assert venta["total_venta"] == pytest.approx(60.0)
    cantidades = [(item["cantidad"], item["precio_compra_unitario"]) for item in venta["items"]]
    assert cantidades == [(3, pytest.approx(5.0)), (2, pytest.approx(7.0))]
    # 3 x (12 - 5) + 2 x (12 - 7)
    assert venta["ganancia_total_venta"] == pytest.approx(31.0)

    lotes = client.get(f"/productos/{producto['id']}/lotes", headers=admin_headers).json()
    estados = {lote["numero_lote"]: (lote["estado"], lote["stock_restante"]) for lote in lotes}
    assert estados["INI-P-001"] == ("agotado", 0)
    assert estados["L-002"] == ("activo", 2)

    actualizado = client.get(f"/productos/{producto['id']}", headers=admin_headers).json()
    assert actualizado["stock_actual"] == 2
    assert actualizado["precio_compra_default"] == pytest.approx(7.0)


def test_stock_insuficiente_no_descuenta_nada(client, admin_headers, nuevo_cliente, nuevo_producto):
    cliente = nuevo_cliente()
    disco = nuevo_producto(codigo="DISCO", stock=5)
    cadena = nuevo_producto(codigo="CADENA", stock=1)

    response = client.post(
        "/ventas",
        json={
            "cliente_id": cliente["id"],
            "items": [
                {"producto_id": disco["id"], "cantidad": 2, "precio_venta_unitario": 10},
                {"producto_id": cadena["id"], "cantidad": 3, "precio_venta_unitario": 10},
            ],
        },
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert "Stock insuficiente" in response.json()["detail"]

    assert client.get(f"/productos/{disco['id']}", headers=admin_headers).json()["stock_actual"] == 5
    assert client.get("/ventas", headers=admin_headers).json() == []


def test_pagos_mixtos(client, admin_headers, nuevo_cliente, nuevo_producto, nueva_venta):
    cliente = nuevo_cliente()
    producto = nuevo_producto(stock=5)

    venta = nueva_venta(
        cliente["id"],
        producto["id"],
        cantidad=3,
        precio=10.0,
        pagos=[{"metodo": "efectivo", "monto": 10}, {"metodo": "yape", "monto": 20}],
    )
    assert venta["metodo_pago"] == "mixto"
    assert sorted(p["metodo"] for p in venta["pagos"]) == ["efectivo", "yape"]

    response = client.post(
        "/ventas",
        json={
            "cliente_id": cliente["id"],
            "pagos": [{"metodo": "efectivo", "monto": 5}],
            "items": [{"producto_id": producto["id"], "cantidad": 1, "precio_venta_unitario": 10}],
        },
        headers=admin_headers,
    )
    assert response.status_code == 400


def test_metodo_de_pago_invalido(client, admin_headers, nuevo_cliente, nuevo_producto):
    cliente = nuevo_cliente()
    producto = nuevo_producto(stock=5)
    response = client.post(
        "/ventas",
        json={
            "cliente_id": cliente["id"],
            "metodo_pago": "trueque",
            "items": [{"producto_id": producto["id"], "cantidad": 1, "precio_venta_unitario": 10}],
        },
        headers=admin_headers,
    )
    assert response.status_code == 400


def test_numero_de_venta_repetido(client, admin_headers, nuevo_cliente, nuevo_producto):
    cliente = nuevo_cliente()
    producto = nuevo_producto(stock=5)
    payload = {
        "cliente_id": cliente["id"],
        "numero_venta": "B001-0001",
        "items": [{"producto_id": producto["id"], "cantidad": 1, "precio_venta_unitario": 10}],
    }
    assert client.post("/ventas", json=payload, headers=admin_headers).status_code == 200
    assert client.post("/ventas", json=payload, headers=admin_headers).status_code == 409


def test_anular_venta_repone_stock(client, admin_headers, vendedor_headers, nuevo_cliente, nuevo_producto, nueva_venta):
    cliente = nuevo_cliente()
    producto = nuevo_producto(stock=4)
    venta = nueva_venta(cliente["id"], producto["id"], cantidad=4)
    assert client.get(f"/productos/{producto['id']}", headers=admin_headers).json()["stock_actual"] == 0

    response = client.post(f"/ventas/{venta['id']}/anular", json={"motivo": "error"}, headers=vendedor_headers)
    assert response.status_code == 403

    response = client.post(f"/ventas/{venta['id']}/anular", json={"motivo": "error"}, headers=admin_headers)
    assert response.status_code == 200, response.text
    assert response.json()["estado"] == "anulada"
    assert client.get(f"/productos/{producto['id']}", headers=admin_headers).json()["stock_actual"] == 4

    lotes = client.get(f"/productos/{producto['id']}/lotes", headers=admin_headers).json()
    assert [(l["estado"], l["stock_restante"]) for l in lotes] == [("activo", 4)]

    assert client.post(f"/ventas/{venta['id']}/anular", json={}, headers=admin_headers).status_code == 409
    assert client.get("/ventas/del-dia", headers=admin_headers).json() == []


def test_exportar_ventas(client, admin_headers, nuevo_cliente, nuevo_producto, nueva_venta):
    cliente = nuevo_cliente()
    producto = nuevo_producto(stock=5)
    nueva_venta(cliente["id"], producto["id"])
    response = client.get(
        "/ventas/exportar",
        params={"desde": "2000-01-01", "hasta": "2100-01-01"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.content[:2] == b"PK"
