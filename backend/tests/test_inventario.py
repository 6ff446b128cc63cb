import io

import pytest
from openpyxl import Workbook, load_workbook


@pytest.fixture()
def proveedor(client, admin_headers):
    return client.post("/proveedores", json={"nombre_empresa": "Motoparts EIRL"}, headers=admin_headers).json()


def _ingreso(client, headers, proveedor_id, items):
    return client.post("/inventario/ingresos", json={"proveedor_id": proveedor_id, "items": items}, headers=headers)


def test_producto_con_stock_inicial_crea_lote(client, admin_headers, nuevo_producto):
    producto = nuevo_producto(codigo="BUJIA-01", stock=8, costo=4.5)
    assert producto["stock_actual"] == 8

    lotes = client.get(f"/productos/{producto['id']}/lotes", headers=admin_headers).json()
    assert len(lotes) == 1
    assert lotes[0]["numero_lote"] == "INI-BUJIA-01"
    assert lotes[0]["stock_restante"] == 8
    assert lotes[0]["precio_compra_unitario"] == pytest.approx(4.5)


def test_codigo_de_tienda_duplicado(client, admin_headers, nuevo_producto):
    nuevo_producto(codigo="FILTRO")
    response = client.post(
        "/productos",
        json={"codigo_tienda": "FILTRO", "nombre": "Otro filtro"},
        headers=admin_headers,
    )
    assert response.status_code == 409


def test_ingreso_solo_suma_stock_al_confirmar(client, admin_headers, proveedor, nuevo_producto):
    producto = nuevo_producto(stock=0, costo=0.0)
    response = _ingreso(
        client,
        admin_headers,
        proveedor["id"],
        [{"producto_id": producto["id"], "numero_lote": "L-100", "cantidad": 10, "precio_compra_unitario": 8.25}],
    )
    assert response.status_code == 200, response.text
    ingreso = response.json()
    assert ingreso["estado"] == "pendiente"
    assert ingreso["costo_total"] == pytest.approx(82.5)
    assert client.get(f"/productos/{producto['id']}", headers=admin_headers).json()["stock_actual"] == 0

    response = client.post(f"/inventario/ingresos/{ingreso['id']}/confirmar", headers=admin_headers)
    assert response.status_code == 200, response.text
    assert response.json()["estado"] == "recibido"

    actualizado = client.get(f"/productos/{producto['id']}", headers=admin_headers).json()
    assert actualizado["stock_actual"] == 10
    assert actualizado["precio_compra_default"] == pytest.approx(8.25)

    assert client.post(f"/inventario/ingresos/{ingreso['id']}/confirmar", headers=admin_headers).status_code == 409
    assert client.delete(f"/inventario/ingresos/{ingreso['id']}", headers=admin_headers).status_code == 409


def test_lote_repetido(client, admin_headers, proveedor, nuevo_producto):
    producto = nuevo_producto()
    item = {"producto_id": producto["id"], "numero_lote": "L-7", "cantidad": 1, "precio_compra_unitario": 1}
    assert _ingreso(client, admin_headers, proveedor["id"], [item, item]).status_code == 400
    assert _ingreso(client, admin_headers, proveedor["id"], [item]).status_code == 200
    assert _ingreso(client, admin_headers, proveedor["id"], [item]).status_code == 409


def test_salida_consume_fifo(client, admin_headers, proveedor, nuevo_producto):
    producto = nuevo_producto(stock=2, costo=3.0)
    ingreso = _ingreso(
        client,
        admin_headers,
        proveedor["id"],
        [{"producto_id": producto["id"], "numero_lote": "L-200", "cantidad": 5, "precio_compra_unitario": 4}],
    ).json()
    client.post(f"/inventario/ingresos/{ingreso['id']}/confirmar", headers=admin_headers)

    response = client.post(
        "/inventario/salidas",
        json={"motivo": "merma", "items": [{"producto_id": producto["id"], "cantidad": 3}]},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    salida = response.json()
    assert [(i["cantidad"], i["precio_compra_unitario"]) for i in salida["items"]] == [(2, 3.0), (1, 4.0)]
    assert salida["costo_total"] == pytest.approx(10.0)

    response = client.post(
        "/inventario/salidas",
        json={"motivo": "merma", "items": [{"producto_id": producto["id"], "cantidad": 10}]},
        headers=admin_headers,
    )
    assert response.status_code == 400

    stock = client.get("/inventario/stock", headers=admin_headers).json()
    assert stock[0]["stock_actual"] == 4
    assert stock[0]["valor_inventario"] == pytest.approx(16.0)


def test_faltantes_y_desactivar(client, admin_headers, vendedor_headers, nuevo_producto):
    escaso = nuevo_producto(codigo="ESCASO", stock=1, referencial=3)
    nuevo_producto(codigo="SOBRA", stock=20, referencial=3)

    faltantes = client.get("/productos/faltantes", headers=admin_headers).json()
    assert [p["codigo_tienda"] for p in faltantes] == ["ESCASO"]

    assert client.delete(f"/productos/{escaso['id']}", headers=vendedor_headers).status_code == 403
    response = client.delete(f"/productos/{escaso['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["activo"] is False
    assert [p["codigo_tienda"] for p in client.get("/productos", headers=admin_headers).json()] == ["SOBRA"]


def test_exportar_e_importar_productos(client, admin_headers, nuevo_producto):
    nuevo_producto(codigo="CASCO", stock=2)
    response = client.get("/productos/exportar", headers=admin_headers)
    assert response.status_code == 200
    hoja = load_workbook(io.BytesIO(response.content)).active
    assert hoja.cell(row=2, column=1).value == "CASCO"

    wb = Workbook()
    ws = wb.active
    ws.append(["Codigo", "Nombre", "Precio venta", "Precio compra", "Stock"])
    ws.append(["CASCO", "Casco integral", 150, 90, 5])
    ws.append(["GUANTE", "Guantes", 35, 20, 4])
    ws.append(["SINNOMBRE", None, 1, 1, 1])
    buffer = io.BytesIO()
    wb.save(buffer)

    response = client.post(
        "/productos/importar",
        files={"file": ("productos.xlsx", buffer.getvalue(), "application/octet-stream")},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    resultado = response.json()
    assert resultado["creados"] == 1
    assert resultado["actualizados"] == 1
    assert len(resultado["errores"]) == 1

    productos = {p["codigo_tienda"]: p for p in client.get("/productos", headers=admin_headers).json()}
    assert productos["CASCO"]["nombre"] == "Casco integral"
    assert productos["GUANTE"]["stock_actual"] == 4
