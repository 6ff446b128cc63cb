from datetime import timedelta

import pytest

from motorep.core.utils import local_today
from motorep.models.sales import Venta
from motorep.services import caja


@pytest.fixture()
def hoy():
    return local_today().isoformat()


@pytest.fixture()
def dia_con_devolucion(client, admin_headers, nuevo_cliente, nuevo_producto, nueva_venta):
    cliente = nuevo_cliente()
    producto = nuevo_producto(stock=10, costo=6.0, precio=10.0)
    venta = nueva_venta(cliente["id"], producto["id"], cantidad=5, precio=10.0)

    response = client.post(
        "/devoluciones",
        json={
            "venta_id": venta["id"],
            "motivo": "defectuoso",
            "items": [{"venta_item_id": venta["items"][0]["id"], "cantidad_a_devolver": 2}],
        },
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    devolucion = response.json()
    response = client.post(f"/devoluciones/{devolucion['id']}/aprobar", headers=admin_headers)
    assert response.status_code == 200, response.text
    return venta


def test_cuadre_con_devolucion_del_mismo_dia(client, admin_headers, hoy, dia_con_devolucion):
    response = client.put(f"/caja/{hoy}/dinero-inicial", json={"monto": 100}, headers=admin_headers)
    assert response.status_code == 200, response.text

    response = client.get(f"/caja/{hoy}", headers=admin_headers)
    assert response.status_code == 200, response.text
    cuadre = response.json()

    assert cuadre["estado"] == "abierta"
    assert cuadre["por_metodo"]["efectivo"] == pytest.approx(30.0)
    assert cuadre["efectivo_fisico"] == pytest.approx(130.0)
    assert cuadre["ganancia_bruta"] == pytest.approx(20.0)
    assert cuadre["ganancia_real"] == pytest.approx(12.0)
    assert cuadre["devoluciones"]["total_devuelto"] == pytest.approx(20.0)
    assert cuadre["devoluciones"]["del_mismo_dia"] == 1
    assert cuadre["cantidad_ventas"] == 1


def test_ganancia_de_venta_con_devoluciones(client, admin_headers, dia_con_devolucion):
    response = client.get(f"/caja/ventas/{dia_con_devolucion['id']}/ganancia", headers=admin_headers)
    assert response.status_code == 200, response.text
    detalle = response.json()
    assert detalle["ganancia_total"] == pytest.approx(20.0)
    assert detalle["ganancia_afectada_por_devoluciones"] == pytest.approx(8.0)
    assert detalle["ganancia_neta"] == pytest.approx(12.0)
    assert len(detalle["devoluciones"]) == 1


def test_retiros_limitados_por_saldo(client, admin_headers, hoy, dia_con_devolucion):
    client.put(f"/caja/{hoy}/dinero-inicial", json={"monto": 100}, headers=admin_headers)

    response = client.post(
        f"/caja/{hoy}/retiros",
        json={"monto": 200, "tipo": "efectivo", "motivo": "Pago proveedor"},
        headers=admin_headers,
    )
    assert response.status_code == 400

    response = client.post(
        f"/caja/{hoy}/retiros",
        json={"monto": 10, "tipo": "yape", "motivo": "Transferencia"},
        headers=admin_headers,
    )
    assert response.status_code == 400

    response = client.post(
        f"/caja/{hoy}/retiros",
        json={"monto": 30, "tipo": "efectivo", "motivo": "Pago proveedor"},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text

    cuadre = client.get(f"/caja/{hoy}", headers=admin_headers).json()
    assert cuadre["retiros_efectivo"] == pytest.approx(30.0)
    assert cuadre["efectivo_fisico"] == pytest.approx(100.0)

    retiros = client.get(f"/caja/{hoy}/retiros", headers=admin_headers).json()
    assert [r["motivo"] for r in retiros] == ["Pago proveedor"]


def test_retiro_sin_motivo_es_rechazado(client, admin_headers, hoy):
    response = client.post(
        f"/caja/{hoy}/retiros",
        json={"monto": 5, "tipo": "efectivo", "motivo": ""},
        headers=admin_headers,
    )
    assert response.status_code == 422


def test_cierre_congela_el_dia(client, admin_headers, hoy, dia_con_devolucion):
    client.put(f"/caja/{hoy}/dinero-inicial", json={"monto": 100}, headers=admin_headers)

    response = client.get(f"/caja/{hoy}/cierre", headers=admin_headers)
    assert response.status_code == 404

    response = client.post(f"/caja/{hoy}/cierre", headers=admin_headers)
    assert response.status_code == 200, response.text
    cierre = response.json()
    assert cierre["total"] == pytest.approx(30.0)
    assert cierre["efectivo_final"] == pytest.approx(130.0)
    assert cierre["ganancia_real"] == pytest.approx(12.0)
    assert cierre["cantidad_devoluciones"] == 1

    assert client.post(f"/caja/{hoy}/cierre", headers=admin_headers).status_code == 409
    response = client.post(
        f"/caja/{hoy}/retiros",
        json={"monto": 1, "tipo": "efectivo", "motivo": "Cambio"},
        headers=admin_headers,
    )
    assert response.status_code == 409
    response = client.put(f"/caja/{hoy}/dinero-inicial", json={"monto": 50}, headers=admin_headers)
    assert response.status_code == 409

    assert client.get(f"/caja/{hoy}", headers=admin_headers).json()["estado"] == "cerrada"
    assert client.get(f"/caja/{hoy}/cierre", headers=admin_headers).status_code == 200


def test_cierre_simultaneo_responde_conflicto(client, admin_headers, hoy, monkeypatch):
    assert client.post(f"/caja/{hoy}/cierre", headers=admin_headers).status_code == 200

    # el segundo cierre no ve el primero al validar y choca con la fecha unica
    monkeypatch.setattr(caja, "_exigir_abierta", lambda db, fecha: None)
    response = client.post(f"/caja/{hoy}/cierre", headers=admin_headers)
    assert response.status_code == 409
    assert "ya esta cerrada" in response.json()["detail"]


def test_dia_cerrado_bloquea_aprobacion_y_anulacion(client, admin_headers, hoy, nuevo_cliente, nuevo_producto, nueva_venta):
    cliente = nuevo_cliente()
    producto = nuevo_producto(stock=5)
    venta = nueva_venta(cliente["id"], producto["id"], cantidad=2)
    devolucion = client.post(
        "/devoluciones",
        json={
            "venta_id": venta["id"],
            "motivo": "cambio",
            "items": [{"venta_item_id": venta["items"][0]["id"], "cantidad_a_devolver": 1}],
        },
        headers=admin_headers,
    ).json()

    client.post(f"/caja/{hoy}/cierre", headers=admin_headers)

    response = client.post(f"/devoluciones/{devolucion['id']}/aprobar", headers=admin_headers)
    assert response.status_code == 409
    response = client.post(f"/ventas/{venta['id']}/anular", json={}, headers=admin_headers)
    assert response.status_code == 409


def test_cierre_de_dia_futuro(client, admin_headers):
    manana = (local_today() + timedelta(days=1)).isoformat()
    response = client.post(f"/caja/{manana}/cierre", headers=admin_headers)
    assert response.status_code == 400


def test_pdf_de_cierre(client, admin_headers, hoy, dia_con_devolucion):
    response = client.get(f"/caja/{hoy}/cierre/pdf", headers=admin_headers)
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")

    client.post(f"/caja/{hoy}/cierre", headers=admin_headers)
    response = client.get(f"/caja/{hoy}/cierre/pdf", headers=admin_headers)
    assert response.status_code == 200
    assert response.content.startswith(b"%PDF")


def test_resumen_por_correo_sin_smtp(client, admin_headers, hoy):
    response = client.post(
        f"/caja/{hoy}/resumen-email",
        params={"destinatario": "caja@motorep.pe"},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    data = response.json()
    assert data["enviado"] is False
    assert data["destinatario"] == "caja@motorep.pe"
    assert "SMTP" in data["error"]


def test_devolucion_de_venta_anterior(client, admin_headers, db, hoy, nuevo_cliente, nuevo_producto, nueva_venta):
    cliente = nuevo_cliente()
    producto = nuevo_producto(stock=10, costo=6.0, precio=10.0)
    venta = nueva_venta(cliente["id"], producto["id"], cantidad=3, precio=10.0, metodo_pago="yape")

    registro = db.get(Venta, venta["id"])
    registro.fecha_venta = registro.fecha_venta - timedelta(days=1)
    db.commit()

    devolucion = client.post(
        "/devoluciones",
        json={
            "venta_id": venta["id"],
            "motivo": "garantia",
            "items": [{"venta_item_id": venta["items"][0]["id"], "cantidad_a_devolver": 1}],
        },
        headers=admin_headers,
    ).json()
    response = client.post(f"/devoluciones/{devolucion['id']}/aprobar", headers=admin_headers)
    assert response.status_code == 200, response.text

    cuadre = client.get(f"/caja/{hoy}", headers=admin_headers).json()
    assert cuadre["cantidad_ventas"] == 0
    assert cuadre["por_metodo"]["yape"] == pytest.approx(-10.0)
    assert cuadre["devoluciones"]["de_dias_anteriores"] == 1
    assert cuadre["ganancia_real"] == pytest.approx(0.0)


def test_vendedor_no_opera_caja(client, vendedor_headers, hoy):
    assert client.get(f"/caja/{hoy}", headers=vendedor_headers).status_code == 200
    response = client.put(f"/caja/{hoy}/dinero-inicial", json={"monto": 10}, headers=vendedor_headers)
    assert response.status_code == 403
    assert client.post(f"/caja/{hoy}/cierre", headers=vendedor_headers).status_code == 403


def test_caja_requiere_autenticacion(client, hoy):
    assert client.get(f"/caja/{hoy}").status_code == 401
