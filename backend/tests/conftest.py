import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["SMTP_USER"] = ""
os.environ["SMTP_PASSWORD"] = ""

import pytest
from fastapi.testclient import TestClient

from motorep import models  # noqa: F401
from motorep.config import settings
from motorep.core.init_db import seed
from motorep.core.security import create_access_token, hash_password
from motorep.database import Base, get_engine, get_session_local
from motorep.main import app
from motorep.models.user import Role, User


@pytest.fixture()
def db():
    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    session = get_session_local()()
    seed(session)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db):
    return TestClient(app)


@pytest.fixture()
def admin_headers(db):
    token = create_access_token({"sub": settings.ADMIN_EMAIL})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def vendedor_headers(db):
    role = db.query(Role).filter(Role.name == "vendedor").first()
    user = User(
        full_name="Vendedor",
        email="vendedor@motorep.pe",
        hashed_password=hash_password("clave123"),
        is_active=True,
    )
    user.roles.append(role)
    db.add(user)
    db.commit()
    token = create_access_token({"sub": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def nuevo_cliente(client, admin_headers):
    def _crear(nombre="Juan", dni=None):
        response = client.post(
            "/clientes",
            json={"nombre": nombre, "apellido": "Perez", "dni": dni},
            headers=admin_headers,
        )
        assert response.status_code == 200, response.text
        return response.json()

    return _crear


@pytest.fixture()
def nuevo_producto(client, admin_headers):
    def _crear(codigo="P-001", stock=10, costo=6.0, precio=10.0, referencial=2):
        response = client.post(
            "/productos",
            json={
                "codigo_tienda": codigo,
                "nombre": f"Producto {codigo}",
                "marca": "Honda",
                "precio_venta_default": precio,
                "precio_compra_default": costo,
                "stock_referencial": referencial,
                "stock_inicial": stock,
            },
            headers=admin_headers,
        )
        assert response.status_code == 200, response.text
        return response.json()

    return _crear


@pytest.fixture()
def nueva_venta(client, admin_headers):
    def _crear(cliente_id, producto_id, cantidad=1, precio=10.0, metodo_pago="efectivo", pagos=None):
        payload = {
            "cliente_id": cliente_id,
            "metodo_pago": metodo_pago,
            "pagos": pagos or [],
            "items": [{"producto_id": producto_id, "cantidad": cantidad, "precio_venta_unitario": precio}],
        }
        response = client.post("/ventas", json=payload, headers=admin_headers)
        assert response.status_code == 200, response.text
        return response.json()

    return _crear
