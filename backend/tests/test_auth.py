from motorep.config import settings


def test_login_admin(client):
    response = client.post(
        "/auth/login",
        json={"email": settings.ADMIN_EMAIL, "password": settings.ADMIN_PASSWORD},
    )
    assert response.status_code == 200, response.text
    data = response.json()
    assert data["token_type"] == "bearer"
    assert [r["name"] for r in data["user"]["roles"]] == ["administrador"]
    assert data["user"]["ultimo_acceso"] is not None

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == settings.ADMIN_EMAIL


def test_login_form(client):
    response = client.post(
        "/auth/token",
        data={"username": settings.ADMIN_EMAIL, "password": settings.ADMIN_PASSWORD},
    )
    assert response.status_code == 200
    assert response.json()["access_token"]


def test_login_con_clave_incorrecta(client):
    response = client.post("/auth/login", json={"email": settings.ADMIN_EMAIL, "password": "otra"})
    assert response.status_code == 401


def test_registro_asigna_rol_vendedor(client):
    payload = {"email": "nuevo@motorep.pe", "full_name": "Nuevo", "password": "secreta"}
    response = client.post("/auth/register", json=payload)
    assert response.status_code == 200, response.text
    assert [r["name"] for r in response.json()["roles"]] == ["vendedor"]

    assert client.post("/auth/register", json=payload).status_code == 400


def test_token_invalido(client):
    assert client.get("/auth/me", headers={"Authorization": "Bearer basura"}).status_code == 401


def test_dashboard(client, admin_headers, nuevo_cliente, nuevo_producto, nueva_venta):
    cliente = nuevo_cliente()
    producto = nuevo_producto(stock=3, referencial=2)
    nueva_venta(cliente["id"], producto["id"], cantidad=2, precio=10.0)

    response = client.get("/dashboard", headers=admin_headers)
    assert response.status_code == 200, response.text
    data = response.json()
    assert data["ventas_hoy"] == 1
    assert float(data["total_hoy"]) == 20.0
    assert data["productos_bajo_stock"] == 1
