import pytest
from fastapi.testclient import TestClient

CASHIER_EMAIL = "caja@veterinaria.pe"
CASHIER_PASSWORD = "caja1234"


@pytest.fixture
def http(backend_app):
    return TestClient(backend_app)


@pytest.fixture
def auth_headers(http):
    response = http.post("/auth/v1/token", params={"grant_type": "password"},
                         json={"email": CASHIER_EMAIL, "password": CASHIER_PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def sale(*details, total):
    return {
        "p_total": total,
        "p_metodo_pago": "Efectivo",
        "p_cliente_id": None,
        "p_user_id": "8d1f3c52-0000-4000-8000-000000000001",
        "p_detalles": [
            {"producto_id": pid, "cantidad": qty, "precio_unitario": price} for pid, qty, price in details
        ],
    }


def test_wrong_password_rejected(http):
    response = http.post("/auth/v1/token", params={"grant_type": "password"},
                         json={"email": CASHIER_EMAIL, "password": "nope"})

    assert response.status_code == 400
    assert response.json()["error_description"] == "Invalid login credentials"


def test_catalog_filters(http):
    rows = http.get("/rest/v1/productos", params={"select": "*", "order": "nombre", "nombre": "ilike.*COLL*"}).json()
    assert [r["id"] for r in rows] == [2]

    names = [r["nombre"] for r in http.get("/rest/v1/productos", params={"order": "nombre"}).json()]
    assert names == sorted(names)


def test_sale_decrements_stock(http, auth_headers, backend_state):
    response = http.post("/rest/v1/rpc/registrar_venta", headers=auth_headers,
                         json=sale((1, 2, 25.0), (2, 1, 15.5), total=65.5))

    assert response.status_code == 200
    assert backend_state.products[1]["stock"] == 8
    assert backend_state.products[2]["stock"] == 3
    assert len(backend_state.sales) == 1
    assert len(backend_state.sale_lines) == 2


def test_stale_stock_rejects_whole_sale(http, auth_headers, backend_state):
    response = http.post("/rest/v1/rpc/registrar_venta", headers=auth_headers,
                         json=sale((1, 2, 25.0), (2, 5, 15.5), total=127.5))

    assert response.status_code == 400
    assert response.json()["message"] == "Stock insuficiente para Collar reflectivo"
    assert backend_state.products[1]["stock"] == 10
    assert backend_state.sales == []
    assert backend_state.sale_lines == []


def test_repeated_product_lines_are_summed_against_stock(http, auth_headers, backend_state):
    # Collar: stock 4, two lines of 3 each
    response = http.post("/rest/v1/rpc/registrar_venta", headers=auth_headers,
                         json=sale((2, 3, 15.5), (2, 3, 15.5), total=93.0))

    assert response.status_code == 400
    assert response.json()["message"] == "Stock insuficiente para Collar reflectivo"
    assert backend_state.products[2]["stock"] == 4
    assert backend_state.sales == []


def test_sale_requires_session(http):
    response = http.post("/rest/v1/rpc/registrar_venta", json=sale((1, 1, 25.0), total=25.0))

    assert response.status_code == 401
