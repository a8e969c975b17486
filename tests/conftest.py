import os

# Sin archivo de log durante los tests
os.environ.setdefault("POS_LOG_FILE", "")

import asyncio
from decimal import Decimal

import httpx
import pytest

from mock_services.mock_backend import BackendState, create_app
from pos_service.cart import CartManager
from pos_service.clients import BackendClient
from pos_service.ledger import PaymentSplitLedger
from pos_service.models import PaymentMethod, Product

CASHIER_EMAIL = "caja@veterinaria.pe"
CASHIER_PASSWORD = "caja1234"


def build_product(product_id, price, stock, name=None):
    return Product(
        id=product_id,
        name=name or f"Producto {product_id}",
        unit_price=Decimal(price),
        stock_quantity=stock,
    )


@pytest.fixture(name="make_product")
def make_product_fixture():
    return build_product


@pytest.fixture
def shampoo():
    return build_product(1, "25.00", 10, "Shampoo antipulgas")


@pytest.fixture
def collar():
    return build_product(2, "15.50", 4, "Collar reflectivo")


@pytest.fixture
def cart():
    return CartManager()


@pytest.fixture
def ledger(cart):
    """Ledger wired to the cart the same way a POS session wires it."""
    ledger = PaymentSplitLedger(cart.total, default_method=PaymentMethod.CASH)
    cart.subscribe(ledger.on_cart_total_changed)
    return ledger


@pytest.fixture
def backend_state():
    return BackendState()


@pytest.fixture
def backend_app(backend_state):
    return create_app(backend_state)


@pytest.fixture
def backend_client(backend_app):
    """BackendClient talking in-process to the mock backend."""
    return BackendClient(
        base_url="http://backend.test",
        anon_key="test-anon-key",
        transport=httpx.ASGITransport(app=backend_app),
    )


@pytest.fixture
def signed_in_client(backend_client):
    asyncio.run(backend_client.sign_in(CASHIER_EMAIL, CASHIER_PASSWORD))
    return backend_client
