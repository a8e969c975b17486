"""
session.py — Composition root of one POS session.

Wires the cart, the payment ledger and the checkout submitter together and
keeps a cache of the last catalog search so products can be added by id.
"""

import logging
from typing import Dict, List, Optional

from .cart import CartManager
from .checkout import CheckoutSubmitter
from .clients import BackendClient
from .config import DEFAULT_PAYMENT_METHOD
from .errors import CheckoutInProgress, ProductNotFound
from .ledger import PaymentSplitLedger
from .models import CartLine, CheckoutOutcome, PaymentMethod, Product
from .money import format_money

log = logging.getLogger(__name__)


class PosSession:
    """
    One operator's checkout session. Single writer, no locking beyond the
    submitter's in-flight flag: every mutation is refused while a sale is
    being recorded.
    """

    def __init__(self, client: BackendClient, default_method: PaymentMethod = DEFAULT_PAYMENT_METHOD):
        self.client = client
        self.cart = CartManager()
        self.ledger = PaymentSplitLedger(self.cart.total, default_method=default_method)
        self.cart.subscribe(self.ledger.on_cart_total_changed)
        self.submitter = CheckoutSubmitter(self.cart, self.ledger, client)
        self.submitter.on_sale_complete(self._refresh_catalog)
        self._catalog: Dict[int, Product] = {}

    def _ensure_idle(self):
        if self.submitter.in_flight:
            raise CheckoutInProgress()

    def _refresh_catalog(self, outcome: CheckoutOutcome):
        # El stock cambió: la próxima búsqueda trae datos frescos
        self._catalog.clear()
        log.info(f"Catálogo invalidado tras la venta ({outcome.message}).")

    # --- Catálogo ---

    async def search_products(self, term: str = "") -> List[Product]:
        products = await self.client.search_products(term)
        self._catalog = {product.id: product for product in products}
        return products

    async def _lookup(self, product_id: int) -> Product:
        product = self._catalog.get(product_id)
        if product is None:
            product = await self.client.get_product(product_id)
            if product is None:
                raise ProductNotFound(f"Producto {product_id} no encontrado.")
            self._catalog[product_id] = product
        return product

    # --- Carrito ---

    async def add_product(self, product_id: int) -> CartLine:
        self._ensure_idle()
        product = await self._lookup(product_id)
        self._ensure_idle()
        return self.cart.add_product(product)

    def remove_product(self, product_id: int):
        self._ensure_idle()
        self.cart.remove_product(product_id)

    def change_quantity(self, product_id: int, delta: int) -> bool:
        self._ensure_idle()
        return self.cart.change_quantity(product_id, delta)

    # --- Pagos ---

    def toggle_method(self, method: PaymentMethod) -> bool:
        self._ensure_idle()
        return self.ledger.toggle_method(method)

    def set_amount(self, method: PaymentMethod, text: str):
        self._ensure_idle()
        self.ledger.set_amount(method, text)

    # --- Cobro ---

    async def checkout(self, customer_id: Optional[int] = None) -> CheckoutOutcome:
        return await self.submitter.submit(customer_id=customer_id)

    def snapshot(self) -> dict:
        remaining = self.ledger.remaining_amount()
        return {
            "lines": [line.model_dump(mode="json") for line in self.cart.lines],
            "total": format_money(self.cart.total()),
            "payments": [entry.model_dump(mode="json") for entry in self.ledger.entries],
            "remaining": format_money(remaining),
            "balanced": self.ledger.is_balanced(),
            "in_flight": self.submitter.in_flight,
        }
