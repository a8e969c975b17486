"""
cart.py — Cart Manager

Holds the products selected for one sale and enforces the stock ceiling that
was observed in the catalog when each product was added. Every mutation that
changes the running total notifies the registered listeners (the payment
ledger uses this to keep a single-method split in sync with the total).
"""

import logging
from decimal import Decimal
from typing import Callable, Dict, List

from .errors import OutOfStock, StockLimitReached
from .models import CartLine, Product
from .money import ZERO, to_money

log = logging.getLogger(__name__)


class CartManager:
    """
    Working set of cart lines for one checkout session, keyed by product id
    and kept in insertion order.
    """

    def __init__(self):
        self._lines: Dict[int, CartLine] = {}
        self._listeners: List[Callable[[Decimal], None]] = []

    def subscribe(self, callback: Callable[[Decimal], None]):
        """Registers `callback(total)` to be called whenever the total changes."""
        self._listeners.append(callback)

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    def is_empty(self) -> bool:
        return not self._lines

    def get(self, product_id: int):
        return self._lines.get(product_id)

    def total(self) -> Decimal:
        return to_money(sum((line.unit_price * line.quantity for line in self._lines.values()), ZERO))

    def add_product(self, product: Product) -> CartLine:
        """
        Adds one unit of `product` to the cart.

        A product already in the cart gets its quantity incremented; a new one
        is inserted with quantity 1, snapshotting its price and stock.

        Raises:
            OutOfStock: If the product has no stock left.
            StockLimitReached: If one more unit would exceed the product's stock.
        """
        if product.stock_quantity <= 0:
            log.info(f"Producto {product.id} ({product.name}) sin stock.")
            raise OutOfStock(f"Sin stock: no quedan unidades de {product.name}.")

        before = self.total()
        line = self._lines.get(product.id)
        if line is not None:
            if line.quantity + 1 > product.stock_quantity:
                raise StockLimitReached(
                    f"Stock límite: solo hay {product.stock_quantity} unidades de {product.name}."
                )
            line.quantity += 1
            line.stock_ceiling = product.stock_quantity
        else:
            line = CartLine(
                product_id=product.id,
                name=product.name,
                unit_price=product.unit_price,
                quantity=1,
                stock_ceiling=product.stock_quantity,
            )
            self._lines[product.id] = line

        self._notify_if_changed(before)
        return line

    def remove_product(self, product_id: int):
        """Removes the line for `product_id`. Absent ids are ignored."""
        before = self.total()
        if self._lines.pop(product_id, None) is not None:
            self._notify_if_changed(before)

    def change_quantity(self, product_id: int, delta: int) -> bool:
        """
        Moves a line's quantity by `delta`.

        The change is dropped when the new quantity would leave
        `[1, stock_ceiling]`; going below 1 never removes the line.

        Returns:
            bool: True if the quantity changed.
        """
        line = self._lines.get(product_id)
        if line is None:
            return False

        new_quantity = line.quantity + delta
        if new_quantity > line.stock_ceiling or new_quantity < 1:
            return False

        before = self.total()
        line.quantity = new_quantity
        self._notify_if_changed(before)
        return True

    def clear(self):
        before = self.total()
        self._lines.clear()
        self._notify_if_changed(before)

    def _notify_if_changed(self, before: Decimal):
        total = self.total()
        if total == before:
            return
        for callback in self._listeners:
            callback(total)
