"""
checkout.py — Checkout Submitter

This module turns the cart and the payment split into a persisted sale.

Workflow Overview:
1. Reject re-entrant submissions while a previous one is in flight
2. Validate locally: cart not empty, payment split balanced
3. Resolve the signed-in operator via the auth service
4. Issue one atomic `registrar_venta` call (header + lines + stock decrement)
5. On success clear the cart, reset the ledger, and notify listeners;
   on failure leave both untouched so the operator can retry
"""

import uuid
from typing import Callable, List, Optional

import httpx

from .cart import CartManager
from .clients import BackendClient, error_message
from .config import CURRENCY_SYMBOL
from .errors import CheckoutInProgress, EmptyCart, ExternalWriteFailure, UnbalancedPayment
from .ledger import PaymentSplitLedger
from .logging_config import get_sale_logger
from .models import CheckoutOutcome, SaleLineItem, SaleRequest
from .money import format_money


class CheckoutSubmitter:
    """
    Terminal state transition of a POS session: Idle → Submitting → Idle.

    Args:
        cart (CartManager): Cart whose lines are sold.
        ledger (PaymentSplitLedger): Payment split that must cover the total.
        client (BackendClient): Backend used for the auth lookup and the sale RPC.
    """

    def __init__(self, cart: CartManager, ledger: PaymentSplitLedger, client: BackendClient):
        self.cart = cart
        self.ledger = ledger
        self.client = client
        self.in_flight = False
        self._on_sale_complete: List[Callable[[CheckoutOutcome], None]] = []

    def on_sale_complete(self, callback: Callable[[CheckoutOutcome], None]):
        """Registers a callback run after every recorded sale (e.g. to refresh the catalog)."""
        self._on_sale_complete.append(callback)

    def build_sale_request(self, user_id: str, customer_id: Optional[int] = None) -> SaleRequest:
        return SaleRequest(
            total=self.cart.total(),
            payment_summary=self.ledger.payment_summary(),
            customer_id=customer_id,
            user_id=user_id,
            line_items=[
                SaleLineItem(product_id=line.product_id, quantity=line.quantity, unit_price=line.unit_price)
                for line in self.cart.lines
            ],
        )

    def validate(self):
        """
        Fail-fast checks that run before any external call.
        Raises:
            CheckoutInProgress: A submission is already running.
            EmptyCart: There is nothing to sell.
            UnbalancedPayment: The split misses the total by 0.01 or more.
        """
        if self.in_flight:
            raise CheckoutInProgress()
        if self.cart.is_empty():
            raise EmptyCart()
        if not self.ledger.is_balanced():
            raise UnbalancedPayment(self.ledger.remaining_amount())

    async def submit(self, customer_id: Optional[int] = None) -> CheckoutOutcome:
        """
        Records the current cart as a sale.

        Args:
            customer_id (int | None): Client the sale is attributed to, if any.

        Returns:
            CheckoutOutcome: Success outcome with the charged total.

        Raises:
            CheckoutInProgress, EmptyCart, UnbalancedPayment: Local validation failed;
                no request was sent.
            ExternalWriteFailure: The backend call failed. Carries the backend's
                message verbatim; cart and ledger are unchanged.
        """
        self.validate()

        sale_log = get_sale_logger(__name__, uuid.uuid4().hex[:8])
        self.in_flight = True
        try:
            sale_log.info(f"Iniciando cobro de {len(self.cart.lines)} línea(s), "
                          f"total {format_money(self.cart.total())}.")

            # --- 1. Auth ---
            user = await self.client.get_user()
            if not user:
                sale_log.warning("Cobro cancelado: no hay sesión activa.")
                raise ExternalWriteFailure("No hay una sesión activa. Inicia sesión nuevamente.")

            # Payload antes del await: es la foto que se cobra
            sale = self.build_sale_request(user_id=user["id"], customer_id=customer_id)

            # --- 2. Venta atómica ---
            sale_log.info(f"Enviando venta al backend ({sale.payment_summary}).")
            result = await self.client.record_sale(sale)

        except httpx.HTTPStatusError as e:
            message = error_message(e.response)
            sale_log.error(f"Venta rechazada (HTTP {e.response.status_code}): {message}")
            raise ExternalWriteFailure(message) from e

        except httpx.HTTPError as e:
            # Timeout, sin conexión o respuesta ilegible: el operador reintenta manualmente
            sale_log.error(f"Backend no disponible ({e!r}).")
            raise ExternalWriteFailure(str(e) or "No se pudo conectar con el servidor.") from e

        finally:
            self.in_flight = False

        outcome = CheckoutOutcome(
            success=True,
            message=f"Cobrado: {CURRENCY_SYMBOL} {format_money(sale.total)}",
            total=sale.total,
            payment_summary=sale.payment_summary,
        )
        sale_log.info(f"Venta registrada (resultado: {result}).")

        self.cart.clear()
        self.ledger.reset()
        for callback in self._on_sale_complete:
            callback(outcome)
        return outcome
