"""
errors.py — Exception hierarchy for the point-of-sale core.

Every error raised by the cart, the payment ledger or the checkout submitter
derives from `PosError`. Each class carries the HTTP status and machine code
the API layer uses when translating it into a response.

Local validation errors (stock, payment split, empty cart) never reach the
backend. `ExternalWriteFailure` is the only one that originates from I/O.
"""

from decimal import Decimal


class PosError(Exception):
    """Base exception for POS errors."""
    status_code = 409
    code = "pos_error"
    default_detail = "La operación no se pudo completar."

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        return {"code": self.code, "detail": self.detail}


class OutOfStock(PosError):
    """Product has no units left at the moment it is added."""
    code = "out_of_stock"
    default_detail = "Sin stock: no quedan unidades."


class StockLimitReached(PosError):
    """Requested quantity would exceed the product's available stock."""
    code = "stock_limit_reached"
    default_detail = "Stock límite: no puedes agregar más."


class ProductNotFound(PosError):
    status_code = 404
    code = "product_not_found"
    default_detail = "Producto no encontrado."


class CannotRemoveLastMethod(PosError):
    """The ledger must always keep at least one payment method."""
    code = "cannot_remove_last_method"
    default_detail = "Debe quedar al menos un método de pago."


class MethodNotActive(PosError):
    status_code = 422
    code = "method_not_active"
    default_detail = "El método de pago no está activo."


class InvalidAmount(PosError):
    status_code = 422
    code = "invalid_amount"
    default_detail = "Monto inválido."


class EmptyCart(PosError):
    code = "empty_cart"
    default_detail = "El carrito está vacío."


class UnbalancedPayment(PosError):
    """
    Sum of payment amounts differs from the cart total by 0.01 or more.

    Attributes:
        remaining (Decimal): Signed difference `total - paid`. Positive is a
            shortfall still to collect, negative is change to hand back.
    """
    code = "unbalanced_payment"

    def __init__(self, remaining: Decimal, detail: str = None):
        self.remaining = remaining
        if detail is None:
            if remaining > 0:
                detail = f"Falta cubrir {remaining:.2f}"
            else:
                detail = f"Vuelto {-remaining:.2f}"
        super().__init__(detail)

    @property
    def kind(self) -> str:
        return "shortfall" if self.remaining > 0 else "change"

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["remaining"] = f"{self.remaining:.2f}"
        data["kind"] = self.kind
        return data


class CheckoutInProgress(PosError):
    """A sale submission is already in flight."""
    code = "checkout_in_progress"
    default_detail = "Ya hay un cobro en curso."


class ExternalWriteFailure(PosError):
    """The atomic sale call failed; cart and ledger are left untouched."""
    status_code = 502
    code = "external_write_failure"
    default_detail = "No se pudo registrar la venta."
