"""
ledger.py — Payment Split Ledger

Lets the operator split one sale across several payment methods at once
(e.g. part cash, part Yape) and certifies when the split covers the cart total.

Amounts are kept as the text the operator is typing so intermediate states
such as "12." survive; they are parsed to Decimal only for arithmetic.
"""

from decimal import Decimal
from typing import Callable, Dict, List

from .errors import CannotRemoveLastMethod, InvalidAmount, MethodNotActive
from .models import PaymentEntry, PaymentMethod
from .money import TOLERANCE, ZERO, format_money, is_amount_prefix, parse_amount

SUMMARY_SEPARATOR = " + "


class PaymentSplitLedger:
    """
    Ordered set of (method, amount) entries for the sale in progress.

    Args:
        total_provider (Callable[[], Decimal]): Returns the current cart total.
        default_method (PaymentMethod): Method the ledger is seeded with on reset.
    """

    def __init__(self, total_provider: Callable[[], Decimal], default_method: PaymentMethod = PaymentMethod.YAPE):
        self._total_provider = total_provider
        self.default_method = PaymentMethod(default_method)
        self._entries: Dict[PaymentMethod, str] = {}
        self.reset()

    @property
    def entries(self) -> List[PaymentEntry]:
        return [PaymentEntry(method=method, amount=amount) for method, amount in self._entries.items()]

    def reset(self):
        """Back to a single default entry carrying the whole cart total."""
        self._entries = {self.default_method: format_money(self._total_provider())}

    def allocated(self) -> Decimal:
        return sum((parse_amount(text) for text in self._entries.values()), ZERO)

    def toggle_method(self, method: PaymentMethod) -> bool:
        """
        Adds `method` if absent, removes it if present.

        A new entry is seeded with whatever part of the total is still
        unallocated (never negative).

        Returns:
            bool: True if the method is active after the call.

        Raises:
            CannotRemoveLastMethod: If `method` is the only entry left.
        """
        method = PaymentMethod(method)
        if method in self._entries:
            if len(self._entries) == 1:
                raise CannotRemoveLastMethod()
            del self._entries[method]
            return False

        seed = max(ZERO, self._total_provider() - self.allocated())
        self._entries[method] = format_money(seed)
        return True

    def set_amount(self, method: PaymentMethod, text: str):
        """
        Stores the amount text typed for `method`.

        Raises:
            MethodNotActive: If `method` has no entry in the ledger.
            InvalidAmount: If `text` is not digits with at most one decimal point,
                or is longer than MAX_AMOUNT_LENGTH characters.
        """
        method = PaymentMethod(method)
        if method not in self._entries:
            raise MethodNotActive(f"{method.label} no está activo.")
        if not is_amount_prefix(text):
            raise InvalidAmount(f"Monto inválido para {method.label}: {text!r}")
        self._entries[method] = text

    def remaining_amount(self) -> Decimal:
        """Positive: still to collect. Negative: change to hand back."""
        return self._total_provider() - self.allocated()

    def is_balanced(self) -> bool:
        return abs(self.remaining_amount()) < TOLERANCE

    def payment_summary(self) -> str:
        return SUMMARY_SEPARATOR.join(
            f"{method.label} ({format_money(parse_amount(text))})"
            for method, text in self._entries.items()
        )

    def on_cart_total_changed(self, total: Decimal):
        # Con un segundo método ya hay un reparto manual que no se toca
        if len(self._entries) != 1:
            return
        (method,) = self._entries
        self._entries[method] = format_money(total)
