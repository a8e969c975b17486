"""Decimal helpers for two-place money values."""

import re
from decimal import Decimal, ROUND_HALF_UP

TWOPLACES = Decimal("0.01")
TOLERANCE = Decimal("0.01")
ZERO = Decimal("0.00")

# Solo dígitos con a lo sumo un punto; acepta estados intermedios como "12."
_AMOUNT_PREFIX = re.compile(r"[0-9]*\.?[0-9]*")

# Muy por debajo de los 28 dígitos del contexto decimal
MAX_AMOUNT_LENGTH = 15


def to_money(value) -> Decimal:
    if value is None or value == "":
        return ZERO
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def format_money(value) -> str:
    return f"{to_money(value):.2f}"


def is_amount_prefix(text: str) -> bool:
    if len(text) > MAX_AMOUNT_LENGTH:
        return False
    return _AMOUNT_PREFIX.fullmatch(text) is not None


def parse_amount(text: str) -> Decimal:
    """
    Parses the text of a payment entry into a money value.

    Empty input and a lone "." count as zero, so an operator can clear a field
    and type a new amount without the ledger rejecting intermediate states.
    """
    text = (text or "").strip()
    if text in ("", "."):
        return ZERO
    return to_money(text)
