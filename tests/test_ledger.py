from decimal import Decimal

import pytest

from pos_service.errors import CannotRemoveLastMethod, InvalidAmount, MethodNotActive
from pos_service.models import PaymentMethod


def amounts(ledger):
    return [(entry.method, entry.amount) for entry in ledger.entries]


def test_starts_with_single_default_entry(ledger):
    assert amounts(ledger) == [(PaymentMethod.CASH, "0.00")]


def test_single_entry_follows_cart_total(cart, ledger, shampoo, collar):
    cart.add_product(shampoo)
    cart.add_product(shampoo)
    cart.add_product(collar)

    assert amounts(ledger) == [(PaymentMethod.CASH, "65.50")]
    assert ledger.is_balanced()


def test_toggle_seeds_unallocated_remainder(cart, ledger, shampoo, collar):
    cart.add_product(shampoo)
    cart.add_product(shampoo)
    cart.add_product(collar)
    ledger.set_amount(PaymentMethod.CASH, "40")

    assert ledger.toggle_method(PaymentMethod.YAPE) is True

    assert amounts(ledger) == [(PaymentMethod.CASH, "40"), (PaymentMethod.YAPE, "25.50")]
    assert ledger.is_balanced()


def test_toggle_seed_never_negative(cart, ledger, shampoo):
    cart.add_product(shampoo)
    ledger.set_amount(PaymentMethod.CASH, "30.00")

    ledger.toggle_method(PaymentMethod.CARD)

    assert dict(amounts(ledger))[PaymentMethod.CARD] == "0.00"


def test_toggle_removes_present_method(cart, ledger, shampoo):
    cart.add_product(shampoo)
    ledger.toggle_method(PaymentMethod.PLIN)

    assert ledger.toggle_method(PaymentMethod.CASH) is False
    assert [entry.method for entry in ledger.entries] == [PaymentMethod.PLIN]


def test_cannot_remove_last_method(ledger):
    with pytest.raises(CannotRemoveLastMethod):
        ledger.toggle_method(PaymentMethod.CASH)

    assert len(ledger.entries) == 1


@pytest.mark.parametrize("text", ["", "12", "12.", "12.5", ".5", "0.00"])
def test_set_amount_accepts_typing_states(ledger, text):
    ledger.set_amount(PaymentMethod.CASH, text)

    assert amounts(ledger) == [(PaymentMethod.CASH, text)]


@pytest.mark.parametrize("text", ["-5", "1.2.3", "abc", "12,50", " 3"])
def test_set_amount_rejects_invalid_text(cart, ledger, shampoo, text):
    cart.add_product(shampoo)

    with pytest.raises(InvalidAmount):
        ledger.set_amount(PaymentMethod.CASH, text)

    assert amounts(ledger) == [(PaymentMethod.CASH, "25.00")]


def test_set_amount_rejects_oversized_digit_run(cart, ledger, shampoo):
    cart.add_product(shampoo)

    with pytest.raises(InvalidAmount):
        ledger.set_amount(PaymentMethod.CASH, "1" * 30)

    assert amounts(ledger) == [(PaymentMethod.CASH, "25.00")]
    assert ledger.remaining_amount() == Decimal("0.00")
    assert ledger.is_balanced()


def test_set_amount_accepts_longest_allowed_text(ledger):
    ledger.set_amount(PaymentMethod.CASH, "999999999999.99")

    assert ledger.remaining_amount() == Decimal("-999999999999.99")


def test_set_amount_on_inactive_method(ledger):
    with pytest.raises(MethodNotActive):
        ledger.set_amount(PaymentMethod.TRANSFER, "10")


def test_remaining_shortfall_and_change(cart, ledger, shampoo, collar):
    cart.add_product(shampoo)
    cart.add_product(shampoo)
    cart.add_product(collar)
    ledger.set_amount(PaymentMethod.CASH, "40.00")
    ledger.toggle_method(PaymentMethod.CARD)
    ledger.set_amount(PaymentMethod.CARD, "20.00")

    assert ledger.remaining_amount() == Decimal("5.50")
    assert not ledger.is_balanced()

    ledger.set_amount(PaymentMethod.CARD, "30.00")
    assert ledger.remaining_amount() == Decimal("-4.50")
    assert not ledger.is_balanced()


def test_intermediate_text_parses(cart, ledger, shampoo):
    cart.add_product(shampoo)
    ledger.set_amount(PaymentMethod.CASH, "25.")

    assert ledger.is_balanced()


def test_autofill_suppressed_once_split(cart, ledger, shampoo, collar):
    cart.add_product(shampoo)
    ledger.set_amount(PaymentMethod.CASH, "10.00")
    ledger.toggle_method(PaymentMethod.YAPE)
    before = amounts(ledger)

    cart.add_product(collar)
    cart.change_quantity(shampoo.id, 2)
    cart.remove_product(collar.id)

    assert amounts(ledger) == before


def test_payment_summary_in_insertion_order(cart, ledger, shampoo, collar):
    cart.add_product(shampoo)
    cart.add_product(shampoo)
    cart.add_product(collar)
    ledger.set_amount(PaymentMethod.CASH, "40")
    ledger.toggle_method(PaymentMethod.YAPE)

    assert ledger.payment_summary() == "Efectivo (40.00) + Yape (25.50)"


def test_reset_returns_to_default(cart, ledger, shampoo):
    cart.add_product(shampoo)
    ledger.toggle_method(PaymentMethod.CARD)
    cart.clear()

    ledger.reset()

    assert amounts(ledger) == [(PaymentMethod.CASH, "0.00")]
