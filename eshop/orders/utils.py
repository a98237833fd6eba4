import re
import secrets
from decimal import Decimal
from typing import Dict, List
from eshop.common.utils import now, to_money
from eshop.orders.constants import (
    FREE_SHIPPING_THRESHOLD,
    INVALID_CARD_MESSAGE,
    INVALID_CVC_MESSAGE,
    INVALID_EXPIRY_MESSAGE,
    ORDER_NUMBER_PREFIX,
    SHIPPING_FEE,
    TAX_RATE,
)
from eshop.orders.models import CardInfo, OrderTotals

_EXPIRY_RE = re.compile(r"(\d{2})/(\d{2})", re.ASCII)
_CVC_RE = re.compile(r"\d{3,4}", re.ASCII)
_CARD_DIGITS_RE = re.compile(r"[0-9]{13,19}")


def validate_luhn(card_number: str) -> bool:
    digits = re.sub(r"[\s-]", "", card_number or "")
    if not _CARD_DIGITS_RE.fullmatch(digits):
        return False

    total = 0
    # every second digit from the rightmost one is doubled
    for i, ch in enumerate(reversed(digits)):
        d = int(ch)
        if i % 2 == 1:
            d *= 2
            if d > 9:
                d -= 9
        total += d
    return total % 10 == 0


def validate_payment_card(card: CardInfo) -> Dict[str, List[str]]:
    """Per field errors for the mock payment step, empty when the card looks usable."""
    errors: Dict[str, List[str]] = {}

    if not validate_luhn(card.card_number):
        errors["card_number"] = [INVALID_CARD_MESSAGE]

    m = _EXPIRY_RE.fullmatch(card.card_expiry or "")
    if not m or not 1 <= int(m.group(1)) <= 12:
        errors["card_expiry"] = [INVALID_EXPIRY_MESSAGE]

    if not _CVC_RE.fullmatch(card.card_cvc or ""):
        errors["card_cvc"] = [INVALID_CVC_MESSAGE]

    return errors


def generate_order_number() -> str:
    return f"{ORDER_NUMBER_PREFIX}-{now():%Y%m%d}-{secrets.token_hex(2).upper()}"


def compute_order_totals(subtotal: Decimal, discount: Decimal = Decimal("0"),
                         tax_rate: Decimal = TAX_RATE, shipping_fee: Decimal = SHIPPING_FEE,
                         free_shipping_threshold: Decimal = FREE_SHIPPING_THRESHOLD) -> OrderTotals:
    # tax is charged on the pre-discount subtotal
    subtotal = to_money(subtotal)
    discount = to_money(discount)
    shipping = Decimal("0.00") if subtotal >= free_shipping_threshold else to_money(shipping_fee)
    tax = to_money(subtotal * tax_rate)
    total = to_money(subtotal + shipping + tax - discount)
    return OrderTotals(subtotal=subtotal, shipping=shipping, tax=tax, discount=discount, total=total)
