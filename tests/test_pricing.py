import re
from datetime import timedelta
from decimal import Decimal
import pytest
from eshop.common.utils import now, to_money
from eshop.coupons.utils import calculate_discount, coupon_rejection_reason, normalize_code
from eshop.orders.utils import compute_order_totals, generate_order_number
from eshop.schema.full_schema import Coupon


def _coupon(**kw):
    data = dict(code="SAVE", discount_type="percentage", discount_value=Decimal("10"), usage_count=0, is_active=True)
    data.update(kw)
    return Coupon(**data)


def test_totals_below_free_shipping_threshold():
    totals = compute_order_totals(Decimal("140.00"))
    assert totals.shipping == Decimal("10.00")
    assert totals.tax == Decimal("11.20")
    assert totals.total == Decimal("161.20")


def test_free_shipping_at_threshold():
    totals = compute_order_totals(Decimal("150.00"))
    assert totals.shipping == Decimal("0.00")
    assert totals.tax == Decimal("12.00")
    assert totals.total == Decimal("162.00")


def test_discount_comes_off_after_tax():
    totals = compute_order_totals(Decimal("100.00"), Decimal("10.00"))
    # tax on the undiscounted subtotal
    assert totals.tax == Decimal("8.00")
    assert totals.total == Decimal("108.00")


def test_money_rounds_half_up():
    assert to_money("0.125") == Decimal("0.13")
    assert to_money(Decimal("2.675")) == Decimal("2.68")


def test_percentage_discount_respects_cap():
    coupon = _coupon(discount_value=Decimal("50"), max_discount_amount=Decimal("40.00"))
    assert calculate_discount(coupon, Decimal("200.00")) == Decimal("40.00")
    assert calculate_discount(coupon, Decimal("60.00")) == Decimal("30.00")


def test_fixed_discount_never_exceeds_subtotal():
    coupon = _coupon(discount_type="fixed", discount_value=Decimal("25.00"))
    assert calculate_discount(coupon, Decimal("18.00")) == Decimal("18.00")


def test_percentage_above_hundred_is_clamped():
    coupon = _coupon(discount_value=Decimal("150"))
    assert calculate_discount(coupon, Decimal("20.00")) == Decimal("20.00")


def test_rejection_rules_in_order():
    at = now()
    # inactive wins over every other failing rule
    coupon = _coupon(is_active=False, expires_at=at - timedelta(days=1), usage_limit=1, usage_count=1)
    assert coupon_rejection_reason(coupon, Decimal("1.00"), at) == "This coupon is not active."

    coupon = _coupon(starts_at=at + timedelta(days=1), expires_at=at - timedelta(days=1))
    assert coupon_rejection_reason(coupon, at=at) == "This coupon is not yet available."

    coupon = _coupon(expires_at=at - timedelta(seconds=1), usage_limit=1, usage_count=1)
    assert coupon_rejection_reason(coupon, at=at) == "This coupon has expired."

    coupon = _coupon(usage_limit=2, usage_count=2, min_order_amount=Decimal("50.00"))
    assert coupon_rejection_reason(coupon, Decimal("10.00"), at) == "This coupon has reached its usage limit."

    coupon = _coupon(min_order_amount=Decimal("1500.00"))
    assert coupon_rejection_reason(coupon, Decimal("10.00"), at) == "Minimum order amount of $1,500.00 required."


def test_valid_coupon_has_no_reason():
    at = now()
    coupon = _coupon(starts_at=at - timedelta(days=1), expires_at=at + timedelta(days=1),
                     usage_limit=5, usage_count=4, min_order_amount=Decimal("10.00"))
    assert coupon_rejection_reason(coupon, Decimal("10.00"), at) is None


def test_naive_datetimes_are_treated_as_utc():
    at = now()
    coupon = _coupon(expires_at=(at - timedelta(hours=1)).replace(tzinfo=None))
    assert coupon_rejection_reason(coupon, at=at) == "This coupon has expired."


@pytest.mark.parametrize("raw", [" welcome10 ", "Welcome10", "WELCOME10"])
def test_code_normalization(raw):
    assert normalize_code(raw) == "WELCOME10"


def test_order_number_shape():
    assert re.match(r"^ORD-\d{8}-[0-9A-F]{4}$", generate_order_number())
