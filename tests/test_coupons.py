from datetime import timedelta
from decimal import Decimal
import pytest
from eshop.common.utils import now
from tests.helpers import create_coupon, url_prefix


async def _verify(ac_client, code, subtotal):
    return await ac_client.post(f"{url_prefix}/coupons/verify", json={"code": code, "subtotal": subtotal})


@pytest.mark.asyncio
async def test_verify_valid_coupon_any_case(ac_client):
    await create_coupon("WELCOME10", value="10", description="10% off", usage_limit=5, usage_count=2)

    r = await _verify(ac_client, "  welcome10 ", "80.00")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["valid"] is True
    assert data["discount_amount"] == 8.0
    assert data["coupon"]["code"] == "WELCOME10"
    assert data["coupon"]["remaining_usage"] == 3


@pytest.mark.asyncio
async def test_verify_unknown_coupon(ac_client):
    r = await _verify(ac_client, "NOPE", "80.00")
    assert r.status_code == 404
    err = r.json()["error"]
    assert err["code"] == "NOT_FOUND"
    assert err["details"]["message"] == "Invalid coupon code."


@pytest.mark.asyncio
async def test_verify_expired_coupon(ac_client):
    await create_coupon("OLD", expires_at=now() - timedelta(days=1))

    r = await _verify(ac_client, "old", "80.00")
    assert r.status_code == 400
    err = r.json()["error"]
    assert err["code"] == "COUPON_REJECTED"
    assert err["details"]["message"] == "This coupon has expired."
    assert err["details"]["errors"]["coupon_code"] == ["This coupon has expired."]


@pytest.mark.asyncio
async def test_verify_below_minimum_order(ac_client):
    await create_coupon("FLAT5", discount_type="fixed", value="5.00", min_order_amount=Decimal("30.00"))

    r = await _verify(ac_client, "FLAT5", "29.99")
    assert r.status_code == 400
    assert r.json()["error"]["details"]["message"] == "Minimum order amount of $30.00 required."

    r = await _verify(ac_client, "FLAT5", "30.00")
    assert r.status_code == 200
    assert r.json()["data"]["discount_amount"] == 5.0


@pytest.mark.asyncio
async def test_verify_does_not_consume_usage(ac_client):
    await create_coupon("ONCE", usage_limit=1)

    for _ in range(3):
        r = await _verify(ac_client, "ONCE", "50.00")
        assert r.status_code == 200
        assert r.json()["data"]["coupon"]["remaining_usage"] == 1
