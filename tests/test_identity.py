import uuid
import pytest
from tests.helpers import (
    bearer,
    create_user,
    guest_headers,
    issue_session_token,
    seed_cart,
    create_product,
    set_cookie_value,
    url_prefix,
)


def _is_uuid(value):
    try:
        uuid.UUID(value)
        return True
    except (TypeError, ValueError):
        return False


@pytest.mark.asyncio
async def test_first_visit_gets_guest_token(ac_client):
    r = await ac_client.get(f"{url_prefix}/cart/data")
    assert r.status_code == 200
    assert r.json()["data"]["items"] == []

    token = set_cookie_value(r)
    assert _is_uuid(token)
    assert "X-Auth-Token-Status" not in r.headers


@pytest.mark.asyncio
async def test_valid_guest_cookie_is_kept_and_rolled(ac_client):
    token = str(uuid.uuid4())
    r = await ac_client.get(f"{url_prefix}/cart/data", headers=guest_headers(token))
    assert r.status_code == 200
    assert set_cookie_value(r) == token

    set_cookie = [h for h in r.headers.get_list("set-cookie") if h.startswith("eshop_session_id=")][0]
    assert "Max-Age=2592000" in set_cookie
    assert "Path=/" in set_cookie
    assert "HttpOnly" not in set_cookie


@pytest.mark.asyncio
async def test_malformed_guest_cookie_is_replaced(ac_client):
    r = await ac_client.get(f"{url_prefix}/cart/data", headers=guest_headers("not-a-token"))
    assert r.status_code == 200
    token = set_cookie_value(r)
    assert token != "not-a-token"
    assert _is_uuid(token)


@pytest.mark.asyncio
async def test_guest_sees_only_own_cart(ac_client):
    await create_product("p_mug", price="12.00")
    mine, theirs = str(uuid.uuid4()), str(uuid.uuid4())
    await seed_cart(guest_token=mine, items={"p_mug": 2})

    r = await ac_client.get(f"{url_prefix}/cart/data", headers=guest_headers(mine))
    items = r.json()["data"]["items"]
    assert [(i["product_id"], i["quantity"]) for i in items] == [("p_mug", 2)]
    assert items[0]["product"]["name"] == "Product p_mug"

    r = await ac_client.get(f"{url_prefix}/cart/data", headers=guest_headers(theirs))
    assert r.json()["data"]["items"] == []


@pytest.mark.asyncio
async def test_unknown_bearer_falls_back_to_guest(ac_client):
    r = await ac_client.get(f"{url_prefix}/cart/data", headers=bearer("no-such-token"))
    assert r.status_code == 200
    assert r.headers["X-Auth-Token-Status"] == "Invalid"
    assert _is_uuid(set_cookie_value(r))


@pytest.mark.asyncio
async def test_expired_bearer_falls_back_to_guest(ac_client):
    user_id = await create_user()
    token = await issue_session_token(user_id, expired=True)

    r = await ac_client.get(f"{url_prefix}/cart/data", headers=bearer(token))
    assert r.status_code == 200
    assert r.headers["X-Auth-Token-Status"] == "Expired"
    assert set_cookie_value(r) is not None


@pytest.mark.asyncio
async def test_valid_bearer_is_authenticated(ac_client):
    await create_product("p_lamp", price="30.00")
    user_id = await create_user()
    token = await issue_session_token(user_id)
    await seed_cart(user_id=user_id, items={"p_lamp": 1})

    r = await ac_client.get(f"{url_prefix}/cart/data", headers=bearer(token))
    assert r.status_code == 200
    assert "X-Auth-Token-Status" not in r.headers
    assert set_cookie_value(r) is None
    assert [i["product_id"] for i in r.json()["data"]["items"]] == ["p_lamp"]


@pytest.mark.asyncio
async def test_user_orders_require_authentication(ac_client):
    r = await ac_client.get(f"{url_prefix}/users/orders")
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "INVALID_AUTH"


@pytest.mark.asyncio
async def test_health_skips_identity(ac_client):
    r = await ac_client.get(f"{url_prefix}/health")
    assert r.status_code == 200
    assert set_cookie_value(r) is None
