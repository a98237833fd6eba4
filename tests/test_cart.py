import uuid
import pytest
from tests.helpers import (
    bearer,
    cart_lines,
    create_product,
    create_user,
    guest_headers,
    issue_session_token,
    seed_cart,
    set_cookie_value,
    url_prefix,
)


async def _catalog():
    await create_product("p_tee", price="24.00", stock=40)
    await create_product("p_hoodie", price="58.50", stock=12)
    await create_product("p_print", price="120.00", stock=3)


def _as_dict(cart):
    return {line["id"]: line["qty"] for line in cart}


@pytest.mark.asyncio
async def test_sync_replaces_guest_cart(ac_client):
    await _catalog()
    token = str(uuid.uuid4())

    r = await ac_client.post(f"{url_prefix}/cart/sync", headers=guest_headers(token),
                             json={"cart": [{"id": "p_tee", "qty": 2}, {"id": "p_hoodie", "qty": 1}]})
    assert r.status_code == 200
    body = r.json()["data"]
    assert body["success"] is True
    assert _as_dict(body["cart"]) == {"p_tee": 2, "p_hoodie": 1}

    # lines missing from the payload are dropped, quantities are overwritten not added
    r = await ac_client.post(f"{url_prefix}/cart/sync", headers=guest_headers(token),
                             json={"cart": [{"id": "p_hoodie", "qty": 4}, {"id": "p_print", "qty": 1}]})
    assert r.status_code == 200
    assert _as_dict(r.json()["data"]["cart"]) == {"p_hoodie": 4, "p_print": 1}
    assert await cart_lines(guest_token=token) == {"p_hoodie": 4, "p_print": 1}


@pytest.mark.asyncio
async def test_empty_sync_clears_cart(ac_client):
    await _catalog()
    token = str(uuid.uuid4())
    await seed_cart(guest_token=token, items={"p_tee": 3})

    r = await ac_client.post(f"{url_prefix}/cart/sync", headers=guest_headers(token), json={"cart": []})
    assert r.status_code == 200
    assert r.json()["data"]["cart"] == []
    assert await cart_lines(guest_token=token) == {}


@pytest.mark.asyncio
async def test_duplicate_lines_keep_last_quantity(ac_client):
    await _catalog()
    token = str(uuid.uuid4())

    r = await ac_client.post(f"{url_prefix}/cart/sync", headers=guest_headers(token),
                             json={"cart": [{"id": "p_tee", "qty": 2}, {"id": "p_tee", "qty": 5}]})
    assert r.status_code == 200
    assert _as_dict(r.json()["data"]["cart"]) == {"p_tee": 5}


@pytest.mark.asyncio
async def test_sync_with_unknown_product_is_rejected(ac_client):
    await _catalog()
    token = str(uuid.uuid4())
    await seed_cart(guest_token=token, items={"p_tee": 1})

    r = await ac_client.post(f"{url_prefix}/cart/sync", headers=guest_headers(token),
                             json={"cart": [{"id": "p_tee", "qty": 2}, {"id": "p_ghost", "qty": 1}]})
    assert r.status_code == 422
    err = r.json()["error"]
    assert err["code"] == "VALIDATION_FAILED"
    assert "cart.p_ghost" in err["details"]["errors"]
    assert await cart_lines(guest_token=token) == {"p_tee": 1}


@pytest.mark.asyncio
async def test_sync_rejects_non_positive_quantity(ac_client):
    await _catalog()
    r = await ac_client.post(f"{url_prefix}/cart/sync", headers=guest_headers(str(uuid.uuid4())),
                             json={"cart": [{"id": "p_tee", "qty": 0}]})
    assert r.status_code == 422
    assert "cart.0.qty" in r.json()["error"]["details"]["errors"]


@pytest.mark.asyncio
async def test_authenticated_sync_targets_user_cart(ac_client):
    await _catalog()
    user_id = await create_user()
    token = await issue_session_token(user_id)
    guest = str(uuid.uuid4())
    await seed_cart(guest_token=guest, items={"p_print": 1})

    headers = {**bearer(token), **guest_headers(guest)}
    r = await ac_client.post(f"{url_prefix}/cart/sync", headers=headers, json={"cart": [{"id": "p_tee", "qty": 1}]})
    assert r.status_code == 200
    assert await cart_lines(user_id=user_id) == {"p_tee": 1}
    assert await cart_lines(guest_token=guest) == {"p_print": 1}


@pytest.mark.asyncio
async def test_guest_reset_drops_guest_cart(ac_client):
    await _catalog()
    token = str(uuid.uuid4())
    await seed_cart(guest_token=token, items={"p_tee": 2})

    r = await ac_client.post(f"{url_prefix}/cart/guest/reset", headers=guest_headers(token))
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["success"] is True
    assert data["new_session_id"] != token
    assert set_cookie_value(r) == data["new_session_id"]

    assert await cart_lines(guest_token=token) is None
    r = await ac_client.get(f"{url_prefix}/cart/data", headers=guest_headers(data["new_session_id"]))
    assert r.json()["data"]["items"] == []


@pytest.mark.asyncio
async def test_guest_reset_leaves_user_cart_alone(ac_client):
    await _catalog()
    user_id = await create_user()
    session_token = await issue_session_token(user_id)
    guest = str(uuid.uuid4())
    await seed_cart(user_id=user_id, items={"p_hoodie": 1})
    await seed_cart(guest_token=guest, items={"p_tee": 2})

    headers = {**bearer(session_token), **guest_headers(guest)}
    r = await ac_client.post(f"{url_prefix}/cart/guest/reset", headers=headers)
    assert r.status_code == 200
    new_token = r.json()["data"]["new_session_id"]
    assert set_cookie_value(r) == new_token

    assert await cart_lines(guest_token=guest) is None
    assert await cart_lines(user_id=user_id) == {"p_hoodie": 1}
