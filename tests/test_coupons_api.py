from datetime import datetime, timedelta, timezone

import pytest

from conftest import API


COUPONS = f"{API}/coupons"


def iso(delta: timedelta) -> str:
    return (datetime.now(timezone.utc) + delta).isoformat()


@pytest.fixture
def create_coupon(client):
    async def _create_coupon(**overrides) -> dict:
        payload = {
            "code": "save20",
            "discountType": "percentage",
            "discountValue": 20,
            "minOrderValue": 100,
            "validUntil": iso(timedelta(days=30)),
        }
        payload.update(overrides)
        response = await client.post(f"{COUPONS}/", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create_coupon


async def test_create_coupon_normalizes_code(create_coupon):
    coupon = await create_coupon(code="  welcome50 ")

    assert coupon["code"] == "WELCOME50"
    assert coupon["usedBy"] == []
    assert coupon["applicableRestaurants"] == []
    assert coupon["isActive"] is True


async def test_duplicate_code_conflicts(client, create_coupon):
    await create_coupon()

    response = await client.post(
        f"{COUPONS}/",
        json={"code": "SAVE20", "discountType": "fixed", "discountValue": 10, "validUntil": iso(timedelta(days=1))},
    )

    assert response.status_code == 409
    assert response.json() == {"success": False, "message": "Coupon code already exists"}


@pytest.mark.parametrize(
    "overrides",
    [
        {"discountValue": 150},
        {"validFrom": iso(timedelta(days=5)), "validUntil": iso(timedelta(days=1))},
        {"code": "ABC"},
        {"applicableRestaurants": [999]},
    ],
)
async def test_invalid_coupon_is_rejected(client, overrides):
    payload = {
        "code": "BROKEN01",
        "discountType": "percentage",
        "discountValue": 10,
        "validUntil": iso(timedelta(days=1)),
    }
    payload.update(overrides)

    response = await client.post(f"{COUPONS}/", json=payload)

    assert response.status_code == 400
    assert response.json()["success"] is False


async def test_apply_coupon_previews_discount(client, create_coupon, create_user):
    user = await create_user()
    await create_coupon()

    response = await client.post(
        f"{COUPONS}/apply",
        json={"code": "save20", "userId": user.id, "restaurantId": 1, "orderValue": 200},
    )

    assert response.status_code == 200
    assert response.json()["data"] == {"valid": True, "discount": 40, "finalAmount": 160, "coupon": "SAVE20"}

    # previewing does not use the coupon up
    remaining = await client.get(f"{COUPONS}/1/remaining-uses")
    assert remaining.json()["data"] == {"remaining": "unlimited"}


async def test_apply_coupon_below_minimum(client, create_coupon):
    await create_coupon()

    response = await client.post(
        f"{COUPONS}/apply",
        json={"code": "SAVE20", "userId": 1, "restaurantId": 1, "orderValue": 50},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Minimum order value of 100 required"


async def test_apply_unknown_or_inactive_code(client, create_coupon):
    coupon = await create_coupon()
    await client.patch(f"{COUPONS}/{coupon['id']}/toggle-status")

    for code in ("SAVE20", "NOPE1234"):
        response = await client.post(
            f"{COUPONS}/apply",
            json={"code": code, "userId": 1, "restaurantId": 1, "orderValue": 500},
        )
        assert response.status_code == 404
        assert response.json()["message"] == "Invalid coupon code"


async def test_validate_coupon(client, create_coupon):
    await create_coupon()

    valid = await client.get(f"{COUPONS}/validate", params={"code": "save20"})
    unknown = await client.get(f"{COUPONS}/validate", params={"code": "MISSING1"})
    empty = await client.get(f"{COUPONS}/validate")

    assert valid.json()["data"]["valid"] is True
    assert "validUntil" in valid.json()["data"]
    assert unknown.json()["data"] == {"valid": False, "validFrom": None, "validUntil": None}
    assert empty.status_code == 200
    assert empty.json()["data"]["valid"] is False


async def test_redeem_twice_conflicts(client, create_coupon, create_user):
    user = await create_user()
    await create_coupon()

    first = await client.post(f"{COUPONS}/redeem", json={"code": "SAVE20", "userId": user.id})
    second = await client.post(f"{COUPONS}/redeem", json={"code": "SAVE20", "userId": user.id})

    assert first.status_code == 201
    assert first.json()["data"]["coupon"] == "SAVE20"
    assert second.status_code == 409
    assert second.json()["message"] == "Coupon already redeemed by this user"

    # once redeemed, applying it again is refused
    applied = await client.post(
        f"{COUPONS}/apply",
        json={"code": "SAVE20", "userId": user.id, "restaurantId": 1, "orderValue": 500},
    )
    assert applied.status_code == 400
    assert applied.json()["message"] == "Coupon already used by this user"


async def test_redeem_beyond_max_uses(client, create_coupon, create_user):
    first_user = await create_user()
    second_user = await create_user()
    coupon = await create_coupon(maxUses=1)

    ok = await client.post(f"{COUPONS}/redeem", json={"code": "SAVE20", "userId": first_user.id})
    over = await client.post(f"{COUPONS}/redeem", json={"code": "SAVE20", "userId": second_user.id})

    assert ok.status_code == 201
    assert over.status_code == 400
    assert over.json()["message"] == "This coupon has reached its usage limit"

    remaining = await client.get(f"{COUPONS}/{coupon['id']}/remaining-uses")
    assert remaining.json()["data"] == {"remaining": 0}


async def test_redeem_for_unknown_user(client, create_coupon):
    await create_coupon()

    response = await client.post(f"{COUPONS}/redeem", json={"code": "SAVE20", "userId": 404})

    assert response.status_code == 404


async def test_coupons_by_user_and_restaurant(client, create_coupon, create_user, create_restaurant):
    owner = await create_user()
    restaurant = await create_restaurant(owner.id)
    await create_coupon(code="ANYWHERE")
    await create_coupon(code="LOCALONLY", applicableRestaurants=[restaurant["id"]])
    await client.post(f"{COUPONS}/redeem", json={"code": "ANYWHERE", "userId": owner.id})

    by_restaurant = await client.get(f"{COUPONS}/restaurant/{restaurant['id']}")
    by_user = await client.get(f"{COUPONS}/user/{owner.id}")

    assert [c["code"] for c in by_restaurant.json()["data"]] == ["LOCALONLY"]
    assert [c["code"] for c in by_user.json()["data"]] == ["ANYWHERE"]
    assert by_user.json()["data"][0]["usedBy"] == [owner.id]


async def test_list_filters_by_active_flag(client, create_coupon):
    active = await create_coupon(code="ACTIVE01")
    inactive = await create_coupon(code="PAUSED01", isActive=False)

    everything = await client.get(f"{COUPONS}/")
    only_active = await client.get(f"{COUPONS}/", params={"isActive": "true"})

    assert {c["id"] for c in everything.json()["data"]} == {active["id"], inactive["id"]}
    assert [c["code"] for c in only_active.json()["data"]] == ["ACTIVE01"]


async def test_update_coupon(client, create_coupon):
    coupon = await create_coupon(maxUses=5)

    response = await client.patch(
        f"{COUPONS}/{coupon['id']}", json={"discountType": "fixed", "discountValue": 75, "maxUses": None}
    )

    data = response.json()["data"]
    assert response.status_code == 200
    assert data["discountType"] == "fixed"
    assert data["discountValue"] == 75
    assert data["maxUses"] is None


async def test_update_rejects_unknown_fields(client, create_coupon):
    coupon = await create_coupon()

    response = await client.patch(f"{COUPONS}/{coupon['id']}", json={"code": "HACKED99"})

    assert response.status_code == 400
    assert response.json()["success"] is False


async def test_update_keeps_window_and_percentage_rules(client, create_coupon):
    coupon = await create_coupon()

    past = await client.patch(f"{COUPONS}/{coupon['id']}", json={"validUntil": iso(timedelta(days=-10))})
    too_much = await client.patch(f"{COUPONS}/{coupon['id']}", json={"discountValue": 120})

    assert past.status_code == 400
    assert too_much.status_code == 400


async def test_toggle_and_delete(client, create_coupon):
    coupon = await create_coupon()

    toggled = await client.patch(f"{COUPONS}/{coupon['id']}/toggle-status")
    assert toggled.json()["data"]["isActive"] is False
    assert toggled.json()["message"] == "Coupon deactivated successfully"

    deleted = await client.delete(f"{COUPONS}/{coupon['id']}")
    assert deleted.json() == {"success": True, "message": "Coupon deleted successfully", "data": None}

    missing = await client.get(f"{COUPONS}/{coupon['id']}")
    assert missing.status_code == 404
