import pytest

from conftest import API, WEEK
from food_delivery.services.restaurant_service import restaurant_service


RESTAURANTS = f"{API}/restaurants"


async def test_create_restaurant(create_user, create_restaurant):
    owner = await create_user()
    manager = await create_user()

    restaurant = await create_restaurant(owner.id, managerIds=[manager.id, manager.id])

    assert restaurant["slug"] == "spice-route"
    assert restaurant["location"]["city"] == "Bengaluru"
    assert restaurant["contact"]["email"] == "hello@spiceroute.in"
    assert restaurant["ownerId"] == owner.id
    assert restaurant["managerIds"] == [manager.id]
    assert restaurant["rating"]["overall"] == 0
    assert restaurant["deliveryDetails"]["estimatedDeliveryTime"] == {"min": 30, "max": 45}
    assert restaurant["type"] == {"restaurant": True, "dineIn": False, "cloudKitchen": False}


async def test_duplicate_names_get_unique_slugs(create_user, create_restaurant):
    owner = await create_user()

    first = await create_restaurant(owner.id)
    second = await create_restaurant(owner.id)

    assert first["slug"] == "spice-route"
    assert second["slug"] == "spice-route-2"


async def test_slug_taken_before_commit_is_a_conflict(client, create_user, create_restaurant, restaurant_payload, monkeypatch):
    owner = await create_user()
    await create_restaurant(owner.id)

    async def stale_slug(text, restaurant_id, db):
        return "spice-route"

    monkeypatch.setattr(restaurant_service, "generate_unique_slug", stale_slug)
    response = await client.post(f"{RESTAURANTS}/", json=restaurant_payload(owner.id))

    assert response.status_code == 409
    assert response.json() == {"success": False, "message": "Restaurant slug spice-route already exists"}


async def test_create_requires_existing_owner(client, restaurant_payload):
    response = await client.post(f"{RESTAURANTS}/", json=restaurant_payload(999))

    assert response.status_code == 404
    assert response.json()["success"] is False


@pytest.mark.parametrize(
    "overrides",
    [
        {"cuisineType": ["Martian"]},
        {"openingHours": [{"day": "Funday", "open": "09:00", "close": "17:00"}]},
        {"openingHours": [{"day": "Monday", "open": "9:00", "close": "17:00"}]},
        {"contact": {"phone": "12345"}},
        {"name": "ab"},
    ],
)
async def test_create_rejects_invalid_payload(client, create_user, restaurant_payload, overrides):
    owner = await create_user()

    response = await client.post(f"{RESTAURANTS}/", json=restaurant_payload(owner.id, **overrides))

    assert response.status_code == 400


async def test_get_by_id_or_slug_counts_views(client, create_user, create_restaurant):
    owner = await create_user()
    restaurant = await create_restaurant(owner.id)

    by_id = await client.get(f"{RESTAURANTS}/{restaurant['id']}")
    by_slug = await client.get(f"{RESTAURANTS}/spice-route")
    missing = await client.get(f"{RESTAURANTS}/no-such-place")

    assert by_id.json()["data"]["viewCount"] == 1
    assert by_slug.json()["data"]["viewCount"] == 2
    assert missing.status_code == 404
    assert missing.json() == {"success": False, "message": "Restaurant not found"}


async def test_list_filters_sorts_and_projects(client, create_user, create_restaurant):
    owner = await create_user()
    await create_restaurant(owner.id, name="Green Leaf", isPureVeg=True, foodType=["Vegan"], priceRange=1)
    await create_restaurant(owner.id, name="Burger Barn", cuisineType=["Fast Food"], priceRange=3)

    veg = await client.get(f"{RESTAURANTS}/", params={"isPureVeg": "true"})
    assert [r["name"] for r in veg.json()["data"]["restaurants"]] == ["Green Leaf"]

    by_price = await client.get(f"{RESTAURANTS}/", params={"sort": "priceRange:desc", "fields": "name,secret"})
    page = by_price.json()["data"]
    assert [r["name"] for r in page["restaurants"]] == ["Burger Barn", "Green Leaf"]
    assert set(page["restaurants"][0]) == {"id", "name"}
    assert page["pagination"] == {"total": 2, "page": 1, "limit": 10, "pages": 1}

    fast_food = await client.get(f"{RESTAURANTS}/", params={"cuisineType": "Fast Food"})
    assert [r["name"] for r in fast_food.json()["data"]["restaurants"]] == ["Burger Barn"]


async def test_list_pagination_is_clamped(client, create_user, create_restaurant):
    owner = await create_user()
    for name in ("Alpha Diner", "Beta Diner", "Gamma Diner"):
        await create_restaurant(owner.id, name=name)

    response = await client.get(f"{RESTAURANTS}/", params={"page": "2", "limit": "2", "sort": "name:asc"})
    page = response.json()["data"]
    assert [r["name"] for r in page["restaurants"]] == ["Gamma Diner"]
    assert page["pagination"] == {"total": 3, "page": 2, "limit": 2, "pages": 2}

    fallback = await client.get(f"{RESTAURANTS}/", params={"page": "x", "limit": "1000"})
    assert fallback.json()["data"]["pagination"]["limit"] == 100
    assert fallback.json()["data"]["pagination"]["page"] == 1


async def test_list_search_by_text_and_identifier(client, create_user, create_restaurant):
    owner = await create_user()
    for _ in range(3):
        await create_user()
    # an id that matches no restaurant and no owner
    manager = await create_user()
    await create_restaurant(owner.id, name="Noodle House", tags=["ramen"], managerIds=[manager.id])
    await create_restaurant(owner.id, name="Pasta Place", cuisineType=["Italian"])

    by_tag = await client.get(f"{RESTAURANTS}/", params={"search": "RAMEN"})
    by_manager = await client.get(f"{RESTAURANTS}/", params={"search": str(manager.id)})

    assert [r["name"] for r in by_tag.json()["data"]["restaurants"]] == ["Noodle House"]
    assert [r["name"] for r in by_manager.json()["data"]["restaurants"]] == ["Noodle House"]


@pytest.mark.parametrize(
    "params",
    [{"foodType": "Vegan,Carnivore"}, {"owner": "abc"}, {"isPureVeg": "maybe"}],
)
async def test_list_rejects_invalid_params(client, params):
    response = await client.get(f"{RESTAURANTS}/", params=params)

    assert response.status_code == 400


async def test_inactive_restaurants_are_not_listed(client, create_user, create_restaurant):
    owner = await create_user()
    restaurant = await create_restaurant(owner.id)

    await client.patch(f"{RESTAURANTS}/{restaurant['id']}/status", json={"isActive": False})
    response = await client.get(f"{RESTAURANTS}/")

    assert response.json()["data"]["restaurants"] == []


async def test_update_restaurant(client, create_user, create_restaurant):
    owner = await create_user()
    restaurant = await create_restaurant(owner.id)

    response = await client.patch(
        f"{RESTAURANTS}/{restaurant['id']}",
        json={"name": "Spice Route Express", "location": {"city": "Mysuru"}, "type": {"dineIn": True}},
    )

    data = response.json()["data"]
    assert response.status_code == 200
    assert data["slug"] == "spice-route-express"
    assert data["location"]["city"] == "Mysuru"
    assert data["location"]["address"] == "12 MG Road"
    assert data["type"]["dineIn"] is True


async def test_update_rejects_fields_outside_allow_list(client, create_user, create_restaurant):
    owner = await create_user()
    restaurant = await create_restaurant(owner.id)

    response = await client.patch(f"{RESTAURANTS}/{restaurant['id']}", json={"ownerId": 77})

    assert response.status_code == 400


async def test_delete_and_bulk_delete(client, create_user, create_restaurant):
    owner = await create_user()
    first = await create_restaurant(owner.id)
    second = await create_restaurant(owner.id)
    third = await create_restaurant(owner.id)

    single = await client.delete(f"{RESTAURANTS}/{first['id']}")
    assert single.status_code == 200
    assert (await client.get(f"{RESTAURANTS}/{first['id']}")).status_code == 404

    bulk = await client.request("DELETE", f"{RESTAURANTS}/", json={"ids": [second["id"], third["id"], 999]})
    assert bulk.json()["data"] == {"deletedCount": 2}

    none_left = await client.request("DELETE", f"{RESTAURANTS}/", json={"ids": [999]})
    assert none_left.status_code == 404


async def test_nearby_restaurants(client, create_user, create_restaurant):
    owner = await create_user()
    near = await create_restaurant(owner.id, name="Corner Cafe")
    far_location = {"address": "1 Beach Road", "city": "Chennai", "latitude": 13.0827, "longitude": 80.2707}
    await create_restaurant(owner.id, name="Far Away Grill", location=far_location)

    response = await client.get(
        f"{RESTAURANTS}/nearby", params={"longitude": 77.5950, "latitude": 12.9720, "distance": 1000}
    )

    data = response.json()["data"]
    assert data["count"] == 1
    assert data["restaurants"][0]["id"] == near["id"]
    assert 0 < data["restaurants"][0]["distance"] < 1000

    invalid = await client.get(f"{RESTAURANTS}/nearby", params={"longitude": 200, "latitude": 0})
    assert invalid.status_code == 400


async def test_city_and_zone_listings(client, create_user, create_restaurant):
    owner = await create_user()
    await create_restaurant(owner.id)

    city = await client.get(f"{RESTAURANTS}/city/bengal")
    zone = await client.get(f"{RESTAURANTS}/zone/3")
    other_zone = await client.get(f"{RESTAURANTS}/zone/4")

    assert city.json()["data"]["pagination"]["total"] == 1
    assert zone.json()["data"]["pagination"]["total"] == 1
    assert other_zone.json()["data"]["restaurants"] == []


async def test_status_and_opening_hours(client, create_user, create_restaurant):
    owner = await create_user()
    restaurant = await create_restaurant(owner.id)
    restaurant_id = restaurant["id"]

    updated = await client.patch(f"{RESTAURANTS}/{restaurant_id}/status", json={"isOpenNow": True, "isBusy": True})
    data = updated.json()["data"]
    assert data["isOpenNow"] is True
    assert data["isBusy"] is True
    assert "shouldBeOpen" in data

    empty = await client.patch(f"{RESTAURANTS}/{restaurant_id}/status", json={})
    assert empty.status_code == 400
    unknown = await client.patch(f"{RESTAURANTS}/{restaurant_id}/status", json={"isVerified": True})
    assert unknown.status_code == 400

    # closed every day, so the staff flag alone cannot open it
    closed_week = [{"day": day, "open": "00:00", "close": "23:59", "isClosed": True} for day in WEEK]
    hours = await client.patch(f"{RESTAURANTS}/{restaurant_id}/opening-hours", json={"openingHours": closed_week})
    assert hours.status_code == 200
    assert len(hours.json()["data"]) == 7

    open_status = await client.get(f"{RESTAURANTS}/{restaurant_id}/open")
    assert open_status.json()["data"]["isOpen"] is False
    assert open_status.json()["data"]["manualOverride"] is True


async def test_opening_hours_batch_is_all_or_nothing(client, create_user, create_restaurant):
    owner = await create_user()
    restaurant = await create_restaurant(owner.id)

    response = await client.patch(
        f"{RESTAURANTS}/{restaurant['id']}/opening-hours",
        json={"openingHours": [
            {"day": "Monday", "open": "09:00", "close": "17:00"},
            {"day": "Tuesday", "open": "25:00", "close": "17:00"},
        ]},
    )
    assert response.status_code == 400

    duplicate = await client.patch(
        f"{RESTAURANTS}/{restaurant['id']}/opening-hours",
        json={"openingHours": [
            {"day": "Monday", "open": "09:00", "close": "17:00"},
            {"day": "Monday", "open": "10:00", "close": "18:00"},
        ]},
    )
    assert duplicate.status_code == 400

    timings = await client.get(f"{RESTAURANTS}/{restaurant['id']}/timings")
    assert timings.json()["data"]["operationalDays"] == 7


@pytest.mark.parametrize("bad_time", ["09:00\n", "9:00", "09:00 ", "24:00"])
async def test_opening_hours_require_exact_time_format(client, create_user, create_restaurant, bad_time):
    owner = await create_user()
    restaurant = await create_restaurant(owner.id)

    response = await client.patch(
        f"{RESTAURANTS}/{restaurant['id']}/opening-hours",
        json={"openingHours": [{"day": "Monday", "open": bad_time, "close": "22:00"}]},
    )
    slot = await client.post(
        f"{RESTAURANTS}/{restaurant['id']}/slots", json={"startTime": bad_time, "endTime": "23:00"}
    )

    assert response.status_code == 400
    assert "Time format should be HH:MM" in response.json()["message"]
    assert slot.status_code == 400


async def test_holidays(client, create_user, create_restaurant):
    owner = await create_user()
    restaurant = await create_restaurant(owner.id)

    response = await client.patch(
        f"{RESTAURANTS}/{restaurant['id']}/holidays",
        json={"holidays": ["2030-12-25", "2030-01-26T00:00:00", "2030-12-25"]},
    )
    assert response.json()["data"] == ["2030-01-26", "2030-12-25"]

    invalid = await client.patch(
        f"{RESTAURANTS}/{restaurant['id']}/holidays", json={"holidays": ["2030-01-01", "not-a-date"]}
    )
    assert invalid.status_code == 400
    assert "Invalid date: not-a-date" in invalid.json()["message"]

    status = await client.get(f"{RESTAURANTS}/{restaurant['id']}/status")
    assert status.json()["data"]["nextHoliday"] == "2030-01-26"


async def test_analytics_ratings_and_timings(client, create_user, create_restaurant):
    owner = await create_user()
    restaurant = await create_restaurant(owner.id, preparationTime=25)

    analytics = (await client.get(f"{RESTAURANTS}/{restaurant['id']}/analytics")).json()["data"]
    ratings = (await client.get(f"{RESTAURANTS}/{restaurant['id']}/ratings")).json()["data"]
    timings = (await client.get(f"{RESTAURANTS}/{restaurant['id']}/timings")).json()["data"]

    assert analytics["orderStats"]["avgPreparationTime"] == 25
    assert analytics["deliveryMetrics"] == {"deliveryAvailable": True, "avgDeliveryTime": 37.5}
    assert ratings["totalReviews"] == 0
    assert ratings["averageRating"] == 0
    assert timings["deliveryTimeRange"] == {"min": 30, "max": 45}
    assert timings["averagePreparation"] == 25


async def test_search_filter_and_trending(client, create_user, create_restaurant):
    owner = await create_user()
    curry = await create_restaurant(owner.id, name="Curry Corner", priceRange=2)
    await create_restaurant(owner.id, name="Sushi Stop", cuisineType=["Japanese"], priceRange=4)
    await client.get(f"{RESTAURANTS}/{curry['id']}")

    search = await client.get(f"{RESTAURANTS}/search", params={"query": "curry"})
    assert [r["name"] for r in search.json()["data"]["restaurants"]] == ["Curry Corner"]
    assert (await client.get(f"{RESTAURANTS}/search")).status_code == 400

    cheap = await client.get(f"{RESTAURANTS}/filter", params={"priceRange": "3"})
    assert [r["name"] for r in cheap.json()["data"]["restaurants"]] == ["Curry Corner"]
    japanese = await client.get(f"{RESTAURANTS}/filter", params={"cuisine": "Japanese"})
    assert [r["name"] for r in japanese.json()["data"]["restaurants"]] == ["Sushi Stop"]
    assert (await client.get(f"{RESTAURANTS}/filter", params={"minRating": "good"})).status_code == 400

    trending = (await client.get(f"{RESTAURANTS}/trending")).json()["data"]["restaurants"]
    assert trending[0]["name"] == "Curry Corner"
    assert trending[0]["popularityScore"] == 0.3


async def test_enums_in_use(client, create_user, create_restaurant):
    owner = await create_user()
    await create_restaurant(owner.id, cuisineType=["Chinese"])
    await create_restaurant(owner.id, cuisineType=["Chinese", "Thai"], foodType=["Vegan"])

    cuisines = (await client.get(f"{RESTAURANTS}/enums/cuisines")).json()["data"]
    food_types = (await client.get(f"{RESTAURANTS}/enums/food-types")).json()["data"]

    assert cuisines == {"count": 2, "values": ["Chinese", "Thai"]}
    assert food_types["values"][0] in ("Vegetarian", "Non-Vegetarian", "Vegan")
    assert food_types["count"] == 3


async def test_admin_endpoints(client, create_user, create_restaurant):
    owner = await create_user()
    new_owner = await create_user()
    manager = await create_user()
    restaurant = await create_restaurant(owner.id)
    restaurant_id = restaurant["id"]

    verified = await client.patch(f"{RESTAURANTS}/{restaurant_id}/verify", json={"verified": True})
    assert verified.json()["data"] == {"isVerified": True}
    not_bool = await client.patch(f"{RESTAURANTS}/{restaurant_id}/verify", json={"verified": "yes"})
    assert not_bool.status_code == 400

    owner_change = await client.patch(f"{RESTAURANTS}/{restaurant_id}/owner", json={"newOwnerId": new_owner.id})
    assert owner_change.json()["data"] == {"ownerId": new_owner.id}
    unknown_owner = await client.patch(f"{RESTAURANTS}/{restaurant_id}/owner", json={"newOwnerId": 999})
    assert unknown_owner.status_code == 404

    added = await client.post(f"{RESTAURANTS}/{restaurant_id}/managers", json={"managerId": manager.id})
    again = await client.post(f"{RESTAURANTS}/{restaurant_id}/managers", json={"managerId": manager.id})
    assert added.status_code == 201
    assert again.json()["data"] == {"managerIds": [manager.id]}

    removed = await client.delete(f"{RESTAURANTS}/{restaurant_id}/managers/{manager.id}")
    assert removed.json()["data"] == {"managerIds": []}
