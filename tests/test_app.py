from conftest import API


async def test_root_and_health(client):
    root = await client.get("/")
    health = await client.get("/health")

    assert root.json()["status"] == "running"
    assert root.json()["docs"] == f"{API}/docs"
    assert health.json() == {"status": "healthy"}


async def test_validation_errors_use_the_envelope(client):
    response = await client.post(f"{API}/coupons/apply", json={"code": "SAVE20", "userId": 1, "restaurantId": 1})

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "orderValue: Field required"}


async def test_openapi_is_served_under_api_prefix(client):
    response = await client.get(f"{API}/openapi.json")

    assert response.status_code == 200
    assert f"{API}/restaurants/{{id_or_slug}}" in response.json()["paths"]
