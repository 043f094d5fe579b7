import httpx
from fastapi.testclient import TestClient

from orderdesk.core.config import Settings
from orderdesk.main import _forward_events, create_app
from orderdesk.services.notifications import Subscription


async def place(client, menu, **overrides):
    payload = {
        "customerName": "Thandi",
        "phone": "0821234567",
        "items": [
            {"itemId": menu["Classic Burger"], "qty": 2},
            {"itemId": menu["Chips"], "qty": 1},
        ],
    }
    payload.update(overrides)
    return await client.post("/api/orders", json=payload)


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "operational"
    assert data["database"] == "healthy"


async def test_menu_lists_categories_with_items(client):
    response = await client.get("/api/menu")

    assert response.status_code == 200
    data = response.json()
    assert data["currency"] == "ZAR"
    assert [c["name"] for c in data["categories"]] == ["Burgers", "Sides", "Drinks"]
    burger = data["categories"][0]["items"][0]
    assert burger == {
        "id": burger["id"],
        "category_id": data["categories"][0]["id"],
        "name": "Classic Burger",
        "description": "150g beef patty, lettuce, tomato",
        "price_cents": 8500,
        "available": True,
    }


async def test_create_menu_item_converts_major_units(client):
    menu = (await client.get("/api/menu")).json()
    drinks_id = menu["categories"][2]["id"]

    response = await client.post("/api/menu", json={
        "categoryId": drinks_id,
        "name": "Iced Tea",
        "priceZAR": 24.5,
    })

    assert response.status_code == 200
    item = response.json()["item"]
    assert item["price_cents"] == 2450
    assert item["available"] is True
    assert item["description"] == ""


async def test_create_menu_item_requires_fields(client):
    response = await client.post("/api/menu", json={"name": "Nameless"})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation Error"
    assert set(body["detail"]) == {"categoryId", "price"}


async def test_create_menu_item_unknown_category(client):
    response = await client.post("/api/menu", json={"categoryId": 999, "name": "X", "price": 10})

    assert response.status_code == 404


async def test_update_menu_item_is_partial(client, menu):
    response = await client.put(f"/api/menu/{menu['Cola']}", json={"price": 22.5})

    assert response.status_code == 200
    item = response.json()["item"]
    assert item["price_cents"] == 2250
    assert item["name"] == "Cola"
    assert item["description"] == "330ml can"


async def test_update_missing_menu_item(client):
    response = await client.put("/api/menu/9999", json={"name": "Ghost"})

    assert response.status_code == 404


async def test_availability_requires_boolean(client, menu):
    response = await client.patch(f"/api/menu/{menu['Cola']}/availability", json={})

    assert response.status_code == 400


async def test_place_order(client, menu, events):
    response = await place(client, menu)

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["orderId"] == body["order"]["id"]
    assert body["order"]["total_cents"] == 20500
    assert body["order"]["status"] == "NEW"
    assert [e["event"] for e in events()] == ["order:new"]


async def test_client_prices_are_ignored(client, menu):
    response = await place(client, menu, items=[
        {"itemId": menu["Cola"], "qty": 1, "price_cents": 1, "price": 0.01},
    ])

    assert response.status_code == 200
    assert response.json()["order"]["total_cents"] == 2000


async def test_order_with_unavailable_item_is_rejected(client, menu, events):
    await client.patch(f"/api/menu/{menu['Chips']}/availability", json={"available": False})

    response = await place(client, menu)

    assert response.status_code == 400
    assert response.json()["message"] == f"Item {menu['Chips']} unavailable"
    assert (await client.get("/api/orders")).json()["orders"] == []
    assert events() == []


async def test_out_of_range_item_id_is_unavailable(client, menu):
    response = await place(client, menu, items=[{"itemId": 2 ** 70, "qty": 1}])

    assert response.status_code == 400
    assert response.json()["error"] == "Item Unavailable"
    assert response.json()["detail"] == {"itemId": 2 ** 70}


async def test_huge_quantity_is_rejected(client, menu, events):
    response = await place(client, menu, items=[{"itemId": menu["Cola"], "qty": 1e18}])

    assert response.status_code == 400
    assert set(response.json()["detail"]) == {"qty"}
    assert (await client.get("/api/orders")).json()["orders"] == []
    assert events() == []


async def test_out_of_range_ids_are_not_found(client, menu):
    huge = 2 ** 70

    assert (await client.get(f"/api/orders/{huge}")).status_code == 404
    assert (await client.patch(f"/api/orders/{huge}/status", json={"status": "READY"})).status_code == 404
    assert (await client.put(f"/api/menu/{huge}", json={"name": "Ghost"})).status_code == 404
    assert (await client.patch(f"/api/menu/{huge}/availability", json={"available": False})).status_code == 404
    response = await client.post("/api/menu", json={"categoryId": huge, "name": "Ghost", "price": 10})
    assert response.status_code == 404


async def test_oversized_price_is_rejected(client, menu):
    response = await client.put(f"/api/menu/{menu['Cola']}", json={"price": 1e30})

    assert response.status_code == 400
    assert response.json()["detail"] == {"price": "is too large"}


async def test_empty_order_is_rejected(client, menu):
    response = await place(client, menu, items=[])

    assert response.status_code == 400
    assert response.json()["error"] == "Empty Order"


async def test_order_requires_customer_fields(client, menu):
    response = await place(client, menu, customerName="  ")

    assert response.status_code == 400
    assert response.json()["detail"] == {"customerName": "is required"}

    response = await client.post("/api/orders", json={"items": []})
    assert response.status_code == 400
    assert set(response.json()["detail"]) == {"customerName", "phone"}


async def test_price_change_does_not_touch_existing_orders(client, menu):
    order_id = (await place(client, menu)).json()["orderId"]

    await client.put(f"/api/menu/{menu['Classic Burger']}", json={"price": 90})

    order = (await client.get(f"/api/orders/{order_id}")).json()
    assert order["total_cents"] == 20500
    assert [(i["qty"], i["price_cents_snapshot"]) for i in order["items"]] == [(2, 8500), (1, 3500)]


async def test_status_update_flow(client, menu, events):
    order_id = (await place(client, menu)).json()["orderId"]
    events()

    response = await client.patch(f"/api/orders/{order_id}/status", json={"status": "READY"})

    assert response.status_code == 200
    assert response.json()["order"]["status"] == "READY"
    received = events()
    assert len(received) == 1
    assert received[0]["event"] == "order:update"
    assert received[0]["data"]["status"] == "READY"

    await client.patch(f"/api/orders/{order_id}/status", json={"status": "COMPLETED"})
    assert (await client.get("/api/orders")).json() == {"total": 0, "orders": []}
    assert (await client.get(f"/api/orders/{order_id}")).json()["status"] == "COMPLETED"


async def test_status_update_errors(client, menu):
    order_id = (await place(client, menu)).json()["orderId"]

    invalid = await client.patch(f"/api/orders/{order_id}/status", json={"status": "LOST"})
    missing = await client.patch("/api/orders/9999/status", json={"status": "READY"})

    assert invalid.status_code == 400
    assert invalid.json()["error"] == "Invalid Status"
    assert missing.status_code == 404


async def test_strict_mode_returns_conflict(settings, database, broadcaster, menu):
    strict = settings.model_copy(update={"strict_status_transitions": True})
    app = create_app(settings=strict, database=database, broadcaster=broadcaster)

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
        order_id = (await place(client, menu)).json()["orderId"]
        response = await client.patch(f"/api/orders/{order_id}/status", json={"status": "COMPLETED"})

    assert response.status_code == 409
    assert response.json()["detail"]["allowed"] == ["PREPARING"]


def test_websocket_observer_receives_events(tmp_path):
    settings = Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'ws.db'}",
    )
    app = create_app(settings=settings)

    with TestClient(app) as client:
        menu = client.get("/api/menu").json()
        cola_id = menu["categories"][2]["items"][0]["id"]

        with client.websocket_connect("/ws") as websocket:
            created = client.post("/api/orders", json={
                "customerName": "Ann",
                "phone": "0820000000",
                "items": [{"itemId": cola_id, "qty": 3}],
            })
            order_id = created.json()["orderId"]

            message = websocket.receive_json()
            assert message["event"] == "order:new"
            assert message["data"]["total_cents"] == 6000

            client.patch(f"/api/orders/{order_id}/status", json={"status": "PREPARING"})
            message = websocket.receive_json()
            assert message["event"] == "order:update"
            assert message["data"]["id"] == order_id
            assert message["data"]["status"] == "PREPARING"


async def test_sender_stops_quietly_when_client_is_gone():
    class DroppedSocket:
        async def send_json(self, message):
            raise ConnectionResetError("client went away")

    subscription = Subscription()
    subscription.offer({"event": "order:new", "data": {"id": 1}})

    # Returns instead of raising, so the endpoint's cleanup sees a clean exit
    await _forward_events(DroppedSocket(), subscription)

    assert subscription.queue.empty()
