import logging

import pytest

from errors import InvalidStatusTransition, ValidationError
from schemas import CartItemIn, OrderIn
from services import ORDER_STATUSES, ORDER_TRANSITIONS, can_transition

ADDRESS = {
    "firstName": "Alice",
    "lastName": "Weaver",
    "streetAddress": "12 Loom Lane",
    "city": "Jaipur",
    "state": "Rajasthan",
    "zipCode": "302001",
    "country": "India",
}


def fill_cart(client, headers):
    client.post("/api/cart", json={"productId": "sample-1", "quantity": 2}, headers=headers)
    client.post("/api/cart", json={"productId": "sample-3"}, headers=headers)


def place(client, headers, **payload):
    return client.post("/api/orders", json={"shippingAddress": ADDRESS, **payload}, headers=headers)


def set_status(client, admin_headers, order_id, status, **extra):
    return client.put(f"/api/admin/orders/{order_id}/status", json={"status": status, **extra},
                      headers=admin_headers)


def test_order_from_cart_is_pending_and_clears_cart(client, user):
    fill_cart(client, user["headers"])
    resp = place(client, user["headers"])
    assert resp.status_code == 200
    order = resp.json()
    assert order["status"] == "pending"
    assert order["paymentMethod"] == "cod"
    assert order["currency"] == "INR"
    # sample-1 at its discounted price, sample-3 at its discounted price
    assert order["totalAmount"] == 2 * 2000 + 2800
    assert {i["productId"]: i["quantity"] for i in order["items"]} == {"sample-1": 2, "sample-3": 1}
    assert order["shippingAddress"]["city"] == "Jaipur"

    assert client.get("/api/cart", headers=user["headers"]).json() == []


def test_order_with_explicit_items_and_total(client, user):
    resp = place(client, user["headers"], items=[{"productId": "sample-2", "quantity": 1, "price": 1500}],
                 totalAmount=1550, currency="USD")
    assert resp.status_code == 200
    assert resp.json()["totalAmount"] == 1550
    assert resp.json()["currency"] == "USD"


def test_empty_cart_cannot_be_ordered(client, user):
    resp = place(client, user["headers"])
    assert resp.status_code == 400
    assert resp.json()["message"] == "Cart is empty"


def test_orders_listed_newest_first_and_per_user(client, user, other_user):
    first = place(client, user["headers"], items=[{"productId": "sample-2", "quantity": 1, "price": 1500}]).json()
    second = place(client, user["headers"], items=[{"productId": "sample-5", "quantity": 1, "price": 1000}]).json()

    orders = client.get("/api/orders", headers=user["headers"]).json()
    assert [o["id"] for o in orders] == [second["id"], first["id"]]
    assert client.get("/api/orders", headers=other_user["headers"]).json() == []


def test_customer_cancels_pending_order(client, user):
    fill_cart(client, user["headers"])
    order = place(client, user["headers"]).json()
    resp = client.put(f"/api/orders/{order['id']}/cancel", headers=user["headers"])
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"


def test_customer_cancels_processing_order(client, user, admin_headers):
    fill_cart(client, user["headers"])
    order = place(client, user["headers"]).json()
    set_status(client, admin_headers, order["id"], "processing")
    resp = client.put(f"/api/orders/{order['id']}/cancel", headers=user["headers"])
    assert resp.json()["status"] == "cancelled"


def test_cancelling_delivered_order_is_rejected(client, user, admin_headers):
    fill_cart(client, user["headers"])
    order = place(client, user["headers"]).json()
    for status in ("processing", "shipped", "delivered"):
        assert set_status(client, admin_headers, order["id"], status).status_code == 200

    resp = client.put(f"/api/orders/{order['id']}/cancel", headers=user["headers"])
    assert resp.status_code == 403
    assert resp.json()["kind"] == "forbidden"
    assert client.get("/api/orders", headers=user["headers"]).json()[0]["status"] == "delivered"


def test_cannot_cancel_someone_elses_order(client, user, other_user):
    fill_cart(client, user["headers"])
    order = place(client, user["headers"]).json()
    resp = client.put(f"/api/orders/{order['id']}/cancel", headers=other_user["headers"])
    assert resp.status_code == 403
    assert resp.json()["message"] == "Not authorized to cancel this order"


def test_cancel_missing_order(client, user):
    assert client.put("/api/orders/nope/cancel", headers=user["headers"]).status_code == 404


def test_admin_lists_orders_with_customer(client, user, admin_headers):
    fill_cart(client, user["headers"])
    order = place(client, user["headers"]).json()

    orders = client.get("/api/admin/orders", headers=admin_headers).json()
    assert [o["id"] for o in orders] == [order["id"]]
    assert orders[0]["customer"] == {"firstName": "Alice", "lastName": "Weaver", "email": "alice@craftmail.com"}

    one = client.get(f"/api/admin/orders/{order['id']}", headers=admin_headers).json()
    assert one["customer"]["email"] == "alice@craftmail.com"


def test_admin_attaches_tracking_number(client, user, admin_headers):
    fill_cart(client, user["headers"])
    order = place(client, user["headers"]).json()
    resp = set_status(client, admin_headers, order["id"], "shipped", trackingNumber="TRK123")
    assert resp.status_code == 200
    assert resp.json()["status"] == "shipped"
    assert resp.json()["trackingNumber"] == "TRK123"

    # same status again only updates the tracking number
    resp = set_status(client, admin_headers, order["id"], "shipped", trackingNumber="TRK456")
    assert resp.json()["trackingNumber"] == "TRK456"


def test_admin_illegal_transition_leaves_order_unchanged(client, user, admin_headers):
    fill_cart(client, user["headers"])
    order = place(client, user["headers"]).json()
    resp = set_status(client, admin_headers, order["id"], "delivered")
    assert resp.status_code == 403
    assert resp.json()["message"] == "Cannot change order status from pending to delivered"
    assert client.get(f"/api/admin/orders/{order['id']}", headers=admin_headers).json()["status"] == "pending"


def test_admin_unknown_status(client, user, admin_headers):
    fill_cart(client, user["headers"])
    order = place(client, user["headers"]).json()
    assert set_status(client, admin_headers, order["id"], "lost").status_code == 400


def test_transition_table():
    assert set(ORDER_TRANSITIONS) == set(ORDER_STATUSES)
    assert can_transition("pending", "processing")
    assert can_transition("processing", "shipped")
    assert can_transition("shipped", "delivered")
    assert can_transition("shipped", "shipped")
    assert not can_transition("shipped", "cancelled")
    assert not can_transition("delivered", "cancelled")
    assert not can_transition("cancelled", "pending")
    for terminal in ("delivered", "cancelled"):
        assert all(not can_transition(terminal, s) for s in ORDER_STATUSES if s != terminal)


def test_service_enforces_transitions(services):
    services.cart.add_to_cart("u1", CartItemIn(product_id="sample-2"))
    order = services.orders.place_order("u1", OrderIn())
    services.orders.update_order_status(order.id, "shipped")
    with pytest.raises(InvalidStatusTransition):
        services.orders.update_order_status(order.id, "processing")
    with pytest.raises(InvalidStatusTransition):
        services.orders.cancel_order(order.id, "u1")
    assert services.orders.get_order_by_id(order.id).status == "shipped"


def test_service_rejects_empty_order(services):
    with pytest.raises(ValidationError):
        services.orders.create_order("u1", [])


def test_order_stands_when_cart_clear_fails(app, client, user, monkeypatch, caplog):
    def broken_clear(user_id):
        raise RuntimeError("cart store unavailable")

    monkeypatch.setattr(app.state.services.cart, "clear_cart", broken_clear)
    fill_cart(client, user["headers"])

    with caplog.at_level(logging.ERROR, logger="artisan_store.services"):
        resp = place(client, user["headers"])
    assert resp.status_code == 200
    assert resp.json()["status"] == "pending"

    orders = client.get("/api/orders", headers=user["headers"]).json()
    assert [o["id"] for o in orders] == [resp.json()["id"]]
    # the cart was left as it was
    assert len(client.get("/api/cart", headers=user["headers"]).json()) == 2
    assert "Failed to clear cart" in caplog.text
    assert "cart store unavailable" in caplog.text
