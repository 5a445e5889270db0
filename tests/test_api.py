"""
HTTP surface: auth, role gates, the order flow end to end, admin routes and
the error response shape.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from conftest import PASSWORD, auth_headers, tomatoes
from database import get_database
from main import app
from models.users import Role
from services.ledger import OrderLedger

ADDRESS = "321 Market Street, City Center"


def order_payload(*lines, **extra):
    payload = {
        "items": [{"product_id": product_id, "quantity": quantity} for product_id, quantity in lines],
        "shipping_address": ADDRESS,
        "payment_method": "cash",
    }
    payload.update(extra)
    return payload


# ============================================================================
# Auth
# ============================================================================

class TestAuth:

    async def test_register_login_profile(self, client):
        response = await client.post("/auth/register", json={
            "name": "Mike Consumer",
            "email": "Mike@Consumer.com",
            "password": "buyer123",
            "role": "buyer",
        })
        assert response.status_code == 201
        body = response.json()
        assert body["user"]["role"] == "buyer"
        assert body["user"]["email"] == "mike@consumer.com"
        assert "password" not in body["user"]

        response = await client.post("/auth/login", json={"email": "mike@consumer.com", "password": "buyer123"})
        assert response.status_code == 200
        token = response.json()["token"]

        response = await client.get("/auth/profile", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["name"] == "Mike Consumer"

    async def test_cannot_register_as_admin(self, client):
        response = await client.post("/auth/register", json={
            "name": "Sneaky",
            "email": "sneaky@market.io",
            "password": "secret123",
            "role": "admin",
        })
        assert response.status_code == 400
        assert response.json()["message"] == "Role must be farmer or buyer"

    async def test_duplicate_registration(self, client, buyer):
        response = await client.post("/auth/register", json={
            "name": "Again",
            "email": buyer.email,
            "password": "secret123",
        })
        assert response.status_code == 400
        assert "already exists" in response.json()["message"]

    async def test_wrong_password(self, client, buyer):
        response = await client.post("/auth/login", json={"email": buyer.email, "password": "nope-nope"})
        assert response.status_code == 401
        assert response.json() == {"message": "Invalid credentials"}

    async def test_blocked_user_cannot_log_in(self, client, users, buyer):
        await users.set_blocked(buyer.id, True)
        response = await client.post("/auth/login", json={"email": buyer.email, "password": PASSWORD})
        assert response.status_code == 403

    async def test_profile_update_ignores_role(self, client, farmer):
        response = await client.put(
            "/auth/profile",
            json={"address": "456 Farm Road, Farmville", "role": "admin"},
            headers=auth_headers(farmer),
        )
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["address"] == "456 Farm Road, Farmville"
        assert user["role"] == "farmer"


# ============================================================================
# Access control gate
# ============================================================================

class TestAccessControl:

    async def test_missing_token(self, client):
        response = await client.get("/orders/buyer/my-orders")
        assert response.status_code == 401
        assert response.json() == {"message": "Not authenticated"}

    async def test_garbage_token(self, client):
        response = await client.get("/orders/buyer/my-orders", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401
        assert response.json() == {"message": "Invalid token"}

    async def test_wrong_role(self, client, farmer, product):
        response = await client.post("/orders", json=order_payload((product.id, 1)), headers=auth_headers(farmer))
        assert response.status_code == 403

    async def test_buyer_cannot_reach_admin(self, client, buyer):
        response = await client.get("/admin/dashboard", headers=auth_headers(buyer))
        assert response.status_code == 403

    @pytest.mark.parametrize("method, path", [
        ("get", "/orders/buyer/my-orders"),
        ("get", "/auth/profile"),
        ("patch", "/orders/ORDER-X/cancel"),
    ])
    async def test_blocked_user_token_is_rejected(self, client, users, buyer, method, path):
        headers = auth_headers(buyer)
        await users.set_blocked(buyer.id, True)

        response = await getattr(client, method)(path, headers=headers)

        assert response.status_code == 403
        assert response.json() == {"message": "Your account has been blocked"}

    async def test_deleted_user_token_is_rejected(self, client, users, buyer):
        headers = auth_headers(buyer)
        await users.delete(buyer.id)
        response = await client.get("/orders/buyer/my-orders", headers=headers)
        assert response.status_code == 401


# ============================================================================
# Products
# ============================================================================

class TestProductRoutes:

    async def test_farmer_adds_product(self, client, farmer):
        response = await client.post("/products", json={
            "name": "  Organic Carrots ",
            "description": "Sweet and crunchy organic carrots, rich in vitamins",
            "price": 1.79,
            "quantity": 75,
            "category": "vegetables",
            "unit": "kg",
        }, headers=auth_headers(farmer))

        assert response.status_code == 201
        product = response.json()["product"]
        assert product["name"] == "Organic Carrots"
        assert product["farmer_id"] == farmer.id

    async def test_invalid_unit(self, client, farmer):
        response = await client.post("/products", json={
            "name": "Eggs",
            "description": "Free range eggs from happy hens",
            "price": 3.0,
            "quantity": 12,
            "category": "other",
            "unit": "boxes",
        }, headers=auth_headers(farmer))
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "unit"

    async def test_farmer_cannot_block_through_update(self, client, catalog, farmer, product):
        response = await client.put(
            f"/products/{product.id}", json={"is_blocked": True, "price": 3.25}, headers=auth_headers(farmer)
        )
        assert response.status_code == 200
        stored = await catalog.get(product.id)
        assert stored.is_blocked is False
        assert stored.price == 3.25

    async def test_other_farmer_cannot_update(self, client, other_farmer, product):
        response = await client.put(f"/products/{product.id}", json={"price": 0.1}, headers=auth_headers(other_farmer))
        assert response.status_code == 403

    async def test_public_listing_and_lookup(self, client, catalog, product, apples):
        await catalog.set_blocked(apples.id, True)

        response = await client.get("/products", params={"category": "all", "page": 1, "limit": 12})
        body = response.json()
        assert response.status_code == 200
        assert body["total"] == 1
        assert body["pages"] == 1
        assert body["products"][0]["id"] == product.id

        assert (await client.get(f"/products/{product.id}")).status_code == 200
        response = await client.get(f"/products/{apples.id}")
        assert response.status_code == 404
        assert response.json() == {"message": "Product not available"}

    async def test_limit_is_bounded(self, client):
        response = await client.get("/products", params={"limit": 1000})
        assert response.status_code == 400

    async def test_my_products(self, client, farmer, product, milk):
        response = await client.get("/products/farmer/my-products", headers=auth_headers(farmer))
        assert [p["id"] for p in response.json()] == [product.id]

    async def test_delete_own_product(self, client, catalog, farmer, product):
        response = await client.delete(f"/products/{product.id}", headers=auth_headers(farmer))
        assert response.status_code == 200
        assert await catalog.get(product.id) is None


# ============================================================================
# Orders
# ============================================================================

class TestOrderRoutes:

    async def test_example_scenario(self, client, catalog, buyer, farmer, product):
        buyer_headers = auth_headers(buyer)
        farmer_headers = auth_headers(farmer)

        response = await client.post("/orders", json=order_payload((product.id, 2)), headers=buyer_headers)
        assert response.status_code == 201
        order = response.json()["order"]
        assert order["total_amount"] == pytest.approx(5.98)
        assert order["status"] == "pending"
        assert (await catalog.get(product.id)).quantity == 48

        for status in ("confirmed", "shipped", "delivered"):
            response = await client.patch(
                f"/orders/{order['id']}/status", json={"status": status}, headers=farmer_headers
            )
            assert response.status_code == 200
            assert response.json()["order"]["status"] == status

        response = await client.patch(f"/orders/{order['id']}/cancel", headers=buyer_headers)
        assert response.status_code == 400
        assert response.json() == {"message": "Order cannot be cancelled at this stage"}

    async def test_oversized_order(self, client, catalog, ledger, buyer, product):
        response = await client.post("/orders", json=order_payload((product.id, 60)), headers=auth_headers(buyer))

        assert response.status_code == 400
        assert response.json() == {"message": f"Insufficient quantity for {product.name}"}
        assert (await catalog.get(product.id)).quantity == 50
        assert await ledger.count() == 0

    async def test_unknown_product(self, client, buyer):
        response = await client.post("/orders", json=order_payload(("PROD-NOPE", 1)), headers=auth_headers(buyer))
        assert response.status_code == 404
        assert response.json() == {"message": "Product PROD-NOPE not found"}

    @pytest.mark.parametrize("payload, field", [
        ({"items": []}, "items"),
        ({"shipping_address": "  short    "}, "shipping_address"),
        ({"payment_method": "bitcoin"}, "payment_method"),
    ])
    async def test_invalid_order_payload(self, client, buyer, product, payload, field):
        body = order_payload((product.id, 1))
        body.update(payload)

        response = await client.post("/orders", json=body, headers=auth_headers(buyer))

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == field

    async def test_missing_payment_method(self, client, buyer, product):
        body = order_payload((product.id, 1))
        del body["payment_method"]

        response = await client.post("/orders", json=body, headers=auth_headers(buyer))

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "payment_method"

    async def test_short_address_message(self, client, buyer, product):
        response = await client.post(
            "/orders", json=order_payload((product.id, 1), shipping_address="tiny"), headers=auth_headers(buyer)
        )
        assert response.json()["message"] == "Shipping address must be at least 10 characters long"

    async def test_zero_quantity(self, client, buyer, product):
        response = await client.post("/orders", json=order_payload((product.id, 0)), headers=auth_headers(buyer))
        assert response.status_code == 400

    async def test_skipping_a_step_is_rejected(self, client, buyer, farmer, product):
        response = await client.post("/orders", json=order_payload((product.id, 1)), headers=auth_headers(buyer))
        order_id = response.json()["order"]["id"]

        response = await client.patch(
            f"/orders/{order_id}/status", json={"status": "shipped"}, headers=auth_headers(farmer)
        )
        assert response.status_code == 400
        assert response.json() == {"message": "Cannot change order status from pending to shipped"}

    async def test_foreign_farmer_cannot_update(self, client, buyer, other_farmer, product):
        response = await client.post("/orders", json=order_payload((product.id, 1)), headers=auth_headers(buyer))
        order_id = response.json()["order"]["id"]

        response = await client.patch(
            f"/orders/{order_id}/status", json={"status": "confirmed"}, headers=auth_headers(other_farmer)
        )
        assert response.status_code == 403

    async def test_cancel_restores_stock(self, client, catalog, buyer, product):
        headers = auth_headers(buyer)
        response = await client.post("/orders", json=order_payload((product.id, 5)), headers=headers)
        order_id = response.json()["order"]["id"]

        response = await client.patch(f"/orders/{order_id}/cancel", headers=headers)

        assert response.status_code == 200
        assert response.json()["order"]["status"] == "cancelled"
        assert (await catalog.get(product.id)).quantity == 50

    async def test_order_listings_and_lookup(self, client, buyer, other_buyer, farmer, product):
        response = await client.post("/orders", json=order_payload((product.id, 1)), headers=auth_headers(buyer))
        order_id = response.json()["order"]["id"]

        mine = await client.get("/orders/buyer/my-orders", headers=auth_headers(buyer))
        theirs = await client.get("/orders/buyer/my-orders", headers=auth_headers(other_buyer))
        farmer_orders = await client.get("/orders/farmer/my-orders", headers=auth_headers(farmer))

        assert [o["id"] for o in mine.json()] == [order_id]
        assert theirs.json() == []
        assert [o["id"] for o in farmer_orders.json()] == [order_id]

        assert (await client.get(f"/orders/{order_id}", headers=auth_headers(farmer))).status_code == 200
        assert (await client.get(f"/orders/{order_id}", headers=auth_headers(other_buyer))).status_code == 403
        assert (await client.get("/orders/ORDER-NOPE", headers=auth_headers(buyer))).status_code == 404


    async def test_order_views_name_the_buyer(self, client, catalog, admin, buyer, farmer):
        pictured = await catalog.create(farmer.id, tomatoes(image="https://example.com/tomatoes.jpg"))
        response = await client.post("/orders", json=order_payload((pictured.id, 1)), headers=auth_headers(buyer))
        order_id = response.json()["order"]["id"]
        expected = {"id": buyer.id, "name": "Mike Consumer", "email": buyer.email}

        farmer_orders = (await client.get("/orders/farmer/my-orders", headers=auth_headers(farmer))).json()
        admin_orders = (await client.get("/admin/orders", headers=auth_headers(admin))).json()["orders"]
        single = (await client.get(f"/orders/{order_id}", headers=auth_headers(farmer))).json()

        for order in (farmer_orders[0], admin_orders[0], single):
            assert order["buyer"] == expected
            assert order["items"][0]["image"] == "https://example.com/tomatoes.jpg"
            assert order["items"][0]["name"] == "Fresh Organic Tomatoes"


# ============================================================================
# Admin
# ============================================================================

class TestAdminRoutes:

    async def test_dashboard(self, client, admin, buyer, farmer, product, apples):
        response = await client.post("/orders", json=order_payload((product.id, 2)), headers=auth_headers(buyer))
        order_id = response.json()["order"]["id"]
        await client.post("/orders", json=order_payload((apples.id, 1)), headers=auth_headers(buyer))
        for status in ("confirmed", "shipped", "delivered"):
            await client.patch(f"/orders/{order_id}/status", json={"status": status}, headers=auth_headers(farmer))

        response = await client.get("/admin/dashboard", headers=auth_headers(admin))

        assert response.status_code == 200
        statistics = response.json()["statistics"]
        assert statistics["users"] == {"total": 3, "farmers": 1, "buyers": 1, "blocked": 0}
        assert statistics["products"] == {"total": 2, "available": 2, "blocked": 0}
        assert statistics["orders"] == {"total": 2, "pending": 1, "completed": 1}
        assert statistics["revenue"] == pytest.approx(5.98)
        assert len(response.json()["recent_activity"]["orders"]) == 2

    async def test_block_and_unblock_product(self, client, admin, product):
        headers = auth_headers(admin)

        response = await client.patch(f"/admin/products/{product.id}/block", json={"is_blocked": True}, headers=headers)
        assert response.status_code == 200
        assert response.json()["product"]["is_blocked"] is True
        assert (await client.get("/products")).json()["total"] == 0

        await client.patch(f"/admin/products/{product.id}/block", json={"is_blocked": False}, headers=headers)
        assert (await client.get("/products")).json()["total"] == 1

    async def test_block_requires_boolean(self, client, admin, buyer):
        response = await client.patch(
            f"/admin/users/{buyer.id}/block", json={"is_blocked": "yes"}, headers=auth_headers(admin)
        )
        assert response.status_code == 400

    async def test_cannot_block_admin(self, client, admin, make_user):
        other_admin = await make_user(Role.ADMIN)
        response = await client.patch(
            f"/admin/users/{other_admin.id}/block", json={"is_blocked": True}, headers=auth_headers(admin)
        )
        assert response.status_code == 403
        assert response.json() == {"message": "Cannot block admin users"}

    async def test_listings_with_filters(self, client, admin, buyer, farmer, product):
        headers = auth_headers(admin)
        await client.post("/orders", json=order_payload((product.id, 1)), headers=auth_headers(buyer))

        users = (await client.get("/admin/users", params={"role": "farmer"}, headers=headers)).json()
        orders = (await client.get("/admin/orders", params={"status": "pending"}, headers=headers)).json()
        delivered = (await client.get("/admin/orders", params={"status": "delivered"}, headers=headers)).json()
        bad = await client.get("/admin/products", params={"category": "toys"}, headers=headers)

        assert users["total"] == 1
        assert users["users"][0]["id"] == farmer.id
        assert orders["total"] == 1
        assert delivered["total"] == 0
        assert bad.status_code == 400

    async def test_delete_user_product_and_order(self, client, catalog, ledger, admin, buyer, farmer, product, apples):
        headers = auth_headers(admin)
        response = await client.post("/orders", json=order_payload((product.id, 1)), headers=auth_headers(buyer))
        order_id = response.json()["order"]["id"]

        assert (await client.delete(f"/admin/orders/{order_id}", headers=headers)).status_code == 200
        assert await ledger.get(order_id) is None

        assert (await client.delete(f"/admin/products/{apples.id}", headers=headers)).status_code == 200
        assert await catalog.get(apples.id) is None

        assert (await client.delete(f"/admin/users/{farmer.id}", headers=headers)).status_code == 200
        assert await catalog.get(product.id) is None

        response = await client.delete(f"/admin/users/{admin.id}", headers=headers)
        assert response.status_code == 403


async def test_health_check(client):
    response = await client.get("/")
    assert response.json() == {"status": "running"}


async def test_unexpected_error_hides_details(db, buyer, monkeypatch):
    async def broken(self, buyer_id):
        raise RuntimeError("secret internal detail")

    monkeypatch.setattr(OrderLedger, "list_for_buyer", broken)
    app.dependency_overrides[get_database] = lambda: db
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.get("/orders/buyer/my-orders", headers=auth_headers(buyer))
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"message": "Server error"}
