from unittest.mock import patch

import pytest
import stripe
from sqlalchemy.exc import OperationalError

from fakes import SESSION_ID, paystack_signature, stripe_signed_event


def user_headers(user):
    return {"X-User-Id": user.id}


@pytest.fixture
def costume(repos):
    return repos.products.add(name="Zombie Brain Headband", category="accessory", theme="zombie",
                              price_cents=1299, promotional_price_cents=999, stock_quantity=3, is_accessory=True)


class TestEnvelope:
    def test_success_envelope(self, client, costume):
        response = client.get(f"/api/products/{costume.id}")
        body = response.get_json()

        assert response.status_code == 200
        assert body["success"] is True
        assert body["data"]["name"] == "Zombie Brain Headband"
        assert body["data"]["effective_price_cents"] == 999
        assert "timestamp" in body
        assert len(body["request_id"]) == 8

    def test_not_found_envelope(self, client):
        response = client.get("/api/products/00000000-0000-0000-0000-000000000000")
        body = response.get_json()

        assert response.status_code == 404
        assert body["success"] is False
        assert body["error"]["code"] == "NOT_FOUND"

    def test_unknown_route_uses_error_envelope(self, client):
        response = client.get("/api/nowhere")

        assert response.status_code == 404
        assert response.get_json()["error"]["code"] == "NOT_FOUND"

    def test_index(self, client):
        assert client.get("/api").get_json() == {"name": "Spooky Styles API", "status": "running"}


class TestHealth:
    def test_healthy(self, client):
        with patch("spooky_styles.app.ping_database") as ping:
            response = client.get("/health")

        ping.assert_called_once()
        assert response.status_code == 200
        assert response.get_json()["cache"] == "reachable"

    def test_database_down(self, client):
        error = OperationalError("SELECT 1", {}, Exception("connection refused"))
        with patch("spooky_styles.app.ping_database", side_effect=error):
            response = client.get("/health")

        assert response.status_code == 503
        assert response.get_json()["database"] == "unreachable"

    def test_cache_down_is_reported_but_not_fatal(self, client, fake_redis):
        fake_redis.broken = True
        with patch("spooky_styles.app.ping_database"):
            response = client.get("/health")

        assert response.status_code == 200
        assert response.get_json()["cache"] == "unreachable"


class TestProducts:
    def test_list_with_filters(self, client, repos, costume):
        repos.products.add(name="Witch Wig", category="wig", theme="witch")

        body = client.get("/api/products?theme=zombie&is_accessory=true").get_json()

        assert body["data"]["count"] == 1
        assert body["data"]["products"][0]["id"] == costume.id

    def test_invalid_filter(self, client):
        response = client.get("/api/products?category=cape")

        assert response.status_code == 400
        assert response.get_json()["error"]["code"] == "VALIDATION_ERROR"

    def test_search_requires_query(self, client):
        assert client.get("/api/products/search?q=").status_code == 400

    def test_create_requires_identity(self, client, sample_product_data):
        response = client.post("/api/products", json=sample_product_data)

        assert response.status_code == 401

    def test_create_requires_admin(self, client, customer, sample_product_data):
        response = client.post("/api/products", json=sample_product_data, headers=user_headers(customer))

        assert response.status_code == 403
        assert response.get_json()["error"]["code"] == "FORBIDDEN"

    def test_admin_creates_product(self, client, admin_user, sample_product_data):
        response = client.post("/api/products", json=sample_product_data, headers=user_headers(admin_user))
        body = response.get_json()

        assert response.status_code == 201
        assert body["message"] == "Product created"
        assert body["data"]["effective_price_cents"] == 2499

    def test_schema_errors_are_reported_per_field(self, client, admin_user, sample_product_data):
        sample_product_data["category"] = "cape"
        sample_product_data["price_cents"] = 0

        response = client.post("/api/products", json=sample_product_data, headers=user_headers(admin_user))
        field_errors = response.get_json()["error"]["details"]["field_errors"]

        assert response.status_code == 400
        assert set(field_errors) == {"category", "price_cents"}

    def test_non_json_body_is_rejected(self, client, admin_user):
        response = client.post("/api/products", data="name=x", headers=user_headers(admin_user))

        assert response.status_code == 400
        assert response.get_json()["error"]["code"] == "BAD_REQUEST"

    def test_partial_update(self, client, admin_user, costume):
        response = client.put(f"/api/products/{costume.id}", json={"stock_quantity": 12},
                              headers=user_headers(admin_user))

        assert response.status_code == 200
        assert response.get_json()["data"]["stock_quantity"] == 12
        assert response.get_json()["data"]["name"] == "Zombie Brain Headband"

    def test_add_color_validates_hex(self, client, admin_user, costume):
        response = client.post(f"/api/products/{costume.id}/colors",
                               json={"color_name": "Brain Pink", "color_hex": "pink"},
                               headers=user_headers(admin_user))

        assert response.status_code == 400
        assert "color_hex" in response.get_json()["error"]["details"]["field_errors"]

    def test_low_stock_report(self, client, admin_user, costume):
        body = client.get("/api/products/admin/low-stock?threshold=5", headers=user_headers(admin_user)).get_json()

        assert body["data"]["threshold"] == 5
        assert [p["id"] for p in body["data"]["products"]] == [costume.id]


class TestCart:
    def test_owner_header_is_required(self, client):
        response = client.get("/api/cart")

        assert response.status_code == 400
        assert response.get_json()["error"]["code"] == "BAD_REQUEST"

    def test_invalid_user_id_header(self, client):
        assert client.get("/api/cart", headers={"X-User-Id": "not-a-uuid"}).status_code == 400

    def test_invalid_session_id_header(self, client):
        assert client.get("/api/cart", headers={"X-Session-Id": "bad id!"}).status_code == 400

    def test_guest_add_update_remove(self, client, guest_headers, costume):
        added = client.post("/api/cart/items", headers=guest_headers, json={
            "product_id": costume.id, "quantity": 2, "customizations": {"accessories": ["goo"]},
        })
        assert added.status_code == 201
        assert added.get_json()["data"]["subtotal_cents"] == 1998

        updated = client.put(f"/api/cart/items/{costume.id}", headers=guest_headers, json={
            "quantity": 3, "customizations": {"accessories": ["goo"]},
        })
        assert updated.get_json()["data"]["total_quantity"] == 3

        removed = client.delete(f"/api/cart/items/{costume.id}", headers=guest_headers,
                                json={"customizations": {"accessories": ["goo"]}})
        assert removed.get_json()["data"]["is_empty"] is True

    def test_stock_limit_message(self, client, guest_headers, costume):
        response = client.post("/api/cart/items", headers=guest_headers,
                               json={"product_id": costume.id, "quantity": 4})

        assert response.status_code == 400
        assert response.get_json()["error"]["message"] == "Insufficient stock. Only 3 items available."

    def test_total(self, client, customer, costume):
        client.post("/api/cart/items", headers=user_headers(customer), json={"product_id": costume.id, "quantity": 1})

        body = client.get("/api/cart/total", headers=user_headers(customer)).get_json()

        assert body["data"] == {"subtotal_cents": 999}

    def test_merge_requires_both_headers(self, client, customer):
        response = client.post("/api/cart/merge", headers=user_headers(customer))

        assert response.status_code == 400

    def test_merge(self, client, customer, guest_headers, costume):
        client.post("/api/cart/items", headers=guest_headers, json={"product_id": costume.id, "quantity": 1})

        response = client.post("/api/cart/merge", headers={**user_headers(customer), **guest_headers})

        assert response.status_code == 200
        assert response.get_json()["data"]["user_id"] == customer.id
        assert response.get_json()["data"]["total_quantity"] == 1


class TestOrders:
    def test_guest_checkout(self, client, guest_headers, costume, sample_guest_info):
        client.post("/api/cart/items", headers=guest_headers, json={"product_id": costume.id, "quantity": 1})

        response = client.post("/api/orders/checkout", headers=guest_headers, json={"guest_info": sample_guest_info})
        body = response.get_json()

        assert response.status_code == 201
        assert body["data"]["is_guest_order"] is True
        assert body["data"]["total_cents"] == 999 + 999

    def test_guest_checkout_with_bad_email(self, client, guest_headers, costume, sample_guest_info):
        client.post("/api/cart/items", headers=guest_headers, json={"product_id": costume.id, "quantity": 1})
        sample_guest_info["email"] = "nope"

        response = client.post("/api/orders/checkout", headers=guest_headers, json={"guest_info": sample_guest_info})

        assert response.status_code == 400
        assert "guest_info.email" in response.get_json()["error"]["details"]["field_errors"]

    def test_user_checkout_and_history(self, client, customer, costume):
        headers = user_headers(customer)
        client.post("/api/cart/items", headers=headers, json={"product_id": costume.id, "quantity": 2})

        created = client.post("/api/orders/checkout", headers=headers)
        order_id = created.get_json()["data"]["id"]

        assert created.status_code == 201
        history = client.get("/api/orders", headers=headers).get_json()["data"]
        assert [o["id"] for o in history["orders"]] == [order_id]
        assert client.get(f"/api/orders/{order_id}", headers=headers).status_code == 200

    def test_other_users_order_is_not_found(self, client, repos, customer, costume):
        client.post("/api/cart/items", headers=user_headers(customer), json={"product_id": costume.id, "quantity": 1})
        order_id = client.post("/api/orders/checkout", headers=user_headers(customer)).get_json()["data"]["id"]
        stranger = repos.users.add()

        assert client.get(f"/api/orders/{order_id}", headers=user_headers(stranger)).status_code == 404

    def test_listing_orders_requires_identity(self, client):
        assert client.get("/api/orders").status_code == 401

    def test_admin_updates_status(self, client, admin_user, customer, costume):
        client.post("/api/cart/items", headers=user_headers(customer), json={"product_id": costume.id, "quantity": 1})
        order_id = client.post("/api/orders/checkout", headers=user_headers(customer)).get_json()["data"]["id"]

        response = client.put(f"/api/orders/{order_id}/status", json={"status": "shipped"},
                              headers=user_headers(admin_user))

        assert response.status_code == 200
        assert response.get_json()["data"]["status"] == "shipped"


class TestPayments:
    def test_create_intent(self, client, customer, costume):
        client.post("/api/cart/items", headers=user_headers(customer), json={"product_id": costume.id, "quantity": 3})

        with patch.object(stripe.PaymentIntent, "create", return_value={"id": "pi_9", "client_secret": "s"}):
            response = client.post("/api/payments/intent", headers=user_headers(customer))

        assert response.status_code == 201
        assert response.get_json()["data"]["amount"] == 2997 - 150

    def test_stripe_outage_is_503(self, client, customer, costume):
        client.post("/api/cart/items", headers=user_headers(customer), json={"product_id": costume.id, "quantity": 1})

        with patch.object(stripe.PaymentIntent, "create", side_effect=stripe.APIConnectionError("down")):
            response = client.post("/api/payments/intent", headers=user_headers(customer))

        assert response.status_code == 503
        assert response.get_json()["error"]["code"] == "EXTERNAL_SERVICE_ERROR"

    def test_webhook_without_signature(self, client):
        response = client.post("/api/payments/webhook", data=b"{}")

        assert response.status_code == 400

    def test_webhook_creates_order(self, client, repos, customer, costume):
        client.post("/api/cart/items", headers=user_headers(customer), json={"product_id": costume.id, "quantity": 1})
        payload, signature = stripe_signed_event("payment_intent.succeeded", "pi_77", {"user_id": customer.id})

        response = client.post("/api/payments/webhook", data=payload, headers={"Stripe-Signature": signature})

        assert response.status_code == 200
        assert response.get_json() == {"received": True, "type": "payment_intent.succeeded"}
        assert client.get("/api/orders/payment-intent/pi_77").get_json()["data"]["status"] == "processing"


class TestPaystack:
    def test_webhook_with_bad_signature(self, client):
        response = client.post("/api/paystack/webhook", data=b"{}", headers={"X-Paystack-Signature": "bad"})

        assert response.status_code == 401

    @pytest.mark.parametrize("body", [b"[]", b'{"event": null, "data": {}}'])
    def test_signed_webhook_without_event_is_400(self, client, body):
        response = client.post(
            "/api/paystack/webhook",
            data=body,
            headers={"X-Paystack-Signature": paystack_signature(body)},
        )

        assert response.status_code == 400
        assert response.get_json()["error"]["code"] == "BAD_REQUEST"

    def test_transactions_are_admin_only(self, client, customer):
        assert client.get("/api/paystack/transactions", headers=user_headers(customer)).status_code == 403

    def test_refund_validates_body(self, client, admin_user):
        response = client.post("/api/paystack/refund", json={"amount": 0}, headers=user_headers(admin_user))

        assert response.status_code == 400
        assert set(response.get_json()["error"]["details"]["field_errors"]) == {"transaction", "amount"}


class TestInspirations:
    def test_admin_builds_inspiration_and_guest_adds_it(self, client, admin_user, guest_headers, costume):
        created = client.post("/api/inspirations", json={"name": "Zombie Walker"}, headers=user_headers(admin_user))
        inspiration_id = created.get_json()["data"]["id"]
        client.post(f"/api/inspirations/{inspiration_id}/products", json={"product_id": costume.id},
                    headers=user_headers(admin_user))

        listing = client.get("/api/inspirations").get_json()["data"]
        assert listing["count"] == 1
        assert "products" not in listing["inspirations"][0]

        response = client.post(f"/api/inspirations/{inspiration_id}/add-to-cart", headers=guest_headers)
        body = response.get_json()

        assert body["message"] == "Added 1 items to cart"
        assert body["data"]["cart"]["session_id"] == SESSION_ID

    def test_unknown_inspiration(self, client):
        response = client.get("/api/inspirations/00000000-0000-0000-0000-000000000000/products")

        assert response.status_code == 404


class TestUser:
    def test_profile_requires_identity(self, client):
        response = client.get("/api/user/profile")

        assert response.status_code == 401
        assert response.get_json()["error"]["code"] == "UNAUTHORIZED"

    def test_save_address_then_read_profile(self, client, customer, sample_address_data):
        saved = client.put("/api/user/address", json=sample_address_data, headers=user_headers(customer))

        assert saved.status_code == 200
        assert saved.get_json()["message"] == "Address saved successfully"

        profile = client.get("/api/user/profile", headers=user_headers(customer)).get_json()["data"]
        assert profile["city"] == "Mockingbird Heights"
        assert profile["zip_code"] == "90210-1313"
        assert profile["country"] == "US"
        assert profile["has_address"] is True

    @pytest.mark.parametrize("zip_code", ["9021", "90210-12", "ABCDE", "902101313"])
    def test_invalid_zip_is_rejected(self, client, customer, sample_address_data, zip_code):
        sample_address_data["zip_code"] = zip_code

        response = client.put("/api/user/address", json=sample_address_data, headers=user_headers(customer))
        field_errors = response.get_json()["error"]["details"]["field_errors"]

        assert response.status_code == 400
        assert field_errors == {"zip_code": ["Valid ZIP code is required"]}

    def test_short_street_and_city_are_rejected(self, client, customer, sample_address_data):
        sample_address_data.update(address="Rd", city="X")

        response = client.put("/api/user/address", json=sample_address_data, headers=user_headers(customer))

        assert response.status_code == 400
        assert set(response.get_json()["error"]["details"]["field_errors"]) == {"address", "city"}

    def test_unknown_user_is_404(self, client, sample_address_data):
        headers = {"X-User-Id": "00000000-0000-0000-0000-000000000000"}

        assert client.put("/api/user/address", json=sample_address_data, headers=headers).status_code == 404
