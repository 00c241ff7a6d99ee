import asyncio
import dataclasses
import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from storefront.application.services.catalog_service import MAX_PHOTO_BYTES
from storefront.core.dependencies import (
    get_auth_service,
    get_catalog_service,
    get_order_service,
    get_settings,
)
from storefront.presentation.api.routers.products import _read_photo

ADMIN_EMAIL = "admin@shop.test"

ANN = {
    "name": "Ann",
    "email": "a@x.com",
    "password": "secret1",
    "phone": "555",
    "address": "1 St",
    "answer": "blue",
}


@pytest.fixture
def category(client, admin_headers):
    response = client.post(
        "/api/v1/category/create-category", json={"name": "Phones"}, headers=admin_headers
    )
    assert response.status_code == 201, response.text
    return response.json()["category"]


def _create_product(client, headers, category_id, name="Phone X", price="99.5", quantity="4", photo=None):
    files = {"photo": photo} if photo else None
    return client.post(
        "/api/v1/product/create-product",
        data={
            "name": name,
            "description": "A very good phone",
            "price": price,
            "category": category_id,
            "quantity": quantity,
            "shipping": "true",
        },
        files=files,
        headers=headers,
    )


@pytest.fixture
def product(client, admin_headers, category):
    response = _create_product(client, admin_headers, category["id"])
    assert response.status_code == 201, response.text
    return response.json()["product"]


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_register_then_login_never_exposes_secrets(client):
    registered = client.post("/api/v1/auth/register", json=ANN)
    logged_in = client.post("/api/v1/auth/login", json={"email": "a@x.com", "password": "secret1"})

    assert registered.status_code == 201
    assert registered.json()["success"] is True
    assert logged_in.status_code == 200
    body = logged_in.json()
    assert body["user"]["name"] == "Ann"
    assert body["user"]["role"] == "customer"
    assert body["token"]
    for payload in (registered.text, logged_in.text):
        assert "secret1" not in payload
        assert "blue" not in payload
        assert "password" not in payload


def test_duplicate_registration_is_a_logical_failure(client):
    client.post("/api/v1/auth/register", json=ANN)

    response = client.post("/api/v1/auth/register", json=dict(ANN, name="Other"))

    assert response.status_code == 200
    assert response.json() == {"success": False, "message": "Already Register please login"}


def test_registration_names_missing_field(client):
    response = client.post("/api/v1/auth/register", json=dict(ANN, phone=""))

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Phone no is Required"}


def test_login_failures_share_one_response(client):
    client.post("/api/v1/auth/register", json=ANN)

    wrong = client.post("/api/v1/auth/login", json={"email": "a@x.com", "password": "nope"})
    unknown = client.post("/api/v1/auth/login", json={"email": "z@x.com", "password": "secret1"})

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json()


def test_forgot_password_then_login(client, login):
    client.post("/api/v1/auth/register", json=ANN)

    bad = client.post(
        "/api/v1/auth/forgot-password",
        json={"email": "a@x.com", "answer": "red", "new_password": "newpass1"},
    )
    good = client.post(
        "/api/v1/auth/forgot-password",
        json={"email": "a@x.com", "answer": "blue", "new_password": "newpass1"},
    )

    assert bad.status_code == 404
    assert good.status_code == 200
    assert login(client, "a@x.com", "newpass1")


def test_profile_update(client, customer_headers):
    response = client.put("/api/v1/auth/profile", json={"address": "2 St"}, headers=customer_headers)

    assert response.status_code == 200
    assert response.json()["updatedUser"]["address"] == "2 St"
    assert response.json()["updatedUser"]["phone"] == "555"


def test_auth_check_endpoints(client, customer_headers, admin_headers):
    assert client.get("/api/v1/auth/user-auth", headers=customer_headers).json() == {"ok": True}
    assert client.get("/api/v1/auth/admin-auth", headers=admin_headers).json() == {"ok": True}
    assert client.get("/api/v1/auth/admin-auth", headers=customer_headers).status_code == 403


def test_admin_routes_reject_anonymous_and_customers(client, customer_headers):
    anonymous = client.post("/api/v1/category/create-category", json={"name": "Phones"})
    garbage = client.post(
        "/api/v1/category/create-category",
        json={"name": "Phones"},
        headers={"Authorization": "Bearer not-a-token"},
    )
    customer = client.post(
        "/api/v1/category/create-category", json={"name": "Phones"}, headers=customer_headers
    )

    assert anonymous.status_code == 401
    assert garbage.status_code == 401
    assert customer.status_code == 403
    assert customer.json()["success"] is False


def test_admin_lists_users(client, admin_headers, customer_headers):
    response = client.get("/api/v1/auth/users", headers=admin_headers)

    assert response.status_code == 200
    assert {user["email"] for user in response.json()} == {ADMIN_EMAIL, "a@x.com"}


def test_categories_are_listed_and_fetched_by_slug(client, category):
    listed = client.get("/api/v1/category/get-category").json()["category"]
    single = client.get("/api/v1/category/single-category/phones")

    assert [item["slug"] for item in listed] == ["phones"]
    assert single.json()["category"]["id"] == category["id"]
    assert client.get("/api/v1/category/single-category/garden").status_code == 404


def test_photo_size_limit_over_multipart(client, admin_headers, category):
    exact = _create_product(
        client, admin_headers, category["id"], photo=("p.png", b"x" * 1_000_000, "image/png")
    )
    over = _create_product(
        client,
        admin_headers,
        category["id"],
        name="Too big",
        photo=("big.png", b"x" * 1_000_001, "image/png"),
    )

    assert exact.status_code == 201
    assert exact.json()["product"]["has_photo"] is True
    assert over.status_code == 413
    assert over.json() == {"success": False, "message": "Photo should be less than 1mb"}


def test_photo_is_served_with_its_content_type(client, admin_headers, category):
    created = _create_product(
        client, admin_headers, category["id"], photo=("p.jpg", b"\xff\xd8jpeg", "image/jpeg")
    ).json()["product"]

    response = client.get(f"/api/v1/product/product-photo/{created['id']}")

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/jpeg"
    assert response.content == b"\xff\xd8jpeg"


def test_malformed_form_value_is_a_bad_request(client, admin_headers, category):
    response = _create_product(client, admin_headers, category["id"], price="cheap")

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_update_and_delete_product(client, admin_headers, category, product):
    updated = client.put(
        f"/api/v1/product/update-product/{product['id']}",
        data={
            "name": "Phone Y",
            "description": "Even better",
            "price": "120",
            "category": category["id"],
            "quantity": "2",
            "shipping": "false",
        },
        headers=admin_headers,
    )

    assert updated.status_code == 201
    assert updated.json()["product"]["slug"] == "phone-y"

    deleted = client.delete(f"/api/v1/product/delete-product/{product['id']}", headers=admin_headers)
    again = client.delete(f"/api/v1/product/delete-product/{product['id']}", headers=admin_headers)

    assert deleted.status_code == again.status_code == 200
    assert client.get("/api/v1/product/get-product/phone-y").status_code == 404


def test_catalog_queries(client, admin_headers, category, product):
    other = _create_product(client, admin_headers, category["id"], name="Tablet", price="300").json()

    listing = client.get("/api/v1/product/get-product").json()
    count = client.get("/api/v1/product/product-count").json()
    page = client.get("/api/v1/product/product-list/1").json()
    single = client.get("/api/v1/product/get-product/phone-x").json()
    related = client.get(f"/api/v1/product/related-product/{product['id']}/{category['id']}").json()
    by_category = client.get("/api/v1/product/product-category/phones").json()

    assert listing["count"] == 2
    assert [item["name"] for item in listing["products"]] == ["Tablet", "Phone X"]
    assert count == {"success": True, "total": 2}
    assert len(page["products"]) == 2
    assert single["product"]["category"]["name"] == "Phones"
    assert [item["id"] for item in related["products"]] == [other["product"]["id"]]
    assert by_category["category"]["slug"] == "phones"
    assert len(by_category["products"]) == 2


def test_filters_take_a_json_body(client, admin_headers, category, product):
    _create_product(client, admin_headers, category["id"], name="Tablet", price="300")

    in_range = client.post(
        "/api/v1/product/product-filters",
        json={"categories": [category["id"]], "price_range": [0, 100]},
    )
    everything = client.post("/api/v1/product/product-filters", json={"categories": []})

    assert [item["name"] for item in in_range.json()["products"]] == ["Phone X"]
    assert len(everything.json()["products"]) == 2


def test_search_returns_a_bare_list(client, product):
    response = client.get("/api/v1/product/search/PHONE")

    assert response.status_code == 200
    assert [item["id"] for item in response.json()] == [product["id"]]


def test_payment_token_requires_sign_in(client, customer_headers):
    assert client.get("/api/v1/orders/payment-token").status_code == 401

    response = client.get("/api/v1/orders/payment-token", headers=customer_headers)

    assert response.status_code == 200
    assert response.json()["clientToken"] == "client-token-123"


def test_checkout_and_order_lifecycle(client, gateway, admin_headers, customer_headers, product):
    placed = client.post(
        "/api/v1/orders/checkout",
        json={"cart": [{"_id": product["id"]}, {"_id": product["id"]}], "nonce": "tok_visa"},
        headers=customer_headers,
    )

    assert placed.status_code == 201, placed.text
    order = placed.json()["order"]
    assert order["status"] == "Not Processed"
    assert order["buyer"] == {"name": "Ann"}
    assert len(order["products"]) == 2
    assert str(gateway.sales[0][0]) == "199.0"

    own = client.get("/api/v1/orders", headers=customer_headers).json()
    everything = client.get("/api/v1/orders/all", headers=admin_headers).json()
    assert [item["id"] for item in own] == [order["id"]]
    assert [item["id"] for item in everything] == [order["id"]]
    assert client.get("/api/v1/orders/all", headers=customer_headers).status_code == 403

    shipped = client.put(
        f"/api/v1/orders/{order['id']}/status", json={"status": "Shipped"}, headers=admin_headers
    )
    backwards = client.put(
        f"/api/v1/orders/{order['id']}/status", json={"status": "Processing"}, headers=admin_headers
    )
    unknown = client.put(
        f"/api/v1/orders/{order['id']}/status", json={"status": "Lost"}, headers=admin_headers
    )

    assert shipped.json()["order"]["status"] == "Shipped"
    assert backwards.status_code == 409
    assert unknown.status_code == 400


def test_declined_checkout_creates_no_order(client, gateway, customer_headers, product):
    gateway.decline_message = "Your card was declined."

    response = client.post(
        "/api/v1/orders/checkout",
        json={"cart": [{"_id": product["id"]}], "nonce": "tok_chargeDeclined"},
        headers=customer_headers,
    )

    assert response.status_code == 402
    assert response.json() == {"success": False, "message": "Your card was declined."}
    assert client.get("/api/v1/orders", headers=customer_headers).json() == []
    stock = client.get("/api/v1/product/get-product/phone-x").json()["product"]["quantity"]
    assert stock == 4


def test_checkout_over_stock_is_a_conflict(client, customer_headers, product):
    response = client.post(
        "/api/v1/orders/checkout",
        json={"cart": [{"_id": product["id"]}] * 5, "nonce": "tok_visa"},
        headers=customer_headers,
    )

    assert response.status_code == 409


def test_photo_upload_is_read_only_up_to_the_limit():
    upload = UploadFile(
        file=io.BytesIO(b"x" * (3 * MAX_PHOTO_BYTES)),
        filename="huge.png",
        headers=Headers({"content-type": "image/png"}),
    )

    photo = asyncio.run(_read_photo(upload))

    assert photo.size == MAX_PHOTO_BYTES + 1
    assert photo.content_type == "image/png"


def test_oversized_photo_upload_is_rejected(client, admin_headers, category):
    response = _create_product(
        client, admin_headers, category["id"], photo=("huge.png", b"x" * 3_000_000, "image/png")
    )

    assert response.status_code == 413


def test_register_login_and_profile_share_one_user_shape(client):
    registered = client.post("/api/v1/auth/register", json=ANN).json()["user"]
    logged_in = client.post("/api/v1/auth/login", json={"email": "a@x.com", "password": "secret1"}).json()
    headers = {"Authorization": f"Bearer {logged_in['token']}"}
    updated = client.put("/api/v1/auth/profile", json={"name": "Annie"}, headers=headers).json()["updatedUser"]

    expected_keys = {"id", "name", "email", "phone", "address", "role"}
    assert set(registered) == set(logged_in["user"]) == set(updated) == expected_keys
    assert registered == logged_in["user"]
    assert updated == dict(registered, name="Annie")


def test_container_holds_only_what_the_routes_resolve(client):
    container = client.app.state.container

    assert {field.name for field in dataclasses.fields(container)} == {
        "settings",
        "auth_service",
        "catalog_service",
        "order_service",
    }
    assert get_auth_service(container) is container.auth_service
    assert get_catalog_service(container) is container.catalog_service
    assert get_order_service(container) is container.order_service
    assert get_settings(container) is container.settings
