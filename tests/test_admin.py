# tests/test_admin.py
import base64
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt
from sqlmodel import select

from app.core.config import get_settings
from app.models.order import OrderItem
from app.models.product import CategorySlug, Product, ProductFlavor, ProductImage

ADMIN_PASSWORD = "s3cret-pass"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
PNG_DATA_URI = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()


# -------- Auth --------


def test_admin_routes_require_token(client):
    resp = client.get("/api/admin/orders")

    assert resp.status_code == 401
    assert resp.json()["error"]


def test_garbage_token_is_rejected(client):
    resp = client.get("/api/admin/orders", headers={"Authorization": "Bearer not-a-jwt"})

    assert resp.status_code == 401


def test_expired_token_is_rejected(client, admin):
    settings = get_settings()
    token = jwt.encode(
        {
            "sub": str(admin.id),
            "role": "admin",
            "exp": datetime.now(timezone.utc) - timedelta(minutes=1),
        },
        settings.ADMIN_JWT_SECRET,
        algorithm=settings.ADMIN_JWT_ALG,
    )

    resp = client.get("/api/admin/users", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 401


def test_token_for_deleted_admin_is_rejected(client, session, admin, admin_headers):
    session.delete(admin)
    session.commit()

    assert client.get("/api/admin/users", headers=admin_headers).status_code == 401


def test_login_issues_working_token(client, admin):
    resp = client.post(
        "/api/admin/login",
        json={"username": "owner", "password": ADMIN_PASSWORD},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["expires_in"] > 0

    headers = {"Authorization": f"Bearer {body['access_token']}"}
    assert client.get("/api/admin/users", headers=headers).status_code == 200


@pytest.mark.parametrize(
    "credentials",
    [
        {"username": "owner", "password": "wrong"},
        {"username": "nobody", "password": ADMIN_PASSWORD},
    ],
)
def test_login_with_bad_credentials(client, admin, credentials):
    resp = client.post("/api/admin/login", json=credentials)

    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid credentials"}


# -------- Products --------


def test_create_liquid_with_flavors(client, category_id, admin_headers):
    resp = client.post(
        "/api/admin/products",
        headers=admin_headers,
        json={
            "name": "Strawberry Ice",
            "price": 15,
            "category_id": category_id(CategorySlug.LIQUIDS),
            "stock": 999,
            "flavors": [
                {"flavor_name": "Strawberry", "stock": 4},
                {"flavor_name": "Watermelon", "stock": 6},
            ],
        },
    )

    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["stock"] == 10
    assert body["is_active"] is True
    assert body["category_slug"] == "liquids"
    assert [f["flavor_name"] for f in body["flavors"]] == ["Strawberry", "Watermelon"]


def test_flavors_rejected_outside_liquids(client, category_id, admin_headers):
    resp = client.post(
        "/api/admin/products",
        headers=admin_headers,
        json={
            "name": "Coil",
            "price": 5,
            "category_id": category_id(CategorySlug.CONSUMABLES),
            "flavors": [{"flavor_name": "Mango", "stock": 1}],
        },
    )

    assert resp.status_code == 400
    assert resp.json()["details"] == {"field": "flavors"}


def test_duplicate_flavors_rejected(client, category_id, admin_headers):
    resp = client.post(
        "/api/admin/products",
        headers=admin_headers,
        json={
            "name": "Dup",
            "price": 5,
            "category_id": category_id(CategorySlug.LIQUIDS),
            "flavors": [{"flavor_name": "Mango", "stock": 1}, {"flavor_name": "mango", "stock": 2}],
        },
    )

    assert resp.status_code == 400


def test_unknown_category_rejected(client, admin_headers):
    resp = client.post(
        "/api/admin/products",
        headers=admin_headers,
        json={"name": "X", "price": 5, "category_id": 999},
    )

    assert resp.status_code == 400
    assert resp.json()["details"] == {"field": "category_id"}


def test_update_replaces_flavors_and_resyncs_stock(client, session, make_product, admin_headers):
    product_id = make_product(flavors={"Mango": 5, "Mint": 4})

    resp = client.put(
        f"/api/admin/products/{product_id}",
        headers=admin_headers,
        json={"flavors": [{"flavor_name": "Cherry", "stock": 2}], "price": 17.5},
    )

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["stock"] == 2
    assert body["price"] == pytest.approx(17.5)
    assert body["flavors"] == [{"flavor_name": "Cherry", "stock": 2}]

    names = session.exec(
        select(ProductFlavor.flavor_name).where(ProductFlavor.product_id == product_id)
    ).all()
    assert names == ["Cherry"]


def test_empty_flavor_list_deactivates_liquid(client, make_product, admin_headers):
    product_id = make_product(flavors={"Mango": 5})

    resp = client.put(
        f"/api/admin/products/{product_id}",
        headers=admin_headers,
        json={"flavors": [], "is_active": True},
    )

    body = resp.json()
    assert body["stock"] == 0
    assert body["is_active"] is False


def test_restock_and_reactivate_plain_product(client, make_product, admin_headers):
    product_id = make_product(stock=0, is_active=False)

    resp = client.put(
        f"/api/admin/products/{product_id}",
        headers=admin_headers,
        json={"stock": 5, "is_active": True},
    )

    body = resp.json()
    assert body["stock"] == 5
    assert body["is_active"] is True


def test_zero_stock_forces_inactive(client, make_product, admin_headers):
    product_id = make_product(stock=5)

    resp = client.put(
        f"/api/admin/products/{product_id}",
        headers=admin_headers,
        json={"stock": 0, "is_active": True},
    )

    assert resp.json()["is_active"] is False


def test_update_unknown_product_is_404(client, admin_headers):
    resp = client.put("/api/admin/products/missing", headers=admin_headers, json={"name": "x"})

    assert resp.status_code == 404


def test_data_uri_image_is_stored_and_served(client, session, make_product, admin_headers):
    product_id = make_product()

    resp = client.put(
        f"/api/admin/products/{product_id}",
        headers=admin_headers,
        json={"image_url": PNG_DATA_URI},
    )

    assert resp.status_code == 200, resp.text
    assert resp.json()["image_url"] == PNG_DATA_URI

    product = session.get(Product, product_id)
    assert product.image_url == f"/api/products/{product_id}/image"

    image = client.get(f"/api/products/{product_id}/image")
    assert image.status_code == 200
    assert image.headers["content-type"] == "image/png"
    assert image.content == PNG_BYTES


def test_external_image_url_replaces_stored_image(client, session, make_product, admin_headers):
    product_id = make_product()
    client.put(f"/api/admin/products/{product_id}", headers=admin_headers, json={"image_url": PNG_DATA_URI})

    resp = client.put(
        f"/api/admin/products/{product_id}",
        headers=admin_headers,
        json={"image_url": "https://cdn.example.com/pod.png"},
    )

    assert resp.json()["image_url"] == "https://cdn.example.com/pod.png"
    assert session.get(ProductImage, product_id) is None
    assert client.get(f"/api/products/{product_id}/image").status_code == 404


@pytest.mark.parametrize(
    "image_url",
    [
        "data:image/svg+xml;base64," + base64.b64encode(b"<svg/>").decode(),
        "data:image/png;base64,@@not-base64@@",
        "data:image/png,rawbytes",
    ],
)
def test_bad_images_are_rejected(client, make_product, admin_headers, image_url):
    product_id = make_product()

    resp = client.put(
        f"/api/admin/products/{product_id}",
        headers=admin_headers,
        json={"image_url": image_url},
    )

    assert resp.status_code == 400
    assert resp.json()["details"] == {"field": "image_url"}


def test_oversized_image_is_rejected(client, make_product, admin_headers, monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings, "MAX_IMAGE_BYTES", 16)
    product_id = make_product()

    resp = client.put(
        f"/api/admin/products/{product_id}",
        headers=admin_headers,
        json={"image_url": PNG_DATA_URI},
    )

    assert resp.status_code == 400


def test_admin_list_includes_inactive(client, make_product, admin_headers):
    active = make_product(name="A active")
    hidden = make_product(name="B hidden", stock=0, is_active=False)

    public_ids = [p["id"] for p in client.get("/api/products").json()]
    admin_ids = [p["id"] for p in client.get("/api/admin/products", headers=admin_headers).json()]

    assert public_ids == [active]
    assert admin_ids == [active, hidden]


def test_delete_product_keeps_order_history(client, session, make_product, admin_headers, telegram_user):
    product_id = make_product(flavors={"Mango": 5})
    client.put(f"/api/admin/products/{product_id}", headers=admin_headers, json={"image_url": PNG_DATA_URI})
    order = client.post(
        "/api/orders",
        json={
            "items": [{"product_id": product_id, "flavor_name": "Mango", "quantity": 1, "price": 10}],
            "telegram_user": telegram_user,
        },
    ).json()

    resp = client.delete(f"/api/admin/products/{product_id}", headers=admin_headers)

    assert resp.status_code == 204
    session.expire_all()
    assert session.get(Product, product_id) is None
    assert session.get(ProductImage, product_id) is None
    assert session.exec(select(ProductFlavor).where(ProductFlavor.product_id == product_id)).all() == []

    item = session.exec(select(OrderItem).where(OrderItem.order_id == order["id"])).one()
    assert item.product_id is None
    assert item.flavor_name == "Mango"


# -------- Orders --------


def test_admin_order_listing_and_status(client, make_product, admin_headers, telegram_user):
    product_id = make_product(name="Coil", stock=10)
    order = client.post(
        "/api/orders",
        json={"items": [{"product_id": product_id, "quantity": 2, "price": 4}], "telegram_user": telegram_user},
    ).json()

    listed = client.get("/api/admin/orders", headers=admin_headers).json()
    assert len(listed) == 1
    assert listed[0]["customer_name"] == "@vaper"
    assert listed[0]["items"][0]["product_name"] == "Coil"

    detail = client.get(f"/api/admin/orders/{order['id']}", headers=admin_headers)
    assert detail.status_code == 200
    assert detail.json()["total_amount"] == pytest.approx(8.0)

    updated = client.put(
        f"/api/admin/orders/{order['id']}/status",
        headers=admin_headers,
        json={"status": "  completed "},
    )
    assert updated.status_code == 200
    assert updated.json()["status"] == "completed"


def test_order_status_validation(client, admin_headers):
    assert client.put("/api/admin/orders/1/status", headers=admin_headers, json={"status": ""}).status_code == 400
    assert client.put("/api/admin/orders/1/status", headers=admin_headers, json={"status": "x" * 51}).status_code == 400
    assert client.put("/api/admin/orders/999/status", headers=admin_headers, json={"status": "done"}).status_code == 404
    assert client.get("/api/admin/orders/999", headers=admin_headers).status_code == 404


# -------- Users & stats --------


def test_admin_lists_users(client, admin_headers, telegram_user):
    client.post("/api/users/telegram", json={**telegram_user, "phone": "+375290000000"})

    users = client.get("/api/admin/users", headers=admin_headers).json()

    assert len(users) == 1
    assert users[0]["telegram_id"] == "123456789"
    assert users[0]["phone"] == "+375290000000"


def test_dashboard_stats(client, make_product, admin_headers, telegram_user):
    coil = make_product(name="Coil", price="5.00", stock=8)
    liquid = make_product(name="Mango", price="15.00", flavors={"Mango": 3, "Mint": 20})

    client.post(
        "/api/orders",
        json={
            "items": [
                {"product_id": coil, "quantity": 2, "price": 5},
                {"product_id": liquid, "flavor_name": "Mango", "quantity": 1, "price": 15},
            ],
            "telegram_user": telegram_user,
        },
    )
    client.post(
        "/api/orders",
        json={
            "items": [{"product_id": coil, "quantity": 1, "price": 5}],
            "telegram_user": {"telegram_id": "777"},
        },
    )

    resp = client.get("/api/admin/stats", headers=admin_headers)

    assert resp.status_code == 200, resp.text
    stats = resp.json()
    assert stats["period_days"] == 30
    assert stats["totals"] == {
        "total_orders": 2,
        "total_customers": 2,
        "total_revenue": pytest.approx(30.0),
        "avg_order_value": pytest.approx(15.0),
    }
    assert {c["category_name"]: c["revenue"] for c in stats["by_category"]} == {
        "Consumables": pytest.approx(15.0),
        "Liquids": pytest.approx(15.0),
    }
    top = {p["name"]: p for p in stats["top_products"]}
    assert top["Coil"]["total_quantity"] == 3
    assert top["Coil"]["times_sold"] == 2
    assert [p["name"] for p in stats["low_stock"]] == ["Coil"]
    assert stats["low_stock"][0]["stock"] == 5
    assert stats["low_stock_flavors"] == [
        {"product_id": liquid, "product_name": "Mango", "flavor_name": "Mango", "stock": 2}
    ]


def test_sold_out_items_stay_on_low_stock_lists(client, make_product, admin_headers, telegram_user):
    coil = make_product(name="Coil", price="5.00", stock=2)
    liquid = make_product(name="Mango", price="15.00", flavors={"Mango": 1, "Mint": 20})

    resp = client.post(
        "/api/orders",
        json={
            "items": [
                {"product_id": coil, "quantity": 2, "price": 5},
                {"product_id": liquid, "flavor_name": "Mango", "quantity": 1, "price": 15},
            ],
            "telegram_user": telegram_user,
        },
    )
    assert resp.status_code == 201

    stats = client.get("/api/admin/stats", headers=admin_headers).json()

    assert [(p["name"], p["stock"]) for p in stats["low_stock"]] == [("Coil", 0)]
    assert stats["low_stock_flavors"] == [
        {"product_id": liquid, "product_name": "Mango", "flavor_name": "Mango", "stock": 0}
    ]


def test_cancelled_orders_are_not_sales(client, make_product, admin_headers, telegram_user):
    coil = make_product(name="Coil", price="5.00", stock=50)
    kept = client.post(
        "/api/orders",
        json={"items": [{"product_id": coil, "quantity": 2, "price": 5}], "telegram_user": telegram_user},
    ).json()
    dropped = client.post(
        "/api/orders",
        json={
            "items": [{"product_id": coil, "quantity": 4, "price": 5}],
            "telegram_user": {"telegram_id": "777"},
        },
    ).json()

    client.put(f"/api/admin/orders/{kept['id']}/status", headers=admin_headers, json={"status": "completed"})
    client.put(f"/api/admin/orders/{dropped['id']}/status", headers=admin_headers, json={"status": "Cancelled"})

    stats = client.get("/api/admin/stats", headers=admin_headers).json()

    assert stats["totals"] == {
        "total_orders": 1,
        "total_customers": 1,
        "total_revenue": pytest.approx(10.0),
        "avg_order_value": pytest.approx(10.0),
    }
    assert [(c["category_name"], c["revenue"]) for c in stats["by_category"]] == [
        ("Consumables", pytest.approx(10.0))
    ]
    assert stats["top_products"][0]["total_quantity"] == 2
