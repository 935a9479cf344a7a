"""
HTTP-level tests: owner API, public menu and order submission.
"""

from decimal import Decimal
from io import BytesIO

from PIL import Image


async def setup_menu(client, headers, products=(("Margherita", 800), ("Capricciosa", 1200)), tables=4):
    """Create a category, products and tables; return (product ids, tables)."""
    response = await client.post("/api/categories", json={"name": "Pizza"}, headers=headers)
    assert response.status_code == 201
    category_id = response.json()["id"]

    ids = []
    for name, price in products:
        response = await client.post(
            "/api/products",
            json={"name": name, "price": price, "category_id": category_id},
            headers=headers,
        )
        assert response.status_code == 201, response.text
        ids.append(response.json()["id"])

    response = await client.post("/api/tables/generate", json={"count": tables}, headers=headers)
    assert response.status_code == 201, response.text
    return ids, response.json()["tables"]


async def place(client, token, items):
    return await client.post(f"/api/menu/{token}/orders", json={"items": items})


# =============================================================================
# AUTH
# =============================================================================

async def test_owner_routes_need_authentication(client):
    for path in ["/api/orders", "/api/products", "/api/tables", "/api/profile"]:
        response = await client.get(path)
        assert response.status_code == 401
        assert response.json()["code"] == "not_authenticated"


async def test_sign_in_sets_a_session_cookie(client, sign_up_owner):
    await sign_up_owner()

    response = await client.post(
        "/api/auth/sign-in", json={"email": "owner@pizza.bar", "password": "s3cret-pass"}
    )
    assert response.status_code == 200
    assert "access_token" in client.cookies

    response = await client.get("/api/me")
    assert response.status_code == 200
    assert response.json()["profile"]["restaurant_name"] == "Pizza Bar"

    await client.post("/api/auth/sign-out")
    assert (await client.get("/api/me")).status_code == 401


async def test_duplicate_sign_up_is_a_conflict(client, sign_up_owner):
    await sign_up_owner()

    response = await client.post("/api/auth/sign-up", json={
        "email": "owner@pizza.bar",
        "password": "another-pass",
        "restaurant_name": "Pizza Bar",
    })

    assert response.status_code == 409


async def test_invalid_body_is_a_validation_error(client):
    response = await client.post("/api/auth/sign-up", json={"email": "not-an-email", "password": "x"})

    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"


# =============================================================================
# PUBLIC MENU & ORDERS
# =============================================================================

async def test_customer_order_reaches_the_owner(client, sign_up_owner):
    headers = await sign_up_owner()
    (margherita, capricciosa), tables = await setup_menu(client, headers)
    table = tables[3]

    menu = (await client.get(f"/api/menu/{table['qr_token']}")).json()
    assert menu["table_number"] == 4
    assert menu["profile"]["restaurant_name"] == "Pizza Bar"
    assert [p["name"] for p in menu["sections"][0]["products"]] == ["Margherita", "Capricciosa"]

    response = await place(client, table["qr_token"], [
        {"product_id": margherita, "quantity": 2},
        {"product_id": capricciosa, "quantity": 1},
    ])
    assert response.status_code == 201, response.text
    created = response.json()
    assert created["table_number"] == 4
    assert Decimal(str(created["total"])) == Decimal("2800")
    assert created["status"] == "pending"

    orders = (await client.get("/api/orders", headers=headers)).json()["orders"]
    assert len(orders) == 1
    assert orders[0]["id"] == created["order_id"]
    assert [(i["product_name"], i["quantity"]) for i in orders[0]["items"]] == [
        ("Margherita", 2),
        ("Capricciosa", 1),
    ]


async def test_unknown_menu_token(client):
    response = await client.get("/api/menu/not-a-real-token")

    assert response.status_code == 404
    assert response.json()["code"] == "menu_not_found"

    response = await place(client, "not-a-real-token", [{"product_id": "x", "quantity": 1}])
    assert response.status_code == 404


async def test_empty_cart_is_rejected(client, sign_up_owner):
    headers = await sign_up_owner()
    _, tables = await setup_menu(client, headers, tables=1)

    response = await place(client, tables[0]["qr_token"], [])

    assert response.status_code == 422
    assert (await client.get("/api/orders", headers=headers)).json()["total"] == 0


async def test_client_cannot_choose_prices(client, sign_up_owner):
    headers = await sign_up_owner()
    (margherita, _), tables = await setup_menu(client, headers, tables=1)

    response = await client.post(f"/api/menu/{tables[0]['qr_token']}/orders", json={
        "items": [{"product_id": margherita, "quantity": 1, "unit_price": 1}],
    })

    assert response.status_code == 201
    assert Decimal(str(response.json()["total"])) == Decimal("800")


async def test_owners_only_see_their_own_orders(client, sign_up_owner):
    first = await sign_up_owner()
    second = await sign_up_owner(email="owner@cafe.rs", restaurant_name="Cafe")
    (first_product, _), first_tables = await setup_menu(client, first, tables=1)
    (second_product,), second_tables = await setup_menu(client, second, products=(("Espresso", 200),), tables=1)

    first_order = (await place(client, first_tables[0]["qr_token"], [{"product_id": first_product, "quantity": 1}])).json()
    await place(client, second_tables[0]["qr_token"], [{"product_id": second_product, "quantity": 3}])

    orders = (await client.get("/api/orders", headers=first)).json()["orders"]
    assert [o["id"] for o in orders] == [first_order["order_id"]]

    response = await client.get(f"/api/orders/{first_order['order_id']}", headers=second)
    assert response.status_code == 404
    response = await client.patch(
        f"/api/orders/{first_order['order_id']}/status", json={"status": "confirmed"}, headers=second
    )
    assert response.status_code == 404


async def test_status_flow_over_http(client, sign_up_owner):
    headers = await sign_up_owner()
    (margherita, _), tables = await setup_menu(client, headers, tables=1)
    order_id = (await place(client, tables[0]["qr_token"], [{"product_id": margherita, "quantity": 1}])).json()["order_id"]

    response = await client.patch(f"/api/orders/{order_id}/status", json={"status": "completed"}, headers=headers)
    assert response.status_code == 409
    assert response.json()["code"] == "invalid_transition"

    for target in ["confirmed", "preparing", "ready", "completed"]:
        response = await client.patch(f"/api/orders/{order_id}/status", json={"status": target}, headers=headers)
        assert response.status_code == 200, response.text
        assert response.json()["status"] == target
    assert response.json()["next_statuses"] == []

    response = await client.patch(f"/api/orders/{order_id}/status", json={"status": "cancelled"}, headers=headers)
    assert response.status_code == 409


async def test_hide_finished_orders(client, sign_up_owner):
    headers = await sign_up_owner()
    (margherita, _), tables = await setup_menu(client, headers, tables=1)
    token = tables[0]["qr_token"]
    cancelled = (await place(client, token, [{"product_id": margherita, "quantity": 1}])).json()["order_id"]
    open_order = (await place(client, token, [{"product_id": margherita, "quantity": 2}])).json()["order_id"]
    await client.patch(f"/api/orders/{cancelled}/status", json={"status": "cancelled"}, headers=headers)

    everything = (await client.get("/api/orders", headers=headers)).json()
    unfinished = (await client.get("/api/orders?hide_finished=true", headers=headers)).json()

    assert everything["total"] == 2
    assert [o["id"] for o in unfinished["orders"]] == [open_order]


# =============================================================================
# PREMIUM GATING
# =============================================================================

async def test_analytics_require_premium(client, sign_up_owner):
    basic = await sign_up_owner()
    premium = await sign_up_owner(email="owner@cafe.rs", restaurant_name="Cafe", plan="premium")

    response = await client.get("/api/dashboard/analytics", headers=basic)
    assert response.status_code == 403
    assert response.json()["code"] == "plan_required"

    (espresso,), tables = await setup_menu(client, premium, products=(("Espresso", 200),), tables=1)
    await place(client, tables[0]["qr_token"], [{"product_id": espresso, "quantity": 5}])

    response = await client.get("/api/dashboard/analytics", headers=premium)
    assert response.status_code == 200
    stats = response.json()
    assert Decimal(str(stats["today_revenue"])) == Decimal("1000")
    assert stats["today_order_count"] == 1
    assert stats["status_counts"]["pending"] == 1


async def test_menu_theme_requires_premium(client, sign_up_owner):
    basic = await sign_up_owner()
    premium = await sign_up_owner(email="owner@cafe.rs", restaurant_name="Cafe", plan="premium")

    response = await client.put("/api/profile/theme", json={"menu_theme": "dark"}, headers=basic)
    assert response.status_code == 403

    response = await client.put("/api/profile/theme", json={"menu_theme": "dark"}, headers=premium)
    assert response.status_code == 200
    assert response.json()["menu_theme"] == "dark"


# =============================================================================
# TABLES & UPLOADS
# =============================================================================

async def test_tables_and_qr_codes(client, sign_up_owner):
    headers = await sign_up_owner()
    _, tables = await setup_menu(client, headers, tables=3)
    assert [t["number"] for t in tables] == [1, 2, 3]
    assert tables[0]["menu_url"].endswith(f"/menu/{tables[0]['qr_token']}")

    response = await client.get(f"/api/tables/{tables[0]['id']}/qr.png", headers=headers)
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert response.content.startswith(b"\x89PNG")

    response = await client.delete(f"/api/tables/{tables[0]['id']}", headers=headers)
    assert response.status_code == 204
    assert (await client.get(f"/api/menu/{tables[0]['qr_token']}")).status_code == 404

    response = await client.post("/api/tables/generate", json={"count": 1}, headers=headers)
    assert response.json()["tables"][0]["number"] == 4


async def test_product_image_upload(client, sign_up_owner):
    headers = await sign_up_owner()
    (margherita, _), _ = await setup_menu(client, headers, tables=1)
    buffer = BytesIO()
    Image.new("RGB", (64, 48), "red").save(buffer, format="PNG")

    response = await client.post(
        f"/api/products/{margherita}/image",
        files={"file": ("pizza.png", buffer.getvalue(), "image/png")},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    image_url = response.json()["image_url"]
    assert image_url.startswith("/uploads/") and image_url.endswith(".png")

    served = await client.get(image_url)
    assert served.status_code == 200
    assert Image.open(BytesIO(served.content)).size == (64, 48)


async def test_upload_rejects_non_images(client, sign_up_owner):
    headers = await sign_up_owner()
    (margherita, _), _ = await setup_menu(client, headers, tables=1)

    response = await client.post(
        f"/api/products/{margherita}/image",
        files={"file": ("pizza.png", b"definitely not a png", "image/png")},
        headers=headers,
    )

    assert response.status_code == 422


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "operational"
    assert data["realtime"].endswith("(memory)")
