"""
Tests for API route endpoints.

Tests: health, checkout status codes and envelopes, order reads and
scoping, catalog administration, memory backend wiring.
"""
import pytest

from config import settings
from deps import memory_stores, reset_memory_stores
from tests.helpers import ALICE_ID, auth_headers, make_item


async def _create_product(client, admin_headers, sku="A", price=10.0, stock=5, **extra):
    body = {"sku": sku, "name": f"Item {sku}", "price": price, "stock": stock, **extra}
    resp = await client.post("/products", json=body, headers=admin_headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


class TestHealth:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_health_returns_200(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["storage"] == "sql"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_health_needs_no_token(self, client):
        resp = await client.get("/health", headers={"Authorization": "Bearer junk"})
        assert resp.status_code == 200


class TestCheckout:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_checkout_success_envelope(self, client, admin_headers, alice_headers):
        await _create_product(client, admin_headers, "A", price=10.0, stock=5)

        resp = await client.post(
            "/orders",
            json={"items": [{"sku": "A", "quantity": 2}], "buyerContact": "alice@example.com"},
            headers=alice_headers,
        )

        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["success"] is True
        data = body["data"]
        assert data["status"] == "PAID"
        assert data["total"] == 20.0
        assert data["items"] == [{"sku": "A", "quantity": 2, "price": 10.0}]
        assert isinstance(data["id"], int)
        assert data["processingTimeMs"] >= 0

        product = await client.get("/products/A", headers=alice_headers)
        assert product.json()["data"]["stock"] == 3

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_bulk_quantity_is_accepted(self, client, admin_headers, alice_headers):
        await _create_product(client, admin_headers, "BULK", price=1.0, stock=50_000)

        resp = await client.post(
            "/orders", json={"items": [{"sku": "BULK", "quantity": 20_000}]}, headers=alice_headers
        )

        assert resp.status_code == 200, resp.text
        assert resp.json()["data"]["status"] == "PAID"
        product = await client.get("/products/BULK", headers=alice_headers)
        assert product.json()["data"]["stock"] == 30_000

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_checkout_requires_auth(self, client):
        resp = await client.post("/orders", json={"items": [{"sku": "A", "quantity": 1}]})
        assert resp.status_code == 401
        body = resp.json()
        assert body["success"] is False
        assert body["code"] == "unauthorized"
        assert resp.headers["www-authenticate"] == "Bearer"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_checkout_accepts_bare_token_and_cookie(self, client, admin_headers):
        await _create_product(client, admin_headers, "A", stock=5)
        token = auth_headers("alice", ALICE_ID)["Authorization"].split(" ", 1)[1]

        bare = await client.post(
            "/orders", json={"items": [{"sku": "A", "quantity": 1}]}, headers={"Authorization": token}
        )
        client.cookies.set(settings.auth_cookie_name, token)
        cookie = await client.post("/orders", json={"items": [{"sku": "A", "quantity": 1}]})

        assert bare.status_code == 200
        assert cookie.status_code == 200

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_unknown_sku_is_404(self, client, admin_headers, alice_headers):
        await _create_product(client, admin_headers, "A", stock=5)

        resp = await client.post(
            "/orders",
            json={"items": [{"sku": "A", "quantity": 1}, {"sku": "B", "quantity": 1}]},
            headers=alice_headers,
        )

        assert resp.status_code == 404
        body = resp.json()
        assert body["code"] == "item_not_found"
        assert body["details"] == {"sku": "B"}

        product = await client.get("/products/A", headers=alice_headers)
        assert product.json()["data"]["stock"] == 5

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_insufficient_stock_is_409(self, client, admin_headers, alice_headers):
        await _create_product(client, admin_headers, "A", stock=1)

        resp = await client.post(
            "/orders", json={"items": [{"sku": "A", "quantity": 2}]}, headers=alice_headers
        )

        assert resp.status_code == 409
        body = resp.json()
        assert body["code"] == "insufficient_stock"
        assert body["error"] == "Insufficient stock for A"
        assert body["details"]["sku"] == "A"

        listing = await client.get("/orders", headers=alice_headers)
        assert listing.json()["data"]["total"] == 0

    @pytest.mark.api
    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        {},
        {"items": "A"},
        {"items": [{"sku": "A"}]},
        {"items": [{"sku": "A", "quantity": 0}]},
        {"items": [{"sku": "", "quantity": 1}]},
    ])
    async def test_malformed_body_is_400(self, client, alice_headers, body):
        resp = await client.post("/orders", json=body, headers=alice_headers)
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_request"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_empty_cart_is_400(self, client, alice_headers):
        resp = await client.post("/orders", json={"items": []}, headers=alice_headers)
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_request"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_oversized_cart_is_400(self, client, alice_headers):
        items = [{"sku": f"S{i}", "quantity": 1} for i in range(101)]
        resp = await client.post("/orders", json={"items": items}, headers=alice_headers)
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_request"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_legacy_contact_field_is_accepted(self, client, admin_headers, alice_headers):
        await _create_product(client, admin_headers, "A", stock=5)

        resp = await client.post(
            "/orders",
            json={"items": [{"sku": "A", "quantity": 1}], "userEmail": "old@example.com"},
            headers=alice_headers,
        )
        order_id = resp.json()["data"]["id"]

        order = await client.get(f"/orders/{order_id}", headers=alice_headers)
        assert order.json()["data"]["buyerContact"] == "old@example.com"


class TestOrderReads:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_listing_is_owner_scoped(self, client, admin_headers, alice_headers, bob_headers):
        await _create_product(client, admin_headers, "A", stock=10)
        for headers in (alice_headers, alice_headers, bob_headers):
            resp = await client.post(
                "/orders", json={"items": [{"sku": "A", "quantity": 1}]}, headers=headers
            )
            assert resp.status_code == 200

        alice = (await client.get("/orders", headers=alice_headers)).json()["data"]
        bob = (await client.get("/orders", headers=bob_headers)).json()["data"]
        admin = (await client.get("/orders", headers=admin_headers)).json()["data"]

        assert alice["total"] == 2
        assert bob["total"] == 1
        assert admin["total"] == 3
        assert alice["page"] == 1
        assert alice["pageSize"] == 20
        assert all(o["owner"] == {"kind": "id", "value": ALICE_ID} for o in alice["items"])

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_listing_status_filter_and_paging(self, client, admin_headers, alice_headers):
        await _create_product(client, admin_headers, "A", stock=3)
        for _ in range(3):
            await client.post("/orders", json={"items": [{"sku": "A", "quantity": 1}]}, headers=alice_headers)

        paid = await client.get("/orders?status=paid&page=2&pageSize=2", headers=alice_headers)
        failed = await client.get("/orders?status=FAILED", headers=alice_headers)

        assert paid.status_code == 200
        assert paid.json()["data"]["total"] == 3
        assert len(paid.json()["data"]["items"]) == 1
        assert failed.json()["data"]["total"] == 0

    @pytest.mark.api
    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["status=shipped", "pageSize=101", "page=0", "pageSize=abc"])
    async def test_listing_rejects_bad_query(self, client, alice_headers, query):
        resp = await client.get(f"/orders?{query}", headers=alice_headers)
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_request"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_order_of_another_user_is_404(self, client, admin_headers, alice_headers, bob_headers):
        await _create_product(client, admin_headers, "A", stock=1)
        created = await client.post(
            "/orders", json={"items": [{"sku": "A", "quantity": 1}]}, headers=alice_headers
        )
        order_id = created.json()["data"]["id"]

        as_bob = await client.get(f"/orders/{order_id}", headers=bob_headers)
        as_admin = await client.get(f"/orders/{order_id}", headers=admin_headers)

        assert as_bob.status_code == 404
        assert as_admin.status_code == 200
        assert as_admin.json()["data"]["status"] == "PAID"


class TestProducts:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_non_admin_cannot_create(self, client, alice_headers):
        resp = await client.post(
            "/products", json={"sku": "A", "name": "A", "price": 1, "stock": 1}, headers=alice_headers
        )
        assert resp.status_code == 403
        assert resp.json()["code"] == "permission_denied"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_duplicate_sku_is_409(self, client, admin_headers):
        await _create_product(client, admin_headers, "A")
        resp = await client.post(
            "/products", json={"sku": "A", "name": "Again", "price": 1, "stock": 1}, headers=admin_headers
        )
        assert resp.status_code == 409

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_update_product(self, client, admin_headers):
        await _create_product(client, admin_headers, "A", price=10.0, stock=5)

        resp = await client.patch("/products/A", json={"price": 12.5, "stock": 9}, headers=admin_headers)

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["price"] == 12.5
        assert data["stock"] == 9
        assert data["name"] == "Item A"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_update_with_no_fields_is_400(self, client, admin_headers):
        await _create_product(client, admin_headers, "A")
        resp = await client.patch("/products/A", json={}, headers=admin_headers)
        assert resp.status_code == 400

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_update_unknown_is_404(self, client, admin_headers):
        resp = await client.patch("/products/NOPE", json={"stock": 1}, headers=admin_headers)
        assert resp.status_code == 404

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_get_unknown_is_404(self, client, alice_headers):
        resp = await client.get("/products/NOPE", headers=alice_headers)
        assert resp.status_code == 404
        assert resp.json()["code"] == "not_found"


class TestMemoryBackend:

    @pytest.fixture(autouse=True)
    def memory_backend(self):
        settings.storage_backend = "memory"
        reset_memory_stores()
        yield
        reset_memory_stores()

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_checkout_uses_memory_stores(self, client, alice_headers):
        catalog, ledger = memory_stores()
        await catalog.add_item(make_item("M", price="3.00", stock=2))

        resp = await client.post(
            "/orders", json={"items": [{"sku": "M", "quantity": 2}]}, headers=alice_headers
        )

        assert resp.status_code == 200
        assert resp.json()["data"]["total"] == 6.0
        assert (await catalog.get("M")).stock == 0
        assert (await ledger.get(resp.json()["data"]["id"])) is not None

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_health_reports_memory(self, client):
        resp = await client.get("/health")
        assert resp.json()["storage"] == "memory"


class TestOpenApi:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_order_routes_document_the_envelopes(self, client):
        resp = await client.get("/openapi.json")
        assert resp.status_code == 200
        schema = resp.json()

        assert "StandardErrorResponse" in schema["components"]["schemas"]
        checkout = schema["paths"]["/orders"]["post"]["responses"]
        for code in ("400", "401", "404", "409", "500"):
            ref = checkout[code]["content"]["application/json"]["schema"]["$ref"]
            assert ref.endswith("/StandardErrorResponse")
        success_ref = checkout["200"]["content"]["application/json"]["schema"]["$ref"]
        assert "StandardSuccessResponse" in success_ref
