"""HTTP surface: roles, error bodies and listings."""
from bson import ObjectId
from fastapi.testclient import TestClient

import database as store
from conftest import auth_header, make_order, make_product, make_user, minutes_ago
from database import create_document
from main import app

API = "/api/v1"

SHIPPING = {"street": "1 rue de Rivoli", "city": "Paris", "postalCode": "75001"}


def order_body(product, quantity=1):
    return {
        "items": [{"product": str(product["_id"]), "quantity": quantity}],
        "shippingAddress": SHIPPING,
        "paymentMethod": "card",
    }


class TestErrorBodies:
    def test_bad_identifier_is_a_400(self, client) -> None:
        response = client.get(f"{API}/products/not-an-id")
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Invalid identifier"

    def test_missing_product_is_a_404(self, client) -> None:
        response = client.get(f"{API}/products/{ObjectId()}")
        assert response.status_code == 404
        assert response.json()["message"] == "Product not found"

    def test_stack_is_included_outside_production(self, client) -> None:
        assert "stack" in client.get(f"{API}/products/{ObjectId()}").json()

    def test_health_reports_missing_database(self, client) -> None:
        assert client.get("/health").json()["status"] == "OK"


class TestLifespan:
    def test_startup_builds_indexes_and_reconciles(self, db, user, product, monkeypatch) -> None:
        db["order"].drop_indexes()
        order = make_order(
            db, user, product, quantity=3, status="pending",
            sideEffectsApplied=False, createdAt=minutes_ago(30),
        )
        monkeypatch.setattr(store, "db", db)

        with TestClient(app):
            pass

        assert "orderNumber_1" in db["order"].index_information()
        assert db["order"].find_one({"_id": order["_id"]})["sideEffectsApplied"] is True
        assert db["product"].find_one({"_id": product["_id"]})["stock"] == 7


class TestProductsApi:
    def test_listing_filters_and_paginates(self, client, db, category) -> None:
        for price in (3.0, 8.0, 15.0, 40.0):
            make_product(db, category, name=f"Oat bar {price}", price=price, isVegan=price < 10)
        make_product(db, category, name="Kombucha", price=4.0)

        response = client.get(f"{API}/products", params={"keyword": "oat", "maxPrice": 20, "sort": "-price", "limit": 2})
        body = response.json()
        assert response.status_code == 200
        assert body["total"] == 3
        assert body["pagination"] == {"page": 1, "limit": 2, "totalPages": 2}
        assert [p["price"] for p in body["data"]] == [15.0, 8.0]
        assert body["data"][0]["category"]["slug"] == "breakfast"

        vegan = client.get(f"{API}/products", params={"isVegan": "true", "category": "breakfast"}).json()
        assert vegan["total"] == 2

    def test_keyword_is_not_a_regex(self, client, db, category) -> None:
        make_product(db, category, name="Plain")
        assert client.get(f"{API}/products", params={"keyword": ".*"}).json()["total"] == 0

    def test_featured_is_not_treated_as_an_id(self, client, db, category) -> None:
        make_product(db, category, featured=True)
        response = client.get(f"{API}/products/featured")
        assert response.status_code == 200
        assert response.json()["count"] == 1

    def test_by_slug_and_similar(self, client, db, category, product) -> None:
        make_product(db, category, name="Sibling")
        assert client.get(f"{API}/products/slug/protein-granola").json()["data"]["id"] == str(product["_id"])
        similar = client.get(f"{API}/products/{product['_id']}/similar").json()
        assert [p["name"] for p in similar["data"]] == ["Sibling"]

    def test_admin_only_writes(self, client, user, admin, category) -> None:
        body = {"name": "Chia Seeds", "price": 6.5, "stock": 30, "category": str(category["_id"])}
        assert client.post(f"{API}/products", json=body).status_code == 401
        assert client.post(f"{API}/products", json=body, headers=auth_header(user)).status_code == 403

        response = client.post(f"{API}/products", json=body, headers=auth_header(admin))
        assert response.status_code == 201
        assert response.json()["data"]["slug"] == "chia-seeds"

    def test_discount_validation(self, client, admin, category) -> None:
        body = {"name": "Chia", "price": 6.5, "discountPrice": 7.0, "stock": 3, "category": str(category["_id"])}
        response = client.post(f"{API}/products", json=body, headers=auth_header(admin))
        assert response.status_code == 400
        assert response.json()["message"] == "Validation error"

    def test_duplicate_slug_is_a_409(self, client, admin, category, product) -> None:
        body = {"name": "Protein Granola", "price": 6.5, "stock": 3, "category": str(category["_id"])}
        response = client.post(f"{API}/products", json=body, headers=auth_header(admin))
        assert response.status_code == 409
        assert response.json()["message"] == "Duplicate value"

    def test_stock_update(self, client, admin, product) -> None:
        response = client.put(f"{API}/products/{product['_id']}/stock", json={"stock": 99}, headers=auth_header(admin))
        assert response.json()["data"]["stock"] == 99


class TestCategoriesApi:
    def test_circular_parent_is_rejected(self, client, admin) -> None:
        headers = auth_header(admin)
        a = client.post(f"{API}/categories", json={"name": "A"}, headers=headers).json()["data"]
        b = client.post(f"{API}/categories", json={"name": "B", "parent": a["id"]}, headers=headers).json()["data"]
        assert b["level"] == 2

        response = client.put(f"{API}/categories/{a['id']}", json={"parent": b["id"]}, headers=headers)
        assert response.status_code == 400
        assert client.get(f"{API}/categories/{a['id']}").json()["data"].get("parent") is None

    def test_roots_and_path(self, client, admin) -> None:
        headers = auth_header(admin)
        root = client.post(f"{API}/categories", json={"name": "Food"}, headers=headers).json()["data"]
        leaf = client.post(f"{API}/categories", json={"name": "Snacks", "parent": root["id"]}, headers=headers).json()["data"]

        roots = client.get(f"{API}/categories", params={"parent": "null"}).json()
        assert [c["name"] for c in roots["data"]] == ["Food"]
        path = client.get(f"{API}/categories/{leaf['id']}/path").json()["data"]
        assert [p["slug"] for p in path] == ["food", "snacks"]


class TestOrdersApi:
    def test_place_and_read_order(self, client, user, product) -> None:
        response = client.post(f"{API}/orders", json=order_body(product, 2), headers=auth_header(user))
        assert response.status_code == 201
        order = response.json()["data"]
        assert order["orderNumber"].startswith("BEY-")
        assert order["itemsPrice"] == 20.0
        assert order["user"] == str(user["_id"])

        mine = client.get(f"{API}/orders/me", headers=auth_header(user)).json()
        assert mine["total"] == 1

        fetched = client.get(f"{API}/orders/{order['id']}", headers=auth_header(user))
        assert fetched.status_code == 200

    def test_out_of_stock_order(self, client, db, user, product) -> None:
        response = client.post(f"{API}/orders", json=order_body(product, 11), headers=auth_header(user))
        assert response.status_code == 400
        assert "Insufficient stock" in response.json()["message"]
        assert db["order"].count_documents({}) == 0

    def test_invalid_quantity(self, client, user, product) -> None:
        response = client.post(f"{API}/orders", json=order_body(product, 0), headers=auth_header(user))
        assert response.status_code == 400
        assert "items.0.quantity" in response.json()["errors"]

    def test_orders_are_private(self, client, db, user, admin, product) -> None:
        order = client.post(f"{API}/orders", json=order_body(product), headers=auth_header(user)).json()["data"]
        stranger = make_user(db)
        assert client.get(f"{API}/orders/{order['id']}", headers=auth_header(stranger)).status_code == 403
        assert client.get(f"{API}/orders/{order['id']}", headers=auth_header(admin)).status_code == 200
        assert client.get(f"{API}/orders", headers=auth_header(user)).status_code == 403

    def test_cancel_flow(self, client, db, user, product) -> None:
        order = client.post(f"{API}/orders", json=order_body(product, 3), headers=auth_header(user)).json()["data"]
        first = client.put(f"{API}/orders/{order['id']}/cancel", headers=auth_header(user))
        assert first.json()["data"]["status"] == "cancelled"
        assert db["product"].find_one({"_id": product["_id"]})["stock"] == 10

        second = client.put(f"{API}/orders/{order['id']}/cancel", headers=auth_header(user))
        assert second.status_code == 400

    def test_admin_status_and_stats(self, client, user, admin, product) -> None:
        order = client.post(f"{API}/orders", json=order_body(product), headers=auth_header(user)).json()["data"]
        headers = auth_header(admin)
        shipped = client.put(f"{API}/orders/{order['id']}/status", json={"status": "shipped"}, headers=headers)
        assert shipped.json()["data"]["status"] == "shipped"
        paid = client.put(f"{API}/orders/{order['id']}/payment", json={"paymentStatus": "paid"}, headers=headers)
        assert paid.json()["data"]["paymentStatus"] == "paid"

        stats = client.get(f"{API}/orders/stats", headers=headers)
        assert stats.status_code == 200
        assert stats.json()["data"]["stats"]["summary"]["totalOrders"] == 1
        assert client.get(f"{API}/orders/stats", headers=auth_header(user)).status_code == 403


class TestReviewsApi:
    def test_review_lifecycle(self, client, db, user, admin, product) -> None:
        make_order(db, user, product)
        body = {"product": str(product["_id"]), "rating": 4, "title": "Tasty", "comment": "Crunchy"}
        created = client.post(f"{API}/reviews", json=body, headers=auth_header(user))
        assert created.status_code == 201
        review = created.json()["data"]
        assert review["isApproved"] is False

        public = client.get(f"{API}/products/{product['_id']}/reviews").json()
        assert public["total"] == 0
        assert client.get(f"{API}/reviews/{review['id']}").status_code == 404
        assert client.get(f"{API}/reviews/{review['id']}", headers=auth_header(user)).status_code == 200

        pending = client.get(f"{API}/reviews/pending", headers=auth_header(admin)).json()
        assert pending["total"] == 1

        approved = client.put(f"{API}/reviews/{review['id']}/approve", json={"isApproved": True}, headers=auth_header(admin))
        assert approved.json()["data"]["isApproved"] is True

        public = client.get(f"{API}/products/{product['_id']}/reviews").json()
        assert public["total"] == 1
        assert public["ratingDistribution"]["4"] == 1
        assert public["data"][0]["user"]["firstName"] == "Jane"
        assert client.get(f"{API}/products/{product['_id']}").json()["data"]["numReviews"] == 1

    def test_review_needs_purchase(self, client, user, product) -> None:
        body = {"product": str(product["_id"]), "rating": 4, "title": "Tasty", "comment": "Crunchy"}
        response = client.post(f"{API}/reviews", json=body, headers=auth_header(user))
        assert response.status_code == 403

    def test_like_and_most_helpful(self, client, db, user, product) -> None:
        review = {
            "user": user["_id"], "product": product["_id"], "rating": 5, "title": "Yes", "comment": "Good",
            "images": [], "verifiedPurchase": True, "approved": "approved", "helpfulCount": 0,
        }
        create_document(db, "review", review)
        client.put(f"{API}/reviews/{review['_id']}/like", headers=auth_header(user))
        ranked = client.get(f"{API}/reviews/most-helpful").json()["data"]
        assert ranked[0]["helpfulCount"] == 1


class TestSeed:
    def test_seed_is_admin_only_and_idempotent(self, client, db, user, admin) -> None:
        assert client.post(f"{API}/seed", headers=auth_header(user)).status_code == 403
        first = client.post(f"{API}/seed", headers=auth_header(admin)).json()["data"]
        assert first == {"categories": 4, "products": 8}
        second = client.post(f"{API}/seed", headers=auth_header(admin)).json()["data"]
        assert second == {"categories": 0, "products": 0}
        assert db["product"].count_documents({"featured": True}) == 3
