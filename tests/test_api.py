"""Integration tests for the Inventory API endpoints via TestClient."""
import csv
import io


def _create(client, headers, **overrides):
    """Helper: POST /items and return the created item."""
    body = {"name": "Widget", "quantity": 5, "price": "9.99", "category": "Tools"}
    body.update(overrides)
    response = client.post("/items", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestHealthAndAuth:
    def test_health(self, client):
        response = client.get("/healthz")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_missing_token(self, client):
        assert client.get("/items").status_code in (401, 403)

    def test_invalid_token(self, client):
        response = client.get("/items", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_user_can_read_but_not_write(self, client, user_headers):
        assert client.get("/items", headers=user_headers).status_code == 200
        response = client.post(
            "/items",
            json={"name": "Widget", "quantity": 1, "price": "1.00", "category": "Tools"},
            headers=user_headers,
        )
        assert response.status_code == 403


class TestCrudEndpoints:
    def test_create_and_get(self, client, admin_headers):
        created = _create(client, admin_headers)
        assert created["price"] == "9.99"
        assert created["last_updated"] is not None

        response = client.get(f"/items/{created['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json() == created

    def test_create_reports_every_invalid_field(self, client, admin_headers):
        response = client.post(
            "/items",
            json={"name": " ", "quantity": -1, "price": "-2", "category": ""},
            headers=admin_headers,
        )
        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["kind"] == "validation"
        assert set(detail["errors"]) == {"name", "quantity", "price", "category"}

    def test_create_quantity_beyond_column_limit(self, client, admin_headers):
        response = client.post(
            "/items",
            json={"name": "Widget", "quantity": 2**63, "price": "1.00", "category": "Tools"},
            headers=admin_headers,
        )
        assert response.status_code == 422
        assert set(response.json()["detail"]["errors"]) == {"quantity"}

    def test_get_id_beyond_column_limit(self, client, admin_headers):
        assert client.get(f"/items/{2**63}", headers=admin_headers).status_code == 404

    def test_client_supplied_timestamp_is_ignored(self, client, admin_headers):
        created = _create(client, admin_headers, last_updated="1999-01-01T00:00:00")
        assert not created["last_updated"].startswith("1999")

    def test_get_missing(self, client, admin_headers):
        response = client.get("/items/999", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["detail"]["kind"] == "not_found"

    def test_list(self, client, admin_headers):
        _create(client, admin_headers, name="A")
        _create(client, admin_headers, name="B")
        names = [item["name"] for item in client.get("/items", headers=admin_headers).json()]
        assert names == ["A", "B"]

    def test_update(self, client, admin_headers):
        created = _create(client, admin_headers)
        response = client.put(
            f"/items/{created['id']}",
            json={"name": "Renamed", "quantity": 7, "price": "1.25", "category": "Misc"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert (body["name"], body["quantity"], body["price"], body["category"]) == ("Renamed", 7, "1.25", "Misc")

    def test_update_is_not_a_patch(self, client, admin_headers):
        created = _create(client, admin_headers)
        response = client.put(f"/items/{created['id']}", json={"quantity": 1}, headers=admin_headers)
        assert response.status_code == 422
        assert set(response.json()["detail"]["errors"]) == {"name", "price", "category"}

    def test_update_missing(self, client, admin_headers):
        response = client.put(
            "/items/999",
            json={"name": "X", "quantity": 1, "price": "1.00", "category": "Y"},
            headers=admin_headers,
        )
        assert response.status_code == 404

    def test_delete(self, client, admin_headers):
        created = _create(client, admin_headers)
        assert client.delete(f"/items/{created['id']}", headers=admin_headers).status_code == 204
        assert client.get(f"/items/{created['id']}", headers=admin_headers).status_code == 404
        assert client.delete(f"/items/{created['id']}", headers=admin_headers).status_code == 404

    def test_wrongly_typed_body_is_rejected(self, client, admin_headers):
        response = client.post(
            "/items",
            json={"name": "Widget", "quantity": "many", "price": "1.00", "category": "Tools"},
            headers=admin_headers,
        )
        assert response.status_code == 422


class TestRestockEndpoint:
    def test_restock_up_and_down(self, client, admin_headers):
        created = _create(client, admin_headers, quantity=5)
        url = f"/items/{created['id']}/restock"

        assert client.patch(url, json={"delta": 3}, headers=admin_headers).json()["quantity"] == 8
        assert client.patch(url, json={"delta": -3}, headers=admin_headers).json()["quantity"] == 5

    def test_restock_below_zero(self, client, admin_headers):
        created = _create(client, admin_headers, quantity=1)
        response = client.patch(f"/items/{created['id']}/restock", json={"delta": -2}, headers=admin_headers)
        assert response.status_code == 422
        assert client.get(f"/items/{created['id']}", headers=admin_headers).json()["quantity"] == 1

    def test_restock_missing(self, client, admin_headers):
        response = client.patch("/items/999/restock", json={"delta": 1}, headers=admin_headers)
        assert response.status_code == 404

    def test_restock_beyond_column_limit(self, client, admin_headers):
        created = _create(client, admin_headers, quantity=1)
        response = client.patch(f"/items/{created['id']}/restock", json={"delta": 2**63}, headers=admin_headers)
        assert response.status_code == 422
        assert "quantity" in response.json()["detail"]["errors"]
        assert client.get(f"/items/{created['id']}", headers=admin_headers).json()["quantity"] == 1


class TestBulkEndpoints:
    def test_bulk_create_all_valid(self, client, admin_headers):
        items = [
            {"name": "A", "quantity": 1, "price": "1.00", "category": "X"},
            {"name": "B", "quantity": 2, "price": "2.00", "category": "X"},
        ]
        response = client.post("/items/bulk", json={"items": items}, headers=admin_headers)
        assert response.status_code == 201
        assert response.json()["created_count"] == 2

    def test_bulk_create_partial(self, client, admin_headers):
        items = [
            {"name": "A", "quantity": 1, "price": "1.00", "category": "X"},
            {"name": "", "quantity": 1, "price": "1.00", "category": "X"},
        ]
        response = client.post("/items/bulk", json={"items": items}, headers=admin_headers)
        assert response.status_code == 207
        body = response.json()
        assert (body["created_count"], body["failed_count"]) == (1, 1)
        assert body["results"][1]["error"]["errors"] == {"name": "Name is required"}
        assert len(client.get("/items", headers=admin_headers).json()) == 1

    def test_bulk_delete(self, client, admin_headers):
        a = _create(client, admin_headers, name="A")
        b = _create(client, admin_headers, name="B")
        body = {"ids": [a["id"], 12345, b["id"]]}

        response = client.post("/items/bulk-delete", json=body, headers=admin_headers)
        assert response.status_code == 200
        assert response.json() == {"deleted_ids": [a["id"], b["id"]]}

        again = client.post("/items/bulk-delete", json=body, headers=admin_headers)
        assert again.json() == {"deleted_ids": []}


class TestQueryEndpoints:
    def test_search_by_name(self, client, user_headers, admin_headers):
        _create(client, admin_headers, name="Claw Hammer")
        _create(client, admin_headers, name="Saw")
        response = client.get("/items/search", params={"name": "HAMMER"}, headers=user_headers)
        assert [item["name"] for item in response.json()] == ["Claw Hammer"]

    def test_filter_by_category(self, client, user_headers, admin_headers):
        _create(client, admin_headers, category="Garden")
        _create(client, admin_headers, category="Kitchen")
        response = client.get("/items/filter/category", params={"category": "gard"}, headers=user_headers)
        assert [item["category"] for item in response.json()] == ["Garden"]

    def test_filter_by_price(self, client, user_headers, admin_headers):
        _create(client, admin_headers, name="Cheap", price="1.00")
        _create(client, admin_headers, name="Dear", price="100.00")
        response = client.get(
            "/items/filter/price", params={"min_price": "0.50", "max_price": "1.00"}, headers=user_headers
        )
        assert [item["name"] for item in response.json()] == ["Cheap"]

    def test_filter_by_inverted_price_range(self, client, user_headers):
        response = client.get("/items/filter/price", params={"min_price": "5", "max_price": "1"}, headers=user_headers)
        assert response.status_code == 422

    def test_low_stock(self, client, user_headers, admin_headers):
        for quantity in (0, 5, 10):
            _create(client, admin_headers, name=f"Q{quantity}", quantity=quantity)
        response = client.get("/items/low-stock", params={"threshold": 5}, headers=user_headers)
        assert [item["quantity"] for item in response.json()] == [0]

    def test_low_stock_default_threshold(self, client, user_headers, admin_headers):
        _create(client, admin_headers, quantity=9)
        _create(client, admin_headers, quantity=10)
        response = client.get("/items/low-stock", headers=user_headers)
        assert [item["quantity"] for item in response.json()] == [9]

    def test_summary(self, client, user_headers, admin_headers):
        _create(client, admin_headers, quantity=0, price="1.00")
        _create(client, admin_headers, quantity=4, price="2.50")
        body = client.get("/items/summary", headers=user_headers).json()
        assert body["total_items"] == 2
        assert body["total_quantity"] == 4
        assert body["out_of_stock"] == 1
        assert body["low_stock"] == 2
        assert body["threshold"] == 10
        assert body["total_value"] in ("10.00", "10.0000", "10")


class TestCsvEndpoints:
    def test_export(self, client, admin_headers):
        created = _create(client, admin_headers)
        response = client.get("/items/export/csv", headers=admin_headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")

        rows = list(csv.DictReader(io.StringIO(response.text)))
        assert len(rows) == 1
        assert rows[0]["id"] == str(created["id"])
        assert rows[0]["price"] == "9.99"

    def test_import(self, client, admin_headers):
        content = (
            "name,quantity,price,category\n"
            "Hammer,3,12.50,Tools\n"
            "Broken,abc,1.00,Tools\n"
            ",1,1.00,Tools\n"
            "Saw,1,8.00,Tools\n"
        )
        response = client.post(
            "/items/import/csv",
            files={"file": ("items.csv", content, "text/csv")},
            headers=admin_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["created_count"] == 2
        assert body["skipped_count"] == 2
        assert body["errors"] == ["Row 3: Invalid quantity 'abc'", "Row 4: Name is required"]

        names = [item["name"] for item in client.get("/items", headers=admin_headers).json()]
        assert names == ["Hammer", "Saw"]

    def test_import_rejects_non_csv(self, client, admin_headers):
        response = client.post(
            "/items/import/csv",
            files={"file": ("items.txt", "x", "text/plain")},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_import_rejects_non_utf8(self, client, admin_headers):
        content = b"name,quantity,price,category\n\xff\xfe,1,1.00,Tools\n"
        response = client.post(
            "/items/import/csv",
            files={"file": ("items.csv", content, "text/csv")},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "File must be UTF-8 encoded CSV"
        assert client.get("/items", headers=admin_headers).json() == []


class TestObserverWiring:
    def test_requests_notify_observer(self, client, admin_headers, recorder):
        created = _create(client, admin_headers)
        client.get(f"/items/{created['id']}", headers=admin_headers)
        hooks = [(hook, operation) for hook, operation, _ in recorder.events]
        assert hooks == [
            ("started", "create_item"),
            ("succeeded", "create_item"),
            ("started", "get_item"),
            ("succeeded", "get_item"),
        ]
