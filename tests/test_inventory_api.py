"""
Testes dos endpoints de estoque
"""

from app.shared.database.models import HistoryEntry, Shelf, StockEntry


class TestStockListing:

    def test_requires_authentication(self, client):
        assert client.get("/api/v1/estoque").status_code == 401

    def test_search_by_product_name(self, client, auth_headers, warehouse):
        response = client.get(
            "/api/v1/estoque",
            params={"search": "paraf", "search_field": "produto.nome"},
            headers=auth_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert {item["shelf_name"] for item in data["items"]} == {"A40", "B12"}

    def test_low_stock_filter(self, client, auth_headers, warehouse):
        response = client.get("/api/v1/estoque", params={"stock_filter": "baixo"}, headers=auth_headers)

        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["shelf_name"] == "A40"
        assert data["items"][0]["low_stock"] is True

    def test_numeric_field_rejects_text(self, client, auth_headers, warehouse):
        response = client.get(
            "/api/v1/estoque",
            params={"search": "abc", "search_field": "produto_id"},
            headers=auth_headers
        )
        assert response.status_code == 400

    def test_search_by_shelf_id(self, client, auth_headers, warehouse):
        response = client.get(
            "/api/v1/estoque",
            params={"search": str(warehouse["c05"].id), "search_field": "prateleira_id"},
            headers=auth_headers
        )
        assert [item["product"]["name"] for item in response.json()["items"]] == ["Porca"]


class TestStockMovements:

    def test_add_sums_into_existing_partition(self, client, auth_headers, warehouse, db_session):
        payload = {
            "product_id": warehouse["screw"].id,
            "shelf_id": warehouse["a40"].id,
            "distributor_id": warehouse["acme"].id,
            "quantity": 5
        }

        response = client.post("/api/v1/estoque", json=payload, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["quantity"] == 35
        assert db_session.query(StockEntry).count() == 3

    def test_remove_beyond_available_is_rejected(self, client, auth_headers, warehouse, db_session):
        payload = {
            "product_id": warehouse["nut"].id,
            "shelf_id": warehouse["c05"].id,
            "distributor_id": warehouse["acme"].id,
            "movement_type": "retirar",
            "quantity": 13
        }

        response = client.patch("/api/v1/estoque/movimentar", json=payload, headers=auth_headers)

        assert response.status_code == 400
        entry = db_session.query(StockEntry).filter(StockEntry.product_id == warehouse["nut"].id).one()
        db_session.refresh(entry)
        assert entry.quantity == 12

    def test_remove_writes_history(self, client, auth_headers, warehouse, db_session):
        payload = {
            "product_id": warehouse["nut"].id,
            "shelf_id": warehouse["c05"].id,
            "distributor_id": warehouse["acme"].id,
            "movement_type": "retirar",
            "quantity": 2
        }

        response = client.patch("/api/v1/estoque/movimentar", json=payload, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["quantity"] == 10
        actions = [h.action for h in db_session.query(HistoryEntry).all()]
        assert "Removeu Estoque" in actions

    def test_remove_from_missing_partition(self, client, auth_headers, warehouse):
        payload = {
            "product_id": warehouse["nut"].id,
            "shelf_id": warehouse["a40"].id,
            "distributor_id": warehouse["acme"].id,
            "movement_type": "retirar",
            "quantity": 1
        }
        response = client.patch("/api/v1/estoque/movimentar", json=payload, headers=auth_headers)
        assert response.status_code == 400

    def test_delete_entry(self, client, auth_headers, warehouse, db_session):
        entry = db_session.query(StockEntry).first()
        response = client.delete(f"/api/v1/estoque/{entry.id}", headers=auth_headers)
        assert response.status_code == 200
        assert client.delete(f"/api/v1/estoque/{entry.id}", headers=auth_headers).status_code == 404


class TestCsvImport:

    def test_unknown_skus_are_skipped(self, client, auth_headers, warehouse, db_session):
        content = "SKU; Distribuidor ;Quantidade\nPAR-01;acme;5\nNAO-EXISTE;Acme;3\n"

        response = client.post(
            "/api/v1/estoque/import-csv",
            files={"file": ("estoque.csv", content.encode("utf-8"), "text/csv")},
            headers=auth_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["imported"] == 1
        assert data["skipped"] == 1

        shelf = db_session.query(Shelf).filter(Shelf.name == "RECEBIMENTO").one()
        entry = db_session.query(StockEntry).filter(StockEntry.shelf_id == shelf.id).one()
        assert entry.quantity == 5

    def test_no_valid_rows(self, client, auth_headers, warehouse):
        content = "sku,distribuidor,quantidade\nNAO-EXISTE,Acme,3\n"
        response = client.post(
            "/api/v1/estoque/import-csv",
            files={"file": ("estoque.csv", content.encode("utf-8"), "text/csv")},
            headers=auth_headers
        )
        assert response.status_code == 400

    def test_non_positive_and_non_finite_quantities_are_skipped(self, client, auth_headers, warehouse, db_session):
        content = "sku;distribuidor;quantidade\nPOR-01;Acme;-50\nPOR-01;Acme;0\nPOR-01;Acme;inf\nPOR-01;Acme;nan\nPOR-01;Acme;4\n"

        response = client.post(
            "/api/v1/estoque/import-csv",
            files={"file": ("estoque.csv", content.encode("utf-8"), "text/csv")},
            headers=auth_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["imported"] == 1
        assert data["skipped"] == 4

        shelf = db_session.query(Shelf).filter(Shelf.name == "RECEBIMENTO").one()
        entry = db_session.query(StockEntry).filter(StockEntry.shelf_id == shelf.id).one()
        assert entry.quantity == 4

    def test_negative_only_file_does_not_touch_stock(self, client, auth_headers, warehouse, db_session):
        content = "sku;distribuidor;quantidade\nPOR-01;Acme;-50\n"

        response = client.post(
            "/api/v1/estoque/import-csv",
            files={"file": ("estoque.csv", content.encode("utf-8"), "text/csv")},
            headers=auth_headers
        )

        assert response.status_code == 400
        assert db_session.query(StockEntry).filter(StockEntry.quantity < 0).count() == 0
