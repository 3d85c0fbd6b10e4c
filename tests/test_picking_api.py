"""
Testes dos endpoints de romaneio (bipagem, rota e finalização)
"""

import pytest

from app.shared.database.models import PickList, StockEntry


@pytest.fixture
def pick_list(client, auth_headers):
    response = client.post("/api/v1/picking", json={"number": "R-001", "description": "Pedido teste"}, headers=auth_headers)
    assert response.status_code == 200
    return response.json()


def scan(client, headers, pick_list_id, barcode):
    return client.post(f"/api/v1/picking/{pick_list_id}/scan", json={"barcode": barcode}, headers=headers)


def stock_of(db_session, product, shelf):
    entry = db_session.query(StockEntry)\
        .filter(StockEntry.product_id == product.id, StockEntry.shelf_id == shelf.id)\
        .one()
    db_session.refresh(entry)
    return entry.quantity


class TestPickLists:

    def test_create_starts_pending(self, pick_list):
        assert pick_list["status"] == "pendente"
        assert pick_list["items"] == []

    def test_list_with_status_filter(self, client, auth_headers, pick_list):
        client.post("/api/v1/picking", json={"number": "R-002"}, headers=auth_headers)
        client.patch(f"/api/v1/picking/{pick_list['id']}/status", json={"status": "em_andamento"}, headers=auth_headers)

        response = client.get("/api/v1/picking", params={"status": "pendente,concluido"}, headers=auth_headers)

        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["number"] == "R-002"
        assert data["limit"] == 50

    def test_invalid_status_filter(self, client, auth_headers):
        response = client.get("/api/v1/picking", params={"status": "aberto"}, headers=auth_headers)
        assert response.status_code == 400

    def test_newest_first(self, client, auth_headers, pick_list):
        client.post("/api/v1/picking", json={"number": "R-002"}, headers=auth_headers)
        numbers = [p["number"] for p in client.get("/api/v1/picking", headers=auth_headers).json()["items"]]
        assert numbers == ["R-002", "R-001"]

    def test_delete_removes_items(self, client, auth_headers, warehouse, pick_list, db_session):
        scan(client, auth_headers, pick_list["id"], "789100")

        response = client.delete(f"/api/v1/picking/{pick_list['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert db_session.query(PickList).count() == 0
        assert client.get(f"/api/v1/picking/{pick_list['id']}", headers=auth_headers).status_code == 404


class TestRawItems:

    def test_add_update_and_delete_line(self, client, auth_headers, warehouse, pick_list):
        url = f"/api/v1/picking/{pick_list['id']}/items"
        line = {"product_id": warehouse["nut"].id, "shelf_id": warehouse["c05"].id, "quantity": 2}

        added = client.post(url, json=line, headers=auth_headers)
        assert added.status_code == 200
        assert added.json()["items"][0]["product_barcode"] == "789200"
        assert added.json()["status"] == "em_andamento"

        assert client.post(url, json=line, headers=auth_headers).status_code == 400

        updated = client.patch(url, json={**line, "quantity": 4}, headers=auth_headers)
        assert updated.json()["items"][0]["quantity"] == 4

        key = {"product_id": line["product_id"], "shelf_id": line["shelf_id"]}
        removed = client.request("DELETE", url, json=key, headers=auth_headers)
        assert removed.json()["items"] == []


class TestScanning:

    def test_rescan_increments_and_starts_list(self, client, auth_headers, warehouse, pick_list):
        first = scan(client, auth_headers, pick_list["id"], "789100")
        second = scan(client, auth_headers, pick_list["id"], "789100")

        assert first.status_code == 200
        assert first.json()["created"] is True
        assert second.json()["created"] is False
        assert second.json()["quantity"] == 2
        assert len(second.json()["items"]) == 1
        assert second.json()["status"] == "em_andamento"

    def test_unknown_barcode(self, client, auth_headers, warehouse, pick_list):
        assert scan(client, auth_headers, pick_list["id"], "000").status_code == 404

    def test_route_after_scans(self, client, auth_headers, warehouse, pick_list):
        # Parafuso: 4 caixas de 10 -> A40 tem só 30, B12 tem 50
        for _ in range(4):
            scan(client, auth_headers, pick_list["id"], "789100")
        scan(client, auth_headers, pick_list["id"], "789200")

        response = client.get(f"/api/v1/picking/{pick_list['id']}/route", headers=auth_headers)

        allocation = response.json()["allocation"]
        assert [g["shelf_name"] for g in allocation["routed_groups"]] == ["B12", "C05"]
        screw_allocations = allocation["allocations_by_product"][str(warehouse["screw"].id)]
        assert [(a["shelf_name"], a["units"], a["boxes"]) for a in screw_allocations] == [("B12", 40, 4)]
        assert allocation["shortfalls"] == []

    def test_quantity_update_reports_shortfall(self, client, auth_headers, warehouse, pick_list):
        scan(client, auth_headers, pick_list["id"], "789200")

        response = client.put(
            f"/api/v1/picking/{pick_list['id']}/items/quantity",
            json={"product_id": warehouse["nut"].id, "shelf_id": warehouse["c05"].id, "quantity": 3},
            headers=auth_headers
        )

        allocation = response.json()["allocation"]
        assert allocation["shortfalls"] == ["Porca (falta 6 unidades)"]
        assert all(a["insufficient"] for a in allocation["allocations_by_product"][str(warehouse["nut"].id)])

    def test_remove_line(self, client, auth_headers, warehouse, pick_list):
        scan(client, auth_headers, pick_list["id"], "789200")

        response = client.delete(
            f"/api/v1/picking/{pick_list['id']}/items/{warehouse['nut'].id}/{warehouse['c05'].id}",
            headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["items"] == []
        assert response.json()["allocation"]["routed_groups"] == []


class TestFinalize:

    def test_finalize_decrements_stock(self, client, auth_headers, warehouse, pick_list, db_session):
        scan(client, auth_headers, pick_list["id"], "789100")
        scan(client, auth_headers, pick_list["id"], "789200")

        response = client.post(f"/api/v1/picking/{pick_list['id']}/finalize", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "concluido"
        assert data["applied_count"] == 2
        assert data["skipped_count"] == 0
        assert data["failed_count"] == 0
        # Parafuso: 10 unidades; A40 (bipada, 30) é a preferida
        assert stock_of(db_session, warehouse["screw"], warehouse["a40"]) == 20
        assert stock_of(db_session, warehouse["nut"], warehouse["c05"]) == 6

        detail = client.get(f"/api/v1/picking/{pick_list['id']}", headers=auth_headers).json()
        assert detail["status"] == "concluido"

    def test_finalize_twice_conflicts(self, client, auth_headers, warehouse, pick_list):
        scan(client, auth_headers, pick_list["id"], "789200")
        client.post(f"/api/v1/picking/{pick_list['id']}/finalize", headers=auth_headers)

        response = client.post(f"/api/v1/picking/{pick_list['id']}/finalize", headers=auth_headers)

        assert response.status_code == 409

    def test_finalize_empty_list(self, client, auth_headers, pick_list):
        response = client.post(f"/api/v1/picking/{pick_list['id']}/finalize", headers=auth_headers)
        assert response.status_code == 400

    def test_scan_on_closed_list(self, client, auth_headers, warehouse, pick_list):
        scan(client, auth_headers, pick_list["id"], "789200")
        client.post(f"/api/v1/picking/{pick_list['id']}/finalize", headers=auth_headers)

        assert scan(client, auth_headers, pick_list["id"], "789200").status_code == 409

    def test_missing_pick_list(self, client, auth_headers):
        assert client.post("/api/v1/picking/999/finalize", headers=auth_headers).status_code == 404

    def test_concluded_list_cannot_be_reopened(self, client, auth_headers, warehouse, pick_list, db_session):
        scan(client, auth_headers, pick_list["id"], "789200")
        client.post(f"/api/v1/picking/{pick_list['id']}/finalize", headers=auth_headers)

        reopened = client.patch(
            f"/api/v1/picking/{pick_list['id']}/status",
            json={"status": "em_andamento"},
            headers=auth_headers
        )
        again = client.post(f"/api/v1/picking/{pick_list['id']}/finalize", headers=auth_headers)

        assert reopened.status_code == 409
        assert again.status_code == 409
        assert stock_of(db_session, warehouse["nut"], warehouse["c05"]) == 6

    def test_status_endpoint_cannot_conclude(self, client, auth_headers, warehouse, pick_list, db_session):
        scan(client, auth_headers, pick_list["id"], "789200")

        response = client.patch(
            f"/api/v1/picking/{pick_list['id']}/status",
            json={"status": "concluido"},
            headers=auth_headers
        )

        assert response.status_code == 400
        detail = client.get(f"/api/v1/picking/{pick_list['id']}", headers=auth_headers).json()
        assert detail["status"] == "em_andamento"
        assert stock_of(db_session, warehouse["nut"], warehouse["c05"]) == 12
