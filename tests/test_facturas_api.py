from datetime import datetime
from uuid import uuid4

from app.modules.facturas.models import FacturaStatus


def _create(client, headers, **overrides):
    payload = {"label": "F-001", "amount": 100.00, "due_date": "2025-01-01"}
    payload.update(overrides)
    return client.post("/api/facturas", json=payload, headers=headers)


class TestAuthRequired:
    def test_missing_token(self, client):
        response = client.get("/api/facturas")
        assert response.status_code == 401
        assert response.json() == {"status": "error", "message": "Not authorized, no token"}

    def test_garbage_token(self, client):
        response = client.get("/api/facturas", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401
        assert response.json()["message"] == "Not authorized, token failed"


class TestCreate:
    def test_created_with_defaults(self, client, headers_a, user_a):
        response = _create(client, headers_a)

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "success"
        data = body["data"]
        assert data["label"] == "F-001"
        assert data["amount"] == "100.00"
        assert data["status"] == "pendiente"
        assert data["due_date"] == "2025-01-01T00:00:00"
        assert data["paid_date"] is None
        assert data["owner_id"] == str(user_a.id)

    def test_validation_errors_are_field_level(self, client, headers_a):
        response = client.post(
            "/api/facturas",
            json={"label": "", "amount": -1, "due_date": "2025-01-01"},
            headers=headers_a,
        )

        assert response.status_code == 400
        body = response.json()
        assert body["status"] == "error"
        assert {e["field"] for e in body["errors"]} == {"label", "amount"}

    def test_missing_due_date(self, client, headers_a):
        response = client.post("/api/facturas", json={"label": "F", "amount": 1}, headers=headers_a)
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "due_date"


class TestReadAndList:
    def test_get_one(self, client, headers_a):
        factura_id = _create(client, headers_a).json()["data"]["id"]
        response = client.get(f"/api/facturas/{factura_id}", headers=headers_a)
        assert response.status_code == 200
        assert response.json()["data"]["id"] == factura_id

    def test_other_owner_gets_404(self, client, headers_a, headers_b):
        factura_id = _create(client, headers_a).json()["data"]["id"]

        for method, path, kwargs in [
            ("get", f"/api/facturas/{factura_id}", {}),
            ("get", f"/api/facturas/{factura_id}/pdf", {}),
            ("patch", f"/api/facturas/{factura_id}/status", {"json": {"status": "pagada"}}),
            ("put", f"/api/facturas/{factura_id}", {"json": {"label": "mine now"}}),
            ("delete", f"/api/facturas/{factura_id}", {}),
        ]:
            response = getattr(client, method)(path, headers=headers_b, **kwargs)
            assert response.status_code == 404, (method, path)
            assert response.json() == {"status": "error", "message": "Factura not found"}

        untouched = client.get(f"/api/facturas/{factura_id}", headers=headers_a).json()["data"]
        assert untouched["label"] == "F-001"
        assert untouched["status"] == "pendiente"

    def test_unknown_id_gets_404(self, client, headers_a):
        response = client.get(f"/api/facturas/{uuid4()}", headers=headers_a)
        assert response.status_code == 404

    def test_list_envelope_and_pagination(self, client, headers_a, headers_b):
        for i in range(12):
            _create(client, headers_a, label=f"F-{i:02d}")
        _create(client, headers_b, label="other")

        response = client.get("/api/facturas", params={"limit": 5, "page": 3}, headers=headers_a)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total_facturas"] == 12
        assert data["total_pages"] == 3
        assert data["current_page"] == 3
        assert len(data["facturas"]) == 2

    def test_list_by_year_and_month(self, client, headers_a):
        _create(client, headers_a, label="jan", due_date="2025-01-20")
        _create(client, headers_a, label="jan-paid", due_date="2025-01-05", status="pagada")
        _create(client, headers_a, label="feb", due_date="2025-02-01")

        response = client.get(
            "/api/facturas", params={"year": 2025, "month": 1, "sortBy": "due_date", "order": "asc"},
            headers=headers_a,
        )

        labels = [f["label"] for f in response.json()["data"]["facturas"]]
        assert labels == ["jan-paid", "jan"]

    def test_list_rejects_bad_month(self, client, headers_a):
        response = client.get("/api/facturas", params={"year": 2025, "month": 13}, headers=headers_a)
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "month"

    def test_list_lenient_paging(self, client, headers_a):
        _create(client, headers_a)
        response = client.get("/api/facturas", params={"page": "abc", "limit": "-1"}, headers=headers_a)
        data = response.json()["data"]
        assert data["current_page"] == 1
        assert data["total_pages"] == 1

    def test_list_huge_page_number(self, client, headers_a):
        _create(client, headers_a)
        response = client.get("/api/facturas", params={"page": "99999999999999999999"}, headers=headers_a)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["facturas"] == []
        assert data["total_facturas"] == 1
        assert data["total_pages"] == 1


class TestUpdates:
    def test_patch_status_only(self, client, headers_a):
        created = _create(client, headers_a, label="keep", amount=42.1).json()["data"]

        response = client.patch(
            f"/api/facturas/{created['id']}/status", json={"status": "anulada"}, headers=headers_a
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "anulada"
        for field in ("label", "amount", "due_date"):
            assert data[field] == created[field]

    def test_patch_paid_without_date_keeps_paid_date_null(self, client, headers_a):
        created = _create(client, headers_a).json()["data"]

        response = client.patch(
            f"/api/facturas/{created['id']}/status", json={"status": "pagada"}, headers=headers_a
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "pagada"
        assert response.json()["data"]["paid_date"] is None

    def test_patch_invalid_status_leaves_record(self, client, headers_a):
        created = _create(client, headers_a).json()["data"]

        response = client.patch(
            f"/api/facturas/{created['id']}/status", json={"status": "cobrada"}, headers=headers_a
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "status"
        current = client.get(f"/api/facturas/{created['id']}", headers=headers_a).json()["data"]
        assert current == created

    def test_patch_empty_body_rejected(self, client, headers_a):
        created = _create(client, headers_a).json()["data"]
        response = client.patch(f"/api/facturas/{created['id']}/status", json={}, headers=headers_a)
        assert response.status_code == 400

    def test_put_partial_fields(self, client, headers_a):
        created = _create(client, headers_a).json()["data"]

        response = client.put(
            f"/api/facturas/{created['id']}",
            json={"amount": "250.5", "due_date": "2025-03-15T10:00:00"},
            headers=headers_a,
        )

        data = response.json()["data"]
        assert data["amount"] == "250.50"
        assert data["due_date"] == "2025-03-15T10:00:00"
        assert data["label"] == created["label"]
        assert data["status"] == created["status"]

    def test_put_aware_datetime_is_stored_in_local_wall_clock(self, client, headers_a):
        created = _create(client, headers_a).json()["data"]
        response = client.put(
            f"/api/facturas/{created['id']}", json={"due_date": "2025-03-15T03:00:00Z"}, headers=headers_a
        )
        assert response.json()["data"]["due_date"] == "2025-03-14T22:00:00"

    def test_delete(self, client, headers_a):
        created = _create(client, headers_a).json()["data"]

        response = client.delete(f"/api/facturas/{created['id']}", headers=headers_a)

        assert response.status_code == 200
        assert response.json()["status"] == "success"
        assert client.get(f"/api/facturas/{created['id']}", headers=headers_a).status_code == 404
        listed = client.get("/api/facturas", headers=headers_a).json()["data"]
        assert listed["total_facturas"] == 0


class TestStatsAndPdf:
    def test_stats_zero(self, client, headers_a):
        response = client.get("/api/facturas/stats", headers=headers_a)
        assert response.status_code == 200
        assert response.json()["data"] == {
            "total_pagado": "0.00",
            "total_pendiente": "0.00",
            "facturas_vencidas": 0,
        }

    def test_stats_totals(self, client, headers_a, user_a, make_factura):
        make_factura(user_a, amount="10.00", status=FacturaStatus.PAID, paid_date=datetime(2025, 1, 1))
        make_factura(user_a, amount="2.50")
        make_factura(user_a, amount="7.00", status=FacturaStatus.OVERDUE)

        data = client.get("/api/facturas/stats", headers=headers_a).json()["data"]

        assert data == {"total_pagado": "10.00", "total_pendiente": "2.50", "facturas_vencidas": 1}

    def test_pdf_download(self, client, headers_a):
        created = _create(client, headers_a, label="F-001").json()["data"]

        response = client.get(f"/api/facturas/{created['id']}/pdf", headers=headers_a)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert 'filename="factura_F-001.pdf"' in response.headers["content-disposition"]
        assert response.content.startswith(b"%PDF")

    def test_pdf_download_with_non_latin_label(self, client, headers_a):
        created = _create(client, headers_a, label="发票-001").json()["data"]

        response = client.get(f"/api/facturas/{created['id']}/pdf", headers=headers_a)

        assert response.status_code == 200
        disposition = response.headers["content-disposition"]
        assert 'filename="factura___-001.pdf"' in disposition
        assert "filename*=UTF-8''factura_%E5%8F%91%E7%A5%A8-001.pdf" in disposition
        assert response.content.startswith(b"%PDF")


def test_health_and_root(client):
    assert client.get("/health").json()["status"] == "healthy"
    root = client.get("/")
    assert root.status_code == 200
    assert "X-Request-ID" in root.headers


def test_request_id_is_echoed_when_well_formed(client):
    response = client.get("/health", headers={"X-Request-ID": "req-42.a_b"})
    assert response.headers["X-Request-ID"] == "req-42.a_b"


def test_malformed_request_id_is_replaced(client):
    for bad in ("x" * 65, "id with spaces", "id;injected=1"):
        response = client.get("/health", headers={"X-Request-ID": bad})
        request_id = response.headers["X-Request-ID"]
        assert request_id != bad
        assert len(request_id) == 12
