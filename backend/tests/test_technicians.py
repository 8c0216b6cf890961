"""
Technician management tests.

Technicians referenced by tickets are deactivated rather than deleted so
ticket history keeps its technician.
"""

import pytest

from sinari.models import Technician
from sinari.services import technician_service
from sinari.services.repair_service import create_service

from conftest import reload


class TestTechnicianCrud:

    def test_create(self, client, db_session, admin_headers):
        resp = client.post("/api/technicians", json={"name": "Joko"}, headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json["data"]["name"] == "Joko"
        assert resp.json["data"]["is_active"] is True

    def test_duplicate_name(self, client, db_session, technician, admin_headers):
        resp = client.post("/api/technicians", json={"name": "Budi"}, headers=admin_headers)
        assert resp.status_code == 409

    def test_missing_name(self, client, db_session, admin_headers):
        resp = client.post("/api/technicians", json={}, headers=admin_headers)
        assert resp.status_code == 400

    def test_update(self, client, db_session, technician, owner_headers):
        resp = client.patch(
            f"/api/technicians/{technician.id}",
            json={"signature_url": "https://cdn/sig.png", "is_active": False},
            headers=owner_headers,
        )
        assert resp.status_code == 200
        assert resp.json["data"]["is_active"] is False
        assert resp.json["data"]["signature_url"] == "https://cdn/sig.png"

    def test_rename_clash(self, client, db_session, technician, admin_headers):
        other = Technician(name="Joko")
        db_session.add(other)
        db_session.commit()

        resp = client.patch(f"/api/technicians/{other.id}", json={"name": "Budi"}, headers=admin_headers)
        assert resp.status_code == 409

    def test_get_missing(self, client, db_session, admin_headers):
        assert client.get("/api/technicians/999", headers=admin_headers).status_code == 404


class TestTechnicianDelete:

    def test_unreferenced_is_removed(self, client, db_session, technician, admin_headers):
        resp = client.delete(f"/api/technicians/{technician.id}", headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json["data"] == "Technician deleted"
        assert reload(Technician, technician.id) is None

    def test_referenced_is_deactivated(self, client, db_session, owner, technician, service_payload, admin_headers):
        create_service(dict(service_payload, technician_id=technician.id), user_id=owner.id)

        resp = client.delete(f"/api/technicians/{technician.id}", headers=admin_headers)

        assert resp.json["data"] == "Technician deactivated"
        assert reload(Technician, technician.id).is_active is False


class TestTechnicianSearch:

    @pytest.fixture
    def roster(self, db_session):
        db_session.add_all([
            Technician(name="Budi", is_active=True),
            Technician(name="Bambang", is_active=False),
            Technician(name="Citra", is_active=True),
        ])
        db_session.commit()

    def test_filters(self, app, roster):
        technicians, paging = technician_service.search_technicians(name="b", is_active=True)
        assert [t.name for t in technicians] == ["Budi"]
        assert paging == {"size": 10, "current_page": 1, "total_page": 1}

    def test_sort_by_name(self, client, roster, admin_headers):
        resp = client.get("/api/technicians?sort_by=name&sort_order=asc", headers=admin_headers)
        assert [t["name"] for t in resp.json["data"]] == ["Bambang", "Budi", "Citra"]

    def test_inactive_only(self, client, roster, admin_headers):
        resp = client.get("/api/technicians?is_active=false", headers=admin_headers)
        assert [t["name"] for t in resp.json["data"]] == ["Bambang"]
