"""
Store setting tests.

The setting is a singleton: readers get defaults until the first PUT
creates row 1, and later PUTs replace it.
"""

import pytest

from sinari.models import StoreSetting, DEFAULT_STORE_SETTING

from conftest import reload


SETTING = {
    "store_name": "Sinari Cell Bintaro",
    "store_address": "Jl. Bintaro Utama 9",
    "store_phone": "081298765432",
    "store_email": "halo@sinari.test",
    "store_website": "https://sinari.test",
    "warranty_text": "Garansi 14 hari.",
    "payment_info": "BCA 000111222",
}


def test_defaults_before_first_save(client, db_session, admin_headers):
    resp = client.get("/api/store-setting", headers=admin_headers)

    assert resp.status_code == 200
    data = resp.json["data"]
    assert data["id"] == 1
    assert data["store_name"] == DEFAULT_STORE_SETTING["store_name"]
    assert StoreSetting.query.count() == 0


def test_put_creates_then_replaces(client, db_session, owner_headers):
    resp = client.put("/api/store-setting", json=SETTING, headers=owner_headers)
    assert resp.status_code == 200
    assert resp.json["data"]["store_name"] == "Sinari Cell Bintaro"

    replacement = dict(SETTING, store_name="Sinari Cell Ciputat", store_email="", store_website="")
    resp = client.put("/api/store-setting", json=replacement, headers=owner_headers)

    assert resp.status_code == 200
    setting = reload(StoreSetting, 1)
    assert setting.store_name == "Sinari Cell Ciputat"
    assert setting.store_email is None
    assert setting.store_website is None
    assert StoreSetting.query.count() == 1


def test_admin_reads_but_cannot_write(client, db_session, admin_headers):
    assert client.put("/api/store-setting", json=SETTING, headers=admin_headers).status_code == 403


def test_put_requires_all_fields(client, db_session, owner_headers):
    payload = {k: v for k, v in SETTING.items() if k != "payment_info"}
    resp = client.put("/api/store-setting", json=payload, headers=owner_headers)

    assert resp.status_code == 400
    assert "payment_info" in resp.json["errors"]


@pytest.mark.parametrize("patch", [
    {"store_phone": "12345"},
    {"store_phone": "0712345678"},
    {"store_email": "not-an-email"},
    {"store_website": "ftp://sinari.test"},
])
def test_invalid_values(client, db_session, owner_headers, patch):
    resp = client.put("/api/store-setting", json=dict(SETTING, **patch), headers=owner_headers)
    assert resp.status_code == 400
