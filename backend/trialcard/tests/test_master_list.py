import pytest

from .conftest import audit_entries, auth_headers, client, make_user


def _card(pattern_code="PC-100", **extra):
    body = {
        "pattern_code": pattern_code,
        "part_name": "Brake drum",
        "material_grade": "SG 450/10",
        "chemical_composition": {"C": "3.5-3.8", "Si": "2.2-2.6"},
        "tensile": "450",
        "yield": "310",
        "elongation": "10",
        "hardness_surface": "160-210 BHN",
    }
    body.update(extra)
    return body


def test_create_and_list_master_cards(client):
    make_user("methods1", role="Methods", department_id=1)
    headers = auth_headers(client, "methods1")

    resp = client.post("/api/master-list", json=_card(), headers=headers)
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["yield"] == "310"
    assert data["is_active"] is True
    assert [e.action for e in audit_entries(action="Master list created")] == ["Master list created"]

    listed = client.get("/api/master-list", headers=headers).json()["data"]
    assert [c["pattern_code"] for c in listed] == ["PC-100"]


def test_duplicate_pattern_code_rejected(client):
    make_user("methods1", role="Methods", department_id=1)
    headers = auth_headers(client, "methods1")
    client.post("/api/master-list", json=_card(), headers=headers)
    resp = client.post("/api/master-list", json=_card(part_name="Other"), headers=headers)
    assert resp.status_code == 400


def test_mutations_gated_to_methods_department(client):
    make_user("melt", role="HOD", department_id=3)
    headers = auth_headers(client, "melt")
    assert client.post("/api/master-list", json=_card(), headers=headers).status_code == 403
    assert client.get("/api/master-list", headers=headers).status_code == 200


def test_search_toggle_update_and_bulk_delete(client):
    make_user("methods1", role="Methods", department_id=1)
    headers = auth_headers(client, "methods1")
    first = client.post("/api/master-list", json=_card("PC-100"), headers=headers).json()["data"]
    second = client.post("/api/master-list", json=_card("XY-200"), headers=headers).json()["data"]

    found = client.get("/api/master-list/search", params={"pattern_code": "pc-1"}, headers=headers)
    assert [c["pattern_code"] for c in found.json()["data"]] == ["PC-100"]
    assert client.get("/api/master-list/search", headers=headers).status_code == 400

    toggled = client.put(
        "/api/master-list/toggle-status", json={"id": first["id"], "is_active": False}, headers=headers
    )
    assert toggled.status_code == 200
    assert toggled.json()["data"]["is_active"] is False

    updated = client.put(
        f"/api/master-list/{second['id']}", json={"yield": "320", "remarks": "revised"}, headers=headers
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["yield"] == "320"
    assert updated.json()["data"]["tensile"] == "450"

    clash = client.put(f"/api/master-list/{second['id']}", json={"pattern_code": "PC-100"}, headers=headers)
    assert clash.status_code == 400

    missing = client.put("/api/master-list/9999", json={"remarks": "x"}, headers=headers)
    assert missing.status_code == 404

    deleted = client.request(
        "DELETE", "/api/master-list/bulk", json={"ids": [first["id"], second["id"]]}, headers=headers
    )
    assert deleted.status_code == 200
    assert deleted.json()["data"] == {"deleted": 2}
    assert client.get("/api/master-list", headers=headers).json()["data"] == []
    assert len(audit_entries(action="Master list deleted")) == 1


@pytest.mark.parametrize("field", ["part_name", "pattern_code"])
def test_update_cannot_clear_required_columns(client, field):
    make_user("methods1", role="Methods", department_id=1)
    headers = auth_headers(client, "methods1")
    card = client.post("/api/master-list", json=_card("PC-100"), headers=headers).json()["data"]

    resp = client.put(f"/api/master-list/{card['id']}", json={field: None}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["success"] is False

    listed = client.get("/api/master-list", headers=headers).json()["data"]
    assert listed[0][field] == card[field]
    assert audit_entries(action="Master list updated") == []
