from __future__ import annotations

import pytest
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError

from battleid.models import AwardCatalogEntry
from helpers import create_catalog_entry, create_operative


def test_catalog_is_listed_ascending_by_id(client):
    first = create_catalog_entry(client, "MED", "Medal of Valor", icon_url="/icons/valor.png")
    second = create_catalog_entry(client, "CRS", "Red Cross", description="Field medicine")
    listed = client.get("/api/awards/catalog").json()
    assert [row["id"] for row in listed] == [first["id"], second["id"]]
    assert listed[0] == {
        "id": first["id"],
        "code": "MED",
        "name": "Medal of Valor",
        "description": None,
        "icon_url": "/icons/valor.png",
    }


def test_duplicate_catalog_code_is_a_store_failure(client):
    create_catalog_entry(client, "MED", "Medal of Valor")
    r = client.post("/api/awards/catalog", json={"code": "MED", "name": "Copy"})
    assert r.status_code == 500
    assert "error" in r.json()


def test_grant_returns_linking_row(client):
    operative = create_operative(client)
    award = create_catalog_entry(client, "MED", "Medal of Valor")
    r = client.post(f"/api/awards/{operative['id']}", json={"award_id": award["id"], "notes": "Operation Dawn"})
    assert r.status_code == 200
    grant = r.json()
    assert grant["battle_id"] == operative["id"]
    assert grant["award_id"] == award["id"]
    assert grant["notes"] == "Operation Dawn"
    assert grant["granted_at"]


def test_grants_are_listed_newest_first_with_catalog_details(client):
    operative = create_operative(client)
    other = create_operative(client, name="Other")
    valor = create_catalog_entry(client, "MED", "Medal of Valor", icon_url="/icons/valor.png")
    cross = create_catalog_entry(client, "CRS", "Red Cross")
    first = client.post(f"/api/awards/{operative['id']}", json={"award_id": valor["id"]}).json()
    second = client.post(f"/api/awards/{operative['id']}", json={"award_id": cross["id"]}).json()
    client.post(f"/api/awards/{other['id']}", json={"award_id": valor["id"]})

    listed = client.get(f"/api/awards/{operative['id']}").json()
    assert [row["id"] for row in listed] == [second["id"], first["id"]]
    assert listed[0]["award_name"] == "Red Cross"
    assert listed[0]["icon_url"] is None
    assert listed[1]["award_name"] == "Medal of Valor"
    assert listed[1]["icon_url"] == "/icons/valor.png"


def test_grant_for_unknown_award_is_a_store_failure(client):
    operative = create_operative(client)
    r = client.post(f"/api/awards/{operative['id']}", json={"award_id": 999})
    assert r.status_code == 500
    assert client.get(f"/api/awards/{operative['id']}").json() == []


def test_catalog_entry_in_use_cannot_be_deleted(client, db):
    operative = create_operative(client)
    award = create_catalog_entry(client, "MED", "Medal of Valor")
    client.post(f"/api/awards/{operative['id']}", json={"award_id": award["id"]})

    with pytest.raises(IntegrityError):
        db.execute(delete(AwardCatalogEntry).where(AwardCatalogEntry.id == award["id"]))
        db.commit()
    db.rollback()
    assert db.get(AwardCatalogEntry, award["id"]) is not None


def test_unused_catalog_entry_can_be_deleted(client, db):
    award = create_catalog_entry(client, "MED", "Medal of Valor")
    db.execute(delete(AwardCatalogEntry).where(AwardCatalogEntry.id == award["id"]))
    db.commit()
    assert client.get("/api/awards/catalog").json() == []
