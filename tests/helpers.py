from __future__ import annotations

from fastapi.testclient import TestClient
from sqlalchemy import inspect
from sqlalchemy.orm import Session

from battleid.models import Operative

EXPECTED_TABLES = {"battle_ids", "commendations", "rank_changes", "awards_catalog", "awards"}


def create_operative(client: TestClient, **fields):
    payload = {"name": "Jan Novak", "callsign": "Hawk"}
    payload.update(fields)
    response = client.post("/api/battle", json=payload)
    assert response.status_code == 200, response.text
    return response.json()


def create_catalog_entry(client: TestClient, code: str, name: str, **fields):
    response = client.post("/api/awards/catalog", json={"code": code, "name": name, **fields})
    assert response.status_code == 200, response.text
    return response.json()


def schema_snapshot(engine) -> dict[str, list[str]]:
    inspector = inspect(engine)
    return {
        table: [column["name"] for column in inspector.get_columns(table)]
        for table in inspector.get_table_names()
        if table != "sqlite_sequence"
    }


def insert_operatives(engine, *ids: int) -> None:
    with Session(engine) as session:
        for operative_id in ids:
            session.add(Operative(id=operative_id, name=f"Imported {operative_id}"))
        session.commit()


def insert_generated(engine) -> int:
    with Session(engine) as session:
        operative = Operative(name="Generated")
        session.add(operative)
        session.commit()
        return operative.id
