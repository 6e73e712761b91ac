from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import date, datetime

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from sqlalchemy import delete, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from battleid.bootstrap import BootstrapResult, run_bootstrap
from battleid.config import Settings, load_settings
from battleid.db import Store, get_db
from battleid.logger import get_logger, init_logging
from battleid.models import AwardCatalogEntry, AwardGrant, Commendation, Operative, RankChange

logger = get_logger(__name__)


class OperativePayload(BaseModel):
    name: str
    callsign: str | None = None
    role: str | None = None
    rank: str | None = None
    specialty: str | None = None
    ethnicity: str | None = None
    dob: date | None = None
    strikes_level: str | None = None
    notes: str | None = None
    avatar: str | None = None
    status: str | None = None


class OperativeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    callsign: str | None = None
    role: str | None = None
    rank: str | None = None
    specialty: str | None = None
    ethnicity: str | None = None
    dob: date | None = None
    strikes_level: str | None = None
    commendations_count: int
    notes: str | None = None
    avatar: str | None = None
    status: str | None = None
    created_at: datetime


class CatalogEntryPayload(BaseModel):
    code: str | None = None
    name: str
    description: str | None = None
    icon_url: str | None = None


class CatalogEntryOut(CatalogEntryPayload):
    model_config = ConfigDict(from_attributes=True)

    id: int


class AwardGrantPayload(BaseModel):
    award_id: int
    notes: str | None = None


class AwardGrantOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    battle_id: int
    award_id: int
    notes: str | None = None
    granted_at: datetime


class AwardGrantDetailOut(AwardGrantOut):
    award_name: str
    icon_url: str | None = None


class RankChangePayload(BaseModel):
    change_type: str
    from_rank: str | None = None
    to_rank: str | None = None
    reason: str | None = None


class RankChangeOut(RankChangePayload):
    model_config = ConfigDict(from_attributes=True)

    id: int
    battle_id: int
    created_at: datetime


class CommendationPayload(BaseModel):
    level: int
    notes: str | None = None


class CommendationOut(CommendationPayload):
    model_config = ConfigDict(from_attributes=True)

    id: int
    battle_id: int
    created_at: datetime


def store_error_message(exc: Exception) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    init_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = Store(settings.database_url, settings.database_sslmode)
        store.open()
        app.state.store = store
        app.state.bootstrap = run_bootstrap(store.engine, repair_sequences=settings.repair_sequences)
        try:
            yield
        finally:
            store.close()

    app = FastAPI(title="RRC BattleID API", lifespan=lifespan)
    app.state.settings = settings
    app.state.bootstrap = BootstrapResult(ready=False, error="Bootstrap has not run")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    allowed_origins = frozenset(settings.allowed_origins)

    @app.middleware("http")
    async def reject_unknown_origins(request: Request, call_next):
        origin = request.headers.get("origin")
        if origin and origin not in allowed_origins:
            logger.warning("Rejected %s %s from origin %s", request.method, request.url.path, origin)
            return JSONResponse(status_code=403, content={"error": f"CORS blocked for origin: {origin}"})
        return await call_next(request)

    # sqlite3 raises OverflowError unwrapped for integers wider than 64 bits.
    @app.exception_handler(OverflowError)
    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: Exception) -> JSONResponse:
        message = store_error_message(exc)
        logger.error("Store failure on %s %s: %s", request.method, request.url.path, message)
        return JSONResponse(status_code=500, content={"error": message})

    register_routes(app)
    return app


def register_routes(app: FastAPI) -> None:
    @app.get("/")
    def health(db: Session = Depends(get_db)) -> dict:
        try:
            now = db.execute(text("SELECT CURRENT_TIMESTAMP")).scalar_one()
        except SQLAlchemyError as exc:
            return {"status": "DB not connected", "db": False, "error": store_error_message(exc)}
        return {"status": "RRC BattleID API running", "db": True, "time": now}

    @app.get("/ready")
    def ready(request: Request) -> JSONResponse:
        result: BootstrapResult = request.app.state.bootstrap
        content = {"ready": result.ready, "next_id": result.next_id, "error": result.error}
        return JSONResponse(status_code=200 if result.ready else 503, content=content)

    @app.get("/api/battle", response_model=list[OperativeOut])
    def list_operatives(db: Session = Depends(get_db)) -> list[Operative]:
        return list(db.scalars(select(Operative).order_by(Operative.created_at.desc(), Operative.id.desc())).all())

    @app.get("/api/battle/{operative_id}", response_model=OperativeOut | None)
    def get_operative(operative_id: int, db: Session = Depends(get_db)) -> Operative | None:
        return db.get(Operative, operative_id)

    @app.post("/api/battle", response_model=OperativeOut)
    def create_operative(payload: OperativePayload, db: Session = Depends(get_db)) -> Operative:
        values = payload.model_dump()
        values["strikes_level"] = payload.strikes_level or "0"
        values["status"] = payload.status or "active"
        operative = Operative(**values)
        db.add(operative)
        db.commit()
        db.refresh(operative)
        return operative

    @app.put("/api/battle/{operative_id}", response_model=OperativeOut | None)
    def replace_operative(operative_id: int, payload: OperativePayload, db: Session = Depends(get_db)) -> Operative | None:
        operative = db.get(Operative, operative_id)
        if operative is None:
            return None
        for field, value in payload.model_dump().items():
            setattr(operative, field, value)
        db.commit()
        db.refresh(operative)
        return operative

    @app.delete("/api/battle/{operative_id}")
    def delete_operative(operative_id: int, db: Session = Depends(get_db)) -> dict[str, bool]:
        db.execute(delete(Operative).where(Operative.id == operative_id))
        db.commit()
        return {"success": True}

    @app.get("/api/awards/catalog", response_model=list[CatalogEntryOut])
    def list_catalog(db: Session = Depends(get_db)) -> list[AwardCatalogEntry]:
        return list(db.scalars(select(AwardCatalogEntry).order_by(AwardCatalogEntry.id.asc())).all())

    @app.post("/api/awards/catalog", response_model=CatalogEntryOut)
    def create_catalog_entry(payload: CatalogEntryPayload, db: Session = Depends(get_db)) -> AwardCatalogEntry:
        entry = AwardCatalogEntry(**payload.model_dump())
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry

    @app.post("/api/awards/{battle_id}", response_model=AwardGrantOut)
    def grant_award(battle_id: int, payload: AwardGrantPayload, db: Session = Depends(get_db)) -> AwardGrant:
        grant = AwardGrant(battle_id=battle_id, award_id=payload.award_id, notes=payload.notes)
        db.add(grant)
        db.commit()
        db.refresh(grant)
        return grant

    @app.get("/api/awards/{battle_id}", response_model=list[AwardGrantDetailOut])
    def list_awards(battle_id: int, db: Session = Depends(get_db)) -> list[AwardGrantDetailOut]:
        rows = db.execute(
            select(AwardGrant, AwardCatalogEntry.name, AwardCatalogEntry.icon_url)
            .join(AwardCatalogEntry, AwardGrant.award_id == AwardCatalogEntry.id)
            .where(AwardGrant.battle_id == battle_id)
            .order_by(AwardGrant.granted_at.desc(), AwardGrant.id.desc())
        ).all()
        return [
            AwardGrantDetailOut(
                **AwardGrantOut.model_validate(grant).model_dump(),
                award_name=award_name,
                icon_url=icon_url,
            )
            for grant, award_name, icon_url in rows
        ]

    @app.post("/api/battle/{operative_id}/rank-change", response_model=RankChangeOut)
    def log_rank_change(operative_id: int, payload: RankChangePayload, db: Session = Depends(get_db)) -> RankChange:
        change = RankChange(battle_id=operative_id, **payload.model_dump())
        db.add(change)
        db.commit()
        db.refresh(change)
        return change

    @app.post("/api/battle/{operative_id}/commendation", response_model=CommendationOut)
    def grant_commendation(operative_id: int, payload: CommendationPayload, db: Session = Depends(get_db)) -> Commendation:
        commendation = Commendation(battle_id=operative_id, level=payload.level, notes=payload.notes)
        db.add(commendation)
        db.flush()
        db.execute(
            update(Operative)
            .where(Operative.id == operative_id)
            .values(commendations_count=Operative.commendations_count + 1)
        )
        db.commit()
        db.refresh(commendation)
        return commendation


app = create_app()
