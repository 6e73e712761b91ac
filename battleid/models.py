from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, SmallInteger, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from battleid.db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Operative(Base):
    __tablename__ = "battle_ids"
    __table_args__ = (
        CheckConstraint(
            "strikes_level IN ('0', '1', '2', '3', 'exterminato')",
            name="ck_battle_ids_strikes_level",
        ),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    callsign: Mapped[str | None] = mapped_column(Text, nullable=True)
    role: Mapped[str | None] = mapped_column(Text, nullable=True)
    rank: Mapped[str | None] = mapped_column(Text, nullable=True)
    specialty: Mapped[str | None] = mapped_column(Text, nullable=True)
    ethnicity: Mapped[str | None] = mapped_column(Text, nullable=True)
    dob: Mapped[date | None] = mapped_column(Date, nullable=True)
    strikes_level: Mapped[str | None] = mapped_column(String(20), default="0", server_default="0")
    commendations_count: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0, server_default="0")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str | None] = mapped_column(Text, default="active", server_default="active")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), index=True)

    commendations = relationship("Commendation", back_populates="operative", passive_deletes=True)
    rank_changes = relationship("RankChange", back_populates="operative", passive_deletes=True)
    awards = relationship("AwardGrant", back_populates="operative", passive_deletes=True)


class Commendation(Base):
    __tablename__ = "commendations"
    __table_args__ = (
        CheckConstraint("level IN (1, 2, 3)", name="ck_commendations_level"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    battle_id: Mapped[int] = mapped_column(ForeignKey("battle_ids.id", ondelete="CASCADE"), nullable=False, index=True)
    level: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    operative = relationship("Operative", back_populates="commendations")


class RankChange(Base):
    __tablename__ = "rank_changes"
    __table_args__ = (
        CheckConstraint("change_type IN ('promotion', 'demotion')", name="ck_rank_changes_change_type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    battle_id: Mapped[int] = mapped_column(ForeignKey("battle_ids.id", ondelete="CASCADE"), nullable=False, index=True)
    change_type: Mapped[str] = mapped_column(String(20), nullable=False)
    from_rank: Mapped[str | None] = mapped_column(Text, nullable=True)
    to_rank: Mapped[str | None] = mapped_column(Text, nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    operative = relationship("Operative", back_populates="rank_changes")


class AwardCatalogEntry(Base):
    __tablename__ = "awards_catalog"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str | None] = mapped_column(Text, nullable=True, unique=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    icon_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    grants = relationship("AwardGrant", back_populates="award", passive_deletes="all")


class AwardGrant(Base):
    __tablename__ = "awards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    battle_id: Mapped[int] = mapped_column(ForeignKey("battle_ids.id", ondelete="CASCADE"), nullable=False, index=True)
    award_id: Mapped[int] = mapped_column(ForeignKey("awards_catalog.id", ondelete="RESTRICT"), nullable=False, index=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    granted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), index=True)

    operative = relationship("Operative", back_populates="awards")
    award = relationship("AwardCatalogEntry", back_populates="grants")
