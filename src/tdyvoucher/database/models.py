"""SQLAlchemy models for the tdyvoucher rate table."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Date,
    Index,
    CheckConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, sessionmaker, Session

Base = declarative_base()


class PerDiemRate(Base):
    """Effective-dated per-diem rate row for one locality."""

    __tablename__ = "per_diem_rates"

    id = Column(Integer, primary_key=True)
    locality = Column(String, nullable=False)
    effective_start = Column(Date, nullable=False)
    effective_end = Column(Date, nullable=True)
    mie_rate_cents = Column(Integer, nullable=False)
    lodging_cap_cents = Column(Integer, nullable=False)
    mileage_rate_cents = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (
        Index("ix_per_diem_rates_locality_start", "locality", "effective_start"),
        CheckConstraint(
            "mie_rate_cents >= 0 AND lodging_cap_cents >= 0 AND mileage_rate_cents >= 0",
            name="ck_per_diem_rates_non_negative",
        ),
    )


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Rate lookups for one trip may run on several worker threads
        connect_args["check_same_thread"] = False
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
