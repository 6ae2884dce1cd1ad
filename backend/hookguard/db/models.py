from datetime import timezone as tz
from datetime import datetime

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utc_now():
    return datetime.now(tz.utc)


class Tenant(Base):
    __tablename__ = "tenants"
    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    token = Column(String, unique=True, nullable=False)

    events = relationship("Event", back_populates="tenant")


class Event(Base):
    __tablename__ = "events"
    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"))
    provider = Column(String, nullable=False)
    idempotency_key = Column(String, nullable=False)
    key_source = Column(String, nullable=False)  # "provider" or "content"
    sha256 = Column(String, nullable=False)
    payload = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    tenant = relationship("Tenant", back_populates="events")

    __table_args__ = (
        UniqueConstraint("tenant_id", "idempotency_key", name="uq_event_idempotency"),
    )
