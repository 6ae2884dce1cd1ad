import logging
import secrets
from typing import Any

from hookguard.db import models, schemas
from hookguard.schemas.idempotency import DedupKey
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def create_tenant(db: Session, data: schemas.TenantCreate) -> models.Tenant:
    token = secrets.token_urlsafe(16)
    tenant = models.Tenant(name=data.name, token=token)
    db.add(tenant)
    db.commit()
    db.refresh(tenant)
    return tenant


def get_tenant_by_token(db: Session, token: str) -> models.Tenant | None:
    return db.query(models.Tenant).filter_by(token=token).first()


def get_event_by_key(db: Session, tenant_id: int, key: str) -> models.Event | None:
    return (
        db.query(models.Event)
        .filter_by(tenant_id=tenant_id, idempotency_key=key)
        .first()
    )


def record_event(
    db: Session,
    tenant_id: int,
    provider: str,
    dedup_key: DedupKey,
    sha256: str,
    payload: Any,
) -> tuple[models.Event, bool]:
    """
    Store a delivery unless its dedup key was already seen for this tenant.

    Returns the stored event and whether it was created by this call.
    """
    existing = get_event_by_key(db, tenant_id, dedup_key.key)
    if existing:
        return existing, False

    event = models.Event(
        tenant_id=tenant_id,
        provider=provider,
        idempotency_key=dedup_key.key,
        key_source=dedup_key.source,
        sha256=sha256,
        payload=payload,
    )
    db.add(event)
    try:
        db.commit()
    except IntegrityError:
        # Lost an insert race against a concurrent retry of the same delivery.
        db.rollback()
        logger.info(f"Concurrent insert for key {dedup_key.key}, treating as duplicate")
        existing = get_event_by_key(db, tenant_id, dedup_key.key)
        if existing is None:
            raise
        return existing, False
    db.refresh(event)
    return event, True


def list_events(db: Session, tenant_id: int, limit: int = 100):
    return (
        db.query(models.Event)
        .filter_by(tenant_id=tenant_id)
        .order_by(models.Event.created_at.desc(), models.Event.id.desc())
        .limit(limit)
        .all()
    )
