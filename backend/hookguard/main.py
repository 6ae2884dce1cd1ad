import logging
from typing import Any

import sqlalchemy.exc
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import TypeAdapter, ValidationError
from sqlalchemy.orm import Session

from hookguard.core.config import get_settings
from hookguard.db import crud, models, schemas
from hookguard.db.session import SessionLocal
from hookguard.idempotency.extractors import registered_providers
from hookguard.idempotency.keys import content_fingerprint, resolve_dedup_key
from hookguard.middleware.body_size import BodySizeLimitMiddleware
from hookguard.schemas.ingest import IngestResponse

settings = get_settings()
json_body = TypeAdapter(Any)
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="hookguard",
    description="Webhook receiver that drops retried deliveries",
    version="1.0.0",
)

app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_payload_bytes)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup():
    logger.info(f"Idempotency extractors registered for: {registered_providers()}")


# ---------- dependency ----------
def db_session():
    try:
        db: Session = SessionLocal()
        try:
            yield db
        finally:
            db.close()
    except (sqlalchemy.exc.SQLAlchemyError, sqlalchemy.exc.DBAPIError) as e:
        logger.error(f"Database error: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database connection failed",
        )


@app.get("/health", include_in_schema=False)
async def health():
    return {"status": "ok", "providers": registered_providers()}


@app.get("/providers")
async def providers():
    return {"providers": registered_providers()}


# ---------- signup ----------
@app.post("/signup")
def signup(data: schemas.TenantCreate, db: Session = Depends(db_session)):
    tenant = crud.create_tenant(db, data)
    return {
        "tenant": schemas.TenantOut.model_validate(tenant).model_dump(),
        "ingress_url": f"{settings.ingress_base_url}/in/{tenant.token}/{{provider}}",
    }


# ---------- ingress ----------
@app.post("/in/{token}/{provider}", response_model=IngestResponse)
async def ingest_webhook(
    token: str,
    provider: str,
    request: Request,
    db: Session = Depends(db_session),
):
    logger.info(f"Received {provider} webhook for token: {token}")

    raw = await request.body()
    if not raw:
        raise HTTPException(status_code=400, detail="Empty JSON body")

    tenant: models.Tenant | None = crud.get_tenant_by_token(db, token)
    if not tenant:
        raise HTTPException(status_code=404, detail="Not Found")

    try:
        payload = json_body.validate_json(raw)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    dedup_key = resolve_dedup_key(provider, tenant.token, payload, raw)
    event, created = crud.record_event(
        db,
        tenant_id=tenant.id,
        provider=provider,
        dedup_key=dedup_key,
        sha256=content_fingerprint(raw),
        payload=payload,
    )

    if not created:
        logger.info(f"Duplicate {provider} delivery dropped: {dedup_key.key}")
    else:
        logger.info(f"Stored event {event.id} with key {dedup_key.key}")

    return IngestResponse(
        status="received" if created else "duplicate",
        idempotency_key=dedup_key.key,
        key_source=dedup_key.source,
    )


# ---------- events ----------
@app.get("/events/{token}", response_model=list[schemas.EventOut])
def list_events(token: str, limit: int = 100, db: Session = Depends(db_session)):
    tenant = crud.get_tenant_by_token(db, token)
    if not tenant:
        raise HTTPException(status_code=404, detail="Not Found")
    return crud.list_events(db, tenant.id, limit=min(max(limit, 1), 500))
