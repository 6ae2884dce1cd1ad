import hashlib
import logging
from typing import Any

from hookguard.idempotency.extractors import extract_identifier
from hookguard.schemas.idempotency import DedupKey

logger = logging.getLogger(__name__)


def content_fingerprint(raw_body: bytes) -> str:
    return hashlib.sha256(raw_body).hexdigest()


def build_dedup_key(provider: str, endpoint: str, identifier: str) -> str:
    """Scope a provider identifier to the receiving endpoint."""
    return f"{endpoint}:{provider}:{identifier}"


def resolve_dedup_key(
    provider: str, endpoint: str, payload: Any, raw_body: bytes
) -> DedupKey:
    """
    Build the dedup key for a delivery, falling back to a hash of the raw body
    when the provider identifier cannot be derived.
    """
    result = extract_identifier(provider, payload)
    if result.available:
        return DedupKey(
            key=build_dedup_key(provider, endpoint, result.identifier),
            source="provider",
        )

    digest = content_fingerprint(raw_body)
    logger.info(f"Falling back to content hash for {provider} delivery: {digest}")
    return DedupKey(
        key=build_dedup_key(provider, endpoint, f"sha256:{digest}"),
        source="content",
    )
