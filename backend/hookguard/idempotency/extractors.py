"""
Provider-specific identifier extraction for webhook idempotency.

Each rule takes a decoded webhook body and returns the identifier a provider
reuses when it retries the same delivery. Rules never raise on malformed
input; a missing or wrongly typed field yields an unavailable result.
"""
import enum
import logging
from types import MappingProxyType
from typing import Any, Callable

from hookguard.schemas.idempotency import ExtractionResult

logger = logging.getLogger(__name__)

Extractor = Callable[[Any], ExtractionResult]


class Provider(str, enum.Enum):
    SLACK = "slack"
    TWILIO = "twilio"
    TWILIO_VOICE = "twilio_voice"
    STRIPE = "stripe"
    HUBSPOT = "hubspot"
    LINEAR = "linear"
    JIRA = "jira"
    MICROSOFT_TEAMS = "microsoft-teams"
    AIRTABLE = "airtable"


# ---------- accessors ----------
def _field(payload: Any, *path: str) -> Any:
    """Walk nested mappings, returning None as soon as a level is missing."""
    node = payload
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def _text(value: Any) -> str | None:
    """Render a scalar id; empty strings, bools and containers are not ids."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value:
        return value
    return None


def _first_text(payload: Any, *candidates: str) -> str | None:
    for name in candidates:
        value = _text(_field(payload, name))
        if value is not None:
            return value
    return None


def _first_element(payload: Any) -> Any:
    if isinstance(payload, list) and payload:
        return payload[0]
    return None


# ---------- rules ----------
def extract_slack_identifier(payload: Any) -> ExtractionResult:
    """
    Slack Events API: ``event_id`` is globally unique and repeated on retries.
    Payloads without it (url_verification, interactivity) have no safe key.
    """
    event_id = _text(_field(payload, "event_id"))
    if event_id is None:
        logger.debug(
            f"Slack payload without event_id (type={_field(payload, 'type')!r})"
        )
    return ExtractionResult.of(event_id)


def extract_twilio_identifier(payload: Any) -> ExtractionResult:
    # Messaging webhooks carry MessageSid, voice webhooks CallSid.
    return ExtractionResult.of(_first_text(payload, "MessageSid", "CallSid"))


def extract_stripe_identifier(payload: Any) -> ExtractionResult:
    if _field(payload, "object") != "event":
        return ExtractionResult.unavailable()
    return ExtractionResult.of(_text(_field(payload, "id")))


def extract_hubspot_identifier(payload: Any) -> ExtractionResult:
    """
    HubSpot batches notifications into a top-level array. Only the first
    notification's ``eventId`` keys the delivery.
    """
    return ExtractionResult.of(_text(_field(_first_element(payload), "eventId")))


def extract_linear_identifier(payload: Any) -> ExtractionResult:
    action = _text(_field(payload, "action"))
    resource_id = _text(_field(payload, "data", "id"))
    if action is None or resource_id is None:
        return ExtractionResult.unavailable()
    return ExtractionResult.of(f"{action}:{resource_id}")


def extract_jira_identifier(payload: Any) -> ExtractionResult:
    webhook_event = _text(_field(payload, "webhookEvent"))
    if webhook_event is None:
        return ExtractionResult.unavailable()
    resource_id = _text(_field(payload, "issue", "id")) or _text(
        _field(payload, "project", "id")
    )
    if resource_id is None:
        return ExtractionResult.unavailable()
    return ExtractionResult.of(f"{webhook_event}:{resource_id}")


def extract_microsoft_teams_identifier(payload: Any) -> ExtractionResult:
    """
    Graph change notifications arrive as ``{"value": [...]}``; the first
    notification's subscription and resource ids key the delivery.
    """
    notification = _first_element(_field(payload, "value"))
    subscription_id = _text(_field(notification, "subscriptionId"))
    resource_id = _text(_field(notification, "resourceData", "id"))
    if subscription_id is None or resource_id is None:
        return ExtractionResult.unavailable()
    return ExtractionResult.of(f"{subscription_id}:{resource_id}")


def extract_airtable_identifier(payload: Any) -> ExtractionResult:
    cursor = _field(payload, "cursor")
    if not isinstance(cursor, str):
        return ExtractionResult.unavailable()
    return ExtractionResult.of(cursor)


# ---------- registry ----------
PROVIDER_EXTRACTORS: "MappingProxyType[Provider, Extractor]" = MappingProxyType(
    {
        Provider.SLACK: extract_slack_identifier,
        Provider.TWILIO: extract_twilio_identifier,
        Provider.TWILIO_VOICE: extract_twilio_identifier,
        Provider.STRIPE: extract_stripe_identifier,
        Provider.HUBSPOT: extract_hubspot_identifier,
        Provider.LINEAR: extract_linear_identifier,
        Provider.JIRA: extract_jira_identifier,
        Provider.MICROSOFT_TEAMS: extract_microsoft_teams_identifier,
        Provider.AIRTABLE: extract_airtable_identifier,
    }
)


def registered_providers() -> list[str]:
    return [provider.value for provider in PROVIDER_EXTRACTORS]


def get_extractor(provider_name: str) -> Extractor | None:
    try:
        provider = Provider(provider_name)
    except ValueError:
        return None
    return PROVIDER_EXTRACTORS.get(provider)


def extract_identifier(provider_name: str, payload: Any) -> ExtractionResult:
    """
    Derive the idempotency identifier for a decoded webhook body.

    Returns an unavailable result for empty or non-structured payloads and
    for providers without a registered rule.
    """
    if not isinstance(payload, (dict, list)) or not payload:
        return ExtractionResult.unavailable()

    extractor = get_extractor(provider_name)
    if extractor is None:
        logger.debug(f"No identifier extractor registered for {provider_name!r}")
        return ExtractionResult.unavailable()

    try:
        result = extractor(payload)
    except Exception:
        logger.exception(f"Identifier extractor for {provider_name!r} failed")
        return ExtractionResult.unavailable()

    if result.available:
        logger.info(
            f"Extracted {provider_name} identifier for idempotency: "
            f"{result.identifier}"
        )
    else:
        body_keys = list(payload) if isinstance(payload, dict) else []
        logger.warning(
            f"No {provider_name} identifier found for idempotency "
            f"(body keys: {body_keys})"
        )
    return result
