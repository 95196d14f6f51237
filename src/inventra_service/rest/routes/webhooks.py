"""Inbound payment-provider webhook."""

from __future__ import annotations

import hmac

import structlog
from fastapi import APIRouter, Header
from fastapi.responses import JSONResponse

from inventra_service.db.deps import SessionDep
from inventra_service.errors import AuthenticationRequired, ValidationError
from inventra_service.rest.schemas import PaymentEvent, WebhookResponse
from inventra_service.services.billing import apply_payment_event
from inventra_service.settings import settings

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/webhooks")


def _check_secret(provided: str | None) -> None:
    if not settings.webhook_secret:
        return
    if not provided or not hmac.compare_digest(provided.encode(), settings.webhook_secret.encode()):
        log.warning("webhook_secret_mismatch")
        raise AuthenticationRequired("Invalid webhook secret")


@router.post("/payments", response_model=WebhookResponse)
async def payment_webhook(
    event: PaymentEvent,
    session: SessionDep,
    x_webhook_secret: str | None = Header(default=None),
):
    """Apply a membership lifecycle event. Unmatched events are acknowledged with ``applied: false``."""
    _check_secret(x_webhook_secret)
    try:
        result = await apply_payment_event(session, event.model_dump())
    except ValidationError as exc:
        return JSONResponse(status_code=400, content={"detail": exc.message, "code": exc.code})
    return WebhookResponse.model_validate(result)
