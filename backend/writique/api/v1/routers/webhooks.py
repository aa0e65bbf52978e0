# writique/api/v1/routers/webhooks.py
"""
Identity provider webhook.

Clerk delivers user lifecycle events signed with svix. The raw body is
verified before anything is parsed; one failing event answers 500 and the
provider retries it, other deliveries are unaffected.
"""
import logging

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError as PydanticValidationError
from svix.webhooks import Webhook, WebhookVerificationError

from writique.api.v1.deps import get_webhook_verifier
from writique.config import settings
from writique.core import errors
from writique.core.provisioning import handle_identity_event
from writique.schemas.webhook import IdentityEvent, WebhookAckOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

SIGNATURE_HEADERS = ("svix-id", "svix-timestamp", "svix-signature")


@router.post("/provider", response_model=WebhookAckOut)
async def identity_webhook(request: Request, wh: Webhook = Depends(get_webhook_verifier)):
    """
    Receive a signed user lifecycle event.

    Returns:
        WebhookAckOut: `received` plus what was done with the event

    Raises:
        ValidationError (400): a signature header is missing, the signature
            does not verify, the body is not an event, or the user data
            does not fit the directory
        InternalError (500): applying the event failed
    """
    headers = {name: request.headers.get(name) for name in SIGNATURE_HEADERS}
    missing = [name for name, value in headers.items() if not value]
    if missing:
        logger.warning("Webhook rejected: missing headers %s", ", ".join(missing))
        raise errors.ValidationError("WEBHOOK_MISSING_HEADERS", "Missing webhook signature headers")

    body = await request.body()
    try:
        payload = wh.verify(body, headers)
    except WebhookVerificationError as e:
        logger.warning("Webhook rejected: %s", e)
        raise errors.ValidationError("WEBHOOK_INVALID_SIGNATURE", "Invalid webhook signature")

    try:
        event = IdentityEvent.model_validate(payload)
    except PydanticValidationError:
        raise errors.ValidationError("WEBHOOK_INVALID_PAYLOAD", "Malformed webhook event")

    logger.info("Webhook %s received (svix-id=%s)", event.type, headers["svix-id"])
    try:
        outcome = await handle_identity_event(event.type, event.data, settings.bootstrap_admin_ids)
    except errors.WritiqueError:
        raise
    except Exception:
        logger.exception("Webhook %s (svix-id=%s) processing failed", event.type, headers["svix-id"])
        raise errors.InternalError("WEBHOOK_PROCESSING_FAILED", "Webhook processing failed")

    return {"received": True, "outcome": outcome}
