"""
Pydantic schemas for the identity provider webhook.
"""
from pydantic import BaseModel
from typing import Any, Dict

__all__ = ["IdentityEvent", "WebhookAckOut"]


class IdentityEvent(BaseModel):
    """
    Verified lifecycle event body.
    `data` is the provider's user object (or a stub with only `id` on delete).
    """
    type: str
    data: Dict[str, Any] = {}


class WebhookAckOut(BaseModel):
    received: bool
    outcome: str  # created, exists, updated, unchanged, deleted, not_found, ignored
