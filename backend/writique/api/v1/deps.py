# writique/api/v1/deps.py
import logging

from fastapi import Depends, Header, Request
from svix.webhooks import Webhook

from writique.config import settings
from writique.core import errors
from writique.core.identity import IdentityVerifier, Principal
from writique.core.policy import AuthContext, require_role_admin
from writique.core.provisioning import resolve_user
from writique.services.media_relay import MediaRelay

logger = logging.getLogger(__name__)


def _state_dependency(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        logger.error("app.state.%s is not configured", name)
        raise errors.InternalError("SERVER_NOT_CONFIGURED", "Server configuration error")
    return value


def get_identity_verifier(request: Request) -> IdentityVerifier:
    """Identity verifier built at startup from settings."""
    return _state_dependency(request, "identity_verifier")


def get_media_relay(request: Request) -> MediaRelay:
    return _state_dependency(request, "media_relay")


def get_webhook_verifier(request: Request) -> Webhook:
    return _state_dependency(request, "webhook_verifier")


async def verify_token(
    authorization: str | None = Header(default=None),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> Principal:
    """
    Step A of the auth pipeline: verify the bearer token.

    Args:
        authorization: Authorization header value, must be "Bearer <token>"
        verifier: Identity verifier (from dependency)

    Returns:
        Principal: verified subject id and session id

    Raises:
        AuthenticationError (401): AUTH_REQUIRED if the header is missing or
            uses another scheme, AUTH_INVALID_TOKEN for any verification failure
    """
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise errors.AuthenticationError("AUTH_REQUIRED", "Missing credentials")

    try:
        return await verifier.verify(token)
    except Exception as e:
        logger.warning("Token verification failed: %s", e)
        raise errors.AuthenticationError("AUTH_INVALID_TOKEN", "Invalid credentials")


async def get_auth_context(
    principal: Principal = Depends(verify_token),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> AuthContext:
    """
    Step B of the auth pipeline: resolve (or provision) the local user.

    Returns:
        AuthContext: the principal together with its local User row

    Raises:
        UpstreamError (500): the identity provider profile could not be fetched
            for a first-time subject

    Usage:
        @router.get("/protected")
        async def protected_route(ctx: AuthContext = Depends(get_auth_context)):
            return {"user_id": str(ctx.user.id)}
    """
    user = await resolve_user(principal.subject_id, verifier, settings.bootstrap_admin_ids)
    return AuthContext(principal=principal, user=user)


async def require_admin(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
    """
    Role policy on top of `get_auth_context`.

    Raises:
        AuthorizationError (403): FORBIDDEN_ADMIN_ONLY if the user is not an admin
    """
    require_role_admin(ctx)
    return ctx
