# writique/core/provisioning.py
"""
Local user provisioning.

Two entry points keep the user directory in step with the identity provider:
- `resolve_user`: request path, look up the caller and provision on first sight
- `handle_identity_event`: webhook path, apply user.created/updated/deleted

Both share `provision_user`, which relies on the unique index on
`users.external_id` so that concurrent first logins end with one row.
"""
import logging
from typing import Any, Iterable

from tortoise.exceptions import IntegrityError
from tortoise.exceptions import ValidationError as FieldValidationError

from writique.core import errors
from writique.core.identity import IdentityProfile, IdentityVerifier, profile_from_payload
from writique.models.favorite import Favorite
from writique.models.user import User, UserRole

logger = logging.getLogger(__name__)

EVENT_USER_CREATED = "user.created"
EVENT_USER_UPDATED = "user.updated"
EVENT_USER_DELETED = "user.deleted"


def initial_role(external_id: str, bootstrap_admin_ids: Iterable[str]) -> UserRole:
    return UserRole.ADMIN if external_id in set(bootstrap_admin_ids) else UserRole.USER


def _placeholder_email(external_id: str) -> str:
    # email is unique and required; accounts without a primary address still need one
    return f"no-email+{external_id}@writique.invalid"


async def provision_user(profile: IdentityProfile, bootstrap_admin_ids: Iterable[str]) -> User:
    """
    Create the local user for `profile` unless it already exists.

    When a concurrent request wins the insert race, the unique index rejects
    this insert and the winner's row is returned instead.

    Raises:
        errors.ConflictError: the email is already taken by another account
    """
    existing = await User.get_or_none(external_id=profile.external_id)
    if existing:
        return existing

    role = initial_role(profile.external_id, bootstrap_admin_ids)
    try:
        user = await User.create(
            external_id=profile.external_id,
            email=profile.email or _placeholder_email(profile.external_id),
            first_name=profile.first_name,
            last_name=profile.last_name,
            avatar_url=profile.avatar_url,
            role=role,
        )
    except FieldValidationError as e:
        logger.warning("Provisioning %s rejected: %s", profile.external_id, e)
        raise errors.ValidationError("INVALID_PROFILE", "Identity profile has invalid fields")
    except IntegrityError:
        winner = await User.get_or_none(external_id=profile.external_id)
        if winner is None:
            logger.error("Provisioning %s collided on email %s", profile.external_id, profile.email)
            raise errors.ConflictError("EMAIL_EXISTS", "Email already registered to another account")
        logger.info("Provisioning race for %s resolved to existing user %s", profile.external_id, winner.id)
        return winner

    logger.info("Provisioned user id=%s external_id=%s role=%s", user.id, user.external_id, role.value)
    return user


async def resolve_user(
    subject_id: str,
    verifier: IdentityVerifier,
    bootstrap_admin_ids: Iterable[str],
) -> User:
    """
    Return the local user for a verified subject, provisioning it from the
    identity provider's profile on first sight.

    Raises:
        errors.UpstreamError: the profile could not be fetched; nothing is stored
    """
    user = await User.get_or_none(external_id=subject_id)
    if user:
        return user

    profile = await verifier.get_profile(subject_id)
    # The token's subject is authoritative over whatever id the profile echoes
    profile.external_id = subject_id
    return await provision_user(profile, bootstrap_admin_ids)


def _present_fields(profile: IdentityProfile) -> dict[str, Any]:
    """Profile fields that carry a value; absent or empty ones are dropped."""
    candidates = {
        "email": profile.email,
        "first_name": profile.first_name,
        "last_name": profile.last_name,
        "avatar_url": profile.avatar_url,
    }
    return {key: value for key, value in candidates.items() if value not in (None, "")}


async def apply_profile_update(profile: IdentityProfile) -> str:
    user = await User.get_or_none(external_id=profile.external_id)
    if not user:
        logger.warning("Webhook: user %s to update not found", profile.external_id)
        return "not_found"

    changes = _present_fields(profile)
    if not changes:
        logger.info("Webhook: user %s has no relevant changes", profile.external_id)
        return "unchanged"

    for key, value in changes.items():
        setattr(user, key, value)
    try:
        await user.save()
    except FieldValidationError as e:
        logger.warning("Webhook: user %s update rejected: %s", profile.external_id, e)
        raise errors.ValidationError("INVALID_PROFILE", "Identity profile has invalid fields")
    logger.info("Webhook: user %s updated (%s)", profile.external_id, ", ".join(sorted(changes)))
    return "updated"


async def remove_user(external_id: str) -> str:
    """Delete the local user and its favorites; authored posts are kept."""
    user = await User.get_or_none(external_id=external_id)
    if not user:
        logger.warning("Webhook: user %s to delete not found", external_id)
        return "not_found"
    await Favorite.filter(user_id=user.id).delete()
    await user.delete()
    logger.info("Webhook: user %s deleted", external_id)
    return "deleted"


async def handle_identity_event(
    event_type: str,
    data: dict[str, Any],
    bootstrap_admin_ids: Iterable[str],
) -> str:
    """
    Apply one verified lifecycle event to the user directory.

    Returns a short outcome label (created, exists, updated, unchanged,
    deleted, not_found, ignored). Unknown event types are ignored.
    """
    external_id = data.get("id")
    if event_type not in (EVENT_USER_CREATED, EVENT_USER_UPDATED, EVENT_USER_DELETED):
        logger.info("Webhook: unhandled event type %s", event_type)
        return "ignored"
    if not external_id:
        logger.error("Webhook: %s event without user id", event_type)
        return "ignored"

    if event_type == EVENT_USER_CREATED:
        existed = await User.filter(external_id=external_id).exists()
        await provision_user(profile_from_payload(data), bootstrap_admin_ids)
        return "exists" if existed else "created"
    if event_type == EVENT_USER_UPDATED:
        return await apply_profile_update(profile_from_payload(data))
    return await remove_user(external_id)
