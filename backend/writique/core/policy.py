# writique/core/policy.py
"""
Authorization rules applied after a request has been authenticated.
"""
import logging
from dataclasses import dataclass
from typing import Literal

from writique.core import errors
from writique.core.identity import Principal
from writique.models.post import Post
from writique.models.user import User

logger = logging.getLogger(__name__)

ActingAs = Literal["owner", "admin"]


@dataclass
class AuthContext:
    """
    Result of the auth pipeline for one request: the verified principal and
    the local user it resolved to. Handlers receive it as an explicit value.
    """
    principal: Principal
    user: User

    @property
    def subject_id(self) -> str:
        return self.principal.subject_id

    @property
    def is_admin(self) -> bool:
        return self.user.is_admin


def require_role_admin(ctx: AuthContext) -> None:
    """Role policy: only admins pass."""
    if not ctx.is_admin:
        logger.warning("Admin-only access denied for %s", ctx.subject_id)
        raise errors.AuthorizationError("FORBIDDEN_ADMIN_ONLY", "Admin access required")


def ensure_owner_or_admin(post: Post, ctx: AuthContext) -> ActingAs:
    """
    Ownership-or-admin policy for an already loaded post.

    Returns how the caller is acting; admin wins when an admin edits their
    own post.
    """
    if ctx.is_admin:
        return "admin"
    if post.author_external_id == ctx.subject_id:
        return "owner"
    logger.warning("Post %s: %s is neither owner nor admin", post.id, ctx.subject_id)
    raise errors.AuthorizationError("FORBIDDEN_NOT_OWNER", "You can only modify your own posts")
