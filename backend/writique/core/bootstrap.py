# writique/core/bootstrap.py
"""
Bootstrap module for application initialization.
Promotes configured admin accounts that were provisioned before they were
added to the allow-list.
"""
import logging
from typing import Iterable

from writique.models.user import User, UserRole

logger = logging.getLogger(__name__)


async def promote_bootstrap_admins(admin_ids: Iterable[str]) -> int:
    """
    Give the admin role to existing users listed in BOOTSTRAP_ADMIN_IDS.

    Users that have not signed in yet are handled at provisioning time, so
    only rows that already exist are touched here. Returns the number of
    users promoted.
    """
    ids = [i for i in admin_ids if i]
    if not ids:
        logger.info("[bootstrap] No BOOTSTRAP_ADMIN_IDS configured -> skip admin promotion.")
        return 0

    promoted = 0
    for user in await User.filter(external_id__in=ids).exclude(role=UserRole.ADMIN):
        user.role = UserRole.ADMIN
        await user.save()
        promoted += 1
        logger.warning("[bootstrap] Promoted user to admin -> external_id=%s id=%s", user.external_id, user.id)
    return promoted
