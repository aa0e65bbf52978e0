# writique/api/v1/routers/users.py
import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from tortoise.exceptions import IntegrityError

from writique.api.v1.deps import get_auth_context
from writique.core.policy import AuthContext
from writique.models.favorite import Favorite
from writique.models.post import Post
from writique.models.user import User
from writique.schemas.user import FavoritesOut, UserOut
from writique.services import posts as post_service
from writique.services.users import user_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


async def _favorite_ids(user: User) -> list[str]:
    """Favorite post ids, oldest first."""
    rows = await Favorite.filter(user=user).order_by("created_at").values_list("post_id", flat=True)
    return [str(pid) for pid in rows]


async def _expand_favorites(ids: list[str]) -> list[dict]:
    # Dangling ids (posts deleted since) simply drop out here
    by_id = {str(p.id): p for p in await Post.filter(id__in=ids)}
    return [post_service.post_to_dict(by_id[pid]) for pid in ids if pid in by_id]


@router.get("/me", response_model=UserOut)
async def get_me(
    populate: Optional[Literal["favorites"]] = Query(default=None),
    ctx: AuthContext = Depends(get_auth_context),
):
    """
    Get the caller's own profile.

    Args:
        populate: "favorites" to expand favorite ids into full posts

    Returns:
        UserOut: profile with `favorites` as ids or as post objects
    """
    favorites = await _favorite_ids(ctx.user)
    if populate == "favorites":
        favorites = await _expand_favorites(favorites)
    return {**user_to_dict(ctx.user), "favorites": favorites}


@router.post("/me/favorites/{post_id}", response_model=FavoritesOut)
async def add_favorite(post_id: str, ctx: AuthContext = Depends(get_auth_context)):
    """
    Add a post to the caller's favorites. Adding twice is a no-op.
    The post itself is not looked up; only the id format is checked.
    """
    pid = post_service.parse_post_id(post_id)
    try:
        _, created = await Favorite.get_or_create(user=ctx.user, post_id=pid)
    except IntegrityError:
        # concurrent add of the same favorite, the other request stored it
        created = False
    if created:
        logger.info("User %s favorited post %s", ctx.subject_id, pid)
    return {"success": True, "favorites": await _favorite_ids(ctx.user)}


@router.delete("/me/favorites/{post_id}", response_model=FavoritesOut)
async def remove_favorite(post_id: str, ctx: AuthContext = Depends(get_auth_context)):
    pid = post_service.parse_post_id(post_id)
    removed = await Favorite.filter(user=ctx.user, post_id=pid).delete()
    if removed:
        logger.info("User %s unfavorited post %s", ctx.subject_id, pid)
    return {"success": True, "favorites": await _favorite_ids(ctx.user)}
