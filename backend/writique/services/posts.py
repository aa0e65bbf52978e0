"""
Post store helpers shared by the posts and users routers.
"""
import logging
import math
import uuid

from tortoise.expressions import F

from writique.core import errors
from writique.models.favorite import Favorite
from writique.models.post import Post
from writique.models.user import User

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200


def compute_read_time(content: str | None) -> str:
    """
    Estimated reading time at 200 words per minute, rounded up.
    Never less than "1 min read", including for empty content.
    """
    words = len((content or "").split())
    minutes = max(1, math.ceil(words / WORDS_PER_MINUTE))
    return f"{minutes} min read"


def author_snapshot(user: User, default_avatar_url: str) -> dict:
    """Copy of the author's display fields, frozen into the post."""
    return {"name": user.display_name, "avatar_url": user.avatar_url or default_avatar_url}


def parse_post_id(raw: str) -> uuid.UUID:
    """Reject ids that are not UUIDs with 400 before touching the store."""
    try:
        return uuid.UUID(str(raw))
    except (ValueError, TypeError):
        raise errors.ValidationError("INVALID_ID", "Invalid post id")


async def get_post_or_404(post_id: uuid.UUID) -> Post:
    post = await Post.get_or_none(id=post_id)
    if not post:
        raise errors.NotFoundError("POST_NOT_FOUND", "Post not found")
    return post


def post_to_dict(p: Post) -> dict:
    """
    Convert Post model instance to dictionary format for API responses.
    """
    return {
        "id": str(p.id),
        "title": p.title,
        "excerpt": p.excerpt,
        "category": p.category,
        "content": p.content,
        "date": p.date.isoformat(),
        "readTime": p.read_time,
        "author": {"name": p.author_name, "avatarUrl": p.author_avatar_url},
        "authorExternalId": p.author_external_id,
        "imageUrl": p.image_url,
        "views": p.views,
        "createdAt": p.created_at.isoformat() if p.created_at else None,
        "updatedAt": p.updated_at.isoformat() if p.updated_at else None,
    }


async def increment_views(post_id: uuid.UUID) -> int:
    """
    Add exactly one view and return the stored count.

    The increment is a single `views = views + 1` UPDATE, so concurrent calls
    never overwrite each other.
    """
    updated = await Post.filter(id=post_id).update(views=F("views") + 1)
    if not updated:
        raise errors.NotFoundError("POST_NOT_FOUND", "Post not found")
    post = await get_post_or_404(post_id)
    return post.views


async def delete_post(post: Post) -> None:
    """Delete a post and drop it from every favorites set."""
    removed = await Favorite.filter(post_id=post.id).delete()
    await post.delete()
    logger.info("Deleted post %s (cleared from %d favorites sets)", post.id, removed)
