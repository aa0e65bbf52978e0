# writique/api/v1/routers/posts.py
import datetime as dt
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from writique.api.v1.deps import get_auth_context, get_media_relay
from writique.config import settings
from writique.core import errors
from writique.core.policy import AuthContext, ensure_owner_or_admin
from writique.models.post import Post
from writique.schemas.post import (
    DeletePostOut,
    IncrementViewsOut,
    PostListOut,
    PostOut,
    ViewCountOut,
)
from writique.services import posts as post_service
from writique.services.media_relay import MediaRelay

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["posts"])

REQUIRED_FIELDS = ("title", "excerpt", "category", "content")


# ==============================================================================
# Helpers
# ==============================================================================
def _parse_date(raw: Optional[str]) -> dt.date:
    if raw is None or not raw.strip():
        return dt.date.today()
    try:
        return dt.date.fromisoformat(raw.strip())
    except ValueError:
        raise errors.ValidationError("INVALID_DATE", "date must be YYYY-MM-DD")


def _has_file(upload: Optional[UploadFile]) -> bool:
    return upload is not None and bool(upload.filename)


async def _read_image(upload: UploadFile) -> bytes:
    """
    Read the uploaded image, refusing anything over MAX_UPLOAD_MB.
    The size check happens here so the relay is never called with oversize data.
    """
    data = await upload.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise errors.PayloadTooLargeError(
            message=f"Image exceeds the {settings.max_upload_bytes // (1024 * 1024)} MB limit"
        )
    return data


async def _upload_image(relay: MediaRelay, upload: UploadFile) -> str:
    data = await _read_image(upload)
    return await relay.upload(data, upload.filename, upload.content_type)


# ==============================================================================
# Public reads
# ==============================================================================
@router.get("", response_model=PostListOut)
async def list_posts(
    limit: Optional[int] = Query(default=None, ge=1),
    authorId: Optional[str] = Query(default=None, description="Filter by author subject id"),
):
    """
    List posts, newest first.

    Args:
        limit: Maximum number of posts to return (all when omitted)
        authorId: Only posts written by this identity provider subject

    Returns:
        PostListOut: items plus `totalCount`, which ignores `limit`
    """
    qs = Post.all()
    if authorId:
        qs = qs.filter(author_external_id=authorId)

    total = await qs.count()
    qs = qs.order_by("-created_at")
    if limit is not None:
        qs = qs.limit(limit)
    rows = await qs
    return {"items": [post_service.post_to_dict(p) for p in rows], "totalCount": total}


@router.get("/{post_id}", response_model=PostOut)
async def get_post(post_id: str):
    post = await post_service.get_post_or_404(post_service.parse_post_id(post_id))
    return post_service.post_to_dict(post)


@router.get("/{post_id}/views", response_model=ViewCountOut)
async def get_view_count(post_id: str):
    post = await post_service.get_post_or_404(post_service.parse_post_id(post_id))
    return {"count": post.views}


# ==============================================================================
# Authenticated writes
# ==============================================================================
@router.post("", response_model=PostOut, status_code=status.HTTP_201_CREATED)
async def create_post(
    title: Optional[str] = Form(None),
    excerpt: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    date: Optional[str] = Form(None),
    imageUrl: Optional[str] = Form(None),
    imageFile: Optional[UploadFile] = File(None),
    ctx: AuthContext = Depends(get_auth_context),
    relay: MediaRelay = Depends(get_media_relay),
):
    """
    Create a post owned by the caller.

    All required fields are validated before the image is uploaded, so a bad
    request never leaves an orphaned image on the media host.

    Image precedence: uploaded file, then `imageUrl`, then the configured
    placeholder.

    Raises:
        ValidationError (400): a required field is missing or empty, or bad date
        PayloadTooLargeError (413): image larger than MAX_UPLOAD_MB
        UpstreamError (500): media host failure
    """
    fields = {"title": title, "excerpt": excerpt, "category": category, "content": content}
    missing = [name for name in REQUIRED_FIELDS if not (fields[name] or "").strip()]
    if missing:
        raise errors.ValidationError(message=f"Missing required fields: {', '.join(missing)}")
    post_date = _parse_date(date)

    if _has_file(imageFile):
        image_url = await _upload_image(relay, imageFile)
    elif imageUrl and imageUrl.strip():
        image_url = imageUrl.strip()
    else:
        image_url = settings.default_post_image_url

    author = post_service.author_snapshot(ctx.user, settings.default_avatar_url)
    post = await Post.create(
        title=title.strip(),
        excerpt=excerpt.strip(),
        category=category.strip(),
        content=content,
        date=post_date,
        read_time=post_service.compute_read_time(content),
        author_name=author["name"],
        author_avatar_url=author["avatar_url"],
        author_external_id=ctx.subject_id,
        image_url=image_url,
        views=0,
    )
    logger.info("Post %s created by %s", post.id, ctx.subject_id)
    return post_service.post_to_dict(post)


@router.put("/{post_id}", response_model=PostOut)
async def update_post(
    post_id: str,
    title: Optional[str] = Form(None),
    excerpt: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    imageUrl: Optional[str] = Form(None),
    imageFile: Optional[UploadFile] = File(None),
    ctx: AuthContext = Depends(get_auth_context),
    relay: MediaRelay = Depends(get_media_relay),
):
    """
    Partially update a post (owner or admin).

    Only supplied fields change. `readTime` is recomputed only when the
    content actually changes. The author snapshot and `authorExternalId`
    are never touched here.

    Raises:
        ValidationError (400): malformed id, or a supplied field is empty
        NotFoundError (404): post does not exist (checked before ownership)
        AuthorizationError (403): caller is neither owner nor admin
        PayloadTooLargeError (413): image larger than MAX_UPLOAD_MB
    """
    post = await post_service.get_post_or_404(post_service.parse_post_id(post_id))
    acting = ensure_owner_or_admin(post, ctx)

    supplied = {"title": title, "excerpt": excerpt, "category": category, "content": content}
    empty = [name for name, value in supplied.items() if value is not None and not value.strip()]
    if empty:
        raise errors.ValidationError(message=f"Fields cannot be empty: {', '.join(empty)}")

    changed = []
    for name in ("title", "excerpt", "category"):
        value = supplied[name]
        if value is not None and value.strip() != getattr(post, name):
            setattr(post, name, value.strip())
            changed.append(name)
    if content is not None and content != post.content:
        post.content = content
        post.read_time = post_service.compute_read_time(content)
        changed.append("content")

    if _has_file(imageFile):
        post.image_url = await _upload_image(relay, imageFile)
        changed.append("imageUrl")
    elif imageUrl and imageUrl.strip() and imageUrl.strip() != post.image_url:
        post.image_url = imageUrl.strip()
        changed.append("imageUrl")

    if changed:
        await post.save()
    logger.info("Post %s updated by %s as %s (%s)", post.id, ctx.subject_id, acting, ", ".join(changed) or "no changes")
    return post_service.post_to_dict(post)


@router.delete("/{post_id}", response_model=DeletePostOut)
async def delete_post(post_id: str, ctx: AuthContext = Depends(get_auth_context)):
    """
    Delete a post (owner or admin) and drop it from every favorites set.

    Returns:
        DeletePostOut: `removedBy` is "admin" whenever the caller is an admin
    """
    post = await post_service.get_post_or_404(post_service.parse_post_id(post_id))
    acting = ensure_owner_or_admin(post, ctx)
    await post_service.delete_post(post)
    return {
        "success": True,
        "id": str(post.id),
        "removedBy": acting,
        "message": f"Post removed by {acting}",
    }


@router.post("/{post_id}/increment-views", response_model=IncrementViewsOut)
async def increment_post_views(post_id: str, ctx: AuthContext = Depends(get_auth_context)):
    views = await post_service.increment_views(post_service.parse_post_id(post_id))
    return {"success": True, "views": views}
