# writique/api/v1/routers/admin.py
from fastapi import APIRouter, Depends, Query
from tortoise.expressions import Q

from writique.api.v1.deps import require_admin
from writique.models.user import User
from writique.schemas.user import AdminUserListOut
from writique.services.users import user_to_dict

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/users",
    response_model=AdminUserListOut,
    dependencies=[Depends(require_admin)],
)
async def list_users(
    q: str | None = Query(default=None, description="Fuzzy search by email/name"),
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
):
    """
    Get paginated list of all users (admin only).

    Results are ordered by creation date (newest first).

    Args:
        q: Optional search query matched against email, first and last name
        offset: Number of items to skip (for pagination)
        limit: Maximum number of items to return (1-100)

    Returns:
        AdminUserListOut: Response containing paginated user list

    Raises:
        AuthorizationError (403): If user is not an admin
        AuthenticationError (401): If user is not authenticated
    """
    qs = User.all().order_by("-created_at")
    if q:
        qs = qs.filter(Q(email__icontains=q) | Q(first_name__icontains=q) | Q(last_name__icontains=q))

    total = await qs.count()
    rows = await qs.offset(offset).limit(limit)
    items = [user_to_dict(u) for u in rows]

    return {"items": items, "offset": offset, "limit": limit, "total": total}
