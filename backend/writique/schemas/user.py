"""
Pydantic schemas for user endpoints.
Defines response models for the profile, favorites and admin user listing.
"""
from pydantic import BaseModel
from typing import List, Literal, Optional

__all__ = [
    "UserOut",
    "FavoritesOut",
    "AdminUserItem",
    "AdminUserListOut",
]


class UserOut(BaseModel):
    """
    The caller's own profile.
    `favorites` holds post ids, or full posts when expansion was requested.
    """
    id: str
    externalId: str
    email: str
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    avatarUrl: Optional[str] = None
    role: Literal["user", "admin"]
    favorites: list
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class FavoritesOut(BaseModel):
    """
    Response model for favorites add/remove.
    Both operations are idempotent and always report the resulting set.
    """
    success: bool
    favorites: List[str]  # Post ids, oldest first


class AdminUserItem(BaseModel):
    """
    User row as shown to admins.
    """
    id: str
    externalId: str
    email: str
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    role: Literal["user", "admin"]
    createdAt: Optional[str] = None


class AdminUserListOut(BaseModel):
    """
    Response model for paginated user list endpoint.
    """
    items: List[AdminUserItem]
    offset: int  # Pagination offset (number of items skipped)
    limit: int  # Maximum number of items per page
    total: int  # Total number of users matching the query
