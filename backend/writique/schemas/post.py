"""
Pydantic schemas for post endpoints.
Defines response models for the post CRUD surface and view counting.
"""
from pydantic import BaseModel
from typing import List, Literal, Optional

__all__ = [
    "AuthorOut",
    "PostOut",
    "PostListOut",
    "DeletePostOut",
    "ViewCountOut",
    "IncrementViewsOut",
]


class AuthorOut(BaseModel):
    """
    Author snapshot stored with a post.
    Copied from the authoring user at creation time.
    """
    name: str
    avatarUrl: str


class PostOut(BaseModel):
    """
    Full post representation returned by every post endpoint.
    """
    id: str  # Post UUID
    title: str
    excerpt: str
    category: str
    content: str
    date: str  # Calendar date (YYYY-MM-DD)
    readTime: str  # e.g. "3 min read"
    author: AuthorOut
    authorExternalId: str  # Owner's identity provider subject id
    imageUrl: str
    views: int
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class PostListOut(BaseModel):
    """
    Response model for the post list endpoint.
    `totalCount` counts every post matching the filter, ignoring `limit`.
    """
    items: List[PostOut]
    totalCount: int


class DeletePostOut(BaseModel):
    """
    Confirmation returned after a post is removed.
    """
    success: bool
    id: str
    removedBy: Literal["owner", "admin"]
    message: str


class ViewCountOut(BaseModel):
    count: int


class IncrementViewsOut(BaseModel):
    success: bool
    views: int
