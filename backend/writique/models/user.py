# writique/models/user.py
"""
Database model for users.
Represents the local copy of an identity provider account, holding cached
profile information and the role used for authorization.
"""
import uuid
from enum import Enum
from tortoise import fields, models


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class User(models.Model):
    """
    User database model.

    Each row mirrors exactly one identity provider account. The row is created
    lazily on the first authenticated request or eagerly by the provisioning
    webhook, and `external_id` never changes afterwards.

    Relationships:
    - Has many Favorites (one-to-many, via related_name="favorites")
    - Owns Posts by `Post.author_external_id` (no foreign key, posts outlive users)
    """
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    external_id = fields.CharField(max_length=128, unique=True, index=True)  # Identity provider subject id
    email = fields.CharField(max_length=320, unique=True)  # RFC 5321 upper bound
    first_name = fields.TextField(null=True)
    last_name = fields.TextField(null=True)
    avatar_url = fields.TextField(null=True)
    role = fields.CharEnumField(UserRole, max_length=16, default=UserRole.USER)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def display_name(self) -> str:
        """Full name when known, otherwise the email address."""
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or self.email
