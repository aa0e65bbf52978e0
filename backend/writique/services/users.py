"""
User directory helpers shared by the users and admin routers.
"""
from writique.models.user import User


def user_to_dict(u: User) -> dict:
    """
    Convert User model instance to dictionary format for API responses.
    Response models pick the fields they expose.
    """
    return {
        "id": str(u.id),
        "externalId": u.external_id,
        "email": u.email,
        "firstName": u.first_name,
        "lastName": u.last_name,
        "avatarUrl": u.avatar_url,
        "role": u.role.value,
        "createdAt": u.created_at.isoformat() if u.created_at else None,
        "updatedAt": u.updated_at.isoformat() if u.updated_at else None,
    }
