# writique/models/__init__.py
"""
Database models module initialization.
Exports all database models for convenient imports throughout the application.

Models exported:
- User: Local mirror of an identity provider account
- Post: Blog post owned by one external subject id
- Favorite: One post id in a user's favorites set
"""
from .user import User, UserRole
from .post import Post
from .favorite import Favorite
