"""
Services Module

Provides interfaces for external services and shared store helpers:
- Media Relay: image uploads (Cloudinary)
- Posts: read-time estimation, author snapshots, atomic view counting
- Users: shared user serialization
"""
from .media_relay import (
    MediaRelay,
    CloudinaryMediaRelay,
)
from .posts import (
    compute_read_time,
    increment_views,
    post_to_dict,
)
from .users import user_to_dict

__all__ = [
    "MediaRelay",
    "CloudinaryMediaRelay",
    "compute_read_time",
    "increment_views",
    "post_to_dict",
    "user_to_dict",
]
