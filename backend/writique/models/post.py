# writique/models/post.py
"""
Database model for blog posts.
"""
import uuid
from tortoise import fields, models


class Post(models.Model):
    """
    Post database model.

    The author fields are a snapshot of the authoring user taken when the
    post is created; profile edits never rewrite existing posts.
    `author_external_id` is fixed at creation and drives ownership checks.
    """
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    title = fields.TextField()
    excerpt = fields.TextField()
    category = fields.TextField()
    content = fields.TextField()
    date = fields.DateField()
    read_time = fields.CharField(max_length=32)  # e.g. "3 min read"

    author_name = fields.TextField()
    author_avatar_url = fields.TextField()
    author_external_id = fields.CharField(max_length=128, index=True)

    image_url = fields.TextField()
    views = fields.IntField(default=0)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "posts"
