# writique/models/favorite.py
import uuid
from tortoise import fields, models


class Favorite(models.Model):
    """
    One entry of a user's favorites set.
    - post_id: plain UUID, not a foreign key; ids of posts that no longer
      exist are skipped when favorites are expanded
    - (user, post_id) is unique, so repeated adds collapse to one row
    """
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    user = fields.ForeignKeyField("models.User", related_name="favorites", on_delete=fields.CASCADE)
    post_id = fields.UUIDField(index=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "favorites"
        unique_together = (("user", "post_id"),)
