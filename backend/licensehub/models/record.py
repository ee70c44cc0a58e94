"""
Database model for persisted record collections.
Each row holds one whole collection (resellers, tokens, a reseller's keys, ...)
as a JSON document, together with a version counter used for optimistic
compare-and-swap updates.
"""
from tortoise import fields, models

class Record(models.Model):
    """
    Record collection database model.

    - key: Collection name (e.g. "resellers", "tokens", "alice_keys")
    - value: JSON document (list or dict) holding the whole collection
    - version: Incremented on every write; a CAS only succeeds against the version it read
    - updated_at: Timestamp of the last write
    """
    key = fields.CharField(max_length=255, pk=True)  # Primary key: collection name
    value = fields.JSONField()
    version = fields.IntField(default=0)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "records"  # Database table name
