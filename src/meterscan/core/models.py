"""Domain models for the MeterScan application."""

from __future__ import annotations

import enum
import uuid

from tortoise import fields, models


class ReadingSource(str, enum.Enum):
    """Where a stored reading came from."""

    PHOTO = "photo"
    MANUAL = "manual"


class BaseModel(models.Model):
    """Abstract base model with common fields."""

    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        abstract = True


class Consumer(BaseModel):
    """A billed consumer, identified by an opaque external id."""

    external_id = fields.CharField(max_length=255, unique=True)
    readings: fields.ReverseRelation[Reading]

    def __str__(self) -> str:
        return self.external_id


class Reading(BaseModel):
    """A recorded meter reading for a consumer."""

    value = fields.BigIntField()
    taken_at = fields.DatetimeField()
    source = fields.CharEnumField(ReadingSource, default=ReadingSource.PHOTO)
    consumer: fields.ForeignKeyRelation[Consumer] = fields.ForeignKeyField(
        "models.Consumer", related_name="readings"
    )

    def __str__(self) -> str:
        return f"Reading for {self.consumer} at {self.taken_at}: {self.value}"
