"""Pydantic models for the persisted collections.

Field names follow the on-disk JSON (camelCase); Python code uses the
snake_case attribute names. Optional fields that are unset are omitted on
dump so documents stay as compact as the records they describe.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from taskboard.utils.validators import Priority

DEFAULT_GROUP_ID = "default"
DEFAULT_GROUP_NAME = "Default"


class Record(BaseModel):
    """Base for stored records: camelCase aliases, unknown keys preserved."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class Task(Record):
    """A single todo item."""

    id: str = Field(..., description="UUID of the task")
    text: str = Field(..., description="Sanitized task text (<= 1000 chars)")
    completed: bool = Field(False, description="Completion flag")
    created_at: int = Field(..., description="Creation time, ms since epoch")
    completed_at: int | None = Field(
        None, description="Completion time, ms since epoch; set only when completed"
    )
    deleted: bool | None = Field(None, description="Soft-delete flag")
    deleted_at: int | None = Field(None, description="Soft-delete time, ms since epoch")
    group_id: str = Field(DEFAULT_GROUP_ID, description="Owning group id")
    priority: Priority | None = Field(None, description="P0 (highest) .. P2 (lowest)")
    likes: int = Field(0, ge=0, description="Number of distinct client IPs that liked the task")

    @property
    def is_deleted(self) -> bool:
        return bool(self.deleted)


class Group(Record):
    """A named bucket of tasks."""

    id: str = Field(..., description="Group id ('default' or a UUID)")
    name: str = Field(..., description="Display name (<= 100 chars)")
    created_at: int = Field(..., description="Creation time, ms since epoch")


class Stats(Record):
    """Visit counters.

    ``visitors`` holds digests of visitor identifiers seen by ``record_hit``;
    it is never returned to clients.
    """

    pv: int = Field(0, ge=0, description="Page views")
    uv: int = Field(0, ge=0, description="Unique visitors")
    visitors: list[str] = Field(default_factory=list)


# task id -> client IPs that liked it
LikesMap = dict[str, list[str]]
