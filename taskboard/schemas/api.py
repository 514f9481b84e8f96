"""Pydantic schemas for HTTP request and response bodies.

Request fields are typed ``Any`` on purpose: the board service validates and
sanitizes every value itself, so malformed input surfaces as a
``ValidationAppError`` with the offending field name instead of a generic
422 from FastAPI.
"""

from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TaskCreateRequest(ApiModel):
    text: Any = Field(None, description="Task text (1..1000 chars after sanitizing)")
    group_id: Any = Field(None, description="Owning group id; defaults to 'default'")
    priority: Any = Field(None, description="P0, P1 or P2; defaults to P1")
    created_at: Any = Field(None, description="Creation time in ms since epoch; defaults to now")

    model_config = ConfigDict(
        json_schema_extra={"example": {"text": "Ship release notes", "groupId": "default", "priority": "P1"}}
    )


class TaskUpdateRequest(ApiModel):
    id: Any = Field(None, description="UUID of the task to update")
    text: Any = None
    completed: Any = None
    created_at: Any = None
    completed_at: Any = None
    group_id: Any = None
    priority: Any = None

    def changes(self) -> dict[str, Any]:
        """Fields the client actually sent, keyed by their wire (camelCase) names."""
        return self.model_dump(by_alias=True, exclude_unset=True, exclude={"id"})


class GroupCreateRequest(ApiModel):
    name: Any = Field(None, description="Group display name (1..100 chars)")


class LikeToggleRequest(ApiModel):
    todo_id: Any = Field(None, description="UUID of the task to like or unlike")


class LikeToggleResponse(ApiModel):
    liked: bool = Field(..., description="Whether the caller now likes the task")
    like_count: int = Field(..., ge=0, alias="likes", description="Current like count")


class LikedTasksResponse(ApiModel):
    liked_todo_ids: List[str] = Field(default_factory=list)


class VisitRequest(ApiModel):
    is_new_visitor: Any = Field(None, description="True when the client has not been seen before")
    visitor_id: Any = Field(
        None, description="Opaque visitor identifier; when given, uniqueness is decided server-side"
    )


class StatsResponse(ApiModel):
    pv: int = 0
    uv: int = 0


class AuthRequest(ApiModel):
    password: Any = None


class AuthResponse(ApiModel):
    success: bool
    message: str | None = None


class DeleteResponse(ApiModel):
    success: bool = True
    id: str


class GroupDeleteResponse(DeleteResponse):
    reassigned: int = Field(0, ge=0, description="Tasks moved to the default group")
