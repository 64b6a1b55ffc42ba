"""Group schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class GroupCreate(BaseModel):
    """Create a new group."""

    name: str = Field(..., min_length=1, max_length=255)
    permissions: dict[str, bool] = Field(default_factory=dict)


class GroupUpdate(BaseModel):
    """Update a group."""

    name: str | None = Field(None, min_length=1, max_length=255)
    permissions: dict[str, bool] | None = None


class GroupSummary(BaseModel):
    """Group reference embedded in user responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class GroupResponse(BaseModel):
    """Group response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    permissions: dict[str, bool]
    created_at: datetime | None
    updated_at: datetime | None


class GroupActionResponse(BaseModel):
    """Result of a group mutation."""

    message: str
    group: GroupResponse | None = None
