from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_TITLE = "New Chat"
TITLE_MAX_CHARS = 30
TITLE_ELLIPSIS = "..."

Role = Literal["user", "assistant"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(value: datetime) -> datetime:
    # Records written without an offset are treated as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Message(BaseModel):
    role: Role
    content: str
    timestamp: datetime = Field(default_factory=utcnow)

    @field_validator("timestamp")
    @classmethod
    def _timestamp_aware(cls, value: datetime) -> datetime:
        return _as_aware(value)


class Conversation(BaseModel):
    """One chat as held in memory and persisted as ``<id>.json``.

    Timestamps are exposed as ``created_at`` / ``updated_at`` but stored
    under the camelCase keys ``createdAt`` / ``updatedAt``.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str = DEFAULT_TITLE
    messages: list[Message] = []
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")

    @field_validator("created_at", "updated_at")
    @classmethod
    def _dates_aware(cls, value: datetime) -> datetime:
        return _as_aware(value)

    def to_record(self) -> dict:
        """Serialize to the on-disk JSON shape."""
        return self.model_dump(mode="json", by_alias=True)


def derive_title(content: str) -> str:
    """Title taken from the first user message: 30 chars, ellipsis if cut."""
    title = content[:TITLE_MAX_CHARS]
    if len(content) > TITLE_MAX_CHARS:
        title += TITLE_ELLIPSIS
    return title
