"""Pydantic schemas for bookmark records and the bookmark form."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Row ids are assigned by the backend; bigint and uuid primary keys both occur.
BookmarkId = int | str


class Bookmark(BaseModel):
    """A bookmark row as stored by the backend."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: BookmarkId
    title: str
    url: str
    user_id: str
    created_at: datetime


class BookmarkCreate(BaseModel):
    """Row payload for inserting a bookmark."""

    title: str = Field(min_length=1)
    url: str = Field(min_length=1)
    user_id: str

    @field_validator("title", "url", mode="before")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Strip surrounding whitespace before length validation."""
        if isinstance(v, str):
            return v.strip()
        return v


class BookmarkFormInput(BaseModel):
    """Raw title/URL input as typed into the bookmark form."""

    title: str = ""
    url: str = ""


class BookmarkFormResponse(BaseModel):
    """
    Result of submitting the bookmark form.

    `title` and `url` echo the form fields after submission: cleared on
    success, untouched when the submission was skipped.
    """

    created: bool
    title: str
    url: str


class DashboardResponse(BaseModel):
    """Snapshot of the dashboard view."""

    email: str | None
    bookmarks: list[Bookmark]
    message: str | None = None
