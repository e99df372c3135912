"""Row change notifications delivered by the backend's realtime channel."""
from enum import StrEnum
from typing import Any

from pydantic import BaseModel

from schemas.bookmark import Bookmark, BookmarkId


class ChangeType(StrEnum):
    """Row-level change kinds the dashboard reacts to."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ChangeEvent(BaseModel):
    """
    A single insert/delete notification for the bookmarks table.

    DELETE events only carry the primary key of the removed row (the backend
    does not replicate the full old record), so `old_id` is all there is.
    """

    type: ChangeType
    new: Bookmark | None = None
    old_id: BookmarkId | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ChangeEvent":
        """
        Build an event from a realtime payload.

        Accepts both the client-library shape (`eventType`/`new`/`old`) and the
        raw channel message shape (`data.type`/`record`/`old_record`).

        Raises:
            ValueError: If the payload has no recognizable change type.
            pydantic.ValidationError: If an inserted record is malformed.
        """
        data = payload.get("data", payload)
        event_type = data.get("eventType") or data.get("type")
        if event_type is None:
            raise ValueError(f"Change payload has no event type: {sorted(data)}")

        new = data.get("new") or data.get("record") or None
        old = data.get("old") or data.get("old_record") or {}

        change_type = ChangeType(str(event_type).upper())
        return cls(
            type=change_type,
            new=Bookmark.model_validate(new) if new and change_type != ChangeType.DELETE else None,
            old_id=old.get("id"),
        )
