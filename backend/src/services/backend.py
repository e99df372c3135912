"""
Interface to the managed backend service.

Everything the dashboard needs from the outside world goes through
`BackendService`: session lookup, OAuth, sign-out, bookmark queries and
mutations, the per-user change channel, and session-change notifications.
Implementations raise `BackendError` for any failure.
"""
from collections.abc import Awaitable, Callable
from typing import Protocol

from schemas.bookmark import Bookmark, BookmarkCreate, BookmarkId
from schemas.change_event import ChangeEvent
from schemas.session import OAuthRedirect, Session

ChangeCallback = Callable[[ChangeEvent], None]
AuthChangeCallback = Callable[[str, Session | None], Awaitable[None]]


class Channel(Protocol):
    """Opaque handle to an open change channel."""


class AuthSubscription(Protocol):
    """Handle to a session-change listener."""

    def unsubscribe(self) -> None:
        """Stop delivering session-change notifications."""
        ...


class BackendService(Protocol):
    """Operations consumed from the managed backend."""

    async def get_session(self) -> Session | None:
        """Return the current session, or None when signed out."""
        ...

    async def sign_in_with_oauth(self, provider: str, redirect_to: str) -> OAuthRedirect:
        """Start an OAuth sign-in that returns the browser to `redirect_to`."""
        ...

    async def exchange_code_for_session(
        self, code: str, code_verifier: str | None,
    ) -> Session:
        """Trade an OAuth authorization code for a session."""
        ...

    async def sign_out(self) -> None:
        """End the current session."""
        ...

    async def fetch_bookmarks(self, user_id: str) -> list[Bookmark]:
        """Return all bookmarks owned by `user_id`, newest first."""
        ...

    async def insert_bookmark(self, data: BookmarkCreate) -> None:
        """Insert a bookmark row."""
        ...

    async def delete_bookmark(self, bookmark_id: BookmarkId) -> None:
        """Delete a bookmark row by id. Ownership is enforced by the backend."""
        ...

    async def subscribe_changes(self, user_id: str, callback: ChangeCallback) -> Channel:
        """Open a channel delivering insert/delete events for `user_id`'s rows."""
        ...

    async def remove_channel(self, channel: Channel) -> None:
        """Tear down a channel returned by `subscribe_changes`."""
        ...

    def on_auth_state_change(self, callback: AuthChangeCallback) -> AuthSubscription:
        """Register a listener for session transitions (sign-in, sign-out, refresh)."""
        ...

    async def aclose(self) -> None:
        """Release client resources."""
        ...
