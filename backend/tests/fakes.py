"""In-memory stand-in for the managed backend, used across the test suite."""
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from schemas.bookmark import Bookmark, BookmarkCreate, BookmarkId
from schemas.change_event import ChangeEvent, ChangeType
from schemas.session import OAuthRedirect, Session, SessionUser
from services.backend import AuthChangeCallback, ChangeCallback
from services.exceptions import BackendError

USER_ID = "11111111-1111-1111-1111-111111111111"
OTHER_USER_ID = "22222222-2222-2222-2222-222222222222"

BASE_TIME = datetime(2024, 1, 1, tzinfo=UTC)


def make_bookmark(
    bookmark_id: BookmarkId,
    user_id: str = USER_ID,
    minutes: int = 0,
    title: str | None = None,
) -> Bookmark:
    """Build a bookmark created `minutes` after a fixed base time."""
    return Bookmark(
        id=bookmark_id,
        title=title or f"Bookmark {bookmark_id}",
        url=f"https://example.com/{bookmark_id}",
        user_id=user_id,
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


def make_session(user_id: str = USER_ID, email: str | None = "user@example.com") -> Session:
    """Build a signed-in session."""
    return Session(
        user=SessionUser(id=user_id, email=email),
        access_token=f"access-{user_id}",
        refresh_token=f"refresh-{user_id}",
        expires_at=1_900_000_000,
    )


@dataclass
class FakeChannel:
    """A change channel opened on the fake backend."""

    user_id: str
    callback: ChangeCallback
    removed: bool = False


@dataclass
class FakeAuthSubscription:
    """A session-change listener registered on the fake backend."""

    callback: AuthChangeCallback
    unsubscribed: bool = False

    def unsubscribe(self) -> None:
        self.unsubscribed = True


@dataclass
class FakeBackend:
    """
    Records every call and serves bookmarks from memory.

    Operations listed in `fail` raise BackendError. With `echo_changes`, a
    successful insert/delete is delivered to open channels the way the real
    change stream would.
    """

    session: Session | None = None
    bookmarks: list[Bookmark] = field(default_factory=list)
    fail: set[str] = field(default_factory=set)
    echo_changes: bool = False
    calls: list[tuple[str, Any]] = field(default_factory=list)
    channels: list[FakeChannel] = field(default_factory=list)
    auth_subscriptions: list[FakeAuthSubscription] = field(default_factory=list)
    closed: bool = False
    code_verifier: str | None = "verifier-123"
    next_id: int = 1000

    def _call(self, name: str, arg: Any = None) -> None:
        self.calls.append((name, arg))
        if name in self.fail:
            raise BackendError(name, "simulated failure")

    def call_names(self) -> list[str]:
        """Names of the operations called, in order."""
        return [name for name, _ in self.calls]

    @property
    def open_channels(self) -> list[FakeChannel]:
        return [c for c in self.channels if not c.removed]

    async def get_session(self) -> Session | None:
        self._call("get_session")
        return self.session

    async def sign_in_with_oauth(self, provider: str, redirect_to: str) -> OAuthRedirect:
        self._call("sign_in_with_oauth", (provider, redirect_to))
        return OAuthRedirect(
            url=f"https://auth.example.com/authorize?provider={provider}",
            code_verifier=self.code_verifier,
        )

    async def exchange_code_for_session(
        self, code: str, code_verifier: str | None,
    ) -> Session:
        self._call("exchange_code_for_session", (code, code_verifier))
        self.session = make_session()
        return self.session

    async def sign_out(self) -> None:
        self._call("sign_out")
        self.session = None

    async def fetch_bookmarks(self, user_id: str) -> list[Bookmark]:
        self._call("fetch_bookmarks", user_id)
        owned = [b for b in self.bookmarks if b.user_id == user_id]
        return sorted(owned, key=lambda b: b.created_at, reverse=True)

    async def insert_bookmark(self, data: BookmarkCreate) -> None:
        self._call("insert_bookmark", data)
        self.next_id += 1
        bookmark = Bookmark(
            id=self.next_id,
            title=data.title,
            url=data.url,
            user_id=data.user_id,
            created_at=datetime.now(UTC),
        )
        self.bookmarks.append(bookmark)
        if self.echo_changes:
            self.emit(ChangeEvent(type=ChangeType.INSERT, new=bookmark))

    async def delete_bookmark(self, bookmark_id: BookmarkId) -> None:
        self._call("delete_bookmark", bookmark_id)
        self.bookmarks = [b for b in self.bookmarks if b.id != bookmark_id]
        if self.echo_changes:
            self.emit(ChangeEvent(type=ChangeType.DELETE, old_id=bookmark_id))

    async def subscribe_changes(self, user_id: str, callback: ChangeCallback) -> FakeChannel:
        self._call("subscribe_changes", user_id)
        channel = FakeChannel(user_id=user_id, callback=callback)
        self.channels.append(channel)
        return channel

    async def remove_channel(self, channel: FakeChannel) -> None:
        self._call("remove_channel", channel.user_id)
        channel.removed = True

    def on_auth_state_change(self, callback: AuthChangeCallback) -> FakeAuthSubscription:
        self.calls.append(("on_auth_state_change", None))
        subscription = FakeAuthSubscription(callback=callback)
        self.auth_subscriptions.append(subscription)
        return subscription

    async def aclose(self) -> None:
        self.closed = True

    def emit(self, event: ChangeEvent) -> None:
        """Deliver a change to open channels, filtered by owner like the server does."""
        for channel in self.open_channels:
            if event.new is not None and event.new.user_id != channel.user_id:
                continue
            channel.callback(event)

    async def emit_auth(self, event: str, session: Session | None) -> None:
        """Deliver a session transition to active listeners."""
        self.session = session
        for subscription in self.auth_subscriptions:
            if not subscription.unsubscribed:
                await subscription.callback(event, session)
