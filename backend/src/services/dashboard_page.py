"""The dashboard page: session guard, bookmark list, live channel and form."""
import asyncio
import logging

from schemas.bookmark import BookmarkId
from schemas.change_event import ChangeEvent, ChangeType
from schemas.session import SessionUser
from services import bookmark_service
from services.backend import BackendService
from services.bookmark_store import BookmarkStore
from services.change_subscription import ChangeSubscription
from services.exceptions import BackendError
from services.navigation import Navigator
from services.session_guard import SessionGuard

logger = logging.getLogger(__name__)


class DashboardPage:
    """
    One dashboard page instance.

    The backend and navigator are passed in per instance; nothing is shared
    between pages. `mount()` validates the session, then loads the list and
    opens the change channel concurrently. After that the list changes only
    through change notifications, never by re-fetching. `unmount()` releases
    the channel and the session listener.
    """

    def __init__(self, backend: BackendService, navigator: Navigator) -> None:
        self._backend = backend
        self._navigator = navigator
        self._live = False
        self._loaded_user_id: str | None = None
        self.store = BookmarkStore(backend)
        self.form = bookmark_service.BookmarkForm(backend)
        self.subscription = ChangeSubscription(backend, self._handle_change)
        self.guard = SessionGuard(backend, navigator, on_change=self._handle_session_change)

    @property
    def user(self) -> SessionUser | None:
        """The signed-in user, or None."""
        return self.guard.user

    async def mount(self, live: bool = True) -> bool:
        """
        Validate the session and populate the page.

        Args:
            live: Open the change channel and track session changes. A plain
                page render passes False and only gets the initial list.

        Returns:
            False if there was no session (the navigator was sent to login and
            no bookmarks were fetched).
        """
        user = await self.guard.mount(watch=live)
        if user is None:
            return False

        self._live = live
        if live:
            await self._load_and_subscribe(user.id)
        else:
            self._loaded_user_id = user.id
            await self.store.load(user.id)
        return True

    async def _load_and_subscribe(self, user_id: str) -> None:
        self._loaded_user_id = user_id
        # Reconciled by the store's idempotent insert; neither is awaited first.
        await asyncio.gather(
            self.store.load(user_id),
            self.subscription.open(user_id),
        )

    async def unmount(self) -> None:
        """Release the change channel and the session listener."""
        self._live = False
        await self.subscription.close()
        self.guard.unmount()

    async def create(self, title: str, url: str) -> bool:
        """Submit the bookmark form for the signed-in user."""
        if self.user is None:
            return False
        return await self.form.create(self.user.id, title, url)

    async def delete(self, bookmark_id: BookmarkId) -> bool:
        """Request deletion of a bookmark; the list updates via the channel."""
        return await bookmark_service.delete_bookmark(self._backend, bookmark_id)

    async def logout(self) -> None:
        """Sign out, drop local state and go to the login view."""
        try:
            await self._backend.sign_out()
        except BackendError as e:
            logger.warning("Sign-out failed: %s", e)
        await self.subscription.close()
        self.guard.session = None
        self.store.clear()
        self._navigator.redirect_to_login()

    async def end_session(self) -> None:
        """Handle a sign-out that happened elsewhere (another request or client)."""
        await self.guard.end_session()

    async def revalidate_session(self) -> bool:
        """Re-check the session; a lost one clears the page and redirects."""
        return await self.guard.revalidate()

    def _handle_change(self, event: ChangeEvent) -> None:
        if event.type == ChangeType.INSERT:
            user = self.user
            if event.new is None or user is None or event.new.user_id != user.id:
                return
            self.store.apply_insert(event.new)
        elif event.type == ChangeType.DELETE:
            if event.old_id is not None:
                self.store.apply_delete(event.old_id)

    async def _handle_session_change(self, user: SessionUser | None) -> None:
        if user is None:
            self._loaded_user_id = None
            await self.subscription.close()
            self.store.clear()
            return
        if self._live and user.id != self._loaded_user_id:
            await self._load_and_subscribe(user.id)
