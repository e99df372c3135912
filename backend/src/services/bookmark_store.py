"""Client-side view of the current user's bookmarks."""
import logging
from collections.abc import Callable

from schemas.bookmark import Bookmark, BookmarkId
from services.backend import BackendService
from services.exceptions import BackendError

logger = logging.getLogger(__name__)

StoreListener = Callable[[list[Bookmark]], None]


class BookmarkStore:
    """
    Ordered in-memory list of bookmarks.

    Filled once by `load()` (newest first) and then kept current only by
    change notifications: `apply_insert()` prepends, `apply_delete()` removes.
    Inserts are idempotent on `id`, which is the only guard against duplicate
    delivery and against a notification racing the initial fetch. Inserted
    rows are not re-sorted by `created_at`.
    """

    def __init__(self, backend: BackendService) -> None:
        self._backend = backend
        self._items: list[Bookmark] = []
        self._listeners: list[StoreListener] = []

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, bookmark_id: object) -> bool:
        return any(b.id == bookmark_id for b in self._items)

    def add_listener(self, listener: StoreListener) -> None:
        """Call `listener` with a snapshot after every change to the list."""
        self._listeners.append(listener)

    def remove_listener(self, listener: StoreListener) -> None:
        """Stop notifying `listener`."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._items.copy())

    async def load(self, user_id: str) -> bool:
        """
        Replace the list with the user's bookmarks from the backend.

        Returns False (leaving the current list untouched) if the fetch fails.
        """
        try:
            bookmarks = await self._backend.fetch_bookmarks(user_id)
        except BackendError as e:
            logger.warning("Failed to load bookmarks for user %s: %s", user_id, e)
            return False

        self._items = list(bookmarks)
        self._notify()
        return True

    def apply_insert(self, bookmark: Bookmark) -> bool:
        """Prepend `bookmark` unless a bookmark with the same id is present."""
        if bookmark.id in self:
            return False
        self._items.insert(0, bookmark)
        self._notify()
        return True

    def apply_delete(self, bookmark_id: BookmarkId) -> bool:
        """Remove the bookmark with `bookmark_id`. No-op if it is not present."""
        remaining = [b for b in self._items if b.id != bookmark_id]
        if len(remaining) == len(self._items):
            return False
        self._items = remaining
        self._notify()
        return True

    def clear(self) -> None:
        """Drop all bookmarks (e.g. on sign-out)."""
        self._items = []
        self._notify()

    def list(self) -> list[Bookmark]:
        """Return a snapshot of the bookmarks in display order."""
        return self._items.copy()
