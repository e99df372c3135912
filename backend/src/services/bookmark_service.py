"""Bookmark form and deletion requests."""
import logging

from schemas.bookmark import BookmarkCreate, BookmarkId
from services.backend import BackendService
from services.exceptions import BackendError

logger = logging.getLogger(__name__)


async def delete_bookmark(backend: BackendService, bookmark_id: BookmarkId) -> bool:
    """
    Ask the backend to delete a bookmark.

    No ownership check happens here; the backend rejects deletions of rows the
    user does not own. The local list is updated by the change channel, not by
    this call.

    Returns:
        True if the request succeeded, False if it failed (failure is logged
        and the deletion abandoned).
    """
    try:
        await backend.delete_bookmark(bookmark_id)
    except BackendError as e:
        logger.warning("Failed to delete bookmark %s: %s", bookmark_id, e)
        return False
    return True


class BookmarkForm:
    """
    Title/URL input for creating bookmarks.

    A successful submit clears both fields; a failed one leaves them as typed.
    The new bookmark is not added to any local list; it shows up when the
    change channel delivers the insert.
    """

    def __init__(self, backend: BackendService) -> None:
        self._backend = backend
        self.title = ""
        self.url = ""

    @property
    def is_blank(self) -> bool:
        """Whether either field is empty after trimming."""
        return not self.title.strip() or not self.url.strip()

    async def submit(self, user_id: str) -> bool:
        """
        Create a bookmark from the current field values.

        Returns:
            True if the bookmark was created. False if a field was blank (no
            request is made) or the backend rejected the insert.
        """
        if self.is_blank:
            return False

        data = BookmarkCreate(title=self.title, url=self.url, user_id=user_id)
        try:
            await self._backend.insert_bookmark(data)
        except BackendError as e:
            logger.warning("Failed to create bookmark for user %s: %s", user_id, e)
            return False

        self.title = ""
        self.url = ""
        return True

    async def create(self, user_id: str, title: str, url: str) -> bool:
        """Fill in both fields and submit."""
        self.title = title
        self.url = url
        return await self.submit(user_id)
