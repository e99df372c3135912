"""Process-wide registry of mounted live dashboard pages."""
import logging

from services.dashboard_page import DashboardPage

logger = logging.getLogger(__name__)


class LivePageRegistry:
    """
    Live pages currently streaming to a browser.

    Each live page owns its own backend client, and the backend only tells
    the client that signed out. Sign-outs handled by this process are
    forwarded to every other live page of the same user through here.
    """

    def __init__(self) -> None:
        self._pages: set[DashboardPage] = set()

    def __len__(self) -> int:
        return len(self._pages)

    def register(self, page: DashboardPage) -> None:
        """Track a mounted live page."""
        self._pages.add(page)

    def unregister(self, page: DashboardPage) -> None:
        """Stop tracking a page. No-op if it is not registered."""
        self._pages.discard(page)

    def pages_for(self, user_id: str) -> list[DashboardPage]:
        """Live pages whose current user is `user_id`."""
        return [p for p in self._pages if p.user is not None and p.user.id == user_id]

    async def end_sessions(self, user_id: str) -> int:
        """
        End the session on every live page of `user_id`.

        Returns:
            The number of pages signed out.
        """
        pages = self.pages_for(user_id)
        for page in pages:
            await page.end_session()
        if pages:
            logger.info("Ended %d live page(s) for user %s", len(pages), user_id)
        return len(pages)


class _LivePagesState:
    """Container for the global registry."""

    registry = LivePageRegistry()


_state = _LivePagesState()


def get_live_pages() -> LivePageRegistry:
    """Dependency returning the process-wide live page registry."""
    return _state.registry
