"""Lifecycle of the per-user realtime change channel."""
import asyncio
import logging

from services.backend import BackendService, ChangeCallback, Channel
from services.exceptions import BackendError

logger = logging.getLogger(__name__)


class ChangeSubscription:
    """
    Holds at most one open change channel for a page instance.

    `open()` for the user already subscribed is a no-op; for a different user
    the current channel is torn down before the replacement is opened, so a
    page never double-receives events.
    """

    def __init__(self, backend: BackendService, on_event: ChangeCallback) -> None:
        self._backend = backend
        self._on_event = on_event
        self._channel: Channel | None = None
        self._user_id: str | None = None
        # open/close interleave across awaits (mount vs. session change)
        self._lock = asyncio.Lock()

    @property
    def active(self) -> bool:
        """Whether a channel is currently open."""
        return self._channel is not None

    @property
    def user_id(self) -> str | None:
        """The user whose rows the open channel is scoped to."""
        return self._user_id

    async def open(self, user_id: str) -> bool:
        """
        Ensure exactly one channel is open for `user_id`.

        Returns False if the backend refused the subscription; the page then
        keeps whatever the initial load produced.
        """
        async with self._lock:
            if self._channel is not None and self._user_id == user_id:
                return True
            await self._close_current()
            try:
                self._channel = await self._backend.subscribe_changes(user_id, self._on_event)
            except BackendError as e:
                logger.warning("Failed to open change channel for user %s: %s", user_id, e)
                return False
            self._user_id = user_id
            return True

    async def close(self) -> None:
        """Tear down the open channel, if any."""
        async with self._lock:
            await self._close_current()

    async def _close_current(self) -> None:
        if self._channel is None:
            return
        channel, user_id = self._channel, self._user_id
        self._channel = None
        self._user_id = None
        try:
            await self._backend.remove_channel(channel)
        except BackendError as e:
            logger.warning("Failed to remove change channel for user %s: %s", user_id, e)
            return
        logger.info("Closed change channel for user %s", user_id)
