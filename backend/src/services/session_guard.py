"""Session validation and tracking for a page instance."""
import logging
from collections.abc import Awaitable, Callable

from schemas.session import Session, SessionUser
from services.backend import AuthSubscription, BackendService
from services.exceptions import BackendError
from services.navigation import Navigator

logger = logging.getLogger(__name__)

SessionChangeCallback = Callable[[SessionUser | None], Awaitable[None]]


class SessionGuard:
    """
    Gatekeeper for pages that need a signed-in user.

    On mount the session is checked once (no retry). Without a valid session
    the page is redirected to login and nothing else happens. With one, the
    user is exposed and session transitions are tracked until unmount:
    losing the session redirects to login, gaining one updates the user.
    """

    def __init__(
        self,
        backend: BackendService,
        navigator: Navigator,
        on_change: SessionChangeCallback | None = None,
    ) -> None:
        self._backend = backend
        self._navigator = navigator
        self._on_change = on_change
        self._subscription: AuthSubscription | None = None
        self.session: Session | None = None

    @property
    def user(self) -> SessionUser | None:
        """The signed-in user, or None."""
        return self.session.user if self.session else None

    @property
    def watching(self) -> bool:
        """Whether session-change notifications are being tracked."""
        return self._subscription is not None

    async def mount(self, watch: bool = True) -> SessionUser | None:
        """
        Validate the session and start tracking session changes.

        Args:
            watch: Track session transitions until `unmount()`. Single-shot
                request handlers pass False.

        Returns:
            The signed-in user, or None after redirecting to login.
        """
        try:
            session = await self._backend.get_session()
        except BackendError as e:
            logger.warning("Session check failed: %s", e)
            session = None

        if session is None:
            self._navigator.redirect_to_login()
            return None

        self.session = session
        if watch and self._subscription is None:
            self._subscription = self._backend.on_auth_state_change(self._handle_auth_change)
        return session.user

    def unmount(self) -> None:
        """Stop tracking session changes."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    async def end_session(self) -> None:
        """Drop the session, let the page clear its state and redirect to login."""
        self.session = None
        if self._on_change is not None:
            await self._on_change(None)
        self._navigator.redirect_to_login()

    async def revalidate(self) -> bool:
        """
        Check the session again while mounted.

        A missing session, or a failed check, ends the session the same way a
        sign-out notification does. Returns whether the session is still valid.
        """
        try:
            session = await self._backend.get_session()
        except BackendError as e:
            logger.warning("Session revalidation failed: %s", e)
            session = None

        if session is None:
            await self.end_session()
            return False

        previous = self.user
        self.session = session
        if previous is None or previous.id != session.user.id:
            if self._on_change is not None:
                await self._on_change(session.user)
        return True

    async def _handle_auth_change(self, event: str, session: Session | None) -> None:
        logger.info("Session change: %s", event)
        if session is None:
            await self.end_session()
            return

        self.session = session
        if self._on_change is not None:
            await self._on_change(session.user)
