"""Login view: starts the OAuth sign-in flow."""
import logging

from schemas.session import OAuthRedirect
from services.backend import BackendService
from services.exceptions import BackendError

logger = logging.getLogger(__name__)


class LoginView:
    """Sends the user to the OAuth provider, which returns them to a fixed URL."""

    def __init__(self, backend: BackendService, provider: str, redirect_to: str) -> None:
        self._backend = backend
        self.provider = provider
        self.redirect_to = redirect_to

    async def login_with_provider(self) -> OAuthRedirect | None:
        """Return the provider redirect, or None if the flow could not be started."""
        try:
            redirect = await self._backend.sign_in_with_oauth(self.provider, self.redirect_to)
        except BackendError as e:
            logger.error("Login error: %s", e)
            return None
        logger.info("Starting %s sign-in", self.provider)
        return redirect
