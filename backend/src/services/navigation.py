"""Page routing: records where a page instance wants the browser to go."""
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class Navigator:
    """
    Routing boundary for one page instance.

    Components call `redirect()`; the HTTP layer turns `location` into a
    redirect response, and a live event stream forwards it through
    `on_redirect`.
    """

    def __init__(
        self,
        login_path: str = "/login",
        on_redirect: Callable[[str], None] | None = None,
    ) -> None:
        self.login_path = login_path
        self.location: str | None = None
        self._on_redirect = on_redirect

    def redirect(self, path: str) -> None:
        """Send the page to `path`."""
        logger.debug("Redirecting page to %s", path)
        self.location = path
        if self._on_redirect is not None:
            self._on_redirect(path)

    def redirect_to_login(self) -> None:
        """Send the page to the login view."""
        self.redirect(self.login_path)
