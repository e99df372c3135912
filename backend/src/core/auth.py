"""Request authentication against the backend session stored in cookies."""
import logging
from collections.abc import AsyncGenerator, Awaitable, Callable

from fastapi import Depends, HTTPException, Request, Response, status

from core.config import Settings, get_settings
from schemas.session import Session, SessionUser
from services.backend import BackendService
from services.exceptions import BackendError
from services.navigation import Navigator
from services.session_guard import SessionGuard
from services.supabase_backend import SupabaseBackend

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "sb_access_token"
REFRESH_TOKEN_COOKIE = "sb_refresh_token"
CODE_VERIFIER_COOKIE = "sb_code_verifier"

BackendFactory = Callable[[str | None, str | None], Awaitable[BackendService]]


def get_backend_factory(settings: Settings = Depends(get_settings)) -> BackendFactory:
    """Dependency returning a factory that builds a backend for a pair of tokens."""

    async def factory(access_token: str | None, refresh_token: str | None) -> BackendService:
        return await SupabaseBackend.connect(
            settings,
            access_token=access_token,
            refresh_token=refresh_token,
        )

    return factory


async def get_backend(
    request: Request,
    factory: BackendFactory = Depends(get_backend_factory),
) -> AsyncGenerator[BackendService]:
    """
    Yield a backend client carrying the caller's session cookies.

    A fresh client per request keeps sessions from leaking between users.
    """
    try:
        backend = await factory(
            request.cookies.get(ACCESS_TOKEN_COOKIE),
            request.cookies.get(REFRESH_TOKEN_COOKIE),
        )
    except BackendError as e:
        logger.warning("Backend unavailable: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Backend unavailable",
        )
    try:
        yield backend
    finally:
        await backend.aclose()


async def get_current_session(
    backend: BackendService = Depends(get_backend),
    settings: Settings = Depends(get_settings),
) -> Session:
    """
    Dependency that validates the session and returns it.

    Raises:
        HTTPException: 401 if there is no valid session.
    """
    guard = SessionGuard(backend, Navigator(settings.login_path))
    user = await guard.mount(watch=False)
    if user is None or guard.session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return guard.session


async def get_current_user(
    session: Session = Depends(get_current_session),
) -> SessionUser:
    """Dependency returning the signed-in user."""
    return session.user


def set_session_cookies(response: Response, session: Session, settings: Settings) -> None:
    """Store the session tokens in http-only cookies."""
    for key, value in (
        (ACCESS_TOKEN_COOKIE, session.access_token),
        (REFRESH_TOKEN_COOKIE, session.refresh_token),
    ):
        response.set_cookie(
            key=key,
            value=value,
            httponly=True,
            samesite="lax",
            secure=settings.session_cookie_secure,
            max_age=settings.session_cookie_max_age,
        )


def clear_session_cookies(response: Response) -> None:
    """Remove the session cookies."""
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    response.delete_cookie(REFRESH_TOKEN_COOKIE)
