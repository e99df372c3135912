"""Login view and OAuth sign-in/sign-out endpoints."""
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from core.auth import (
    CODE_VERIFIER_COOKIE,
    clear_session_cookies,
    get_backend,
    set_session_cookies,
)
from core.config import Settings, get_settings
from services.backend import BackendService
from services.dashboard_page import DashboardPage
from services.exceptions import BackendError
from services.live_pages import LivePageRegistry, get_live_pages
from services.login_view import LoginView
from services.navigation import Navigator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

LOGIN_PAGE = """<!doctype html>
<html>
  <head><title>Smart Bookmark App</title></head>
  <body>
    <h1>Smart Bookmark App</h1>
    <form method="post" action="/auth/login">
      <button type="submit">Continue with Google</button>
    </form>
  </body>
</html>
"""


@router.get("/login", response_class=HTMLResponse)
async def login_page() -> HTMLResponse:
    """Render the login view."""
    return HTMLResponse(LOGIN_PAGE)


@router.post("/auth/login")
async def login(
    backend: BackendService = Depends(get_backend),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """
    Start the OAuth sign-in.

    Redirects to the provider, or back to the login view if the flow could not
    be started. The PKCE verifier rides along in a short-lived cookie.
    """
    view = LoginView(backend, settings.oauth_provider, settings.oauth_redirect_url)
    redirect = await view.login_with_provider()
    if redirect is None:
        return RedirectResponse(settings.login_path, status_code=303)

    response = RedirectResponse(redirect.url, status_code=303)
    if redirect.code_verifier:
        response.set_cookie(
            key=CODE_VERIFIER_COOKIE,
            value=redirect.code_verifier,
            httponly=True,
            samesite="lax",
            secure=settings.session_cookie_secure,
            max_age=10 * 60,
        )
    return response


@router.get("/auth/callback")
async def auth_callback(
    request: Request,
    code: str | None = None,
    backend: BackendService = Depends(get_backend),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """Finish the OAuth sign-in and continue to the post-login page."""
    if not code:
        logger.warning("OAuth callback without code: %s", request.query_params.get("error"))
        return RedirectResponse(settings.login_path, status_code=303)

    try:
        session = await backend.exchange_code_for_session(
            code, request.cookies.get(CODE_VERIFIER_COOKIE),
        )
    except BackendError as e:
        logger.warning("OAuth code exchange failed: %s", e)
        return RedirectResponse(settings.login_path, status_code=303)

    response = RedirectResponse(settings.post_login_path, status_code=303)
    set_session_cookies(response, session, settings)
    response.delete_cookie(CODE_VERIFIER_COOKIE)
    return response


@router.post("/logout")
async def logout(
    backend: BackendService = Depends(get_backend),
    settings: Settings = Depends(get_settings),
    live_pages: LivePageRegistry = Depends(get_live_pages),
) -> RedirectResponse:
    """
    Sign out and return to the login view.

    Live dashboard streams of the same user in this process are signed out too.
    """
    navigator = Navigator(settings.login_path)
    page = DashboardPage(backend, navigator)
    user = await page.guard.mount(watch=False)
    await page.logout()
    if user is not None:
        await live_pages.end_sessions(user.id)

    response = RedirectResponse(navigator.location or settings.login_path, status_code=303)
    clear_session_cookies(response)
    return response
