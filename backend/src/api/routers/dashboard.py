"""Dashboard view, bookmark form, deletion and the live update stream."""
import asyncio
import json
import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response, StreamingResponse

from core.auth import (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    BackendFactory,
    get_backend,
    get_backend_factory,
    get_current_user,
    set_session_cookies,
)
from core.config import Settings, get_settings
from schemas.bookmark import (
    Bookmark,
    BookmarkFormInput,
    BookmarkFormResponse,
    DashboardResponse,
)
from schemas.session import SessionUser
from services import bookmark_service
from services.backend import BackendService
from services.dashboard_page import DashboardPage
from services.exceptions import BackendError
from services.live_pages import LivePageRegistry, get_live_pages
from services.navigation import Navigator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

EMPTY_MESSAGE = "No bookmarks yet."


def build_dashboard_response(email: str | None, bookmarks: list[Bookmark]) -> DashboardResponse:
    """Snapshot payload shared by the page render and the event stream."""
    return DashboardResponse(
        email=email,
        bookmarks=bookmarks,
        message=None if bookmarks else EMPTY_MESSAGE,
    )


def format_event(event: str, data: dict[str, Any]) -> str:
    """Encode one Server-Sent Event."""
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


async def stream_page_events(
    page: DashboardPage,
    queue: asyncio.Queue[tuple[str, dict[str, Any]]],
    is_disconnected: Callable[[], Awaitable[bool]],
    keepalive: float,
    live_pages: LivePageRegistry | None = None,
) -> AsyncGenerator[str]:
    """
    Mount `page` and relay its updates until the client leaves.

    The store and navigator feed `queue`; every list change becomes a
    `bookmarks` event and a redirect (sign-out) ends the stream. The session
    is re-checked on every keepalive tick, and while mounted the page is
    listed in `live_pages` so sign-outs from other requests reach it. The
    page is always unmounted on exit, releasing its channel.
    """
    try:
        if await page.mount(live=True) and live_pages is not None:
            live_pages.register(page)
        while not await is_disconnected():
            try:
                event, data = await asyncio.wait_for(queue.get(), timeout=keepalive)
            except TimeoutError:
                if await page.revalidate_session():
                    yield ": keepalive\n\n"
                continue
            yield format_event(event, data)
            if event == "redirect":
                break
    finally:
        if live_pages is not None:
            live_pages.unregister(page)
        # Runs to completion even when the stream is cancelled by a disconnect.
        await asyncio.shield(page.unmount())


@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    backend: BackendService = Depends(get_backend),
    settings: Settings = Depends(get_settings),
) -> Response:
    """
    Render the dashboard: signed-in user and their bookmarks, newest first.

    Redirects to the login view when there is no session; no bookmarks are
    fetched in that case.
    """
    navigator = Navigator(settings.login_path)
    page = DashboardPage(backend, navigator)
    try:
        mounted = await page.mount(live=False)
    finally:
        await page.unmount()

    if not mounted:
        return RedirectResponse(navigator.location or settings.login_path, status_code=303)

    email = page.user.email if page.user else None
    payload = build_dashboard_response(email, page.store.list())
    response = JSONResponse(payload.model_dump(mode="json"))
    if page.guard.session is not None:
        # Tokens may have been refreshed while restoring the session.
        set_session_cookies(response, page.guard.session, settings)
    return response


@router.post("/bookmarks", response_model=BookmarkFormResponse)
async def create_bookmark(
    data: BookmarkFormInput,
    current_user: SessionUser = Depends(get_current_user),
    backend: BackendService = Depends(get_backend),
) -> BookmarkFormResponse:
    """
    Submit the bookmark form.

    Blank fields are a no-op (`created: false`, nothing sent to the backend).
    The new bookmark reaches open pages through the change stream.
    """
    form = bookmark_service.BookmarkForm(backend)
    created = await form.create(current_user.id, data.title, data.url)
    if not created and not form.is_blank:
        raise HTTPException(status_code=502, detail="Bookmark could not be created")
    return BookmarkFormResponse(created=created, title=form.title, url=form.url)


@router.delete("/bookmarks/{bookmark_id}", status_code=204)
async def delete_bookmark(
    bookmark_id: str,
    current_user: SessionUser = Depends(get_current_user),  # noqa: ARG001
    backend: BackendService = Depends(get_backend),
) -> None:
    """Request deletion of a bookmark. Ownership is enforced by the backend."""
    deleted = await bookmark_service.delete_bookmark(backend, bookmark_id)
    if not deleted:
        raise HTTPException(status_code=502, detail="Bookmark could not be deleted")


@router.get("/events")
async def dashboard_events(
    request: Request,
    factory: BackendFactory = Depends(get_backend_factory),
    settings: Settings = Depends(get_settings),
    live_pages: LivePageRegistry = Depends(get_live_pages),
) -> StreamingResponse:
    """
    Stream live dashboard updates as Server-Sent Events.

    Each connection is one mounted page with its own change channel. Events:
    `bookmarks` (full list snapshot) and `redirect` (session lost).
    """
    queue: asyncio.Queue[tuple[str, dict[str, Any]]] = asyncio.Queue()
    access_token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    refresh_token = request.cookies.get(REFRESH_TOKEN_COOKIE)

    async def events() -> AsyncGenerator[str]:
        try:
            backend = await factory(access_token, refresh_token)
        except BackendError as e:
            logger.warning("Backend unavailable for event stream: %s", e)
            yield format_event("error", {"detail": "Backend unavailable"})
            return
        navigator = Navigator(
            settings.login_path,
            on_redirect=lambda path: queue.put_nowait(("redirect", {"location": path})),
        )
        page = DashboardPage(backend, navigator)

        def publish(bookmarks: list[Bookmark]) -> None:
            email = page.user.email if page.user else None
            payload = build_dashboard_response(email, bookmarks)
            queue.put_nowait(("bookmarks", payload.model_dump(mode="json")))

        page.store.add_listener(publish)
        try:
            async for chunk in stream_page_events(
                page,
                queue,
                request.is_disconnected,
                settings.events_keepalive_seconds,
                live_pages=live_pages,
            ):
                yield chunk
        finally:
            await asyncio.shield(backend.aclose())

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )
