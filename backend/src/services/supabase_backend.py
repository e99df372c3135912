"""BackendService implementation over the Supabase async client."""
import asyncio
import logging
from typing import Any

from pydantic import ValidationError
from supabase import AsyncClient, AsyncClientOptions, acreate_client

from core.config import Settings
from schemas.bookmark import Bookmark, BookmarkCreate, BookmarkId
from schemas.change_event import ChangeEvent
from schemas.session import OAuthRedirect, Session, SessionUser
from services.backend import AuthChangeCallback, AuthSubscription, ChangeCallback, Channel
from services.exceptions import BackendError

logger = logging.getLogger(__name__)

CODE_VERIFIER_SUFFIX = "-code-verifier"


class RequestStorage:
    """
    Per-request auth storage handed to the Supabase client.

    Nothing is shared between requests: the session lives in cookies and is
    restored explicitly, and the PKCE verifier written during sign-in is read
    back out so it can travel to the callback in a cookie.
    """

    def __init__(self) -> None:
        self.items: dict[str, str] = {}

    async def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    async def remove_item(self, key: str) -> None:
        self.items.pop(key, None)

    def code_verifier(self) -> str | None:
        """Return the PKCE verifier stored by the last OAuth sign-in, if any."""
        for key, value in self.items.items():
            if key.endswith(CODE_VERIFIER_SUFFIX):
                return value
        return None


def to_session(session: Any) -> Session:
    """Convert a Supabase auth session into our Session schema."""
    return Session(
        user=SessionUser(id=str(session.user.id), email=session.user.email),
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_at=session.expires_at,
    )


class SupabaseBackend:
    """
    Supabase-backed implementation of `BackendService`.

    One instance serves one request (or one live event stream). The caller's
    tokens are passed in explicitly and restored into the client before the
    first authenticated call.
    """

    def __init__(
        self,
        client: AsyncClient,
        storage: RequestStorage,
        table: str = "bookmarks",
        schema: str = "public",
        access_token: str | None = None,
        refresh_token: str | None = None,
    ) -> None:
        self._client = client
        self._storage = storage
        self._table = table
        self._schema = schema
        self._access_token = access_token
        self._refresh_token = refresh_token
        self._session_restored = False
        self._tasks: set[asyncio.Task] = set()

    @classmethod
    async def connect(
        cls,
        settings: Settings,
        access_token: str | None = None,
        refresh_token: str | None = None,
    ) -> "SupabaseBackend":
        """Create a client for the configured project carrying the caller's tokens."""
        storage = RequestStorage()
        try:
            client = await acreate_client(
                settings.supabase_url,
                settings.supabase_anon_key,
                options=AsyncClientOptions(
                    storage=storage,
                    flow_type="pkce",
                    auto_refresh_token=False,
                    persist_session=False,
                ),
            )
        except Exception as e:
            raise BackendError("connect", str(e)) from e
        return cls(
            client,
            storage,
            table=settings.bookmarks_table,
            schema=settings.bookmarks_schema,
            access_token=access_token,
            refresh_token=refresh_token,
        )

    async def _restore_session(self) -> None:
        """Load the caller's tokens into the client once."""
        if self._session_restored:
            return
        self._session_restored = True
        if self._access_token and self._refresh_token:
            await self._client.auth.set_session(self._access_token, self._refresh_token)

    async def get_session(self) -> Session | None:
        try:
            await self._restore_session()
            session = await self._client.auth.get_session()
        except Exception as e:
            raise BackendError("get_session", str(e)) from e
        if session is None:
            return None
        return to_session(session)

    async def sign_in_with_oauth(self, provider: str, redirect_to: str) -> OAuthRedirect:
        try:
            response = await self._client.auth.sign_in_with_oauth(
                {"provider": provider, "options": {"redirect_to": redirect_to}},
            )
        except Exception as e:
            raise BackendError("sign_in_with_oauth", str(e)) from e
        return OAuthRedirect(url=response.url, code_verifier=self._storage.code_verifier())

    async def exchange_code_for_session(
        self, code: str, code_verifier: str | None,
    ) -> Session:
        params: dict[str, str] = {"auth_code": code}
        if code_verifier:
            params["code_verifier"] = code_verifier
        try:
            response = await self._client.auth.exchange_code_for_session(params)
        except Exception as e:
            raise BackendError("exchange_code_for_session", str(e)) from e
        if response.session is None:
            raise BackendError("exchange_code_for_session", "no session returned")
        self._session_restored = True
        return to_session(response.session)

    async def sign_out(self) -> None:
        try:
            await self._restore_session()
            await self._client.auth.sign_out()
        except Exception as e:
            raise BackendError("sign_out", str(e)) from e

    async def fetch_bookmarks(self, user_id: str) -> list[Bookmark]:
        try:
            await self._restore_session()
            response = await (
                self._client.table(self._table)
                .select("*")
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .execute()
            )
            return [Bookmark.model_validate(row) for row in response.data]
        except Exception as e:
            raise BackendError("fetch_bookmarks", str(e)) from e

    async def insert_bookmark(self, data: BookmarkCreate) -> None:
        try:
            await self._restore_session()
            await self._client.table(self._table).insert(data.model_dump()).execute()
        except Exception as e:
            raise BackendError("insert_bookmark", str(e)) from e

    async def delete_bookmark(self, bookmark_id: BookmarkId) -> None:
        try:
            await self._restore_session()
            await self._client.table(self._table).delete().eq("id", bookmark_id).execute()
        except Exception as e:
            raise BackendError("delete_bookmark", str(e)) from e

    async def subscribe_changes(self, user_id: str, callback: ChangeCallback) -> Channel:
        def dispatch(payload: dict[str, Any]) -> None:
            try:
                event = ChangeEvent.from_payload(payload)
            except (ValueError, ValidationError) as e:
                logger.warning("Dropping malformed change payload: %s", e)
                return
            callback(event)

        try:
            await self._restore_session()
            channel = self._client.channel(f"{self._table}:{user_id}")
            channel.on_postgres_changes(
                event="*",
                schema=self._schema,
                table=self._table,
                filter=f"user_id=eq.{user_id}",
                callback=dispatch,
            )
            await channel.subscribe()
        except Exception as e:
            raise BackendError("subscribe_changes", str(e)) from e
        logger.info("Opened change channel for user %s", user_id)
        return channel

    async def remove_channel(self, channel: Channel) -> None:
        try:
            await self._client.remove_channel(channel)
        except Exception as e:
            raise BackendError("remove_channel", str(e)) from e

    def on_auth_state_change(self, callback: AuthChangeCallback) -> AuthSubscription:
        # The client calls listeners synchronously; hand each one to the loop.
        def listener(event: str, session: Any) -> None:
            converted = to_session(session) if session is not None else None
            task = asyncio.ensure_future(callback(str(event), converted))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        return self._client.auth.on_auth_state_change(listener)

    async def aclose(self) -> None:
        """Close the realtime channels and both HTTP connection pools."""
        try:
            await self._client.remove_all_channels()
        except Exception as e:
            logger.warning("Failed to close realtime channels: %s", e)
        try:
            await self._client.auth.close()
        except Exception as e:
            logger.warning("Failed to close auth HTTP client: %s", e)
        try:
            await self._client.postgrest.aclose()
        except Exception as e:
            logger.warning("Failed to close PostgREST HTTP client: %s", e)
