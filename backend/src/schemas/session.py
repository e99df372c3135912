"""Session and OAuth schemas mirrored from the backend's auth service."""
from pydantic import BaseModel, ConfigDict


class SessionUser(BaseModel):
    """The authenticated user attached to a session."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    email: str | None = None


class Session(BaseModel):
    """
    An authenticated session.

    Only authoritative for the lifetime of the page that validated it; every
    page mount re-validates against the backend.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    user: SessionUser
    access_token: str
    refresh_token: str
    expires_at: int | None = None


class OAuthRedirect(BaseModel):
    """Where to send the browser to start an OAuth sign-in."""

    url: str
    # PKCE verifier that must come back with the authorization code
    code_verifier: str | None = None
