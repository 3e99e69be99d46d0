"""OAuth credential entities: authorization codes, access and refresh tokens.

All three are opaque random strings that double as primary keys.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AuthorizationCode:
    """Single-use authorization code bound to a client and redirect URI.

    Attributes:
        code: The opaque code value.
        client_id: Client the code was issued to.
        user_id: User who approved the request.
        redirect_uri: Redirect URI the code was delivered to.
        scopes: Granted scopes.
        expires: Expiry timestamp.
        code_challenge: PKCE challenge, if the client sent one.
        code_challenge_method: ``S256`` or ``plain``.
        created_at: Issue timestamp.
    """

    code: str
    client_id: str
    user_id: str
    redirect_uri: str
    scopes: list[str]
    expires: datetime
    code_challenge: str | None = None
    code_challenge_method: str | None = None
    created_at: datetime = field(default_factory=_utcnow)

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.expires <= (now or _utcnow())


@dataclass
class AccessToken:
    """Bearer access token."""

    token: str
    client_id: str
    user_id: str
    scopes: list[str]
    expires: datetime
    created_at: datetime = field(default_factory=_utcnow)

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.expires <= (now or _utcnow())

    def has_scope(self, scope: str) -> bool:
        return scope in self.scopes


@dataclass
class RefreshToken:
    """Refresh token paired with exactly one access token."""

    token: str
    access_token: str
    client_id: str
    user_id: str
    expires: datetime
    created_at: datetime = field(default_factory=_utcnow)

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.expires <= (now or _utcnow())


@dataclass
class TokenPair:
    """An access token and its refresh token, as minted together."""

    access_token: AccessToken
    refresh_token: RefreshToken

    @property
    def expires_in(self) -> int:
        """Seconds until the access token expires."""
        remaining = self.access_token.expires - _utcnow()
        return max(int(remaining.total_seconds()), 0)

    def to_response(self) -> dict:
        """Render the pair as an OAuth token endpoint response."""
        return {
            "access_token": self.access_token.token,
            "token_type": "Bearer",
            "expires_in": self.expires_in,
            "refresh_token": self.refresh_token.token,
            "scope": " ".join(self.access_token.scopes),
        }
