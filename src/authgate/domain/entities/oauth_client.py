"""OAuth client entity.

A registered relying party allowed to run the authorization-code flow.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class OAuthClient:
    """OAuth client entity.

    Attributes:
        id: Client identifier sent as ``client_id``.
        name: Human readable client name.
        client_secret_hash: SHA-256 hex digest of the secret, empty for public clients.
        redirect_uris: Exact redirect URIs the client may use.
        allowed_origin: Browser origin of the client, used for CORS.
        scopes: Scopes the client may request.
        is_active: Inactive clients are treated as unknown.
        created_at: Timestamp when the client was registered.
    """

    id: str
    name: str
    client_secret_hash: str
    redirect_uris: list[str]
    allowed_origin: str
    scopes: list[str]
    is_active: bool = True
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_confidential(self) -> bool:
        """Whether the client must authenticate with a secret."""
        return bool(self.client_secret_hash)
