"""Process-local email code store for development and tests.

Codes live in a dict owned by the store instance and vanish on restart.
Not safe to share across worker processes.
"""

import asyncio
from dataclasses import replace
from datetime import datetime, timezone

from authgate.domain.entities.email_mfa_code import EmailMfaCode
from authgate.infrastructure.persistence.stores.base import EmailMfaCodeStore


class InMemoryEmailMfaCodeStore(EmailMfaCodeStore):
    """Email code store backed by an in-process dict keyed by code ID."""

    def __init__(self) -> None:
        self._codes: dict[str, EmailMfaCode] = {}
        self._lock = asyncio.Lock()

    async def replace_code(self, code: EmailMfaCode) -> EmailMfaCode:
        now = datetime.now(timezone.utc)
        async with self._lock:
            self._codes = {
                code_id: stored
                for code_id, stored in self._codes.items()
                if not stored.is_expired(now)
                and not (stored.email == code.email and not stored.is_consumed)
            }
            self._codes[code.id] = replace(code)
        return code

    async def get_latest_unconsumed(self, email: str) -> EmailMfaCode | None:
        candidates = [
            stored
            for stored in self._codes.values()
            if stored.email == email and not stored.is_consumed
        ]
        if not candidates:
            return None
        return replace(max(candidates, key=lambda stored: stored.created_at))

    async def mark_consumed(self, code_id: str, consumed_at: datetime) -> bool:
        async with self._lock:
            stored = self._codes.get(code_id)
            if stored is None or stored.is_consumed:
                return False
            stored.consumed_at = consumed_at
            return True

    async def increment_attempts(self, code_id: str) -> None:
        async with self._lock:
            stored = self._codes.get(code_id)
            if stored is not None:
                stored.attempt_count += 1

    def clear(self) -> None:
        """Drop every stored code."""
        self._codes.clear()
