"""Storage backends for email sign-in codes."""

from authgate.infrastructure.persistence.stores.base import EmailMfaCodeStore
from authgate.infrastructure.persistence.stores.memory_store import InMemoryEmailMfaCodeStore

__all__ = ["EmailMfaCodeStore", "InMemoryEmailMfaCodeStore"]
