"""Process-local storage adapters."""

from party_jam.infrastructure.memory.session_store import InMemorySessionStore

__all__ = ["InMemorySessionStore"]
