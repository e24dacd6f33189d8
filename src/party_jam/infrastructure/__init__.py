"""Infrastructure layer - adapters for the application ports.

This layer contains implementations for:
- In-memory session storage
- Wall-clock time and asyncio timers
"""

from party_jam.infrastructure.memory.session_store import InMemorySessionStore
from party_jam.infrastructure.timing import AsyncioScheduler, SystemClock

__all__ = [
    "InMemorySessionStore",
    "AsyncioScheduler",
    "SystemClock",
]
