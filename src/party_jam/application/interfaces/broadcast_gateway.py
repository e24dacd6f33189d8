"""Port interface for fanning events out to connected clients."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any


class BroadcastGateway(ABC):
    """Delivers events to a party's connected clients.

    The core decides what to send and when; transport, rooms and
    connection tracking belong to the implementation.
    """

    @abstractmethod
    async def broadcast(self, party_id: str, event_name: str, payload: dict[str, Any]) -> None:
        """Send an event to every subscriber of a party."""
        ...

    @abstractmethod
    async def send_to_users(
        self,
        party_id: str,
        user_ids: Sequence[str],
        event_name: str,
        payload: dict[str, Any],
    ) -> None:
        """Send an event only to the listed members of a party."""
        ...
