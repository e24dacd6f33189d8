"""Port interfaces implemented by infrastructure adapters."""

from party_jam.application.interfaces.broadcast_gateway import BroadcastGateway
from party_jam.application.interfaces.clock import Clock, Scheduler, TimerCallback, TimerHandle

__all__ = [
    "BroadcastGateway",
    "Clock",
    "Scheduler",
    "TimerCallback",
    "TimerHandle",
]
