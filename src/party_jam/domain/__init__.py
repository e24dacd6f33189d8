"""
Domain Layer

Contains pure party logic organized by bounded contexts:
- shared/: Cross-cutting types, messages, exceptions and events
- party/: Party, member, queue and session state
- voting/: Vote tallies and the threshold policy
- suggestions/: Sampling rules for guest suggestions
"""

from party_jam.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
