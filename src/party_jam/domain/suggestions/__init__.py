"""
Suggestions Bounded Context

Sampling and admission rules for guest-suggested tracks.
"""

from party_jam.domain.suggestions.services import SuggestionDomainService

__all__ = [
    "SuggestionDomainService",
]
