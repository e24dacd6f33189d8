"""
Suggestion Domain Services

Sampling rules and admission checks for guest suggestions.
"""

from __future__ import annotations

import math
import random
from collections.abc import Sequence
from typing import TYPE_CHECKING

from party_jam.domain.shared.exceptions import (
    ExplicitContentBlockedError,
    SuggestionsDisabledError,
)

if TYPE_CHECKING:
    from party_jam.domain.party.entities import Party, TrackMetadata


class SuggestionDomainService:
    """Domain service for suggestion sampling.

    A suggestion is first shown to a small random sample of active members.
    Partway through the test window the sample is redrawn at twice the size
    (bounded by the cap) so borderline tracks get a second, larger audience.
    """

    def __init__(
        self,
        *,
        sample_percent: float = 0.05,
        sample_min: int = 3,
        sample_cap: int = 15,
        rng: random.Random | None = None,
    ) -> None:
        self.sample_percent = sample_percent
        self.sample_min = sample_min
        self.sample_cap = sample_cap
        self._rng = rng or random.Random()

    def sample_size(self, active_members_count: int) -> int:
        """``clamp(ceil(N * percent), min, cap)``.

        Examples with the defaults: N=10 -> 3, N=40 -> 3, N=100 -> 5,
        N=400 -> 15.
        """
        raw = math.ceil(active_members_count * self.sample_percent)
        return max(self.sample_min, min(raw, self.sample_cap))

    def expanded_sample_size(self, sample_size: int) -> int:
        return min(sample_size * 2, self.sample_cap)

    def draw_sample(self, user_ids: Sequence[str], size: int) -> list[str]:
        """Uniform sample without replacement, capped by the population size."""
        population = list(user_ids)
        return self._rng.sample(population, min(size, len(population)))

    @staticmethod
    def check_can_suggest(party: Party, metadata: TrackMetadata) -> None:
        """Apply the party's content and permission settings.

        The explicit-content rejection takes precedence over the
        suggestions-disabled rejection when both apply.

        Raises:
            ExplicitContentBlockedError: Explicit track at a kid-friendly party.
            SuggestionsDisabledError: The host has turned suggestions off.
        """
        if party.kid_friendly and metadata.explicit:
            raise ExplicitContentBlockedError()
        if not party.allow_suggestions:
            raise SuggestionsDisabledError()
