"""Reusable Pydantic Annotated types for domain-wide validation.

Every constrained type used across bounded contexts is defined here once,
so models can simply annotate their fields::

    from party_jam.domain.shared.types import EpochMillis, NonEmptyStr

    class MyModel(BaseModel):
        user_id: NonEmptyStr
        created_at: EpochMillis
"""

from __future__ import annotations

from typing import Annotated

from pydantic import Field

# ── Numeric constraints ─────────────────────────────────────────────

NonNegativeInt = Annotated[int, Field(ge=0)]
"""Integer >= 0."""

PositiveInt = Annotated[int, Field(gt=0)]
"""Integer > 0."""

EpochMillis = Annotated[int, Field(ge=0)]
"""Milliseconds since the Unix epoch."""


# ── String constraints ──────────────────────────────────────────────

NonEmptyStr = Annotated[str, Field(min_length=1)]
"""String with at least one character."""

PartyIdStr = NonEmptyStr
"""Opaque party identifier."""

UserIdStr = NonEmptyStr
"""Opaque client-supplied user identifier."""

TrackIdStr = NonEmptyStr
"""Catalog track identifier."""

JoinCodeStr = Annotated[str, Field(pattern=r"^[A-Z0-9]+$")]
"""Uppercase alphanumeric join code."""

MoodStr = Annotated[str, Field(min_length=1, max_length=50)]
"""Party mood label: 1-50 characters."""
