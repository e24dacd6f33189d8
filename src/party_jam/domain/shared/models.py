"""Base model configuration shared by wire-facing domain models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Model that serialises with camelCase aliases for client payloads.

    Fields are populated by their Python names; ``model_dump(by_alias=True)``
    produces the contract used by clients (``partyId``, ``kidFriendly`` ...).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenCamelModel(CamelModel):
    """Immutable variant of :class:`CamelModel`."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)
