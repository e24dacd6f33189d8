"""
Shared Domain Kernel

Contains constrained types, messages and exceptions shared across all
bounded contexts. Events live in ``domain.shared.events``.
"""

from party_jam.domain.shared.exceptions import (
    DomainError,
    ForbiddenError,
    InvalidRequestError,
    InvalidStateError,
    NotFoundError,
)
from party_jam.domain.shared.models import CamelModel, FrozenCamelModel

__all__ = [
    "DomainError",
    "InvalidRequestError",
    "NotFoundError",
    "ForbiddenError",
    "InvalidStateError",
    "CamelModel",
    "FrozenCamelModel",
]
