from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Anonymous:
    """A visitor without an account; the cart lives on their device."""

    device_key: str


@dataclass(frozen=True)
class Authenticated:
    owner_id: int

    @property
    def lock_key(self) -> str:
        return f"owner:{self.owner_id}"


IdentityContext = Union[Anonymous, Authenticated]


def identity_for_request(request, ephemeral) -> IdentityContext:
    user = getattr(request, "user", None)
    if user is not None and getattr(user, "is_authenticated", False) and user.pk:
        return Authenticated(int(user.pk))
    return Anonymous(ephemeral.device_key)
