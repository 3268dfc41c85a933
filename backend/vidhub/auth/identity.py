# vidhub/auth/identity.py
"""
Canonical authenticated identity model.

The session gate builds one AuthContext per request from the account row and
passes it to handlers. It carries profile fields only: the password hash,
refresh-token digest and one-time code state never leave the account row.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vidhub.models.user import User


@dataclass(frozen=True)
class AuthContext:
    """
    Attributes:
        id: Internal account id (the JWT `sub`).
        email: Lower-cased email.
        username: Lower-cased unique handle.
        name: Display name.
        profile_image: Avatar URL, if any.
        is_verified: Always True for contexts built from a valid access token,
                     kept so handlers can serialize it without another lookup.
        created_at: Account creation time.
    """

    id: int
    email: str
    username: str
    name: str
    profile_image: str | None = None
    is_verified: bool = False
    created_at: datetime | None = None

    @classmethod
    def from_user(cls, user: User) -> AuthContext:
        return cls(
            id=user.id,
            email=user.email,
            username=user.username,
            name=user.name,
            profile_image=user.profile_image,
            is_verified=bool(user.is_verified),
            created_at=user.created_at,
        )

