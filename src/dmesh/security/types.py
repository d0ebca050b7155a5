"""Credential and role types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class Role:
    """An assumable role in a specific account."""
    name: str
    account_id: str = ""

    def __str__(self) -> str:
        if self.account_id:
            return f"{self.account_id}/{self.name}"
        return self.name


@dataclass(frozen=True, slots=True)
class Credentials:
    """
    A short-lived set of cloud credentials.

    Instances are never modified. A refresh replaces the cached instance
    with a new one.
    """
    access_key_id: str
    secret_access_key: str = field(repr=False)
    session_token: str | None = field(default=None, repr=False)

    # When the issuer says these stop working (None = unknown)
    expires_at: datetime | None = None

    # Role these were issued for, if any
    role: Role | None = None

    # Name of the source that produced them (profile, environment, sso)
    source: str = ""

    issued_at: datetime = field(default_factory=utcnow)

