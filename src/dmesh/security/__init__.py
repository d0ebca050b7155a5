"""Credential lifecycle and caller identity."""

from .errors import (
    AssumeRoleError,
    BrokerError,
    CredentialError,
    IdentityLookupError,
    NoCredentialSourceError,
    TokenExpiredError,
)
from .provider import REFRESH_THRESHOLD, CredentialProvider
from .sources import AwsCliBroker, CredentialSource, EnvironmentSource, ProfileSource, SSOSource
from .types import Credentials, Role
from .access import AccessDecision, AccessGuard, allow_all

__all__ = [
    "AssumeRoleError",
    "BrokerError",
    "CredentialError",
    "IdentityLookupError",
    "NoCredentialSourceError",
    "TokenExpiredError",
    "REFRESH_THRESHOLD",
    "CredentialProvider",
    "AwsCliBroker",
    "CredentialSource",
    "EnvironmentSource",
    "ProfileSource",
    "SSOSource",
    "Credentials",
    "Role",
    "AccessDecision",
    "AccessGuard",
    "allow_all",
]
