"""Credential lifecycle - acquire, cache and refresh role credentials."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Sequence

import boto3

from ..config import AwsConfig
from .errors import LOGIN_HINT, AssumeRoleError, CredentialError, NoCredentialSourceError
from .sources import AwsCliBroker, CredentialSource, EnvironmentSource, ProfileSource, SSOSource
from .types import Credentials, Role, utcnow


logger = logging.getLogger(__name__)

# Role credentials live for 60 minutes; refresh with a safety margin
REFRESH_THRESHOLD = timedelta(minutes=55)


def default_sources(
    config: AwsConfig,
    clock: Callable[[], datetime] = utcnow,
) -> list[CredentialSource]:
    """Sources in precedence order: profile, environment, SSO."""
    return [
        ProfileSource(config.profile),
        EnvironmentSource(),
        SSOSource(
            cache_dir=config.sso_cache_dir,
            account_id=config.account_id,
            profile=config.profile,
            broker=AwsCliBroker(timeout=config.broker_timeout_seconds),
            clock=clock,
        ),
    ]


class CredentialProvider:
    """
    Produces valid credentials for the currently assumed role.

    - First successful source wins (profile, environment, SSO)
    - Cached credentials are reused until older than REFRESH_THRESHOLD
    - Switching roles is all-or-nothing

    The active role and cached credentials are guarded by one lock, so a
    refresh is never observed half-written.
    """

    def __init__(
        self,
        config: AwsConfig,
        sources: Sequence[CredentialSource] | None = None,
        clock: Callable[[], datetime] = utcnow,
        refresh_threshold: timedelta = REFRESH_THRESHOLD,
    ):
        self.config = config
        self._clock = clock
        self._sources = list(sources) if sources is not None else default_sources(config, clock)
        self._refresh_threshold = refresh_threshold
        self._lock = threading.RLock()

        self._role: Role | None = (
            Role(config.default_role, config.account_id) if config.default_role else None
        )
        self._credentials: Credentials | None = None
        self._last_refresh: datetime | None = None

    @property
    def role(self) -> Role | None:
        with self._lock:
            return self._role

    def acquire(self) -> Credentials:
        """
        Run the source chain and cache the first credentials found.

        Raises:
            NoCredentialSourceError: If every source is exhausted
            TokenExpiredError: If the SSO token has expired
            BrokerError: If the role credential exchange fails
        """
        with self._lock:
            return self._acquire_from(self._sources)

    def current(self) -> Credentials:
        """
        Return cached credentials, acquiring or refreshing when needed.

        Credentials older than the refresh threshold are re-issued by the
        source that produced them before being returned.
        """
        with self._lock:
            if self._credentials is None:
                return self._acquire_from(self._sources)

            age = self._clock() - self._last_refresh
            if age > self._refresh_threshold:
                logger.info(
                    f"Credentials from {self._credentials.source} are "
                    f"{int(age.total_seconds() // 60)} minutes old, refreshing"
                )
                return self._refresh()

            return self._credentials

    def assume_role(self, role: Role | str) -> Credentials:
        """
        Switch to a new role and acquire credentials for it.

        On failure the previous role and credentials stay active.

        Raises:
            AssumeRoleError: If credentials for the new role cannot be obtained
        """
        if isinstance(role, str):
            role = Role(role, self.config.account_id)

        with self._lock:
            previous = (self._role, self._credentials, self._last_refresh)
            self._role = role
            try:
                role_sources = [s for s in self._sources if s.role_aware]
                return self._acquire_from(role_sources)
            except CredentialError as e:
                self._role, self._credentials, self._last_refresh = previous
                logger.warning(f"Failed to assume role {role}: {e}")
                raise AssumeRoleError(f"Failed to assume role {role}: {e}", role=role.name) from e
            except Exception:
                self._role, self._credentials, self._last_refresh = previous
                raise

    def session(self) -> boto3.Session:
        """A boto3 session bound to the current credentials."""
        creds = self.current()
        return boto3.Session(
            aws_access_key_id=creds.access_key_id,
            aws_secret_access_key=creds.secret_access_key,
            aws_session_token=creds.session_token,
            region_name=self.config.region,
        )

    def _acquire_from(self, sources: Sequence[CredentialSource]) -> Credentials:
        """Try sources in order (caller holds lock)."""
        for source in sources:
            creds = source.load(self._role)
            if creds is not None:
                logger.debug(f"Credentials acquired from {source.name}")
                return self._store(creds)

        names = ", ".join(s.name for s in sources) or "none"
        raise NoCredentialSourceError(
            f"No credentials available (tried: {names}); {LOGIN_HINT}"
        )

    def _refresh(self) -> Credentials:
        """Re-issue credentials from their original source (caller holds lock)."""
        issuer = self._credentials.source
        for source in self._sources:
            if source.name == issuer:
                creds = source.load(self._role)
                if creds is None:
                    raise NoCredentialSourceError(
                        f"Credential source '{issuer}' no longer available; {LOGIN_HINT}"
                    )
                return self._store(creds)
        return self._acquire_from(self._sources)

    def _store(self, creds: Credentials) -> Credentials:
        self._credentials = creds
        self._last_refresh = self._clock()
        return creds
