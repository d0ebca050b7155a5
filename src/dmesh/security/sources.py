"""
Credential sources.

Each source either produces credentials for a role or reports that it does
not apply (returns None). Hard failures that the operator must act on, such
as an expired SSO token, are raised instead.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Mapping

import boto3
from botocore.credentials import EnvProvider
from botocore.exceptions import BotoCoreError, PartialCredentialsError, ProfileNotFound

from .errors import LOGIN_HINT, BrokerError, TokenExpiredError
from .types import Credentials, Role, utcnow


logger = logging.getLogger(__name__)


class CredentialSource(ABC):
    """Abstract base class for credential sources."""

    # Whether the credentials depend on the requested role
    role_aware: bool = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Short name recorded on issued credentials."""
        ...

    @abstractmethod
    def load(self, role: Role | None) -> Credentials | None:
        """
        Load credentials.

        Returns:
            Credentials, or None if this source has nothing to offer

        Raises:
            CredentialError: On a failure the operator must act on
        """
        ...


class ProfileSource(CredentialSource):
    """Credentials from an explicitly configured named profile."""

    def __init__(self, profile: str):
        self.profile = profile

    @property
    def name(self) -> str:
        return "profile"

    def load(self, role: Role | None) -> Credentials | None:
        if not self.profile:
            return None

        try:
            session = boto3.Session(profile_name=self.profile)
            creds = session.get_credentials()
        except ProfileNotFound:
            logger.warning(f"Profile '{self.profile}' not found in shared configuration")
            return None
        except BotoCoreError as e:
            logger.warning(f"Could not load credentials for profile '{self.profile}': {e}")
            return None

        if creds is None:
            logger.debug(f"Profile '{self.profile}' has no credentials")
            return None

        frozen = creds.get_frozen_credentials()
        return Credentials(
            access_key_id=frozen.access_key,
            secret_access_key=frozen.secret_key,
            session_token=frozen.token,
            role=role,
            source=self.name,
        )


class EnvironmentSource(CredentialSource):
    """Credentials from AWS_* variables in the process environment."""

    def __init__(self, environ: Mapping[str, str] | None = None):
        self.environ = environ

    @property
    def name(self) -> str:
        return "environment"

    def load(self, role: Role | None) -> Credentials | None:
        environ = os.environ if self.environ is None else self.environ
        try:
            creds = EnvProvider(environ=dict(environ)).load()
        except PartialCredentialsError as e:
            logger.warning(f"Ignoring incomplete environment credentials: {e}")
            return None

        if creds is None:
            return None

        frozen = creds.get_frozen_credentials()
        return Credentials(
            access_key_id=frozen.access_key,
            secret_access_key=frozen.secret_key,
            session_token=frozen.token,
            role=role,
            source=self.name,
        )


def parse_timestamp(value: str) -> datetime:
    """
    Parse an SSO cache timestamp.

    Accepts RFC 3339 with a 'Z' suffix as well as the older 'UTC' suffix
    written by some CLI versions. Naive values are taken as UTC.
    """
    text = value.strip()
    if text.endswith("UTC"):
        text = text[:-3] + "+00:00"
    elif text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class AwsCliBroker:
    """
    Exchanges a cached SSO login for role credentials via the AWS CLI.

    Runs `aws sso get-role-credentials` and returns the parsed
    `roleCredentials` object.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        executable: str = "aws",
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ):
        self.timeout = timeout
        self.executable = executable
        self._runner = runner

    def command(self, role_name: str, account_id: str, profile: str = "") -> list[str]:
        cmd = [
            self.executable, "sso", "get-role-credentials",
            "--role-name", role_name,
            "--account-id", account_id,
            "--output", "json",
        ]
        if profile:
            cmd += ["--profile", profile]
        return cmd

    def get_role_credentials(
        self,
        role_name: str,
        account_id: str,
        profile: str = "",
    ) -> dict[str, Any]:
        cmd = self.command(role_name, account_id, profile)
        logger.debug(f"Requesting role credentials for {account_id}/{role_name}")

        try:
            completed = self._runner(
                cmd,
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise BrokerError(f"AWS CLI not found ({self.executable}): {e}") from e
        except subprocess.TimeoutExpired as e:
            raise BrokerError(
                f"Role credential request timed out after {self.timeout}s"
            ) from e
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or "").strip() or f"exit status {e.returncode}"
            raise BrokerError(f"Error getting role credentials: {detail}") from e

        try:
            payload = json.loads(completed.stdout)
            role_creds = payload["roleCredentials"]
            for key in ("accessKeyId", "secretAccessKey", "sessionToken"):
                if not isinstance(role_creds.get(key), str):
                    raise KeyError(key)
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
            raise BrokerError(f"Error parsing role credentials: {e}") from e

        return role_creds


class SSOSource(CredentialSource):
    """
    Credentials exchanged from a cached single sign-on token.

    Picks the most recently modified file in the SSO cache directory,
    checks its expiry, then asks the broker for role credentials.
    """

    role_aware = True

    def __init__(
        self,
        cache_dir: str | Path,
        account_id: str,
        profile: str = "",
        broker: AwsCliBroker | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.cache_dir = Path(cache_dir).expanduser()
        self.account_id = account_id
        self.profile = profile
        self.broker = broker or AwsCliBroker()
        self._clock = clock

    @property
    def name(self) -> str:
        return "sso"

    def newest_token_file(self) -> Path | None:
        """Most recently modified file in the cache directory, if any."""
        if not self.cache_dir.is_dir():
            return None
        files = [p for p in self.cache_dir.rglob("*") if p.is_file()]
        if not files:
            return None
        return max(files, key=lambda p: p.stat().st_mtime)

    def token_expiry(self, token_file: Path) -> datetime | None:
        """Read `expiresAt` from a token file. None if unreadable."""
        try:
            data = json.loads(token_file.read_text())
            return parse_timestamp(data["expiresAt"])
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Unreadable SSO token file {token_file}: {e}")
            return None

    def load(self, role: Role | None) -> Credentials | None:
        if role is None or not role.name:
            logger.debug("No role configured, skipping SSO exchange")
            return None

        token_file = self.newest_token_file()
        if token_file is None:
            logger.debug(f"No SSO token found in {self.cache_dir}")
            return None

        expires_at = self.token_expiry(token_file)
        if expires_at is None:
            return None

        now = self._clock()
        if now >= expires_at:
            raise TokenExpiredError(f"SSO token expired at {expires_at.isoformat()}, {LOGIN_HINT}")

        account_id = role.account_id or self.account_id
        role_creds = self.broker.get_role_credentials(role.name, account_id, self.profile)

        expiration = role_creds.get("expiration")
        creds_expiry = None
        if isinstance(expiration, (int, float)) and expiration > 0:
            creds_expiry = datetime.fromtimestamp(expiration / 1000, tz=timezone.utc)

        return Credentials(
            access_key_id=role_creds["accessKeyId"],
            secret_access_key=role_creds["secretAccessKey"],
            session_token=role_creds["sessionToken"],
            expires_at=creds_expiry,
            role=Role(name=role.name, account_id=account_id),
            source=self.name,
            issued_at=now,
        )
