"""Caller identity lookup and audited access checks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from botocore.exceptions import BotoCoreError, ClientError

from ..audit.events import AccessEvent, CallerIdentity, EventOutcome, Operation
from ..audit.trail import AuditTrail
from .errors import IdentityLookupError
from .provider import CredentialProvider


logger = logging.getLogger(__name__)

# (caller, product) -> granted
AccessPolicy = Callable[[CallerIdentity, str], bool]


def allow_all(caller: CallerIdentity, product: str) -> bool:
    """Grant every request. Role permissions are enforced by the identity provider."""
    return True


@dataclass(frozen=True, slots=True)
class AccessDecision:
    granted: bool
    principal: str
    reason: str = ""


class AccessGuard:
    """
    Records who is accessing which data product.

    The caller's principal is looked up from the current credentials and an
    audit event is written for every check. Whether access is granted is
    decided by a pluggable policy; without one every request is granted and
    the decision says so.
    """

    def __init__(
        self,
        credentials: CredentialProvider,
        audit: AuditTrail,
        policy: AccessPolicy | None = None,
        client_factory: Callable[[CredentialProvider], Any] | None = None,
    ):
        self.credentials = credentials
        self.audit = audit
        self.policy = policy
        self._client_factory = client_factory or _sts_client

    def whoami(self) -> CallerIdentity:
        """
        Look up the principal behind the current credentials.

        Raises:
            IdentityLookupError: If the identity call fails
        """
        client = self._client_factory(self.credentials)
        try:
            response = client.get_caller_identity()
        except (ClientError, BotoCoreError) as e:
            raise IdentityLookupError(f"Error getting caller identity: {e}") from e

        return CallerIdentity(
            arn=response.get("Arn"),
            account=response.get("Account"),
            user_id=response.get("UserId"),
        )

    def check_access(self, product: str, operation: Operation = Operation.QUERY) -> AccessDecision:
        """Evaluate and audit an access attempt against a data product."""
        caller = self.whoami()
        role = self.credentials.role

        if self.policy is None:
            granted, reason = allow_all(caller, product), "no policy configured"
        else:
            granted = bool(self.policy(caller, product))
            reason = "granted by policy" if granted else "denied by policy"

        logger.info(f"User {caller.principal} is requesting access to data product {product}")

        self.audit.record(AccessEvent.create(
            product=product,
            operation=operation,
            caller=caller,
            outcome=EventOutcome.SUCCESS if granted else EventOutcome.DENIED,
            role=str(role) if role else None,
            metadata={"reason": reason},
        ))

        return AccessDecision(granted=granted, principal=caller.principal, reason=reason)

    def record(
        self,
        product: str,
        operation: Operation,
        outcome: EventOutcome,
        caller: CallerIdentity | None = None,
        **kwargs,
    ) -> None:
        """Record the outcome of an operation that followed a check."""
        role = self.credentials.role
        self.audit.record(AccessEvent.create(
            product=product,
            operation=operation,
            caller=caller or CallerIdentity(),
            outcome=outcome,
            role=str(role) if role else None,
            **kwargs,
        ))


def _sts_client(credentials: CredentialProvider):
    return credentials.session().client("sts")
