"""Audit event types."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class EventOutcome(str, Enum):
    """Outcome of a data product access."""
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    ERROR = "error"
    DENIED = "denied"


class Operation(str, Enum):
    """Type of operation performed."""
    DISCOVER = "discover"
    DESCRIBE = "describe"
    SCHEMA = "schema"
    QUERY = "query"
    ASSUME_ROLE = "assume_role"


@dataclass(frozen=True, slots=True)
class CallerIdentity:
    """
    Identity of the principal behind the current credentials.

    Populated from the cloud provider's caller identity call.
    """
    arn: str | None = None
    account: str | None = None
    user_id: str | None = None

    @property
    def principal(self) -> str:
        """Primary identifier for this caller."""
        return self.arn or self.user_id or "anonymous"

    def __str__(self) -> str:
        return self.principal


@dataclass(frozen=True, slots=True)
class AccessEvent:
    """
    A single access attempt against a data product.

    Captures who asked for what, under which role, and how it went.
    """
    request_id: str
    timestamp: datetime

    # Who
    caller: CallerIdentity
    role: str | None

    # What
    product: str
    product_domain: str | None
    operation: Operation

    # Outcome
    outcome: EventOutcome
    error_message: str | None = None

    latency_ms: float = 0.0
    result_count: int | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        product: str,
        operation: Operation,
        caller: CallerIdentity,
        outcome: EventOutcome,
        role: str | None = None,
        **kwargs,
    ) -> AccessEvent:
        """Factory method with sensible defaults."""
        domain = product.split(".", 1)[0] if product else None

        return cls(
            request_id=str(uuid.uuid4()),
            timestamp=datetime.now(timezone.utc),
            caller=caller,
            role=role,
            product=product,
            product_domain=domain,
            operation=operation,
            outcome=outcome,
            **kwargs,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat(),
            "caller": {
                "principal": self.caller.principal,
                "arn": self.caller.arn,
                "account": self.caller.account,
                "user_id": self.caller.user_id,
            },
            "role": self.role,
            "product": self.product,
            "product_domain": self.product_domain,
            "operation": self.operation.value,
            "outcome": self.outcome.value,
            "error_message": self.error_message,
            "latency_ms": self.latency_ms,
            "result_count": self.result_count,
            "metadata": self.metadata,
        }
