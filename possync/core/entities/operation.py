"""
Pending operation entities.

A pending operation is a local mutation waiting to be replayed against the
remote system of record.
"""

import secrets
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator

from possync.core.clock import utc_now


class OperationKind(str, Enum):
    """Mutation type."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class EntityKind(str, Enum):
    """Remote resource the mutation applies to."""

    SALE = "SALE"
    PRODUCT = "PRODUCT"
    USER = "USER"
    CASH_REGISTER = "CASH_REGISTER"
    CASH_SESSION = "CASH_SESSION"
    SETTINGS = "SETTINGS"


class OperationStatus(str, Enum):
    """Where the operation lives in the queue."""

    PENDING = "PENDING"
    DEAD = "DEAD"


class PendingOperation(BaseModel):
    """
    A queued mutation.

    Only ``attempt_count`` and the dead-letter fields change after enqueue.
    The payload is opaque to the queue.
    """

    id: str = ""
    kind: OperationKind
    entity_kind: EntityKind
    payload: dict[str, Any] = Field(default_factory=dict)
    owner_key: str | None = None

    # Sent as Idempotency-Key on every replay of this operation
    idempotency_key: str = Field(default_factory=lambda: uuid4().hex)

    attempt_count: int = 0
    status: OperationStatus = OperationStatus.PENDING
    last_error: str | None = None

    created_at: datetime = Field(default_factory=utc_now)
    dead_lettered_at: datetime | None = None

    @model_validator(mode="after")
    def assign_id(self) -> "PendingOperation":
        """Generate ``<entity>_<kind>_<epoch ms>_<suffix>`` when no id is given."""
        if not self.id:
            millis = int(self.created_at.timestamp() * 1000)
            self.id = (
                f"{self.entity_kind.value.lower()}_{self.kind.value.lower()}"
                f"_{millis}_{secrets.token_hex(4)}"
            )
        return self

    @property
    def ordering_key(self) -> tuple[EntityKind, str | None]:
        """Operations sharing this key replay in submission order."""
        return (self.entity_kind, self.owner_key)

    @property
    def entity_id(self) -> str | None:
        value = self.payload.get("id")
        return str(value) if value is not None else None

    @property
    def is_dead(self) -> bool:
        return self.status == OperationStatus.DEAD
