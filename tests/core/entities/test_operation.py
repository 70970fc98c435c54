"""Tests for pending operation entities."""

from datetime import UTC, datetime

from possync.core.entities import (
    EntityKind,
    OperationKind,
    OperationStatus,
    PendingOperation,
)


class TestPendingOperation:
    """Tests for PendingOperation entity."""

    def test_generated_id_format(self):
        """Test id is <entity>_<kind>_<epoch ms>_<suffix>."""
        created = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)
        op = PendingOperation(
            kind=OperationKind.CREATE,
            entity_kind=EntityKind.SALE,
            created_at=created,
        )
        entity, kind, millis, suffix = op.id.split("_")
        assert entity == "sale"
        assert kind == "create"
        assert int(millis) == int(created.timestamp() * 1000)
        assert len(suffix) == 8

    def test_multiword_entity_prefix(self):
        op = PendingOperation(kind=OperationKind.UPDATE, entity_kind=EntityKind.CASH_SESSION)
        assert op.id.startswith("cash_session_update_")

    def test_ids_are_unique(self):
        ids = {
            PendingOperation(kind=OperationKind.CREATE, entity_kind=EntityKind.SALE).id
            for _ in range(50)
        }
        assert len(ids) == 50

    def test_explicit_id_kept(self):
        op = PendingOperation(id="op-1", kind=OperationKind.DELETE, entity_kind=EntityKind.PRODUCT)
        assert op.id == "op-1"

    def test_defaults(self):
        op = PendingOperation(kind=OperationKind.CREATE, entity_kind=EntityKind.SALE)
        assert op.attempt_count == 0
        assert op.status == OperationStatus.PENDING
        assert op.is_dead is False
        assert op.payload == {}
        assert op.idempotency_key

    def test_idempotency_key_survives_copy(self):
        """Test the key stays stable across retries (model copies)."""
        op = PendingOperation(kind=OperationKind.CREATE, entity_kind=EntityKind.SALE)
        retried = op.model_copy(update={"attempt_count": 2})
        assert retried.idempotency_key == op.idempotency_key
        assert retried.id == op.id

    def test_ordering_key(self):
        op = PendingOperation(
            kind=OperationKind.UPDATE,
            entity_kind=EntityKind.SETTINGS,
            owner_key="user-1",
        )
        assert op.ordering_key == (EntityKind.SETTINGS, "user-1")

    def test_entity_id_from_payload(self):
        op = PendingOperation(
            kind=OperationKind.UPDATE,
            entity_kind=EntityKind.SALE,
            payload={"id": 42},
        )
        assert op.entity_id == "42"

    def test_entity_id_missing(self):
        op = PendingOperation(kind=OperationKind.CREATE, entity_kind=EntityKind.SALE)
        assert op.entity_id is None
