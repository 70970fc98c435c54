"""Tests for OpenCashSessionUseCase."""

from decimal import Decimal

import pytest

from possync.application.dto.requests import OpenCashSessionRequest
from possync.application.use_cases import OpenCashSessionUseCase
from possync.core.entities import CashSession, EntityKind, OperationKind
from possync.core.exceptions import SessionAlreadyOpenError, TransientNetworkError


@pytest.fixture
def use_case(session_store, remote, gate, coordinator):
    return OpenCashSessionUseCase(
        sessions=session_store,
        remote=remote,
        gate=gate,
        coordinator=coordinator,
    )


class TestOpenCashSessionUseCase:
    async def test_opens_new_session(self, use_case, session_store, coordinator, gate):
        """Test a new session is saved locally and queued."""
        gate.force_offline(True)
        request = OpenCashSessionRequest(user_id="user-1", opening_amount=Decimal("100"))

        result = await use_case.execute(request)

        assert not result.adopted
        assert result.session.opening_amount == Decimal("100.00")
        assert result.session.is_open
        assert await session_store.get(result.session.id) is not None
        [op] = coordinator.queue.pending()
        assert op.kind == OperationKind.CREATE
        assert op.entity_kind == EntityKind.CASH_SESSION
        assert op.payload["id"] == result.session.id

    async def test_adopts_local_open_session(self, use_case, session_store, coordinator):
        existing = CashSession(id="s1", user_id="user-1")
        await session_store.save(existing)

        result = await use_case.execute(OpenCashSessionRequest(user_id="user-1"))

        assert result.adopted
        assert result.session.id == "s1"
        assert coordinator.queue.drainable_count() == 0

    async def test_adopts_remote_open_session(self, use_case, session_store, remote):
        remote.sessions["r1"] = CashSession(id="r1", user_id="user-1")

        result = await use_case.execute(OpenCashSessionRequest(user_id="user-1"))

        assert result.adopted
        assert result.session.id == "r1"
        assert await session_store.get("r1") is not None

    async def test_remote_lookup_failure_opens_new(self, use_case, remote):
        remote.read_error = TransientNetworkError("timeout")

        result = await use_case.execute(OpenCashSessionRequest(user_id="user-1"))

        assert not result.adopted

    async def test_other_users_session_ignored(self, use_case, session_store, gate):
        gate.force_offline(True)
        await session_store.save(CashSession(id="s1", user_id="user-2"))

        result = await use_case.execute(OpenCashSessionRequest(user_id="user-1"))

        assert not result.adopted

    async def test_open_session_on_other_register_conflicts(
        self, use_case, session_store, coordinator
    ):
        """Test a drawer open on another register is not silently adopted."""
        await session_store.save(CashSession(id="s1", user_id="user-1", register_id="r1"))

        with pytest.raises(SessionAlreadyOpenError) as exc_info:
            await use_case.execute(OpenCashSessionRequest(user_id="user-1", register_id="r2"))

        assert exc_info.value.details["session_id"] == "s1"
        assert coordinator.queue.drainable_count() == 0

    async def test_same_register_adopts(self, use_case, session_store):
        await session_store.save(CashSession(id="s1", user_id="user-1", register_id="r1"))

        result = await use_case.execute(
            OpenCashSessionRequest(user_id="user-1", register_id="r1")
        )

        assert result.adopted
        assert result.session.id == "s1"
