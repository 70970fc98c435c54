"""Tests for ConnectivityGate."""

import asyncio

from possync.core.services import ConnectivityGate
from tests.fakes import FakeNetwork, FakeRemoteApi


class TestIsOnline:
    """Tests for the two-stage probe."""

    async def test_online_when_link_and_remote_ok(self, gate):
        assert await gate.is_online() is True
        assert gate.last_known is True

    async def test_offline_without_link(self, gate, network, remote):
        network.connected = False
        assert await gate.is_online() is False
        # The remote isn't probed when there's no link
        assert remote.health_checks == 0

    async def test_offline_when_remote_unhealthy(self, gate, remote):
        remote.healthy = False
        assert await gate.is_online() is False

    async def test_probe_exceptions_read_as_offline(self, clock):
        class BrokenNetwork(FakeNetwork):
            async def is_connected(self) -> bool:
                raise OSError("no route")

        gate = ConnectivityGate(BrokenNetwork(), FakeRemoteApi(), clock=clock)
        assert await gate.is_online() is False

    async def test_forced_offline_overrides_probe(self, gate, remote):
        gate.force_offline(True)
        assert await gate.is_online() is False
        assert remote.health_checks == 0

        gate.force_offline(False)
        assert await gate.is_online() is True

    async def test_last_checked_at(self, gate, clock):
        assert gate.last_checked_at is None
        await gate.is_online()
        assert gate.last_checked_at == clock.now


class TestTransitions:
    """Tests for offline->online edge callbacks."""

    async def test_first_online_is_an_edge(self, gate):
        calls = []
        gate.on_transition(lambda: calls.append(1))

        await gate.is_online()
        await gate.is_online()

        assert calls == [1]

    async def test_edge_after_reconnect(self, gate, network):
        calls = []
        gate.on_transition(lambda: calls.append(1))

        await gate.is_online()
        network.connected = False
        await gate.is_online()
        network.connected = True
        await gate.is_online()

        assert len(calls) == 2

    async def test_concurrent_checks_fire_once(self, gate):
        """Test racing checks observing the same transition fire one callback."""
        calls = []
        gate.on_transition(lambda: calls.append(1))

        await asyncio.gather(*(gate.is_online() for _ in range(10)))

        assert calls == [1]

    async def test_callback_error_does_not_break_check(self, gate):
        def broken() -> None:
            raise RuntimeError("listener bug")

        calls = []
        gate.on_transition(broken)
        gate.on_transition(lambda: calls.append(1))

        assert await gate.is_online() is True
        assert calls == [1]

    async def test_unsubscribe(self, gate):
        calls = []
        unsubscribe = gate.on_transition(lambda: calls.append(1))
        unsubscribe()

        await gate.is_online()
        assert calls == []
