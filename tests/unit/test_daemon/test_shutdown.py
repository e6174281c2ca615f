"""Tests for ShutdownCoordinator."""

from __future__ import annotations

import asyncio
import os
import signal
from unittest.mock import AsyncMock, MagicMock

import pytest

from handyhttpd.shutdown import ShutdownCoordinator


class TestRequestShutdown:
    def test_first_reason_wins(self) -> None:
        coordinator = ShutdownCoordinator()
        coordinator.request_shutdown("quit command")
        coordinator.request_shutdown("SIGTERM")
        assert coordinator.requested
        assert coordinator.reason == "quit command"

    @pytest.mark.asyncio
    async def test_wait_returns_once_requested(self) -> None:
        coordinator = ShutdownCoordinator()
        waiter = asyncio.create_task(coordinator.wait())
        await asyncio.sleep(0)
        assert not waiter.done()
        coordinator.request_shutdown()
        await asyncio.wait_for(waiter, timeout=1)

    @pytest.mark.asyncio
    async def test_sigterm_triggers_shutdown(self) -> None:
        coordinator = ShutdownCoordinator()
        coordinator.install_signal_handlers()
        try:
            os.kill(os.getpid(), signal.SIGTERM)
            await asyncio.wait_for(coordinator.wait(), timeout=1)
            assert coordinator.reason == "SIGTERM"
        finally:
            coordinator.remove_signal_handlers()


class TestTeardown:
    @pytest.mark.asyncio
    async def test_control_channel_stops_before_hosted_servers(self) -> None:
        order: list[str] = []
        control = MagicMock()
        control.stop = AsyncMock(side_effect=lambda: order.append("control"))
        registry = MagicMock()
        registry.stop_all = AsyncMock(side_effect=lambda: order.append("servers"))

        await ShutdownCoordinator().teardown(control, registry)
        assert order == ["control", "servers"]

    @pytest.mark.asyncio
    async def test_teardown_runs_once(self) -> None:
        control = MagicMock()
        control.stop = AsyncMock()
        registry = MagicMock()
        registry.stop_all = AsyncMock()
        coordinator = ShutdownCoordinator()

        await coordinator.teardown(control, registry)
        await coordinator.teardown(control, registry)
        control.stop.assert_awaited_once()
        registry.stop_all.assert_awaited_once()
