"""Unit tests for phased execution, errors and the prepare/restore contract."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from jujuprep.core.errors import PhaseError
from jujuprep.core.executable import Action, do_action
from jujuprep.core.phase import run_phase


class MockExecutable:
    def __init__(self) -> None:
        self.prepare = AsyncMock()
        self.restore = AsyncMock()


class TestDoAction:
    """Tests for do_action."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action", ["prepare", Action.PREPARE])
    async def test_prepare(self, action: Action | str) -> None:
        executable = MockExecutable()
        await do_action(executable, action)
        executable.prepare.assert_awaited_once()
        executable.restore.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_restore(self) -> None:
        executable = MockExecutable()
        await do_action(executable, Action.RESTORE)
        executable.restore.assert_awaited_once()
        executable.prepare.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown action"):
            await do_action(MockExecutable(), "destroy")


class TestRunPhase:
    """Tests for run_phase."""

    @pytest.mark.asyncio
    async def test_all_succeed(self) -> None:
        done: list[int] = []

        async def unit(i: int) -> None:
            done.append(i)

        await run_phase("test", [unit(i) for i in range(3)])
        assert sorted(done) == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_empty(self) -> None:
        await run_phase("nothing", [])

    @pytest.mark.asyncio
    async def test_units_run_concurrently(self) -> None:
        started = asyncio.Event()

        async def waiter() -> None:
            await asyncio.wait_for(started.wait(), timeout=1)

        async def setter() -> None:
            started.set()

        await run_phase("concurrent", [waiter(), setter()])

    @pytest.mark.asyncio
    async def test_collects_every_failure(self) -> None:
        """Siblings keep running and every error is kept, first observed first."""
        finished: list[str] = []

        async def fails_fast() -> None:
            raise RuntimeError("first")

        async def fails_late() -> None:
            await asyncio.sleep(0.01)
            raise ValueError("second")

        async def succeeds_slowly() -> None:
            await asyncio.sleep(0.02)
            finished.append("slow")

        with pytest.raises(PhaseError) as exc_info:
            await run_phase("providers", [fails_late(), fails_fast(), succeeds_slowly()])

        error = exc_info.value
        assert [str(e) for e in error.errors] == ["first", "second"]
        assert error.first is error.__cause__
        assert error.phase == "providers"
        assert str(error) == "providers failed: first (and 1 more)"
        assert finished == ["slow"]


class TestPhaseError:
    def test_single_error_message(self) -> None:
        error = PhaseError("packages", [RuntimeError("snap install jq failed")])
        assert str(error) == "packages failed: snap install jq failed"

    def test_needs_errors(self) -> None:
        with pytest.raises(ValueError):
            PhaseError("packages", [])
