"""Unit tests for cooperative cancellation."""

import asyncio
import contextlib

import pytest
from tabgctl.core.cancel import CancellationToken, cancellable
from tabgctl.core.errors import CancellationRequested, InstallError


class TestCancellationToken:
    """Tests for CancellationToken."""

    def test_starts_uncancelled(self) -> None:
        """A new token is not cancelled."""
        token = CancellationToken()

        assert token.cancelled is False
        token.raise_if_cancelled()

    def test_cancel_is_idempotent(self) -> None:
        """Cancelling twice keeps the token cancelled."""
        token = CancellationToken()

        token.cancel()
        token.cancel()

        assert token.cancelled is True

    def test_raise_if_cancelled(self) -> None:
        """raise_if_cancelled raises once the token fired."""
        token = CancellationToken()
        token.cancel()

        with pytest.raises(CancellationRequested):
            token.raise_if_cancelled()

    def test_cancellation_is_not_an_install_error(self) -> None:
        """Cancellation stays outside the failure hierarchy."""
        assert not issubclass(CancellationRequested, InstallError)


class TestCancellable:
    """Tests for the cancellable helper."""

    def test_returns_result_without_token(self) -> None:
        """With no token the awaitable simply runs."""

        async def work() -> int:
            return 42

        assert asyncio.run(cancellable(work(), None)) == 42

    def test_returns_result_when_not_cancelled(self) -> None:
        """The result passes through when the work wins the race."""

        async def main() -> str:
            token = CancellationToken()
            return await cancellable(asyncio.sleep(0, result="done"), token)

        assert asyncio.run(main()) == "done"

    def test_raises_immediately_if_already_cancelled(self) -> None:
        """A cancelled token stops the work before it starts."""
        started = False

        async def work() -> None:
            nonlocal started
            started = True

        async def main() -> None:
            token = CancellationToken()
            token.cancel()
            coro = work()
            try:
                await cancellable(coro, token)
            finally:
                coro.close()

        with pytest.raises(CancellationRequested):
            asyncio.run(main())
        assert started is False

    def test_interrupts_long_wait(self) -> None:
        """Cancelling mid-wait aborts the work promptly."""

        async def main() -> bool:
            token = CancellationToken()
            loop = asyncio.get_running_loop()
            loop.call_later(0.05, token.cancel)
            work = asyncio.ensure_future(asyncio.sleep(30))
            with pytest.raises(CancellationRequested):
                await cancellable(work, token)
            return work.cancelled()

        assert asyncio.run(asyncio.wait_for(main(), timeout=5)) is True

    def test_cancelling_caller_cancels_work(self) -> None:
        """Work does not outlive a caller that is cancelled mid-wait."""

        async def main() -> bool:
            work = asyncio.ensure_future(asyncio.sleep(30))
            caller = asyncio.ensure_future(cancellable(work, CancellationToken()))
            await asyncio.sleep(0.05)
            caller.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await caller
            return work.cancelled()

        assert asyncio.run(asyncio.wait_for(main(), timeout=5)) is True

    def test_propagates_work_exceptions(self) -> None:
        """Errors raised by the work reach the caller unchanged."""

        async def work() -> None:
            raise ValueError("boom")

        async def main() -> None:
            await cancellable(work(), CancellationToken())

        with pytest.raises(ValueError, match="boom"):
            asyncio.run(main())
