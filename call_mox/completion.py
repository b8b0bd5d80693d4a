"""Detect when a scenario's observable work has finished."""

from __future__ import annotations

import asyncio
import logging
import typing as t

from .config import DEFAULT_COMPLETION_TIMEOUT, DEFAULT_POLL_INTERVAL
from .errors import CompletionTimeoutError

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .registry import MockRegistry

logger = logging.getLogger(__name__)


class CompletionDetector:
    """Wait for the registry's completion flag when one is designated.

    Without a designation the scenario completes implicitly when its entry
    point settles and :meth:`wait` returns immediately.
    """

    def __init__(
        self,
        registry: MockRegistry,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float | None = DEFAULT_COMPLETION_TIMEOUT,
    ) -> None:
        self._registry = registry
        self._poll_interval = poll_interval
        self._timeout = timeout

    @property
    def explicit(self) -> bool:
        """Return ``True`` when a completion call has been designated."""
        return self._registry.completion_designation is not None

    async def wait(self, task: asyncio.Future[t.Any] | None = None) -> None:
        """Wait until the designated call fires.

        The registry's completion listener wakes the wait as soon as the
        designated call happens; *poll_interval* only bounds how long the
        runtime error flag goes unchecked. Waiting stops early when a stand-in
        has raised a runtime error or when *task*, the running entry point,
        fails, since the designated call can no longer be trusted to happen.
        """
        designation = self._registry.completion_designation
        if designation is None:
            return
        (group, name), iteration = designation
        loop = asyncio.get_running_loop()
        fired: asyncio.Future[None] = loop.create_future()

        def _signal() -> None:
            if not fired.done():
                fired.set_result(None)

        self._registry.on_completion(lambda: loop.call_soon_threadsafe(_signal))
        deadline = None if self._timeout is None else loop.time() + self._timeout
        try:
            while not self._registry.completion_fired:
                if self._registry.runtime_error is not None:
                    logger.debug(
                        "Stopped waiting for %s.%s: runtime error", group, name
                    )
                    return
                if _failed(task):
                    logger.debug(
                        "Stopped waiting for %s.%s: entry point failed", group, name
                    )
                    return
                step = self._poll_interval
                if deadline is not None:
                    remaining = deadline - loop.time()
                    if remaining <= 0:
                        raise CompletionTimeoutError(
                            group, name, iteration, t.cast("float", self._timeout)
                        )
                    step = min(step, remaining)
                pending = {f for f in (fired, task) if f is not None and not f.done()}
                await asyncio.wait(
                    pending, timeout=step, return_when=asyncio.FIRST_COMPLETED
                )
        finally:
            self._registry.on_completion(None)
            fired.cancel()
        logger.debug("Completion signal observed for %s.%s", group, name)


def _failed(task: asyncio.Future[t.Any] | None) -> bool:
    return (
        task is not None
        and task.done()
        and not task.cancelled()
        and task.exception() is not None
    )


__all__ = ["CompletionDetector"]
