"""The staged state machine that drives one scenario to its outcome."""

from __future__ import annotations

import asyncio
import dataclasses as dc
import enum
import logging
import typing as t

from .completion import CompletionDetector
from .errors import CallMoxError, ScenarioBuildError, UncheckedAssertionError
from .perf import PerfSampler
from .verifiers import ExpectationVerifier

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .context import HostContext
    from .registry import MockRegistry

logger = logging.getLogger(__name__)

Testable: t.TypeAlias = t.Callable[[BaseException | None, t.Any], t.Any]


class Stage(enum.StrEnum):
    """Pipeline stages, in the order they run."""

    PENDING = "pending"
    VALIDATE = "validate"
    EXECUTE = "execute"
    WAIT_FOR_COMPLETION = "wait_for_completion"
    VERIFY_MOCKS = "verify_mocks"
    EXECUTE_PERF = "execute_perf"
    SKIP_TEST = "skip_test"
    FINISH = "finish"
    HANDLE_ERROR = "handle_error"
    DONE = "done"


@dc.dataclass(slots=True, eq=False)
class ScenarioState:
    """Mutable record threaded through the pipeline stages."""

    registry: MockRegistry
    context: HostContext
    testable: Testable
    validate: t.Callable[[], None]
    invoke: t.Callable[[], t.Awaitable[t.Any]]
    verifier: ExpectationVerifier = dc.field(default_factory=ExpectationVerifier)
    perf_title: str | None = None
    result: t.Any = None
    error: BaseException | None = None
    passthrough: bool = False
    testable_invoked: bool = False
    skip_requested: bool = False
    entry_task: asyncio.Future[t.Any] | None = None


class ScenarioPipeline:
    """Run validate, execute, wait, verify, perf, skip and finish in order."""

    def __init__(self, state: ScenarioState) -> None:
        self.state = state
        settings = state.context.settings
        self._detector = CompletionDetector(
            state.registry,
            poll_interval=settings.poll_interval,
            timeout=settings.completion_timeout,
        )
        self._stage = Stage.PENDING

    @property
    def stage(self) -> Stage:
        """Return the stage currently (or last) running."""
        return self._stage

    def _enter(self, stage: Stage) -> None:
        logger.debug("Scenario %s: entering %s", self.state.context.title, stage)
        self._stage = stage

    async def run(self) -> None:
        """Drive the scenario; build errors escape before anything executes."""
        self._enter(Stage.VALIDATE)
        try:
            self.state.validate()
        except ScenarioBuildError:
            self.state.registry.teardown()
            raise

        try:
            await self._execute()
            await self._wait_for_completion()
            self._verify_mocks()
            await self._execute_perf()
            self._skip_test()
            self._finish()
        except Exception as err:  # noqa: BLE001 - every failure funnels here
            self._handle_error(err)

        self._enter(Stage.DONE)
        if self.state.skip_requested:
            self.state.context.skip(
                f"performance run for {self.state.perf_title!r} recorded"
            )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------
    async def _execute(self) -> None:
        self._enter(Stage.EXECUTE)
        state = self.state
        state.entry_task = asyncio.ensure_future(state.invoke())
        if self._detector.explicit:
            return
        await asyncio.wait({state.entry_task})
        self._capture_outcome()

    async def _wait_for_completion(self) -> None:
        self._enter(Stage.WAIT_FOR_COMPLETION)
        state = self.state
        if not self._detector.explicit:
            return
        await self._detector.wait(state.entry_task)
        self._capture_outcome()

    def _verify_mocks(self) -> None:
        self._enter(Stage.VERIFY_MOCKS)
        state = self.state
        if state.passthrough:
            logger.debug("Skipping mock verification for pass-through error")
            return
        try:
            state.verifier.verify_all(state.registry)
        except CallMoxError as err:
            if state.error is not None:
                err.__cause__ = state.error
            state.error, state.result = err, None

    async def _execute_perf(self) -> None:
        self._enter(Stage.EXECUTE_PERF)
        state = self.state
        settings = state.context.settings
        if state.perf_title is None or not settings.perf_enabled:
            return
        sampler = PerfSampler(self._perf_trial)
        report = await sampler.run(settings.num_samples, settings.sample_time)
        state.context.reports.add_report(state.perf_title, report)
        logger.debug(
            "Recorded performance report for %s (%d trials)",
            state.perf_title,
            report.total_sample_size,
        )

    def _skip_test(self) -> None:
        self._enter(Stage.SKIP_TEST)
        state = self.state
        if state.perf_title is not None and state.context.settings.perf_enabled:
            state.skip_requested = True

    def _finish(self) -> None:
        self._enter(Stage.FINISH)
        state = self.state
        state.testable_invoked = True
        try:
            state.testable(state.error, state.result)
        finally:
            self._teardown()

    def _handle_error(self, err: Exception) -> None:
        self._enter(Stage.HANDLE_ERROR)
        state = self.state
        self._teardown()
        if state.testable_invoked:
            raise UncheckedAssertionError() from err

        runtime_error = state.registry.runtime_error
        if runtime_error is not None and runtime_error is not err:
            runtime_error.__cause__ = err
            err = runtime_error
        elif state.error is not None and err.__cause__ is None:
            err.__cause__ = state.error

        state.testable_invoked = True
        try:
            state.testable(err, None)
        except Exception as testable_error:
            raise UncheckedAssertionError() from testable_error

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _capture_outcome(self) -> None:
        """Record the entry point's value or error, then apply precedence."""
        state = self.state
        task = state.entry_task
        if task is not None and task.done() and not task.cancelled():
            error = task.exception()
            if error is None:
                state.result = task.result()
            else:
                state.error = error
                state.passthrough = isinstance(error, ScenarioBuildError)

        runtime_error = state.registry.runtime_error
        if runtime_error is not None:
            if state.error is not None and state.error is not runtime_error:
                runtime_error.__cause__ = state.error
            state.error, state.result, state.passthrough = runtime_error, None, True

    async def _perf_trial(self) -> None:
        state = self.state
        state.registry.reset_call_counts()
        task = asyncio.ensure_future(state.invoke())
        if self._detector.explicit:
            await self._detector.wait(task)
            if not task.done():
                task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        if state.registry.runtime_error is not None:
            raise state.registry.runtime_error

    def _teardown(self) -> None:
        task = self.state.entry_task
        if task is not None and not task.done():
            logger.debug("Cancelling entry point still running after completion")
            task.cancel()
        self.state.registry.teardown()


__all__ = ["ScenarioPipeline", "ScenarioState", "Stage", "Testable"]
