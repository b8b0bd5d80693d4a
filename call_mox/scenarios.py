"""Scenario flavours, one per way an entry point reports its outcome."""

from __future__ import annotations

import asyncio
import inspect
import logging
import typing as t

from ._validators import require_sequence, require_str
from .errors import InvalidScenarioError
from .response import RESPONSE_FINISHERS, RESPONSE_GROUP, ResponseDouble, is_finisher
from .results import ResultKind
from .scenario import Scenario

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .context import HostContext
    from .pipeline import Testable

logger = logging.getLogger(__name__)


class SynchronousScenario(Scenario):
    """Entry point returns its result or raises."""

    async def _invoke_entry_point(self) -> t.Any:
        return self.entry_point(*self.input_params)


class AsyncScenario(Scenario):
    """Entry point returns an awaitable that settles with the result."""

    async def _invoke_entry_point(self) -> t.Any:
        outcome = self.entry_point(*self.input_params)
        if inspect.isawaitable(outcome):
            return await outcome
        return outcome


class CallbackScenario(Scenario):
    """Entry point reports through a trailing ``callback(error, result)``.

    The callback is appended to the input parameters on every invocation.
    Calls after the first are ignored.
    """

    async def _invoke_entry_point(self) -> t.Any:
        loop = asyncio.get_running_loop()
        settled: asyncio.Future[t.Any] = loop.create_future()

        def callback(error: BaseException | None = None, result: t.Any = None) -> None:
            if settled.done():
                logger.debug("Ignoring repeated entry point callback")
                return
            if error is not None:
                settled.set_exception(error)
            else:
                settled.set_result(result)

        self.entry_point(*self.input_params, callback)
        return await settled


class RequestScenario(Scenario):
    """Entry point is a request handler called as ``handler(*request, response)``.

    A :class:`~call_mox.response.ResponseDouble` is appended to the request
    parameters. The scenario completes when the first configured response
    finisher (``send``, ``json`` and friends) is called.
    """

    def __init__(self, context: HostContext | None = None) -> None:
        super().__init__(context)
        self.response = ResponseDouble()
        self._finisher: str | None = None

    def with_http_request(self, request: t.Sequence[t.Any]) -> RequestScenario:
        """Pass ``request`` positionally to the handler, before the response."""
        self._input_params = require_sequence(
            request, method="with_http_request", position=0, meaning="request params"
        )
        return self

    def _configure_response_mock(
        self, name: str, *, auto_return: bool = True, always: bool = False
    ) -> None:
        if not callable(getattr(self.response, name, None)):
            setattr(self.response, name, lambda *_args, **_kwargs: None)
        self.registry.register_at_most_once(RESPONSE_GROUP, name, self.response)

        if not is_finisher(name):
            return
        if self._finisher is None:
            self._finisher = name
            self.registry.mark_finisher(RESPONSE_GROUP, name)
        if auto_return:
            self.registry.program_result(
                RESPONSE_GROUP, name, self.response, always=always
            )

    def res_should_be_called_with(
        self,
        name: str,
        params: t.Sequence[t.Any],
        kwargs: t.Mapping[str, t.Any] | None = None,
    ) -> RequestScenario:
        """Expect the response method ``name`` to receive ``params`` next."""
        require_str(
            name, method="res_should_be_called_with", position=0, meaning="function name"
        )
        require_sequence(
            params, method="res_should_be_called_with", position=1, meaning="params"
        )
        self._configure_response_mock(name)
        return self.should_be_called_with(RESPONSE_GROUP, name, params, kwargs)

    def res_should_always_be_ignored(self, name: str) -> RequestScenario:
        """Skip verification of the response method ``name``."""
        require_str(
            name,
            method="res_should_always_be_ignored",
            position=0,
            meaning="function name",
        )
        self._configure_response_mock(name, always=True)
        return self.should_always_be_ignored(RESPONSE_GROUP, name)

    def res_does_return(self, name: str, value: t.Any) -> RequestScenario:
        """Return ``value`` from the next call of response method ``name``."""
        require_str(name, method="res_does_return", position=0, meaning="function name")
        self._configure_response_mock(name, auto_return=False)
        return self.does_return(RESPONSE_GROUP, name, value)

    def res_does_always_return(self, name: str, value: t.Any) -> RequestScenario:
        """Return ``value`` from every call of response method ``name``."""
        require_str(
            name, method="res_does_always_return", position=0, meaning="function name"
        )
        self._configure_response_mock(name, auto_return=False)
        return self.does_always_return(RESPONSE_GROUP, name, value)

    def res_does_return_self(self, name: str) -> RequestScenario:
        """Return the response double from the next call, for chaining."""
        require_str(
            name, method="res_does_return_self", position=0, meaning="function name"
        )
        self._configure_response_mock(name, auto_return=False)
        self.registry.program_result(
            RESPONSE_GROUP, name, self.response, ResultKind.SYNCHRONOUS
        )
        return self

    def _validate(self, testable: Testable) -> None:
        if self._input_params is None:
            msg = "You must call 'with_http_request' before running the scenario."
            raise InvalidScenarioError(msg)
        super()._validate(testable)
        if self._finisher is None and self.registry.completion_designation is None:
            msg = (
                "Exactly one response finisher must be configured. Use one of "
                f"{', '.join(sorted(RESPONSE_FINISHERS))} with "
                "'res_should_be_called_with' or 'res_should_always_be_ignored'."
            )
            raise InvalidScenarioError(msg)

    async def _invoke_entry_point(self) -> t.Any:
        loop = asyncio.get_running_loop()
        finished: asyncio.Future[None] = loop.create_future()

        def end() -> None:
            if not finished.done():
                finished.set_result(None)

        self.registry.on_response_end(end)
        outcome = self.entry_point(*self.input_params, self.response)
        if inspect.isawaitable(outcome):
            handler = asyncio.ensure_future(outcome)
            await asyncio.wait({finished, handler}, return_when=asyncio.FIRST_COMPLETED)
            if not finished.done() and handler.exception() is not None:
                raise t.cast("BaseException", handler.exception())
        return await finished


__all__ = [
    "AsyncScenario",
    "CallbackScenario",
    "RequestScenario",
    "SynchronousScenario",
]
