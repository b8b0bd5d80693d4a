"""Collaborators and entry points shared by the scenario tests."""

from __future__ import annotations

import asyncio
import dataclasses as dc
import typing as t

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from call_mox.scenario import Scenario

T_Scenario = t.TypeVar("T_Scenario", bound="Scenario")

FORCE_FAILURE = "force-failure"


class MissingPersonIdError(ValueError):
    """Raised when a request carries no ``person_id``."""


class PersonProxy:
    """Remote lookups replaced by stand-ins in every test."""

    async def get_first_name(self, person_id: str, hint: str | None = None) -> str:
        """Return the first name for *person_id*."""
        return "Cory"

    def get_middle_name(self, person_id: str, first_name: str) -> str:
        """Return the middle name for *person_id*."""
        return "Bill"

    def get_last_name(
        self,
        person_id: str,
        first_name: str,
        middle_name: str,
        callback: t.Callable[..., None],
    ) -> None:
        """Report the last name for *person_id* through *callback*."""
        callback(None, "Parrish")


proxy = PersonProxy()


class StaticProxy:
    """Lookups exposed as static methods on the class itself."""

    @staticmethod
    def get_age(person_id: str) -> int:
        """Return the age for *person_id*."""
        return 42


@dc.dataclass(slots=True)
class Request:
    """Minimal request object for handler tests."""

    params: dict[str, t.Any]
    query: dict[str, t.Any] = dc.field(default_factory=dict)


class PersonService:
    """Business logic composed from :data:`proxy` lookups."""

    @staticmethod
    async def fetch_person(
        url_params: t.Mapping[str, t.Any], query_params: t.Mapping[str, t.Any]
    ) -> dict[str, t.Any]:
        """Assemble a person record from three lookups."""
        if "person_id" not in url_params:
            msg = "person_id is required"
            raise MissingPersonIdError(msg)
        person_id = url_params["person_id"]
        result = {"person_id": person_id, "home_state": query_params.get("home_state")}

        first_name = await proxy.get_first_name(person_id)
        first_name = await proxy.get_first_name(person_id, first_name)
        if person_id == FORCE_FAILURE:
            raise RuntimeError(FORCE_FAILURE)
        middle_name = proxy.get_middle_name(person_id, first_name)

        loop = asyncio.get_running_loop()
        last_name: asyncio.Future[str] = loop.create_future()

        def deliver(error: BaseException | None, value: str | None = None) -> None:
            if error is not None:
                last_name.set_exception(error)
            else:
                last_name.set_result(t.cast("str", value))

        proxy.get_last_name(person_id, first_name, middle_name, deliver)
        result["last_name"] = await last_name
        return result

    @staticmethod
    def describe(person_id: str, first_name: str = "Cory") -> str:
        """Return a display name using the synchronous lookup."""
        middle_name = proxy.get_middle_name(person_id, first_name)
        return f"{first_name} {middle_name}"

    @staticmethod
    def describe_family(person_ids: t.Sequence[str]) -> list[str]:
        """Return the middle name of every person in *person_ids*."""
        return [proxy.get_middle_name(person_id, "Cory") for person_id in person_ids]

    @staticmethod
    def describe_with_age(person_id: str) -> dict[str, t.Any]:
        """Return a summary built from a class-level lookup."""
        return {"person_id": person_id, "age": StaticProxy.get_age(person_id)}


_BACKGROUND: set[asyncio.Future[t.Any]] = set()


def _spawn(coro: t.Coroutine[t.Any, t.Any, t.Any]) -> None:
    task = asyncio.ensure_future(coro)
    _BACKGROUND.add(task)
    task.add_done_callback(_BACKGROUND.discard)


def _relay(task: asyncio.Future[t.Any], callback: t.Callable[..., None]) -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        callback(error)
    else:
        callback(None, task.result())


class PersonController:
    """Entry points in each supported style."""

    @staticmethod
    def fetch_with_callback(request: Request, callback: t.Callable[..., None]) -> None:
        """Report the person record through ``callback(error, result)``."""
        task = asyncio.ensure_future(
            PersonService.fetch_person(request.params, request.query)
        )
        task.add_done_callback(lambda done: _relay(done, callback))

    @staticmethod
    def start_background_fetch(
        request: Request, callback: t.Callable[..., None]
    ) -> None:
        """Acknowledge immediately and fetch the record later."""
        loop = asyncio.get_running_loop()
        loop.call_later(
            0.01, _spawn, PersonService.fetch_person(request.params, request.query)
        )
        callback(None, {"result": "OK"})

    @staticmethod
    async def start_background_fetch_async(request: Request) -> dict[str, str]:
        """Coroutine variant of :meth:`start_background_fetch`."""
        loop = asyncio.get_running_loop()
        loop.call_later(
            0.01, _spawn, PersonService.fetch_person(request.params, request.query)
        )
        return {"result": "OK"}

    @staticmethod
    def handle_get(request: Request, response: t.Any) -> None:
        """Send the person record, or a 404 body when the lookup fails."""
        task = asyncio.ensure_future(
            PersonService.fetch_person(request.params, request.query)
        )

        def respond(done: asyncio.Future[dict[str, t.Any]]) -> None:
            error = done.exception()
            if error is not None:
                response.status(404).send({"error": str(error)})
            else:
                response.status(200).send(done.result())

        task.add_done_callback(respond)

    @staticmethod
    async def handle_get_async(request: Request, response: t.Any) -> None:
        """Coroutine handler that sends the record as JSON."""
        record = await PersonService.fetch_person(request.params, request.query)
        response.set("Content-Type", "application/json")
        response.json(record)

    @staticmethod
    def handle_without_finishing(request: Request, response: t.Any) -> None:
        """Set a header and never finish the response."""
        response.set("X-Trace", request.params.get("person_id"))


class Outcome:
    """Testable callback recording each ``(error, result)`` it receives."""

    def __init__(self) -> None:
        self.calls: list[tuple[BaseException | None, t.Any]] = []

    def __call__(self, error: BaseException | None, result: t.Any) -> None:
        self.calls.append((error, result))

    @property
    def error(self) -> BaseException | None:
        """Return the error of the only call."""
        assert len(self.calls) == 1, self.calls
        return self.calls[0][0]

    @property
    def result(self) -> t.Any:
        """Return the result of the only call."""
        assert len(self.calls) == 1, self.calls
        return self.calls[0][1]


def mock_person_proxy(scenario: T_Scenario) -> T_Scenario:
    """Intercept the three :data:`proxy` lookups."""
    return (
        scenario.mock_this_function("PersonProxy", "get_first_name", proxy)
        .mock_this_function("PersonProxy", "get_middle_name", proxy)
        .mock_this_function("PersonProxy", "get_last_name", proxy)
    )


def expect_full_fetch(scenario: T_Scenario, person_id: str = "123") -> T_Scenario:
    """Script every lookup :meth:`PersonService.fetch_person` performs."""
    return (
        scenario.should_be_called_with("PersonProxy", "get_first_name", [person_id])
        .does_return_async("PersonProxy", "get_first_name", "Cory")
        .should_be_called_with("PersonProxy", "get_first_name", [person_id, "Cory"])
        .does_return_async("PersonProxy", "get_first_name", "Cory")
        .should_be_called_with("PersonProxy", "get_middle_name", [person_id, "Cory"])
        .does_return("PersonProxy", "get_middle_name", "Bill")
        .should_be_called_with(
            "PersonProxy", "get_last_name", [person_id, "Cory", "Bill"]
        )
        .does_return_with_callback("PersonProxy", "get_last_name", [None, "Parrish"])
    )


def is_restored() -> bool:
    """Return ``True`` when no stand-in remains on :data:`proxy`."""
    return not any(
        name in vars(proxy)
        for name in ("get_first_name", "get_middle_name", "get_last_name")
    )


__all__ = [
    "FORCE_FAILURE",
    "MissingPersonIdError",
    "Outcome",
    "PersonController",
    "PersonProxy",
    "PersonService",
    "Request",
    "StaticProxy",
    "expect_full_fetch",
    "is_restored",
    "mock_person_proxy",
    "proxy",
]
