from __future__ import annotations
import asyncio
import itertools
from typing import Callable
import httpx
import structlog
from pydantic import ValidationError
from giveboard.config import settings
from giveboard.schemas.leaderboard import (
    LeaderboardData,
    LeaderboardEnvelope,
    LeaderboardFilter,
    LeaderboardState,
    Period,
)

log = structlog.get_logger()

LEADERBOARD_PATH = "/api/leaderboard"
DEFAULT_FAILURE_MESSAGE = "Failed to fetch leaderboard"
UNEXPECTED_FAILURE_MESSAGE = "An error occurred"


class LeaderboardError(Exception):
    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

class TransportFailure(LeaderboardError):
    kind = "transport"

class ApplicationFailure(LeaderboardError):
    kind = "application"

class ParseFailure(LeaderboardError):
    kind = "parse"


class LeaderboardClient:
    """Thin async client for the ranking service's leaderboard endpoint."""

    def __init__(self, base_url: str | None = None, *, http: httpx.AsyncClient | None = None,
                 transport: httpx.AsyncBaseTransport | None = None):
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            base_url=base_url or settings.leaderboard_api_url, transport=transport
        )

    async def __aenter__(self) -> LeaderboardClient:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def fetch(self, flt: LeaderboardFilter) -> LeaderboardData:
        """
        Fetch one page of the leaderboard.

        The status code is not checked; the envelope's `success` flag reports
        failure.

        Raises:
            TransportFailure: the request could not be sent or completed
            ParseFailure: the body is not JSON or not a valid envelope
            ApplicationFailure: the envelope reports success=false
        """
        try:
            r = await self._http.get(LEADERBOARD_PATH, params=flt.as_params())
        except httpx.HTTPError as e:
            raise TransportFailure(str(e) or UNEXPECTED_FAILURE_MESSAGE) from e

        try:
            body = r.json()
        except ValueError as e:
            raise ParseFailure(f"Malformed leaderboard response (HTTP {r.status_code})") from e

        try:
            envelope = LeaderboardEnvelope.model_validate(body)
        except ValidationError as e:
            raise ParseFailure(f"Unexpected leaderboard response shape ({e.error_count()} errors)") from e

        if not envelope.success:
            raise ApplicationFailure(envelope.error or DEFAULT_FAILURE_MESSAGE)
        return envelope.data


Listener = Callable[[LeaderboardState], None]


class LeaderboardQuery:
    """
    Request-lifecycle holder for one leaderboard consumer.

    Fetches are scheduled as tasks on the running loop, so callers never block
    on the network; subscribers are told about every state transition.

    Every dispatch gets a generation number. With fencing on, only the most
    recently dispatched fetch may write state. With fencing off, the fetch
    that resolves last wins, whatever order they were dispatched in.
    """

    def __init__(
        self,
        client: LeaderboardClient,
        *,
        period: Period | None = None,
        page: int = 1,
        limit: int | None = None,
        auto_fetch: bool = True,
        fence_stale_responses: bool | None = None,
    ):
        self._client = client
        self._filter = LeaderboardFilter(
            period=period or settings.leaderboard_default_period,
            page=page,
            limit=limit if limit is not None else settings.leaderboard_page_limit,
        )
        self.auto_fetch = auto_fetch
        self.fence_stale_responses = (
            settings.leaderboard_fence_stale if fence_stale_responses is None else fence_stale_responses
        )
        self._state = LeaderboardState()
        self._generations = itertools.count(1)
        self._latest = 0
        self._tasks: set[asyncio.Task] = set()
        self._listeners: list[Listener] = []

    @property
    def filter(self) -> LeaderboardFilter:
        return self._filter

    @property
    def state(self) -> LeaderboardState:
        return self._state

    @property
    def entries(self):
        return self._state.entries

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def error(self) -> str | None:
        return self._state.error

    @property
    def total_count(self) -> int:
        return self._state.total_count

    @property
    def has_more(self) -> bool:
        return self._state.has_more

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def mount(self) -> asyncio.Task | None:
        if not self.auto_fetch:
            return None
        return self._dispatch()

    def update(
        self,
        *,
        period: Period | None = None,
        page: int | None = None,
        limit: int | None = None,
        auto_fetch: bool | None = None,
    ) -> asyncio.Task | None:
        changes = {k: v for k, v in {"period": period, "page": page, "limit": limit}.items() if v is not None}
        new_filter = LeaderboardFilter(**{**self._filter.model_dump(), **changes})
        changed = new_filter != self._filter
        if auto_fetch is not None and auto_fetch != self.auto_fetch:
            self.auto_fetch = auto_fetch
            changed = True
        self._filter = new_filter
        if not (changed and self.auto_fetch):
            return None
        return self._dispatch()

    def refetch(self) -> asyncio.Task:
        return self._dispatch()

    async def close(self) -> None:
        self._listeners.clear()
        pending = list(self._tasks)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    def _dispatch(self) -> asyncio.Task:
        generation = next(self._generations)
        self._latest = generation
        flt = self._filter
        log.info("leaderboard_fetch_dispatched", generation=generation, **flt.as_params())
        self._set_state(loading=True, error=None)
        task = asyncio.get_running_loop().create_task(self._run(flt, generation))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _is_stale(self, generation: int) -> bool:
        return self.fence_stale_responses and generation != self._latest

    async def _run(self, flt: LeaderboardFilter, generation: int) -> None:
        try:
            data = await self._client.fetch(flt)
        except LeaderboardError as e:
            if self._discard(generation):
                return
            log.warning("leaderboard_fetch_failed", generation=generation, kind=e.kind, error=e.message)
            self._set_state(error=e.message, loading=False)
            return
        except Exception as e:
            if self._discard(generation):
                return
            log.exception("leaderboard_fetch_crashed", generation=generation)
            self._set_state(error=str(e) or UNEXPECTED_FAILURE_MESSAGE, loading=False)
            return

        if self._discard(generation):
            return
        log.info("leaderboard_fetch_succeeded", generation=generation, returned=len(data.leaderboard), total=data.total)
        self._set_state(entries=data.leaderboard, total_count=data.total, error=None, loading=False)

    def _discard(self, generation: int) -> bool:
        if self._is_stale(generation):
            log.info("leaderboard_stale_response_discarded", generation=generation, latest=self._latest)
            return True
        return False

    def _set_state(self, **changes) -> None:
        self._state = self._state.model_copy(update=changes)
        for listener in list(self._listeners):
            listener(self._state)
