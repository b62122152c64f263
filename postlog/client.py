import asyncio
import contextlib
import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from functools import lru_cache, partial
from typing import Any

import httpx
import sentry_sdk
import structlog
from pydantic import BaseModel, ValidationError

from postlog.core.config import SDK_VERSION, Settings
from postlog.core.config import settings as default_settings
from postlog.errors import (
    InvalidPropertiesError,
    InvalidResponseError,
    InvalidURLError,
    NotInitializedError,
    RequestFailedError,
    SerializationFailedError,
)
from postlog.models.types import Endpoint, IdentifyPayload, TrackPayload
from postlog.transport import get_transport
from postlog.transport.interface import Transport
from postlog.validators import validate_properties

logger = structlog.get_logger("postlog")

Completion = Callable[[Exception | None], None]


@dataclass
class _Call:
    operation: str
    endpoint: Endpoint
    properties: Mapping[str, Any]
    build: Callable[[], BaseModel]
    completion: Completion | None


def _current_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def build_headers(token: str) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "Accept": "application/json",
        "Authorization": f"Bearer {token}",
        "User-Agent": f"postlog-python/{SDK_VERSION}",
    }


class PostlogAnalytics:
    """Client for the Postlog analytics API.

    Calls return immediately. Gating, validation and payload building run one
    at a time on a serial build worker; sends run as separate tasks, at most
    ``max_concurrent_requests`` at once. Every call's completion is invoked
    exactly once, via ``call_soon`` on the client's event loop.

    The loop is the one passed as ``loop=`` or, failing that, the loop running
    when the client is first used. Calls from other threads need an explicit
    ``loop=``.

    Token writes are not synchronized with in-flight builds: the last write wins.
    """

    def __init__(
        self,
        transport: Transport | None = None,
        *,
        settings: Settings | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        self._settings = settings or default_settings
        self._owns_transport = transport is None
        self._transport = transport or get_transport(self._settings)
        self._loop = loop
        self._token: str | None = None
        self.debug_logging_enabled = self._settings.debug_logging

        self._queue: asyncio.Queue[_Call] | None = None
        self._semaphore: asyncio.Semaphore | None = None
        self._worker: asyncio.Task[None] | None = None
        self._in_flight: set[asyncio.Task[None]] = set()

    @property
    def token(self) -> str | None:
        return self._token

    # Public API

    def initialize(self, token: str, completion: Completion | None = None) -> None:
        """Set the API token. Does not touch the network."""
        self._token = token
        self._debug_log("Postlog Analytics initialized with token")
        if completion is not None:
            self._completion_loop().call_soon_threadsafe(completion, None)

    def identify(
        self,
        user_id: str,
        project: str,
        properties: Mapping[str, Any],
        completion: Completion | None = None,
    ) -> None:
        """Identify a user. Property values must be str, int, float or bool."""
        properties = dict(properties)
        self._submit(
            _Call(
                operation="identify",
                endpoint=Endpoint.IDENTIFY,
                properties=properties,
                build=lambda: IdentifyPayload(
                    user_id=user_id,
                    project=project,
                    properties=properties,
                ),
                completion=completion,
            )
        )

    def track(
        self,
        name: str,
        channel: str,
        project: str,
        user_id: str,
        icon: str = "",
        description: str = "",
        tags: Mapping[str, Any] | None = None,
        completion: Completion | None = None,
    ) -> None:
        """Track an event. The timestamp is taken when the payload is built."""
        tags = dict(tags or {})
        self._submit(
            _Call(
                operation="track",
                endpoint=Endpoint.TRACK,
                properties=tags,
                build=lambda: TrackPayload(
                    name=name,
                    channel=channel,
                    project=project,
                    user_id=user_id,
                    icon=icon,
                    description=description,
                    tags=tags,
                ),
                completion=completion,
            )
        )

    async def identify_async(
        self, user_id: str, project: str, properties: Mapping[str, Any]
    ) -> None:
        """Awaitable form of identify; raises the error a completion would receive."""
        future = asyncio.get_running_loop().create_future()
        self.identify(user_id, project, properties, completion=partial(_resolve, future))
        await future

    async def track_async(
        self,
        name: str,
        channel: str,
        project: str,
        user_id: str,
        icon: str = "",
        description: str = "",
        tags: Mapping[str, Any] | None = None,
    ) -> None:
        """Awaitable form of track; raises the error a completion would receive."""
        future = asyncio.get_running_loop().create_future()
        self.track(
            name,
            channel,
            project,
            user_id,
            icon=icon,
            description=description,
            tags=tags,
            completion=partial(_resolve, future),
        )
        await future

    async def wait_idle(self) -> None:
        """Wait until every submitted call has been built and sent."""
        if self._queue is not None:
            await self._queue.join()
        while self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)

    async def aclose(self) -> None:
        """Drain pending calls, stop the build worker and close an owned transport."""
        await self.wait_idle()
        if self._worker is not None:
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
            self._worker = None
        if self._owns_transport:
            await self._transport.aclose()

    async def __aenter__(self) -> "PostlogAnalytics":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # Scheduling

    def _completion_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None and self._loop.is_closed():
            self._loop = None
            if self._owns_transport:
                self._transport = get_transport(self._settings)
            self._queue = None
            self._semaphore = None
            self._worker = None
            self._in_flight = set()
        if self._loop is None:
            loop = _current_loop()
            if loop is None:
                raise RuntimeError(
                    "PostlogAnalytics needs a running event loop or an explicit loop="
                )
            self._loop = loop
        return self._loop

    def _submit(self, call: _Call) -> None:
        loop = self._completion_loop()
        if _current_loop() is loop:
            self._enqueue(call)
        else:
            loop.call_soon_threadsafe(self._enqueue, call)

    def _enqueue(self, call: _Call) -> None:
        if self._queue is None:
            self._queue = asyncio.Queue()
            self._semaphore = asyncio.Semaphore(self._settings.max_concurrent_requests)
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._run_builds(self._queue))
        self._queue.put_nowait(call)

    async def _run_builds(self, queue: asyncio.Queue[_Call]) -> None:
        while True:
            call = await queue.get()
            try:
                self._build(call)
            except Exception as e:
                self._debug_log(
                    "Unexpected error building request", operation=call.operation, error=repr(e)
                )
                self._finish(call, e)
            finally:
                queue.task_done()

    # Build phase

    def _build(self, call: _Call) -> None:
        token = self._token
        if token is None:
            self._debug_log("Analytics not initialized with token", operation=call.operation)
            self._finish(call, NotInitializedError())
            return

        if not validate_properties(call.properties):
            self._debug_log("Invalid property types", operation=call.operation)
            self._finish(call, InvalidPropertiesError())
            return

        try:
            payload = call.build()
            request = self._prepare_request(call.endpoint, payload, token)
        except (InvalidURLError, SerializationFailedError) as e:
            self._debug_log(str(e), operation=call.operation)
            self._finish(call, e)
            return
        except ValidationError as e:
            self._debug_log("Payload rejected", operation=call.operation, error=str(e))
            self._finish(call, SerializationFailedError())
            return

        semaphore = self._semaphore
        if semaphore is None:
            raise RuntimeError("Build worker is running without a dispatch semaphore")
        task = asyncio.get_running_loop().create_task(self._dispatch(call, request, semaphore))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    def _prepare_request(
        self, endpoint: Endpoint, payload: BaseModel, token: str
    ) -> httpx.Request:
        raw_url = self._settings.base_url + endpoint
        try:
            url = httpx.URL(raw_url)
        except httpx.InvalidURL as e:
            raise InvalidURLError(raw_url) from e
        if url.scheme not in ("http", "https") or not url.host:
            raise InvalidURLError(raw_url)

        try:
            body = json.dumps(payload.model_dump(), allow_nan=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializationFailedError() from e

        return httpx.Request("POST", url, content=body, headers=build_headers(token))

    # Dispatch phase

    async def _dispatch(
        self, call: _Call, request: httpx.Request, semaphore: asyncio.Semaphore
    ) -> None:
        async with semaphore:
            try:
                response = await asyncio.wait_for(
                    self._transport.send(request),
                    timeout=self._settings.request_timeout,
                )
            except Exception as e:
                self._debug_log("Network request failed", operation=call.operation, error=repr(e))
                self._finish(call, e)
                return

        if not isinstance(response, httpx.Response):
            self._debug_log("Invalid response", operation=call.operation)
            self._finish(call, InvalidResponseError())
            return

        if not 200 <= response.status_code <= 299:
            self._debug_log(
                "Request failed", operation=call.operation, status_code=response.status_code
            )
            self._finish(call, RequestFailedError(response.status_code))
            return

        self._debug_log("Request succeeded", operation=call.operation)
        self._finish(call, None)

    def _finish(self, call: _Call, error: Exception | None) -> None:
        if error is not None:
            with contextlib.suppress(Exception):
                sentry_sdk.add_breadcrumb(
                    category="postlog",
                    message=str(error),
                    level="error",
                    data={"operation": call.operation, "endpoint": str(call.endpoint)},
                )
        if call.completion is not None:
            asyncio.get_running_loop().call_soon(call.completion, error)

    def _debug_log(self, event: str, **kwargs: Any) -> None:
        if not self.debug_logging_enabled:
            return
        with contextlib.suppress(Exception):
            logger.info(event, **kwargs)


def _resolve(future: asyncio.Future[None], error: Exception | None) -> None:
    future.get_loop().call_soon_threadsafe(_settle, future, error)


def _settle(future: asyncio.Future[None], error: Exception | None) -> None:
    if future.done():
        return
    if error is None:
        future.set_result(None)
    else:
        future.set_exception(error)


@lru_cache(maxsize=1)
def get_shared_client() -> PostlogAnalytics:
    """Process-wide client built from settings, initialized when a token is configured."""
    client = PostlogAnalytics()
    if default_settings.api_token:
        client.initialize(default_settings.api_token)
    return client
