from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Protocol, Set

import requests

from mixarchive.exceptions import InvocationError, PageLoadFailure, RequestNotFoundError, StorageFailure

logger = logging.getLogger(__name__)

FUNCTION_PAGINATE = "paginate"
FUNCTION_PROCESS_ITEM = "process_item"

Handler = Callable[[Dict[str, Any]], Awaitable[Any]]


async def run_invocation(function: str, handler: Handler, payload: Dict[str, Any]) -> None:
    """Run a detached invocation; nobody awaits it, so its failure ends here in the log."""
    try:
        await handler(payload)
    except (PageLoadFailure, StorageFailure, InvocationError, RequestNotFoundError) as e:
        logger.warning("Invocation %s failed for %s: %s", function, payload.get("url"), e)
    except Exception:
        logger.exception("Invocation %s crashed for %s", function, payload.get("url"))


class Invoker(Protocol):
    """Fire-and-forget submission of a unit of work.

    `invoke` returns once the invocation is accepted, not when it finishes.
    Delivery is at-least-once; handlers must be idempotent.
    """

    async def invoke(self, function: str, payload: Dict[str, Any]) -> None: ...


class InProcessInvoker:
    """Runs invocations as asyncio tasks on the current event loop."""

    def __init__(self):
        self._handlers: Dict[str, Handler] = {}
        self._pending: Set[asyncio.Task] = set()

    def register(self, function: str, handler: Handler) -> None:
        self._handlers[function] = handler

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def invoke(self, function: str, payload: Dict[str, Any]) -> None:
        handler = self._handlers.get(function)
        if handler is None:
            raise InvocationError(function, "no handler registered")
        task = asyncio.create_task(run_invocation(function, handler, payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait until every submitted invocation, including chained ones, finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


class HttpInvoker:
    """Submits invocations to the `/invocations/{function}` endpoints of a worker service."""

    def __init__(self, *, base_url: str, token: str, http_client: Callable = requests.post, timeout: int = 10):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.http_client = http_client
        self.timeout = timeout

    async def invoke(self, function: str, payload: Dict[str, Any]) -> None:
        url = f"{self.base_url}/invocations/{function}"
        headers = {"Authorization": f"Bearer {self.token}"}
        try:
            resp = await asyncio.to_thread(self.http_client, url, json=payload, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise InvocationError(function, str(e)) from e
        if resp.status_code >= 300:
            raise InvocationError(function, f"HTTP {resp.status_code}")
