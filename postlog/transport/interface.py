from typing import Protocol

import httpx


class Transport(Protocol):
    """Anything that can send a prepared request. httpx.AsyncClient satisfies it."""

    async def send(self, request: httpx.Request) -> httpx.Response: ...

    async def aclose(self) -> None: ...
