import httpx

from postlog.core.config import Settings
from postlog.transport.interface import Transport


def get_transport(settings: Settings) -> Transport:
    return httpx.AsyncClient(timeout=settings.request_timeout)
