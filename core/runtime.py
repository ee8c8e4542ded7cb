"""
Injected runtime capabilities.

The offline queue, sync engine and share issuer never read the wall clock,
the network state or a random source directly. They receive these objects
instead, so tests can pin time, force the device offline and predict ids.
"""

from __future__ import annotations

import threading
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol

import httpx

from logging_config import get_logger


logger = get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def to_millis(moment: datetime) -> int:
    """Milliseconds since the epoch for an aware datetime."""
    return int(moment.timestamp() * 1000)


class IdGenerator(Protocol):
    def __call__(self) -> str: ...


def uuid_id_generator() -> str:
    """Random 128-bit identifier."""
    return str(uuid.uuid4())


class ConnectivityProbe(Protocol):
    def is_online(self) -> bool: ...


class StaticConnectivityProbe:
    """
    Connectivity flag set explicitly by the caller.

    The device front end reports online/offline events; this probe just
    remembers the last one.
    """

    def __init__(self, online: bool = True):
        self._online = online
        self._lock = threading.Lock()

    def is_online(self) -> bool:
        with self._lock:
            return self._online

    def set_online(self, online: bool) -> None:
        with self._lock:
            self._online = online


class HttpConnectivityProbe:
    """Treats the remote service as reachable when its /health answers 200."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 2.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._base_url = base_url
        self._timeout = timeout_seconds
        self._transport = transport

    def is_online(self) -> bool:
        try:
            with httpx.Client(
                base_url=self._base_url, timeout=self._timeout, transport=self._transport
            ) as client:
                response = client.get("/health")
                return response.status_code == 200
        except httpx.RequestError as e:
            logger.debug(f"Connectivity probe failed: {e}")
            return False
