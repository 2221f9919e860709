"""Online/offline signal for the sync layer."""
from __future__ import annotations

import asyncio
import logging
import socket
from typing import Callable, Dict, Optional, Set

from core.settings import CONNECTIVITY


logger = logging.getLogger("apropriapp.sync.connectivity")

EVENT_ONLINE = "online"
EVENT_OFFLINE = "offline"


def socket_probe(
    host: str = CONNECTIVITY.probe_host,
    port: int = CONNECTIVITY.probe_port,
    timeout: float = CONNECTIVITY.probe_timeout_sec,
) -> bool:
    """Report whether the OS can open a TCP connection to ``host:port``."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


class ConnectivityMonitor:
    """Holds the latest connectivity flag and notifies on transitions.

    The flag is whatever the platform reports; there is no debounce and no
    extra reachability check.
    """

    def __init__(self, probe: Callable[[], bool] = socket_probe):
        self._probe = probe
        self._listeners: Dict[str, Set[Callable[[], None]]] = {
            EVENT_ONLINE: set(),
            EVENT_OFFLINE: set(),
        }
        self._online = bool(probe())
        self._poll_task: Optional[asyncio.Task] = None

    @property
    def is_online(self) -> bool:
        return self._online

    def subscribe(self, event: str, callback: Callable[[], None]) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unsupported event: {event}")
        self._listeners[event].add(callback)

    def unsubscribe(self, event: str, callback: Callable[[], None]) -> None:
        if event not in self._listeners:
            return
        self._listeners[event].discard(callback)

    def set_online(self, value: bool) -> None:
        value = bool(value)
        if value == self._online:
            return
        self._online = value
        event = EVENT_ONLINE if value else EVENT_OFFLINE
        logger.info("Connectivity changed: %s", event)
        for listener in list(self._listeners[event]):
            try:
                listener()
            except Exception:
                logger.exception("Connectivity listener failed on %s", event)

    def refresh(self) -> bool:
        self.set_online(self._probe())
        return self._online

    # ------------------------------------------------------------------
    # Polling
    def start(self, interval: float = CONNECTIVITY.poll_interval_sec) -> asyncio.Task:
        """Poll the probe on the running loop until :meth:`stop`."""
        self.stop()

        async def _loop():
            while True:
                await asyncio.sleep(interval)
                value = await asyncio.to_thread(self._probe)
                self.set_online(value)

        self._poll_task = asyncio.get_running_loop().create_task(_loop())
        return self._poll_task

    def stop(self) -> None:
        if self._poll_task is not None:
            self._poll_task.cancel()
        self._poll_task = None

    def close(self) -> None:
        self.stop()
        for listeners in self._listeners.values():
            listeners.clear()


__all__ = [
    "ConnectivityMonitor",
    "EVENT_OFFLINE",
    "EVENT_ONLINE",
    "socket_probe",
]
