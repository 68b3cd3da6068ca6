"""Network connectivity monitoring.

The monitor keeps a cached online/offline flag that the lookup pipeline reads
synchronously before issuing a request. The flag is refreshed by probing a TCP
connection, either on demand or periodically in a background task.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

logger = logging.getLogger(__name__)

DEFAULT_PROBE_HOST = "api.tibiadata.com"
DEFAULT_PROBE_PORT = 443
DEFAULT_PROBE_TIMEOUT = 3.0


class ConnectivityMonitor:
    """Tracks whether the network is reachable.

    Starts out assuming connectivity until a probe says otherwise.
    """

    def __init__(
        self,
        probe_host: str = DEFAULT_PROBE_HOST,
        probe_port: int = DEFAULT_PROBE_PORT,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
        initially_connected: bool = True,
    ) -> None:
        self.probe_host = probe_host
        self.probe_port = probe_port
        self.probe_timeout = probe_timeout
        self._connected = initially_connected
        self._poll_task: asyncio.Task | None = None

    @property
    def is_connected(self) -> bool:
        return self._connected

    def set_connected(self, connected: bool) -> None:
        """Update the flag, logging transitions."""
        if connected != self._connected:
            logger.info("Connectivity changed: %s", "online" if connected else "offline")
        self._connected = connected

    async def check(self) -> bool:
        """Probe the network once and update the flag."""
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(self.probe_host, self.probe_port),
                timeout=self.probe_timeout,
            )
        except (OSError, TimeoutError) as e:
            logger.debug(
                "Connectivity probe to %s:%d failed: %s",
                self.probe_host,
                self.probe_port,
                e,
            )
            self.set_connected(False)
            return False

        writer.close()
        with contextlib.suppress(OSError):
            await writer.wait_closed()
        self.set_connected(True)
        return True

    def start(self, interval: float = 10.0) -> None:
        """Start probing periodically in the background."""
        if self._poll_task is not None and not self._poll_task.done():
            return
        self._poll_task = asyncio.create_task(self._poll(interval))

    async def stop(self) -> None:
        """Stop background probing."""
        if self._poll_task is None:
            return
        self._poll_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._poll_task
        self._poll_task = None

    async def _poll(self, interval: float) -> None:
        while True:
            await self.check()
            await asyncio.sleep(interval)
