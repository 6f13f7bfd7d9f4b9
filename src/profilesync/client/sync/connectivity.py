"""Connectivity monitoring for the sync orchestrator.

This module provides:
- ConnectivityMonitor: Background thread that polls a reachability probe
  and exposes the result as an is_online flag

The flag is eventually consistent: it only decides whether the next sync
cycle attempts a network refresh. It never starts or cancels cycles.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)

DEFAULT_CHECK_INTERVAL = 5.0  # seconds

OnlineCallback = Callable[[bool], None]


class ConnectivityMonitor:
    """Polls a probe function and tracks online/offline transitions.

    Usage:
        monitor = ConnectivityMonitor(fetcher.health_check)
        unsubscribe = monitor.subscribe(lambda online: print(online))
        monitor.start()
        ...
        unsubscribe()
        monitor.stop()
    """

    def __init__(
        self,
        probe: Callable[[], bool],
        check_interval: float = DEFAULT_CHECK_INTERVAL,
        initially_online: bool = True,
    ) -> None:
        """Initialize the monitor.

        Args:
            probe: Returns True when the remote source is reachable.
            check_interval: Seconds between probes.
            initially_online: Value reported before the first probe completes.
        """
        self._probe = probe
        self._check_interval = check_interval
        self._online = initially_online

        self._lock = threading.Lock()
        self._subscribers: list[OnlineCallback] = []
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_online(self) -> bool:
        """Last known reachability."""
        with self._lock:
            return self._online

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def subscribe(self, callback: OnlineCallback) -> Callable[[], None]:
        """Register a callback for online/offline transitions.

        Returns:
            A function that removes the subscription.
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def set_online(self, online: bool) -> None:
        """Record a reachability value and notify subscribers on change."""
        with self._lock:
            changed = online != self._online
            self._online = online
            subscribers = list(self._subscribers)

        if not changed:
            return

        logger.info(f"Network is {'online' if online else 'offline'}")
        for callback in subscribers:
            try:
                callback(online)
            except Exception as e:
                logger.warning(f"Connectivity subscriber failed: {e}")

    def check_now(self) -> bool:
        """Run the probe once and record the result."""
        try:
            online = bool(self._probe())
        except Exception as e:
            logger.debug(f"Connectivity probe raised: {e}")
            online = False
        self.set_online(online)
        return online

    def start(self) -> None:
        """Start polling in a background thread."""
        if self.running:
            logger.warning("ConnectivityMonitor already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="ConnectivityMonitor",
            daemon=True,
        )
        self._thread.start()
        logger.debug("ConnectivityMonitor started")

    def stop(self) -> None:
        """Stop polling and wait for the thread to exit."""
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5.0)
            self._thread = None
        logger.debug("ConnectivityMonitor stopped")

    def _run(self) -> None:
        while not self._stop_event.is_set():
            self.check_now()
            # Interruptible sleep
            self._stop_event.wait(self._check_interval)
