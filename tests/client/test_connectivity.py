"""Tests for the connectivity monitor."""

from __future__ import annotations

import threading
import time

from profilesync.client.sync.connectivity import ConnectivityMonitor


class TestConnectivityMonitor:
    """Tests for ConnectivityMonitor."""

    def test_initial_value(self) -> None:
        """Before any probe the initial value is reported."""
        assert ConnectivityMonitor(lambda: False).is_online is True
        assert ConnectivityMonitor(lambda: True, initially_online=False).is_online is False

    def test_check_now_records_probe(self) -> None:
        """check_now() runs the probe and stores the result."""
        monitor = ConnectivityMonitor(lambda: False)

        assert monitor.check_now() is False
        assert monitor.is_online is False

    def test_probe_exception_means_offline(self) -> None:
        """A probe that raises counts as offline."""

        def probe() -> bool:
            raise OSError("no network")

        monitor = ConnectivityMonitor(probe)

        assert monitor.check_now() is False
        assert monitor.is_online is False

    def test_subscribers_notified_on_change_only(self) -> None:
        """Subscribers hear transitions, not repeated values."""
        monitor = ConnectivityMonitor(lambda: True)
        seen: list[bool] = []
        monitor.subscribe(seen.append)

        monitor.set_online(True)
        monitor.set_online(False)
        monitor.set_online(False)
        monitor.set_online(True)

        assert seen == [False, True]

    def test_unsubscribe(self) -> None:
        """An unsubscribed callback is no longer called."""
        monitor = ConnectivityMonitor(lambda: True)
        seen: list[bool] = []
        unsubscribe = monitor.subscribe(seen.append)

        unsubscribe()
        monitor.set_online(False)

        assert seen == []
        unsubscribe()  # second call is harmless

    def test_failing_subscriber_does_not_break_others(self) -> None:
        """One failing subscriber should not prevent notifying the rest."""
        monitor = ConnectivityMonitor(lambda: True)
        seen: list[bool] = []

        def broken(online: bool) -> None:
            raise RuntimeError("boom")

        monitor.subscribe(broken)
        monitor.subscribe(seen.append)
        monitor.set_online(False)

        assert seen == [False]

    def test_background_polling(self) -> None:
        """The background thread picks up reachability changes."""
        reachable = threading.Event()
        monitor = ConnectivityMonitor(reachable.is_set, check_interval=0.01)
        changed = threading.Event()
        monitor.subscribe(lambda online: changed.set())

        monitor.start()
        try:
            assert changed.wait(2.0)
            assert monitor.is_online is False

            changed.clear()
            reachable.set()
            assert changed.wait(2.0)
            assert monitor.is_online is True
        finally:
            monitor.stop()

        assert monitor.running is False

    def test_stop_is_prompt(self) -> None:
        """stop() interrupts the sleep between probes."""
        monitor = ConnectivityMonitor(lambda: True, check_interval=60.0)
        monitor.start()

        start = time.monotonic()
        monitor.stop()

        assert time.monotonic() - start < 5.0
        assert monitor.running is False

    def test_stop_without_start(self) -> None:
        """stop() on a monitor that never started is a no-op."""
        ConnectivityMonitor(lambda: True).stop()
