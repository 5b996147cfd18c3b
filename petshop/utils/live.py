# petshop/utils/live.py
import logging
import threading
from typing import Callable, Dict, Iterable, Set

logger = logging.getLogger(__name__)


# Handle returned to an observer of a live query
class Subscription:
    def __init__(self, notifier: "ChangeNotifier", tables: Iterable[str], refresh: Callable[[], None]):
        self._notifier = notifier
        self.tables = frozenset(tables)
        self._refresh = refresh
        self.active = True

    def cancel(self):
        # Safe to call more than once
        if self.active:
            self.active = False
            self._notifier._remove(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.cancel()

    def _deliver(self):
        if self.active:
            self._refresh()


class ChangeNotifier:
    """Fan-out of committed table changes to live query subscribers."""

    def __init__(self):
        self._lock = threading.Lock()
        self._subscriptions: Dict[int, Subscription] = {}

    def subscribe(self, tables: Iterable[str], refresh: Callable[[], None]) -> Subscription:
        sub = Subscription(self, tables, refresh)
        with self._lock:
            self._subscriptions[id(sub)] = sub
        return sub

    def _remove(self, sub: Subscription):
        with self._lock:
            self._subscriptions.pop(id(sub), None)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(self, tables: Set[str]):
        with self._lock:
            targets = [s for s in self._subscriptions.values() if s.tables & tables]
        logger.debug("Publishing change of %s to %d subscriber(s)", sorted(tables), len(targets))
        for sub in targets:
            try:
                sub._deliver()
            except Exception:
                # One broken observer must not starve the others
                logger.exception("Live query refresh failed for tables %s", sorted(sub.tables))
