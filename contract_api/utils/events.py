"""
Per-endpoint publish/subscribe used for the on_call / on_ok / on_fail hooks.

Each ContractApi owns its own managers, so two clients never share
subscribers. Subscriber maps are mutated under a lock; notification works on
a snapshot taken under the same lock.
"""

from __future__ import annotations

import inspect
import itertools
import logging
import threading
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Callback = Callable[[Dict[str, Any]], Any]


class EventSubscriptionManager:
    def __init__(self, event_type: str) -> None:
        self.event_type = event_type
        self._lock = threading.Lock()
        self._ids = itertools.count()
        # endpoint -> {subscription id -> callback}, insertion ordered
        self._subscriptions: Dict[str, Dict[int, Callback]] = {}

    def subscribe(self, endpoint: str, callback: Callback) -> Callable[[], None]:
        if not callable(callback):
            raise TypeError(f"{self.event_type} callback must be callable")

        with self._lock:
            sub_id = next(self._ids)
            self._subscriptions.setdefault(endpoint, {})[sub_id] = callback

        def unsubscribe() -> None:
            with self._lock:
                endpoint_subs = self._subscriptions.get(endpoint)
                if endpoint_subs is None:
                    return
                endpoint_subs.pop(sub_id, None)
                if not endpoint_subs:
                    del self._subscriptions[endpoint]

        return unsubscribe

    def subscribers(self, endpoint: str) -> List[Callback]:
        with self._lock:
            return list(self._subscriptions.get(endpoint, {}).values())

    def count(self, endpoint: str) -> int:
        with self._lock:
            return len(self._subscriptions.get(endpoint, {}))

    async def emit(self, endpoint: str, data: Dict[str, Any]) -> None:
        for callback in self.subscribers(endpoint):
            try:
                result = callback(data)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.error("%s callback error for endpoint '%s'", self.event_type, endpoint, exc_info=True)
