"""Single-subscriber stage event stream."""

import inspect
import logging
import threading
import weakref
from collections.abc import Callable
from contextlib import AbstractContextManager
from typing import Any

from ..models import Stage

logger = logging.getLogger(__name__)

StageListener = Callable[[Stage], None]


class _ListenerRef:
    """Holds bound methods weakly and plain callables strongly."""

    def __init__(self, listener: StageListener):
        self._strong: StageListener | None = None
        self._weak: weakref.WeakMethod[StageListener] | None = None
        if inspect.ismethod(listener):
            self._weak = weakref.WeakMethod(listener)
        else:
            self._strong = listener

    def resolve(self) -> StageListener | None:
        if self._weak is not None:
            return self._weak()
        return self._strong


class StageEventStream:
    """Pushes stage changes to at most one listener.

    A new subscription replaces the previous one and immediately receives the
    current stage from ``snapshot``. Delivery failures never reach the caller
    of :meth:`push`.
    """

    def __init__(self, snapshot: Callable[[], Stage] | None = None):
        self._snapshot = snapshot
        self._listener: _ListenerRef | None = None
        self._lock: AbstractContextManager[Any] = threading.RLock()

    def bind(
        self,
        snapshot: Callable[[], Stage],
        lock: AbstractContextManager[Any] | None = None,
    ) -> None:
        """Attach the source used to replay the current stage on subscribe.

        Args:
            snapshot: Returns the current stage
            lock: Lock shared with the stage owner so replay and writes serialize
        """
        self._snapshot = snapshot
        if lock is not None:
            self._lock = lock

    @property
    def has_subscriber(self) -> bool:
        with self._lock:
            return self._listener is not None and self._listener.resolve() is not None

    def subscribe(self, listener: StageListener) -> None:
        """Replace the subscriber and replay the current stage to it."""
        with self._lock:
            self._listener = _ListenerRef(listener)
            logger.debug("Stage listener subscribed")
            if self._snapshot is not None:
                self.push(self._snapshot())

    def unsubscribe(self) -> None:
        """Drop the current subscriber, if any."""
        with self._lock:
            self._listener = None
            logger.debug("Stage listener cleared")

    def push(self, stage: Stage) -> None:
        """Deliver a stage to the current subscriber.

        Args:
            stage: Stage to deliver
        """
        with self._lock:
            if self._listener is None:
                return
            listener = self._listener.resolve()
            if listener is None:
                # Owner of the bound method was collected
                self._listener = None
                return

            try:
                listener(stage)
            except Exception as e:
                logger.debug(f"Ignoring stage delivery failure for {stage.value}: {e}")
