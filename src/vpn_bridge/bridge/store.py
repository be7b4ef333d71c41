"""Owned holder for the last known connection stage."""

import threading
from contextlib import AbstractContextManager
from typing import Any

from ..common.logging import get_logger
from ..models import Stage
from .stream import StageEventStream, StageListener

logger = get_logger(__name__)


class StageStore:
    """Holds the single current stage and mirrors every write to its stream.

    All writes go through one reentrant lock so the stored value and the
    value last delivered to the subscriber are always written in the same step.
    """

    def __init__(
        self,
        initial: Stage = Stage.DISCONNECTED,
        stream: StageEventStream | None = None,
    ):
        """Initialize stage store.

        Args:
            initial: Stage reported before any transition happens
            stream: Event stream to notify (a new one is created if None)
        """
        self._stage = initial
        self._lock = threading.RLock()
        self.events = stream or StageEventStream()
        self.events.bind(self.get_stage, self._lock)

    @property
    def lock(self) -> AbstractContextManager[Any]:
        """Reentrant lock guarding the stage and every delivery to the stream."""
        return self._lock

    def get_stage(self) -> Stage:
        """Return the current stage."""
        with self._lock:
            return self._stage

    def set_stage(self, stage: Stage) -> None:
        """Store a stage and push it to the subscriber.

        Args:
            stage: New current stage
        """
        with self._lock:
            previous = self._stage
            self._stage = stage
            logger.debug("Stage set", stage=stage.value, previous=previous.value)
            self.events.push(stage)

    def advance(self, stage: Stage) -> bool:
        """Store and push a stage only if it differs from the current one.

        Args:
            stage: Reported stage

        Returns:
            True if the stage changed
        """
        with self._lock:
            if self._stage == stage:
                return False
            self.set_stage(stage)
            return True

    def subscribe(self, listener: StageListener) -> None:
        """Subscribe to the event stream, replaying the current stage."""
        with self._lock:
            self.events.subscribe(listener)

    def unsubscribe(self) -> None:
        """Clear the event stream subscriber."""
        self.events.unsubscribe()
