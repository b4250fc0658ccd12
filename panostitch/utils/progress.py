"""
One-way progress channel for the stitching pipeline.

Stages report what they did (keypoint counts, inlier counts, canvas size)
as ordered events.  The driver hands the collected events back to its
caller instead of writing to shared state.
"""

import logging
import time
from typing import Callable, List, NamedTuple, Optional

logger = logging.getLogger(__name__)


class ProgressEvent(NamedTuple):
    stage: str
    detail: str
    timestamp: float

    def __str__(self):
        stamp = time.strftime("%H:%M:%S", time.localtime(self.timestamp))
        return f"[{stamp}] {self.stage}: {self.detail}"


class ProgressLog:
    """Collects :class:`ProgressEvent` objects in emission order.

    Parameters
    ----------
    listener : callable, optional
        Called with every event as it is emitted.
    """

    def __init__(self, listener: Optional[Callable[[ProgressEvent], None]] = None):
        self.events: List[ProgressEvent] = []
        self._listener = listener

    def emit(self, stage: str, detail: str) -> ProgressEvent:
        event = ProgressEvent(stage, detail, time.time())
        self.events.append(event)
        logger.info("%s: %s", stage, detail)
        if self._listener is not None:
            self._listener(event)
        return event

    def stages(self) -> List[str]:
        return [e.stage for e in self.events]

    def __len__(self):
        return len(self.events)
