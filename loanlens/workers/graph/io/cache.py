from __future__ import annotations
import logging
import threading
import time
from typing import Callable, Optional

from ..core.types import Dataset

logger = logging.getLogger(__name__)


class DatasetCache:
    """Holds the most recently parsed Dataset for ``ttl_seconds``.

    Loads are serialized so concurrent requests share one download. Failed
    loads are not cached.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._dataset: Optional[Dataset] = None
        self._loaded_at: Optional[float] = None

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    def _fresh(self) -> Optional[Dataset]:
        if self._dataset is None or self._loaded_at is None:
            return None
        if self._clock() - self._loaded_at >= self.ttl_seconds:
            return None
        return self._dataset

    def get_or_load(self, loader: Callable[[], Dataset]) -> Dataset:
        if not self.enabled:
            return loader()
        with self._lock:
            cached = self._fresh()
            if cached is not None:
                logger.debug("dataset cache hit (%d records)", len(cached))
                return cached
            dataset = loader()
            self._dataset = dataset
            self._loaded_at = self._clock()
            logger.info("dataset cache refreshed", extra={"records": len(dataset), "ttl_seconds": self.ttl_seconds})
            return dataset

    def invalidate(self) -> None:
        with self._lock:
            self._dataset = None
            self._loaded_at = None
        logger.info("dataset cache invalidated")
