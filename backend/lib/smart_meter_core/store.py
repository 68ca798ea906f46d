import logging
import threading
from typing import Dict, Iterable, List, Optional, Tuple

from .models import ElectricityReading

logger = logging.getLogger(__name__)


class MeterReadingStore:
    """
    In-memory, append-only reading series keyed by smart meter id.

    Each meter has its own lock, so appends for different meters never wait
    on each other and a reader never sees half of a batch.
    """

    def __init__(self, initial: Optional[Dict[str, List[ElectricityReading]]] = None):
        self._readings: Dict[str, List[ElectricityReading]] = {}
        self._locks: Dict[str, threading.Lock] = {}
        # guards the two dicts above, never held while a series is copied or extended
        self._registry_lock = threading.Lock()
        for smart_meter_id, readings in (initial or {}).items():
            self.store_readings(smart_meter_id, readings)

    def _series(self, smart_meter_id: str, create: bool) -> Tuple[Optional[threading.Lock], Optional[list]]:
        with self._registry_lock:
            lock = self._locks.get(smart_meter_id)
            if lock is None:
                if not create:
                    return None, None
                lock = self._locks[smart_meter_id] = threading.Lock()
                self._readings[smart_meter_id] = []
            return lock, self._readings[smart_meter_id]

    def get_readings(self, smart_meter_id: str) -> Optional[List[ElectricityReading]]:
        """Snapshot of the meter's series, or None if nothing was ever stored for it."""
        lock, series = self._series(smart_meter_id, create=False)
        if lock is None:
            return None
        with lock:
            return list(series)

    def store_readings(self, smart_meter_id: str, readings: Iterable[ElectricityReading]) -> None:
        # No dedup and no sorting: the series keeps exactly what was sent, in call order.
        batch = list(readings)
        lock, series = self._series(smart_meter_id, create=True)
        with lock:
            series.extend(batch)
        logger.info("Stored %d readings for %s", len(batch), smart_meter_id)

    def meter_ids(self) -> List[str]:
        with self._registry_lock:
            return sorted(self._readings)
