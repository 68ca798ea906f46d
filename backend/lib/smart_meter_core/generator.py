import logging
import random
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable, List, Optional

from .models import ElectricityReading

logger = logging.getLogger(__name__)


def generate_readings(number: int, end: Optional[datetime] = None, interval_seconds: int = 10,
                      rng: Optional[random.Random] = None) -> List[ElectricityReading]:
    """
    number readings, interval_seconds apart, the last one at end (default: now).
    Values are random kW figures with four decimal places.
    """
    rng = rng or random.Random()
    end = end or datetime.now(timezone.utc)
    readings = []
    for i in range(number):
        value = Decimal(str(abs(rng.gauss(0, 1)))).quantize(Decimal("0.0001"))
        readings.append(ElectricityReading(end - timedelta(seconds=i * interval_seconds), value))
    readings.sort(key=lambda r: r.time)
    return readings


def seed_readings(reading_store, smart_meter_ids: Iterable[str], number: int = 20,
                  rng: Optional[random.Random] = None) -> None:
    """Give every listed meter a generated series so a fresh server has something to compare."""
    for smart_meter_id in smart_meter_ids:
        reading_store.store_readings(smart_meter_id, generate_readings(number, rng=rng))
        logger.info("Seeded %d readings for %s", number, smart_meter_id)
