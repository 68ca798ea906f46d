import random
from datetime import datetime, timedelta, timezone

from backend.lib.smart_meter_core.generator import generate_readings, seed_readings
from backend.lib.smart_meter_core.store import MeterReadingStore


def test_generated_readings_are_spaced_and_non_negative():
    end = datetime(2024, 4, 26, tzinfo=timezone.utc)
    readings = generate_readings(5, end=end, rng=random.Random(1))
    assert len(readings) == 5
    assert readings[-1].time == end
    assert readings[0].time == end - timedelta(seconds=40)
    assert all(r.reading >= 0 for r in readings)
    assert all(r.reading.as_tuple().exponent == -4 for r in readings)


def test_same_seed_gives_same_readings():
    end = datetime(2024, 4, 26, tzinfo=timezone.utc)
    assert generate_readings(3, end=end, rng=random.Random(9)) == generate_readings(3, end=end, rng=random.Random(9))


def test_seed_readings_fills_every_meter():
    store = MeterReadingStore()
    seed_readings(store, ["smart-meter-0", "smart-meter-1"], number=4)
    assert store.meter_ids() == ["smart-meter-0", "smart-meter-1"]
    assert len(store.get_readings("smart-meter-1")) == 4
