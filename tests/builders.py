from datetime import datetime, timedelta, timezone
from decimal import Decimal

from backend.lib.smart_meter_core.models import ElectricityReading

T0 = datetime(2024, 4, 26, 0, 0, 10, tzinfo=timezone.utc)


def make_readings(*values, start=T0, step_seconds=10):
    """Readings step_seconds apart starting at start, e.g. make_readings(10, 20, 30)."""
    return [
        ElectricityReading(start + timedelta(seconds=i * step_seconds), Decimal(str(v)))
        for i, v in enumerate(values)
    ]


def scenario_payload(smart_meter_id):
    return {
        "smartMeterId": smart_meter_id,
        "electricityReadings": [
            {"time": "2024-04-26T00:00:10Z", "reading": 10},
            {"time": "2024-04-26T00:00:20Z", "reading": 20},
            {"time": "2024-04-26T00:00:30Z", "reading": 30},
        ],
    }
