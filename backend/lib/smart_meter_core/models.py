from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Tuple


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are treated as UTC; aware ones are converted to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class ElectricityReading:
    time: datetime
    reading: Decimal  # kW

    def __post_init__(self):
        object.__setattr__(self, "time", as_utc(self.time))
        if not isinstance(self.reading, Decimal):
            object.__setattr__(self, "reading", Decimal(str(self.reading)))


@dataclass
class MeterReadings:
    """One inbound batch, as received before validation."""
    smart_meter_id: Optional[str]
    electricity_readings: Optional[List[ElectricityReading]]


@dataclass(frozen=True)
class PeakTimeMultiplier:
    day_of_week: int  # Monday == 0, as datetime.weekday()
    multiplier: Decimal


@dataclass(frozen=True)
class PricePlan:
    plan_name: str
    energy_supplier: str
    unit_rate: Decimal  # price per kWh
    peak_time_multipliers: Tuple[PeakTimeMultiplier, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "peak_time_multipliers", tuple(self.peak_time_multipliers))

    def price_at(self, date_time: datetime) -> Decimal:
        """
        Unit rate in force at date_time.
        The first multiplier matching the weekday applies; otherwise the flat unit rate.
        """
        weekday = date_time.weekday()
        for peak in self.peak_time_multipliers:
            if peak.day_of_week == weekday:
                return self.unit_rate * peak.multiplier
        return self.unit_rate
