from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from backend.lib.smart_meter_core.models import ElectricityReading, PeakTimeMultiplier, PricePlan

SATURDAY = datetime(2024, 4, 27, 12, 0, tzinfo=timezone.utc)
FRIDAY = datetime(2024, 4, 26, 12, 0, tzinfo=timezone.utc)


def make_plan(*multipliers):
    return PricePlan("plan", "supplier", Decimal("0.25"), multipliers)


def test_price_without_multipliers_is_unit_rate():
    assert make_plan().price_at(SATURDAY) == Decimal("0.25")


def test_peak_multiplier_applies_on_its_weekday_only():
    plan = make_plan(PeakTimeMultiplier(5, Decimal("2")))
    assert plan.price_at(SATURDAY) == Decimal("0.50")
    assert plan.price_at(FRIDAY) == Decimal("0.25")


def test_first_multiplier_wins_for_repeated_weekday():
    plan = make_plan(PeakTimeMultiplier(5, Decimal("3")), PeakTimeMultiplier(5, Decimal("2")))
    assert plan.price_at(SATURDAY) == Decimal("0.75")


def test_price_plan_is_immutable():
    plan = make_plan()
    with pytest.raises(Exception):
        plan.unit_rate = Decimal("1")
    assert isinstance(plan.peak_time_multipliers, tuple)


def test_reading_normalises_time_and_value():
    naive = datetime(2024, 4, 26, 0, 0, 10)
    reading = ElectricityReading(naive, 0.1)
    assert reading.time == naive.replace(tzinfo=timezone.utc)
    assert reading.reading == Decimal("0.1")

    plus_two = timezone(timedelta(hours=2))
    shifted = ElectricityReading(datetime(2024, 4, 26, 2, 0, 10, tzinfo=plus_two), Decimal("1"))
    assert shifted.time.utcoffset() == timedelta(0)
    assert shifted.time.hour == 0
