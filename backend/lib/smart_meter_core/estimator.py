from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP, Context, localcontext
from typing import Sequence

from .errors import UndefinedCostError
from .models import ElectricityReading, PricePlan

# Wide enough that only the explicit quantize steps below ever round.
DECIMAL_CONTEXT = Context(prec=50, rounding=ROUND_HALF_UP)
SECONDS_PER_HOUR = Decimal(3600)


def divide_half_up(dividend: Decimal, divisor: Decimal) -> Decimal:
    """
    dividend / divisor rounded ROUND_HALF_UP to the dividend's own scale,
    e.g. 60 / 7 -> 9 and 0.60 / 7 -> 0.09.
    """
    with localcontext(DECIMAL_CONTEXT):
        scale = Decimal(1).scaleb(dividend.as_tuple().exponent)
        return (dividend / divisor).quantize(scale, rounding=ROUND_HALF_UP)


def average_reading(readings: Sequence[ElectricityReading]) -> Decimal:
    with localcontext(DECIMAL_CONTEXT):
        total = sum((r.reading for r in readings), Decimal(0))
    return divide_half_up(total, Decimal(len(readings)))


def elapsed_hours(readings: Sequence[ElectricityReading]) -> Decimal:
    """
    Hours between the earliest and the latest timestamp in the series,
    whatever order the readings were stored in. Sub-second remainders are dropped.
    """
    first = min(r.time for r in readings)
    last = max(r.time for r in readings)
    seconds = (last - first) // timedelta(seconds=1)
    with localcontext(DECIMAL_CONTEXT):
        return Decimal(seconds) / SECONDS_PER_HOUR


def calculate_cost(readings: Sequence[ElectricityReading], price_plan: PricePlan) -> Decimal:
    """
    Estimated cost of a reading series under one plan:
    (average reading / elapsed hours) * unit rate.

    Only the flat unit rate is used; peak time multipliers are exposed through
    PricePlan.price_at but do not take part in this estimate.

    Raises ValueError for an empty series and UndefinedCostError when the
    series spans zero elapsed time.
    """
    if not readings:
        raise ValueError("cost is undefined for an empty reading series")

    hours = elapsed_hours(readings)
    if hours == 0:
        raise UndefinedCostError()

    averaged_cost = divide_half_up(average_reading(readings), hours)
    with localcontext(DECIMAL_CONTEXT):
        return averaged_cost * price_plan.unit_rate
