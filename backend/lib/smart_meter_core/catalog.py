from decimal import Decimal
from typing import Tuple

from .models import PricePlan

DEFAULT_PRICE_PLANS: Tuple[PricePlan, ...] = (
    PricePlan("price-plan-0", "Dr Evil's Dark Energy", Decimal("10")),
    PricePlan("price-plan-1", "The Green Eco", Decimal("2")),
    PricePlan("price-plan-2", "Power for Everyone", Decimal("1")),
)


def price_plan_to_dict(plan: PricePlan) -> dict:
    return {
        "planName": plan.plan_name,
        "energySupplier": plan.energy_supplier,
        "unitRate": plan.unit_rate,
        "peakTimeMultipliers": [
            {"dayOfWeek": p.day_of_week, "multiplier": p.multiplier}
            for p in plan.peak_time_multipliers
        ],
    }
