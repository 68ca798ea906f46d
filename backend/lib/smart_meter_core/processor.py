import logging
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import UndefinedCostError
from .estimator import calculate_cost
from .models import PricePlan

logger = logging.getLogger(__name__)


class PricePlanComparator:
    """
    Costs one meter's readings under every plan in the catalog.

    reading_store is anything with get_readings(smart_meter_id), i.e. a
    MeterReadingStore or a DynamoDBReadingStore.
    """

    def __init__(self, reading_store, price_plans: Sequence[PricePlan]):
        names = [p.plan_name for p in price_plans]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate price plan names: {', '.join(duplicates)}")
        self.reading_store = reading_store
        self.price_plans = tuple(price_plans)

    def compare_all(self, smart_meter_id: str) -> Optional[Dict[str, Decimal]]:
        """
        Returns {plan_name: cost} for every plan, or None when the meter has no
        readings (never stored, or only empty batches).
        Raises UndefinedCostError if the readings span zero elapsed time.
        """
        readings = self.reading_store.get_readings(smart_meter_id)
        if not readings:
            return None
        try:
            costs = {plan.plan_name: calculate_cost(readings, plan) for plan in self.price_plans}
        except UndefinedCostError:
            logger.warning("Cannot compare plans for %s: zero elapsed time", smart_meter_id)
            raise UndefinedCostError(smart_meter_id)
        logger.info("Compared %d price plans for %s", len(costs), smart_meter_id)
        return costs

    def recommend(self, smart_meter_id: str, limit: Optional[int] = None) -> Optional[List[Tuple[str, Decimal]]]:
        """
        Cheapest plans first. Ties keep catalog order.
        limit=None returns every plan, limit <= 0 returns an empty list.
        """
        costs = self.compare_all(smart_meter_id)
        if costs is None:
            return None
        # costs is keyed in catalog order, and sorted() is stable
        ranked = sorted(costs.items(), key=lambda item: item[1])
        if limit is None:
            return ranked
        return ranked[:max(limit, 0)]
