# backend/run_local.py
import sys
from pathlib import Path

from backend.lib.smart_meter_core.catalog import DEFAULT_PRICE_PLANS
from backend.lib.smart_meter_core.errors import UndefinedCostError
from backend.lib.smart_meter_core.io import parse_csv_string
from backend.lib.smart_meter_core.processor import PricePlanComparator
from backend.lib.smart_meter_core.store import MeterReadingStore


def main(csv_path):
    """Load a readings CSV and print the plan ranking for every meter in it."""
    grouped = parse_csv_string(Path(csv_path).read_text())
    store = MeterReadingStore(grouped)
    comparator = PricePlanComparator(store, DEFAULT_PRICE_PLANS)
    for smart_meter_id in store.meter_ids():
        print(f"{smart_meter_id} ({len(store.get_readings(smart_meter_id))} readings):")
        try:
            ranked = comparator.recommend(smart_meter_id)
        except UndefinedCostError as e:
            print(f" - {e}")
            continue
        for plan_name, cost in ranked:
            print(f" - {plan_name}: {cost}")


if __name__ == "__main__":
    csv = sys.argv[1] if len(sys.argv) > 1 else "tests/sample.csv"
    main(csv)
