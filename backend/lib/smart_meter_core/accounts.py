from typing import Dict, Mapping, Optional

DEFAULT_ACCOUNTS: Dict[str, str] = {
    "smart-meter-0": "price-plan-0",
    "smart-meter-1": "price-plan-1",
    "smart-meter-2": "price-plan-0",
    "smart-meter-3": "price-plan-2",
    "smart-meter-4": "price-plan-1",
}


class AccountService:
    """Which price plan each smart meter's account is currently on."""

    def __init__(self, smart_meter_to_price_plan: Optional[Mapping[str, str]] = None):
        if smart_meter_to_price_plan is None:
            smart_meter_to_price_plan = DEFAULT_ACCOUNTS
        self._accounts = dict(smart_meter_to_price_plan)

    def price_plan_id_for(self, smart_meter_id: str) -> Optional[str]:
        return self._accounts.get(smart_meter_id)

    def smart_meter_ids(self):
        return list(self._accounts)
