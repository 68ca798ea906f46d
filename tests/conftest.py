import pytest

from backend.app import create_app
from backend.lib.smart_meter_core.accounts import AccountService
from backend.lib.smart_meter_core.store import MeterReadingStore


@pytest.fixture
def store():
    return MeterReadingStore()


@pytest.fixture
def app(store):
    return create_app(
        config={"SEED_READINGS": False, "USE_DYNAMODB": False},
        reading_store=store,
        accounts=AccountService({"smart-meter-0": "price-plan-0"}),
    )


@pytest.fixture
def client(app):
    return app.test_client()
