"""
=============================================================================
SMART METER PRICE PLAN COMPARATOR - MAIN FLASK APPLICATION
=============================================================================
REST API in front of the smart_meter_core library:
- Storing electricity readings per smart meter (JSON or CSV upload)
- Reading back a meter's stored readings
- Costing a meter's consumption under every price plan
- Recommending the cheapest price plans

Storage:
- In memory by default
- DynamoDB when USE_DYNAMODB=true (see backend/lib/dynamodb_service.py)

How to run:
    flask --app backend.app run      (Flask finds create_app)
    python application.py

Then visit: http://127.0.0.1:5000/health
=============================================================================
"""

import logging
import os

from flask import Blueprint, Flask, current_app, jsonify, request

# dotenv - Load environment variables from .env file
from dotenv import load_dotenv

from backend.lib.smart_meter_core.accounts import AccountService
from backend.lib.smart_meter_core.catalog import DEFAULT_PRICE_PLANS, price_plan_to_dict
from backend.lib.smart_meter_core.errors import InvalidReadingsError, UndefinedCostError
from backend.lib.smart_meter_core.generator import seed_readings
from backend.lib.smart_meter_core.io import (
    parse_csv_string,
    parse_meter_readings,
    reading_to_dict,
    validate_meter_readings,
)
from backend.lib.smart_meter_core.processor import PricePlanComparator
from backend.lib.smart_meter_core.store import MeterReadingStore

# =============================================================================
# CONFIGURATION
# =============================================================================

def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == 'true'


def load_config() -> dict:
    """
    Read settings from the environment (and a .env file, if present).

    USE_DYNAMODB         keep readings in DynamoDB instead of memory (default false)
    DYNAMODB_TABLE_NAME  table used when USE_DYNAMODB is on (default MeterReadings)
    SEED_READINGS        generate demo readings for the known meters (default true)
    SEED_READINGS_COUNT  readings generated per meter (default 20)
    LOG_LEVEL            default INFO
    """
    load_dotenv()
    return {
        "USE_DYNAMODB": _env_flag('USE_DYNAMODB', 'false'),
        "DYNAMODB_TABLE_NAME": os.getenv('DYNAMODB_TABLE_NAME', 'MeterReadings'),
        "SEED_READINGS": _env_flag('SEED_READINGS', 'true'),
        "SEED_READINGS_COUNT": int(os.getenv('SEED_READINGS_COUNT', '20')),
        "LOG_LEVEL": os.getenv('LOG_LEVEL', 'INFO').upper(),
    }


# =============================================================================
# STORAGE INITIALIZATION
# =============================================================================

def build_reading_store(config: dict):
    """DynamoDB when enabled, otherwise the in-memory store."""
    if config.get("USE_DYNAMODB"):
        from backend.lib.dynamodb_service import DynamoDBReadingStore
        store = DynamoDBReadingStore(table_name=config.get("DYNAMODB_TABLE_NAME"))
        store.create_table_if_not_exists()
        return store
    return MeterReadingStore()


# =============================================================================
# API ROUTES
# =============================================================================

api = Blueprint("api", __name__)


def _services() -> dict:
    return current_app.extensions["smart_meter"]


@api.route("/health", methods=["GET"])
def health():
    return jsonify({"status": "ok", "storage": _services()["storage"]})


@api.route("/readings/store", methods=["POST"])
def store_readings():
    """
    Store a batch of readings for one smart meter.

    Request Body (JSON):
        {
            "smartMeterId": "smart-meter-0",
            "electricityReadings": [
                {"time": "2024-04-26T00:00:10Z", "reading": 0.5034}
            ]
        }

    HTTP Status Codes:
        200: Stored
        400: Missing meter id, empty readings or malformed values
    """
    meter_readings = parse_meter_readings(request.get_json(silent=True))
    validate_meter_readings(meter_readings)
    _services()["store"].store_readings(meter_readings.smart_meter_id, meter_readings.electricity_readings)
    return jsonify({})


@api.route("/readings/upload", methods=["POST"])
def upload_readings():
    """
    Store readings from an uploaded CSV file.

    Expected CSV format:
        smart_meter_id,time,reading
        smart-meter-0,2024-04-26T00:00:10Z,0.34
        smart-meter-0,2024-04-26T00:00:20Z,0.29

    Returns:
        202 with upload_id, processed_count and the meters touched
    """
    if "file" not in request.files:
        return jsonify({"error": "No file uploaded"}), 400

    file = request.files["file"]
    try:
        content = file.read().decode("utf-8")
    except UnicodeDecodeError:
        raise InvalidReadingsError("Uploaded file is not UTF-8 text")

    grouped = parse_csv_string(content)
    if not grouped:
        raise InvalidReadingsError("Uploaded file contains no readings")

    store = _services()["store"]
    for smart_meter_id, readings in grouped.items():
        store.store_readings(smart_meter_id, readings)

    return jsonify({
        "upload_id": file.filename,
        "processed_count": sum(len(r) for r in grouped.values()),
        "meters": sorted(grouped)
    }), 202


@api.route("/readings/read/<smart_meter_id>", methods=["GET"])
def read_readings(smart_meter_id):
    """
    Example Response:
        [{"time": "2024-04-26T00:00:10Z", "reading": "0.5034"}]
    """
    readings = _services()["store"].get_readings(smart_meter_id)
    if readings is None:
        return jsonify({"error": f"No readings for {smart_meter_id}"}), 404
    return jsonify([reading_to_dict(r) for r in readings])


@api.route("/readings/meters", methods=["GET"])
def list_meters():
    return jsonify({"meters": _services()["store"].meter_ids()})


@api.route("/price-plans", methods=["GET"])
def list_price_plans():
    plans = _services()["comparator"].price_plans
    return jsonify([price_plan_to_dict(p) for p in plans])


@api.route("/price-plans/compare-all/<smart_meter_id>", methods=["GET"])
def compare_all(smart_meter_id):
    """
    Cost of the meter's readings under every price plan.

    Example Response:
        {
            "pricePlanId": "price-plan-0",
            "pricePlanComparisons": {"price-plan-0": "36000", "price-plan-1": "7200", "price-plan-2": "3600"}
        }

    pricePlanId is the plan the meter's account is on, or null.
    """
    services = _services()
    costs = services["comparator"].compare_all(smart_meter_id)
    if costs is None:
        return jsonify({"error": f"No readings for {smart_meter_id}"}), 404
    return jsonify({
        "pricePlanId": services["accounts"].price_plan_id_for(smart_meter_id),
        "pricePlanComparisons": costs
    })


@api.route("/price-plans/recommend/<smart_meter_id>", methods=["GET"])
def recommend(smart_meter_id):
    """
    Cheapest price plans first.

    Query Parameters:
        limit (optional): how many plans to return (default: all)

    Example:
        GET /price-plans/recommend/smart-meter-0?limit=2
        [{"price-plan-2": "3600"}, {"price-plan-1": "7200"}]
    """
    limit = request.args.get("limit")
    if limit is not None:
        try:
            limit = int(limit)
        except ValueError:
            return jsonify({"error": "limit must be an integer"}), 400

    ranked = _services()["comparator"].recommend(smart_meter_id, limit)
    if ranked is None:
        return jsonify({"error": f"No readings for {smart_meter_id}"}), 404
    return jsonify([{name: cost} for name, cost in ranked])


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@api.app_errorhandler(InvalidReadingsError)
def handle_invalid_readings(error):
    current_app.logger.warning("Rejected readings: %s", error)
    return jsonify({"error": str(error)}), 400


@api.app_errorhandler(UndefinedCostError)
def handle_undefined_cost(error):
    return jsonify({"error": str(error)}), 422


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(config: dict = None, reading_store=None, price_plans=None, accounts: AccountService = None) -> Flask:
    """
    Build the Flask app. Every collaborator can be passed in; anything left
    out is built from config (which itself defaults to the environment).
    """
    settings = load_config()
    settings.update(config or {})

    logging.basicConfig(level=settings["LOG_LEVEL"])

    app = Flask(__name__)
    app.config.update(settings)

    if reading_store is None:
        reading_store = build_reading_store(settings)
    accounts = accounts or AccountService()
    comparator = PricePlanComparator(reading_store, DEFAULT_PRICE_PLANS if price_plans is None else price_plans)

    if settings["SEED_READINGS"] and isinstance(reading_store, MeterReadingStore):
        seed_readings(reading_store, accounts.smart_meter_ids(), settings["SEED_READINGS_COUNT"])

    app.extensions["smart_meter"] = {
        "store": reading_store,
        "comparator": comparator,
        "accounts": accounts,
        "storage": "memory" if isinstance(reading_store, MeterReadingStore) else "dynamodb",
    }
    app.register_blueprint(api)
    app.logger.info("Loaded %d price plans, storage: %s", len(comparator.price_plans),
                    app.extensions["smart_meter"]["storage"])
    return app
