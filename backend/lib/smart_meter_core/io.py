import csv
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from io import StringIO
from typing import Dict, List

from .errors import InvalidReadingsError
from .models import ElectricityReading, MeterReadings, as_utc


def parse_time(value) -> datetime:
    """ISO-8601 text (a trailing Z is accepted) or epoch seconds."""
    if isinstance(value, bool):
        raise InvalidReadingsError(f"Invalid reading time: {value!r}")
    if isinstance(value, (int, float, Decimal)):
        try:
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            raise InvalidReadingsError(f"Invalid reading time: {value!r}")
    if not isinstance(value, str) or not value.strip():
        raise InvalidReadingsError(f"Invalid reading time: {value!r}")
    # Convert timestamp with Z to +00:00 for fromisoformat
    text = value.strip().replace("Z", "+00:00")
    try:
        return as_utc(datetime.fromisoformat(text))
    except ValueError:
        raise InvalidReadingsError(f"Invalid reading time: {value!r}")


def parse_reading_value(value) -> Decimal:
    if value is None or isinstance(value, bool):
        raise InvalidReadingsError(f"Invalid reading value: {value!r}")
    try:
        # via str() so a JSON float like 0.1 stays 0.1
        reading = Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidReadingsError(f"Invalid reading value: {value!r}")
    if not reading.is_finite():
        raise InvalidReadingsError(f"Invalid reading value: {value!r}")
    if reading < 0:
        raise InvalidReadingsError("reading must be >= 0")
    return reading


def parse_reading(obj) -> ElectricityReading:
    if not isinstance(obj, dict) or "time" not in obj or "reading" not in obj:
        raise InvalidReadingsError(f"Missing field in reading: {obj!r}")
    return ElectricityReading(time=parse_time(obj["time"]), reading=parse_reading_value(obj["reading"]))


def parse_meter_readings(payload) -> MeterReadings:
    """
    Parse a JSON body like
        {"smartMeterId": "smart-meter-0",
         "electricityReadings": [{"time": "2024-04-26T00:00:10Z", "reading": 0.5}]}
    Missing pieces come back as None; validate_meter_readings decides whether that's acceptable.
    """
    if not isinstance(payload, dict):
        raise InvalidReadingsError("Request body must be a JSON object")
    raw_readings = payload.get("electricityReadings")
    if raw_readings is not None and not isinstance(raw_readings, list):
        raise InvalidReadingsError("electricityReadings must be a list")
    readings = None
    if raw_readings is not None:
        readings = [parse_reading(r) for r in raw_readings]
    return MeterReadings(smart_meter_id=payload.get("smartMeterId"), electricity_readings=readings)


def validate_meter_readings(meter_readings: MeterReadings) -> None:
    smart_meter_id = meter_readings.smart_meter_id
    if not isinstance(smart_meter_id, str) or not smart_meter_id.strip():
        raise InvalidReadingsError("smartMeterId is required")
    if not meter_readings.electricity_readings:
        raise InvalidReadingsError("electricityReadings must not be empty")


def parse_csv_string(csv_text: str) -> Dict[str, List[ElectricityReading]]:
    """
    Parse CSV text with header: smart_meter_id,time,reading
    Returns readings grouped by meter, each in file order.
    """
    f = StringIO(csv_text.strip())
    reader = csv.DictReader(f)
    grouped: Dict[str, List[ElectricityReading]] = {}
    for row in reader:
        # Basic validation
        if not row.get("smart_meter_id") or not row.get("time") or not row.get("reading"):
            raise InvalidReadingsError(f"Missing field in row: {row}")
        reading = ElectricityReading(time=parse_time(row["time"]), reading=parse_reading_value(row["reading"]))
        grouped.setdefault(row["smart_meter_id"].strip(), []).append(reading)
    return grouped


def format_time(value: datetime) -> str:
    return as_utc(value).isoformat().replace("+00:00", "Z")


def reading_to_dict(reading: ElectricityReading) -> dict:
    return {"time": format_time(reading.time), "reading": reading.reading}
