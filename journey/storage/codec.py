"""JSON codec for the per-day status history."""

import json
import logging
from datetime import date, datetime, time
from typing import Mapping, Union

from ..goals.models import DayStatus

logger = logging.getLogger(__name__)


def to_day(value: Union[date, datetime]) -> date:
    """Truncate a datetime to its local calendar day."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    return value


def day_key(day: date) -> str:
    """
    Serialize a day as its local midnight in epoch seconds.

    Args:
        day: Calendar day

    Returns:
        Decimal string of whole seconds, e.g. "1760994000"
    """
    midnight = datetime.combine(day, time.min)
    return str(int(midnight.timestamp()))


def day_from_key(key: str) -> date:
    """
    Parse an epoch-seconds key back into a local calendar day.

    Keys with a fractional part ("1760994000.0") are accepted.

    Raises:
        ValueError: If the key is not a usable timestamp
    """
    try:
        return datetime.fromtimestamp(float(key)).date()
    except (OverflowError, OSError) as e:
        raise ValueError(f"Timestamp out of range: {key}") from e


def encode_history(history: Mapping[date, DayStatus]) -> str:
    """Encode a day map as a JSON object, ordered by day."""
    payload = {
        day_key(day): DayStatus(status).value
        for day, status in sorted(history.items())
    }
    return json.dumps(payload)


def decode_history(payload: str) -> dict[date, DayStatus]:
    """
    Decode a JSON day map.

    Never raises: an unparseable payload yields an empty map, and entries
    with a bad key or an unknown tag are skipped.

    Args:
        payload: JSON text as written by encode_history

    Returns:
        Mapping of calendar day to status
    """
    try:
        raw = json.loads(payload)
    except (TypeError, ValueError, RecursionError):
        logger.warning("Day history payload is not valid JSON, starting empty")
        return {}

    if not isinstance(raw, dict):
        logger.warning(f"Day history payload is a {type(raw).__name__}, starting empty")
        return {}

    history: dict[date, DayStatus] = {}
    for key, value in raw.items():
        try:
            history[day_from_key(key)] = DayStatus(value)
        except (TypeError, ValueError):
            logger.warning(f"Skipping unreadable day entry: {key!r} -> {value!r}")
            continue

    return history
