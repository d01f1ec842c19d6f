import math
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the database hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_number(value) -> float:
    """Coerce client-supplied telemetry to a finite float (0 otherwise)."""
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def round_half_up(value: float) -> int:
    # 82.5 -> 83, -2.5 -> -2
    return int(math.floor(value + 0.5))


def clamp_percent(value) -> int:
    return max(0, min(100, round_half_up(to_number(value))))


def ratio_percent(numerator, denominator) -> int:
    denominator = to_number(denominator)
    if denominator <= 0:
        return 0
    return clamp_percent(to_number(numerator) / denominator * 100)


def mean(values) -> float:
    values = list(values)
    if not values:
        return 0.0
    return sum(values) / len(values)
