"""Imperial to metric display conversion.

RMU stores every length in feet (heights in inches) and every weight in
pounds. Metric output is a display estimate, so each context rounds to a
granularity a player would actually use at the table.
"""

import math
from enum import Enum
from typing import Any, Optional

FEET_TO_METERS = 0.3048
POUNDS_TO_KILOGRAMS = 0.45359237


class MeasurementSystem(str, Enum):
    """World setting controlling how lengths and weights are displayed."""

    IMPERIAL = "imperial"
    METRIC = "metric"

    @classmethod
    def coerce(cls, value: Any) -> "MeasurementSystem":
        """Parse a setting value, defaulting to imperial for anything unknown."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value.strip().lower() == cls.METRIC.value:
            return cls.METRIC
        return cls.IMPERIAL


class DistanceContext(str, Enum):
    MOVEMENT = "movement"
    REACH = "reach"
    RANGE = "range"
    HEIGHT = "height"


def _to_number(value: Any) -> Optional[float]:
    """Coerce a raw source value to a finite float, or None if it is not one."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _round_to(value: float, step: float) -> float:
    return round(value / step) * step


def _trim(value: float, places: int = 2) -> str:
    """Format with at most `places` decimals and no trailing zeros."""
    text = f"{value:.{places}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        text = "0"
    return text


def _metric_distance(meters: float, context: DistanceContext) -> float:
    if context == DistanceContext.MOVEMENT:
        return _round_to(meters, 0.02) if meters < 4 else _round_to(meters, 0.5)
    if context == DistanceContext.REACH:
        return _round_to(meters, 0.1)
    if context == DistanceContext.RANGE:
        return float(round(meters))
    return round(meters, 2)


def distance_to_display(
    feet: Any,
    system: MeasurementSystem = MeasurementSystem.IMPERIAL,
    context: DistanceContext = DistanceContext.MOVEMENT
) -> str:
    """
    Convert a distance in feet to a display string.

    Args:
        feet: Raw distance in feet (int, float or numeric string)
        system: Measurement system to display in
        context: What the distance measures; selects the metric rounding step

    Returns:
        "50'" in imperial, "15 m" in metric. Malformed input gives "0'" / "0 m".
    """
    system = MeasurementSystem.coerce(system)
    context = DistanceContext(context)
    number = _to_number(feet)

    if system == MeasurementSystem.IMPERIAL:
        return f"{_trim(number) if number is not None else '0'}'"

    if number is None:
        return "0 m"
    return f"{_trim(_metric_distance(number * FEET_TO_METERS, context))} m"


def weight_to_display(pounds: Any, system: MeasurementSystem = MeasurementSystem.IMPERIAL) -> str:
    """Convert a weight in pounds to "12 lbs" or "5.44 kg"."""
    system = MeasurementSystem.coerce(system)
    number = _to_number(pounds)

    if system == MeasurementSystem.IMPERIAL:
        return f"{_trim(number) if number is not None else '0'} lbs"

    if number is None:
        return "0 kg"
    return f"{_trim(round(number * POUNDS_TO_KILOGRAMS, 2))} kg"


def height_to_display(inches: Any, system: MeasurementSystem = MeasurementSystem.IMPERIAL) -> str:
    """Convert a height in inches to 5' 10" or 1.78 m."""
    system = MeasurementSystem.coerce(system)
    number = _to_number(inches)

    if system == MeasurementSystem.METRIC:
        feet = number / 12 if number is not None else None
        return distance_to_display(feet, system, DistanceContext.HEIGHT)

    if number is None:
        return "0'"
    whole_inches = int(round(number))
    return f"{whole_inches // 12}' {whole_inches % 12}\""
