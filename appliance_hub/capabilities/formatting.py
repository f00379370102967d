"""
Display formatting for status snapshot values.

Numeric fields use a fixed precision per field, rounded half-up from the
value's decimal representation so 12.345 W always renders as "12.35 W".
"""

from decimal import ROUND_HALF_UP, Decimal
from enum import IntEnum
from typing import Optional

# Decimal places per measured field
FIELD_PRECISION: dict[str, int] = {
    "wattage": 2,
    "voltage": 1,
    "amperage": 3,
    "temperature": 1,
    "distance": 2,
    "energy": 2,
    "humidity": 1,
    "current": 1,
    "brightness": 1,
}

FIELD_UNITS: dict[str, str] = {
    "wattage": " W",
    "voltage": " V",
    "amperage": " A",
    "temperature": "°C",
    "distance": " m",
    "energy": " kWh",
    "humidity": "%",
    "current": " A",
    "brightness": "%",
}


def round_half_up(value: float, places: int) -> Decimal:
    """Round to a fixed number of decimal places, ties away from zero."""
    quantum = Decimal(1).scaleb(-places)
    return Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)


def format_measure(field: str, value: float) -> str:
    """Format a measured value with its field precision and unit."""
    places = FIELD_PRECISION[field]
    return f"{round_half_up(value, places)}{FIELD_UNITS[field]}"


def format_on_off(value: Optional[bool]) -> str:
    return "On" if value else "Off"


def format_enabled(value: Optional[bool]) -> str:
    return "Enabled" if value else "Disabled"


def format_percent(value: float) -> str:
    return f"{int(value)}%"


def format_enum(enum_cls: type[IntEnum], value: int) -> str:
    """Render an enum member (or its raw value) as a title-cased label."""
    try:
        member = enum_cls(value)
    except ValueError:
        return str(value)
    return member.name.replace("_", " ").title()
