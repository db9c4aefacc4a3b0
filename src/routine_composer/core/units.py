"""
Unit conversion for user-entered values.

The engine stores weights in kilograms and distances in metres; the
front-end converts whatever the user typed before issuing a command.
"""

from typing import Final

# Factor that converts one unit into the canonical unit of its dimension.
_TO_CANONICAL: Final[dict[str, tuple[str, float]]] = {
    "kg": ("mass", 1.0),
    "lb": ("mass", 0.45359237),
    "m": ("length", 1.0),
    "km": ("length", 1000.0),
    "mi": ("length", 1609.344),
}

CANONICAL_UNITS: Final[dict[str, str]] = {"mass": "kg", "length": "m"}


def convert(value: float, from_unit: str, to_unit: str) -> float:
    """
    Convert ``value`` between two units of the same dimension.

    Args:
        value: Quantity expressed in ``from_unit``
        from_unit: One of kg, lb, m, km, mi
        to_unit: One of kg, lb, m, km, mi

    Returns:
        The quantity expressed in ``to_unit``

    Raises:
        ValueError: On an unknown unit or mismatched dimensions
    """
    try:
        from_dim, from_factor = _TO_CANONICAL[from_unit]
        to_dim, to_factor = _TO_CANONICAL[to_unit]
    except KeyError as e:
        raise ValueError(f"Unknown unit: {e.args[0]}") from e
    if from_dim != to_dim:
        raise ValueError(f"Cannot convert {from_unit} to {to_unit}")
    if from_unit == to_unit:
        return value
    return value * from_factor / to_factor
