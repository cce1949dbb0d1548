"""Kubernetes resource quantity parsing and formatting.

CPU quantities are normalised to millicores and memory quantities to bytes.
"""

from __future__ import annotations

import re

_BINARY_SUFFIXES = {
    "Ki": 1024,
    "Mi": 1024**2,
    "Gi": 1024**3,
    "Ti": 1024**4,
}
_DECIMAL_SUFFIXES = {
    "k": 1000,
    "M": 1000**2,
    "G": 1000**3,
    "T": 1000**4,
}
_QUANTITY = re.compile(r"^(\d+(?:\.\d+)?)([a-zA-Z]*)$")

# Unitless values below this are whole cores, anything larger is bytes
_CORE_THRESHOLD = 1000


def parse_resource_value(value: str) -> int:
    """Parse a quantity string into millicores or bytes.

    Examples:
        >>> parse_resource_value("500m")
        500
        >>> parse_resource_value("512Mi")
        536870912
        >>> parse_resource_value("2")
        2000

    Raises:
        ValueError: If the string is not a recognised quantity
    """
    match = _QUANTITY.match(value.strip())
    if not match:
        raise ValueError(f"Invalid resource quantity: {value!r}")

    number = float(match.group(1))
    suffix = match.group(2)

    if suffix == "m":
        return int(number)
    if suffix == "n":
        return int(number / 1_000_000)
    if suffix in _BINARY_SUFFIXES:
        return int(number * _BINARY_SUFFIXES[suffix])
    if suffix in _DECIMAL_SUFFIXES:
        return int(number * _DECIMAL_SUFFIXES[suffix])
    if suffix:
        raise ValueError(f"Unknown resource suffix in {value!r}")

    if number < _CORE_THRESHOLD:
        return int(number * 1000)
    return int(number)


def format_bytes(value: int) -> str:
    """Render a byte count with a binary unit, e.g. ``1.5 GiB``."""
    size = float(value)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if size < 1024:
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TiB"


def format_millicores(value: int) -> str:
    """Render millicores as cores once they reach a whole core."""
    if value >= 1000:
        return f"{value / 1000:.2f} cores"
    return f"{value}m"
