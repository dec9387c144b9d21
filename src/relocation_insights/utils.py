"""Numeric helpers shared by the providers and the seeding code."""

import json
import math
from pathlib import Path
from typing import Any

RESOURCES_DIR = Path(__file__).resolve().parent / "resources"


def load_resource(name: str) -> Any:
    """Load a JSON file shipped in the package's resources directory."""
    with open(RESOURCES_DIR / name, encoding="utf-8") as f:
        return json.load(f)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round .5 away from zero for positives (Python's round() is banker's rounding)."""
    factor = 10 ** digits
    rounded = math.floor(value * factor + 0.5) / factor
    return int(rounded) if digits == 0 else rounded


def pct(part: float, whole: float) -> int:
    """Integer percentage of ``part`` in ``whole``; 0 when ``whole`` is 0."""
    if not whole:
        return 0
    return int(round_half_up(part / whole * 100))


def safe_int(value: Any, default: int = 0) -> int:
    """Parse an upstream numeric string; negatives (Census sentinels) become the default."""
    try:
        number = int(float(str(value).replace(",", "").strip()))
    except (TypeError, ValueError):
        return default
    return number if number >= 0 else default


def safe_float(value: Any, default: float = 0.0) -> float:
    try:
        number = float(str(value).replace(",", "").strip())
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or number < 0:
        return default
    return number
