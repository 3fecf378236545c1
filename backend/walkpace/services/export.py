"""
CSV export of the walk history.
"""

import csv
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

import pandas as pd

from walkpace.models.walk import WalkRecord


CSV_HEADERS = [
    "Date",
    "Time",
    "Route",
    "Distance (km)",
    "Duration (min)",
    "Speed (km/h)",
    "Terrain Factor",
]


def _fixed(value: float, places: int) -> str:
    """Fixed-point text with ties rounded away from zero (1.125 -> "1.13")."""
    quantum = Decimal(1).scaleb(-places)
    return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def _format_terrain(value: float) -> str:
    # Integral factors print without a trailing ".0" (1.0 -> "1")
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def walks_to_dataframe(walks: Sequence[WalkRecord]) -> pd.DataFrame:
    """Export table with numeric columns already formatted as text."""
    rows = [
        [
            walk.date,
            walk.time,
            walk.route,
            _fixed(walk.distance, 2),
            _fixed(walk.duration, 0),
            _fixed(walk.speed, 1),
            _format_terrain(walk.terrain),
        ]
        for walk in walks
    ]
    return pd.DataFrame(rows, columns=CSV_HEADERS, dtype=str)


def walks_to_csv(walks: Sequence[WalkRecord]) -> str:
    """
    Render walks as CSV text.

    Every field, header included, is wrapped in double quotes and rows are
    separated by a single newline with no trailing newline.
    """
    df = walks_to_dataframe(walks)
    return df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n").rstrip("\n")


def export_filename(today: Optional[date] = None) -> str:
    """Suggested download name, e.g. walking_data_2024-01-01.csv."""
    today = today or date.today()
    return f"walking_data_{today.isoformat()}.csv"
