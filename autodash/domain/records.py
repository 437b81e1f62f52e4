"""Helpers for turning caller datasets into plain row records."""

from __future__ import annotations

import math
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

Row = Mapping[str, Any]
Dataset = Union[Sequence[Row], pd.DataFrame]


def to_records(data: Optional[Dataset]) -> List[Dict[str, Any]]:
    """Return shallow copies of the rows so callers' data is never touched."""

    if data is None:
        return []
    if isinstance(data, pd.DataFrame):
        return data.to_dict(orient="records")
    return [dict(row) for row in data]


def column_names(records: Sequence[Row]) -> List[str]:
    names: List[str] = []
    seen = set()
    for row in records:
        for key in row.keys():
            if key not in seen:
                seen.add(key)
                names.append(key)
    return names


def is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (float, np.floating)):
        return math.isnan(value)
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def to_number(value: Any) -> Optional[float]:
    """Parse ``value`` as a finite float, or return ``None``."""

    if value is None or isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        # float() also takes digit separators such as "1_000"
        if not text or "_" in text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def number_or_zero(value: Any) -> float:
    number = to_number(value)
    return 0.0 if number is None else number


def format_number(value: float) -> str:
    if float(value).is_integer():
        return f"{value:,.0f}"
    return f"{value:,.2f}"
