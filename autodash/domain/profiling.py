"""Column profiling: semantic type inference, statistics and quality."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from .records import Dataset, column_names, is_missing, to_number, to_records

logger = logging.getLogger(__name__)

NUMERICAL = "numerical"
CATEGORICAL = "categorical"
TEMPORAL = "temporal"
TEXT = "text"
SEMANTIC_TYPES = (NUMERICAL, CATEGORICAL, TEMPORAL, TEXT)

CATEGORICAL_MIN_UNIQUE = 10
CATEGORICAL_UNIQUE_RATIO = 0.1

_DIGIT_RE = re.compile(r"\d")


@dataclass(frozen=True)
class ColumnStats:
    mean: float
    median: float
    std: float
    min: float
    max: float


@dataclass(frozen=True)
class ColumnProfile:
    name: str
    semantic_type: str
    row_count: int
    null_count: int
    unique_count: int
    quality_percent: int
    stats: Optional[ColumnStats] = None

    @property
    def non_null_count(self) -> int:
        return self.row_count - self.null_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "semanticType": self.semantic_type,
            "nullCount": self.null_count,
            "uniqueCount": self.unique_count,
            "qualityPercent": self.quality_percent,
            "stats": asdict(self.stats) if self.stats else None,
        }


def looks_temporal(value: Any) -> bool:
    """True when a single cell reads as a date or time."""

    if isinstance(value, (datetime, date, pd.Timestamp, np.datetime64)):
        return True
    text = str(value).strip()
    lowered = text.lower()
    if "date" in lowered or "time" in lowered:
        return True
    # bare numbers would otherwise parse as years or days of the month
    if to_number(value) is not None or not _DIGIT_RE.search(text):
        return False
    try:
        parsed = pd.to_datetime(text, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return False
    return not pd.isna(parsed)


def classify_values(values: Sequence[Any], row_count: int) -> str:
    """Resolve the semantic type of non-missing ``values``; first match wins."""

    if not values:
        return TEXT
    if all(to_number(v) is not None for v in values):
        return NUMERICAL
    if any(looks_temporal(v) for v in values):
        return TEMPORAL
    limit = max(CATEGORICAL_MIN_UNIQUE, row_count * CATEGORICAL_UNIQUE_RATIO)
    if len(_distinct(values)) <= limit:
        return CATEGORICAL
    return TEXT


def _distinct(values: Sequence[Any]) -> List[Any]:
    return list(pd.unique(pd.Series(list(values), dtype=object)))


def compute_stats(values: Sequence[Any]) -> Optional[ColumnStats]:
    numbers = [n for n in (to_number(v) for v in values) if n is not None]
    if not numbers:
        return None
    series = pd.Series(numbers, dtype=float)
    ordered = np.sort(series.to_numpy())
    return ColumnStats(
        mean=float(series.mean()),
        # upper middle element for even counts, never averaged
        median=float(ordered[len(ordered) // 2]),
        std=float(series.std(ddof=0)),
        min=float(ordered[0]),
        max=float(ordered[-1]),
    )


def round_half_up(value: float) -> int:
    """Nearest integer with .5 rounded up; ``round`` would go to the even one."""
    return int(math.floor(value + 0.5))


def profile_column(data: Dataset, column: str) -> ColumnProfile:
    records = data if isinstance(data, list) else to_records(data)
    row_count = len(records)
    raw = [row.get(column) for row in records]
    present = [v for v in raw if not is_missing(v)]

    semantic_type = classify_values(present, row_count)
    stats = compute_stats(present) if semantic_type == NUMERICAL else None
    quality = round_half_up(100 * len(present) / row_count) if row_count else 0

    return ColumnProfile(
        name=column,
        semantic_type=semantic_type,
        row_count=row_count,
        null_count=row_count - len(present),
        unique_count=len(_distinct(present)),
        quality_percent=quality,
        stats=stats,
    )


def profile_dataset(data: Dataset) -> List[ColumnProfile]:
    records = to_records(data)
    profiles = [profile_column(records, name) for name in column_names(records)]
    logger.info("Profiled %d columns over %d rows", len(profiles), len(records))
    return profiles


def dataset_overview(profiles: Sequence[ColumnProfile], row_count: int) -> Dict[str, Any]:
    distribution: Dict[str, int] = {}
    for profile in profiles:
        distribution[profile.semantic_type] = distribution.get(profile.semantic_type, 0) + 1
    overall = (
        round_half_up(sum(p.quality_percent for p in profiles) / len(profiles))
        if profiles
        else 0
    )
    return {
        "rows": row_count,
        "columns": len(profiles),
        "overall_quality": overall,
        "type_distribution": distribution,
        "ready": bool(profiles) and row_count > 0,
    }


def numeric_correlations(data: Dataset, profiles: Sequence[ColumnProfile]) -> List[Dict[str, Any]]:
    """Pearson correlation for each pair of numerical columns, strongest first."""

    numeric = [p.name for p in profiles if p.semantic_type == NUMERICAL]
    if len(numeric) < 2:
        return []
    records = to_records(data)
    frame = pd.DataFrame({name: [to_number(row.get(name)) for row in records] for name in numeric}, dtype=float)
    corr = frame.corr(method="pearson")

    pairs = []
    for i, col_i in enumerate(numeric):
        for col_j in numeric[i + 1:]:
            value = corr.loc[col_i, col_j]
            if pd.notna(value):
                pairs.append({"x": col_i, "y": col_j, "value": round(float(value), 4)})
    pairs.sort(key=lambda item: abs(item["value"]), reverse=True)
    return pairs
