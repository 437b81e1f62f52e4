"""Reconcile proposed charts with the dashboard's current chart set."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from .charts import ChartSpec

logger = logging.getLogger(__name__)

UPDATED_DESCRIPTION = "Updated with new data."


def find_match(charts: Sequence[ChartSpec], proposal: ChartSpec) -> Optional[int]:
    """Index of the chart sharing ``proposal``'s field pair.

    With several candidates the one carrying the proposal's id wins,
    otherwise the first in array order.
    """

    candidates = [i for i, chart in enumerate(charts) if chart.identity == proposal.identity]
    if not candidates:
        return None
    for index in candidates:
        if charts[index].id == proposal.id:
            return index
    return candidates[0]


def _unique_id(charts: Sequence[ChartSpec], wanted: str) -> str:
    taken = {chart.id for chart in charts}
    if wanted not in taken:
        return wanted
    suffix = 2
    while f"{wanted}-{suffix}" in taken:
        suffix += 1
    return f"{wanted}-{suffix}"


def merge_charts(current: Sequence[ChartSpec], proposals: Iterable[ChartSpec]) -> List[ChartSpec]:
    """Return a new chart list with each proposal updated in place or appended."""

    merged = list(current)
    updated = appended = 0
    for proposal in proposals:
        index = find_match(merged, proposal)
        if index is None:
            merged.append(proposal.replace(id=_unique_id(merged, proposal.id)))
            appended += 1
            continue
        existing = merged[index]
        merged[index] = existing.replace(
            series=[dict(point) for point in proposal.series],
            description=proposal.description or UPDATED_DESCRIPTION,
            insights=list(proposal.insights) if proposal.insights is not None else existing.insights,
        )
        updated += 1
    logger.info("Merged proposals: %d updated, %d appended", updated, appended)
    return merged
