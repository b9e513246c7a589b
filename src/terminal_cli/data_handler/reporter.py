"""
Availability report for ``--mode check``.

Walks a date range day by day, filters each day's table down to the requested
exchanges/tokens and merges consecutive days with identical filtered tables
into blocks. No network access.
"""
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Sequence

from .availability import AvailabilityRule, AvailabilityTable, resolve_table
from .jobs import date_range

FilteredTable = Dict[str, List[str]]


@dataclass
class AvailabilityBlock:
    """Inclusive span of days sharing the same filtered availability."""
    start_date: date
    end_date: date
    data: FilteredTable

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1


def filter_table(
    table: Optional[AvailabilityTable],
    exchanges: Sequence[str] = (),
    tokens: Sequence[str] = (),
) -> FilteredTable:
    """
    Restrict a table to the requested exchanges and tokens.

    Empty ``exchanges``/``tokens`` mean "all". Exchanges left without pairs are
    dropped and pair lists are sorted so two results compare equal exactly when
    they hold the same data.
    """
    if table is None:
        return {}
    wanted_exchanges = set(exchanges)
    wanted_tokens = set(tokens)

    filtered = {}
    for exchange, pairs in table.items():
        if wanted_exchanges and exchange not in wanted_exchanges:
            continue
        kept = sorted(p for p in pairs if not wanted_tokens or p in wanted_tokens)
        if kept:
            filtered[exchange] = kept
    return filtered


def build_availability_blocks(
    rules: Sequence[AvailabilityRule],
    start_date: date,
    end_date: date,
    exchanges: Sequence[str] = (),
    tokens: Sequence[str] = (),
) -> List[AvailabilityBlock]:
    """
    Group the date range into maximal blocks of identical filtered availability.

    Days without any matching data close the open block and start none, so
    blocks are ascending, non-overlapping and may leave gaps.
    """
    blocks: List[AvailabilityBlock] = []
    current: Optional[AvailabilityBlock] = None

    for day in date_range(start_date, end_date):
        day_data = filter_table(resolve_table(rules, day), exchanges, tokens)

        if current is not None and current.data == day_data:
            current.end_date = day
            continue

        if current is not None:
            blocks.append(current)
        current = AvailabilityBlock(day, day, day_data) if day_data else None

    if current is not None:
        blocks.append(current)
    return blocks
