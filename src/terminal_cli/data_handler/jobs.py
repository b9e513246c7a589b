"""
Job expansion: date range x exchanges x tokens, filtered by availability.
"""
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Iterator, List, Sequence

from .availability import AvailabilityRule, resolve_table
from .paths import get_relative_path


@dataclass(frozen=True)
class Job:
    """One (exchange, pair, date) file to download."""
    exchange: str
    pair: str
    date: date
    index: int = 0
    total: int = 0

    def relative_path(self, data_type: str) -> str:
        return get_relative_path(self.exchange, self.pair, data_type, self.date)

    @property
    def label(self) -> str:
        return f"[{self.index}/{self.total}]"


def date_range(start: date, end: date) -> Iterator[date]:
    """Yield every day from ``start`` to ``end`` inclusive (nothing if start > end)."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def expand_jobs(
    rules: Sequence[AvailabilityRule],
    start_date: date,
    end_date: date,
    exchanges: Sequence[str],
    tokens: Sequence[str],
) -> List[Job]:
    """
    Build the ordered job list for a date range.

    Dates ascend; within a date exchanges and then tokens keep the caller's
    order. A job is emitted only when the exchange is listed in the table in
    force on that date and the token is one of its pairs. Input values are
    stripped of surrounding whitespace but not deduplicated.

    Args:
        rules: Availability rules sorted ascending by effective date
        start_date: First day (inclusive)
        end_date: Last day (inclusive)
        exchanges: Requested exchanges
        tokens: Requested pairs

    Returns:
        Jobs numbered 1..N with ``total`` set; empty when nothing matches or
        ``start_date > end_date``.
    """
    exchanges = [ex.strip() for ex in exchanges]
    tokens = [tok.strip() for tok in tokens]

    jobs = []
    for day in date_range(start_date, end_date):
        table = resolve_table(rules, day)
        if table is None:
            continue
        for exchange in exchanges:
            available = table.get(exchange)
            if available is None:
                continue
            for token in tokens:
                if token in available:
                    jobs.append(Job(exchange=exchange, pair=token, date=day))

    total = len(jobs)
    return [replace(job, index=i, total=total) for i, job in enumerate(jobs, start=1)]
