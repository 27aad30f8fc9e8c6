"""Recurrence expansion — turns a first ride date plus a rule into concrete dates.

Pure date arithmetic, no database access. Conventions:

- weekly: instance k starts exactly ``7 * k`` days after the first ride.
- monthly: instance k is the first ride shifted by ``k`` calendar months
  with ``dateutil.relativedelta``, which clamps to the last day of shorter
  months (Jan 31 -> Feb 29 -> Mar 31 -> Apr 30). Each instance is computed
  from the first ride, not from the previous instance, so a clamped month
  does not drag later instances to an earlier day.
- The first ride is always an instance. Later instances are kept while
  their calendar day is strictly before the end date.
"""
from datetime import date, datetime, timedelta
from itertools import islice
from typing import Iterator, Optional

from dateutil.relativedelta import relativedelta

from groupride.models.ride import RecurringType


def occurrence_at(start: datetime, recurring_type: RecurringType, index: int) -> datetime:
    """Return the start time of instance ``index`` (0 is the first ride)."""
    if recurring_type == RecurringType.weekly:
        return start + timedelta(weeks=index)
    if recurring_type == RecurringType.monthly:
        return start + relativedelta(months=index)
    raise ValueError(f"Unsupported recurrence type: {recurring_type}")


def expand_occurrences(
    start: datetime,
    recurring_type: RecurringType,
    end_date: date,
    limit: Optional[int] = None,
) -> Iterator[datetime]:
    """Yield the start times of every instance in a series, in order.

    ``end_date`` is exclusive at day granularity. ``limit`` caps the number
    of yielded instances.
    """
    recurring_type = RecurringType(recurring_type)
    if isinstance(end_date, datetime):
        end_date = end_date.date()

    index = 0
    current = start
    while limit is None or index < limit:
        if index > 0 and current.date() >= end_date:
            return
        yield current
        index += 1
        current = occurrence_at(start, recurring_type, index)


def count_occurrences(
    start: datetime,
    recurring_type: RecurringType,
    end_date: date,
    limit: Optional[int] = None,
) -> int:
    """Number of instances a rule would produce, stopping early past ``limit``."""
    cap = None if limit is None else limit + 1
    return sum(1 for _ in islice(expand_occurrences(start, recurring_type, end_date), cap))
