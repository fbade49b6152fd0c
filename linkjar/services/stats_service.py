"""Monthly tip stats, recomputed from the tips table on every request.

"Month" is the calendar month of created_at in STATS_TIMEZONE, not a
rolling 30-day window.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from flask import current_app

from linkjar.extensions import db
from linkjar.models.tip import Tip


@dataclass(frozen=True)
class MonthlyStats:
    year: int
    month: int
    total_amount: int = 0
    tip_count: int = 0
    total_earnings: int = 0

    @property
    def platform_fee_total(self):
        return self.total_amount - self.total_earnings


def month_bounds(year, month, tz):
    """Return the [start, end) UTC datetimes of a local calendar month."""
    start = datetime(year, month, 1, tzinfo=tz)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=tz)
    else:
        end = datetime(year, month + 1, 1, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def monthly_stats(profile_id, year=None, month=None, tz=None):
    """Aggregate a profile's tips for one calendar month.

    Defaults to the current month in STATS_TIMEZONE. A month with no tips
    gives zeros.
    """
    if tz is None:
        tz = ZoneInfo(current_app.config.get("STATS_TIMEZONE", "UTC"))
    elif isinstance(tz, str):
        tz = ZoneInfo(tz)

    if year is None or month is None:
        now = datetime.now(tz)
        year, month = now.year, now.month

    start, end = month_bounds(year, month, tz)

    total_amount, tip_count, total_earnings = (
        db.session.query(
            db.func.coalesce(db.func.sum(Tip.amount_cents), 0),
            db.func.count(Tip.id),
            db.func.coalesce(db.func.sum(Tip.creator_share_cents), 0),
        )
        .filter(
            Tip.profile_id == profile_id,
            Tip.created_at >= start,
            Tip.created_at < end,
        )
        .one()
    )

    return MonthlyStats(
        year=year,
        month=month,
        total_amount=int(total_amount),
        tip_count=int(tip_count),
        total_earnings=int(total_earnings),
    )
