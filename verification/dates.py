import calendar
from datetime import datetime
from typing import Optional


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 date or date-time string.

    Returns a naive local datetime, or None when the string is not a real
    calendar date. Timezone-aware values are converted to local time.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except (ValueError, TypeError):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def add_months(moment: datetime, months: int) -> datetime:
    """Shift by calendar months, clamping to the last day of the target month"""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def age_in_years(dob: datetime, now: datetime) -> int:
    """Whole years elapsed between dob and now"""
    return now.year - dob.year - ((now.month, now.day) < (dob.month, dob.day))
