"""Default schedule range: the current school year.

A school year runs from 1 August 00:00 to 31 July 23:59:59, local time.
Each boundary takes the UTC offset in force on its own date, not today's.
"""

from datetime import datetime, timezone, tzinfo


def _local_now(now: datetime | None) -> tuple[datetime, tzinfo | None]:
    """Return ``now`` as an aware datetime and the zone to build boundaries in.

    ``None`` as zone means the system local time zone.
    """
    if now is None:
        return datetime.now().astimezone(), None
    if now.tzinfo is None:
        return now.astimezone(), None
    return now, now.tzinfo


def _at(zone: tzinfo | None, year: int, month: int, day: int, *time: int) -> datetime:
    moment = datetime(year, month, day, *time, tzinfo=zone)
    return moment if zone is not None else moment.astimezone()


def school_start(now: datetime | None = None) -> datetime:
    """First day of August of the school year containing ``now``, in UTC."""
    now, zone = _local_now(now)
    start = _at(zone, now.year, 8, 1)
    if now < start:
        start = _at(zone, now.year - 1, 8, 1)
    return start.astimezone(timezone.utc)


def school_end(now: datetime | None = None) -> datetime:
    """Last second of July closing the school year containing ``now``, in UTC."""
    now, zone = _local_now(now)
    end = _at(zone, now.year, 7, 31, 23, 59, 59)
    if now > end:
        end = _at(zone, now.year + 1, 7, 31, 23, 59, 59)
    return end.astimezone(timezone.utc)
