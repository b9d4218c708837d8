from __future__ import annotations

from datetime import date, datetime, timedelta

_EPOCH_1900 = datetime(1899, 12, 30)
_EPOCH_1900_EARLY = datetime(1899, 12, 31)
_EPOCH_1904 = datetime(1904, 1, 1)


def serial_to_datetime(serial: float, *, date1904: bool = False) -> datetime:
    """Convert a spreadsheet day serial to a datetime.

    The 1900 system counts the nonexistent 1900-02-29 as day 60, so serials
    below it use an epoch one day later. Day 60 itself maps to 1900-02-28.
    """
    if date1904:
        return _EPOCH_1904 + timedelta(days=serial)
    if serial < 60:
        return _EPOCH_1900_EARLY + timedelta(days=serial)
    if serial < 61:
        return datetime(1900, 2, 28) + timedelta(days=serial - 60)
    return _EPOCH_1900 + timedelta(days=serial)


def serial_to_calendar(serial: float, *, date1904: bool = False) -> date | datetime:
    """Like serial_to_datetime, but whole-day serials come back as a date."""
    value = serial_to_datetime(serial, date1904=date1904)
    if float(serial).is_integer():
        return value.date()
    return value
