"""
Jekyll-style permalink formatters.

Each formatter takes a source path named ``<collection>/<YYYY>-<MM>-<DD>-<slug>.<ext>``
and returns the output path the document should be written to. They can be
used directly as a collection's ``permalinks`` function.
"""

import re

from .errors import FormatError

DATE_PATTERN = re.compile(r'([\w-]+)/(\d{4})-(\d{2})-(\d{2})-([\w-]+)\.(\w+)$')
EXPECTED_FORMAT = '<collection>/<YYYY>-<MM>-<DD>-<slug>.<ext>'

# Days before the first of each month in a non-leap year
CUMULATIVE_DAYS = [0, 31, 59, 90, 120, 151, 181, 212, 243, 273, 304, 334]


def is_leap_year(year):
    """Return True for Gregorian leap years."""
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def day_of_year(year, month, day):
    """Return the 1-based ordinal day of the given date."""
    ordinal = CUMULATIVE_DAYS[month - 1] + day
    if month > 2 and is_leap_year(year):
        ordinal += 1
    return ordinal


def _check_format(path):
    """Match a source path against the dated post pattern, or raise FormatError."""
    match = DATE_PATTERN.search(str(path).replace('\\', '/'))
    if not match:
        raise FormatError(path, EXPECTED_FORMAT)
    collection, year, month, day, slug, ext = match.groups()
    if not 1 <= int(month) <= 12 or not 1 <= int(day) <= 31:
        raise FormatError(path, EXPECTED_FORMAT)
    return collection, year, month, day, slug, ext


def date(path, record=None):
    """posts/2017-01-12-testing.md -> posts/2017/01/12/testing.md"""
    collection, year, month, day, slug, ext = _check_format(path)
    return f"{collection}/{year}/{month}/{day}/{slug}.{ext}"


def ordinal(path, record=None):
    """posts/2017-07-22-testing.md -> posts/2017/203/testing.md"""
    collection, year, month, day, slug, ext = _check_format(path)
    doy = day_of_year(int(year), int(month), int(day))
    return f"{collection}/{year}/{doy}/{slug}.{ext}"


def none(path, record=None):
    """posts/2017-01-12-testing.md -> posts/testing.md"""
    collection, _year, _month, _day, slug, ext = _check_format(path)
    return f"{collection}/{slug}.{ext}"


FORMATTERS = {
    'date': date,
    'ordinal': ordinal,
    'none': none,
}
