"""
Calendar period resolution and bucketing helpers.

All datetimes handled here are naive local time, the same clock the sales
rows are stamped with. Half-open ranges are used everywhere except the
``custom`` period, whose end is the last millisecond of the chosen end day.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterator, List, Optional, Tuple, Union

from kasir.exceptions import ValidationError

MONTH_NAMES_SHORT = ['Jan', 'Feb', 'Mar', 'Apr', 'Mei', 'Jun',
                     'Jul', 'Ags', 'Sep', 'Okt', 'Nov', 'Des']
MONTH_NAMES_LONG = ['Januari', 'Februari', 'Maret', 'April', 'Mei', 'Juni',
                    'Juli', 'Agustus', 'September', 'Oktober', 'November', 'Desember']

PERIODS = ('today', 'yesterday', 'week', 'month', 'year', 'custom')

END_OF_DAY = time(23, 59, 59, 999000)
ONE_MS = timedelta(microseconds=1000)

DateLike = Union[date, datetime, str]


@dataclass(frozen=True)
class DateRange:
    """A window of time; ``end`` is exclusive unless ``end_inclusive``."""
    start: datetime
    end: datetime
    end_inclusive: bool = False

    def contains(self, moment: datetime) -> bool:
        if moment < self.start:
            return False
        if self.end_inclusive:
            return moment <= self.end
        return moment < self.end

    @property
    def end_exclusive(self) -> datetime:
        return self.end + ONE_MS if self.end_inclusive else self.end

    def previous(self) -> 'DateRange':
        """Equally long window ending where this one starts."""
        length = self.end_exclusive - self.start
        return DateRange(self.start - length, self.start)

    def days(self) -> List[date]:
        return list(day_sequence(self.start.date(), (self.end_exclusive - ONE_MS).date()))

    def to_dict(self) -> dict:
        return {
            'start': self.start.isoformat(),
            'end': self.end.isoformat(),
            'end_inclusive': self.end_inclusive,
        }


def parse_date(value: DateLike, field: str = 'tanggal') -> date:
    """Parse ``YYYY-MM-DD`` (or an ISO datetime) into a date, strictly."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f'Format {field} tidak valid: {value!r}')
    text = value.strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return parse_datetime(text, field).date()
    except ValueError:
        raise ValidationError(f'Format {field} tidak valid: {value!r}')


def parse_datetime(value: DateLike, field: str = 'waktu') -> datetime:
    """Parse an ISO-8601 timestamp into naive local time, strictly."""
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        return datetime.combine(value, time.min)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            moment = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f'Format {field} tidak valid: {value!r}')
    else:
        raise ValidationError(f'Format {field} tidak valid: {value!r}')

    if moment.tzinfo is not None:
        moment = moment.astimezone().replace(tzinfo=None)
    return moment


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def day_range(day: date) -> DateRange:
    start = start_of_day(day)
    return DateRange(start, start + timedelta(days=1))


def month_range(year: int, month: int) -> DateRange:
    start = datetime(year, month, 1)
    if month == 12:
        end = datetime(year + 1, 1, 1)
    else:
        end = datetime(year, month + 1, 1)
    return DateRange(start, end)


def year_range(year: int) -> DateRange:
    return DateRange(datetime(year, 1, 1), datetime(year + 1, 1, 1))


def custom_range(start: DateLike, end: DateLike) -> DateRange:
    """Inclusive range from ``start`` 00:00 to ``end`` 23:59:59.999."""
    start_day = parse_date(start, 'tanggal mulai')
    end_day = parse_date(end, 'tanggal akhir')
    if start_day > end_day:
        raise ValidationError('Tanggal mulai tidak boleh setelah tanggal akhir')
    return DateRange(start_of_day(start_day), datetime.combine(end_day, END_OF_DAY), True)


def resolve_period(period: Optional[str], now: Optional[datetime] = None,
                   custom: Optional[Tuple[DateLike, DateLike]] = None) -> DateRange:
    """
    Resolve a named period to a concrete window.

    Weeks start on Sunday. Unknown period names fall back to ``today``.
    """
    now = now or datetime.now()
    today = now.date()
    period = (period or 'today').lower()

    if period == 'custom':
        if not custom or not custom[0] or not custom[1]:
            raise ValidationError('Rentang tanggal wajib diisi untuk periode custom')
        return custom_range(custom[0], custom[1])
    if period == 'yesterday':
        return day_range(today - timedelta(days=1))
    if period == 'week':
        # date.weekday(): Monday=0 .. Sunday=6
        sunday = today - timedelta(days=(today.weekday() + 1) % 7)
        start = start_of_day(sunday)
        return DateRange(start, start + timedelta(days=7))
    if period == 'month':
        return month_range(today.year, today.month)
    if period == 'year':
        return year_range(today.year)
    return day_range(today)


def day_sequence(start: date, end: date) -> Iterator[date]:
    """Every calendar day from ``start`` to ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def month_sequence(start: date, end: date) -> List[Tuple[int, int]]:
    """Contiguous (year, month) pairs covering ``start``..``end``."""
    months = []
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        months.append((year, month))
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return months


def month_label(year: int, month: int) -> str:
    """'Ags 24' style label."""
    return f"{MONTH_NAMES_SHORT[month - 1]} {year % 100:02d}"


def day_label(day: date) -> str:
    """'19 Okt' style label."""
    return f"{day.day} {MONTH_NAMES_SHORT[day.month - 1]}"
