"""
Business-hours helpers.

Operating hours arrive as free-form text from the directory service, e.g.
``"매일 11:00~21:00 (브레이크타임 15:00~17:00) 월요일 휴무"``. Only the first
time range is used as the opening window and, when the text mentions a break,
the next range as the break window.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import logging
import re
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from cityhub.config import Config
from cityhub.models.models import BusinessStatus, StatusCode

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60

NO_INFO_LABEL = '정보 없음'
CLOSED_TODAY_LABEL = '금일 휴무'

# Python weekday() starts on Monday
WEEKDAYS_KOR = ['월', '화', '수', '목', '금', '토', '일']

TIME_RANGE_PATTERN = re.compile(r'(\d{1,2}:\d{2})\s*[~\-]\s*(\d{1,2}:\d{2})')
BREAK_MARKER_PATTERN = re.compile(r'브레이크|break', re.IGNORECASE)


class ParseError(ValueError):
    """Raised when an hours string contains an impossible time."""


@dataclass(frozen=True)
class TimeWindow:
    open_minutes: int
    close_minutes: int
    open_label: str
    close_label: str

    @property
    def crosses_midnight(self) -> bool:
        return self.close_minutes > MINUTES_PER_DAY

    @property
    def label(self) -> str:
        return f'{self.open_label} ~ {self.close_label}'

    def contains(self, minutes: int) -> bool:
        return self.open_minutes <= minutes < self.close_minutes


def parse_time_string(value: str) -> int:
    """Convert ``"H:MM"`` into minutes since midnight."""
    try:
        hours_part, minutes_part = value.strip().split(':')
        hours, minutes = int(hours_part), int(minutes_part)
    except (AttributeError, ValueError):
        raise ParseError(f'Invalid time: {value!r}')
    if hours > 24 or minutes > 59 or (hours == 24 and minutes):
        raise ParseError(f'Invalid time: {value!r}')
    return hours * 60 + minutes


def _build_window(open_label: str, close_label: str) -> TimeWindow:
    open_minutes = parse_time_string(open_label)
    close_minutes = parse_time_string(close_label)
    if close_minutes < open_minutes:
        # e.g. 17:00 ~ 02:00 closes the next day
        close_minutes += MINUTES_PER_DAY
    return TimeWindow(open_minutes, close_minutes, open_label, close_label)


def parse_time_windows(hours_text: Optional[str]) -> Tuple[Optional[TimeWindow], Optional[TimeWindow]]:
    """
    Extract the primary window and the optional break window from hours text.

    Returns ``(None, None)`` when no time range is present. Raises
    :class:`ParseError` when a matched range holds an impossible time.
    """
    if not hours_text:
        return None, None

    matches = list(TIME_RANGE_PATTERN.finditer(hours_text))
    if not matches:
        return None, None

    primary = _build_window(*matches[0].groups())

    break_window = None
    if len(matches) > 1 and BREAK_MARKER_PATTERN.search(hours_text):
        # Break ranges are not allowed to wrap midnight
        start_label, end_label = matches[1].groups()
        break_window = TimeWindow(
            parse_time_string(start_label),
            parse_time_string(end_label),
            start_label,
            end_label,
        )
    return primary, break_window


def current_local_time() -> datetime:
    return datetime.now(ZoneInfo(Config.TIMEZONE))


def is_closed_today(hours_text: str, now: datetime) -> bool:
    """True when the text names today's weekday as a closing day."""
    today = WEEKDAYS_KOR[now.weekday()]
    return f'{today}요일 휴무' in hours_text or f'{today}요일휴무' in hours_text


def get_business_status(hours_text: Optional[str], now: Optional[datetime] = None) -> BusinessStatus:
    """
    Resolve OPEN / BREAK / CLOSED for ``hours_text`` at ``now``.

    Never raises: unparseable text is reported as CLOSED with the raw text as
    the label.
    """
    if not hours_text or not hours_text.strip():
        return BusinessStatus(StatusCode.CLOSED, NO_INFO_LABEL)

    now = now or current_local_time()

    if is_closed_today(hours_text, now):
        return BusinessStatus(StatusCode.CLOSED, CLOSED_TODAY_LABEL)

    try:
        primary, break_window = parse_time_windows(hours_text)
    except ParseError as exc:
        logger.debug('Unparseable hours %r: %s', hours_text, exc)
        return BusinessStatus(StatusCode.CLOSED, hours_text)

    if primary is None:
        return BusinessStatus(StatusCode.CLOSED, hours_text)

    current = now.hour * 60 + now.minute
    if primary.crosses_midnight and current < primary.open_minutes:
        # After midnight but still inside yesterday's late window
        if current < primary.close_minutes - MINUTES_PER_DAY:
            current += MINUTES_PER_DAY

    if break_window is not None and break_window.contains(current):
        return BusinessStatus(StatusCode.BREAK, primary.label)

    if primary.contains(current):
        return BusinessStatus(StatusCode.OPEN, primary.label)
    return BusinessStatus(StatusCode.CLOSED, primary.label)
