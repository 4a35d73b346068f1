"""
타임존 / 날짜 유틸리티

내부 저장: UTC | 외부 표시: 업무 시간대(기본 미국 동부) 원칙 준수를 위한 헬퍼 함수.
주문일(order_date)은 달력 날짜이므로 UTC 자정 타임스탬프로 정규화하여 저장.
"""

import calendar
from datetime import date, datetime, timezone, tzinfo
from zoneinfo import ZoneInfo

from core.constants import Defaults

# 업무 기준 시간대
BUSINESS_TZ = ZoneInfo(Defaults.TIMEZONE)


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)"""
    return datetime.now(timezone.utc)


def to_local(dt: datetime, tz: tzinfo | None = None) -> datetime:
    """UTC datetime을 업무 시간대로 변환

    Args:
        dt: datetime 객체 (naive면 UTC로 간주)
        tz: 대상 시간대 (None이면 BUSINESS_TZ)

    Returns:
        업무 시간대의 datetime

    Example:
        >>> to_local(datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)).hour
        8
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(tz or BUSINESS_TZ)


def format_local(
    dt: datetime,
    fmt: str = "%Y-%m-%d %H:%M:%S",
    tz: tzinfo | None = None,
) -> str:
    """UTC datetime을 업무 시간대 문자열로 포맷"""
    return to_local(dt, tz).strftime(fmt)


def format_date(value: date | datetime | str) -> str:
    """날짜를 YYYY-MM-DD 문자열로 포맷

    datetime/ISO 문자열은 UTC 기준 날짜를 사용.

    Example:
        >>> format_date("2024-03-15T00:00:00+00:00")
        '2024-03-15'
    """
    if isinstance(value, str):
        value = parse_timestamp(value)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date().isoformat()
    return value.isoformat()


def parse_timestamp(value: str) -> datetime:
    """ISO-8601 문자열을 datetime으로 파싱 (naive면 UTC로 간주)

    Raises:
        ValueError: 파싱 불가
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_business_date(value: date | datetime | str, tz: tzinfo | None = None) -> date:
    """입력값을 달력 날짜로 변환

    - date: 그대로
    - naive datetime: 날짜 부분
    - aware datetime: 업무 시간대 기준 날짜
    - 문자열: "YYYY-MM-DD" 또는 ISO-8601 타임스탬프

    Raises:
        ValueError: 변환 불가
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.date()
        return value.astimezone(tz or BUSINESS_TZ).date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("date string is empty")
        if len(text) == 10:
            return date.fromisoformat(text)
        return to_business_date(parse_timestamp(text), tz)

    raise ValueError(f"Unsupported date value: {value!r}")


def date_to_timestamp(d: date) -> str:
    """달력 날짜를 UTC 자정 ISO 타임스탬프로 변환 (order_date 저장 형식)

    Example:
        >>> date_to_timestamp(date(2024, 3, 15))
        '2024-03-15T00:00:00+00:00'
    """
    return datetime(d.year, d.month, d.day, tzinfo=timezone.utc).isoformat()


def parse_year_month(
    value: str | date | tuple[int, int],
    tz: tzinfo | None = None,
) -> tuple[int, int]:
    """연월 입력을 (year, month)로 변환

    허용 형식: "YYYY-MM", "YYYY-MM-DD", date/datetime, (year, month)
    aware datetime은 업무 시간대 기준 월을 사용.

    Raises:
        ValueError: 형식 오류 또는 범위 밖의 월
    """
    if isinstance(value, datetime) and value.tzinfo is not None:
        value = to_local(value, tz)
    if isinstance(value, (date, datetime)):
        return value.year, value.month

    if isinstance(value, tuple):
        if len(value) != 2:
            raise ValueError(f"Invalid year-month tuple: {value!r}")
        year, month = int(value[0]), int(value[1])
    elif isinstance(value, str):
        parts = value.strip().split("-")
        if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
            raise ValueError(f"Invalid year-month: {value!r}")
        if len(parts) == 3:
            # 날짜 부분도 실제 날짜여야 함
            d = date.fromisoformat(value.strip())
            return d.year, d.month
        year, month = int(parts[0]), int(parts[1])
    else:
        raise ValueError(f"Unsupported year-month value: {value!r}")

    if not 1 <= month <= 12 or not 1 <= year <= 9999:
        raise ValueError(f"Invalid year-month: {value!r}")
    return year, month


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """월의 첫날과 마지막 날 반환 (양 끝 포함)

    Example:
        >>> month_bounds(2024, 2)
        (datetime.date(2024, 2, 1), datetime.date(2024, 2, 29))
    """
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)
