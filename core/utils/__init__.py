"""
유틸리티 패키지

타임존 처리, 주문일 정규화, 월 경계 계산 등 공통 유틸리티
"""

from core.utils.timezone import (
    BUSINESS_TZ,
    now_utc,
    to_local,
    format_local,
    format_date,
    parse_timestamp,
    to_business_date,
    date_to_timestamp,
    parse_year_month,
    month_bounds,
)

__all__ = [
    "BUSINESS_TZ",
    "now_utc",
    "to_local",
    "format_local",
    "format_date",
    "parse_timestamp",
    "to_business_date",
    "date_to_timestamp",
    "parse_year_month",
    "month_bounds",
]
