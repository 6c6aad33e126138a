"""
生日日期计算

所有函数都是纯函数，"今天" 由调用方显式传入，按天粒度计算。
"""
import calendar
from datetime import date, datetime
from enum import Enum
from typing import Optional, Union


class LeapDayPolicy(str, Enum):
    """2月29日生日在非闰年的处理方式"""
    MAR1 = "mar1"    # 顺延到 3月1日
    FEB28 = "feb28"  # 提前到 2月28日


DEFAULT_LEAP_DAY_POLICY = LeapDayPolicy.MAR1

# 年份未知时用于校验 2月29日 的闰年
_LEAP_REFERENCE_YEAR = 2000


def _as_date(value: Union[date, datetime]) -> date:
    # datetime 是 date 的子类，截断到当天
    if isinstance(value, datetime):
        return value.date()
    return value


def is_valid_month_day(month: int, day: int, year: Optional[int] = None) -> bool:
    """校验月/日组合；year 为空时允许 2月29日"""
    if not 1 <= month <= 12:
        return False
    check_year = year if year is not None else _LEAP_REFERENCE_YEAR
    try:
        _, days_in_month = calendar.monthrange(check_year, month)
    except (ValueError, OverflowError):
        return False
    return 1 <= day <= days_in_month


def observed_date(month: int, day: int, year: int,
                  policy: LeapDayPolicy = DEFAULT_LEAP_DAY_POLICY) -> date:
    """某一年中实际过生日的日期"""
    if month == 2 and day == 29 and not calendar.isleap(year):
        if LeapDayPolicy(policy) == LeapDayPolicy.FEB28:
            return date(year, 2, 28)
        return date(year, 3, 1)
    return date(year, month, day)


def next_occurrence(month: int, day: int, today: Union[date, datetime],
                    policy: LeapDayPolicy = DEFAULT_LEAP_DAY_POLICY) -> date:
    """
    计算下一个生日日期 (>= today)

    今天就是生日时返回今天，不会顺延一年。
    """
    if not is_valid_month_day(month, day):
        raise ValueError(f"Invalid birthday month/day: {month}/{day}")

    today = _as_date(today)
    candidate = observed_date(month, day, today.year, policy)
    if candidate < today:
        candidate = observed_date(month, day, today.year + 1, policy)
    return candidate


def days_until_next(month: int, day: int, today: Union[date, datetime],
                    policy: LeapDayPolicy = DEFAULT_LEAP_DAY_POLICY) -> int:
    """距离下一个生日的天数，当天为 0"""
    today = _as_date(today)
    return (next_occurrence(month, day, today, policy) - today).days


def is_birthday_today(month: int, day: int, today: Union[date, datetime],
                      policy: LeapDayPolicy = DEFAULT_LEAP_DAY_POLICY) -> bool:
    return days_until_next(month, day, today, policy) == 0


def age_on_next(birth_year: Optional[int], month: int, day: int,
                today: Union[date, datetime],
                policy: LeapDayPolicy = DEFAULT_LEAP_DAY_POLICY) -> Optional[int]:
    """下一个生日那天满几岁；年份未知返回 None"""
    if birth_year is None:
        return None
    return next_occurrence(month, day, today, policy).year - birth_year


def format_month_day(month: int, day: int) -> str:
    """例如 "June 15" """
    return f"{calendar.month_name[month]} {day}"


def format_full_date(month: int, day: int, year: Optional[int]) -> str:
    """例如 "June 15, 1990"；年份未知时退化为 "June 15" """
    if year is None:
        return format_month_day(month, day)
    return f"{format_month_day(month, day)}, {year}"
