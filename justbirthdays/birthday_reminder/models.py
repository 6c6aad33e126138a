from datetime import date
from enum import Enum
from typing import List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

from justbirthdays.birthday_reminder import dates
from justbirthdays.birthday_reminder.dates import DEFAULT_LEAP_DAY_POLICY, LeapDayPolicy


class SortOrder(str, Enum):
    CHRONOLOGICAL = "chronological"      # 按月/日
    ALPHABETICAL = "alphabetical"        # 按姓名
    NEXT_OCCURRENCE = "next_occurrence"  # 按下一个生日远近


def _strip_or_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class BirthdayRecordBase(BaseModel):
    name: str = Field(..., description="姓名")
    birth_month: int = Field(..., ge=1, le=12, description="月 (1-12)")
    birth_day: int = Field(..., ge=1, le=31, description="日 (1-31)")
    birth_year: Optional[int] = Field(None, ge=1, le=9999, description="年份，未知则为空")
    phone_number: Optional[str] = Field(None, description="电话")
    email: Optional[str] = Field(None, description="邮箱")
    social_media_url: Optional[str] = Field(None, description="社交主页")
    notes: Optional[str] = Field(None, description="备注")

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v

    @field_validator("phone_number", "email", "social_media_url", "notes")
    @classmethod
    def _optional_text(cls, v: Optional[str]) -> Optional[str]:
        return _strip_or_none(v)

    @model_validator(mode="after")
    def _valid_month_day(self):
        if not dates.is_valid_month_day(self.birth_month, self.birth_day, self.birth_year):
            year = self.birth_year if self.birth_year is not None else "----"
            raise ValueError(f"invalid birth date: {year}-{self.birth_month:02d}-{self.birth_day:02d}")
        return self


class BirthdayRecordCreate(BirthdayRecordBase):
    """添加生日请求"""


class BirthdayRecordUpdate(BaseModel):
    """编辑生日请求，只修改显式传入的字段 (birth_year 传 null 表示清除年份)"""
    name: Optional[str] = None
    birth_month: Optional[int] = None
    birth_day: Optional[int] = None
    birth_year: Optional[int] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    social_media_url: Optional[str] = None
    notes: Optional[str] = None


class BirthdayRecord(BirthdayRecordBase):
    id: UUID = Field(default_factory=uuid4, frozen=True)

    @classmethod
    def create(cls, data: BirthdayRecordCreate) -> "BirthdayRecord":
        return cls(**data.model_dump())

    @property
    def year_known(self) -> bool:
        return self.birth_year is not None

    @property
    def birth_date(self) -> Optional[date]:
        if self.birth_year is None:
            return None
        return date(self.birth_year, self.birth_month, self.birth_day)

    @property
    def birth_month_day(self) -> int:
        """月*100+日，用于按日历排序"""
        return self.birth_month * 100 + self.birth_day

    @property
    def formatted_birthday(self) -> str:
        return dates.format_month_day(self.birth_month, self.birth_day)

    @property
    def formatted_birthday_with_year(self) -> str:
        return dates.format_full_date(self.birth_month, self.birth_day, self.birth_year)

    @property
    def has_any_contact_info(self) -> bool:
        return any([self.phone_number, self.email, self.social_media_url])

    def next_occurrence(self, today: date, policy: LeapDayPolicy = DEFAULT_LEAP_DAY_POLICY) -> date:
        return dates.next_occurrence(self.birth_month, self.birth_day, today, policy)

    def days_until_next(self, today: date, policy: LeapDayPolicy = DEFAULT_LEAP_DAY_POLICY) -> int:
        return dates.days_until_next(self.birth_month, self.birth_day, today, policy)

    def is_today(self, today: date, policy: LeapDayPolicy = DEFAULT_LEAP_DAY_POLICY) -> bool:
        return dates.is_birthday_today(self.birth_month, self.birth_day, today, policy)

    def age_on_next(self, today: date, policy: LeapDayPolicy = DEFAULT_LEAP_DAY_POLICY) -> Optional[int]:
        return dates.age_on_next(self.birth_year, self.birth_month, self.birth_day, today, policy)

    def apply_update(self, update: BirthdayRecordUpdate) -> "BirthdayRecord":
        """
        原地修改记录

        先合并后整体校验，校验失败时记录保持不变 (抛出 pydantic ValidationError)。
        """
        merged = self.model_dump(mode="json")
        merged.update(update.model_dump(exclude_unset=True))
        validated = BirthdayRecord.model_validate(merged)
        for field in BirthdayRecordBase.model_fields:
            setattr(self, field, getattr(validated, field))
        return self


class BirthdayDigestEntry(BaseModel):
    """小组件/通知使用的只读投影"""
    id: UUID
    name: str
    formatted_birthday: str
    days_until: int
    age: Optional[int] = None

    @classmethod
    def from_record(cls, record: BirthdayRecord, today: date,
                    policy: LeapDayPolicy = DEFAULT_LEAP_DAY_POLICY) -> "BirthdayDigestEntry":
        return cls(
            id=record.id,
            name=record.name,
            formatted_birthday=record.formatted_birthday,
            days_until=record.days_until_next(today, policy),
            age=record.age_on_next(today, policy),
        )


class WidgetData(BaseModel):
    generated_on: date
    todays_birthdays: List[BirthdayDigestEntry] = []
    upcoming_birthdays: List[BirthdayDigestEntry] = []
