"""
应用设置

默认值来自环境变量 (.env)，用户修改后的值保存在 SETTINGS_FILE (JSON)。
设置对象通过参数显式传给查询函数，不作为全局状态读取。
"""
import json
import logging
import os
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from justbirthdays.birthday_reminder.dates import DEFAULT_LEAP_DAY_POLICY, LeapDayPolicy

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_FILE = "data/settings.json"


class AppSettings(BaseModel):
    upcoming_days: int = Field(30, ge=1, le=365, description="即将到来的生日提前天数")
    show_year_in_list: bool = Field(False, description="列表中显示出生年份")
    leap_day_policy: LeapDayPolicy = Field(DEFAULT_LEAP_DAY_POLICY, description="2月29日在非闰年的处理")
    widget_upcoming_days: int = Field(7, ge=1, le=365, description="小组件展示的天数")

    class Config:
        extra = "ignore"


class AppSettingsUpdate(BaseModel):
    upcoming_days: Optional[int] = Field(None, ge=1, le=365)
    show_year_in_list: Optional[bool] = None
    leap_day_policy: Optional[LeapDayPolicy] = None
    widget_upcoming_days: Optional[int] = Field(None, ge=1, le=365)


def get_settings_file() -> str:
    return os.getenv("SETTINGS_FILE", DEFAULT_SETTINGS_FILE)


def settings_from_env() -> AppSettings:
    """环境变量中的默认设置"""
    env = {
        "upcoming_days": os.getenv("UPCOMING_DAYS"),
        "show_year_in_list": os.getenv("SHOW_YEAR_IN_LIST"),
        "leap_day_policy": os.getenv("LEAP_DAY_POLICY"),
        "widget_upcoming_days": os.getenv("WIDGET_UPCOMING_DAYS"),
    }
    return AppSettings(**{k: v.strip().lower() for k, v in env.items() if v and v.strip()})


def _read_settings_file(path: str) -> dict:
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"[Settings] 读取设置文件失败 {path}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"[Settings] 设置文件格式无效，已忽略: {path}")
        return {}
    return data


def load_settings(path: Optional[str] = None) -> AppSettings:
    """
    加载设置 (环境变量默认值 + 文件覆盖)

    环境变量无效时使用内置默认值；设置文件中的值无效时忽略整个文件。
    """
    path = path or get_settings_file()
    try:
        defaults = settings_from_env()
    except ValidationError as e:
        logger.error(f"[Settings] 环境变量中的设置无效，使用默认值: {e}")
        defaults = AppSettings()

    base = defaults.model_dump()
    base.update(_read_settings_file(path))
    try:
        return AppSettings.model_validate(base)
    except ValidationError as e:
        logger.error(f"[Settings] 设置文件中的值无效，已忽略 {path}: {e}")
        return defaults


def save_settings(settings: AppSettings, path: Optional[str] = None) -> None:
    path = path or get_settings_file()
    settings_dir = os.path.dirname(path)
    if settings_dir:
        os.makedirs(settings_dir, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(settings.model_dump(mode="json"), f, ensure_ascii=False, indent=2)
    logger.info(f"[Settings] 设置已保存: {path}")


def update_settings(update: AppSettingsUpdate, path: Optional[str] = None) -> AppSettings:
    """合并修改并保存，返回新的设置"""
    current = load_settings(path)
    merged = current.model_dump()
    merged.update(update.model_dump(exclude_unset=True, exclude_none=True))
    settings = AppSettings.model_validate(merged)
    save_settings(settings, path)
    return settings
