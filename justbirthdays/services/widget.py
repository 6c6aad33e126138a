"""
小组件数据

每次数据变更后把今日/即将到来的生日写入 JSON 文件，供小组件读取。
"""
import json
import logging
import os
from datetime import date
from typing import Optional

from pydantic import ValidationError

from justbirthdays.birthday_reminder.models import WidgetData

logger = logging.getLogger(__name__)

DEFAULT_WIDGET_DATA_PATH = "data/widget-data.json"


def get_widget_data_path() -> str:
    return os.getenv("WIDGET_DATA_PATH", DEFAULT_WIDGET_DATA_PATH)


def write_widget_data(data: WidgetData, path: Optional[str] = None) -> bool:
    path = path or get_widget_data_path()
    try:
        widget_dir = os.path.dirname(path)
        if widget_dir:
            os.makedirs(widget_dir, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(data.model_dump_json(indent=2))
        logger.info(
            f"[Widget] 小组件数据已更新: today={len(data.todays_birthdays)}, "
            f"upcoming={len(data.upcoming_birthdays)}"
        )
        return True
    except OSError as e:
        logger.error(f"[Widget] 写入小组件数据失败 {path}: {e}")
        return False


def read_widget_data(path: Optional[str] = None) -> WidgetData:
    """读取小组件数据，文件不存在或损坏时返回空数据"""
    path = path or get_widget_data_path()
    try:
        with open(path, "r", encoding="utf-8") as f:
            return WidgetData.model_validate(json.load(f))
    except FileNotFoundError:
        pass
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"[Widget] 读取小组件数据失败 {path}: {e}")
    return WidgetData(generated_on=date.today())
