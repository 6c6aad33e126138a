"""
业务服务模块
"""

from .database import DatabaseService, init_db
from .settings import AppSettings, AppSettingsUpdate, load_settings, save_settings, update_settings
from .widget import read_widget_data, write_widget_data

__all__ = [
    "DatabaseService",
    "init_db",
    "AppSettings",
    "AppSettingsUpdate",
    "load_settings",
    "save_settings",
    "update_settings",
    "read_widget_data",
    "write_widget_data",
]
