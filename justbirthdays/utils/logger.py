"""
日志配置

LOG_LEVEL 控制全局级别，LOG_LEVEL_<ALIAS> 单独覆盖某个模块，
取值为 DEBUG/INFO/WARNING/ERROR/CRITICAL 或 OFF。
"""
import logging
import os
import sys
from typing import Dict, List, Optional

LOG_FORMAT = '%(asctime)s - %(levelname)s - [%(name)s] - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# 环境变量后缀 -> logger 名称
MODULE_ALIASES: Dict[str, str] = {
    "BIRTHDAY": "justbirthdays.birthday_reminder",
    "DB": "justbirthdays.services.database",
    "SETTINGS": "justbirthdays.services.settings",
    "WIDGET": "justbirthdays.services.widget",
    "SCHEDULER": "justbirthdays.services.scheduler",
    "NOTIFY": "justbirthdays.utils.notifier",
    "API": "justbirthdays.api",
    "STARTUP": "justbirthdays.startup",
    "UVICORN": "uvicorn",
    "ACCESS": "uvicorn.access",
    "APSCHEDULER": "apscheduler",
}

_OFF_VALUES = ("OFF", "DISABLE", "FALSE", "NO", "0", "NONE")
_LOG_OFF = logging.CRITICAL + 1


def _parse_level(value: str) -> Optional[int]:
    value = value.strip().upper()
    if value in _OFF_VALUES:
        return _LOG_OFF
    level = logging.getLevelName(value)
    return level if isinstance(level, int) else None


def setup_logging() -> List[str]:
    """配置根 logger 和各模块级别，返回生效的模块覆盖 (如 "DB: OFF")"""
    global_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    global_level = _parse_level(global_level_str)
    if global_level is None:
        global_level = logging.INFO

    # force=True: uvicorn 可能已经配置过根 logger
    logging.basicConfig(
        level=global_level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stdout,
        force=True
    )

    overrides = []
    for alias, logger_name in MODULE_ALIASES.items():
        env_name = f"LOG_LEVEL_{alias}"
        raw = os.getenv(env_name)
        if not raw and alias == "STARTUP":
            raw = "INFO"
        if not raw:
            continue

        level = _parse_level(raw)
        if level is None:
            logging.warning(f"环境变量 {env_name} 的值 '{raw}' 无效，已忽略。")
            continue

        logging.getLogger(logger_name).setLevel(level)
        label = "OFF" if level == _LOG_OFF else logging.getLevelName(level)
        overrides.append(f"{alias}: {label}")

    logging.info(f"Log System Initialized. Global Level: {logging.getLevelName(global_level)}")
    if overrides:
        logging.info(f"Module Overrides: {', '.join(overrides)}")
    return overrides
