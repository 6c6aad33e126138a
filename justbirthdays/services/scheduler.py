import asyncio
import logging
import os

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def run_daily_refresh():
    """跨天后刷新小组件数据并发送生日提醒"""
    from justbirthdays.birthday_reminder.service import BirthdayService
    BirthdayService.refresh_widget()
    asyncio.run(BirthdayService.check_and_notify())


def parse_refresh_time():
    """解析刷新时间配置 (HH:MM)，格式错误时使用 00:05"""
    time_str = os.getenv("REFRESH_TIME", "00:05")
    try:
        hour, minute = time_str.split(":")
        hour, minute = int(hour), int(minute)
    except (ValueError, AttributeError):
        logger.warning(f"[Scheduler] REFRESH_TIME 格式无效: {time_str}，使用 00:05")
        return 0, 5
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        logger.warning(f"[Scheduler] REFRESH_TIME 超出范围: {time_str}，使用 00:05")
        return 0, 5
    return hour, minute


def start_scheduler():
    """
    启动定时任务调度器
    """
    hour, minute = parse_refresh_time()
    scheduler.add_job(
        run_daily_refresh,
        CronTrigger(hour=hour, minute=minute),
        id="birthday_daily_refresh",
        name=f"Birthday Daily Refresh ({hour:02d}:{minute:02d})",
        replace_existing=True
    )
    logger.info(f"[Scheduler] 已添加任务: 每天 {hour:02d}:{minute:02d} 刷新生日数据")

    try:
        scheduler.start()
        logger.info("[Scheduler] 定时任务调度器已启动")
    except Exception as e:
        logger.error(f"[Scheduler] 启动失败: {e}")


def shutdown_scheduler():
    """
    关闭调度器
    """
    if scheduler.running:
        scheduler.shutdown()
    logger.info("[Scheduler] 定时任务调度器已关闭")
