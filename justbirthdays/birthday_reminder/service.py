import logging
from datetime import date, timedelta
from typing import Iterable, List, Optional
from uuid import UUID

from justbirthdays.birthday_reminder.csv_transcoder import ImportResult, generate_csv, parse_csv
from justbirthdays.birthday_reminder.dates import DEFAULT_LEAP_DAY_POLICY, LeapDayPolicy
from justbirthdays.birthday_reminder.exceptions import CSVFileError, StoreError
from justbirthdays.birthday_reminder.models import (
    BirthdayDigestEntry,
    BirthdayRecord,
    BirthdayRecordCreate,
    BirthdayRecordUpdate,
    SortOrder,
    WidgetData,
)
from justbirthdays.services.database import DatabaseService
from justbirthdays.services.settings import AppSettings, load_settings
from justbirthdays.services.widget import write_widget_data
from justbirthdays.utils.notifier import send_notification

logger = logging.getLogger(__name__)

# 提前提醒的天数: 7天前, 1天前, 当天
REMIND_DAYS = (7, 1, 0)


def _name_key(record: BirthdayRecord) -> str:
    return record.name.casefold()


class BirthdayService:
    # ============ 查询 (纯函数) ============

    @staticmethod
    def list_today(records: Iterable[BirthdayRecord], today: date,
                   policy: LeapDayPolicy = DEFAULT_LEAP_DAY_POLICY) -> List[BirthdayRecord]:
        """今天过生日的人，按姓名排序"""
        return sorted((r for r in records if r.is_today(today, policy)), key=_name_key)

    @staticmethod
    def list_upcoming(records: Iterable[BirthdayRecord], today: date, lead_time_days: int,
                      policy: LeapDayPolicy = DEFAULT_LEAP_DAY_POLICY) -> List[BirthdayRecord]:
        """
        即将到来的生日

        窗口为 [明天, 明天 + lead_time_days)，不包含今天的生日，
        按下一个生日日期排序，同一天按姓名排序。
        """
        tomorrow = today + timedelta(days=1)
        end_date = tomorrow + timedelta(days=lead_time_days)
        upcoming = [
            r for r in records
            if tomorrow <= r.next_occurrence(today, policy) < end_date
        ]
        return sorted(upcoming, key=lambda r: (r.next_occurrence(today, policy), _name_key(r)))

    @staticmethod
    def sort_records(records: Iterable[BirthdayRecord], order: SortOrder, today: date,
                     policy: LeapDayPolicy = DEFAULT_LEAP_DAY_POLICY) -> List[BirthdayRecord]:
        order = SortOrder(order)
        if order == SortOrder.ALPHABETICAL:
            return sorted(records, key=_name_key)
        if order == SortOrder.NEXT_OCCURRENCE:
            return sorted(records, key=lambda r: (r.next_occurrence(today, policy), _name_key(r)))
        return sorted(records, key=lambda r: (r.birth_month_day, _name_key(r)))

    @staticmethod
    def search_records(records: Iterable[BirthdayRecord], text: Optional[str]) -> List[BirthdayRecord]:
        """按姓名模糊搜索 (忽略大小写)"""
        needle = (text or "").strip().casefold()
        if not needle:
            return list(records)
        return [r for r in records if needle in r.name.casefold()]

    @staticmethod
    def build_widget_data(records: Iterable[BirthdayRecord], today: date,
                          settings: AppSettings) -> WidgetData:
        records = list(records)
        policy = settings.leap_day_policy
        todays = BirthdayService.list_today(records, today, policy)
        upcoming = BirthdayService.list_upcoming(records, today, settings.widget_upcoming_days, policy)
        return WidgetData(
            generated_on=today,
            todays_birthdays=[BirthdayDigestEntry.from_record(r, today, policy) for r in todays],
            upcoming_birthdays=[BirthdayDigestEntry.from_record(r, today, policy) for r in upcoming],
        )

    @staticmethod
    def build_reminder_message(record: BirthdayRecord, today: date,
                               policy: LeapDayPolicy = DEFAULT_LEAP_DAY_POLICY) -> Optional[str]:
        """生成提醒文案，不在提醒日返回 None"""
        days = record.days_until_next(today, policy)
        if days not in REMIND_DAYS:
            return None

        age = record.age_on_next(today, policy)
        age_desc = f" (turning {age})" if age is not None and age > 0 else ""
        next_date = record.next_occurrence(today, policy)
        note = f"\n📝 {record.notes}" if record.notes else ""

        if days == 0:
            return f"🎂 Today is {record.name}'s birthday{age_desc}!{note}"
        if days == 1:
            return f"⏰ Tomorrow is {record.name}'s birthday{age_desc}, {next_date.isoformat()}."
        return f"📅 {record.name}'s birthday{age_desc} is in {days} days, {next_date.isoformat()}.{note}"

    # ============ 存储 ============

    @staticmethod
    def list_records() -> List[BirthdayRecord]:
        return DatabaseService.list_birthdays()

    @staticmethod
    def get_record(record_id: UUID) -> Optional[BirthdayRecord]:
        return DatabaseService.get_birthday(record_id)

    @staticmethod
    def add_record(data: BirthdayRecordCreate) -> Optional[BirthdayRecord]:
        """添加生日，失败返回 None"""
        record = BirthdayRecord.create(data)
        if not DatabaseService.insert_birthday(record):
            return None
        logger.info(f"[Birthday] 添加生日: {record.name}")
        BirthdayService.refresh_widget()
        return record

    @staticmethod
    def update_record(record_id: UUID, update: BirthdayRecordUpdate) -> Optional[BirthdayRecord]:
        """
        编辑生日

        记录不存在返回 None；字段非法时抛出 pydantic ValidationError。
        """
        record = DatabaseService.get_birthday(record_id)
        if record is None:
            return None
        record.apply_update(update)
        if not DatabaseService.update_birthday(record):
            return None
        logger.info(f"[Birthday] 更新生日 ID: {record_id}")
        BirthdayService.refresh_widget()
        return record

    @staticmethod
    def delete_record(record_id: UUID) -> bool:
        deleted = DatabaseService.delete_birthday(record_id)
        if deleted:
            logger.info(f"[Birthday] 删除生日 ID: {record_id}")
            BirthdayService.refresh_widget()
        return deleted

    # ============ 导入导出 ============

    @staticmethod
    def import_csv_text(csv_text: str, replace: bool = False) -> ImportResult:
        """
        导入 CSV 文本

        出错的行会被跳过 (见 ImportResult.errors)，其余记录按 id 写入；
        replace=True 时先清空已有记录。表头错误直接抛出 CSVParseError，
        写入数据库失败时抛出 StoreError。
        """
        result = parse_csv(csv_text)
        if replace:
            stored = DatabaseService.replace_birthdays(result.records)
        else:
            stored = DatabaseService.upsert_birthdays(result.records) == len(result.records)
        if not stored:
            logger.error(f"[Birthday] CSV 导入写入数据库失败: records={len(result.records)}")
            raise StoreError("Failed to save imported birthdays")
        logger.info(f"[Birthday] CSV 导入完成: imported={len(result.records)}, skipped={result.skipped}")
        BirthdayService.refresh_widget()
        return result

    @staticmethod
    def export_csv_text() -> str:
        return generate_csv(DatabaseService.list_birthdays())

    @staticmethod
    def import_csv_file(path: str) -> ImportResult:
        """从文件解析 CSV (不写入数据库)"""
        try:
            with open(path, "r", encoding="utf-8-sig") as f:
                csv_text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"[Birthday] 读取 CSV 文件失败 {path}: {e}")
            raise CSVFileError(path, str(e))
        return parse_csv(csv_text)

    @staticmethod
    def export_csv_file(records: Iterable[BirthdayRecord], path: str) -> int:
        """导出到文件，返回导出条数"""
        records = list(records)
        try:
            with open(path, "w", encoding="utf-8", newline="") as f:
                f.write(generate_csv(records))
        except OSError as e:
            logger.error(f"[Birthday] 写入 CSV 文件失败 {path}: {e}")
            raise CSVFileError(path, str(e))
        logger.info(f"[Birthday] 导出 {len(records)} 条生日到 {path}")
        return len(records)

    # ============ 小组件 / 提醒 ============

    @staticmethod
    def refresh_widget(today: Optional[date] = None, settings: Optional[AppSettings] = None) -> WidgetData:
        today = today or date.today()
        settings = settings or load_settings()
        data = BirthdayService.build_widget_data(DatabaseService.list_birthdays(), today, settings)
        write_widget_data(data)
        return data

    @staticmethod
    async def check_and_notify(today: Optional[date] = None, settings: Optional[AppSettings] = None) -> int:
        """
        检查所有生日并发送通知
        规则: 7天前, 1天前, 当天

        返回发送的通知条数。
        """
        logger.info("[Birthday] Checking reminders...")
        today = today or date.today()
        settings = settings or load_settings()

        sent = 0
        for record in DatabaseService.list_birthdays():
            msg = BirthdayService.build_reminder_message(record, today, settings.leap_day_policy)
            if not msg:
                continue
            logger.info(f"[Birthday] Sending notification for {record.name}")
            if await send_notification(msg):
                sent += 1
        return sent
