"""
数据库服务模块 (SQLite 版)
"""
import logging
import os
import sqlite3
from contextlib import contextmanager
from typing import Iterable, List, Optional
from uuid import UUID

from justbirthdays.birthday_reminder.models import BirthdayRecord

logger = logging.getLogger(__name__)

# 数据库文件路径
_db_path = "data/justbirthdays.db"

_SQL_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "sql")

_COLUMNS = (
    "id, name, birth_month, birth_day, birth_year, "
    "phone_number, email, social_media_url, notes"
)


def init_db(db_path: str = None, **kwargs) -> None:
    """初始化数据库配置"""
    global _db_path
    if db_path:
        _db_path = db_path

    # 确保目录存在
    db_dir = os.path.dirname(_db_path)
    if db_dir and not os.path.exists(db_dir):
        os.makedirs(db_dir, exist_ok=True)

    logger.info(f"[DB] SQLite 数据库路径: {_db_path}")


def get_db_path() -> str:
    return _db_path


@contextmanager
def get_connection():
    """获取数据库连接 (Context Manager)"""
    conn = sqlite3.connect(_db_path)
    conn.row_factory = sqlite3.Row  # 允许通过列名访问
    try:
        yield conn
    finally:
        conn.close()


def _row_to_record(row: sqlite3.Row) -> BirthdayRecord:
    return BirthdayRecord(
        id=UUID(row["id"]),
        name=row["name"],
        birth_month=row["birth_month"],
        birth_day=row["birth_day"],
        birth_year=row["birth_year"],
        phone_number=row["phone_number"],
        email=row["email"],
        social_media_url=row["social_media_url"],
        notes=row["notes"],
    )


def _record_params(record: BirthdayRecord) -> tuple:
    return (
        str(record.id),
        record.name,
        record.birth_month,
        record.birth_day,
        record.birth_year,
        record.phone_number,
        record.email,
        record.social_media_url,
        record.notes,
    )


class DatabaseService:
    """数据库服务类"""

    @staticmethod
    def init_tables(sql_dir: Optional[str] = None) -> bool:
        """执行 sql 目录下的建表脚本"""
        sql_dir = sql_dir or _SQL_DIR
        sql_files = [
            os.path.join(sql_dir, "create_birthday_table.sql"),
        ]
        try:
            with get_connection() as conn:
                cursor = conn.cursor()
                for sql_file in sql_files:
                    if os.path.exists(sql_file):
                        with open(sql_file, "r", encoding="utf-8") as f:
                            cursor.executescript(f.read())
                        logger.info(f"[DB] Executed SQL: {sql_file}")
                    else:
                        logger.warning(f"[DB] SQL file not found: {sql_file}")
                conn.commit()
            return True
        except sqlite3.Error as e:
            logger.error(f"[DB] 初始化数据表失败: {e}")
            return False

    @staticmethod
    def list_birthdays() -> List[BirthdayRecord]:
        """列出所有生日"""
        try:
            with get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(f"SELECT {_COLUMNS} FROM birthday_records ORDER BY created_at, name")
                return [_row_to_record(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            logger.error(f"[DB] 获取生日列表失败: {e}")
            return []

    @staticmethod
    def get_birthday(record_id: UUID) -> Optional[BirthdayRecord]:
        try:
            with get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(f"SELECT {_COLUMNS} FROM birthday_records WHERE id = ?", (str(record_id),))
                row = cursor.fetchone()
                return _row_to_record(row) if row else None
        except sqlite3.Error as e:
            logger.error(f"[DB] 查询生日失败: id={record_id}, error={e}")
            return None

    @staticmethod
    def insert_birthday(record: BirthdayRecord) -> bool:
        """添加生日"""
        try:
            with get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    f"INSERT INTO birthday_records ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    _record_params(record)
                )
                conn.commit()
                logger.info(f"[DB] 添加生日成功: id={record.id}")
                return True
        except sqlite3.Error as e:
            logger.error(f"[DB] 添加生日失败: id={record.id}, error={e}")
            return False

    @staticmethod
    def update_birthday(record: BirthdayRecord) -> bool:
        """更新生日，记录不存在时返回 False"""
        try:
            with get_connection() as conn:
                cursor = conn.cursor()
                params = _record_params(record)
                cursor.execute(
                    """
                    UPDATE birthday_records
                    SET name = ?, birth_month = ?, birth_day = ?, birth_year = ?,
                        phone_number = ?, email = ?, social_media_url = ?, notes = ?,
                        updated_at = CURRENT_TIMESTAMP
                    WHERE id = ?
                    """,
                    params[1:] + params[:1]
                )
                conn.commit()
                if cursor.rowcount == 0:
                    logger.warning(f"[DB] 更新生日失败，记录不存在: id={record.id}")
                    return False
                logger.info(f"[DB] 更新生日成功: id={record.id}")
                return True
        except sqlite3.Error as e:
            logger.error(f"[DB] 更新生日失败: id={record.id}, error={e}")
            return False

    @staticmethod
    def delete_birthday(record_id: UUID) -> bool:
        """删除生日，记录不存在时返回 False"""
        try:
            with get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("DELETE FROM birthday_records WHERE id = ?", (str(record_id),))
                conn.commit()
                if cursor.rowcount == 0:
                    return False
                logger.info(f"[DB] 删除生日成功: id={record_id}")
                return True
        except sqlite3.Error as e:
            logger.error(f"[DB] 删除生日失败: id={record_id}, error={e}")
            return False

    @staticmethod
    def upsert_birthdays(records: Iterable[BirthdayRecord]) -> int:
        """批量写入 (按 id 覆盖)，返回写入条数"""
        records = list(records)
        if not records:
            return 0
        try:
            with get_connection() as conn:
                cursor = conn.cursor()
                cursor.executemany(
                    f"""
                    INSERT INTO birthday_records ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        name = excluded.name,
                        birth_month = excluded.birth_month,
                        birth_day = excluded.birth_day,
                        birth_year = excluded.birth_year,
                        phone_number = excluded.phone_number,
                        email = excluded.email,
                        social_media_url = excluded.social_media_url,
                        notes = excluded.notes,
                        updated_at = CURRENT_TIMESTAMP
                    """,
                    [_record_params(r) for r in records]
                )
                conn.commit()
                logger.info(f"[DB] 批量写入生日: {len(records)} 条")
                return len(records)
        except sqlite3.Error as e:
            logger.error(f"[DB] 批量写入生日失败: {e}")
            return 0

    @staticmethod
    def replace_birthdays(records: Iterable[BirthdayRecord]) -> bool:
        """用给定记录整体替换"""
        records = list(records)
        try:
            with get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("DELETE FROM birthday_records")
                cursor.executemany(
                    f"INSERT INTO birthday_records ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    [_record_params(r) for r in records]
                )
                conn.commit()
                logger.info(f"[DB] 替换全部生日: {len(records)} 条")
                return True
        except sqlite3.Error as e:
            logger.error(f"[DB] 替换全部生日失败: {e}")
            return False
