"""
生日 CSV 导入导出

固定列: id,name,birthday,phoneNumber,emailAddress,socialMediaURL,notes,yearIsKnown
- 每个字段都用双引号包裹，字段内的 " 转义为 ""
- birthday 使用 YYYY-MM-DD；年份未知时写入占位年份 1604 且 yearIsKnown=false
- 解析时逐行校验，出错的行跳过并记录到 ImportResult.errors
"""
import csv
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from io import StringIO
from typing import Iterable, Iterator, List, Tuple
from uuid import UUID, uuid4

from pydantic import ValidationError

from justbirthdays.birthday_reminder.exceptions import CSVParseError
from justbirthdays.birthday_reminder.models import BirthdayRecord

logger = logging.getLogger(__name__)

HEADER_KEYS = [
    "id",
    "name",
    "birthday",
    "phoneNumber",
    "emailAddress",
    "socialMediaURL",
    "notes",
    "yearIsKnown",
]

# 闰年，保证 2月29日 在年份未知时也能写成合法日期
UNKNOWN_YEAR_PLACEHOLDER = 1604

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass
class ImportResult:
    records: List[BirthdayRecord] = field(default_factory=list)
    errors: List[CSVParseError] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return len(self.errors)


def _record_to_row(record: BirthdayRecord) -> List[str]:
    year = record.birth_year if record.year_known else UNKNOWN_YEAR_PLACEHOLDER
    return [
        str(record.id),
        record.name,
        f"{year:04d}-{record.birth_month:02d}-{record.birth_day:02d}",
        record.phone_number or "",
        record.email or "",
        record.social_media_url or "",
        record.notes or "",
        "true" if record.year_known else "false",
    ]


def generate_csv(records: Iterable[BirthdayRecord]) -> str:
    """导出为 CSV 文本 (表头 + 每条记录一行)"""
    sio = StringIO()
    sio.write(",".join(HEADER_KEYS) + "\n")
    writer = csv.writer(sio, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for record in records:
        writer.writerow(_record_to_row(record))
    return sio.getvalue()


def split_rows(text: str) -> Iterator[Tuple[int, List[str]]]:
    """
    按引号状态拆分 CSV 文本，产出 (起始行号, 字段列表)

    引号内的逗号和换行属于字段内容；"" 在引号内表示一个字面引号。
    只含空白的行会被跳过。行号从 1 开始。
    """
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    line = 1
    row_start = 1
    i = 0
    n = len(text)

    def _end_row():
        fields.append("".join(current))
        current.clear()
        row = list(fields)
        fields.clear()
        return row

    while i < n:
        ch = text[i]
        if in_quotes:
            if ch == '"':
                if i + 1 < n and text[i + 1] == '"':
                    current.append('"')
                    i += 1
                else:
                    in_quotes = False
            else:
                if ch == "\n":
                    line += 1
                current.append(ch)
        elif ch == '"':
            in_quotes = True
        elif ch == ",":
            fields.append("".join(current))
            current.clear()
        elif ch == "\r" and i + 1 < n and text[i + 1] == "\n":
            pass
        elif ch == "\n":
            row = _end_row()
            if not (len(row) == 1 and not row[0].strip()):
                yield row_start, row
            line += 1
            row_start = line
        else:
            current.append(ch)
        i += 1

    if current or fields:
        row = _end_row()
        if not (len(row) == 1 and not row[0].strip()):
            yield row_start, row


def _parse_birthday(value: str, line_number: int) -> Tuple[int, int, int]:
    value = value.strip()
    if not _ISO_DATE_RE.match(value):
        raise CSVParseError.date_format(line_number, value)
    try:
        parsed = datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise CSVParseError.date_format(line_number, value)
    return parsed.year, parsed.month, parsed.day


def _row_to_record(values: List[str], line_number: int) -> BirthdayRecord:
    raw_id, name, birthday, phone, email, social, notes, year_known = values

    year, month, day = _parse_birthday(birthday, line_number)
    known = year_known.strip().lower() == "true"

    raw_id = raw_id.strip()
    if raw_id:
        try:
            record_id = UUID(raw_id)
        except ValueError:
            raise CSVParseError(f"Invalid id '{raw_id}' on line {line_number}.", line_number, value=raw_id)
    else:
        record_id = uuid4()

    try:
        return BirthdayRecord(
            id=record_id,
            name=name,
            birth_month=month,
            birth_day=day,
            birth_year=year if known else None,
            phone_number=phone,
            email=email,
            social_media_url=social,
            notes=notes,
        )
    except ValidationError as e:
        reasons = "; ".join(err["msg"] for err in e.errors())
        raise CSVParseError(
            f"The data on line {line_number} is malformed and could not be read: {reasons}",
            line_number,
        )


def parse_csv(csv_text: str) -> ImportResult:
    """
    解析 CSV 文本

    表头不匹配时直接抛出 CSVParseError；数据行出错则跳过该行，
    错误收集在返回值的 errors 中，其余行继续解析。
    """
    result = ImportResult()
    rows = split_rows(csv_text or "")

    first = next(rows, None)
    if first is None:
        return result

    header_line, header = first
    header = [h.strip() for h in header]
    if header != HEADER_KEYS:
        raise CSVParseError(
            f"Unexpected header on line {header_line}: {','.join(header)}",
            header_line,
            value=",".join(header),
            expected=len(HEADER_KEYS),
            actual=len(header),
        )

    for line_number, values in rows:
        try:
            if len(values) != len(header):
                raise CSVParseError.column_count(line_number, len(header), len(values))
            result.records.append(_row_to_record(values, line_number))
        except CSVParseError as e:
            logger.warning(f"[CSV] Skipping line {line_number}: {e.message}")
            result.errors.append(e)

    logger.info(f"[CSV] Parsed {len(result.records)} records, skipped {result.skipped}")
    return result
