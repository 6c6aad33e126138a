"""
生日模块异常定义

- 输入校验错误直接使用 pydantic 的 ValidationError (见 models.py)
- CSVParseError: CSV 行格式/日期错误，携带行号
- CSVFileError: 文件读写失败，整个导入/导出终止
- StoreError: 数据库写入失败 (例如导入时批量写入失败)
"""
from typing import Optional


class CSVParseError(ValueError):
    """CSV 解析错误 (单行)"""

    def __init__(
        self,
        message: str,
        line_number: int,
        value: Optional[str] = None,
        expected: Optional[int] = None,
        actual: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.line_number = line_number
        self.value = value
        self.expected = expected
        self.actual = actual

    @classmethod
    def column_count(cls, line_number: int, expected: int, actual: int) -> "CSVParseError":
        return cls(
            f"Invalid data format on line {line_number}. Expected {expected} columns, but found {actual}.",
            line_number,
            expected=expected,
            actual=actual,
        )

    @classmethod
    def date_format(cls, line_number: int, value: str) -> "CSVParseError":
        return cls(
            f"Invalid date format '{value}' on line {line_number}. Please use YYYY-MM-DD format.",
            line_number,
            value=value,
        )

    def to_dict(self) -> dict:
        return {
            "line": self.line_number,
            "message": self.message,
            "value": self.value,
            "expected": self.expected,
            "actual": self.actual,
        }


class CSVFileError(Exception):
    """CSV 文件无法读取/写入"""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Could not access CSV file '{path}': {reason}")
        self.path = path
        self.reason = reason


class StoreError(Exception):
    """数据库写入失败"""
