"""
Just Birthdays - 生日记录与提醒
"""

__version__ = "1.0.0"
