"""
小组件数据 API
"""
from datetime import date

from fastapi import APIRouter, Depends

from justbirthdays.api.deps import get_settings, get_today, verify_token
from justbirthdays.birthday_reminder.service import BirthdayService
from justbirthdays.services.settings import AppSettings

widget_router = APIRouter(prefix="/widget", tags=["Widget"])


@widget_router.get("")
async def get_widget_data(
    today: date = Depends(get_today),
    settings: AppSettings = Depends(get_settings),
    token_info: dict = Depends(verify_token)
):
    """今日生日 + 即将到来的生日 (只读投影)"""
    data = BirthdayService.build_widget_data(BirthdayService.list_records(), today, settings)
    return {"code": 200, "data": data.model_dump(mode="json")}
