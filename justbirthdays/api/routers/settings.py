"""
应用设置 API
"""
import logging

from fastapi import APIRouter, Depends, HTTPException

from justbirthdays.api.deps import verify_token
from justbirthdays.services.settings import AppSettingsUpdate, load_settings, update_settings

logger = logging.getLogger(__name__)
settings_router = APIRouter(prefix="/settings", tags=["Settings"])


@settings_router.get("")
async def get_settings(token_info: dict = Depends(verify_token)):
    """获取当前设置"""
    return {"code": 200, "data": load_settings().model_dump(mode="json")}


@settings_router.put("")
async def put_settings(data: AppSettingsUpdate, token_info: dict = Depends(verify_token)):
    """修改设置 (只修改传入的字段)"""
    try:
        settings = update_settings(data)
    except OSError as e:
        logger.error(f"[Settings] 保存设置失败: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    # 提前天数/闰日规则会影响小组件内容
    from justbirthdays.birthday_reminder.service import BirthdayService
    BirthdayService.refresh_widget(settings=settings)

    logger.info(f"[Settings] 设置已更新: {data.model_dump(exclude_unset=True)}")
    return {"code": 200, "data": settings.model_dump(mode="json"), "message": "设置成功"}
