"""
生日管理 API
"""
import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import ValidationError

from justbirthdays.api.deps import get_settings, get_today, verify_token
from justbirthdays.birthday_reminder.exceptions import CSVParseError, StoreError
from justbirthdays.birthday_reminder.models import (
    BirthdayRecord,
    BirthdayRecordCreate,
    BirthdayRecordUpdate,
    SortOrder,
)
from justbirthdays.birthday_reminder.service import BirthdayService
from justbirthdays.services.settings import AppSettings

logger = logging.getLogger(__name__)
birthday_router = APIRouter(prefix="/birthday", tags=["Birthday"])

EXPORT_FILENAME = "JustBirthdays_Export.csv"


def _record_payload(record: BirthdayRecord, today: date, settings: AppSettings) -> dict:
    policy = settings.leap_day_policy
    data = record.model_dump(mode="json")
    data.update({
        "year_known": record.year_known,
        "formatted_birthday": (
            record.formatted_birthday_with_year if settings.show_year_in_list
            else record.formatted_birthday
        ),
        "has_any_contact_info": record.has_any_contact_info,
        "is_today": record.is_today(today, policy),
        "next_occurrence": record.next_occurrence(today, policy).isoformat(),
        "days_until": record.days_until_next(today, policy),
        "age": record.age_on_next(today, policy),
    })
    return data


@birthday_router.get("/list")
async def list_birthdays(
    sort: SortOrder = SortOrder.CHRONOLOGICAL,
    name: Optional[str] = None,
    today: date = Depends(get_today),
    settings: AppSettings = Depends(get_settings),
    token_info: dict = Depends(verify_token)
):
    """获取生日列表 (可按姓名搜索)"""
    records = BirthdayService.search_records(BirthdayService.list_records(), name)
    records = BirthdayService.sort_records(records, sort, today, settings.leap_day_policy)
    data = [_record_payload(r, today, settings) for r in records]
    return {"code": 200, "data": {"list": data, "total": len(data)}}


@birthday_router.get("/today")
async def get_today_birthdays(
    today: date = Depends(get_today),
    settings: AppSettings = Depends(get_settings),
    token_info: dict = Depends(verify_token)
):
    """获取今日生日"""
    records = BirthdayService.list_today(BirthdayService.list_records(), today, settings.leap_day_policy)
    return {"code": 200, "data": [_record_payload(r, today, settings) for r in records]}


@birthday_router.get("/upcoming")
async def get_upcoming_birthdays(
    days: Optional[int] = None,
    today: date = Depends(get_today),
    settings: AppSettings = Depends(get_settings),
    token_info: dict = Depends(verify_token)
):
    """获取即将到来的生日 (默认使用设置中的提前天数)"""
    lead_time = days if days is not None else settings.upcoming_days
    if lead_time < 1:
        raise HTTPException(status_code=400, detail="days 必须大于 0")
    records = BirthdayService.list_upcoming(
        BirthdayService.list_records(), today, lead_time, settings.leap_day_policy
    )
    return {"code": 200, "data": [_record_payload(r, today, settings) for r in records]}


@birthday_router.get("/export")
async def export_birthdays(token_info: dict = Depends(verify_token)):
    """导出 CSV"""
    csv_text = BirthdayService.export_csv_text()
    return Response(
        content=csv_text,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@birthday_router.post("/import")
async def import_birthdays(
    request: Request,
    replace: bool = False,
    token_info: dict = Depends(verify_token)
):
    """导入 CSV (请求体为 CSV 文本)，出错的行跳过并在结果中返回"""
    body = await request.body()
    try:
        csv_text = body.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV 必须是 UTF-8 编码")

    try:
        result = BirthdayService.import_csv_text(csv_text, replace=replace)
    except CSVParseError as e:
        logger.warning(f"[Birthday] CSV 导入失败: {e.message}")
        raise HTTPException(status_code=400, detail=e.to_dict())
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "code": 200,
        "data": {
            "imported": len(result.records),
            "skipped": result.skipped,
            "errors": [err.to_dict() for err in result.errors],
        },
        "message": "导入完成",
    }


@birthday_router.get("/{id}")
async def get_birthday(
    id: UUID,
    today: date = Depends(get_today),
    settings: AppSettings = Depends(get_settings),
    token_info: dict = Depends(verify_token)
):
    """获取单条生日"""
    record = BirthdayService.get_record(id)
    if record is None:
        raise HTTPException(status_code=404, detail="记录不存在")
    return {"code": 200, "data": _record_payload(record, today, settings)}


@birthday_router.post("")
async def create_birthday(data: BirthdayRecordCreate, token_info: dict = Depends(verify_token)):
    """添加生日"""
    record = BirthdayService.add_record(data)
    if record is None:
        raise HTTPException(status_code=500, detail="添加失败")
    return {"code": 200, "data": {"id": str(record.id)}, "message": "添加成功"}


@birthday_router.put("/{id}")
async def update_birthday(
    id: UUID,
    data: BirthdayRecordUpdate,
    today: date = Depends(get_today),
    settings: AppSettings = Depends(get_settings),
    token_info: dict = Depends(verify_token)
):
    """更新生日"""
    try:
        record = BirthdayService.update_record(id, data)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))
    if record is None:
        raise HTTPException(status_code=404, detail="记录不存在")
    return {"code": 200, "data": _record_payload(record, today, settings), "message": "更新成功"}


@birthday_router.delete("/{id}")
async def delete_birthday(id: UUID, token_info: dict = Depends(verify_token)):
    """删除生日"""
    if not BirthdayService.delete_record(id):
        raise HTTPException(status_code=404, detail="记录不存在")
    return {"code": 200, "message": "删除成功"}
