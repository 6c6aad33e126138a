import asyncio
import json
import logging
import os

import requests

logger = logging.getLogger(__name__)


def get_notification_url() -> str:
    return os.getenv("NOTIFICATION_URL", "").strip()


async def send_notification(text: str) -> bool:
    """把生日提醒推送到 NOTIFICATION_URL (未配置时跳过)"""
    url = get_notification_url()
    if not url:
        logger.info("[Notify] NOTIFICATION_URL 未配置，跳过推送")
        return False

    headers = {"Content-Type": "application/json"}
    payload = {"text": text}

    logger.debug(f"[Notify] 请求详情: URL={url}, Payload={json.dumps(payload, ensure_ascii=False)}")

    try:
        response = await asyncio.to_thread(requests.post, url, json=payload, headers=headers, timeout=10)
        response.raise_for_status()
        logger.info("[Notify] 通知发送成功。")
        return True
    except requests.exceptions.RequestException as e:
        logger.error(f"[Notify] 通知发送失败: {e}")
        return False
