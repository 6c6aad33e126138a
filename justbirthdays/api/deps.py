import os
import secrets
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from justbirthdays.services.settings import AppSettings, load_settings

ACCESS_TOKENS: Dict[str, Dict[str, Any]] = {}  # token -> {username, expires_at}

security = HTTPBearer()


def get_api_token() -> str:
    return os.getenv("API_TOKEN", "").strip()


def verify_token(credentials: HTTPAuthorizationCredentials = Depends(security)) -> dict:
    """验证 token (API_TOKEN 或登录后签发的临时 token)"""
    token = credentials.credentials
    api_token = get_api_token()
    if api_token and secrets.compare_digest(token.encode(), api_token.encode()):
        return {"username": "owner", "expires_at": None}
    if token not in ACCESS_TOKENS:
        raise HTTPException(status_code=401, detail="无效的 token")
    token_info = ACCESS_TOKENS[token]
    if datetime.now() > token_info["expires_at"]:
        del ACCESS_TOKENS[token]
        raise HTTPException(status_code=401, detail="token 已过期")
    return token_info


def issue_token(token: str, username: str, days: int = 7) -> None:
    ACCESS_TOKENS[token] = {
        "username": username,
        "expires_at": datetime.now() + timedelta(days=days)
    }


def get_settings() -> AppSettings:
    return load_settings()


def get_today(today: Optional[date] = None) -> date:
    """可通过 ?today=YYYY-MM-DD 指定参考日期，默认今天"""
    return today or date.today()
