"""
登录认证 API
"""
import logging
import os
import secrets

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from justbirthdays.api.deps import ACCESS_TOKENS, issue_token, verify_token

logger = logging.getLogger(__name__)
auth_router = APIRouter(prefix="/auth", tags=["Auth"])


class LoginRequest(BaseModel):
    username: str
    password: str


@auth_router.post("/login")
async def login(data: LoginRequest):
    """
    登录，成功后返回 7 天有效的 token
    """
    admin_password = os.getenv("ADMIN_PASSWORD", "")
    if admin_password and data.username == "admin" and secrets.compare_digest(data.password.encode(), admin_password.encode()):
        token = secrets.token_hex(32)
        issue_token(token, data.username)
        logger.info("[Auth] 登录成功")
        return {"code": 200, "data": {"token": token, "username": data.username}}

    logger.warning(f"[Auth] 登录失败: {data.username}")
    raise HTTPException(status_code=401, detail="用户名或密码错误")


@auth_router.post("/logout")
async def logout(token_info: dict = Depends(verify_token)):
    """退出登录"""
    for token, info in list(ACCESS_TOKENS.items()):
        if info is token_info:
            del ACCESS_TOKENS[token]
    return {"code": 200, "message": "退出成功"}
