"""
Just Birthdays - 生日记录服务

主入口
"""
import logging
import os
import uvicorn
from contextlib import asynccontextmanager
from dotenv import load_dotenv
from justbirthdays.utils.logger import setup_logging

# 加载环境变量 (必须在日志配置前加载，以便读取 LOG_LEVEL_*)
load_dotenv()

# 配置日志 (使用模块化配置)
setup_logging()
startup_logger = logging.getLogger("justbirthdays.startup")

# 1. 初始化数据库
from justbirthdays.services.database import DatabaseService, init_db
SQLITE_DB_PATH = os.getenv("SQLITE_DB_PATH", "data/justbirthdays.db")
init_db(db_path=SQLITE_DB_PATH)
startup_logger.info(f"Database config initialized (Path: {SQLITE_DB_PATH})")

# 应用配置
APP_PORT = int(os.getenv("APP_PORT", "8000"))
APP_TITLE = "Just Birthdays"

from justbirthdays.services.scheduler import start_scheduler, shutdown_scheduler


# 2. 定义 lifespan 函数
@asynccontextmanager
async def lifespan(app):
    """应用生命周期管理"""
    # Startup
    await startup_event()
    yield
    # Shutdown
    await shutdown_event()


async def startup_event():
    """启动时建表、刷新小组件数据并启动定时任务"""
    if DatabaseService.init_tables():
        startup_logger.info("Database tables initialized.")
    else:
        startup_logger.error("Failed to init database tables.")

    from justbirthdays.birthday_reminder.service import BirthdayService
    data = BirthdayService.refresh_widget()
    startup_logger.info(
        f"Widget data refreshed -> today: {len(data.todays_birthdays)}, "
        f"upcoming: {len(data.upcoming_birthdays)}"
    )

    if os.getenv("SCHEDULER_ENABLED", "true").lower() == "true":
        start_scheduler()
    else:
        startup_logger.info("Scheduler disabled (SCHEDULER_ENABLED=false)")


async def shutdown_event():
    """关闭时清理资源"""
    shutdown_scheduler()


# 3. 创建 FastAPI 应用（使用 lifespan）
from fastapi import FastAPI
from scalar_fastapi import get_scalar_api_reference
from fastapi.middleware.cors import CORSMiddleware

app = FastAPI(
    title=APP_TITLE,
    description="记录生日与联系方式，查询今天和即将到来的生日",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 4. 注册路由
from justbirthdays.api.routers import api_router

app.include_router(api_router)


@app.get("/")
async def root():
    """根路径"""
    return {"message": f"{APP_TITLE} is running", "version": "1.0.0"}


@app.get("/scalar", include_in_schema=False)
async def scalar_docs():
    """Scalar API 文档"""
    return get_scalar_api_reference(
        openapi_url=app.openapi_url,
        title=app.title,
    )


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=APP_PORT, reload=True)
