"""
FrontDesk 主应用入口
酒店前台预订与房态管理服务
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from frontdesk.config import settings
from frontdesk.database import init_db
from frontdesk.exceptions import (
    AuthorizationError, ConflictError, FrontDeskError, InvalidStateError,
    NotFoundError, StorageError, ValidationError
)
from frontdesk.routers import auth, bookings, rooms, guests, dashboard

logger = logging.getLogger(__name__)

# 业务异常 -> HTTP 状态码
ERROR_STATUS_CODES = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    ConflictError: status.HTTP_409_CONFLICT,
    InvalidStateError: status.HTTP_409_CONFLICT,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    StorageError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def setup_logging(level: str = None) -> None:
    """配置根日志"""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def status_code_for(exc: FrontDeskError) -> int:
    for error_class, code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_class):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    setup_logging()

    # 初始化数据库
    init_db()

    # 注册事件处理器
    from frontdesk.services.event_handlers import register_event_handlers
    register_event_handlers()

    logger.info(f"{settings.APP_NAME} started")
    yield


# 创建应用
app = FastAPI(
    title="FrontDesk - 酒店前台管理系统",
    description="客人登记、房间管理、预订与退房",
    version="1.0.0",
    lifespan=lifespan
)

# CORS 配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FrontDeskError)
async def frontdesk_error_handler(request: Request, exc: FrontDeskError):
    """业务异常统一转换为 JSON 响应"""
    code = status_code_for(exc)
    if code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=code, content=exc.to_dict())


# 注册路由
app.include_router(auth.router)
app.include_router(guests.router)
app.include_router(rooms.router)
app.include_router(bookings.router)
app.include_router(dashboard.router)


@app.get("/")
def root():
    """根路径"""
    return {
        "name": "FrontDesk - 酒店前台管理系统",
        "version": "1.0.0"
    }


@app.get("/health")
def health_check():
    """健康检查"""
    return {"status": "healthy"}
