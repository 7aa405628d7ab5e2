# 主程序入口 (Main Entry Point)
# 职责：初始化 FastAPI 应用、配置全局日志、添加中间件、挂载路由
import time
import logging
import traceback
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from portfolio_tracker.core.config import settings
from portfolio_tracker.core.database import close_db
from portfolio_tracker.core.exceptions import DataSourceError

# 1. 全局日志配置 (Global Logging Configuration)
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.FileHandler(settings.LOG_FILE),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger("api_logger")

# 降低 SQLAlchemy 日志级别，减少噪音
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期：关闭时释放数据库连接池"""
    yield
    await close_db()

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="印度股票持仓看板后端 API：组合汇总、持仓估值、行业分布与业绩走势",
    version="1.0.0",
    lifespan=lifespan
)

# 2. 异常处理器 (Exception Handlers)
# 对外只返回通用的 500，细节只写入服务端日志
@app.exception_handler(DataSourceError)
async def data_source_exception_handler(request: Request, exc: DataSourceError):
    logger.error(
        f"Data source failure on {request.method} {request.url.path}: "
        f"operation={exc.operation} cause={type(exc.cause).__name__}: {exc.cause}"
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}: "
        f"{type(exc).__name__}: {exc}\n{traceback.format_exc()}"
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})

# 3. HTTP 请求日志中间件 (Request Logging Middleware)
# 职责：记录请求路径、方法、状态码及耗时
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    try:
        response = await call_next(request)
    except Exception as exc:
        logger.error(f"Middleware caught unhandled error: {type(exc).__name__}: {exc}")
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"}
        )

    process_time = (time.time() - start_time) * 1000
    formatted_process_time = f"{process_time:.2f}ms"

    logger.info(
        f"path={request.url.path} "
        f"query={request.url.query or '-'} "
        f"method={request.method} "
        f"status_code={response.status_code} "
        f"time={formatted_process_time}"
    )

    response.headers["X-Process-Time"] = formatted_process_time
    return response

# 4. 跨域资源共享配置 (CORS Configuration)
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:8080",
    "http://127.0.0.1:8080",
]
if settings.ALLOWED_ORIGINS:
    origins.extend(settings.ALLOWED_ORIGINS)

# 只读 API，只放开 GET
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["GET"],
    allow_headers=["*"],
)

# 5. 路由挂载 (Router Inclusion)
from portfolio_tracker.api.v1.api import api_router
from portfolio_tracker.api.v1.endpoints import health

app.include_router(api_router, prefix="/api")

# 根路径的 /health 与 /api/health 共用同一个处理函数和返回结构
app.include_router(health.router, tags=["System"])

@app.get("/", include_in_schema=False)
async def root():
    """欢迎页面"""
    return {
        "message": f"Welcome to {settings.PROJECT_NAME} API",
        "data_source": settings.DATA_SOURCE,
        "currency": settings.CURRENCY,
        "docs": "/docs",
    }
