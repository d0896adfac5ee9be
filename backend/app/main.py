"""
项目主入口文件
backend/app/main.py
- 日志/Sentry初始化
- DI容器创建与模块扫描
- 中间件（由外到内）：异常兜底 → CORS → 限流 → 请求ID/访问日志
- 异常处理器：统一输出 {code, data, msg} 信封
"""
import logging
import time
import uuid
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware

from app.api import api_router
from app.api.v1.endpoints import health
from app.core.config import settings
from app.core.exceptions import AppException, CODE_FAIL, CODE_INTERNAL_ERROR
from app.core.logger import init_global_logger, request_id_ctx
from app.core.rate_limit import RateLimitMiddleware
from app.di.container import Container
from app.schemas.responses import ApiResponse

# 初始化全局日志
init_global_logger()
logger = logging.getLogger(__name__)


def custom_generate_unique_id(route: APIRoute) -> str:
    """路由ID生成函数，处理无tags情况"""
    if not route.tags:
        return f"untagged-{route.name}"
    return f"{route.tags[0]}-{route.name}"


# Sentry初始化（仅非local环境且配置了DSN）
if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":
    sentry_sdk.init(
        dsn=str(settings.SENTRY_DSN),
        enable_tracing=True,
        environment=settings.ENVIRONMENT,
    )


def _envelope(msg: str, code: int = CODE_FAIL, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ApiResponse.fail(msg=msg, code=code).model_dump())


def _format_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "invalid request parameters"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"invalid request parameters: {location}: {first.get('msg', '')}"


def create_app() -> FastAPI:
    # 1. 初始化DI容器（实例化时按wiring_config扫描模块）
    container = Container()

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        # 关闭时释放连接
        await container.redis_service().close()
        await container.async_engine().dispose()
        logger.info("应用已关闭，数据库与Redis连接已释放")

    # 2. 创建FastAPI应用
    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        generate_unique_id_function=custom_generate_unique_id,
        lifespan=lifespan,
    )

    # 3. 请求ID + 访问日志中间件（最内层）
    @app.middleware("http")
    async def add_request_id_middleware(request: Request, call_next):
        """
        生成UUID作为request_id写入上下文变量，响应头添加X-Request-ID
        请求结束记录方法/路径/状态码/耗时
        """
        request_id = str(uuid.uuid4())
        token = request_id_ctx.set(request_id)
        start = time.perf_counter()
        try:
            response = await call_next(request)
            latency_ms = (time.perf_counter() - start) * 1000
            response.headers["X-Request-ID"] = request_id
            logger.info(
                f"{request.method} {request.url.path} | 状态码：{response.status_code} | 耗时：{latency_ms:.2f}ms"
            )
            return response
        finally:
            request_id_ctx.reset(token)

    # 4. 限流
    if settings.RATE_LIMIT_ENABLED:
        app.add_middleware(
            RateLimitMiddleware,
            redis_service_provider=container.redis_service,
            max_requests=settings.RATE_LIMIT_REQUESTS,
            window_seconds=settings.RATE_LIMIT_WINDOW,
            key_func=settings.RATE_LIMIT_KEY_FUNC,
        )

    # 5. CORS
    if settings.all_cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.all_cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["X-Request-ID"],
        )

    # 6. 异常兜底（最外层）：任何未处理异常都转为code=500信封，进程继续服务
    @app.middleware("http")
    async def recovery_middleware(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(f"未处理异常 | 路径：{request.url.path} | 详情：{exc}", exc_info=True)
            return _envelope(msg=f"Internal server error: {exc}", code=CODE_INTERNAL_ERROR)

    # ------------------------------
    # 异常处理器
    # ------------------------------
    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        logger.warning(f"业务异常 | 路径：{request.url.path} | 错误码：{exc.code} | 详情：{exc.detail}")
        return _envelope(msg=exc.detail, code=exc.code, status_code=exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # 路由不存在(404)、方法不允许(405)等框架层错误，保留HTTP状态码
        response = _envelope(msg=str(exc.detail), status_code=exc.status_code)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"请求参数校验失败 | 路径：{request.url.path} | 错误详情：{exc.errors()}")
        return _envelope(msg=_format_validation_error(exc))

    @app.exception_handler(IntegrityError)
    async def integrity_exception_handler(request: Request, exc: IntegrityError):
        # 唯一约束兜底并发重复写入
        logger.error(f"数据库完整性异常 | 路径：{request.url.path} | 详情：{exc}")
        return _envelope(msg="database integrity error")

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.error(f"数据库异常 | 路径：{request.url.path} | 详情：{exc}", exc_info=True)
        return _envelope(msg=f"database error: {exc}")

    # 7. 挂载路由：健康检查在根路径，业务接口在API前缀下
    app.include_router(health.router)
    app.include_router(api_router, prefix=settings.API_V1_STR)

    # 8. 附加容器到app.state（测试中用于覆盖Provider）
    app.state.container = container

    return app


# 创建应用实例
app = create_app()

logger.info(
    f"{settings.PROJECT_NAME} 应用启动 | 环境：{settings.ENVIRONMENT} | API前缀：{settings.API_V1_STR} "
    f"| 时区：{settings.DEFAULT_TIMEZONE}"
)
