# 项目核心配置文件，包含服务、数据库、JWT、Redis、日志、CORS等全局配置
# backend/app/core/config.py
# 配置来源优先级：初始化参数 > 环境变量(KADMIN_前缀) > .env文件 > YAML配置文件(KADMIN_CONFIG_FILE)
#  - 导出全局settings对象与DEFAULT_TZ时区对象，供Service层统一使用
#  - sqlite DSN自动转换为sqlite+aiosqlite，便于本地运行与测试

import os
import secrets
import warnings
from typing import Annotated, Any, Literal
from zoneinfo import ZoneInfo

from pydantic import AnyUrl, BeforeValidator, Field, computed_field, model_validator
from pydantic_core import MultiHostUrl
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)
from typing_extensions import Self


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


def normalize_database_url(url: str) -> str:
    """统一数据库DSN的驱动前缀（异步引擎需要异步驱动）"""
    if url.startswith("sqlite:///") or url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg://", 1)
    return url


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=os.getenv("ENV_FILE_PATH", "../.env"),
        env_prefix="KADMIN_",
        env_ignore_empty=True,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # YAML文件优先级最低，不存在时视为空配置
        yaml_file = os.getenv("KADMIN_CONFIG_FILE", "config.yaml")
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=yaml_file),
        )

    # ------------------------------
    # 服务配置
    # ------------------------------
    PROJECT_NAME: str = "K-Admin"
    API_V1_STR: str = "/api/v1"
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8080
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    SENTRY_DSN: str | None = None

    # ------------------------------
    # JWT / 密码
    # ------------------------------
    SECRET_KEY: str = secrets.token_urlsafe(32)
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    BCRYPT_ROUNDS: int = 12

    # ------------------------------
    # 数据库配置（DATABASE_URL优先，否则按POSTGRES_*拼接）
    # ------------------------------
    DATABASE_URL: str | None = None
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "k_admin"

    DB_POOL_SIZE: int = Field(20, description="数据库连接池大小")
    DB_MAX_OVERFLOW: int = Field(100, description="最大溢出连接数")
    DB_POOL_RECYCLE: int = Field(3600, description="连接回收时间(秒)")
    DB_POOL_PRE_PING: bool = Field(True, description="连接有效性检查")
    DB_ECHO: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        if self.DATABASE_URL:
            return normalize_database_url(self.DATABASE_URL)
        return str(
            MultiHostUrl.build(
                scheme="postgresql+psycopg",
                username=self.POSTGRES_USER,
                password=self.POSTGRES_PASSWORD,
                host=self.POSTGRES_SERVER,
                port=self.POSTGRES_PORT,
                path=self.POSTGRES_DB,
            )
        )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_sqlite(self) -> bool:
        return self.SQLALCHEMY_DATABASE_URI.startswith("sqlite")

    # ------------------------------
    # Redis配置
    # ------------------------------
    REDIS_ENABLED: bool = True
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""
    REDIS_ENCODING: str = "utf-8"
    REDIS_DECODE_RESPONSES: bool = True
    REDIS_MAX_CONNECTIONS: int = 10
    REDIS_SOCKET_TIMEOUT: int = 5
    REDIS_SOCKET_CONNECT_TIMEOUT: int = 5
    REDIS_KEY_PREFIX: str = "kadmin:"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def REDIS_URL(self) -> str:
        """生成 Redis 连接 URL"""
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # ------------------------------
    # 限流配置（滑动窗口，依赖Redis；Redis不可用时放行）
    # ------------------------------
    RATE_LIMIT_ENABLED: bool = False
    RATE_LIMIT_REQUESTS: int = Field(100, gt=0, description="窗口内允许的请求数")
    RATE_LIMIT_WINDOW: int = Field(60, gt=0, description="时间窗口(秒)")
    RATE_LIMIT_KEY_FUNC: Literal["ip", "user"] = "ip"

    # ------------------------------
    # 日志配置（文件按大小轮转）
    # ------------------------------
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE_FLAG: bool = False
    LOG_DIR: str = "logs"
    LOG_MAX_BYTES: int = 50 * 1024 * 1024
    LOG_BACKUP_COUNT: int = 10

    # ------------------------------
    # CORS
    # ------------------------------
    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]

    # ------------------------------
    # 工具模块
    # ------------------------------
    CODEGEN_OUTPUT_DIR: str = "generated"

    DEFAULT_TIMEZONE: str = Field(
        "Asia/Shanghai",
        description="项目全局默认时区（如Asia/Shanghai、UTC等）"
    )

    def _check_default_secret(self, var_name: str, value: str | None) -> None:
        if value == "changethis":
            message = (
                f'The value of {var_name} is "changethis", '
                "for security, please change it, at least for deployments."
            )
            if self.ENVIRONMENT == "local":
                warnings.warn(message, stacklevel=1)
            else:
                raise ValueError(message)

    @model_validator(mode="after")
    def _enforce_non_default_secrets(self) -> Self:
        self._check_default_secret("SECRET_KEY", self.SECRET_KEY)
        self._check_default_secret("POSTGRES_PASSWORD", self.POSTGRES_PASSWORD)
        return self


# 全局settings对象
settings = Settings()  # type: ignore

# 全局时区对象
DEFAULT_TZ = ZoneInfo(settings.DEFAULT_TIMEZONE)
