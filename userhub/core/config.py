"""
File: userhub/core/config.py
Description: 全局应用配置管理（使用 pydantic-settings）

所有配置值通过 .env 文件加载。
本模块负责：
1. 校验环境变量类型
2. 组装数据库 DSN（确保使用 postgresql+asyncpg 协议）
3. 定义 Redis、JWT 双密钥、Cookie、微信小程序与短信参数
4. 运行时强制校验必填项，确保应用在配置缺失时快速失败

Created: 2026-03-02
"""

from typing import Literal

from pydantic import AnyHttpUrl, model_validator
from pydantic_core import MultiHostUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """全局配置对象（唯一真实来源）"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
        case_sensitive=True,
    )

    # --------------------------------------------------------------------------
    # 1. General (通用)
    # --------------------------------------------------------------------------
    PROJECT_NAME: str = "User Hub"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: Literal["local", "dev", "prod"] = "local"
    DEBUG: bool = False

    BACKEND_CORS_ORIGINS: list[AnyHttpUrl] = []

    # --------------------------------------------------------------------------
    # 2. Database (PostgreSQL)
    # --------------------------------------------------------------------------
    POSTGRES_SERVER: str | None = None
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str | None = None
    POSTGRES_PASSWORD: str | None = None
    POSTGRES_DB: str | None = None

    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_PRE_PING: bool = True
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # 完整 DSN 覆盖（可选）
    SQLALCHEMY_DATABASE_URI: str | None = None

    # --------------------------------------------------------------------------
    # 3. Logging (Loguru)
    # --------------------------------------------------------------------------
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_JSON_FORMAT: bool = False
    LOG_FILE_ENABLED: bool = False
    LOG_DIR: str = "logs"
    LOG_ROTATION: str = "1 hour"
    LOG_RETENTION: str = "7 days"
    LOG_COMPRESSION: str = "zip"
    LOG_DIAGNOSE: bool = True  # 生产环境建议 False

    # --------------------------------------------------------------------------
    # 4. Redis (令牌黑名单 + 短信验证码)
    # --------------------------------------------------------------------------
    REDIS_URL: str = "redis://localhost:6379/0"
    TOKEN_BLACKLIST_PREFIX: str = "blacklist"
    CAPTCHA_KEY_PREFIX: str = "captcha"
    CAPTCHA_EXPIRE_SECONDS: int = 300

    # --------------------------------------------------------------------------
    # 5. Security & Authentication (JWT)
    # --------------------------------------------------------------------------
    # Access Token 签名密钥
    SECRET_KEY: str | None = None
    # Refresh Token 签名密钥 (必须与 SECRET_KEY 不同)
    REFRESH_SECRET_KEY: str | None = None
    JWT_ISSUER: str = "user_hub_service"
    ALGORITHM: str = "HS256"

    # Access Token 有效期 (分钟) - 短效，无状态校验
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    # Refresh Token 有效期 (天) - 长效，旋转时检查黑名单
    REFRESH_TOKEN_EXPIRE_DAYS: int = 10

    # --------------------------------------------------------------------------
    # 6. Cookie (Web 平台的 Refresh Token 载体)
    # --------------------------------------------------------------------------
    REFRESH_COOKIE_NAME: str = "rt"
    COOKIE_PATH: str = "/"
    COOKIE_DOMAIN: str | None = None
    COOKIE_SECURE: bool = True
    COOKIE_HTTP_ONLY: bool = True
    COOKIE_SAMESITE: Literal["lax", "strict", "none"] = "lax"

    # --------------------------------------------------------------------------
    # 7. WeChat Mini Program
    # --------------------------------------------------------------------------
    WECHAT_APP_ID: str = ""
    WECHAT_APP_SECRET: str = ""
    WECHAT_API_BASE: str = "https://api.weixin.qq.com"
    HTTP_CLIENT_TIMEOUT: float = 10.0

    # --------------------------------------------------------------------------
    # 8. SMS (验证码下发)
    # --------------------------------------------------------------------------
    SMS_ENDPOINT: str = ""
    SMS_APP_ID: str = ""
    SMS_SECRET: str = ""
    SMS_TEMPLATE_ID: str = ""
    SMS_ENV: str = ""

    # --------------------------------------------------------------------------
    # Properties (便捷属性)
    # --------------------------------------------------------------------------
    @property
    def is_production(self) -> bool:
        """是否为生产环境"""
        return self.ENVIRONMENT == "prod"

    @property
    def is_debug(self) -> bool:
        """是否启用调试模式（仅在非生产环境有效）"""
        return self.DEBUG and not self.is_production

    @property
    def access_token_ttl_seconds(self) -> int:
        return self.ACCESS_TOKEN_EXPIRE_MINUTES * 60

    @property
    def refresh_token_ttl_seconds(self) -> int:
        return self.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 3600

    # --------------------------------------------------------------------------
    # Validators
    # --------------------------------------------------------------------------
    @model_validator(mode="after")
    def _validate_and_build_db_uri(self) -> "Settings":
        """验证必填项并构建数据库连接串。"""
        # 1. 校验 JWT 双密钥
        if not self.SECRET_KEY:
            raise ValueError("SECRET_KEY 必须在 .env 中设置")
        if not self.REFRESH_SECRET_KEY:
            raise ValueError("REFRESH_SECRET_KEY 必须在 .env 中设置")
        if self.SECRET_KEY == self.REFRESH_SECRET_KEY:
            raise ValueError("REFRESH_SECRET_KEY 不能与 SECRET_KEY 相同")

        if self.ENVIRONMENT == "prod" and (
            len(self.SECRET_KEY) < 32 or len(self.REFRESH_SECRET_KEY) < 32
        ):
            raise ValueError("生产环境 JWT 密钥长度必须 >= 32 字符")

        # 2. 如果 env 直接提供了 DSN，则优先使用
        if self.SQLALCHEMY_DATABASE_URI:
            return self

        # 3. 否则检查 POSTGRES_* 字段是否齐全
        missing_fields: list[str] = []
        required_pg_fields = [
            "POSTGRES_SERVER",
            "POSTGRES_USER",
            "POSTGRES_PASSWORD",
            "POSTGRES_DB",
        ]

        for field in required_pg_fields:
            if not getattr(self, field):
                missing_fields.append(field)

        if missing_fields:
            raise ValueError(
                f"缺少数据库环境变量，无法构建 DSN: {', '.join(missing_fields)}"
            )

        # 4. 自动组装 DSN
        self.SQLALCHEMY_DATABASE_URI = str(
            MultiHostUrl.build(
                scheme="postgresql+asyncpg",
                username=self.POSTGRES_USER,  # type: ignore[arg-type]
                password=self.POSTGRES_PASSWORD,  # type: ignore[arg-type]
                host=self.POSTGRES_SERVER,  # type: ignore[arg-type]
                port=self.POSTGRES_PORT,
                path=self.POSTGRES_DB,  # type: ignore[arg-type]
            )
        )

        return self


# 单例配置对象
# 配置加载失败时，Pydantic 会抛出 ValidationError，包含详细错误信息
settings = Settings()
