"""
File: alembic/env.py
Description: Alembic 迁移环境配置 (同步驱动)

- 迁移: postgresql+psycopg (Sync)
- 运行: postgresql+asyncpg (Async)

Created: 2026-03-02
"""

import sys
from logging.config import fileConfig
from pathlib import Path
from urllib.parse import quote_plus

from sqlalchemy import create_engine, pool

from alembic import context  # type: ignore

sys.path.insert(0, str(Path(__file__).parent.parent.resolve()))

from userhub.core.config import settings
from userhub.db.models import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _build_sync_uri() -> str:
    async_uri = str(settings.SQLALCHEMY_DATABASE_URI)
    if not async_uri.startswith("postgresql"):
        return async_uri

    # 密码需 URL 编码，防止 '@' 等字符破坏连接串
    password = quote_plus(settings.POSTGRES_PASSWORD or "")
    return (
        f"postgresql+psycopg://{settings.POSTGRES_USER}:{password}"
        f"@{settings.POSTGRES_SERVER}:{settings.POSTGRES_PORT}/{settings.POSTGRES_DB}"
    )


# configparser 插值需要转义 %
config.set_main_option("sqlalchemy.url", _build_sync_uri().replace("%", "%%"))

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """离线模式：只生成 SQL 脚本"""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(
        config.get_main_option("sqlalchemy.url") or "",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()

    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
