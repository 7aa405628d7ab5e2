import asyncio
from logging.config import fileConfig
import sys
import os

# 让 alembic 在 backend/ 目录下运行时能导入 portfolio_tracker
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config
from alembic import context

from portfolio_tracker.core.config import settings
from portfolio_tracker.core.database import Base
# 显式导入所有模型以确保被 metadata 捕获
from portfolio_tracker.models import User, Stock, StockPrice, Portfolio, Holding

config = context.config

# 使用 alembic.ini 中的日志配置
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# autogenerate 以 ORM 模型为准
target_metadata = Base.metadata

def run_migrations_offline() -> None:
    """离线模式：只生成 SQL，不连接数据库"""
    context.configure(
        url=settings.DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    # render_as_batch=True 让 SQLite 也能执行 ALTER 类迁移，对 MySQL/PG 没影响
    context.configure(connection=connection, target_metadata=target_metadata, render_as_batch=True)

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """连接串统一来自 settings.DATABASE_URL，ini 中的 sqlalchemy.url 留空"""
    configuration = config.get_section(config.config_ini_section, {})
    configuration["sqlalchemy.url"] = settings.DATABASE_URL

    connectable = async_engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    """在线模式：通过异步引擎执行迁移"""
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
