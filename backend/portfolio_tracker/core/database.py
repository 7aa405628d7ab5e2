from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy import event
from portfolio_tracker.core.config import settings

# 数据库引擎核心配置 (Database Engine Config)
# 本服务只读：所有接口都是查询 + 聚合，不存在写入路径。
# 连接池保持较小即可，事务隔离交给数据库本身。
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    pool_pre_ping=True, # 每次拿连接前先检查连接是否存活
    pool_recycle=300,   # 每 5 分钟重置连接
    connect_args={
        "check_same_thread": False,
        "timeout": 30,
    } if "sqlite" in settings.DATABASE_URL else {}
)

# --- SQLite WAL 模式 ---
# 外部行情导入进程写入价格时，WAL 允许本服务的读请求并行进行。
if "sqlite" in settings.DATABASE_URL:
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA busy_timeout=30000")
        cursor.close()

# 会话工厂
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False
)

# 声明基类：所有 Model 都要继承它
Base = declarative_base()

# 依赖注入函数：每个请求一个会话，请求结束自动关闭。
async def get_db():
    async with SessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise

async def close_db():
    await engine.dispose()
