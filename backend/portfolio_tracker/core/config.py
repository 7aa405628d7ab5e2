from pydantic_settings import BaseSettings
from typing import List, Literal

class Settings(BaseSettings):
    PROJECT_NAME: str = "Indian Portfolio Tracker"
    DATABASE_URL: str = "sqlite+aiosqlite:///./portfolio_tracker.db"

    # 数据来源：database 读取真实库表，sample 使用内置的演示数据集
    DATA_SOURCE: Literal["database", "sample"] = "database"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "app.log"

    # CORS
    ALLOWED_ORIGINS: List[str] = []

    # Aggregation defaults
    TOP_PERFORMERS_LIMIT: int = 10
    DEFAULT_PERFORMANCE_PERIOD: Literal["1M", "3M", "6M", "1Y"] = "6M"
    CURRENCY: str = "INR"

    # 预警阈值 (百分比)
    POSITION_CONCENTRATION_PCT: float = 25.0  # 单一持仓占组合比例上限
    LOSS_ALERT_PCT: float = 20.0              # 单一持仓浮亏报警线
    SECTOR_CONCENTRATION_PCT: float = 50.0    # 单一行业占比上限

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
