from portfolio_tracker.services.data_sources.base import PortfolioDataSource
from portfolio_tracker.services.data_sources.sql import SqlDataSource
from portfolio_tracker.services.data_sources.memory import InMemoryDataSource
from portfolio_tracker.services.data_sources.sample import build_sample_data_source

__all__ = ["PortfolioDataSource", "SqlDataSource", "InMemoryDataSource", "build_sample_data_source"]
