from sqlalchemy import Column, Integer, String, Float, Text, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from portfolio_tracker.core.database import Base

# 投资组合表：一个用户可以拥有零个或多个组合
class Portfolio(Base):
    __tablename__ = "portfolios"

    portfolio_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    portfolio_name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="portfolios")
    holdings = relationship("Holding", back_populates="portfolio", cascade="all, delete-orphan")


# 持仓表：某个组合中某支股票的当前仓位
class Holding(Base):
    __tablename__ = "portfolio_holdings"

    holding_id = Column(Integer, primary_key=True, autoincrement=True)
    portfolio_id = Column(Integer, ForeignKey("portfolios.portfolio_id"), nullable=False, index=True)
    stock_id = Column(Integer, ForeignKey("stocks.stock_id"), nullable=False, index=True)
    shares_held = Column(Float, nullable=False, default=0)       # 持股数量
    average_purchase_price = Column(Float, nullable=False)       # 每股持仓成本

    # 约束条件：同一组合对同一股票只有一条持仓，数量不能为负
    __table_args__ = (
        UniqueConstraint('portfolio_id', 'stock_id', name='uq_holding_portfolio_stock'),
        CheckConstraint('shares_held >= 0', name='ck_holding_shares_non_negative'),
    )

    portfolio = relationship("Portfolio", back_populates="holdings")
    stock = relationship("Stock", back_populates="holdings")
