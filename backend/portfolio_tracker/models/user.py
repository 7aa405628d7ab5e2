# 用户模型定义
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
from portfolio_tracker.core.database import Base

# 用户核心表 (User Model)
# 职责：存储投资者的身份信息。由外部管理流程开通，本系统只读。
class User(Base):
    __tablename__ = "users"

    user_id = Column(Integer, primary_key=True, autoincrement=True)

    # username 是前端下拉框和查询参数使用的标识，必须唯一
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, nullable=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)

    # 印度投资者信息：PAN (Permanent Account Number) 与联系方式
    pan_number = Column(String(10), nullable=True)
    phone_number = Column(String(20), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    portfolios = relationship("Portfolio", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(user_id={self.user_id}, username='{self.username}')>"
