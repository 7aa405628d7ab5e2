from fastapi import APIRouter
from portfolio_tracker.api.v1.endpoints import users, portfolio, performers, health

# v1 总路由：保持与原仪表盘前端一致的扁平路径 (/api/holdings, /api/portfolio-summary ...)
api_router = APIRouter()

# 健康检查
api_router.include_router(health.router, tags=["System"])

# 用户列表：前端用户下拉框
api_router.include_router(users.router, tags=["users"])

# 组合模块：汇总卡片、持仓表、组合列表、行业分布、业绩曲线、预警
api_router.include_router(portfolio.router, tags=["portfolio"])

# 市场排行：跨所有组合的最佳 / 最差表现股票
api_router.include_router(performers.router, tags=["performers"])
