from typing import List
from fastapi import APIRouter, Depends

from portfolio_tracker.api.deps import get_engine
from portfolio_tracker.schemas.portfolio import UserOut
from portfolio_tracker.services.aggregation import AggregationEngine

router = APIRouter()

@router.get("/users", response_model=List[UserOut])
async def list_users(engine: AggregationEngine = Depends(get_engine)):
    """获取全部投资者 (用于前端用户选择)"""
    return await engine.users()
