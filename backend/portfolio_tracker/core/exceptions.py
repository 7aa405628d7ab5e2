# 异常体系 (Exception Hierarchy)
# 业务层只定义一种失败：存储层不可用。找不到用户/组合不算错误，返回空结果即可。


class PortfolioTrackerError(Exception):
    """Base exception for the portfolio tracker."""
    pass


class DataSourceError(PortfolioTrackerError):
    """Raised when the underlying store cannot answer a read."""

    def __init__(self, operation: str, cause: Exception = None) -> None:
        super().__init__(f"Data source failure during {operation}")
        self.operation = operation
        self.cause = cause
