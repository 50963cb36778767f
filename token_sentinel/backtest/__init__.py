from .backtester import Backtester, BacktestResult, DecisionAccuracy, ReturnModel

__all__ = ["Backtester", "BacktestResult", "DecisionAccuracy", "ReturnModel"]
