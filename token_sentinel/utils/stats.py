from typing import Sequence

import numpy as np


def max_drawdown(returns: Sequence[float]) -> float:
    """Return the largest relative decline of the cumulative return curve.

    The peak starts at zero, so drawdown is only measured once the running
    sum has been positive: ``(peak - current) / |peak|``.
    """
    if len(returns) == 0:
        return 0.0
    equity = np.cumsum(np.asarray(returns, dtype=float))
    peaks = np.maximum.accumulate(np.maximum(equity, 0.0))
    positive = peaks > 0
    if not positive.any():
        return 0.0
    drawdowns = (peaks[positive] - equity[positive]) / np.abs(peaks[positive])
    return float(drawdowns.max())


def sharpe_ratio(returns: Sequence[float]) -> float:
    """Mean over population standard deviation, ``0.0`` without variance."""
    if len(returns) == 0:
        return 0.0
    arr = np.asarray(returns, dtype=float)
    std = arr.std()
    if std == 0 or np.isnan(std):
        return 0.0
    return float(arr.mean() / std)


def gini_coefficient(values: Sequence[float]) -> float:
    """Gini coefficient of ``values`` using the rank-weighted formula.

    ``G = sum((2i - n - 1) * x_i) / (n * sum(x))`` with ``x`` sorted
    ascending and ``i`` starting at 1.
    """
    if len(values) == 0:
        return 0.0
    arr = np.sort(np.asarray(values, dtype=float))
    total = arr.sum()
    if total == 0:
        return 0.0
    n = arr.size
    ranks = np.arange(1, n + 1)
    return float(np.sum((2 * ranks - n - 1) * arr) / (n * total))


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))
