from __future__ import annotations

from typing import List, Optional, Sequence


def moving_average(series: Sequence[float], window: int) -> List[float]:
    """Centered moving average; the window shrinks at the edges."""
    if window < 1:
        raise ValueError("window must be at least 1")
    n = len(series)
    half = window // 2
    result: List[float] = []
    for i in range(n):
        start = max(0, i - half)
        end = min(n, i + half + 1)
        chunk = series[start:end]
        result.append(sum(chunk) / len(chunk))
    return result


def interpolate_gaps(series: Sequence[Optional[float]]) -> List[float]:
    """
    Fill None entries by linear interpolation between the surrounding known
    values. A trailing gap repeats the last known value; a leading gap takes
    the first known value.
    """
    known = [i for i, v in enumerate(series) if v is not None]
    if not known:
        return [0.0] * len(series)

    result: List[float] = [0.0] * len(series)
    first = known[0]
    for i in range(first):
        result[i] = float(series[first])

    for left, right in zip(known, known[1:] + [None]):
        left_val = float(series[left])
        result[left] = left_val
        if right is None:
            for i in range(left + 1, len(series)):
                result[i] = left_val
            continue
        right_val = float(series[right])
        span = right - left
        for i in range(left + 1, right):
            result[i] = left_val + (right_val - left_val) * (i - left) / span
    return result


def seasonal_factors(monthly_values: Sequence[float]) -> List[float]:
    """Each month relative to the annual mean; neutral when not 12 values."""
    if len(monthly_values) != 12:
        return [1.0] * 12
    mean = sum(monthly_values) / 12
    if mean == 0:
        return [1.0] * 12
    return [v / mean for v in monthly_values]


def detect_outliers(series: Sequence[float]) -> List[int]:
    """Indices of values outside the 1.5*IQR fences (rank quartiles, no interpolation)."""
    n = len(series)
    if n <= 4:
        return []
    ordered = sorted(series)
    q1 = ordered[n // 4]
    q3 = ordered[3 * n // 4]
    iqr = q3 - q1
    lower = q1 - 1.5 * iqr
    upper = q3 + 1.5 * iqr
    return [i for i, v in enumerate(series) if v < lower or v > upper]
