"""Gas estimation heuristic.

This is a deterministic placeholder, not an analysis of the target
contract. The discount depends only on how many function signatures were
submitted:

    functions > 10  → 25 %
    functions > 5   → 15 %
    otherwise       → 10 %

and the estimate is ``original - floor(original * factor / 100)``.
"""

from __future__ import annotations

HIGH_TIER_THRESHOLD = 10
MID_TIER_THRESHOLD = 5

HIGH_TIER_FACTOR = 25
MID_TIER_FACTOR = 15
BASE_FACTOR = 10


def estimation_factor(function_count: int) -> int:
    """Return the percentage discount applied for ``function_count`` functions."""
    if function_count > HIGH_TIER_THRESHOLD:
        return HIGH_TIER_FACTOR
    if function_count > MID_TIER_THRESHOLD:
        return MID_TIER_FACTOR
    return BASE_FACTOR


def estimate(original_gas: int, function_count: int) -> int:
    """Estimate the optimized gas figure for a contract.

    Args:
        original_gas: Measured gas before optimization (positive).
        function_count: Number of analysed function signatures (positive).

    Returns:
        The estimated gas after optimization.
    """
    factor = estimation_factor(function_count)
    return original_gas - (original_gas * factor) // 100
