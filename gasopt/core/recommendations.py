"""Fixed recommendation sets attached to every report."""

from __future__ import annotations

RECOMMENDATION_THRESHOLD = 5

# Larger contracts: storage layout and visibility.
STORAGE_TIER: tuple[str, str, str] = (
    "Pack storage variables to share 32-byte slots",
    "Mark functions only called externally as external instead of public",
    "Replace repeated storage reads with cached memory variables",
)

# Smaller contracts: control flow and low-level tweaks.
CONTROL_FLOW_TIER: tuple[str, str, str] = (
    "Use unchecked blocks for loop counters that cannot overflow",
    "Short-circuit require conditions and replace revert strings with custom errors",
    "Use calldata instead of memory for read-only function arguments",
)


def recommend(function_count: int) -> tuple[str, str, str]:
    """Return the three recommendations for a contract with ``function_count`` functions."""
    if function_count > RECOMMENDATION_THRESHOLD:
        return STORAGE_TIER
    return CONTROL_FLOW_TIER
