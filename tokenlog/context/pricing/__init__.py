"""
Pricing context: cost estimates and money/number formatting.
"""

from tokenlog.context.pricing.cost_model import (
    calculate_cost,
    calculate_cache_hit_ratio,
    format_cost,
    format_number,
    format_percent,
    TOKENS_PER_MILLION,
)

__all__ = [
    'calculate_cost',
    'calculate_cache_hit_ratio',
    'format_cost',
    'format_number',
    'format_percent',
    'TOKENS_PER_MILLION',
]
