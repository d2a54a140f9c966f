"""
Cost Model: token counts -> USD estimate

Flat per-million-token rates (see PricingRates). Only cache *reads* enter the
estimate; cache creation tokens are tracked but not priced here.

Also holds the small display helpers used next to costs (money, counts,
percentages).
"""

from decimal import Decimal, ROUND_HALF_UP

from tokenlog.exceptions import InvalidArgument
from tokenlog.models import CostEstimate, PricingRates, DEFAULT_PRICING

TOKENS_PER_MILLION = 1_000_000


def _check_non_negative(**counts: int) -> None:
    for name, value in counts.items():
        if value < 0:
            raise InvalidArgument(f"{name} must be non-negative, got {value}")


def calculate_cost(input_tokens: int, output_tokens: int, cache_read_tokens: int = 0,
                   rates: PricingRates = DEFAULT_PRICING) -> CostEstimate:
    """
    Estimate the cost of a token mix.

    Args:
        input_tokens: Fresh input tokens
        output_tokens: Output tokens
        cache_read_tokens: Tokens served from the prompt cache
        rates: Rate table, USD per million tokens

    Returns:
        CostEstimate with per-category and total cost

    Raises:
        InvalidArgument: If any count is negative

    Examples:
        >>> calculate_cost(1_000_000, 1_000_000).total_cost
        18.0
    """
    _check_non_negative(input_tokens=input_tokens, output_tokens=output_tokens,
                        cache_read_tokens=cache_read_tokens)

    input_cost = input_tokens / TOKENS_PER_MILLION * rates.input_per_million
    output_cost = output_tokens / TOKENS_PER_MILLION * rates.output_per_million
    cache_read_cost = cache_read_tokens / TOKENS_PER_MILLION * rates.cache_read_per_million

    return CostEstimate(
        input_cost=input_cost,
        output_cost=output_cost,
        cache_read_cost=cache_read_cost,
        total_cost=input_cost + output_cost + cache_read_cost,
    )


def calculate_cache_hit_ratio(input_tokens: int, cache_read_tokens: int) -> float:
    """Share of prompt tokens served from cache; 0.0 when there were none."""
    _check_non_negative(input_tokens=input_tokens, cache_read_tokens=cache_read_tokens)
    if input_tokens + cache_read_tokens == 0:
        return 0.0
    return cache_read_tokens / (input_tokens + cache_read_tokens)


def format_cost(cost: float) -> str:
    """Four decimals below one cent, two otherwise: ``$0.0010``, ``$1.23``."""
    if cost < 0.01:
        return f"${cost:.4f}"
    return f"${cost:.2f}"


def format_number(value: int) -> str:
    """Thousands separators: ``1,000,000``."""
    return f"{value:,}"


def format_percent(ratio: float) -> str:
    """Whole percent, halves rounded up: ``0.125 -> 13%``."""
    percent = (Decimal(str(ratio)) * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
    return f"{percent}%"
