"""
Display helpers shared by the chat adapters, the tool handlers and the API.

On-chain amounts arrive as decimal strings of raw integer units; they are
handled with Python ints throughout so no precision is lost.
"""

import math
from typing import Optional, Union

from ..types.strategy import Strategy

MAX_FRACTION_DIGITS = 6

IntLike = Union[int, str]


def format_balance(raw: IntLike, decimals: int = 18) -> str:
    """Scale a raw token amount by ``10**decimals`` for display.

    Trailing zeros of the fraction are dropped and at most six fractional
    digits are kept (truncated, not rounded).

    >>> format_balance("1500000000000000000", 18)
    '1.5'
    """
    amount = int(raw)
    sign = "-" if amount < 0 else ""
    amount = abs(amount)
    if decimals <= 0:
        return f"{sign}{amount}"

    whole, fraction = divmod(amount, 10 ** decimals)
    fraction_str = str(fraction).rjust(decimals, "0").rstrip("0")
    if not fraction_str:
        return f"{sign}{whole}"
    return f"{sign}{whole}.{fraction_str[:MAX_FRACTION_DIGITS]}"


def format_number(raw: IntLike) -> str:
    """Compact large integers: raw below a million, then M and B suffixes."""
    number = int(raw)
    if number < 1_000_000:
        return str(number)
    if number < 1_000_000_000:
        return f"{number / 1_000_000:.2f}M"
    return f"{number / 1_000_000_000:.2f}B"


def supply_basis_points(balance: IntLike, total_supply: IntLike) -> int:
    """Share of supply in hundredths of a percent, integer-floored.

    A zero (or negative) supply yields 0.
    """
    supply = int(total_supply)
    if supply <= 0:
        return 0
    return int(balance) * 10_000 // supply


def format_supply_percentage(balance: IntLike, total_supply: IntLike) -> str:
    """``floor(balance * 10000 / supply) / 100`` with two decimals, e.g. ``1.00``."""
    basis_points = supply_basis_points(balance, total_supply)
    return f"{basis_points // 100}.{basis_points % 100:02d}"


def format_apy(apy: Optional[float]) -> str:
    if apy is None or math.isnan(apy):
        return "N/A"
    return f"{apy * 100:.2f}%"


def format_tvl(tvl_usd: float) -> str:
    """Whole US dollars with thousands separators."""
    rounded = round(tvl_usd)
    if rounded < 0:
        return f"-${abs(rounded):,}"
    return f"${rounded:,}"


def format_fee_percent(fee_bps: int) -> str:
    """Basis points as a percentage without trailing zeros (1000 -> ``10``)."""
    value = fee_bps / 100
    if value == int(value):
        return str(int(value))
    return f"{value:g}"


def format_strategy_info(strategy: Strategy, include_methodology: bool = True) -> str:
    """Multi-line strategy card."""
    lines = [
        f"**{strategy.name}** ({strategy.id})",
        f"APY: {format_apy(strategy.apy)}",
    ]

    split = strategy.apy_split
    if split.base_apy is not None or split.rewards_apy > 0:
        lines.append(f"   - Base APY: {format_apy(split.base_apy)}")
        if split.rewards_apy > 0:
            lines.append(f"   - Rewards APY: {format_apy(split.rewards_apy)}")

    lines.extend([
        f"TVL: {format_tvl(strategy.tvl_usd)}",
        f"Tokens: {', '.join(strategy.token_symbols)}",
        f"Leverage: {strategy.leverage:g}x",
        f"Risk Factor: {strategy.risk_factor:g}",
        "[Audited]" if strategy.is_audited else "[Not Audited]",
    ])
    if strategy.audit_url:
        lines.append(f"Audit Report: {strategy.audit_url}")
    lines.append(f"Status: {strategy.status.value}")

    info = "\n".join(lines)
    if include_methodology and strategy.apy_methodology:
        info += f"\n\n**Methodology:**\n{strategy.apy_methodology}"
    if strategy.curator:
        info += f"\n\n**Curated by:** {strategy.curator.name}"
    return info


def format_strategy_info_short(strategy: Strategy) -> str:
    """One-line strategy summary."""
    audit = "[Audited]" if strategy.is_audited else "[Not Audited]"
    tokens = "/".join(strategy.token_symbols)
    return (
        f"**{strategy.name}** | APY: {format_apy(strategy.apy)} | "
        f"TVL: {format_tvl(strategy.tvl_usd)} | {tokens} {audit}"
    )
