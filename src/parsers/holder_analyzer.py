"""Top-holder ranking and supply concentration.

Ranks individual token accounts (not owners) across every token program.
Ties between equal balances keep no particular order.
"""

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from loguru import logger

from src.parsers.errors import ValidationError
from src.parsers.upstream.models import TokenAccount
from src.parsers.upstream.reader import ChainReader

MAX_LIMIT = 100
HUNDRED = Decimal(100)


@dataclass
class HolderEntry:
    rank: int  # 1-based
    owner: str
    amount: float
    pct_of_supply: float


@dataclass
class HolderSnapshot:
    """Ranked holders plus the totals used for normalization."""

    mint: str
    holders: list[HolderEntry] = field(default_factory=list)
    total_accounts: int = 0  # positive-balance accounts
    ui_supply: float = 0.0
    concentration_top1_pct: float = 0.0
    concentration_top10_pct: float = 0.0


def pct_of(amount: Decimal, supply: Decimal) -> Decimal:
    """Share of supply in percent, clamped to [0, 100]; 0 when supply is 0."""
    if supply <= 0:
        return Decimal(0)
    return min(max(amount / supply * HUNDRED, Decimal(0)), HUNDRED)


def rank_holders(
    mint: str,
    accounts: Iterable[TokenAccount],
    ui_supply: Decimal,
    limit: int,
) -> HolderSnapshot:
    positive = [a for a in accounts if a.amount > 0]
    positive.sort(key=lambda a: a.ui_amount, reverse=True)
    top = positive[:limit]

    pcts = [pct_of(a.ui_amount, ui_supply) for a in top]
    holders = [
        HolderEntry(
            rank=i,
            owner=a.owner,
            amount=float(a.ui_amount),
            pct_of_supply=float(pct),
        )
        for i, (a, pct) in enumerate(zip(top, pcts), start=1)
    ]

    top1 = pcts[0] if pcts else Decimal(0)
    top10 = min(sum(pcts[:10], Decimal(0)), HUNDRED)

    return HolderSnapshot(
        mint=mint,
        holders=holders,
        total_accounts=len(positive),
        ui_supply=float(ui_supply),
        concentration_top1_pct=float(top1),
        concentration_top10_pct=float(top10),
    )


async def top_holders(reader: ChainReader, mint: str, limit: int = 20) -> HolderSnapshot:
    if not 1 <= limit <= MAX_LIMIT:
        raise ValidationError(f"limit must be within 1..{MAX_LIMIT}, got {limit}")

    mint_info, accounts = await asyncio.gather(
        reader.get_mint(mint), reader.get_mint_accounts(mint)
    )
    snapshot = rank_holders(mint, accounts, mint_info.ui_supply, limit)

    logger.debug(
        f"[HOLDERS] {mint[:12]}: {snapshot.total_accounts} holders, "
        f"top1={snapshot.concentration_top1_pct:.1f}%, "
        f"top10={snapshot.concentration_top10_pct:.1f}%"
    )
    return snapshot
