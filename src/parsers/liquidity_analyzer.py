"""LP provider count and locked-liquidity share for an LP receipt mint."""

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from loguru import logger

from src.parsers.holder_analyzer import pct_of
from src.parsers.upstream.reader import ChainReader


@dataclass
class LPProviders:
    lp_mint: str
    providers_count: int  # unique owners
    total_lp_held: float
    excluded_owners: list[str] = field(default_factory=list)


@dataclass
class LPLock:
    """Share of LP supply held by lockers or the burn address."""

    lp_mint: str
    locked_amount: float
    total_supply: float
    locked_pct: float
    locker_owners: list[str] = field(default_factory=list)


async def lp_providers_count(
    reader: ChainReader, lp_mint: str, exclude_owners: Iterable[str] = ()
) -> LPProviders:
    excluded = set(exclude_owners)
    accounts = await reader.get_mint_accounts(lp_mint)

    owners: set[str] = set()
    held = Decimal(0)
    for account in accounts:
        if account.amount <= 0 or account.owner in excluded:
            continue
        owners.add(account.owner)
        held += account.ui_amount

    return LPProviders(
        lp_mint=lp_mint,
        providers_count=len(owners),
        total_lp_held=float(held),
        excluded_owners=sorted(excluded),
    )


async def lp_locked_percent(
    reader: ChainReader, lp_mint: str, locker_owners: Iterable[str]
) -> LPLock:
    """Locked LP / total LP supply. Zero supply yields 0, not an error."""
    lockers = set(locker_owners)
    mint, accounts = await asyncio.gather(
        reader.get_mint(lp_mint), reader.get_mint_accounts(lp_mint)
    )

    locked = sum(
        (
            a.ui_amount
            for a in accounts
            if a.amount > 0 and (a.owner in lockers or a.address in lockers)
        ),
        Decimal(0),
    )
    supply = mint.ui_supply
    pct = pct_of(locked, supply)

    if supply > 0 and pct < 50:
        logger.debug(f"[LP] {lp_mint[:12]}: only {float(pct):.1f}% of LP locked")

    return LPLock(
        lp_mint=lp_mint,
        locked_amount=float(locked),
        total_supply=float(supply),
        locked_pct=float(pct),
        locker_owners=sorted(lockers),
    )
