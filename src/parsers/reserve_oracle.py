"""Reserve oracle: price, FDV and TVL from pool reserve balances.

Price is the plain reserve ratio ``quote_ui / base_ui``. This is exact only
for constant-product pools at rest; concentrated or weighted pools are not
corrected for. TVL doubles the quote side, assuming both sides of a pool
hold equal value.
"""

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from loguru import logger

from src.parsers.errors import AmbiguousReserveError, InvalidPoolError, ValidationError
from src.parsers.upstream.models import TokenAccount
from src.parsers.upstream.reader import ChainReader

STABLE_DECIMALS = 6


@dataclass
class PriceQuote:
    token_mint: str
    quote_mint: str
    price_usd: float
    fdv_usd: float
    total_supply: float
    quote_reserve: float
    base_reserve: float


@dataclass
class PoolTvl:
    reserve_x: str
    reserve_y: str
    quote_mint: str
    quote_reserve: float
    tvl_usd: float


@dataclass
class TvlReport:
    tvl_usd: float
    pools: list[PoolTvl] = field(default_factory=list)


@dataclass
class FdvMcReport:
    """FDV against circulating market cap."""

    token_mint: str
    price_usd: float
    fdv_usd: float
    market_cap_usd: float
    circulating_supply: float
    total_supply: float
    ratio: float | None  # None when market cap is zero


def classify_reserves(
    x: TokenAccount,
    y: TokenAccount,
    quote_mints: Iterable[str],
    *,
    quote_decimals: int = STABLE_DECIMALS,
    token_mint: str | None = None,
) -> tuple[TokenAccount, TokenAccount]:
    """Split a reserve pair into ``(quote, base)``.

    Exact match against the reference mints wins. Otherwise the side whose
    decimals differ from the other's and equal ``quote_decimals`` is quote.
    Anything else raises AmbiguousReserveError.
    """
    quotes = set(quote_mints)
    x_quote, y_quote = x.mint in quotes, y.mint in quotes

    if x_quote and not y_quote:
        return x, y
    if y_quote and not x_quote:
        return y, x
    if x_quote and y_quote:
        # Stable/stable pool: the token being priced is the base.
        if token_mint == x.mint:
            return y, x
        if token_mint == y.mint:
            return x, y
        raise AmbiguousReserveError(
            f"Both reserves are reference assets ({x.mint[:12]}, {y.mint[:12]})"
        )

    if x.decimals != y.decimals:
        if x.decimals == quote_decimals:
            return x, y
        if y.decimals == quote_decimals:
            return y, x
    raise AmbiguousReserveError(
        f"Cannot tell quote side: mints {x.mint[:12]}/{y.mint[:12]}, "
        f"decimals {x.decimals}/{y.decimals}"
    )


async def _read_pair(
    reader: ChainReader, reserve_x: str, reserve_y: str
) -> tuple[TokenAccount, TokenAccount]:
    x, y = await asyncio.gather(
        reader.get_token_account(reserve_x), reader.get_token_account(reserve_y)
    )
    return x, y


@dataclass
class _Reserves:
    quote: TokenAccount
    base: TokenAccount
    price: Decimal
    supply: Decimal


async def _price_reserves(
    reader: ChainReader,
    token_mint: str,
    reserve_x: str,
    reserve_y: str,
    quote_mints: Iterable[str],
    quote_decimals: int,
) -> _Reserves:
    x, y = await _read_pair(reader, reserve_x, reserve_y)
    quote, base = classify_reserves(
        x, y, quote_mints, quote_decimals=quote_decimals, token_mint=token_mint
    )
    if base.mint != token_mint:
        raise ValidationError(
            f"Reserves {reserve_x[:12]}/{reserve_y[:12]} do not price {token_mint[:12]}"
        )

    quote_ui, base_ui = quote.ui_amount, base.ui_amount
    if quote_ui <= 0 or base_ui <= 0:
        raise InvalidPoolError(
            f"Empty reserve: quote={quote_ui} base={base_ui} ({reserve_x[:12]}/{reserve_y[:12]})"
        )

    mint = await reader.get_mint(base.mint)
    return _Reserves(quote=quote, base=base, price=quote_ui / base_ui, supply=mint.ui_supply)


async def price_and_fdv(
    reader: ChainReader,
    token_mint: str,
    reserve_x: str,
    reserve_y: str,
    *,
    quote_mints: Iterable[str],
    quote_decimals: int = STABLE_DECIMALS,
) -> PriceQuote:
    r = await _price_reserves(
        reader, token_mint, reserve_x, reserve_y, quote_mints, quote_decimals
    )
    fdv = r.price * r.supply

    logger.debug(f"[ORACLE] {token_mint[:12]}: price=${float(r.price):.8g}, fdv=${float(fdv):,.0f}")

    return PriceQuote(
        token_mint=token_mint,
        quote_mint=r.quote.mint,
        price_usd=float(r.price),
        fdv_usd=float(fdv),
        total_supply=float(r.supply),
        quote_reserve=float(r.quote.ui_amount),
        base_reserve=float(r.base.ui_amount),
    )


async def tvl_total(
    reader: ChainReader,
    pools: list[tuple[str, str]],
    *,
    quote_mints: Iterable[str],
    quote_decimals: int = STABLE_DECIMALS,
) -> TvlReport:
    """Sum ``quote_ui * 2`` over every pool."""
    quotes = frozenset(quote_mints)
    pairs = await asyncio.gather(*[_read_pair(reader, x, y) for x, y in pools])

    report = TvlReport(tvl_usd=0.0)
    total = Decimal(0)
    for (reserve_x, reserve_y), (x, y) in zip(pools, pairs):
        quote, _base = classify_reserves(x, y, quotes, quote_decimals=quote_decimals)
        pool_tvl = quote.ui_amount * 2
        total += pool_tvl
        report.pools.append(
            PoolTvl(
                reserve_x=reserve_x,
                reserve_y=reserve_y,
                quote_mint=quote.mint,
                quote_reserve=float(quote.ui_amount),
                tvl_usd=float(pool_tvl),
            )
        )
    report.tvl_usd = float(total)
    return report


async def fdv_to_market_cap(
    reader: ChainReader,
    token_mint: str,
    reserve_x: str,
    reserve_y: str,
    *,
    non_circulating_owners: Iterable[str] = (),
    quote_mints: Iterable[str],
    quote_decimals: int = STABLE_DECIMALS,
) -> FdvMcReport:
    """Compare FDV with market cap over circulating supply.

    Circulating supply excludes balances held by ``non_circulating_owners``
    (treasury, vesting, burn).
    """
    excluded = set(non_circulating_owners)
    reserves_task = _price_reserves(
        reader, token_mint, reserve_x, reserve_y, quote_mints, quote_decimals
    )
    if excluded:
        r, accounts = await asyncio.gather(reserves_task, reader.get_mint_accounts(token_mint))
    else:
        r, accounts = await reserves_task, []

    locked = sum(
        (a.ui_amount for a in accounts if a.owner in excluded or a.address in excluded),
        Decimal(0),
    )
    circulating = max(r.supply - locked, Decimal(0))
    fdv = r.price * r.supply
    market_cap = r.price * circulating
    ratio = float(fdv / market_cap) if market_cap > 0 else None

    return FdvMcReport(
        token_mint=token_mint,
        price_usd=float(r.price),
        fdv_usd=float(fdv),
        market_cap_usd=float(market_cap),
        circulating_supply=float(circulating),
        total_supply=float(r.supply),
        ratio=ratio,
    )
