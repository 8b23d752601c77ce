"""Operation registry: one named, schema-checked entry point per analytic.

The transport adapter (HTTP, MCP, CLI) only ever calls ``dispatch``.
Arguments are validated against the operation's record before anything
touches the upstream.
"""

from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass, is_dataclass
from typing import Any

from loguru import logger
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from config.settings import Settings
from src.parsers import activity, holder_analyzer, liquidity_analyzer, mint_inspector, reserve_oracle
from src.parsers.errors import ValidationError
from src.parsers.risk_scorer import ScoreInputs, ScoreThresholds, compute_score
from src.parsers.upstream.reader import ChainReader
from src.tools import schemas


@dataclass
class ToolContext:
    """Request-independent collaborators and configured defaults."""

    reader: ChainReader
    quote_mints: frozenset[str]
    quote_decimals: int
    activity_quote_mint: str
    lp_locker_owners: frozenset[str]
    dev_large_transfer_sol: float
    revival_multiplier: float

    @classmethod
    def from_settings(cls, reader: ChainReader, cfg: Settings) -> "ToolContext":
        return cls(
            reader=reader,
            quote_mints=cfg.quote_mint_set,
            quote_decimals=cfg.quote_decimals,
            activity_quote_mint=cfg.activity_quote_mint,
            lp_locker_owners=cfg.lp_locker_set,
            dev_large_transfer_sol=cfg.dev_large_transfer_sol,
            revival_multiplier=cfg.revival_multiplier,
        )


Handler = Callable[[Any, ToolContext], Awaitable[Any]]


@dataclass(frozen=True)
class Tool:
    name: str
    args_model: type[BaseModel]
    handler: Handler
    description: str


TOOLS: dict[str, Tool] = {}


def tool(name: str, args_model: type[BaseModel], description: str) -> Callable[[Handler], Handler]:
    def register(handler: Handler) -> Handler:
        TOOLS[name] = Tool(name=name, args_model=args_model, handler=handler, description=description)
        return handler

    return register


def to_json(result: Any) -> Any:
    if is_dataclass(result) and not isinstance(result, type):
        return asdict(result)
    if isinstance(result, list):
        return [to_json(item) for item in result]
    return result


async def dispatch(name: str, raw_args: dict[str, Any] | None, ctx: ToolContext) -> Any:
    """Validate ``raw_args`` for operation ``name`` and run it."""
    entry = TOOLS.get(name)
    if entry is None:
        raise ValidationError(f"Unknown operation: {name}")
    try:
        args = entry.args_model.model_validate(raw_args or {})
    except SchemaError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'args'}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(f"Invalid arguments for {name}: {details}") from e

    logger.debug(f"[TOOLS] {name}")
    return to_json(await entry.handler(args, ctx))


# --- chain state ---


@tool("token.supply", schemas.MintArgs, "Raw and UI total supply of a mint")
async def _token_supply(args: schemas.MintArgs, ctx: ToolContext) -> Any:
    return await mint_inspector.token_supply(ctx.reader, args.mint)


@tool("mint.authorities", schemas.MintArgs, "Mint and freeze authority of a token")
async def _mint_authorities(args: schemas.MintArgs, ctx: ToolContext) -> Any:
    info = await mint_inspector.mint_authorities(ctx.reader, args.mint)
    return {
        **asdict(info),
        "mint_authority_active": info.mint_authority_active,
        "freeze_authority_active": info.freeze_authority_active,
    }


# --- pricing ---


@tool("price.fdv", schemas.PriceArgs, "Price and FDV from pool reserves")
async def _price_fdv(args: schemas.PriceArgs, ctx: ToolContext) -> Any:
    return await reserve_oracle.price_and_fdv(
        ctx.reader,
        args.mint,
        args.reserve_x,
        args.reserve_y,
        quote_mints=ctx.quote_mints,
        quote_decimals=ctx.quote_decimals,
    )


@tool("tvl.total", schemas.TvlArgs, "TVL across pools (quote side doubled)")
async def _tvl_total(args: schemas.TvlArgs, ctx: ToolContext) -> Any:
    return await reserve_oracle.tvl_total(
        ctx.reader,
        [(p.reserve_x, p.reserve_y) for p in args.pools],
        quote_mints=ctx.quote_mints,
        quote_decimals=ctx.quote_decimals,
    )


@tool("fdv.market_cap", schemas.FdvMcArgs, "FDV to circulating market cap ratio")
async def _fdv_market_cap(args: schemas.FdvMcArgs, ctx: ToolContext) -> Any:
    return await reserve_oracle.fdv_to_market_cap(
        ctx.reader,
        args.mint,
        args.reserve_x,
        args.reserve_y,
        non_circulating_owners=args.non_circulating_owners,
        quote_mints=ctx.quote_mints,
        quote_decimals=ctx.quote_decimals,
    )


# --- holders & liquidity ---


@tool("holders.top", schemas.TopHoldersArgs, "Top holders and supply concentration")
async def _top_holders(args: schemas.TopHoldersArgs, ctx: ToolContext) -> Any:
    return await holder_analyzer.top_holders(ctx.reader, args.mint, args.limit)


@tool("lp.providers", schemas.LPProvidersArgs, "Unique LP providers for an LP mint")
async def _lp_providers(args: schemas.LPProvidersArgs, ctx: ToolContext) -> Any:
    return await liquidity_analyzer.lp_providers_count(
        ctx.reader, args.lp_mint, args.exclude_owners
    )


@tool("lp.locked", schemas.LPLockedArgs, "Share of LP supply locked or burned")
async def _lp_locked(args: schemas.LPLockedArgs, ctx: ToolContext) -> Any:
    lockers = args.locker_owners if args.locker_owners is not None else ctx.lp_locker_owners
    return await liquidity_analyzer.lp_locked_percent(ctx.reader, args.lp_mint, lockers)


# --- activity ---


@tool("activity.windows", schemas.ActivityWindowsArgs, "Nested-window tx/volume/actor counts")
async def _activity_windows(args: schemas.ActivityWindowsArgs, ctx: ToolContext) -> Any:
    return await activity.activity_windows(
        ctx.reader, args.addresses, args.windows, quote_mint=ctx.activity_quote_mint
    )


@tool("token.age", schemas.TokenAgeArgs, "Earliest activity seen for an address")
async def _token_age(args: schemas.TokenAgeArgs, ctx: ToolContext) -> Any:
    return await activity.token_age(ctx.reader, args.address)


@tool("fees.paid", schemas.SinceArgs, "Network fees paid over a trailing duration")
async def _fees_paid(args: schemas.SinceArgs, ctx: ToolContext) -> Any:
    return await activity.fees_paid(ctx.reader, args.addresses, args.since_minutes)


@tool("traders.volume", schemas.SinceArgs, "Unique traders, trades and quote volume")
async def _traders_volume(args: schemas.SinceArgs, ctx: ToolContext) -> Any:
    return await activity.traders_trades_volume(
        ctx.reader, args.addresses, args.since_minutes, quote_mint=ctx.activity_quote_mint
    )


@tool("vip.presence", schemas.VipPresenceArgs, "VIP wallet transfer legs in the last day")
async def _vip_presence(args: schemas.VipPresenceArgs, ctx: ToolContext) -> Any:
    return await activity.vip_presence(ctx.reader, args.vip_addresses, args.addresses_to_scan)


@tool("dev.behavior", schemas.DevBehaviorArgs, "LP moves and large SOL transfers by devs")
async def _dev_behavior(args: schemas.DevBehaviorArgs, ctx: ToolContext) -> Any:
    return await activity.dev_behavior(
        ctx.reader,
        args.dev_addresses,
        args.addresses_to_scan,
        large_sol_threshold=args.large_sol_threshold or ctx.dev_large_transfer_sol,
        lp_mints=args.lp_mints,
        since_minutes=args.since_minutes,
    )


@tool("revival.detect", schemas.RevivalArgs, "Recent-day volume surge per pool")
async def _revival(args: schemas.RevivalArgs, ctx: ToolContext) -> Any:
    return await activity.revival_detector(
        ctx.reader,
        args.pool_addresses,
        quote_mint=ctx.activity_quote_mint,
        multiplier=args.multiplier or ctx.revival_multiplier,
    )


@tool("first_wave.buyers", schemas.FirstWaveArgs, "Largest early recipients from a pool")
async def _first_wave(args: schemas.FirstWaveArgs, ctx: ToolContext) -> Any:
    return await activity.first_wave_buyers(
        ctx.reader,
        args.pool_address,
        args.minutes,
        args.vip_list,
        mint=args.mint,
        quote_mints=ctx.quote_mints,
        limit=args.limit,
    )


# --- scoring ---


@tool("score.compute", schemas.ScoreArgs, "Weighted score with reasons for unmet criteria")
async def _score(args: schemas.ScoreArgs, ctx: ToolContext) -> Any:
    thresholds = (
        ScoreThresholds(**args.thresholds.model_dump()) if args.thresholds else ScoreThresholds()
    )
    return compute_score(ScoreInputs(**args.metrics.model_dump()), thresholds, args.weights)
