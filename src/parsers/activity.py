"""Activity aggregation over one page of history per address.

Every read is bounded to a single most-recent-first page per address
(``ChainReader.page_limit``). Older history is never followed, so counts
are lower bounds for busy addresses; reports set ``truncated`` when any
page came back full.

Windows are nested: a transaction aged ``d`` minutes counts toward every
window ``w >= d``, which keeps counts and volumes monotone in ``w``.
"""

import asyncio
import time
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from loguru import logger

from src.parsers.errors import ValidationError
from src.parsers.upstream.models import HistoryTransaction
from src.parsers.upstream.reader import ChainReader

MINUTES_PER_DAY = 1440
LAMPORTS_PER_SOL = 1_000_000_000
REVIVAL_LOOKBACK_DAYS = 3

LP_ADD_TYPES = ("ADD_LIQUIDITY", "DEPOSIT", "CREATE_POOL")
LP_REMOVE_TYPES = ("WITHDRAW_LIQUIDITY", "REMOVE_LIQUIDITY", "WITHDRAW")


@dataclass
class ActivityWindow:
    minutes: int
    tx_count: int = 0
    volume: float = 0.0  # quote asset, ui units
    unique_actors: int = 0


@dataclass
class ActivityReport:
    addresses: list[str]
    windows: list[ActivityWindow]
    transactions_seen: int
    truncated: bool


@dataclass
class TokenAge:
    address: str
    first_seen: int | None  # unix seconds; None = no history
    age_minutes: float | None
    truncated: bool


@dataclass
class FeesPaid:
    lamports: int
    sol: float
    tx_count: int
    since_minutes: int
    truncated: bool


@dataclass
class TradeActivity:
    traders: int
    trades: int
    volume: float
    since_minutes: int
    truncated: bool


@dataclass
class VipPresence:
    hits: dict[str, int]
    total_hits: int
    vips_present: int
    truncated: bool


@dataclass
class DevEvent:
    signature: str
    timestamp: int
    address: str  # monitored address involved
    kind: str  # lp_add | lp_remove | lp_transfer | large_sol_transfer
    amount: float | None = None
    mint: str | None = None


@dataclass
class DevBehaviorReport:
    events: list[DevEvent] = field(default_factory=list)
    truncated: bool = False


@dataclass
class RevivalSignal:
    """Most recent day's volume against the prior daily average."""

    pool: str
    volume_24h: float
    volume_prior_72h: float
    baseline_daily: float
    ratio: float | None  # None when the prior window had no volume
    is_revival: bool
    truncated: bool


@dataclass
class WaveBuyer:
    rank: int
    address: str
    amount: float
    is_vip: bool


@dataclass
class FirstWave:
    pool: str
    minutes: int
    buyers: list[WaveBuyer]
    vip_count: int
    truncated: bool


def _now(now: float | None) -> float:
    return time.time() if now is None else now


def _require_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")


def tx_age_minutes(tx: HistoryTransaction, now: float) -> float:
    return max((now - tx.timestamp) / 60, 0.0)


def quote_volume(tx: HistoryTransaction, quote_mint: str) -> Decimal:
    return sum(
        (abs(leg.token_amount) for leg in tx.token_transfers if leg.mint == quote_mint),
        Decimal(0),
    )


async def fetch_histories(
    reader: ChainReader, addresses: Iterable[str]
) -> tuple[list[HistoryTransaction], bool]:
    """One page per address, fetched concurrently, de-duplicated by signature.

    Returns the merged transactions and whether any page came back full.
    """
    unique = list(dict.fromkeys(addresses))
    pages = await asyncio.gather(*[reader.get_history(a) for a in unique])

    truncated = any(len(page) >= reader.page_limit for page in pages)
    seen: set[str] = set()
    merged: list[HistoryTransaction] = []
    for page in pages:
        for tx in page:
            if tx.signature in seen:
                continue
            seen.add(tx.signature)
            merged.append(tx)
    return merged, truncated


def aggregate_windows(
    transactions: Iterable[HistoryTransaction],
    window_minutes: Iterable[int],
    quote_mint: str,
    now: float,
) -> list[ActivityWindow]:
    """Classify each transaction into every window at least as long as its age."""
    windows = sorted(set(window_minutes))
    counts = dict.fromkeys(windows, 0)
    volumes = {w: Decimal(0) for w in windows}
    actors: dict[int, set[str]] = {w: set() for w in windows}

    for tx in transactions:
        age = tx_age_minutes(tx, now)
        volume = quote_volume(tx, quote_mint)
        parties = tx.counterparties()
        for w in windows:
            if age <= w:
                counts[w] += 1
                volumes[w] += volume
                actors[w] |= parties

    return [
        ActivityWindow(
            minutes=w,
            tx_count=counts[w],
            volume=float(volumes[w]),
            unique_actors=len(actors[w]),
        )
        for w in windows
    ]


async def activity_windows(
    reader: ChainReader,
    addresses: list[str],
    window_minutes: list[int],
    *,
    quote_mint: str,
    now: float | None = None,
) -> ActivityReport:
    if not window_minutes:
        raise ValidationError("at least one window is required")
    for w in window_minutes:
        _require_positive("window", w)

    ts = _now(now)
    txs, truncated = await fetch_histories(reader, addresses)
    windows = aggregate_windows(txs, window_minutes, quote_mint, ts)

    if truncated:
        logger.debug(f"[ACTIVITY] history page full for some of {len(addresses)} addresses")

    return ActivityReport(
        addresses=list(addresses),
        windows=windows,
        transactions_seen=len(txs),
        truncated=truncated,
    )


async def token_age(
    reader: ChainReader, address: str, *, now: float | None = None
) -> TokenAge:
    """Earliest timestamp in the fetched page. A full page means the
    address may be older than reported."""
    ts = _now(now)
    txs, truncated = await fetch_histories(reader, [address])
    stamps = [tx.timestamp for tx in txs if tx.timestamp > 0]
    if not stamps:
        return TokenAge(address=address, first_seen=None, age_minutes=None, truncated=truncated)

    first = min(stamps)
    return TokenAge(
        address=address,
        first_seen=first,
        age_minutes=round(max((ts - first) / 60, 0.0), 2),
        truncated=truncated,
    )


async def fees_paid(
    reader: ChainReader,
    addresses: list[str],
    since_minutes: int,
    *,
    now: float | None = None,
) -> FeesPaid:
    _require_positive("since_minutes", since_minutes)
    ts = _now(now)
    txs, truncated = await fetch_histories(reader, addresses)

    recent = [tx for tx in txs if tx_age_minutes(tx, ts) <= since_minutes]
    lamports = sum(tx.fee for tx in recent)
    return FeesPaid(
        lamports=lamports,
        sol=lamports / LAMPORTS_PER_SOL,
        tx_count=len(recent),
        since_minutes=since_minutes,
        truncated=truncated,
    )


async def traders_trades_volume(
    reader: ChainReader,
    addresses: list[str],
    since_minutes: int,
    *,
    quote_mint: str,
    now: float | None = None,
) -> TradeActivity:
    _require_positive("since_minutes", since_minutes)
    ts = _now(now)
    txs, truncated = await fetch_histories(reader, addresses)
    window = aggregate_windows(txs, [since_minutes], quote_mint, ts)[0]
    return TradeActivity(
        traders=window.unique_actors,
        trades=window.tx_count,
        volume=window.volume,
        since_minutes=since_minutes,
        truncated=truncated,
    )


async def vip_presence(
    reader: ChainReader,
    vip_addresses: list[str],
    addresses_to_scan: list[str],
    *,
    window_minutes: int = MINUTES_PER_DAY,
    now: float | None = None,
) -> VipPresence:
    """Count transfer legs each VIP appears on (either side) in the window."""
    vips = set(vip_addresses)
    ts = _now(now)
    txs, truncated = await fetch_histories(reader, addresses_to_scan)

    hits: dict[str, int] = dict.fromkeys(vip_addresses, 0)
    for tx in txs:
        if tx_age_minutes(tx, ts) > window_minutes:
            continue
        legs = [
            (leg.from_user_account, leg.to_user_account)
            for leg in tx.token_transfers
            if leg.token_amount != 0
        ] + [
            (leg.from_user_account, leg.to_user_account)
            for leg in tx.native_transfers
            if leg.amount != 0
        ]
        for sender, recipient in legs:
            for party in {sender, recipient} & vips:
                hits[party] += 1

    present = sum(1 for n in hits.values() if n > 0)
    if present:
        logger.info(f"[ACTIVITY] {present}/{len(vips)} VIP wallets active in last {window_minutes}m")

    return VipPresence(
        hits=hits,
        total_hits=sum(hits.values()),
        vips_present=present,
        truncated=truncated,
    )


def _lp_kind(tx_type: str) -> str | None:
    upper = tx_type.upper()
    if any(t in upper for t in LP_REMOVE_TYPES):
        return "lp_remove"
    if any(t in upper for t in LP_ADD_TYPES):
        return "lp_add"
    return None


def _involved(tx: HistoryTransaction, devs: set[str], *candidates: str) -> str | None:
    """First monitored address among the leg's sides, falling back to the fee payer."""
    for addr in candidates:
        if addr in devs:
            return addr
    if tx.fee_payer in devs:
        return tx.fee_payer
    return None


async def dev_behavior(
    reader: ChainReader,
    dev_addresses: list[str],
    addresses_to_scan: list[str] | None = None,
    *,
    large_sol_threshold: float,
    lp_mints: Iterable[str] = (),
    since_minutes: int | None = None,
    now: float | None = None,
) -> DevBehaviorReport:
    """Flag LP activity and large SOL moves by monitored addresses.

    A liquidity-typed transaction yields one event; otherwise each LP-mint
    leg and each SOL leg above the threshold yields its own event.
    """
    devs = set(dev_addresses)
    lp_set = set(lp_mints)
    threshold = int(large_sol_threshold * LAMPORTS_PER_SOL)
    ts = _now(now)
    txs, truncated = await fetch_histories(reader, addresses_to_scan or dev_addresses)

    report = DevBehaviorReport(truncated=truncated)
    for tx in txs:
        if since_minutes is not None and tx_age_minutes(tx, ts) > since_minutes:
            continue

        kind = _lp_kind(tx.type)
        if kind is not None:
            actor = _involved(
                tx,
                devs,
                *(p for leg in tx.token_transfers for p in (leg.from_user_account, leg.to_user_account)),
            )
            if actor is not None:
                lp_leg = next((leg for leg in tx.token_transfers if leg.mint in lp_set), None)
                report.events.append(
                    DevEvent(
                        signature=tx.signature,
                        timestamp=tx.timestamp,
                        address=actor,
                        kind=kind,
                        amount=float(lp_leg.token_amount) if lp_leg else None,
                        mint=lp_leg.mint if lp_leg else None,
                    )
                )
        else:
            for leg in tx.token_transfers:
                if leg.mint not in lp_set:
                    continue
                actor = _involved(tx, devs, leg.from_user_account, leg.to_user_account)
                if actor is not None:
                    report.events.append(
                        DevEvent(
                            signature=tx.signature,
                            timestamp=tx.timestamp,
                            address=actor,
                            kind="lp_transfer",
                            amount=float(leg.token_amount),
                            mint=leg.mint,
                        )
                    )

        for leg in tx.native_transfers:
            if leg.amount <= threshold:
                continue
            actor = _involved(tx, devs, leg.from_user_account, leg.to_user_account)
            if actor is not None:
                report.events.append(
                    DevEvent(
                        signature=tx.signature,
                        timestamp=tx.timestamp,
                        address=actor,
                        kind="large_sol_transfer",
                        amount=leg.amount / LAMPORTS_PER_SOL,
                    )
                )

    if report.events:
        logger.info(
            f"[ACTIVITY] {len(report.events)} dev events across {len(devs)} monitored addresses"
        )
    return report


async def _revival_for_pool(
    reader: ChainReader,
    pool: str,
    quote_mint: str,
    multiplier: float,
    now: float,
) -> RevivalSignal:
    txs, truncated = await fetch_histories(reader, [pool])
    day = MINUTES_PER_DAY
    lookback = day * (1 + REVIVAL_LOOKBACK_DAYS)

    recent = Decimal(0)
    prior = Decimal(0)
    oldest_age = 0.0
    for tx in txs:
        age = tx_age_minutes(tx, now)
        oldest_age = max(oldest_age, age)
        if age <= day:
            recent += quote_volume(tx, quote_mint)
        elif age <= lookback:
            prior += quote_volume(tx, quote_mint)

    baseline = prior / REVIVAL_LOOKBACK_DAYS
    if baseline > 0:
        ratio: float | None = float(recent / baseline)
        is_revival = ratio > multiplier
    else:
        ratio = None
        # an empty prior window only means dormancy if the page reaches back past it
        covers_lookback = not truncated or oldest_age > lookback
        is_revival = recent > 0 and covers_lookback

    if is_revival:
        logger.info(
            f"[ACTIVITY] revival on {pool[:12]}: 24h={float(recent):,.0f}, "
            f"prior daily avg={float(baseline):,.0f}"
        )

    return RevivalSignal(
        pool=pool,
        volume_24h=float(recent),
        volume_prior_72h=float(prior),
        baseline_daily=float(baseline),
        ratio=ratio,
        is_revival=is_revival,
        truncated=truncated,
    )


async def revival_detector(
    reader: ChainReader,
    pool_addresses: list[str],
    *,
    quote_mint: str,
    multiplier: float = 3.0,
    now: float | None = None,
) -> list[RevivalSignal]:
    _require_positive("multiplier", multiplier)
    ts = _now(now)
    return list(
        await asyncio.gather(
            *[
                _revival_for_pool(reader, pool, quote_mint, multiplier, ts)
                for pool in dict.fromkeys(pool_addresses)
            ]
        )
    )


async def first_wave_buyers(
    reader: ChainReader,
    pool_address: str,
    minutes: int,
    vip_list: Iterable[str] = (),
    *,
    mint: str | None = None,
    quote_mints: Iterable[str] = (),
    limit: int = 20,
    now: float | None = None,
) -> FirstWave:
    """Rank recipients of transfers out of the pool in the trailing ``minutes``.

    Only legs sent by ``pool_address`` count. Without a ``mint`` filter,
    legs in ``quote_mints`` are sale proceeds and are skipped.
    """
    _require_positive("minutes", minutes)
    _require_positive("limit", limit)
    vips = set(vip_list)
    skip_mints: set[str] = set() if mint is not None else set(quote_mints)
    ts = _now(now)
    txs, truncated = await fetch_histories(reader, [pool_address])

    received: dict[str, Decimal] = defaultdict(Decimal)
    for tx in txs:
        if tx_age_minutes(tx, ts) > minutes:
            continue
        for leg in tx.token_transfers:
            if leg.from_user_account != pool_address:
                continue
            if mint is not None and leg.mint != mint:
                continue
            if leg.mint in skip_mints:
                continue
            dst = leg.to_user_account
            if not dst or dst == pool_address:
                continue
            received[dst] += abs(leg.token_amount)

    ranked = sorted(received.items(), key=lambda kv: kv[1], reverse=True)[:limit]
    buyers = [
        WaveBuyer(rank=i, address=addr, amount=float(amount), is_vip=addr in vips)
        for i, (addr, amount) in enumerate(ranked, start=1)
    ]
    return FirstWave(
        pool=pool_address,
        minutes=minutes,
        buyers=buyers,
        vip_count=sum(1 for b in buyers if b.is_vip),
        truncated=truncated,
    )
