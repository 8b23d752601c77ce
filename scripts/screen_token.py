"""Screen one token end to end and print the score report as JSON.

Runs every analyzer against fresh upstream reads, then feeds the results
into the risk scorer.

Usage:
    python scripts/screen_token.py --mint M --reserve-x X --reserve-y Y \
        [--lp-mint L] [--pool P] [--vip V ...]
"""

import argparse
import asyncio
import json
import sys
from dataclasses import asdict
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from loguru import logger  # noqa: E402

from config.settings import settings  # noqa: E402
from src.main import build_client  # noqa: E402
from src.parsers.activity import (  # noqa: E402
    MINUTES_PER_DAY,
    revival_detector,
    token_age,
    traders_trades_volume,
    vip_presence,
)
from src.parsers.errors import ScreenerError  # noqa: E402
from src.parsers.holder_analyzer import top_holders  # noqa: E402
from src.parsers.liquidity_analyzer import lp_locked_percent, lp_providers_count  # noqa: E402
from src.parsers.reserve_oracle import fdv_to_market_cap  # noqa: E402
from src.parsers.risk_scorer import ScoreInputs, compute_score  # noqa: E402
from src.parsers.upstream.reader import ChainReader  # noqa: E402
from src.utils.logger import setup_logger  # noqa: E402


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Screen a token for liquidity/ownership risk")
    parser.add_argument("--mint", required=True, help="Token mint address")
    parser.add_argument("--reserve-x", required=True, help="Pool reserve token account")
    parser.add_argument("--reserve-y", required=True, help="Pool reserve token account")
    parser.add_argument("--lp-mint", default="", help="LP receipt mint (optional)")
    parser.add_argument("--pool", default="", help="Pool address for activity scans")
    parser.add_argument("--vip", action="append", default=[], help="VIP wallet (repeatable)")
    return parser.parse_args(argv)


async def screen(args: argparse.Namespace) -> dict:
    client = build_client(settings)
    reader = ChainReader(client, settings.upstream_history_url, page_limit=settings.history_page_limit)
    activity_target = args.pool or args.mint
    quote_mint = settings.activity_quote_mint

    try:
        fdv_mc, holders, age, trades, revival = await asyncio.gather(
            fdv_to_market_cap(
                reader,
                args.mint,
                args.reserve_x,
                args.reserve_y,
                quote_mints=settings.quote_mint_set,
                quote_decimals=settings.quote_decimals,
            ),
            top_holders(reader, args.mint, 10),
            token_age(reader, args.mint),
            traders_trades_volume(reader, [activity_target], MINUTES_PER_DAY, quote_mint=quote_mint),
            revival_detector(
                reader,
                [activity_target],
                quote_mint=quote_mint,
                multiplier=settings.revival_multiplier,
            ),
        )
        providers = locked = vips = None
        if args.lp_mint:
            providers, locked = await asyncio.gather(
                lp_providers_count(reader, args.lp_mint),
                lp_locked_percent(reader, args.lp_mint, settings.lp_locker_set),
            )
        if args.vip:
            vips = await vip_presence(reader, args.vip, [activity_target])
    finally:
        await client.close()

    inputs = ScoreInputs(
        lp_providers=providers.providers_count if providers else None,
        lp_locked_pct=locked.locked_pct if locked else None,
        top1_pct=holders.concentration_top1_pct,
        top10_pct=holders.concentration_top10_pct,
        traders_24h=trades.traders,
        vip_hits=vips.total_hits if vips else None,
        revival=revival[0].is_revival,
        token_age_minutes=age.age_minutes,
        fdv_to_mc=fdv_mc.ratio,
    )
    sections = {
        "fdv_market_cap": fdv_mc,
        "holders": holders,
        "token_age": age,
        "trades_24h": trades,
        "revival": revival[0],
        "lp_providers": providers,
        "lp_locked": locked,
        "vip_presence": vips,
    }
    return {
        "mint": args.mint,
        "score": asdict(compute_score(inputs)),
        "inputs": asdict(inputs),
        **{name: asdict(value) if value is not None else None for name, value in sections.items()},
    }


def main(argv: list[str] | None = None) -> int:
    setup_logger(level=settings.log_level)
    args = parse_args(argv)
    try:
        settings.require_endpoints()
        report = asyncio.run(screen(args))
    except ScreenerError as e:
        logger.error(f"Screening failed: {type(e).__name__}: {e}")
        return 1
    print(json.dumps(report, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
