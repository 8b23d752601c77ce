"""Tests for operation dispatch and argument validation."""

import pytest

from src.parsers.errors import InvalidPoolError, ValidationError
from src.parsers.risk_scorer import REASONS
from src.tools.registry import TOOLS, ToolContext, dispatch
from tests.fakes import LP_MINT, POOL, TOKEN, USDC, FakeReader, account, mint

RESERVE_Q = "ReserveQuoteAaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"
RESERVE_B = "ReserveBaseBbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb"
LOCKER = "LockerCcccccccccccccccccccccccccccccccccccc"


def _context(reader: FakeReader) -> ToolContext:
    return ToolContext(
        reader=reader,
        quote_mints=frozenset({USDC}),
        quote_decimals=6,
        activity_quote_mint=USDC,
        lp_locker_owners=frozenset({LOCKER}),
        dev_large_transfer_sol=50.0,
        revival_multiplier=3.0,
    )


@pytest.fixture
def ctx() -> ToolContext:
    return _context(
        FakeReader(
            mints=[mint(TOKEN, 1_000_000_000), mint(LP_MINT, 100_000_000)],
            accounts=[
                account(RESERVE_Q, "Pool", USDC, 5000),
                account(RESERVE_B, "Pool", TOKEN, 100),
                account("LpLocked", LOCKER, LP_MINT, 75),
                account("LpFree", "Alice", LP_MINT, 25),
            ],
        )
    )


def test_every_exposed_operation_registered():
    assert set(TOOLS) == {
        "token.supply", "mint.authorities", "price.fdv", "tvl.total", "fdv.market_cap",
        "lp.providers", "lp.locked", "holders.top", "activity.windows", "token.age",
        "fees.paid", "traders.volume", "vip.presence", "dev.behavior", "revival.detect",
        "first_wave.buyers", "score.compute",
    }


@pytest.mark.asyncio
async def test_price_fdv(ctx):
    result = await dispatch(
        "price.fdv", {"mint": TOKEN, "reserve_x": RESERVE_Q, "reserve_y": RESERVE_B}, ctx
    )
    assert result["price_usd"] == 50.0
    assert result["fdv_usd"] == 50000.0


@pytest.mark.asyncio
async def test_lp_locked_uses_configured_lockers(ctx):
    result = await dispatch("lp.locked", {"lp_mint": LP_MINT}, ctx)
    assert result["locked_pct"] == 75.0


@pytest.mark.asyncio
async def test_mint_authorities_flags(ctx):
    result = await dispatch("mint.authorities", {"mint": TOKEN}, ctx)
    assert result["mint_authority_active"] is False
    assert result["freeze_authority_active"] is False


@pytest.mark.asyncio
async def test_short_address_rejected_before_upstream():
    reader = FakeReader()
    with pytest.raises(ValidationError, match="mint"):
        await dispatch("token.supply", {"mint": "short"}, _context(reader))


@pytest.mark.asyncio
async def test_extra_and_out_of_range_fields_rejected(ctx):
    with pytest.raises(ValidationError):
        await dispatch("holders.top", {"mint": TOKEN, "limit": 500}, ctx)
    with pytest.raises(ValidationError):
        await dispatch("token.supply", {"mint": TOKEN, "verbose": True}, ctx)


@pytest.mark.asyncio
async def test_unknown_operation(ctx):
    with pytest.raises(ValidationError):
        await dispatch("nope", {}, ctx)


@pytest.mark.asyncio
async def test_computation_error_propagates():
    reader = FakeReader(
        mints=[mint(TOKEN, 1_000_000_000)],
        accounts=[account(RESERVE_Q, "Pool", USDC, 0), account(RESERVE_B, "Pool", TOKEN, 100)],
    )
    with pytest.raises(InvalidPoolError):
        await dispatch(
            "price.fdv",
            {"mint": TOKEN, "reserve_x": RESERVE_Q, "reserve_y": RESERVE_B},
            _context(reader),
        )


@pytest.mark.asyncio
async def test_activity_windows_no_history(ctx):
    result = await dispatch("activity.windows", {"addresses": [POOL], "windows": [60, 5]}, ctx)
    assert [w["minutes"] for w in result["windows"]] == [5, 60]
    assert all(w["tx_count"] == 0 for w in result["windows"])


@pytest.mark.asyncio
async def test_score_compute(ctx):
    args = {
        "metrics": {"lp_providers": 1, "fdv_to_mc": 1.0},
        "weights": {"fdvToMc": 2},
    }
    result = await dispatch("score.compute", args, ctx)
    assert result["score"] == 10
    assert REASONS["lpCount"] in result["reasons"]
