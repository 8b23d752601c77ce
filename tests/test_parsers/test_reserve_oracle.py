"""Tests for reserve-based pricing, FDV and TVL."""

import pytest

from src.parsers.errors import AmbiguousReserveError, InvalidPoolError, ValidationError
from src.parsers.reserve_oracle import (
    classify_reserves,
    fdv_to_market_cap,
    price_and_fdv,
    tvl_total,
)
from tests.fakes import TOKEN, USDC, FakeReader, account, mint

QUOTES = frozenset({USDC})


class TestClassify:
    def test_exact_match_wins(self) -> None:
        x = account("X", "P", TOKEN, 10, decimals=6)
        y = account("Y", "P", USDC, 10, decimals=6)
        quote, base = classify_reserves(x, y, QUOTES)
        assert quote is y and base is x

    def test_decimals_heuristic(self) -> None:
        x = account("X", "P", "WeirdStable", 10, decimals=6)
        y = account("Y", "P", TOKEN, 10, decimals=9)
        quote, base = classify_reserves(x, y, QUOTES)
        assert quote is x and base is y

    def test_equal_decimals_without_match_is_ambiguous(self) -> None:
        x = account("X", "P", "MintA", 10, decimals=9)
        y = account("Y", "P", "MintB", 10, decimals=9)
        with pytest.raises(AmbiguousReserveError):
            classify_reserves(x, y, QUOTES)

    def test_heuristic_needs_canonical_decimals(self) -> None:
        x = account("X", "P", "MintA", 10, decimals=8)
        y = account("Y", "P", "MintB", 10, decimals=9)
        with pytest.raises(AmbiguousReserveError):
            classify_reserves(x, y, QUOTES)

    def test_both_reference_assets_use_token_mint(self) -> None:
        usdt = "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB"
        x = account("X", "P", USDC, 10)
        y = account("Y", "P", usdt, 10)
        quote, base = classify_reserves(x, y, {USDC, usdt}, token_mint=usdt)
        assert quote is x and base is y
        with pytest.raises(AmbiguousReserveError):
            classify_reserves(x, y, {USDC, usdt})


class TestPrice:
    @pytest.mark.asyncio
    async def test_price_and_fdv_end_to_end(self, priced_pool_reader) -> None:
        quote = await price_and_fdv(
            priced_pool_reader, TOKEN, "ReserveQuote", "ReserveBase", quote_mints=QUOTES
        )
        assert quote.total_supply == 1000.0
        assert quote.price_usd == 50.0
        assert quote.fdv_usd == 50000.0
        assert quote.quote_mint == USDC

    @pytest.mark.asyncio
    async def test_reserve_order_does_not_matter(self, priced_pool_reader) -> None:
        quote = await price_and_fdv(
            priced_pool_reader, TOKEN, "ReserveBase", "ReserveQuote", quote_mints=QUOTES
        )
        assert quote.price_usd == 50.0

    @pytest.mark.asyncio
    async def test_empty_reserve_is_invalid_pool(self) -> None:
        reader = FakeReader(
            mints=[mint(TOKEN, 1_000_000_000)],
            accounts=[account("Q", "P", USDC, 0), account("B", "P", TOKEN, 100)],
        )
        with pytest.raises(InvalidPoolError):
            await price_and_fdv(reader, TOKEN, "Q", "B", quote_mints=QUOTES)

    @pytest.mark.asyncio
    async def test_reserves_for_another_token(self, priced_pool_reader) -> None:
        with pytest.raises(ValidationError):
            await price_and_fdv(
                priced_pool_reader, "OtherMint", "ReserveQuote", "ReserveBase", quote_mints=QUOTES
            )


class TestTvl:
    @pytest.mark.asyncio
    async def test_doubles_quote_side_per_pool(self) -> None:
        reader = FakeReader(
            accounts=[
                account("Q1", "P1", USDC, 5000),
                account("B1", "P1", TOKEN, 100),
                account("Q2", "P2", USDC, 250),
                account("B2", "P2", "OtherMint", 1, decimals=9),
            ]
        )
        report = await tvl_total(reader, [("Q1", "B1"), ("B2", "Q2")], quote_mints=QUOTES)

        assert report.tvl_usd == 10500.0
        assert [p.tvl_usd for p in report.pools] == [10000.0, 500.0]


class TestFdvToMarketCap:
    @pytest.mark.asyncio
    async def test_all_circulating_ratio_is_one(self, priced_pool_reader) -> None:
        report = await fdv_to_market_cap(
            priced_pool_reader, TOKEN, "ReserveQuote", "ReserveBase", quote_mints=QUOTES
        )
        assert report.ratio == pytest.approx(1.0)
        assert report.market_cap_usd == pytest.approx(50000.0)

    @pytest.mark.asyncio
    async def test_excluded_owners_shrink_market_cap(self) -> None:
        reader = FakeReader(
            mints=[mint(TOKEN, 1_000_000_000)],
            accounts=[
                account("ReserveQuote", "Pool", USDC, 5000),
                account("ReserveBase", "Pool", TOKEN, 100),
                account("TreasuryAcc", "Treasury", TOKEN, 500),
            ],
        )
        report = await fdv_to_market_cap(
            reader,
            TOKEN,
            "ReserveQuote",
            "ReserveBase",
            non_circulating_owners=["Treasury"],
            quote_mints=QUOTES,
        )
        assert report.circulating_supply == pytest.approx(500.0)
        assert report.ratio == pytest.approx(2.0)

    @pytest.mark.asyncio
    async def test_ratio_exact_for_repeating_price(self) -> None:
        # price 1/3 has no finite decimal form
        reader = FakeReader(
            mints=[mint(TOKEN, 3_000_000_000)],
            accounts=[
                account("ReserveQuote", "Pool", USDC, 1),
                account("ReserveBase", "Pool", TOKEN, 3),
                account("TreasuryAcc", "Treasury", TOKEN, 2000),
            ],
        )
        report = await fdv_to_market_cap(
            reader,
            TOKEN,
            "ReserveQuote",
            "ReserveBase",
            non_circulating_owners=["Treasury"],
            quote_mints=QUOTES,
        )
        assert report.circulating_supply == 1000.0
        assert report.ratio == 3.0
        assert report.fdv_usd == pytest.approx(1000.0)
