"""Shared test fixtures."""

import pytest

from tests.fakes import TOKEN, USDC, FakeReader, account, mint


@pytest.fixture
def priced_pool_reader() -> FakeReader:
    """Token with 1000 ui supply in a pool holding 5000 USDC / 100 TOKEN."""
    return FakeReader(
        mints=[mint(TOKEN, supply=1_000_000_000, decimals=6)],
        accounts=[
            account("ReserveQuote", "PoolAuthority", USDC, 5000),
            account("ReserveBase", "PoolAuthority", TOKEN, 100),
        ],
    )
