"""Tests for top-holder ranking and concentration."""

import random
from decimal import Decimal

import pytest

from src.parsers.errors import ValidationError
from src.parsers.holder_analyzer import rank_holders, top_holders
from tests.fakes import TOKEN, FakeReader, account, mint


@pytest.mark.asyncio
async def test_top_holders_end_to_end():
    reader = FakeReader(
        mints=[mint(TOKEN, supply=1_000_000_000, decimals=6)],
        accounts=[
            account("Acc3", "Carol", TOKEN, 100),
            account("Acc1", "Alice", TOKEN, 600),
            account("Acc2", "Bob", TOKEN, 300),
        ],
    )

    snapshot = await top_holders(reader, TOKEN, limit=2)

    assert [(h.rank, h.owner, h.amount, h.pct_of_supply) for h in snapshot.holders] == [
        (1, "Alice", 600.0, 60.0),
        (2, "Bob", 300.0, 30.0),
    ]
    assert snapshot.concentration_top1_pct == 60.0
    assert snapshot.concentration_top10_pct == 90.0
    assert snapshot.total_accounts == 3
    assert snapshot.ui_supply == 1000.0


@pytest.mark.asyncio
async def test_zero_balance_accounts_discarded():
    reader = FakeReader(
        mints=[mint(TOKEN, supply=1_000_000)],
        accounts=[account("Empty", "Ghost", TOKEN, 0), account("Full", "Alice", TOKEN, 1)],
    )
    snapshot = await top_holders(reader, TOKEN, limit=10)
    assert [h.owner for h in snapshot.holders] == ["Alice"]
    assert snapshot.total_accounts == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [0, 101])
async def test_limit_out_of_range(limit):
    reader = FakeReader(mints=[mint(TOKEN, supply=1)])
    with pytest.raises(ValidationError):
        await top_holders(reader, TOKEN, limit=limit)


def test_zero_supply_yields_zero_pct():
    accounts = [account("A", "Alice", TOKEN, 5)]
    snapshot = rank_holders(TOKEN, accounts, Decimal(0), limit=10)
    assert snapshot.holders[0].pct_of_supply == 0.0
    assert snapshot.concentration_top1_pct == 0.0
    assert snapshot.concentration_top10_pct == 0.0


def test_top10_sums_at_most_ten_entries():
    accounts = [account(f"A{i}", f"Owner{i}", TOKEN, 5) for i in range(15)]
    snapshot = rank_holders(TOKEN, accounts, Decimal(100), limit=15)
    assert len(snapshot.holders) == 15
    assert snapshot.concentration_top10_pct == 50.0


def test_concentration_bounds_hold_for_random_sets():
    rng = random.Random(7)
    for _ in range(50):
        balances = [rng.randint(1, 10_000) for _ in range(rng.randint(1, 30))]
        supply = Decimal(sum(balances) + rng.randint(0, 5_000))
        accounts = [account(f"A{i}", f"O{i}", TOKEN, b) for i, b in enumerate(balances)]
        snapshot = rank_holders(TOKEN, accounts, supply, limit=rng.randint(1, 100))

        assert 0 <= snapshot.concentration_top1_pct <= snapshot.concentration_top10_pct <= 100
        assert all(0 <= h.pct_of_supply <= 100 for h in snapshot.holders)
        amounts = [h.amount for h in snapshot.holders]
        assert amounts == sorted(amounts, reverse=True)
