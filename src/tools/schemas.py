"""Argument records for the exposed operations: validated before any upstream call."""

from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

BASE58_ALPHABET = frozenset("123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz")
MAX_ADDRESSES = 20


def _check_address(value: str) -> str:
    value = value.strip()
    if not 32 <= len(value) <= 44:
        raise ValueError(f"address must be 32-44 characters, got {len(value)}")
    if not set(value) <= BASE58_ALPHABET:
        raise ValueError("address must be base58")
    return value


Address = Annotated[str, AfterValidator(_check_address)]
AddressList = Annotated[list[Address], Field(min_length=1, max_length=MAX_ADDRESSES)]
Minutes = Annotated[int, Field(gt=0, le=43_200)]  # 30 days


class ToolArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")


class MintArgs(ToolArgs):
    mint: Address


class ReservePair(ToolArgs):
    reserve_x: Address
    reserve_y: Address


class PriceArgs(ReservePair):
    mint: Address


class TvlArgs(ToolArgs):
    pools: list[ReservePair] = Field(min_length=1, max_length=MAX_ADDRESSES)


class FdvMcArgs(PriceArgs):
    non_circulating_owners: list[Address] = []


class LPProvidersArgs(ToolArgs):
    lp_mint: Address
    exclude_owners: list[Address] = []


class LPLockedArgs(ToolArgs):
    lp_mint: Address
    locker_owners: list[Address] | None = None  # None = configured lockers


class TopHoldersArgs(ToolArgs):
    mint: Address
    limit: int = Field(20, ge=1, le=100)


class ActivityWindowsArgs(ToolArgs):
    addresses: AddressList
    windows: list[Minutes] = Field(default=[5, 60, 360, 1440], min_length=1, max_length=12)


class TokenAgeArgs(ToolArgs):
    address: Address


class SinceArgs(ToolArgs):
    addresses: AddressList
    since_minutes: Minutes = 1440


class VipPresenceArgs(ToolArgs):
    vip_addresses: AddressList
    addresses_to_scan: AddressList


class DevBehaviorArgs(ToolArgs):
    dev_addresses: AddressList
    addresses_to_scan: list[Address] = Field(default=[], max_length=MAX_ADDRESSES)
    lp_mints: list[Address] = []
    since_minutes: Minutes | None = None
    large_sol_threshold: float | None = Field(None, gt=0)


class RevivalArgs(ToolArgs):
    pool_addresses: AddressList
    multiplier: float | None = Field(None, gt=0)


class FirstWaveArgs(ToolArgs):
    pool_address: Address
    minutes: Minutes = 60
    vip_list: list[Address] = []
    mint: Address | None = None
    limit: int = Field(20, ge=1, le=100)


class ScoreMetrics(ToolArgs):
    lp_providers: int | None = Field(None, ge=0)
    lp_locked_pct: float | None = Field(None, ge=0, le=100)
    top1_pct: float | None = Field(None, ge=0, le=100)
    top10_pct: float | None = Field(None, ge=0, le=100)
    traders_24h: int | None = Field(None, ge=0)
    vip_hits: int | None = Field(None, ge=0)
    revival: bool | None = None
    token_age_minutes: float | None = Field(None, ge=0)
    fdv_to_mc: float | None = Field(None, ge=0)


class ScoreThresholdArgs(ToolArgs):
    min_lp_providers: int = Field(10, ge=0)
    min_lp_locked_pct: float = Field(80.0, ge=0, le=100)
    max_top1_pct: float = Field(20.0, ge=0, le=100)
    max_top10_pct: float = Field(50.0, ge=0, le=100)
    min_traders_24h: int = Field(50, ge=0)
    min_vip_hits: int = Field(1, ge=0)
    min_token_age_minutes: float = Field(1440.0, ge=0)
    fdv_mc_low: float = Field(0.9, ge=0)
    fdv_mc_high: float = Field(1.1, ge=0)


class ScoreArgs(ToolArgs):
    metrics: ScoreMetrics
    thresholds: ScoreThresholdArgs | None = None
    weights: dict[str, Annotated[float, Field(ge=0)]] | None = None
