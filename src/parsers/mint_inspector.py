"""Mint inspection: supply and authority state straight from the mint account."""

from dataclasses import dataclass

from loguru import logger

from src.parsers.upstream.reader import ChainReader


@dataclass
class SupplyInfo:
    mint: str
    decimals: int
    raw_supply: int
    ui_supply: float


@dataclass
class AuthorityInfo:
    """Mint and freeze authority of a token."""

    mint: str
    mint_authority: str | None  # None = renounced
    freeze_authority: str | None

    @property
    def mint_authority_active(self) -> bool:
        return self.mint_authority is not None

    @property
    def freeze_authority_active(self) -> bool:
        return self.freeze_authority is not None


async def token_supply(reader: ChainReader, mint: str) -> SupplyInfo:
    info = await reader.get_mint(mint)
    return SupplyInfo(
        mint=mint,
        decimals=info.decimals,
        raw_supply=info.supply,
        ui_supply=float(info.ui_supply),
    )


async def mint_authorities(reader: ChainReader, mint: str) -> AuthorityInfo:
    info = await reader.get_mint(mint)
    result = AuthorityInfo(
        mint=mint,
        mint_authority=info.mint_authority,
        freeze_authority=info.freeze_authority,
    )
    if result.mint_authority_active or result.freeze_authority_active:
        logger.debug(
            f"[MINT] {mint[:12]}: mint_authority={result.mint_authority_active}, "
            f"freeze_authority={result.freeze_authority_active}"
        )
    return result
