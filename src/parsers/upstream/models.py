"""Pydantic models for upstream chain state and transaction history."""

from decimal import Decimal

from pydantic import BaseModel, Field


def to_ui(raw: int, decimals: int) -> Decimal:
    """Scale a raw integer amount by its mint's decimals."""
    return Decimal(raw).scaleb(-decimals)


class TokenMint(BaseModel):
    """Mint account state."""

    address: str
    decimals: int = Field(ge=0, le=255)
    supply: int = Field(ge=0)  # raw
    mint_authority: str | None = None  # None = renounced
    freeze_authority: str | None = None

    @property
    def ui_supply(self) -> Decimal:
        return to_ui(self.supply, self.decimals)


class TokenAccount(BaseModel):
    """Token account holding a balance of one mint."""

    address: str
    owner: str
    mint: str
    amount: int = Field(ge=0)  # raw
    decimals: int = Field(ge=0, le=255)

    @property
    def ui_amount(self) -> Decimal:
        return to_ui(self.amount, self.decimals)


class TokenTransfer(BaseModel):
    """Token transfer leg within a transaction."""

    from_user_account: str = ""
    to_user_account: str = ""
    from_token_account: str = ""
    to_token_account: str = ""
    token_amount: Decimal = Decimal("0")  # ui amount
    mint: str = ""


class NativeTransfer(BaseModel):
    """SOL transfer leg within a transaction."""

    from_user_account: str = ""
    to_user_account: str = ""
    amount: int = 0  # lamports


class HistoryTransaction(BaseModel):
    """Parsed transaction record from the history API."""

    signature: str
    type: str = ""  # "TRANSFER", "SWAP", "ADD_LIQUIDITY", etc.
    source: str = ""  # "RAYDIUM", "ORCA", "JUPITER", etc.
    fee: int = 0  # lamports
    fee_payer: str = ""
    timestamp: int = 0  # unix seconds
    token_transfers: list[TokenTransfer] = []
    native_transfers: list[NativeTransfer] = []

    def counterparties(self) -> set[str]:
        """Every non-empty wallet appearing on either side of any leg."""
        parties: set[str] = set()
        for leg in self.token_transfers:
            parties.update((leg.from_user_account, leg.to_user_account))
        for leg in self.native_transfers:
            parties.update((leg.from_user_account, leg.to_user_account))
        parties.discard("")
        return parties
