"""Chain reader: typed mint, token-account and history reads over UpstreamClient."""

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from loguru import logger
from pydantic import ValidationError as SchemaError

from src.parsers.errors import AccountNotFoundError, ValidationError
from src.parsers.upstream.client import UpstreamClient
from src.parsers.upstream.exceptions import TransportError
from src.parsers.upstream.models import (
    HistoryTransaction,
    NativeTransfer,
    TokenAccount,
    TokenMint,
    TokenTransfer,
)

TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_2022_PROGRAM_ID = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"
TOKEN_ACCOUNT_SIZE = 165  # legacy token accounts; Token-2022 adds extensions

DEFAULT_PAGE_LIMIT = 100


class ChainReader:
    """Reads mint state, token accounts and one page of history per address."""

    def __init__(
        self,
        client: UpstreamClient,
        history_url: str,
        *,
        page_limit: int = DEFAULT_PAGE_LIMIT,
    ) -> None:
        self._client = client
        self._history_url = history_url
        self._page_limit = page_limit

    @property
    def page_limit(self) -> int:
        return self._page_limit

    async def get_mint(self, mint: str) -> TokenMint:
        parsed = await self._get_parsed_account(mint)
        if parsed.get("type") != "mint":
            raise ValidationError(f"{mint} is not a mint account")
        info = parsed.get("info") or {}
        with _malformed(f"mint {mint[:12]}"):
            return TokenMint(
                address=mint,
                decimals=int(info.get("decimals") or 0),
                supply=int(info.get("supply") or 0),
                mint_authority=info.get("mintAuthority") or None,
                freeze_authority=info.get("freezeAuthority") or None,
            )

    async def get_token_account(self, address: str) -> TokenAccount:
        parsed = await self._get_parsed_account(address)
        if parsed.get("type") != "account":
            raise ValidationError(f"{address} is not a token account")
        with _malformed(f"token account {address[:12]}"):
            return _parse_token_account(address, parsed.get("info") or {})

    async def get_mint_accounts(self, mint: str) -> list[TokenAccount]:
        """All token accounts of ``mint`` across the legacy and Token-2022 programs."""
        mint_filter = {"memcmp": {"offset": 0, "bytes": mint}}
        legacy, token2022 = await asyncio.gather(
            self._get_program_accounts(
                TOKEN_PROGRAM_ID, [{"dataSize": TOKEN_ACCOUNT_SIZE}, mint_filter]
            ),
            self._get_program_accounts(TOKEN_2022_PROGRAM_ID, [mint_filter]),
        )
        accounts = legacy + token2022
        logger.debug(
            f"[READER] {mint[:12]}: {len(legacy)} legacy + {len(token2022)} token-2022 accounts"
        )
        return accounts

    async def get_history(
        self, address: str, *, limit: int | None = None, before: str = ""
    ) -> list[HistoryTransaction]:
        """Fetch ONE page of most-recent-first history for ``address``.

        Older history past the page is not followed.
        """
        page = min(limit or self._page_limit, self._page_limit)
        query: dict[str, Any] = {"limit": page}
        if before:
            query["before"] = before

        url = self._history_url.format(address=address)
        data = await self._client.get(url, query)
        if isinstance(data, dict) and "data" in data:
            data = data["data"]
        if not isinstance(data, list):
            raise TransportError(f"History response for {address[:12]} is not a list")
        with _malformed(f"history for {address[:12]}"):
            return [_parse_tx(tx) for tx in data]

    async def _get_parsed_account(self, address: str) -> dict[str, Any]:
        result = await self._client.call(
            "getAccountInfo", [address, {"encoding": "jsonParsed"}]
        )
        value = result.get("value") if isinstance(result, dict) else None
        if value is None:
            raise AccountNotFoundError(address)
        data = value.get("data")
        if not isinstance(data, dict) or "parsed" not in data:
            raise ValidationError(f"{address} is not a token program account")
        return data["parsed"]

    async def _get_program_accounts(
        self, program_id: str, filters: list[dict[str, Any]]
    ) -> list[TokenAccount]:
        result = await self._client.call(
            "getProgramAccounts",
            [program_id, {"encoding": "jsonParsed", "filters": filters}],
        )
        if isinstance(result, dict):  # withContext responses
            result = result.get("value", [])

        accounts = []
        with _malformed(f"{program_id[:12]} program accounts"):
            for item in result or []:
                parsed = ((item.get("account") or {}).get("data") or {}).get("parsed") or {}
                if parsed.get("type") != "account":
                    continue
                accounts.append(
                    _parse_token_account(item.get("pubkey") or "", parsed.get("info") or {})
                )
        return accounts


@contextmanager
def _malformed(what: str) -> Iterator[None]:
    """Re-raise shape and schema failures on upstream records as TransportError."""
    try:
        yield
    except (SchemaError, TypeError, ValueError, AttributeError) as e:
        raise TransportError(f"Malformed {what}: {e}") from e


def _parse_token_account(address: str, info: dict[str, Any]) -> TokenAccount:
    amount = info.get("tokenAmount") or {}
    return TokenAccount(
        address=address,
        owner=info.get("owner") or "",
        mint=info.get("mint") or "",
        amount=int(amount.get("amount") or 0),
        decimals=int(amount.get("decimals") or 0),
    )


def _parse_tx(data: dict) -> HistoryTransaction:
    """Parse a raw history record."""
    token_transfers = [
        TokenTransfer(
            from_user_account=t.get("fromUserAccount") or "",
            to_user_account=t.get("toUserAccount") or "",
            from_token_account=t.get("fromTokenAccount") or "",
            to_token_account=t.get("toTokenAccount") or "",
            token_amount=t.get("tokenAmount") or 0,
            mint=t.get("mint") or "",
        )
        for t in data.get("tokenTransfers") or []
    ]

    native_transfers = [
        NativeTransfer(
            from_user_account=t.get("fromUserAccount") or "",
            to_user_account=t.get("toUserAccount") or "",
            amount=t.get("amount") or 0,
        )
        for t in data.get("nativeTransfers") or []
    ]

    return HistoryTransaction(
        signature=data.get("signature") or "",
        type=data.get("type") or "",
        source=data.get("source") or "",
        fee=data.get("fee") or 0,
        fee_payer=data.get("feePayer") or "",
        timestamp=data.get("timestamp") or 0,
        token_transfers=token_transfers,
        native_transfers=native_transfers,
    )
