from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
USDT_MINT = "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB"
INCINERATOR_ADDRESS = "1nc1nerator11111111111111111111111111111111"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Upstream endpoints (required at startup)
    upstream_rpc_url: str = ""
    upstream_history_url: str = ""  # must contain "{address}"
    upstream_api_key: str = ""  # sent as X-API-KEY when set

    # Upstream client behaviour
    upstream_max_rps: float = 10.0
    upstream_max_concurrency: int = 5
    upstream_timeout_sec: float = 15.0
    upstream_max_retries: int = 2
    upstream_retry_base_delay_sec: float = 0.5
    history_page_limit: int = 100  # one page per address, never more

    # Reserve classification
    quote_mints: str = f"{USDC_MINT},{USDT_MINT}"  # comma-separated
    quote_decimals: int = 6

    # Activity
    activity_quote_mint: str = USDC_MINT
    dev_large_transfer_sol: float = 50.0
    revival_multiplier: float = 3.0

    # Liquidity
    lp_locker_owners: str = INCINERATOR_ADDRESS  # comma-separated

    # Transport adapter
    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    @field_validator(
        "upstream_max_rps",
        "upstream_max_concurrency",
        "upstream_timeout_sec",
        "dev_large_transfer_sol",
        "revival_multiplier",
    )
    @classmethod
    def _positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator("upstream_max_retries", "upstream_retry_base_delay_sec")
    @classmethod
    def _non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("must be non-negative")
        return v

    @field_validator("history_page_limit")
    @classmethod
    def _page_limit(cls, v: int) -> int:
        if not 1 <= v <= 1000:
            raise ValueError("must be within 1..1000")
        return v

    @field_validator("quote_decimals")
    @classmethod
    def _decimals(cls, v: int) -> int:
        if not 0 <= v <= 255:
            raise ValueError("must be within 0..255")
        return v

    @field_validator("upstream_history_url")
    @classmethod
    def _history_template(cls, v: str) -> str:
        if v and "{address}" not in v:
            raise ValueError("history URL template must contain '{address}'")
        return v

    @property
    def quote_mint_set(self) -> frozenset[str]:
        return _split_csv(self.quote_mints)

    @property
    def lp_locker_set(self) -> frozenset[str]:
        return _split_csv(self.lp_locker_owners)

    def require_endpoints(self) -> None:
        """Raise ConfigError if any required upstream endpoint is missing."""
        from src.parsers.errors import ConfigError

        missing = [
            name.upper()
            for name in ("upstream_rpc_url", "upstream_history_url")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigError(f"Missing required settings: {', '.join(missing)}")


def _split_csv(raw: str) -> frozenset[str]:
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


settings = Settings()
