"""Application settings: single file, Pydantic-based.

DB selection:
  - DATABASE_URL set and non-empty -> PostgreSQL
  - DATABASE_URL absent/empty -> SQLite (DB_SQLITE_PATH, default data/pacrewards.db)
"""

import re
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _backend_root() -> Path:
    """Backend package root (backend/). config.py lives at backend/config.py."""
    return Path(__file__).resolve().parent


def _ensure_env_loaded() -> None:
    """Load .env from backend root (then project root). Idempotent."""
    root: Path = _backend_root()
    for candidate in (root / ".env", root.parent / ".env"):
        if candidate.exists():
            load_dotenv(candidate, override=False)


_ensure_env_loaded()

_ENV_FILES: tuple[str, str] = (str(_backend_root() / ".env"), ".env")


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str | None = Field(
        default=None,
        description="PostgreSQL DSN; when set, uses Postgres.",
        validation_alias="DATABASE_URL",
    )
    sqlite_path: str | None = Field(default="data/pacrewards.db")
    pool_size: int = Field(default=5)
    pool_timeout: int = Field(default=30)
    pool_recycle: int = Field(default=1800)

    def _use_postgres(self) -> bool:
        return bool((self.database_url or "").strip())

    def _resolved_sqlite_path(self) -> Path:
        raw: str = (self.sqlite_path or "data/pacrewards.db").strip()
        path: Path = Path(raw)
        if not path.is_absolute():
            path = (_backend_root() / path).resolve()
        return path

    def _redacted_postgres_dsn(self) -> str:
        url: str = (self.database_url or "").strip()
        return re.sub(r":([^:@]+)@", r":***@", url) if url else ""

    @property
    def url(self) -> str:
        if self._use_postgres():
            return (self.database_url or "").strip()
        path = self._resolved_sqlite_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{path.as_posix()}"

    def db_info_for_logging(self) -> str:
        if self._use_postgres():
            return f"PostgreSQL @ {self._redacted_postgres_dsn()}"
        return f"SQLite @ {self._resolved_sqlite_path().as_posix()}"


class NetworkSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="NETWORK_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    refresh_interval: float = Field(
        default=60.0, description="Seconds between network snapshot refreshes"
    )


class TwitterSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TWITTER_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_url: str = Field(default="https://api.twitter.com/2")
    bearer_token: str = Field(default="")
    campaign_tweet_id: str = Field(
        default="", description="Promotional post that booster parties must quote"
    )
    timeout: int = Field(default=15)


class NowPaymentsSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="NOWPAYMENTS_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_url: str = Field(default="https://api.nowpayments.io/v1")
    api_key: str = Field(default="")
    ipn_callback_url: str = Field(default="")
    success_url: str = Field(default="")
    cancel_url: str = Field(default="")
    timeout: int = Field(default=15)


class ProgramSettings(BaseSettings):
    """Claim and booster program rules."""

    model_config = SettingsConfigDict(
        env_prefix="PROGRAM_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    min_wallet_reserve: int = Field(default=500, description="Wallet reserve in PAC")
    claim_memo: str = Field(default="TestNet reward claim")
    booster_memo: str = Field(default="Validator Booster Program")
    booster_cap: int = Field(default=500)
    min_account_age_years: int = Field(default=2)
    min_followers: int = Field(default=200)
    high_follower_threshold: int = Field(default=1000)
    pac_amount_high: int = Field(default=200)
    pac_amount_base: int = Field(default=150)
    retweet_window_days: int = Field(default=7)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PACREWARDS_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    debug: bool = Field(default=False)
    api_key: str | None = Field(default=None, description="API key for operator endpoints")
    data_dir: Path = Field(default=Path("data"))
    services_factory: str | None = Field(
        default=None,
        description="'module:callable' returning the wired services (network and wallet clients)",
    )

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    network: NetworkSettings = Field(default_factory=NetworkSettings)
    twitter: TwitterSettings = Field(default_factory=TwitterSettings)
    nowpayments: NowPaymentsSettings = Field(default_factory=NowPaymentsSettings)
    program: ProgramSettings = Field(default_factory=ProgramSettings)

    def model_post_init(self, _context: object) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_settings() -> Settings:
    return Settings()
