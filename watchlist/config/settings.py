import os
from functools import lru_cache

from pydantic import BaseModel, Field

from watchlist.schemas.watchlist import SourceConfig

DEFAULT_SOURCES = ["binance", "okx", "mexc", "coinbase", "kucoin"]
DEFAULT_FAILOVER_HOSTS = [
    "api1.binance.com",
    "api-gcp.binance.com",
    "api4.binance.com",
    "api.binance.com",
]


def _split_csv(raw: str | None, default: list[str]) -> list[str]:
    if raw is None:
        return list(default)
    values = [s.strip() for s in raw.split(",") if s.strip()]
    return values or list(default)


class Settings(BaseModel):
    WATCHLIST_SOURCES: list[str]
    WATCHLIST_QUOTE: str = Field(min_length=1)
    WATCHLIST_FAILOVER_SOURCE: str | None = None
    WATCHLIST_FAILOVER_HOSTS: list[str]
    BINANCE_HOST: str | None = None
    WATCHLIST_OUTPUT_DIR: str = "."
    WATCHLIST_LISTS_DIR: str = "lists"
    WATCHLIST_TIMEOUT_MS: int = Field(default=30000, gt=0)
    WATCHLIST_MAX_WORKERS: int = Field(default=1, ge=1)
    WATCHLIST_REFRESH_SEC: float = Field(default=0.0, ge=0)

    @classmethod
    def from_env(cls) -> "Settings":
        failover_source = os.getenv("WATCHLIST_FAILOVER_SOURCE", "binance").strip().lower()
        preferred_host = (os.getenv("BINANCE_HOST") or "").strip()

        return cls.model_validate(
            {
                "WATCHLIST_SOURCES": [
                    s.lower() for s in _split_csv(os.getenv("WATCHLIST_SOURCES"), DEFAULT_SOURCES)
                ],
                "WATCHLIST_QUOTE": os.getenv("WATCHLIST_QUOTE", "BTC").strip().upper(),
                "WATCHLIST_FAILOVER_SOURCE": failover_source or None,
                "WATCHLIST_FAILOVER_HOSTS": _split_csv(
                    os.getenv("WATCHLIST_FAILOVER_HOSTS"), DEFAULT_FAILOVER_HOSTS
                ),
                "BINANCE_HOST": preferred_host or None,
                "WATCHLIST_OUTPUT_DIR": os.getenv("WATCHLIST_OUTPUT_DIR", "."),
                "WATCHLIST_LISTS_DIR": os.getenv("WATCHLIST_LISTS_DIR", "lists"),
                "WATCHLIST_TIMEOUT_MS": os.getenv("WATCHLIST_TIMEOUT_MS", "30000"),
                "WATCHLIST_MAX_WORKERS": os.getenv("WATCHLIST_MAX_WORKERS", "1"),
                "WATCHLIST_REFRESH_SEC": os.getenv("WATCHLIST_REFRESH_SEC", "0"),
            }
        )

    def failover_endpoints(self) -> list[str]:
        """Candidate hosts in try order, preferred host first, without repeats."""
        candidates = [self.BINANCE_HOST, *self.WATCHLIST_FAILOVER_HOSTS]
        out: list[str] = []
        for host in candidates:
            if host and host not in out:
                out.append(host)
        return out

    def source_configs(self) -> list[SourceConfig]:
        configs: list[SourceConfig] = []
        for source_id in self.WATCHLIST_SOURCES:
            if source_id == self.WATCHLIST_FAILOVER_SOURCE:
                configs.append(
                    SourceConfig(
                        id=source_id,
                        is_failover_source=True,
                        endpoints=tuple(self.failover_endpoints()),
                    )
                )
            else:
                configs.append(SourceConfig(id=source_id))
        return configs


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
