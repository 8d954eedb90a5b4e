from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Callable, Sequence

from watchlist.schemas.watchlist import (
    EndpointAttempt,
    FailoverTrail,
    RunMetadata,
    RunResult,
    SourceConfig,
    SourceResult,
)
from watchlist.services.failover_fetcher import fetch_with_failover
from watchlist.services.normalizer import SETTLEMENT_ASSET
from watchlist.services.source_fetcher import fetch_ordinary


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WatchlistAggregator:
    """Runs every configured source and assembles lists, artifacts and metadata."""

    def __init__(
        self,
        *,
        backend,
        quote: str = SETTLEMENT_ASSET,
        lists_dir: str = "lists",
        max_workers: int = 1,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")

        self.backend = backend
        self.quote = quote
        self.lists_dir = lists_dir.rstrip("/")
        self.max_workers = max_workers
        self.clock = clock or _utc_now

    def artifact_path(self, name: str) -> str:
        filename = f"{name.upper()}_{self.quote}_PAIRS.txt"
        return f"{self.lists_dir}/{filename}" if self.lists_dir else filename

    @property
    def combined_artifact_path(self) -> str:
        return self.artifact_path("ALL")

    def _fetch_source(
        self, config: SourceConfig
    ) -> tuple[SourceResult, tuple[EndpointAttempt, ...] | None]:
        tag = config.id.upper()
        try:
            if config.is_failover_source:
                return fetch_with_failover(
                    self.backend, config.id, config.endpoints, quote=self.quote
                )
            return fetch_ordinary(self.backend, config.id, quote=self.quote), None
        except Exception as exc:
            message = str(exc) or type(exc).__name__
            print(f"[{tag}] failed: {message}", flush=True)
            attempts = () if config.is_failover_source else None
            return SourceResult(source_id=config.id, diagnostics=(f"{tag} failed: {message}",)), attempts

    @staticmethod
    def _unique_configs(source_configs: Sequence[SourceConfig]) -> list[SourceConfig]:
        seen: set[str] = set()
        out: list[SourceConfig] = []
        for config in source_configs:
            key = config.id.lower()
            if key in seen:
                print(f"[WATCHLIST][config_duplicate] source={config.id} skipped=1", flush=True)
                continue
            seen.add(key)
            out.append(config)
        return out

    def _fetch_all(
        self, configs: list[SourceConfig]
    ) -> list[tuple[SourceResult, tuple[EndpointAttempt, ...] | None]]:
        if self.max_workers == 1 or len(configs) <= 1:
            return [self._fetch_source(c) for c in configs]

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="watchlist-fetch") as pool:
            # map() yields in submission order, not completion order
            return list(pool.map(self._fetch_source, configs))

    def run(self, source_configs: Sequence[SourceConfig]) -> RunResult:
        configs = self._unique_configs(source_configs)
        fetched = self._fetch_all(configs)

        results: dict[str, SourceResult] = {}
        failover: FailoverTrail | None = None
        for config, (result, attempts) in zip(configs, fetched):
            results[config.id] = result
            print(
                f"[{config.id.upper()}] fetched {len(result.symbols)} symbols "
                f"diagnostics={len(result.diagnostics)}",
                flush=True,
            )
            if config.is_failover_source and failover is None:
                failover = FailoverTrail(
                    source=config.id.upper(),
                    endpoints=config.endpoints,
                    attempts=attempts or (),
                )

        combined: list[str] = []
        per_source: dict[str, tuple[str, ...]] = {}
        for config in configs:
            symbols = results[config.id].symbols
            if not symbols:
                continue
            combined.extend(symbols)
            per_source[self.artifact_path(config.id)] = symbols

        artifacts: dict[str, tuple[str, ...]] = {}
        if combined:
            artifacts[self.combined_artifact_path] = tuple(combined)
        artifacts.update(per_source)

        metadata = RunMetadata(
            generated_at=self.clock().isoformat().replace("+00:00", "Z"),
            sources=tuple(c.id.upper() for c in configs),
            files=tuple(artifacts),
            failover=failover,
        )

        print(
            f"[WATCHLIST][run_complete] sources={len(configs)} combined={len(combined)} "
            f"artifacts={len(artifacts)}",
            flush=True,
        )
        return RunResult(
            results=results,
            combined=tuple(combined),
            artifacts=artifacts,
            metadata=metadata,
        )
